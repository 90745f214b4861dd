from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils import timezone
from ..exceptions import (AlreadyPostedError, ClosedPeriodError,
                          UnbalancedJournalError)
from ..managers import JournalLineManager, TenantManager
from .account import LedgerAccount
from .base import AuditedModel
from .tenant import Quarry

ZERO = Decimal("0.00")

JOURNAL_STATUS = [
    ("draft", "Draft"),    # still editable
    ("posted", "Posted"),  # finalized, corrections only via reversal
]

ENTRY_TYPES = [
    ("auto", "Auto"),              # generated from a sale, expense, deposit...
    ("manual", "Manual"),          # user-created
    ("adjustment", "Adjustment"),
    ("reversal", "Reversal"),      # offsets a posted entry
]


# ---------- Journal (Header) & JournalEntryLine ----------
class JournalEntry(AuditedModel):  # Represents one accounting transaction
    quarry = models.ForeignKey(
        Quarry, on_delete=models.CASCADE, related_name="journal_entries")

    entry_date = models.DateField()
    reference = models.CharField(max_length=40)  # "SL-2025-00042"
    description = models.TextField(blank=True, default="")
    entry_type = models.CharField(
        max_length=12, choices=ENTRY_TYPES, default="manual")

    # optional polymorphic source info (sale, expense, banking...)
    source_type = models.CharField(max_length=50, null=True, blank=True)
    source_id = models.CharField(max_length=64, null=True, blank=True)

    status = models.CharField(
        max_length=10, choices=JOURNAL_STATUS, default="draft")
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    # Cached from lines, refreshed on every write
    total_debit = models.DecimalField(
        max_digits=18, decimal_places=2, default=ZERO)
    total_credit = models.DecimalField(
        max_digits=18, decimal_places=2, default=ZERO)

    # Redundant with entry_date, kept for fast period filtering
    fiscal_year = models.PositiveIntegerField(editable=False)
    fiscal_period = models.PositiveSmallIntegerField(editable=False)

    # Set on reversal entries
    reverses = models.ForeignKey(
        "self",
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name="reversals",
    )

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["quarry", "entry_date"], name="je_quarry_date_idx"),
            models.Index(fields=["quarry", "status"], name="je_quarry_status_idx"),
            models.Index(fields=["quarry", "fiscal_year", "fiscal_period"],
                         name="je_quarry_fiscal_idx"),
            models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["quarry", "reference"], name="uq_je_quarry_ref"
            ),
            # one live generated entry per business event
            models.UniqueConstraint(
                fields=["quarry", "source_type", "source_id"],
                condition=models.Q(entry_type="auto", is_active=True),
                name="uq_je_auto_source",
                violation_error_message="This transaction already has a journal entry.",
            ),
        ]
        ordering = ("-entry_date", "-created_at")

    def __str__(self):
        return f"{self.reference} {self.entry_date} [{self.status}]"

    @property
    def is_posted(self):
        return self.status == "posted"

    @property
    def is_balanced(self):
        return self.total_debit == self.total_credit

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        """Return debits, credits sums for active lines"""
        aggs = self.lines.filter(is_active=True).aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return (
            aggs["total_debit"] or ZERO,
            aggs["total_credit"] or ZERO,
        )

    def refresh_totals(self):
        self.total_debit, self.total_credit = self.compute_totals()
        return self.total_debit, self.total_credit

    @transaction.atomic
    def post(self, user=None):
        """
        Draft → Posted. Re-validates everything against fresh rows,
        so an entry whose lines were tampered with cannot slip through.
        """
        from ..services.periods import lock_period_for_date

        # Lock row + lines to prevent concurrent modifications
        je = JournalEntry.objects.select_for_update().get(pk=self.pk)
        if je.status == "posted":
            raise AlreadyPostedError(f"Journal {je.reference} is already posted.")

        lines = list(
            je.lines.select_for_update()
            .filter(is_active=True)
            .select_related("account")
        )
        if not lines:
            raise ValidationError("JournalEntry must have at least one line.")

        total_debit, total_credit = je.refresh_totals()
        if total_debit != total_credit:
            raise UnbalancedJournalError(
                f"Journal not balanced: debits={total_debit}, credits={total_credit}"
            )

        for line in lines:
            if line.account.quarry_id != je.quarry_id:
                raise ValidationError(
                    f"Account {line.account.code} belongs to another quarry.")
            if not line.account.is_active:
                raise ValidationError(
                    f"Account {line.account.code} is inactive.")

        # Re-read the period's closed flag under lock, right before commit
        period = lock_period_for_date(je.quarry, je.entry_date)
        if period is not None and period.is_closed:
            raise ClosedPeriodError(
                f"Cannot post into closed period {period.name}.")

        je.status = "posted"
        je.posted_at = timezone.now()
        je.posted_by = user
        je.save(
            update_fields=["status", "posted_at", "posted_by",
                           "total_debit", "total_credit"]
        )

        self.status, self.posted_at, self.posted_by = je.status, je.posted_at, je.posted_by
        self.total_debit, self.total_credit = total_debit, total_credit
        return je

    def clean(self):
        """Don't modify posted journals"""
        if self.pk:
            orig = JournalEntry.objects.filter(pk=self.pk).first()
            if orig and orig.status == "posted":
                raise ValidationError(
                    "Cannot modify a posted JournalEntry. It is immutable."
                )
        if self.reverses_id and self.reverses.quarry_id != self.quarry_id:
            raise ValidationError(
                "A reversal must belong to the same quarry as the original.")

    def save(self, *args, **kwargs):
        # Keep fiscal columns in step with entry_date
        self.fiscal_year = self.entry_date.year
        self.fiscal_period = self.entry_date.month
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.pk, status="posted").exists():
            raise AlreadyPostedError("Cannot delete a posted JournalEntry.")
        return super().delete(*args, **kwargs)


class JournalEntryLine(models.Model):  # Stores Lines ( credits / debits )
    """
    One debit or one credit against a ledger account.
    Exactly one of debit/credit is non-zero.
    """

    journal = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # can't delete an account if lines exist → PROTECT
    account = models.ForeignKey(
        LedgerAccount, on_delete=models.PROTECT, related_name="lines")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    memo = models.CharField(max_length=400, blank=True, default="")
    line_number = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)

    objects = JournalLineManager()

    class Meta:
        indexes = [
            models.Index(fields=["account"], name="jel_account_idx"),
            models.Index(fields=["journal", "line_number"], name="jel_journal_line_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jel_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit=0) & models.Q(credit=0)),
                name="jel_debit_or_credit_nonzero",
            ),
            models.CheckConstraint(
                condition=~(models.Q(debit__gt=0) & models.Q(credit__gt=0)),
                name="jel_not_both_debit_and_credit",
            ),
        ]
        ordering = ("journal", "line_number")

    def __str__(self):
        return f"{self.journal_id} | {self.account.code} | D:{self.debit} C:{self.credit}"

    def clean(self):
        if self.debit is None or self.credit is None:
            raise ValidationError("Debit and credit are required")
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if self.debit > 0 and self.credit > 0:
            raise ValidationError(
                "A journal line should not have both debit and credit > 0")
        if self.debit == 0 and self.credit == 0:
            raise ValidationError(
                "A journal line requires a non-0 amount on either debit or credit")

        if self.account_id and self.journal_id:
            if self.account.quarry_id != self.journal.quarry_id:
                raise ValidationError(
                    "Journal line account must belong to the journal's quarry.")

        # Lines of a posted journal are frozen
        if self.journal_id and JournalEntry.objects.filter(
            pk=self.journal_id, status="posted"
        ).exists():
            raise AlreadyPostedError(
                "Cannot add or modify lines: parent journal is posted.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if JournalEntry.objects.filter(pk=self.journal_id, status="posted").exists():
            raise AlreadyPostedError(
                "Cannot delete a line: parent journal is posted.")
        return super().delete(*args, **kwargs)
