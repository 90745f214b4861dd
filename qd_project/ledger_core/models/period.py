from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .base import AuditedModel
from .tenant import Quarry

PERIOD_TYPES = [
    ("monthly", "Monthly"),
    ("quarterly", "Quarterly"),
    ("annual", "Annual"),
]


# ---------- AccountingPeriod ----------
class AccountingPeriod(AuditedModel):  # a time bucket for grouping and locking postings

    # Every quarry has its own independent calendar of periods
    quarry = models.ForeignKey(
        Quarry,
        # Prevent accidental deletion of periods tied to journal entries
        on_delete=models.PROTECT,
        related_name="periods",
    )

    name = models.CharField(max_length=50)  # Example: "January 2025"

    # Both ends inclusive
    start_date = models.DateField()
    end_date = models.DateField()

    fiscal_year = models.PositiveIntegerField()
    period_number = models.PositiveSmallIntegerField()  # 1-12 for monthly
    period_type = models.CharField(
        max_length=10, choices=PERIOD_TYPES, default="monthly")

    # When is_closed=True no new postings are allowed inside the date range
    is_closed = models.BooleanField(default=False)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    closed_at = models.DateTimeField(null=True, blank=True)
    closing_notes = models.TextField(blank=True, default="")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["quarry", "start_date"], name="ap_quarry_start_idx"),
            models.Index(fields=["quarry", "is_closed"], name="ap_quarry_closed_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["quarry", "fiscal_year", "period_number"],
                name="uq_quarry_fiscal_period",
            ),
        ]
        ordering = ("quarry", "fiscal_year", "period_number")

    def __str__(self):
        state = "closed" if self.is_closed else "open"
        return f"{self.name} ({state})"

    def contains(self, day):
        return self.start_date <= day <= self.end_date

    def clean(self):
        if self.start_date > self.end_date:
            raise ValidationError("start_date must not be after end_date")

        # Active periods of one quarry never overlap
        overlapping = AccountingPeriod.objects.filter(
            quarry_id=self.quarry_id,
            is_active=True,
            start_date__lte=self.end_date,
            end_date__gte=self.start_date,
        ).exclude(pk=self.pk)
        if self.is_active and overlapping.exists():
            raise ValidationError(
                f"Period {self.name} overlaps {overlapping.first().name}."
            )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
