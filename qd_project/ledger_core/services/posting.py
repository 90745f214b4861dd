import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Union

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import (AlreadyPostedError, ClosedPeriodError,
                          UnbalancedJournalError)
# Import models
from ..models import JournalEntry, JournalEntryLine, LedgerAccount, Quarry
from ..results import BUSINESS_ERRORS, ServiceResult, error_message
from .audit_helper import log_action
from .fees import ZERO, to_money
from .periods import lock_period_for_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JournalLineSpec:
    """One proposed line: an account (instance or code) and one side."""

    account: Union[LedgerAccount, str]
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    memo: str = ""


# ----------------------------
# Helpers
# ----------------------------
def next_reference(quarry, prefix, year):
    """
    "SL-2025-00042": the quarry's entry count for the year, plus one.
    Callers hold the quarry row lock, so two writers never compute
    the same number.
    """
    padding = getattr(settings, "LEDGER_REFERENCE_PADDING", 5)
    count = JournalEntry.objects.filter(quarry=quarry, fiscal_year=year).count()
    while True:
        count += 1
        reference = f"{prefix}-{year}-{count:0{padding}d}"
        # skip numbers taken by entries dated into another year
        if not JournalEntry.objects.filter(quarry=quarry, reference=reference).exists():
            return reference


def _resolve_account(quarry, account):
    if isinstance(account, LedgerAccount):
        return account
    found = LedgerAccount.objects.for_quarry(quarry).filter(code=account).first()
    if found is None:
        raise ValidationError(f"Account {account} does not exist for {quarry}.")
    return found


def _line_amount(value, number):
    # NaN and Infinity parse as Decimals but can't be compared or summed
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Line {number}: {value!r} is not an amount.")
    if not amount.is_finite():
        raise ValidationError(f"Line {number}: {value!r} is not an amount.")
    return amount


def _validate_lines(quarry, lines):
    """Check the proposal before anything is written; returns resolved rows."""
    if not lines:
        raise ValidationError("A journal entry needs at least one line.")

    resolved = []
    total_debit = total_credit = ZERO
    for number, spec in enumerate(lines, start=1):
        debit = _line_amount(spec.debit, number)
        credit = _line_amount(spec.credit, number)
        if debit < 0 or credit < 0:
            raise ValidationError(f"Line {number}: amounts must be >= 0.")
        if (debit > 0) == (credit > 0):
            raise ValidationError(
                f"Line {number}: exactly one of debit or credit must be non-zero.")

        account = _resolve_account(quarry, spec.account)
        if account.quarry_id != quarry.pk:
            raise ValidationError(
                f"Line {number}: account {account.code} belongs to another quarry.")
        if not account.is_active:
            raise ValidationError(
                f"Line {number}: account {account.code} is inactive.")

        total_debit += debit
        total_credit += credit
        resolved.append((number, account, debit, credit, spec.memo or ""))

    if total_debit != total_credit:
        raise UnbalancedJournalError(
            f"Journal not balanced: debits={total_debit}, credits={total_credit}")
    return resolved


def _ensure_period_open(quarry, day):
    period = lock_period_for_date(quarry, day)
    if period is not None and period.is_closed:
        raise ClosedPeriodError(
            f"Cannot record an entry dated {day} in closed period {period.name}.")


def _write_lines(je, resolved):
    for number, account, debit, credit, memo in resolved:
        JournalEntryLine(
            journal=je,
            account=account,
            debit=debit,
            credit=credit,
            memo=memo,
            line_number=number,
        ).save()

    je.refresh_totals()
    je.save(update_fields=["total_debit", "total_credit"])


def _create_entry(quarry, entry_date, description, lines, *, entry_type,
                  source_type, source_id, reference_prefix, user, post,
                  reverses=None):
    """Raising core of create_journal_entry; caller owns the transaction."""
    resolved = _validate_lines(quarry, lines)

    # One writer per quarry at a time: keeps reference numbers sequential
    Quarry.objects.select_for_update().get(pk=quarry.pk)

    _ensure_period_open(quarry, entry_date)

    je = JournalEntry(
        quarry=quarry,
        entry_date=entry_date,
        reference=next_reference(quarry, reference_prefix, entry_date.year),
        description=description or "",
        entry_type=entry_type,
        source_type=source_type,
        source_id=str(source_id) if source_id is not None else None,
        reverses=reverses,
    )
    je.stamp_audit(user)
    je.save()
    _write_lines(je, resolved)

    if post:
        je.post(user=user)
    return je


# ----------------------------
# Journal-related workflows
# ----------------------------
def create_journal_entry(
    quarry,
    entry_date,
    description,
    lines: Iterable[JournalLineSpec],
    *,
    entry_type="manual",
    source_type=None,
    source_id=None,
    reference_prefix="ADJ",
    user=None,
    post=False,
) -> ServiceResult:
    """
    Validate and persist a journal entry with its lines, all or nothing.
    Leaves it as a draft unless post=True.
    """
    try:
        with transaction.atomic():
            je = _create_entry(
                quarry, entry_date, description, list(lines),
                entry_type=entry_type,
                source_type=source_type,
                source_id=source_id,
                reference_prefix=reference_prefix,
                user=user,
                post=post,
            )
            log_action(action="create", instance=je, user=user,
                       changes={"reference": je.reference, "posted": je.is_posted,
                                "total": str(je.total_debit)})
    except BUSINESS_ERRORS as exc:
        logger.warning("Journal entry rejected: %s", error_message(exc),
                       extra={"quarry": quarry.slug, "source_type": source_type,
                              "source_id": source_id})
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Journal entry could not be saved",
                         extra={"quarry": quarry.slug})
        return ServiceResult.failure("Database error while saving the journal entry.")

    logger.info("Journal %s created (%s)", je.reference, je.status,
                extra={"quarry": quarry.slug, "amount": str(je.total_debit)})
    return ServiceResult.success(je, f"Journal {je.reference} created.")


def post_journal_entry(journal_entry_id, user=None) -> ServiceResult:
    """
    Draft → Posted. The model does the locking and re-validation;
    this wraps it in a transaction and turns failures into results.
    """
    try:
        with transaction.atomic():
            je = JournalEntry.objects.get(pk=journal_entry_id, is_active=True)
            je.post(user=user)
            log_action(action="post", instance=je, user=user)
    except JournalEntry.DoesNotExist:
        return ServiceResult.failure("Journal entry not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Posting journal %s rejected: %s",
                       journal_entry_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Posting journal %s failed", journal_entry_id)
        return ServiceResult.failure("Database error while posting the journal entry.")

    logger.info("Journal %s posted", je.reference, extra={"quarry": je.quarry_id})
    return ServiceResult.success(je, f"Journal {je.reference} posted.")


def reverse_journal_entry(journal_entry_id, user=None,
                          entry_date=None) -> ServiceResult:
    """
    Correct a posted entry by posting its mirror image (debits and
    credits swapped). The original stays untouched; one reversal each.
    """
    try:
        with transaction.atomic():
            original = JournalEntry.objects.select_for_update().get(
                pk=journal_entry_id, is_active=True)
            if not original.is_posted:
                raise ValidationError(
                    f"Journal {original.reference} is a draft; delete it instead of reversing.")
            if original.reversals.filter(is_active=True).exists():
                raise AlreadyPostedError(
                    f"Journal {original.reference} has already been reversed.")

            mirrored = [
                JournalLineSpec(
                    account=line.account,
                    debit=line.credit,
                    credit=line.debit,
                    memo=f"Reversal: {line.memo}" if line.memo else "Reversal",
                )
                for line in original.lines.filter(is_active=True).select_related("account")
            ]
            reversal = _create_entry(
                original.quarry,
                entry_date or timezone.localdate(),
                f"Reversal of {original.reference}",
                mirrored,
                entry_type="reversal",
                source_type=original.source_type,
                source_id=original.source_id,
                reference_prefix="REV",
                user=user,
                post=True,
                reverses=original,
            )
            log_action(action="reverse", instance=original, user=user,
                       changes={"reversal": reversal.reference})
    except JournalEntry.DoesNotExist:
        return ServiceResult.failure("Journal entry not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Reversing journal %s rejected: %s",
                       journal_entry_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Reversing journal %s failed", journal_entry_id)
        return ServiceResult.failure("Database error while reversing the journal entry.")

    logger.info("Journal %s reversed by %s", original.reference, reversal.reference,
                extra={"quarry": original.quarry_id})
    return ServiceResult.success(reversal, f"Journal {original.reference} reversed.")


def update_journal_entry(journal_entry_id, user=None, *, entry_date=None,
                         description=None, lines=None) -> ServiceResult:
    """
    Edit a draft's date, description and/or lines. Given lines replace
    the old ones wholesale and are validated like new ones. The reference
    keeps the number it was issued with.
    """
    try:
        with transaction.atomic():
            je = JournalEntry.objects.select_for_update().get(
                pk=journal_entry_id, is_active=True)
            if je.is_posted:
                raise AlreadyPostedError(
                    f"Journal {je.reference} is posted; reverse it instead.")
            if je.entry_type in ("auto", "reversal"):
                raise ValidationError(
                    f"Journal {je.reference} was generated and cannot be edited by hand.")

            resolved = _validate_lines(je.quarry, list(lines)) if lines is not None else None

            Quarry.objects.select_for_update().get(pk=je.quarry_id)
            _ensure_period_open(je.quarry, entry_date or je.entry_date)

            before = {"entry_date": je.entry_date.isoformat(),
                      "description": je.description,
                      "total": str(je.total_debit)}
            if entry_date is not None:
                je.entry_date = entry_date
            if description is not None:
                je.description = description
            fields = je.stamp_audit(user)
            # save() re-derives fiscal_year/fiscal_period from entry_date
            je.save(update_fields=["entry_date", "description",
                                   "fiscal_year", "fiscal_period", *fields])

            if resolved is not None:
                je.lines.all().delete()
                _write_lines(je, resolved)

            log_action(action="update", instance=je, user=user,
                       changes={"before": before,
                                "after": {"entry_date": je.entry_date.isoformat(),
                                          "description": je.description,
                                          "total": str(je.total_debit)}})
    except JournalEntry.DoesNotExist:
        return ServiceResult.failure("Journal entry not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Update of journal %s rejected: %s",
                       journal_entry_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Update of journal %s failed", journal_entry_id)
        return ServiceResult.failure("Database error while updating the journal entry.")

    logger.info("Journal %s updated", je.reference, extra={"quarry": je.quarry_id})
    return ServiceResult.success(je, f"Journal {je.reference} updated.")


def delete_journal_entry(journal_entry_id, user=None) -> ServiceResult:
    """Soft-delete a draft manual entry. Posted and generated entries stay."""
    try:
        with transaction.atomic():
            je = JournalEntry.objects.select_for_update().get(
                pk=journal_entry_id, is_active=True)
            if je.is_posted:
                raise AlreadyPostedError(
                    f"Journal {je.reference} is posted; reverse it instead.")
            if je.entry_type == "auto":
                raise ValidationError(
                    f"Journal {je.reference} was generated from a transaction "
                    "and cannot be deleted by hand.")

            je.lines.update(is_active=False)
            je.is_active = False
            fields = je.stamp_audit(user)
            je.save(update_fields=["is_active", *fields])
            log_action(action="delete", instance=je, user=user)
    except JournalEntry.DoesNotExist:
        return ServiceResult.failure("Journal entry not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Deleting journal %s rejected: %s",
                       journal_entry_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Deleting journal %s failed", journal_entry_id)
        return ServiceResult.failure("Database error while deleting the journal entry.")

    logger.info("Journal %s deleted", je.reference, extra={"quarry": je.quarry_id})
    return ServiceResult.success(je, f"Journal {je.reference} deleted.")


def find_source_entry(quarry, source_type, source_id) -> Optional[JournalEntry]:
    """The live entry already generated for a business event, if any."""
    return (
        JournalEntry.objects.active(quarry)
        .filter(source_type=source_type, source_id=str(source_id))
        .exclude(entry_type="reversal")
        .first()
    )


def list_journal_entries(quarry, date_from=None, date_to=None, status=None):
    """Live entries of a quarry, newest first, lines prefetched."""
    qs = JournalEntry.objects.active(quarry)
    if date_from is not None:
        qs = qs.filter(entry_date__gte=date_from)
    if date_to is not None:
        qs = qs.filter(entry_date__lte=date_to)
    if status is not None:
        qs = qs.filter(status=status)
    return qs.prefetch_related("lines__account").order_by("-entry_date", "-created_at")
