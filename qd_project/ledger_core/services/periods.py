import calendar
import logging
from datetime import MAXYEAR, MINYEAR, date

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import PeriodStateError
from ..models import AccountingPeriod
from ..results import BUSINESS_ERRORS, ServiceResult, error_message
from .audit_helper import log_action

logger = logging.getLogger(__name__)


"""
    Posting date determines the period.
    Changing the date before posting should affect the period.
"""
def get_period_for_date(quarry, day):
    # Active periods never overlap, so at most one row matches
    return (
        AccountingPeriod.objects.active(quarry)
        .filter(start_date__lte=day, end_date__gte=day)
        .first()
    )


def lock_period_for_date(quarry, day):
    """
    Same lookup as get_period_for_date, but takes a row lock.
    Must be called inside transaction.atomic(); a concurrent close_period
    waits for us (or we wait for it) so the closed flag read here is final.
    """
    return (
        AccountingPeriod.objects.select_for_update()
        .filter(quarry=quarry, is_active=True,
                start_date__lte=day, end_date__gte=day)
        .first()
    )


def get_current_period(quarry, today=None):
    return get_period_for_date(quarry, today or timezone.localdate())


def list_periods(quarry, fiscal_year=None):
    qs = AccountingPeriod.objects.active(quarry)
    if fiscal_year is not None:
        qs = qs.filter(fiscal_year=fiscal_year)
    return qs.order_by("fiscal_year", "period_number")


def is_date_in_closed_period(quarry, day):
    # Dates not covered by any period are treated as open
    return AccountingPeriod.objects.active(quarry).filter(
        start_date__lte=day, end_date__gte=day, is_closed=True
    ).exists()


# ----------------------------
# Period lifecycle
# ----------------------------
def seed_periods(quarry, fiscal_year, today=None, user=None):
    """
    Create the twelve monthly periods of a calendar fiscal year.

    Months already behind us are created closed: a past year entirely,
    the current year up to (not including) today's month. Future years
    are created open. Re-running for a seeded year is a no-op that
    returns 0.
    """
    if not MINYEAR <= fiscal_year <= MAXYEAR:
        raise ValidationError(f"Fiscal year {fiscal_year} is out of range.")
    today = today or timezone.localdate()
    period_type = getattr(settings, "LEDGER_DEFAULT_PERIOD_TYPE", "monthly")

    with transaction.atomic():
        if AccountingPeriod.objects.filter(
            quarry=quarry, fiscal_year=fiscal_year
        ).exists():
            logger.info(
                "Periods for %s already seeded, skipping",
                fiscal_year,
                extra={"quarry": quarry.slug},
            )
            return 0

        now = timezone.now()
        for month in range(1, 13):
            start = date(fiscal_year, month, 1)
            end = date(fiscal_year, month, calendar.monthrange(fiscal_year, month)[1])
            # (year, month) tuples compare lexicographically
            is_closed = (fiscal_year, month) < (today.year, today.month)

            period = AccountingPeriod(
                quarry=quarry,
                name=start.strftime("%B %Y"),  # "January 2025"
                start_date=start,
                end_date=end,
                fiscal_year=fiscal_year,
                period_number=month,
                period_type=period_type,
                is_closed=is_closed,
                closed_at=now if is_closed else None,
                closed_by=user if is_closed else None,
                closing_notes="Closed at creation" if is_closed else "",
            )
            period.stamp_audit(user)
            period.save()

        log_action(
            action="seed_periods",
            instance=quarry,
            user=user,
            changes={"fiscal_year": fiscal_year, "count": 12},
        )

    logger.info(
        "Seeded 12 periods for %s",
        fiscal_year,
        extra={"quarry": quarry.slug},
    )
    return 12


def close_period(period_id, user, notes=None):
    """Open → Closed. Serializes with posting through the row lock."""
    try:
        with transaction.atomic():
            # Lock the row; posts into this period wait until we commit
            period = AccountingPeriod.objects.select_for_update().get(pk=period_id)
            if period.is_closed:
                raise PeriodStateError(f"Period {period.name} is already closed.")

            period.is_closed = True
            period.closed_by = user
            period.closed_at = timezone.now()
            period.closing_notes = notes or ""
            fields = period.stamp_audit(user)
            period.save(update_fields=["is_closed", "closed_by", "closed_at",
                                       "closing_notes", *fields])

            log_action(action="close", instance=period, user=user,
                       changes={"notes": period.closing_notes})
    except AccountingPeriod.DoesNotExist:
        return ServiceResult.failure("Period not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Close period %s rejected: %s", period_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Close period %s failed", period_id)
        return ServiceResult.failure("Database error while closing the period.")

    logger.info("Period %s closed", period.name, extra={"quarry": period.quarry_id})
    return ServiceResult.success(period, f"Period {period.name} closed.")


def reopen_period(period_id, user):
    """Closed → Open. Admin override; the posting history is untouched."""
    try:
        with transaction.atomic():
            period = AccountingPeriod.objects.select_for_update().get(pk=period_id)
            if not period.is_closed:
                raise PeriodStateError(f"Period {period.name} is not closed.")

            previous = {
                "closed_by": period.closed_by_id,
                "closed_at": period.closed_at.isoformat() if period.closed_at else None,
            }
            period.is_closed = False
            period.closed_by = None
            period.closed_at = None
            fields = period.stamp_audit(user)
            period.save(update_fields=["is_closed", "closed_by", "closed_at", *fields])

            log_action(action="reopen", instance=period, user=user, changes=previous)
    except AccountingPeriod.DoesNotExist:
        return ServiceResult.failure("Period not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Reopen period %s rejected: %s", period_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Reopen period %s failed", period_id)
        return ServiceResult.failure("Database error while reopening the period.")

    logger.info("Period %s reopened", period.name, extra={"quarry": period.quarry_id})
    return ServiceResult.success(period, f"Period {period.name} reopened.")
