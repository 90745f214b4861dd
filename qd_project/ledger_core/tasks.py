import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def onboard_quarry(quarry_id, fiscal_year=None):
    """
    Give a new quarry its books: chart of accounts plus the periods
    of one fiscal year (the current year when not given).
    Safe to retry; both steps skip what already exists.
    """
    # import lazily to avoid circular imports at module import time
    from django.utils import timezone

    from .models import Quarry
    from .services.periods import seed_periods
    from .services.seeding import seed_chart_of_accounts

    quarry = Quarry.objects.get(pk=quarry_id)
    if fiscal_year is None:
        fiscal_year = timezone.localdate().year

    accounts = seed_chart_of_accounts(quarry)
    periods = seed_periods(quarry, fiscal_year)

    logger.info(
        "Onboarded quarry: %d accounts, %d periods",
        accounts, periods,
        extra={"quarry": quarry.slug, "fiscal_year": fiscal_year},
    )
    # Plain dict so the result backend can serialize it
    return {"quarry": quarry.slug, "accounts": accounts, "periods": periods}
