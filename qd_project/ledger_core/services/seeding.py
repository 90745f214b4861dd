import logging

from django.db import transaction

from ..chart_of_accounts import CHART_OF_ACCOUNTS, CHART_VERSION
from ..models import LedgerAccount, Quarry
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def seed_chart_of_accounts(quarry, user=None):
    """
    Copy the chart-of-accounts template into a quarry.

    Returns the number of accounts created. A quarry that already has
    any ledger account is left alone (returns 0). The whole batch runs
    in one transaction: either every account exists or none does.
    """
    if LedgerAccount.objects.for_quarry(quarry).exists():
        logger.info("Chart of accounts already present, skipping",
                    extra={"quarry": quarry.slug})
        return 0

    with transaction.atomic():
        # Lock the quarry so two onboarding runs can't both pass the check
        Quarry.objects.select_for_update().get(pk=quarry.pk)
        if LedgerAccount.objects.for_quarry(quarry).exists():
            return 0

        by_code = {}
        # Templates are ordered so that parents come before children
        for order, template in enumerate(CHART_OF_ACCOUNTS, start=1):
            account = LedgerAccount(
                quarry=quarry,
                code=template.code,
                name=template.name,
                category=template.category,
                account_type=template.account_type,
                is_debit_normal=template.is_debit_normal,
                is_system_account=True,
                display_order=order,
                description=template.description,
                parent=by_code.get(template.parent_code),
            )
            account.stamp_audit(user)
            account.save()
            by_code[account.code] = account

        log_action(
            action="seed_chart",
            instance=quarry,
            user=user,
            changes={"version": CHART_VERSION, "count": len(by_code)},
        )

    logger.info("Seeded %d ledger accounts", len(by_code),
                extra={"quarry": quarry.slug, "chart_version": CHART_VERSION})
    return len(by_code)


def seed_all_quarries(user=None):
    """Seed every active quarry; returns {slug: accounts created}."""
    return {
        quarry.slug: seed_chart_of_accounts(quarry, user=user)
        for quarry in Quarry.objects.filter(is_active=True).order_by("pk")
    }
