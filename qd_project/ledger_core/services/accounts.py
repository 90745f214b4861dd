import logging
from collections import defaultdict

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from ..exceptions import SystemAccountError
from ..models import (JournalEntryLine, LedgerAccount,
                      is_debit_normal_category)
from ..results import BUSINESS_ERRORS, ServiceResult, error_message
from .audit_helper import log_action

logger = logging.getLogger(__name__)

# Fields a user may change on their own (non-system) accounts
EDITABLE_FIELDS = ("name", "description", "display_order", "parent", "is_debit_normal")


# ----------------------------
# Queries
# ----------------------------
def get_chart_of_accounts(quarry, include_inactive=False):
    qs = LedgerAccount.objects.for_quarry(quarry)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.select_related("parent").order_by("display_order", "code")


def get_account_by_code(quarry, code):
    return LedgerAccount.objects.active(quarry).filter(code=code).first()


def account_tree(quarry):
    """
    Children grouped by parent id; top-level accounts sit under None.
        tree[None]            → [1000, 1010, ..., 4000, ...]
        tree[<4000's pk>]     → [4010, 4020, ...]
    """
    tree = defaultdict(list)
    for account in get_chart_of_accounts(quarry):
        tree[account.parent_id].append(account)
    return dict(tree)


def _resolve_parent(quarry, parent):
    """Accept an account, its code, or None (detach from the hierarchy)."""
    if parent is None or isinstance(parent, LedgerAccount):
        return parent
    if isinstance(parent, str):
        found = get_account_by_code(quarry, parent)
        if found is None:
            raise ValidationError(f"Parent account {parent} not found.")
        return found
    raise ValidationError(f"Parent must be an account or an account code, not {parent!r}.")


# ----------------------------
# Mutations
# ----------------------------
def create_account(quarry, code, name, category, account_type, *,
                   parent=None, is_debit_normal=None, description="",
                   display_order=None, user=None) -> ServiceResult:
    """Add a user-defined account next to the seeded ones."""
    try:
        with transaction.atomic():
            parent = _resolve_parent(quarry, parent)
            if display_order is None:
                last = LedgerAccount.objects.for_quarry(quarry).order_by("-display_order").first()
                display_order = (last.display_order + 1) if last else 1

            account = LedgerAccount(
                quarry=quarry,
                code=code,
                name=name,
                category=category,
                account_type=account_type,
                parent=parent,
                # polarity follows the category unless told otherwise (contra accounts)
                is_debit_normal=(is_debit_normal_category(category)
                                 if is_debit_normal is None else is_debit_normal),
                is_system_account=False,
                display_order=display_order,
                description=description,
            )
            account.stamp_audit(user)
            account.save()
            log_action(action="create", instance=account, user=user,
                       changes={"code": code, "name": name})
    except BUSINESS_ERRORS as exc:
        logger.warning("Account %s rejected: %s", code, error_message(exc),
                       extra={"quarry": quarry.slug})
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Account %s could not be saved", code)
        return ServiceResult.failure("Database error while saving the account.")

    logger.info("Account %s created", account.code, extra={"quarry": quarry.slug})
    return ServiceResult.success(account, f"Account {account.code} created.")


def update_account(account_id, user=None, **changes) -> ServiceResult:
    """Edit a user-defined account. Seeded system accounts are read-only."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        return ServiceResult.failure(
            f"Cannot change: {', '.join(sorted(unknown))}.")
    try:
        with transaction.atomic():
            account = LedgerAccount.objects.select_for_update().get(pk=account_id)
            if account.is_system_account:
                raise SystemAccountError(
                    f"Account {account.code} is a system account and cannot be edited.")

            if "parent" in changes:
                changes["parent"] = _resolve_parent(account.quarry, changes["parent"])

            before = {field: str(getattr(account, field)) for field in changes}
            for field, value in changes.items():
                setattr(account, field, value)
            fields = account.stamp_audit(user)
            account.save(update_fields=[*changes, *fields])
            log_action(action="update", instance=account, user=user,
                       changes={"before": before,
                                "after": {f: str(v) for f, v in changes.items()}})
    except LedgerAccount.DoesNotExist:
        return ServiceResult.failure("Account not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Update of account %s rejected: %s", account_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Update of account %s failed", account_id)
        return ServiceResult.failure("Database error while updating the account.")

    return ServiceResult.success(account, f"Account {account.code} updated.")


def deactivate_account(account_id, user=None) -> ServiceResult:
    """
    Hide an account from new postings. Refused for system accounts and
    for accounts that already carry journal lines (history must resolve).
    """
    try:
        with transaction.atomic():
            account = LedgerAccount.objects.select_for_update().get(pk=account_id)
            if account.is_system_account:
                raise SystemAccountError(
                    f"Account {account.code} is a system account and cannot be deactivated.")
            if JournalEntryLine.objects.filter(account=account).exists():
                raise SystemAccountError(
                    f"Account {account.code} has journal lines and cannot be deactivated.")
            if account.children.filter(is_active=True).exists():
                raise SystemAccountError(
                    f"Account {account.code} still has active sub-accounts.")

            account.is_active = False
            fields = account.stamp_audit(user)
            account.save(update_fields=["is_active", *fields])
            log_action(action="deactivate", instance=account, user=user)
    except LedgerAccount.DoesNotExist:
        return ServiceResult.failure("Account not found.")
    except BUSINESS_ERRORS as exc:
        logger.warning("Deactivation of account %s rejected: %s",
                       account_id, error_message(exc))
        return ServiceResult.failure(error_message(exc))
    except DatabaseError:
        logger.exception("Deactivation of account %s failed", account_id)
        return ServiceResult.failure("Database error while deactivating the account.")

    logger.info("Account %s deactivated", account.code,
                extra={"quarry": account.quarry_id})
    return ServiceResult.success(account, f"Account {account.code} deactivated.")
