"""
Journal postings generated from day-to-day quarry transactions.

Each business event (sale, expense, bank deposit, customer prepayment,
late payment of a sale) produces one auto-posted journal entry. Postings
are idempotent on (source_type, source_id): recording the same event
twice returns the entry created the first time.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import transaction

from .. import chart_of_accounts as coa
from ..models import Quarry
from ..results import ServiceResult
from .fees import ZERO, calculate_all, calculate_gross_amount, to_money
from .posting import JournalLineSpec, create_journal_entry, find_source_entry

logger = logging.getLogger(__name__)

# source_type values stored on generated entries
SALE = "sale"
SALE_COLLECTION = "sale_collection"
EXPENSE = "expense"
BANKING = "banking"
PREPAYMENT = "prepayment"


@dataclass(frozen=True)
class SaleEvent:
    source_id: str
    sale_date: date
    product_name: str
    quantity: Decimal
    price_per_unit: Decimal
    commission_per_unit: Decimal = ZERO
    is_paid: bool = True
    payment_date: Optional[date] = None
    customer_name: str = ""
    vehicle_registration: str = ""

    @property
    def paid_on_sale_date(self):
        return self.is_paid and (self.payment_date is None or self.payment_date == self.sale_date)


@dataclass(frozen=True)
class ExpenseEvent:
    source_id: str
    expense_date: date
    category: str
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class BankingEvent:
    source_id: str
    banking_date: date
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class PrepaymentEvent:
    source_id: str
    prepayment_date: date
    amount: Decimal
    customer_name: str = ""


def _event_amount(value):
    """Cents, or None for anything that isn't a finite number."""
    try:
        amount = to_money(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return amount if amount.is_finite() else None


def _post_once(quarry, source_type, source_id, entry_date, description, lines,
               reference_prefix, user):
    with transaction.atomic():
        # Check under the quarry lock so concurrent calls for one event
        # can't both miss the existing entry
        Quarry.objects.select_for_update().get(pk=quarry.pk)
        existing = find_source_entry(quarry, source_type, source_id)
        if existing is not None:
            logger.info("Journal for %s %s already exists (%s)",
                        source_type, source_id, existing.reference,
                        extra={"quarry": quarry.slug})
            return ServiceResult.success(existing, f"Already recorded as {existing.reference}.")

        return create_journal_entry(
            quarry,
            entry_date,
            description,
            lines,
            entry_type="auto",
            source_type=source_type,
            source_id=source_id,
            reference_prefix=reference_prefix,
            user=user,
            post=True,
        )


def post_sale(quarry, event: SaleEvent, user=None) -> ServiceResult:
    """
    DR Cash (paid on the day) or Receivables / CR product revenue,
    then each non-zero fee as DR cost of sales / CR accrued expenses.
    """
    try:
        calc = calculate_all(
            event.quantity,
            event.price_per_unit,
            event.commission_per_unit,
            event.product_name,
            loaders_fee_rate=quarry.loaders_fee,
            land_rate_fee=quarry.land_rate_fee,
            rejects_fee=quarry.rejects_fee,
        )
    except (InvalidOperation, TypeError, ValueError):
        return ServiceResult.failure("Sale quantity and prices must be numbers.")
    # a quiet NaN survives the arithmetic and only fails on comparison
    amounts = (calc.gross_amount, calc.commission, calc.loaders_fee, calc.land_rate_fee)
    if not all(amount.is_finite() for amount in amounts):
        return ServiceResult.failure("Sale quantity and prices must be numbers.")
    if calc.gross_amount <= 0:
        return ServiceResult.failure("Sale amount must be greater than zero.")

    label = f"{event.quantity} x {event.product_name}"
    if event.customer_name:
        label += f" to {event.customer_name}"

    lines = [
        JournalLineSpec(
            account=coa.CASH if event.paid_on_sale_date else coa.ACCOUNTS_RECEIVABLE,
            debit=calc.gross_amount,
            memo=label,
        ),
        JournalLineSpec(
            account=coa.get_product_sales_account_code(event.product_name),
            credit=calc.gross_amount,
            memo=label,
        ),
    ]
    for expense_code, amount, memo in (
        (coa.COMMISSION_EXPENSE, calc.commission, "Broker commission"),
        (coa.LOADERS_FEES, calc.loaders_fee, "Loaders fee"),
        (coa.LAND_RATE_FEES, calc.land_rate_fee, "Land rate fee"),
    ):
        if amount > 0:
            lines.append(JournalLineSpec(account=expense_code, debit=amount, memo=memo))
            lines.append(JournalLineSpec(account=coa.ACCRUED_EXPENSES, credit=amount, memo=memo))

    return _post_once(quarry, SALE, event.source_id, event.sale_date,
                      f"Sale: {label}", lines, "SL", user)


def post_collection(quarry, event: SaleEvent, user=None) -> ServiceResult:
    """
    Payment received after the sale date: DR Cash / CR Receivables on the
    payment date. Sales paid on the day (or still unpaid) need nothing.
    """
    if not event.is_paid or event.payment_date is None or event.paid_on_sale_date:
        return ServiceResult.success(None, "No collection to record.")

    try:
        amount = calculate_gross_amount(event.quantity, event.price_per_unit)
    except (InvalidOperation, TypeError, ValueError):
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        return ServiceResult.success(None, "No collection to record.")

    memo = f"Payment for sale {event.source_id}"
    if event.customer_name:
        memo += f" by {event.customer_name}"
    lines = [
        JournalLineSpec(account=coa.CASH, debit=amount, memo=memo),
        JournalLineSpec(account=coa.ACCOUNTS_RECEIVABLE, credit=amount, memo=memo),
    ]
    return _post_once(quarry, SALE_COLLECTION, event.source_id, event.payment_date,
                      memo, lines, "CL", user)


def post_expense(quarry, event: ExpenseEvent, user=None) -> ServiceResult:
    amount = _event_amount(event.amount)
    if amount is None or amount <= 0:
        return ServiceResult.failure("Expense amount must be greater than zero.")

    memo = event.description or event.category
    lines = [
        JournalLineSpec(account=coa.get_expense_account_code(event.category),
                        debit=amount, memo=memo),
        JournalLineSpec(account=coa.CASH, credit=amount, memo=memo),
    ]
    return _post_once(quarry, EXPENSE, event.source_id, event.expense_date,
                      f"Expense: {memo}", lines, "EX", user)


def post_banking(quarry, event: BankingEvent, user=None) -> ServiceResult:
    """Cash taken to the bank: DR Bank / CR Cash."""
    amount = _event_amount(event.amount)
    if amount is None or amount <= 0:
        return ServiceResult.failure("Banking amount must be greater than zero.")

    memo = event.description or "Cash deposit"
    lines = [
        JournalLineSpec(account=coa.BANK, debit=amount, memo=memo),
        JournalLineSpec(account=coa.CASH, credit=amount, memo=memo),
    ]
    return _post_once(quarry, BANKING, event.source_id, event.banking_date,
                      f"Banking: {memo}", lines, "BK", user)


def post_prepayment(quarry, event: PrepaymentEvent, user=None) -> ServiceResult:
    """Customer pays before delivery: DR Cash / CR Contract Liabilities."""
    amount = _event_amount(event.amount)
    if amount is None or amount <= 0:
        return ServiceResult.failure("Prepayment amount must be greater than zero.")

    memo = "Customer prepayment"
    if event.customer_name:
        memo += f" from {event.customer_name}"
    lines = [
        JournalLineSpec(account=coa.CASH, debit=amount, memo=memo),
        JournalLineSpec(account=coa.CUSTOMER_DEPOSITS, credit=amount, memo=memo),
    ]
    return _post_once(quarry, PREPAYMENT, event.source_id, event.prepayment_date,
                      memo, lines, "PP", user)
