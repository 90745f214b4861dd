"""
Account balances and the financial statements built on them.

Only lines of posted, active journals count; drafts and soft-deleted
entries never reach the books.
"""
import datetime
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from ..models import AccountCategory, JournalEntryLine, LedgerAccount
from .fees import ZERO

# Balance sheet split between current and non-current items
NON_CURRENT_ASSETS_FROM = 1500
NON_CURRENT_LIABILITIES_FROM = 2300


@dataclass(frozen=True)
class TrialBalanceRow:
    code: str
    name: str
    category: str
    debit: Decimal
    credit: Decimal


@dataclass
class TrialBalance:
    as_of: object
    rows: List[TrialBalanceRow] = field(default_factory=list)
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    @property
    def is_balanced(self):
        return self.total_debit == self.total_credit


@dataclass(frozen=True)
class StatementLine:
    code: str
    name: str
    amount: Decimal


def _total(lines):
    return sum((line.amount for line in lines), ZERO)


@dataclass
class ProfitAndLoss:
    date_from: datetime.date
    date_to: datetime.date
    revenue: List[StatementLine] = field(default_factory=list)
    cost_of_sales: List[StatementLine] = field(default_factory=list)
    expenses: List[StatementLine] = field(default_factory=list)

    @property
    def total_revenue(self):
        return _total(self.revenue)

    @property
    def total_cost_of_sales(self):
        return _total(self.cost_of_sales)

    @property
    def gross_profit(self):
        return self.total_revenue - self.total_cost_of_sales

    @property
    def total_expenses(self):
        return _total(self.expenses)

    @property
    def net_profit(self):
        return self.gross_profit - self.total_expenses


@dataclass
class BalanceSheet:
    as_of: datetime.date
    current_assets: List[StatementLine] = field(default_factory=list)
    non_current_assets: List[StatementLine] = field(default_factory=list)
    current_liabilities: List[StatementLine] = field(default_factory=list)
    non_current_liabilities: List[StatementLine] = field(default_factory=list)
    equity: List[StatementLine] = field(default_factory=list)
    # Revenue less expenses not yet closed into an equity account
    retained_profit: Decimal = ZERO
    current_year_profit: Decimal = ZERO

    @property
    def total_assets(self):
        return _total(self.current_assets) + _total(self.non_current_assets)

    @property
    def total_liabilities(self):
        return _total(self.current_liabilities) + _total(self.non_current_liabilities)

    @property
    def total_equity(self):
        return _total(self.equity) + self.retained_profit + self.current_year_profit

    @property
    def is_balanced(self):
        return self.total_assets == self.total_liabilities + self.total_equity


@dataclass(frozen=True)
class LedgerRow:
    entry_date: datetime.date
    reference: str
    description: str
    source_type: str
    source_id: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass
class GeneralLedger:
    account: LedgerAccount
    date_from: datetime.date
    date_to: datetime.date
    opening_balance: Decimal = ZERO
    rows: List[LedgerRow] = field(default_factory=list)

    @property
    def closing_balance(self):
        return self.rows[-1].running_balance if self.rows else self.opening_balance


def _signed(is_debit_normal, debits, credits):
    # Positive when the account sits on its normal side
    return debits - credits if is_debit_normal else credits - debits


def _posted_lines(quarry, as_of, date_from=None):
    qs = JournalEntryLine.objects.for_quarry(quarry).posted().filter(
        journal__entry_date__lte=as_of)
    if date_from is not None:
        qs = qs.filter(journal__entry_date__gte=date_from)
    return qs


def _sums_by_account(lines):
    """{account_id: (debits, credits)} in one grouped query."""
    return {
        row["account_id"]: (row["debits"], row["credits"])
        for row in lines.values("account_id").annotate(
            debits=Coalesce(Sum("debit"), ZERO),
            credits=Coalesce(Sum("credit"), ZERO),
        )
    }


def _code_number(code):
    try:
        return int(code)
    except (TypeError, ValueError):
        return 0


def get_account_balance(account, as_of=None) -> Decimal:
    as_of = as_of or timezone.localdate()
    agg = _posted_lines(account.quarry, as_of).filter(account=account).aggregate(
        debits=Coalesce(Sum("debit"), ZERO),
        credits=Coalesce(Sum("credit"), ZERO),
    )
    return _signed(account.is_debit_normal, agg["debits"], agg["credits"])


def get_all_account_balances(quarry, as_of=None):
    """{account: balance} for every active account, zero balances included."""
    as_of = as_of or timezone.localdate()
    sums = _sums_by_account(_posted_lines(quarry, as_of))
    balances = {}
    for account in LedgerAccount.objects.active(quarry).order_by("display_order", "code"):
        debits, credits = sums.get(account.pk, (ZERO, ZERO))
        balances[account] = _signed(account.is_debit_normal, debits, credits)
    return balances


def get_trial_balance(quarry, as_of=None) -> TrialBalance:
    """
    Non-zero balances laid out in debit/credit columns.
    A debit-normal account with a positive balance lands in the debit
    column; a negative one (overdrawn cash, say) flips to credit.
    """
    as_of = as_of or timezone.localdate()
    report = TrialBalance(as_of=as_of)
    for account, balance in get_all_account_balances(quarry, as_of).items():
        if balance == 0:
            continue
        on_debit_side = (balance > 0) == account.is_debit_normal
        amount = abs(balance)
        row = TrialBalanceRow(
            code=account.code,
            name=account.name,
            category=account.category,
            debit=amount if on_debit_side else ZERO,
            credit=ZERO if on_debit_side else amount,
        )
        report.rows.append(row)
        report.total_debit += row.debit
        report.total_credit += row.credit
    return report


def get_profit_and_loss(quarry, date_from, date_to) -> ProfitAndLoss:
    """
    Income statement for entries dated date_from..date_to (inclusive).
    Amounts are signed so that a normal revenue or expense is positive;
    a contra entry (a refund booked against revenue) reduces its section.
    """
    report = ProfitAndLoss(date_from=date_from, date_to=date_to)
    sections = {
        AccountCategory.REVENUE: report.revenue,
        AccountCategory.COST_OF_SALES: report.cost_of_sales,
        AccountCategory.EXPENSES: report.expenses,
    }
    sums = _sums_by_account(_posted_lines(quarry, date_to, date_from=date_from))
    accounts = LedgerAccount.objects.for_quarry(quarry).filter(
        pk__in=list(sums), category__in=list(sections)).order_by("code")
    for account in accounts:
        amount = _signed(account.is_debit_normal, *sums[account.pk])
        if amount != 0:
            sections[account.category].append(
                StatementLine(code=account.code, name=account.name, amount=amount))
    return report


def get_balance_sheet(quarry, as_of=None) -> BalanceSheet:
    """
    Statement of financial position at as_of.

    Contra accounts (accumulated depreciation) reduce their section.
    Profit of earlier years and of the year to date is shown in equity
    until it is closed into retained earnings, so the sheet balances.
    """
    as_of = as_of or timezone.localdate()
    report = BalanceSheet(as_of=as_of)
    sums = _sums_by_account(_posted_lines(quarry, as_of))
    accounts = LedgerAccount.objects.for_quarry(quarry).filter(
        pk__in=list(sums),
        category__in=[AccountCategory.ASSETS, AccountCategory.LIABILITIES,
                      AccountCategory.EQUITY],
    ).order_by("code")

    for account in accounts:
        debits, credits = sums[account.pk]
        if account.category == AccountCategory.ASSETS:
            amount = debits - credits
            section = (report.non_current_assets
                       if _code_number(account.code) >= NON_CURRENT_ASSETS_FROM
                       else report.current_assets)
        elif account.category == AccountCategory.LIABILITIES:
            amount = credits - debits
            section = (report.non_current_liabilities
                       if _code_number(account.code) >= NON_CURRENT_LIABILITIES_FROM
                       else report.current_liabilities)
        else:
            amount = credits - debits
            section = report.equity
        if amount != 0:
            section.append(StatementLine(code=account.code, name=account.name, amount=amount))

    year_start = datetime.date(as_of.year, 1, 1)
    report.current_year_profit = get_profit_and_loss(quarry, year_start, as_of).net_profit
    if as_of.year > datetime.MINYEAR:
        # date_from=None: everything since the books were opened
        report.retained_profit = get_profit_and_loss(
            quarry, None, year_start - datetime.timedelta(days=1)).net_profit
    return report


def get_general_ledger(account, date_from, date_to) -> GeneralLedger:
    """
    Posted movements of one account between two dates, with the balance
    brought forward and a running balance after every line.
    """
    report = GeneralLedger(account=account, date_from=date_from, date_to=date_to)
    if date_from is not None and date_from > datetime.date.min:
        report.opening_balance = get_account_balance(
            account, date_from - datetime.timedelta(days=1))

    lines = (
        _posted_lines(account.quarry, date_to, date_from=date_from)
        .filter(account=account)
        .select_related("journal")
        .order_by("journal__entry_date", "journal__created_at", "journal_id", "line_number")
    )
    running = report.opening_balance
    for line in lines:
        running += _signed(account.is_debit_normal, line.debit, line.credit)
        je = line.journal
        report.rows.append(LedgerRow(
            entry_date=je.entry_date,
            reference=je.reference,
            description=je.description,
            source_type=je.source_type or "",
            source_id=je.source_id or "",
            debit=line.debit,
            credit=line.credit,
            running_balance=running,
        ))
    return report
