from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .base import AuditedModel
from .tenant import Quarry


# Major accounting categories (code ranges in brackets)
class AccountCategory(models.TextChoices):
    ASSETS = "assets", "Assets"                       # 1000-1999
    LIABILITIES = "liabilities", "Liabilities"        # 2000-2999
    EQUITY = "equity", "Equity"                       # 3000-3999
    REVENUE = "revenue", "Revenue"                    # 4000-4999
    COST_OF_SALES = "cost_of_sales", "Cost of Sales"  # 5000-5999
    EXPENSES = "expenses", "Expenses"                 # 6000-6999


# Finer-grained account types, each owned by exactly one category
class AccountType(models.TextChoices):
    # Assets
    CASH = "cash", "Cash"
    BANK = "bank", "Bank"
    ACCOUNTS_RECEIVABLE = "accounts_receivable", "Accounts Receivable"
    PREPAID_EXPENSES = "prepaid_expenses", "Prepaid Expenses"
    INVENTORY = "inventory", "Inventory"
    FIXED_ASSETS = "fixed_assets", "Fixed Assets"
    ACCUMULATED_DEPRECIATION = "accumulated_depreciation", "Accumulated Depreciation"
    # Liabilities
    CUSTOMER_DEPOSITS = "customer_deposits", "Customer Deposits"
    ACCOUNTS_PAYABLE = "accounts_payable", "Accounts Payable"
    ACCRUED_EXPENSES = "accrued_expenses", "Accrued Expenses"
    CURRENT_TAX_LIABILITIES = "current_tax_liabilities", "Current Tax Liabilities"
    PROVISIONS = "provisions", "Provisions"
    LOANS_PAYABLE = "loans_payable", "Loans Payable"
    # Equity
    OWNERS_EQUITY = "owners_equity", "Owner's Equity"
    RETAINED_EARNINGS = "retained_earnings", "Retained Earnings"
    CURRENT_YEAR_EARNINGS = "current_year_earnings", "Current Year Earnings"
    # Revenue
    SALES_REVENUE = "sales_revenue", "Sales Revenue"
    OTHER_INCOME = "other_income", "Other Income"
    # Cost of sales
    COMMISSION_EXPENSE = "commission_expense", "Commission Expense"
    LOADERS_FEES = "loaders_fees", "Loaders Fees"
    LAND_RATE_FEES = "land_rate_fees", "Land Rate Fees"
    # Operating expenses
    FUEL_EXPENSE = "fuel_expense", "Fuel Expense"
    TRANSPORTATION_HIRE = "transportation_hire", "Transportation Hire"
    MAINTENANCE_REPAIRS = "maintenance_repairs", "Maintenance and Repairs"
    CONSUMABLES_UTILITIES = "consumables_utilities", "Consumables and Utilities"
    ADMINISTRATIVE_EXPENSES = "administrative_expenses", "Administrative Expenses"
    MARKETING_EXPENSES = "marketing_expenses", "Marketing Expenses"
    WAGES_SALARIES = "wages_salaries", "Wages and Salaries"
    BANK_CHARGES = "bank_charges", "Bank Charges"
    CESS_ROAD_FEES = "cess_road_fees", "Cess and Road Fees"
    MISCELLANEOUS_EXPENSES = "miscellaneous_expenses", "Miscellaneous Expenses"
    DEPRECIATION_EXPENSE = "depreciation_expense", "Depreciation Expense"


_C, _T = AccountCategory, AccountType

# Which category each type belongs to
ACCOUNT_TYPE_CATEGORY = {
    _T.CASH: _C.ASSETS,
    _T.BANK: _C.ASSETS,
    _T.ACCOUNTS_RECEIVABLE: _C.ASSETS,
    _T.PREPAID_EXPENSES: _C.ASSETS,
    _T.INVENTORY: _C.ASSETS,
    _T.FIXED_ASSETS: _C.ASSETS,
    _T.ACCUMULATED_DEPRECIATION: _C.ASSETS,
    _T.CUSTOMER_DEPOSITS: _C.LIABILITIES,
    _T.ACCOUNTS_PAYABLE: _C.LIABILITIES,
    _T.ACCRUED_EXPENSES: _C.LIABILITIES,
    _T.CURRENT_TAX_LIABILITIES: _C.LIABILITIES,
    _T.PROVISIONS: _C.LIABILITIES,
    _T.LOANS_PAYABLE: _C.LIABILITIES,
    _T.OWNERS_EQUITY: _C.EQUITY,
    _T.RETAINED_EARNINGS: _C.EQUITY,
    _T.CURRENT_YEAR_EARNINGS: _C.EQUITY,
    _T.SALES_REVENUE: _C.REVENUE,
    _T.OTHER_INCOME: _C.REVENUE,
    _T.COMMISSION_EXPENSE: _C.COST_OF_SALES,
    _T.LOADERS_FEES: _C.COST_OF_SALES,
    _T.LAND_RATE_FEES: _C.COST_OF_SALES,
    _T.FUEL_EXPENSE: _C.EXPENSES,
    _T.TRANSPORTATION_HIRE: _C.EXPENSES,
    _T.MAINTENANCE_REPAIRS: _C.EXPENSES,
    _T.CONSUMABLES_UTILITIES: _C.EXPENSES,
    _T.ADMINISTRATIVE_EXPENSES: _C.EXPENSES,
    _T.MARKETING_EXPENSES: _C.EXPENSES,
    _T.WAGES_SALARIES: _C.EXPENSES,
    _T.BANK_CHARGES: _C.EXPENSES,
    _T.CESS_ROAD_FEES: _C.EXPENSES,
    _T.MISCELLANEOUS_EXPENSES: _C.EXPENSES,
    _T.DEPRECIATION_EXPENSE: _C.EXPENSES,
}

# Categories whose balances increase with debits
DEBIT_NORMAL_CATEGORIES = frozenset(
    {_C.ASSETS, _C.COST_OF_SALES, _C.EXPENSES}
)


def is_debit_normal_category(category):
    return category in DEBIT_NORMAL_CATEGORIES


class LedgerAccount(AuditedModel):
    """
    Ledger account in a quarry's Chart of Accounts.
    - code is unique per quarry
    - category/account_type drive reporting (balance sheet vs P&L)
    - is_debit_normal decides the sign of the balance
    """

    quarry = models.ForeignKey(
        Quarry,  # All reports must filter by quarry to prevent data leaks
        on_delete=models.CASCADE,
        related_name="ledger_accounts",
    )
    code = models.CharField(max_length=16)  # "1000", "4010"
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=AccountCategory.choices)
    account_type = models.CharField(max_length=40, choices=AccountType.choices)

    # Optional hierarchy: 4000 Revenue → 4010 Revenue - Size 6
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # you can't delete a parent if children exist
        related_name="children",
    )

    # True for Assets/CostOfSales/Expenses, False for Liabilities/Equity/Revenue.
    # Contra accounts (Accumulated Depreciation) flip it.
    is_debit_normal = models.BooleanField(default=True)
    # Seeded accounts cannot be renamed or deleted
    is_system_account = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    description = models.TextField(blank=True, default="")

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["quarry", "category"], name="la_quarry_category_idx"),
            models.Index(fields=["quarry", "code"], name="la_quarry_code_idx"),
            models.Index(fields=["quarry", "parent"], name="la_quarry_parent_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["quarry", "code"], name="uq_quarry_ledger_account_code"
            )
        ]
        ordering = ("quarry", "display_order", "code")

    def __str__(self):
        return f"{self.code} – {self.name}"

    def ancestors(self):
        """Walk up the parent chain, nearest first."""
        seen = {self.pk} if self.pk else set()
        node = self.parent
        while node is not None:
            if node.pk in seen:
                raise ValidationError(
                    f"Account hierarchy for {self.code} contains a cycle.")
            seen.add(node.pk)
            yield node
            node = node.parent

    def clean(self):
        # The account type must live under the chosen category
        expected = ACCOUNT_TYPE_CATEGORY.get(self.account_type)
        if expected is not None and expected != self.category:
            raise ValidationError(
                f"Account type '{self.account_type}' belongs to "
                f"category '{expected}', not '{self.category}'."
            )

        if self.parent_id is None:
            return

        # Parent must belong to the same quarry (multi-tenancy)
        if self.parent.quarry_id != self.quarry_id:
            raise ValidationError(
                "Parent & child accounts must belong to the same quarry."
            )
        if self.pk and self.parent_id == self.pk:
            raise ValidationError("An account cannot be its own parent.")

        # Exhaust the generator; a cycle raises on the way up
        for _ in self.ancestors():
            pass

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
