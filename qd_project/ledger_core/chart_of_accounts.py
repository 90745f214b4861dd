"""
Default Chart of Accounts for quarry operations.

Codes follow the IFRS for SMEs statement layout:

- 1000-1999 Assets (current 1000-1399, non-current 1400-1999)
- 2000-2999 Liabilities (current 2000-2499, non-current 2500-2999)
- 3000-3999 Equity
- 4000-4999 Revenue
- 5000-5999 Cost of Sales
- 6000-6999 Operating Expenses

The template is copied into every quarry on onboarding; see
``services.seeding.seed_chart_of_accounts``.
"""
from typing import NamedTuple, Optional

from .models.account import AccountCategory as C
from .models.account import AccountType as T

# Bump when the template changes so seeded quarries can be told apart
CHART_VERSION = 1


class AccountTemplate(NamedTuple):
    code: str
    name: str
    category: str
    account_type: str
    is_debit_normal: bool
    description: str
    parent_code: Optional[str] = None


CHART_OF_ACCOUNTS = (
    # ===== ASSETS =====
    AccountTemplate("1000", "Cash and Cash Equivalents", C.ASSETS, T.CASH, True,
                    "Cash on hand held by clerks."),
    AccountTemplate("1010", "Bank Account", C.ASSETS, T.BANK, True,
                    "Bank balances, part of cash and cash equivalents."),
    AccountTemplate("1100", "Trade and Other Receivables", C.ASSETS, T.ACCOUNTS_RECEIVABLE, True,
                    "Unpaid customer sales."),
    AccountTemplate("1200", "Prepayments", C.ASSETS, T.PREPAID_EXPENSES, True,
                    "Advance payments for services."),
    AccountTemplate("1300", "Inventories", C.ASSETS, T.INVENTORY, True,
                    "Stock of products held for sale."),
    AccountTemplate("1500", "Property, Plant and Equipment", C.ASSETS, T.FIXED_ASSETS, True,
                    "Equipment, vehicles and machinery at cost."),
    # Contra-asset: credit normal
    AccountTemplate("1510", "Accumulated Depreciation", C.ASSETS, T.ACCUMULATED_DEPRECIATION, False,
                    "Reduces the carrying amount of PPE.", "1500"),

    # ===== LIABILITIES =====
    AccountTemplate("2000", "Contract Liabilities", C.LIABILITIES, T.CUSTOMER_DEPOSITS, False,
                    "Customer prepayments received before delivery."),
    AccountTemplate("2100", "Trade and Other Payables", C.LIABILITIES, T.ACCOUNTS_PAYABLE, False,
                    "Amounts owed to suppliers."),
    AccountTemplate("2110", "Accrued Expenses", C.LIABILITIES, T.ACCRUED_EXPENSES, False,
                    "Broker commissions and fees payable.", "2100"),
    AccountTemplate("2200", "Current Tax Liabilities", C.LIABILITIES, T.CURRENT_TAX_LIABILITIES, False,
                    "Income taxes payable."),
    AccountTemplate("2300", "Provisions", C.LIABILITIES, T.PROVISIONS, False,
                    "Liabilities of uncertain timing or amount."),
    AccountTemplate("2500", "Borrowings", C.LIABILITIES, T.LOANS_PAYABLE, False,
                    "Loans and borrowed funds."),

    # ===== EQUITY =====
    AccountTemplate("3000", "Share Capital", C.EQUITY, T.OWNERS_EQUITY, False,
                    "Owner's investment in the quarry."),
    AccountTemplate("3100", "Retained Earnings", C.EQUITY, T.RETAINED_EARNINGS, False,
                    "Accumulated profits from prior periods."),
    AccountTemplate("3200", "Current Year Earnings", C.EQUITY, T.CURRENT_YEAR_EARNINGS, False,
                    "Current period profit or loss, closed to retained earnings."),

    # ===== REVENUE =====
    AccountTemplate("4000", "Revenue", C.REVENUE, T.SALES_REVENUE, False,
                    "Total income from product sales."),
    AccountTemplate("4010", "Revenue - Size 6", C.REVENUE, T.SALES_REVENUE, False,
                    "Size 6 ballast sales.", "4000"),
    AccountTemplate("4020", "Revenue - Size 9", C.REVENUE, T.SALES_REVENUE, False,
                    "Size 9 ballast sales.", "4000"),
    AccountTemplate("4030", "Revenue - Size 4", C.REVENUE, T.SALES_REVENUE, False,
                    "Size 4 ballast sales.", "4000"),
    AccountTemplate("4040", "Revenue - Reject", C.REVENUE, T.SALES_REVENUE, False,
                    "Reject product sales.", "4000"),
    AccountTemplate("4050", "Revenue - Hardcore", C.REVENUE, T.SALES_REVENUE, False,
                    "Hardcore product sales.", "4000"),
    AccountTemplate("4060", "Revenue - Beam", C.REVENUE, T.SALES_REVENUE, False,
                    "Beam product sales.", "4000"),
    AccountTemplate("4500", "Other Income", C.REVENUE, T.OTHER_INCOME, False,
                    "Miscellaneous non-operating income."),

    # ===== COST OF SALES =====
    AccountTemplate("5000", "Commission Expense", C.COST_OF_SALES, T.COMMISSION_EXPENSE, True,
                    "Broker commissions on sales."),
    AccountTemplate("5100", "Loaders Fees", C.COST_OF_SALES, T.LOADERS_FEES, True,
                    "Per-unit fees for loader operations."),
    AccountTemplate("5200", "Land Rate Fees", C.COST_OF_SALES, T.LAND_RATE_FEES, True,
                    "Per-unit land rate and royalty charges."),

    # ===== OPERATING EXPENSES =====
    AccountTemplate("6000", "Fuel Expense", C.EXPENSES, T.FUEL_EXPENSE, True,
                    "Fuel for machines and equipment."),
    AccountTemplate("6100", "Transportation Hire", C.EXPENSES, T.TRANSPORTATION_HIRE, True,
                    "Hired transport and logistics."),
    AccountTemplate("6200", "Maintenance and Repairs", C.EXPENSES, T.MAINTENANCE_REPAIRS, True,
                    "Equipment servicing."),
    AccountTemplate("6300", "Consumables and Utilities", C.EXPENSES, T.CONSUMABLES_UTILITIES, True,
                    "Supplies and electricity."),
    AccountTemplate("6400", "Administrative Expenses", C.EXPENSES, T.ADMINISTRATIVE_EXPENSES, True,
                    "Office and management."),
    AccountTemplate("6500", "Marketing Expenses", C.EXPENSES, T.MARKETING_EXPENSES, True,
                    "Advertising and promotion."),
    AccountTemplate("6600", "Employee Benefits Expense", C.EXPENSES, T.WAGES_SALARIES, True,
                    "Wages and salaries."),
    AccountTemplate("6700", "Finance Costs", C.EXPENSES, T.BANK_CHARGES, True,
                    "Bank charges and fees."),
    AccountTemplate("6800", "Taxes and Levies", C.EXPENSES, T.CESS_ROAD_FEES, True,
                    "Cess, road fees and government levies."),
    AccountTemplate("6900", "Other Expenses", C.EXPENSES, T.MISCELLANEOUS_EXPENSES, True,
                    "Miscellaneous costs not classified elsewhere."),
    AccountTemplate("6950", "Depreciation Expense", C.EXPENSES, T.DEPRECIATION_EXPENSE, True,
                    "PPE depreciation."),
)

# Well-known codes used by the posting rules
CASH = "1000"
BANK = "1010"
ACCOUNTS_RECEIVABLE = "1100"
CUSTOMER_DEPOSITS = "2000"
ACCRUED_EXPENSES = "2110"
GENERAL_REVENUE = "4000"
COMMISSION_EXPENSE = "5000"
LOADERS_FEES = "5100"
LAND_RATE_FEES = "5200"
MISCELLANEOUS_EXPENSES = "6900"

# Expense category (as typed by clerks) → ledger code. Exact match.
EXPENSE_ACCOUNT_CODES = {
    "Fuel": "6000",
    "Transportation Hire": "6100",
    "Maintenance and Repairs": "6200",
    "Consumables and Utilities": "6300",
    "Administrative": "6400",
    "Marketing": "6500",
    "Wages": "6600",
    "Bank Charges": "6700",
    "Cess and Road Fees": "6800",
    "Commission": COMMISSION_EXPENSE,
    "Loaders Fees": LOADERS_FEES,
}

# Lower-cased product name → revenue sub-account
PRODUCT_SALES_ACCOUNT_CODES = {
    "size 6": "4010",
    "size 9": "4020",
    "size 4": "4030",
    "reject": "4040",
    "hardcore": "4050",
    "beam": "4060",
}


def get_expense_account_code(expense_category):
    return EXPENSE_ACCOUNT_CODES.get(expense_category, MISCELLANEOUS_EXPENSES)


def get_product_sales_account_code(product_name):
    return PRODUCT_SALES_ACCOUNT_CODES.get(
        (product_name or "").lower(), GENERAL_REVENUE)
