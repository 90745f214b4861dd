import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


ACCOUNT_CATEGORIES = [
    ("assets", "Assets"),
    ("liabilities", "Liabilities"),
    ("equity", "Equity"),
    ("revenue", "Revenue"),
    ("cost_of_sales", "Cost of Sales"),
    ("expenses", "Expenses"),
]

ACCOUNT_TYPES = [
    ("cash", "Cash"),
    ("bank", "Bank"),
    ("accounts_receivable", "Accounts Receivable"),
    ("prepaid_expenses", "Prepaid Expenses"),
    ("inventory", "Inventory"),
    ("fixed_assets", "Fixed Assets"),
    ("accumulated_depreciation", "Accumulated Depreciation"),
    ("customer_deposits", "Customer Deposits"),
    ("accounts_payable", "Accounts Payable"),
    ("accrued_expenses", "Accrued Expenses"),
    ("current_tax_liabilities", "Current Tax Liabilities"),
    ("provisions", "Provisions"),
    ("loans_payable", "Loans Payable"),
    ("owners_equity", "Owner's Equity"),
    ("retained_earnings", "Retained Earnings"),
    ("current_year_earnings", "Current Year Earnings"),
    ("sales_revenue", "Sales Revenue"),
    ("other_income", "Other Income"),
    ("commission_expense", "Commission Expense"),
    ("loaders_fees", "Loaders Fees"),
    ("land_rate_fees", "Land Rate Fees"),
    ("fuel_expense", "Fuel Expense"),
    ("transportation_hire", "Transportation Hire"),
    ("maintenance_repairs", "Maintenance and Repairs"),
    ("consumables_utilities", "Consumables and Utilities"),
    ("administrative_expenses", "Administrative Expenses"),
    ("marketing_expenses", "Marketing Expenses"),
    ("wages_salaries", "Wages and Salaries"),
    ("bank_charges", "Bank Charges"),
    ("cess_road_fees", "Cess and Road Fees"),
    ("miscellaneous_expenses", "Miscellaneous Expenses"),
    ("depreciation_expense", "Depreciation Expense"),
]


def audit_fields():
    """Columns every AuditedModel subclass carries."""
    return [
        ("is_active", models.BooleanField(default=True)),
        ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
        ("modified_at", models.DateTimeField(blank=True, null=True)),
        ("created_by", models.ForeignKey(
            blank=True, null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name="+", to=settings.AUTH_USER_MODEL)),
        ("modified_by", models.ForeignKey(
            blank=True, null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name="+", to=settings.AUTH_USER_MODEL)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Quarry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("loaders_fee", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("land_rate_fee", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("rejects_fee", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "quarries",
            },
        ),
        migrations.CreateModel(
            name="QuarryMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(
                    choices=[("manager", "Manager"), ("accountant", "Accountant"),
                             ("clerk", "Clerk"), ("viewer", "Viewer")],
                    default="viewer", max_length=20)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("quarry", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="memberships", to="ledger_core.quarry")),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="quarry_memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["quarry", "user"], name="qm_quarry_user_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "quarry"), name="uq_user_quarry_membership"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *audit_fields(),
                ("code", models.CharField(max_length=16)),
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(choices=ACCOUNT_CATEGORIES, max_length=20)),
                ("account_type", models.CharField(choices=ACCOUNT_TYPES, max_length=40)),
                ("is_debit_normal", models.BooleanField(default=True)),
                ("is_system_account", models.BooleanField(default=False)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("description", models.TextField(blank=True, default="")),
                ("parent", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="children", to="ledger_core.ledgeraccount")),
                ("quarry", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="ledger_accounts", to="ledger_core.quarry")),
            ],
            options={
                "ordering": ("quarry", "display_order", "code"),
                "indexes": [
                    models.Index(fields=["quarry", "category"], name="la_quarry_category_idx"),
                    models.Index(fields=["quarry", "code"], name="la_quarry_code_idx"),
                    models.Index(fields=["quarry", "parent"], name="la_quarry_parent_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("quarry", "code"), name="uq_quarry_ledger_account_code"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountingPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *audit_fields(),
                ("name", models.CharField(max_length=50)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("fiscal_year", models.PositiveIntegerField()),
                ("period_number", models.PositiveSmallIntegerField()),
                ("period_type", models.CharField(
                    choices=[("monthly", "Monthly"), ("quarterly", "Quarterly"), ("annual", "Annual")],
                    default="monthly", max_length=10)),
                ("is_closed", models.BooleanField(default=False)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("closing_notes", models.TextField(blank=True, default="")),
                ("closed_by", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL)),
                ("quarry", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="periods", to="ledger_core.quarry")),
            ],
            options={
                "ordering": ("quarry", "fiscal_year", "period_number"),
                "indexes": [
                    models.Index(fields=["quarry", "start_date"], name="ap_quarry_start_idx"),
                    models.Index(fields=["quarry", "is_closed"], name="ap_quarry_closed_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("quarry", "fiscal_year", "period_number"),
                        name="uq_quarry_fiscal_period"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *audit_fields(),
                ("entry_date", models.DateField()),
                ("reference", models.CharField(max_length=40)),
                ("description", models.TextField(blank=True, default="")),
                ("entry_type", models.CharField(
                    choices=[("auto", "Auto"), ("manual", "Manual"),
                             ("adjustment", "Adjustment"), ("reversal", "Reversal")],
                    default="manual", max_length=12)),
                ("source_type", models.CharField(blank=True, max_length=50, null=True)),
                ("source_id", models.CharField(blank=True, max_length=64, null=True)),
                ("status", models.CharField(
                    choices=[("draft", "Draft"), ("posted", "Posted")],
                    default="draft", max_length=10)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("total_debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("fiscal_year", models.PositiveIntegerField(editable=False)),
                ("fiscal_period", models.PositiveSmallIntegerField(editable=False)),
                ("posted_by", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="+", to=settings.AUTH_USER_MODEL)),
                ("quarry", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="journal_entries", to="ledger_core.quarry")),
                ("reverses", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="reversals", to="ledger_core.journalentry")),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ("-entry_date", "-created_at"),
                "indexes": [
                    models.Index(fields=["quarry", "entry_date"], name="je_quarry_date_idx"),
                    models.Index(fields=["quarry", "status"], name="je_quarry_status_idx"),
                    models.Index(fields=["quarry", "fiscal_year", "fiscal_period"], name="je_quarry_fiscal_idx"),
                    models.Index(fields=["source_type", "source_id"], name="je_source_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("quarry", "reference"), name="uq_je_quarry_ref"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalEntryLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("debit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("memo", models.CharField(blank=True, default="", max_length=400)),
                ("line_number", models.PositiveIntegerField(default=1)),
                ("is_active", models.BooleanField(default=True)),
                ("account", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="lines", to="ledger_core.ledgeraccount")),
                ("journal", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="lines", to="ledger_core.journalentry")),
            ],
            options={
                "ordering": ("journal", "line_number"),
                "indexes": [
                    models.Index(fields=["account"], name="jel_account_idx"),
                    models.Index(fields=["journal", "line_number"], name="jel_journal_line_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="jel_non_negative_amounts"),
                    models.CheckConstraint(
                        condition=models.Q(models.Q(("debit", 0), ("credit", 0)), _negated=True),
                        name="jel_debit_or_credit_nonzero"),
                    models.CheckConstraint(
                        condition=models.Q(models.Q(("debit__gt", 0), ("credit__gt", 0)), _negated=True),
                        name="jel_not_both_debit_and_credit"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("quarry", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to="ledger_core.quarry")),
                ("user", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["quarry", "user"], name="al_quarry_user_idx"),
                    models.Index(fields=["quarry", "created_at"], name="al_quarry_created_idx"),
                ],
            },
        ),
    ]
