import datetime
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils.text import slugify

from ledger_core.models import Quarry, QuarryMembership
from ledger_core.services.posting import JournalLineSpec
from ledger_core.services.seeding import seed_chart_of_accounts

User = get_user_model()

# Far enough ahead that "today" never closes it by accident
OPEN_DAY = datetime.date(2030, 7, 15)


def make_quarry(name="Kitengela Quarry", seed=True, **fees):
    quarry = Quarry.objects.create(name=name, slug=slugify(name), **fees)
    if seed:
        seed_chart_of_accounts(quarry)
    return quarry


def make_member(quarry, username="manager", role="manager"):
    user = User.objects.create_user(username=username, password="pw-12345")
    QuarryMembership.objects.create(user=user, quarry=quarry, role=role)
    return user


def cash_sale_lines(amount="100.00", debit_code="1000", credit_code="4000"):
    amount = Decimal(amount)
    return [
        JournalLineSpec(account=debit_code, debit=amount, memo="cash in"),
        JournalLineSpec(account=credit_code, credit=amount, memo="revenue"),
    ]
