import datetime
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from ledger_core.models import JournalEntry
from ledger_core.services.balances import get_account_balance
from ledger_core.services.accounts import get_account_by_code
from ledger_core.services.periods import seed_periods
from ledger_core.services.posting import reverse_journal_entry
from ledger_core.services.transactions import (BankingEvent, ExpenseEvent,
                                               PrepaymentEvent, SaleEvent,
                                               post_banking, post_collection,
                                               post_expense, post_prepayment,
                                               post_sale)

from .utils import OPEN_DAY, make_quarry


def lines_by_code(je):
    """{code: (debit, credit)} summed per account"""
    out = {}
    for line in je.lines.select_related("account"):
        debit, credit = out.get(line.account.code, (Decimal("0"), Decimal("0")))
        out[line.account.code] = (debit + line.debit, credit + line.credit)
    return out


class SalePostingTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry(loaders_fee=Decimal("20"), land_rate_fee=Decimal("10"),
                                  rejects_fee=Decimal("5"))

    def sale(self, **overrides):
        data = dict(source_id="S-1", sale_date=OPEN_DAY, product_name="Size 6",
                    quantity=Decimal("10"), price_per_unit=Decimal("1000"),
                    commission_per_unit=Decimal("50"))
        data.update(overrides)
        return SaleEvent(**data)

    def test_paid_sale_posts_revenue_and_fees(self):
        result = post_sale(self.quarry, self.sale())

        self.assertTrue(result.ok, result.message)
        je = result.value
        self.assertTrue(je.is_posted)
        self.assertEqual(je.entry_type, "auto")
        self.assertEqual((je.source_type, je.source_id), ("sale", "S-1"))
        self.assertTrue(je.reference.startswith("SL-2030-"))

        lines = lines_by_code(je)
        self.assertEqual(lines["1000"], (Decimal("10000.00"), Decimal("0")))
        self.assertEqual(lines["4010"], (Decimal("0"), Decimal("10000.00")))
        self.assertEqual(lines["5000"][0], Decimal("500.00"))
        self.assertEqual(lines["5100"][0], Decimal("200.00"))
        self.assertEqual(lines["5200"][0], Decimal("100.00"))
        self.assertEqual(lines["2110"][1], Decimal("800.00"))
        self.assertEqual(je.total_debit, je.total_credit)

    def test_reject_sale_uses_rejects_land_rate(self):
        je = post_sale(self.quarry, self.sale(product_name="Size 6 Reject",
                                              quantity=Decimal("4"))).value
        lines = lines_by_code(je)
        self.assertEqual(lines["5200"][0], Decimal("20.00"))
        # "size 6 reject" is not a mapped product name
        self.assertIn("4000", lines)

    def test_zero_fees_add_no_lines(self):
        quarry = make_quarry("Bare Quarry")
        je = post_sale(quarry, self.sale(commission_per_unit=Decimal("0"))).value
        self.assertEqual(set(lines_by_code(je)), {"1000", "4010"})

    def test_unpaid_sale_goes_to_receivables(self):
        je = post_sale(self.quarry, self.sale(is_paid=False)).value
        self.assertIn("1100", lines_by_code(je))
        self.assertNotIn("1000", lines_by_code(je))

    def test_sale_posting_is_idempotent(self):
        first = post_sale(self.quarry, self.sale())
        second = post_sale(self.quarry, self.sale())

        self.assertTrue(second.ok)
        self.assertEqual(first.value.pk, second.value.pk)
        self.assertEqual(JournalEntry.objects.for_quarry(self.quarry).count(), 1)

    def test_zero_quantity_sale_is_rejected(self):
        self.assertFalse(post_sale(self.quarry, self.sale(quantity=Decimal("0"))).ok)

    def test_sale_in_closed_period_is_rejected(self):
        seed_periods(self.quarry, 2030, today=datetime.date(2030, 12, 1))
        result = post_sale(self.quarry, self.sale(sale_date=datetime.date(2030, 2, 1)))
        self.assertFalse(result.ok)
        self.assertFalse(JournalEntry.objects.for_quarry(self.quarry).exists())

    def test_late_payment_clears_receivable(self):
        event = self.sale(is_paid=True, payment_date=datetime.date(2030, 7, 20))

        sale = post_sale(self.quarry, event).value
        collection = post_collection(self.quarry, event).value

        # paid later: the sale itself sits in receivables
        self.assertIn("1100", lines_by_code(sale))
        self.assertEqual(collection.entry_date, datetime.date(2030, 7, 20))
        self.assertTrue(collection.reference.startswith("CL-2030-"))
        receivables = get_account_by_code(self.quarry, "1100")
        self.assertEqual(get_account_balance(receivables, datetime.date(2030, 7, 31)), Decimal("0"))
        cash = get_account_by_code(self.quarry, "1000")
        self.assertEqual(get_account_balance(cash, datetime.date(2030, 7, 31)), Decimal("10000.00"))

    def test_collection_skipped_when_paid_on_sale_date(self):
        result = post_collection(self.quarry, self.sale(payment_date=OPEN_DAY))
        self.assertTrue(result.ok)
        self.assertIsNone(result.value)

    def test_collection_skipped_when_unpaid(self):
        result = post_collection(self.quarry, self.sale(is_paid=False,
                                                        payment_date=datetime.date(2030, 8, 1)))
        self.assertIsNone(result.value)


class OtherPostingRuleTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()

    def test_expense_debits_category_account(self):
        je = post_expense(self.quarry, ExpenseEvent("E-1", OPEN_DAY, "Fuel", Decimal("3000"))).value
        self.assertEqual(lines_by_code(je), {
            "6000": (Decimal("3000.00"), Decimal("0")),
            "1000": (Decimal("0"), Decimal("3000.00")),
        })
        self.assertTrue(je.reference.startswith("EX-"))

    def test_unknown_expense_category_goes_to_other_expenses(self):
        je = post_expense(self.quarry, ExpenseEvent("E-2", OPEN_DAY, "Tea", Decimal("150"))).value
        self.assertIn("6900", lines_by_code(je))

    def test_zero_expense_is_rejected(self):
        self.assertFalse(post_expense(self.quarry, ExpenseEvent("E-3", OPEN_DAY, "Fuel", 0)).ok)

    def test_banking_moves_cash_to_bank(self):
        je = post_banking(self.quarry, BankingEvent("B-1", OPEN_DAY, Decimal("5000"))).value
        self.assertEqual(lines_by_code(je)["1010"][0], Decimal("5000.00"))
        self.assertEqual(lines_by_code(je)["1000"][1], Decimal("5000.00"))
        self.assertTrue(je.reference.startswith("BK-"))

    def test_prepayment_is_a_contract_liability(self):
        je = post_prepayment(self.quarry, PrepaymentEvent("P-1", OPEN_DAY, Decimal("2500"),
                                                          customer_name="Acme Builders")).value
        self.assertEqual(lines_by_code(je)["2000"][1], Decimal("2500.00"))
        self.assertTrue(je.reference.startswith("PP-"))
        self.assertIn("Acme Builders", je.description)

    def test_same_source_id_different_types_are_independent(self):
        post_expense(self.quarry, ExpenseEvent("42", OPEN_DAY, "Fuel", Decimal("10")))
        post_banking(self.quarry, BankingEvent("42", OPEN_DAY, Decimal("10")))
        self.assertEqual(JournalEntry.objects.for_quarry(self.quarry).count(), 2)


class PostingInputTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()

    def test_non_finite_event_amounts_are_rejected(self):
        for raw in ("NaN", "Infinity", "-Infinity"):
            with self.subTest(amount=raw):
                amount = Decimal(raw)
                self.assertFalse(post_expense(
                    self.quarry, ExpenseEvent("E-1", OPEN_DAY, "Fuel", amount)).ok)
                self.assertFalse(post_banking(
                    self.quarry, BankingEvent("B-1", OPEN_DAY, amount)).ok)
                self.assertFalse(post_prepayment(
                    self.quarry, PrepaymentEvent("P-1", OPEN_DAY, amount)).ok)
                self.assertFalse(post_sale(
                    self.quarry, SaleEvent("S-1", OPEN_DAY, "Size 6", amount, Decimal("1000"))).ok)
                self.assertFalse(post_sale(
                    self.quarry, SaleEvent("S-2", OPEN_DAY, "Size 6", Decimal("10"),
                                           Decimal("1000"), commission_per_unit=amount)).ok)
        self.assertFalse(JournalEntry.objects.for_quarry(self.quarry).exists())

    def test_text_amount_is_rejected(self):
        result = post_expense(self.quarry, ExpenseEvent("E-1", OPEN_DAY, "Fuel", "plenty"))
        self.assertFalse(result.ok)

    def test_non_finite_collection_is_skipped(self):
        event = SaleEvent("S-1", OPEN_DAY, "Size 6", Decimal("NaN"), Decimal("1000"),
                          payment_date=datetime.date(2030, 7, 20))
        result = post_collection(self.quarry, event)
        self.assertTrue(result.ok)
        self.assertIsNone(result.value)


class DuplicatePostingTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.event = SaleEvent("S-1", OPEN_DAY, "Size 6", Decimal("10"), Decimal("1000"))

    def test_lookup_miss_still_cannot_double_post(self):
        # two writers that both missed the existing entry
        self.assertTrue(post_sale(self.quarry, self.event).ok)

        with mock.patch("ledger_core.services.transactions.find_source_entry",
                        return_value=None):
            second = post_sale(self.quarry, self.event)

        self.assertFalse(second.ok)
        self.assertEqual(
            JournalEntry.objects.for_quarry(self.quarry).filter(source_type="sale").count(), 1)

    def test_reversed_sale_is_still_recorded_once(self):
        first = post_sale(self.quarry, self.event).value
        reverse_journal_entry(first.pk)

        again = post_sale(self.quarry, self.event)

        self.assertTrue(again.ok)
        self.assertEqual(again.value.pk, first.pk)
