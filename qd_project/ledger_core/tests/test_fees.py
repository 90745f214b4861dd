from decimal import Decimal

from django.test import SimpleTestCase

from ledger_core.services.fees import (calculate_all, calculate_commission,
                                       calculate_gross_amount,
                                       calculate_land_rate_fee,
                                       calculate_loaders_fee,
                                       calculate_net_amount, to_money)


class FeeCalculatorTests(SimpleTestCase):

    def test_gross_and_commission_are_quantity_times_rate(self):
        self.assertEqual(calculate_gross_amount(10, Decimal("1250.50")), Decimal("12505.00"))
        self.assertEqual(calculate_commission(10, 50), Decimal("500.00"))

    def test_loaders_fee_zero_when_rate_missing_or_not_positive(self):
        self.assertEqual(calculate_loaders_fee(10, None), Decimal("0.00"))
        self.assertEqual(calculate_loaders_fee(10, 0), Decimal("0.00"))
        self.assertEqual(calculate_loaders_fee(10, -5), Decimal("0.00"))
        self.assertEqual(calculate_loaders_fee(10, 20), Decimal("200.00"))

    """ Reject products use the rejects override """
    def test_land_rate_uses_rejects_fee_for_reject_products(self):
        self.assertEqual(calculate_land_rate_fee(4, "Size 6 Reject", 10, 5), Decimal("20"))

    def test_land_rate_uses_standard_rate_for_other_products(self):
        self.assertEqual(calculate_land_rate_fee(4, "Size 6", 10, 5), Decimal("40"))

    def test_reject_match_is_case_insensitive_substring(self):
        self.assertEqual(calculate_land_rate_fee(4, "REJECTS", 10, 5), Decimal("20.00"))
        self.assertEqual(calculate_land_rate_fee(4, "reject", 10, 5), Decimal("20.00"))

    def test_reject_without_override_falls_back_to_land_rate(self):
        self.assertEqual(calculate_land_rate_fee(4, "Reject", 10, None), Decimal("40.00"))

    def test_zero_rejects_fee_is_still_an_override(self):
        # a configured 0 is not "missing"
        self.assertEqual(calculate_land_rate_fee(4, "Reject", 10, 0), Decimal("0.00"))

    def test_no_land_rate_means_no_fee_even_for_rejects(self):
        self.assertEqual(calculate_land_rate_fee(4, "Reject", None, 5), Decimal("0.00"))
        self.assertEqual(calculate_land_rate_fee(4, "Reject", 0, 5), Decimal("0.00"))

    def test_net_amount_is_clamped_at_zero(self):
        self.assertEqual(calculate_net_amount(100, 80, 30, 10), Decimal("0.00"))
        self.assertEqual(calculate_net_amount(100, 10, 20, 30), Decimal("40.00"))

    def test_net_never_negative_over_a_range_of_fees(self):
        for fees in range(0, 500, 37):
            net = calculate_net_amount(Decimal("100"), Decimal(fees), Decimal(fees), Decimal(fees))
            self.assertGreaterEqual(net, Decimal("0"))

    def test_calculate_all_returns_every_amount(self):
        calc = calculate_all(10, 1000, 50, "Size 6",
                             loaders_fee_rate=20, land_rate_fee=10, rejects_fee=5)
        self.assertEqual(calc.gross_amount, Decimal("10000.00"))
        self.assertEqual(calc.commission, Decimal("500.00"))
        self.assertEqual(calc.loaders_fee, Decimal("200.00"))
        self.assertEqual(calc.land_rate_fee, Decimal("100.00"))
        self.assertEqual(calc.net_amount, Decimal("9200.00"))

    def test_floats_are_rounded_to_cents(self):
        self.assertEqual(to_money(0.1 + 0.2), Decimal("0.30"))
        self.assertEqual(to_money(None), Decimal("0.00"))
        self.assertEqual(calculate_gross_amount(3, 0.335), Decimal("1.01"))
