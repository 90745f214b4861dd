"""
Sale fee and commission rules.

Pure functions over plain numbers, no database access. Inputs are coerced
to Decimal and every result is rounded to cents. Negative inputs are not
rejected here; the callers validate what a clerk typed.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Decimal rounded half-up to two places. None counts as zero."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() keeps floats like 0.1 from dragging binary noise along
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _decimal(value):
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class SaleCalculation:
    gross_amount: Decimal
    commission: Decimal
    loaders_fee: Decimal
    land_rate_fee: Decimal
    net_amount: Decimal


def calculate_gross_amount(quantity, price_per_unit) -> Decimal:
    return to_money(_decimal(quantity) * _decimal(price_per_unit))


def calculate_commission(quantity, commission_per_unit) -> Decimal:
    return to_money(_decimal(quantity) * _decimal(commission_per_unit))


def calculate_loaders_fee(quantity, loaders_fee_rate=None) -> Decimal:
    rate = _decimal(loaders_fee_rate)
    if rate is None or rate <= 0:
        return ZERO
    return to_money(_decimal(quantity) * rate)


def is_reject_product(product_name) -> bool:
    # Substring match: "Size 6 Reject", "reject", "REJECTS" all count
    return "reject" in (product_name or "").lower()


def calculate_land_rate_fee(quantity, product_name, land_rate_fee=None,
                            rejects_fee=None) -> Decimal:
    """
    No land rate configured (or <= 0) means no fee at all, even for
    rejects. Otherwise reject products use the rejects override when one
    is set, everything else pays the standard land rate.
    """
    land_rate = _decimal(land_rate_fee)
    if land_rate is None or land_rate <= 0:
        return ZERO

    rejects = _decimal(rejects_fee)
    rate = rejects if is_reject_product(product_name) and rejects is not None else land_rate
    return to_money(_decimal(quantity) * rate)


def calculate_net_amount(gross_amount, commission, loaders_fee, land_rate_fee) -> Decimal:
    net = to_money(gross_amount) - to_money(commission) - to_money(loaders_fee) - to_money(land_rate_fee)
    # never negative, whatever the fees add up to
    return max(ZERO, net)


def calculate_all(quantity, price_per_unit, commission_per_unit, product_name,
                  loaders_fee_rate=None, land_rate_fee=None,
                  rejects_fee=None) -> SaleCalculation:
    gross = calculate_gross_amount(quantity, price_per_unit)
    commission = calculate_commission(quantity, commission_per_unit)
    loaders = calculate_loaders_fee(quantity, loaders_fee_rate)
    land_rate = calculate_land_rate_fee(quantity, product_name, land_rate_fee, rejects_fee)
    return SaleCalculation(
        gross_amount=gross,
        commission=commission,
        loaders_fee=loaders,
        land_rate_fee=land_rate,
        net_amount=calculate_net_amount(gross, commission, loaders, land_rate),
    )
