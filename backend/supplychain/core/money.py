"""Money helpers.

All amounts are ``Decimal`` rounded half-up to two places. Tax and commission
rates are admin-authored data; nothing here derives a rate.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[Decimal, int, str]

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Number) -> Decimal:
    """Coerce to Decimal and round to 2 places."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def multiply(amount: Number, factor: Number) -> Decimal:
    return to_money(Decimal(str(amount)) * Decimal(str(factor)))


def percentage(amount: Number, percent: Number) -> Decimal:
    """percentage(100, 18) == Decimal("18.00")"""
    return to_money(Decimal(str(amount)) * Decimal(str(percent)) / Decimal("100"))


def unit_price(mrp_per_packet: Number, units_per_packet: int) -> Decimal:
    """Price of one loose unit cut from a packet."""
    if units_per_packet <= 0:
        raise ValueError("units_per_packet must be positive")
    return to_money(Decimal(str(mrp_per_packet)) / Decimal(units_per_packet))


def line_total(packet_price: Number, packets: int, loose_price: Number, loose_units: int) -> Decimal:
    """packets x packet price + loose units x unit price."""
    if packets < 0 or loose_units < 0:
        raise ValueError("Quantities cannot be negative")
    return to_money(multiply(packet_price, packets) + multiply(loose_price, loose_units))


def split_gst(taxable: Number, gst_rate: Number, is_interstate: bool) -> tuple[Decimal, Decimal, Decimal]:
    """Return (cgst, sgst, igst) for one taxable amount.

    Intrastate supplies split the rate evenly into CGST and SGST; interstate
    supplies carry the full rate as IGST.
    """
    rate = Decimal(str(gst_rate))
    if is_interstate:
        return ZERO, ZERO, percentage(taxable, rate)
    half = rate / Decimal("2")
    return percentage(taxable, half), percentage(taxable, half), ZERO


def total(values: Iterable[Number]) -> Decimal:
    result = ZERO
    for value in values:
        result += Decimal(str(value))
    return to_money(result)
