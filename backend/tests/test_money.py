"""Tests for money rounding, line totals and GST splitting."""

from decimal import Decimal

import pytest

from supplychain.core import money
from supplychain.models.material import CommissionType
from supplychain.services.commission_service import compute_commission


class TestRounding:
    def test_half_up(self):
        assert money.to_money("2.345") == Decimal("2.35")
        assert money.to_money("2.344") == Decimal("2.34")

    def test_unit_price(self):
        assert money.unit_price(Decimal("100.00"), 10) == Decimal("10.00")
        assert money.unit_price(Decimal("100.00"), 3) == Decimal("33.33")
        assert money.unit_price(Decimal("50.00"), 3) == Decimal("16.67")

    def test_unit_price_rejects_zero_packet_size(self):
        with pytest.raises(ValueError):
            money.unit_price(Decimal("10"), 0)


class TestLineTotal:
    def test_packets_and_loose_units(self):
        # 3 packets at 100 + 4 loose at 10
        assert money.line_total(Decimal("100"), 3, Decimal("10"), 4) == Decimal("340.00")

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            money.line_total(Decimal("100"), -1, Decimal("10"), 0)


class TestGstSplit:
    def test_intrastate_splits_evenly(self):
        cgst, sgst, igst = money.split_gst(Decimal("1000"), Decimal("18"), is_interstate=False)
        assert cgst == Decimal("90.00")
        assert sgst == Decimal("90.00")
        assert igst == Decimal("0.00")

    def test_interstate_is_igst_only(self):
        cgst, sgst, igst = money.split_gst(Decimal("1000"), Decimal("18"), is_interstate=True)
        assert (cgst, sgst) == (Decimal("0.00"), Decimal("0.00"))
        assert igst == Decimal("180.00")

    def test_odd_rate_rounds_each_half(self):
        # 5% of 33.33 split in two: 0.83325 -> 0.83
        cgst, sgst, _ = money.split_gst(Decimal("33.33"), Decimal("5"), is_interstate=False)
        assert cgst == sgst == Decimal("0.83")


class TestCommission:
    def test_flat_per_unit(self):
        amount = compute_commission(CommissionType.FLAT_PER_UNIT, Decimal("1.50"), 7, Decimal("70"))
        assert amount == Decimal("10.50")

    def test_percentage_of_sale(self):
        amount = compute_commission(CommissionType.PERCENTAGE, Decimal("5"), 7, Decimal("70.00"))
        assert amount == Decimal("3.50")
