"""Tests for dispatch execution, GRN confirmation and invoicing."""

from decimal import Decimal

import pytest

from supplychain.core.errors import (
    DuplicateReference,
    ImmutableFieldViolation,
    InvalidSrnState,
    InvalidState,
    ReceivedExceedsExpected,
    Unauthorized,
    ValidationFailure,
)
from supplychain.models.dispatch import DispatchStatus
from supplychain.models.grn import GRNStatus
from supplychain.services.common import LineQuantity
from supplychain.services.dispatch_service import DispatchService
from supplychain.services.grn_service import GRNLineReceipt, GRNService
from supplychain.services.inventory_service import ManufacturerInventoryService, RetailerInventoryService
from supplychain.services.invoice_service import InvoiceService
from supplychain.services.material_service import MaterialService
from supplychain.services.srn_service import SRNDecision, SRNService, approve_all


@pytest.fixture
def approved_srn(uow, assignment, produce, admin, retailer, manufacturer, material):
    """SRN for 8 packets + 5 loose units of ``material``, approved in full from 20 + 15 on hand."""
    produce(material.id, packets=20, loose_units=15)
    srns = SRNService(uow)
    srn = srns.create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 8, 5)], submit=True)
    return srns.process_srn(admin, srn.id, SRNDecision.APPROVE, approve_all(srn))


@pytest.fixture
def dispatches(uow):
    return DispatchService(uow)


@pytest.fixture
def in_transit(dispatches, approved_srn, manufacturer):
    dispatch = dispatches.create_dispatch(manufacturer, approved_srn.id)
    return dispatches.execute_dispatch(manufacturer, dispatch.id)


@pytest.fixture
def grn_for(uow):
    def _grn_for(dispatch):
        return GRNService(uow).list_for_retailer(dispatch.retailer_id)[0]

    return _grn_for


@pytest.fixture
def confirmed_grn(uow, in_transit, grn_for, retailer, material):
    """GRN confirmed with 8 packets + 3 of the 5 loose units received."""
    grn = grn_for(in_transit)
    return GRNService(uow).confirm_grn(retailer, grn.id, [GRNLineReceipt(material.id, 8, 3)])


class TestDispatch:
    def test_create_snapshots_prices(self, dispatches, approved_srn, manufacturer):
        dispatch = dispatches.create_dispatch(manufacturer, approved_srn.id)
        assert dispatch.status == DispatchStatus.PENDING
        item = dispatch.items[0]
        assert (item.packets, item.loose_units) == (8, 5)
        assert item.packet_price == Decimal("100.00")
        assert item.unit_price == Decimal("10.00")
        assert item.line_total == Decimal("850.00")
        assert dispatch.subtotal == Decimal("850.00")

    def test_one_dispatch_per_srn(self, dispatches, approved_srn, manufacturer):
        dispatches.create_dispatch(manufacturer, approved_srn.id)
        with pytest.raises(InvalidSrnState):
            dispatches.create_dispatch(manufacturer, approved_srn.id)

    def test_srn_must_be_approved(self, uow, dispatches, assignment, retailer, manufacturer, material):
        srn = SRNService(uow).create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 1)], submit=True)
        with pytest.raises(InvalidSrnState):
            dispatches.create_dispatch(manufacturer, srn.id)

    def test_only_owning_manufacturer(self, dispatches, approved_srn, retailer):
        with pytest.raises(Unauthorized):
            dispatches.create_dispatch(retailer, approved_srn.id)

    def test_execute_ships_blocked_stock(self, uow, in_transit, manufacturer, material, grn_for):
        assert in_transit.status == DispatchStatus.IN_TRANSIT
        assert in_transit.executed_at is not None

        stock = ManufacturerInventoryService(uow).get_stock(material.id, manufacturer.user_id)
        assert (stock.full_packets, stock.loose_units) == (12, 10)
        assert (stock.blocked_packets, stock.blocked_loose_units) == (0, 0)

        grn = grn_for(in_transit)
        assert grn.status == GRNStatus.PENDING
        assert (grn.items[0].expected_packets, grn.items[0].expected_loose_units) == (8, 5)

    def test_execute_twice(self, dispatches, in_transit, manufacturer):
        with pytest.raises(InvalidState):
            dispatches.execute_dispatch(manufacturer, in_transit.id)

    def test_later_price_change_does_not_touch_dispatch(self, uow, dispatches, approved_srn, admin, manufacturer, material):
        dispatch = dispatches.create_dispatch(manufacturer, approved_srn.id)
        MaterialService(uow).update_material(admin, material.id, mrp_per_packet="150")
        assert dispatches.get_dispatch(manufacturer, dispatch.id).items[0].packet_price == Decimal("100.00")


class TestGRN:
    def test_confirm_credits_received(self, uow, confirmed_grn, in_transit, retailer, material):
        assert confirmed_grn.status == GRNStatus.CONFIRMED
        stock = RetailerInventoryService(uow).get_stock(material.id, retailer.user_id)
        assert (stock.full_packets, stock.loose_units) == (8, 3)
        assert DispatchService(uow).get_dispatch(retailer, in_transit.id).status == DispatchStatus.DELIVERED

    def test_discrepancies(self, uow, confirmed_grn, material):
        shortfalls = GRNService(uow).discrepancies(confirmed_grn)
        assert len(shortfalls) == 1
        assert shortfalls[0].material_id == material.id
        assert (shortfalls[0].short_packets, shortfalls[0].short_loose_units) == (0, 2)

    def test_received_above_expected(self, uow, in_transit, grn_for, retailer, material):
        grn = grn_for(in_transit)
        with pytest.raises(ReceivedExceedsExpected):
            GRNService(uow).confirm_grn(retailer, grn.id, [GRNLineReceipt(material.id, 9, 0)])
        assert RetailerInventoryService(uow).get_stock(material.id, retailer.user_id).full_packets == 0
        assert GRNService(uow).get_grn(retailer, grn.id).status == GRNStatus.PENDING

    def test_every_line_required(self, uow, in_transit, grn_for, retailer, second_material):
        grn = grn_for(in_transit)
        with pytest.raises(ValidationFailure):
            GRNService(uow).confirm_grn(retailer, grn.id, [GRNLineReceipt(second_material.id, 1, 0)])

    def test_damaged_above_received(self, uow, in_transit, grn_for, retailer, material):
        grn = grn_for(in_transit)
        with pytest.raises(ValidationFailure):
            GRNService(uow).confirm_grn(retailer, grn.id, [GRNLineReceipt(material.id, 2, 0, damaged_packets=3)])

    def test_confirm_twice(self, uow, confirmed_grn, retailer, material):
        with pytest.raises(InvalidState):
            GRNService(uow).confirm_grn(retailer, confirmed_grn.id, [GRNLineReceipt(material.id, 8, 3)])

    def test_manufacturer_cannot_confirm(self, uow, in_transit, grn_for, manufacturer, material):
        grn = grn_for(in_transit)
        with pytest.raises(Unauthorized):
            GRNService(uow).confirm_grn(manufacturer, grn.id, [GRNLineReceipt(material.id, 8, 5)])


class TestInvoice:
    def test_intrastate_splits_gst(self, uow, confirmed_grn, admin):
        invoice = InvoiceService(uow).generate_invoice(admin, confirmed_grn.id, is_interstate=False)

        # 8 x 100.00 + 3 x 10.00 received
        assert invoice.subtotal == Decimal("830.00")
        assert invoice.cgst_amount == Decimal("74.70")
        assert invoice.sgst_amount == Decimal("74.70")
        assert invoice.igst_amount == Decimal("0.00")
        assert invoice.total_amount == Decimal("979.40")
        assert invoice.items[0].hsn_code == "1905"

    def test_interstate_uses_igst(self, uow, confirmed_grn, admin):
        invoice = InvoiceService(uow).generate_invoice(admin, confirmed_grn.id, is_interstate=True)
        assert invoice.cgst_amount == Decimal("0.00")
        assert invoice.igst_amount == Decimal("149.40")
        assert invoice.total_tax == Decimal("149.40")
        assert invoice.total_amount == Decimal("979.40")

    def test_one_invoice_per_grn(self, uow, confirmed_grn, admin):
        service = InvoiceService(uow)
        first = service.generate_invoice(admin, confirmed_grn.id, is_interstate=False)
        with pytest.raises(DuplicateReference):
            service.generate_invoice(admin, confirmed_grn.id, is_interstate=True)

        assert len(service.list_all()) == 1
        assert service.get_for_grn(confirmed_grn.id).total_amount == first.total_amount

    def test_pending_grn_cannot_be_invoiced(self, uow, in_transit, grn_for, admin):
        with pytest.raises(InvalidState):
            InvoiceService(uow).generate_invoice(admin, grn_for(in_transit).id)

    def test_nothing_received(self, uow, in_transit, grn_for, retailer, admin, material):
        grn = grn_for(in_transit)
        GRNService(uow).confirm_grn(retailer, grn.id, [GRNLineReceipt(material.id, 0, 0)])
        with pytest.raises(ValidationFailure):
            InvoiceService(uow).generate_invoice(admin, grn.id)

    def test_invoices_are_append_only(self, uow, confirmed_grn, admin, db_session):
        invoice = InvoiceService(uow).generate_invoice(admin, confirmed_grn.id, is_interstate=False)
        invoice.total_amount = Decimal("1.00")
        with pytest.raises(ImmutableFieldViolation):
            db_session.flush()
        db_session.rollback()

    def test_retailer_sees_own_invoice(self, uow, confirmed_grn, admin, retailer):
        service = InvoiceService(uow)
        invoice = service.generate_invoice(admin, confirmed_grn.id, is_interstate=False)
        assert service.get_invoice(retailer, invoice.id).id == invoice.id
        assert [i.id for i in service.list_for_retailer(retailer.user_id)] == [invoice.id]
