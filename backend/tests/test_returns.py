"""Tests for return requests and restocking."""

import pytest

from supplychain.core.errors import InvalidState, NotFound, Unauthorized, ValidationFailure
from supplychain.models.returns import ReturnReason, ReturnStatus
from supplychain.services.common import LineQuantity
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.return_service import ReturnService


@pytest.fixture
def returns(uow):
    return ReturnService(uow)


@pytest.fixture
def stocked(uow, produce, material, manufacturer):
    """10 packets on hand with 4 of them blocked."""
    produce(material.id, packets=10)
    ManufacturerInventoryService(uow).block_for_dispatch(material.id, manufacturer.user_id, 4, 0, None, None)
    return material


@pytest.fixture
def raised(returns, retailer, manufacturer, material):
    return returns.raise_return(
        retailer,
        manufacturer.user_id,
        ReturnReason.DAMAGED_GOODS,
        [LineQuantity(material.id, 2, 3)],
        reason_details="Crushed in transit",
    )


class TestRaise:
    def test_raise(self, raised, retailer):
        assert raised.status == ReturnStatus.RAISED
        assert raised.return_number.startswith("RET-")
        assert raised.retailer_id == retailer.user_id
        assert [(i.packets, i.loose_units) for i in raised.items] == [(2, 3)]

    def test_needs_lines(self, returns, retailer, manufacturer):
        with pytest.raises(ValidationFailure):
            returns.raise_return(retailer, manufacturer.user_id, ReturnReason.OTHER, [])

    def test_only_retailers_raise(self, returns, manufacturer, material):
        with pytest.raises(Unauthorized):
            returns.raise_return(manufacturer, manufacturer.user_id, ReturnReason.OTHER, [LineQuantity(material.id, 1)])

    def test_unknown_grn_reference(self, returns, retailer, manufacturer, material):
        with pytest.raises(NotFound):
            returns.raise_return(
                retailer, manufacturer.user_id, ReturnReason.MISSING_UNITS,
                [LineQuantity(material.id, 1)], grn_id=999,
            )


class TestResolve:
    def test_restock_adds_exact_quantity(self, uow, returns, stocked, raised, admin, manufacturer):
        ledger = ManufacturerInventoryService(uow)
        returns.mark_under_review(admin, raised.id)
        resolved = returns.resolve_return(admin, raised.id, ReturnStatus.APPROVED_RESTOCK)

        assert resolved.status == ReturnStatus.APPROVED_RESTOCK
        assert resolved.resolved_by == admin.user_id
        stock = ledger.get_stock(stocked.id, manufacturer.user_id)
        assert (stock.full_packets, stock.loose_units) == (12, 3)
        assert (stock.blocked_packets, stock.blocked_loose_units) == (4, 0)

    @pytest.mark.parametrize(
        "resolution, notes",
        [
            (ReturnStatus.REJECTED, "Damage caused after delivery"),
            (ReturnStatus.APPROVED_REPLACE, None),
            (ReturnStatus.RESOLVED, "Credit note issued"),
        ],
    )
    def test_other_resolutions_leave_inventory(self, uow, returns, stocked, raised, admin, manufacturer,
                                               resolution, notes):
        before = ManufacturerInventoryService(uow).get_stock(stocked.id, manufacturer.user_id)
        resolved = returns.resolve_return(admin, raised.id, resolution, notes=notes)
        assert resolved.status == resolution
        assert ManufacturerInventoryService(uow).get_stock(stocked.id, manufacturer.user_id) == before

    def test_reject_needs_note(self, returns, raised, admin):
        with pytest.raises(ValidationFailure):
            returns.resolve_return(admin, raised.id, ReturnStatus.REJECTED)

    def test_resolution_must_be_terminal(self, returns, raised, admin):
        with pytest.raises(ValidationFailure):
            returns.resolve_return(admin, raised.id, ReturnStatus.UNDER_REVIEW)

    def test_resolved_is_final(self, uow, returns, stocked, raised, admin, manufacturer):
        returns.resolve_return(admin, raised.id, ReturnStatus.APPROVED_RESTOCK)
        with pytest.raises(InvalidState):
            returns.resolve_return(admin, raised.id, ReturnStatus.APPROVED_RESTOCK)
        assert ManufacturerInventoryService(uow).get_stock(stocked.id, manufacturer.user_id).full_packets == 12

    def test_review_only_from_raised(self, returns, raised, admin):
        returns.mark_under_review(admin, raised.id)
        with pytest.raises(InvalidState):
            returns.mark_under_review(admin, raised.id)

    def test_pending_count(self, returns, raised, admin):
        assert returns.pending_count() == 1
        returns.resolve_return(admin, raised.id, ReturnStatus.APPROVED_REPLACE)
        assert returns.pending_count() == 0
