"""Tests for the manufacturer and retailer inventory ledger."""

import pytest
from sqlalchemy import select

from supplychain.core.errors import EmptyOperation, InsufficientAvailable, InsufficientBlocked, InvalidQuantity
from supplychain.models.inventory import InventoryTransaction, ManufacturerInventory, OwnerKind, TransactionType
from supplychain.services.inventory_service import (
    ManufacturerInventoryService,
    RetailerInventoryService,
    list_transactions,
)


@pytest.fixture
def ledger(uow):
    return ManufacturerInventoryService(uow)


@pytest.fixture
def stocked(ledger, material, manufacturer):
    """20 packets + 15 loose units on hand."""
    ledger.add_production(material.id, manufacturer.user_id, 20, 15, manufacturer.user_id, None)
    return material


def _assert_invariants(db_session):
    for row in db_session.execute(select(ManufacturerInventory)).scalars():
        assert 0 <= row.blocked_packets <= row.full_packets
        assert 0 <= row.blocked_loose_units <= row.loose_units


class TestManufacturerLedger:
    def test_available_is_zero_without_record(self, ledger, material, manufacturer):
        assert ledger.get_available(material.id, manufacturer.user_id) == (0, 0)

    def test_production_then_available(self, ledger, material, manufacturer):
        ledger.add_production(material.id, manufacturer.user_id, 12, 5, manufacturer.user_id, 1)
        assert ledger.get_available(material.id, manufacturer.user_id) == (12, 5)

    def test_block_then_unblock_restores_available(self, ledger, stocked, manufacturer, db_session):
        before = ledger.get_available(stocked.id, manufacturer.user_id)
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 8, 5, manufacturer.user_id, 1)
        assert ledger.get_available(stocked.id, manufacturer.user_id) == (12, 10)
        ledger.unblock_inventory(stocked.id, manufacturer.user_id, 8, 5, manufacturer.user_id, 1)
        assert ledger.get_available(stocked.id, manufacturer.user_id) == before
        _assert_invariants(db_session)

    def test_block_then_execute_debits_once(self, ledger, stocked, manufacturer, db_session):
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 8, 5, manufacturer.user_id, 1)
        ledger.execute_dispatch(stocked.id, manufacturer.user_id, 8, 5, manufacturer.user_id, 1)

        stock = ledger.get_stock(stocked.id, manufacturer.user_id)
        assert (stock.full_packets, stock.loose_units) == (12, 10)
        assert (stock.blocked_packets, stock.blocked_loose_units) == (0, 0)
        assert (stock.available_packets, stock.available_loose_units) == (12, 10)
        _assert_invariants(db_session)

    def test_block_more_than_available(self, ledger, stocked, manufacturer):
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 15, 0, manufacturer.user_id, 1)
        with pytest.raises(InsufficientAvailable) as exc:
            ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 6, 0, manufacturer.user_id, 2)
        assert exc.value.context["available_packets"] == 5
        stock = ledger.get_stock(stocked.id, manufacturer.user_id)
        assert stock.blocked_packets == 15

    def test_block_without_record(self, ledger, material, manufacturer):
        with pytest.raises(InsufficientAvailable):
            ledger.block_for_dispatch(material.id, manufacturer.user_id, 1, 0, manufacturer.user_id, 1)

    def test_execute_more_than_blocked(self, ledger, stocked, manufacturer):
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 2, 0, manufacturer.user_id, 1)
        with pytest.raises(InsufficientBlocked):
            ledger.execute_dispatch(stocked.id, manufacturer.user_id, 3, 0, manufacturer.user_id, 1)

    def test_unblock_more_than_blocked(self, ledger, stocked, manufacturer):
        with pytest.raises(InsufficientBlocked):
            ledger.unblock_inventory(stocked.id, manufacturer.user_id, 0, 1, manufacturer.user_id, 1)

    def test_negative_quantity(self, ledger, material, manufacturer):
        with pytest.raises(InvalidQuantity):
            ledger.add_production(material.id, manufacturer.user_id, -1, 5, manufacturer.user_id, 1)

    def test_all_zero_is_empty_operation(self, ledger, stocked, manufacturer):
        with pytest.raises(EmptyOperation):
            ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 0, 0, manufacturer.user_id, 1)

    def test_restock_leaves_blocked_untouched(self, ledger, stocked, manufacturer):
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 4, 0, manufacturer.user_id, 1)
        ledger.restock_from_return(stocked.id, manufacturer.user_id, 3, 2, manufacturer.user_id, 9)
        stock = ledger.get_stock(stocked.id, manufacturer.user_id)
        assert (stock.full_packets, stock.loose_units) == (23, 17)
        assert (stock.blocked_packets, stock.blocked_loose_units) == (4, 0)

    def test_every_mutation_logs_post_totals(self, uow, ledger, stocked, manufacturer, db_session):
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 5, 5, manufacturer.user_id, 7)
        ledger.execute_dispatch(stocked.id, manufacturer.user_id, 5, 5, manufacturer.user_id, 8)

        log = list_transactions(uow, owner_kind=OwnerKind.MANUFACTURER, material_id=stocked.id)
        assert [t.transaction_type for t in log] == [
            TransactionType.DISPATCH_EXECUTE,
            TransactionType.DISPATCH_BLOCK,
            TransactionType.PRODUCTION,
        ]
        execute, block, production = log
        assert (production.packets_after, production.units_after) == (20, 15)
        assert (block.blocked_packets_after, block.blocked_units_after) == (5, 5)
        assert (block.packets_change, block.blocked_packets_change) == (0, 5)
        assert (execute.packets_after, execute.units_after) == (15, 10)
        assert (execute.blocked_packets_after, execute.blocked_units_after) == (0, 0)
        assert execute.reference_type == "dispatch"
        assert execute.reference_id == 8

    def test_failed_mutation_logs_nothing(self, ledger, stocked, manufacturer, db_session):
        count = len(db_session.execute(select(InventoryTransaction)).scalars().all())
        with pytest.raises(InsufficientAvailable):
            ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 99, 0, manufacturer.user_id, 1)
        assert len(db_session.execute(select(InventoryTransaction)).scalars().all()) == count

    def test_inventory_summary_totals(self, ledger, stocked, second_material, manufacturer):
        ledger.add_production(second_material.id, manufacturer.user_id, 4, 1, manufacturer.user_id, None)
        ledger.block_for_dispatch(stocked.id, manufacturer.user_id, 5, 0, manufacturer.user_id, 1)
        summary = ledger.inventory_for_manufacturer(manufacturer.user_id)
        assert len(summary["items"]) == 2
        assert summary["total_packets"] == 24
        assert summary["blocked_packets"] == 5
        assert summary["available_packets"] == 19
        assert summary["available_loose_units"] == 16


class TestRetailerLedger:
    @pytest.fixture
    def shelf(self, uow, material, retailer):
        """3 full packets + 3 loose units of 10-unit packets."""
        service = RetailerInventoryService(uow)
        service.receive_goods(material.id, retailer.user_id, 3, 3, retailer.user_id, 1)
        return service

    def test_zero_receipt_is_noop(self, uow, material, retailer):
        service = RetailerInventoryService(uow)
        assert service.receive_goods(material.id, retailer.user_id, 0, 0, retailer.user_id, 1) is None
        assert service.get_stock(material.id, retailer.user_id).full_packets == 0

    def test_available_units(self, shelf, material, retailer):
        assert shelf.get_available_units(material.id, retailer.user_id) == 33

    def test_sale_within_loose_opens_nothing(self, shelf, material, retailer):
        assert shelf.sell_units(material.id, retailer.user_id, 2, retailer.user_id, 1) == 0
        stock = shelf.get_stock(material.id, retailer.user_id)
        assert (stock.full_packets, stock.loose_units) == (3, 1)

    def test_sale_opens_exactly_one_packet(self, uow, shelf, material, retailer):
        opened = shelf.sell_units(material.id, retailer.user_id, 7, retailer.user_id, 5)
        assert opened == 1
        stock = shelf.get_stock(material.id, retailer.user_id)
        assert (stock.full_packets, stock.loose_units) == (2, 6)

        log = list_transactions(uow, owner_kind=OwnerKind.RETAILER, owner_id=retailer.user_id)
        assert [t.transaction_type for t in log[:2]] == [TransactionType.SALE, TransactionType.PACKET_OPEN]
        assert (log[1].packets_change, log[1].units_change) == (-1, 10)

    def test_sale_opens_several_packets(self, shelf, material, retailer):
        assert shelf.sell_units(material.id, retailer.user_id, 25, retailer.user_id, 1) == 3
        stock = shelf.get_stock(material.id, retailer.user_id)
        assert (stock.full_packets, stock.loose_units) == (0, 8)

    def test_sale_beyond_stock(self, shelf, material, retailer):
        with pytest.raises(InsufficientAvailable):
            shelf.sell_units(material.id, retailer.user_id, 34, retailer.user_id, 1)
        stock = shelf.get_stock(material.id, retailer.user_id)
        assert (stock.full_packets, stock.loose_units) == (3, 3)
