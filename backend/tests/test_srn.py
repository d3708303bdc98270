"""Tests for the SRN lifecycle and approval blocking."""

import pytest

from supplychain.core.errors import (
    InsufficientAvailable,
    InvalidQuantity,
    InvalidSrnState,
    Unauthorized,
    ValidationFailure,
)
from supplychain.models.srn import SRNStatus
from supplychain.services.assignment_service import AssignmentService
from supplychain.services.common import LineQuantity
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.srn_service import SRNDecision, SRNService, approve_all


@pytest.fixture
def srns(uow):
    return SRNService(uow)


@pytest.fixture
def submitted(srns, assignment, retailer, manufacturer):
    """Create and submit an SRN for the given lines."""

    def _submitted(*lines):
        return srns.create_srn(retailer, manufacturer.user_id, lines=list(lines), submit=True)

    return _submitted


class TestDraftAndSubmit:
    def test_create_draft(self, srns, assignment, retailer, manufacturer, material):
        srn = srns.create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 5, 2)])
        assert srn.status == SRNStatus.DRAFT
        assert srn.srn_number.startswith("SRN-")
        assert [(i.requested_packets, i.requested_loose_units) for i in srn.items] == [(5, 2)]

    def test_requires_assignment(self, srns, retailer, manufacturer, material):
        with pytest.raises(Unauthorized):
            srns.create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 1)])

    def test_submit_rechecks_assignment(self, uow, srns, assignment, admin, retailer, manufacturer, material):
        srn = srns.create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 1)])
        AssignmentService(uow).deactivate_assignment(admin, retailer.user_id, manufacturer.user_id)
        with pytest.raises(Unauthorized):
            srns.submit_srn(retailer, srn.id)
        assert srns.get_srn(retailer, srn.id).status == SRNStatus.DRAFT

    def test_submit_requires_lines(self, srns, assignment, retailer, manufacturer):
        srn = srns.create_srn(retailer, manufacturer.user_id)
        with pytest.raises(ValidationFailure):
            srns.submit_srn(retailer, srn.id)

    def test_duplicate_material_lines(self, srns, assignment, retailer, manufacturer, material):
        with pytest.raises(ValidationFailure):
            srns.create_srn(
                retailer, manufacturer.user_id,
                lines=[LineQuantity(material.id, 1), LineQuantity(material.id, 2)],
            )

    def test_replace_lines_only_in_draft(self, srns, assignment, retailer, manufacturer, material, second_material):
        srn = srns.create_srn(retailer, manufacturer.user_id, lines=[LineQuantity(material.id, 1)])
        srn = srns.replace_lines(retailer, srn.id, [LineQuantity(second_material.id, 0, 4)])
        assert [i.material_id for i in srn.items] == [second_material.id]

        srns.submit_srn(retailer, srn.id)
        with pytest.raises(InvalidSrnState):
            srns.replace_lines(retailer, srn.id, [LineQuantity(material.id, 1)])

    def test_submit_twice(self, srns, submitted, retailer, material):
        srn = submitted(LineQuantity(material.id, 1))
        with pytest.raises(InvalidSrnState):
            srns.submit_srn(retailer, srn.id)


class TestProcess:
    def test_full_approval_blocks_stock(self, uow, srns, submitted, produce, admin, manufacturer, material):
        produce(material.id, packets=20, loose_units=5)
        srn = submitted(LineQuantity(material.id, 8, 5))

        srn = srns.process_srn(admin, srn.id, SRNDecision.APPROVE, approve_all(srn))

        assert srn.status == SRNStatus.APPROVED
        assert srn.processed_by == admin.user_id
        ledger = ManufacturerInventoryService(uow)
        assert ledger.get_available(material.id, manufacturer.user_id) == (12, 0)
        assert ledger.get_stock(material.id, manufacturer.user_id).blocked_packets == 8

    def test_short_approval_is_partial(self, srns, submitted, produce, admin, material):
        produce(material.id, packets=20)
        srn = submitted(LineQuantity(material.id, 10))
        srn = srns.process_srn(admin, srn.id, SRNDecision.APPROVE, [LineQuantity(material.id, 6)])
        assert srn.status == SRNStatus.PARTIAL
        assert srn.items[0].approved_packets == 6

    def test_insufficient_stock_changes_nothing(self, uow, srns, submitted, produce, admin, retailer,
                                                manufacturer, material):
        produce(material.id, packets=30)
        srn = submitted(LineQuantity(material.id, 50))

        with pytest.raises(InsufficientAvailable):
            srns.process_srn(admin, srn.id, SRNDecision.APPROVE, [LineQuantity(material.id, 50)])

        srn = srns.get_srn(retailer, srn.id)
        assert srn.status == SRNStatus.SUBMITTED
        assert srn.items[0].approved_packets is None
        assert ManufacturerInventoryService(uow).get_available(material.id, manufacturer.user_id) == (30, 0)

    def test_multi_line_approval_is_all_or_nothing(self, uow, srns, submitted, produce, admin, manufacturer,
                                                   material, second_material):
        produce(material.id, packets=10)
        produce(second_material.id, packets=1)
        srn = submitted(LineQuantity(material.id, 5), LineQuantity(second_material.id, 3))

        with pytest.raises(InsufficientAvailable):
            srns.process_srn(admin, srn.id, SRNDecision.APPROVE, approve_all(srn))

        ledger = ManufacturerInventoryService(uow)
        assert ledger.get_stock(material.id, manufacturer.user_id).blocked_packets == 0
        assert ledger.get_stock(second_material.id, manufacturer.user_id).blocked_packets == 0

    def test_approval_above_request(self, srns, submitted, produce, admin, material):
        produce(material.id, packets=20)
        srn = submitted(LineQuantity(material.id, 2))
        with pytest.raises(ValidationFailure):
            srns.process_srn(admin, srn.id, SRNDecision.APPROVE, [LineQuantity(material.id, 3)])

    def test_approval_must_cover_every_line(self, srns, submitted, produce, admin, material, second_material):
        produce(material.id, packets=20)
        srn = submitted(LineQuantity(material.id, 2), LineQuantity(second_material.id, 1))
        with pytest.raises(ValidationFailure):
            srns.process_srn(admin, srn.id, SRNDecision.APPROVE, [LineQuantity(material.id, 2)])

    def test_all_zero_approval(self, srns, submitted, admin, material):
        srn = submitted(LineQuantity(material.id, 2))
        with pytest.raises(InvalidQuantity):
            srns.process_srn(admin, srn.id, SRNDecision.APPROVE, [LineQuantity(material.id, 0)])

    def test_reject_requires_note(self, srns, submitted, admin, material):
        srn = submitted(LineQuantity(material.id, 2))
        with pytest.raises(ValidationFailure):
            srns.process_srn(admin, srn.id, SRNDecision.REJECT, rejection_note="  ")

        srn = srns.process_srn(admin, srn.id, SRNDecision.REJECT, rejection_note="Out of season")
        assert srn.status == SRNStatus.REJECTED
        assert srn.rejection_note == "Out of season"

    def test_processed_srn_is_final(self, srns, submitted, produce, admin, material):
        produce(material.id, packets=5)
        srn = submitted(LineQuantity(material.id, 2))
        srns.process_srn(admin, srn.id, SRNDecision.APPROVE, approve_all(srn))
        with pytest.raises(InvalidSrnState):
            srns.process_srn(admin, srn.id, SRNDecision.REJECT, rejection_note="Changed mind")

    def test_only_admin_processes(self, srns, submitted, manufacturer, material):
        srn = submitted(LineQuantity(material.id, 2))
        with pytest.raises(Unauthorized):
            srns.process_srn(manufacturer, srn.id, SRNDecision.REJECT, rejection_note="No")


class TestQueries:
    def test_manufacturer_sees_processed_only(self, srns, submitted, produce, admin, manufacturer, material):
        produce(material.id, packets=5)
        pending = submitted(LineQuantity(material.id, 1))
        approved = submitted(LineQuantity(material.id, 2))
        srns.process_srn(admin, approved.id, SRNDecision.APPROVE, approve_all(approved))

        assert [s.id for s in srns.list_for_manufacturer(manufacturer.user_id)] == [approved.id]
        assert srns.pending_count() == 1
        assert pending.id in [s.id for s in srns.list_all(SRNStatus.SUBMITTED)]
