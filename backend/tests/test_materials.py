"""Tests for the material catalogue and its immutable fields."""

from decimal import Decimal

import pytest

from supplychain.core.errors import ImmutableFieldViolation, NotFound, Unauthorized, ValidationFailure
from supplychain.models.material import CommissionType
from supplychain.services.material_service import MaterialService


class TestCreateMaterial:
    def test_codes_are_sequential(self, material, second_material):
        assert material.sq_code == "SQ-000001"
        assert second_material.sq_code == "SQ-000002"

    def test_unit_price(self, material, second_material):
        assert material.unit_price == Decimal("10.00")
        assert second_material.unit_price == Decimal("15.00")

    def test_admin_only(self, uow, manufacturer):
        with pytest.raises(Unauthorized):
            MaterialService(uow).create_material(
                manufacturer, name="Tea", hsn_code="0902", gst_rate=5,
                units_per_packet=1, mrp_per_packet="50",
            )

    @pytest.mark.parametrize(
        "overrides",
        [
            {"units_per_packet": 0},
            {"mrp_per_packet": "0"},
            {"gst_rate": "101"},
            {"commission_value": "-1"},
            {"commission_type": CommissionType.PERCENTAGE, "commission_value": "150"},
            {"name": "  "},
        ],
    )
    def test_rejects_invalid_values(self, uow, admin, overrides):
        values = dict(
            name="Tea", hsn_code="0902", gst_rate=5, units_per_packet=4, mrp_per_packet="50",
        )
        values.update(overrides)
        with pytest.raises(ValidationFailure):
            MaterialService(uow).create_material(admin, **values)


class TestUpdateMaterial:
    def test_units_per_packet_is_write_once(self, uow, admin, material):
        with pytest.raises(ImmutableFieldViolation):
            MaterialService(uow).update_material(admin, material.id, units_per_packet=12)
        assert MaterialService(uow).get_material(material.id).units_per_packet == 10

    def test_same_packet_size_is_accepted(self, uow, admin, material):
        updated = MaterialService(uow).update_material(admin, material.id, units_per_packet=10, name="Salted Biscuits")
        assert updated.name == "Salted Biscuits"

    def test_sq_code_is_write_once(self, uow, admin, material):
        with pytest.raises(ImmutableFieldViolation):
            MaterialService(uow).update_material(admin, material.id, sq_code="SQ-999999")

    def test_tax_codes_editable_before_production(self, uow, admin, material):
        updated = MaterialService(uow).update_material(admin, material.id, hsn_code="1906", gst_rate="12")
        assert updated.hsn_code == "1906"
        assert updated.gst_rate == Decimal("12")

    def test_tax_codes_lock_after_production(self, uow, admin, material, produce):
        produce(material.id, packets=1)
        service = MaterialService(uow)
        with pytest.raises(ImmutableFieldViolation):
            service.update_material(admin, material.id, gst_rate="12")
        with pytest.raises(ImmutableFieldViolation):
            service.update_material(admin, material.id, hsn_code="1906")

        material = service.get_material(material.id)
        assert material.gst_rate == Decimal("18")
        # Price remains editable
        assert service.update_material(admin, material.id, mrp_per_packet="120").mrp_per_packet == Decimal("120.00")

    def test_has_production_cannot_be_cleared(self, material, produce):
        produce(material.id, packets=1)
        with pytest.raises(ImmutableFieldViolation):
            material.has_production = False

    def test_unknown_field(self, uow, admin, material):
        with pytest.raises(ValidationFailure):
            MaterialService(uow).update_material(admin, material.id, colour="red")

    def test_description_can_be_cleared(self, uow, admin, material):
        service = MaterialService(uow)
        service.update_material(admin, material.id, description="Crisp and buttery")
        assert service.update_material(admin, material.id, description=None).description is None

    def test_required_fields_cannot_be_cleared(self, uow, admin, material):
        with pytest.raises(ValidationFailure):
            MaterialService(uow).update_material(admin, material.id, name=None)
        assert MaterialService(uow).get_material(material.id).name == "Butter Biscuits"


class TestMaterialLookup:
    def test_by_sq_code(self, uow, material):
        assert MaterialService(uow).get_by_sq_code(" sq-000001 ").id == material.id

    def test_missing(self, uow):
        with pytest.raises(NotFound):
            MaterialService(uow).get_by_sq_code("SQ-404")

    def test_deactivated_hidden_from_default_list(self, uow, admin, material, second_material):
        service = MaterialService(uow)
        service.deactivate_material(admin, material.id)
        assert [m.id for m in service.list_materials()] == [second_material.id]
        assert len(service.list_materials(include_inactive=True)) == 2

        service.reactivate_material(admin, material.id)
        assert len(service.list_materials()) == 2

    def test_search(self, uow, material, second_material):
        assert [m.id for m in MaterialService(uow).list_materials(search="mango")] == [second_material.id]
