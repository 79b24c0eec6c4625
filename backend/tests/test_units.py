# Overview: Pytest coverage for the product and standard unit converters.

import logging
from decimal import Decimal

import pytest
from stockmate.units import (
    STRATEGIES,
    UnitType,
    convert_from_standard_unit,
    convert_product_unit,
    convert_to_standard_unit,
    get_conversion_factor,
    get_supported_units,
    is_unit_supported,
)


class TestProductUnitConversion:
    """Ledger intake rules: meter -> yard, yard and kg unchanged."""

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("1"), Decimal("37.5"), Decimal("100.125")])
    def test_yard_is_identity(self, quantity):
        result = convert_product_unit(quantity, "yard")
        assert result.value == quantity
        assert result.unit == UnitType.YARD
        assert result.conversion_applied is False

    def test_meter_to_yard_rounds_to_three_places(self):
        result = convert_product_unit(10, "meter")
        assert result.value == Decimal("10.936")
        assert result.unit == UnitType.YARD
        assert result.original_value == Decimal("10")
        assert result.original_unit == "meter"
        assert result.conversion_applied is True

    def test_unit_is_case_and_whitespace_insensitive(self):
        result = convert_product_unit(Decimal("2"), "  METER ")
        assert result.unit == UnitType.YARD
        assert result.value == Decimal("2.187")

    def test_kg_passes_through(self):
        result = convert_product_unit(Decimal("4.5"), "kg")
        assert result.value == Decimal("4.5")
        assert result.unit == UnitType.KILOGRAM
        assert result.conversion_applied is False

    def test_float_input_is_not_binary_approximated(self):
        result = convert_product_unit(0.1, "yard")
        assert result.value == Decimal("0.1")

    def test_unknown_unit_passes_through_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stockmate.units"):
            result = convert_product_unit(Decimal("3"), "Piece")

        assert result.value == Decimal("3")
        assert result.unit == "piece"
        assert result.conversion_applied is False
        assert "does not match conversion rules" in caplog.text


class TestStandardUnitConversion:
    """Legacy weight rules: length and weight tables both target yard."""

    def test_length_units_convert_to_yard(self):
        assert convert_to_standard_unit(Decimal("3"), "foot").value == Decimal("1.000")
        assert convert_to_standard_unit(Decimal("100"), "centimeter").value == Decimal("1.094")
        assert convert_to_standard_unit(Decimal("36"), "inch").unit == UnitType.YARD

    def test_weight_uses_fabric_density_factor(self):
        result = convert_to_standard_unit(Decimal("2"), "kg")
        assert result.value == Decimal("3.280")
        assert result.unit == UnitType.YARD
        assert result.conversion_applied is True

    def test_piece_units_pass_through(self):
        result = convert_to_standard_unit(Decimal("5"), "ROLL")
        assert result.value == Decimal("5")
        assert result.unit == UnitType.ROLL

    def test_unrecognized_unit_is_stored_as_yard(self):
        result = convert_to_standard_unit(Decimal("7"), "bolt")
        assert result.value == Decimal("7")
        assert result.unit == UnitType.YARD
        assert result.conversion_applied is False

    def test_tables_are_not_shared_with_product_rules(self):
        # kg is a yard conversion here but a pass-through for the ledger
        assert convert_to_standard_unit(Decimal("1"), "kg").unit == UnitType.YARD
        assert convert_product_unit(Decimal("1"), "kg").unit == UnitType.KILOGRAM


class TestHelpers:

    def test_from_standard_inverts_meter(self):
        result = convert_from_standard_unit(Decimal("10.936"), "meter")
        assert result.value == Decimal("10.000")
        assert result.unit == UnitType.METER

    def test_from_standard_yard_is_identity(self):
        result = convert_from_standard_unit(Decimal("4"), "yard")
        assert result.value == Decimal("4")
        assert result.conversion_applied is False

    def test_supported_units(self):
        units = get_supported_units()
        assert len(units) == 10
        assert "yard" in units and "roll" in units
        assert is_unit_supported(" Meter ")
        assert not is_unit_supported("bolt")
        assert not is_unit_supported(None)

    def test_conversion_factor(self):
        assert get_conversion_factor("meter") == Decimal("1.09361")
        assert get_conversion_factor("pound") == Decimal("0.744")
        assert get_conversion_factor("piece") == Decimal("1")

    def test_strategies_are_named(self):
        assert set(STRATEGIES) == {"product", "standard"}
        assert STRATEGIES["product"].convert(1, "meter").value == Decimal("1.094")
