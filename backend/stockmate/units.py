"""
Unit conversion for fabric quantities.

Two rule sets live here and are kept apart:

- ProductUnitConversion: the warehouse ledger intake rules.
  meter -> yard, yard -> yard, kg -> kg. Anything else passes through
  unchanged (normalized name) with a warning.
- StandardUnitConversion: the legacy product weight/unit path.
  Converts every length unit and (approximately, via an average fabric
  density) every weight unit to yard. piece/roll pass through.

Both round converted values to 3 decimals and never raise on an unknown unit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

logger = logging.getLogger(__name__)


class UnitType:
    # Length
    YARD = "yard"
    METER = "meter"
    FOOT = "foot"
    INCH = "inch"
    CENTIMETER = "centimeter"

    # Weight
    KILOGRAM = "kg"
    GRAM = "gram"
    POUND = "pound"

    # Piece / count
    PIECE = "piece"
    ROLL = "roll"

    ALL = (
        YARD, METER, FOOT, INCH, CENTIMETER,
        KILOGRAM, GRAM, POUND,
        PIECE, ROLL,
    )


STANDARD_UNIT = UnitType.YARD

LENGTH_TO_YARD: dict[str, Decimal] = {
    UnitType.YARD: Decimal("1"),
    UnitType.METER: Decimal("1.09361"),
    UnitType.FOOT: Decimal("0.333333"),
    UnitType.INCH: Decimal("0.0277778"),
    UnitType.CENTIMETER: Decimal("0.0109361"),
}

# Approximation for an average fabric (~200 GSM, ~1.5 yd wide).
WEIGHT_TO_YARD: dict[str, Decimal] = {
    UnitType.KILOGRAM: Decimal("1.64"),
    UnitType.GRAM: Decimal("0.00164"),
    UnitType.POUND: Decimal("0.744"),
}

PIECE_UNITS = (UnitType.PIECE, UnitType.ROLL)

_Q3 = Decimal("0.001")


def normalize_unit(unit: str | None) -> str:
    return (unit or "").strip().lower()


def _round3(value: Decimal) -> Decimal:
    return value.quantize(_Q3, rounding=ROUND_HALF_UP)


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class ConversionResult:
    value: Decimal
    unit: str
    original_value: Decimal
    original_unit: str
    conversion_applied: bool

    def to_dict(self) -> dict:
        return {
            "value": str(self.value),
            "unit": self.unit,
            "original_value": str(self.original_value),
            "original_unit": self.original_unit,
            "conversion_applied": self.conversion_applied,
        }


class UnitConversion:
    """Strategy interface: convert (quantity, unit) into a canonical unit."""

    name = "base"

    def convert(self, quantity, unit: str) -> ConversionResult:
        raise NotImplementedError

    def _unchanged(self, quantity: Decimal, unit: str, original_unit: str) -> ConversionResult:
        return ConversionResult(
            value=quantity,
            unit=unit,
            original_value=quantity,
            original_unit=original_unit,
            conversion_applied=False,
        )

    def _converted(self, quantity: Decimal, factor: Decimal, unit: str, original_unit: str) -> ConversionResult:
        result = ConversionResult(
            value=_round3(quantity * factor),
            unit=unit,
            original_value=quantity,
            original_unit=original_unit,
            conversion_applied=True,
        )
        logger.info(
            "Unit conversion (%s): %s %s -> %s %s",
            self.name, result.original_value, original_unit, result.value, result.unit,
        )
        return result


class ProductUnitConversion(UnitConversion):
    """Warehouse ledger intake rules: meter -> yard, yard and kg unchanged."""

    name = "product"

    def convert(self, quantity, unit: str) -> ConversionResult:
        quantity = _as_decimal(quantity)
        normalized = normalize_unit(unit)

        if normalized == UnitType.METER:
            return self._converted(quantity, LENGTH_TO_YARD[UnitType.METER], UnitType.YARD, unit)

        if normalized == UnitType.YARD:
            return self._unchanged(quantity, UnitType.YARD, unit)

        if normalized == UnitType.KILOGRAM:
            return self._unchanged(quantity, UnitType.KILOGRAM, unit)

        logger.warning("Unit '%s' does not match conversion rules. Storing as-is.", unit)
        return self._unchanged(quantity, normalized, unit)


class StandardUnitConversion(UnitConversion):
    """Legacy product weight rules: everything measurable becomes yard."""

    name = "standard"

    def convert(self, quantity, unit: str) -> ConversionResult:
        quantity = _as_decimal(quantity)
        normalized = normalize_unit(unit)

        if normalized == STANDARD_UNIT:
            return self._unchanged(quantity, STANDARD_UNIT, unit)

        if normalized in PIECE_UNITS:
            return self._unchanged(quantity, normalized, unit)

        if normalized in LENGTH_TO_YARD:
            return self._converted(quantity, LENGTH_TO_YARD[normalized], STANDARD_UNIT, unit)

        if normalized in WEIGHT_TO_YARD:
            return self._converted(quantity, WEIGHT_TO_YARD[normalized], STANDARD_UNIT, unit)

        logger.warning("Unit '%s' not recognized. Storing value as-is.", unit)
        return self._unchanged(quantity, STANDARD_UNIT, unit)


PRODUCT_CONVERSION = ProductUnitConversion()
STANDARD_CONVERSION = StandardUnitConversion()

STRATEGIES: dict[str, UnitConversion] = {
    PRODUCT_CONVERSION.name: PRODUCT_CONVERSION,
    STANDARD_CONVERSION.name: STANDARD_CONVERSION,
}


def convert_product_unit(quantity, unit: str) -> ConversionResult:
    return PRODUCT_CONVERSION.convert(quantity, unit)


def convert_to_standard_unit(value, unit: str) -> ConversionResult:
    return STANDARD_CONVERSION.convert(value, unit)


def convert_from_standard_unit(value, to_unit: str) -> ConversionResult:
    """Convert a yard value back into `to_unit` (inverse of the standard table)."""
    value = _as_decimal(value)
    normalized = normalize_unit(to_unit)

    if normalized == STANDARD_UNIT:
        return ConversionResult(value, STANDARD_UNIT, value, STANDARD_UNIT, False)

    factor = LENGTH_TO_YARD.get(normalized) or WEIGHT_TO_YARD.get(normalized)
    if factor is None:
        return ConversionResult(value, normalized, value, STANDARD_UNIT, False)

    return ConversionResult(_round3(value / factor), normalized, value, STANDARD_UNIT, True)


def get_supported_units() -> list[str]:
    return list(UnitType.ALL)


def is_unit_supported(unit: str | None) -> bool:
    return normalize_unit(unit) in UnitType.ALL


def get_conversion_factor(from_unit: str) -> Decimal:
    normalized = normalize_unit(from_unit)
    return LENGTH_TO_YARD.get(normalized) or WEIGHT_TO_YARD.get(normalized) or Decimal("1")
