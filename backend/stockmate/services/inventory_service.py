# Overview: Legacy single-unit inventory rows (yard only) with low-stock thresholds.

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Inventory
from ..time_utils import utcnow
from ..units import PIECE_UNITS, STANDARD_UNIT, convert_to_standard_unit, normalize_unit
from ..validation import NotFoundError, ValidationError, parse_decimal, q3, to_decimal
from .concurrency import begin_write, lock_for_update, run_with_retry
from .directory_service import get_product, get_warehouse

"""
Legacy Inventory Rules

- One row per (warehouse_id, product_id); a soft-deleted row is revived
  by the next intake instead of inserting a second one.
- quantity is stored in yard. Input in any other length or weight unit is
  converted with the standard table; piece and roll cannot be expressed
  in yard and are rejected.
- Intake into an existing row increments it. Adjustments may go negative
  only down to zero.
- These rows are independent of the product/warehouse quantity ledger.
"""

logger = logging.getLogger(__name__)

_UNSET = object()


def _to_yard(value: Decimal, unit: str | None) -> Decimal:
    normalized = normalize_unit(unit) or STANDARD_UNIT
    if normalized in PIECE_UNITS:
        raise ValidationError(f"Unit '{normalized}' cannot be converted to {STANDARD_UNIT}")
    if normalized == STANDARD_UNIT:
        return q3(value)

    conversion = convert_to_standard_unit(value, normalized)
    logger.info(
        "Inventory unit conversion: %s %s -> %s %s",
        conversion.original_value, conversion.original_unit, conversion.value, conversion.unit,
    )
    return q3(conversion.value)


def _parse_threshold(value, field: str) -> Decimal | None:
    if value is None:
        return None
    return q3(parse_decimal(value, field, minimum=Decimal("0")))


def _check_thresholds(minimum: Decimal, maximum: Decimal | None) -> None:
    if maximum is not None and maximum < minimum:
        raise ValidationError(
            f"maximum_quantity ({maximum}) cannot be less than minimum_quantity ({minimum})"
        )


def create_inventory(
    *,
    warehouse_id: int,
    product_id: int,
    quantity,
    unit: str | None = None,
    minimum_quantity=None,
    maximum_quantity=None,
    location_code: str | None = None,
) -> Inventory:
    """
    Stock a product into a warehouse, or add to the existing row.

    The input unit falls back to the product's own unit, then yard.
    Threshold and location fields are only overwritten when passed.

    Raises:
        NotFoundError: warehouse or product missing
        ValidationError: negative quantity, piece/roll unit, max < min
    """
    def _op():
        begin_write()

        warehouse = get_warehouse(warehouse_id)
        product = get_product(product_id)

        amount = to_decimal(quantity, "quantity")
        if amount < 0:
            raise ValidationError("quantity must be >= 0")
        amount = _to_yard(amount, unit or product.unit)

        minimum = _parse_threshold(minimum_quantity, "minimum_quantity")
        maximum = _parse_threshold(maximum_quantity, "maximum_quantity")

        row = lock_for_update(
            db.session.query(Inventory).filter_by(warehouse_id=warehouse.id, product_id=product.id)
        ).first()
        now = utcnow()

        if row is None:
            row = Inventory(
                warehouse_id=warehouse.id,
                product_id=product.id,
                quantity=amount,
                unit=STANDARD_UNIT,
                minimum_quantity=minimum if minimum is not None else Decimal("0"),
                maximum_quantity=maximum,
                location_code=location_code,
                last_restocked_at=now,
            )
            db.session.add(row)
        else:
            if row.deleted_at is not None:
                row.deleted_at = None
                row.quantity = amount
            else:
                row.quantity = q3(row.quantity + amount)
            row.unit = STANDARD_UNIT
            row.last_restocked_at = now
            if minimum is not None:
                row.minimum_quantity = minimum
            if maximum is not None:
                row.maximum_quantity = maximum
            if location_code is not None:
                row.location_code = location_code

        _check_thresholds(row.minimum_quantity, row.maximum_quantity)

        db.session.commit()
        logger.info(
            "Inventory %s: %s now holds %s %s of product %s",
            row.id, warehouse.name, row.quantity, row.unit, product.id,
        )
        return row

    return run_with_retry(_op)


def _inventory_query():
    return db.session.query(Inventory).filter(Inventory.deleted_at.is_(None))


def get_inventory(inventory_id: int, *, lock: bool = False) -> Inventory:
    query = _inventory_query().filter(Inventory.id == inventory_id)
    if lock:
        query = lock_for_update(query)
    row = query.first()
    if row is None:
        raise NotFoundError("Inventory", inventory_id)
    return row


def list_inventory(*, warehouse_id: int | None = None, product_id: int | None = None) -> list[Inventory]:
    query = _inventory_query()
    if warehouse_id is not None:
        query = query.filter(Inventory.warehouse_id == warehouse_id)
    if product_id is not None:
        query = query.filter(Inventory.product_id == product_id)
    return query.order_by(Inventory.created_at.desc(), Inventory.id.desc()).all()


def find_low_stock() -> list[Inventory]:
    """Rows at or below their minimum, lowest quantity first."""
    return (
        _inventory_query()
        .filter(Inventory.quantity <= Inventory.minimum_quantity)
        .order_by(Inventory.quantity.asc(), Inventory.id.asc())
        .all()
    )


def update_inventory(
    inventory_id: int,
    *,
    minimum_quantity=_UNSET,
    maximum_quantity=_UNSET,
    location_code=_UNSET,
) -> Inventory:
    """
    Change thresholds or location. quantity only moves through
    create_inventory and adjust_inventory.
    """
    def _op():
        begin_write()
        row = get_inventory(inventory_id, lock=True)

        if minimum_quantity is not _UNSET:
            if minimum_quantity is None:
                raise ValidationError("minimum_quantity cannot be null")
            row.minimum_quantity = _parse_threshold(minimum_quantity, "minimum_quantity")
        if maximum_quantity is not _UNSET:
            row.maximum_quantity = _parse_threshold(maximum_quantity, "maximum_quantity")
        if location_code is not _UNSET:
            row.location_code = location_code

        _check_thresholds(row.minimum_quantity, row.maximum_quantity)

        db.session.commit()
        return row

    return run_with_retry(_op)


def adjust_inventory(inventory_id: int, *, adjustment, unit: str | None = None, reason: str | None = None) -> Inventory:
    """
    Add (positive) or remove (negative) quantity.

    A non-yard adjustment is converted by magnitude and keeps its sign.

    Raises:
        NotFoundError: row missing or deleted
        ValidationError: result would be negative, piece/roll unit
    """
    def _op():
        begin_write()
        row = get_inventory(inventory_id, lock=True)

        delta = to_decimal(adjustment, "adjustment")
        converted = _to_yard(abs(delta), unit)
        if delta < 0:
            converted = -converted

        new_quantity = q3(row.quantity + converted)
        if new_quantity < 0:
            raise ValidationError(
                "Adjustment would result in negative quantity. "
                f"Current: {row.quantity} yards, Adjustment: {converted} yards"
            )

        row.quantity = new_quantity
        if converted > 0:
            row.last_restocked_at = utcnow()

        db.session.commit()
        logger.info(
            "Inventory %s adjusted by %s yards (%s). New quantity: %s",
            row.id, converted, reason or "no reason given", row.quantity,
        )
        return row

    return run_with_retry(_op)


def remove_inventory(inventory_id: int) -> None:
    def _op():
        begin_write()
        row = get_inventory(inventory_id, lock=True)
        row.deleted_at = utcnow()
        db.session.commit()
        logger.info("Inventory %s deleted", row.id)

    run_with_retry(_op)
