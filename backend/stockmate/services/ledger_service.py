# Overview: Service-layer operations for the product/warehouse quantity ledger.

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import ProductWarehouse, Warehouse
from ..units import convert_product_unit, normalize_unit
from ..validation import NotFoundError, ValidationError, q3, to_decimal
from .concurrency import lock_for_update

"""
Quantity Ledger Invariants (authoritative)

- One ProductWarehouse row per (product_id, warehouse_id).
- Every stored quantity is already converted by the product conversion
  rules (meter -> yard, yard, kg); raw input units never reach a row.
- A row's unit is fixed when the row is created. Adjustments carry values
  already expressed in that unit; a mismatched unit is a hard error.
- adjust() does NOT enforce non-negativity. Invoice and refund engines
  check availability first, inside the same transaction.

Functions here flush but never commit; the calling service owns the
unit of work.
"""

logger = logging.getLogger(__name__)


def _parse_entries(warehouse_quantities: list[dict]) -> list[tuple[int, Decimal, str]]:
    parsed = []
    seen: set[int] = set()
    for wq in warehouse_quantities:
        warehouse_id = wq.get("warehouse_id")
        if warehouse_id is None:
            raise ValidationError("warehouse_id is required for each warehouse quantity")
        if warehouse_id in seen:
            raise ValidationError(f"Warehouse {warehouse_id} listed more than once")
        seen.add(warehouse_id)

        quantity = to_decimal(wq.get("quantity"), "quantity")
        if quantity < 0:
            raise ValidationError(f"Quantity for warehouse {warehouse_id} must be >= 0")

        unit = wq.get("unit")
        if not unit:
            raise ValidationError(f"unit is required for warehouse {warehouse_id}")

        parsed.append((warehouse_id, quantity, unit))
    return parsed


def _load_warehouses(warehouse_ids: list[int]) -> dict[int, Warehouse]:
    warehouses = db.session.query(Warehouse).filter(Warehouse.id.in_(warehouse_ids)).all()
    by_id = {w.id: w for w in warehouses}
    missing = [wid for wid in warehouse_ids if wid not in by_id]
    if missing:
        raise NotFoundError(
            "Warehouse",
            missing[0],
            f"One or more warehouses not found: {', '.join(str(m) for m in missing)}",
        )
    return by_id


def _insert_entries(product_id: int, parsed: list[tuple[int, Decimal, str]]) -> list[ProductWarehouse]:
    warehouses = _load_warehouses([wid for wid, _, _ in parsed])

    rows = []
    for warehouse_id, quantity, unit in parsed:
        conversion = convert_product_unit(quantity, unit)
        if conversion.conversion_applied:
            logger.info(
                "[%s] Unit conversion: %s %s -> %s %s",
                warehouses[warehouse_id].name,
                conversion.original_value,
                conversion.original_unit,
                conversion.value,
                conversion.unit,
            )
        row = ProductWarehouse(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=conversion.value,
            unit=conversion.unit,
        )
        db.session.add(row)
        rows.append(row)

    db.session.flush()
    return rows


def set_warehouse_quantities(product_id: int, warehouse_quantities: list[dict]) -> list[ProductWarehouse]:
    """
    Stock a newly created product into one or more warehouses.

    Each entry is {"warehouse_id", "quantity", "unit"}; quantities are run
    through the product conversion rules before being stored.

    Raises:
        ValidationError: empty list, duplicate warehouse, negative quantity
        NotFoundError: any referenced warehouse does not exist
    """
    if not warehouse_quantities:
        raise ValidationError("At least one warehouse quantity is required")

    parsed = _parse_entries(warehouse_quantities)
    return _insert_entries(product_id, parsed)


def replace_warehouse_quantities(product_id: int, warehouse_quantities: list[dict]) -> list[ProductWarehouse]:
    """
    Replace every ledger row for a product (product update path).

    No merge or increment: existing rows are deleted and the new set is
    inserted. An empty list leaves the product unstocked everywhere.
    """
    parsed = _parse_entries(warehouse_quantities or [])

    db.session.query(ProductWarehouse).filter_by(product_id=product_id).delete(synchronize_session="fetch")
    db.session.flush()

    if not parsed:
        return []
    return _insert_entries(product_id, parsed)


def get_entry(product_id: int, warehouse_id: int, *, lock: bool = False) -> ProductWarehouse | None:
    query = db.session.query(ProductWarehouse).filter_by(product_id=product_id, warehouse_id=warehouse_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_entry_or_404(product_id: int, warehouse_id: int, *, lock: bool = False) -> ProductWarehouse:
    entry = get_entry(product_id, warehouse_id, lock=lock)
    if entry is None:
        raise NotFoundError(
            "ProductWarehouse",
            (product_id, warehouse_id),
            f"Product {product_id} is not available in warehouse {warehouse_id}",
        )
    return entry


def check_availability(product_id: int, warehouse_id: int, required_quantity) -> bool:
    entry = get_entry(product_id, warehouse_id)
    if entry is None:
        return False
    return entry.quantity >= to_decimal(required_quantity, "quantity")


def adjust(product_id: int, warehouse_id: int, delta, *, unit: str | None = None) -> ProductWarehouse:
    """
    Apply quantity += delta to the (product, warehouse) row.

    The row is selected FOR UPDATE and its version_id is bumped, so a
    concurrent writer on the same row fails with StaleDataError instead of
    losing an update.

    NOTE: a negative result is NOT rejected here. Callers pre-check.

    Raises:
        NotFoundError: no row for (product, warehouse)
        ValidationError: unit given and different from the row's unit
    """
    entry = get_entry_or_404(product_id, warehouse_id, lock=True)

    if unit is not None and normalize_unit(unit) != entry.unit:
        raise ValidationError(
            f"Unit mismatch for product {product_id} in warehouse {warehouse_id}. "
            f"Adjustment unit: {unit}, Warehouse unit: {entry.unit}"
        )

    entry.quantity = q3(entry.quantity + to_decimal(delta, "delta"))
    db.session.flush()
    return entry


def list_entries(*, product_id: int | None = None, warehouse_id: int | None = None) -> list[ProductWarehouse]:
    query = db.session.query(ProductWarehouse)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    if warehouse_id is not None:
        query = query.filter_by(warehouse_id=warehouse_id)
    return query.order_by(ProductWarehouse.product_id, ProductWarehouse.warehouse_id).all()
