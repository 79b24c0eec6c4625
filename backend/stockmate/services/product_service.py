# Overview: Product intake and update; feeds the quantity ledger.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product, ProductWarehouse
from ..units import convert_to_standard_unit
from ..validation import ValidationError, q2, to_decimal
from . import ledger_service
from .concurrency import begin_write, run_with_retry
from .directory_service import get_color, get_fabric, get_product

logger = logging.getLogger(__name__)

_UNSET = object()


def _apply_legacy_weight(product: Product, weight, unit) -> None:
    """
    Normalize the legacy single-unit weight field to yard.

    Uses the standard (length/weight table) converter, never the ledger rules.
    """
    if weight is None:
        product.weight = None
        product.unit = unit
        return

    weight = to_decimal(weight, "weight")
    if weight < 0:
        raise ValidationError("weight must be >= 0")

    if unit:
        conversion = convert_to_standard_unit(weight, unit)
        product.weight = conversion.value
        product.unit = conversion.unit
    else:
        product.weight = weight
        product.unit = None


def create_product(
    *,
    name: str,
    fabric_id: int,
    color_id: int,
    warehouse_quantities: list[dict],
    price=None,
    weight=None,
    unit: str | None = None,
) -> Product:
    """
    Create a product and stock it into its warehouses in one transaction.

    Raises:
        NotFoundError: fabric, color or any warehouse missing
        ValidationError: no warehouse quantities, bad quantity, bad price
    """
    def _op():
        if not name or not str(name).strip():
            raise ValidationError("name is required")

        begin_write()

        fabric = get_fabric(fabric_id)
        color = get_color(color_id)

        product = Product(name=str(name).strip(), fabric_id=fabric.id, color_id=color.id)
        if price is not None:
            product.price = _parse_price(price)
        _apply_legacy_weight(product, weight, unit)

        db.session.add(product)
        db.session.flush()

        ledger_service.set_warehouse_quantities(product.id, warehouse_quantities)

        db.session.commit()
        logger.info("Product %s created with %s warehouse entries", product.id, len(warehouse_quantities))
        return product

    return run_with_retry(_op)


def update_product(
    product_id: int,
    *,
    name=_UNSET,
    fabric_id=_UNSET,
    color_id=_UNSET,
    price=_UNSET,
    weight=_UNSET,
    unit=_UNSET,
    warehouse_quantities=_UNSET,
) -> Product:
    """
    Update product fields. When warehouse_quantities is passed (even empty)
    every ledger row for the product is replaced.

    weight and unit are converted together; passing only one of them is
    rejected, except weight=None which clears both.
    """
    def _op():
        begin_write()
        product = get_product(product_id)

        if name is not _UNSET:
            if not name or not str(name).strip():
                raise ValidationError("name cannot be blank")
            product.name = str(name).strip()
        if fabric_id is not _UNSET:
            product.fabric_id = get_fabric(fabric_id).id
        if color_id is not _UNSET:
            product.color_id = get_color(color_id).id
        if price is not _UNSET:
            product.price = _parse_price(price) if price is not None else None
        if weight is not _UNSET or unit is not _UNSET:
            # Stored weight is already yard; a new unit needs a new weight.
            if weight is None and unit is _UNSET:
                _apply_legacy_weight(product, None, None)
            elif weight is _UNSET or unit is _UNSET:
                raise ValidationError("weight and unit must be updated together")
            else:
                _apply_legacy_weight(product, weight, unit)

        if warehouse_quantities is not _UNSET:
            ledger_service.replace_warehouse_quantities(product.id, warehouse_quantities or [])

        db.session.commit()
        return product

    return run_with_retry(_op)


def get_product_detail(product_id: int) -> dict:
    product = get_product(product_id)
    entries = db.session.query(ProductWarehouse).filter_by(product_id=product.id).order_by(
        ProductWarehouse.warehouse_id
    ).all()
    data = product.to_dict()
    data["warehouses"] = [entry.to_dict() for entry in entries]
    return data


def _parse_price(value):
    price = to_decimal(value, "price")
    if price < 0:
        raise ValidationError("price must be >= 0")
    return q2(price)
