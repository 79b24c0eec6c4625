# Overview: Flask API routes for legacy single-unit inventory rows.

"""
Legacy inventory API.

- Quantities are always reported in yard
- PATCH changes thresholds and location only; use /adjust to move quantity
- GET /low-stock lists rows at or below their minimum
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import inventory_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_int,
    parse_optional_text,
    parse_unit,
    require_fields,
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _optional_unit(data: dict):
    unit = data.get("unit")
    return parse_unit(unit) if unit is not None else None


@inventory_bp.post("")
def create_inventory_route():
    """
    Stock a product into a warehouse (adds to an existing row).

    Request body:
    {
        "warehouse_id": 1,
        "product_id": 3,
        "quantity": 25,
        "unit": "meter",              (optional, defaults to the product unit / yard)
        "minimum_quantity": 10,       (optional)
        "maximum_quantity": 500,      (optional)
        "location_code": "A-01-03"    (optional)
    }

    Returns:
        201: Row created or incremented
        400: Invalid input
        404: Warehouse or product not found
    """
    try:
        data = require_fields(request.get_json(silent=True), ["warehouse_id", "product_id", "quantity"])

        row = inventory_service.create_inventory(
            warehouse_id=parse_int(data["warehouse_id"], "warehouse_id"),
            product_id=parse_int(data["product_id"], "product_id"),
            quantity=data["quantity"],
            unit=_optional_unit(data),
            minimum_quantity=data.get("minimum_quantity"),
            maximum_quantity=data.get("maximum_quantity"),
            location_code=parse_optional_text(data.get("location_code"), "location_code", max_length=50),
        )
        return jsonify({"inventory": row.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("")
def list_inventory_route():
    warehouse_id = request.args.get("warehouse_id", type=int)
    product_id = request.args.get("product_id", type=int)

    rows = inventory_service.list_inventory(warehouse_id=warehouse_id, product_id=product_id)
    return jsonify({"inventory": [row.to_dict() for row in rows]}), 200


@inventory_bp.get("/low-stock")
def low_stock_route():
    rows = inventory_service.find_low_stock()
    return jsonify({"inventory": [row.to_dict() for row in rows]}), 200


@inventory_bp.get("/<int:inventory_id>")
def get_inventory_route(inventory_id: int):
    try:
        row = inventory_service.get_inventory(inventory_id)
        return jsonify({"inventory": row.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@inventory_bp.patch("/<int:inventory_id>")
def update_inventory_route(inventory_id: int):
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        if "quantity" in data:
            raise ValidationError("quantity cannot be set directly; use the adjust endpoint")

        changes = {}
        for field in ("minimum_quantity", "maximum_quantity"):
            if field in data:
                changes[field] = data[field]
        if "location_code" in data:
            changes["location_code"] = parse_optional_text(data["location_code"], "location_code", max_length=50)

        row = inventory_service.update_inventory(inventory_id, **changes)
        return jsonify({"inventory": row.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/<int:inventory_id>/adjust")
def adjust_inventory_route(inventory_id: int):
    """
    Request body:
    {
        "adjustment": -5,       (negative removes stock)
        "unit": "meter",        (optional, default yard)
        "reason": "Cut sample"  (optional)
    }
    """
    try:
        data = require_fields(request.get_json(silent=True), ["adjustment"])

        row = inventory_service.adjust_inventory(
            inventory_id,
            adjustment=data["adjustment"],
            unit=_optional_unit(data),
            reason=parse_optional_text(data.get("reason"), "reason"),
        )
        return jsonify({"inventory": row.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("/<int:inventory_id>")
def delete_inventory_route(inventory_id: int):
    try:
        inventory_service.remove_inventory(inventory_id)
        return "", 204
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete inventory")
        return jsonify({"error": "Internal server error"}), 500
