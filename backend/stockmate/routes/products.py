# Overview: Flask API routes for product intake; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import product_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_int,
    parse_optional_text,
    parse_unit,
    require_fields,
    require_list,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _parse_warehouse_quantities(data: dict) -> list[dict]:
    entries = []
    for wq in require_list(data, "warehouse_quantities"):
        require_fields(wq, ["warehouse_id", "quantity", "unit"])
        entries.append({
            "warehouse_id": parse_int(wq["warehouse_id"], "warehouse_id"),
            "quantity": wq["quantity"],
            "unit": parse_unit(wq["unit"]),
        })
    return entries


@products_bp.post("")
def create_product_route():
    """
    Create a product and stock it.

    Request body:
    {
        "name": "Cotton Red",
        "fabric_id": 1,
        "color_id": 2,
        "price": 12.5,                 (optional)
        "weight": 3, "unit": "kg",     (optional legacy fields)
        "warehouse_quantities": [
            {"warehouse_id": 1, "quantity": 100, "unit": "meter"}
        ]
    }

    Returns:
        201: Product created (quantities converted: meter -> yard)
        400: Invalid input / no warehouse quantities
        404: Fabric, color or warehouse not found
    """
    try:
        data = require_fields(request.get_json(silent=True), ["name", "fabric_id", "color_id"])
        unit = data.get("unit")

        product = product_service.create_product(
            name=parse_optional_text(data["name"], "name", max_length=200),
            fabric_id=parse_int(data["fabric_id"], "fabric_id"),
            color_id=parse_int(data["color_id"], "color_id"),
            warehouse_quantities=_parse_warehouse_quantities(data),
            price=data.get("price"),
            weight=data.get("weight"),
            unit=parse_unit(unit) if unit is not None else None,
        )
        return jsonify({"product": product_service.get_product_detail(product.id)}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return jsonify({"product": product_service.get_product_detail(product_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@products_bp.patch("/<int:product_id>")
def update_product_route(product_id: int):
    """
    Update a product. Passing "warehouse_quantities" replaces every ledger
    row for the product; an empty list unstocks it everywhere.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")

        changes = {}
        if "name" in data:
            changes["name"] = parse_optional_text(data["name"], "name", max_length=200)
        if "fabric_id" in data:
            changes["fabric_id"] = parse_int(data["fabric_id"], "fabric_id")
        if "color_id" in data:
            changes["color_id"] = parse_int(data["color_id"], "color_id")
        if "price" in data:
            changes["price"] = data["price"]
        if "weight" in data:
            changes["weight"] = data["weight"]
        if "unit" in data:
            changes["unit"] = parse_unit(data["unit"]) if data["unit"] is not None else None
        if "warehouse_quantities" in data:
            changes["warehouse_quantities"] = _parse_warehouse_quantities(data)

        product = product_service.update_product(product_id, **changes)
        return jsonify({"product": product_service.get_product_detail(product.id)}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500
