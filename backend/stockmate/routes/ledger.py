# Overview: Read-only endpoints over the product/warehouse quantity ledger.

from flask import Blueprint, jsonify, request

from ..services import ledger_service
from ..validation import NotFoundError, ValidationError, parse_decimal

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api/ledger")


@ledger_bp.get("")
def list_entries_route():
    product_id = request.args.get("product_id", type=int)
    warehouse_id = request.args.get("warehouse_id", type=int)

    entries = ledger_service.list_entries(product_id=product_id, warehouse_id=warehouse_id)
    return jsonify({"entries": [entry.to_dict() for entry in entries]}), 200


@ledger_bp.get("/<int:product_id>/<int:warehouse_id>")
def get_entry_route(product_id: int, warehouse_id: int):
    try:
        entry = ledger_service.get_entry_or_404(product_id, warehouse_id)
        return jsonify({"entry": entry.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@ledger_bp.get("/<int:product_id>/<int:warehouse_id>/availability")
def availability_route(product_id: int, warehouse_id: int):
    """
    Query params:
    - quantity: required quantity, in the row's unit
    """
    try:
        raw = request.args.get("quantity")
        if raw is None:
            raise ValidationError("quantity query parameter required")
        quantity = parse_decimal(raw, "quantity", minimum=0)

        available = ledger_service.check_availability(product_id, warehouse_id, quantity)
        return jsonify({
            "product_id": product_id,
            "warehouse_id": warehouse_id,
            "required_quantity": str(quantity),
            "available": available,
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
