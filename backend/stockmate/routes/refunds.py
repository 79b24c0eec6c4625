# Overview: Flask API routes for refunds; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..services import refund_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_int,
    parse_optional_text,
    require_fields,
    require_list,
)

refunds_bp = Blueprint("refunds", __name__, url_prefix="/api/refunds")


def _parse_refund_items(data: dict) -> list[dict]:
    items = []
    for raw in require_list(data, "refund_items"):
        item = dict(raw)
        for field in ("item_id", "product_id"):
            if item.get(field) is not None:
                item[field] = parse_int(item[field], field)
        items.append(item)
    return items


@refunds_bp.post("")
def create_refund_route():
    """
    Refund part of an invoice and restore warehouse quantity.

    Request body:
    {
        "invoice_id": 1,
        "invoice_number": "INV-000001",
        "customer_id": 1,
        "warehouse_id": 1,
        "refund_items": [
            {
                "item_id": 1, "product_id": 3,
                "original_quantity": 10, "refund_quantity": 2,
                "unit": "yard", "unit_price": 5.25, "refund_amount": 10.50
            }
        ],
        "total_refund_amount": 10.50,
        "reason": "Damaged roll"   (optional)
    }

    Returns:
        201: Refund created, quantity restored
        400: Number/product/total mismatch, quantity over invoiced
        404: Invoice, invoice item, customer, warehouse or product not found
    """
    try:
        data = require_fields(
            request.get_json(silent=True),
            ["invoice_id", "invoice_number", "customer_id", "warehouse_id", "total_refund_amount"],
        )

        refund = refund_service.create_refund(
            invoice_id=parse_int(data["invoice_id"], "invoice_id"),
            invoice_number=str(data["invoice_number"]),
            customer_id=parse_int(data["customer_id"], "customer_id"),
            warehouse_id=parse_int(data["warehouse_id"], "warehouse_id"),
            refund_items=_parse_refund_items(data),
            total_refund_amount=data["total_refund_amount"],
            reason=parse_optional_text(data.get("reason"), "reason"),
        )
        return jsonify({"refund": refund.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create refund")
        return jsonify({"error": "Internal server error"}), 500


@refunds_bp.get("")
def list_refunds_route():
    """
    Query params:
    - invoice_id: only refunds for this invoice (404 if the invoice is missing)
    """
    invoice_id = request.args.get("invoice_id", type=int)
    try:
        if invoice_id is not None:
            refunds = refund_service.get_invoice_refunds(invoice_id)
        else:
            refunds = refund_service.list_refunds()
        return jsonify({"refunds": [r.to_dict() for r in refunds]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@refunds_bp.get("/<int:refund_id>")
def get_refund_route(refund_id: int):
    try:
        refund = refund_service.get_refund(refund_id)
        return jsonify({"refund": refund.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
