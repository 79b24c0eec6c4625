# Overview: Flask API routes for invoices; parses input and returns JSON responses.

"""
Invoice API Routes

DESIGN:
- POST creates the invoice and deducts warehouse quantity in one step
- PATCH only records payments / notes; items are immutable
- DELETE soft-deletes a PENDING invoice and restores quantity
- Invoice numbers are assigned by the server (INV-000001, ...)
"""

from flask import Blueprint, current_app, jsonify, request

from ..services import invoice_service
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_int,
    parse_optional_datetime,
    parse_optional_text,
    require_fields,
    require_list,
)

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


# =============================================================================
# INVOICE CREATION
# =============================================================================

@invoices_bp.post("")
def create_invoice_route():
    """
    Create an invoice and deduct stock.

    Request body:
    {
        "customer_id": 1,
        "warehouse_id": 1,
        "items": [
            {"product_id": 3, "quantity": 10, "unit": "yard", "unit_price": 5.25}
        ],
        "paid_amount": 0,          (optional)
        "notes": "Rush order",     (optional)
        "invoice_date": "2026-01-05T10:00:00Z"  (optional)
    }

    Returns:
        201: Invoice created (status PENDING or PAID)
        400: Invalid input, unit mismatch or insufficient quantity
        404: Customer, warehouse or product not found
    """
    try:
        data = require_fields(request.get_json(silent=True), ["customer_id", "warehouse_id"])

        invoice = invoice_service.create_invoice(
            customer_id=parse_int(data["customer_id"], "customer_id"),
            warehouse_id=parse_int(data["warehouse_id"], "warehouse_id"),
            items=require_list(data, "items"),
            paid_amount=data.get("paid_amount"),
            notes=parse_optional_text(data.get("notes"), "notes"),
            invoice_date=parse_optional_datetime(data.get("invoice_date"), "invoice_date"),
        )
        return jsonify({"invoice": invoice.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# QUERIES
# =============================================================================

@invoices_bp.get("")
def list_invoices_route():
    """
    Query params:
    - customer_id, warehouse_id: optional filters
    - status: PENDING | PAID
    """
    try:
        invoices = invoice_service.list_invoices(
            customer_id=request.args.get("customer_id", type=int),
            warehouse_id=request.args.get("warehouse_id", type=int),
            status=request.args.get("status"),
        )
        return jsonify({"invoices": [inv.to_dict(include_items=False) for inv in invoices]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@invoices_bp.get("/<int:invoice_id>")
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id)
        return jsonify({"invoice": invoice.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# =============================================================================
# PAYMENT / DELETION
# =============================================================================

@invoices_bp.patch("/<int:invoice_id>")
def update_invoice_route(invoice_id: int):
    """
    Record a payment or change notes.

    Request body:
    {
        "paid_amount": 50.00,   (optional)
        "notes": "..."          (optional)
    }

    Returns:
        200: Updated invoice with re-derived status
        400: Invoice already PAID or paid_amount exceeds total
        404: Invoice not found
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")

        changes = {}
        if "paid_amount" in data:
            changes["paid_amount"] = data["paid_amount"]
        if "notes" in data:
            changes["notes"] = parse_optional_text(data["notes"], "notes")

        invoice = invoice_service.update_invoice(invoice_id, **changes)
        return jsonify({"invoice": invoice.to_dict()}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update invoice")
        return jsonify({"error": "Internal server error"}), 500


@invoices_bp.delete("/<int:invoice_id>")
def delete_invoice_route(invoice_id: int):
    try:
        invoice_service.remove_invoice(invoice_id)
        return "", 204
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete invoice")
        return jsonify({"error": "Internal server error"}), 500
