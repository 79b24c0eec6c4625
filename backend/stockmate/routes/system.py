# Overview: Health check and unit-conversion endpoints.

import time
from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..models import ProductWarehouse, Warehouse
from ..time_utils import to_utc_z, utcnow
from ..units import STANDARD_UNIT, STRATEGIES, get_supported_units
from ..validation import ValidationError, parse_decimal, require_fields

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        warehouse_count = db.session.query(Warehouse).count()
        entry_count = db.session.query(ProductWarehouse).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "warehouses": warehouse_count,
                "ledger_entries": entry_count,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503

    return {
        "status": database_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }, http_status


@system_bp.get("/api/units")
def list_units():
    return jsonify({"units": get_supported_units(), "standard_unit": STANDARD_UNIT}), 200


@system_bp.post("/api/units/convert")
def convert_units():
    """
    Convert a quantity with one of the named strategies.

    Request body:
    {
        "quantity": 10,
        "unit": "meter",
        "strategy": "product"   (optional: "product" | "standard", default "product")
    }
    """
    try:
        data = require_fields(request.get_json(silent=True), ["quantity", "unit"])
        quantity = parse_decimal(data["quantity"], "quantity")
        strategy_name = data.get("strategy") or "product"
        strategy = STRATEGIES.get(strategy_name)
        if strategy is None:
            raise ValidationError(f"strategy must be one of: {', '.join(STRATEGIES)}")

        result = strategy.convert(quantity, str(data["unit"]))
        return jsonify({"conversion": result.to_dict(), "strategy": strategy.name}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
