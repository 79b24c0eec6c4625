"""
Refund Processing Service

WHY: A customer sends part of an invoice back. The refund records which
invoice lines were returned and for how much, and puts the quantity back
into the warehouse it came from.

DESIGN PRINCIPLES:
- Refunds reference the original invoice and, per item, the original
  invoice item, for traceability
- The caller's invoice number must match the stored one (stale client guard)
- The declared total must match the sum of item amounts within 0.01
- Validate everything, persist the refund, then restore quantity; all in
  one unit of work, so a restore failure leaves no refund behind
- Refunds are immutable once created
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Refund, RefundItem
from ..units import normalize_unit
from ..validation import (
    MAX_AMOUNT,
    MONEY_EPSILON,
    NotFoundError,
    ValidationError,
    parse_decimal,
    parse_item_quantity,
    q2,
)
from . import ledger_service
from .concurrency import begin_write, run_with_retry
from .directory_service import get_customer, get_product, get_warehouse
from .document_service import next_document_number
from .invoice_service import get_invoice, refunded_quantities

logger = logging.getLogger(__name__)


# =============================================================================
# REFUND CREATION
# =============================================================================

def _parse_refund_item(index: int, item: dict) -> dict:
    for field in ("item_id", "product_id", "original_quantity", "refund_quantity", "unit", "unit_price", "refund_amount"):
        if item.get(field) is None:
            raise ValidationError(f"Refund item {index}: {field} is required")

    return {
        "item_id": item["item_id"],
        "product_id": item["product_id"],
        "original_quantity": parse_item_quantity(item["original_quantity"], "original_quantity"),
        "refund_quantity": parse_item_quantity(item["refund_quantity"], "refund_quantity"),
        "unit": normalize_unit(item["unit"]),
        "unit_price": parse_decimal(item["unit_price"], "unit_price", minimum=Decimal("0")),
        "refund_amount": parse_decimal(item["refund_amount"], "refund_amount", minimum=Decimal("0")),
    }


def _restore_quantities(refund: Refund) -> None:
    for item in refund.items:
        entry = ledger_service.get_entry(item.product_id, refund.warehouse_id, lock=True)

        if entry is None:
            raise NotFoundError(
                "ProductWarehouse",
                (item.product_id, refund.warehouse_id),
                f"Product {item.product_id} is not available in warehouse {refund.warehouse_id}",
            )

        if item.unit != entry.unit:
            raise ValidationError(
                f"Unit mismatch for product {item.product_id}. "
                f"Refund unit: {item.unit}, Warehouse unit: {entry.unit}"
            )

        ledger_service.adjust(item.product_id, refund.warehouse_id, item.refund_quantity, unit=item.unit)


def create_refund(
    *,
    invoice_id: int,
    invoice_number: str,
    customer_id: int,
    warehouse_id: int,
    refund_items: list[dict],
    total_refund_amount,
    reason: str | None = None,
) -> Refund:
    """
    Create a refund against an invoice and restore warehouse quantity.

    Args:
        invoice_id: Invoice being refunded
        invoice_number: Number the client believes the invoice has
        customer_id: Customer receiving the refund
        warehouse_id: Warehouse the goods go back into
        refund_items: [{"item_id", "product_id", "original_quantity",
            "refund_quantity", "unit", "unit_price", "refund_amount"}, ...]
        total_refund_amount: Declared refund total
        reason: Customer's reason

    Returns:
        Refund with items

    Raises:
        NotFoundError: customer, warehouse, invoice, invoice item, product
            or ledger row missing
        ValidationError: invoice number mismatch, no items, product
            mismatch, quantity over original / invoiced / not yet refunded,
            total mismatch, unit mismatch against the ledger
    """
    def _op():
        begin_write()

        customer = get_customer(customer_id)
        warehouse = get_warehouse(warehouse_id)
        invoice = get_invoice(invoice_id)

        if invoice.invoice_number != invoice_number:
            raise ValidationError(
                f"Invoice number mismatch. Expected: {invoice.invoice_number}, Provided: {invoice_number}"
            )

        if not refund_items:
            raise ValidationError("Refund must have at least one item")

        invoice_items = {item.id: item for item in invoice.items}
        already_refunded = refunded_quantities(invoice.id)
        in_this_refund: dict[int, Decimal] = {}

        parsed = []
        for index, raw in enumerate(refund_items, start=1):
            item = _parse_refund_item(index, raw)
            invoice_item = invoice_items.get(item["item_id"])

            if invoice_item is None:
                raise NotFoundError(
                    "InvoiceItem",
                    item["item_id"],
                    f"Invoice item with ID {item['item_id']} not found in invoice",
                )

            if invoice_item.product_id != item["product_id"]:
                raise ValidationError(
                    f"Product mismatch for item {item['item_id']}. "
                    f"Expected: {invoice_item.product_id}, Provided: {item['product_id']}"
                )

            if item["refund_quantity"] > item["original_quantity"]:
                raise ValidationError(
                    f"Refund quantity ({item['refund_quantity']}) cannot exceed original quantity "
                    f"({item['original_quantity']}) for item {item['item_id']}"
                )

            if item["refund_quantity"] > invoice_item.quantity:
                raise ValidationError(
                    f"Refund quantity ({item['refund_quantity']}) cannot exceed invoice item quantity "
                    f"({invoice_item.quantity}) for item {item['item_id']}"
                )

            previous = already_refunded.get(invoice_item.id, Decimal("0")) + in_this_refund.get(invoice_item.id, Decimal("0"))
            if previous + item["refund_quantity"] > invoice_item.quantity:
                raise ValidationError(
                    f"Cannot refund {item['refund_quantity']} for item {item['item_id']}. "
                    f"Invoiced: {invoice_item.quantity}, already refunded: {previous}, "
                    f"available: {invoice_item.quantity - previous}"
                )
            in_this_refund[invoice_item.id] = in_this_refund.get(invoice_item.id, Decimal("0")) + item["refund_quantity"]

            parsed.append(item)

        for item in parsed:
            get_product(item["product_id"])

        declared_total = parse_decimal(total_refund_amount, "total_refund_amount", minimum=Decimal("0"), maximum=MAX_AMOUNT)
        calculated_total = sum((item["refund_amount"] for item in parsed), Decimal("0"))
        if abs(calculated_total - declared_total) > MONEY_EPSILON:
            raise ValidationError(
                f"Total refund amount mismatch. Calculated: {calculated_total}, Provided: {declared_total}"
            )

        refund = Refund(
            refund_number=next_document_number(document_type="REFUND", prefix="RF"),
            customer_id=customer.id,
            invoice_id=invoice.id,
            warehouse_id=warehouse.id,
            total_refund_amount=q2(declared_total),
            reason=reason or None,
            items=[
                RefundItem(
                    invoice_item_id=item["item_id"],
                    product_id=item["product_id"],
                    original_quantity=q2(item["original_quantity"]),
                    refund_quantity=q2(item["refund_quantity"]),
                    unit=item["unit"],
                    unit_price=q2(item["unit_price"]),
                    refund_amount=q2(item["refund_amount"]),
                )
                for item in parsed
            ],
        )
        db.session.add(refund)
        db.session.flush()

        _restore_quantities(refund)

        db.session.commit()
        logger.info(
            "Refund %s created for invoice %s: %s items, total %s",
            refund.refund_number, invoice.invoice_number, len(refund.items), refund.total_refund_amount,
        )
        return refund

    return run_with_retry(_op)


# =============================================================================
# QUERIES
# =============================================================================

def get_refund(refund_id: int) -> Refund:
    refund = db.session.get(Refund, refund_id)
    if refund is None:
        raise NotFoundError("Refund", refund_id)
    return refund


def list_refunds(*, invoice_id: int | None = None) -> list[Refund]:
    query = db.session.query(Refund)
    if invoice_id is not None:
        query = query.filter_by(invoice_id=invoice_id)
    return query.order_by(Refund.created_at.desc(), Refund.id.desc()).all()


def get_invoice_refunds(invoice_id: int) -> list[Refund]:
    """All refunds for an invoice (invoice must exist)."""
    get_invoice(invoice_id)
    return list_refunds(invoice_id=invoice_id)
