"""
Invoice Service - invoices consume warehouse stock

DESIGN PRINCIPLES:
- Validate every item, then persist, then deduct. A failing item means
  nothing is written and no quantity moves.
- The whole sequence runs as one unit of work holding the ledger rows
  locked, so two invoices cannot both pass the availability check on the
  same scarce row.
- total = sum(quantity * unit_price), fixed at creation. Items are never
  edited afterwards; only paid_amount and notes change.
- status is a pure function of (total, paid_amount):
  PAID iff |total - paid_amount| < 0.01, else PENDING.

LIFECYCLE:
1. create  -> PENDING or PAID, quantity deducted immediately
2. update  -> paid_amount / notes, status re-derived (PENDING only)
3. remove  -> soft delete, quantity restored (PENDING only)
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import (
    Invoice,
    InvoiceItem,
    RefundItem,
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_PENDING,
    INVOICE_STATUSES,
)
from ..time_utils import utcnow
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
from .concurrency import begin_write, lock_for_update, run_with_retry
from .directory_service import get_customer, get_product, get_warehouse
from .document_service import next_document_number

logger = logging.getLogger(__name__)

_UNSET = object()


def derive_status(total: Decimal, paid_amount: Decimal) -> str:
    if abs(total - paid_amount) < MONEY_EPSILON:
        return INVOICE_STATUS_PAID
    return INVOICE_STATUS_PENDING


def _parse_items(items: list[dict]) -> list[dict]:
    parsed = []
    for index, item in enumerate(items, start=1):
        product_id = item.get("product_id")
        if product_id is None:
            raise ValidationError(f"Item {index}: product_id is required")
        unit = item.get("unit")
        if not unit:
            raise ValidationError(f"Item {index}: unit is required")
        if item.get("quantity") is None:
            raise ValidationError(f"Item {index}: quantity is required")
        if item.get("unit_price") is None:
            raise ValidationError(f"Item {index}: unit_price is required")

        quantity = parse_item_quantity(item["quantity"], "quantity")
        unit_price = q2(parse_decimal(item["unit_price"], "unit_price", minimum=Decimal("0"), maximum=MAX_AMOUNT))

        parsed.append({
            "product_id": product_id,
            "quantity": quantity,
            "unit": normalize_unit(unit),
            "unit_price": unit_price,
        })
    return parsed


def _validate_against_ledger(warehouse_id: int, items: list[dict]) -> None:
    """
    Check every item against its ledger row before anything is written.

    Items for the same product are summed, so two lines of 60 against a
    row of 100 fail just like one line of 120.
    """
    requested: dict[int, Decimal] = {}

    for item in items:
        product = get_product(item["product_id"])
        entry = ledger_service.get_entry(product.id, warehouse_id, lock=True)

        if entry is None:
            raise ValidationError(f"Product {product.name} is not available in this warehouse")

        if item["unit"] != entry.unit:
            raise ValidationError(
                f"Unit mismatch for product {product.name}. "
                f"Item unit: {item['unit']}, Warehouse unit: {entry.unit}"
            )

        requested[product.id] = requested.get(product.id, Decimal("0")) + item["quantity"]
        if requested[product.id] > entry.quantity:
            raise ValidationError(
                f"Insufficient quantity for product {product.name}. "
                f"Available: {entry.quantity} {entry.unit}, Requested: {requested[product.id]} {entry.unit}"
            )


def create_invoice(
    *,
    customer_id: int,
    warehouse_id: int,
    items: list[dict],
    paid_amount=None,
    notes: str | None = None,
    invoice_date=None,
) -> Invoice:
    """
    Create an invoice and deduct its quantities from the warehouse.

    Args:
        customer_id: Customer being invoiced
        warehouse_id: Warehouse the goods leave from
        items: [{"product_id", "quantity", "unit", "unit_price"}, ...]
        paid_amount: Amount already paid (default 0)
        notes: Free text
        invoice_date: Business date (default now, UTC)

    Raises:
        NotFoundError: customer, warehouse or product missing
        ValidationError: no items, product not stocked in the warehouse,
            unit mismatch, insufficient quantity, paid_amount > total
    """
    def _op():
        begin_write()

        customer = get_customer(customer_id)
        warehouse = get_warehouse(warehouse_id)

        if not items:
            raise ValidationError("Invoice must have at least one item")

        parsed = _parse_items(items)
        _validate_against_ledger(warehouse.id, parsed)

        total = q2(sum((i["quantity"] * i["unit_price"] for i in parsed), Decimal("0")))
        if total > MAX_AMOUNT:
            raise ValidationError(f"Invoice total ({total}) cannot exceed {MAX_AMOUNT}")

        paid = Decimal("0")
        if paid_amount is not None:
            paid = q2(parse_decimal(paid_amount, "paid_amount", minimum=Decimal("0"), maximum=MAX_AMOUNT))
        if paid > total:
            raise ValidationError(f"Paid amount ({paid}) cannot exceed invoice total ({total})")

        invoice = Invoice(
            invoice_number=next_document_number(document_type="INVOICE", prefix="INV"),
            customer_id=customer.id,
            warehouse_id=warehouse.id,
            invoice_date=invoice_date or utcnow(),
            total=total,
            paid_amount=paid,
            status=derive_status(total, paid),
            notes=notes,
            items=[
                InvoiceItem(
                    product_id=i["product_id"],
                    quantity=i["quantity"],
                    unit=i["unit"],
                    unit_price=i["unit_price"],
                )
                for i in parsed
            ],
        )
        db.session.add(invoice)
        db.session.flush()

        for item in invoice.items:
            ledger_service.adjust(item.product_id, warehouse.id, -item.quantity, unit=item.unit)

        db.session.commit()
        logger.info(
            "Invoice %s created: %s items, total %s, status %s",
            invoice.invoice_number, len(invoice.items), invoice.total, invoice.status,
        )
        return invoice

    return run_with_retry(_op)


def _invoice_query():
    return db.session.query(Invoice).filter(Invoice.deleted_at.is_(None))


def get_invoice(invoice_id: int, *, lock: bool = False) -> Invoice:
    query = _invoice_query().filter(Invoice.id == invoice_id)
    if lock:
        query = lock_for_update(query)
    invoice = query.first()
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


def list_invoices(
    *,
    customer_id: int | None = None,
    warehouse_id: int | None = None,
    status: str | None = None,
) -> list[Invoice]:
    query = _invoice_query()
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if warehouse_id is not None:
        query = query.filter(Invoice.warehouse_id == warehouse_id)
    if status is not None:
        status = status.strip().upper()
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def update_invoice(invoice_id: int, *, paid_amount=_UNSET, notes=_UNSET) -> Invoice:
    """
    Record a payment and/or change notes on a PENDING invoice.

    Items and total are never recomputed here.

    Raises:
        NotFoundError: invoice missing or deleted
        ValidationError: invoice already PAID, paid_amount > total
    """
    def _op():
        begin_write()
        invoice = get_invoice(invoice_id, lock=True)

        if derive_status(invoice.total, invoice.paid_amount) == INVOICE_STATUS_PAID:
            raise ValidationError("Cannot update a paid invoice")

        if paid_amount is not _UNSET and paid_amount is not None:
            paid = q2(parse_decimal(paid_amount, "paid_amount", minimum=Decimal("0"), maximum=MAX_AMOUNT))
            if paid > invoice.total:
                raise ValidationError(
                    f"Paid amount ({paid}) cannot exceed invoice total ({invoice.total})"
                )
            invoice.paid_amount = paid

        if notes is not _UNSET:
            invoice.notes = notes

        invoice.status = derive_status(invoice.total, invoice.paid_amount)

        db.session.commit()
        logger.info("Invoice %s updated: paid %s, status %s", invoice.invoice_number, invoice.paid_amount, invoice.status)
        return invoice

    return run_with_retry(_op)


def refunded_quantities(invoice_id: int) -> dict[int, Decimal]:
    """Quantity already refunded per invoice item id."""
    rows = (
        db.session.query(RefundItem.invoice_item_id, func.sum(RefundItem.refund_quantity))
        .join(InvoiceItem, InvoiceItem.id == RefundItem.invoice_item_id)
        .filter(InvoiceItem.invoice_id == invoice_id)
        .group_by(RefundItem.invoice_item_id)
        .all()
    )
    return {item_id: Decimal(str(qty or 0)) for item_id, qty in rows}


def remove_invoice(invoice_id: int) -> None:
    """
    Soft-delete a PENDING invoice and put its quantities back.

    Any recorded partial payment is discarded with the invoice.

    Each line restores item.quantity minus the quantity already refunded
    against it, not the full item quantity. With no refunds this is the
    full quantity.

    Raises:
        NotFoundError: invoice missing or deleted, ledger row gone
        ValidationError: invoice is PAID, ledger unit changed since creation
    """
    def _op():
        begin_write()
        invoice = get_invoice(invoice_id, lock=True)

        if derive_status(invoice.total, invoice.paid_amount) == INVOICE_STATUS_PAID:
            raise ValidationError("Cannot delete a paid invoice")

        already_refunded = refunded_quantities(invoice.id)
        for item in invoice.items:
            restore = item.quantity - already_refunded.get(item.id, Decimal("0"))
            if restore > 0:
                ledger_service.adjust(item.product_id, invoice.warehouse_id, restore, unit=item.unit)

        invoice.deleted_at = utcnow()

        db.session.commit()
        logger.info("Invoice %s deleted, quantities restored", invoice.invoice_number)

    run_with_retry(_op)
