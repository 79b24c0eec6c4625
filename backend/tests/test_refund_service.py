# Overview: Pytest coverage for refunds against invoices.

"""
Refund Engine Tests

Covers:
- Quantity restored into the invoice's warehouse
- Declared total checked against the item sum with a 0.01 epsilon
- Invoice number / product / quantity guards
- Cumulative guard across refunds of the same invoice item
- A failure while restoring quantity leaves no refund behind
"""

from decimal import Decimal

import pytest
from stockmate.models import DocumentSequence, Refund, RefundItem
from stockmate.services import invoice_service, ledger_service, product_service, refund_service
from stockmate.validation import NotFoundError, ValidationError

from conftest import invoice_item, refund_item


@pytest.fixture
def invoice(db_session, customer, warehouse, product):
    """Invoice for 30 yard of P at 10.00, unpaid."""
    return invoice_service.create_invoice(
        customer_id=customer.id,
        warehouse_id=warehouse.id,
        items=[invoice_item(product, 30, 10)],
    )


def _refund(invoice, items, total, **overrides):
    kwargs = dict(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        warehouse_id=invoice.warehouse_id,
        refund_items=items,
        total_refund_amount=total,
    )
    kwargs.update(overrides)
    return refund_service.create_refund(**kwargs)


def _quantity(product, warehouse) -> Decimal:
    return ledger_service.get_entry(product.id, warehouse.id).quantity


class TestCreateRefund:

    def test_partial_refund_restores_quantity(self, db_session, invoice, product, warehouse):
        assert _quantity(product, warehouse) == Decimal("70.000")

        refund = _refund(invoice, [refund_item(invoice.items[0], 10)], Decimal("100.00"), reason="Damaged roll")

        assert refund.refund_number == "RF-000001"
        assert refund.total_refund_amount == Decimal("100.00")
        assert refund.reason == "Damaged roll"
        assert len(refund.items) == 1
        assert refund.items[0].refund_amount == Decimal("100.00")
        assert refund.items[0].invoice_item_id == invoice.items[0].id
        assert _quantity(product, warehouse) == Decimal("80.000")

    def test_refund_does_not_touch_invoice_payment(self, db_session, invoice):
        _refund(invoice, [refund_item(invoice.items[0], 10)], 100)

        refreshed = invoice_service.get_invoice(invoice.id)
        assert refreshed.status == "PENDING"
        assert refreshed.total == Decimal("300.00")

    def test_total_outside_epsilon_rejected(self, db_session, customer, warehouse, product):
        invoice = invoice_service.create_invoice(
            customer_id=customer.id, warehouse_id=warehouse.id, items=[invoice_item(product, 2, 12)]
        )

        with pytest.raises(ValidationError, match="Total refund amount mismatch"):
            _refund(invoice, [refund_item(invoice.items[0], 2, Decimal("24.00"))], Decimal("24.02"))

        assert db_session.query(Refund).count() == 0
        assert _quantity(product, warehouse) == Decimal("98.000")

    def test_total_inside_epsilon_accepted(self, db_session, customer, warehouse, product):
        invoice = invoice_service.create_invoice(
            customer_id=customer.id, warehouse_id=warehouse.id, items=[invoice_item(product, 2, 12)]
        )

        refund = _refund(invoice, [refund_item(invoice.items[0], 2, Decimal("24.00"))], Decimal("24.005"))

        assert refund.id is not None
        assert _quantity(product, warehouse) == Decimal("100.000")

    def test_invoice_number_mismatch_rejected(self, db_session, invoice):
        with pytest.raises(ValidationError, match="Invoice number mismatch. Expected: INV-000001, Provided: INV-999999"):
            _refund(invoice, [refund_item(invoice.items[0], 1)], 10, invoice_number="INV-999999")

    def test_empty_items_rejected(self, db_session, invoice):
        with pytest.raises(ValidationError, match="at least one item"):
            _refund(invoice, [], 0)

    def test_unknown_invoice_item_is_not_found(self, db_session, invoice):
        item = refund_item(invoice.items[0], 1)
        item["item_id"] = 99999

        with pytest.raises(NotFoundError, match="not found in invoice"):
            _refund(invoice, [item], 10)

    def test_product_mismatch_rejected(self, db_session, invoice, bare_product):
        item = refund_item(invoice.items[0], 1)
        item["product_id"] = bare_product.id

        with pytest.raises(ValidationError, match="Product mismatch"):
            _refund(invoice, [item], 10)

    def test_refund_over_original_rejected(self, db_session, invoice):
        item = refund_item(invoice.items[0], 5)
        item["original_quantity"] = 4

        with pytest.raises(ValidationError, match="cannot exceed original quantity"):
            _refund(invoice, [item], 50)

    def test_refund_over_invoiced_quantity_rejected(self, db_session, invoice):
        item = refund_item(invoice.items[0], 31)
        item["original_quantity"] = 40

        with pytest.raises(ValidationError, match="cannot exceed invoice item quantity"):
            _refund(invoice, [item], 310)

    def test_cumulative_refunds_capped_at_invoiced_quantity(self, db_session, invoice, product, warehouse):
        _refund(invoice, [refund_item(invoice.items[0], 20)], 200)

        with pytest.raises(ValidationError, match="already refunded: 20"):
            _refund(invoice, [refund_item(invoice.items[0], 15)], 150)

        assert _quantity(product, warehouse) == Decimal("90.000")
        assert db_session.query(Refund).count() == 1

    def test_repeated_lines_in_one_refund_are_summed(self, db_session, invoice):
        line = invoice.items[0]
        with pytest.raises(ValidationError, match="Cannot refund"):
            _refund(invoice, [refund_item(line, 20), refund_item(line, 20)], 400)

    def test_refund_quantity_rounding_to_zero_rejected(self, db_session, invoice, product, warehouse):
        with pytest.raises(ValidationError, match="refund_quantity must be at least 0.01"):
            _refund(invoice, [refund_item(invoice.items[0], "0.004", 0)], 0)

        assert db_session.query(Refund).count() == 0
        assert db_session.query(RefundItem).count() == 0
        assert _quantity(product, warehouse) == Decimal("70.000")

    def test_missing_invoice_is_not_found(self, db_session, invoice):
        with pytest.raises(NotFoundError, match="Invoice with ID 99999"):
            _refund(invoice, [refund_item(invoice.items[0], 1)], 10, invoice_id=99999)


class TestRefundRollback:
    """Quantity restore runs in the same unit of work as the refund rows."""

    def test_unit_change_in_ledger_rolls_back_refund(self, db_session, invoice, product, warehouse):
        product_service.update_product(
            product.id, warehouse_quantities=[{"warehouse_id": warehouse.id, "quantity": 50, "unit": "kg"}]
        )

        with pytest.raises(ValidationError, match="Refund unit: yard, Warehouse unit: kg"):
            _refund(invoice, [refund_item(invoice.items[0], 10)], 100)

        assert db_session.query(Refund).count() == 0
        assert db_session.query(RefundItem).count() == 0
        assert db_session.query(DocumentSequence).filter_by(document_type="REFUND").first() is None
        assert _quantity(product, warehouse) == Decimal("50.000")

    def test_missing_ledger_row_rolls_back_refund(self, db_session, invoice, product, warehouse, second_warehouse):
        product_service.update_product(
            product.id, warehouse_quantities=[{"warehouse_id": second_warehouse.id, "quantity": 5, "unit": "yard"}]
        )

        with pytest.raises(NotFoundError, match=f"not available in warehouse {warehouse.id}"):
            _refund(invoice, [refund_item(invoice.items[0], 10)], 100)

        assert db_session.query(Refund).count() == 0


class TestRefundQueries:

    def test_get_and_list(self, db_session, invoice):
        first = _refund(invoice, [refund_item(invoice.items[0], 1)], 10)
        second = _refund(invoice, [refund_item(invoice.items[0], 2)], 20)

        assert refund_service.get_refund(first.id).refund_number == "RF-000001"
        assert second.refund_number == "RF-000002"
        assert {r.id for r in refund_service.get_invoice_refunds(invoice.id)} == {first.id, second.id}
        assert len(refund_service.list_refunds()) == 2

    def test_missing_refund_is_not_found(self, db_session):
        with pytest.raises(NotFoundError, match="Refund with ID 99999 not found"):
            refund_service.get_refund(99999)

    def test_invoice_refunds_require_invoice(self, db_session):
        with pytest.raises(NotFoundError):
            refund_service.get_invoice_refunds(99999)
