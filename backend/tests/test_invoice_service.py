# Overview: Pytest coverage for invoice creation, payment, and removal.

"""
Invoice Engine Tests

Covers:
- Totals and server-assigned numbers
- Status derived from (total, paid_amount) with a 0.01 epsilon
- Validate-then-persist-then-deduct: a failing item leaves no trace
- Round-trip restore on removal
"""

from decimal import Decimal

import pytest
from stockmate.extensions import db
from stockmate.models import Invoice, InvoiceItem
from stockmate.services import invoice_service, ledger_service, product_service, refund_service
from stockmate.validation import NotFoundError, ValidationError

from conftest import invoice_item, refund_item


def _create(customer, warehouse, items, **kwargs) -> Invoice:
    return invoice_service.create_invoice(
        customer_id=customer.id,
        warehouse_id=warehouse.id,
        items=items,
        **kwargs,
    )


def _quantity(product, warehouse) -> Decimal:
    return ledger_service.get_entry(product.id, warehouse.id).quantity


class TestDeriveStatus:

    def test_exact_payment_is_paid(self):
        assert invoice_service.derive_status(Decimal("100.00"), Decimal("100.00")) == "PAID"

    def test_sub_cent_difference_is_paid(self):
        assert invoice_service.derive_status(Decimal("100.00"), Decimal("99.995")) == "PAID"

    def test_partial_payment_is_pending(self):
        assert invoice_service.derive_status(Decimal("100.00"), Decimal("99.00")) == "PENDING"
        assert invoice_service.derive_status(Decimal("100.00"), Decimal("0")) == "PENDING"


class TestCreateInvoice:

    def test_end_to_end_create_pay_and_lock(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 30, 10)])

        assert invoice.total == Decimal("300.00")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.status == "PENDING"
        assert _quantity(product, warehouse) == Decimal("70.000")

        invoice = invoice_service.update_invoice(invoice.id, paid_amount=Decimal("300.00"))
        assert invoice.status == "PAID"

        with pytest.raises(ValidationError, match="Cannot update a paid invoice"):
            invoice_service.update_invoice(invoice.id, notes="late note")

    def test_numbers_are_sequential(self, db_session, customer, warehouse, product):
        first = _create(customer, warehouse, [invoice_item(product, 1, 10)])
        second = _create(customer, warehouse, [invoice_item(product, 1, 10)])

        assert first.invoice_number == "INV-000001"
        assert second.invoice_number == "INV-000002"

    def test_total_sums_lines_and_rounds_money(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [
            invoice_item(product, "2.5", "3.33"),
            invoice_item(product, 1, "0.125"),
        ])

        # 2.50 * 3.33 = 8.325; 1.00 * 0.13 = 0.13
        assert invoice.total == Decimal("8.46")
        assert len(invoice.items) == 2
        assert _quantity(product, warehouse) == Decimal("96.500")

    def test_fully_paid_at_creation(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 10, 10)], paid_amount=100)
        assert invoice.status == "PAID"

    def test_paid_amount_over_total_rejected(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="cannot exceed invoice total"):
            _create(customer, warehouse, [invoice_item(product, 1, 10)], paid_amount=11)

        assert _quantity(product, warehouse) == Decimal("100")

    def test_empty_items_rejected(self, db_session, customer, warehouse):
        with pytest.raises(ValidationError, match="at least one item"):
            _create(customer, warehouse, [])

    def test_missing_customer_is_not_found(self, db_session, warehouse, product):
        with pytest.raises(NotFoundError, match="Customer with ID 99999 not found"):
            invoice_service.create_invoice(
                customer_id=99999, warehouse_id=warehouse.id, items=[invoice_item(product, 1, 1)]
            )

    def test_unit_mismatch_rejected_regardless_of_quantity(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="Unit mismatch"):
            _create(customer, warehouse, [invoice_item(product, "0.01", 10, unit="kg")])

        assert _quantity(product, warehouse) == Decimal("100")
        assert db_session.query(Invoice).count() == 0

    def test_insufficient_quantity_rejected(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="Insufficient quantity"):
            _create(customer, warehouse, [invoice_item(product, "100.01", 10)])

    def test_same_product_lines_are_aggregated(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="Insufficient quantity"):
            _create(customer, warehouse, [invoice_item(product, 60, 10), invoice_item(product, 60, 10)])

        assert _quantity(product, warehouse) == Decimal("100")

    def test_failing_item_leaves_no_partial_deduction(
        self, db_session, customer, warehouse, second_warehouse, fabric, color, product
    ):
        elsewhere = product_service.create_product(
            name="Cotton Blue",
            fabric_id=fabric.id,
            color_id=color.id,
            warehouse_quantities=[{"warehouse_id": second_warehouse.id, "quantity": 50, "unit": "yard"}],
        )

        with pytest.raises(ValidationError, match="not available in this warehouse"):
            _create(customer, warehouse, [invoice_item(product, 10, 10), invoice_item(elsewhere, 1, 10)])

        assert _quantity(product, warehouse) == Decimal("100")
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceItem).count() == 0

    def test_missing_product_is_not_found(self, db_session, customer, warehouse):
        with pytest.raises(NotFoundError, match="Product with ID 99999"):
            _create(customer, warehouse, [{"product_id": 99999, "quantity": 1, "unit": "yard", "unit_price": 1}])

    def test_zero_quantity_rejected(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="quantity must be at least 0.01"):
            _create(customer, warehouse, [invoice_item(product, 0, 10)])

    def test_quantity_rounding_to_zero_rejected(self, db_session, customer, warehouse, product):
        with pytest.raises(ValidationError, match="quantity must be at least 0.01"):
            _create(customer, warehouse, [invoice_item(product, "0.004", 10)])

        assert _quantity(product, warehouse) == Decimal("100")
        assert db_session.query(Invoice).count() == 0

    def test_quantity_rounding_up_to_one_cent_accepted(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, "0.005", 100)])

        assert invoice.items[0].quantity == Decimal("0.01")
        assert invoice.total == Decimal("1.00")
        assert invoice.status == "PENDING"


class TestUpdateInvoice:

    def test_status_follows_paid_amount(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 10, 10)])
        assert invoice.total == Decimal("100.00")

        invoice = invoice_service.update_invoice(invoice.id, paid_amount=Decimal("99.00"))
        assert invoice.status == "PENDING"

        invoice = invoice_service.update_invoice(invoice.id, paid_amount=Decimal("99.995"))
        assert invoice.status == "PAID"

    def test_total_never_changes(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 3, "7.25")])
        total = invoice.total

        invoice = invoice_service.update_invoice(invoice.id, paid_amount=5, notes="deposit")
        assert invoice.total == total
        assert invoice.notes == "deposit"

    def test_paid_over_total_rejected(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 1, 10)])

        with pytest.raises(ValidationError, match="cannot exceed invoice total"):
            invoice_service.update_invoice(invoice.id, paid_amount="10.50")

        db.session.expire_all()
        assert invoice_service.get_invoice(invoice.id).paid_amount == Decimal("0")

    def test_missing_invoice_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            invoice_service.update_invoice(99999, notes="x")


class TestRemoveInvoice:

    def test_round_trip_restores_exact_quantity(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, "25.75", 4)])
        assert _quantity(product, warehouse) == Decimal("74.250")

        invoice_service.remove_invoice(invoice.id)

        assert _quantity(product, warehouse) == Decimal("100.000")
        with pytest.raises(NotFoundError):
            invoice_service.get_invoice(invoice.id)
        assert db_session.get(Invoice, invoice.id).deleted_at is not None

    def test_paid_invoice_cannot_be_removed(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 5, 2)], paid_amount=10)

        with pytest.raises(ValidationError, match="Cannot delete a paid invoice"):
            invoice_service.remove_invoice(invoice.id)

        assert _quantity(product, warehouse) == Decimal("95.000")

    def test_removal_does_not_restore_refunded_quantity_twice(self, db_session, customer, warehouse, product):
        invoice = _create(customer, warehouse, [invoice_item(product, 30, 10)])
        refund_service.create_refund(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            customer_id=customer.id,
            warehouse_id=warehouse.id,
            refund_items=[refund_item(invoice.items[0], 10)],
            total_refund_amount=Decimal("100.00"),
        )
        assert _quantity(product, warehouse) == Decimal("80.000")

        invoice_service.remove_invoice(invoice.id)

        assert _quantity(product, warehouse) == Decimal("100.000")

    def test_removed_invoice_hidden_from_list(self, db_session, customer, warehouse, product):
        keep = _create(customer, warehouse, [invoice_item(product, 1, 10)])
        drop = _create(customer, warehouse, [invoice_item(product, 1, 10)])
        invoice_service.remove_invoice(drop.id)

        assert [inv.id for inv in invoice_service.list_invoices()] == [keep.id]


class TestListInvoices:

    def test_filters(self, db_session, customer, warehouse, product):
        pending = _create(customer, warehouse, [invoice_item(product, 1, 10)])
        paid = _create(customer, warehouse, [invoice_item(product, 1, 10)], paid_amount=10)

        assert [i.id for i in invoice_service.list_invoices(status="paid")] == [paid.id]
        assert [i.id for i in invoice_service.list_invoices(status="PENDING")] == [pending.id]
        assert len(invoice_service.list_invoices(customer_id=customer.id)) == 2
        assert invoice_service.list_invoices(warehouse_id=99999) == []

    def test_bad_status_rejected(self, db_session):
        with pytest.raises(ValidationError, match="status must be one of"):
            invoice_service.list_invoices(status="VOID")
