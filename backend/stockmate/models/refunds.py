from __future__ import annotations

from ..extensions import db
from stockmate.time_utils import to_utc_z


class Refund(db.Model):
    """
    Partial reversal of an invoice. Immutable once created.

    Each RefundItem points at the original InvoiceItem it reverses so the
    quantity already refunded per invoice line can be summed.
    """
    __tablename__ = "refunds"
    __table_args__ = (
        db.UniqueConstraint("refund_number", name="uq_refunds_refund_number"),
        db.Index("ix_refunds_invoice_created", "invoice_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    refund_number = db.Column(db.String(50), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)

    total_refund_amount = db.Column(db.Numeric(10, 2), nullable=False)
    reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer")
    invoice = db.relationship("Invoice")
    warehouse = db.relationship("Warehouse")
    items = db.relationship(
        "RefundItem",
        back_populates="refund",
        cascade="all, delete-orphan",
        order_by="RefundItem.id",
    )

    def __repr__(self) -> str:
        return f"<Refund id={self.id} number={self.refund_number!r} invoice_id={self.invoice_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refund_number": self.refund_number,
            "customer_id": self.customer_id,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice.invoice_number if self.invoice else None,
            "warehouse_id": self.warehouse_id,
            "total_refund_amount": str(self.total_refund_amount),
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
            "items": [item.to_dict() for item in self.items],
        }


class RefundItem(db.Model):
    __tablename__ = "refund_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    refund_id = db.Column(
        db.Integer, db.ForeignKey("refunds.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_item_id = db.Column(db.Integer, db.ForeignKey("invoice_items.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    original_quantity = db.Column(db.Numeric(10, 2), nullable=False)
    refund_quantity = db.Column(db.Numeric(10, 2), nullable=False)
    unit = db.Column(db.String(16), nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=False)

    refund = db.relationship("Refund", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "refund_id": self.refund_id,
            "invoice_item_id": self.invoice_item_id,
            "product_id": self.product_id,
            "original_quantity": str(self.original_quantity),
            "refund_quantity": str(self.refund_quantity),
            "unit": self.unit,
            "unit_price": str(self.unit_price),
            "refund_amount": str(self.refund_amount),
        }
