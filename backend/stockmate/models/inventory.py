from __future__ import annotations

from ..extensions import db
from stockmate.time_utils import to_utc_z


class ProductWarehouse(db.Model):
    """
    Ledger row: how much of a product sits in a warehouse, and in what unit.

    INVARIANTS:
    - At most one row per (product_id, warehouse_id).
    - unit is the already-converted unit (yard / kg / raw piece units) and
      is fixed when the row is created.
    - quantity >= 0 whenever callers pre-check before adjusting.

    version_id guards concurrent adjustments (compare-and-swap on UPDATE).
    """
    __tablename__ = "product_warehouses"
    __table_args__ = (
        db.UniqueConstraint("product_id", "warehouse_id", name="uq_product_warehouses_product_warehouse"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    warehouse_id = db.Column(
        db.Integer, db.ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # 3 decimals keeps the converter's rounded value intact (10 m -> 10.936 yd)
    quantity = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    unit = db.Column(db.String(16), nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<ProductWarehouse product_id={self.product_id} warehouse_id={self.warehouse_id} "
            f"quantity={self.quantity} unit={self.unit!r}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "version_id": self.version_id,
            "updated_at": to_utc_z(self.updated_at),
        }


class DocumentSequence(db.Model):
    """Per-document-type counter for human-readable numbers (INV-000001)."""
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", name="uq_document_sequences_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)


class Inventory(db.Model):
    """
    Legacy single-unit stock row, kept alongside the quantity ledger.

    quantity is always yard: intake and adjustments run through the standard
    (length/weight -> yard) converter. Nothing here is read or written by
    invoices or refunds.

    A row is "low stock" when quantity <= minimum_quantity.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        db.UniqueConstraint("warehouse_id", "product_id", name="uq_inventory_warehouse_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(
        db.Integer, db.ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = db.Column(
        db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )

    quantity = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    unit = db.Column(db.String(16), nullable=False, default="yard")
    minimum_quantity = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    maximum_quantity = db.Column(db.Numeric(12, 3), nullable=True)
    location_code = db.Column(db.String(50), nullable=True)
    last_restocked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<Inventory warehouse_id={self.warehouse_id} product_id={self.product_id} "
            f"quantity={self.quantity} minimum={self.minimum_quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouse_id": self.warehouse_id,
            "product_id": self.product_id,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "minimum_quantity": str(self.minimum_quantity),
            "maximum_quantity": str(self.maximum_quantity) if self.maximum_quantity is not None else None,
            "location_code": self.location_code,
            "last_restocked_at": to_utc_z(self.last_restocked_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
