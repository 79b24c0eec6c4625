from __future__ import annotations

from ..extensions import db
from stockmate.time_utils import to_utc_z


def _money(value):
    return str(value) if value is not None else None


class Warehouse(db.Model):
    """Physical location holding product stock."""
    __tablename__ = "warehouses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    address = db.Column(db.String(255), nullable=False, default="")
    city = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(50), nullable=True)
    capacity = db.Column(db.Numeric(10, 2), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "capacity": _money(self.capacity),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Customer(db.Model):
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_customers_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    address = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class Fabric(db.Model):
    """Fiber / fabric type (cotton, linen, ...)."""
    __tablename__ = "fabrics"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_fabrics_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description, "is_active": self.is_active}


class Color(db.Model):
    __tablename__ = "colors"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_colors_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    hex_code = db.Column(db.String(7), nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "hex_code": self.hex_code}


class Product(db.Model):
    """
    A fabric variant: one fabric type in one color.

    Stock is NOT stored here. Per-warehouse quantities live in
    ProductWarehouse rows keyed by (product_id, warehouse_id).

    weight/unit are the legacy single-unit fields; they are normalized with
    the standard (length/weight -> yard) converter and never touch the ledger.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_fabric_color", "fabric_id", "color_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    fabric_id = db.Column(db.Integer, db.ForeignKey("fabrics.id"), nullable=False, index=True)
    color_id = db.Column(db.Integer, db.ForeignKey("colors.id"), nullable=False, index=True)

    price = db.Column(db.Numeric(10, 2), nullable=True)
    weight = db.Column(db.Numeric(12, 3), nullable=True)
    unit = db.Column(db.String(50), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    fabric = db.relationship("Fabric")
    color = db.relationship("Color")

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "fabric_id": self.fabric_id,
            "color_id": self.color_id,
            "price": _money(self.price),
            "weight": _money(self.weight),
            "unit": self.unit,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
