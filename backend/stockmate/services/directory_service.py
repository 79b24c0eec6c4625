# Overview: Existence lookups against the warehouse/customer/product directories.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, Warehouse, Product, Fabric, Color
from ..validation import ConflictError, NotFoundError, ValidationError


def _get_or_404(model, entity: str, entity_id: int):
    obj = db.session.get(model, entity_id)
    if obj is None:
        raise NotFoundError(entity, entity_id)
    return obj


def get_customer(customer_id: int) -> Customer:
    return _get_or_404(Customer, "Customer", customer_id)


def get_warehouse(warehouse_id: int) -> Warehouse:
    return _get_or_404(Warehouse, "Warehouse", warehouse_id)


def get_product(product_id: int) -> Product:
    return _get_or_404(Product, "Product", product_id)


def get_fabric(fabric_id: int) -> Fabric:
    return _get_or_404(Fabric, "Fabric", fabric_id)


def get_color(color_id: int) -> Color:
    return _get_or_404(Color, "Color", color_id)


# Creation is used by the demo seed; callers commit.

def create_warehouse(*, name: str, address: str = "", city: str | None = None, country: str | None = None) -> Warehouse:
    if not name or not name.strip():
        raise ValidationError("name is required")
    warehouse = Warehouse(name=name.strip(), address=address, city=city, country=country)
    db.session.add(warehouse)
    db.session.flush()
    return warehouse


def create_customer(*, name: str, email: str, phone: str | None = None, address: str | None = None) -> Customer:
    if not name or not email:
        raise ValidationError("name and email are required")

    email = email.strip().lower()
    if db.session.query(Customer).filter_by(email=email).first():
        raise ConflictError(f"Customer with email {email} already exists.")

    customer = Customer(name=name.strip(), email=email, phone=phone, address=address)
    db.session.add(customer)
    db.session.flush()
    return customer


def create_fabric(*, name: str, description: str | None = None) -> Fabric:
    if not name or not name.strip():
        raise ValidationError("name is required")
    if db.session.query(Fabric).filter_by(name=name.strip()).first():
        raise ConflictError(f"Fabric {name.strip()} already exists.")

    fabric = Fabric(name=name.strip(), description=description)
    db.session.add(fabric)
    db.session.flush()
    return fabric


def create_color(*, name: str, hex_code: str | None = None) -> Color:
    if not name or not name.strip():
        raise ValidationError("name is required")
    if db.session.query(Color).filter_by(name=name.strip()).first():
        raise ConflictError(f"Color {name.strip()} already exists.")

    color = Color(name=name.strip(), hex_code=hex_code)
    db.session.add(color)
    db.session.flush()
    return color
