# Overview: Service-layer operations for products, addons and clients.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import InvalidInputError
from ..extensions import db
from ..models import Client, Product, ProductAddon
from ..models.catalog import PRODUCT_STATUSES
from ..validation import parse_amount, parse_choice, parse_text
from .audit_service import record_audit


def _optional_stock(value) -> int | None:
    """Stock is tracked only when given; negative initial stock is refused."""
    if value is None or value == "":
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidInputError("stock must be an integer or null")
    try:
        stock = int(value)
    except ValueError:
        raise InvalidInputError("stock must be an integer or null")
    if stock < 0:
        raise InvalidInputError("stock cannot be negative")
    return stock


# =============================================================================
# PRODUCTS
# =============================================================================

def create_product(*, user_id: int, data: dict) -> Product:
    product = Product(
        name=parse_text(data.get("name"), "name", required=True, max_length=128),
        description=parse_text(data.get("description"), "description", max_length=1000),
        price=parse_amount(data.get("price"), "price"),
        category=parse_text(data.get("category"), "category", required=True, max_length=64),
        status=parse_choice(data.get("status") or "ACTIVE", "status", PRODUCT_STATUSES),
        stock=_optional_stock(data.get("stock")),
    )
    db.session.add(product)
    db.session.flush()

    record_audit(
        user_id=user_id,
        action="CREATE_PRODUCT",
        table_name="products",
        record_id=product.id,
        new_values=product.to_dict(),
    )
    db.session.commit()
    return product


def list_products(
    *,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Product], int]:
    query = db.session.query(Product)
    if category:
        query = query.filter(Product.category == category)
    if status:
        query = query.filter(Product.status == status.upper())
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))

    total = query.count()
    products = (
        query.order_by(Product.category, Product.name)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return products, total


def create_addon(*, user_id: int, data: dict) -> ProductAddon:
    addon = ProductAddon(
        name=parse_text(data.get("name"), "name", required=True, max_length=128),
        price=parse_amount(data.get("price"), "price", required=False, default=Decimal("0")),
        is_active=bool(data.get("isActive", True)),
    )
    try:
        db.session.add(addon)
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise InvalidInputError("Ya existe un agregado con este nombre")

    record_audit(
        user_id=user_id,
        action="CREATE_PRODUCT_ADDON",
        table_name="product_addons",
        record_id=addon.id,
        new_values=addon.to_dict(),
    )
    db.session.commit()
    return addon


def list_active_addons() -> list[ProductAddon]:
    return db.session.query(ProductAddon).filter_by(is_active=True).order_by(ProductAddon.name).all()


# =============================================================================
# CLIENTS
# =============================================================================

def create_client(*, user_id: int, data: dict) -> Client:
    client = Client(
        name=parse_text(data.get("name"), "name", required=True, max_length=128),
        last_name=parse_text(data.get("lastName"), "lastName", max_length=128) or "",
        email=parse_text(data.get("email"), "email"),
        phone=parse_text(data.get("phone"), "phone", max_length=64),
        cedula=parse_text(data.get("cedula"), "cedula", max_length=32),
        ruc=parse_text(data.get("ruc"), "ruc", max_length=32),
        requires_invoice=bool(data.get("requiresInvoice", False)),
    )
    try:
        db.session.add(client)
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise InvalidInputError("Ya existe un cliente con esta cédula")

    record_audit(
        user_id=user_id,
        action="CREATE_CLIENT",
        table_name="clients",
        record_id=client.id,
        new_values=client.to_dict(),
    )
    db.session.commit()
    return client


def list_clients(*, search: str | None = None, page: int = 1, limit: int = 10) -> tuple[list[Client], int]:
    query = db.session.query(Client)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Client.name.ilike(pattern),
            Client.last_name.ilike(pattern),
            Client.cedula.ilike(pattern),
        ))

    total = query.count()
    clients = (
        query.order_by(Client.created_at.desc(), Client.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return clients, total
