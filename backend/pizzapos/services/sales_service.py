"""
Sales Service - one-shot checkout

A sale is created complete: the Sale row, its items and addons, the stock
decrements, the balance increment and the SALE cash movement are written
in one transaction, or nothing is.

Sales are immutable once committed. There is no idempotency key: posting
the same cart twice creates two sales with two order numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import update
from sqlalchemy.orm import selectinload

from ..errors import InvalidInputError, NotFoundError, RegisterClosedError
from ..extensions import db
from ..models import Client, Product, ProductAddon, Sale, SaleItem, SaleItemAddon
from ..models.sales import ORDER_TYPES, PAYMENT_METHODS
from ..time_utils import business_day_bounds, business_today, utcnow
from ..validation import (
    MAX_AMOUNT,
    parse_amount,
    parse_choice,
    parse_optional_id,
    parse_positive_int,
    parse_text,
)
from .audit_service import record_audit
from .cash_register_service import append_movement, lock_cash_register
from .concurrency import begin_write_transaction, run_with_retry
from .sequence_service import next_order_number


@dataclass(frozen=True)
class AddonRequest:
    addon_id: int
    quantity: int


@dataclass(frozen=True)
class ItemRequest:
    product_id: int
    quantity: int
    price: Decimal
    subtotal: Decimal
    addons: tuple[AddonRequest, ...] = ()
    second_flavor_product_id: int | None = None
    second_flavor_product_name: str | None = None
    comments: str | None = None
    other_ingredient: str | None = None


@dataclass(frozen=True)
class SaleRequest:
    items: tuple[ItemRequest, ...]
    total: Decimal
    discount: Decimal
    delivery_cost: Decimal
    payment_method: str
    order_type: str
    client_id: int | None = None
    product_ids: frozenset[int] = field(default_factory=frozenset)
    addon_ids: frozenset[int] = field(default_factory=frozenset)


def _parse_item(raw, index: int) -> ItemRequest:
    if not isinstance(raw, dict):
        raise InvalidInputError(f"items[{index}] must be an object")

    prefix = f"items[{index}]"
    addons = []
    for addon_index, raw_addon in enumerate(raw.get("addons") or []):
        if not isinstance(raw_addon, dict):
            raise InvalidInputError(f"{prefix}.addons[{addon_index}] must be an object")
        addons.append(AddonRequest(
            addon_id=parse_positive_int(raw_addon.get("addonId"), f"{prefix}.addons[{addon_index}].addonId"),
            quantity=parse_positive_int(raw_addon.get("quantity", 1), f"{prefix}.addons[{addon_index}].quantity"),
        ))

    second_flavor = raw.get("secondFlavor") or None
    second_id = second_name = None
    if second_flavor is not None:
        if not isinstance(second_flavor, dict):
            raise InvalidInputError(f"{prefix}.secondFlavor must be an object")
        second_id = parse_positive_int(second_flavor.get("productId"), f"{prefix}.secondFlavor.productId")
        second_name = parse_text(second_flavor.get("productName"), f"{prefix}.secondFlavor.productName", max_length=128)

    return ItemRequest(
        product_id=parse_positive_int(raw.get("productId"), f"{prefix}.productId"),
        quantity=parse_positive_int(raw.get("quantity"), f"{prefix}.quantity"),
        price=parse_amount(raw.get("price"), f"{prefix}.price"),
        subtotal=parse_amount(raw.get("subtotal"), f"{prefix}.subtotal"),
        addons=tuple(addons),
        second_flavor_product_id=second_id,
        second_flavor_product_name=second_name,
        comments=parse_text(raw.get("comments"), f"{prefix}.comments"),
        other_ingredient=parse_text(raw.get("otherIngredient"), f"{prefix}.otherIngredient"),
    )


def parse_sale_request(data) -> SaleRequest:
    """
    Validate a checkout payload (camelCase, as sent by the POS screen).

    Raises InvalidInputError on the first malformed field.
    """
    if not isinstance(data, dict):
        raise InvalidInputError("Request body must be a JSON object")

    raw_items = data.get("items")
    if not raw_items or not isinstance(raw_items, list):
        raise InvalidInputError("At least one item is required")

    items = tuple(_parse_item(raw, i) for i, raw in enumerate(raw_items))

    product_ids = set()
    addon_ids = set()
    for item in items:
        product_ids.add(item.product_id)
        if item.second_flavor_product_id is not None:
            product_ids.add(item.second_flavor_product_id)
        addon_ids.update(addon.addon_id for addon in item.addons)

    return SaleRequest(
        items=items,
        total=parse_amount(data.get("total"), "total"),
        discount=parse_amount(data.get("discount"), "discount", required=False, default=Decimal("0")),
        delivery_cost=parse_amount(data.get("deliveryCost"), "deliveryCost", required=False, default=Decimal("0")),
        payment_method=parse_choice(data.get("paymentMethod"), "paymentMethod", PAYMENT_METHODS),
        order_type=parse_choice(data.get("orderType"), "orderType", ORDER_TYPES),
        client_id=parse_optional_id(data.get("clientId"), "clientId"),
        product_ids=frozenset(product_ids),
        addon_ids=frozenset(addon_ids),
    )


def _load_references(request: SaleRequest) -> dict[int, ProductAddon]:
    """Check every referenced row exists; return addons by id for price snapshots."""
    found_products = {
        product_id
        for (product_id,) in db.session.query(Product.id).filter(Product.id.in_(sorted(request.product_ids)))
    }
    missing = sorted(request.product_ids - found_products)
    if missing:
        raise NotFoundError("Product not found", details={"product_ids": missing})

    addons = {}
    if request.addon_ids:
        addons = {
            addon.id: addon
            for addon in db.session.query(ProductAddon).filter(ProductAddon.id.in_(sorted(request.addon_ids)))
        }
        missing = sorted(request.addon_ids - set(addons))
        if missing:
            raise NotFoundError("Product addon not found", details={"addon_ids": missing})

    if request.client_id is not None and db.session.get(Client, request.client_id) is None:
        raise NotFoundError("Client not found", details={"client_id": request.client_id})

    return addons


def decrement_product_stock(product_id: int, quantity: int) -> None:
    """
    Take `quantity` off a stock-tracked product.

    Products with NULL stock are untracked and left alone. Stock is allowed
    to go below zero (the kitchen may sell what has not been counted in
    yet); that case is logged.
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock.isnot(None))
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return

    remaining = db.session.query(Product.stock).filter_by(id=product_id).scalar()
    if remaining is not None and remaining < 0:
        current_app.logger.warning("Product %s stock is negative (%s) after sale", product_id, remaining)


def create_sale(*, user_id: int, data) -> Sale:
    """
    Check out a cart.

    Raises:
        InvalidInputError: malformed payload, empty cart, or a total that
            would push the balance past MAX_AMOUNT
        RegisterClosedError: the cash register is not open
        NotFoundError: unknown product, addon or client
    """
    request = parse_sale_request(data)
    tz_name = current_app.config["BUSINESS_TIMEZONE"]

    def _op():
        begin_write_transaction()
        register = lock_cash_register()

        if not register.is_open:
            raise RegisterClosedError("La caja debe estar abierta para realizar ventas")

        if register.current_balance + request.total > MAX_AMOUNT:
            raise InvalidInputError(
                "El total excede el saldo máximo de la caja",
                details={"current_balance": float(register.current_balance), "total": float(request.total)},
            )

        addons = _load_references(request)

        now = utcnow()
        order_number = next_order_number(business_today(tz_name, now))

        sale = Sale(
            order_number=order_number,
            client_id=request.client_id,
            user_id=user_id,
            total=request.total,
            discount=request.discount,
            delivery_cost=request.delivery_cost,
            payment_method=request.payment_method,
            order_type=request.order_type,
            created_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        for item in request.items:
            sale_item = SaleItem(
                sale_id=sale.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
                second_flavor_product_id=item.second_flavor_product_id,
                second_flavor_product_name=item.second_flavor_product_name,
                comments=item.comments,
                other_ingredient=item.other_ingredient,
            )
            db.session.add(sale_item)
            db.session.flush()

            for addon in item.addons:
                db.session.add(SaleItemAddon(
                    sale_item_id=sale_item.id,
                    addon_id=addon.addon_id,
                    quantity=addon.quantity,
                    price=addons[addon.addon_id].price,
                ))

            decrement_product_stock(item.product_id, item.quantity)

        register.current_balance = register.current_balance + request.total

        append_movement(
            register,
            user_id=user_id,
            movement_type="SALE",
            amount=request.total,
            description=f"Venta #{order_number}",
            sale_id=sale.id,
            occurred_at=now,
        )

        record_audit(
            user_id=user_id,
            action="CREATE_SALE",
            table_name="sales",
            record_id=sale.id,
            new_values=sale.to_dict(include_items=False),
        )

        db.session.commit()
        return sale

    sale = run_with_retry(_op)
    current_app.logger.info("Sale %s committed (%s %s)", sale.order_number, sale.payment_method, sale.total)
    return sale


# =============================================================================
# QUERIES
# =============================================================================

def _with_details(query):
    return query.options(
        selectinload(Sale.items).selectinload(SaleItem.addons).selectinload(SaleItemAddon.addon),
        selectinload(Sale.items).selectinload(SaleItem.product),
    )


def list_sales(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    client_id: int | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Sale], int]:
    query = db.session.query(Sale)
    if start is not None and end is not None:
        query = query.filter(Sale.created_at >= start, Sale.created_at <= end)
    if client_id is not None:
        query = query.filter(Sale.client_id == client_id)

    total = query.count()
    sales = (
        _with_details(query)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return sales, total


def count_sales_today() -> int:
    tz_name = current_app.config["BUSINESS_TIMEZONE"]
    start, end = business_day_bounds(tz_name, business_today(tz_name))
    return db.session.query(Sale).filter(Sale.created_at >= start, Sale.created_at < end).count()


def get_sale_by_order_number(order_number: str) -> Sale:
    sale = _with_details(db.session.query(Sale)).filter_by(order_number=order_number).first()
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale
