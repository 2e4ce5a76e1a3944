from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow
from pizzapos.validation import amount_to_json


PAYMENT_METHODS = ("CASH", "CARD", "TRANSFER")
ORDER_TYPES = ("PICKUP", "DELIVERY", "DINE_IN")


class Sale(db.Model):
    """
    Committed purchase.

    Written once, together with its items, the stock decrements and the
    SALE cash movement; never modified afterwards.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_sales_order_number"),
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable daily number (e.g., "19102026-007")
    order_number = db.Column(db.String(32), nullable=False)

    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total = db.Column(db.Numeric(14, 2), nullable=False)
    discount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    delivery_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, index=True)  # CASH, CARD, TRANSFER
    order_type = db.Column(db.String(16), nullable=False)  # PICKUP, DELIVERY, DINE_IN

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    client = db.relationship("Client", backref=db.backref("sales", lazy=True))
    user = db.relationship("User", backref=db.backref("sales", lazy=True))
    items = db.relationship("SaleItem", back_populates="sale", lazy=True, order_by="SaleItem.id")

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "client_id": self.client_id,
            "user_id": self.user_id,
            "total": amount_to_json(self.total),
            "discount": amount_to_json(self.discount),
            "delivery_cost": amount_to_json(self.delivery_cost),
            "payment_method": self.payment_method,
            "order_type": self.order_type,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)

    # Half-and-half pizzas: second flavor shares the item, charged at the higher price
    second_flavor_product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    second_flavor_product_name = db.Column(db.String(128), nullable=True)

    comments = db.Column(db.String(255), nullable=True)
    other_ingredient = db.Column(db.String(255), nullable=True)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product", foreign_keys=[product_id])
    addons = db.relationship("SaleItemAddon", back_populates="sale_item", lazy=True, order_by="SaleItemAddon.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price": amount_to_json(self.price),
            "subtotal": amount_to_json(self.subtotal),
            "second_flavor_product_id": self.second_flavor_product_id,
            "second_flavor_product_name": self.second_flavor_product_name,
            "comments": self.comments,
            "other_ingredient": self.other_ingredient,
            "addons": [addon.to_dict() for addon in self.addons],
        }


class SaleItemAddon(db.Model):
    __tablename__ = "sale_item_addons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_item_id = db.Column(db.Integer, db.ForeignKey("sale_items.id"), nullable=False, index=True)
    addon_id = db.Column(db.Integer, db.ForeignKey("product_addons.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    # Addon price at the time of sale
    price = db.Column(db.Numeric(14, 2), nullable=False)

    sale_item = db.relationship("SaleItem", back_populates="addons")
    addon = db.relationship("ProductAddon")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "addon_id": self.addon_id,
            "addon_name": self.addon.name if self.addon else None,
            "quantity": self.quantity,
            "price": amount_to_json(self.price),
        }


class OrderSequence(db.Model):
    """
    Atomic per-day order counters.

    One row per business date; incrementing it inside the sale transaction
    serializes concurrent checkouts so no two sales share an order number.
    """
    __tablename__ = "order_sequences"
    __table_args__ = (
        db.UniqueConstraint("business_date", name="uq_order_sequences_business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(db.String(8), nullable=False)  # ddMMyyyy
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_date": self.business_date,
            "next_number": self.next_number,
            "updated_at": to_utc_z(self.updated_at),
        }
