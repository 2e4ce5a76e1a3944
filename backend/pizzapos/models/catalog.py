from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow
from pizzapos.validation import amount_to_json


PRODUCT_STATUSES = ("ACTIVE", "INACTIVE")


class Product(db.Model):
    """
    Menu item.

    `stock` is optional: NULL means the product is not stock-tracked
    (made to order) and sales never touch it.
    """
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    category = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="ACTIVE", index=True)
    stock = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": amount_to_json(self.price),
            "category": self.category,
            "status": self.status,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
        }


class ProductAddon(db.Model):
    """Optional extra (topping, sauce) that can be attached to a sale item."""
    __tablename__ = "product_addons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": amount_to_json(self.price),
            "is_active": self.is_active,
        }
