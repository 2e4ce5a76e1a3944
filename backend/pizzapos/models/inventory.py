from __future__ import annotations

from ..extensions import db
from pizzapos.time_utils import to_utc_z, utcnow
from pizzapos.validation import amount_to_json


INVENTORY_MOVEMENT_TYPES = ("ENTRY", "EXIT")


class Ingredient(db.Model):
    __tablename__ = "ingredients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    unit = db.Column(db.String(16), nullable=False)  # kg, l, unit...

    current_stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    min_stock = db.Column(db.Numeric(14, 3), nullable=False, default=0)
    cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)

    # Optimistic-lock counter; a stale stock write raises StaleDataError
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "unit": self.unit,
            "current_stock": amount_to_json(self.current_stock),
            "min_stock": amount_to_json(self.min_stock),
            "cost": amount_to_json(self.cost),
            "is_low_stock": self.is_low_stock,
        }


class InventoryMovement(db.Model):
    """
    Append-only record of an ingredient stock change.

    ENTRY adds quantity, EXIT removes it. Rows are never updated or deleted.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.Index("ix_inventory_movements_ingredient_created", "ingredient_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ingredient_id = db.Column(db.Integer, db.ForeignKey("ingredients.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    ingredient = db.relationship("Ingredient", backref=db.backref("movements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ingredient_id": self.ingredient_id,
            "user_id": self.user_id,
            "type": self.type,
            "quantity": amount_to_json(self.quantity),
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
