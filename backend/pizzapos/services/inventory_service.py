# Overview: Service-layer operations for ingredient stock; movements are append-only.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..errors import InvalidInputError, NotFoundError
from ..extensions import db
from ..models import Ingredient, InventoryMovement
from ..models.inventory import INVENTORY_MOVEMENT_TYPES
from ..validation import parse_amount, parse_choice, parse_positive_int, parse_text
from .audit_service import record_audit
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


QUANTITY_PLACES = Decimal("0.001")

# Largest value a Numeric(14, 3) stock column holds
MAX_QUANTITY = Decimal("99999999999.999")


def create_ingredient(*, user_id: int, data: dict) -> Ingredient:
    ingredient = Ingredient(
        name=parse_text(data.get("name"), "name", required=True, max_length=128),
        description=parse_text(data.get("description"), "description", max_length=1000),
        unit=parse_text(data.get("unit"), "unit", required=True, max_length=16),
        current_stock=parse_amount(data.get("currentStock"), "currentStock", required=False,
                                   default=Decimal("0"), quantum=QUANTITY_PLACES, maximum=MAX_QUANTITY),
        min_stock=parse_amount(data.get("minStock"), "minStock", required=False,
                               default=Decimal("0"), quantum=QUANTITY_PLACES, maximum=MAX_QUANTITY),
        cost=parse_amount(data.get("cost"), "cost", required=False, default=Decimal("0")),
    )

    try:
        db.session.add(ingredient)
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise InvalidInputError("Ya existe un ingrediente con este nombre")

    record_audit(
        user_id=user_id,
        action="CREATE_INGREDIENT",
        table_name="ingredients",
        record_id=ingredient.id,
        new_values=ingredient.to_dict(),
    )
    db.session.commit()
    return ingredient


def list_ingredients(*, low_stock: bool = False, page: int = 1, limit: int = 50) -> tuple[list[Ingredient], int]:
    query = db.session.query(Ingredient)
    if low_stock:
        query = query.filter(Ingredient.current_stock <= Ingredient.min_stock)

    total = query.count()
    ingredients = (
        query.order_by(Ingredient.name)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ingredients, total


def record_movement(*, user_id: int, data: dict) -> tuple[InventoryMovement, Ingredient]:
    """
    Apply an ENTRY or EXIT to an ingredient's stock.

    The stock change, the movement row and the audit entry commit together.
    The balance check runs on the locked row, so concurrent EXITs cannot
    both pass on a stale stock figure.
    An EXIT that would leave negative stock is rejected without changes.
    """
    ingredient_id = parse_positive_int(data.get("ingredientId"), "ingredientId")
    movement_type = parse_choice(data.get("type"), "type", INVENTORY_MOVEMENT_TYPES)
    quantity = parse_amount(
        data.get("quantity"), "quantity", allow_zero=False, quantum=QUANTITY_PLACES, maximum=MAX_QUANTITY,
    )
    reason = parse_text(data.get("reason"), "reason")

    def _op():
        begin_write_transaction()
        ingredient = lock_for_update(db.session.query(Ingredient).filter_by(id=ingredient_id)).first()
        if ingredient is None:
            raise NotFoundError("Ingredient not found")

        if movement_type == "ENTRY":
            new_stock = ingredient.current_stock + quantity
        else:
            new_stock = ingredient.current_stock - quantity

        if new_stock < 0:
            raise InvalidInputError(
                "Stock insuficiente para esta operación",
                details={"current_stock": float(ingredient.current_stock), "requested": float(quantity)},
            )
        if new_stock > MAX_QUANTITY:
            raise InvalidInputError(
                "El stock resultante excede el máximo permitido",
                details={"current_stock": float(ingredient.current_stock), "requested": float(quantity)},
            )

        ingredient.current_stock = new_stock

        movement = InventoryMovement(
            ingredient_id=ingredient.id,
            user_id=user_id,
            type=movement_type,
            quantity=quantity,
            reason=reason,
        )
        db.session.add(movement)
        db.session.flush()

        record_audit(
            user_id=user_id,
            action="INVENTORY_MOVEMENT",
            table_name="inventory_movements",
            record_id=movement.id,
            new_values=movement.to_dict(),
        )

        db.session.commit()
        return movement, ingredient

    return run_with_retry(_op)
