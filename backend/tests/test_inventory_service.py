from decimal import Decimal

import pytest

from pizzapos.errors import InvalidInputError, NotFoundError
from pizzapos.models import AuditLog, Ingredient, InventoryMovement
from pizzapos.services import inventory_service


@pytest.fixture
def flour(admin):
    return inventory_service.create_ingredient(user_id=admin.id, data={
        "name": "Harina 000",
        "unit": "kg",
        "currentStock": "25.5",
        "minStock": 10,
        "cost": 6500,
    })


def test_create_ingredient(flour):
    assert flour.current_stock == Decimal("25.500")
    assert flour.min_stock == Decimal("10.000")
    assert flour.is_low_stock is False
    assert AuditLog.query.filter_by(action="CREATE_INGREDIENT").count() == 1


def test_duplicate_ingredient_name(admin, flour):
    with pytest.raises(InvalidInputError):
        inventory_service.create_ingredient(user_id=admin.id, data={"name": "Harina 000", "unit": "kg"})


def test_entry_and_exit_adjust_stock(cashier, flour):
    movement, ingredient = inventory_service.record_movement(user_id=cashier.id, data={
        "ingredientId": flour.id, "type": "entry", "quantity": 4.5, "reason": "Compra",
    })
    assert movement.type == "ENTRY"
    assert ingredient.current_stock == Decimal("30.000")

    _, ingredient = inventory_service.record_movement(user_id=cashier.id, data={
        "ingredientId": flour.id, "type": "EXIT", "quantity": 30,
    })
    assert ingredient.current_stock == Decimal("0.000")
    assert ingredient.is_low_stock is True


def test_exit_cannot_go_negative(cashier, flour, db_session):
    with pytest.raises(InvalidInputError) as exc_info:
        inventory_service.record_movement(user_id=cashier.id, data={
            "ingredientId": flour.id, "type": "EXIT", "quantity": 26,
        })

    assert str(exc_info.value) == "Stock insuficiente para esta operación"
    assert InventoryMovement.query.count() == 0
    assert db_session.get(Ingredient, flour.id).current_stock == Decimal("25.500")


def test_unknown_ingredient(cashier, db_session):
    with pytest.raises(NotFoundError):
        inventory_service.record_movement(user_id=cashier.id, data={
            "ingredientId": 77, "type": "ENTRY", "quantity": 1,
        })


@pytest.mark.parametrize("data", [
    {"type": "ENTRY", "quantity": 1},
    {"ingredientId": 1, "type": "MOVE", "quantity": 1},
    {"ingredientId": 1, "type": "ENTRY", "quantity": 0},
])
def test_invalid_movement_payloads(cashier, data):
    with pytest.raises(InvalidInputError):
        inventory_service.record_movement(user_id=cashier.id, data=data)


def test_low_stock_filter(admin, flour):
    inventory_service.create_ingredient(user_id=admin.id, data={
        "name": "Muzzarella", "unit": "kg", "currentStock": 2, "minStock": 5,
    })

    ingredients, total = inventory_service.list_ingredients(low_stock=True)

    assert total == 1
    assert ingredients[0].name == "Muzzarella"
