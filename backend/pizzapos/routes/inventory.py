# Overview: Flask API routes for ingredient inventory; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..models.auth import CASH_ADMIN_ROLES
from ..services import inventory_service
from ..decorators import require_auth, require_role
from ..validation import parse_page_args, pagination


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_ingredients_route():
    """Query: ?lowStock=true&page=1&limit=50"""
    page, limit = parse_page_args(request.args, default_limit=50, max_limit=500)
    low_stock = request.args.get("lowStock", "").lower() == "true"
    ingredients, total = inventory_service.list_ingredients(low_stock=low_stock, page=page, limit=limit)
    return jsonify({
        "ingredients": [i.to_dict() for i in ingredients],
        "pagination": pagination(page, limit, total),
    }), 200


@inventory_bp.post("")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def create_ingredient_route():
    try:
        ingredient = inventory_service.create_ingredient(
            user_id=g.current_user.id,
            data=request.get_json(silent=True) or {},
        )
        return jsonify({"ingredient": ingredient.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create ingredient")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/movements")
@require_auth
def create_movement_route():
    """
    Record an ingredient ENTRY or EXIT.

    Request body:
    {
        "ingredientId": 1,
        "type": "EXIT",
        "quantity": 2.5,
        "reason": "Merma"  (optional)
    }
    """
    try:
        movement, ingredient = inventory_service.record_movement(
            user_id=g.current_user.id,
            data=request.get_json(silent=True) or {},
        )
        return jsonify({
            "movement": movement.to_dict(),
            "ingredient": ingredient.to_dict(),
        }), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to record inventory movement")
        return jsonify({"error": "Internal server error"}), 500
