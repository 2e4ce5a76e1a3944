# Overview: Flask API routes for products, product addons and clients.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..models.auth import CASH_ADMIN_ROLES
from ..services import catalog_service
from ..decorators import require_auth, require_role
from ..validation import parse_page_args, pagination


products_bp = Blueprint("products", __name__, url_prefix="/api/products")
addons_bp = Blueprint("product_addons", __name__, url_prefix="/api/product-addons")
clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@products_bp.get("")
@require_auth
def list_products_route():
    page, limit = parse_page_args(request.args, default_limit=50, max_limit=500)
    products, total = catalog_service.list_products(
        category=request.args.get("category"),
        status=request.args.get("status"),
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return jsonify({
        "products": [p.to_dict() for p in products],
        "pagination": pagination(page, limit, total),
    }), 200


@products_bp.post("")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def create_product_route():
    try:
        product = catalog_service.create_product(
            user_id=g.current_user.id,
            data=request.get_json(silent=True) or {},
        )
        return jsonify({"product": product.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@addons_bp.get("")
@require_auth
def list_addons_route():
    return jsonify({"addons": [a.to_dict() for a in catalog_service.list_active_addons()]}), 200


@addons_bp.post("")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def create_addon_route():
    try:
        addon = catalog_service.create_addon(
            user_id=g.current_user.id,
            data=request.get_json(silent=True) or {},
        )
        return jsonify({"addon": addon.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product addon")
        return jsonify({"error": "Internal server error"}), 500


@clients_bp.get("")
@require_auth
def list_clients_route():
    page, limit = parse_page_args(request.args)
    clients, total = catalog_service.list_clients(
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return jsonify({
        "clients": [c.to_dict() for c in clients],
        "pagination": pagination(page, limit, total),
    }), 200


@clients_bp.post("")
@require_auth
def create_client_route():
    try:
        client = catalog_service.create_client(
            user_id=g.current_user.id,
            data=request.get_json(silent=True) or {},
        )
        return jsonify({"client": client.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create client")
        return jsonify({"error": "Internal server error"}), 500
