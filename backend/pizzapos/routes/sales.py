# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/pizzapos/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import sales_service
from ..decorators import require_auth
from ..time_utils import parse_iso_datetime, to_utc_z
from ..validation import parse_page_args, pagination


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Check out a cart.

    Request body:
    {
        "clientId": 3,                       (optional)
        "items": [{
            "productId": 1, "quantity": 2, "price": 45000, "subtotal": 90000,
            "addons": [{"addonId": 4, "quantity": 1}],        (optional)
            "secondFlavor": {"productId": 2, "productName": "Napolitana"},  (optional)
            "comments": "sin cebolla", "otherIngredient": null (optional)
        }],
        "total": 95000,
        "discount": 0,
        "deliveryCost": 5000,                (optional)
        "paymentMethod": "CASH",             // CASH, CARD, TRANSFER
        "orderType": "DELIVERY"              // PICKUP, DELIVERY, DINE_IN
    }

    Returns 400 RegisterClosed if the register is not open.
    """
    try:
        sale = sales_service.create_sale(
            user_id=g.current_user.id,
            data=request.get_json(silent=True),
        )
        return jsonify({"sale": sale.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    List sales, newest first.

    Query: ?startDate=ISO&endDate=ISO&clientId=1&page=1&limit=10
    """
    page, limit = parse_page_args(request.args)
    try:
        start = parse_iso_datetime(request.args.get("startDate"))
        end = parse_iso_datetime(request.args.get("endDate"))
    except ValueError:
        return jsonify({"error": "startDate and endDate must be ISO-8601 datetimes", "kind": "InvalidInput"}), 400

    sales, total = sales_service.list_sales(
        start=start,
        end=end,
        client_id=request.args.get("clientId", type=int),
        page=page,
        limit=limit,
    )
    return jsonify({
        "sales": [s.to_dict() for s in sales],
        "pagination": pagination(page, limit, total),
    }), 200


@sales_bp.get("/count-today")
@require_auth
def count_today_route():
    return jsonify({"count": sales_service.count_sales_today()}), 200


@sales_bp.get("/verify/<order_number>")
def verify_sale_route(order_number: str):
    """
    Public receipt verification (target of the QR code on printed tickets).

    Only exposes what is already printed on the receipt.
    """
    try:
        sale = sales_service.get_sale_by_order_number(order_number)
    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({
        "order_number": sale.order_number,
        "created_at": to_utc_z(sale.created_at),
        "total": float(sale.total),
        "payment_method": sale.payment_method,
        "order_type": sale.order_type,
        "items": [
            {
                "product_name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "subtotal": float(item.subtotal),
            }
            for item in sale.items
        ],
    }), 200
