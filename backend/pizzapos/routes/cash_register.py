# Overview: Flask API routes for the cash register; parses input and returns JSON responses.

# backend/pizzapos/routes/cash_register.py
"""
Cash Register API Routes

DESIGN:
- Open / close: any authenticated staff member
- Extract: ADMIN or SYSADMIN (also enforced by the service)
- Status and movement history: ADMIN or SYSADMIN
- Every mutation is a single ledger transaction (see cash_register_service)
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..models.auth import CASH_ADMIN_ROLES
from ..services import cash_register_service
from ..decorators import require_auth, require_role
from ..validation import parse_page_args, pagination


cash_register_bp = Blueprint("cash_register", __name__, url_prefix="/api/cash-register")
cash_tickets_bp = Blueprint("cash_tickets", __name__, url_prefix="/api/cash-tickets")


@cash_register_bp.get("")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def get_cash_register_route():
    """
    Register state plus paginated movement history (newest first).

    Query: ?page=1&limit=10
    """
    page, limit = parse_page_args(request.args)
    try:
        register = cash_register_service.ensure_cash_register()
        movements, total = cash_register_service.list_movements(page=page, limit=limit)

        return jsonify({
            "cash_register": register.to_dict(),
            "movements": [m.to_dict() for m in movements],
            "movements_total": total,
            "pagination": pagination(page, limit, total),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to load cash register")
        return jsonify({"error": "Internal server error"}), 500


@cash_register_bp.get("/summary")
@require_auth
def get_summary_route():
    """Totals by payment method for the current (or last) session."""
    return jsonify(cash_register_service.get_session_summary()), 200


@cash_register_bp.post("/open")
@require_auth
def open_register_route():
    """
    Open the register.

    Request body:
    {
        "initialAmount": 50000
    }

    Returns 400 (InvalidState) if already open.
    """
    try:
        data = request.get_json(silent=True) or {}
        register, movement = cash_register_service.open_register(
            user_id=g.current_user.id,
            initial_amount=data.get("initialAmount"),
        )
        return jsonify({
            "cash_register": register.to_dict(),
            "movement": movement.to_dict(),
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to open cash register")
        return jsonify({"error": "Internal server error"}), 500


@cash_register_bp.post("/extract")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def extract_cash_route():
    """
    Remove cash from the drawer.

    Request body:
    {
        "amount": 20000,
        "description": "Pago a proveedor"  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        register, movement = cash_register_service.extract_cash(
            user_id=g.current_user.id,
            user_role=g.current_user.role,
            amount=data.get("amount"),
            description=data.get("description"),
        )
        return jsonify({
            "cash_register": register.to_dict(),
            "movement": movement.to_dict(),
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to extract cash")
        return jsonify({"error": "Internal server error"}), 500


@cash_register_bp.post("/close")
@require_auth
def close_register_route():
    """
    Close the register and generate the session ticket.

    Request body:
    {
        "finalAmount": 64500  // cash physically counted
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        register, movement, ticket = cash_register_service.close_register(
            user_id=g.current_user.id,
            final_amount=data.get("finalAmount"),
        )
        return jsonify({
            "cash_register": register.to_dict(),
            "movement": movement.to_dict(),
            "cash_ticket": ticket.to_dict(),
        }), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close cash register")
        return jsonify({"error": "Internal server error"}), 500


@cash_tickets_bp.get("")
@require_auth
def list_cash_tickets_route():
    page, limit = parse_page_args(request.args)
    tickets, total = cash_register_service.list_cash_tickets(page=page, limit=limit)
    return jsonify({
        "tickets": [t.to_dict() for t in tickets],
        "pagination": pagination(page, limit, total),
    }), 200
