# Overview: Flask API routes for staff accounts (SYSADMIN only).

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import user_service
from ..decorators import require_auth, require_role
from ..validation import parse_page_args, pagination


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role("SYSADMIN")
def list_users_route():
    page, limit = parse_page_args(request.args, default_limit=50, max_limit=500)
    users, total = user_service.list_users(page=page, limit=limit)
    return jsonify({
        "users": [u.to_dict() for u in users],
        "pagination": pagination(page, limit, total),
    }), 200


@users_bp.post("")
@require_auth
@require_role("SYSADMIN")
def create_user_route():
    """
    Create a staff account.

    Request body:
    {
        "username": "maria",
        "password": "at-least-8-chars",
        "name": "María",
        "lastName": "González",      (optional)
        "email": "maria@example.com", (optional)
        "role": "ADMIN",             // USER (default), ADMIN, SYSADMIN
        "isActive": true             (optional)
    }

    The response never includes the password hash.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = user_service.create_user(
            username=data.get("username"),
            password=data.get("password"),
            name=data.get("name"),
            last_name=data.get("lastName") or "",
            email=data.get("email"),
            role=data.get("role") or "USER",
            is_active=data.get("isActive", True),
            created_by=g.current_user.id,
        )
        return jsonify({"user": user.to_dict()}), 201

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500
