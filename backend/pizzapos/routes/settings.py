# Overview: Flask API routes for system configuration (SYSADMIN only).

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import LedgerError
from ..services import settings_service
from ..decorators import require_auth, require_role


settings_bp = Blueprint("settings", __name__, url_prefix="/api/config")


@settings_bp.get("")
@require_auth
@require_role("SYSADMIN")
def get_config_route():
    return jsonify({"config": settings_service.get_config().to_dict()}), 200


@settings_bp.put("")
@require_auth
@require_role("SYSADMIN")
def update_config_route():
    try:
        config = settings_service.update_config(
            user_id=g.current_user.id,
            data=request.get_json(silent=True),
        )
        return jsonify({"config": config.to_dict()}), 200

    except LedgerError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update config")
        return jsonify({"error": "Internal server error"}), 500
