# Overview: Request identity and role decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

from .services import user_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Resolve the caller's identity.

    Credentials are verified upstream (reverse proxy / SSO); it forwards the
    authenticated username in the AUTH_USER_HEADER header. Sets:
    - g.current_user: the active User row for that username

    SECURITY: Returns 401 if the header is missing or names no active user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config["AUTH_USER_HEADER"]
        username = (request.headers.get(header) or "").strip()

        if not username:
            return jsonify({"error": "Authentication required"}), 401

        user = user_service.get_active_user(username)
        if not user:
            return jsonify({"error": "Unauthorized"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the caller's role to be one of `roles`.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "error": "Insufficient permissions",
                    "kind": "Forbidden",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
