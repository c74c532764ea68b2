# Overview: Request and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .permissions import role_has_permission, validate_permission_code
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _set_context(context) -> None:
    g.current_user = context.user
    g.role = context.role
    g.session_context = context


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets on Flask g:
    - g.current_user: the authenticated User
    - g.role: role captured on the session
    - g.session_context: the full SessionContext

    Returns 401 if the header is missing, the token is unknown, expired or
    revoked, or the account has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        _set_context(context)
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Attach the caller when a valid token is sent; continue anonymously otherwise.

    g.current_user is None for anonymous callers.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        g.role = None
        token = _bearer_token()
        if token is not None:
            context = session_service.validate_session(token)
            if context:
                _set_context(context)
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require a capability from the role table. Use after @require_auth.
    """
    if not validate_permission_code(capability):
        raise ValueError(f"Unknown capability: {capability}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not role_has_permission(g.role, capability):
                current_app.logger.warning(
                    "Permission denied: user %s (%s) lacks %s on %s %s",
                    g.current_user.id, g.role, capability, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": capability,
                    "message": f"Role '{g.role}' lacks permission: {capability}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_capability(*capabilities):
    """Require at least one of the capabilities. Use after @require_auth."""
    unknown = [code for code in capabilities if not validate_permission_code(code)]
    if unknown:
        raise ValueError(f"Unknown capability: {', '.join(unknown)}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not any(role_has_permission(g.role, code) for code in capabilities):
                current_app.logger.warning(
                    "Permission denied: user %s (%s) lacks any of %s on %s %s",
                    g.current_user.id, g.role, ",".join(capabilities), request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(capabilities),
                    "message": f"Requires any of: {', '.join(capabilities)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
