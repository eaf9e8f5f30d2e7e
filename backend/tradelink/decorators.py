# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid access token and establish the tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.business: The authenticated Business
    - g.business_id: Its id; every service call is scoped by it
    - g.session_context: The full SessionContext object

    Returns 401 if the Authorization header is missing, or the token is
    unknown, expired, revoked or a refresh token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "code": "AUTHENTICATION_REQUIRED"}), 401

        context = session_service.validate_access_token(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "code": "AUTHENTICATION_REQUIRED"}), 401

        g.business = context.business
        g.business_id = context.business_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function
