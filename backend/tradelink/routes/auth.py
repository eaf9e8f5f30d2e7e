# Overview: Flask API routes for signup, OTP login and session tokens.

"""
Authentication API routes

- Phone + OTP verification through the IdentityVerifier capability
- Opaque bearer tokens: short-lived access + single-use refresh
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, bearer_token
from ..errors import CommerceError, ValidationError, error_response, internal_error_response
from ..services import auth_service, session_service
from ..validation import require_text


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

PROFILE_FIELDS = ("business_name", "owner_name", "gstin", "location")
OPTIONAL_PROFILE_FIELDS = ("business_type", "owner_image", "business_image")


def _client_info() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.remote_addr,
    }


@auth_bp.post("/signup")
def signup_route():
    """Register a Business for a verified phone and log it in."""
    try:
        data = request.get_json(silent=True) or {}
        profile = {field: require_text(data.get(field), field) for field in PROFILE_FIELDS}
        for field in OPTIONAL_PROFILE_FIELDS:
            value = data.get(field)
            if value is not None:
                profile[field] = require_text(value, field, max_length=512)

        business = auth_service.signup(data.get("phone"), data.get("otp"), profile)
        tokens = session_service.create_token_pair(business.id, **_client_info())

        return jsonify({"business": business.to_dict(), "tokens": tokens.to_dict()}), 201

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to sign up business")
        return internal_error_response()


@auth_bp.post("/login")
def login_route():
    """Verify phone + OTP and issue a token pair."""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("phone") or not data.get("otp"):
            raise ValidationError("phone and otp required")

        business = auth_service.login(data["phone"], data["otp"])
        tokens = session_service.create_token_pair(business.id, **_client_info())

        return jsonify({"business": business.to_dict(), "tokens": tokens.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to log in")
        return internal_error_response()


@auth_bp.post("/refresh")
def refresh_route():
    """Exchange a refresh token for a new pair; the old one is revoked."""
    try:
        data = request.get_json(silent=True) or {}
        refresh_token = data.get("refresh_token")
        if not refresh_token:
            raise ValidationError("refresh_token required")

        tokens = session_service.refresh_tokens(refresh_token, **_client_info())
        return jsonify({"tokens": tokens.to_dict()}), 200

    except CommerceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to refresh session")
        return internal_error_response()


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the presented access token (and the refresh token, if sent)."""
    try:
        session_service.revoke_session(bearer_token())
        data = request.get_json(silent=True) or {}
        if data.get("refresh_token"):
            session_service.revoke_session(data["refresh_token"])
        return jsonify({"message": "Logged out"}), 200

    except Exception:
        current_app.logger.exception("Failed to log out")
        return internal_error_response()


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"business": g.business.to_dict()}), 200
