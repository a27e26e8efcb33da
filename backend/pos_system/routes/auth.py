# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/pos_system/routes/auth.py
"""
Authentication API routes

- POST /api/login   credentials -> session token
- POST /api/logout  revoke the bearer token
- GET  /api/me      identity captured in the session
"""

from flask import Blueprint, request, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..responses import success, error


auth_bp = Blueprint("auth", __name__, url_prefix="/api")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return error("Invalid JSON payload", 400)
        username = data.get("username")
        password = data.get("password")

        if not username or not password:
            return error("Username and password required", 400)

        user = auth_service.authenticate(str(username).strip(), str(password))

        if not user:
            current_app.logger.warning("Failed login for %r from %s", username, request.remote_addr)
            return error("Invalid credentials", 401)

        session, token = session_service.create_session(user)

        return success({
            "token": token,
            "user": user.public_fields(),
            "expires_at": session.to_dict()["expires_at"],
        }, message="Login successful")

    except Exception:
        current_app.logger.exception("Failed to login user")
        return error("Internal server error", 500)


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke session token (logout)."""
    try:
        session_service.revoke_session(g.session_token)
        return success(message="Logged out")
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return error("Internal server error", 500)


@auth_bp.get("/me")
@require_auth
def me_route():
    return success(g.current_user.to_dict())
