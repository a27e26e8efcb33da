# Overview: Flask API routes for user management; parses input and returns JSON responses.

"""
Admin routes for user accounts.

All endpoints require an authenticated admin. An admin cannot deactivate
or delete their own account.
"""

from flask import Blueprint, request, g, current_app

from ..errors import PosError
from ..models import ROLE_ADMIN, ROLE_CASHIER
from ..services import user_service
from ..decorators import require_auth, require_role
from ..responses import success, error, from_exception

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_ADMIN)
def list_users():
    """
    List all users.

    Query params:
    - include_inactive: bool (default true)
    """
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    users = user_service.list_users(include_inactive=include_inactive)
    return success([u.to_dict() for u in users])


@users_bp.get("/<id:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def get_user(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except PosError as e:
        return from_exception(e)
    return success(user.to_dict())


@users_bp.post("")
@require_auth
@require_role(ROLE_ADMIN)
def create_user():
    """
    Create a new user.

    Request body:
    - username: str (required)
    - password: str (required)
    - display_name: str (optional)
    - role: "admin" | "cashier" (default cashier)
    """
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.create_user(
            data.get("username"),
            data.get("password"),
            display_name=data.get("display_name"),
            role=data.get("role") or ROLE_CASHIER,
        )
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return error("Internal server error", 500)

    current_app.logger.info("User %r created by %r", user.username, g.current_user.username)
    return success(user.to_dict(), message="User created", status=201)


@users_bp.put("/<id:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_user(user_id: int):
    """
    Update user details.

    Request body (all optional): display_name, role, is_active, password
    """
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(user_id, data, acting_user_id=g.current_user.id)
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to update user")
        return error("Internal server error", 500)
    return success(user.to_dict(), message="User updated")


@users_bp.delete("/<id:user_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_user(user_id: int):
    """Deactivate a user (accounts stay referenced by sales history)."""
    try:
        user_service.delete_user(user_id, acting_user_id=g.current_user.id)
    except PosError as e:
        return from_exception(e)
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return error("Internal server error", 500)
    return success(message="User deleted")
