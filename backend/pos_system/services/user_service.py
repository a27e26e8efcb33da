# Overview: Service-layer operations for user accounts (admin CRUD).

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ROLES, ROLE_CASHIER, User
from . import session_service
from .auth_service import hash_password

USERNAME_MAX_LENGTH = 64
DISPLAY_NAME_MAX_LENGTH = 128


def _clean_username(value) -> str:
    username = str(value or "").strip()
    if not username:
        raise ValidationError("username is required")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"username exceeds max length {USERNAME_MAX_LENGTH}")
    return username


def _clean_display_name(value) -> str | None:
    if value is None:
        return None
    name = str(value).strip()
    if len(name) > DISPLAY_NAME_MAX_LENGTH:
        raise ValidationError(f"display_name exceeds max length {DISPLAY_NAME_MAX_LENGTH}")
    return name or None


def _clean_role(value) -> str:
    role = str(value or "").strip().lower()
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    return role


def list_users(include_inactive: bool = True) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.username).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(
    username: str,
    password: str,
    *,
    display_name: str | None = None,
    role: str = ROLE_CASHIER,
    enforce_strength: bool = True,
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError / PasswordValidationError: bad input
        ConflictError: username already taken
    """
    username = _clean_username(username)
    if not password:
        raise ValidationError("password is required")
    role = _clean_role(role)

    if db.session.query(User.id).filter(User.username == username).first():
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password, enforce_strength=enforce_strength),
        display_name=_clean_display_name(display_name) or username,
        role=role,
        is_active=True,
    )
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Username already exists") from exc
    return user


def update_user(user_id: int, data: dict, *, acting_user_id: int) -> User:
    """
    Update display name, role, active flag and/or password.

    An admin cannot deactivate their own account. Deactivating an account
    or changing its password revokes all of its sessions.
    """
    user = get_user(user_id)
    revoke = False

    if "is_active" in data:
        is_active = data["is_active"]
        if not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")
        if not is_active and user.id == acting_user_id:
            raise ValidationError("Cannot deactivate your own account")
        if user.is_active and not is_active:
            revoke = True
        user.is_active = is_active

    if "display_name" in data:
        user.display_name = _clean_display_name(data["display_name"])

    if "role" in data:
        user.role = _clean_role(data["role"])

    if data.get("password"):
        user.password_hash = hash_password(data["password"])
        revoke = True

    if revoke:
        session_service.revoke_user_sessions(user.id, commit=False)

    db.session.commit()
    return user


def delete_user(user_id: int, *, acting_user_id: int) -> User:
    """
    Remove an account from use.

    Accounts are deactivated rather than physically deleted because sales
    and inventory history reference them.
    """
    user = get_user(user_id)
    if user.id == acting_user_id:
        raise ValidationError("Cannot delete your own account")

    user.is_active = False
    session_service.revoke_user_sessions(user.id, commit=False)
    db.session.commit()
    return user
