# Overview: Startup reconciliation: schema migrations and the admin account.

"""
Runs on every process start (create_app with AUTO_BOOTSTRAP) and from
`flask system init`. Both steps are idempotent.

Admin credentials resolve in order: ADMIN_USER / ADMIN_PASSWORD environment
variables, the JSON options file (admin_user / admin_password), then the
built-in defaults.
"""

from __future__ import annotations

from flask import current_app
from flask_migrate import upgrade

from ..config import read_option
from ..extensions import db
from ..models import ROLE_ADMIN, User
from .auth_service import hash_password, verify_password
from . import session_service

DEFAULT_ADMIN_USER = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_ADMIN_DISPLAY_NAME = "Administrator"


def run_migrations() -> None:
    """Upgrade the schema to the latest Alembic revision."""
    upgrade()


def admin_credentials() -> tuple[str, str]:
    options_file = current_app.config.get("POS_OPTIONS_FILE")
    username = read_option("admin_user", DEFAULT_ADMIN_USER, options_file)
    password = read_option("admin_password", DEFAULT_ADMIN_PASSWORD, options_file)
    return str(username), str(password)


def ensure_admin_user(username: str | None = None, password: str | None = None) -> str:
    """
    Reconcile the configured admin account with the users table.

    - absent: create it (role admin, active)
    - role drifted or deactivated: restore admin role and active flag
    - password no longer verifies: store a fresh hash and revoke its sessions

    Returns "created", "updated" or "unchanged".
    """
    if username is None or password is None:
        cfg_user, cfg_password = admin_credentials()
        username = username or cfg_user
        password = password or cfg_password

    user = db.session.query(User).filter_by(username=username).first()

    if user is None:
        user = User(
            username=username,
            password_hash=hash_password(password, enforce_strength=False),
            display_name=DEFAULT_ADMIN_DISPLAY_NAME,
            role=ROLE_ADMIN,
            is_active=True,
        )
        db.session.add(user)
        db.session.commit()
        current_app.logger.info("Created admin user %r from configuration", username)
        return "created"

    changed = []
    if user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
        changed.append("role")
    if not user.is_active:
        user.is_active = True
        changed.append("is_active")
    if not verify_password(password, user.password_hash):
        user.password_hash = hash_password(password, enforce_strength=False)
        session_service.revoke_user_sessions(user.id, commit=False)
        changed.append("password")

    if not changed:
        return "unchanged"

    db.session.commit()
    current_app.logger.info("Admin user %r reconciled from configuration: %s", username, ", ".join(changed))
    return "updated"


def bootstrap() -> None:
    run_migrations()
    ensure_admin_user()
