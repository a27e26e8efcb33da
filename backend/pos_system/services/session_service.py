# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

WHY: Durable, revocable sessions that survive process restarts.
Tokens are cryptographically secure, hashed in database, and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 7-day absolute timeout (SESSION_TTL_DAYS)
- Expiry enforced lazily at resolve time; expired rows are never honoured
- Revocable on logout or account changes

The identity attached to a session is the snapshot taken at login. It can
drift from the live user row (e.g. a role change) until the user logs in
again; account deactivation revokes sessions explicitly instead.
"""

import hashlib
import json
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app, has_app_context

from ..errors import ForbiddenError
from ..extensions import db
from ..models import SessionToken, User
from pos_system.time_utils import utcnow


DEFAULT_SESSION_TTL = timedelta(days=7)


@dataclass(frozen=True)
class SessionIdentity:
    """Identity resolved from a session snapshot."""
    id: int
    username: str
    display_name: str | None
    role: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "role": self.role,
        }


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def session_ttl() -> timedelta:
    if has_app_context():
        days = current_app.config.get("SESSION_TTL_DAYS")
        if days:
            return timedelta(days=int(days))
    return DEFAULT_SESSION_TTL


def create_session(user: User) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        token_hash=hash_token(plaintext_token),
        user_id=user.id,
        user_snapshot=json.dumps(user.public_fields()),
        created_at=now,
        expires_at=now + session_ttl(),
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def resolve_session(token: str | None) -> SessionIdentity | None:
    """
    Resolve a bearer token to the identity captured at login.

    Returns None when no record matches or when expires_at is not strictly
    in the future. Callers must not distinguish the two cases.
    """
    if not token:
        return None

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token)
    ).first()

    if not session:
        return None

    if session.expires_at is not None and session.expires_at <= utcnow():
        return None

    snapshot = session.snapshot
    return SessionIdentity(
        id=snapshot["id"],
        username=snapshot["username"],
        display_name=snapshot.get("display_name"),
        role=snapshot["role"],
    )


def revoke_session(token: str) -> bool:
    """
    Delete the session record for a token.

    Returns True if a record was removed. Revoking an unknown token is not
    an error.
    """
    deleted = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token)
    ).delete()
    db.session.commit()
    return deleted > 0


def revoke_user_sessions(user_id: int, *, commit: bool = True) -> int:
    """
    Delete every session of a user.

    WHY: Deactivation, deletion and password resets must force
    re-authentication on all devices.
    """
    deleted = db.session.query(SessionToken).filter_by(user_id=user_id).delete()
    if commit:
        db.session.commit()
    return deleted


def cleanup_expired_sessions() -> int:
    """
    Delete expired sessions. Returns count of sessions deleted.

    Optional housekeeping; resolve_session() already ignores expired rows.
    """
    deleted = db.session.query(SessionToken).filter(
        SessionToken.expires_at.isnot(None),
        SessionToken.expires_at <= utcnow(),
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def require_role(identity: SessionIdentity, *roles: str) -> SessionIdentity:
    """Raise ForbiddenError unless the identity holds one of the roles."""
    if identity.role not in roles:
        raise ForbiddenError(f"{' or '.join(r.capitalize() for r in roles)} access required")
    return identity
