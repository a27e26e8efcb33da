# Overview: Request and role decorators for API routes.

from functools import wraps

from flask import g, request

from .errors import ForbiddenError, UnauthorizedError
from .responses import from_exception
from .services import session_service


def bearer_token() -> str | None:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid session.

    Sets the following Flask g attributes:
    - g.current_user: SessionIdentity from the session snapshot
    - g.session_token: the bearer token (for logout)

    Returns 401 for a missing, unknown or expired token without saying which.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        identity = session_service.resolve_session(token) if token else None

        if identity is None:
            return from_exception(UnauthorizedError("Unauthorized"))

        g.current_user = identity
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the authenticated identity to hold one of `roles`.

    Must be stacked under @require_auth. Returns 403, distinct from 401.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return from_exception(UnauthorizedError("Unauthorized"))
            try:
                session_service.require_role(g.current_user, *roles)
            except ForbiddenError as e:
                return from_exception(e)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
