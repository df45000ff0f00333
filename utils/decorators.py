from __future__ import annotations
from functools import wraps
from flask import request, g
from services import strategies
from services.exceptions import InvalidTokenError, PermissionDeniedError
from models.user import UserRole
from utils.security import decode_token


def _credentials_from_request(allowed):
    """Return (strategy, credentials) for the Authorization header, or None."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer ") and "bearer" in allowed:
        token = auth.split(" ", 1)[1].strip()
        return "bearer", (decode_token(token),)
    basic = request.authorization
    if basic is not None and basic.type == "basic" and "basic" in allowed:
        return "basic", (basic.username or "", basic.password or "")
    return None


def auth_required(allowed=("bearer", "basic"), optional=False):
    """
    Authenticate the request with a Bearer access token or HTTP Basic
    credentials and expose the sanitized user as g.current_user.
    With optional=True an anonymous request gets g.current_user = None.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            found = _credentials_from_request(allowed)
            if found is None:
                if not optional:
                    raise InvalidTokenError("Missing or invalid Authorization header")
                g.current_user = None
                return fn(*args, **kwargs)

            strategy, credentials = found
            g.current_user = strategies.resolve(strategy, *credentials)
            g.auth_strategy = strategy
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_required(message="Only administrators can perform this action"):
    """Authenticate, then deny (403) unless the user is an admin."""
    def decorator(fn):
        @wraps(fn)
        @auth_required()
        def wrapper(*args, **kwargs):
            if g.current_user.get("role") != UserRole.ADMIN.value:
                raise PermissionDeniedError(message)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
