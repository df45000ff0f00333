"""
Authentication strategies.

One credential resolver with three variants:

- "local":  email + password from the request body
- "basic":  the same check, framed as HTTP Basic username/password
- "bearer": claims of an already verified access token ({"sub": user_id, ...})

Every variant ends in the same sanitized user projection.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from models.user import User
from services import auth as auth_service
from services import user as user_service
from services.exceptions import InvalidCredentialsError, UserNotAuthenticatedError

logger = logging.getLogger(__name__)


def _authenticated(user: Optional[User], error) -> Dict[str, Any]:
    if user is None:
        raise error()
    return auth_service.sanitize_user(user)


def _resolve_password(email: str, password: str) -> Dict[str, Any]:
    return _authenticated(auth_service.validate_credentials(email, password), InvalidCredentialsError)


def _resolve_claims(claims: Dict[str, Any]) -> Dict[str, Any]:
    user_id = claims.get("sub")
    user = user_service.find_by_id(user_id) if user_id else None
    if user is None:
        logger.info("Bearer token references missing user %s", user_id)
    return _authenticated(user, UserNotAuthenticatedError)


RESOLVERS: Dict[str, Callable[..., Dict[str, Any]]] = {
    "local": _resolve_password,
    "basic": _resolve_password,
    "bearer": _resolve_claims,
}


def resolve(strategy: str, *credentials) -> Dict[str, Any]:
    """
    Resolve credentials into a sanitized user.

        resolve("local", email, password)
        resolve("basic", username, password)
        resolve("bearer", claims)
    """
    try:
        resolver = RESOLVERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown authentication strategy: {strategy}")
    return resolver(*credentials)
