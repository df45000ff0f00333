"""
security helpers:
- Access-token creation/verification via PyJWT
- Opaque random strings for refresh, reset and verification tokens
"""
from __future__ import annotations

import uuid
from typing import Any, Dict

import jwt
from flask import current_app

from models.base_model import utcnow
from services.exceptions import InvalidTokenError


def generate_token() -> str:
    """Generate an opaque, unique token string."""
    return str(uuid.uuid4())


def create_access_token(subject: str) -> str:
    """
    Sign an access token carrying only the subject (user id)
    and the standard iat/exp claims.
    """
    now = utcnow()
    exp = now + current_app.config["JWT_TOKEN_EXPIRES"]
    payload = {
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an access token.
    Raises InvalidTokenError on bad signature, expiry or a missing subject.
    """
    try:
        decoded = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("Token expired")
    except jwt.InvalidTokenError:
        raise InvalidTokenError("Invalid token")
    return decoded
