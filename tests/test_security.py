"""Tests for access-token signing and verification."""

from datetime import timedelta

import jwt
import pytest

from services.exceptions import InvalidTokenError
from utils.security import create_access_token, decode_token, generate_token


def test_access_token_carries_only_subject_and_times(app_ctx):
    claims = decode_token(create_access_token("user-1"))

    assert set(claims) == {"sub", "iat", "exp"}
    assert claims["sub"] == "user-1"
    assert claims["exp"] - claims["iat"] == int(app_ctx.config["JWT_TOKEN_EXPIRES"].total_seconds())


def test_default_access_token_ttl_is_one_day(app_ctx):
    assert app_ctx.config["JWT_TOKEN_EXPIRES"] == timedelta(days=1)


def test_expired_token_is_rejected(app_ctx):
    app_ctx.config["JWT_TOKEN_EXPIRES"] = timedelta(seconds=-10)
    token = create_access_token("user-1")

    with pytest.raises(InvalidTokenError) as exc:
        decode_token(token)
    assert exc.value.description == "Token expired"


def test_foreign_signature_is_rejected(app_ctx):
    token = jwt.encode({"sub": "user-1", "exp": 9999999999}, "another-secret-entirely-0123456789", algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        decode_token(token)


def test_token_without_subject_is_rejected(app_ctx):
    token = jwt.encode({"exp": 9999999999}, app_ctx.config["JWT_SECRET"], algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        decode_token(token)


def test_generated_tokens_are_unique():
    assert len({generate_token() for _ in range(100)}) == 100
