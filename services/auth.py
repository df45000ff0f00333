"""
Token lifecycle and credential-verification engine.

Sessions
    login      verify -> last-login -> access token -> refresh token
    refresh    validate -> identity check -> claim (revoke) -> login
    logout     revoke one refresh token, or every token of the user

Single-use tokens (password reset, email verification)
    create -> validate (exists, unused, unexpired) -> claim (mark used)
    -> side effect, committed as one transaction.

Every "check then write" step on a token is a conditional UPDATE whose
affected-row count decides the outcome, so two requests presenting the
same token cannot both win. Expiry is enforced lazily, on presentation.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Type

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from models.base_model import utcnow
from models.email_verification import EmailVerification
from models.password_reset import PasswordReset
from models.refresh_token import RefreshToken
from models.schemas.user import UserOutSchema
from models.user import User
from services import password as password_service
from services import user as user_service
from services.exceptions import (
    InvalidRefreshTokenError,
    InvalidResetTokenError,
    InvalidVerificationTokenError,
    OrphanedTokenError,
    UserDoesNotExistError,
)
from utils.security import create_access_token, generate_token

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()


def sanitize_user(user: User) -> Dict[str, Any]:
    """Public projection of a user; never includes the password hash."""
    return user_out_schema.dump(user)


def _ttl(key: str) -> timedelta:
    return current_app.config[key]


# ---------------------------------------------------------------------------
# Credentials and sessions
# ---------------------------------------------------------------------------

def validate_credentials(email: str, password: str) -> Optional[User]:
    logger.info("Validating credentials for %s", email)
    user = user_service.find_by_email(email)
    if user is None:
        logger.info("Authentication failed: unknown email %s", email)
        return None
    if not password_service.verify_password(password, user.password_hash):
        logger.info("Authentication failed: bad password for %s", email)
        return None
    logger.info("User authenticated: %s", email)
    return user


def create_refresh_token(
    user_id: str,
    device_info: Optional[str] = None,
    ip_address: Optional[str] = None,
    commit: bool = True,
) -> str:
    token = generate_token()
    expires_at = utcnow() + _ttl("REFRESH_TOKEN_EXPIRES")
    storage.new(
        RefreshToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            device_info=device_info,
            ip_address=ip_address,
        )
    )
    if commit:
        storage.save()
    logger.info("Refresh token created for user %s, expires %s", user_id, expires_at.isoformat())
    return token


def login(user: User, ip_address: Optional[str] = None, device_info: Optional[str] = None) -> Dict[str, Any]:
    """
    Open a session for an already verified user.
    Returns {"access_token", "refresh_token", "user"}.
    """
    logger.info("Login for user %s from %s", user.id, ip_address or "unknown")
    user.last_login_at = utcnow()
    storage.new(user)

    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id, device_info, ip_address, commit=False)
    storage.save()

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": sanitize_user(user),
    }


def validate_refresh_token(token: str) -> Optional[User]:
    """
    Return the owner of a usable refresh token, else None.
    An expired token is revoked on the way out.
    """
    record = storage.find_one(RefreshToken, token=token, revoked=False)
    if record is None:
        return None
    if record.is_expired():
        storage.update_where(RefreshToken, {"revoked": True}, id=record.id)
        storage.save()
        logger.info("Refresh token of user %s expired; revoked", record.user_id)
        return None
    return record.user


def revoke_refresh_token(token: str, commit: bool = True, user_id: Optional[str] = None) -> bool:
    """
    Revoke one token. True only if this call flipped it.
    With user_id, a token owned by someone else is left alone.
    """
    filters = {"token": token, "revoked": False}
    if user_id is not None:
        filters["user_id"] = user_id
    affected = storage.update_where(RefreshToken, {"revoked": True}, **filters)
    if commit:
        storage.save()
    return affected > 0


def revoke_all_user_refresh_tokens(user_id: str, commit: bool = True) -> int:
    affected = storage.update_where(RefreshToken, {"revoked": True}, user_id=user_id, revoked=False)
    if commit:
        storage.save()
    return affected


def refresh(
    token: str,
    current_user_id: str,
    ip_address: Optional[str] = None,
    device_info: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Rotate a refresh token for the caller identified by current_user_id.
    The presented token is single use; the caller gets a fresh pair.
    """
    user = validate_refresh_token(token)
    if user is None or user.id != current_user_id:
        logger.warning("Refresh rejected for caller %s", current_user_id)
        raise InvalidRefreshTokenError()

    if not revoke_refresh_token(token, commit=False, user_id=user.id):
        # lost the race to a concurrent refresh/logout with the same token
        storage.rollback()
        logger.warning("Refresh token for user %s was already consumed", user.id)
        raise InvalidRefreshTokenError()

    return login(user, ip_address, device_info)


def logout(user_id: str, refresh_token: Optional[str] = None, revoke_all: bool = False) -> Dict[str, bool]:
    """
    Revoke the presented token and/or every token of the user.
    Always reports success unless the store itself fails.
    """
    logger.info("Logging out user %s (all devices: %s)", user_id, revoke_all)
    try:
        if refresh_token:
            revoke_refresh_token(refresh_token, commit=False, user_id=user_id)
        if revoke_all:
            revoke_all_user_refresh_tokens(user_id, commit=False)
        storage.save()
    except SQLAlchemyError:
        storage.rollback()
        logger.exception("Failed to logout user %s", user_id)
        return {"success": False}
    return {"success": True}


# ---------------------------------------------------------------------------
# Single-use tokens
# ---------------------------------------------------------------------------

def _create_single_use_token(model: Type, email: str, ttl_key: str) -> str:
    token = generate_token()
    storage.new(model(email=email, token=token, expires_at=utcnow() + _ttl(ttl_key)))
    storage.save()
    return token


def _find_usable(model: Type, token: str):
    record = storage.find_one(model, token=token, used=False)
    if record is None or record.is_expired():
        return None
    return record


def _claim(model: Type, token: str) -> bool:
    return storage.update_where(model, {"used": True}, token=token, used=False) == 1


def create_password_reset_token(email: str) -> str:
    if user_service.find_by_email(email) is None:
        raise UserDoesNotExistError()
    token = _create_single_use_token(PasswordReset, email, "PASSWORD_RESET_EXPIRES")
    logger.info("Password reset token issued for %s", email)
    return token


def validate_password_reset_token(token: str) -> Optional[str]:
    """Email the token was issued for, or None if unknown, used or expired."""
    record = _find_usable(PasswordReset, token)
    return record.email if record else None


def request_password_reset(email: str) -> Dict[str, Any]:
    """
    Same answer whether or not the account exists; the token is only
    created for known emails.
    """
    if user_service.find_by_email(email) is not None:
        create_password_reset_token(email)
    else:
        logger.info("Password reset requested for unknown email")
    return {"success": True, "message": "If the email exists, a password reset link has been sent"}


def reset_password(token: str, new_password: str) -> Dict[str, Any]:
    email = validate_password_reset_token(token)
    if not email:
        raise InvalidResetTokenError()

    user = user_service.find_by_email(email)
    if user is None:
        raise OrphanedTokenError()

    try:
        if not _claim(PasswordReset, token):
            raise InvalidResetTokenError()
        user_service.update_user(user.id, {"password": new_password}, commit=False)
        revoke_all_user_refresh_tokens(user.id, commit=False)
        storage.save()
    except InvalidResetTokenError:
        storage.rollback()
        raise

    logger.info("Password reset for user %s; all sessions revoked", user.id)
    return {"success": True, "message": "Password reset successfully"}


def create_email_verification_token(email: str) -> str:
    token = _create_single_use_token(EmailVerification, email, "EMAIL_VERIFICATION_EXPIRES")
    logger.info("Email verification token issued for %s", email)
    return token


def verify_email(token: str) -> Dict[str, Any]:
    record = _find_usable(EmailVerification, token)
    if record is None:
        raise InvalidVerificationTokenError()

    user = user_service.find_by_email(record.email)
    if user is None:
        raise OrphanedTokenError()

    try:
        if not _claim(EmailVerification, token):
            raise InvalidVerificationTokenError()
        user.is_email_verified = True
        storage.new(user)
        storage.save()
    except InvalidVerificationTokenError:
        storage.rollback()
        raise

    logger.info("Email verified for user %s", user.id)
    return {"success": True, "message": "Email verified successfully"}


def resend_verification(email: str) -> Dict[str, Any]:
    user = user_service.find_by_email(email)
    if user is None:
        return {
            "success": True,
            "message": "If the email exists and is not verified, a verification email has been sent",
        }
    # NOTE: this branch tells the caller the account exists and is verified
    if user.is_email_verified:
        return {"success": False, "message": "Email is already verified"}

    create_email_verification_token(email)
    return {"success": True, "message": "Verification email has been sent"}
