"""
User repository operations.

- lookup by email / id
- create, update (with the update-password path), delete, count
- filtered, paginated, sorted listing
- registration with first-user bootstrap
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from models import storage
from models.refresh_token import RefreshToken
from models.user import User, UserRole
from services import password as password_service
from services.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    PermissionDeniedError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": User.created_at,
    "updated_at": User.updated_at,
    "email": User.email,
    "first_name": User.first_name,
    "last_name": User.last_name,
    "last_login_at": User.last_login_at,
}

LIKE_FILTERS = ("email", "first_name", "last_name")
EXACT_FILTERS = ("is_active", "is_email_verified", "role")

UPDATABLE_FIELDS = ("email", "first_name", "last_name", "avatar", "is_active", "role", "password")


def find_by_email(email: str) -> Optional[User]:
    return storage.find_one(User, email=email)


def find_by_id(user_id: str) -> Optional[User]:
    return storage.get(User, user_id)


def count_users() -> int:
    return storage.count(User)


def create_user(data: Dict[str, Any]) -> User:
    """Create a user; a supplied password is hashed, a missing one stays unset."""
    data = dict(data)
    plain = data.pop("password", None)
    user = User(**data)
    user.password = plain
    storage.new(user)
    storage.save()
    logger.info("Created user %s with role %s", user.id, user.role)
    return user


def update_user(user_id: str, data: Dict[str, Any], commit: bool = True) -> Optional[User]:
    """
    Apply a partial update. A "password" key is hashed unless the value
    already looks hashed. Returns None if the user does not exist.
    """
    user = find_by_id(user_id)
    if user is None:
        return None
    for key, value in data.items():
        if key not in UPDATABLE_FIELDS:
            continue
        setattr(user, key, value)
    storage.new(user)
    if commit:
        storage.save()
    logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(data)))
    return user


def delete_user(user_id: str) -> bool:
    """Hard delete. Refresh tokens go with the user (FK cascade)."""
    user = find_by_id(user_id)
    if user is None:
        return False
    user.delete()
    storage.save()
    logger.info("Deleted user %s", user_id)
    return True


def find_users(params: Dict[str, Any]) -> Tuple[List[User], int]:
    page = params.get("page", 1)
    limit = params.get("limit", 10)
    sort_by = params.get("sort_by", "created_at")
    sort_direction = params.get("sort_direction", "DESC")

    query = storage.get_session().query(User)
    for key in LIKE_FILTERS:
        if params.get(key):
            query = query.filter(getattr(User, key).like(f"%{params[key]}%"))
    for key in EXACT_FILTERS:
        if params.get(key) is not None:
            query = query.filter(getattr(User, key) == params[key])

    total = query.count()
    column = SORT_COLUMNS.get(sort_by, User.created_at)
    order = column.asc() if sort_direction.upper() == "ASC" else column.desc()
    rows = query.order_by(order).offset((page - 1) * limit).limit(limit).all()
    return rows, total


def register_user(data: Dict[str, Any], current_user: Optional[Dict[str, Any]] = None) -> User:
    """
    Register a user.

    The very first account is created without authentication and becomes
    an admin. After that only admins may create users; the role defaults
    to "user". An email-verification token is issued for the new account.
    """
    # imported here: services.auth depends on this module
    from services import auth as auth_service

    user_count = count_users()
    if user_count > 0 and (current_user is None or current_user.get("role") != UserRole.ADMIN.value):
        raise PermissionDeniedError("Only administrators can create new users")

    if find_by_email(data["email"]):
        raise EmailAlreadyRegisteredError()

    data = dict(data)
    if user_count == 0:
        data["role"] = UserRole.ADMIN.value
    elif not data.get("role"):
        data["role"] = UserRole.USER.value

    user = create_user(data)
    auth_service.create_email_verification_token(user.email)
    return user


def change_password(user_id: str, current_password: str, new_password: str) -> Dict[str, Any]:
    """Change a password after re-checking the current one; signs out every device."""
    user = find_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    if not password_service.verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError()

    user.password = new_password
    storage.new(user)
    storage.update_where(RefreshToken, {"revoked": True}, user_id=user_id)
    storage.save()
    logger.info("Password changed for user %s; all sessions revoked", user_id)
    return {"success": True, "message": "Password changed successfully"}
