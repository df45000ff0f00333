import pytest

from models import storage
from models.email_verification import EmailVerification
from models.refresh_token import RefreshToken
from models.user import User
from services import auth as auth_service
from services import user as user_service
from services.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    PermissionDeniedError,
)
from services.password import hash_password, verify_password


class TestRegistration:
    def test_first_user_becomes_admin(self, app_ctx, password):
        user = user_service.register_user({"email": "first@example.com", "password": password, "role": "user"})

        assert user.role == "admin"
        assert verify_password(password, user.password_hash)
        assert storage.find_one(EmailVerification, email="first@example.com") is not None

    def test_later_users_need_an_admin(self, admin, password):
        with pytest.raises(PermissionDeniedError) as exc:
            user_service.register_user({"email": "new@example.com", "password": password})
        assert exc.value.code == 403

        with pytest.raises(PermissionDeniedError):
            user_service.register_user(
                {"email": "new@example.com", "password": password},
                current_user={"id": "x", "role": "user"},
            )
        assert user_service.find_by_email("new@example.com") is None

    def test_admin_registration_defaults_to_user_role(self, admin, password):
        current = auth_service.sanitize_user(admin)

        created = user_service.register_user({"email": "new@example.com", "password": password}, current_user=current)

        assert created.role == "user"
        assert created.is_email_verified is False

    def test_duplicate_email(self, admin, password):
        current = auth_service.sanitize_user(admin)
        with pytest.raises(EmailAlreadyRegisteredError) as exc:
            user_service.register_user({"email": admin.email, "password": password}, current_user=current)
        assert exc.value.code == 400


class TestPasswordField:
    def test_password_is_write_only(self, user):
        with pytest.raises(AttributeError):
            user.password

    def test_to_dict_never_exposes_hash(self, user):
        data = user.to_dict()
        assert "password_hash" not in data
        assert data["__class__"] == "User"

    def test_update_hashes_plain_password(self, user):
        user_service.update_user(user.id, {"password": "FreshPass77"})

        stored = storage.get(User, user.id).password_hash
        assert stored != "FreshPass77"
        assert verify_password("FreshPass77", stored)

    def test_update_keeps_already_hashed_value(self, user):
        hashed = hash_password("FreshPass77")

        user_service.update_user(user.id, {"password": hashed})

        assert storage.get(User, user.id).password_hash == hashed

    def test_update_ignores_unknown_fields(self, user):
        user_service.update_user(user.id, {"first_name": "Ada", "password_hash": "nope"})

        stored = storage.get(User, user.id)
        assert stored.first_name == "Ada"
        assert stored.password_hash != "nope"

    def test_update_missing_user(self, app_ctx):
        assert user_service.update_user("missing", {"first_name": "Ada"}) is None


class TestFindUsers:
    @pytest.fixture
    def people(self, make_user):
        return [
            make_user(email="alice@example.com", first_name="Alice", is_email_verified=True),
            make_user(email="bob@example.com", first_name="Bob"),
            make_user(email="carol@corp.test", first_name="Carol", is_active=False),
            make_user(email="root@corp.test", first_name="Root", role="admin"),
        ]

    def test_partial_match(self, people):
        rows, total = user_service.find_users({"email": "corp"})
        assert total == 2
        assert {r.email for r in rows} == {"carol@corp.test", "root@corp.test"}

    def test_exact_filters(self, people):
        rows, _ = user_service.find_users({"is_active": False})
        assert [r.email for r in rows] == ["carol@corp.test"]

        rows, _ = user_service.find_users({"role": "admin"})
        assert [r.email for r in rows] == ["root@corp.test"]

        rows, _ = user_service.find_users({"is_email_verified": True})
        assert [r.email for r in rows] == ["alice@example.com"]

    def test_sort_and_paginate(self, people):
        rows, total = user_service.find_users(
            {"sort_by": "email", "sort_direction": "ASC", "page": 2, "limit": 3}
        )
        assert total == 4
        assert [r.email for r in rows] == ["root@corp.test"]

        rows, _ = user_service.find_users({"sort_by": "email", "sort_direction": "DESC", "limit": 2})
        assert [r.email for r in rows] == ["root@corp.test", "carol@corp.test"]


class TestDeleteAndChangePassword:
    def test_delete_removes_refresh_tokens(self, user):
        auth_service.login(user)
        auth_service.login(user)
        user_id = user.id
        assert storage.count(RefreshToken) == 2

        assert user_service.delete_user(user_id) is True

        assert storage.get(User, user_id) is None
        assert storage.count(RefreshToken) == 0
        assert user_service.delete_user(user_id) is False

    def test_change_password_revokes_sessions(self, user, password):
        token = auth_service.login(user)["refresh_token"]

        result = user_service.change_password(user.id, password, "Another123")

        assert result["success"] is True
        assert auth_service.validate_refresh_token(token) is None
        assert auth_service.validate_credentials(user.email, "Another123") is not None
        assert auth_service.validate_credentials(user.email, password) is None

    def test_change_password_checks_current(self, user, password):
        with pytest.raises(InvalidCredentialsError):
            user_service.change_password(user.id, "wrong", "Another123")
        assert auth_service.validate_credentials(user.email, password) is not None
