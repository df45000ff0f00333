import base64

from models import storage
from models.refresh_token import RefreshToken
from models.user import User
from services import auth as auth_service

API = "/api/v1"


def _basic(email, password):
    raw = f"{email}:{password}".encode()
    return {"Authorization": "Basic " + base64.b64encode(raw).decode()}


def test_health(client, app_ctx):
    resp = client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": "connected", "version": "1.0.0"}


class TestRegistration:
    def test_bootstrap_then_admin_only(self, client, app_ctx, password):
        first = client.post(f"{API}/users", json={"email": " boss@example.com ", "password": password})
        assert first.status_code == 201
        body = first.get_json()
        assert body["email"] == "boss@example.com"
        assert body["role"] == "admin"
        assert "password" not in body and "password_hash" not in body

        anonymous = client.post(f"{API}/users", json={"email": "second@example.com", "password": password})
        assert anonymous.status_code == 403
        assert anonymous.get_json()["error"] == "FORBIDDEN"

        by_admin = client.post(
            f"{API}/users",
            json={"email": "second@example.com", "password": password},
            headers=_basic("boss@example.com", password),
        )
        assert by_admin.status_code == 201
        assert by_admin.get_json()["role"] == "user"

    def test_duplicate_email(self, client, admin, password):
        resp = client.post(
            f"{API}/users",
            json={"email": admin.email, "password": password},
            headers=_basic(admin.email, password),
        )
        assert resp.status_code == 400

    def test_plain_user_cannot_register_others(self, client, admin, user, password):
        resp = client.post(
            f"{API}/users",
            json={"email": "new@example.com", "password": password},
            headers=_basic(user.email, password),
        )
        assert resp.status_code == 403

    def test_invalid_email(self, client, app_ctx, password):
        resp = client.post(f"{API}/users", json={"email": "not-an-email", "password": password})
        assert resp.status_code == 422


def test_me(client, user, password):
    resp = client.get(f"{API}/users/me", headers=_basic(user.email, password))
    assert resp.status_code == 200
    assert resp.get_json()["id"] == user.id

    assert client.get(f"{API}/users/me").status_code == 401


class TestListUsers:
    def test_admin_listing(self, client, admin, make_user, password):
        for i in range(3):
            make_user(email=f"member{i}@example.com")

        resp = client.get(
            f"{API}/users?limit=2&page=1&sort_by=email&sort_direction=ASC&email=member",
            headers=_basic(admin.email, password),
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total"] == 3
        assert body["page_count"] == 2
        assert body["limit"] == 2
        assert [u["email"] for u in body["items"]] == ["member0@example.com", "member1@example.com"]

    def test_non_admin_forbidden(self, client, user, password):
        resp = client.get(f"{API}/users", headers=_basic(user.email, password))
        assert resp.status_code == 403

    def test_limit_is_capped(self, client, admin, password):
        resp = client.get(f"{API}/users?limit=500", headers=_basic(admin.email, password))
        assert resp.status_code == 422


class TestUpdateUser:
    def test_self_update_ignores_privileged_fields(self, client, user, password):
        resp = client.patch(
            f"{API}/users/{user.id}",
            json={"first_name": "Ada", "role": "admin", "is_active": False},
            headers=_basic(user.email, password),
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["first_name"] == "Ada"
        assert body["role"] == "user"
        assert body["is_active"] is True

    def test_cannot_update_someone_else(self, client, admin, user, password):
        resp = client.patch(
            f"{API}/users/{admin.id}",
            json={"first_name": "Mallory"},
            headers=_basic(user.email, password),
        )
        assert resp.status_code == 403

    def test_admin_updates_role_but_not_email(self, client, admin, user, password):
        resp = client.patch(
            f"{API}/users/{user.id}",
            json={"role": "admin", "email": "taken@example.com"},
            headers=_basic(admin.email, password),
        )

        assert resp.status_code == 200
        assert resp.get_json()["role"] == "admin"
        assert resp.get_json()["email"] == user.email

    def test_email_conflict(self, client, admin, user, password):
        resp = client.patch(
            f"{API}/users/{user.id}",
            json={"email": admin.email},
            headers=_basic(user.email, password),
        )
        assert resp.status_code == 400

    def test_password_update_is_hashed(self, client, user, password):
        resp = client.patch(
            f"{API}/users/{user.id}",
            json={"password": "Replacement9"},
            headers=_basic(user.email, password),
        )

        assert resp.status_code == 200
        assert storage.get(User, user.id).password_hash != "Replacement9"
        assert client.get(f"{API}/users/me", headers=_basic(user.email, "Replacement9")).status_code == 200

    def test_missing_user(self, client, admin, password):
        resp = client.patch(f"{API}/users/missing", json={}, headers=_basic(admin.email, password))
        assert resp.status_code == 404


class TestChangePassword:
    def test_change_password_signs_out_everywhere(self, client, user, password):
        token = auth_service.login(user)["refresh_token"]

        resp = client.post(
            f"{API}/users/me/password",
            json={"current_password": password, "new_password": "Another123"},
            headers=_basic(user.email, password),
        )

        assert resp.status_code == 200
        assert storage.find_one(RefreshToken, token=token).revoked is True

    def test_wrong_current_password(self, client, user, password):
        resp = client.post(
            f"{API}/users/me/password",
            json={"current_password": "wrong", "new_password": "Another123"},
            headers=_basic(user.email, password),
        )
        assert resp.status_code == 401


class TestDeleteUser:
    def test_admin_deletes_user_and_sessions(self, client, admin, user, password):
        auth_service.login(user)
        user_id = user.id

        resp = client.delete(f"{API}/users/{user_id}", headers=_basic(admin.email, password))

        assert resp.status_code == 200
        assert resp.get_json() == {"success": True}
        assert storage.get(User, user_id) is None
        assert storage.count(RefreshToken) == 0

    def test_admin_cannot_delete_self(self, client, admin, password):
        resp = client.delete(f"{API}/users/{admin.id}", headers=_basic(admin.email, password))
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "You cannot delete your own account"

    def test_missing_user(self, client, admin, password):
        resp = client.delete(f"{API}/users/missing", headers=_basic(admin.email, password))
        assert resp.status_code == 404

    def test_non_admin_forbidden(self, client, admin, user, password):
        resp = client.delete(f"{API}/users/{admin.id}", headers=_basic(user.email, password))
        assert resp.status_code == 403


class TestPasswordLength:
    def test_registration_rejects_short_password(self, client, app_ctx):
        resp = client.post(f"{API}/users", json={"email": "boss@example.com", "password": "12345"})
        assert resp.status_code == 422
        assert "password" in resp.get_json()["details"]

    def test_update_rejects_short_password(self, client, user, password):
        resp = client.patch(
            f"{API}/users/{user.id}",
            json={"password": "12345"},
            headers=_basic(user.email, password),
        )

        assert resp.status_code == 422
        assert client.get(f"{API}/users/me", headers=_basic(user.email, password)).status_code == 200
