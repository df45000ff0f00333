"""
Authentication blueprint:
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all-devices
- POST /auth/password-reset-request
- POST /auth/password-reset
- POST /auth/verify-email
- POST /auth/resend-verification

Login and refresh return the token pair in the body, set the access_token
and refresh_token cookies and send "Authorization: Bearer <access token>".
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.auth import (
    EmailSchema,
    LoginSchema,
    LogoutSchema,
    PasswordResetSchema,
    RefreshTokenSchema,
    TokenPairSchema,
    VerifyEmailSchema,
)
from models.schemas.common import SuccessSchema
from services import auth as auth_service
from services import strategies
from services import user as user_service
from utils.decorators import auth_required
from utils.request_info import get_client_ip, get_device_info

AUTH_COOKIES = ("access_token", "refresh_token", "authenticated")

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()
email_schema = EmailSchema()
password_reset_schema = PasswordResetSchema()
verify_email_schema = VerifyEmailSchema()
token_pair_schema = TokenPairSchema()
success_schema = SuccessSchema()


def _cookie_options() -> dict:
    cfg = current_app.config
    return {
        "httponly": True,
        "secure": cfg["COOKIE_SECURE"],
        "samesite": cfg["COOKIE_SAMESITE"],
        "path": cfg["COOKIE_PATH"],
    }


def _token_response(result: dict):
    """JSON body + cookies + Authorization header for a fresh token pair."""
    cfg = current_app.config
    response = jsonify(token_pair_schema.dump(result))
    options = _cookie_options()
    response.set_cookie(
        "access_token",
        result["access_token"],
        max_age=int(cfg["JWT_TOKEN_EXPIRES"].total_seconds()),
        **options,
    )
    response.set_cookie(
        "refresh_token",
        result["refresh_token"],
        max_age=int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        **options,
    )
    response.headers["Authorization"] = f"Bearer {result['access_token']}"
    return response, 200


def _presented_refresh_token(payload: dict) -> dict:
    """Body value wins; the httpOnly cookie is the fallback."""
    payload = dict(payload)
    if not payload.get("refresh_token") and request.cookies.get("refresh_token"):
        payload["refresh_token"] = request.cookies["refresh_token"]
    return payload


@bp.post("/login")
def login():
    """
    Login with email and password: returns access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string }
             password: { type: string }
             device_info: { type: string }
    responses:
      200:
        description: OK (returns tokens, sets cookies)
      401:
        description: Invalid credentials
      422:
        description: Validation error
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    profile = strategies.resolve("local", data["email"], data["password"])
    user = user_service.find_by_id(profile["id"])

    result = auth_service.login(
        user,
        ip_address=get_client_ip(),
        device_info=data.get("device_info") or get_device_info(),
    )
    return _token_response(result)


@bp.post("/refresh")
@auth_required()
def refresh():
    """
    Rotate a refresh token: the presented token is revoked and a new pair issued
    ---
    tags:
      - Auth
    security:
      - Bearer: []
      - Basic: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns a new token pair)
      401:
        description: Invalid, expired, reused or foreign refresh token
    """
    payload = _presented_refresh_token(request.get_json(silent=True) or {})
    data = refresh_schema.load(payload)
    result = auth_service.refresh(
        data["refresh_token"],
        current_user_id=g.current_user["id"],
        ip_address=get_client_ip(),
        device_info=get_device_info(),
    )
    return _token_response(result)


def _logout_response(result: dict):
    response = jsonify(success_schema.dump(result))
    options = _cookie_options()
    for name in AUTH_COOKIES:
        response.delete_cookie(name, path=options["path"], secure=options["secure"],
                               httponly=True, samesite=options["samesite"])
    return response, 200


@bp.post("/logout")
@auth_required()
def logout():
    """
    Logout this device: revokes the presented refresh token, clears cookies
    ---
    tags:
      - Auth
    security:
      - Bearer: []
      - Basic: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: "{success: bool}"
      401:
        description: Unauthorized
    """
    payload = _presented_refresh_token(request.get_json(silent=True) or {})
    data = logout_schema.load(payload)
    result = auth_service.logout(g.current_user["id"], data.get("refresh_token"), revoke_all=False)
    return _logout_response(result)


@bp.post("/logout-all-devices")
@auth_required()
def logout_all_devices():
    """
    Logout everywhere: revokes every refresh token of the user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
      - Basic: []
    responses:
      200:
        description: "{success: bool}"
      401:
        description: Unauthorized
    """
    result = auth_service.logout(g.current_user["id"], None, revoke_all=True)
    return _logout_response(result)


@bp.post("/password-reset-request")
def password_reset_request():
    """
    Request a password reset token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email]
           properties:
             email: { type: string }
    responses:
      200:
        description: Same answer whether or not the account exists
    """
    data = email_schema.load(request.get_json(silent=True) or {})
    return jsonify(success_schema.dump(auth_service.request_password_reset(data["email"]))), 200


@bp.post("/password-reset")
def password_reset():
    """
    Reset a password with a single-use token; signs out every device
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [token, new_password]
           properties:
             token: { type: string }
             new_password: { type: string }
    responses:
      200:
        description: Password reset
      401:
        description: Invalid or expired password reset token
    """
    data = password_reset_schema.load(request.get_json(silent=True) or {})
    result = auth_service.reset_password(data["token"], data["new_password"])
    return jsonify(success_schema.dump(result)), 200


@bp.post("/verify-email")
def verify_email():
    """
    Verify an email address with a single-use token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [token]
           properties:
             token: { type: string }
    responses:
      200:
        description: Email verified
      401:
        description: Invalid or expired verification token
    """
    data = verify_email_schema.load(request.get_json(silent=True) or {})
    return jsonify(success_schema.dump(auth_service.verify_email(data["token"]))), 200


@bp.post("/resend-verification")
def resend_verification():
    """
    Issue a new email verification token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email]
           properties:
             email: { type: string }
    responses:
      200:
        description: "{success, message}"
    """
    data = email_schema.load(request.get_json(silent=True) or {})
    return jsonify(success_schema.dump(auth_service.resend_verification(data["email"]))), 200
