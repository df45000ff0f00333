from __future__ import annotations

import math

from flask import Blueprint, request, jsonify, g, abort

from models.schemas.common import SuccessSchema
from models.schemas.user import (
    ChangePasswordSchema,
    UserCreateSchema,
    UserOutSchema,
    UserSearchSchema,
    UserUpdateSchema,
)
from models.user import UserRole
from services import user as user_service
from services.exceptions import EmailAlreadyRegisteredError, PermissionDeniedError, UserNotFoundError
from utils.decorators import admin_required, auth_required

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_search_schema = UserSearchSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)
success_schema = SuccessSchema()


@bp.post("/users")
@auth_required(optional=True)
def register():
    """
    Register a user. The first account needs no credentials and becomes admin;
    afterwards only admins may create users.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string }
            password: { type: string }
            first_name: { type: string }
            last_name: { type: string }
            role: { type: string, enum: [admin, user] }
    responses:
      201:
        description: Created
      400:
        description: Email already registered
      403:
        description: Only administrators can create new users
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = user_service.register_user(data, current_user=g.current_user)
    return jsonify(user_out_schema.dump(user)), 201


@bp.get("/users")
@admin_required("Only administrators can access the users list")
def list_users():
    """
    List users (admin) with filters, pagination and sorting
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
      - { in: query, name: email, type: string }
      - { in: query, name: first_name, type: string }
      - { in: query, name: last_name, type: string }
      - { in: query, name: is_active, type: boolean }
      - { in: query, name: is_email_verified, type: boolean }
      - { in: query, name: role, type: string }
      - { in: query, name: sort_by, type: string, default: created_at }
      - { in: query, name: sort_direction, type: string, default: DESC }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    params = user_search_schema.load(request.args.to_dict())
    rows, total = user_service.find_users(params)
    limit = params["limit"]
    return jsonify(
        {
            "items": user_list_out_schema.dump(rows),
            "total": total,
            "page": params["page"],
            "page_count": math.ceil(total / limit),
            "limit": limit,
        }
    ), 200


@bp.get("/users/me")
@auth_required()
def me():
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(g.current_user), 200


@bp.post("/users/me/password")
@auth_required()
def change_password():
    """
    Change the current user's password; signs out every device
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [current_password, new_password]
          properties:
            current_password: { type: string }
            new_password: { type: string }
    responses:
      200: { description: OK }
      401: { description: Invalid credentials }
    """
    data = change_password_schema.load(request.get_json(silent=True) or {})
    result = user_service.change_password(
        g.current_user["id"], data["current_password"], data["new_password"]
    )
    return jsonify(success_schema.dump(result)), 200


@bp.patch("/users/<user_id>")
@auth_required()
def update_user(user_id: str):
    """
    Update a user (self, or any user as admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            first_name: { type: string }
            last_name: { type: string }
            avatar: { type: string }
            is_active: { type: boolean }
            role: { type: string }
            password: { type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      404: { description: User not found }
    """
    current = g.current_user
    data = user_update_schema.load(request.get_json(silent=True) or {})

    if user_service.find_by_id(user_id) is None:
        raise UserNotFoundError()

    is_admin = current["role"] == UserRole.ADMIN.value
    if current["id"] != user_id and not is_admin:
        raise PermissionDeniedError("You can only update your own profile")
    if not is_admin:
        data.pop("role", None)
        data.pop("is_active", None)
    if current["id"] != user_id:
        # admins cannot rewrite someone else's login email
        data.pop("email", None)

    if "email" in data:
        owner = user_service.find_by_email(data["email"])
        if owner is not None and owner.id != user_id:
            raise EmailAlreadyRegisteredError()

    user = user_service.update_user(user_id, data)
    return jsonify(user_out_schema.dump(user)), 200


@bp.delete("/users/<user_id>")
@admin_required("Only administrators can delete users")
def delete_user(user_id: str):
    """
    Delete a user (admin). Their refresh tokens are deleted with them.
    ---
    tags:
      - Users
    security:
      - Bearer: []
      - Basic: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: "{success: bool}" }
      400: { description: Cannot delete yourself }
      403: { description: Forbidden }
      404: { description: User not found }
    """
    if user_service.find_by_id(user_id) is None:
        raise UserNotFoundError()
    if g.current_user["id"] == user_id:
        abort(400, description="You cannot delete your own account")

    return jsonify(success_schema.dump({"success": user_service.delete_user(user_id)})), 200
