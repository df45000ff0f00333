from marshmallow import Schema, fields, pre_load, validate

from models.user import UserRole
from models.schemas.common import MIN_PASSWORD_LENGTH, PaginationSchema, strip_strings

ROLES = [r.value for r in UserRole]


class UserCreateSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=MIN_PASSWORD_LENGTH))
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    role = fields.String(allow_none=True, validate=validate.OneOf(ROLES))

    @pre_load
    def normalize(self, data, **kwargs):
        return strip_strings(data, "email", "first_name", "last_name")


class UserUpdateSchema(Schema):
    email = fields.Email()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    avatar = fields.Url(allow_none=True, require_tld=False)
    is_active = fields.Boolean()
    role = fields.String(validate=validate.OneOf(ROLES))
    password = fields.String(load_only=True, validate=validate.Length(min=MIN_PASSWORD_LENGTH))

    @pre_load
    def normalize(self, data, **kwargs):
        return strip_strings(data, "email", "first_name", "last_name")


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True)
    new_password = fields.String(required=True, validate=validate.Length(min=MIN_PASSWORD_LENGTH))


class UserSearchSchema(PaginationSchema):
    email = fields.String()
    first_name = fields.String()
    last_name = fields.String()
    is_active = fields.Boolean()
    is_email_verified = fields.Boolean()
    role = fields.String(validate=validate.OneOf(ROLES))
    sort_by = fields.String(
        load_default="created_at",
        validate=validate.OneOf(
            ["created_at", "updated_at", "email", "first_name", "last_name", "last_login_at"]
        ),
    )
    sort_direction = fields.String(load_default="DESC", validate=validate.OneOf(["ASC", "DESC", "asc", "desc"]))


class UserOutSchema(Schema):
    """Sanitized user projection: no password hash, no token relations."""

    id = fields.String()
    email = fields.String()
    first_name = fields.String(allow_none=True)
    last_name = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    is_email_verified = fields.Boolean()
    is_active = fields.Boolean()
    role = fields.String()
    last_login_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
