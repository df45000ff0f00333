from marshmallow import Schema, fields, pre_load, validate

from models.schemas.common import MIN_PASSWORD_LENGTH, strip_strings


class LoginSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=1))
    device_info = fields.String(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        return strip_strings(data, "email")


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class LogoutSchema(Schema):
    refresh_token = fields.String(allow_none=True)


class EmailSchema(Schema):
    email = fields.Email(required=True)

    @pre_load
    def normalize(self, data, **kwargs):
        return strip_strings(data, "email")


class PasswordResetSchema(Schema):
    token = fields.String(required=True, validate=validate.Length(min=1))
    new_password = fields.String(required=True, validate=validate.Length(min=MIN_PASSWORD_LENGTH))


class VerifyEmailSchema(Schema):
    token = fields.String(required=True, validate=validate.Length(min=1))


class TokenPairSchema(Schema):
    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    user = fields.Dict()
