from marshmallow import Schema, fields, validate

MAX_LIMIT = 100
MIN_PASSWORD_LENGTH = 6


def strip_strings(data, *keys):
    """Trim surrounding whitespace of the given string fields (case is kept)."""
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for key in keys:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data


class PaginationSchema(Schema):
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=MAX_LIMIT))


class SuccessSchema(Schema):
    success = fields.Boolean(required=True)
    message = fields.String()
