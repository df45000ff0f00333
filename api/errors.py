"""
Uniform JSON error envelope:

    {"error": "UNAUTHORIZED", "message": "Invalid credentials", "status": 401}

with an optional "details" object (validation messages, or the exception
type in debug mode).
"""
import logging

from flask import jsonify, current_app, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from models import storage
from services.exceptions import AuthError

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Unique email is the only constraint a client can trip
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        lower_msg = str(getattr(err, "orig", err)).lower()
        logger.warning("Integrity error on %s %s", request.method, request.path)
        if "unique" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        if isinstance(err, AuthError):
            logger.warning("%s on %s %s", type(err).__name__, request.method, request.path)
        response, status = error_response(ERROR_CODES.get(code, "BAD_REQUEST"), err.description, code)
        if code == 401:
            response.headers["WWW-Authenticate"] = 'Bearer, Basic realm="api"'
        return response, status

    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        storage.rollback()
        logger.exception("Unhandled exception on %s %s", request.method, request.path)
        details = None
        if current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
