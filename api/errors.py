"""
The single boundary where exceptions become the response envelope.
"""
from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from models.schemas.common import flatten_messages
from utils.errors import ApiError

logger = logging.getLogger(__name__)


def success_response(data, message: str, status: int = 200):
    payload = {"status": status, "data": data, "message": message, "success": True}
    return jsonify(payload), status


def error_response(message: str, status: int, errors: list | None = None):
    payload = {"status": status, "data": None, "message": message, "errors": errors or [], "success": False}
    return jsonify(payload), status


def register_error_handlers(app):
    # Domain errors raised by the services
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status >= 500:
            logger.exception("Server error: %s", err.message, exc_info=err)
        else:
            logger.info("%s %s: %s", err.status, err.__class__.__name__, err.message)
        return error_response(err.message, err.status, err.errors)

    # Marshmallow validation errors that escape a view map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        logger.info("Validation error: %s", err.messages)
        return error_response("Invalid input", 400, flatten_messages(err.messages))

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        logger.warning("Integrity error: %s", message)
        details = [message] if current_app and current_app.debug else []
        if "unique constraint" in lower_msg or "unique violation" in lower_msg or "duplicate key" in lower_msg:
            return error_response("Resource already exists", 409, details)
        if "foreign key" in lower_msg:
            return error_response("Foreign key constraint failed.", 400, details)
        if "check constraint" in lower_msg or "constraint failed" in lower_msg:
            return error_response("Check constraint failed.", 400, details)
        return error_response("Integrity error.", 400, details)

    # Werkzeug HTTPExceptions (404 for unknown routes, 405, ...) keep their codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        errors = []
        # In dev, include exception details to speed up debugging
        if current_app and current_app.debug:
            errors = [f"{err.__class__.__name__}: {err}"]
        return error_response("An unexpected error occurred", 500, errors)
