"""
Error taxonomy and JSON error handlers.

Every policy check raises the most specific class below. The handlers turn
them into `{"ok": false, "error": "<reason>"}` bodies with the matching status
code, so no stack trace or internal id ever reaches the client.
"""
from contextlib import contextmanager
from typing import Optional

from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import RequestEntityTooLarge

from runclub.extensions import db


class AppError(Exception):
    """Base error with a status code and a short human-readable reason."""

    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    message = "Invalid request"


class AuthError(AppError):
    """No session."""

    status_code = 401
    message = "Unauthorized"


class ForbiddenError(AppError):
    """Logged in, but not allowed."""

    status_code = 403
    message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ConflictError(AppError):
    """Duplicate join, duplicate closed date, duplicate email."""

    status_code = 400
    message = "Already exists"


class StoreError(AppError):
    """The database call failed. Never reported as an empty result."""

    status_code = 500
    message = "Database error"


# --- event policy errors ---

class OutsideWindowError(ValidationError):
    message = "Event is not open for joining"


class AlreadyJoinedError(ConflictError):
    message = "You have already joined this event"


class GenderIneligibleError(ValidationError):
    message = "You are not eligible for this event"


class NotParticipantError(ForbiddenError):
    message = "You are not a participant in this event"


class OutsideEventPeriodError(ValidationError):
    message = "Entry date must be within event period"


class DateClosedError(ValidationError):
    message = "Entry submission is closed for this date"


@contextmanager
def store_errors(message: str):
    """
    Re-raise any SQLAlchemy failure inside the block as StoreError(message).

    The session is rolled back first so the request can still respond.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("[STORE] %s", message)
        raise StoreError(message) from e


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return jsonify({"ok": False, "error": err.message}), err.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_unexpected_db_error(err):
        db.session.rollback()
        current_app.logger.exception("[STORE] Unhandled database error")
        return jsonify({"ok": False, "error": "Database error"}), 500

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(err):
        return jsonify({"ok": False, "error": "File too large"}), 413
