from flask import jsonify


class TimeShopError(Exception):
    """Base error surfaced to HTTP callers as ``{"error": message}``."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(TimeShopError):
    """Missing or invalid fields, unknown card level, duplicate username."""

    status_code = 400


class Unauthorized(TimeShopError):
    """Credentials did not match the stored account."""

    status_code = 401


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(TimeShopError)
    def handle_timeshop_error(exc):
        flask_app.logger.info(f"[error] {exc.__class__.__name__} status={exc.status_code} message={exc.message}")
        return jsonify({'error': exc.message}), exc.status_code
