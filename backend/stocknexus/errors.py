# Overview: Maps domain exceptions raised by the service layer to JSON error responses.

from flask import current_app, jsonify
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException

from .services.auth_service import PasswordValidationError
from .services.import_service import InventoryImportError
from .services.policy_service import AccessDeniedError
from .services.reporting_service import ReportError
from .validation import ConflictError, NotFoundError, ValidationError


# Exception -> HTTP status. Order matters only for subclasses.
ERROR_STATUS = (
    (ValidationError, 400),
    (PasswordValidationError, 400),
    (InventoryImportError, 400),
    (ReportError, 400),
    (AccessDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def register_error_handlers(app):
    def _make_handler(status):
        def handler(exc):
            return error_response(str(exc), status)
        return handler

    for exc_class, status in ERROR_STATUS:
        app.register_error_handler(exc_class, _make_handler(status))

    @app.errorhandler(StaleDataError)
    def handle_stale(exc):
        return error_response("Record was modified by another request; reload and retry", 409)

    @app.errorhandler(HTTPException)
    def handle_http(exc):
        return error_response(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        current_app.logger.exception("Unhandled error")
        return error_response("Internal server error", 500)
