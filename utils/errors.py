"""
utils/errors.py
-----------------
API exceptions and the JSON error handlers registered on the app.
"""

import logging

from flask import jsonify, current_app
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that maps directly onto an HTTP response."""

    def __init__(self, status_code, message, errors=None, **extra):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors
        self.extra = extra

    def to_dict(self):
        body = {"message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        body.update(self.extra)
        return body


class ValidationFailed(ApiError):

    def __init__(self, errors):
        super().__init__(400, "Validation Error", errors=errors)


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(DuplicateKeyError)
    def handle_duplicate_key(error):
        logger.warning("Duplicate key: %s", error)
        return jsonify({"message": "Resource already exists"}), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error: %s", error)
        body = {"message": "Internal server error"}
        if current_app.config.get("ENV_NAME") == "development":
            body["error"] = str(error)
        return jsonify(body), 500
