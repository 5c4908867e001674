import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message=None, status_code=None, **extra):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self):
        payload = {"error": self.message}
        payload.update(self.extra)
        return payload


class ValidationError(APIError):
    status_code = 400
    message = "Invalid request"


class AuthError(APIError):
    status_code = 401
    message = "Authentication required"


class ForbiddenError(APIError):
    status_code = 403
    message = "Not authorized"


class NotFoundError(APIError):
    status_code = 404
    message = "Not found"


class ConflictError(APIError):
    status_code = 409
    message = "Already exists"


class EmptyQuizError(APIError):
    status_code = 422
    message = "Quiz has no questions"


class AIServiceError(APIError):
    status_code = 502
    message = "AI service is temporarily unavailable. Please try again later."


class SchemaVersionError(RuntimeError):
    """Raised at start-up when the database schema does not match the code."""


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        if err.code == 404:
            return jsonify({"error": "Route not found"}), 404
        return jsonify({"error": err.description or err.name}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        logger.exception("Unhandled error")
        payload = {"error": "Internal server error"}
        if app.config.get("ENVIRONMENT") == "development" or app.debug:
            payload["details"] = str(err)
        return jsonify(payload), 500
