"""
University Service Desk
Blueprint registry and shared error handling.
"""

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from servicedesk.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from servicedesk.models import db
from servicedesk.utils.errors import E, api_error, field_errors

logger = logging.getLogger(__name__)


def install_error_handlers(bp):
    """Map service-layer exceptions on ``bp`` to JSON error responses.

    Every handler rolls the session back so a failed operation leaves no
    partial mutation behind.
    """

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        db.session.rollback()
        return api_error(E.VALIDATION_INVALID, str(error), errors=field_errors(error.details))

    @bp.errorhandler(InvalidStateError)
    def _handle_invalid_state(error: InvalidStateError):
        db.session.rollback()
        return api_error(E.CONFLICT_STATE, str(error))

    @bp.errorhandler(AuthorizationError)
    def _handle_forbidden(error: AuthorizationError):
        db.session.rollback()
        return api_error(E.FORBIDDEN, str(error))

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        db.session.rollback()
        logger.info("%s on %s %s", error.log_message, request.method, request.path)
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        db.session.rollback()
        return jsonify({"message": error.description}), error.code

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        db.session.rollback()
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return jsonify({"message": "Internal server error", "code": E.INTERNAL}), 500

    return bp
