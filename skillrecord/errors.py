from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
import logging

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors reported to the client as JSON"""
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors

    def to_dict(self):
        payload = {'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(APIError):
    status_code = 400
    message = 'Invalid data'


class InvalidStateError(APIError):
    status_code = 400
    message = 'Invalid state'


class AuthenticationError(APIError):
    status_code = 401
    message = 'Unauthorized'


class Forbidden(APIError):
    # The message is fixed so a denial never reveals which check failed
    status_code = 403
    message = 'Forbidden'

    def __init__(self):
        super().__init__()


class NotFound(APIError):
    status_code = 404
    message = 'Not found'


class Conflict(APIError):
    status_code = 409
    message = 'Conflict'


class ServiceUnavailable(APIError):
    status_code = 503
    message = 'Service unavailable'


def register_error_handlers(app):
    from . import db

    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"API error: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logger.error(f"Database error: {str(error)}")
        return jsonify({'message': 'Internal server error'}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code
