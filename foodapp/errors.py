"""
Error taxonomy and JSON error handlers.

Services raise these exceptions; the handlers registered by
``register_error_handlers`` translate them into ``{"success": false, ...}``
responses so no traceback ever reaches a client.
"""
from typing import List, Optional

from flask import jsonify
from sqlalchemy import exc as sa_exc
from werkzeug.exceptions import HTTPException


class FoodAppError(Exception):
    """Base class for every error with a machine-readable kind"""

    kind = 'Error'
    status_code = 400
    default_message = 'Request could not be processed'

    def __init__(self, message: Optional[str] = None, details: Optional[List[str]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self):
        body = {
            'success': False,
            'error': self.message,
            'kind': self.kind,
        }
        if self.details:
            body['details'] = self.details
        return body


class ValidationError(FoodAppError):
    kind = 'ValidationError'
    default_message = 'Validation failed'


class NotFound(FoodAppError):
    kind = 'NotFound'
    status_code = 404
    default_message = 'Resource not found'


class InvalidTransition(FoodAppError):
    kind = 'InvalidTransition'
    default_message = 'Invalid status'


class WindowExpired(FoodAppError):
    kind = 'WindowExpired'
    default_message = 'Cancellation window has expired'


class OutOfServiceArea(FoodAppError):
    kind = 'OutOfServiceArea'
    default_message = 'Sorry, we do not deliver to this address yet'


class AlreadyRated(FoodAppError):
    kind = 'AlreadyRated'
    default_message = 'This order has already been rated'


class Conflict(FoodAppError):
    kind = 'Conflict'
    default_message = 'Resource already exists'


class PaymentError(FoodAppError):
    kind = 'PaymentError'
    default_message = 'Payment provider error'


class PartialRatingFailure(FoodAppError):
    kind = 'PartialRatingFailure'
    status_code = 500
    default_message = 'Rating was only partially applied'


class Unauthorized(FoodAppError):
    kind = 'Unauthorized'
    status_code = 401
    default_message = 'Authorization required'


class Forbidden(FoodAppError):
    kind = 'Forbidden'
    status_code = 403
    default_message = 'Administrator access required'


class StoreTimeout(FoodAppError):
    kind = 'Timeout'
    status_code = 504
    default_message = 'The datastore did not answer in time'


class StoreUnavailable(FoodAppError):
    kind = 'StoreUnavailable'
    status_code = 502
    default_message = 'The datastore is unavailable'


def translate_store_error(error: sa_exc.SQLAlchemyError) -> FoodAppError:
    """Map a SQLAlchemy failure onto the public taxonomy"""
    if isinstance(error, sa_exc.TimeoutError):
        return StoreTimeout()
    return StoreUnavailable()


def register_error_handlers(app):
    @app.errorhandler(FoodAppError)
    def handle_app_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(sa_exc.SQLAlchemyError)
    def handle_store_error(error):
        app.logger.error(f"Datastore error: {error}")
        from foodapp import db
        db.session.rollback()
        translated = translate_store_error(error)
        return jsonify(translated.to_dict()), translated.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        kind = {
            400: 'ValidationError',
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'NotFound',
            405: 'MethodNotAllowed',
            413: 'ValidationError',
        }.get(error.code, 'Error')
        return jsonify({
            'success': False,
            'error': error.description,
            'kind': kind,
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f"Unhandled error: {error}")
        return jsonify({
            'success': False,
            'error': 'Internal server error',
            'kind': 'InternalError',
        }), 500
