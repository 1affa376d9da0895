"""
Request identity.

Tokens are issued by the external session service; this API only verifies
them. The JWT identity is the user id, the ``name`` claim the display name
and the ``admin`` claim the role.
"""
from collections import namedtuple
from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from foodapp.errors import Forbidden, Unauthorized

CurrentUser = namedtuple('CurrentUser', ['id', 'name', 'is_admin'])


def current_user():
    claims = get_jwt()
    return CurrentUser(
        id=str(get_jwt_identity()),
        name=claims.get('name') or 'Customer',
        is_admin=bool(claims.get('admin', False)),
    )


def admin_required(fn):
    """Like ``jwt_required`` but also demands the admin claim"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if not current_user().is_admin:
            raise Forbidden()
        return fn(*args, **kwargs)
    return wrapper


def register_jwt_callbacks(jwt):
    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify(Unauthorized('Authorization required').to_dict()), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify(Unauthorized('Invalid token').to_dict()), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_data):
        return jsonify(Unauthorized('Token expired').to_dict()), 401
