"""
Permission Decorators
"""

from functools import wraps
from flask import jsonify
from flask_login import current_user


def permission_required(permission_name):
    """
    Decorator to require a specific permission for a route

    Usage:
        @permission_required(Permissions.RETURNS_PROCESS)
        def process():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({'success': False, 'error': 'Authentication required'}), 401

            if not current_user.has_permission(permission_name):
                return jsonify({'success': False, 'error': 'Insufficient permissions'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator


class Permissions:
    """Permission name constants to avoid typos"""

    RETURNS_VIEW = 'returns.view'
    RETURNS_PROCESS = 'returns.process'
