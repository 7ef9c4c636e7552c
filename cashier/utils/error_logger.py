"""
Error Logger Utility
Captures application errors to the database with request context.
"""

import json
import logging
import traceback
from datetime import datetime
from flask import request, has_request_context
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Keys to redact from request data
SENSITIVE_KEYS = {
    'password', 'password_hash', 'token', 'csrf_token', 'secret',
    'api_key', 'authorization', 'cookie', 'session'
}


def _sanitize_data(data):
    """Redact sensitive keys from a dict."""
    if not isinstance(data, dict):
        return data
    sanitized = {}
    for key, value in data.items():
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            sanitized[key] = '[REDACTED]'
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_data(value)
        else:
            sanitized[key] = str(value)[:500]  # Truncate long values
    return sanitized


def _request_details():
    """Collect request context for an error row"""
    details = {
        'request_url': request.url[:512] if request.url else None,
        'request_method': request.method,
        'ip_address': request.remote_addr,
        'user_agent': str(request.user_agent)[:512] if request.user_agent else None,
        'blueprint': request.blueprints[0] if request.blueprints else None,
        'endpoint': request.endpoint,
        'request_data': None,
        'user_id': None,
    }

    raw_data = {}
    if request.form:
        raw_data['form'] = dict(request.form)
    if request.args:
        raw_data['args'] = dict(request.args)
    payload = request.get_json(silent=True) if request.is_json else None
    if payload:
        raw_data['json'] = payload
    if raw_data:
        details['request_data'] = json.dumps(_sanitize_data(raw_data))[:4000]

    if current_user and current_user.is_authenticated:
        details['user_id'] = current_user.id

    return details


def log_error(error, status_code=500):
    """
    Log an error to the database.

    Safe to call from error handlers: a failure to write the row is
    logged and rolled back instead of raised.

    Args:
        error: The exception or error object
        status_code: HTTP status code (default 500)
    """
    from cashier.models import db, ErrorLog

    tb = ''.join(traceback.format_exception(type(error), error, error.__traceback__)) \
        if isinstance(error, BaseException) else None

    error_log = ErrorLog(
        timestamp=datetime.utcnow(),
        error_type=type(error).__name__,
        error_message=str(error)[:2000] or type(error).__name__,
        traceback=tb,
        status_code=status_code,
        is_resolved=False,
        **(_request_details() if has_request_context() else {})
    )

    try:
        db.session.add(error_log)
        db.session.commit()
        return error_log
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Could not record error log entry: {e}")
        return None
