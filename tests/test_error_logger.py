"""
Tests for the database error logger
"""

from cashier.models import ErrorLog
from cashier.utils.error_logger import _sanitize_data, log_error


def test_sanitize_redacts_sensitive_keys():
    data = _sanitize_data({
        'username': 'cashier',
        'password': 'secret-value',
        'json': {'csrf_token': 'abc', 'sale_id': 4}
    })

    assert data == {
        'username': 'cashier',
        'password': '[REDACTED]',
        'json': {'csrf_token': '[REDACTED]', 'sale_id': '4'}
    }


def test_sanitize_passes_through_non_dict():
    assert _sanitize_data('plain') == 'plain'


def test_log_error_outside_request(fresh_app):
    try:
        raise ValueError('boom')
    except ValueError as e:
        entry = log_error(e)

    assert entry is not None
    stored = ErrorLog.query.one()
    assert stored.error_type == 'ValueError'
    assert stored.error_message == 'boom'
    assert stored.status_code == 500
    assert 'ValueError: boom' in stored.traceback
    assert stored.request_url is None


def test_log_error_with_request_context(fresh_app):
    with fresh_app.test_request_context(
        '/returns/process', method='POST', json={'sale_id': 1, 'password': 'x'}
    ):
        log_error(RuntimeError('database went away'), status_code=503)

    stored = ErrorLog.query.one()
    assert stored.request_method == 'POST'
    assert stored.status_code == 503
    assert '/returns/process' in stored.request_url
    assert '[REDACTED]' in stored.request_data
    assert stored.user_id is None
