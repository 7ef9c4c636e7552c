"""
Authentication Routes
Handles user login and logout
"""

import logging
from datetime import datetime
from flask import Blueprint, current_app, jsonify, request
from flask_login import login_user, logout_user, current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from cashier import limiter
from cashier.models import db, User, ActivityLog

bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


def _login_rate_limit():
    return current_app.config.get('LOGIN_RATE_LIMIT', '10 per minute')


@bp.route('/login', methods=['POST'])
@limiter.limit(_login_rate_limit)
def login():
    """User login (form or JSON body)"""
    data = request.get_json(silent=True) or request.form
    username = data.get('username')
    password = data.get('password')
    remember = bool(data.get('remember', False))

    user = User.query.filter_by(username=username).first()

    if user is None or not user.check_password(password or ''):
        log_activity(None, 'failed_login', 'user', None, f'Failed login attempt for username: {username}')
        return jsonify({'success': False, 'error': 'Invalid username or password'}), 401

    if not user.is_active:
        return jsonify({
            'success': False,
            'error': 'Your account has been deactivated. Please contact administrator.'
        }), 403

    login_user(user, remember=remember)
    user.last_login = datetime.utcnow()
    db.session.commit()

    log_activity(user.id, 'login', 'user', user.id, 'User logged in')

    return jsonify({
        'success': True,
        'user': {'id': user.id, 'username': user.username, 'full_name': user.full_name, 'role': user.role}
    })


@bp.route('/logout')
@login_required
def logout():
    """User logout"""
    log_activity(current_user.id, 'logout', 'user', current_user.id, 'User logged out')
    logout_user()
    return jsonify({'success': True})


def log_activity(user_id, action, entity_type, entity_id, details):
    """Helper function to log user activities"""
    try:
        log = ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=request.remote_addr if request else None
        )
        db.session.add(log)
        db.session.commit()
    except SQLAlchemyError as e:
        # Don't fail the request if logging fails
        db.session.rollback()
        logger.error(f"Error logging activity: {e}")
