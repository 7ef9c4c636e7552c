"""
Authentication Tests
Login, logout and role permissions
"""

import pytest

from cashier.models import User, ActivityLog


def login(client, username, password):
    return client.post('/auth/login', json={'username': username, 'password': password})


class TestLogin:

    def test_login_success(self, client, init_database):
        response = login(client, 'cashier', 'cashier123')

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['user']['role'] == 'cashier'
        assert User.query.filter_by(username='cashier').first().last_login is not None

    def test_login_form_body(self, client, init_database):
        response = client.post('/auth/login', data={'username': 'admin', 'password': 'admin123'})

        assert response.status_code == 200

    def test_login_wrong_password(self, client, init_database):
        response = login(client, 'cashier', 'wrong')

        assert response.status_code == 401
        assert ActivityLog.query.filter_by(action='failed_login').count() == 1

    def test_login_unknown_user(self, client, init_database):
        response = login(client, 'ghost', 'whatever')

        assert response.status_code == 401

    def test_login_inactive_user(self, client, init_database):
        response = login(client, 'inactive', 'inactive123')

        assert response.status_code == 403

    def test_logout(self, auth_cashier):
        response = auth_cashier.get('/auth/logout')

        assert response.status_code == 200
        assert auth_cashier.get('/returns/list').status_code == 401


class TestPermissions:

    @pytest.mark.parametrize('role,permission,expected', [
        ('admin', 'returns.process', True),
        ('manager', 'returns.process', True),
        ('cashier', 'returns.view', True),
        ('cashier', 'returns.process', True),
        ('stock_manager', 'returns.view', True),
        ('stock_manager', 'returns.process', False),
        ('unknown', 'returns.view', False),
    ])
    def test_role_permissions(self, role, permission, expected):
        assert User(role=role).has_permission(permission) is expected
