"""
Test suite for the core module
Tests: roles and view configuration, permissions, authentication, error format, commands
"""
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from inventra.catalog.models import Product
from inventra.core.models import User, AuditLog
from inventra.core.roles import Role, role_view_config, has_capability
from inventra.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventra.core.utils import create_audit_log
from inventra.orders.models import Order
from inventra.parties.models import Supplier


class RoleViewConfigTests(TestCase):
    """Test the role to view configuration mapping"""

    def test_admin_config(self):
        config = role_view_config('admin')
        self.assertEqual(config['role'], 'admin')
        self.assertEqual(config['title'], 'Executive Dashboard')
        self.assertTrue(config['can_delete_suppliers'])
        self.assertTrue(config['can_assign_roles'])

    def test_manager_config(self):
        config = role_view_config(Role.MANAGER)
        self.assertEqual(config['title'], 'Management Center')
        self.assertTrue(config['can_manage_products'])
        self.assertTrue(config['can_delete_orders'])
        self.assertFalse(config['can_delete_suppliers'])
        self.assertFalse(config['can_assign_roles'])

    def test_staff_config(self):
        config = role_view_config('staff')
        self.assertEqual(config['title'], 'Operations Hub')
        self.assertFalse(config['can_manage_products'])
        self.assertFalse(config['can_update_order_status'])
        self.assertTrue(config['can_view_reports'])

    def test_unknown_role_raises(self):
        with self.assertRaises(ValueError):
            role_view_config('owner')

    def test_config_is_a_fresh_copy(self):
        config = role_view_config('staff')
        config['widgets'].append('tampered')
        self.assertNotIn('tampered', role_view_config('staff')['widgets'])

    def test_has_capability(self):
        self.assertTrue(has_capability('manager', 'can_manage_suppliers'))
        self.assertFalse(has_capability('staff', 'can_manage_suppliers'))
        self.assertFalse(has_capability('owner', 'can_manage_suppliers'))
        self.assertFalse(has_capability(None, 'can_manage_suppliers'))


class AuthAPITests(TestCase):
    """Test registration, login, refresh and current user endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_defaults_to_staff(self):
        data = {'name': 'New Person', 'email': 'New.Person@Example.com', 'password': 'Xk9#mPq2vL'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'staff')
        self.assertEqual(response.data['user']['email'], 'new.person@example.com')
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        data = {'name': 'Someone', 'email': 'taken@example.com', 'password': 'Xk9#mPq2vL'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'validation_error')
        self.assertIn('email', response.data['errors'])

    def test_register_missing_name(self):
        data = {'email': 'noname@example.com', 'password': 'Xk9#mPq2vL'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)

    def test_anonymous_cannot_assign_admin_role(self):
        data = {'name': 'Sneaky', 'email': 'sneaky@example.com', 'password': 'Xk9#mPq2vL', 'role': 'admin'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='sneaky@example.com').exists())

    def test_admin_can_assign_manager_role(self):
        admin = TestDataFactory.create_user(role=Role.ADMIN)
        self.client.authenticate_user(admin)
        data = {'name': 'Boss', 'email': 'boss@example.com', 'password': 'Xk9#mPq2vL', 'role': 'manager'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email='boss@example.com').role, 'manager')

    def test_login_with_email(self):
        TestDataFactory.create_user(email='login@example.com', password='testpass123', role=Role.MANAGER)
        response = self.client.post(
            '/api/v1/auth/login/', {'email': 'login@example.com', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['role'], 'manager')

    def test_login_with_registered_mixed_case_email(self):
        data = {'name': 'Jane Doe', 'email': 'Jane@Example.com', 'password': 'Xk9#mPq2vL'}
        register = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(register.status_code, status.HTTP_201_CREATED)

        for email in ('Jane@Example.com', ' jane@example.com '):
            response = self.client.post(
                '/api/v1/auth/login/', {'email': email, 'password': 'Xk9#mPq2vL'}, format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['user']['email'], 'jane@example.com')

    def test_login_wrong_password(self):
        TestDataFactory.create_user(email='login@example.com', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'email': 'login@example.com', 'password': 'wrong'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('message', response.data)

    def test_refresh(self):
        TestDataFactory.create_user(email='refresh@example.com', password='testpass123')
        login = self.client.post(
            '/api/v1/auth/login/', {'email': 'refresh@example.com', 'password': 'testpass123'}, format='json'
        )
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_includes_view_config(self):
        user = TestDataFactory.create_user(role=Role.STAFF)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], user.email)
        self.assertEqual(response.data['view']['title'], 'Operations Hub')
        self.assertFalse(response.data['view']['can_manage_products'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'not_authenticated')
        self.assertIn('message', response.data)


class AuditLogTests(TestCase):
    """Test audit logging helper and listing"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role=Role.ADMIN)
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log(self):
        log = create_audit_log(user=self.admin, action='create', model_name='Product',
                               object_id=1, object_name='Widget')
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '1')
        self.assertEqual(log.user, self.admin)

    def test_missing_fields_are_skipped(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Product'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_list_admin_only(self):
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id=1)
        self.client.authenticate_user(TestDataFactory.create_user(role=Role.MANAGER))
        self.assertEqual(self.client.get('/api/v1/audit-logs/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'model': 'Product'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_list_date_filters(self):
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id=1)
        self.client.authenticate_user(self.admin)
        today = timezone.localdate()

        response = self.client.get('/api/v1/audit-logs/', {'date_from': today.isoformat(),
                                                           'date_to': today.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/audit-logs/', {'date_from': (today + timedelta(days=1)).isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 0)

    def test_list_bad_date(self):
        self.client.authenticate_user(self.admin)
        for params in ({'date_from': 'notadate'}, {'date_to': '2024-13-40'}):
            response = self.client.get('/api/v1/audit-logs/', params)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'validation_error')
            self.assertIn(next(iter(params)), response.data['errors'])


class ManagementCommandTests(TestCase):
    """Test bootstrap management commands"""

    @override_settings(DEFAULT_ADMIN_EMAIL='root@inventra.test', DEFAULT_ADMIN_PASSWORD='rootpass1')
    def test_create_default_admin_is_idempotent(self):
        call_command('create_default_admin', stdout=StringIO())
        call_command('create_default_admin', stdout=StringIO())
        admins = User.objects.filter(email='root@inventra.test')
        self.assertEqual(admins.count(), 1)
        self.assertEqual(admins.get().role, 'admin')
        self.assertTrue(admins.get().check_password('rootpass1'))

    def test_seed_sample_data(self):
        call_command('seed_sample_data', stdout=StringIO())
        self.assertEqual(Supplier.objects.count(), 3)
        self.assertEqual(Product.objects.count(), 10)
        self.assertEqual(Order.objects.count(), 4)
        john = Order.objects.get(customer_name='John Smith')
        self.assertEqual(str(john.total_amount), '5314.00')

        call_command('seed_sample_data', stdout=StringIO())
        self.assertEqual(Product.objects.count(), 10)
