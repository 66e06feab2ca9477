"""
Test suite for Core module
Tests: Authentication, Users, Permissions, Settings, Activity log, Demo data
"""
import json
from io import StringIO
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from backend.core.models import ActivityLog, Setting
from backend.core.permissions import check_permission, default_permissions_for_role, module_access
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import DEFAULT_SYSTEM_SETTINGS, get_system_settings, log_activity
from backend.customers.models import Customer
from backend.orders.models import Order
from backend.catalog.models import Product

User = get_user_model()


class PermissionCheckTests(TestCase):
    """Test role and permission-string checks"""

    def test_admin_role_passes_every_check(self):
        admin = TestDataFactory.create_user(role='admin', permissions=[])
        self.assertTrue(check_permission(admin, 'orders', 'delete'))
        self.assertTrue(check_permission(admin, 'settings', 'edit'))

    def test_seller_defaults(self):
        seller = TestDataFactory.create_seller()
        self.assertEqual(seller.permissions, ['orders-full', 'customers-full'])
        self.assertTrue(check_permission(seller, 'orders', 'create'))
        self.assertTrue(check_permission(seller, 'orders', 'approve'))
        self.assertTrue(check_permission(seller, 'customers', 'delete'))
        self.assertFalse(check_permission(seller, 'production', 'edit'))
        self.assertFalse(check_permission(seller, 'settings', 'view'))

    def test_operator_defaults(self):
        operator = TestDataFactory.create_operator_user()
        self.assertTrue(check_permission(operator, 'production', 'view'))
        self.assertTrue(check_permission(operator, 'production', 'edit'))
        self.assertFalse(check_permission(operator, 'orders', 'view'))

    def test_specific_module_action_permission(self):
        user = TestDataFactory.create_user(role='seller', permissions=['orders:view', 'orders:approve'])
        self.assertTrue(check_permission(user, 'orders', 'approve'))
        self.assertFalse(check_permission(user, 'orders', 'cancel'))

    def test_all_wildcard(self):
        user = TestDataFactory.create_user(role='operator', permissions=['all'])
        self.assertTrue(check_permission(user, 'customers', 'delete'))

    def test_module_access_flags(self):
        seller = TestDataFactory.create_seller()
        access = module_access(seller)
        self.assertFalse(access['is_admin'])
        self.assertTrue(access['can_access_orders'])
        self.assertTrue(access['can_access_customers'])
        self.assertFalse(access['can_access_production'])

    def test_unknown_role_has_no_defaults(self):
        self.assertEqual(default_permissions_for_role('guest'), [])


class UserModelTests(TestCase):
    """Test user status handling"""

    def test_inactive_status_disables_login(self):
        user = TestDataFactory.create_user(status='inactive')
        self.assertFalse(user.is_active)
        user.status = 'active'
        user.save()
        self.assertTrue(user.is_active)

    def test_display_name_falls_back_to_username(self):
        user = TestDataFactory.create_user(username='semnome')
        self.assertEqual(user.display_name, 'semnome')


class AuthenticationTests(TestCase):
    """Test login, registration and current user endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        TestDataFactory.create_user(username='carlos', password='Biobox!2024x', role='seller')
        response = self.client.post('/api/v1/auth/login/', {'username': 'carlos', 'password': 'Biobox!2024x'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'seller')

    def test_login_rejected_for_inactive_user(self):
        TestDataFactory.create_user(username='inativo', password='Biobox!2024x', status='inactive')
        response = self.client.post('/api/v1/auth/login/', {'username': 'inativo', 'password': 'Biobox!2024x'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_always_creates_seller(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'novo_vendedor',
            'email': 'novo@bioboxsys.com',
            'password': 'Biobox!2024x',
            'password_confirm': 'Biobox!2024x',
            'role': 'admin',
            'permissions': ['all'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'seller')
        self.assertEqual(response.data['user']['permissions'], ['orders-full', 'customers-full'])

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'outro',
            'password': 'Biobox!2024x',
            'password_confirm': 'Biobox!2024y',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_includes_module_access(self):
        user = TestDataFactory.create_operator_user()
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['can_access_production'])
        self.assertFalse(response.data['can_access_orders'])

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserManagementTests(TestCase):
    """Test admin-only user endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_operator_gets_default_permissions(self):
        response = self.client.post('/api/v1/users/', {
            'username': 'operador1',
            'password': 'Biobox!2024x',
            'password_confirm': 'Biobox!2024x',
            'role': 'operator',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['permissions'], ['production-view', 'production-manage'])
        self.assertEqual(response.data['created_by'], self.admin.id)
        self.assertTrue(ActivityLog.objects.filter(entity_type='user', action_type='create').exists())

    def test_create_with_unknown_role(self):
        response = self.client.post('/api/v1/users/', {
            'username': 'x',
            'password': 'Biobox!2024x',
            'password_confirm': 'Biobox!2024x',
            'role': 'manager',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_seller_cannot_list_users(self):
        seller = TestDataFactory.create_seller()
        self.client.authenticate_user(seller)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_deactivate_user(self):
        seller = TestDataFactory.create_seller()
        response = self.client.patch(f'/api/v1/users/{seller.id}/', {'status': 'inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        seller.refresh_from_db()
        self.assertFalse(seller.is_active)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_permission_catalog(self):
        response = self.client.get('/api/v1/permissions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('orders-full', [p['id'] for p in response.data])


class SystemSettingsTests(TestCase):
    """Test the JSON system settings document"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_defaults_without_stored_setting(self):
        response = self.client.get('/api/v1/settings/system/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['monthly_revenue_target'], 180000)
        self.assertEqual(response.data['low_stock_threshold'], 5)

    def test_partial_update_merges_onto_defaults(self):
        response = self.client.patch('/api/v1/settings/system/', {'monthly_revenue_target': 250000},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        settings = get_system_settings()
        self.assertEqual(settings['monthly_revenue_target'], 250000)
        self.assertEqual(settings['company_name'], DEFAULT_SYSTEM_SETTINGS['company_name'])
        stored = json.loads(Setting.objects.get(key='system_settings').value)
        self.assertEqual(stored['monthly_revenue_target'], 250000)

    def test_seller_cannot_edit_settings(self):
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.patch('/api/v1/settings/system/', {'low_stock_threshold': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_invalid_json_falls_back_to_defaults(self):
        Setting.objects.create(key='system_settings', value='not json')
        self.assertEqual(get_system_settings(), DEFAULT_SYSTEM_SETTINGS)


class ActivityLogTests(TestCase):
    """Test activity feed logging and listing"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_log_activity_without_user_uses_system_name(self):
        entry = log_activity(action_type='update', entity_type='order', entity_id=1, entity_name='ORD-2025-0001',
                             description='Pedido atualizado')
        self.assertEqual(entry.user_name, 'Sistema')
        self.assertIsNone(entry.user)

    def test_log_activity_skips_missing_fields(self):
        self.assertIsNone(log_activity(action_type='update', entity_type=None, entity_id=1))

    def test_non_admin_sees_only_own_entries(self):
        seller = TestDataFactory.create_seller()
        log_activity(user=seller, action_type='create', entity_type='customer', entity_id=1)
        log_activity(user=self.admin, action_type='create', entity_type='customer', entity_id=2)

        self.client.authenticate_user(seller)
        response = self.client.get('/api/v1/activities/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['entity_id'], '1')

    def test_filter_and_limit(self):
        for i in range(5):
            log_activity(user=self.admin, action_type='update', entity_type='order', entity_id=i)
        log_activity(user=self.admin, action_type='delete', entity_type='product', entity_id=99)

        response = self.client.get('/api/v1/activities/?entity_type=order&limit=3')
        self.assertEqual(len(response.data), 3)
        self.assertTrue(all(entry['entity_type'] == 'order' for entry in response.data))

    def test_recent_returns_latest_twenty(self):
        for i in range(25):
            log_activity(user=self.admin, action_type='update', entity_type='order', entity_id=i)
        response = self.client.get('/api/v1/activities/recent/')
        self.assertEqual(len(response.data), 20)
        self.assertEqual(response.data[0]['entity_id'], '24')


class SeedDemoDataTests(TestCase):
    """Test the demo data command"""

    def _seed(self):
        out = StringIO()
        call_command('seed_demo_data', stdout=out)
        return out.getvalue()

    def test_creates_orders_in_several_statuses(self):
        output = self._seed()
        self.assertIn('Orders Created: 4', output)
        self.assertEqual(
            set(Order.objects.values_list('status', flat=True)),
            {'pending', 'confirmed', 'in_production', 'delivered'}
        )
        pending = Order.objects.get(status='pending')
        self.assertEqual(pending.total_amount, Decimal('1890.00'))
        self.assertEqual(pending.seller.username, 'carlos')

        in_production = Order.objects.get(status='in_production')
        stages = {stage.stage_id: stage.status for stage in in_production.stages.all()}
        self.assertEqual(len(stages), 6)
        self.assertEqual(stages['carpentry'], 'completed')
        self.assertEqual(stages['upholstery'], 'in_progress')
        self.assertEqual(in_production.production_progress, 33)

    def test_running_twice_keeps_counts(self):
        self._seed()
        counts = (User.objects.count(), Customer.objects.count(), Product.objects.count(), Order.objects.count())
        output = self._seed()
        self.assertIn('Orders Created: 0', output)
        self.assertEqual(
            (User.objects.count(), Customer.objects.count(), Product.objects.count(), Order.objects.count()),
            counts
        )
        self.assertEqual(counts[3], 4)
