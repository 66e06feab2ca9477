"""
Test suite for Orders module
Tests: Totals, workflow transitions, listing, calendar, fragmentation
"""
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.models import ActivityLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.production.models import OrderStage
from backend.production.stages import PRODUCTION_STAGES
from .fragments import FragmentValidationError, next_fragment, replace_fragments, validate_fragments
from .models import Order
from .utils import calculate_totals
from .workflow import OrderWorkflowError, apply_transition, normalize_status


class OrderUtilsTests(TestCase):
    """Test numbering, totals and status normalization"""

    def test_order_number_format(self):
        order = TestDataFactory.create_order()
        self.assertRegex(order.order_number, rf'^ORD-{timezone.now().year}-\d{{4}}$')

    def test_calculate_totals(self):
        totals = calculate_totals([Decimal('1000.00'), Decimal('333.33')], Decimal('10'))
        self.assertEqual(totals['subtotal'], Decimal('1333.33'))
        self.assertEqual(totals['discount_amount'], Decimal('133.33'))
        self.assertEqual(totals['total_amount'], Decimal('1200.00'))

    def test_calculate_totals_rejects_bad_discount(self):
        with self.assertRaises(ValueError):
            calculate_totals([Decimal('10.00')], Decimal('150'))

    def test_normalize_status(self):
        self.assertEqual(normalize_status('Em Produção'), 'in_production')
        self.assertEqual(normalize_status('pendente'), 'pending')
        self.assertEqual(normalize_status('canceled'), 'cancelled')
        self.assertEqual(normalize_status(None), 'pending')
        self.assertEqual(normalize_status('ready'), 'ready')

    def test_customer_name_snapshot(self):
        customer = TestDataFactory.create_customer(name='Hotel Bela Vista')
        order = TestDataFactory.create_order(customer=customer)
        customer.name = 'Hotel Bela Vista Ltda'
        customer.save()
        order.refresh_from_db()
        self.assertEqual(order.customer_name, 'Hotel Bela Vista')


class WorkflowTests(TestCase):
    """Test status transitions"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.order = TestDataFactory.create_order()

    def test_full_workflow(self):
        apply_transition(self.order, 'approve', user=self.admin)
        self.assertEqual(self.order.status, 'confirmed')

        apply_transition(self.order, 'start_production', user=self.admin)
        self.assertEqual(self.order.status, 'in_production')
        self.assertEqual(self.order.production_progress, 10)
        self.assertEqual(OrderStage.objects.filter(order=self.order).count(), len(PRODUCTION_STAGES))

        apply_transition(self.order, 'send_to_quality', user=self.admin)
        self.assertEqual(self.order.production_progress, 80)

        apply_transition(self.order, 'mark_ready', user=self.admin)
        apply_transition(self.order, 'deliver', user=self.admin)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'delivered')
        self.assertEqual(self.order.production_progress, 100)
        self.assertIsNotNone(self.order.completed_date)
        self.assertTrue(ActivityLog.objects.filter(entity_type='order', action_type='complete').exists())

    def test_progress_floor_keeps_higher_value(self):
        self.order.status = 'confirmed'
        self.order.production_progress = 35
        self.order.save()
        apply_transition(self.order, 'start_production', user=self.admin)
        self.assertEqual(self.order.production_progress, 35)

    def test_wrong_source_status(self):
        with self.assertRaises(OrderWorkflowError):
            apply_transition(self.order, 'deliver', user=self.admin)

    def test_cancel_not_allowed_once_in_production(self):
        self.order.status = 'in_production'
        self.order.save()
        with self.assertRaises(OrderWorkflowError):
            apply_transition(self.order, 'cancel', user=self.admin)

    def test_permission_checked(self):
        operator = TestDataFactory.create_operator_user()
        with self.assertRaises(PermissionError):
            apply_transition(self.order, 'approve', user=operator)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'pending')


class OrderAPITests(TestCase):
    """Test order endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer(default_discount=Decimal('10.00'))
        self.product = TestDataFactory.create_product(base_price=Decimal('1000.00'))

    def test_create_order_with_totals(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'priority': 'high',
            'scheduled_date': '2025-03-10',
            'delivery_date': '2025-03-20',
            'items': [
                {'product': self.product.id, 'quantity': 2},
                {'product_name': 'Frete', 'quantity': 1, 'unit_price': '150.00'},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['subtotal'], '2150.00')
        self.assertEqual(response.data['discount_percentage'], '10.00')
        self.assertEqual(response.data['discount_amount'], '215.00')
        self.assertEqual(response.data['total_amount'], '1935.00')
        self.assertEqual(response.data['seller'], self.user.id)
        self.assertEqual(response.data['items'][0]['product_name'], self.product.name)
        self.assertIn('approve', [a['action'] for a in response.data['available_actions']])

    def test_create_awaiting_approval_from_portuguese_status(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'status': 'Aguardando Aprovação',
            'items': [{'product_name': 'Cama', 'quantity': 1, 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'awaiting_approval')

    def test_create_rejects_later_status(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'status': 'em produção',
            'items': [{'product_name': 'Cama', 'quantity': 1, 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data)

    def test_create_requires_items(self):
        response = self.client.post('/api/v1/orders/', {'customer': self.customer.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_with_inactive_customer(self):
        inactive = TestDataFactory.create_customer(status='inactive')
        response = self.client.post('/api/v1/orders/', {
            'customer': inactive.id,
            'items': [{'product_name': 'Cama', 'quantity': 1, 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_item_without_price_or_product(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'items': [{'product_name': 'Cama', 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delivery_before_scheduled_date(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': self.customer.id,
            'scheduled_date': '2025-03-10',
            'delivery_date': '2025-03-01',
            'items': [{'product_name': 'Cama', 'quantity': 1, 'unit_price': '10.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('delivery_date', response.data)

    def test_update_items_recalculates_totals(self):
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {
            'items': [{'product_name': 'Colchão', 'quantity': 3, 'unit_price': '200.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_amount'], '600.00')
        self.assertEqual(len(response.data['items']), 1)

    def test_status_change_through_update_rejected(self):
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'status': 'ready'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delivered_order_not_editable(self):
        order = TestDataFactory.create_order(customer=self.customer, status='delivered')
        response = self.client.patch(f'/api/v1/orders/{order.id}/', {'notes': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_pending_order(self):
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_delete_confirmed_order_refused(self):
        order = TestDataFactory.create_order(customer=self.customer, status='confirmed')
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Order.objects.filter(pk=order.id).exists())

    def test_transition_endpoint(self):
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.post(f'/api/v1/orders/{order.id}/transition/', {'action': 'approve'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'confirmed')
        self.assertEqual([a['action'] for a in response.data['available_actions']], ['start_production', 'cancel'])

    def test_transition_errors(self):
        order = TestDataFactory.create_order(customer=self.customer)
        response = self.client.post(f'/api/v1/orders/{order.id}/transition/', {'action': 'deliver'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/orders/{order.id}/transition/', {'action': 'teleport'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.authenticate_user(TestDataFactory.create_operator_user())
        response = self.client.post(f'/api/v1/orders/{order.id}/transition/', {'action': 'approve'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrderListTests(TestCase):
    """Test listing, filters, visibility and stats"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_pagination(self):
        customer = TestDataFactory.create_customer()
        for _ in range(15):
            TestDataFactory.create_order(customer=customer)
        response = self.client.get('/api/v1/orders/?page_size=10')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 15)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)
        self.assertIsNone(response.data['previous'])
        self.assertEqual(len(response.data['results']), 10)

        response = self.client.get('/api/v1/orders/?page=2&page_size=10')
        self.assertEqual(len(response.data['results']), 5)

    def test_filters(self):
        customer = TestDataFactory.create_customer(name='Móveis Planalto')
        TestDataFactory.create_order(customer=customer, priority='urgent')
        TestDataFactory.create_order(status='confirmed')

        response = self.client.get('/api/v1/orders/?status=pendente')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/orders/?status=all&priority=urgent')
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/orders/?search=planalto')
        self.assertEqual(response.data['results'][0]['customer_name'], 'Móveis Planalto')
        response = self.client.get(f'/api/v1/orders/?customer={customer.id}')
        self.assertEqual(response.data['count'], 1)

    def test_invalid_date_filter(self):
        response = self.client.get('/api/v1/orders/?date_from=10/03/2025')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_seller_sees_only_own_orders(self):
        seller = TestDataFactory.create_seller()
        other = TestDataFactory.create_seller()
        own = TestDataFactory.create_order(seller=seller)
        foreign = TestDataFactory.create_order(seller=other)

        self.client.authenticate_user(seller)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual([o['id'] for o in response.data['results']], [own.id])
        response = self.client.get(f'/api/v1/orders/{foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_operator_can_read_orders(self):
        TestDataFactory.create_order()
        self.client.authenticate_user(TestDataFactory.create_operator_user())
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_stats(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        TestDataFactory.create_order(priority='urgent')
        TestDataFactory.create_order(status='awaiting_approval')
        TestDataFactory.create_order(status='confirmed', scheduled_date=yesterday - timedelta(days=5),
                                     delivery_date=yesterday)
        TestDataFactory.create_order(status='delivered', scheduled_date=yesterday - timedelta(days=5),
                                     delivery_date=yesterday)
        TestDataFactory.create_order(status='cancelled', priority='urgent')

        response = self.client.get('/api/v1/orders/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 5)
        self.assertEqual(response.data['pending'], 2)
        self.assertEqual(response.data['confirmed'], 1)
        self.assertEqual(response.data['delivered'], 1)
        self.assertEqual(response.data['cancelled'], 1)
        self.assertEqual(response.data['urgent'], 1)
        self.assertEqual(response.data['overdue'], 1)
        self.assertEqual(response.data['total_revenue'], 4000.0)

    def test_calendar(self):
        TestDataFactory.create_order(scheduled_date=date(2025, 3, 10))
        TestDataFactory.create_order(scheduled_date=date(2025, 3, 10))
        TestDataFactory.create_order(scheduled_date=date(2025, 3, 31))
        TestDataFactory.create_order(scheduled_date=date(2025, 4, 1))
        TestDataFactory.create_order(scheduled_date=date(2025, 3, 12), status='cancelled')

        response = self.client.get('/api/v1/orders/calendar/?month=2025-03')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 3)
        self.assertEqual(sorted(response.data['days']), ['2025-03-10', '2025-03-31'])
        self.assertEqual(len(response.data['days']['2025-03-10']), 2)

    def test_calendar_invalid_month(self):
        response = self.client.get('/api/v1/orders/calendar/?month=março')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reschedule(self):
        order = TestDataFactory.create_order(scheduled_date=date(2025, 3, 10))
        response = self.client.post(f'/api/v1/orders/{order.id}/reschedule/',
                                    {'scheduled_date': '2025-03-14', 'delivery_date': '2025-03-20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.scheduled_date, date(2025, 3, 14))
        self.assertEqual(order.delivery_date, date(2025, 3, 20))

    def test_reschedule_rejected(self):
        order = TestDataFactory.create_order(scheduled_date=date(2025, 3, 10), delivery_date=date(2025, 3, 12))
        response = self.client.post(f'/api/v1/orders/{order.id}/reschedule/', {'scheduled_date': '2025-03-14'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        delivered = TestDataFactory.create_order(status='delivered')
        response = self.client.post(f'/api/v1/orders/{delivered.id}/reschedule/', {'scheduled_date': '2025-03-14'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class FragmentTests(TestCase):
    """Test splitting orders into production batches"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(items=[('Cama Box Casal', 10, Decimal('100.00'))],
                                                  scheduled_date=date(2025, 3, 10))

    def test_validate_fragments(self):
        self.assertEqual(validate_fragments([{'quantity': 4, 'scheduled_date': date(2025, 3, 10)},
                                             {'quantity': 6, 'scheduled_date': date(2025, 3, 11)}], 10), [])
        errors = validate_fragments([{'quantity': 0, 'scheduled_date': None}], 10)
        self.assertEqual(len(errors), 3)
        self.assertEqual(validate_fragments([], 10), ['At least one fragment is required'])

    def test_next_fragment_proposal(self):
        proposal = next_fragment([{'quantity': 4, 'scheduled_date': date(2025, 3, 10)}], 10)
        self.assertEqual(proposal['fragment_number'], 2)
        self.assertEqual(proposal['quantity'], 6)
        self.assertEqual(proposal['scheduled_date'], date(2025, 3, 11))

    def test_replace_fragments_splits_value(self):
        fragments = replace_fragments(self.order, [
            {'quantity': 3, 'scheduled_date': date(2025, 3, 10)},
            {'quantity': 7, 'scheduled_date': date(2025, 3, 12)},
        ])
        self.assertEqual([f.value for f in fragments], [Decimal('300.00'), Decimal('700.00')])
        self.order.refresh_from_db()
        self.assertTrue(self.order.is_fragmented)
        self.assertEqual(self.order.total_quantity, 10)

    def test_replace_fragments_invalid_total(self):
        with self.assertRaises(FragmentValidationError) as ctx:
            replace_fragments(self.order, [{'quantity': 4, 'scheduled_date': date(2025, 3, 10)}])
        self.assertIn('is short of', ctx.exception.errors[0])
        self.assertFalse(self.order.fragments.exists())

    def test_get_fragments_proposal(self):
        response = self.client.get(f'/api/v1/orders/{self.order.id}/fragments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['fragments'], [])
        self.assertEqual(response.data['proposal']['quantity'], 3)
        self.assertEqual(response.data['summary']['total_quantity'], 10)

    def test_put_fragments(self):
        response = self.client.put(f'/api/v1/orders/{self.order.id}/fragments/', {'fragments': [
            {'quantity': 4, 'scheduled_date': '2025-03-10'},
            {'quantity': 6, 'scheduled_date': '2025-03-11'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_fragmented'])
        self.assertEqual([f['id'] for f in response.data['fragments']],
                         [f'{self.order.id}-frag-1', f'{self.order.id}-frag-2'])
        self.assertEqual(response.data['fragments'][1]['value'], '600.00')
        self.assertTrue(response.data['summary']['is_valid'])
        self.assertEqual(response.data['summary']['remaining_quantity'], 0)

    def test_put_fragments_with_wrong_total(self):
        response = self.client.put(f'/api/v1/orders/{self.order.id}/fragments/', {'fragments': [
            {'quantity': 4, 'scheduled_date': '2025-03-10'},
            {'quantity': 7, 'scheduled_date': '2025-03-11'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('exceeds', response.data['errors'][0])

    def test_put_fragments_on_cancelled_order(self):
        self.order.status = 'cancelled'
        self.order.save()
        response = self.client.put(f'/api/v1/orders/{self.order.id}/fragments/', {'fragments': [
            {'quantity': 10, 'scheduled_date': '2025-03-10'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_fragment_progress(self):
        self.order.status = 'in_production'
        self.order.save()
        replace_fragments(self.order, [
            {'quantity': 4, 'scheduled_date': date(2025, 3, 10)},
            {'quantity': 6, 'scheduled_date': date(2025, 3, 11)},
        ])
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/fragments/1/', {'progress': 100},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertIsNotNone(response.data['completed_at'])
        self.order.refresh_from_db()
        self.assertEqual(self.order.production_progress, 40)

    def test_patch_fragment_starts_production(self):
        replace_fragments(self.order, [{'quantity': 10, 'scheduled_date': date(2025, 3, 10)}])
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/fragments/1/', {'progress': 25},
                                     format='json')
        self.assertEqual(response.data['status'], 'in_production')
        self.assertIsNotNone(response.data['started_at'])

    def test_patch_unknown_fragment(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/fragments/9/', {'progress': 10},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
