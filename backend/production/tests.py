"""
Test suite for Production module
Tests: Stage tracking, shop floor tasks, issues, quality checks, settings
"""
from django.test import TestCase
from rest_framework import status

from backend.core.models import ActivityLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import OrderStage, ProductionLine, ProductionTask
from .settings import DEFAULT_PRODUCTION_SETTINGS, get_production_settings, save_production_settings
from .stages import (
    STAGE_IDS, StageError, current_stage, ensure_stages, remaining_minutes, stage_progress, update_stage,
)


class StageTrackingTests(TestCase):
    """Test per-order stage rows and progress"""

    def setUp(self):
        self.order = TestDataFactory.create_order(status='in_production')

    def test_ensure_stages_is_idempotent(self):
        stages = ensure_stages(self.order)
        self.assertEqual([s.stage_id for s in stages], STAGE_IDS)
        ensure_stages(self.order)
        self.assertEqual(OrderStage.objects.filter(order=self.order).count(), 6)

    def test_progress_and_current_stage(self):
        for stage_id in ('cutting_sewing', 'carpentry', 'upholstery'):
            update_stage(self.order, stage_id, action='complete')
        stages = ensure_stages(self.order)
        self.assertEqual(stage_progress(stages), 50)
        self.assertEqual(current_stage(stages)['id'], 'assembly')
        self.assertEqual(remaining_minutes(stages), 90 + 30 + 60)
        self.order.refresh_from_db()
        self.assertEqual(self.order.production_progress, 50)

    def test_start_sets_timestamps(self):
        stage = update_stage(self.order, 'carpentry', action='start', operator='Pedro')
        self.assertEqual(stage.status, 'in_progress')
        self.assertIsNotNone(stage.started_at)
        self.assertIsNone(stage.completed_at)
        self.assertEqual(stage.assigned_operator, 'Pedro')

    def test_completing_every_stage_sends_order_to_quality_check(self):
        for stage_id in STAGE_IDS:
            update_stage(self.order, stage_id, status='completed')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'quality_check')
        self.assertEqual(self.order.production_progress, 100)
        self.assertIsNone(current_stage(ensure_stages(self.order)))

    def test_completing_stages_of_confirmed_order_keeps_status(self):
        self.order.status = 'confirmed'
        self.order.save()
        for stage_id in STAGE_IDS:
            update_stage(self.order, stage_id, status='completed')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'confirmed')

    def test_reopen_clears_completion(self):
        update_stage(self.order, 'assembly', action='complete')
        stage = update_stage(self.order, 'assembly', action='reopen')
        self.assertEqual(stage.status, 'in_progress')
        self.assertIsNone(stage.completed_at)

    def test_invalid_updates(self):
        with self.assertRaises(StageError):
            update_stage(self.order, 'painting', action='start')
        with self.assertRaises(StageError):
            update_stage(self.order, 'assembly', action='jump')
        self.order.status = 'delivered'
        self.order.save()
        with self.assertRaises(StageError):
            update_stage(self.order, 'assembly', action='start')

    def test_stage_change_is_logged(self):
        update_stage(self.order, 'packaging', action='complete')
        entry = ActivityLog.objects.get(entity_type='production')
        self.assertEqual(entry.action_type, 'complete')
        self.assertEqual(entry.metadata['stage_id'], 'packaging')


class StageAPITests(TestCase):
    """Test stage endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_operator_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_stage_list(self):
        response = self.client.get('/api/v1/production/stages/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['id'] for s in response.data], STAGE_IDS)

    def test_production_orders(self):
        in_production = TestDataFactory.create_order(status='in_production')
        update_stage(in_production, 'cutting_sewing', action='complete')
        TestDataFactory.create_order(status='confirmed')
        TestDataFactory.create_order(status='pending')
        TestDataFactory.create_order(status='delivered')

        response = self.client.get('/api/v1/production/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/production/orders/?status=in_production')
        row = response.data['results'][0]
        self.assertEqual(row['current_stage'], 'carpentry')
        self.assertEqual(row['stage_progress'], 17)
        self.assertEqual(row['total_units'], 2)

    def test_order_stages_get_and_patch(self):
        order = TestDataFactory.create_order(status='in_production')
        response = self.client.get(f'/api/v1/production/orders/{order.id}/stages/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['stages']), 6)
        self.assertEqual(response.data['current_stage'], 'cutting_sewing')

        response = self.client.patch(f'/api/v1/production/orders/{order.id}/stages/',
                                     {'stage_id': 'cutting_sewing', 'action': 'complete'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_stage'], 'carpentry')
        self.assertEqual(response.data['production_progress'], 17)
        self.assertEqual(response.data['stages'][0]['status'], 'completed')

    def test_patch_with_status_and_action(self):
        order = TestDataFactory.create_order(status='in_production')
        response = self.client.patch(f'/api/v1/production/orders/{order.id}/stages/',
                                     {'stage_id': 'carpentry', 'action': 'start', 'status': 'completed'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_on_cancelled_order(self):
        order = TestDataFactory.create_order(status='cancelled')
        response = self.client.patch(f'/api/v1/production/orders/{order.id}/stages/',
                                     {'stage_id': 'carpentry', 'action': 'start'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_seller_cannot_view_production(self):
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.get('/api/v1/production/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class TaskTests(TestCase):
    """Test production task lifecycle"""

    def setUp(self):
        self.user = TestDataFactory.create_operator_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(status='in_production')
        self.operator = TestDataFactory.create_operator(name='João Operador')

    def test_create_task(self):
        response = self.client.post('/api/v1/production/tasks/', {
            'order': self.order.id,
            'stage_id': 'upholstery',
            'operator': self.operator.id,
            'priority': 'high',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stage_name'], 'Tapeçaria')
        self.assertEqual(response.data['operator_name'], 'João Operador')

    def test_create_task_for_delivered_order(self):
        delivered = TestDataFactory.create_order(status='delivered')
        response = self.client.post('/api/v1/production/tasks/', {'order': delivered.id, 'stage_id': 'assembly'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_start_and_complete(self):
        task = TestDataFactory.create_task(self.order, operator=self.operator)

        response = self.client.post(f'/api/v1/production/tasks/{task.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'in_progress')
        self.assertIsNotNone(response.data['estimated_completion_time'])
        self.operator.refresh_from_db()
        self.assertEqual(self.operator.status, 'busy')
        self.assertIn(self.order.order_number, self.operator.current_task)
        stage = OrderStage.objects.get(order=self.order, stage_id='cutting_sewing')
        self.assertEqual(stage.status, 'in_progress')
        self.assertEqual(stage.assigned_operator, 'João Operador')

        response = self.client.post(f'/api/v1/production/tasks/{task.id}/complete/', {'notes': 'Sem defeitos'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['progress'], 100)
        self.assertIn('Sem defeitos', response.data['notes'])
        self.operator.refresh_from_db()
        self.assertEqual(self.operator.status, 'available')
        stage.refresh_from_db()
        self.assertEqual(stage.status, 'completed')

    def test_pause_sets_stage_back_to_pending(self):
        task = TestDataFactory.create_task(self.order, stage_id='carpentry', operator=self.operator)
        self.client.post(f'/api/v1/production/tasks/{task.id}/start/')
        stage = OrderStage.objects.get(order=self.order, stage_id='carpentry')
        self.assertEqual(stage.status, 'in_progress')

        response = self.client.post(f'/api/v1/production/tasks/{task.id}/pause/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'paused')
        stage.refresh_from_db()
        self.assertEqual(stage.status, 'pending')
        self.operator.refresh_from_db()
        self.assertEqual(self.operator.status, 'available')

        self.client.post(f'/api/v1/production/tasks/{task.id}/start/')
        stage.refresh_from_db()
        self.assertEqual(stage.status, 'in_progress')

    def test_task_on_confirmed_order_leaves_stages_alone(self):
        confirmed = TestDataFactory.create_order(status='confirmed')
        task = TestDataFactory.create_task(confirmed)
        response = self.client.post(f'/api/v1/production/tasks/{task.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(OrderStage.objects.filter(order=confirmed).exists())

    def test_invalid_task_actions(self):
        task = TestDataFactory.create_task(self.order)
        response = self.client.post(f'/api/v1/production/tasks/{task.id}/pause/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/production/tasks/{task.id}/explode/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        task.status = 'completed'
        task.save()
        response = self.client.post(f'/api/v1/production/tasks/{task.id}/start/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_task_filters(self):
        TestDataFactory.create_task(self.order, stage_id='assembly', status='in_progress')
        TestDataFactory.create_task(self.order, stage_id='packaging')
        response = self.client.get('/api/v1/production/tasks/?status=in_progress')
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/production/tasks/?stage=packaging')
        self.assertEqual(response.data[0]['stage_id'], 'packaging')


class IssueAndQualityTests(TestCase):
    """Test production issues and quality checks"""

    def setUp(self):
        self.user = TestDataFactory.create_operator_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.order = TestDataFactory.create_order(status='in_production')

    def test_high_severity_issue_blocks_running_task(self):
        task = TestDataFactory.create_task(self.order, status='in_progress')
        response = self.client.post('/api/v1/production/issues/', {
            'order': self.order.id,
            'task': task.id,
            'issue_type': 'material',
            'severity': 'high',
            'description': 'Falta de espuma D33',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['reported_by'], self.user.display_name)
        task.refresh_from_db()
        self.assertEqual(task.status, 'blocked')

    def test_low_severity_issue_keeps_task_running(self):
        task = TestDataFactory.create_task(self.order, status='in_progress')
        self.client.post('/api/v1/production/issues/', {
            'order': self.order.id, 'task': task.id, 'severity': 'low', 'description': 'Ruído na máquina',
        }, format='json')
        task.refresh_from_db()
        self.assertEqual(task.status, 'in_progress')

    def test_issue_task_must_match_order(self):
        other = TestDataFactory.create_order(status='in_production')
        task = TestDataFactory.create_task(other)
        response = self.client.post('/api/v1/production/issues/', {
            'order': self.order.id, 'task': task.id, 'description': 'x',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_resolve_issue(self):
        response = self.client.post('/api/v1/production/issues/', {
            'order': self.order.id, 'issue_type': 'equipment', 'description': 'Grampeador quebrado',
        }, format='json')
        issue_id = response.data['id']
        response = self.client.post(f'/api/v1/production/issues/{issue_id}/resolve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'resolved')
        self.assertIsNotNone(response.data['resolved_at'])

        response = self.client.post(f'/api/v1/production/issues/{issue_id}/resolve/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/production/issues/?status=open')
        self.assertEqual(response.data, [])

    def test_failed_quality_check_returns_order_to_production(self):
        for stage_id in STAGE_IDS:
            update_stage(self.order, stage_id, action='complete')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'quality_check')

        response = self.client.post('/api/v1/production/quality-checks/', {
            'order': self.order.id,
            'stage_id': 'upholstery',
            'passed': False,
            'score': 60,
            'notes': 'Costura torta',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'in_production')
        self.assertEqual(self.order.production_progress, 83)
        stage = OrderStage.objects.get(order=self.order, stage_id='upholstery')
        self.assertEqual(stage.status, 'in_progress')

    def test_passed_quality_check_keeps_status(self):
        self.order.status = 'quality_check'
        self.order.save()
        response = self.client.post('/api/v1/production/quality-checks/', {
            'order': self.order.id, 'stage_id': 'assembly', 'passed': True,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['checked_by'], self.user.display_name)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'quality_check')


class ShopFloorTests(TestCase):
    """Test operators and production lines"""

    def setUp(self):
        self.user = TestDataFactory.create_operator_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_operator_skill_filter(self):
        TestDataFactory.create_operator(name='Pedro', skills=['carpentry', 'assembly'])
        TestDataFactory.create_operator(name='Lucia', skills=['upholstery'])
        response = self.client.get('/api/v1/production/operators/?skill=assembly')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['name'] for o in response.data], ['Pedro'])

    def test_operator_unknown_skill_rejected(self):
        response = self.client.post('/api/v1/production/operators/', {'name': 'Novo', 'skills': ['welding']},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_production_line_target_percentage(self):
        line = ProductionLine.objects.create(name='Linha 1', daily_target=12, daily_produced=9)
        response = self.client.get(f'/api/v1/production/lines/{line.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['target_percentage'], 75)

    def test_delete_task(self):
        task = TestDataFactory.create_task(TestDataFactory.create_order(status='confirmed'))
        response = self.client.delete(f'/api/v1/production/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductionTask.objects.filter(pk=task.id).exists())


class ProductionSettingsTests(TestCase):
    """Test the production settings document"""

    def test_defaults(self):
        self.assertEqual(get_production_settings(), DEFAULT_PRODUCTION_SETTINGS)

    def test_nested_merge(self):
        save_production_settings({'targets': {'daily_production': 20}})
        settings = get_production_settings()
        self.assertEqual(settings['targets']['daily_production'], 20)
        self.assertEqual(settings['targets']['weekly_production'], 60)

    def test_api_update_requires_settings_permission(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_operator_user())
        response = client.get('/api/v1/production/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = client.patch('/api/v1/production/settings/', {'targets': {'daily_production': 5}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = client.patch('/api/v1/production/settings/', {'targets': {'daily_production': 5}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['targets']['daily_production'], 5)
        self.assertEqual(response.data['working_hours']['start'], '08:00')

    def test_negative_target_rejected(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = client.patch('/api/v1/production/settings/', {'targets': {'daily_production': -1}},
                                format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
