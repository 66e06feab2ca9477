"""
Test suite for Reports module
Tests: Dashboard metrics, production report and text export, weekly production, top customers
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import log_activity
from backend.orders.models import Order
from .metrics import (
    dashboard_metrics, estimate_completion_hours, format_brl, period_bounds, production_report,
    render_production_report_text, top_customers, weekly_production,
)


class DashboardMetricsTests(TestCase):
    """Test headline dashboard numbers"""

    def test_dashboard_metrics(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        TestDataFactory.create_order(status='pending', priority='urgent')
        TestDataFactory.create_order(status='confirmed', scheduled_date=yesterday - timedelta(days=3),
                                     delivery_date=yesterday)
        TestDataFactory.create_order(status='in_production')
        TestDataFactory.create_order(status='ready')
        delivered = TestDataFactory.create_order(status='delivered')
        Order.objects.filter(pk=delivered.pk).update(completed_date=timezone.now())
        TestDataFactory.create_order(status='cancelled', priority='urgent')
        TestDataFactory.create_material(quantity=Decimal('1'), minimum_stock=Decimal('5'))
        TestDataFactory.create_material(quantity=Decimal('50'), minimum_stock=Decimal('5'))

        metrics = dashboard_metrics()
        self.assertEqual(metrics['active_orders'], 4)
        self.assertEqual(metrics['urgent_orders'], 1)
        self.assertEqual(metrics['in_production_orders'], 1)
        self.assertEqual(metrics['ready_orders'], 1)
        self.assertEqual(metrics['delayed_orders'], 1)
        self.assertEqual(metrics['completed_today'], 1)
        self.assertEqual(metrics['monthly_revenue'], 5000.0)
        self.assertEqual(metrics['pending_value'], 3000.0)
        self.assertEqual(metrics['revenue_target'], 180000.0)
        self.assertEqual(metrics['revenue_percentage'], 3)
        self.assertEqual(metrics['revenue_trend'], 'down')
        self.assertEqual(metrics['total_customers'], 6)
        self.assertEqual(metrics['low_stock_materials'], 1)

    def test_empty_dashboard(self):
        metrics = dashboard_metrics()
        self.assertEqual(metrics['active_orders'], 0)
        self.assertEqual(metrics['monthly_revenue'], 0.0)
        self.assertEqual(metrics['revenue_percentage'], 0)

    def test_estimate_completion_hours(self):
        self.assertEqual(estimate_completion_hours(95), 1)
        self.assertEqual(estimate_completion_hours(70), 2)
        self.assertEqual(estimate_completion_hours(55), 4)
        self.assertEqual(estimate_completion_hours(30), 6)
        self.assertEqual(estimate_completion_hours(0), 8)


class ProductionReportTests(TestCase):
    """Test period reports"""

    def setUp(self):
        self.today = date(2025, 3, 12)
        delivered = TestDataFactory.create_order(status='delivered', scheduled_date=date(2025, 3, 10))
        Order.objects.filter(pk=delivered.pk).update(completed_date=delivered.created_at + timedelta(days=3))
        TestDataFactory.create_order(status='in_production', priority='urgent', scheduled_date=date(2025, 3, 11),
                                     delivery_date=date(2025, 3, 11))
        TestDataFactory.create_order(status='pending', scheduled_date=date(2025, 3, 14))
        TestDataFactory.create_order(status='pending', scheduled_date=date(2025, 3, 20))

    def test_period_bounds(self):
        self.assertEqual(period_bounds('daily', self.today), (self.today, self.today))
        self.assertEqual(period_bounds('weekly', self.today), (date(2025, 3, 10), date(2025, 3, 16)))
        self.assertEqual(period_bounds('monthly', date(2025, 12, 5)), (date(2025, 12, 1), date(2025, 12, 31)))
        with self.assertRaises(ValueError):
            period_bounds('yearly', self.today)

    def test_weekly_report(self):
        report = production_report('weekly', today=self.today)
        self.assertEqual(report['period'], {'type': 'weekly', 'from': '2025-03-10', 'to': '2025-03-16'})
        summary = report['summary']
        self.assertEqual(summary['total_orders'], 3)
        self.assertEqual(summary['completed_orders'], 1)
        self.assertEqual(summary['in_production_orders'], 1)
        self.assertEqual(summary['delayed_orders'], 1)
        self.assertEqual(summary['revenue'], 1000.0)
        self.assertEqual(summary['total_units'], 6)
        self.assertEqual(summary['average_production_days'], 3)
        self.assertEqual(summary['operator_efficiency'], 92)
        self.assertEqual(summary['completion_rate'], 33)
        self.assertEqual(report['by_status'], {'delivered': 1, 'in_production': 1, 'pending': 1})
        self.assertEqual(report['by_priority']['urgent'], 1)

    def test_custom_range_and_operator_efficiency(self):
        slow = TestDataFactory.create_operator()
        slow.efficiency = Decimal('80.00')
        slow.save()
        TestDataFactory.create_operator()
        report = production_report('weekly', today=self.today, date_from=date(2025, 3, 1),
                                   date_to=date(2025, 3, 31))
        self.assertEqual(report['summary']['total_orders'], 4)
        self.assertEqual(report['summary']['operator_efficiency'], 90)

    def test_empty_period_defaults(self):
        report = production_report('daily', today=date(2024, 1, 1))
        self.assertEqual(report['summary']['total_orders'], 0)
        self.assertEqual(report['summary']['completion_rate'], 0)
        self.assertEqual(report['summary']['average_production_days'], 5)

    def test_format_brl(self):
        self.assertEqual(format_brl(1234.56), 'R$ 1.234,56')
        self.assertEqual(format_brl(Decimal('1000000')), 'R$ 1.000.000,00')
        self.assertEqual(format_brl(0), 'R$ 0,00')

    def test_render_text(self):
        report = production_report('weekly', today=self.today)
        generated_at = timezone.make_aware(datetime(2025, 3, 12, 17, 45))
        text = render_production_report_text(report, generated_at=generated_at)
        lines = text.split('\n')
        self.assertEqual(lines[0], 'RELATÓRIO DE PRODUÇÃO - 10/03/2025 a 16/03/2025')
        self.assertIn('- Total de Pedidos: 3', lines)
        self.assertIn('- Taxa de Conclusão: 33%', lines)
        self.assertIn('- Total Produzido: 6 unidades', lines)
        self.assertIn('- Receita do Período: R$ 1.000,00', lines)
        self.assertIn('Gerado em: 12/03/2025 17:45', lines)


class WeeklyProductionTests(TestCase):
    """Test units per day"""

    def test_units_per_day(self):
        TestDataFactory.create_order(status='in_production', scheduled_date=date(2025, 3, 10))
        TestDataFactory.create_order(status='ready', scheduled_date=date(2025, 3, 12),
                                     items=[('Colchão', 3, Decimal('800.00'))])
        TestDataFactory.create_order(status='pending', scheduled_date=date(2025, 3, 11))

        result = weekly_production(date(2025, 3, 12))
        self.assertEqual(result['week_start'], '2025-03-10')
        self.assertEqual(result['week_end'], '2025-03-16')
        self.assertEqual(len(result['days']), 7)
        self.assertEqual(result['days'][0], {'date': '2025-03-10', 'day': 'Segunda', 'units': 2, 'target': 12})
        self.assertEqual(result['days'][1]['units'], 0)
        self.assertEqual(result['days'][2]['units'], 3)
        self.assertEqual(result['days'][6]['day'], 'Domingo')
        self.assertEqual(result['total_units'], 5)
        self.assertEqual(result['weekly_target'], 60)


class TopCustomersTests(TestCase):
    """Test customer ranking"""

    def test_ranking_excludes_cancelled(self):
        first = TestDataFactory.create_customer(name='Hotel Bela Vista')
        second = TestDataFactory.create_customer(name='Móveis Planalto')
        only_cancelled = TestDataFactory.create_customer(name='Sem Pedidos')
        TestDataFactory.create_order(customer=first)
        TestDataFactory.create_order(customer=first, items=[('Travesseiro', 1, Decimal('500.00'))])
        TestDataFactory.create_order(customer=second, items=[('Cama Box King', 1, Decimal('2000.00'))])
        TestDataFactory.create_order(customer=second, status='cancelled', items=[('X', 1, Decimal('9000.00'))])
        TestDataFactory.create_order(customer=only_cancelled, status='cancelled')

        ranking = top_customers()
        self.assertEqual([row['name'] for row in ranking], ['Móveis Planalto', 'Hotel Bela Vista'])
        self.assertEqual(ranking[0]['total_spent'], 2000.0)
        self.assertEqual(ranking[1]['total_orders'], 2)
        self.assertEqual(len(top_customers(limit=1)), 1)


class ReportsAPITests(TestCase):
    """Test report endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_dashboard(self):
        TestDataFactory.create_order()
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['active_orders'], 1)

    def test_dashboard_open_to_sellers_and_operators(self):
        for user in (TestDataFactory.create_seller(), TestDataFactory.create_operator_user()):
            self.client.authenticate_user(user)
            response = self.client.get('/api/v1/reports/dashboard/')
            self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_dashboard_denied_without_permissions(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='seller', permissions=[]))
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_production_overview(self):
        TestDataFactory.create_order(status='in_production')
        TestDataFactory.create_order(status='pending')
        response = self.client.get('/api/v1/reports/production-overview/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['estimated_completion_hours'], 8)
        self.assertEqual(response.data['results'][0]['current_stage'], 'cutting_sewing')

    def test_production_report(self):
        TestDataFactory.create_order(scheduled_date=timezone.localdate())
        response = self.client.get('/api/v1/reports/production/?period=daily')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['total_orders'], 1)

    def test_production_report_text_export(self):
        response = self.client.get('/api/v1/reports/production/?period=monthly&format=txt')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/plain; charset=utf-8')
        filename = f'relatorio-producao-{timezone.localdate():%Y-%m-%d}.txt'
        self.assertIn(filename, response['Content-Disposition'])
        self.assertTrue(response.content.decode('utf-8').startswith('RELATÓRIO DE PRODUÇÃO'))

    def test_production_report_validation(self):
        response = self.client.get('/api/v1/reports/production/?period=yearly')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/production/?date_from=2025-03-10&date_to=2025-03-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/production/?date_from=10-03-2025')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_weekly_production(self):
        response = self.client.get('/api/v1/reports/weekly-production/?week_of=2025-03-12')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['week_start'], '2025-03-10')
        response = self.client.get('/api/v1/reports/weekly-production/?week_of=amanhã')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_recent_activity(self):
        for i in range(25):
            log_activity(user=self.user, action_type='update', entity_type='order', entity_id=i)
        response = self.client.get('/api/v1/reports/recent-activity/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 20)

    def test_top_customers_limit(self):
        for _ in range(3):
            TestDataFactory.create_order()
        response = self.client.get('/api/v1/reports/top-customers/?limit=2')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/reports/top-customers/?limit=dez')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
