"""
Dashboard and production report calculations.

Monetary values are returned as floats, ready for JSON responses.
"""
import math
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db.models import Avg, Count, F, Q, Sum
from django.utils import timezone

from backend.catalog.models import RawMaterial
from backend.core.utils import get_system_settings
from backend.customers.models import Customer
from backend.orders.models import Order, OrderItem
from backend.production.settings import get_production_settings
from backend.production.stages import current_stage

ACTIVE_STATUSES = ['pending', 'confirmed', 'in_production', 'quality_check', 'ready']
CLOSED_STATUSES = ['delivered', 'cancelled']
PENDING_VALUE_STATUSES = ['pending', 'confirmed', 'in_production']
SHOP_FLOOR_STATUSES = ['confirmed', 'in_production', 'quality_check']
PRODUCED_STATUSES = ['in_production', 'quality_check', 'ready', 'delivered']
REPORT_PERIODS = ('daily', 'weekly', 'monthly')
DEFAULT_AVERAGE_PRODUCTION_DAYS = 5
DEFAULT_OPERATOR_EFFICIENCY = 92
WEEKDAY_NAMES = ['Segunda', 'Terça', 'Quarta', 'Quinta', 'Sexta', 'Sábado', 'Domingo']


def _money(value):
    return float(value or Decimal('0.00'))


def _start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min), timezone.get_current_timezone())


def dashboard_metrics(now=None):
    now = now or timezone.now()
    today = timezone.localtime(now).date()
    month_start = _start_of_day(today.replace(day=1))
    open_orders = ~Q(status__in=CLOSED_STATUSES)

    counts = Order.objects.aggregate(
        active_orders=Count('id', filter=Q(status__in=ACTIVE_STATUSES)),
        urgent_orders=Count('id', filter=Q(priority='urgent') & open_orders),
        in_production_orders=Count('id', filter=Q(status='in_production')),
        ready_orders=Count('id', filter=Q(status='ready')),
        delayed_orders=Count('id', filter=Q(delivery_date__lt=today) & open_orders),
        completed_today=Count('id', filter=Q(status='delivered', completed_date__gte=_start_of_day(today))),
    )
    monthly_revenue = Order.objects.filter(created_at__gte=month_start).exclude(
        status='cancelled'
    ).aggregate(total=Sum('total_amount'))['total']
    pending_value = Order.objects.filter(status__in=PENDING_VALUE_STATUSES).aggregate(
        total=Sum('total_amount')
    )['total']

    target = Decimal(str(get_system_settings().get('monthly_revenue_target') or 0))
    revenue = monthly_revenue or Decimal('0.00')
    revenue_percentage = round(revenue / target * 100) if target > 0 else 0

    return {
        **counts,
        'monthly_revenue': _money(revenue),
        'pending_value': _money(pending_value),
        'revenue_target': float(target),
        'revenue_percentage': int(revenue_percentage),
        'revenue_trend': 'up' if revenue_percentage >= 50 else 'down',
        'total_customers': Customer.objects.count(),
        'active_customers': Customer.objects.filter(status='active').count(),
        'low_stock_materials': RawMaterial.objects.filter(quantity__lte=F('minimum_stock')).count(),
    }


def estimate_completion_hours(progress):
    """Rough hours left for an order at ``progress`` percent"""
    if progress >= 90:
        return 1
    if progress >= 70:
        return 2
    if progress >= 50:
        return 4
    if progress >= 30:
        return 6
    return 8


def production_overview():
    orders = Order.objects.filter(status__in=SHOP_FLOOR_STATUSES).prefetch_related('stages', 'items').order_by(
        'scheduled_date', 'created_at'
    )
    results = []
    for order in orders:
        stage = current_stage(list(order.stages.all()))
        results.append({
            'id': order.id,
            'order_number': order.order_number,
            'customer_name': order.customer_name,
            'status': order.status,
            'priority': order.priority,
            'production_progress': order.production_progress,
            'current_stage': stage['id'] if stage else None,
            'current_stage_name': stage['name'] if stage else None,
            'estimated_completion_hours': estimate_completion_hours(order.production_progress),
            'assigned_operator': order.assigned_operator,
            'total_units': order.resolved_total_quantity(),
            'delivery_date': order.delivery_date,
        })
    return results


def period_bounds(period, today):
    """First and last day of the daily/weekly/monthly period containing ``today``"""
    if period == 'daily':
        return today, today
    if period == 'weekly':
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if period == 'monthly':
        start = today.replace(day=1)
        if start.month == 12:
            next_month = start.replace(year=start.year + 1, month=1)
        else:
            next_month = start.replace(month=start.month + 1)
        return start, next_month - timedelta(days=1)
    raise ValueError(f"Unknown period '{period}'. Use one of: {', '.join(REPORT_PERIODS)}")


def average_production_days(orders):
    """Mean whole days from creation to completion over delivered orders"""
    durations = [
        math.ceil((order.completed_date - order.created_at).total_seconds() / 86400)
        for order in orders
        if order.status == 'delivered' and order.completed_date and order.created_at
    ]
    if not durations:
        return DEFAULT_AVERAGE_PRODUCTION_DAYS
    return round(sum(durations) / len(durations)) or DEFAULT_AVERAGE_PRODUCTION_DAYS


def operator_efficiency():
    from backend.production.models import Operator

    average = Operator.objects.aggregate(avg=Avg('efficiency'))['avg']
    return round(average) if average is not None else DEFAULT_OPERATOR_EFFICIENCY


def production_report(period='weekly', today=None, date_from=None, date_to=None):
    today = today or timezone.localdate()
    if date_from and date_to:
        start, end = date_from, date_to
    else:
        start, end = period_bounds(period, today)

    orders = list(
        Order.objects.filter(scheduled_date__gte=start, scheduled_date__lte=end).prefetch_related('items')
    )
    total = len(orders)
    completed = [order for order in orders if order.status == 'delivered']
    delayed = [
        order for order in orders
        if order.delivery_date and order.delivery_date < today and order.status not in CLOSED_STATUSES
    ]
    revenue = sum((order.total_amount for order in completed), Decimal('0.00'))
    total_units = sum(item.quantity for order in orders for item in order.items.all())

    by_status = {}
    by_priority = {}
    for order in orders:
        by_status[order.status] = by_status.get(order.status, 0) + 1
        by_priority[order.priority] = by_priority.get(order.priority, 0) + 1

    return {
        'period': {
            'type': period,
            'from': start.isoformat(),
            'to': end.isoformat(),
        },
        'summary': {
            'total_orders': total,
            'completed_orders': len(completed),
            'in_production_orders': sum(1 for order in orders if order.status == 'in_production'),
            'delayed_orders': len(delayed),
            'revenue': _money(revenue),
            'total_units': total_units,
            'average_production_days': average_production_days(orders),
            'operator_efficiency': operator_efficiency(),
            'completion_rate': round(len(completed) / total * 100) if total else 0,
        },
        'by_status': by_status,
        'by_priority': by_priority,
    }


def format_brl(value):
    """Format a number as Brazilian currency: R$ 1.234,56"""
    text = f"{Decimal(str(value)):,.2f}"
    return 'R$ ' + text.replace(',', '_').replace('.', ',').replace('_', '.')


def render_production_report_text(report, generated_at=None):
    generated_at = timezone.localtime(generated_at or timezone.now())
    summary = report['summary']
    start = datetime.strptime(report['period']['from'], '%Y-%m-%d')
    end = datetime.strptime(report['period']['to'], '%Y-%m-%d')
    lines = [
        f"RELATÓRIO DE PRODUÇÃO - {start:%d/%m/%Y} a {end:%d/%m/%Y}",
        '',
        'RESUMO EXECUTIVO:',
        f"- Total de Pedidos: {summary['total_orders']}",
        f"- Pedidos Concluídos: {summary['completed_orders']}",
        f"- Em Produção: {summary['in_production_orders']}",
        f"- Atrasados: {summary['delayed_orders']}",
        f"- Taxa de Conclusão: {summary['completion_rate']}%",
        '',
        'PRODUÇÃO:',
        f"- Total Produzido: {summary['total_units']} unidades",
        f"- Tempo Médio: {summary['average_production_days']} dias",
        f"- Eficiência Operadores: {summary['operator_efficiency']}%",
        '',
        'FINANCEIRO:',
        f"- Receita do Período: {format_brl(summary['revenue'])}",
        '',
        f"Gerado em: {generated_at:%d/%m/%Y %H:%M}",
    ]
    return '\n'.join(lines) + '\n'


def weekly_production(week_of=None):
    """Units scheduled per day, Monday to Sunday, for orders past confirmation"""
    week_of = week_of or timezone.localdate()
    start = week_of - timedelta(days=week_of.weekday())
    end = start + timedelta(days=6)

    rows = OrderItem.objects.filter(
        order__scheduled_date__gte=start,
        order__scheduled_date__lte=end,
        order__status__in=PRODUCED_STATUSES,
    ).values('order__scheduled_date').annotate(units=Sum('quantity'))
    units_by_day = {row['order__scheduled_date']: row['units'] or 0 for row in rows}

    targets = get_production_settings()['targets']
    target = targets['daily_production']
    days = []
    for offset in range(7):
        day = start + timedelta(days=offset)
        days.append({
            'date': day.isoformat(),
            'day': WEEKDAY_NAMES[offset],
            'units': units_by_day.get(day, 0),
            'target': target,
        })
    return {
        'week_start': start.isoformat(),
        'week_end': end.isoformat(),
        'days': days,
        'total_units': sum(day['units'] for day in days),
        'weekly_target': targets['weekly_production'],
    }


def top_customers(limit=10):
    active_orders = ~Q(orders__status='cancelled')
    customers = Customer.objects.annotate(
        spent=Sum('orders__total_amount', filter=active_orders),
        order_count=Count('orders', filter=active_orders),
    ).filter(order_count__gt=0).order_by('-spent', 'name')[:limit]
    return [
        {
            'id': customer.id,
            'name': customer.name,
            'city': customer.city,
            'total_orders': customer.order_count,
            'total_spent': _money(customer.spent),
        }
        for customer in customers
    ]
