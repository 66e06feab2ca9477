import logging
from datetime import datetime

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.core.models import ActivityLog
from backend.core.permissions import check_permission, require_permission
from backend.core.serializers import ActivityLogSerializer
from .metrics import (
    REPORT_PERIODS, dashboard_metrics, production_overview as overview_rows, production_report as build_report,
    render_production_report_text, top_customers as top_customer_rows, weekly_production as weekly_rows,
)

logger = logging.getLogger('backend.reports')


def _production_access(request):
    if check_permission(request.user, 'production', 'view') or check_permission(request.user, 'dashboard', 'view'):
        return None
    return require_permission(request, 'production', 'view')


def _dashboard_access(request):
    """The dashboard is the landing page for every role with a working area"""
    for module in ('dashboard', 'orders', 'production'):
        if check_permission(request.user, module, 'view'):
            return None
    return require_permission(request, 'dashboard', 'view')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Headline numbers for the dashboard"""
    denied = _dashboard_access(request)
    if denied:
        return denied
    return Response(dashboard_metrics())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def production_overview(request):
    """Orders on the shop floor with progress and estimated hours left"""
    denied = _production_access(request)
    if denied:
        return denied
    results = overview_rows()
    return Response({'results': results, 'count': len(results)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def production_report(request):
    """Production report for a daily, weekly or monthly period"""
    denied = _production_access(request)
    if denied:
        return denied

    period = request.query_params.get('period', 'weekly')
    if period not in REPORT_PERIODS:
        return Response(
            {'error': f"Invalid period. Use one of: {', '.join(REPORT_PERIODS)}"},
            status=status.HTTP_400_BAD_REQUEST
        )

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    try:
        date_from = datetime.strptime(date_from, '%Y-%m-%d').date() if date_from else None
        date_to = datetime.strptime(date_to, '%Y-%m-%d').date() if date_to else None
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if date_from and date_to and date_to < date_from:
        return Response({'error': 'date_to must not be before date_from'}, status=status.HTTP_400_BAD_REQUEST)

    report = build_report(period, date_from=date_from, date_to=date_to)

    if request.query_params.get('format') == 'txt':
        content = render_production_report_text(report)
        response = HttpResponse(content, content_type='text/plain; charset=utf-8')
        filename = f"relatorio-producao-{timezone.localdate():%Y-%m-%d}.txt"
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        logger.info(f"Production report ({period}) exported by {request.user.username}")
        return response

    return Response(report)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def weekly_production(request):
    """Units per day for the current week, or the week containing ``week_of``"""
    denied = _production_access(request)
    if denied:
        return denied
    week_of = request.query_params.get('week_of', None)
    try:
        week_of = datetime.strptime(week_of, '%Y-%m-%d').date() if week_of else None
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(weekly_rows(week_of))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_activity(request):
    """Latest activity feed entries"""
    denied = _dashboard_access(request)
    if denied:
        return denied
    activities = ActivityLog.objects.select_related('user')[:20]
    return Response(ActivityLogSerializer(activities, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def top_customers(request):
    """Customers ranked by total spent on non-cancelled orders"""
    denied = _dashboard_access(request)
    if denied:
        return denied
    try:
        limit = int(request.query_params.get('limit', 10))
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(top_customer_rows(max(1, min(limit, 100))))
