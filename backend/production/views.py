import logging
from datetime import timedelta

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.core.permissions import require_permission
from backend.core.utils import log_activity
from backend.orders.models import Order
from .models import OrderStage, ProductionLine, Operator, ProductionTask, ProductionIssue, QualityCheck
from .serializers import (
    OrderStageSerializer, StageUpdateSerializer, ProductionLineSerializer, OperatorSerializer,
    ProductionTaskSerializer, ProductionIssueSerializer, QualityCheckSerializer, ProductionSettingsSerializer,
)
from .settings import get_production_settings, save_production_settings
from .stages import (
    PRODUCTION_STAGES, STAGES_BY_ID, StageError, current_stage, ensure_stages, stage_progress, update_stage,
)

logger = logging.getLogger(__name__)

PRODUCTION_STATUSES = ['confirmed', 'in_production', 'quality_check']


def _crud_detail(request, instance, serializer_class, label):
    """Shared GET/PUT/PATCH/DELETE handling for the shop floor resources"""
    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        return Response(serializer_class(instance).data)

    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    if request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"{label} {instance.pk} deleted by {request.user.username}")
    instance.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


def _crud_list(request, queryset, serializer_class):
    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        return Response(serializer_class(queryset, many=True).data)

    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stage_list(request):
    """The fixed production stage sequence"""
    return Response(PRODUCTION_STAGES)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def production_orders(request):
    """Orders on the shop floor with their stage tracker"""
    denied = require_permission(request, 'production', 'view')
    if denied:
        return denied

    status_filter = request.query_params.get('status', None)
    statuses = [status_filter] if status_filter in PRODUCTION_STATUSES else PRODUCTION_STATUSES
    orders = Order.objects.filter(status__in=statuses).prefetch_related('stages', 'items').order_by(
        'scheduled_date', 'created_at'
    )

    results = []
    for order in orders:
        stages = list(order.stages.all())
        stage = current_stage(stages)
        results.append({
            'id': order.id,
            'order_number': order.order_number,
            'customer_name': order.customer_name,
            'status': order.status,
            'priority': order.priority,
            'scheduled_date': order.scheduled_date,
            'delivery_date': order.delivery_date,
            'production_progress': order.production_progress,
            'stage_progress': stage_progress(stages),
            'current_stage': stage['id'] if stage else None,
            'current_stage_name': stage['name'] if stage else None,
            'total_units': order.resolved_total_quantity(),
            'assigned_operator': order.assigned_operator,
        })
    return Response({'results': results, 'count': len(results)})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def order_stages(request, pk):
    """Stage tracker of one order; PATCH moves a stage"""
    order = get_object_or_404(Order, pk=pk)

    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        stages = ensure_stages(order)
        stage = current_stage(stages)
        return Response({
            'order': order.id,
            'order_number': order.order_number,
            'status': order.status,
            'production_progress': order.production_progress,
            'current_stage': stage['id'] if stage else None,
            'stages': OrderStageSerializer(stages, many=True).data,
        })

    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    serializer = StageUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        update_stage(
            order,
            data['stage_id'],
            status=data.get('status'),
            action=data.get('action'),
            operator=data.get('assigned_operator'),
            notes=data.get('notes'),
            request=request,
        )
    except StageError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    order.refresh_from_db()
    stages = ensure_stages(order)
    stage = current_stage(stages)
    return Response({
        'order': order.id,
        'order_number': order.order_number,
        'status': order.status,
        'production_progress': order.production_progress,
        'current_stage': stage['id'] if stage else None,
        'stages': OrderStageSerializer(stages, many=True).data,
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def line_list_create(request):
    queryset = ProductionLine.objects.select_related('current_order', 'operator')
    status_filter = request.query_params.get('status', None)
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    return _crud_list(request, queryset, ProductionLineSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def line_detail(request, pk):
    line = get_object_or_404(ProductionLine, pk=pk)
    return _crud_detail(request, line, ProductionLineSerializer, 'Production line')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def operator_list_create(request):
    queryset = Operator.objects.all()
    status_filter = request.query_params.get('status', None)
    if status_filter:
        queryset = queryset.filter(status=status_filter)
    shift = request.query_params.get('shift', None)
    if shift:
        queryset = queryset.filter(shift=shift)
    skill = request.query_params.get('skill', None)
    if skill:
        # JSON containment is not portable to SQLite, filter in Python
        queryset = [operator for operator in queryset if skill in (operator.skills or [])]
    return _crud_list(request, queryset, OperatorSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def operator_detail(request, pk):
    operator = get_object_or_404(Operator, pk=pk)
    return _crud_detail(request, operator, OperatorSerializer, 'Operator')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    queryset = ProductionTask.objects.select_related('order', 'operator')
    for param, lookup in (('status', 'status'), ('operator', 'operator_id'),
                          ('order', 'order_id'), ('stage', 'stage_id')):
        value = request.query_params.get(param, None)
        if value:
            queryset = queryset.filter(**{lookup: value})
    return _crud_list(request, queryset, ProductionTaskSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    task = get_object_or_404(ProductionTask.objects.select_related('order', 'operator'), pk=pk)
    return _crud_detail(request, task, ProductionTaskSerializer, 'Production task')


TASK_ACTIONS = {
    'start': ('in_progress', ('pending', 'paused', 'blocked')),
    'pause': ('paused', ('in_progress',)),
    'complete': ('completed', ('pending', 'in_progress', 'paused')),
    'block': ('blocked', ('pending', 'in_progress', 'paused')),
}


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_action(request, pk, action):
    """Start, pause, complete or block a production task"""
    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    task = get_object_or_404(ProductionTask.objects.select_related('order', 'operator'), pk=pk)

    if action not in TASK_ACTIONS:
        return Response({'error': f"Unknown task action '{action}'"}, status=status.HTTP_400_BAD_REQUEST)
    target, sources = TASK_ACTIONS[action]
    if task.status not in sources:
        return Response(
            {'error': f"Cannot {action} a task with status '{task.status}'"},
            status=status.HTTP_400_BAD_REQUEST
        )

    now = timezone.now()
    order = task.order
    with transaction.atomic():
        task.status = target
        if action == 'start':
            task.start_time = task.start_time or now
            if not task.estimated_completion_time:
                minutes = STAGES_BY_ID[task.stage_id]['estimated_minutes']
                task.estimated_completion_time = now + timedelta(minutes=minutes)
        elif action == 'complete':
            task.start_time = task.start_time or now
            task.actual_completion_time = now
            task.progress = 100
        notes = request.data.get('notes') if hasattr(request.data, 'get') else None
        if notes:
            task.notes = f"{task.notes}\n{notes}".strip()
        task.save()

        if task.operator:
            if action == 'start':
                task.operator.status = 'busy'
                task.operator.current_task = f"{order.order_number} - {STAGES_BY_ID[task.stage_id]['name']}"
            else:
                task.operator.status = 'available'
                task.operator.current_task = ''
            task.operator.save(update_fields=['status', 'current_task', 'updated_at'])

        if order.status == 'in_production' and action in ('start', 'pause', 'complete'):
            try:
                update_stage(
                    order, task.stage_id, action=action,
                    operator=task.operator.name if task.operator else None,
                    request=request,
                )
            except StageError as e:
                logger.warning(f"Stage not updated for task {task.pk}: {e}")

    return Response(ProductionTaskSerializer(task).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def issue_list_create(request):
    queryset = ProductionIssue.objects.select_related('order', 'task')
    for param, lookup in (('status', 'status'), ('severity', 'severity'),
                          ('type', 'issue_type'), ('order', 'order_id')):
        value = request.query_params.get(param, None)
        if value:
            queryset = queryset.filter(**{lookup: value})

    if request.method == 'POST':
        denied = require_permission(request, 'production', 'edit')
        if denied:
            return denied
        serializer = ProductionIssueSerializer(data=request.data)
        if serializer.is_valid():
            issue = serializer.save(reported_by=serializer.validated_data.get('reported_by')
                                    or request.user.display_name)
            if issue.task and issue.severity in ('high', 'critical') and issue.task.status == 'in_progress':
                issue.task.status = 'blocked'
                issue.task.save(update_fields=['status', 'updated_at'])
            log_activity(request, 'create', 'production', issue.order_id, issue.order.order_number,
                         f'Problema de {issue.get_issue_type_display().lower()} registrado em '
                         f'{issue.order.order_number}',
                         metadata={'severity': issue.severity})
            return Response(ProductionIssueSerializer(issue).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    return _crud_list(request, queryset, ProductionIssueSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def issue_detail(request, pk):
    issue = get_object_or_404(ProductionIssue, pk=pk)
    return _crud_detail(request, issue, ProductionIssueSerializer, 'Production issue')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def issue_resolve(request, pk):
    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    issue = get_object_or_404(ProductionIssue.objects.select_related('order'), pk=pk)
    if issue.status == 'resolved':
        return Response({'error': 'Issue is already resolved'}, status=status.HTTP_400_BAD_REQUEST)
    issue.status = 'resolved'
    issue.resolved_at = timezone.now()
    issue.save(update_fields=['status', 'resolved_at'])
    log_activity(request, 'complete', 'production', issue.order_id, issue.order.order_number,
                 f'Problema resolvido em {issue.order.order_number}')
    return Response(ProductionIssueSerializer(issue).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quality_check_list_create(request):
    """List quality checks or record one; a failed check sends the order back to production"""
    if request.method == 'GET':
        queryset = QualityCheck.objects.select_related('order')
        order_id = request.query_params.get('order', None)
        if order_id:
            queryset = queryset.filter(order_id=order_id)
        return _crud_list(request, queryset, QualityCheckSerializer)

    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    serializer = QualityCheckSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        check = serializer.save(checked_by=serializer.validated_data.get('checked_by') or request.user.display_name)
        order = check.order
        if not check.passed and order.status == 'quality_check':
            order.status = 'in_production'
            order.save(update_fields=['status', 'updated_at'])
            OrderStage.objects.filter(order=order, stage_id=check.stage_id).update(
                status='in_progress', completed_at=None
            )
            order.production_progress = stage_progress(list(order.stages.all()))
            order.save(update_fields=['production_progress', 'updated_at'])
            logger.info(f"Order {order.order_number} failed quality check at {check.stage_id}, back to production")

    log_activity(
        request, 'update', 'production', order.id, order.order_number,
        f"Controle de qualidade {'aprovado' if check.passed else 'reprovado'}: {order.order_number}",
        metadata={'stage_id': check.stage_id, 'score': check.score, 'passed': check.passed},
    )
    return Response(QualityCheckSerializer(check).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def production_settings(request):
    """Working hours, targets, alerts and automation flags"""
    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        return Response(get_production_settings())

    denied = require_permission(request, 'settings', 'edit')
    if denied:
        return denied
    serializer = ProductionSettingsSerializer(data=request.data, partial=True)
    if serializer.is_valid():
        return Response(save_production_settings(serializer.validated_data))
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
