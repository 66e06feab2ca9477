import logging
from datetime import datetime
from decimal import Decimal

from django.core.paginator import Paginator
from django.db.models import Q, Sum, Count
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.core.permissions import check_permission, require_permission
from backend.core.utils import log_activity
from .fragments import (
    FragmentValidationError, default_fragments, fragment_summary, next_fragment,
    replace_fragments, update_fragment_progress,
)
from .models import Order, OrderFragment
from .serializers import (
    FragmentInputSerializer, FragmentUpdateSerializer, OrderFragmentSerializer,
    OrderListSerializer, OrderSerializer, RescheduleSerializer, TransitionSerializer,
)
from .workflow import OrderWorkflowError, apply_transition, available_actions, normalize_status

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def visible_orders(user):
    """Orders the user may see; plain sellers only see their own"""
    queryset = Order.objects.select_related('customer', 'seller')
    if not user.is_superuser and user.role == 'seller':
        queryset = queryset.filter(seller=user)
    return queryset


def _parse_date(value):
    return datetime.strptime(value, '%Y-%m-%d').date()


def _can_view_orders(request):
    return check_permission(request.user, 'orders', 'view') or check_permission(request.user, 'production', 'view')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders (paginated) or create a new order"""
    if request.method == 'GET':
        if not _can_view_orders(request):
            return require_permission(request, 'orders', 'view')

        queryset = visible_orders(request.user).prefetch_related('items')

        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(order_number__icontains=search) | Q(customer_name__icontains=search)
            )

        status_filter = request.query_params.get('status', None)
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=normalize_status(status_filter))

        priority = request.query_params.get('priority', None)
        if priority and priority != 'all':
            queryset = queryset.filter(priority=priority)

        customer_id = request.query_params.get('customer', None)
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)

        date_from = request.query_params.get('date_from', None)
        date_to = request.query_params.get('date_to', None)
        try:
            if date_from:
                queryset = queryset.filter(created_at__date__gte=_parse_date(date_from))
            if date_to:
                queryset = queryset.filter(created_at__date__lte=_parse_date(date_to))
        except ValueError:
            return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

        queryset = queryset.order_by('-created_at', '-id')

        try:
            page = int(request.query_params.get('page', 1))
            page_size = int(request.query_params.get('page_size', DEFAULT_PAGE_SIZE))
        except ValueError:
            return Response({'error': 'page and page_size must be integers'}, status=status.HTTP_400_BAD_REQUEST)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))

        paginator = Paginator(queryset, page_size)
        page_obj = paginator.get_page(page)

        serializer = OrderListSerializer(page_obj, many=True)
        return Response({
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': page_size,
            'total_pages': paginator.num_pages,
        })
    else:
        denied = require_permission(request, 'orders', 'create')
        if denied:
            return denied
        serializer = OrderSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            order = serializer.save(seller=request.user)
            logger.info(f"Order {order.order_number} created by {request.user.username}")
            log_activity(request, 'create', 'order', order.id, order.order_number,
                         f'Pedido {order.order_number} criado para {order.customer_name}',
                         metadata={'total_amount': float(order.total_amount)})
            data = OrderSerializer(order).data
            data['available_actions'] = available_actions(order, request.user)
            return Response(data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update or delete an order"""
    order = get_object_or_404(visible_orders(request.user).prefetch_related('items', 'fragments'), pk=pk)

    if request.method == 'GET':
        if not _can_view_orders(request):
            return require_permission(request, 'orders', 'view')
        data = OrderSerializer(order).data
        data['available_actions'] = available_actions(order, request.user)
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        denied = require_permission(request, 'orders', 'edit')
        if denied:
            return denied
        serializer = OrderSerializer(order, data=request.data, partial=request.method == 'PATCH',
                                     context={'request': request})
        if serializer.is_valid():
            order = serializer.save()
            log_activity(request, 'update', 'order', order.id, order.order_number,
                         f'Pedido {order.order_number} atualizado')
            data = OrderSerializer(order).data
            data['available_actions'] = available_actions(order, request.user)
            return Response(data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        denied = require_permission(request, 'orders', 'delete')
        if denied:
            return denied
        if order.status not in ('pending', 'awaiting_approval', 'cancelled'):
            return Response(
                {'error': f'Orders with status {order.status} cannot be deleted; cancel them first'},
                status=status.HTTP_400_BAD_REQUEST
            )
        order_id = order.id
        order_number = order.order_number
        order.delete()
        log_activity(request, 'delete', 'order', order_id, order_number, f'Pedido {order_number} excluído')
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_transition(request, pk):
    """Run a workflow action (approve, start_production, ...) on an order"""
    order = get_object_or_404(visible_orders(request.user), pk=pk)
    serializer = TransitionSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order = apply_transition(
            order,
            serializer.validated_data['action'],
            user=request.user,
            request=request,
            notes=serializer.validated_data.get('notes'),
        )
    except PermissionError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
    except OrderWorkflowError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    data = OrderSerializer(order).data
    data['available_actions'] = available_actions(order, request.user)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_stats(request):
    """Counters for the orders page header"""
    if not _can_view_orders(request):
        return require_permission(request, 'orders', 'view')

    queryset = visible_orders(request.user)
    now = timezone.now()
    open_filter = ~Q(status__in=['delivered', 'cancelled'])

    counts = queryset.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status__in=['pending', 'awaiting_approval'])),
        confirmed=Count('id', filter=Q(status='confirmed')),
        in_production=Count('id', filter=Q(status='in_production')),
        quality_check=Count('id', filter=Q(status='quality_check')),
        ready=Count('id', filter=Q(status='ready')),
        delivered=Count('id', filter=Q(status='delivered')),
        cancelled=Count('id', filter=Q(status='cancelled')),
        urgent=Count('id', filter=Q(priority='urgent') & open_filter),
        overdue=Count('id', filter=Q(delivery_date__lt=now.date()) & open_filter),
    )
    revenue = queryset.exclude(status='cancelled').aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00')
    counts['total_revenue'] = float(revenue)
    return Response(counts)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_calendar(request):
    """Orders grouped by scheduled date for one month (``month=YYYY-MM``)"""
    if not _can_view_orders(request):
        return require_permission(request, 'orders', 'view')

    month = request.query_params.get('month', None)
    today = timezone.localdate()
    try:
        first_day = datetime.strptime(month, '%Y-%m').date() if month else today.replace(day=1)
    except ValueError:
        return Response({'error': 'Invalid month format. Use YYYY-MM'}, status=status.HTTP_400_BAD_REQUEST)
    if first_day.month == 12:
        next_month = first_day.replace(year=first_day.year + 1, month=1)
    else:
        next_month = first_day.replace(month=first_day.month + 1)

    queryset = visible_orders(request.user).filter(
        scheduled_date__gte=first_day, scheduled_date__lt=next_month
    ).exclude(status='cancelled').order_by('scheduled_date', 'id')

    days = {}
    for order in queryset:
        days.setdefault(order.scheduled_date.isoformat(), []).append(OrderListSerializer(order).data)

    return Response({
        'month': first_day.strftime('%Y-%m'),
        'days': days,
        'total_orders': sum(len(orders) for orders in days.values()),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_reschedule(request, pk):
    """Move an order to a new scheduled (and optionally delivery) date"""
    denied = require_permission(request, 'orders', 'edit')
    if denied:
        return denied
    order = get_object_or_404(visible_orders(request.user), pk=pk)
    if order.status in ('delivered', 'cancelled'):
        return Response({'error': f'Orders with status {order.status} cannot be rescheduled'},
                        status=status.HTTP_400_BAD_REQUEST)

    serializer = RescheduleSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_date = order.scheduled_date
    order.scheduled_date = serializer.validated_data['scheduled_date']
    if 'delivery_date' in serializer.validated_data:
        order.delivery_date = serializer.validated_data['delivery_date']
    if order.delivery_date and order.delivery_date < order.scheduled_date:
        return Response({'error': 'Delivery date cannot be before the scheduled date'},
                        status=status.HTTP_400_BAD_REQUEST)
    order.save()

    log_activity(request, 'update', 'order', order.id, order.order_number,
                 f'Pedido {order.order_number} reagendado para {order.scheduled_date:%d/%m/%Y}',
                 metadata={'old_date': old_date.isoformat() if old_date else None,
                           'new_date': order.scheduled_date.isoformat()})
    return Response(OrderListSerializer(order).data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def order_fragments(request, pk):
    """Read or replace the fragment set of an order"""
    order = get_object_or_404(visible_orders(request.user).prefetch_related('items', 'fragments'), pk=pk)

    if request.method == 'GET':
        if not _can_view_orders(request):
            return require_permission(request, 'orders', 'view')
        fragments = list(order.fragments.all())
        if fragments:
            proposal = next_fragment(
                [{'quantity': f.quantity, 'scheduled_date': f.scheduled_date} for f in fragments],
                order.resolved_total_quantity(),
            )
        else:
            proposal = default_fragments(order)[0]
        return Response({
            'order': order.order_number,
            'is_fragmented': order.is_fragmented,
            'fragments': OrderFragmentSerializer(fragments, many=True).data,
            'summary': fragment_summary(order),
            'proposal': proposal,
        })

    denied = require_permission(request, 'orders', 'edit')
    if denied:
        return denied
    if order.status in ('delivered', 'cancelled'):
        return Response({'error': f'Orders with status {order.status} cannot be fragmented'},
                        status=status.HTTP_400_BAD_REQUEST)

    payload = request.data.get('fragments') if isinstance(request.data, dict) else request.data
    serializer = FragmentInputSerializer(data=payload or [], many=True)
    if not serializer.is_valid():
        return Response({'fragments': serializer.errors}, status=status.HTTP_400_BAD_REQUEST)

    try:
        replace_fragments(order, serializer.validated_data)
    except FragmentValidationError as e:
        return Response({'error': str(e), 'errors': e.errors}, status=status.HTTP_400_BAD_REQUEST)

    # Drops the prefetched fragment set
    order.refresh_from_db()
    log_activity(request, 'update', 'order', order.id, order.order_number,
                 f'Pedido {order.order_number} fragmentado em {order.fragments.count()} lotes')
    return Response({
        'order': order.order_number,
        'is_fragmented': order.is_fragmented,
        'fragments': OrderFragmentSerializer(order.fragments.all(), many=True).data,
        'summary': fragment_summary(order),
    })


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_fragment_detail(request, pk, number):
    """Update status, progress or operator of one fragment"""
    if not (check_permission(request.user, 'production', 'edit') or check_permission(request.user, 'orders', 'edit')):
        return require_permission(request, 'production', 'edit')
    order = get_object_or_404(visible_orders(request.user), pk=pk)
    fragment = get_object_or_404(OrderFragment, order=order, fragment_number=number)

    serializer = FragmentUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    if 'scheduled_date' in data:
        fragment.scheduled_date = data['scheduled_date']
    fragment = update_fragment_progress(
        fragment,
        status=data.get('status'),
        progress=data.get('progress'),
        assigned_operator=data.get('assigned_operator'),
    )
    if fragment.status == 'completed':
        log_activity(request, 'complete', 'production', order.id, order.order_number,
                     f'Lote {fragment.fragment_number} do pedido {order.order_number} concluído')
    return Response(OrderFragmentSerializer(fragment).data)
