from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Sum, Count, Max
from django.shortcuts import get_object_or_404
from django.core.cache import cache
from backend.core.model_cache import (
    get_customer_list_cache_key, get_cached_customer, cache_customer_data, CUSTOMER_LIST_CACHE_TTL
)
from backend.core.permissions import require_permission
from backend.core.utils import log_activity
from .models import Customer, customer_search_filter
from .serializers import CustomerSerializer


def annotated_customers():
    """Customers annotated with totals over their non-cancelled orders"""
    active_orders = ~Q(orders__status='cancelled')
    return Customer.objects.annotate(
        annotated_total_orders=Count('orders', filter=active_orders),
        annotated_total_spent=Sum('orders__total_amount', filter=active_orders),
        annotated_last_order_date=Max('orders__created_at', filter=active_orders),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List all customers or create a new customer"""
    if request.method == 'GET':
        denied = require_permission(request, 'customers', 'view')
        if denied:
            return denied

        search = request.query_params.get('search', None)
        status_filter = request.query_params.get('status', None)
        customer_type = request.query_params.get('type', None)

        # Try cache first
        cache_key = get_customer_list_cache_key(search, status_filter, customer_type)
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            response = Response(cached_data)
            response['Cache-Control'] = 'private, max-age=60'
            return response

        # Cache miss - fetch from database
        queryset = annotated_customers().order_by('name')
        if search:
            queryset = queryset.filter(customer_search_filter(search))
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        if customer_type:
            queryset = queryset.filter(customer_type=customer_type)
        response_data = CustomerSerializer(queryset, many=True).data

        cache.set(cache_key, response_data, CUSTOMER_LIST_CACHE_TTL)

        response = Response(response_data)
        response['Cache-Control'] = 'private, max-age=60'
        return response
    else:
        denied = require_permission(request, 'customers', 'create')
        if denied:
            return denied
        serializer = CustomerSerializer(data=request.data)
        if serializer.is_valid():
            customer = serializer.save()
            log_activity(request, 'create', 'customer', customer.id, customer.name,
                         f'Cliente {customer.name} cadastrado')
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        denied = require_permission(request, 'customers', 'view')
        if denied:
            return denied
        cached_data = get_cached_customer(pk)
        if cached_data:
            return Response(cached_data)

        response_data = CustomerSerializer(customer).data
        cache_customer_data(response_data)
        return Response(response_data)
    elif request.method in ('PUT', 'PATCH'):
        denied = require_permission(request, 'customers', 'edit')
        if denied:
            return denied
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request, 'update', 'customer', customer.id, customer.name,
                         f'Cliente {customer.name} atualizado')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        denied = require_permission(request, 'customers', 'delete')
        if denied:
            return denied
        if customer.orders.exists():
            return Response(
                {'error': 'Customer has orders; set status to inactive instead'},
                status=status.HTTP_400_BAD_REQUEST
            )
        name = customer.name
        customer_id = customer.id
        customer.delete()
        log_activity(request, 'delete', 'customer', customer_id, name, f'Cliente {name} removido')
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_orders(request, pk):
    """Order history for a customer"""
    denied = require_permission(request, 'customers', 'view')
    if denied:
        return denied
    customer = get_object_or_404(Customer, pk=pk)

    from backend.orders.serializers import OrderListSerializer
    orders = customer.orders.select_related('seller').order_by('-created_at')
    return Response({
        'customer': {'id': customer.id, 'name': customer.name},
        'summary': {
            key: (float(value) if key == 'total_spent' else value)
            for key, value in customer.order_summary().items()
        },
        'orders': OrderListSerializer(orders, many=True).data,
    })
