import base64
import logging
from decimal import Decimal

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.db.models import Sum, F, DecimalField, ExpressionWrapper
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.core.permissions import require_permission
from backend.core.utils import get_json_setting, save_json_setting, log_activity
from .filters import ProductFilter, RawMaterialFilter
from .label_generator import generate_code_image, generate_label_image, CODE_TYPES
from .models import Product, ProductModel, RawMaterial
from .pdf_labels import build_barcode_pdf
from .serializers import (
    ProductSerializer, ProductListSerializer, ProductModelSerializer, RawMaterialSerializer,
    PriceQuoteSerializer, PrintRequestSerializer, ThermalSettingsSerializer
)
from .thermal import (
    THERMAL_SETTINGS_KEY, DEFAULT_THERMAL_SETTINGS,
    build_print_job, product_print_item, material_print_item
)
from .utils import calculate_unit_price, validate_specifications

logger = logging.getLogger(__name__)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        denied = require_permission(request, 'products', 'view')
        if denied:
            return denied
        queryset = Product.objects.prefetch_related('models').all()
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer = ProductListSerializer(filterset.qs, many=True)
        return Response(serializer.data)
    else:
        denied = require_permission(request, 'products', 'create')
        if denied:
            return denied
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save()
            log_activity(request, 'create', 'product', product.id, product.name,
                         f'Produto {product.name} cadastrado')
            return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.prefetch_related('models'), pk=pk)

    if request.method == 'GET':
        denied = require_permission(request, 'products', 'view')
        if denied:
            return denied
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        denied = require_permission(request, 'products', 'edit')
        if denied:
            return denied
        old_price = product.base_price
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            product = serializer.save()
            metadata = {}
            if product.base_price != old_price:
                metadata = {'old_price': str(old_price), 'new_price': str(product.base_price)}
            log_activity(request, 'update', 'product', product.id, product.name,
                         f'Produto {product.name} atualizado', metadata)
            return Response(ProductSerializer(product).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        denied = require_permission(request, 'products', 'delete')
        if denied:
            return denied
        if product.order_items.exists():
            # Keep order history intact
            product.status = 'discontinued'
            product.save(update_fields=['status', 'updated_at'])
            log_activity(request, 'update', 'product', product.id, product.name,
                         f'Produto {product.name} descontinuado')
            return Response(ProductSerializer(product).data)
        name = product.name
        product_id = product.id
        product.delete()
        log_activity(request, 'delete', 'product', product_id, name, f'Produto {name} removido')
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_model_list_create(request, product_pk):
    """List or add model lines of a product"""
    product = get_object_or_404(Product, pk=product_pk)
    if request.method == 'GET':
        denied = require_permission(request, 'products', 'view')
        if denied:
            return denied
        serializer = ProductModelSerializer(product.models.all(), many=True)
        return Response(serializer.data)
    else:
        denied = require_permission(request, 'products', 'edit')
        if denied:
            return denied
        serializer = ProductModelSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(product=product)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_model_detail(request, product_pk, pk):
    """Retrieve, update or delete a product model line"""
    model = get_object_or_404(ProductModel, pk=pk, product_id=product_pk)

    if request.method == 'GET':
        denied = require_permission(request, 'products', 'view')
        if denied:
            return denied
        return Response(ProductModelSerializer(model).data)
    denied = require_permission(request, 'products', 'edit')
    if denied:
        return denied
    if request.method in ('PUT', 'PATCH'):
        serializer = ProductModelSerializer(model, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        model.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def product_price_quote(request, pk):
    """Price of a configured product (model, size, color, fabric and specifications)"""
    product = get_object_or_404(Product, pk=pk)
    serializer = PriceQuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    model = None
    if data.get('model'):
        model = get_object_or_404(ProductModel, pk=data['model'], product=product)

    errors = validate_specifications(product, data.get('specifications'))
    if errors:
        return Response({'error': errors}, status=status.HTTP_400_BAD_REQUEST)

    unit_price = calculate_unit_price(
        product, model, data.get('size'), data.get('color'), data.get('fabric'), data.get('specifications')
    )
    return Response({
        'product': product.id,
        'model': model.id if model else None,
        'unit_price': unit_price,
        'quantity': data['quantity'],
        'total_price': unit_price * data['quantity'],
    })


# Raw material views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def material_list_create(request):
    """List all raw materials or create a new one"""
    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        filterset = RawMaterialFilter(request.query_params, queryset=RawMaterial.objects.all())
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs
        inventory_value = queryset.aggregate(
            total=Sum(ExpressionWrapper(F('quantity') * F('unit_cost'), output_field=DecimalField()))
        )['total'] or Decimal('0.00')
        return Response({
            'results': RawMaterialSerializer(queryset, many=True).data,
            'count': queryset.count(),
            'low_stock_count': sum(1 for m in queryset if m.is_low_stock),
            'total_value': float(inventory_value),
        })
    else:
        denied = require_permission(request, 'production', 'edit')
        if denied:
            return denied
        serializer = RawMaterialSerializer(data=request.data)
        if serializer.is_valid():
            material = serializer.save()
            log_activity(request, 'create', 'material', material.id, material.name,
                         f'Material {material.name} cadastrado')
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def material_detail(request, pk):
    """Retrieve, update or delete a raw material"""
    material = get_object_or_404(RawMaterial, pk=pk)

    if request.method == 'GET':
        denied = require_permission(request, 'production', 'view')
        if denied:
            return denied
        return Response(RawMaterialSerializer(material).data)
    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    if request.method in ('PUT', 'PATCH'):
        serializer = RawMaterialSerializer(material, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        name = material.name
        material_id = material.id
        material.delete()
        log_activity(request, 'delete', 'material', material_id, name, f'Material {name} removido')
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def material_adjust_stock(request, pk):
    """Add or remove stock; quantity never goes below zero"""
    denied = require_permission(request, 'production', 'edit')
    if denied:
        return denied
    material = get_object_or_404(RawMaterial, pk=pk)
    try:
        delta = Decimal(str(request.data.get('quantity')))
    except (ArithmeticError, ValueError):
        return Response({'error': 'quantity must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    if not delta.is_finite():
        return Response({'error': 'quantity must be a finite number'}, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = material.quantity
    new_quantity = old_quantity + delta
    if new_quantity < 0:
        return Response(
            {'error': f'Insufficient stock: {old_quantity} {material.unit} available'},
            status=status.HTTP_400_BAD_REQUEST
        )
    material.quantity = new_quantity
    material.save(update_fields=['quantity', 'updated_at'])
    log_activity(request, 'update', 'material', material.id, material.name,
                 f'Estoque de {material.name} ajustado',
                 {'old_quantity': str(old_quantity), 'new_quantity': str(new_quantity),
                  'reason': request.data.get('reason', '')})
    return Response(RawMaterialSerializer(material).data)


# Label views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_label(request, pk):
    """PNG label (as data URL) for a product"""
    product = get_object_or_404(Product, pk=pk)
    code_type = request.query_params.get('type', 'barcode')
    if code_type not in CODE_TYPES:
        return Response({'error': f"type must be one of {', '.join(CODE_TYPES)}"}, status=status.HTTP_400_BAD_REQUEST)
    code_value = product.barcode if code_type == 'barcode' and product.barcode else product.sku
    try:
        image = generate_label_image(product.name, code_value, subtitle=product.sku, code_type=code_type)
    except Exception as e:
        logger.error(f"Label generation failed for product {product.id}: {str(e)}")
        return Response({'error': f'Failed to generate label: {str(e)}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'product': product.id, 'code': code_value, 'image': image})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def code_image(request):
    """Single barcode or QR code as PNG"""
    value = request.query_params.get('value', '').strip()
    code_type = request.query_params.get('type', 'barcode')
    if not value:
        return Response({'error': 'value is required'}, status=status.HTTP_400_BAD_REQUEST)
    if code_type not in CODE_TYPES:
        return Response({'error': f"type must be one of {', '.join(CODE_TYPES)}"}, status=status.HTTP_400_BAD_REQUEST)
    try:
        png = generate_code_image(value, code_type)
    except Exception as e:
        logger.warning(f"Could not render {code_type} for '{value}': {str(e)}")
        return Response({'error': f'Failed to generate code: {str(e)}'}, status=status.HTTP_400_BAD_REQUEST)
    if request.query_params.get('format') == 'base64':
        return Response({'image': f'data:image/png;base64,{base64.b64encode(png).decode("utf-8")}'})
    return HttpResponse(png, content_type='image/png')


def _print_request(request):
    """Validated label request body; ids must be integers"""
    serializer = PrintRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _print_items(data):
    """Print items from explicit payload items or from product/material/order ids"""
    items = list(data.get('items') or [])
    for product in Product.objects.filter(pk__in=data.get('product_ids') or []):
        items.append(product_print_item(product))
    for material in RawMaterial.objects.filter(pk__in=data.get('material_ids') or []):
        items.append(material_print_item(material))
    order_ids = data.get('order_ids') or []
    if order_ids:
        from backend.orders.models import Order
        from .thermal import order_print_item
        for order in Order.objects.filter(pk__in=order_ids).prefetch_related('items', 'fragments'):
            items.append(order_print_item(order))
    return items


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def thermal_labels(request):
    """Text labels for the thermal printer, one entry per printed copy"""
    data = _print_request(request)
    items = _print_items(data)
    if not items:
        return Response({'error': 'No items to print'}, status=status.HTTP_400_BAD_REQUEST)

    overrides = ThermalSettingsSerializer(data=data.get('settings') or {}, partial=True)
    overrides.is_valid(raise_exception=True)
    settings = {**get_json_setting(THERMAL_SETTINGS_KEY, DEFAULT_THERMAL_SETTINGS), **overrides.validated_data}

    labels = build_print_job(items, settings)
    logger.info(f"Thermal print job: {len(items)} label(s) x {settings['copies']} copies")
    if request.query_params.get('format') == 'txt':
        response = HttpResponse('\n'.join(labels), content_type='text/plain; charset=utf-8')
        response['Content-Disposition'] = 'attachment; filename="etiquetas.txt"'
        return response
    return Response({
        'labels': labels,
        'items': len(items),
        'copies': settings['copies'],
        'settings': settings,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def barcode_pdf(request):
    """A4 PDF with one barcode or QR code block per item"""
    data = _print_request(request)
    code_type = data['type']
    if code_type not in CODE_TYPES:
        return Response({'error': f"type must be one of {', '.join(CODE_TYPES)}"}, status=status.HTTP_400_BAD_REQUEST)
    items = _print_items(data)
    if not items:
        return Response({'error': 'No items to print'}, status=status.HTTP_400_BAD_REQUEST)

    filename = data.get('filename') or 'codigos.pdf'
    try:
        pdf_bytes = build_barcode_pdf(items, code_type, title=filename)
    except Exception as e:
        logger.error(f"PDF generation failed: {str(e)}")
        return Response({'error': f'Failed to build PDF: {str(e)}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def thermal_settings(request):
    """Thermal printer settings"""
    if request.method == 'GET':
        return Response(get_json_setting(THERMAL_SETTINGS_KEY, DEFAULT_THERMAL_SETTINGS))
    denied = require_permission(request, 'settings', 'edit')
    if denied:
        return denied
    serializer = ThermalSettingsSerializer(data=request.data, partial=True)
    if serializer.is_valid():
        return Response(save_json_setting(
            THERMAL_SETTINGS_KEY, DEFAULT_THERMAL_SETTINGS, serializer.validated_data,
            description='Thermal printer settings'
        ))
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
