from decimal import Decimal
from django.db import transaction
from rest_framework import serializers

from backend.catalog.models import ProductModel
from backend.catalog.utils import calculate_unit_price, validate_specifications
from .models import Order, OrderItem, OrderFragment
from .utils import recalculate_order_totals
from .workflow import normalize_status


class OrderItemSerializer(serializers.ModelSerializer):
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=Decimal('0'))
    product_name = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'model_name', 'size', 'color', 'fabric',
                  'quantity', 'unit_price', 'total_price', 'specifications']
        read_only_fields = ['total_price']

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1')
        return value

    def validate(self, attrs):
        product = attrs.get('product')
        if not product and not attrs.get('product_name'):
            raise serializers.ValidationError({'product': 'A product or product name is required'})
        if product:
            if product.status != 'active':
                raise serializers.ValidationError({'product': f'Product {product.name} is not active'})
            attrs.setdefault('product_name', product.name)
            if not attrs.get('product_name'):
                attrs['product_name'] = product.name
            errors = validate_specifications(product, attrs.get('specifications'))
            if errors:
                raise serializers.ValidationError({'specifications': errors})
            if attrs.get('unit_price') is None:
                model = None
                if attrs.get('model_name'):
                    model = ProductModel.objects.filter(product=product, name__iexact=attrs['model_name']).first()
                attrs['unit_price'] = calculate_unit_price(
                    product, model, attrs.get('size'), attrs.get('color'), attrs.get('fabric'),
                    attrs.get('specifications')
                )
        elif attrs.get('unit_price') is None:
            raise serializers.ValidationError({'unit_price': 'Unit price is required for items without a product'})
        return attrs


class OrderFragmentSerializer(serializers.ModelSerializer):
    id = serializers.CharField(source='fragment_id', read_only=True)

    class Meta:
        model = OrderFragment
        fields = ['id', 'fragment_number', 'quantity', 'scheduled_date', 'status', 'progress', 'value',
                  'assigned_operator', 'started_at', 'completed_at']
        read_only_fields = ['fragment_number', 'value', 'started_at', 'completed_at']


class FragmentInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    scheduled_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=OrderFragment.STATUS_CHOICES, required=False)
    progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    assigned_operator = serializers.CharField(required=False, allow_blank=True)


class FragmentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderFragment.STATUS_CHOICES, required=False)
    progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    assigned_operator = serializers.CharField(required=False, allow_blank=True)
    scheduled_date = serializers.DateField(required=False)


class OrderListSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(source='items.count', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'seller', 'seller_name', 'status',
                  'priority', 'total_amount', 'scheduled_date', 'delivery_date', 'completed_date',
                  'production_progress', 'is_fragmented', 'item_count', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True)
    fragments = OrderFragmentSerializer(many=True, read_only=True)
    status = serializers.CharField(required=False)
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, min_value=Decimal('0'), max_value=Decimal('100')
    )

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'seller', 'seller_name', 'status',
                  'priority', 'subtotal', 'discount_percentage', 'discount_amount', 'total_amount',
                  'scheduled_date', 'delivery_date', 'completed_date', 'production_progress',
                  'assigned_operator', 'notes', 'is_fragmented', 'total_quantity',
                  'items', 'fragments', 'created_at', 'updated_at']
        read_only_fields = ['order_number', 'customer_name', 'seller', 'seller_name', 'subtotal',
                            'discount_amount', 'total_amount', 'completed_date', 'production_progress',
                            'is_fragmented', 'created_at', 'updated_at']

    def validate_status(self, value):
        value = normalize_status(value)
        if self.instance is not None:
            if value != self.instance.status:
                raise serializers.ValidationError('Status changes go through the order transition endpoint')
            return value
        if value not in ('pending', 'awaiting_approval'):
            raise serializers.ValidationError('New orders start as pending or awaiting_approval')
        return value

    def validate_customer(self, value):
        if value.status != 'active' and (self.instance is None or self.instance.customer_id != value.id):
            raise serializers.ValidationError('Customer is inactive')
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('An order needs at least one item')
        return value

    def validate(self, attrs):
        scheduled = attrs.get('scheduled_date', getattr(self.instance, 'scheduled_date', None))
        delivery = attrs.get('delivery_date', getattr(self.instance, 'delivery_date', None))
        if scheduled and delivery and delivery < scheduled:
            raise serializers.ValidationError({'delivery_date': 'Delivery date cannot be before the scheduled date'})
        if self.instance is not None and self.instance.status in ('delivered', 'cancelled'):
            raise serializers.ValidationError(f'Orders with status {self.instance.status} cannot be edited')
        return attrs

    def _write_items(self, order, items_data):
        order.items.all().delete()
        for item in items_data:
            OrderItem.objects.create(order=order, **item)

    def create(self, validated_data):
        items_data = validated_data.pop('items')
        customer = validated_data['customer']
        if 'discount_percentage' not in validated_data:
            validated_data['discount_percentage'] = customer.default_discount
        with transaction.atomic():
            order = Order.objects.create(**validated_data)
            self._write_items(order, items_data)
            recalculate_order_totals(order)
        return order

    def update(self, instance, validated_data):
        items_data = validated_data.pop('items', None)
        if 'customer' in validated_data and validated_data['customer'].id != instance.customer_id:
            instance.customer_name = validated_data['customer'].name
        with transaction.atomic():
            for attr, value in validated_data.items():
                setattr(instance, attr, value)
            instance.save()
            if items_data is not None:
                self._write_items(instance, items_data)
                # Drops the prefetched item list
                instance.refresh_from_db()
            recalculate_order_totals(instance)
        return instance


class TransitionSerializer(serializers.Serializer):
    action = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True)


class RescheduleSerializer(serializers.Serializer):
    scheduled_date = serializers.DateField()
    delivery_date = serializers.DateField(required=False, allow_null=True)
