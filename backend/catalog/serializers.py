from decimal import Decimal
from rest_framework import serializers
from .models import Product, ProductModel, RawMaterial


FABRIC_TYPES = ['courino', 'tecido', 'veludo', 'couro']


def _check_price_modifier(modifier, name):
    try:
        value = Decimal(str(modifier))
    except (ArithmeticError, ValueError):
        raise serializers.ValidationError(f"Price modifier of '{name}' must be a number")
    if not value.is_finite():
        raise serializers.ValidationError(f"Price modifier of '{name}' must be a number")
    if value <= 0:
        raise serializers.ValidationError(f"Price modifier of '{name}' must be positive")


def _validate_option_list(value, label, extra_check=None):
    if not isinstance(value, list):
        raise serializers.ValidationError(f'{label} must be a list')
    names = set()
    for option in value:
        if not isinstance(option, dict) or not str(option.get('name', '')).strip():
            raise serializers.ValidationError(f'Every {label[:-1]} needs a name')
        key = str(option['name']).strip().lower()
        if key in names:
            raise serializers.ValidationError(f"Duplicate {label[:-1]} '{option['name']}'")
        names.add(key)
        _check_price_modifier(option.get('price_modifier', 1), option['name'])
        if extra_check:
            extra_check(option)
    return value


class ProductModelSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductModel
        fields = ['id', 'product', 'name', 'description', 'price_modifier', 'sizes', 'colors', 'fabrics',
                  'stock_quantity', 'minimum_stock', 'is_low_stock', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['product', 'created_at', 'updated_at']

    def validate_price_modifier(self, value):
        if value <= 0:
            raise serializers.ValidationError('Price modifier must be positive')
        return value

    def validate_sizes(self, value):
        return _validate_option_list(value, 'sizes')

    def validate_colors(self, value):
        return _validate_option_list(value, 'colors')

    def validate_fabrics(self, value):
        def check_type(option):
            if option.get('type') and option['type'] not in FABRIC_TYPES:
                raise serializers.ValidationError(f"Fabric type must be one of {', '.join(FABRIC_TYPES)}")
        return _validate_option_list(value, 'fabrics', check_type)


class ProductListSerializer(serializers.ModelSerializer):
    model_count = serializers.IntegerField(source='models.count', read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'category', 'sku', 'barcode', 'base_price', 'cost_price', 'margin',
                  'status', 'model_count', 'images', 'created_at']


class ProductSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(required=False, allow_blank=True)
    barcode = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    models = ProductModelSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'category', 'sku', 'barcode', 'description', 'base_price', 'cost_price',
                  'margin', 'status', 'images', 'specifications', 'models', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def _unique(self, field, value):
        duplicates = Product.objects.filter(**{field: value})
        if self.instance:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError(f'A product with this {field} already exists')

    def validate_sku(self, value):
        value = (value or '').strip().upper()
        if value:
            self._unique('sku', value)
        return value

    def validate_barcode(self, value):
        value = (value or '').strip()
        if value:
            self._unique('barcode', value)
            return value
        return None

    def validate_specifications(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Specifications must be a list')
        for spec in value:
            if not isinstance(spec, dict) or not spec.get('name'):
                raise serializers.ValidationError('Every specification needs a name')
            options = spec.get('options', [])
            if not isinstance(options, list):
                raise serializers.ValidationError(f"Options of '{spec['name']}' must be a list")
            modifiers = spec.get('price_modifiers') or {}
            if not isinstance(modifiers, dict):
                raise serializers.ValidationError(f"Price modifiers of '{spec['name']}' must be an object")
            for option, modifier in modifiers.items():
                if option not in options:
                    raise serializers.ValidationError(
                        f"Price modifier for unknown option '{option}' in '{spec['name']}'"
                    )
                _check_price_modifier(modifier, option)
        return value

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise serializers.ValidationError('Images must be a list of URLs')
        return value

    def validate(self, attrs):
        base_price = attrs.get('base_price', getattr(self.instance, 'base_price', Decimal('0.00')))
        cost_price = attrs.get('cost_price', getattr(self.instance, 'cost_price', Decimal('0.00')))
        if 'margin' not in attrs and ('base_price' in attrs or 'cost_price' in attrs) and base_price:
            attrs['margin'] = ((base_price - cost_price) / base_price * Decimal('100')).quantize(Decimal('0.01'))
        return attrs


class RawMaterialSerializer(serializers.ModelSerializer):
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = RawMaterial
        fields = ['id', 'name', 'category', 'unit', 'quantity', 'minimum_stock', 'unit_cost', 'total_value',
                  'is_low_stock', 'supplier', 'location', 'expiration_date', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PriceQuoteSerializer(serializers.Serializer):
    model = serializers.IntegerField(required=False, allow_null=True)
    size = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(required=False, allow_blank=True)
    fabric = serializers.CharField(required=False, allow_blank=True)
    specifications = serializers.DictField(child=serializers.CharField(), required=False)
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)


class PrintItemSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=['product', 'order', 'material'], required=False, default='product')
    code = serializers.CharField()
    name = serializers.CharField()
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.CharField(required=False, allow_blank=True)


class PrintRequestSerializer(serializers.Serializer):
    """Body of the thermal and PDF label endpoints"""
    items = PrintItemSerializer(many=True, required=False)
    product_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_null=True)
    material_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_null=True)
    order_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_null=True)
    settings = serializers.DictField(required=False, allow_null=True)
    type = serializers.CharField(required=False, default='barcode')
    filename = serializers.CharField(required=False, allow_blank=True)


class ThermalSettingsSerializer(serializers.Serializer):
    printer_type = serializers.ChoiceField(choices=['thermal', 'laser', 'inkjet'], required=False)
    paper_width = serializers.ChoiceField(choices=['58mm', '80mm', '110mm'], required=False)
    density = serializers.ChoiceField(choices=['light', 'medium', 'dark'], required=False)
    speed = serializers.ChoiceField(choices=['slow', 'medium', 'fast'], required=False)
    connection = serializers.ChoiceField(choices=['usb', 'bluetooth', 'wifi', 'ethernet'], required=False)
    copies = serializers.IntegerField(required=False, min_value=1, max_value=100)
    cut_after_print = serializers.BooleanField(required=False)
    include_date = serializers.BooleanField(required=False)
    include_company_logo = serializers.BooleanField(required=False)
    custom_text = serializers.CharField(required=False, allow_blank=True)
