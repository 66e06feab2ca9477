from rest_framework import serializers
from .models import Customer, normalize_customer_type, only_digits


TEXT_FIELDS = [
    'email', 'phone', 'address', 'number', 'complement', 'neighborhood',
    'city', 'state', 'zip_code', 'region', 'notes',
]


class CustomerSerializer(serializers.ModelSerializer):
    customer_type = serializers.CharField(required=False)
    document = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    total_orders = serializers.SerializerMethodField()
    total_spent = serializers.SerializerMethodField()
    last_order_date = serializers.SerializerMethodField()

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'email', 'phone', 'document', 'customer_type',
            'address', 'number', 'complement', 'neighborhood', 'city', 'state', 'zip_code', 'region',
            'status', 'default_discount', 'notes',
            'total_orders', 'total_spent', 'last_order_date',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def to_internal_value(self, data):
        # Missing values arrive as null from older clients; store them as empty strings
        if hasattr(data, 'copy'):
            data = data.copy()
        for field in TEXT_FIELDS:
            if field in data and data[field] is None:
                data[field] = ''
        return super().to_internal_value(data)

    def validate_customer_type(self, value):
        value = normalize_customer_type(value)
        if value not in dict(Customer.TYPE_CHOICES):
            raise serializers.ValidationError('Customer type must be individual or business')
        return value

    def validate_document(self, value):
        digits = only_digits(value)
        if not digits:
            return None
        if len(digits) not in (11, 14):
            raise serializers.ValidationError('Document must be a CPF (11 digits) or CNPJ (14 digits)')
        duplicates = Customer.objects.filter(document=digits)
        if self.instance:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError('A customer with this document already exists')
        return digits

    def _summary(self, obj):
        if not hasattr(obj, '_order_summary'):
            if hasattr(obj, 'annotated_total_orders'):
                obj._order_summary = {
                    'total_orders': obj.annotated_total_orders or 0,
                    'total_spent': obj.annotated_total_spent,
                    'last_order_date': obj.annotated_last_order_date,
                }
            else:
                obj._order_summary = obj.order_summary()
        return obj._order_summary

    def get_total_orders(self, obj):
        return self._summary(obj)['total_orders']

    def get_total_spent(self, obj):
        return float(self._summary(obj)['total_spent'] or 0)

    def get_last_order_date(self, obj):
        last = self._summary(obj)['last_order_date']
        return last.isoformat() if last else None
