import django_filters
from django.db.models import Q, F
from .models import Product, RawMaterial


class ProductFilter(django_filters.FilterSet):
    """Filter for Product model using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.ChoiceFilter(choices=Product.CATEGORY_CHOICES)
    status = django_filters.ChoiceFilter(choices=Product.STATUS_CHOICES)
    min_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='base_price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['search', 'category', 'status', 'min_price', 'max_price']

    def filter_search(self, queryset, name, value):
        """Match every word against name, SKU, barcode or description"""
        words = [w for w in (value or '').split() if w]
        for word in words:
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(sku__icontains=word) |
                Q(barcode__icontains=word) |
                Q(description__icontains=word)
            )
        return queryset


class RawMaterialFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.ChoiceFilter(choices=RawMaterial.CATEGORY_CHOICES)
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = RawMaterial
        fields = ['search', 'category', 'supplier', 'low_stock']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(supplier__icontains=value) | Q(location__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(quantity__lte=F('minimum_stock'))
        return queryset.filter(quantity__gt=F('minimum_stock'))
