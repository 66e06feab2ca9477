from django.contrib import admin
from .models import Order, OrderItem, OrderFragment


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['product', 'product_name', 'model_name', 'size', 'quantity', 'unit_price', 'total_price']
    readonly_fields = ['total_price']


class OrderFragmentInline(admin.TabularInline):
    model = OrderFragment
    extra = 0
    fields = ['fragment_number', 'quantity', 'scheduled_date', 'status', 'progress', 'value']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'seller_name', 'status', 'priority',
                    'total_amount', 'scheduled_date', 'production_progress', 'created_at']
    list_filter = ['status', 'priority', 'is_fragmented', 'created_at']
    search_fields = ['order_number', 'customer_name', 'seller_name']
    readonly_fields = ['order_number', 'subtotal', 'discount_amount', 'total_amount', 'created_at', 'updated_at']
    inlines = [OrderItemInline, OrderFragmentInline]
