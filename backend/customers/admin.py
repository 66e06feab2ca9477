from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'document', 'customer_type', 'phone', 'email', 'city', 'status', 'created_at']
    list_filter = ['status', 'customer_type', 'state', 'created_at']
    search_fields = ['name', 'document', 'phone', 'email']
    ordering = ['name']
