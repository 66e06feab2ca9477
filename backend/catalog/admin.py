from django.contrib import admin
from .models import Product, ProductModel, RawMaterial


class ProductModelInline(admin.TabularInline):
    model = ProductModel
    extra = 0
    fields = ['name', 'price_modifier', 'stock_quantity', 'minimum_stock', 'is_active']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'barcode', 'category', 'base_price', 'margin', 'status', 'created_at']
    list_filter = ['category', 'status', 'created_at']
    search_fields = ['name', 'sku', 'barcode', 'description']
    ordering = ['name']
    inlines = [ProductModelInline]


@admin.register(ProductModel)
class ProductModelAdmin(admin.ModelAdmin):
    list_display = ['product', 'name', 'price_modifier', 'stock_quantity', 'minimum_stock', 'is_active']
    list_filter = ['is_active', 'product__category']
    search_fields = ['name', 'product__name']
    ordering = ['product__name', 'name']


@admin.register(RawMaterial)
class RawMaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'quantity', 'unit', 'minimum_stock', 'unit_cost', 'supplier', 'expiration_date']
    list_filter = ['category', 'unit']
    search_fields = ['name', 'supplier', 'location']
    ordering = ['name']
