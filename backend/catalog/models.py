from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal


class Product(models.Model):
    """Furniture products (beds, mattresses and accessories)"""
    CATEGORY_CHOICES = [
        ('bed', 'Bed'),
        ('mattress', 'Mattress'),
        ('pillow', 'Pillow'),
        ('protector', 'Protector'),
        ('accessory', 'Accessory'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('discontinued', 'Discontinued'),
    ]

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='bed')
    sku = models.CharField(max_length=100, unique=True, blank=True)
    barcode = models.CharField(max_length=50, unique=True, blank=True, null=True)
    description = models.TextField(blank=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))])
    cost_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))])
    margin = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal('0.00'), help_text="Profit margin percentage over the base price")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    images = models.JSONField(default=list, blank=True)
    specifications = models.JSONField(default=list, blank=True, help_text="List of {name, options, required, price_modifiers}")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def calculate_margin(self):
        if not self.base_price:
            return Decimal('0.00')
        margin = (self.base_price - self.cost_price) / self.base_price * Decimal('100')
        return margin.quantize(Decimal('0.01'))

    def save(self, *args, **kwargs):
        from .utils import generate_unique_sku, generate_unique_ean13
        if not self.sku:
            self.sku = generate_unique_sku(self.name, self.category)
        if not self.barcode:
            self.barcode = generate_unique_ean13()
        if self.cost_price and not self.margin:
            self.margin = self.calculate_margin()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['sku'], name='idx_product_sku'),
            models.Index(fields=['category', 'status'], name='idx_product_category_status'),
        ]


class ProductModel(models.Model):
    """A model line of a product with its size, color and fabric options"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='models')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price_modifier = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal('1.000'))
    sizes = models.JSONField(default=list, blank=True, help_text="List of {name, width, length, height, price_modifier}")
    colors = models.JSONField(default=list, blank=True, help_text="List of {name, hex_code, price_modifier}")
    fabrics = models.JSONField(default=list, blank=True, help_text="List of {name, type, price_modifier}")
    stock_quantity = models.IntegerField(default=0)
    minimum_stock = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.minimum_stock

    class Meta:
        db_table = 'product_models'
        ordering = ['product', 'name']


class RawMaterial(models.Model):
    """Raw materials used on the shop floor"""
    CATEGORY_CHOICES = [
        ('wood', 'Wood'),
        ('foam', 'Foam'),
        ('fabric', 'Fabric'),
        ('hardware', 'Hardware'),
        ('other', 'Other'),
    ]

    UNIT_CHOICES = [
        ('meters', 'Meters'),
        ('pieces', 'Pieces'),
        ('liters', 'Liters'),
        ('kg', 'Kilograms'),
    ]

    name = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    unit = models.CharField(max_length=20, choices=UNIT_CHOICES, default='pieces')
    quantity = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'), validators=[MinValueValidator(Decimal('0'))])
    minimum_stock = models.DecimalField(max_digits=12, decimal_places=3, default=Decimal('0.000'), validators=[MinValueValidator(Decimal('0'))])
    unit_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0'))])
    supplier = models.CharField(max_length=255, blank=True)
    location = models.CharField(max_length=255, blank=True)
    expiration_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def total_value(self):
        return (self.quantity * self.unit_cost).quantize(Decimal('0.01'))

    @property
    def is_low_stock(self):
        return self.quantity <= self.minimum_stock

    class Meta:
        db_table = 'raw_materials'
        ordering = ['name']
