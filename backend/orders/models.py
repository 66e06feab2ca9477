from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
from backend.catalog.models import Product
from backend.core.models import User
from backend.customers.models import Customer


class Order(models.Model):
    """Customer orders moving through the production workflow"""
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('awaiting_approval', 'Aguardando Aprovação'),
        ('confirmed', 'Confirmado'),
        ('in_production', 'Em Produção'),
        ('quality_check', 'Controle de Qualidade'),
        ('ready', 'Pronto'),
        ('delivered', 'Entregue'),
        ('cancelled', 'Cancelado'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Baixa'),
        ('medium', 'Média'),
        ('high', 'Alta'),
        ('urgent', 'Urgente'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    customer_name = models.CharField(max_length=255, blank=True)
    seller = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    seller_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='medium')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_percentage = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    scheduled_date = models.DateField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    completed_date = models.DateTimeField(null=True, blank=True)
    production_progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    assigned_operator = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    is_fragmented = models.BooleanField(default=False)
    total_quantity = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def save(self, *args, **kwargs):
        from .utils import generate_order_number
        if not self.order_number:
            self.order_number = generate_order_number()
        if self.customer_id and not self.customer_name:
            self.customer_name = self.customer.name
        if self.seller_id and not self.seller_name:
            self.seller_name = self.seller.display_name
        super().save(*args, **kwargs)

    def resolved_total_quantity(self):
        """Units in the order: explicit total, else items, else fragments, else 1"""
        if self.total_quantity:
            return self.total_quantity
        item_total = sum(item.quantity for item in self.items.all())
        if item_total:
            return item_total
        fragment_total = sum(fragment.quantity for fragment in self.fragments.all())
        if fragment_total:
            return fragment_total
        return 1

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_order_status'),
            models.Index(fields=['priority'], name='idx_order_priority'),
            models.Index(fields=['scheduled_date'], name='idx_order_scheduled_date'),
            models.Index(fields=['-created_at'], name='idx_order_created_at'),
        ]


class OrderItem(models.Model):
    """Configured products in an order"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    product_name = models.CharField(max_length=255)
    model_name = models.CharField(max_length=255, blank=True)
    size = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=100, blank=True)
    fabric = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    specifications = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    def save(self, *args, **kwargs):
        self.total_price = (self.unit_price * self.quantity).quantize(Decimal('0.01'))
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderFragment(models.Model):
    """A production batch holding part of an order's quantity"""
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('in_production', 'Em Produção'),
        ('completed', 'Concluído'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='fragments')
    fragment_number = models.PositiveIntegerField()
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    scheduled_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    assigned_operator = models.CharField(max_length=255, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    @property
    def fragment_id(self):
        return f"{self.order_id}-frag-{self.fragment_number}"

    def __str__(self):
        return f"{self.order.order_number} #{self.fragment_number}"

    class Meta:
        db_table = 'order_fragments'
        ordering = ['order', 'fragment_number']
        constraints = [
            models.UniqueConstraint(fields=['order', 'fragment_number'], name='uniq_order_fragment_number'),
        ]
