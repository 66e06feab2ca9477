from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Sum, Max, Count, Q
from decimal import Decimal


CUSTOMER_TYPE_ALIASES = {
    'company': 'business',
    'empresa': 'business',
    'pj': 'business',
    'pessoa_juridica': 'business',
    'pf': 'individual',
    'pessoa_fisica': 'individual',
}


def normalize_customer_type(value):
    """Map legacy customer type values onto individual/business"""
    value = (value or '').strip().lower()
    if not value:
        return 'individual'
    return CUSTOMER_TYPE_ALIASES.get(value, value)


def only_digits(value):
    return ''.join(ch for ch in str(value or '') if ch.isdigit())


class Customer(models.Model):
    """Customers (individuals identified by CPF, businesses by CNPJ)"""
    TYPE_CHOICES = [
        ('individual', 'Individual'),
        ('business', 'Business'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    document = models.CharField(max_length=20, unique=True, blank=True, null=True, help_text="CPF or CNPJ, digits only")
    customer_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='individual')
    address = models.CharField(max_length=255, blank=True)
    number = models.CharField(max_length=20, blank=True)
    complement = models.CharField(max_length=100, blank=True)
    neighborhood = models.CharField(max_length=100, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=50, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    region = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    default_discount = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.document = only_digits(self.document) or None
        self.customer_type = normalize_customer_type(self.customer_type)
        super().save(*args, **kwargs)

    def order_summary(self):
        """Totals over non-cancelled orders"""
        summary = self.orders.exclude(status='cancelled').aggregate(
            total_orders=Count('id'),
            total_spent=Sum('total_amount'),
            last_order_date=Max('created_at'),
        )
        return {
            'total_orders': summary['total_orders'] or 0,
            'total_spent': summary['total_spent'] or Decimal('0.00'),
            'last_order_date': summary['last_order_date'],
        }

    class Meta:
        db_table = 'customers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='idx_customer_name'),
            models.Index(fields=['status'], name='idx_customer_status'),
        ]


def customer_search_filter(search):
    """Q object matching name, email, phone or document"""
    query = Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search)
    digits = only_digits(search)
    if digits:
        query |= Q(document__icontains=digits)
    return query
