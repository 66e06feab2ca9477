"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.core.permissions import default_permissions_for_role
from backend.catalog.models import Product, ProductModel, RawMaterial
from backend.customers.models import Customer
from backend.orders.models import Order, OrderItem
from backend.orders.utils import recalculate_order_totals
from backend.production.models import Operator, ProductionTask
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='admin', permissions=None,
                    is_staff=False, is_superuser=False, status='active'):
        """Create a test user; role defaults to admin so endpoint tests pass permission checks"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        if permissions is None:
            permissions = default_permissions_for_role(role)
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            permissions=permissions,
            status=status,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_seller(**kwargs):
        return TestDataFactory.create_user(role='seller', **kwargs)

    @staticmethod
    def create_operator_user(**kwargs):
        return TestDataFactory.create_user(role='operator', **kwargs)

    @staticmethod
    def create_customer(name=None, document=None, email=None, customer_type='individual',
                        default_discount=Decimal('0.00'), status='active'):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{name.lower()}@test.com'
        return Customer.objects.create(
            name=name,
            email=email,
            phone=f'11{random.randint(900000000, 999999999)}',
            document=document,
            customer_type=customer_type,
            default_discount=default_discount,
            city='São Paulo',
            state='SP',
            status=status
        )

    @staticmethod
    def create_product(name=None, category='bed', base_price=None, cost_price=None,
                       specifications=None, status='active'):
        """Create a test product (SKU and EAN-13 barcode are generated on save)"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            name=name,
            category=category,
            base_price=base_price if base_price is not None else Decimal('1000.00'),
            cost_price=cost_price if cost_price is not None else Decimal('600.00'),
            specifications=specifications or [],
            status=status
        )

    @staticmethod
    def create_product_model(product, name=None, price_modifier=Decimal('1.000'), sizes=None,
                             colors=None, fabrics=None):
        """Create a test product model"""
        return ProductModel.objects.create(
            product=product,
            name=name or f'Model_{TestDataFactory.random_string(4)}',
            price_modifier=price_modifier,
            sizes=sizes or [],
            colors=colors or [],
            fabrics=fabrics or []
        )

    @staticmethod
    def create_material(name=None, quantity=Decimal('10.000'), minimum_stock=Decimal('5.000'),
                        unit_cost=Decimal('20.00'), category='fabric', unit='meters'):
        """Create a test raw material"""
        return RawMaterial.objects.create(
            name=name or f'Material_{TestDataFactory.random_string(6)}',
            category=category,
            unit=unit,
            quantity=quantity,
            minimum_stock=minimum_stock,
            unit_cost=unit_cost,
            supplier='Fornecedor Teste'
        )

    @staticmethod
    def create_order(customer=None, seller=None, status='pending', priority='medium', items=None,
                     scheduled_date=None, delivery_date=None, discount_percentage=Decimal('0.00')):
        """
        Create a test order with items

        Args:
            items: list of (product_name, quantity, unit_price) tuples;
                defaults to a single item of 2 x 500.00
        """
        if not customer:
            customer = TestDataFactory.create_customer()
        order = Order.objects.create(
            customer=customer,
            seller=seller,
            status=status,
            priority=priority,
            scheduled_date=scheduled_date or timezone.localdate(),
            delivery_date=delivery_date,
            discount_percentage=discount_percentage
        )
        for product_name, quantity, unit_price in (items or [('Cama Box Casal', 2, Decimal('500.00'))]):
            OrderItem.objects.create(
                order=order,
                product_name=product_name,
                quantity=quantity,
                unit_price=Decimal(str(unit_price))
            )
        recalculate_order_totals(order)
        return order

    @staticmethod
    def create_operator(name=None, skills=None, user=None):
        """Create a test shop floor operator"""
        return Operator.objects.create(
            name=name or f'Operator_{TestDataFactory.random_string(5)}',
            skills=skills or ['cutting_sewing'],
            user=user
        )

    @staticmethod
    def create_task(order, stage_id='cutting_sewing', operator=None, status='pending'):
        """Create a test production task"""
        return ProductionTask.objects.create(order=order, stage_id=stage_id, operator=operator, status=status)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
