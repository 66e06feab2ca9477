"""
Management command to load a small demo data set: users, customers, products,
raw materials, operators, a production line and sample orders.
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from backend.catalog.models import Product, ProductModel, RawMaterial
from backend.catalog.utils import calculate_unit_price
from backend.core.permissions import default_permissions_for_role
from backend.core.utils import DEFAULT_SYSTEM_SETTINGS, SYSTEM_SETTINGS_KEY, save_json_setting
from backend.customers.models import Customer
from backend.orders.models import Order, OrderItem
from backend.orders.utils import recalculate_order_totals
from backend.production.models import Operator, ProductionLine
from backend.production.settings import DEFAULT_PRODUCTION_SETTINGS, PRODUCTION_SETTINGS_KEY
from backend.production.stages import ensure_stages, update_stage

User = get_user_model()

DEMO_USERS = [
    {'username': 'admin', 'email': 'admin@bioboxsys.com', 'first_name': 'Administrator', 'role': 'admin'},
    {'username': 'carlos', 'email': 'carlos@bioboxsys.com', 'first_name': 'Carlos', 'last_name': 'Vendedor', 'role': 'seller'},
    {'username': 'ana', 'email': 'ana@bioboxsys.com', 'first_name': 'Ana', 'last_name': 'Vendedora', 'role': 'seller'},
    {'username': 'joao', 'email': 'joao@bioboxsys.com', 'first_name': 'João', 'last_name': 'Operador', 'role': 'operator'},
]

DEMO_CUSTOMERS = [
    {'name': 'Maria Silva', 'document': '12345678901', 'customer_type': 'individual', 'email': 'maria@email.com',
     'phone': '(11) 98765-4321', 'city': 'São Paulo', 'state': 'SP'},
    {'name': 'Móveis Planalto Ltda', 'document': '12345678000190', 'customer_type': 'business',
     'email': 'compras@planalto.com.br', 'phone': '(11) 3456-7890', 'city': 'Campinas', 'state': 'SP',
     'default_discount': Decimal('5.00')},
    {'name': 'Hotel Bela Vista', 'document': '98765432000110', 'customer_type': 'business',
     'email': 'manutencao@belavista.com.br', 'phone': '(13) 3222-1100', 'city': 'Santos', 'state': 'SP',
     'default_discount': Decimal('10.00')},
]

DEMO_PRODUCTS = [
    {
        'name': 'Cama Box Casal', 'category': 'bed', 'base_price': Decimal('1890.00'), 'cost_price': Decimal('1100.00'),
        'models': [
            {'name': 'Standard', 'price_modifier': Decimal('1.000'),
             'sizes': [{'name': 'Casal 138x188', 'price_modifier': 1.0}, {'name': 'Queen 158x198', 'price_modifier': 1.2}],
             'colors': [{'name': 'Bege', 'hex_code': '#D8C3A5'}, {'name': 'Cinza', 'hex_code': '#8E8D8A'}],
             'fabrics': [{'name': 'Suede', 'type': 'tecido'}, {'name': 'Courino Preto', 'type': 'courino', 'price_modifier': 1.1}]},
            {'name': 'Premium', 'price_modifier': Decimal('1.350'),
             'sizes': [{'name': 'Queen 158x198', 'price_modifier': 1.0}, {'name': 'King 193x203', 'price_modifier': 1.25}],
             'colors': [{'name': 'Grafite', 'hex_code': '#3C3C3C'}],
             'fabrics': [{'name': 'Veludo', 'type': 'veludo', 'price_modifier': 1.15}]},
        ],
    },
    {
        'name': 'Colchão Molas Ensacadas', 'category': 'mattress', 'base_price': Decimal('2290.00'),
        'cost_price': Decimal('1350.00'),
        'models': [
            {'name': 'Firme', 'price_modifier': Decimal('1.000'),
             'sizes': [{'name': 'Casal 138x188', 'price_modifier': 1.0}, {'name': 'King 193x203', 'price_modifier': 1.4}]},
        ],
    },
    {'name': 'Travesseiro Viscoelástico', 'category': 'pillow', 'base_price': Decimal('189.90'),
     'cost_price': Decimal('75.00'), 'models': []},
]

DEMO_MATERIALS = [
    {'name': 'Espuma D33', 'category': 'foam', 'unit': 'pieces', 'quantity': Decimal('40'), 'minimum_stock': Decimal('15'),
     'unit_cost': Decimal('85.00'), 'supplier': 'Espumas Paulista'},
    {'name': 'Tecido Suede Bege', 'category': 'fabric', 'unit': 'meters', 'quantity': Decimal('120'),
     'minimum_stock': Decimal('50'), 'unit_cost': Decimal('32.50'), 'supplier': 'Têxtil Santa Rita'},
    {'name': 'Madeira Pinus 2x4', 'category': 'wood', 'unit': 'pieces', 'quantity': Decimal('8'),
     'minimum_stock': Decimal('20'), 'unit_cost': Decimal('27.90'), 'supplier': 'Madeireira Central'},
    {'name': 'Grampos 10mm', 'category': 'hardware', 'unit': 'kg', 'quantity': Decimal('3.5'),
     'minimum_stock': Decimal('2'), 'unit_cost': Decimal('48.00'), 'supplier': 'Ferragens ABC'},
]

DEMO_OPERATORS = [
    {'name': 'João Operador', 'skills': ['cutting_sewing', 'upholstery'], 'shift': 'morning'},
    {'name': 'Pedro Marceneiro', 'skills': ['carpentry', 'assembly'], 'shift': 'morning'},
    {'name': 'Lucia Acabamento', 'skills': ['upholstery', 'packaging'], 'shift': 'afternoon'},
]

# ``notes`` identifies a demo order, so reruns skip it
DEMO_ORDERS = [
    {'notes': 'Pedido demonstração 1', 'customer': '12345678901', 'seller': 'carlos', 'status': 'pending',
     'priority': 'medium', 'scheduled_in': 5, 'delivery_in': 12,
     'items': [{'product': 'Cama Box Casal', 'model': 'Standard', 'size': 'Casal 138x188', 'color': 'Bege',
                'fabric': 'Suede', 'quantity': 1}]},
    {'notes': 'Pedido demonstração 2', 'customer': '12345678000190', 'seller': 'ana', 'status': 'confirmed',
     'priority': 'high', 'scheduled_in': 2, 'delivery_in': 9,
     'items': [{'product': 'Colchão Molas Ensacadas', 'model': 'Firme', 'size': 'King 193x203', 'quantity': 4}]},
    {'notes': 'Pedido demonstração 3', 'customer': '98765432000110', 'seller': 'carlos', 'status': 'in_production',
     'priority': 'urgent', 'scheduled_in': -1, 'delivery_in': 4,
     'completed_stages': ['cutting_sewing', 'carpentry'], 'started_stage': 'upholstery',
     'items': [{'product': 'Cama Box Casal', 'model': 'Premium', 'size': 'King 193x203', 'color': 'Grafite',
                'fabric': 'Veludo', 'quantity': 6},
               {'product': 'Travesseiro Viscoelástico', 'quantity': 12}]},
    {'notes': 'Pedido demonstração 4', 'customer': '98765432000110', 'seller': 'ana', 'status': 'delivered',
     'priority': 'low', 'scheduled_in': -10, 'delivery_in': -3,
     'items': [{'product': 'Travesseiro Viscoelástico', 'quantity': 20}]},
]


class Command(BaseCommand):
    help = "Loads demo users, customers, products, materials, shop floor data and orders"

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            type=str,
            default='biobox123',
            help='Password for the demo users (default: biobox123)',
        )
        parser.add_argument(
            '--skip-users',
            action='store_true',
            help='Do not create demo users',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("LOADING DEMO DATA"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        counts = {}

        if not options['skip_users']:
            created = 0
            for data in DEMO_USERS:
                data = dict(data)
                username = data.pop('username')
                user, was_created = User.objects.get_or_create(
                    username=username,
                    defaults={**data, 'permissions': default_permissions_for_role(data['role'])},
                )
                if was_created:
                    user.set_password(options['password'])
                    if user.role == 'admin':
                        user.is_staff = True
                        user.is_superuser = True
                    user.save()
                    created += 1
                    self.stdout.write(self.style.SUCCESS(f"  ✓ User {username} ({user.role})"))
                else:
                    self.stdout.write(self.style.WARNING(f"  ⊘ User {username} already exists"))
            counts['Users'] = created

        created = 0
        for data in DEMO_CUSTOMERS:
            data = dict(data)
            _, was_created = Customer.objects.get_or_create(document=data.pop('document'), defaults=data)
            created += int(was_created)
        counts['Customers'] = created

        created = 0
        for data in DEMO_PRODUCTS:
            data = dict(data)
            models = data.pop('models')
            product, was_created = Product.objects.get_or_create(name=data.pop('name'), defaults=data)
            if was_created:
                created += 1
                for model in models:
                    ProductModel.objects.create(product=product, **model)
        counts['Products'] = created

        created = 0
        for data in DEMO_MATERIALS:
            data = dict(data)
            _, was_created = RawMaterial.objects.get_or_create(name=data.pop('name'), defaults=data)
            created += int(was_created)
        counts['Raw materials'] = created

        created = 0
        for data in DEMO_OPERATORS:
            data = dict(data)
            _, was_created = Operator.objects.get_or_create(name=data.pop('name'), defaults=data)
            created += int(was_created)
        counts['Operators'] = created

        _, was_created = ProductionLine.objects.get_or_create(
            name='Linha 1 - Camas Box',
            defaults={'daily_target': DEFAULT_PRODUCTION_SETTINGS['targets']['daily_production'],
                      'operator': Operator.objects.order_by('id').first()},
        )
        counts['Production lines'] = int(was_created)

        counts['Orders'] = sum(int(self._seed_order(data)) for data in DEMO_ORDERS)

        save_json_setting(SYSTEM_SETTINGS_KEY, DEFAULT_SYSTEM_SETTINGS, {}, description='Company and system settings')
        save_json_setting(PRODUCTION_SETTINGS_KEY, DEFAULT_PRODUCTION_SETTINGS, {},
                          description='Configurações de produção')

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS("SUMMARY"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        for label, count in counts.items():
            self.stdout.write(f"{label} Created: {count}")
        self.stdout.write(self.style.SUCCESS("=" * 80))

    def _seed_order(self, data):
        if Order.objects.filter(notes=data['notes']).exists():
            self.stdout.write(self.style.WARNING(f"  ⊘ {data['notes']} already exists"))
            return False

        today = timezone.localdate()
        customer = Customer.objects.get(document=data['customer'])
        order = Order.objects.create(
            customer=customer,
            seller=User.objects.filter(username=data['seller']).first(),
            status=data['status'],
            priority=data['priority'],
            discount_percentage=customer.default_discount,
            scheduled_date=today + timedelta(days=data['scheduled_in']),
            delivery_date=today + timedelta(days=data['delivery_in']),
            completed_date=timezone.now() if data['status'] == 'delivered' else None,
            production_progress=100 if data['status'] == 'delivered' else 0,
            notes=data['notes'],
        )
        for item in data['items']:
            product = Product.objects.get(name=item['product'])
            model = ProductModel.objects.filter(product=product, name=item.get('model')).first()
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                model_name=model.name if model else '',
                size=item.get('size', ''),
                color=item.get('color', ''),
                fabric=item.get('fabric', ''),
                quantity=item['quantity'],
                unit_price=calculate_unit_price(product, model, item.get('size'), item.get('color'),
                                                item.get('fabric')),
            )
        recalculate_order_totals(order)

        if order.status == 'in_production':
            ensure_stages(order)
            for stage_id in data.get('completed_stages', []):
                update_stage(order, stage_id, action='complete')
            if data.get('started_stage'):
                update_stage(order, data['started_stage'], action='start')

        self.stdout.write(self.style.SUCCESS(f"  ✓ Order {order.order_number} ({order.status})"))
        return True
