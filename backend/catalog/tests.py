"""
Test suite for Catalog module
Tests: Products, configured pricing, raw materials, labels
"""
from datetime import datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.orders.models import OrderItem
from .models import Product
from .pdf_labels import build_barcode_pdf
from .thermal import build_print_job, build_thermal_label, material_print_item, pseudo_barcode
from .utils import calculate_unit_price, ean13_check_digit, is_valid_ean13, validate_specifications


BED_SPECIFICATIONS = [
    {'name': 'Altura', 'options': ['30cm', '40cm'], 'required': True, 'price_modifiers': {'40cm': 1.1}},
    {'name': 'Pés', 'options': ['Madeira', 'Metal'], 'required': False},
]


class ProductCodeTests(TestCase):
    """Test SKU and EAN-13 generation"""

    def test_sku_generated_from_category_and_name(self):
        product = TestDataFactory.create_product(name='Cama Box Casal', category='bed')
        self.assertRegex(product.sku, r'^CAM-CAMA-\d{6}-[0-9A-F]{6}$')

    def test_unknown_category_uses_generic_prefix(self):
        product = Product(name='Kit', category='other')
        product.save()
        self.assertTrue(product.sku.startswith('PRD-KIT-'))

    def test_barcode_is_valid_ean13(self):
        product = TestDataFactory.create_product()
        self.assertTrue(product.barcode.startswith('789'))
        self.assertTrue(is_valid_ean13(product.barcode))

    def test_ean13_check_digit(self):
        self.assertEqual(ean13_check_digit('789100000000'), '7')
        self.assertTrue(is_valid_ean13('4006381333931'))
        self.assertFalse(is_valid_ean13('4006381333932'))
        with self.assertRaises(ValueError):
            ean13_check_digit('123')

    def test_margin_computed_from_cost(self):
        product = TestDataFactory.create_product(base_price=Decimal('1000.00'), cost_price=Decimal('600.00'))
        self.assertEqual(product.margin, Decimal('40.00'))


class PricingTests(TestCase):
    """Test configured product pricing"""

    def setUp(self):
        self.product = TestDataFactory.create_product(base_price=Decimal('1000.00'),
                                                      specifications=BED_SPECIFICATIONS)
        self.model = TestDataFactory.create_product_model(
            self.product, name='Premium', price_modifier=Decimal('1.200'),
            sizes=[{'name': 'Casal', 'price_modifier': 1}, {'name': 'Queen', 'price_modifier': 1.5}],
            colors=[{'name': 'Bege'}],
            fabrics=[{'name': 'Veludo', 'type': 'veludo', 'price_modifier': 1.1}],
        )

    def test_base_price_without_selection(self):
        self.assertEqual(calculate_unit_price(self.product), Decimal('1000.00'))

    def test_modifiers_are_multiplied(self):
        price = calculate_unit_price(self.product, self.model, size='queen', color='Bege', fabric='Veludo',
                                     specifications={'Altura': '40cm'})
        # 1000 * 1.2 * 1.5 * 1.1 * 1.1
        self.assertEqual(price, Decimal('2178.00'))

    def test_unknown_option_counts_as_one(self):
        price = calculate_unit_price(self.product, self.model, size='King')
        self.assertEqual(price, Decimal('1200.00'))

    def test_validate_specifications(self):
        self.assertEqual(validate_specifications(self.product, {'Altura': '30cm'}), [])
        errors = validate_specifications(self.product, {'Pés': 'Plástico'})
        self.assertEqual(len(errors), 2)


class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Colchão Molas',
            'category': 'mattress',
            'base_price': '2290.00',
            'cost_price': '1374.00',
            'specifications': BED_SPECIFICATIONS,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['sku'].startswith('COL-'))
        self.assertEqual(response.data['margin'], '40.00')

    def test_create_product_rejects_modifier_for_unknown_option(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Cama',
            'base_price': '100.00',
            'specifications': [{'name': 'Altura', 'options': ['30cm'], 'price_modifiers': {'50cm': 1.2}}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_product_rejects_non_numeric_modifier(self):
        for modifier in ('abc', 'NaN', 'Infinity', 0, -1.5):
            response = self.client.post('/api/v1/products/', {
                'name': 'Cama',
                'base_price': '100.00',
                'specifications': [{'name': 'Altura', 'options': ['30cm'], 'price_modifiers': {'30cm': modifier}}],
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, modifier)
            self.assertIn('specifications', response.data)
        self.assertFalse(Product.objects.filter(name='Cama').exists())

    def test_duplicate_sku_rejected(self):
        existing = TestDataFactory.create_product()
        response = self.client.post('/api/v1/products/', {'name': 'Outro', 'sku': existing.sku.lower()},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_category_and_search(self):
        TestDataFactory.create_product(name='Cama Box Solteiro', category='bed')
        TestDataFactory.create_product(name='Travesseiro Nasa', category='pillow')

        response = self.client.get('/api/v1/products/?category=pillow')
        self.assertEqual([p['name'] for p in response.data], ['Travesseiro Nasa'])

        response = self.client.get('/api/v1/products/?search=box solteiro')
        self.assertEqual(len(response.data), 1)

    def test_add_model_with_invalid_fabric_type(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/products/{product.id}/models/', {
            'name': 'Luxo',
            'fabrics': [{'name': 'Linho', 'type': 'linho'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_add_model_with_duplicate_sizes(self):
        product = TestDataFactory.create_product()
        response = self.client.post(f'/api/v1/products/{product.id}/models/', {
            'name': 'Luxo',
            'sizes': [{'name': 'Queen'}, {'name': 'queen'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_price_quote(self):
        product = TestDataFactory.create_product(base_price=Decimal('1000.00'), specifications=BED_SPECIFICATIONS)
        model = TestDataFactory.create_product_model(product, price_modifier=Decimal('1.200'),
                                                     sizes=[{'name': 'Queen', 'price_modifier': 1.5}])
        response = self.client.post(f'/api/v1/products/{product.id}/price/', {
            'model': model.id,
            'size': 'Queen',
            'specifications': {'Altura': '30cm'},
            'quantity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['unit_price'], Decimal('1800.00'))
        self.assertEqual(response.data['total_price'], Decimal('3600.00'))

    def test_price_quote_missing_required_specification(self):
        product = TestDataFactory.create_product(specifications=BED_SPECIFICATIONS)
        response = self.client.post(f'/api/v1/products/{product.id}/price/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_unused_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_delete_product_with_orders_discontinues_it(self):
        product = TestDataFactory.create_product()
        order = TestDataFactory.create_order()
        OrderItem.objects.create(order=order, product=product, product_name=product.name, quantity=1,
                                 unit_price=product.base_price)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.status, 'discontinued')

    def test_seller_cannot_create_products(self):
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.post('/api/v1/products/', {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class RawMaterialAPITests(TestCase):
    """Test raw material endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_operator_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_with_totals(self):
        TestDataFactory.create_material(name='Espuma D33', quantity=Decimal('4'), minimum_stock=Decimal('10'),
                                        unit_cost=Decimal('85.00'))
        TestDataFactory.create_material(name='Tecido Suede', quantity=Decimal('100'), minimum_stock=Decimal('50'),
                                        unit_cost=Decimal('30.00'))
        response = self.client.get('/api/v1/materials/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['low_stock_count'], 1)
        self.assertEqual(response.data['total_value'], 3340.0)

    def test_low_stock_filter(self):
        TestDataFactory.create_material(name='Madeira', quantity=Decimal('2'), minimum_stock=Decimal('20'))
        TestDataFactory.create_material(name='Grampos', quantity=Decimal('50'), minimum_stock=Decimal('5'))
        response = self.client.get('/api/v1/materials/?low_stock=true')
        self.assertEqual([m['name'] for m in response.data['results']], ['Madeira'])

    def test_adjust_stock(self):
        material = TestDataFactory.create_material(quantity=Decimal('10'))
        response = self.client.post(f'/api/v1/materials/{material.id}/adjust-stock/',
                                    {'quantity': '-3.5', 'reason': 'Produção'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        material.refresh_from_db()
        self.assertEqual(material.quantity, Decimal('6.5'))

    def test_adjust_stock_below_zero_rejected(self):
        material = TestDataFactory.create_material(quantity=Decimal('2'))
        response = self.client.post(f'/api/v1/materials/{material.id}/adjust-stock/', {'quantity': -5},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        material.refresh_from_db()
        self.assertEqual(material.quantity, Decimal('2'))

    def test_adjust_stock_requires_number(self):
        material = TestDataFactory.create_material()
        response = self.client.post(f'/api/v1/materials/{material.id}/adjust-stock/', {'quantity': 'muito'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_adjust_stock_rejects_nan_and_infinity(self):
        material = TestDataFactory.create_material(quantity=Decimal('10'))
        for value in ('NaN', 'Infinity', '-Infinity', 'sNaN'):
            response = self.client.post(f'/api/v1/materials/{material.id}/adjust-stock/', {'quantity': value},
                                        format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, value)
        material.refresh_from_db()
        self.assertEqual(material.quantity, Decimal('10'))

    def test_seller_cannot_list_materials(self):
        self.client.authenticate_user(TestDataFactory.create_seller())
        response = self.client.get('/api/v1/materials/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ThermalLabelTests(TestCase):
    """Test plain-text thermal labels"""

    def setUp(self):
        self.now = timezone.make_aware(datetime(2025, 3, 10, 14, 30))
        self.item = {'code': 'CAM-BOX-001', 'name': 'Cama Box Casal', 'description': 'Bed', 'quantity': 2}

    def test_label_layout(self):
        label = build_thermal_label(self.item, {'paper_width': '80mm'}, now=self.now)
        lines = label.split('\n')
        self.assertEqual(lines[0], '=' * 48)
        self.assertIn('BIOBOX', lines[1])
        self.assertIn('CÓDIGO: CAM-BOX-001', lines)
        self.assertIn('QTD: 2', lines)
        self.assertIn('DATA: 10/03/2025 14:30', lines)
        self.assertEqual(lines[-2], '-' * 48)

    def test_label_without_logo_or_date(self):
        label = build_thermal_label(self.item, {'include_company_logo': False, 'include_date': False,
                                                'custom_text': 'Frágil'})
        self.assertTrue(label.startswith('CÓDIGO: CAM-BOX-001'))
        self.assertNotIn('DATA:', label)
        self.assertIn('Frágil', label)

    def test_unknown_paper_width_uses_widest_roll(self):
        label = build_thermal_label(self.item, {'paper_width': '200mm'})
        self.assertEqual(label.split('\n')[0], '=' * 64)

    def test_pseudo_barcode_fits_width(self):
        self.assertEqual(pseudo_barcode('ABC', 48), '|||')
        self.assertEqual(pseudo_barcode('X' * 100, 32), '|' * 32)

    def test_label_has_one_bar_per_code_character(self):
        lines = build_thermal_label(self.item, {'paper_width': '80mm'}, now=self.now).split('\n')
        self.assertIn('|' * len('CAM-BOX-001'), lines)

    def test_print_job_repeats_copies(self):
        labels = build_print_job([self.item, {'code': 'B', 'name': 'Outro'}], {'copies': 3}, now=self.now)
        self.assertEqual(len(labels), 6)
        self.assertEqual(labels[0], labels[2])

    def test_material_print_item(self):
        material = TestDataFactory.create_material(name='Espuma', quantity=Decimal('12.500'), unit='kg')
        item = material_print_item(material)
        self.assertEqual(item['code'], f'MAT-{material.pk:05d}')
        self.assertEqual(item['quantity'], '12.5 kg')


class LabelAPITests(TestCase):
    """Test label, code image and PDF endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_thermal_labels_for_products_and_orders(self):
        product = TestDataFactory.create_product(name='Cama Box')
        order = TestDataFactory.create_order()
        response = self.client.post('/api/v1/labels/thermal/', {
            'product_ids': [product.id],
            'order_ids': [order.id],
            'settings': {'copies': 2},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], 2)
        self.assertEqual(len(response.data['labels']), 4)
        self.assertIn(product.sku, response.data['labels'][0])
        self.assertIn(order.order_number, response.data['labels'][2])

    def test_thermal_labels_as_text_file(self):
        response = self.client.post('/api/v1/labels/thermal/?format=txt', {
            'items': [{'code': 'ABC-1', 'name': 'Avulso'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/plain; charset=utf-8')
        self.assertIn('CÓDIGO: ABC-1', response.content.decode('utf-8'))

    def test_thermal_labels_without_items(self):
        response = self.client.post('/api/v1/labels/thermal/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_label_endpoints_reject_non_integer_ids(self):
        for url in ('/api/v1/labels/thermal/', '/api/v1/labels/pdf/'):
            for field in ('product_ids', 'material_ids', 'order_ids'):
                response = self.client.post(url, {field: ['abc']}, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn(field, response.data)

    def test_label_endpoints_reject_list_body(self):
        product = TestDataFactory.create_product()
        for url in ('/api/v1/labels/thermal/', '/api/v1/labels/pdf/'):
            response = self.client.post(url, [product.id], format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_code_image_png(self):
        response = self.client.get('/api/v1/labels/code/?value=CAM-BOX-001&type=barcode')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'image/png')
        self.assertTrue(response.content.startswith(b'\x89PNG'))

    def test_qr_code_as_base64(self):
        response = self.client.get('/api/v1/labels/code/?value=ORD-2025-0001&type=qrcode&format=base64')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['image'].startswith('data:image/png;base64,'))

    def test_code_image_unknown_type(self):
        response = self.client.get('/api/v1/labels/code/?value=X&type=datamatrix')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_label(self):
        product = TestDataFactory.create_product()
        response = self.client.get(f'/api/v1/products/{product.id}/label/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['code'], product.barcode)
        self.assertTrue(response.data['image'].startswith('data:image/png;base64,'))

    def test_barcode_pdf(self):
        material = TestDataFactory.create_material()
        response = self.client.post('/api/v1/labels/pdf/', {
            'type': 'qrcode',
            'material_ids': [material.id],
            'filename': 'materiais.pdf',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('materiais.pdf', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_pdf_builder_spans_pages(self):
        items = [{'code': f'CODE-{i}', 'name': f'Item {i}'} for i in range(12)]
        pdf_bytes = build_barcode_pdf(items, 'barcode')
        self.assertTrue(pdf_bytes.startswith(b'%PDF'))
        # one /Type /Pages tree plus at least two pages
        self.assertGreater(pdf_bytes.count(b'/Type /Page'), 2)

    def test_thermal_settings_update(self):
        response = self.client.patch('/api/v1/labels/settings/', {'paper_width': '58mm', 'copies': 2},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['paper_width'], '58mm')
        self.assertTrue(response.data['include_date'])

        response = self.client.get('/api/v1/labels/settings/')
        self.assertEqual(response.data['copies'], 2)

    def test_thermal_settings_rejects_unknown_width(self):
        response = self.client.patch('/api/v1/labels/settings/', {'paper_width': '200mm'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
