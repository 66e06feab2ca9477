"""
Test suite for Customers module
Tests: CRUD, document validation, derived order totals, caching, spreadsheet import
"""
import os
import tempfile
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from openpyxl import Workbook
from rest_framework import status

from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.customers.importer import import_customer_rows
from backend.customers.models import Customer, normalize_customer_type


class CustomerModelTests(TestCase):
    """Test normalization on save"""

    def test_document_stored_as_digits(self):
        customer = TestDataFactory.create_customer(document='123.456.789-01')
        self.assertEqual(customer.document, '12345678901')

    def test_blank_document_stored_as_null(self):
        first = TestDataFactory.create_customer(document='')
        second = TestDataFactory.create_customer(document='')
        self.assertIsNone(first.document)
        self.assertIsNone(second.document)

    def test_legacy_customer_types(self):
        self.assertEqual(normalize_customer_type('company'), 'business')
        self.assertEqual(normalize_customer_type('PJ'), 'business')
        self.assertEqual(normalize_customer_type(''), 'individual')
        self.assertEqual(normalize_customer_type('individual'), 'individual')

    def test_order_summary_ignores_cancelled_orders(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_order(customer=customer)
        TestDataFactory.create_order(customer=customer, status='cancelled')
        summary = customer.order_summary()
        self.assertEqual(summary['total_orders'], 1)
        self.assertEqual(summary['total_spent'], Decimal('1000.00'))


class CustomerAPITests(TestCase):
    """Test customer endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_seller()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_customer(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Maria Silva',
            'email': 'maria@email.com',
            'document': '123.456.789-01',
            'customer_type': 'individual',
            'city': 'São Paulo',
            'notes': None,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['document'], '12345678901')
        self.assertEqual(response.data['notes'], '')
        self.assertEqual(response.data['total_orders'], 0)

    def test_create_business_with_legacy_type(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Móveis Planalto',
            'document': '12.345.678/0001-90',
            'customer_type': 'company',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_type'], 'business')

    def test_invalid_document_length(self):
        response = self.client.post('/api/v1/customers/', {'name': 'X', 'document': '1234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('document', response.data)

    def test_duplicate_document(self):
        TestDataFactory.create_customer(document='12345678901')
        response = self.client.post('/api/v1/customers/', {'name': 'Y', 'document': '123.456.789-01'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_discount_above_hundred_rejected(self):
        response = self.client.post('/api/v1/customers/', {'name': 'Z', 'default_discount': '150'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_search_and_filters(self):
        TestDataFactory.create_customer(name='Hotel Bela Vista', customer_type='business')
        TestDataFactory.create_customer(name='Maria Souza')
        TestDataFactory.create_customer(name='Inativo Ltda', status='inactive')

        response = self.client.get('/api/v1/customers/?search=bela')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Hotel Bela Vista'])

        response = self.client.get('/api/v1/customers/?type=business')
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/customers/?status=inactive')
        self.assertEqual([c['name'] for c in response.data], ['Inativo Ltda'])

    def test_list_includes_order_totals(self):
        customer = TestDataFactory.create_customer(name='Cliente Pedidos')
        TestDataFactory.create_order(customer=customer)
        TestDataFactory.create_order(customer=customer, items=[('Colchão', 1, Decimal('250.00'))])

        response = self.client.get('/api/v1/customers/')
        row = next(c for c in response.data if c['id'] == customer.id)
        self.assertEqual(row['total_orders'], 2)
        self.assertEqual(row['total_spent'], 1250.0)
        self.assertIsNotNone(row['last_order_date'])

    def test_list_cache_invalidated_on_change(self):
        TestDataFactory.create_customer(name='Primeiro')
        first = self.client.get('/api/v1/customers/')
        self.assertEqual(len(first.data), 1)

        TestDataFactory.create_customer(name='Segundo')
        second = self.client.get('/api/v1/customers/')
        self.assertEqual(len(second.data), 2)

    def test_detail_cache_invalidated_on_update(self):
        customer = TestDataFactory.create_customer(name='Antigo Nome')
        self.client.get(f'/api/v1/customers/{customer.id}/')
        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'name': 'Novo Nome'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.data['name'], 'Novo Nome')

    def test_delete_customer_without_orders(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Customer.objects.filter(pk=customer.id).exists())

    def test_delete_customer_with_orders_refused(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_order(customer=customer)
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Customer.objects.filter(pk=customer.id).exists())

    def test_customer_orders_history(self):
        customer = TestDataFactory.create_customer()
        TestDataFactory.create_order(customer=customer)
        response = self.client.get(f'/api/v1/customers/{customer.id}/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['orders']), 1)
        self.assertEqual(response.data['summary']['total_spent'], 1000.0)

    def test_operator_cannot_view_customers(self):
        self.client.authenticate_user(TestDataFactory.create_operator_user())
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CustomerImportTests(TestCase):
    """Test spreadsheet import"""

    def _write_workbook(self, rows, sheet_name='Planilha1'):
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = sheet_name
        sheet.append(['POLÍTICA COMERCIAL'])
        sheet.append(['Clientes ativos'])
        sheet.append(['CNPJ', 'REGIÃO', 'RAZÃO SOCIAL', 'EMAIL'])
        for row in rows:
            sheet.append(row)
        handle, path = tempfile.mkstemp(suffix='.xlsx')
        os.close(handle)
        workbook.save(path)
        self.addCleanup(os.remove, path)
        return path

    def test_import_rows_creates_and_updates(self):
        TestDataFactory.create_customer(name='Nome Antigo', document='12345678000190')
        rows = [
            {'CNPJ': '12.345.678/0001-90', 'REGIÃO': 'Sul', 'RAZÃO SOCIAL': 'Planalto Móveis', 'EMAIL': 'a@b.com'},
            {'CNPJ': '98.765.432/0001-10', 'REGIÃO': 'Sudeste', 'RAZÃO SOCIAL': 'Hotel Vista', 'EMAIL': ''},
            {'CNPJ': '', 'REGIÃO': 'Norte', 'RAZÃO SOCIAL': 'Sem CNPJ', 'EMAIL': ''},
        ]
        result = import_customer_rows(rows, batch_size=1)
        self.assertEqual(result.created, 1)
        self.assertEqual(result.updated, 1)
        self.assertEqual(result.errors, 1)
        updated = Customer.objects.get(document='12345678000190')
        self.assertEqual(updated.name, 'Planalto Móveis')
        self.assertEqual(updated.region, 'Sul')
        self.assertEqual(updated.customer_type, 'business')

    def test_dry_run_writes_nothing(self):
        rows = [{'CNPJ': '98765432000110', 'RAZÃO SOCIAL': 'Hotel Vista'}]
        result = import_customer_rows(rows, dry_run=True)
        self.assertEqual(result.created, 1)
        self.assertEqual(Customer.objects.count(), 0)

    def test_dry_run_counts_existing_and_repeated_documents_as_updates(self):
        TestDataFactory.create_customer(name='Nome Antigo', document='12345678000190')
        rows = [
            {'CNPJ': '12.345.678/0001-90', 'RAZÃO SOCIAL': 'Planalto Móveis'},
            {'CNPJ': '98765432000110', 'RAZÃO SOCIAL': 'Hotel Vista'},
            {'CNPJ': '98.765.432/0001-10', 'RAZÃO SOCIAL': 'Hotel Vista Filial'},
        ]
        preview = import_customer_rows(rows, dry_run=True)
        self.assertEqual((preview.created, preview.updated), (1, 2))
        self.assertEqual(Customer.objects.count(), 1)

        result = import_customer_rows(rows)
        self.assertEqual((result.created, result.updated), (preview.created, preview.updated))

    def test_import_command_reads_workbook(self):
        path = self._write_workbook([
            ['12345678000190', 'Sul', 'Planalto Móveis', 'compras@planalto.com.br'],
            [98765432000110, 'Sudeste', 'Hotel Vista', None],
            [None, None, None, None],
        ])
        out = StringIO()
        call_command('import_customers', path, stdout=out)
        self.assertEqual(Customer.objects.count(), 2)
        self.assertIn('Customers Created: 2', out.getvalue())
        self.assertTrue(Customer.objects.filter(document='98765432000110').exists())

    def test_import_command_missing_sheet(self):
        path = self._write_workbook([], sheet_name='Outra')
        with self.assertRaises(CommandError):
            call_command('import_customers', path, stdout=StringIO())

    def test_import_command_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_customers', '/nonexistent/clientes.xlsx', stdout=StringIO())
