"""
Test suite for the catalog module
Tests: stock predicates, product API, filters, role checks, low stock scan
"""
import logging
from datetime import datetime
from io import StringIO
from zoneinfo import ZoneInfo

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status

from inventra.catalog.management.commands.check_low_stock import next_run_after, parse_scan_time
from inventra.catalog.models import Product
from inventra.core.roles import Role
from inventra.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class StockPredicateTests(TestCase):
    """Test low and critical stock rules"""

    def test_low_stock_boundaries(self):
        self.assertTrue(TestDataFactory.create_product(quantity=5, reorder_level=10).is_low_stock)
        self.assertTrue(TestDataFactory.create_product(quantity=10, reorder_level=10).is_low_stock)
        self.assertFalse(TestDataFactory.create_product(quantity=11, reorder_level=10).is_low_stock)

    def test_critical_stock_boundaries(self):
        self.assertTrue(TestDataFactory.create_product(quantity=5, reorder_level=10).is_critical_stock)
        self.assertFalse(TestDataFactory.create_product(quantity=6, reorder_level=10).is_critical_stock)

    def test_critical_stock_odd_reorder_level(self):
        # 3 * 0.5 = 1.5, so 1 is critical and 2 is not
        self.assertTrue(TestDataFactory.create_product(quantity=1, reorder_level=3).is_critical_stock)
        self.assertFalse(TestDataFactory.create_product(quantity=2, reorder_level=3).is_critical_stock)

    def test_querysets_match_properties(self):
        low = TestDataFactory.create_product(quantity=10, reorder_level=10)
        critical = TestDataFactory.create_product(quantity=5, reorder_level=10)
        healthy = TestDataFactory.create_product(quantity=50, reorder_level=10)
        self.assertEqual(set(Product.objects.low_stock()), {low, critical})
        self.assertEqual(list(Product.objects.critical_stock()), [critical])
        self.assertNotIn(healthy, Product.objects.low_stock())


class ProductAPITests(TestCase):
    """Test Product API endpoints"""

    def setUp(self):
        self.manager = TestDataFactory.create_user(role=Role.MANAGER)
        self.staff = TestDataFactory.create_user(role=Role.STAFF)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)
        self.supplier = TestDataFactory.create_supplier()

    def test_create_product(self):
        data = {
            'name': 'Desk Lamp',
            'sku': 'LAMP-001',
            'category': 'Lighting',
            'price': '24.50',
            'quantity': 12,
            'reorder_level': 4,
            'supplier': self.supplier.id,
        }
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['supplier_name'], self.supplier.name)
        self.assertFalse(response.data['is_low_stock'])

    def test_create_product_defaults(self):
        data = {'name': 'Cable', 'sku': 'CBL-1', 'category': 'Accessories', 'price': '3.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity'], 0)
        self.assertEqual(response.data['reorder_level'], 10)
        self.assertIsNone(response.data['supplier'])

    def test_create_product_rejects_negative_values(self):
        data = {'name': 'Bad', 'sku': 'BAD-1', 'category': 'X', 'price': '-1.00', 'quantity': -3}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data['errors'])
        self.assertIn('quantity', response.data['errors'])

    def test_duplicate_sku(self):
        TestDataFactory.create_product(sku='DUP-1')
        data = {'name': 'Other', 'sku': 'DUP-1', 'category': 'X', 'price': '1.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data['errors'])

    def test_staff_cannot_create_product(self):
        self.client.authenticate_user(self.staff)
        data = {'name': 'Lamp', 'sku': 'L-1', 'category': 'X', 'price': '1.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'permission_denied')

    def test_staff_can_list_and_retrieve(self):
        product = TestDataFactory.create_product()
        self.client.authenticate_user(self.staff)
        self.assertEqual(self.client.get('/api/v1/products/').status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sku'], product.sku)

    def test_retrieve_missing_product(self):
        response = self.client.get('/api/v1/products/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('message', response.data)

    def test_patch_product(self):
        product = TestDataFactory.create_product(quantity=5)
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'quantity': 40}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.quantity, 40)

    def test_staff_cannot_patch_or_delete(self):
        product = TestDataFactory.create_product()
        self.client.authenticate_user(self.staff)
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())

    def test_delete_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_low_stock_endpoint(self):
        low = TestDataFactory.create_product(quantity=2, reorder_level=10)
        TestDataFactory.create_product(quantity=30, reorder_level=10)
        response = self.client.get('/api/v1/products/lowstock/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data], [low.id])


class ProductFilterTests(TestCase):
    """Test product list filters"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.supplier = TestDataFactory.create_supplier()
        self.mouse = TestDataFactory.create_product(name='Wireless Mouse', sku='WM-1', category='Accessories',
                                                    quantity=45, reorder_level=20, supplier=self.supplier)
        self.desk = TestDataFactory.create_product(name='Standing Desk', sku='SD-1', category='Furniture',
                                                   quantity=6, reorder_level=5)
        self.webcam = TestDataFactory.create_product(name='Webcam HD', sku='WC-1', category='Accessories',
                                                     quantity=2, reorder_level=15)

    def _ids(self, params):
        response = self.client.get('/api/v1/products/', params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return {p['id'] for p in response.data}

    def test_search(self):
        self.assertEqual(self._ids({'search': 'mouse'}), {self.mouse.id})
        self.assertEqual(self._ids({'search': 'sd-1'}), {self.desk.id})

    def test_category(self):
        self.assertEqual(self._ids({'category': 'accessories'}), {self.mouse.id, self.webcam.id})

    def test_supplier(self):
        self.assertEqual(self._ids({'supplier': self.supplier.id}), {self.mouse.id})

    def test_low_and_critical_stock(self):
        self.assertEqual(self._ids({'low_stock': 'true'}), {self.webcam.id})
        self.assertEqual(self._ids({'critical_stock': 'true'}), {self.webcam.id})
        self.assertEqual(len(self._ids({'low_stock': 'false'})), 3)


class LowStockCommandTests(TestCase):
    """Test the low stock scan command and its scheduling helpers"""

    def test_scan_logs_warning_with_count(self):
        TestDataFactory.create_product(quantity=1, reorder_level=5)
        TestDataFactory.create_product(quantity=3, reorder_level=5)
        TestDataFactory.create_product(quantity=30, reorder_level=5)
        out = StringIO()
        with self.assertLogs('inventra.catalog', level=logging.WARNING) as logs:
            call_command('check_low_stock', stdout=out)
        self.assertIn('2 product(s)', logs.output[0])
        self.assertIn('2 product(s) low on stock', out.getvalue())

    def test_scan_without_low_stock(self):
        TestDataFactory.create_product(quantity=30, reorder_level=5)
        out = StringIO()
        call_command('check_low_stock', stdout=out)
        self.assertIn('All products above reorder level', out.getvalue())

    def test_parse_scan_time(self):
        self.assertEqual(parse_scan_time('09:00'), (9, 0))
        self.assertEqual(parse_scan_time('23:45'), (23, 45))

    @override_settings(TIME_ZONE='UTC')
    def test_next_run_later_today(self):
        now = datetime(2024, 3, 10, 8, 30, tzinfo=ZoneInfo('UTC'))
        self.assertEqual(next_run_after(now, 9, 0), datetime(2024, 3, 10, 9, 0, tzinfo=ZoneInfo('UTC')))

    @override_settings(TIME_ZONE='UTC')
    def test_next_run_tomorrow(self):
        now = datetime(2024, 3, 10, 9, 0, tzinfo=ZoneInfo('UTC'))
        self.assertEqual(next_run_after(now, 9, 0), datetime(2024, 3, 11, 9, 0, tzinfo=ZoneInfo('UTC')))
