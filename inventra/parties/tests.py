"""
Test suite for the parties module
Tests: Supplier API, role checks, product back-references, delete semantics
"""
from django.test import TestCase
from rest_framework import status

from inventra.catalog.models import Product
from inventra.core.roles import Role
from inventra.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventra.parties.models import Supplier


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role=Role.ADMIN)
        self.manager = TestDataFactory.create_user(role=Role.MANAGER)
        self.staff = TestDataFactory.create_user(role=Role.STAFF)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_create_supplier(self):
        data = {
            'name': 'TechCorp Solutions',
            'contact_email': 'sales@techcorp.com',
            'contact_phone': '+1-555-0101',
            'address': '123 Tech Street',
        }
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['rating'], 3)
        self.assertEqual(response.data['products'], [])

    def test_create_supplier_missing_fields(self):
        response = self.client.post('/api/v1/suppliers/', {'name': 'Nameless'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ('contact_email', 'contact_phone', 'address'):
            self.assertIn(field, response.data['errors'])

    def test_rating_out_of_range(self):
        data = {
            'name': 'Bad Rating', 'contact_email': 'x@y.com', 'contact_phone': '1', 'address': 'A', 'rating': 6,
        }
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data['errors'])

    def test_staff_cannot_create_supplier(self):
        self.client.authenticate_user(self.staff)
        data = {'name': 'S', 'contact_email': 's@s.com', 'contact_phone': '1', 'address': 'A'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_includes_product_ids(self):
        supplier = TestDataFactory.create_supplier(name='Alpha')
        product = TestDataFactory.create_product(supplier=supplier)
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['products'], [product.id])

    def test_patch_supplier(self):
        supplier = TestDataFactory.create_supplier()
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        supplier.refresh_from_db()
        self.assertEqual(supplier.rating, 5)

    def test_manager_cannot_delete_supplier(self):
        supplier = TestDataFactory.create_supplier()
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Supplier.objects.filter(pk=supplier.pk).exists())

    def test_delete_supplier_detaches_products(self):
        supplier = TestDataFactory.create_supplier()
        product = TestDataFactory.create_product(supplier=supplier)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertIsNone(product.supplier)
        self.assertEqual(Product.objects.count(), 1)

    def test_missing_supplier(self):
        response = self.client.get('/api/v1/suppliers/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'not_found')
