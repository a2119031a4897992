"""
Test suite for the orders module
Tests: order placement and stock movement, insufficient stock, status changes, deletion with restock
"""
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from rest_framework import status

from inventra.catalog.models import Product
from inventra.core.models import AuditLog
from inventra.core.roles import Role
from inventra.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from inventra.orders.exceptions import InsufficientStock
from inventra.orders.models import Order, OrderItem
from inventra.orders.services import place_order, delete_order


def _order_payload(*lines, name='Jane Doe', email='jane@example.com'):
    return {
        'customer_name': name,
        'customer_email': email,
        'items': [{'product': product.id, 'quantity': qty} for product, qty in lines],
    }


class PlaceOrderServiceTests(TestCase):
    """Test order placement directly"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_sell_out_then_reject(self):
        product = TestDataFactory.create_product(price='10.00', quantity=5)
        order = place_order('A', 'a@example.com', [{'product': product.id, 'quantity': 5}], user=self.user)
        product.refresh_from_db()
        self.assertEqual(product.quantity, 0)
        self.assertEqual(order.total_amount, Decimal('50.00'))

        with self.assertRaises(InsufficientStock):
            place_order('B', 'b@example.com', [{'product': product.id, 'quantity': 3}], user=self.user)
        product.refresh_from_db()
        self.assertEqual(product.quantity, 0)
        self.assertEqual(Order.objects.count(), 1)

    def test_total_is_exact(self):
        a = TestDataFactory.create_product(price='19.99', quantity=10)
        b = TestDataFactory.create_product(price='0.10', quantity=10)
        order = place_order('A', 'a@example.com', [
            {'product': a.id, 'quantity': 3},
            {'product': b.id, 'quantity': 7},
        ])
        self.assertEqual(order.total_amount, Decimal('60.67'))
        self.assertEqual(
            sum(item.get_line_total() for item in order.items.all()), order.total_amount
        )

    def test_price_snapshot_survives_price_change(self):
        product = TestDataFactory.create_product(price='10.00', quantity=10)
        order = place_order('A', 'a@example.com', [{'product': product.id, 'quantity': 2}])
        Product.objects.filter(pk=product.pk).update(price=Decimal('99.00'))
        order.refresh_from_db()
        item = order.items.get()
        self.assertEqual(item.unit_price, Decimal('10.00'))
        self.assertEqual(order.total_amount, Decimal('20.00'))

    def test_invalid_second_line_leaves_first_product_unchanged(self):
        first = TestDataFactory.create_product(quantity=10)
        second = TestDataFactory.create_product(quantity=1)
        with self.assertRaises(InsufficientStock):
            place_order('A', 'a@example.com', [
                {'product': first.id, 'quantity': 4},
                {'product': second.id, 'quantity': 2},
            ])
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.quantity, 10)
        self.assertEqual(second.quantity, 1)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())

    def test_repeated_product_cannot_oversell(self):
        product = TestDataFactory.create_product(quantity=5)
        with self.assertRaises(InsufficientStock):
            place_order('A', 'a@example.com', [
                {'product': product.id, 'quantity': 3},
                {'product': product.id, 'quantity': 3},
            ])
        product.refresh_from_db()
        self.assertEqual(product.quantity, 5)
        self.assertFalse(Order.objects.exists())

    def test_repeated_product_within_stock(self):
        product = TestDataFactory.create_product(price='2.00', quantity=6)
        order = place_order('A', 'a@example.com', [
            {'product': product.id, 'quantity': 3},
            {'product': product.id, 'quantity': 3},
        ])
        product.refresh_from_db()
        self.assertEqual(product.quantity, 0)
        self.assertEqual(order.total_amount, Decimal('12.00'))

    def test_quantity_never_negative_over_many_orders(self):
        product = TestDataFactory.create_product(quantity=7)
        for _ in range(10):
            try:
                place_order('A', 'a@example.com', [{'product': product.id, 'quantity': 2}])
            except InsufficientStock:
                pass
            product.refresh_from_db()
            self.assertGreaterEqual(product.quantity, 0)
        self.assertEqual(product.quantity, 1)
        self.assertEqual(Order.objects.count(), 3)

    def test_stock_sold_after_check_cannot_oversell(self):
        product = TestDataFactory.create_product(quantity=5)
        bulk_create = OrderItem.objects.bulk_create

        def competing_sale(*args, **kwargs):
            # Another order takes 4 units after this one passed its stock check
            Product.objects.filter(pk=product.pk).update(quantity=1)
            return bulk_create(*args, **kwargs)

        with patch.object(OrderItem.objects, 'bulk_create', side_effect=competing_sale):
            with self.assertRaises(InsufficientStock) as ctx:
                place_order('A', 'a@example.com', [{'product': product.id, 'quantity': 3}])
        self.assertIn('available 1', str(ctx.exception.detail))
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        product.refresh_from_db()
        self.assertGreaterEqual(product.quantity, 0)

    def test_audit_rows_written(self):
        product = TestDataFactory.create_product(quantity=5)
        place_order('A', 'a@example.com', [{'product': product.id, 'quantity': 1}], user=self.user)
        self.assertTrue(AuditLog.objects.filter(action='stock_sale', object_id=str(product.id)).exists())
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Order').exists())


class OrderAPITests(TestCase):
    """Test Order API endpoints"""

    def setUp(self):
        self.staff = TestDataFactory.create_user(role=Role.STAFF)
        self.manager = TestDataFactory.create_user(role=Role.MANAGER)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)
        self.product = TestDataFactory.create_product(name='Widget', price='10.00', quantity=5)

    def test_staff_can_place_order(self):
        response = self.client.post('/api/v1/orders/', _order_payload((self.product, 5)), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('50.00'))
        self.assertEqual(response.data['items'][0]['product_name'], 'Widget')
        self.assertEqual(response.data['created_by'], self.staff.id)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 0)

    def test_insufficient_stock_response(self):
        response = self.client.post('/api/v1/orders/', _order_payload((self.product, 6)), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'insufficient_stock')
        self.assertIn('Widget', response.data['message'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 5)

    def test_unknown_product(self):
        payload = {'customer_name': 'A', 'customer_email': 'a@example.com',
                   'items': [{'product': 99999, 'quantity': 1}]}
        response = self.client.post('/api/v1/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('99999', response.data['message'])

    def test_empty_items(self):
        payload = {'customer_name': 'A', 'customer_email': 'a@example.com', 'items': []}
        response = self.client.post('/api/v1/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data['errors'])

    def test_missing_customer_fields(self):
        response = self.client.post('/api/v1/orders/', {'items': [{'product': self.product.id, 'quantity': 1}]},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_name', response.data['errors'])
        self.assertIn('customer_email', response.data['errors'])

    def test_zero_quantity_rejected(self):
        response = self.client.post('/api/v1/orders/', _order_payload((self.product, 0)), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())

    def test_list_with_status_filter(self):
        TestDataFactory.create_order([(self.product, 1)], status='pending')
        TestDataFactory.create_order([(self.product, 1)], status='shipped')
        response = self.client.get('/api/v1/orders/', {'status': 'shipped'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['status'], 'shipped')
        self.assertEqual(len(response.data[0]['items']), 1)

    def test_list_with_invalid_status_filter(self):
        response = self.client.get('/api/v1/orders/', {'status': 'lost'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_status(self):
        order = TestDataFactory.create_order([(self.product, 1)])
        self.client.authenticate_user(self.manager)
        for new_status in ('delivered', 'pending', 'processing'):
            response = self.client.patch(f'/api/v1/orders/{order.id}/status/', {'status': new_status}, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['status'], new_status)

    def test_update_status_invalid_value(self):
        order = TestDataFactory.create_order([(self.product, 1)])
        self.client.authenticate_user(self.manager)
        response = self.client.patch(f'/api/v1/orders/{order.id}/status/', {'status': 'Lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data['errors'])

    def test_update_status_unknown_order(self):
        self.client.authenticate_user(self.manager)
        response = self.client.patch('/api/v1/orders/99999/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_staff_cannot_update_status(self):
        order = TestDataFactory.create_order([(self.product, 1)])
        response = self.client.patch(f'/api/v1/orders/{order.id}/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        order.refresh_from_db()
        self.assertEqual(order.status, 'pending')

    def test_staff_cannot_delete(self):
        order = TestDataFactory.create_order([(self.product, 1)])
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Order.objects.filter(pk=order.pk).exists())

    def test_delete_without_restock(self):
        self.client.post('/api/v1/orders/', _order_payload((self.product, 3)), format='json')
        order = Order.objects.get()
        self.client.authenticate_user(self.manager)
        response = self.client.delete(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 2)
        self.assertFalse(OrderItem.objects.exists())

    def test_delete_with_restock(self):
        self.client.post('/api/v1/orders/', _order_payload((self.product, 3)), format='json')
        order = Order.objects.get()
        self.client.authenticate_user(self.manager)
        response = self.client.delete(f'/api/v1/orders/{order.id}/?restock=true')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 5)


class DeleteOrderServiceTests(TestCase):
    """Test order deletion edge cases"""

    def test_restock_skips_deleted_products(self):
        kept = TestDataFactory.create_product(quantity=10)
        gone = TestDataFactory.create_product(quantity=10)
        order = place_order('A', 'a@example.com', [
            {'product': kept.id, 'quantity': 4},
            {'product': gone.id, 'quantity': 2},
        ])
        gone.delete()
        restocked = delete_order(order, restock=True)
        kept.refresh_from_db()
        self.assertEqual(kept.quantity, 10)
        self.assertEqual(restocked, 4)
