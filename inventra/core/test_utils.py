"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from inventra.catalog.models import Product
from inventra.core.roles import Role
from inventra.orders.models import Order, OrderItem
from inventra.parties.models import Supplier

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', role=Role.STAFF, name=None):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=name or email.split('@')[0],
            role=role,
        )

    @staticmethod
    def create_supplier(name=None, rating=3):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            name=name,
            contact_email=f'{name.lower()}@test.com',
            contact_phone=f'+1-555-{random.randint(1000, 9999)}',
            address=f'Test Address {name}',
            rating=rating,
        )

    @staticmethod
    def create_product(name=None, sku=None, category='General', price='10.00', quantity=10,
                       reorder_level=10, supplier=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        return Product.objects.create(
            name=name,
            sku=sku,
            category=category,
            price=Decimal(str(price)),
            quantity=quantity,
            reorder_level=reorder_level,
            supplier=supplier,
        )

    @staticmethod
    def create_order(lines=None, customer_name='Test Customer', customer_email='customer@test.com',
                     status='pending', created_at=None, user=None):
        """
        Create an order directly, without touching stock.

        ``lines`` is a list of (product, quantity) pairs.
        """
        lines = lines or []
        order = Order.objects.create(
            customer_name=customer_name,
            customer_email=customer_email,
            status=status,
            total_amount=sum((product.price * qty for product, qty in lines), Decimal('0.00')),
            created_by=user,
        )
        OrderItem.objects.bulk_create([
            OrderItem(order=order, product=product, product_name=product.name,
                      quantity=qty, unit_price=product.price)
            for product, qty in lines
        ])
        if created_at is not None:
            Order.objects.filter(pk=order.pk).update(created_at=created_at)
            order.refresh_from_db()
        return order


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
