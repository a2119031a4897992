"""
Django management command that loads a small demo catalog: 3 suppliers,
10 products and 4 orders. Nothing is written when suppliers already exist.
"""
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from inventra.catalog.models import Product
from inventra.orders.models import Order, OrderItem
from inventra.parties.models import Supplier

SUPPLIERS = [
    ('TechCorp Solutions', 'sales@techcorp.com', '+1-555-0101', '123 Tech Street, Silicon Valley, CA 94000', 5),
    ('Global Electronics Ltd', 'orders@globalelec.com', '+1-555-0202', '456 Electronics Ave, Austin, TX 78701', 4),
    ('Office Supplies Pro', 'contact@officesupplies.com', '+1-555-0303', '789 Business Blvd, New York, NY 10001', 4),
]

# name, sku, category, price, quantity, reorder level, supplier index
PRODUCTS = [
    ('MacBook Pro 16"', 'MBP-16-001', 'Electronics', '2499', 15, 5, 0),
    ('Dell XPS 13', 'DELL-XPS-002', 'Electronics', '1299', 8, 10, 1),
    ('iPhone 15 Pro', 'IPH-15P-003', 'Electronics', '999', 25, 15, 0),
    ('Wireless Mouse', 'WM-LOG-004', 'Accessories', '79', 45, 20, 1),
    ('Mechanical Keyboard', 'KB-MEC-005', 'Accessories', '149', 3, 10, 1),
    ('Office Chair', 'OC-ERG-006', 'Furniture', '299', 12, 8, 2),
    ('Standing Desk', 'SD-ADJ-007', 'Furniture', '599', 6, 5, 2),
    ('Monitor 27" 4K', 'MON-4K-008', 'Electronics', '449', 18, 12, 1),
    ('Webcam HD', 'WC-HD-009', 'Accessories', '89', 2, 15, 0),
    ('Printer Laser', 'PRT-LAS-010', 'Office Equipment', '199', 7, 5, 2),
]

# customer, email, [(product index, quantity)], status, age in days
ORDERS = [
    ('John Smith', 'john@company.com', [(0, 2), (3, 4)], 'delivered', 7),
    ('Sarah Johnson', 'sarah@startup.com', [(1, 1), (4, 2)], 'shipped', 3),
    ('Mike Wilson', 'mike@enterprise.com', [(2, 5), (7, 3)], 'processing', 1),
    ('Lisa Brown', 'lisa@agency.com', [(5, 8), (6, 4)], 'pending', 0),
]


class Command(BaseCommand):
    help = 'Load sample suppliers, products and orders into an empty database'

    def handle(self, *args, **options):
        if Supplier.objects.exists():
            self.stdout.write(self.style.WARNING('Suppliers already exist, skipping sample data'))
            return

        now = timezone.now()
        with transaction.atomic():
            suppliers = [
                Supplier.objects.create(
                    name=name, contact_email=email, contact_phone=phone, address=address, rating=rating
                )
                for name, email, phone, address, rating in SUPPLIERS
            ]
            products = [
                Product.objects.create(
                    name=name, sku=sku, category=category, price=Decimal(price),
                    quantity=quantity, reorder_level=reorder_level, supplier=suppliers[supplier_index],
                )
                for name, sku, category, price, quantity, reorder_level, supplier_index in PRODUCTS
            ]
            # Historical orders: stock levels above already reflect them
            for customer, email, lines, order_status, age_days in ORDERS:
                order = Order.objects.create(
                    customer_name=customer,
                    customer_email=email,
                    status=order_status,
                    total_amount=sum(products[i].price * qty for i, qty in lines),
                )
                OrderItem.objects.bulk_create([
                    OrderItem(order=order, product=products[i], product_name=products[i].name,
                              quantity=qty, unit_price=products[i].price)
                    for i, qty in lines
                ])
                Order.objects.filter(pk=order.pk).update(created_at=now - timedelta(days=age_days))

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write(f'- {len(suppliers)} Suppliers added')
        self.stdout.write(f'- {len(products)} Products added')
        self.stdout.write(f'- {len(ORDERS)} Orders added')
