"""
Order workflows that move stock.

Placement locks every referenced product row, then decrements each with a
guarded update, so concurrent orders for the same product cannot oversell
and a failed line rolls back the whole order.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from rest_framework.exceptions import NotFound

from inventra.catalog.models import Product
from inventra.core.utils import create_audit_log
from .exceptions import InsufficientStock
from .models import Order, OrderItem

logger = logging.getLogger(__name__)


def place_order(customer_name, customer_email, items, user=None, request=None):
    """
    Create an order and take its items out of stock.

    Args:
        customer_name: Customer display name
        customer_email: Customer email
        items: Non-empty list of {'product': <id>, 'quantity': <int >= 1>}
        user: User placing the order (defaults to request.user)
        request: Optional request, used for audit logging

    Raises:
        NotFound: a line references a product that does not exist
        InsufficientStock: a line asks for more than is on hand
    """
    if user is None and request is not None and request.user.is_authenticated:
        user = request.user

    product_ids = sorted({item['product'] for item in items})

    with transaction.atomic():
        # Lock rows in id order so concurrent orders cannot deadlock
        products = {
            product.id: product
            for product in Product.objects.select_for_update().filter(id__in=product_ids).order_by('id')
        }

        total_amount = Decimal('0.00')
        for item in items:
            product = products.get(item['product'])
            if product is None:
                raise NotFound(f"Product not found: {item['product']}")
            if product.quantity < item['quantity']:
                raise InsufficientStock(product, item['quantity'])
            total_amount += product.price * item['quantity']

        order = Order.objects.create(
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=total_amount,
            status='pending',
            created_by=user,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=products[item['product']],
                product_name=products[item['product']].name,
                quantity=item['quantity'],
                unit_price=products[item['product']].price,
            )
            for item in items
        ])

        for item in items:
            product = products[item['product']]
            updated = Product.objects.filter(
                pk=product.pk, quantity__gte=item['quantity']
            ).update(quantity=F('quantity') - item['quantity'])
            if not updated:
                product.refresh_from_db(fields=['quantity'])
                raise InsufficientStock(product, item['quantity'])
            create_audit_log(
                request=request,
                user=user,
                action='stock_sale',
                model_name='Product',
                object_id=product.pk,
                object_name=product.name,
                changes={'order_id': order.pk, 'quantity': -item['quantity']},
            )

        create_audit_log(
            request=request,
            user=user,
            action='create',
            model_name='Order',
            object_id=order.pk,
            object_name=order.customer_name,
            changes={'total_amount': str(total_amount), 'items': len(items)},
        )

    logger.info("Order %s placed for %s: %d line(s), total %s",
                order.pk, customer_email, len(items), total_amount)
    return order


def change_order_status(order, new_status, request=None):
    """Move an order to ``new_status``; any status may follow any other"""
    old_status = order.status
    order.status = new_status
    order.save(update_fields=['status', 'updated_at'])
    if old_status != new_status:
        create_audit_log(
            request=request,
            action='status_change',
            model_name='Order',
            object_id=order.pk,
            object_name=order.customer_name,
            changes={'status': {'old': old_status, 'new': new_status}},
        )
    logger.info("Order %s status %s -> %s", order.pk, old_status, new_status)
    return order


def delete_order(order, restock=False, request=None):
    """
    Delete an order. With ``restock`` the ordered quantities go back to
    products that still exist.
    """
    order_id = order.pk
    customer_name = order.customer_name
    restocked = 0

    with transaction.atomic():
        if restock:
            for item in order.items.filter(product__isnull=False).select_related('product'):
                Product.objects.filter(pk=item.product_id).update(quantity=F('quantity') + item.quantity)
                restocked += item.quantity
                create_audit_log(
                    request=request,
                    action='stock_restock',
                    model_name='Product',
                    object_id=item.product_id,
                    object_name=item.product_name,
                    changes={'order_id': order_id, 'quantity': item.quantity},
                )
        order.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Order',
            object_id=order_id,
            object_name=customer_name,
            changes={'restock': restock, 'restocked_units': restocked},
        )

    logger.info("Order %s deleted (restock=%s, %d unit(s) returned)", order_id, restock, restocked)
    return restocked
