"""
Inventory and sales aggregates for dashboards and AI prompts.

Everything here is read-only and recomputed from the database on each call.
Functions that depend on the current time take an optional ``now`` so results
are reproducible; calendar boundaries (month start, today) are evaluated in
the configured TIME_ZONE.
"""
from datetime import timedelta
from decimal import Decimal

from django.db.models import Avg, Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from inventra.catalog.models import Product
from inventra.core.roles import Role
from inventra.orders.models import Order, OrderItem
from inventra.parties.models import Supplier

STOCK_VALUE = ExpressionWrapper(
    F('quantity') * F('price'), output_field=DecimalField(max_digits=20, decimal_places=2)
)

ZERO = Decimal('0.00')


def _now(now=None):
    return now or timezone.now()


def start_of_month(now=None):
    local = timezone.localtime(_now(now))
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def start_of_day(now=None):
    local = timezone.localtime(_now(now))
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def total_product_count():
    return Product.objects.count()


def orders_this_month_count(now=None):
    return Order.objects.filter(created_at__gte=start_of_month(now)).count()


def low_stock_products():
    return Product.objects.low_stock().order_by('quantity', 'id')


def low_stock_count():
    return Product.objects.low_stock().count()


def critical_stock_products():
    return Product.objects.critical_stock().order_by('quantity', 'id')


def critical_stock_count():
    return Product.objects.critical_stock().count()


def top_products(limit=5):
    """
    Best sellers by units ordered, ties broken by product id.

    Returns a list of dicts with ``id``, ``name`` and ``total_sold``. Line
    items whose product has been deleted are ignored.
    """
    rows = (
        OrderItem.objects.filter(product__isnull=False)
        .values('product_id', 'product__name')
        .annotate(total_sold=Sum('quantity'))
        .order_by('-total_sold', 'product_id')[:limit]
    )
    return [
        {'id': row['product_id'], 'name': row['product__name'], 'total_sold': row['total_sold']}
        for row in rows
    ]


def category_rollup():
    """Per category: product count, stock value and low-stock count"""
    rows = (
        Product.objects.values('category')
        .annotate(
            count=Count('id'),
            value=Sum(STOCK_VALUE),
            low_stock=Count('id', filter=Q(quantity__lte=F('reorder_level'))),
        )
        .order_by('category')
    )
    return {
        row['category']: {
            'count': row['count'],
            'value': row['value'] or ZERO,
            'low_stock': row['low_stock'],
        }
        for row in rows
    }


def top_category(rollup=None):
    """Category holding the most stock value, 'N/A' without products"""
    rollup = category_rollup() if rollup is None else rollup
    if not rollup:
        return 'N/A'
    return max(sorted(rollup), key=lambda name: rollup[name]['value'])


def recent_orders(now=None, days=7):
    return Order.objects.filter(created_at__gte=_now(now) - timedelta(days=days))


def today_orders(now=None):
    start = start_of_day(now)
    return Order.objects.filter(created_at__gte=start, created_at__lt=start + timedelta(days=1))


def average_order_value():
    """Mean order total; 0 when there are no orders"""
    avg = Order.objects.aggregate(avg=Avg('total_amount'))['avg']
    if avg is None:
        return ZERO
    return Decimal(avg).quantize(Decimal('0.01'))


def total_inventory_value():
    return Product.objects.aggregate(total=Sum(STOCK_VALUE))['total'] or ZERO


def order_status_counts():
    counts = {key: 0 for key, _ in Order.STATUS_CHOICES}
    for row in Order.objects.values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']
    return counts


def average_supplier_rating():
    avg = Supplier.objects.aggregate(avg=Avg('rating'))['avg']
    return round(float(avg), 1) if avg is not None else 0


def dashboard_summary(now=None):
    return {
        'total_products': total_product_count(),
        'total_orders': orders_this_month_count(now),
        'low_stock': low_stock_count(),
        'top_products': [row['name'] for row in top_products(5)],
    }


def smart_insight_data(now=None):
    rollup = category_rollup()
    status_counts = order_status_counts()
    return {
        'total_products': total_product_count(),
        'total_value': total_inventory_value(),
        'low_stock_count': low_stock_count(),
        'critical_stock_count': critical_stock_count(),
        'categories': rollup,
        'top_category': top_category(rollup),
        'total_orders': sum(status_counts.values()),
        'order_status_counts': status_counts,
        'recent_orders_count': recent_orders(now).count(),
        'avg_order_value': average_order_value(),
        'supplier_count': Supplier.objects.count(),
        'avg_supplier_rating': average_supplier_rating(),
    }


def _manager_data(now):
    status_counts = order_status_counts()
    return {
        'total_orders': sum(status_counts.values()),
        'weekly_orders': recent_orders(now).count(),
        'pending_orders': status_counts['pending'],
        'processing_orders': status_counts['processing'],
        'avg_order_value': average_order_value(),
        'low_stock_count': low_stock_count(),
        'critical_stock_count': critical_stock_count(),
        'supplier_count': Supplier.objects.count(),
    }


def _staff_data(now):
    now = _now(now)
    critical = list(critical_stock_products())
    pending = list(
        Order.objects.filter(status='pending')
        .annotate(item_count=Count('items'))
        .order_by('created_at', 'id')
    )
    stale_processing = Order.objects.filter(
        status='processing', created_at__lte=now - timedelta(days=1)
    ).count()
    return {
        'critical_stock_count': len(critical),
        'pending_orders_count': len(pending),
        'today_orders_count': today_orders(now).count(),
        'urgent_tasks_count': len(critical) + len(pending) + stale_processing,
        'critical_items': [
            {'name': p.name, 'quantity': p.quantity, 'reorder_level': p.reorder_level}
            for p in critical[:3]
        ],
        'priority_orders': [
            {'customer': o.customer_name, 'amount': o.total_amount, 'items': o.item_count}
            for o in pending[:3]
        ],
    }


def role_insight_data(role, now=None):
    """
    Data scoped to what a role acts on. Admins get the manager and staff
    data combined.

    Raises ValidationError for an unknown role.
    """
    try:
        role = Role(role)
    except ValueError:
        raise ValidationError({'role': [f"Unknown role '{role}'. Expected one of: {', '.join(Role.values)}"]})

    if role == Role.MANAGER:
        return _manager_data(now)
    if role == Role.STAFF:
        return _staff_data(now)
    data = _manager_data(now)
    data.update(_staff_data(now))
    return data
