"""
Django management command that scans for low-stock products.

Run once, or with --daemon to repeat the scan every day at
LOW_STOCK_SCAN_TIME (HH:MM, local TIME_ZONE).
"""
import logging
import time
from datetime import datetime, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from inventra.catalog.models import Product

logger = logging.getLogger(__name__)


def parse_scan_time(value):
    """Parse 'HH:MM' into (hour, minute)"""
    try:
        parsed = datetime.strptime(value.strip(), '%H:%M')
    except (AttributeError, ValueError):
        raise CommandError(f"Invalid scan time '{value}', expected HH:MM")
    return parsed.hour, parsed.minute


def next_run_after(now, hour, minute):
    """Next local occurrence of hour:minute strictly after ``now``"""
    local_now = timezone.localtime(now)
    candidate = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= local_now:
        candidate = timezone.make_aware(
            datetime.combine(local_now.date() + timedelta(days=1), candidate.time())
        )
    return candidate


def scan_low_stock():
    """Log the number of low-stock products and return them"""
    products = list(Product.objects.low_stock().order_by('quantity', 'id'))
    if products:
        logger.warning("Low stock check: %d product(s) at or below reorder level", len(products))
    else:
        logger.info("Low stock check: 0 products at or below reorder level")
    return products


class Command(BaseCommand):
    help = 'Scan for products at or below their reorder level'

    def add_arguments(self, parser):
        parser.add_argument(
            '--daemon',
            action='store_true',
            help='Keep running and scan once a day at the configured time',
        )
        parser.add_argument(
            '--at',
            type=str,
            default=None,
            help='Daily scan time as HH:MM (default: LOW_STOCK_SCAN_TIME)',
        )

    def handle(self, *args, **options):
        if not options.get('daemon'):
            self._run_scan()
            return

        hour, minute = parse_scan_time(options.get('at') or settings.LOW_STOCK_SCAN_TIME)
        self.stdout.write(self.style.SUCCESS(f"Low stock scanner scheduled daily at {hour:02d}:{minute:02d}"))
        try:
            while True:
                next_run = next_run_after(timezone.now(), hour, minute)
                logger.info("Next low stock check at %s", next_run.isoformat())
                time.sleep(max(0.0, (next_run - timezone.now()).total_seconds()))
                self._run_scan()
        except KeyboardInterrupt:
            self.stdout.write("Low stock scanner stopped")

    def _run_scan(self):
        products = scan_low_stock()
        if products:
            self.stdout.write(self.style.WARNING(f"{len(products)} product(s) low on stock:"))
            for product in products:
                self.stdout.write(f"  {product.sku} {product.name}: {product.quantity} (reorder at {product.reorder_level})")
        else:
            self.stdout.write(self.style.SUCCESS("All products above reorder level"))
