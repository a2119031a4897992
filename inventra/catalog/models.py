from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F
from django.utils import timezone

from inventra.parties.models import Supplier


class ProductQuerySet(models.QuerySet):
    def low_stock(self):
        """Products at or below their reorder level"""
        return self.filter(quantity__lte=F('reorder_level'))

    def critical_stock(self):
        """Products at or below half their reorder level"""
        # 2 * quantity <= reorder_level keeps the comparison in integers
        return self.annotate(doubled_quantity=F('quantity') * 2).filter(
            doubled_quantity__lte=F('reorder_level')
        )


class Product(models.Model):
    """Catalog products with on-hand stock"""
    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, unique=True)
    category = models.CharField(max_length=100, db_index=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    quantity = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(default=10)
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    last_restocked = models.DateTimeField(default=timezone.now)
    image_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_low_stock(self):
        return self.quantity <= self.reorder_level

    @property
    def is_critical_stock(self):
        return 2 * self.quantity <= self.reorder_level

    class Meta:
        db_table = 'products'
        ordering = ['name']
