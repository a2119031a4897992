import django_filters
from django.db.models import Q

from .models import Product


TRUTHY = ('true', '1', 'yes')


class ProductFilter(django_filters.FilterSet):
    """Filter for the product list using django-filter"""

    # Basic search - name, SKU and category
    search = django_filters.CharFilter(method='filter_search', label='Search')

    # Direct field filters
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    supplier = django_filters.NumberFilter(field_name='supplier_id', lookup_expr='exact')

    # Stock status filters
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')
    critical_stock = django_filters.CharFilter(method='filter_critical_stock', label='Critical Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'supplier', 'low_stock', 'critical_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the name, SKU or category"""
        if not value:
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(sku__icontains=word) |
                Q(category__icontains=word)
            )
        return queryset

    def filter_low_stock(self, queryset, name, value):
        if value and value.lower() in TRUTHY:
            return queryset.low_stock()
        return queryset

    def filter_critical_stock(self, queryset, name, value):
        if value and value.lower() in TRUTHY:
            return queryset.critical_stock()
        return queryset
