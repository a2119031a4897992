from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'quantity', 'reorder_level', 'supplier', 'last_restocked']
    list_filter = ['category', 'supplier']
    search_fields = ['name', 'sku', 'category']
    list_select_related = ['supplier']
