from django.contrib import admin
from .models import Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'contact_email', 'contact_phone', 'rating', 'last_supplied', 'created_at']
    list_filter = ['rating']
    search_fields = ['name', 'contact_email', 'contact_phone']
