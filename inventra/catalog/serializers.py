from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    is_critical_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'category', 'price', 'quantity', 'reorder_level',
                  'supplier', 'supplier_name', 'last_restocked', 'image_url',
                  'is_low_stock', 'is_critical_stock', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name cannot be blank")
        return value