import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventra.core.permissions import capability_required
from inventra.core.utils import create_audit_log
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer

logger = logging.getLogger(__name__)

TRACKED_FIELDS = ('name', 'sku', 'category', 'price', 'quantity', 'reorder_level', 'supplier_id')


def _snapshot(product):
    return {field: str(getattr(product, field)) for field in TRACKED_FIELDS}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, capability_required('can_manage_products', methods=['POST'])])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('supplier').all()

        # Use django-filter for filtering
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(
                {'error': 'validation_error', 'message': 'Invalid filter.', 'errors': filterset.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        serializer = ProductSerializer(filterset.qs.order_by('name', 'id'), many=True)
        return Response(serializer.data)
    else:
        serializer = ProductSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Product',
            object_id=product.id,
            object_name=product.name,
            changes=_snapshot(product),
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, capability_required('can_manage_products', methods=['PATCH', 'DELETE'])])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('supplier'), pk=pk)

    if request.method == 'GET':
        serializer = ProductSerializer(product)
        return Response(serializer.data)
    elif request.method == 'PATCH':
        old_data = _snapshot(product)
        serializer = ProductSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        new_data = _snapshot(product)
        changes = {k: {'old': old_data[k], 'new': new_data[k]} for k in old_data if old_data[k] != new_data[k]}
        if changes:
            create_audit_log(
                request=request,
                action='update',
                model_name='Product',
                object_id=product.id,
                object_name=product.name,
                changes=changes,
            )
        return Response(serializer.data)
    else:  # DELETE
        product_name = product.name
        product_sku = product.sku
        product_id = product.id
        product.delete()
        logger.info("Product %s (%s) deleted", product_id, product_sku)
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=product_id,
            object_name=product_name,
            changes={'name': product_name, 'sku': product_sku},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_low_stock(request):
    """Products at or below their reorder level, lowest stock first"""
    queryset = Product.objects.select_related('supplier').low_stock().order_by('quantity', 'id')
    serializer = ProductSerializer(queryset, many=True)
    return Response(serializer.data)
