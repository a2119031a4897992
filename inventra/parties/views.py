import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventra.core.permissions import capability_required
from inventra.core.utils import create_audit_log
from .models import Supplier
from .serializers import SupplierSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, capability_required('can_manage_suppliers', methods=['POST'])])
def supplier_list_create(request):
    """List all suppliers or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.prefetch_related('products').order_by('name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(contact_email__icontains=search) |
                Q(contact_phone__icontains=search)
            )
        serializer = SupplierSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = SupplierSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        supplier = serializer.save()
        create_audit_log(
            request=request,
            action='create',
            model_name='Supplier',
            object_id=supplier.id,
            object_name=supplier.name,
            changes={'name': supplier.name, 'contact_email': supplier.contact_email},
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([
    IsAuthenticated,
    capability_required('can_manage_suppliers', methods=['PATCH']),
    capability_required('can_delete_suppliers', methods=['DELETE']),
])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method == 'PATCH':
        old_data = SupplierSerializer(supplier).data
        serializer = SupplierSerializer(supplier, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        changes = {
            k: {'old': old_data.get(k), 'new': v}
            for k, v in serializer.data.items()
            if k not in ('updated_at', 'products') and old_data.get(k) != v
        }
        if changes:
            create_audit_log(
                request=request,
                action='update',
                model_name='Supplier',
                object_id=supplier.id,
                object_name=supplier.name,
                changes=changes,
            )
        return Response(serializer.data)
    else:  # DELETE
        supplier_id = supplier.id
        supplier_name = supplier.name
        orphaned = supplier.products.count()
        # Products keep existing; their supplier reference is cleared
        supplier.delete()
        logger.info("Supplier %s deleted, %d product(s) detached", supplier_id, orphaned)
        create_audit_log(
            request=request,
            action='delete',
            model_name='Supplier',
            object_id=supplier_id,
            object_name=supplier_name,
            changes={'name': supplier_name, 'detached_products': orphaned},
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
