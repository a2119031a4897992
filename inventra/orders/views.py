from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventra.core.permissions import capability_required
from .models import Order
from .serializers import OrderSerializer, OrderCreateSerializer, OrderStatusSerializer
from .services import place_order, change_order_status, delete_order


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders (newest first) or place a new order"""
    if request.method == 'GET':
        queryset = Order.objects.select_related('created_by').prefetch_related('items')
        status_filter = request.query_params.get('status', None)
        if status_filter:
            valid = dict(Order.STATUS_CHOICES)
            if status_filter not in valid:
                raise ValidationError({'status': [f"'{status_filter}' is not a valid status"]})
            queryset = queryset.filter(status=status_filter)
        serializer = OrderSerializer(queryset, many=True)
        return Response(serializer.data)
    else:
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        order = place_order(
            customer_name=data['customer_name'],
            customer_email=data['customer_email'],
            items=data['items'],
            request=request,
        )
        order = Order.objects.select_related('created_by').prefetch_related('items').get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, capability_required('can_update_order_status')])
def order_update_status(request, pk):
    """Change the status of an order"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    change_order_status(order, serializer.validated_data['status'], request=request)
    order = Order.objects.select_related('created_by').prefetch_related('items').get(pk=order.pk)
    return Response(OrderSerializer(order).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, capability_required('can_delete_orders')])
def order_detail(request, pk):
    """Delete an order; ?restock=true returns its quantities to stock"""
    order = get_object_or_404(Order, pk=pk)
    restock = request.query_params.get('restock', 'false').lower() in ('true', '1', 'yes')
    delete_order(order, restock=restock, request=request)
    return Response(status=status.HTTP_204_NO_CONTENT)
