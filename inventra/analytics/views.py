import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from inventra.catalog.models import Product
from inventra.core.permissions import capability_required
from inventra.orders.models import Order, OrderItem
from . import aggregates, prompts
from .ai_service import (
    FALLBACK_INSIGHTS, FALLBACK_PREDICTION, FALLBACK_REPORT,
    GenerativeServiceError, get_text_client,
)

logger = logging.getLogger(__name__)

CAN_VIEW_REPORTS = capability_required('can_view_reports')

DEFAULT_QUERY = 'General inquiry'


class InsightQuerySerializer(serializers.Serializer):
    query = serializers.CharField(max_length=2000, required=False, allow_blank=True)


class DemandRequestSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(min_value=1)
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)


def _generate(prompt, fallback, purpose):
    """Return (text, True) from the AI service, or (fallback, False) when it fails"""
    try:
        return get_text_client().generate(prompt), True
    except GenerativeServiceError as e:
        logger.warning("AI %s unavailable, serving fallback: %s", purpose, e)
        return fallback, False


@api_view(['GET'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def dashboard(request):
    """Headline numbers for the dashboard"""
    return Response(aggregates.dashboard_summary())


@api_view(['POST'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def ai_insights(request):
    """Answer a free-text question about the inventory"""
    serializer = InsightQuerySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    query = serializer.validated_data.get('query', '').strip() or DEFAULT_QUERY

    context = {
        'total_products': aggregates.total_product_count(),
        'low_stock_items': aggregates.low_stock_count(),
        'total_orders': Order.objects.count(),
        'total_value': aggregates.total_inventory_value(),
    }
    text, ok = _generate(prompts.query_prompt(query, context), FALLBACK_INSIGHTS, 'insights')
    return Response({
        'query': query,
        'insights': text,
        'context': context if ok else {},
        'suggestions': [],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def inventory_report(request, report_type):
    """Narrative report; unknown types get the general status report"""
    products = list(Product.objects.select_related('supplier').order_by('id'))
    orders = list(Order.objects.prefetch_related('items').order_by('-created_at', '-id'))
    prompt = prompts.report_prompt(report_type, products, orders)
    text, ok = _generate(prompt, FALLBACK_REPORT, f'{report_type} report')
    return Response({
        'report_type': report_type if report_type in prompts.REPORT_TYPES else 'default',
        'generated_at': timezone.now(),
        'report': text,
        'metadata': {'products': len(products), 'orders': len(orders)} if ok else {},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def predict_demand(request):
    """Predict demand for one product over the next ``days`` days"""
    serializer = DemandRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    days = serializer.validated_data['days']
    product = get_object_or_404(
        Product.objects.select_related('supplier'), pk=serializer.validated_data['product_id']
    )

    history = list(
        OrderItem.objects.filter(product=product)
        .order_by('order__created_at', 'id')
        .values_list('order__created_at', 'quantity')
    )
    text, ok = _generate(prompts.demand_prompt(product, history, days), FALLBACK_PREDICTION, 'demand prediction')
    return Response({
        'product_id': product.id,
        'product': product.name,
        'forecast_period': days,
        'prediction': text,
        'metadata': {
            'current_stock': product.quantity,
            'reorder_level': product.reorder_level,
            'units_sold': sum(quantity for _, quantity in history),
            'order_count': len(history),
        } if ok else {},
        'generated_at': timezone.now(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def smart_insights(request):
    """Aggregates across stock, orders and suppliers with AI commentary"""
    data = aggregates.smart_insight_data()
    text, ok = _generate(prompts.smart_insights_prompt(data), FALLBACK_INSIGHTS, 'smart insights')
    return Response({
        'insights': text,
        'metadata': data if ok else {},
        'generated_at': timezone.now(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, CAN_VIEW_REPORTS])
def role_insights(request, role):
    """Insights scoped to manager, staff or admin work"""
    data = aggregates.role_insight_data(role)
    text, ok = _generate(prompts.role_prompt(role, data), FALLBACK_INSIGHTS, f'{role} insights')
    return Response({
        'role': role,
        'insights': text,
        'data': data if ok else {},
        'generated_at': timezone.now(),
    })
