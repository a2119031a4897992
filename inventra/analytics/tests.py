"""
Test suite for the analytics module
Tests: aggregates, calendar boundaries, role-scoped data, AI client, AI endpoints and fallbacks
"""
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock, patch
from zoneinfo import ZoneInfo

import requests
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError

from inventra.analytics import aggregates
from inventra.analytics.ai_service import (
    FALLBACK_INSIGHTS, FALLBACK_PREDICTION, FALLBACK_REPORT,
    GenerativeServiceError, GenerativeTextClient,
)
from inventra.core.roles import Role
from inventra.core.test_utils import TestDataFactory, AuthenticatedAPIClient

UTC = ZoneInfo('UTC')
GENERATE = 'inventra.analytics.ai_service.GenerativeTextClient.generate'


class MonthBoundaryTests(TestCase):
    """Test the orders-this-month window"""

    @override_settings(TIME_ZONE='UTC')
    def test_order_just_before_month_start_is_excluded(self):
        TestDataFactory.create_order(created_at=datetime(2024, 2, 29, 23, 59, 59, tzinfo=UTC))
        now = datetime(2024, 3, 1, 0, 0, 1, tzinfo=UTC)
        self.assertEqual(aggregates.orders_this_month_count(now), 0)

    @override_settings(TIME_ZONE='UTC')
    def test_month_start_is_inclusive(self):
        TestDataFactory.create_order(created_at=datetime(2024, 3, 1, 0, 0, 0, tzinfo=UTC))
        TestDataFactory.create_order(created_at=datetime(2024, 3, 15, 12, 0, 0, tzinfo=UTC))
        now = datetime(2024, 3, 20, tzinfo=UTC)
        self.assertEqual(aggregates.orders_this_month_count(now), 2)

    @override_settings(TIME_ZONE='America/New_York')
    def test_month_start_uses_local_time_zone(self):
        # 04:59:59 UTC on March 1st is still February 29th in New York
        TestDataFactory.create_order(created_at=datetime(2024, 3, 1, 4, 59, 59, tzinfo=UTC))
        TestDataFactory.create_order(created_at=datetime(2024, 3, 1, 5, 0, 0, tzinfo=UTC))
        now = datetime(2024, 3, 1, 5, 0, 1, tzinfo=UTC)
        self.assertEqual(aggregates.orders_this_month_count(now), 1)


class AggregateTests(TestCase):
    """Test stock and sales aggregates"""

    def test_average_order_value_without_orders(self):
        self.assertEqual(aggregates.average_order_value(), Decimal('0'))

    def test_average_order_value(self):
        product = TestDataFactory.create_product(price='10.00')
        TestDataFactory.create_order([(product, 1)])
        TestDataFactory.create_order([(product, 2)])
        self.assertEqual(aggregates.average_order_value(), Decimal('15.00'))

    def test_low_and_critical_counts(self):
        TestDataFactory.create_product(quantity=5, reorder_level=10)
        TestDataFactory.create_product(quantity=6, reorder_level=10)
        TestDataFactory.create_product(quantity=10, reorder_level=10)
        TestDataFactory.create_product(quantity=11, reorder_level=10)
        self.assertEqual(aggregates.low_stock_count(), 3)
        self.assertEqual(aggregates.critical_stock_count(), 1)

    def test_top_products_order_and_tie_break(self):
        first = TestDataFactory.create_product(name='First')
        second = TestDataFactory.create_product(name='Second')
        best = TestDataFactory.create_product(name='Best')
        TestDataFactory.create_order([(second, 5), (best, 3)])
        TestDataFactory.create_order([(first, 5), (best, 4)])
        names = [row['name'] for row in aggregates.top_products()]
        self.assertEqual(names, ['Best', 'First', 'Second'])

    def test_top_products_limit_and_deleted(self):
        products = [TestDataFactory.create_product(name=f'P{i}') for i in range(7)]
        TestDataFactory.create_order([(p, i + 1) for i, p in enumerate(products)])
        products[6].delete()
        rows = aggregates.top_products()
        self.assertEqual(len(rows), 5)
        self.assertEqual(rows[0]['name'], 'P5')
        self.assertNotIn('P6', [row['name'] for row in rows])

    def test_category_rollup(self):
        TestDataFactory.create_product(category='Furniture', price='100.00', quantity=2, reorder_level=5)
        TestDataFactory.create_product(category='Furniture', price='50.00', quantity=10, reorder_level=5)
        TestDataFactory.create_product(category='Accessories', price='5.00', quantity=1, reorder_level=5)
        rollup = aggregates.category_rollup()
        self.assertEqual(rollup['Furniture']['count'], 2)
        self.assertEqual(rollup['Furniture']['value'], Decimal('700.00'))
        self.assertEqual(rollup['Furniture']['low_stock'], 1)
        self.assertEqual(rollup['Accessories']['value'], Decimal('5.00'))
        self.assertEqual(aggregates.top_category(rollup), 'Furniture')
        self.assertEqual(aggregates.total_inventory_value(), Decimal('705.00'))

    def test_recent_orders(self):
        now = timezone.now()
        TestDataFactory.create_order(created_at=now - timedelta(days=8))
        TestDataFactory.create_order(created_at=now - timedelta(days=6))
        self.assertEqual(aggregates.recent_orders(now).count(), 1)

    def test_average_supplier_rating(self):
        self.assertEqual(aggregates.average_supplier_rating(), 0)
        TestDataFactory.create_supplier(rating=5)
        TestDataFactory.create_supplier(rating=4)
        self.assertEqual(aggregates.average_supplier_rating(), 4.5)

    def test_dashboard_summary(self):
        product = TestDataFactory.create_product(name='Lamp', quantity=1, reorder_level=5)
        TestDataFactory.create_order([(product, 2)])
        summary = aggregates.dashboard_summary()
        self.assertEqual(summary['total_products'], 1)
        self.assertEqual(summary['total_orders'], 1)
        self.assertEqual(summary['low_stock'], 1)
        self.assertEqual(summary['top_products'], ['Lamp'])


@override_settings(TIME_ZONE='UTC')
class RoleInsightDataTests(TestCase):
    """Test role-scoped insight data"""

    def setUp(self):
        self.now = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)
        self.critical = [
            TestDataFactory.create_product(name=f'Critical {i}', quantity=i, reorder_level=10)
            for i in range(4)
        ]
        product = TestDataFactory.create_product(quantity=100)
        for day in range(4):
            TestDataFactory.create_order([(product, 1)], status='pending',
                                         created_at=self.now - timedelta(days=day, hours=1))
        TestDataFactory.create_order([(product, 1)], status='processing',
                                     created_at=self.now - timedelta(days=2))
        TestDataFactory.create_order([(product, 1)], status='processing',
                                     created_at=self.now - timedelta(hours=2))
        TestDataFactory.create_supplier()

    def test_manager_data(self):
        data = aggregates.role_insight_data('manager', self.now)
        self.assertEqual(data['total_orders'], 6)
        self.assertEqual(data['pending_orders'], 4)
        self.assertEqual(data['processing_orders'], 2)
        self.assertEqual(data['weekly_orders'], 6)
        self.assertEqual(data['critical_stock_count'], 4)
        self.assertEqual(data['supplier_count'], 1)
        self.assertNotIn('critical_items', data)

    def test_staff_data(self):
        data = aggregates.role_insight_data('staff', self.now)
        self.assertEqual(data['critical_stock_count'], 4)
        self.assertEqual(data['pending_orders_count'], 4)
        # 11:00 pending and 10:00 processing fall on the 15th
        self.assertEqual(data['today_orders_count'], 2)
        # 4 critical + 4 pending + 1 processing older than a day
        self.assertEqual(data['urgent_tasks_count'], 9)
        self.assertEqual(len(data['critical_items']), 3)
        self.assertEqual(data['critical_items'][0]['name'], 'Critical 0')
        self.assertEqual(len(data['priority_orders']), 3)
        self.assertEqual(data['priority_orders'][0]['items'], 1)
        self.assertNotIn('supplier_count', data)

    def test_admin_data_is_union(self):
        data = aggregates.role_insight_data('admin', self.now)
        for key in ('total_orders', 'supplier_count', 'urgent_tasks_count', 'critical_items'):
            self.assertIn(key, data)

    def test_unknown_role(self):
        with self.assertRaises(ValidationError):
            aggregates.role_insight_data('owner', self.now)


class GenerativeTextClientTests(TestCase):
    """Test the Gemini REST client against a fake session"""

    def _client(self, response=None, error=None):
        session = Mock()
        if error is not None:
            session.post.side_effect = error
        else:
            session.post.return_value = response
        return GenerativeTextClient(api_key='test-key', model='gemini-test',
                                    api_url='https://ai.example.com/v1beta/', timeout=5, session=session)

    def _response(self, payload):
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = payload
        return response

    def test_returns_stripped_text(self):
        payload = {'candidates': [{'content': {'parts': [{'text': '  Restock webcams. \n'}]}}]}
        client = self._client(self._response(payload))
        self.assertEqual(client.generate('prompt'), 'Restock webcams.')
        args, kwargs = client.session.post.call_args
        self.assertEqual(args[0], 'https://ai.example.com/v1beta/models/gemini-test:generateContent')
        self.assertEqual(kwargs['headers']['x-goog-api-key'], 'test-key')
        self.assertEqual(kwargs['json']['contents'][0]['parts'][0]['text'], 'prompt')
        self.assertEqual(kwargs['timeout'], 5)

    def test_missing_api_key(self):
        client = GenerativeTextClient(api_key='', session=Mock())
        with self.assertRaises(GenerativeServiceError):
            client.generate('prompt')
        client.session.post.assert_not_called()

    def test_transport_error(self):
        client = self._client(error=requests.exceptions.ConnectionError('down'))
        with self.assertRaises(GenerativeServiceError):
            client.generate('prompt')

    def test_http_error(self):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError('429 Too Many Requests')
        with self.assertRaises(GenerativeServiceError):
            self._client(response).generate('prompt')

    def test_unexpected_shape(self):
        response = self._response({'promptFeedback': {'blockReason': 'SAFETY'}})
        with self.assertRaises(GenerativeServiceError):
            self._client(response).generate('prompt')

    def test_empty_text(self):
        response = self._response({'candidates': [{'content': {'parts': [{'text': '   '}]}}]})
        with self.assertRaises(GenerativeServiceError):
            self._client(response).generate('prompt')


class AnalyticsAPITests(TestCase):
    """Test analytics endpoints with the AI service mocked"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role=Role.STAFF))
        self.product = TestDataFactory.create_product(name='Webcam HD', price='89.00', quantity=2, reorder_level=15)
        TestDataFactory.create_order([(self.product, 1)])

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/analytics/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_dashboard(self):
        response = self.client.get('/api/v1/analytics/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_products'], 1)
        self.assertEqual(response.data['low_stock'], 1)
        self.assertEqual(response.data['top_products'], ['Webcam HD'])

    @patch(GENERATE, return_value='Reorder webcams this week.')
    def test_ai_insights(self, mock_generate):
        response = self.client.post('/api/v1/analytics/ai-insights/', {'query': 'What is low?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['insights'], 'Reorder webcams this week.')
        self.assertEqual(response.data['context']['low_stock_items'], 1)
        self.assertIn('What is low?', mock_generate.call_args[0][0])

    @patch(GENERATE, side_effect=GenerativeServiceError('quota exceeded'))
    def test_ai_insights_fallback(self, mock_generate):
        with self.assertLogs('inventra.analytics', level='WARNING'):
            response = self.client.post('/api/v1/analytics/ai-insights/', {'query': 'Anything?'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['insights'], FALLBACK_INSIGHTS)
        self.assertEqual(response.data['context'], {})

    @patch(GENERATE, return_value='Stock looks healthy.')
    def test_ai_insights_without_query(self, mock_generate):
        response = self.client.post('/api/v1/analytics/ai-insights/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['query'], 'General inquiry')
        self.assertIn('General inquiry', mock_generate.call_args[0][0])

    @patch(GENERATE, return_value='Weekly report text')
    def test_report_types(self, mock_generate):
        for report_type, expected in (('weekly', 'weekly'), ('forecast', 'forecast'),
                                      ('performance', 'performance'), ('quarterly', 'default')):
            response = self.client.get(f'/api/v1/analytics/report/{report_type}/')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['report_type'], expected)
            self.assertEqual(response.data['report'], 'Weekly report text')
        self.assertEqual(mock_generate.call_count, 4)

    @patch(GENERATE, side_effect=GenerativeServiceError('timeout'))
    def test_report_fallback(self, mock_generate):
        response = self.client.get('/api/v1/analytics/report/weekly/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['report'], FALLBACK_REPORT)
        self.assertEqual(response.data['metadata'], {})

    @patch(GENERATE, return_value='{"daily_demand": 1}')
    def test_predict_demand(self, mock_generate):
        response = self.client.post('/api/v1/analytics/predict-demand/', {'product_id': self.product.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['forecast_period'], 30)
        self.assertEqual(response.data['product'], 'Webcam HD')
        self.assertEqual(response.data['metadata']['units_sold'], 1)
        self.assertIn('next 30 days', mock_generate.call_args[0][0])

    @patch(GENERATE, side_effect=GenerativeServiceError('down'))
    def test_predict_demand_fallback(self, mock_generate):
        response = self.client.post('/api/v1/analytics/predict-demand/',
                                    {'product_id': self.product.id, 'days': 7}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['prediction'], FALLBACK_PREDICTION)
        self.assertEqual(response.data['forecast_period'], 7)

    def test_predict_demand_unknown_product(self):
        response = self.client.post('/api/v1/analytics/predict-demand/', {'product_id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @patch(GENERATE, return_value='1. [ALERT]: Webcams are critical')
    def test_smart_insights(self, mock_generate):
        response = self.client.get('/api/v1/analytics/smart-insights/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metadata']['critical_stock_count'], 1)
        self.assertEqual(response.data['metadata']['top_category'], 'General')

    @patch(GENERATE, side_effect=GenerativeServiceError('down'))
    def test_smart_insights_fallback(self, mock_generate):
        response = self.client.get('/api/v1/analytics/smart-insights/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['insights'], FALLBACK_INSIGHTS)
        self.assertEqual(response.data['metadata'], {})

    @patch(GENERATE, return_value='[URGENT]: restock Webcam HD')
    def test_role_insights(self, mock_generate):
        for role in ('manager', 'staff', 'admin'):
            response = self.client.get(f'/api/v1/analytics/role-insights/{role}/')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['role'], role)
        self.assertIn('critical_items', response.data['data'])
        self.assertIn('supplier_count', response.data['data'])

    @patch(GENERATE)
    def test_role_insights_unknown_role(self, mock_generate):
        response = self.client.get('/api/v1/analytics/role-insights/owner/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_generate.assert_not_called()
