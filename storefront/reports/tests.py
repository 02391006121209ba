"""
Test suite for the reports module
Tests: dashboard statistics and access
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Order


class DashboardTests(TestCase):
    """Test back-office dashboard stats"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_empty_store(self):
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_orders'], 0)
        self.assertEqual(response.data['total_revenue'], '0.00')
        self.assertEqual(response.data['recent_orders'], [])
        self.assertEqual(response.data['currency'], 'INR')
        self.assertEqual(set(response.data['orders_by_status']), {key for key, _ in Order.STATUS_CHOICES})

    def test_counts_and_revenue(self):
        TestDataFactory.create_product()
        TestDataFactory.create_product(stock=0)
        TestDataFactory.create_course()
        TestDataFactory.create_order()
        TestDataFactory.create_order(status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order(
            status=Order.STATUS_CANCELLED,
            items=[{'product_id': 2, 'name': 'SG90 Servo', 'quantity': 1, 'price': '129.00', 'image': None}],
            shipping_fee=Decimal('100.00')
        )

        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['total_products'], 2)
        self.assertEqual(response.data['out_of_stock_products'], 1)
        self.assertEqual(response.data['total_courses'], 1)
        self.assertEqual(response.data['total_orders'], 3)
        # Revenue counts every order regardless of status
        self.assertEqual(response.data['total_revenue'], '2965.00')
        self.assertEqual(response.data['orders_by_status'][Order.STATUS_PENDING], 1)
        self.assertEqual(response.data['orders_by_status'][Order.STATUS_CANCELLED], 1)
        self.assertEqual(response.data['orders_by_status'][Order.STATUS_SHIPPED], 0)

    def test_recent_orders_capped_and_refreshed(self):
        for _ in range(6):
            TestDataFactory.create_order()
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(len(response.data['recent_orders']), 5)

        latest = TestDataFactory.create_order(order_number='ORD20250101120000FFFFFF')
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['total_orders'], 7)
        self.assertEqual(response.data['recent_orders'][0]['order_number'], latest.order_number)

    def test_staff_allowed_customer_denied(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        self.assertEqual(self.client.get('/api/v1/admin/dashboard/').status_code, status.HTTP_200_OK)

        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['redirect'], '/')

        self.client.logout()
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['redirect'], '/')
