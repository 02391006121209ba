"""
Test suite for the orders module
Tests: shipping, order numbers, WhatsApp hand-off, checkout, tracking, admin order management, invoices
"""
from decimal import Decimal
from urllib.parse import unquote
from unittest.mock import patch
import re

from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status

from storefront.core.models import SavedAddress
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Order
from storefront.orders.services import (
    calculate_shipping_fee, generate_order_number, build_whatsapp_message, build_whatsapp_url, place_order,
    EmptyCartError,
)
from storefront.orders.tracking import build_tracking_progress

CUSTOMER = {
    'name': 'Ajay Kumar',
    'phone': '9876543210',
    'email': 'ajay@test.com',
    'address': '12 MG Road, Kochi',
    'pincode': '682001',
    'state': 'Kerala',
    'country': 'India',
}

CART_LINES = [
    {'id': 1, 'name': 'Arduino Uno R3', 'price': '649.00', 'quantity': 2, 'image': None},
    {'id': 2, 'name': 'SG90 Servo', 'price': '129.00', 'quantity': 1, 'image': 'https://cdn.test/sg90.jpg'},
]


class ShippingAndNumberingTests(TestCase):
    """Test shipping rates and order number generation"""

    def test_home_state_rate(self):
        self.assertEqual(calculate_shipping_fee('Kerala', 'India'), Decimal('70.00'))
        self.assertEqual(calculate_shipping_fee(' kerala ', 'INDIA'), Decimal('70.00'))

    def test_default_rate(self):
        self.assertEqual(calculate_shipping_fee('Tamil Nadu', 'India'), Decimal('100.00'))
        self.assertEqual(calculate_shipping_fee('Kerala', 'Nepal'), Decimal('100.00'))
        self.assertEqual(calculate_shipping_fee('Maharashtra', 'India'), Decimal('100.00'))
        self.assertEqual(calculate_shipping_fee('Kerala', 'United States'), Decimal('100.00'))
        self.assertEqual(calculate_shipping_fee('', ''), Decimal('100.00'))

    def test_order_number_format(self):
        self.assertRegex(generate_order_number(), r'^ORD\d{14}[0-9A-F]{6}$')

    def test_order_numbers_unique(self):
        numbers = {generate_order_number() for _ in range(50)}
        self.assertEqual(len(numbers), 50)


class WhatsAppMessageTests(TestCase):
    """Test the WhatsApp order summary and deep link"""

    def _message(self, notes='', customer=None):
        return build_whatsapp_message(
            'ORD20250101120000ABC123', CART_LINES, Decimal('1427.00'), Decimal('70.00'),
            Decimal('1497.00'), customer or CUSTOMER, notes
        )

    def test_message_sections(self):
        message = self._message()
        self.assertIn('Order ID: #ORD20250101120000ABC123', message)
        self.assertIn('Arduino Uno R3 x2 - ₹1298.00', message)
        self.assertIn('SG90 Servo x1 - ₹129.00', message)
        self.assertIn('*Subtotal:* ₹1427.00', message)
        self.assertIn('*Shipping:* ₹70.00', message)
        self.assertIn('*Total:* ₹1497.00', message)
        self.assertIn('Email: ajay@test.com', message)
        self.assertIn('Kerala - 682001', message)
        self.assertNotIn('*Notes:*', message)
        self.assertTrue(message.endswith('Please confirm this order and provide payment instructions.'))

    def test_message_optional_parts(self):
        message = self._message(notes='  Call before delivery ', customer=dict(CUSTOMER, email=''))
        self.assertIn('*Notes:* Call before delivery', message)
        self.assertNotIn('Email:', message)

    def test_url_encoding(self):
        url = build_whatsapp_url('+91 98765-43210', "Hi & bye\n#1 (kit)!")
        self.assertEqual(url, "https://wa.me/919876543210?text=Hi%20%26%20bye%0A%231%20(kit)!")

    def test_url_round_trips_message(self):
        message = self._message(notes='Gift wrap')
        url = build_whatsapp_url('919876543210', message)
        self.assertEqual(unquote(url.split('?text=', 1)[1]), message)


class PlaceOrderTests(TestCase):
    """Test order placement and the items snapshot"""

    def setUp(self):
        cache.clear()

    def test_place_order(self):
        order, url = place_order(CART_LINES, CUSTOMER, notes='Leave at gate')
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.subtotal, Decimal('1427.00'))
        self.assertEqual(order.shipping_fee, Decimal('70.00'))
        self.assertEqual(order.total, Decimal('1497.00'))
        self.assertEqual(order.shipping_address, '12 MG Road, Kochi, 682001, Kerala, India')
        self.assertEqual(order.items[0], {
            'product_id': 1, 'name': 'Arduino Uno R3', 'quantity': 2, 'price': '649.00', 'image': None
        })
        self.assertIn('Leave at gate', order.whatsapp_message)
        self.assertTrue(url.startswith('https://wa.me/919876543210?text='))
        self.assertIsNone(order.user)

    def test_whatsapp_number_from_settings(self):
        TestDataFactory.create_setting('whatsapp_number', '+91 90000 11111')
        _, url = place_order(CART_LINES, CUSTOMER)
        self.assertTrue(url.startswith('https://wa.me/919000011111?text='))

    def test_empty_cart_creates_nothing(self):
        with self.assertRaises(EmptyCartError):
            place_order([], CUSTOMER)
        self.assertFalse(Order.objects.exists())

    def test_items_cannot_change_after_placement(self):
        order = TestDataFactory.create_order()
        order = Order.objects.get(pk=order.pk)
        order.items[0]['quantity'] = 10
        with self.assertRaises(ValidationError):
            order.save()

        order = Order.objects.get(pk=order.pk)
        self.assertEqual(order.items[0]['quantity'], 2)
        order.status = Order.STATUS_CONFIRMED
        order.save()
        self.assertEqual(Order.objects.get(pk=order.pk).status, Order.STATUS_CONFIRMED)

    def test_snapshot_survives_catalog_edits(self):
        product = TestDataFactory.create_product(name='Arduino Uno R3', price=Decimal('649.00'))
        lines = [{'id': product.id, 'name': product.name, 'price': str(product.price), 'quantity': 1, 'image': None}]
        order, _ = place_order(lines, CUSTOMER)

        product.name = 'Arduino Uno R4'
        product.price = Decimal('999.00')
        product.save()

        order.refresh_from_db()
        self.assertEqual(order.items[0]['name'], 'Arduino Uno R3')
        self.assertEqual(order.items[0]['price'], '649.00')


class CheckoutAPITests(TestCase):
    """Test the checkout endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(name='Arduino Uno R3', price=Decimal('649.00'))

    def _fill_cart(self, quantity=2):
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': quantity}, format='json')

    def test_summary_for_empty_cart(self):
        response = self.client.get('/api/v1/checkout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['empty'])

    def test_summary_with_shipping_estimate(self):
        self._fill_cart()
        response = self.client.get('/api/v1/checkout/?state=Kerala')
        self.assertFalse(response.data['empty'])
        self.assertEqual(response.data['total'], '1298.00')
        self.assertEqual(response.data['shipping_fee'], '70.00')
        self.assertEqual(response.data['grand_total'], '1368.00')

        response = self.client.get('/api/v1/checkout/?state=Goa')
        self.assertEqual(response.data['grand_total'], '1398.00')

    def test_empty_cart_rejected(self):
        response = self.client.post('/api/v1/checkout/', CUSTOMER, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Your cart is empty')
        self.assertTrue(response.data['empty_cart'])

    def test_required_fields(self):
        self._fill_cart()
        payload = dict(CUSTOMER)
        del payload['state']
        payload['phone'] = ''
        response = self.client.post('/api/v1/checkout/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('state', response.data)
        self.assertIn('phone', response.data)
        self.assertFalse(Order.objects.exists())
        self.assertEqual(self.client.get('/api/v1/cart/').data['item_count'], 2)

    def test_checkout_success_clears_cart(self):
        self._fill_cart()
        response = self.client.post('/api/v1/checkout/', dict(CUSTOMER, notes='Gift wrap'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Order created! Redirecting to WhatsApp...')
        self.assertEqual(response.data['order']['total'], '1368.00')
        self.assertEqual(response.data['order']['status'], Order.STATUS_PENDING)
        self.assertTrue(response.data['whatsapp_url'].startswith('https://wa.me/'))
        self.assertEqual(response.data['redirect'], '/')

        order = Order.objects.get()
        self.assertEqual(order.items[0]['product_id'], self.product.id)
        self.assertEqual(order.notes, 'Gift wrap')
        self.assertEqual(self.client.get('/api/v1/cart/').data['items'], [])

    def test_country_defaults_to_india(self):
        self._fill_cart(1)
        payload = dict(CUSTOMER)
        del payload['country']
        self.client.post('/api/v1/checkout/', payload, format='json')
        order = Order.objects.get()
        self.assertTrue(order.shipping_address.endswith('India'))
        self.assertEqual(order.shipping_fee, Decimal('70.00'))

    def test_signed_in_checkout_saves_address(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        self._fill_cart(1)

        response = self.client.post('/api/v1/checkout/', dict(CUSTOMER, save_address=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Order.objects.get().user, user)
        address = SavedAddress.objects.get(user=user)
        self.assertEqual(address.pincode, '682001')
        self.assertTrue(address.is_default)

    def test_saved_addresses_in_summary(self):
        user = TestDataFactory.create_user()
        TestDataFactory.create_address(user, is_default=True)
        self.client.authenticate_user(user)
        self._fill_cart(1)
        response = self.client.get('/api/v1/checkout/')
        self.assertEqual(len(response.data['saved_addresses']), 1)

    def test_order_insert_failure_keeps_cart(self):
        self._fill_cart()
        with patch('storefront.orders.views.place_order', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('storefront.orders.views', level='ERROR'):
                response = self.client.post('/api/v1/checkout/', CUSTOMER, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Failed to create order. Please try again.')
        self.assertEqual(self.client.get('/api/v1/cart/').data['item_count'], 2)

    def test_address_save_failure_still_places_order(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        self._fill_cart(1)
        with patch('storefront.orders.services.create_saved_address', side_effect=DatabaseError('disk full')):
            with self.assertLogs('storefront.orders.services', level='WARNING') as logs:
                response = self.client.post('/api/v1/checkout/', dict(CUSTOMER, save_address=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(any('Could not save address' in line for line in logs.output))
        self.assertEqual(Order.objects.get().user, user)
        self.assertFalse(SavedAddress.objects.filter(user=user).exists())
        self.assertEqual(self.client.get('/api/v1/cart/').data['items'], [])


class OrderTrackingTests(TestCase):
    """Test public order lookup and the progress indicator"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_progress_stages(self):
        progress = build_tracking_progress(Order.STATUS_CONFIRMED)
        self.assertEqual(progress['current_stage'], Order.STATUS_CONFIRMED)
        self.assertEqual([stage['active'] for stage in progress['stages']], [True, True, False, False])
        self.assertEqual(progress['stages'][0]['label'], 'Order Placed')

    def test_dispatched_shows_as_shipped(self):
        progress = build_tracking_progress(Order.STATUS_DISPATCHED)
        self.assertEqual(progress['current_stage'], Order.STATUS_SHIPPED)
        self.assertEqual(progress['current_index'], 2)
        self.assertEqual(progress['status'], Order.STATUS_DISPATCHED)

    def test_cancelled_has_no_active_stage(self):
        progress = build_tracking_progress(Order.STATUS_CANCELLED)
        self.assertTrue(progress['is_cancelled'])
        self.assertIsNone(progress['current_stage'])
        self.assertFalse(any(stage['active'] for stage in progress['stages']))

    def test_track_by_number(self):
        TestDataFactory.create_order(order_number='ORD20250101120000ABC123', status=Order.STATUS_DELIVERED)
        response = self.client.get('/api/v1/orders/track/ORD20250101120000ABC123/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['customer_name'], 'Ajay Kumar')
        self.assertTrue(all(stage['active'] for stage in response.data['progress']['stages']))

        response = self.client.get('/api/v1/orders/track/?order_number=ORD20250101120000ABC123')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_track_unknown_order(self):
        response = self.client.get('/api/v1/orders/track/ORDMISSING/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Order Not Found')
        self.assertEqual(response.data['order_number'], 'ORDMISSING')

    def test_track_requires_number(self):
        response = self.client.get('/api/v1/orders/track/?order_number=')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderAdminTests(TestCase):
    """Test back-office order management"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff())
        self.order = TestDataFactory.create_order()

    def test_list_newest_first_with_status_filter(self):
        shipped = TestDataFactory.create_order(status=Order.STATUS_SHIPPED)
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual([o['id'] for o in response.data], [shipped.id, self.order.id])

        response = self.client.get('/api/v1/admin/orders/?status=shipped')
        self.assertEqual([o['id'] for o in response.data], [shipped.id])

    def test_status_can_move_anywhere(self):
        url = f'/api/v1/admin/orders/{self.order.id}/status/'
        for new_status in (Order.STATUS_DELIVERED, Order.STATUS_PENDING, Order.STATUS_CANCELLED):
            response = self.client.patch(url, {'status': new_status}, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['status'], new_status)

        response = self.client.patch(url, {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_change_with_admin_notes(self):
        response = self.client.post(f'/api/v1/admin/orders/{self.order.id}/status/', {
            'status': Order.STATUS_CONFIRMED, 'admin_notes': 'Paid via UPI'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.admin_notes, 'Paid via UPI')

    def test_items_cannot_be_edited(self):
        response = self.client.patch(f'/api/v1/admin/orders/{self.order.id}/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.order.refresh_from_db()
        self.assertEqual(len(self.order.items), 1)

    def test_edit_notes_and_delete(self):
        response = self.client.patch(f'/api/v1/admin/orders/{self.order.id}/', {'admin_notes': 'Fragile'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['admin_notes'], 'Fragile')
        self.assertEqual(response.data['item_count'], 2)

        response = self.client.delete(f'/api/v1/admin/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Order.objects.filter(pk=self.order.id).exists())

    def test_invoice_html(self):
        TestDataFactory.create_setting('payment_upi_id', 'edukkit@upi')
        response = self.client.get(f'/api/v1/admin/orders/{self.order.id}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/html'))
        html = response.content.decode()
        self.assertIn(self.order.order_number, html)
        self.assertIn('Arduino Uno R3', html)
        self.assertIn('1368.00', html)
        self.assertIn('edukkit@upi', html)
        self.assertIn('window.print', html)

    def test_customer_cannot_manage_orders(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get(f'/api/v1/admin/orders/{self.order.id}/invoice/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(re.search(r'admin', str(response.data['detail']), re.IGNORECASE))
