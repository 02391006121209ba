"""
Test suite for the cart module
Tests: cart transitions, storage rehydration, cart API
"""
from decimal import Decimal

from django.test import TestCase, SimpleTestCase
from rest_framework import status

from storefront.cart import store
from storefront.cart.store import CartStore, InMemoryCartStorage, CART_STORAGE_KEY
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient

UNO = {'id': 1, 'name': 'Arduino Uno R3', 'price': Decimal('649.00'), 'image': None}
SERVO = {'id': 2, 'name': 'SG90 Servo', 'price': Decimal('129.50'), 'image': 'https://cdn.test/sg90.jpg'}


class CartTransitionTests(SimpleTestCase):
    """Test the pure cart transition functions"""

    def test_add_new_line(self):
        items = store.add_item([], UNO, 2)
        self.assertEqual(items, [{'id': 1, 'name': 'Arduino Uno R3', 'price': '649.00', 'quantity': 2, 'image': None}])

    def test_add_same_product_merges_quantity(self):
        items = store.add_item([], UNO, 1)
        items = store.add_item(items, UNO, 3)
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]['quantity'], 4)

    def test_transitions_do_not_mutate_input(self):
        original = store.add_item([], UNO, 1)
        store.add_item(original, UNO, 5)
        store.update_quantity(original, 1, 9)
        store.remove_item(original, 1)
        self.assertEqual(original[0]['quantity'], 1)

    def test_update_quantity(self):
        items = store.add_item(store.add_item([], UNO, 1), SERVO, 1)
        items = store.update_quantity(items, 2, 6)
        self.assertEqual(store.cart_item_count(items), 7)

    def test_update_to_zero_removes_line(self):
        items = store.add_item(store.add_item([], UNO, 1), SERVO, 1)
        self.assertEqual([line['id'] for line in store.update_quantity(items, 1, 0)], [2])
        self.assertEqual([line['id'] for line in store.update_quantity(items, 1, -3)], [2])

    def test_remove_unknown_id_is_noop(self):
        items = store.add_item([], UNO, 1)
        self.assertEqual(store.remove_item(items, 99), items)

    def test_totals(self):
        items = store.add_item(store.add_item([], UNO, 2), SERVO, 3)
        self.assertEqual(store.cart_total(items), Decimal('1686.50'))
        self.assertEqual(store.cart_item_count(items), 5)
        self.assertEqual(store.cart_total([]), Decimal('0.00'))
        self.assertEqual(store.clear_cart(items), [])


class CartStoreTests(SimpleTestCase):
    """Test CartStore persistence through a storage adapter"""

    def test_state_survives_reload(self):
        storage = InMemoryCartStorage()
        cart = CartStore(storage)
        cart.add_item(UNO, 2)
        cart.add_item(SERVO)

        reloaded = CartStore(storage)
        self.assertEqual(reloaded.item_count, 3)
        self.assertEqual(reloaded.total, Decimal('1427.50'))
        self.assertEqual(reloaded.get_line(2)['image'], 'https://cdn.test/sg90.jpg')

    def test_clear_persists(self):
        storage = InMemoryCartStorage()
        cart = CartStore(storage)
        cart.add_item(UNO, 1)
        cart.clear()
        self.assertTrue(CartStore(storage).is_empty)

    def test_malformed_storage_is_discarded(self):
        storage = InMemoryCartStorage({CART_STORAGE_KEY: 'not a list'})
        self.assertTrue(CartStore(storage).is_empty)

        storage = InMemoryCartStorage({CART_STORAGE_KEY: [{'name': 'no id'}, 'junk', dict(UNO, price='649.00', quantity=1)]})
        cart = CartStore(storage)
        self.assertEqual([line['id'] for line in cart.items], [1])

    def test_as_dict(self):
        cart = CartStore(InMemoryCartStorage())
        cart.add_item(UNO, 2)
        data = cart.as_dict()
        self.assertEqual(data['total'], '1298.00')
        self.assertEqual(data['item_count'], 2)
        self.assertEqual(data['items'][0]['line_total'], '1298.00')


class CartAPITests(TestCase):
    """Test the session-backed cart endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(
            name='Arduino Uno R3', price=Decimal('649.00'), images=['https://cdn.test/uno.jpg']
        )

    def test_empty_cart(self):
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'items': [], 'total': '0.00', 'item_count': 0})

    def test_add_item_snapshots_product(self):
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        line = response.data['items'][0]
        self.assertEqual(line['name'], 'Arduino Uno R3')
        self.assertEqual(line['price'], '649.00')
        self.assertEqual(line['image'], 'https://cdn.test/uno.jpg')
        self.assertEqual(response.data['total'], '1298.00')

    def test_add_twice_merges(self):
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id}, format='json')
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id}, format='json')
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['item_count'], 2)

    def test_add_out_of_stock_rejected(self):
        servo = TestDataFactory.create_product(name='SG90 Servo', stock=0)
        response = self.client.post('/api/v1/cart/items/', {'product_id': servo.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'SG90 Servo is out of stock')
        self.assertEqual(self.client.get('/api/v1/cart/').data['item_count'], 0)

    def test_add_unknown_product(self):
        response = self.client.post('/api/v1/cart/items/', {'product_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_rejects_zero_quantity(self):
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_remove_line(self):
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id}, format='json')
        url = f'/api/v1/cart/items/{self.product.id}/'

        response = self.client.patch(url, {'quantity': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item_count'], 5)

        response = self.client.patch(url, {'quantity': 0}, format='json')
        self.assertEqual(response.data['items'], [])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_line_and_clear(self):
        other = TestDataFactory.create_product()
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id}, format='json')
        self.client.post('/api/v1/cart/items/', {'product_id': other.id}, format='json')

        response = self.client.delete(f'/api/v1/cart/items/{self.product.id}/')
        self.assertEqual([line['id'] for line in response.data['items']], [other.id])

        response = self.client.delete('/api/v1/cart/')
        self.assertEqual(response.data['items'], [])
        self.assertEqual(self.client.get('/api/v1/cart/').data['item_count'], 0)
