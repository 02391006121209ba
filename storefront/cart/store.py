"""
Shopping cart state.

A cart is a list of lines ``{"id", "name", "price", "quantity", "image"}``
keyed by product id. The transition functions below never mutate their
input; ``CartStore`` wraps them and writes every new state through a
storage adapter so the basket survives between requests.
"""
from decimal import Decimal
import copy
import logging

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = 'storefront.cart'


def _line_quantity(line):
    return int(line.get('quantity') or 0)


def add_item(items, item, quantity=None):
    """Merge ``item`` into the cart; an existing line for the same id gains the quantity"""
    quantity = int(quantity if quantity is not None else item.get('quantity', 1))
    new_items = copy.deepcopy(list(items))
    for line in new_items:
        if line['id'] == item['id']:
            line['quantity'] = _line_quantity(line) + quantity
            return new_items
    line = {
        'id': item['id'],
        'name': item['name'],
        'price': str(item['price']),
        'quantity': quantity,
        'image': item.get('image'),
    }
    new_items.append(line)
    return new_items


def remove_item(items, item_id):
    return [copy.deepcopy(line) for line in items if line['id'] != item_id]


def update_quantity(items, item_id, quantity):
    """Set a line's quantity; zero or less drops the line"""
    quantity = int(quantity)
    if quantity <= 0:
        return remove_item(items, item_id)
    new_items = copy.deepcopy(list(items))
    for line in new_items:
        if line['id'] == item_id:
            line['quantity'] = quantity
    return new_items


def clear_cart(items=None):
    return []


def line_total(line):
    return Decimal(str(line['price'])) * _line_quantity(line)


def cart_total(items):
    return sum((line_total(line) for line in items), Decimal('0.00'))


def cart_item_count(items):
    return sum(_line_quantity(line) for line in items)


class InMemoryCartStorage:
    """Keeps carts in a plain dict; used by tests and scripts"""

    def __init__(self, data=None):
        self.data = data if data is not None else {}

    def load(self, key):
        return copy.deepcopy(self.data.get(key, []))

    def save(self, key, items):
        self.data[key] = copy.deepcopy(items)


class SessionCartStorage:
    """Keeps the cart in the Django session of the current visitor"""

    def __init__(self, session):
        self.session = session

    def load(self, key):
        return copy.deepcopy(self.session.get(key, []))

    def save(self, key, items):
        self.session[key] = items
        self.session.modified = True


class CartStore:
    """One visitor's basket, rehydrated from storage on construction"""

    def __init__(self, storage, key=CART_STORAGE_KEY):
        self.storage = storage
        self.key = key
        self.items = self._rehydrate()

    def _rehydrate(self):
        items = self.storage.load(self.key)
        if not isinstance(items, list):
            logger.warning(f"Discarding malformed cart under '{self.key}'")
            return []
        return [line for line in items if isinstance(line, dict) and 'id' in line]

    def _commit(self, items):
        self.items = items
        self.storage.save(self.key, items)
        return items

    def add_item(self, item, quantity=None):
        return self._commit(add_item(self.items, item, quantity))

    def remove_item(self, item_id):
        return self._commit(remove_item(self.items, item_id))

    def update_quantity(self, item_id, quantity):
        return self._commit(update_quantity(self.items, item_id, quantity))

    def clear(self):
        return self._commit(clear_cart(self.items))

    def get_line(self, item_id):
        for line in self.items:
            if line['id'] == item_id:
                return line
        return None

    @property
    def total(self):
        return cart_total(self.items)

    @property
    def item_count(self):
        return cart_item_count(self.items)

    @property
    def is_empty(self):
        return not self.items

    def as_dict(self):
        return {
            'items': [dict(line, line_total=str(line_total(line))) for line in self.items],
            'total': str(self.total),
            'item_count': self.item_count,
        }

    @classmethod
    def for_request(cls, request):
        return cls(SessionCartStorage(request.session))
