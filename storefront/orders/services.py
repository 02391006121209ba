"""
Checkout: shipping, order numbers, the WhatsApp hand-off and order placement
"""
from decimal import Decimal
from urllib.parse import quote
import logging
import re
import uuid

from django.db import DatabaseError, transaction
from django.utils import timezone

from storefront.cart.store import cart_total, line_total
from storefront.core.addresses import create_saved_address
from storefront.core.utils import get_setting, store_config
from .models import Order

logger = logging.getLogger(__name__)

WHATSAPP_BASE_URL = 'https://wa.me/'
# Characters encodeURIComponent leaves unescaped beyond letters, digits and -_.
URI_COMPONENT_SAFE = "!~*'()"


class EmptyCartError(Exception):
    """Checkout was attempted with nothing in the basket"""


def _same_place(a, b):
    return (a or '').strip().lower() == (b or '').strip().lower()


def calculate_shipping_fee(state, country='India'):
    """Flat home-region rate inside the home state, flat default rate everywhere else"""
    if _same_place(state, store_config('HOME_STATE')) and _same_place(country, store_config('HOME_COUNTRY')):
        return Decimal(store_config('HOME_SHIPPING_FEE')).quantize(Decimal('0.01'))
    return Decimal(store_config('DEFAULT_SHIPPING_FEE')).quantize(Decimal('0.01'))


def generate_order_number():
    """Generate a unique order number: ORD + timestamp + random suffix"""
    timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
    order_number = f"ORD{timestamp}{uuid.uuid4().hex[:6].upper()}"

    # Ensure uniqueness
    while Order.objects.filter(order_number=order_number).exists():
        order_number = f"ORD{timestamp}{uuid.uuid4().hex[:6].upper()}"

    return order_number


def format_amount(amount):
    return f"₹{Decimal(str(amount)).quantize(Decimal('0.01'))}"


def flatten_address(address, pincode, state='', country=''):
    parts = [address.strip(), pincode.strip()]
    parts.extend(part.strip() for part in (state, country) if part and part.strip())
    return ', '.join(parts)


def build_whatsapp_message(order_number, items, subtotal, shipping_fee, total, customer, notes=''):
    """
    Multi-line order summary sent to the store over WhatsApp.

    ``customer`` carries name, phone, email, address, pincode, state and country.
    """
    item_lines = '\n'.join(
        f"{item['name']} x{item['quantity']} - {format_amount(line_total(item))}"
        for item in items
    )

    contact = [f"Name: {customer['name']}", f"Phone: {customer['phone']}"]
    if customer.get('email'):
        contact.append(f"Email: {customer['email']}")

    address = [customer['address'], f"{customer.get('state', '')} - {customer['pincode']}".strip(' -')]
    if customer.get('country'):
        address.append(customer['country'])

    sections = [
        f"🛒 *New Order*\nOrder ID: #{order_number}",
        f"*Items:*\n{item_lines}",
        f"*Subtotal:* {format_amount(subtotal)}\n"
        f"*Shipping:* {format_amount(shipping_fee)}\n"
        f"*Total:* {format_amount(total)}",
        "*Customer Details:*\n" + '\n'.join(contact),
        "*Delivery Address:*\n" + '\n'.join(address),
    ]
    if notes and notes.strip():
        sections.append(f"*Notes:* {notes.strip()}")
    sections.append("Please confirm this order and provide payment instructions.")
    return '\n\n'.join(sections)


def build_enrollment_message(course):
    """WhatsApp text asking the store to enroll the sender in a course"""
    return (
        "Hi! I want to enroll in:\n\n"
        f"*{course.name}*\n"
        f"Price: {format_amount(course.price)}\n"
        f"Duration: {course.duration}\n\n"
        "Please help me with the enrollment process."
    )


def build_whatsapp_url(number, message):
    """wa.me deep link; the text is escaped the way a browser's encodeURIComponent does"""
    digits = re.sub(r'\D', '', str(number or ''))
    return f"{WHATSAPP_BASE_URL}{digits}?text={quote(message, safe=URI_COMPONENT_SAFE)}"


def get_whatsapp_number():
    return get_setting('whatsapp_number', store_config('DEFAULT_WHATSAPP_NUMBER'))


def snapshot_items(items):
    """Freeze cart lines into the order; later catalog edits never touch placed orders"""
    return [
        {
            'product_id': line['id'],
            'name': line['name'],
            'quantity': int(line['quantity']),
            'price': str(line['price']),
            'image': line.get('image'),
        }
        for line in items
    ]


def _save_address_best_effort(user, customer):
    try:
        create_saved_address(
            user,
            address=customer['address'],
            phone=customer['phone'],
            pincode=customer['pincode'],
            state=customer.get('state', ''),
            country=customer.get('country') or 'India',
        )
    except DatabaseError as e:
        logger.warning(f"Could not save address for {user.username}: {str(e)}")


def place_order(items, customer, notes='', user=None, save_address=False):
    """
    Create a pending order from cart lines and build its WhatsApp hand-off.

    Returns ``(order, whatsapp_url)``. Raises ``EmptyCartError`` before any
    database access when there are no lines; database errors propagate.
    """
    if not items:
        raise EmptyCartError('Your cart is empty')

    if save_address and user is not None and user.is_authenticated:
        _save_address_best_effort(user, customer)

    subtotal = cart_total(items)
    shipping_fee = calculate_shipping_fee(customer.get('state', ''), customer.get('country') or 'India')
    total = subtotal + shipping_fee

    with transaction.atomic():
        order_number = generate_order_number()
        message = build_whatsapp_message(order_number, items, subtotal, shipping_fee, total, customer, notes)
        order = Order.objects.create(
            order_number=order_number,
            customer_name=customer['name'],
            customer_phone=customer['phone'],
            customer_email=customer.get('email') or '',
            shipping_address=flatten_address(
                customer['address'], customer['pincode'],
                customer.get('state', ''), customer.get('country', ''),
            ),
            items=snapshot_items(items),
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            total=total,
            status=Order.STATUS_PENDING,
            notes=notes or '',
            whatsapp_message=message,
            user=user if user is not None and user.is_authenticated else None,
        )

    logger.info(f"Order placed: {order.order_number} total {total}")
    return order, build_whatsapp_url(get_whatsapp_number(), message)
