"""Printable HTML invoice for an order"""
from decimal import Decimal

from django.template.loader import render_to_string

from storefront.cart.store import line_total
from storefront.core.utils import get_settings_map, store_config

PAYMENT_SETTING_KEYS = [
    ('payment_bank', 'Bank'),
    ('payment_account_number', 'A/C No'),
    ('payment_ifsc', 'IFSC'),
    ('payment_upi_id', 'UPI ID'),
]


def build_invoice_context(order, settings_map=None):
    if settings_map is None:
        settings_map = get_settings_map()

    lines = []
    for index, item in enumerate(order.items or [], start=1):
        lines.append({
            'number': index,
            'name': item.get('name', ''),
            'price': Decimal(str(item.get('price') or 0)),
            'quantity': int(item.get('quantity') or 0),
            'total': line_total(item),
        })
    subtotal = order.subtotal or sum((line['total'] for line in lines), Decimal('0.00'))

    return {
        'order': order,
        'store_name': settings_map.get('store_name') or store_config('STORE_NAME'),
        'company_address': settings_map.get('company_address', ''),
        'company_website': settings_map.get('company_website', ''),
        'store_email': settings_map.get('store_email', ''),
        'lines': lines,
        'subtotal': subtotal,
        'shipping_fee': order.shipping_fee,
        'total': order.total,
        'payment_details': [
            (label, settings_map[key]) for key, label in PAYMENT_SETTING_KEYS if settings_map.get(key)
        ],
    }


def render_invoice_html(order, settings_map=None, auto_print=True):
    """Standalone HTML document with inline styles; opens the print dialog on load"""
    context = build_invoice_context(order, settings_map)
    context['auto_print'] = auto_print
    return render_to_string('orders/invoice.html', context)
