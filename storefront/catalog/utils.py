"""
Catalog helpers: slugs, SKUs and discount badges
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
import time

from django.db import connection


def slugify_name(name):
    """Lowercase the name and collapse each whitespace run into a hyphen.

    Punctuation is kept as-is, e.g. "Arduino  Uno R3" -> "arduino-uno-r3".
    """
    if not name:
        return ''
    return re.sub(r'\s+', '-', name.strip().lower())


def generate_sku():
    """Generate a unique SKU of the form SKU-<milliseconds since epoch>"""
    from .models import Product

    millis = int(time.time() * 1000)
    sku = f"SKU-{millis}"

    # Ensure uniqueness
    while Product.objects.filter(sku=sku).exists():
        millis += 1
        sku = f"SKU-{millis}"

    return sku


def discount_percent(price, mrp):
    """Whole-number discount off the MRP, or None when there is no discount"""
    if price is None or mrp is None:
        return None
    try:
        price = Decimal(str(price))
        mrp = Decimal(str(mrp))
    except (InvalidOperation, ValueError):
        return None
    if mrp <= 0 or mrp <= price:
        return None
    percent = (mrp - price) / mrp * 100
    return int(percent.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def filter_json_list_contains(queryset, field_name, value):
    """Rows whose JSON list field holds ``value``.

    SQLite has no JSON containment lookup, so there we match the quoted
    element inside the serialized list instead.
    """
    if connection.features.supports_json_field_contains:
        return queryset.filter(**{f'{field_name}__contains': [value]})
    return queryset.filter(**{f'{field_name}__icontains': f'"{value}"'})
