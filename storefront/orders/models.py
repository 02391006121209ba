import copy

from django.core.exceptions import ValidationError
from django.db import models
from decimal import Decimal
from storefront.core.models import User


class Order(models.Model):
    """Customer orders placed through WhatsApp checkout"""
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_DISPATCHED = 'dispatched'
    STATUS_SHIPPED = 'shipped'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_DISPATCHED, 'Dispatched'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    order_number = models.CharField(max_length=50, unique=True, db_index=True)
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True)
    shipping_address = models.TextField()
    # Snapshot of the cart at order time: [{"product_id", "name", "quantity", "price", "image"}]
    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    shipping_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    whatsapp_message = models.TextField(blank=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        if 'items' in field_names:
            instance._original_items = copy.deepcopy(values[field_names.index('items')])
        return instance

    def __str__(self):
        return self.order_number

    def save(self, *args, **kwargs):
        original_items = getattr(self, '_original_items', None)
        if self.pk and original_items is not None and self.items != original_items:
            raise ValidationError({'items': 'Order items cannot be changed after the order is placed.'})
        super().save(*args, **kwargs)
        self._original_items = copy.deepcopy(self.items)

    @property
    def item_count(self):
        return sum(int(item.get('quantity') or 0) for item in self.items or [])

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
