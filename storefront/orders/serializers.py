from rest_framework import serializers
from .models import Order


class CheckoutSerializer(serializers.Serializer):
    """Checkout form; every contact and address field except email is required"""
    name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    address = serializers.CharField()
    pincode = serializers.CharField(max_length=20)
    state = serializers.CharField(max_length=100)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True, default='India')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    save_address = serializers.BooleanField(required=False, default=False)

    def validate_country(self, value):
        return value.strip() or 'India'


class OrderSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    username = serializers.CharField(source='user.username', read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer_name', 'customer_phone', 'customer_email',
            'shipping_address', 'items', 'item_count', 'subtotal', 'shipping_fee', 'total',
            'status', 'status_display', 'notes', 'admin_notes', 'whatsapp_message',
            'user', 'username', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'order_number', 'items', 'subtotal', 'shipping_fee', 'total',
            'whatsapp_message', 'user', 'created_at', 'updated_at'
        ]


class OrderStatusSerializer(serializers.Serializer):
    """Any status may move to any other"""
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class OrderTrackingSerializer(serializers.ModelSerializer):
    """What a customer sees when looking an order up by number"""
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'order_number', 'customer_name', 'items', 'subtotal', 'shipping_fee', 'total',
            'status', 'status_display', 'created_at', 'updated_at'
        ]
        read_only_fields = fields
