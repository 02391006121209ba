from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, renderer_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONRenderer, StaticHTMLRenderer
from django.db import DatabaseError
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
import logging

from storefront.cart.store import CartStore
from storefront.core.models import SavedAddress
from storefront.core.permissions import IsStoreStaff
from storefront.core.serializers import SavedAddressSerializer
from storefront.core.utils import store_config
from .filters import OrderFilter
from .invoice import render_invoice_html
from .models import Order
from .serializers import CheckoutSerializer, OrderSerializer, OrderStatusSerializer, OrderTrackingSerializer
from .services import EmptyCartError, calculate_shipping_fee, place_order
from .tracking import build_tracking_progress

logger = logging.getLogger(__name__)

ORDER_CREATED_MESSAGE = 'Order created! Redirecting to WhatsApp...'
ORDER_FAILED_MESSAGE = 'Failed to create order. Please try again.'
EMPTY_CART_MESSAGE = 'Your cart is empty'


# Checkout views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def checkout(request):
    """
    GET: order summary for the checkout page, with a shipping estimate when
    ``state`` (and optionally ``country``) is given.

    POST: place the order, clear the cart and hand back the WhatsApp link.
    """
    cart = CartStore.for_request(request)

    if request.method == 'GET':
        if cart.is_empty:
            return Response({'empty': True, **cart.as_dict()})

        data = {'empty': False, **cart.as_dict(), 'shipping_fee': None, 'grand_total': None}
        state = request.query_params.get('state', '').strip()
        if state:
            country = request.query_params.get('country', '').strip() or 'India'
            shipping_fee = calculate_shipping_fee(state, country)
            data['shipping_fee'] = str(shipping_fee)
            data['grand_total'] = str(cart.total + shipping_fee)
        if request.user and request.user.is_authenticated:
            addresses = SavedAddress.objects.filter(user=request.user)
            data['saved_addresses'] = SavedAddressSerializer(addresses, many=True).data
        return Response(data)

    if cart.is_empty:
        return Response({'error': EMPTY_CART_MESSAGE, 'empty_cart': True}, status=status.HTTP_400_BAD_REQUEST)

    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    customer = {
        'name': data['name'],
        'phone': data['phone'],
        'email': data.get('email', ''),
        'address': data['address'],
        'pincode': data['pincode'],
        'state': data['state'],
        'country': data.get('country') or 'India',
    }
    try:
        order, whatsapp_url = place_order(
            cart.items,
            customer,
            notes=data.get('notes', ''),
            user=request.user,
            save_address=data.get('save_address', False),
        )
    except EmptyCartError:
        return Response({'error': EMPTY_CART_MESSAGE, 'empty_cart': True}, status=status.HTTP_400_BAD_REQUEST)
    except DatabaseError as e:
        logger.error(f"Checkout error: {str(e)}")
        return Response({'error': ORDER_FAILED_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    cart.clear()
    return Response({
        'order': OrderTrackingSerializer(order).data,
        'whatsapp_url': whatsapp_url,
        'message': ORDER_CREATED_MESSAGE,
        'redirect': store_config('CHECKOUT_REDIRECT'),
        'redirect_delay_ms': store_config('CHECKOUT_REDIRECT_DELAY_MS'),
    }, status=status.HTTP_201_CREATED)


# Tracking views
def _tracking_response(order_number):
    order_number = (order_number or '').strip()
    if not order_number:
        return Response({'error': 'order_number is required'}, status=status.HTTP_400_BAD_REQUEST)

    order = Order.objects.filter(order_number=order_number).first()
    if not order:
        return Response({
            'error': 'Order Not Found',
            'order_number': order_number,
            'message': f'We couldn\'t find an order with number "{order_number}". '
                       'Please check the order number and try again.',
        }, status=status.HTTP_404_NOT_FOUND)

    return Response({
        'order': OrderTrackingSerializer(order).data,
        'progress': build_tracking_progress(order.status),
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def track_order(request):
    """Look an order up by exact order number (?order_number=)"""
    return _tracking_response(request.query_params.get('order_number'))


@api_view(['GET'])
@permission_classes([AllowAny])
def track_order_by_number(request, order_number):
    return _tracking_response(order_number)


# Admin views
@api_view(['GET'])
@permission_classes([IsStoreStaff])
def admin_order_list(request):
    """All orders newest first, filterable by status"""
    queryset = Order.objects.select_related('user').order_by('-created_at', '-id')
    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(filterset.qs, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsStoreStaff])
def admin_order_detail(request, pk):
    """Retrieve, edit notes/contact or delete an order; items stay as placed"""
    order = get_object_or_404(Order.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)
    elif request.method == 'PATCH':
        if 'items' in request.data:
            return Response(
                {'items': ['Order items cannot be changed after the order is placed.']},
                status=status.HTTP_400_BAD_REQUEST
            )
        serializer = OrderSerializer(order, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            serializer.save()
        except DatabaseError as e:
            logger.error(f"Error updating order {order.order_number}: {str(e)}")
            return Response({'error': 'Failed to update order'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(serializer.data)
    else:  # DELETE
        try:
            order.delete()
        except DatabaseError as e:
            logger.error(f"Error deleting order {order.order_number}: {str(e)}")
            return Response({'error': 'Failed to delete order'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH', 'POST'])
@permission_classes([IsStoreStaff])
def admin_order_status(request, pk):
    """Move an order to any status"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    previous = order.status
    order.status = serializer.validated_data['status']
    update_fields = ['status', 'updated_at']
    if 'admin_notes' in serializer.validated_data:
        order.admin_notes = serializer.validated_data['admin_notes']
        update_fields.append('admin_notes')
    try:
        order.save(update_fields=update_fields)
    except DatabaseError as e:
        logger.error(f"Error updating order status {order.order_number}: {str(e)}")
        return Response({'error': 'Failed to update order status'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(f"Order {order.order_number} status {previous} -> {order.status} by {request.user.username}")
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@renderer_classes([JSONRenderer, StaticHTMLRenderer])
@permission_classes([IsStoreStaff])
def admin_order_invoice(request, pk):
    """Printable HTML invoice"""
    order = get_object_or_404(Order, pk=pk)
    return HttpResponse(render_invoice_html(order), content_type='text/html; charset=utf-8')
