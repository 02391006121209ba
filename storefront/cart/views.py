from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
import logging

from storefront.catalog.models import Product
from .serializers import CartItemAddSerializer, CartItemUpdateSerializer
from .store import CartStore

logger = logging.getLogger(__name__)


@api_view(['GET', 'DELETE'])
@permission_classes([AllowAny])
def cart_detail(request):
    """Current basket with total and item count, or empty it"""
    cart = CartStore.for_request(request)
    if request.method == 'DELETE':
        cart.clear()
    return Response(cart.as_dict())


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_item_add(request):
    """Add a product to the basket, snapshotting its name, price and first image"""
    serializer = CartItemAddSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product_id = serializer.validated_data['product_id']
    product = Product.objects.filter(pk=product_id).first()
    if not product:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    if not product.in_stock:
        return Response({'error': f'{product.name} is out of stock'}, status=status.HTTP_400_BAD_REQUEST)

    cart = CartStore.for_request(request)
    cart.add_item(
        {
            'id': product.id,
            'name': product.name,
            'price': product.price,
            'image': product.primary_image,
        },
        serializer.validated_data['quantity'],
    )
    return Response(cart.as_dict(), status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([AllowAny])
def cart_item_detail(request, item_id):
    """Change a line's quantity or drop the line"""
    cart = CartStore.for_request(request)
    if cart.get_line(item_id) is None:
        return Response({'error': 'Item not in cart'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'DELETE':
        cart.remove_item(item_id)
        return Response(cart.as_dict())

    serializer = CartItemUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    cart.update_quantity(item_id, serializer.validated_data['quantity'])
    return Response(cart.as_dict())
