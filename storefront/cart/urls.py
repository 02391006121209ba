from django.urls import path
from .views import cart_detail, cart_item_add, cart_item_detail

urlpatterns = [
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/items/', cart_item_add, name='cart-item-add'),
    path('cart/items/<int:item_id>/', cart_item_detail, name='cart-item-detail'),
]
