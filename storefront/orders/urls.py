from django.urls import path
from .views import (
    checkout, track_order, track_order_by_number,
    admin_order_list, admin_order_detail, admin_order_status, admin_order_invoice,
)

urlpatterns = [
    # Storefront endpoints
    path('checkout/', checkout, name='checkout'),
    path('orders/track/', track_order, name='order-track'),
    path('orders/track/<str:order_number>/', track_order_by_number, name='order-track-by-number'),

    # Admin endpoints
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/', admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/status/', admin_order_status, name='admin-order-status'),
    path('admin/orders/<int:pk>/invoice/', admin_order_invoice, name='admin-order-invoice'),
]
