import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db.models import Sum, Count
from decimal import Decimal

from storefront.catalog.models import Product, Course
from storefront.core.cache_utils import cached_query, DASHBOARD_CACHE_TTL, DASHBOARD_NAMESPACE
from storefront.core.permissions import IsStoreStaff
from storefront.core.utils import store_config
from storefront.orders.models import Order

logger = logging.getLogger(__name__)

RECENT_ORDERS_LIMIT = 5


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, namespace=DASHBOARD_NAMESPACE)
def get_dashboard_stats():
    """Headline numbers for the back-office dashboard"""
    total_revenue = Order.objects.aggregate(
        total=Sum('total')
    )['total'] or Decimal('0.00')

    status_counts = {
        row['status']: row['count']
        for row in Order.objects.order_by().values('status').annotate(count=Count('id'))
    }
    orders_by_status = {key: status_counts.get(key, 0) for key, _ in Order.STATUS_CHOICES}

    recent_orders = [
        {
            'id': order.id,
            'order_number': order.order_number,
            'customer_name': order.customer_name,
            'total': str(order.total),
            'status': order.status,
            'created_at': order.created_at.isoformat(),
        }
        for order in Order.objects.order_by('-created_at', '-id')[:RECENT_ORDERS_LIMIT]
    ]

    return {
        'total_products': Product.objects.count(),
        'out_of_stock_products': Product.objects.filter(stock=0).count(),
        'total_courses': Course.objects.count(),
        'total_orders': sum(orders_by_status.values()),
        'total_revenue': str(Decimal(total_revenue).quantize(Decimal('0.01'))),
        'orders_by_status': orders_by_status,
        'recent_orders': recent_orders,
    }


@api_view(['GET'])
@permission_classes([IsStoreStaff])
def dashboard(request):
    """Dashboard stats: products, orders, revenue, courses, orders by status, recent orders"""
    stats = get_dashboard_stats()
    return Response({'currency': store_config('CURRENCY'), **stats})
