"""Order status progress shown on the tracking page"""
from .models import Order

TRACKING_STAGES = [
    (Order.STATUS_PENDING, 'Order Placed'),
    (Order.STATUS_CONFIRMED, 'Confirmed'),
    (Order.STATUS_SHIPPED, 'Shipped'),
    (Order.STATUS_DELIVERED, 'Delivered'),
]

# Statuses shown on another status's stage
STAGE_ALIASES = {
    Order.STATUS_DISPATCHED: Order.STATUS_SHIPPED,
}


def build_tracking_progress(status):
    """
    Four-stage progress for an order status.

    Every stage up to and including the current one is active. A cancelled
    order has no current stage and no active stage.
    """
    keys = [key for key, _ in TRACKING_STAGES]
    is_cancelled = status == Order.STATUS_CANCELLED
    stage = STAGE_ALIASES.get(status, status)
    current_index = keys.index(stage) if not is_cancelled and stage in keys else None

    return {
        'status': status,
        'is_cancelled': is_cancelled,
        'current_stage': keys[current_index] if current_index is not None else None,
        'current_index': current_index,
        'stages': [
            {
                'key': key,
                'label': label,
                'active': current_index is not None and index <= current_index,
            }
            for index, (key, label) in enumerate(TRACKING_STAGES)
        ],
    }
