"""
Cache invalidation signals
Automatically invalidate cached reads when the underlying rows change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import (
    invalidate_namespace, SETTINGS_NAMESPACE, CATALOG_NAMESPACE, DASHBOARD_NAMESPACE
)
from .models import Setting

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=Setting)
def invalidate_settings_cache(sender, instance, **kwargs):
    invalidate_namespace(SETTINGS_NAMESPACE)


@receiver([post_save, post_delete], sender='catalog.Product')
@receiver([post_save, post_delete], sender='catalog.Category')
@receiver([post_save, post_delete], sender='catalog.Course')
def invalidate_catalog_cache(sender, instance, **kwargs):
    logger.debug(f"{sender.__name__} {instance.pk} changed, invalidating catalog caches")
    invalidate_namespace(CATALOG_NAMESPACE)
    invalidate_namespace(DASHBOARD_NAMESPACE)


@receiver([post_save, post_delete], sender='orders.Order')
def invalidate_order_cache(sender, instance, **kwargs):
    invalidate_namespace(DASHBOARD_NAMESPACE)
