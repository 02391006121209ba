"""
Caching utilities for read-mostly queries.

Keys are namespaced; each namespace carries a version number in the cache,
and invalidating a namespace bumps that version so every key built under the
old version stops being read. This works the same on the local-memory
backend and on Redis.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
SETTINGS_CACHE_TTL = 300  # 5 minutes
HOME_CACHE_TTL = 120  # 2 minutes
DASHBOARD_CACHE_TTL = 300  # 5 minutes

# Namespaces
SETTINGS_NAMESPACE = 'settings'
CATALOG_NAMESPACE = 'catalog'
DASHBOARD_NAMESPACE = 'dashboard'


def _version_key(namespace):
    return f"cache_version:{namespace}"


def get_namespace_version(namespace):
    version = cache.get(_version_key(namespace))
    if version is None:
        version = 1
        cache.add(_version_key(namespace), version, None)
    return version


def make_cache_key(namespace, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{namespace}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{namespace}:v{get_namespace_version(namespace)}:{key_hash}"


def cached_query(cache_ttl=60, namespace="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, namespace=DASHBOARD_NAMESPACE)
        def get_expensive_data(filters):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(namespace, func.__name__, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {namespace}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {namespace}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_namespace(namespace):
    """Drop every cached entry of a namespace"""
    try:
        cache.incr(_version_key(namespace))
    except ValueError:
        # Version key expired or was never written
        cache.set(_version_key(namespace), 2, None)
    logger.info(f"Invalidated cache namespace: {namespace}")
