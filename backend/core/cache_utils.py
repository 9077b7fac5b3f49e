"""
Caching utilities for expensive read-only queries
Uses the default Django cache (Redis through django-redis in production)
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

DASHBOARD_SUMMARY_PREFIX = 'dashboard_summary'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=None, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(key_prefix="dashboard_summary")
        def get_expensive_data():
            return data

    ``cache_ttl`` defaults to the DASHBOARD_CACHE_TTL setting, read at call time.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)

            ttl = cache_ttl if cache_ttl is not None else getattr(settings, 'DASHBOARD_CACHE_TTL', 300)
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator


def invalidate_dashboard_cache():
    """Drop the cached dashboard summary"""
    try:
        cache.delete(make_cache_key(DASHBOARD_SUMMARY_PREFIX))
        logger.debug("Invalidated dashboard summary cache")
    except Exception as e:
        logger.warning(f"Error invalidating dashboard cache: {e}")
