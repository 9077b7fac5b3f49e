"""
Cache invalidation signals
Automatically invalidate cache when data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Models whose rows feed the dashboard summary
DASHBOARD_MODELS = ('Bom', 'BomItem', 'Container', 'ShelfLocation')

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_dashboard_on_change(sender, instance, **kwargs):
    """Invalidate the dashboard summary when BOMs, containers or locations change"""
    if is_suspended():
        return

    if sender.__name__ not in DASHBOARD_MODELS:
        return

    # Invalidate AFTER the commit so the cache is not repopulated with stale data
    transaction.on_commit(invalidate_dashboard_cache)
