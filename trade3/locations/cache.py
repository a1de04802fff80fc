"""
Caching for the store list.

Stores change rarely and are read by every screen that picks a store, so the
list is cached and dropped whenever a store or cashbox is saved or deleted.
"""
import logging

from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Store, Cashbox

logger = logging.getLogger('trade3.locations')

STORE_LIST_KEY_PREFIX = 'store_list:'
STORE_LIST_CACHE_TTL = 600  # 10 minutes


def get_store_list_cache_key(scope: str = 'active') -> str:
    """Get cache key for the store list (active or all)"""
    return f"{STORE_LIST_KEY_PREFIX}{scope}"


def get_cached_store_list(scope: str = 'active'):
    return cache.get(get_store_list_cache_key(scope))


def cache_store_list(data, scope: str = 'active'):
    cache.set(get_store_list_cache_key(scope), data, STORE_LIST_CACHE_TTL)


def invalidate_store_list():
    cache.delete_many([get_store_list_cache_key('active'), get_store_list_cache_key('all')])
    logger.debug("Store list cache invalidated")


@receiver([post_save, post_delete], sender=Store)
@receiver([post_save, post_delete], sender=Cashbox)
def invalidate_store_cache(sender, instance, **kwargs):
    invalidate_store_list()
