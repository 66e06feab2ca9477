"""
Caching for frequently read customer data.

Customer detail payloads are cached by ID. Customer lists are cached per
search/filter combination under a version number; any customer or order
change bumps the version so every cached list becomes unreachable at once.
"""
from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

logger = logging.getLogger(__name__)

# Cache key prefixes
CUSTOMER_KEY_PREFIX = 'customer:'
CUSTOMER_LIST_KEY_PREFIX = 'customer_list:'
CUSTOMER_LIST_VERSION_KEY = 'customer_list_version'

# Cache TTL (Time To Live) in seconds
CUSTOMER_CACHE_TTL = 600  # 10 minutes
CUSTOMER_LIST_CACHE_TTL = 300  # 5 minutes


def get_customer_cache_key(customer_id: int) -> str:
    """Get cache key for customer by ID"""
    return f"{CUSTOMER_KEY_PREFIX}{customer_id}"


def get_customer_list_version() -> int:
    version = cache.get(CUSTOMER_LIST_VERSION_KEY)
    if version is None:
        cache.add(CUSTOMER_LIST_VERSION_KEY, 1, None)
        version = cache.get(CUSTOMER_LIST_VERSION_KEY) or 1
    return version


def get_customer_list_cache_key(*filters) -> str:
    """Get cache key for a filtered customer list"""
    suffix = '|'.join(str(f or '') for f in filters) or 'all'
    return f"{CUSTOMER_LIST_KEY_PREFIX}v{get_customer_list_version()}:{suffix}"


def invalidate_customer_lists():
    try:
        cache.incr(CUSTOMER_LIST_VERSION_KEY)
    except ValueError:
        cache.set(CUSTOMER_LIST_VERSION_KEY, 2, None)
    logger.debug("Invalidated cached customer lists")


def cache_customer_data(customer_data: dict, ttl: int = None):
    """Cache a serialized customer payload"""
    if not customer_data or 'id' not in customer_data:
        return
    cache.set(get_customer_cache_key(customer_data['id']), customer_data, ttl or CUSTOMER_CACHE_TTL)
    logger.debug(f"Cached customer data: {customer_data.get('name')} (ID: {customer_data['id']})")


def get_cached_customer(customer_id: int):
    """Get cached customer data by ID"""
    cached_data = cache.get(get_customer_cache_key(customer_id))
    if cached_data:
        logger.debug(f"Cache hit for customer: {customer_id}")
    return cached_data


def invalidate_customer_cache(customer_id):
    """Invalidate the detail entry for a customer and all lists"""
    if customer_id:
        cache.delete(get_customer_cache_key(customer_id))
    invalidate_customer_lists()


# ==================== DJANGO SIGNALS ====================

@receiver(post_save)
@receiver(post_delete)
def model_changed(sender, instance, **kwargs):
    """Invalidate customer caches when a customer or one of its orders changes"""
    model_name = sender.__name__

    if model_name == 'Customer' and sender._meta.app_label == 'customers':
        invalidate_customer_cache(instance.pk)
        logger.debug(f"Cache invalidated for customer: {instance.name} (ID: {instance.pk})")

    elif model_name == 'Order' and sender._meta.app_label == 'orders':
        # Derived totals (orders, spent) live in the customer payload
        invalidate_customer_cache(instance.customer_id)
