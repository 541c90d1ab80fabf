# platform_settings/feature_flags.py
"""
Feature flag cache.

Flags are read on almost every request, so they are served from the Django
cache and only refreshed from the database when the entry has expired or an
admin changed a flag. A database failure never blocks a request: the last
known flags are used, and without those the safe defaults (everything on).
"""

import logging
import time

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError

from .models import DEFAULT_FEATURES, SystemSettings

logger = logging.getLogger(__name__)

CACHE_KEY = 'platform_settings:feature_flags'
STALE_KEY = 'platform_settings:feature_flags:last_known'


def _ttl():
    return getattr(settings, 'FEATURE_FLAG_CACHE_TTL', 60)


def _default_flags():
    return {
        'features': dict(DEFAULT_FEATURES),
        'version': 0,
        'last_modified': None,
        'fetched_at': time.time(),
    }


def refresh():
    """Reload the flags from the database and store them in the cache."""
    try:
        system_settings = SystemSettings.load()
    except DatabaseError:
        logger.exception("❌ Error refreshing feature flag cache")
        stale = cache.get(STALE_KEY)
        if stale is not None:
            logger.warning("⚠️ Using stale feature flags due to refresh error")
            return stale
        return _default_flags()

    flags = {
        'features': system_settings.features,
        'version': system_settings.version,
        'last_modified': system_settings.last_modified.isoformat(),
        'fetched_at': time.time(),
    }
    cache.set(CACHE_KEY, flags, _ttl())
    cache.set(STALE_KEY, flags, None)
    return flags


def get_flags():
    flags = cache.get(CACHE_KEY)
    if flags is not None:
        return flags
    return refresh()


def invalidate():
    logger.info("🔄 Invalidating feature flag cache")
    cache.delete(CACHE_KEY)
    return refresh()


def is_feature_enabled(feature_name):
    # Unknown flags default to enabled
    return get_flags()['features'].get(feature_name) is not False


def get_stats():
    flags = cache.get(CACHE_KEY)
    if flags is None:
        return {'cached': False, 'version': None, 'last_fetch': None, 'age': None, 'valid': False}
    age = time.time() - flags['fetched_at']
    return {
        'cached': True,
        'version': flags['version'],
        'last_fetch': flags['fetched_at'],
        'age': round(age, 3),
        'valid': age < _ttl(),
    }


def feature_for_category(category):
    """Map a listing category to the flag that gates its vertical."""
    return {
        'vehicle': 'vehiclesEnabled',
        'stay': 'accommodationsEnabled',
    }.get(category)


def vertical_enabled(category, features=None):
    feature_name = feature_for_category(category)
    if feature_name is None:
        return True
    features = features if features is not None else get_flags()['features']
    return features.get(feature_name) is not False


def disabled_categories(features=None):
    features = features if features is not None else get_flags()['features']
    return [c for c in ('stay', 'vehicle') if not vertical_enabled(c, features)]
