# core/utils.py

"""
Central utilities for the tutoring-center system: operational timezone
helpers and the reference-data cache.
"""
from django.conf import settings
from django.utils import timezone
from zoneinfo import ZoneInfo
import time
import logging

logger = logging.getLogger(__name__)


def _default_timezone():
    return ZoneInfo(getattr(settings, 'TIME_ZONE', None) or 'UTC')


# =============================================================================
# TIMEZONE UTILITY FUNCTIONS
# =============================================================================

def get_operational_timezone():
    """
    Get the center's operational timezone.

    Reads the configuration singleton without creating it; until it exists
    settings.TIME_ZONE is used.

    Returns:
        ZoneInfo: Operational timezone
    """
    try:
        from core.models import SchedulingConfiguration
        config = SchedulingConfiguration.objects.filter(pk=1).first()
        return config.get_timezone() if config else _default_timezone()
    except Exception as e:
        logger.error(f"Error getting operational timezone: {e}")
        return _default_timezone()


def get_operational_now():
    """Current datetime in the operational timezone"""
    return timezone.now().astimezone(get_operational_timezone())


# =============================================================================
# REFERENCE DATA CACHE
# =============================================================================

class ReferenceDataCache:
    """
    Time-bounded cache for reference records (branches, rooms, teachers).

    The loader is called as ``loader(key)`` and must return the record or
    ``None`` when it does not exist; misses are not cached. ``clock`` returns
    seconds and defaults to ``time.monotonic`` - tests pass a fake.

    Example:
        >>> cache = ReferenceDataCache(lambda pk: Branch.objects.get_or_none(pk=pk), ttl=300)
        >>> branch = cache.get(branch_id)
    """

    def __init__(self, loader, ttl=300, clock=None):
        if ttl < 0:
            raise ValueError("ttl must not be negative")
        self.loader = loader
        self.ttl = ttl
        self.clock = clock or time.monotonic
        self._entries = {}
        self.hits = 0
        self.misses = 0

    def get(self, key):
        entry = self._entries.get(key)
        now = self.clock()
        if entry is not None:
            value, expires_at = entry
            if now < expires_at:
                self.hits += 1
                return value
            del self._entries[key]

        self.misses += 1
        value = self.loader(key)
        if value is not None:
            self._entries[key] = (value, now + self.ttl)
        return value

    def get_many(self, keys):
        return {key: self.get(key) for key in keys}

    def invalidate(self, key=None):
        """Drop one key, or everything when key is None"""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key):
        entry = self._entries.get(key)
        return entry is not None and self.clock() < entry[1]

    def __len__(self):
        return len(self._entries)
