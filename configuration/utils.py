from typing import Any

from django.conf import settings
from django.core.cache import caches

from configuration.models import Configuration

CONFIGURATION_KEY_PREFIX = "config"

_MISSING = object()


def configuration_value(key: str, default: Any = _MISSING) -> Any:
    """
    Retrieve a configuration value by key with caching and type casting.

    The value is read from the ``configuration_cache`` alias first and loaded
    from the database (then cached) on a miss.

    Args:
        key (str): The configuration key to resolve.
        default (Any): Returned when no ``Configuration`` row exists for
            ``key``. Missing defaults are not cached, so a row added later is
            picked up on the next call.

    Returns:
        Any: The resolved and type-cast configuration value.

    Raises:
        Configuration.DoesNotExist: If the key is not present in the database
            and no default was given.
    """
    config_cache = caches["configuration_cache"]
    value = config_cache.get(_cache_key(key))

    if value is None:
        try:
            value = cache_configuration_value(key)
        except Configuration.DoesNotExist:
            if default is _MISSING:
                raise
            return default

    return value


def cache_configuration_value(key: str, value: Any | None = None) -> Any:
    """
    Populate or refresh the cached value for a configuration key.

    If ``value`` is ``None`` the row is loaded and cast with ``get_value()``;
    otherwise ``value`` is cached as given. Entries expire after
    ``settings.CONFIGURATION_CACHE_TIMEOUT`` seconds.

    Raises:
        Configuration.DoesNotExist: If ``value`` is ``None`` and there is no
            ``Configuration`` row with the given key.
    """
    config_cache = caches["configuration_cache"]

    if value is None:
        config = Configuration.objects.get(key=key)
        value = config.get_value()

    config_cache.set(
        _cache_key(key), value, timeout=settings.CONFIGURATION_CACHE_TIMEOUT
    )
    return value


def _cache_key(key: str) -> str:
    return f"{CONFIGURATION_KEY_PREFIX}_{key}"
