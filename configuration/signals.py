from django.core.cache import caches
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from configuration.models import Configuration
from configuration.utils import _cache_key, cache_configuration_value


@receiver(post_save, sender=Configuration)
def update_cached_configuration_value(
    sender: type[Configuration], *, instance: Configuration, **kwargs
) -> None:
    """Refresh the cached value after a Configuration row is saved"""
    cache_configuration_value(instance.key, instance.get_value())


@receiver(post_delete, sender=Configuration)
def evict_cached_configuration_value(
    sender: type[Configuration], *, instance: Configuration, **kwargs
) -> None:
    caches["configuration_cache"].delete(_cache_key(instance.key))
