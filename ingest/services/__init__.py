"""
Clients for the services the archive depends on

The implementation used for each service is configured in settings by dotted
path, so tests and deployments can swap them without touching the pipeline.
"""

from django.conf import settings
from django.utils.module_loading import import_string


def get_identifier_service():
    return import_string(settings.INGEST_IDENTIFIER_SERVICE)()


def get_storage_service():
    return import_string(settings.INGEST_STORAGE_SERVICE)()


def get_indexer_service():
    return import_string(settings.INGEST_INDEXER_SERVICE)()


def raise_for_status(response, error_class, action):
    """
    Raise ``error_class`` for a non-2xx ``response``, naming the ``action``
    which failed
    """
    if response.ok:
        return
    raise error_class(
        f"{action} failed with HTTP {response.status_code}: {response.text[:200]}",
        status_code=response.status_code,
    )
