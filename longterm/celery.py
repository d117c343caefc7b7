import importlib
import os
import pkgutil

import sentry_sdk
from celery import Celery
from sentry_sdk.integrations.celery import CeleryIntegration

from longterm.version import get_longterm_version

SENTRY_BACKEND_DSN = os.environ.get("SENTRY_BACKEND_DSN", None)

if SENTRY_BACKEND_DSN:
    LONGTERM_ENVIRONMENT = os.environ.get("LONGTERM_ENVIRONMENT", None)
    sentry_sdk.init(
        SENTRY_BACKEND_DSN,
        environment=LONGTERM_ENVIRONMENT,
        release=get_longterm_version(),
        integrations=[CeleryIntegration()],
    )

app = Celery("longterm")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()


def import_all_submodules(package_name: str):
    """
    Import a package and recursively import all submodules.
    Used sparingly at Celery startup to ensure all task modules are loaded.
    """
    pkg = importlib.import_module(package_name)
    if not hasattr(pkg, "__path__"):
        return
    for mod in pkgutil.walk_packages(pkg.__path__, pkg.__name__ + "."):
        importlib.import_module(mod.name)


# Celery autodiscovery only finds tasks.py or tasks/__init__.py, so the
# individual modules of the ingest.tasks package are imported here once
# Django is fully loaded
@app.on_after_finalize.connect
def _load_all_task_modules(sender, **kwargs):
    import_all_submodules("ingest.tasks")
