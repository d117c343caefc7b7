from longterm.celery import app as celery_app
from longterm.version import VERSION, get_version

__all__ = ["celery_app", "VERSION", "get_version"]
