"""
Celery tasks of the ingest app. See the ingest package docstring for the
overall process.
"""

from .saga import import_package_task  # noqa: F401
