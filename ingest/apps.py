from django.apps.config import AppConfig


class IngestConfig(AppConfig):
    name = "ingest"
    verbose_name = "Archive ingest"
