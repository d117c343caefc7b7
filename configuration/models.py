from django.db import models


class Configuration(models.Model):
    """
    Runtime setting which operators can change without a deployment, such as
    the policy toggles of the ingest pipeline
    """

    class DataType(models.TextChoices):
        TEXT = "text", "Plain text"
        BOOLEAN = "boolean", "Boolean"

    key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique identifier for the configuration setting",
    )
    data_type = models.CharField(
        max_length=10,
        choices=DataType.choices,
        default=DataType.TEXT,
        help_text="Data type of the value",
    )
    value = models.TextField(help_text="Value of the configuration setting")
    description = models.TextField(
        blank=True, help_text="Optional description of the configuration setting"
    )

    def __str__(self):
        return self.key

    def get_value(self):
        if self.data_type == Configuration.DataType.BOOLEAN:
            return self.value.strip().lower() in ("true", "1", "yes", "on")
        # DataType.TEXT or an unknown type
        return self.value
