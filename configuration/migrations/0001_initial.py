from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Configuration",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "key",
                    models.CharField(
                        help_text="Unique identifier for the configuration setting",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "data_type",
                    models.CharField(
                        choices=[
                            ("text", "Plain text"),
                            ("boolean", "Boolean"),
                        ],
                        default="text",
                        help_text="Data type of the value",
                        max_length=10,
                    ),
                ),
                (
                    "value",
                    models.TextField(help_text="Value of the configuration setting"),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        help_text="Optional description of the configuration "
                        "setting",
                    ),
                ),
            ],
        ),
    ]
