import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TrackingRecord",
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
                    "owner",
                    models.CharField(
                        help_text="Identity of the user who requested the import",
                        max_length=255,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PROCESSING", "Processing"),
                            ("SUCCESS", "Success"),
                            ("FAILED", "Failed"),
                        ],
                        default="PROCESSING",
                        max_length=20,
                    ),
                ),
                (
                    "message",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Outcome of the import, shown to the requester",
                    ),
                ),
                (
                    "identifier",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Identifier minted for the package; cleared "
                        "when the import was rolled back",
                        max_length=255,
                    ),
                ),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("modified", models.DateTimeField(auto_now=True)),
                (
                    "last_started",
                    models.DateTimeField(
                        blank=True,
                        help_text="Last time when a worker started processing "
                        "this import",
                        null=True,
                    ),
                ),
                (
                    "completed",
                    models.DateTimeField(
                        blank=True,
                        help_text="Time when the import completed without error",
                        null=True,
                    ),
                ),
                (
                    "failed",
                    models.DateTimeField(
                        blank=True,
                        help_text="Time when the import failed due to an error",
                        null=True,
                    ),
                ),
                (
                    "task_id",
                    models.UUIDField(
                        blank=True,
                        help_text="UUID of the last Celery task to process this "
                        "record",
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["-created"],
            },
        ),
        migrations.CreateModel(
            name="ArchiveVersion",
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
                ("identifier", models.CharField(max_length=255, unique=True)),
                (
                    "online_copy_id",
                    models.CharField(
                        blank=True,
                        help_text="Handle of the fast-access copy; cleared once a "
                        "newer version supersedes this one",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "offline_copy_id",
                    models.CharField(
                        help_text="Handle of the permanent copy", max_length=255
                    ),
                ),
                (
                    "image_file_group",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="METS file group used to index the images",
                        max_length=255,
                    ),
                ),
                (
                    "fulltext_file_group",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="METS file group used to index the fulltexts",
                        max_length=255,
                    ),
                ),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("modified", models.DateTimeField(auto_now=True)),
                (
                    "previous_version",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="next_versions",
                        to="ingest.archiveversion",
                        to_field="identifier",
                    ),
                ),
            ],
            options={
                "ordering": ["created", "pk"],
            },
        ),
    ]
