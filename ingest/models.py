"""
See the module-level docstring for implementation details
"""

from logging import getLogger

from django.db import models
from django.utils import timezone

from ingest.exceptions import InvalidTransition

logger = getLogger(__name__)


class TrackingRecord(models.Model):
    """
    One import attempt. Created when the request is accepted and resolved
    exactly once to SUCCESS or FAILED; never deleted.
    """

    class Status(models.TextChoices):
        PROCESSING = "PROCESSING"
        SUCCESS = "SUCCESS"
        FAILED = "FAILED"

    TERMINAL_STATES = (Status.SUCCESS, Status.FAILED)

    owner = models.CharField(
        help_text="Identity of the user who requested the import", max_length=255
    )

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PROCESSING
    )

    message = models.TextField(
        help_text="Outcome of the import, shown to the requester",
        blank=True,
        default="",
    )

    identifier = models.CharField(
        help_text="Identifier minted for the package; cleared when the import "
        "was rolled back",
        max_length=255,
        blank=True,
        default="",
        db_index=True,
    )

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    last_started = models.DateTimeField(
        help_text="Last time when a worker started processing this import",
        null=True,
        blank=True,
    )
    completed = models.DateTimeField(
        help_text="Time when the import completed without error", null=True, blank=True
    )
    failed = models.DateTimeField(
        help_text="Time when the import failed due to an error", null=True, blank=True
    )

    task_id = models.UUIDField(
        help_text="UUID of the last Celery task to process this record",
        null=True,
        blank=True,
    )

    class Meta:
        ordering = ["-created"]

    def __str__(self):
        return "TrackingRecord(owner=%s, identifier=%s, status=%s)" % (
            self.owner,
            self.identifier or None,
            self.status,
        )

    @property
    def is_resolved(self):
        return self.status in self.TERMINAL_STATES

    def _check_transition(self, new_status):
        if self.is_resolved:
            raise InvalidTransition(
                f"{self} is already {self.status} and cannot become {new_status}"
            )

    def mark_succeeded(self, message, do_save=True):
        self._check_transition(self.Status.SUCCESS)
        self.status = self.Status.SUCCESS
        self.message = message
        self.completed = timezone.now()
        self.failed = None
        if do_save:
            self.save()

    def mark_failed(self, message, clear_identifier=False, do_save=True):
        self._check_transition(self.Status.FAILED)
        self.status = self.Status.FAILED
        self.message = message
        self.failed = timezone.now()
        if clear_identifier:
            self.identifier = ""
        if do_save:
            self.save()


class ArchiveVersion(models.Model):
    """
    One durably stored package. Versions of the same work form a chain through
    ``previous_version``; successors are reachable with ``next_versions``.
    """

    identifier = models.CharField(max_length=255, unique=True)

    online_copy_id = models.CharField(
        help_text="Handle of the fast-access copy; cleared once a newer version "
        "supersedes this one",
        max_length=255,
        null=True,
        blank=True,
    )
    offline_copy_id = models.CharField(
        help_text="Handle of the permanent copy", max_length=255
    )
    retired_online_copy_id = models.CharField(
        help_text="Online copy handle taken away by the newest successor; given "
        "back when every successor was rolled back",
        max_length=255,
        null=True,
        blank=True,
    )

    previous_version = models.ForeignKey(
        "self",
        to_field="identifier",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="next_versions",
    )

    image_file_group = models.CharField(
        help_text="METS file group used to index the images",
        max_length=255,
        blank=True,
        default="",
    )
    fulltext_file_group = models.CharField(
        help_text="METS file group used to index the fulltexts",
        max_length=255,
        blank=True,
        default="",
    )

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created", "pk"]

    def __str__(self):
        return "ArchiveVersion(identifier=%s)" % self.identifier
