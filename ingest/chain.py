"""
Links archived versions of the same work into a chain

This module is the only place which changes an existing ArchiveVersion. All
changes to the chain below one predecessor happen with the process-local key
lock held and the predecessor's row locked, so two imports naming the same
previous version are applied one after the other.
"""

from logging import getLogger
from typing import Optional

from django.db import transaction

from configuration.utils import configuration_value
from ingest.constants import CONFIG_RETIRE_SUPERSEDED_ONLINE_COPY
from ingest.exceptions import PreviousVersionNotFound
from ingest.locks import previous_version_locks
from ingest.models import ArchiveVersion

logger = getLogger(__name__)


def retire_superseded_online_copy() -> bool:
    return bool(
        configuration_value(CONFIG_RETIRE_SUPERSEDED_ONLINE_COPY, default=True)
    )


def link_new_version(
    new_version: ArchiveVersion, previous_identifier: str
) -> Optional[str]:
    """
    Save ``new_version`` as the successor of ``previous_identifier``.

    The predecessor loses its online copy handle unless the
    ``retire_superseded_online_copy`` toggle is turned off. The handle is kept
    in ``retired_online_copy_id`` so it can be given back if every successor
    is rolled back, whichever import took it away.

    Returns:
        The online copy handle taken from the predecessor, or None when it
        kept its handle or had none.

    Raises:
        PreviousVersionNotFound: when no version with ``previous_identifier``
            exists. Nothing is saved in that case.
    """
    with previous_version_locks.acquire(previous_identifier):
        with transaction.atomic():
            try:
                predecessor = ArchiveVersion.objects.select_for_update().get(
                    identifier=previous_identifier
                )
            except ArchiveVersion.DoesNotExist:
                raise PreviousVersionNotFound(previous_identifier) from None

            new_version.previous_version = predecessor
            new_version.save()

            retired_online_copy_id = None
            if retire_superseded_online_copy() and predecessor.online_copy_id:
                retired_online_copy_id = predecessor.online_copy_id
                predecessor.retired_online_copy_id = retired_online_copy_id
                predecessor.online_copy_id = None
            predecessor.save()

    logger.info("Linked %s to previous version %s", new_version, predecessor)
    return retired_online_copy_id


def unlink_version(identifier: str) -> None:
    """
    Remove the version ``identifier`` again after its import was rolled back.

    When the version was linked to a predecessor and no other successor of
    that predecessor remains, the predecessor gets its retired online copy
    handle back. Unknown identifiers are ignored.
    """
    try:
        version = ArchiveVersion.objects.get(identifier=identifier)
    except ArchiveVersion.DoesNotExist:
        return

    previous_identifier = version.previous_version_id
    if previous_identifier is None:
        version.delete()
        logger.info("Removed unlinked version %s", identifier)
        return

    with previous_version_locks.acquire(previous_identifier):
        with transaction.atomic():
            predecessor = ArchiveVersion.objects.select_for_update().get(
                identifier=previous_identifier
            )
            ArchiveVersion.objects.filter(identifier=identifier).delete()

            if (
                predecessor.retired_online_copy_id
                and predecessor.online_copy_id is None
                and not predecessor.next_versions.exists()
            ):
                predecessor.online_copy_id = predecessor.retired_online_copy_id
                predecessor.retired_online_copy_id = None
                predecessor.save()
                logger.info(
                    "Restored online copy %s of %s",
                    predecessor.online_copy_id,
                    previous_identifier,
                )

    logger.info(
        "Removed version %s from the chain of %s", identifier, previous_identifier
    )
