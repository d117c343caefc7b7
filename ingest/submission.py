"""
Entry points for starting an import

``accept_import`` does the synchronous part of an import request: it checks
the package, mints the identifier and hands the rest to the import saga. It
returns the TrackingRecord as soon as the saga has been dispatched.
"""

from logging import getLogger
from typing import Optional
from urllib.parse import urlencode

import requests
from django.conf import settings

from ingest.exceptions import (
    IdentifierServiceError,
    PackageInvalid,
    PreviousVersionNotFound,
    ServiceError,
)
from ingest.metadata import (
    ImportParameters,
    IndexingConfig,
    PackageMetadata,
    resolve_indexing_config,
)
from ingest.models import ArchiveVersion, TrackingRecord
from ingest.retry import call_with_retry
from ingest.services import get_identifier_service
from ingest.tasks.saga import import_package_task, remove_workspace
from ingest.validation import ensure_valid_package, read_package

logger = getLogger(__name__)

PROCESSING_MESSAGE = "Processing..."


def build_export_url(identifier: str) -> str:
    """URL under which the package ``identifier`` can be retrieved once stored"""
    base_url = settings.INGEST_PUBLIC_BASE_URL.rstrip("/")
    return f"{base_url}/export?{urlencode({'id': identifier})}"


def submit_import(
    tracking_record: TrackingRecord,
    package_path: str,
    identifier: str,
    metadata: PackageMetadata,
    indexing_config: IndexingConfig,
    previous_identifier: Optional[str] = None,
    export_url: Optional[str] = None,
    workspace: Optional[str] = None,
):
    """
    Queue the import saga for an accepted package and return without waiting
    for it
    """
    if export_url is None:
        export_url = build_export_url(identifier)
    return import_package_task.delay(
        tracking_record.pk,
        package_path,
        identifier,
        metadata.to_list(),
        indexing_config.to_dict(),
        previous_identifier=previous_identifier,
        export_url=export_url,
        workspace=workspace,
    )


def accept_import(
    owner: str,
    package_path: str,
    params: Optional[ImportParameters] = None,
    workspace: Optional[str] = None,
) -> TrackingRecord:
    """
    Check the extracted package at ``package_path`` and start importing it.

    Args:
        owner: Identity of the requester.
        package_path: Root directory of the extracted bag.
        params: Parameters given with the request.
        workspace: Directory to remove once the package is no longer needed.
            Left alone when not given.

    Returns:
        The new TrackingRecord, still PROCESSING.

    Raises:
        PackageInvalid: if the package breaks a structural rule.
        PreviousVersionNotFound: if ``params`` names an unknown previous
            version.
        ServiceError: if no identifier could be minted.

        In each of these cases the TrackingRecord is FAILED with the error
        message and nothing was sent to an external service apart from the
        minting attempts.
    """
    params = params or ImportParameters()
    tracking_record = TrackingRecord.objects.create(
        owner=owner, message=PROCESSING_MESSAGE
    )

    try:
        _, metadata = read_package(package_path)
        ensure_valid_package(package_path, metadata, params)

        previous_identifier = params.previous_identifier
        if (
            previous_identifier
            and not ArchiveVersion.objects.filter(
                identifier=previous_identifier
            ).exists()
        ):
            raise PreviousVersionNotFound(previous_identifier)

        indexing_config = resolve_indexing_config(metadata, params)

        identifier_service = get_identifier_service()
        identifier = call_with_retry(identifier_service.mint, list(metadata))
        if not identifier or not identifier.strip():
            raise IdentifierServiceError("No PID received")
    except (
        PackageInvalid,
        PreviousVersionNotFound,
        ServiceError,
        requests.RequestException,
    ) as exc:
        logger.warning("Rejecting import %s: %s", tracking_record.pk, exc)
        tracking_record.mark_failed(str(exc))
        remove_workspace(workspace)
        raise

    tracking_record.identifier = identifier
    tracking_record.save()

    submit_import(
        tracking_record,
        package_path,
        identifier,
        metadata,
        indexing_config,
        previous_identifier=previous_identifier,
        export_url=build_export_url(identifier),
        workspace=workspace,
    )
    logger.info("Accepted import %s as %s", tracking_record.pk, identifier)
    return tracking_record
