"""
The import saga: everything which happens to a package after its identifier
was minted

See the ingest package docstring for the overall process.
"""

import shutil
from logging import getLogger
from typing import Optional

import requests

from ingest import constants
from ingest.chain import link_new_version, unlink_version
from ingest.exceptions import DescriptorNotAvailable, GaveUp, ServiceError
from ingest.metadata import IndexingConfig, PackageMetadata, mets_path
from ingest.models import ArchiveVersion, TrackingRecord
from ingest.retry import call_with_retry, poll_until
from ingest.services import (
    get_identifier_service,
    get_indexer_service,
    get_storage_service,
)
from longterm.celery import app
from longterm.logging import ArchiveLogger

from .decorators import update_tracking_status

logger = getLogger(__name__)
structured_logger = ArchiveLogger.get_logger(__name__)

SUCCESS_MESSAGE = "Data has been successfully imported."


class ImportSaga:
    """
    Stores one package and registers it, undoing its own work on failure.

    ``run()`` performs the critical steps in order: store both copies, save the
    version record (linked to its predecessor if there is one), register the
    metadata with the identifier service and add the back-link on the previous
    identifier. If all of them succeed the tracking record becomes SUCCESS and
    the indexer is notified on a best effort basis. If one fails, everything
    done so far is compensated and the tracking record becomes FAILED. The
    workspace is removed in either case.
    """

    def __init__(
        self,
        tracking_record: TrackingRecord,
        package_path: str,
        identifier: str,
        metadata: PackageMetadata,
        indexing_config: IndexingConfig,
        previous_identifier: Optional[str] = None,
        export_url: Optional[str] = None,
        workspace: Optional[str] = None,
        identifier_service=None,
        storage_service=None,
        indexer_service=None,
    ):
        self.tracking_record = tracking_record
        self.package_path = package_path
        self.identifier = identifier
        self.metadata = metadata
        self.indexing_config = indexing_config
        self.previous_identifier = previous_identifier or None
        self.export_url = export_url
        self.workspace = workspace

        self.identifier_service = identifier_service or get_identifier_service()
        self.storage_service = storage_service or get_storage_service()
        self.indexer_service = indexer_service or get_indexer_service()

        self.structured_logger = structured_logger.bind(tracking=tracking_record)

        # What has been done so far and would have to be compensated
        self.store_result = None
        self.version = None

    def run(self) -> bool:
        """
        Returns:
            Whether the package was imported.
        """
        try:
            try:
                self.store_package()
                self.save_version()
                self.register_identifier()
                self.link_previous_identifier()
            except Exception as exc:
                self.compensate(exc)
                return False

            self.tracking_record.mark_succeeded(SUCCESS_MESSAGE)
            self.structured_logger.info(
                "Package imported.",
                event_code="ingest_import_succeeded",
                previous_identifier=self.previous_identifier,
            )
            self.notify_indexer()
            return True
        finally:
            remove_workspace(self.workspace)

    def store_package(self):
        self.store_result = call_with_retry(
            self.storage_service.store,
            self.package_path,
            self.identifier,
            list(self.metadata),
            previous_identifier=self.previous_identifier,
        )
        self.structured_logger.info(
            "Package stored.",
            event_code="ingest_package_stored",
            online_copy_id=self.store_result.online_copy_id,
            offline_copy_id=self.store_result.offline_copy_id,
        )

    def save_version(self):
        version = ArchiveVersion(
            identifier=self.identifier,
            online_copy_id=self.store_result.online_copy_id,
            offline_copy_id=self.store_result.offline_copy_id,
            image_file_group=self.indexing_config.image_file_group,
            fulltext_file_group=self.indexing_config.fulltext_file_group,
        )
        retired_online_copy_id = None
        if self.previous_identifier:
            self.store_result.metadata.append(
                (constants.PID_KEY_PREVIOUS_VERSION, self.previous_identifier)
            )
            retired_online_copy_id = link_new_version(version, self.previous_identifier)
        else:
            version.save()
        self.version = version
        self.structured_logger.info(
            "Version recorded.",
            event_code="ingest_version_saved",
            version=version,
            retired_online_copy_id=retired_online_copy_id,
        )

    def register_identifier(self):
        entries = list(self.store_result.metadata)
        entries.extend(self.metadata)
        if self.export_url:
            entries.append((constants.PID_KEY_URL, self.export_url))
        call_with_retry(self.identifier_service.update, self.identifier, entries)

    def link_previous_identifier(self):
        if not self.previous_identifier:
            return
        call_with_retry(
            self.identifier_service.append_metadata,
            self.previous_identifier,
            [(constants.PID_KEY_NEXT_VERSION, self.identifier)],
        )

    def compensate(self, exc):
        """
        Undo every step which completed before ``exc`` and mark the import
        FAILED. Each undo is tried once; failures are logged for manual
        clean up and do not stop the remaining ones.
        """
        self.structured_logger.error(
            "Import failed, rolling back.",
            event_code="ingest_import_failed",
            reason=str(exc),
            reason_code=type(exc).__name__,
        )
        logger.error("Import of %s failed: %s", self.identifier, exc, exc_info=exc)

        self._undo("delete identifier", self.identifier_service.delete, self.identifier)
        if self.store_result is not None:
            self._undo(
                "delete online copy",
                self.storage_service.delete_copy,
                self.store_result.online_copy_id,
            )
            self._undo(
                "delete offline copy",
                self.storage_service.delete_copy,
                self.store_result.offline_copy_id,
            )
        if self.version is not None:
            self._undo("remove version record", unlink_version, self.identifier)

        self.tracking_record.mark_failed(str(exc), clear_identifier=True)

    def _undo(self, description, func, *args, **kwargs):
        try:
            func(*args, **kwargs)
        except Exception as exc:
            self.structured_logger.error(
                f"Unable to {description}; manual clean up required.",
                event_code="ingest_compensation_failed",
                reason=str(exc),
                reason_code=type(exc).__name__,
                online_copy_id=getattr(self.store_result, "online_copy_id", None),
                offline_copy_id=getattr(self.store_result, "offline_copy_id", None),
            )
            return False
        return True

    def wait_for_descriptor(self):
        """
        Raises until the METS file named by the stored bag-info.txt can be
        read back from storage
        """
        bag_info = self.storage_service.fetch_package_metadata_file(self.identifier)
        path = mets_path(bag_info)
        if self.storage_service.fetch_descriptor(self.identifier, path) is None:
            raise DescriptorNotAvailable(
                f"{path} of {self.identifier} is not available yet", status_code=404
            )

    def notify_indexer(self):
        try:
            poll_until(self.wait_for_descriptor)
        except GaveUp as exc:
            self.structured_logger.warning(
                "Stored package did not become available; indexer not notified.",
                event_code="ingest_indexer_skipped",
                reason=str(exc),
                reason_code="descriptor_unavailable",
            )
            return

        config = self.indexing_config
        try:
            self.indexer_service.notify(
                self.identifier,
                config.image_file_group,
                config.fulltext_file_group,
                config.fulltext_format_type,
                ground_truth=config.ground_truth,
            )
        except (ServiceError, requests.RequestException) as exc:
            self.structured_logger.warning(
                "Indexer notification failed.",
                event_code="ingest_indexer_failed",
                reason=str(exc),
                reason_code=type(exc).__name__,
            )
        else:
            self.structured_logger.info(
                "Indexer notified.", event_code="ingest_indexer_notified"
            )


def remove_workspace(workspace):
    if workspace:
        shutil.rmtree(workspace, ignore_errors=True)


def discard_identifier(tracking_record, identifier):
    """
    Delete an identifier minted for an import which never got as far as its
    saga. Tried once, like every other compensating call.
    """
    try:
        get_identifier_service().delete(identifier)
    except Exception as exc:
        structured_logger.error(
            "Unable to delete identifier; manual clean up required.",
            event_code="ingest_compensation_failed",
            reason=str(exc),
            reason_code=type(exc).__name__,
            tracking=tracking_record,
            identifier=identifier,
        )


@app.task(bind=True)
def import_package_task(
    self,
    tracking_record_pk,
    package_path,
    identifier,
    metadata,
    indexing_config,
    previous_identifier=None,
    export_url=None,
    workspace=None,
):
    try:
        tracking_record = TrackingRecord.objects.get(pk=tracking_record_pk)
    except TrackingRecord.DoesNotExist:
        logger.exception(
            "TrackingRecord %s could not be found while attempting to "
            "spawn import_package task",
            tracking_record_pk,
        )
        raise

    return import_package(
        self,
        tracking_record,
        package_path,
        identifier,
        metadata,
        indexing_config,
        previous_identifier=previous_identifier,
        export_url=export_url,
        workspace=workspace,
    )


@update_tracking_status
def import_package(
    self,
    tracking_record,
    package_path,
    identifier,
    metadata,
    indexing_config,
    previous_identifier=None,
    export_url=None,
    workspace=None,
):
    try:
        saga = ImportSaga(
            tracking_record,
            package_path,
            identifier,
            PackageMetadata(metadata),
            IndexingConfig.from_dict(indexing_config),
            previous_identifier=previous_identifier,
            export_url=export_url,
            workspace=workspace,
        )
    except Exception:
        # Nothing has been stored yet
        discard_identifier(tracking_record, identifier)
        remove_workspace(workspace)
        raise

    return saga.run()
