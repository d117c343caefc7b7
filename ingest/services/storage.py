"""
Archive storage client

Every package is stored twice: once in the online vault for fast access and
once in the offline vault for permanent keeping. A copy is addressed by its
handle, ``<vault>/<archive id>``. Stored files are read back by identifier
through the export endpoint.
"""

import os
from dataclasses import dataclass, field
from logging import getLogger
from typing import Iterable, Optional

import requests
from django.conf import settings

from ingest.exceptions import DescriptorNotAvailable, StorageServiceError
from ingest.services import raise_for_status

logger = getLogger(__name__)

METADATA_KEY_ONLINE_COPY = "ONLINE-COPY"
METADATA_KEY_OFFLINE_COPY = "OFFLINE-COPY"

BAG_INFO_PATH = "bag-info.txt"


@dataclass
class StoreResult:
    online_copy_id: str
    offline_copy_id: str
    #: Entries to register with the identifier service
    metadata: list[tuple[str, str]] = field(default_factory=list)


def parse_bag_info(text: str) -> dict[str, str]:
    """
    Parse the text of a bag-info.txt. Indented lines continue the previous
    value and the first occurrence of a repeated key wins.
    """
    info = {}
    current = None
    for line in text.splitlines():
        if not line.strip():
            continue
        if line[0] in " \t":
            if current is not None:
                info[current] = f"{info[current]} {line.strip()}"
            continue
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or name in info:
            current = None
            continue
        info[name] = value.strip()
        current = name
    return info


class ArchiveStorageClient:
    def __init__(self, session: Optional[requests.Session] = None):
        config = settings.INGEST_ARCHIVE_STORAGE
        self.base_url = config["URL"].rstrip("/")
        self.export_url = config["EXPORT_URL"].rstrip("/")
        self.online_vault = config["ONLINE_VAULT"]
        self.offline_vault = config["OFFLINE_VAULT"]
        self.timeout = config["TIMEOUT"]
        self.session = session or requests.Session()
        if config["USERNAME"]:
            self.session.auth = (config["USERNAME"], config["PASSWORD"])

    def store(
        self,
        path: str,
        identifier: str,
        metadata: Iterable[tuple[str, str]],
        previous_identifier: Optional[str] = None,
    ) -> StoreResult:
        """
        Upload the package directory ``path`` to both vaults.

        Copies created before a failure are removed again before the error is
        raised, so a failed call leaves nothing behind which the caller would
        have to know about.
        """
        metadata = list(metadata)
        created = []
        try:
            for vault in (self.online_vault, self.offline_vault):
                handle = self._create_archive(
                    vault, identifier, metadata, previous_identifier
                )
                created.append(handle)
                self._upload_directory(handle, path)
        except (StorageServiceError, requests.RequestException, OSError):
            for handle in created:
                self._discard(handle)
            raise

        online_copy_id, offline_copy_id = created
        logger.info(
            "Stored %s as %s and %s", identifier, online_copy_id, offline_copy_id
        )
        return StoreResult(
            online_copy_id=online_copy_id,
            offline_copy_id=offline_copy_id,
            metadata=[
                (METADATA_KEY_ONLINE_COPY, online_copy_id),
                (METADATA_KEY_OFFLINE_COPY, offline_copy_id),
            ],
        )

    def _create_archive(self, vault, identifier, metadata, previous_identifier):
        data = {"meta:dc:identifier": identifier}
        for key, value in metadata:
            data.setdefault(f"meta:bag-info:{key}", value)
        if previous_identifier:
            data["meta:dc:relation"] = previous_identifier
        resp = self.session.post(
            f"{self.base_url}/{vault}", data=data, timeout=self.timeout
        )
        raise_for_status(resp, StorageServiceError, f"Creating an archive in {vault}")
        return f"{vault}/{resp.json()['id']}"

    def _upload_directory(self, handle, path):
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames.sort()
            for filename in sorted(filenames):
                local_path = os.path.join(dirpath, filename)
                relative_path = os.path.relpath(local_path, path).replace(os.sep, "/")
                with open(local_path, "rb") as f:
                    resp = self.session.put(
                        f"{self.base_url}/{handle}/{relative_path}",
                        data=f,
                        headers={"Content-Type": "application/octet-stream"},
                        timeout=self.timeout,
                    )
                raise_for_status(
                    resp, StorageServiceError, f"Uploading {relative_path} to {handle}"
                )

    def _discard(self, handle):
        try:
            self.delete_copy(handle)
        except (StorageServiceError, requests.RequestException):
            logger.exception("Unable to remove incomplete copy %s", handle)

    def delete_copy(self, copy_id: str) -> None:
        """Delete a stored copy; a copy which is already gone is fine"""
        resp = self.session.delete(f"{self.base_url}/{copy_id}", timeout=self.timeout)
        if resp.status_code == 404:
            logger.info("Copy %s was already deleted", copy_id)
            return
        raise_for_status(resp, StorageServiceError, f"Deleting {copy_id}")

    def fetch_descriptor(self, identifier: str, path: str) -> Optional[bytes]:
        """
        Read a stored file of the package ``identifier``.

        Returns:
            The file content, or None while the file is not retrievable.
        """
        resp = self.session.get(
            f"{self.export_url}/{identifier}/{path.lstrip('/')}", timeout=self.timeout
        )
        if resp.status_code == 404:
            return None
        raise_for_status(resp, StorageServiceError, f"Reading {path} of {identifier}")
        return resp.content

    def fetch_package_metadata_file(self, identifier: str) -> dict[str, str]:
        """
        The stored bag-info.txt of ``identifier`` as a mapping.

        Raises:
            DescriptorNotAvailable: while the file is not retrievable yet.
        """
        content = self.fetch_descriptor(identifier, BAG_INFO_PATH)
        if content is None:
            raise DescriptorNotAvailable(
                f"{BAG_INFO_PATH} of {identifier} is not available yet",
                status_code=404,
            )
        return parse_bag_info(content.decode("utf-8"))
