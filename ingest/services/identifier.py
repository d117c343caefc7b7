"""
Identifier service client

Identifier records are lists of ``{"type": ..., "data": ...}`` entries. The
service has no append operation, so appending reads the record and writes it
back with the new entries added.
"""

from logging import getLogger
from typing import Iterable, Optional

import requests
from django.conf import settings

from ingest.exceptions import IdentifierServiceError
from ingest.services import raise_for_status

logger = getLogger(__name__)


def to_entries(metadata: Iterable[tuple[str, str]]) -> list[dict[str, str]]:
    return [{"type": key, "data": value} for key, value in metadata]


def from_entries(entries: Iterable[dict]) -> list[tuple[str, str]]:
    return [(entry["type"], entry["data"]) for entry in entries]


class PidServiceClient:
    def __init__(self, session: Optional[requests.Session] = None):
        config = settings.INGEST_PID_SERVICE
        self.base_url = config["URL"].rstrip("/")
        self.prefix = config["PREFIX"]
        self.timeout = config["TIMEOUT"]
        self.session = session or requests.Session()
        if config["USERNAME"]:
            self.session.auth = (config["USERNAME"], config["PASSWORD"])

    def _url(self, identifier):
        return f"{self.base_url}/{identifier}"

    def mint(self, metadata: Iterable[tuple[str, str]]) -> str:
        """
        Create a new identifier carrying ``metadata``.

        Returns:
            The new identifier. Blank when the service did not return one; the
            caller decides what to do with that.
        """
        resp = self.session.post(
            f"{self.base_url}/{self.prefix}/",
            json=to_entries(metadata),
            timeout=self.timeout,
        )
        raise_for_status(resp, IdentifierServiceError, "Creating an identifier")
        identifier = (resp.json() or {}).get("epic-pid") or ""
        logger.info("Minted identifier %s", identifier or None)
        return identifier

    def update(self, identifier: str, metadata: Iterable[tuple[str, str]]) -> None:
        """Replace the whole record of ``identifier`` with ``metadata``"""
        resp = self.session.put(
            self._url(identifier), json=to_entries(metadata), timeout=self.timeout
        )
        raise_for_status(resp, IdentifierServiceError, f"Updating {identifier}")

    def read(self, identifier: str) -> list[tuple[str, str]]:
        resp = self.session.get(self._url(identifier), timeout=self.timeout)
        raise_for_status(resp, IdentifierServiceError, f"Reading {identifier}")
        return from_entries(resp.json())

    def append_metadata(
        self, identifier: str, metadata: Iterable[tuple[str, str]]
    ) -> None:
        existing = self.read(identifier)
        self.update(identifier, existing + list(metadata))

    def delete(self, identifier: str) -> None:
        """Delete ``identifier``; an identifier which is already gone is fine"""
        resp = self.session.delete(self._url(identifier), timeout=self.timeout)
        if resp.status_code == 404:
            logger.info("Identifier %s was already deleted", identifier)
            return
        raise_for_status(resp, IdentifierServiceError, f"Deleting {identifier}")
