from logging import getLogger
from typing import Optional

import requests
from django.conf import settings

from ingest.exceptions import IndexerError
from ingest.services import raise_for_status

logger = getLogger(__name__)


class WebNotifierClient:
    """Tells the search indexer that a package is ready to be indexed"""

    def __init__(self, session: Optional[requests.Session] = None):
        config = settings.INGEST_WEB_NOTIFIER
        self.url = config["URL"]
        self.timeout = config["TIMEOUT"]
        self.session = session or requests.Session()

    def notify(
        self,
        identifier: str,
        image_file_group: str,
        fulltext_file_group: str,
        format_type: str,
        ground_truth: Optional[bool] = None,
    ) -> None:
        payload = {
            "document": identifier,
            "context": "ocrd",
            "product": "olahds",
            "imageFileGrp": image_file_group,
            "fulltextFileGrp": fulltext_file_group,
            "ftype": format_type,
        }
        if ground_truth is not None:
            payload["isGt"] = ground_truth

        resp = self.session.post(
            self.url,
            json=payload,
            headers={"Accept": "*/*", "Cache-Control": "no-cache"},
            timeout=self.timeout,
        )
        raise_for_status(resp, IndexerError, f"Notifying the indexer of {identifier}")
        logger.info("Notified the indexer of %s", identifier)
