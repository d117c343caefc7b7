import os
import tempfile

import bagit

from ingest import constants
from ingest.models import ArchiveVersion, TrackingRecord


def create_package(
    *,
    bag_info=None,
    file_groups=(constants.DEFAULT_IMAGE_FILEGRP, constants.DEFAULT_FULLTEXT_FILEGRP),
    mets_path=constants.DEFAULT_METS_PATH,
    root=None,
):
    """
    Build a BagIt package in a new temporary directory and return its path.

    ``mets_path`` is the METS location below the payload directory; pass None
    to leave it out. Each file group becomes a payload directory with one file.
    The caller is responsible for removing the directory.
    """
    if root is None:
        root = tempfile.mkdtemp(prefix="ingest-test-")
    if bag_info is None:
        bag_info = {constants.BAGINFO_KEY_IDENTIFIER: "test-package"}

    if mets_path:
        full_mets_path = os.path.join(root, mets_path)
        os.makedirs(os.path.dirname(full_mets_path), exist_ok=True)
        with open(full_mets_path, "w") as f:
            f.write("<mets:mets/>\n")

    for group in file_groups:
        os.makedirs(os.path.join(root, group), exist_ok=True)
        with open(os.path.join(root, group, "0001.txt"), "w") as f:
            f.write(f"{group}\n")

    bagit.make_bag(root, bag_info=dict(bag_info), checksums=["sha512"])
    return root


def create_tracking_record(*, owner="tester", **kwargs):
    tracking_record = TrackingRecord(owner=owner, **kwargs)
    tracking_record.save()
    return tracking_record


def create_archive_version(*, identifier="21.T11998/PREV", **kwargs):
    kwargs.setdefault("online_copy_id", f"online/{identifier}")
    kwargs.setdefault("offline_copy_id", f"offline/{identifier}")
    version = ArchiveVersion(identifier=identifier, **kwargs)
    version.save()
    return version
