"""
Structural checks for extracted packages

The rules follow the OCRD-ZIP profile as far as the archive depends on it.
Every rule runs and all violations are returned together; a package is only
valid when the list is empty.
"""

import os
from logging import getLogger
from typing import Optional

import bagit

from ingest import constants
from ingest.exceptions import PackageInvalid
from ingest.metadata import ImportParameters, PackageMetadata

logger = getLogger(__name__)


def read_package(root: str, verify: bool = True) -> tuple[bagit.Bag, PackageMetadata]:
    """
    Load the bag at ``root`` and return it with its bag-info.txt metadata.

    With ``verify`` the payload is checked against the bag manifests as well.

    Raises:
        PackageInvalid: if ``root`` is not a readable or not a valid bag.
    """
    try:
        bag = bagit.Bag(root)
        if verify:
            bag.validate()
    except bagit.BagError as exc:
        logger.info("Rejecting package at %s: %s", root, exc)
        raise PackageInvalid([f"Invalid BagIt structure: {exc}"]) from exc

    return bag, PackageMetadata.from_bag_info(bag.info)


def list_file_groups(root: str) -> list[str]:
    """Names of the directories directly below the payload directory"""
    payload = os.path.join(root, constants.PAYLOAD_DIR)
    try:
        entries = os.scandir(payload)
    except FileNotFoundError:
        return []
    with entries:
        return sorted(entry.name for entry in entries if entry.is_dir())


def validate_package(
    root: str, metadata: PackageMetadata, params: Optional[ImportParameters] = None
) -> list[str]:
    """
    Check an extracted package against the structural rules.

    Args:
        root: Directory of the extracted bag.
        metadata: The package's bag-info.txt entries.
        params: Parameters given with the import request.

    Returns:
        Every violation found, in rule order. An empty list means valid.
    """
    params = params or ImportParameters()
    errors = []
    payload = os.path.join(root, constants.PAYLOAD_DIR)

    if constants.BAGINFO_KEY_IDENTIFIER not in metadata:
        errors.append(
            f"bag-info.txt must contain key: '{constants.BAGINFO_KEY_IDENTIFIER}'"
        )

    if constants.BAGINFO_KEY_METS not in metadata:
        if not os.path.isfile(os.path.join(payload, constants.DEFAULT_METS_PATH)):
            errors.append(
                f"{constants.DEFAULT_METS_PATH} not found and "
                f"'{constants.BAGINFO_KEY_METS}' not provided in bag-info.txt"
            )
    else:
        declared = metadata.get(constants.BAGINFO_KEY_METS).strip().lstrip("/")
        if not declared or not os.path.isfile(os.path.join(payload, declared)):
            errors.append(
                f"{constants.BAGINFO_KEY_METS} is set, but specified file not existing"
            )

    declared_groups = []
    for key in (
        constants.BAGINFO_KEY_IMAGE_FILEGRP,
        constants.BAGINFO_KEY_FULLTEXT_FILEGRP,
    ):
        if key in metadata:
            declared_groups.append(
                (metadata.get(key), f"'{key}' is provided, but specified File-Grp")
            )
    for name, value in (
        ("Image-Filegrp", params.image_file_group),
        ("Fulltext-Filegrp", params.fulltext_file_group),
    ):
        if value and value.strip():
            declared_groups.append(
                (value, f"Parameter '{name}' is provided, but specified File-Grp")
            )

    if declared_groups:
        file_groups = list_file_groups(root)
        for group, prefix in declared_groups:
            if group not in file_groups:
                errors.append(f"{prefix} ({group}) is not existing")

    valid_ftypes = ", ".join(constants.POSSIBLE_FULLTEXT_FTYPES)
    if constants.BAGINFO_KEY_FTYPE in metadata:
        ftype = metadata.get(constants.BAGINFO_KEY_FTYPE)
        if ftype not in constants.POSSIBLE_FULLTEXT_FTYPES:
            errors.append(
                f"'{constants.BAGINFO_KEY_FTYPE}' is provided, but value ({ftype}) "
                f"is invalid. Valid are following values: '{valid_ftypes}'"
            )

    if params.fulltext_format_type and params.fulltext_format_type.strip():
        ftype = params.fulltext_format_type
        if ftype not in constants.POSSIBLE_FULLTEXT_FTYPES:
            errors.append(
                f"Parameter 'fulltext-ftype' is provided, but the value ({ftype}) "
                f"is invalid. Valid are the following values: '{valid_ftypes}'"
            )

    # Ground truth is a property of the request, never of the package itself
    if constants.BAGINFO_KEY_IS_GT in metadata:
        errors.append(
            f"'{constants.BAGINFO_KEY_IS_GT}' must not be set in bag-info.txt, "
            "use the request parameter 'gt' instead"
        )

    return errors


def ensure_valid_package(
    root: str, metadata: PackageMetadata, params: Optional[ImportParameters] = None
) -> None:
    """
    Raises:
        PackageInvalid: with all violations, if there are any.
    """
    errors = validate_package(root, metadata, params)
    if errors:
        raise PackageInvalid(errors)
