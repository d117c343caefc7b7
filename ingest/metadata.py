"""
Package metadata, request parameters and the indexing configuration derived
from both
"""

from dataclasses import asdict, dataclass
from typing import Iterable, Iterator, Mapping, Optional

from ingest import constants


class PackageMetadata:
    """
    Ordered ``(key, value)`` pairs from a package's bag-info.txt.

    Keys may repeat. Lookups return the first occurrence; iteration yields
    every pair in insertion order.
    """

    def __init__(self, entries: Iterable[tuple[str, str]] = ()):
        self._entries = [(str(key), str(value)) for key, value in entries]

    @classmethod
    def from_bag_info(cls, bag_info: Mapping) -> "PackageMetadata":
        """
        Build from ``bagit.Bag.info``, where a repeated key is stored as a list
        of its values
        """
        entries = []
        for key, value in bag_info.items():
            if isinstance(value, (list, tuple)):
                entries.extend((key, v) for v in value)
            else:
                entries.append((key, value))
        return cls(entries)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return any(k == key for k, _ in self._entries)

    def __eq__(self, other):
        if isinstance(other, PackageMetadata):
            return self._entries == other._entries
        return NotImplemented

    def __repr__(self):
        return f"PackageMetadata({self._entries!r})"

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for k, v in self._entries:
            if k == key:
                return v
        return default

    def get_nonblank(self, key: str) -> Optional[str]:
        """First value for ``key`` which is not blank"""
        for k, v in self._entries:
            if k == key and v.strip():
                return v
        return None

    def to_list(self) -> list[list[str]]:
        """JSON friendly form, used to pass metadata through the task broker"""
        return [[k, v] for k, v in self._entries]


def parse_bool(value) -> Optional[bool]:
    """
    Parse "true"/"false" (any case, surrounding whitespace ignored). Anything
    else, including a blank value, gives ``None``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    value = str(value).strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None


@dataclass(frozen=True)
class ImportParameters:
    """Already-parsed parameters of an import request"""

    previous_identifier: Optional[str] = None
    image_file_group: Optional[str] = None
    fulltext_file_group: Optional[str] = None
    fulltext_format_type: Optional[str] = None
    ground_truth: Optional[bool] = None

    #: Accepted form field names (lowercase) for each parameter
    FIELD_ALIASES = {
        "prev": "previous_identifier",
        "gt": "ground_truth",
        "isgt": "ground_truth",
        "image-filegrp": "image_file_group",
        "imagefilegrp": "image_file_group",
        "fulltext-filegrp": "fulltext_file_group",
        "fulltextfilegrp": "fulltext_file_group",
        "fulltext-ftype": "fulltext_format_type",
        "fulltextftype": "fulltext_format_type",
    }

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "ImportParameters":
        """
        Build parameters from the plain form fields of an import request.

        Field names are matched case-insensitively against ``FIELD_ALIASES``;
        unknown fields are ignored. Blank values count as not given.

        Raises:
            ValueError: if the ground truth field has a value which is neither
                ``true`` nor ``false``.
        """
        values = {}
        for field_name, raw in form.items():
            attribute = cls.FIELD_ALIASES.get(field_name.strip().lower())
            if attribute is None or raw is None:
                continue
            raw = str(raw).strip()
            if not raw:
                continue
            if attribute == "ground_truth":
                parsed = parse_bool(raw)
                if parsed is None:
                    raise ValueError(
                        f"'{field_name}' was given with value '{raw}' but must be "
                        "either true or false"
                    )
                values[attribute] = parsed
            else:
                values[attribute] = raw
        return cls(**values)


@dataclass(frozen=True)
class IndexingConfig:
    image_file_group: str = constants.DEFAULT_IMAGE_FILEGRP
    fulltext_file_group: str = constants.DEFAULT_FULLTEXT_FILEGRP
    fulltext_format_type: str = constants.DEFAULT_FULLTEXT_FTYPE
    ground_truth: Optional[bool] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping) -> "IndexingConfig":
        return cls(**data)


def resolve_indexing_config(
    metadata: PackageMetadata, params: Optional[ImportParameters] = None
) -> IndexingConfig:
    """
    Work out how the search index should read the package.

    Each field is resolved on its own: a request parameter wins over the
    bag-info.txt key, which wins over the default.
    """
    params = params or ImportParameters()

    def pick(param_value, metadata_key, default):
        if param_value:
            return param_value
        return metadata.get_nonblank(metadata_key) or default

    ground_truth = params.ground_truth
    if ground_truth is None:
        ground_truth = parse_bool(metadata.get_nonblank(constants.BAGINFO_KEY_IS_GT))

    return IndexingConfig(
        image_file_group=pick(
            params.image_file_group,
            constants.BAGINFO_KEY_IMAGE_FILEGRP,
            constants.DEFAULT_IMAGE_FILEGRP,
        ),
        fulltext_file_group=pick(
            params.fulltext_file_group,
            constants.BAGINFO_KEY_FULLTEXT_FILEGRP,
            constants.DEFAULT_FULLTEXT_FILEGRP,
        ),
        fulltext_format_type=pick(
            params.fulltext_format_type,
            constants.BAGINFO_KEY_FTYPE,
            constants.DEFAULT_FULLTEXT_FTYPE,
        ),
        ground_truth=ground_truth,
    )


def mets_path(metadata: Mapping[str, str] | PackageMetadata) -> str:
    """
    Path of the METS file relative to the bag root, as declared by
    ``Ocrd-Mets`` or the default ``data/mets.xml``
    """
    declared = metadata.get(constants.BAGINFO_KEY_METS)
    if declared and declared.strip():
        return "/".join([constants.PAYLOAD_DIR, declared.strip().lstrip("/")])
    return "/".join([constants.PAYLOAD_DIR, constants.DEFAULT_METS_PATH])
