"""
File attributes and named attribute views.

``BlobFileAttributes`` is the typed record for one path. Attribute views are
a closed set (``basic``, ``posix``, ``blob``); each exposes ``list_names()``
and ``get(name)`` over that record, and ``read_attribute_map`` resolves a
``view:name,name`` request against them. Names a view does not define are
silently omitted.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from .errors import UnsupportedOperationError
from .storage.base import AclEntry, StoredObject

__all__ = [
    "BlobFileAttributes",
    "Principal",
    "FAKE_OWNER",
    "FAKE_GROUP",
    "PSEUDO_DIRECTORY_SIZE",
    "BasicView",
    "PosixView",
    "BlobView",
    "VIEWS",
    "parse_attribute_request",
    "read_attribute_map",
]

# Reported size of a pseudo directory; directories have no stored bytes
PSEUDO_DIRECTORY_SIZE = 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Principal:
    """Synthetic owner or group identity; the store has no ownership model."""
    name: str
    is_group: bool = False

    def __str__(self) -> str:
        return self.name


FAKE_OWNER = Principal("fakeowner")
FAKE_GROUP = Principal("fakegroup", is_group=True)


@dataclass(frozen=True)
class BlobFileAttributes:
    """
    Generic and store-specific attributes of one path.

    Generic fields mirror a POSIX stat; store-specific fields are ``None``
    when unset (and always for pseudo directories).
    """
    creation_time: datetime
    last_modified_time: datetime
    last_access_time: datetime
    size: int
    is_regular_file: bool
    is_directory: bool
    is_symbolic_link: bool = False
    is_other: bool = False
    file_key: Optional[str] = None
    etag: Optional[str] = None
    content_type: Optional[str] = None
    acl: Optional[Tuple[AclEntry, ...]] = None
    cache_control: Optional[str] = None
    content_encoding: Optional[str] = None
    content_disposition: Optional[str] = None
    user_metadata: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_object(cls, stored: StoredObject, *, is_directory: bool = False) -> "BlobFileAttributes":
        """Attributes of a stored object; ``is_directory`` marks a marker object."""
        metadata = stored.metadata
        return cls(
            creation_time=stored.created,
            last_modified_time=stored.updated,
            last_access_time=stored.updated,
            size=stored.size,
            is_regular_file=not is_directory,
            is_directory=is_directory,
            file_key=f"{stored.namespace}/{stored.key}",
            etag=stored.etag,
            content_type=metadata.content_type,
            acl=tuple(metadata.acl) if metadata.acl else None,
            cache_control=metadata.cache_control,
            content_encoding=metadata.content_encoding,
            content_disposition=metadata.content_disposition,
            user_metadata=dict(metadata.user_metadata),
        )

    @classmethod
    def pseudo_directory(cls) -> "BlobFileAttributes":
        """Attributes of a directory inferred from key prefixes."""
        return cls(
            creation_time=_EPOCH,
            last_modified_time=_EPOCH,
            last_access_time=_EPOCH,
            size=PSEUDO_DIRECTORY_SIZE,
            is_regular_file=False,
            is_directory=True,
        )


class BasicView:
    """Timestamps, size and file-type flags."""

    name: ClassVar[str] = "basic"
    NAMES: ClassVar[Tuple[str, ...]] = (
        "creation_time",
        "last_modified_time",
        "last_access_time",
        "size",
        "is_regular_file",
        "is_directory",
        "is_symbolic_link",
        "is_other",
    )

    def __init__(self, attributes: BlobFileAttributes) -> None:
        self._attributes = attributes

    def list_names(self) -> Tuple[str, ...]:
        return self.NAMES

    def get(self, name: str) -> Any:
        if name not in self.NAMES:
            raise KeyError(name)
        return getattr(self._attributes, name)


class PosixView(BasicView):
    """Basic attributes plus fixed owner and group principals."""

    name = "posix"
    NAMES = BasicView.NAMES + ("owner", "group")

    def get(self, name: str) -> Any:
        if name == "owner":
            return FAKE_OWNER
        if name == "group":
            return FAKE_GROUP
        return super().get(name)


class BlobView(BasicView):
    """Basic attributes plus object-store metadata."""

    name = "blob"
    NAMES = BasicView.NAMES + (
        "etag",
        "content_type",
        "acl",
        "cache_control",
        "content_encoding",
        "content_disposition",
        "user_metadata",
    )


VIEWS: Dict[str, type] = {view.name: view for view in (BasicView, PosixView, BlobView)}

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

# camelCase spellings that do not map mechanically onto the field names
_ALIASES = {"mime_type": "content_type"}


def _canonical(name: str) -> str:
    snake = _CAMEL.sub("_", name.strip()).lower()
    return _ALIASES.get(snake, snake)


def parse_attribute_request(request: str) -> Tuple[str, Optional[List[str]]]:
    """
    Split ``view:name1,name2`` into the view name and canonical names.

    An unqualified request targets the ``basic`` view. ``*`` (alone or in
    the list) returns None, meaning every name the view defines.
    camelCase names (``lastModifiedTime``) are accepted as aliases.

    Raises:
        UnsupportedOperationError: If the view is not one of ``VIEWS``
    """
    view_name, sep, names = request.partition(":")
    if not sep:
        view_name, names = BasicView.name, request
    if view_name not in VIEWS:
        raise UnsupportedOperationError(f"Unsupported attribute view: {view_name}")

    requested = [n for n in names.split(",") if n.strip()]
    if any(n.strip() == "*" for n in requested):
        return view_name, None
    return view_name, [_canonical(n) for n in requested]


def read_attribute_map(attributes: BlobFileAttributes, request: str) -> Dict[str, Any]:
    """
    Resolve an attribute request against ``attributes``.

    Returns:
        Mapping of canonical attribute name to value, limited to names the
        requested view defines
    """
    view_name, names = parse_attribute_request(request)
    view = VIEWS[view_name](attributes)
    wanted = view.list_names() if names is None else [n for n in names if n in view.list_names()]
    return {name: view.get(name) for name in wanted}
