"""
Storage interfaces for blobfs.

These protocols define the boundary between the filesystem emulation and
object store implementations, enabling clean dependency injection and
testing with fakes.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import IO, Iterator, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

# Payload accepted by put_object: raw bytes or a readable binary stream
Payload = Union[bytes, IO[bytes]]

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class AclEntry:
    """One access-control grant on an object, e.g. ``user-foo`` as ``OWNER``."""
    entity: str
    role: str

    def __str__(self) -> str:
        return f"{self.entity}:{self.role}"


@dataclass(frozen=True)
class ObjectMetadata:
    """
    Store-specific metadata attached to an object.

    Every field is optional; ``None`` means "not set" and lets the backend
    apply its default (content type falls back to ``DEFAULT_CONTENT_TYPE``).
    """
    content_type: Optional[str] = None
    cache_control: Optional[str] = None
    content_encoding: Optional[str] = None
    content_disposition: Optional[str] = None
    user_metadata: Mapping[str, str] = field(default_factory=dict)
    acl: Tuple[AclEntry, ...] = ()

    def overridden_by(self, other: "ObjectMetadata") -> "ObjectMetadata":
        """
        Return a copy where every field explicitly set on ``other`` wins.

        User metadata is merged key by key; ACL entries are replaced when
        ``other`` carries any.
        """
        merged_user = dict(self.user_metadata)
        merged_user.update(other.user_metadata)
        return replace(
            self,
            content_type=other.content_type if other.content_type is not None else self.content_type,
            cache_control=other.cache_control if other.cache_control is not None else self.cache_control,
            content_encoding=(
                other.content_encoding if other.content_encoding is not None else self.content_encoding
            ),
            content_disposition=(
                other.content_disposition if other.content_disposition is not None else self.content_disposition
            ),
            user_metadata=merged_user,
            acl=other.acl or self.acl,
        )


@dataclass(frozen=True)
class StoredObject:
    """
    Backend-resident object as seen by the filesystem layer.

    Invariants:
    - size: exact byte length (>= 0)
    - updated: last modification time, timezone-aware
    - etag: opaque entity tag, changes whenever content changes
    """
    namespace: str
    key: str
    size: int
    created: datetime
    updated: datetime
    etag: Optional[str] = None
    generation: Optional[int] = None
    metadata: ObjectMetadata = field(default_factory=ObjectMetadata)


__all__ = [
    "AclEntry",
    "ObjectMetadata",
    "StoredObject",
    "ObjectStore",
    "Payload",
    "DEFAULT_CONTENT_TYPE",
]


@runtime_checkable
class ObjectStore(Protocol):
    """
    Protocol for flat key-object stores.

    Implementations translate their SDK errors into ``blobfs.errors``:
    ``ObjectNotFound`` for a missing object or namespace,
    ``PreconditionFailed`` for a lost conditional write, ``BackendError`` for
    anything else. None of the operations retry; that is the client's job.
    """

    #: True when rename_object is a single atomic backend call
    atomic_rename: bool

    def get_object(self, namespace: str, key: str) -> StoredObject:
        """
        Get metadata for an object without fetching content.

        Raises:
            ObjectNotFound: If the object does not exist
        """
        ...

    def get_bytes(self, namespace: str, key: str, offset: int = 0, length: Optional[int] = None) -> bytes:
        """
        Read ``length`` bytes starting at ``offset`` (to the end when None).

        Raises:
            ObjectNotFound: If the object does not exist
        """
        ...

    def put_object(
        self,
        namespace: str,
        key: str,
        data: Payload,
        metadata: ObjectMetadata,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """
        Replace the whole object with ``data``.

        Args:
            namespace: Target namespace
            key: Target object key
            data: Full object content
            metadata: Metadata for the new object
            if_not_exists: Only succeed if no object exists at commit time

        Raises:
            PreconditionFailed: If ``if_not_exists`` and the object exists
        """
        ...

    def delete_object(self, namespace: str, key: str) -> None:
        """
        Remove an object.

        Raises:
            ObjectNotFound: If the object does not exist
        """
        ...

    def list_by_prefix(self, namespace: str, prefix: str) -> Iterator[str]:
        """Yield every key in ``namespace`` starting with ``prefix``, in lexicographic order."""
        ...

    def copy_object(
        self,
        source_namespace: str,
        source_key: str,
        target_namespace: str,
        target_key: str,
        metadata: Optional[ObjectMetadata] = None,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """
        Server-side copy.

        Args:
            metadata: Metadata for the target; ``None`` preserves the source's
            if_not_exists: Only succeed if the target does not exist

        Raises:
            ObjectNotFound: If the source does not exist
            PreconditionFailed: If ``if_not_exists`` and the target exists
        """
        ...

    def rename_object(
        self,
        namespace: str,
        source_key: str,
        target_key: str,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """
        Rename within one namespace.

        Raises:
            ObjectNotFound: If the source does not exist
            PreconditionFailed: If ``if_not_exists`` and the target exists
        """
        ...
