"""
Fake object store implementation for testing.

This implementation explicitly subclasses ObjectStore to ensure interface
changes break CI immediately, preventing silent drift.
"""
from __future__ import annotations

import hashlib
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ...errors import ObjectNotFound, PreconditionFailed
from ..base import DEFAULT_CONTENT_TYPE, ObjectMetadata, ObjectStore, Payload, StoredObject

__all__ = ["FakeBlobStore"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FakeBlobStore(ObjectStore):
    """
    In-memory object store keyed by (namespace, key) for testing.

    This is a test double; not for production use. Every mutation bumps a
    global generation counter, and all operations take a single lock so a
    conditional write or rename is atomic with respect to other threads.
    """

    atomic_rename = True

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._generation = 0
        self._data: Dict[Tuple[str, str], bytes] = {}
        self._objects: Dict[Tuple[str, str], StoredObject] = {}
        # (operation, namespace, key) for every backend call, oldest first
        self.calls: List[Tuple[str, str, str]] = []

    def _require(self, namespace: str, key: str) -> StoredObject:
        obj = self._objects.get((namespace, key))
        if obj is None:
            raise ObjectNotFound(f"{namespace}/{key}", path=key)
        return obj

    def _store(self, namespace: str, key: str, data: bytes, metadata: ObjectMetadata) -> StoredObject:
        self._generation += 1
        now = self._clock()
        previous = self._objects.get((namespace, key))
        if metadata.content_type is None:
            metadata = replace(metadata, content_type=DEFAULT_CONTENT_TYPE)
        obj = StoredObject(
            namespace=namespace,
            key=key,
            size=len(data),
            created=previous.created if previous else now,
            updated=now,
            etag=hashlib.md5(data).hexdigest(),
            generation=self._generation,
            metadata=replace(metadata, user_metadata=dict(metadata.user_metadata)),
        )
        self._data[(namespace, key)] = data
        self._objects[(namespace, key)] = obj
        return obj

    def get_object(self, namespace: str, key: str) -> StoredObject:
        """Get object metadata."""
        with self._lock:
            self.calls.append(("get_object", namespace, key))
            return self._require(namespace, key)

    def get_bytes(self, namespace: str, key: str, offset: int = 0, length: Optional[int] = None) -> bytes:
        """Retrieve a byte range of the object."""
        with self._lock:
            self.calls.append(("get_bytes", namespace, key))
            self._require(namespace, key)
            data = self._data[(namespace, key)]
            end = len(data) if length is None else offset + length
            return data[offset:end]

    def put_object(
        self,
        namespace: str,
        key: str,
        data: Payload,
        metadata: ObjectMetadata,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """Store object and return metadata."""
        content = data if isinstance(data, bytes) else data.read()
        with self._lock:
            self.calls.append(("put_object", namespace, key))
            if if_not_exists and (namespace, key) in self._objects:
                raise PreconditionFailed(f"{namespace}/{key} already exists", path=key)
            return self._store(namespace, key, content, metadata)

    def delete_object(self, namespace: str, key: str) -> None:
        """Remove an object."""
        with self._lock:
            self.calls.append(("delete_object", namespace, key))
            self._require(namespace, key)
            del self._objects[(namespace, key)]
            del self._data[(namespace, key)]

    def list_by_prefix(self, namespace: str, prefix: str) -> Iterator[str]:
        """Yield matching keys in lexicographic order."""
        with self._lock:
            self.calls.append(("list_by_prefix", namespace, prefix))
            keys = sorted(k for ns, k in self._objects if ns == namespace and k.startswith(prefix))
        return iter(keys)

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
        """Copy an object, optionally replacing its metadata."""
        with self._lock:
            self.calls.append(("copy_object", source_namespace, source_key))
            source = self._require(source_namespace, source_key)
            if if_not_exists and (target_namespace, target_key) in self._objects:
                raise PreconditionFailed(f"{target_namespace}/{target_key} already exists", path=target_key)
            data = self._data[(source_namespace, source_key)]
            return self._store(target_namespace, target_key, data, metadata or source.metadata)

    def rename_object(
        self,
        namespace: str,
        source_key: str,
        target_key: str,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """Atomically rename an object within one namespace."""
        with self._lock:
            self.calls.append(("rename_object", namespace, source_key))
            source = self._require(namespace, source_key)
            if if_not_exists and (namespace, target_key) in self._objects:
                raise PreconditionFailed(f"{namespace}/{target_key} already exists", path=target_key)
            data = self._data.pop((namespace, source_key))
            del self._objects[(namespace, source_key)]
            return self._store(namespace, target_key, data, source.metadata)

    def call_count(self, operation: str) -> int:
        """Number of recorded calls to ``operation`` (test utility)."""
        return sum(1 for op, _, _ in self.calls if op == operation)

    def clear(self) -> None:
        """Clear all stored data (test utility)."""
        with self._lock:
            self._objects.clear()
            self._data.clear()
            self.calls.clear()
