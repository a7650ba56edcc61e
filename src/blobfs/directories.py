"""
Directory emulation over a flat key space.

Directories are never stored as first-class entities. With pseudo
directories on, a path is a directory when it is the root, when its text
says so (trailing ``/``, final ``.``/``..``), or when any key lives under
``key/``. With pseudo directories off only the root and explicitly written
marker objects (keys ending in ``/``) count.
"""
from __future__ import annotations

import logging
from typing import Iterator

from .errors import ObjectNotFound
from .path import SEPARATOR, BlobPath
from .storage.base import ObjectStore

__all__ = ["DirectoryEmulator"]

logger = logging.getLogger(__name__)


class DirectoryEmulator:
    """Answers existence and listing questions about directories from key prefixes."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store

    def seems_like_directory(self, path: BlobPath) -> bool:
        """Directory-ness without touching the store: root, or a directory-looking path under pseudo directories."""
        if path.is_root:
            return True
        return path.filesystem.config.use_pseudo_directories and path.is_directory_hint

    def is_directory(self, path: BlobPath) -> bool:
        if self.seems_like_directory(path):
            return True
        if path.filesystem.config.use_pseudo_directories:
            return self.has_children(path)
        key = path.object_key
        if not key.endswith(SEPARATOR):
            return False
        try:
            self._store.get_object(path.namespace, key)
        except ObjectNotFound:
            return False
        return True

    def has_children(self, path: BlobPath, *, include_marker: bool = True) -> bool:
        """True if any key lives under the path's directory prefix."""
        prefix = path.directory_prefix
        for key in self._store.list_by_prefix(path.namespace, prefix):
            if include_marker or key != prefix:
                return True
        return False

    def list(self, path: BlobPath) -> Iterator[BlobPath]:
        """
        Yield the immediate children of ``path``, in key order.

        Files come back as ``dir/name``; sub-directories as ``dir/name/``,
        once each no matter how many keys live below them. Every call
        enumerates the store afresh.
        """
        prefix = path.directory_prefix
        filesystem = path.filesystem
        logger.debug(f"Listing {path.namespace}/{prefix}")

        previous = None
        for key in self._store.list_by_prefix(path.namespace, prefix):
            rest = key[len(prefix):]
            if not rest:
                # The directory's own marker object
                continue
            head, sep, _ = rest.partition(SEPARATOR)
            child = head + sep
            # Keys sharing a next segment are contiguous in lexicographic order
            if child == previous:
                continue
            previous = child
            text = prefix + child
            yield filesystem.get_path(text if text.startswith(SEPARATOR) else SEPARATOR + text)
