"""
Seekable byte channels over a single object.

Read channels keep a cursor and fetch ranges from the store in
``block_size`` chunks; seeking past the end is allowed and the next read
reports end-of-stream. Write channels accumulate every byte locally (in
memory, spilling to a temporary file above ``spool_threshold``) and commit
the whole object with one ``put_object`` on an explicit ``close()``, so no
reader ever observes a partial write.

Both are ``io.RawIOBase`` subclasses and compose with ``io.BufferedReader``
and ``io.TextIOWrapper``.
"""
from __future__ import annotations

import io
import logging
import tempfile
from typing import Optional

from .errors import (
    ChannelClosedError,
    InvalidArgumentError,
    ObjectAlreadyExists,
    PreconditionFailed,
    UnsupportedOperationError,
)
from .storage.base import ObjectMetadata, ObjectStore, StoredObject

__all__ = [
    "ReadChannel",
    "WriteChannel",
    "AbortingBufferedWriter",
    "AbortingTextWrapper",
]

logger = logging.getLogger(__name__)


class _Channel(io.RawIOBase):

    def __init__(self, store: ObjectStore, namespace: str, key: str) -> None:
        super().__init__()
        self._store = store
        self.namespace = namespace
        self.key = key

    @property
    def name(self) -> str:
        return f"{self.namespace}/{self.key}"

    def _check_open(self) -> None:
        if self.closed:
            raise ChannelClosedError(f"Channel is closed: {self.name}", path=self.key)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<{type(self).__name__} {self.name} {state}>"


class ReadChannel(_Channel):
    """
    Random-access reader over one object.

    ``size()`` is the object's length at open time and never changes for the
    life of the channel.
    """

    def __init__(self, store: ObjectStore, stored: StoredObject, *, block_size: int) -> None:
        super().__init__(store, stored.namespace, stored.key)
        self._size = stored.size
        self._block_size = block_size
        self._position = 0
        self._chunk_start = 0
        self._chunk = b""

    @property
    def block_size(self) -> int:
        return self._block_size

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def size(self) -> int:
        self._check_open()
        return self._size

    def tell(self) -> int:
        self._check_open()
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the cursor; any non-negative position is accepted, even past the end."""
        self._check_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._position + offset
        elif whence == io.SEEK_END:
            target = self._size + offset
        else:
            raise InvalidArgumentError(f"Invalid whence: {whence}")
        if target < 0:
            raise InvalidArgumentError(f"Negative seek position: {target}")
        self._position = target
        return target

    def _fill(self, position: int) -> None:
        length = min(self._block_size, self._size - position)
        logger.debug(f"Fetching {self.name} [{position}, {position + length})")
        self._chunk = self._store.get_bytes(self.namespace, self.key, position, length)
        self._chunk_start = position

    def readinto(self, buffer) -> int:
        """
        Fill ``buffer`` from the cursor.

        Returns:
            Bytes read; 0 once the cursor is at or beyond ``size()``
        """
        self._check_open()
        view = memoryview(buffer).cast("B")
        filled = 0
        while filled < len(view) and self._position < self._size:
            offset = self._position - self._chunk_start
            if not 0 <= offset < len(self._chunk):
                self._fill(self._position)
                offset = 0
                if not self._chunk:
                    # Object shrank under us; treat as end of stream
                    break
            count = min(len(view) - filled, len(self._chunk) - offset)
            view[filled:filled + count] = self._chunk[offset:offset + count]
            filled += count
            self._position += count
        return filled

    def close(self) -> None:
        self._chunk = b""
        super().close()


class WriteChannel(_Channel):
    """
    Sequential writer that commits the whole object on close.

    ``tell()`` and ``size()`` report the bytes written so far (including any
    content seeded for append). Leaving a ``with`` block through an exception,
    calling ``abort()``, or dropping an unclosed channel discards everything.
    """

    def __init__(
        self,
        store: ObjectStore,
        namespace: str,
        key: str,
        metadata: ObjectMetadata,
        *,
        if_not_exists: bool = False,
        spool_threshold: int,
        initial: bytes = b"",
    ) -> None:
        super().__init__(store, namespace, key)
        self._metadata = metadata
        self._if_not_exists = if_not_exists
        self._buffer = tempfile.SpooledTemporaryFile(max_size=spool_threshold)
        self._buffer.write(initial)
        self._aborted = False
        self.committed: Optional[StoredObject] = None

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def write(self, data) -> int:
        self._check_open()
        chunk = bytes(data)
        self._buffer.write(chunk)
        return len(chunk)

    def size(self) -> int:
        self._check_open()
        return self._buffer.tell()

    def tell(self) -> int:
        self._check_open()
        return self._buffer.tell()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Only a no-op seek to the current position is supported."""
        self._check_open()
        current = self._buffer.tell()
        target = {io.SEEK_SET: offset, io.SEEK_CUR: current + offset, io.SEEK_END: current + offset}.get(whence)
        if target != current:
            raise UnsupportedOperationError("Write channels are sequential and cannot seek", path=self.key)
        return current

    def truncate(self, size: Optional[int] = None) -> int:
        raise UnsupportedOperationError("Write channels cannot truncate", path=self.key)

    def abort(self) -> None:
        """Close without committing."""
        if self.closed:
            return
        self._aborted = True
        self.close()

    def _commit(self) -> None:
        self._buffer.seek(0)
        try:
            self.committed = self._store.put_object(
                self.namespace, self.key, self._buffer, self._metadata, if_not_exists=self._if_not_exists
            )
        except PreconditionFailed as e:
            raise ObjectAlreadyExists(f"Object already exists: {self.name}", path=self.key) from e
        logger.info(f"Committed {self.committed.size} bytes to {self.name}")

    def close(self) -> None:
        """Commit the buffered content as a single object replace, then close."""
        if self.closed:
            return
        try:
            if self._aborted:
                logger.warning(f"Discarding {self._buffer.tell()} unwritten bytes for {self.name}")
            else:
                self._commit()
        finally:
            self._buffer.close()
            super().close()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()

    def __del__(self) -> None:
        if not self.closed and hasattr(self, "_buffer"):
            self.abort()


class _AbortOnAbandon:
    """Mixin for buffered wrappers: abort the underlying write channel instead of committing."""

    def _write_channel(self) -> WriteChannel:
        raise NotImplementedError

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self._write_channel().abort()
        return super().__exit__(exc_type, exc, tb)

    def __del__(self) -> None:
        if not self.closed:
            self._write_channel().abort()


class AbortingBufferedWriter(_AbortOnAbandon, io.BufferedWriter):

    def _write_channel(self) -> WriteChannel:
        return self.raw


class AbortingTextWrapper(_AbortOnAbandon, io.TextIOWrapper):

    def _write_channel(self) -> WriteChannel:
        return self.buffer.raw
