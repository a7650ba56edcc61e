"""
Filesystem error classes.

Provides a clear taxonomy of failures that can occur while emulating a
hierarchical filesystem on top of an object store. Every error carries an
``ErrorKind`` so callers can branch on ``err.kind`` instead of on the class
hierarchy; each class also derives from the closest builtin exception so
plain ``except FileNotFoundError`` keeps working.
"""
from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Discriminator shared by every blobfs error."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PSEUDO_DIRECTORY = "pseudo_directory"
    DIRECTORY_NOT_EMPTY = "directory_not_empty"
    INVALID_ARGUMENT = "invalid_argument"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    PRECONDITION_FAILED = "precondition_failed"
    CLOSED_CHANNEL = "closed_channel"
    BACKEND = "backend"


class BlobFsError(Exception):
    """
    Base class for all blobfs errors.

    Attributes:
        kind: Error discriminator
        path: Path or URI the failing operation was acting on, if any
    """

    kind: ErrorKind = ErrorKind.BACKEND

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ObjectNotFound(BlobFsError, FileNotFoundError):
    """
    Target object or namespace does not exist.

    Raised when:
    - opening a read channel on a missing object
    - deleting a missing object
    - copying or moving from a missing source
    """

    kind = ErrorKind.NOT_FOUND


class ObjectAlreadyExists(BlobFsError, FileExistsError):
    """
    Target is already present.

    Raised when:
    - opening with CREATE_NEW and the object exists
    - copying or moving onto an existing target without REPLACE_EXISTING
    """

    kind = ErrorKind.ALREADY_EXISTS


class PseudoDirectoryError(BlobFsError, IsADirectoryError):
    """Byte-level I/O attempted against a path resolved as a directory."""

    kind = ErrorKind.PSEUDO_DIRECTORY


class DirectoryNotEmpty(BlobFsError, OSError):
    """Delete of a pseudo directory that still has children."""

    kind = ErrorKind.DIRECTORY_NOT_EMPTY


class InvalidArgumentError(BlobFsError, ValueError):
    """
    Malformed key or reference.

    Raised when:
    - I/O is attempted on a denormalized object name (empty components,
      unresolved ``.`` or ``..``)
    - a URI lacks its namespace authority
    - an object name is empty
    """

    kind = ErrorKind.INVALID_ARGUMENT


class UnsupportedOperationError(BlobFsError, NotImplementedError):
    """Operation or option cannot be honoured by this filesystem."""

    kind = ErrorKind.UNSUPPORTED_OPERATION


class AtomicMoveNotSupported(UnsupportedOperationError):
    """
    Atomic semantics were requested where they cannot be guaranteed.

    Raised for ATOMIC_MOVE on any copy, on a cross-namespace move, or on a
    backend without an atomic rename.
    """

    def __init__(self, source: str, target: str, reason: str):
        super().__init__(f"{source} -> {target}: {reason}", path=source)
        self.source = source
        self.target = target
        self.reason = reason


class PreconditionFailed(BlobFsError):
    """
    A conditional write or rename lost a race.

    Backends raise this; the provider surfaces it to callers as
    ``ObjectAlreadyExists`` where the condition was non-existence.
    """

    kind = ErrorKind.PRECONDITION_FAILED


class ChannelClosedError(BlobFsError, ValueError):
    """Operation attempted on a channel that is already closed."""

    kind = ErrorKind.CLOSED_CHANNEL


class BackendError(BlobFsError, OSError):
    """Any other failure reported by the object store."""

    kind = ErrorKind.BACKEND


__all__ = [
    "ErrorKind",
    "BlobFsError",
    "ObjectNotFound",
    "ObjectAlreadyExists",
    "PseudoDirectoryError",
    "DirectoryNotEmpty",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "AtomicMoveNotSupported",
    "PreconditionFailed",
    "ChannelClosedError",
    "BackendError",
]
