"""
One namespace viewed as a hierarchical filesystem.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, FrozenSet

from .attributes import VIEWS
from .errors import InvalidArgumentError
from .path import SEPARATOR, BlobPath
from .settings import Configuration

if TYPE_CHECKING:
    from .provider import BlobFileSystemProvider

__all__ = ["BlobFileSystem"]


class BlobFileSystem:
    """
    A namespace (bucket/container) plus the Configuration used to map paths
    onto its keys.

    Filesystems hold no resources; ``close()`` exists for symmetry with the
    context-manager protocol and the instance stays usable afterwards.
    """

    def __init__(self, provider: "BlobFileSystemProvider", namespace: str, config: Configuration) -> None:
        if not namespace:
            raise InvalidArgumentError("Namespace cannot be empty")
        if SEPARATOR in namespace:
            raise InvalidArgumentError(f"Namespace cannot contain '{SEPARATOR}': {namespace}")
        self._provider = provider
        self._namespace = namespace
        self._config = config

    @property
    def provider(self) -> "BlobFileSystemProvider":
        return self._provider

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def scheme(self) -> str:
        return self._provider.scheme

    @property
    def separator(self) -> str:
        return SEPARATOR

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{self._namespace}"

    @property
    def root(self) -> BlobPath:
        return BlobPath(self, SEPARATOR)

    @property
    def working_directory(self) -> BlobPath:
        return BlobPath(self, self._config.working_directory)

    @property
    def supported_views(self) -> FrozenSet[str]:
        return frozenset(VIEWS)

    def get_path(self, first: str, *more: str) -> BlobPath:
        """
        Join ``first`` and ``more`` with ``/`` into a path; empty pieces are skipped.

        No escaping or normalization is applied.
        """
        pieces = [p for p in (first, *more) if p]
        return BlobPath(self, SEPARATOR.join(pieces))

    def close(self) -> None:
        """Nothing to release."""

    def __enter__(self) -> "BlobFileSystem":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BlobFileSystem):
            return NotImplemented
        return (self._provider, self._namespace, self._config) == (other._provider, other._namespace, other._config)

    def __hash__(self) -> int:
        return hash((self._provider, self._namespace, self._config))

    def __repr__(self) -> str:
        return f"BlobFileSystem({self.uri})"
