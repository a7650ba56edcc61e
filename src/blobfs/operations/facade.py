"""
Operations facade - application service layer between the CLI and the provider.

One method per CLI verb. Exceptions bubble up for central mapping in
``run_and_exit``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..attributes import BlobFileAttributes
from ..options import CopyOption, with_content_type
from ..path import BlobPath
from ..provider import BlobFileSystemProvider


@dataclass(frozen=True)
class OpsConfig:
    """Policy shared by every command."""
    force: bool = False           # Replace existing targets


class Operations:
    """
    Application service facade for CLI operations.

    Holds the provider and applies ``OpsConfig`` consistently; CLI commands
    only parse arguments and print results.
    """

    def __init__(self, config: OpsConfig, provider: BlobFileSystemProvider) -> None:
        self.cfg = config
        self.provider = provider

    def _copy_options(self) -> List[CopyOption]:
        return [CopyOption.REPLACE_EXISTING] if self.cfg.force else []

    def ls(self, uri: str) -> Iterator[BlobPath]:
        """Children of a directory, or the path itself for an object."""
        path = self.provider.get_path(uri)
        if self.provider.is_directory(path):
            return self.provider.list_directory(path)
        self.provider.check_access(path)
        return iter([path])

    def ls_long(self, uri: str) -> List[Tuple[BlobPath, BlobFileAttributes]]:
        return [(child, self.provider.read_attributes(child)) for child in self.ls(uri)]

    def cat(self, uri: str) -> bytes:
        return self.provider.read_bytes(self.provider.get_path(uri))

    def put(self, local_path: str, uri: str, *, content_type: Optional[str] = None) -> BlobPath:
        target = self.provider.get_path(uri)
        options: List[Any] = self._copy_options()
        if content_type:
            options.append(with_content_type(content_type))
        self.provider.copy(local_path, target, *options)
        return target

    def cp(self, source: str, target: str) -> None:
        """Copy between two URIs, or between a URI and a local path."""
        self.provider.copy(source, target, *self._copy_options(), CopyOption.COPY_ATTRIBUTES)

    def mv(self, source: str, target: str, *, atomic: bool = False) -> None:
        options = self._copy_options()
        if atomic:
            options.append(CopyOption.ATOMIC_MOVE)
        self.provider.move(source, target, *options)

    def rm(self, uri: str, *, missing_ok: bool = False) -> bool:
        path = self.provider.get_path(uri)
        if missing_ok:
            return self.provider.delete_if_exists(path)
        self.provider.delete(path)
        return True

    def stat(self, uri: str, request: str = "blob:*") -> Tuple[BlobPath, Dict[str, Any]]:
        path = self.provider.get_path(uri)
        return path, self.provider.read_attribute_map(path, request)
