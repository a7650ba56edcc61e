"""
Filesystem provider: every operation on paths, backed by an ObjectStore.

The provider owns the store and translates path operations into object
operations. Paths carry their filesystem (namespace + Configuration), so a
single provider serves any number of namespaces.
"""
from __future__ import annotations

import io
import logging
import os
import shutil
from typing import Iterable, Iterator, List, Mapping, Optional, Union

from .attributes import BlobFileAttributes, parse_attribute_request, read_attribute_map
from .channel import AbortingBufferedWriter, AbortingTextWrapper, ReadChannel, WriteChannel
from .directories import DirectoryEmulator
from .errors import (
    AtomicMoveNotSupported,
    DirectoryNotEmpty,
    InvalidArgumentError,
    ObjectAlreadyExists,
    ObjectNotFound,
    PreconditionFailed,
    PseudoDirectoryError,
)
from .filesystem import BlobFileSystem
from .options import (
    AnyOption,
    CopyOption,
    OpenOption,
    options_for_mode,
    parse_copy_options,
    parse_open_options,
)
from .path import SEPARATOR, BlobPath
from .settings import Configuration, Settings, configuration_from_mapping, create_settings_from_env
from .storage.base import ObjectMetadata, ObjectStore, StoredObject
from .uri import parse_uri, split_reference

__all__ = ["BlobFileSystemProvider", "create_provider_from_env"]

logger = logging.getLogger(__name__)

LocalPath = Union[str, "os.PathLike[str]"]

_DEFAULT_WRITE = (OpenOption.WRITE, OpenOption.CREATE, OpenOption.TRUNCATE_EXISTING)


class BlobFileSystemProvider:
    """
    POSIX-like filesystem operations over a flat object store.

    Two providers are equal when they share the same store instance and
    scheme. ``config`` is the default Configuration for filesystems the
    provider hands out; ``for_namespace`` and ``new_filesystem`` can
    override it per filesystem.
    """

    def __init__(self, store: ObjectStore, *, scheme: str = "az", config: Optional[Configuration] = None) -> None:
        self._store = store
        self._scheme = scheme
        self._config = config or Configuration()
        self._directories = DirectoryEmulator(store)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BlobFileSystemProvider":
        """Provider over Azure Blob Storage configured from ``settings``."""
        from .storage.azure import AzureBlobStore

        return cls(AzureBlobStore(settings=settings), scheme=settings.scheme, config=settings.config)

    @property
    def store(self) -> ObjectStore:
        return self._store

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def config(self) -> Configuration:
        return self._config

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BlobFileSystemProvider):
            return NotImplemented
        return self._store is other._store and self._scheme == other._scheme

    def __hash__(self) -> int:
        return hash((id(self._store), self._scheme))

    def __repr__(self) -> str:
        return f"BlobFileSystemProvider({type(self._store).__name__}, scheme={self._scheme!r})"

    # -- filesystems and paths ---------------------------------------------

    def for_namespace(self, namespace: str, config: Optional[Configuration] = None) -> BlobFileSystem:
        return BlobFileSystem(self, namespace, config or self._config)

    def get_filesystem(self, uri: str) -> BlobFileSystem:
        """Filesystem for the namespace named by ``uri``; the URI's path is ignored."""
        return self.for_namespace(parse_uri(uri, self._scheme).namespace)

    def new_filesystem(self, uri: str, env: Optional[Mapping[str, object]] = None) -> BlobFileSystem:
        """
        Filesystem for ``uri`` with Configuration built from ``env``.

        Raises:
            ValueError: On unknown configuration keys or invalid values
        """
        config = configuration_from_mapping(env) if env else self._config
        return self.for_namespace(parse_uri(uri, self._scheme).namespace, config)

    def get_path(self, reference: str) -> BlobPath:
        """
        Path for ``scheme://namespace/path`` taken verbatim, without URI escaping.

        >>> provider.get_path("az://bucket/with/a space")  # doctest: +SKIP
        """
        parsed = split_reference(reference, self._scheme)
        return self.for_namespace(parsed.namespace).get_path(parsed.path or SEPARATOR)

    def get_path_from_uri(self, uri: str) -> BlobPath:
        """Path for a percent-escaped URI such as ``az://bucket/with/a%20space``."""
        parsed = parse_uri(uri, self._scheme)
        return self.for_namespace(parsed.namespace).get_path(parsed.path or SEPARATOR)

    def _check(self, path: Union[BlobPath, str]) -> BlobPath:
        if isinstance(path, str):
            return self.get_path(path)
        if not isinstance(path, BlobPath):
            raise InvalidArgumentError(f"Not a blob path: {path!r}")
        if path.filesystem.provider != self:
            raise InvalidArgumentError(f"Path belongs to a different provider: {path.to_uri()}")
        return path

    def _probe(self, path: BlobPath) -> Optional[StoredObject]:
        try:
            return self._store.get_object(path.namespace, path.object_key)
        except ObjectNotFound:
            return None

    def _pseudo(self, path: BlobPath) -> bool:
        return path.filesystem.config.use_pseudo_directories

    # -- queries -------------------------------------------------------------

    def exists(self, path: Union[BlobPath, str]) -> bool:
        path = self._check(path)
        if self._directories.seems_like_directory(path):
            return True
        if self._probe(path) is not None:
            return True
        return self._pseudo(path) and self._directories.has_children(path)

    def is_directory(self, path: Union[BlobPath, str]) -> bool:
        return self._directories.is_directory(self._check(path))

    def is_regular_file(self, path: Union[BlobPath, str]) -> bool:
        try:
            return self.read_attributes(path).is_regular_file
        except ObjectNotFound:
            return False

    def size(self, path: Union[BlobPath, str]) -> int:
        return self.read_attributes(path).size

    def read_attributes(self, path: Union[BlobPath, str]) -> BlobFileAttributes:
        """
        Attributes of ``path``.

        Pseudo directories get synthesized attributes (epoch times, size 1).
        With pseudo directories off, a stored marker object reports
        ``is_directory``.

        Raises:
            ObjectNotFound: If nothing lives at ``path``
        """
        path = self._check(path)
        if self._directories.seems_like_directory(path):
            return BlobFileAttributes.pseudo_directory()
        stored = self._probe(path)
        if stored is None:
            if self._pseudo(path) and self._directories.has_children(path):
                return BlobFileAttributes.pseudo_directory()
            raise ObjectNotFound(f"No such object: {path.to_uri()}", path=str(path))
        is_marker = not self._pseudo(path) and stored.key.endswith(SEPARATOR)
        return BlobFileAttributes.from_object(stored, is_directory=is_marker)

    def read_attribute_map(self, path: Union[BlobPath, str], request: str = "basic:*") -> dict:
        """
        Named attributes of ``path`` for a ``view:name,name`` request.

        Raises:
            UnsupportedOperationError: If the view is unknown (before any I/O)
        """
        parse_attribute_request(request)
        return read_attribute_map(self.read_attributes(path), request)

    def check_access(self, path: Union[BlobPath, str], *modes: str) -> None:
        """
        Raise unless ``path`` exists. Access modes are accepted but not
        enforced; the store has no permission model.
        """
        path = self._check(path)
        if not self.exists(path):
            raise ObjectNotFound(f"No such object: {path.to_uri()}", path=str(path))

    def is_same_file(self, first: Union[BlobPath, str], second: Union[BlobPath, str]) -> bool:
        return self._check(first) == self._check(second)

    def is_hidden(self, path: Union[BlobPath, str]) -> bool:
        self._check(path)
        return False

    def list_directory(self, path: Union[BlobPath, str]) -> Iterator[BlobPath]:
        """Lazily yield the immediate children of ``path``; restart by calling again."""
        return self._directories.list(self._check(path))

    # -- channels and streams ------------------------------------------------

    def new_byte_channel(self, path: Union[BlobPath, str], *options: AnyOption) -> Union[ReadChannel, WriteChannel]:
        """
        Open a one-directional channel on ``path``.

        Without WRITE, APPEND or CREATE_NEW the channel reads. Writes are
        buffered and committed on ``close()``; CREATE_NEW fails both at open
        and at commit if the object exists.

        Raises:
            PseudoDirectoryError: If ``path`` is a directory
            ObjectNotFound: Reading a missing object
            ObjectAlreadyExists: CREATE_NEW on an existing object
        """
        path = self._check(path)
        request = parse_open_options(options)

        if path.is_root or (self._pseudo(path) and path.is_directory_hint
                            and not (request.write and request.allow_trailing_slash)):
            raise PseudoDirectoryError(f"Cannot open a directory as a file: {path.to_uri()}", path=str(path))

        key = path.object_key
        config = path.filesystem.config
        if not request.write:
            try:
                stored = self._store.get_object(path.namespace, key)
            except ObjectNotFound:
                if self._pseudo(path) and self._directories.has_children(path):
                    raise PseudoDirectoryError(
                        f"Cannot open a directory as a file: {path.to_uri()}", path=str(path)
                    ) from None
                raise
            logger.debug(f"Opened {path.namespace}/{key} for reading ({stored.size} bytes)")
            return ReadChannel(self._store, stored, block_size=config.block_size)

        existing = None
        if request.create_new or request.append:
            existing = self._probe(path)
        if request.create_new and existing is not None:
            raise ObjectAlreadyExists(f"Object already exists: {path.to_uri()}", path=str(path))

        metadata = request.metadata
        initial = b""
        if request.append and existing is not None:
            initial = self._store.get_bytes(path.namespace, key)
            metadata = existing.metadata.overridden_by(request.metadata)
        logger.debug(f"Opened {path.namespace}/{key} for writing")
        return WriteChannel(
            self._store,
            path.namespace,
            key,
            metadata,
            if_not_exists=request.create_new,
            spool_threshold=config.spool_threshold,
            initial=initial,
        )

    def open(
        self,
        path: Union[BlobPath, str],
        mode: str = "r",
        *options: AnyOption,
        encoding: Optional[str] = None,
        errors: Optional[str] = None,
        newline: Optional[str] = None,
    ):
        """
        ``open()``-style stream: ``r``, ``w``, ``x`` or ``a``, optionally with ``b``.

        Write streams commit on a clean close and discard everything when
        their ``with`` block raises.
        """
        mode_options, binary = options_for_mode(mode)
        channel = self.new_byte_channel(path, *mode_options, *options)
        reading = isinstance(channel, ReadChannel)
        if reading:
            buffered = io.BufferedReader(channel, buffer_size=channel.block_size)
        else:
            buffered = AbortingBufferedWriter(channel)
        if binary:
            return buffered
        wrapper = io.TextIOWrapper if reading else AbortingTextWrapper
        return wrapper(buffered, encoding=encoding or "utf-8", errors=errors, newline=newline)

    def read_bytes(self, path: Union[BlobPath, str]) -> bytes:
        with self.new_byte_channel(path) as channel:
            return channel.readall()

    def write_bytes(self, path: Union[BlobPath, str], data: bytes, *options: AnyOption) -> int:
        """
        Replace (or create) the object at ``path`` with ``data``.

        Extra options are added to WRITE, CREATE, TRUNCATE_EXISTING, so
        metadata options like ``with_content_type`` apply here too.
        """
        with self.new_byte_channel(path, *_DEFAULT_WRITE, *options) as channel:
            channel.write(data)
        return len(data)

    def read_text(self, path: Union[BlobPath, str], encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def write_text(self, path: Union[BlobPath, str], data: str, *options: AnyOption, encoding: str = "utf-8") -> int:
        self.write_bytes(path, data.encode(encoding), *options)
        return len(data)

    def read_lines(self, path: Union[BlobPath, str], encoding: str = "utf-8") -> List[str]:
        return self.read_text(path, encoding).splitlines()

    def write_lines(
        self, path: Union[BlobPath, str], lines: Iterable[str], *options: AnyOption, encoding: str = "utf-8"
    ) -> None:
        self.write_text(path, "".join(line + "\n" for line in lines), *options, encoding=encoding)

    def create_file(self, path: Union[BlobPath, str], *options: AnyOption) -> BlobPath:
        """Create an empty object; fails if one already exists."""
        path = self._check(path)
        with self.new_byte_channel(path, OpenOption.CREATE_NEW, *options):
            pass
        return path

    def create_directory(self, path: Union[BlobPath, str]) -> None:
        """
        Create a directory.

        With pseudo directories on this is a no-op: directories exist
        whenever keys live under them. Otherwise a zero-length marker object
        ``key/`` is written.

        Raises:
            ObjectAlreadyExists: If the marker already exists
        """
        path = self._check(path)
        if path.is_root or self._pseudo(path):
            logger.debug(f"Directory creation is implicit: {path.to_uri()}")
            return
        key = path.directory_prefix
        try:
            self._store.put_object(path.namespace, key, b"", ObjectMetadata(), if_not_exists=True)
        except PreconditionFailed as e:
            raise ObjectAlreadyExists(f"Directory already exists: {path.to_uri()}", path=str(path)) from e
        logger.info(f"Created directory marker {path.namespace}/{key}")

    # -- deletion --------------------------------------------------------------

    def delete(self, path: Union[BlobPath, str]) -> None:
        """
        Raises:
            ObjectNotFound: If there is nothing to delete
            DirectoryNotEmpty: If ``path`` is a directory with children
            InvalidArgumentError: If ``path`` is denormalized
        """
        path = self._check(path)
        if not self.delete_if_exists(path):
            raise ObjectNotFound(f"No such object: {path.to_uri()}", path=str(path))

    def delete_if_exists(self, path: Union[BlobPath, str]) -> bool:
        """
        Delete the object at ``path``.

        Returns:
            False if nothing existed; True otherwise. An empty pseudo
            directory always counts as deleted (its marker, if any, is
            removed).
        """
        path = self._check(path)
        path.check_normalized()
        if self._directories.seems_like_directory(path):
            return self._delete_directory(path)

        key = path.object_key
        try:
            self._store.delete_object(path.namespace, key)
        except ObjectNotFound:
            if self._pseudo(path) and self._directories.has_children(path):
                raise DirectoryNotEmpty(f"Directory not empty: {path.to_uri()}", path=str(path))
            return False
        logger.info(f"Deleted {path.namespace}/{key}")
        return True

    def _delete_directory(self, path: BlobPath) -> bool:
        if self._directories.has_children(path, include_marker=False):
            raise DirectoryNotEmpty(f"Directory not empty: {path.to_uri()}", path=str(path))
        marker = path.directory_prefix
        if marker:
            try:
                self._store.delete_object(path.namespace, marker)
                logger.info(f"Deleted directory marker {path.namespace}/{marker}")
            except ObjectNotFound:
                pass
        return True

    # -- copy and move ---------------------------------------------------------

    def copy(
        self,
        source: Union[BlobPath, str, LocalPath],
        target: Union[BlobPath, str, LocalPath],
        *options: AnyOption,
    ) -> None:
        """
        Copy one object.

        Either side may be a local filesystem path, in which case the bytes
        are streamed to or from it. Directory to directory is a no-op.

        Raises:
            AtomicMoveNotSupported: If ATOMIC_MOVE is given
            ObjectNotFound: If the source is missing
            ObjectAlreadyExists: If the target exists and REPLACE_EXISTING is not given
            PseudoDirectoryError: Copying between a directory and an object
        """
        request = parse_copy_options(options)
        if request.atomic_move:
            raise AtomicMoveNotSupported(str(source), str(target), "copy cannot be atomic")

        if self._is_local(source):
            self._upload(source, self._check(target), request.replace_existing, options)
            return
        if self._is_local(target):
            self._download(self._check(source), target, request.replace_existing)
            return

        source, target = self._check(source), self._check(target)
        if self._directory_pair(source, target):
            return

        stored = self._store.get_object(source.namespace, source.object_key)
        if not request.replace_existing and self._probe(target) is not None:
            raise ObjectAlreadyExists(f"Target already exists: {target.to_uri()}", path=str(target))

        if request.copy_attributes:
            metadata = stored.metadata.overridden_by(request.metadata)
        else:
            metadata = request.metadata
        try:
            self._store.copy_object(
                source.namespace,
                stored.key,
                target.namespace,
                target.object_key,
                metadata,
                if_not_exists=not request.replace_existing,
            )
        except PreconditionFailed as e:
            raise ObjectAlreadyExists(f"Target already exists: {target.to_uri()}", path=str(target)) from e
        logger.info(f"Copied {source.to_uri()} to {target.to_uri()}")

    def move(self, source: Union[BlobPath, str], target: Union[BlobPath, str], *options: AnyOption) -> None:
        """
        Move one object; attributes travel with it.

        Within a namespace this is the store's rename. ATOMIC_MOVE is only
        honored when the store renames atomically and never across
        namespaces; when it cannot be honored nothing is touched.

        Raises:
            AtomicMoveNotSupported: ATOMIC_MOVE that cannot be honored
            ObjectNotFound: If the source is missing
            ObjectAlreadyExists: If the target exists and REPLACE_EXISTING is not given
        """
        source, target = self._check(source), self._check(target)
        request = parse_copy_options(options)
        same_namespace = source.namespace == target.namespace

        if request.atomic_move:
            if not same_namespace:
                raise AtomicMoveNotSupported(str(source), str(target), "cannot move atomically across namespaces")
            if not self._store.atomic_rename:
                raise AtomicMoveNotSupported(str(source), str(target), "store has no atomic rename")
            if request.has_overrides:
                raise AtomicMoveNotSupported(str(source), str(target), "metadata cannot change in an atomic move")

        if not self._directories.seems_like_directory(source):
            # Missing source wins over a no-op move or an existing target
            self._store.get_object(source.namespace, source.object_key)
        if source == target:
            return
        if self._directory_pair(source, target):
            self.delete(source)
            return

        if not same_namespace or request.has_overrides:
            copy_options: List[AnyOption] = [CopyOption.COPY_ATTRIBUTES, *options]
            self.copy(source, target, *[o for o in copy_options if o is not CopyOption.ATOMIC_MOVE])
            self.delete(source)
            logger.info(f"Moved {source.to_uri()} to {target.to_uri()} by copy and delete")
            return

        if not request.replace_existing and self._probe(target) is not None:
            raise ObjectAlreadyExists(f"Target already exists: {target.to_uri()}", path=str(target))
        try:
            self._store.rename_object(
                source.namespace, source.object_key, target.object_key, if_not_exists=not request.replace_existing
            )
        except PreconditionFailed as e:
            raise ObjectAlreadyExists(f"Target already exists: {target.to_uri()}", path=str(target)) from e
        logger.info(f"Moved {source.to_uri()} to {target.to_uri()}")

    def _directory_pair(self, source: BlobPath, target: BlobPath) -> bool:
        """True when both sides are directories; raise if only one side is."""
        source_dir = self._directories.seems_like_directory(source)
        target_dir = self._directories.seems_like_directory(target)
        if source_dir and target_dir:
            return True
        if source_dir:
            raise PseudoDirectoryError(f"Cannot copy a directory onto an object: {source.to_uri()}", path=str(source))
        if target_dir:
            raise PseudoDirectoryError(f"Cannot copy an object onto a directory: {target.to_uri()}", path=str(target))
        return False

    def _is_local(self, path: object) -> bool:
        if isinstance(path, BlobPath):
            return False
        if isinstance(path, str):
            return not path.startswith(f"{self._scheme}://")
        return isinstance(path, os.PathLike)

    def _download(self, source: BlobPath, target: LocalPath, replace_existing: bool) -> None:
        mode = "wb" if replace_existing else "xb"
        with self.new_byte_channel(source) as channel:
            try:
                with open(target, mode) as out:
                    shutil.copyfileobj(io.BufferedReader(channel, buffer_size=channel.block_size), out)
            except FileExistsError as e:
                raise ObjectAlreadyExists(f"Target already exists: {os.fspath(target)}", path=os.fspath(target)) from e
        logger.info(f"Downloaded {source.to_uri()} to {os.fspath(target)}")

    def _upload(
        self, source: LocalPath, target: BlobPath, replace_existing: bool, options: Iterable[AnyOption]
    ) -> None:
        metadata_options = [o for o in options if not isinstance(o, CopyOption)]
        create = OpenOption.CREATE if replace_existing else OpenOption.CREATE_NEW
        try:
            handle = open(source, "rb")
        except FileNotFoundError as e:
            raise ObjectNotFound(f"No such file: {os.fspath(source)}", path=os.fspath(source)) from e
        with handle, self.new_byte_channel(target, OpenOption.WRITE, create, *metadata_options) as channel:
            shutil.copyfileobj(handle, channel)
        logger.info(f"Uploaded {os.fspath(source)} to {target.to_uri()}")


def create_provider_from_env() -> BlobFileSystemProvider:
    """
    Create a provider over Azure Blob Storage from environment variables.

    See ``create_settings_from_env`` for the variables read.
    """
    return BlobFileSystemProvider.from_settings(create_settings_from_env())
