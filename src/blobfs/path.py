"""
Hierarchical paths over a namespace + object key addressing scheme.

A ``BlobPath`` keeps the text it was built from (possibly with ``.``, ``..``
or empty components) and derives the object key only when I/O needs it.
``normalize()`` is the explicit way to clean a path up; deriving a key from
a denormalized path is rejected so a stray ``..`` never silently targets a
different object.
"""
from __future__ import annotations

import functools
import re
from typing import TYPE_CHECKING, Iterator, Optional, Tuple, Union

from .errors import InvalidArgumentError
from .uri import build_uri

if TYPE_CHECKING:
    from .filesystem import BlobFileSystem

__all__ = ["BlobPath", "SEPARATOR", "normalize_path", "seems_like_directory"]

SEPARATOR = "/"

# Empty components or dot segments anywhere in an absolute object name
_DENORMALIZED = re.compile(r"^\.\.?/|//|/\.\.?/|/\.\.?$")


def seems_like_directory(path: str) -> bool:
    """
    Decide directory-ness from the text alone.

    True for the empty path, anything ending in ``/``, and anything whose
    last segment is ``.`` or ``..``.

    Examples:
        >>> seems_like_directory("dir/")
        True
        >>> seems_like_directory("hello/cat/..")
        True
        >>> seems_like_directory("dir")
        False
    """
    if path == "" or path.endswith(SEPARATOR):
        return True
    last = path.rsplit(SEPARATOR, 1)[-1]
    return last in (".", "..")


def normalize_path(path: str, *, keep_empty: bool = False) -> str:
    """
    Resolve ``.`` and ``..`` segments and collapse empty components.

    ``..`` past the root is a no-op (clamped). A path that named a directory
    (trailing ``/`` or a final dot segment) keeps a trailing ``/`` as long as
    any segment remains. The result is a fixed point: normalizing it again
    returns it unchanged.

    Args:
        path: Raw path text
        keep_empty: Preserve empty components instead of collapsing them

    Examples:
        >>> normalize_path("/dir/deeper/..")
        '/dir/'
        >>> normalize_path("adipose//yep")
        'adipose/yep'
        >>> normalize_path("/../a")
        '/a'
    """
    absolute = path.startswith(SEPARATOR)
    body = path[1:] if absolute else path
    raw_segments = body.split(SEPARATOR) if body else []
    directory = seems_like_directory(path) and path not in ("", SEPARATOR)

    segments: list[str] = []
    for index, segment in enumerate(raw_segments):
        if segment == ".":
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        if segment == "":
            # A trailing "" is just the directory marker
            if keep_empty and index != len(raw_segments) - 1:
                segments.append(segment)
            continue
        segments.append(segment)

    result = SEPARATOR.join(segments)
    if absolute:
        result = SEPARATOR + result
    if directory and segments:
        result += SEPARATOR
    return result


@functools.total_ordering
class BlobPath:
    """
    Immutable path inside one ``BlobFileSystem``.

    Two paths are equal when they live in the same namespace and their
    normalized absolute keys match; a trailing ``/`` does not affect
    equality. Paths order lexicographically by that key, so descendants of
    one directory sort next to each other.
    """

    __slots__ = ("_fs", "_path")

    def __init__(self, filesystem: "BlobFileSystem", path: str) -> None:
        self._fs = filesystem
        self._path = path

    # -- identity ---------------------------------------------------------

    @property
    def filesystem(self) -> "BlobFileSystem":
        return self._fs

    @property
    def namespace(self) -> str:
        return self._fs.namespace

    def _identity(self) -> Tuple[str, str]:
        keep_empty = self._fs.config.permit_empty_path_components
        key = normalize_path(self._absolute_text(), keep_empty=keep_empty)
        return self.namespace, key.rstrip(SEPARATOR) or SEPARATOR

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BlobPath):
            return NotImplemented
        return self._identity() == other._identity()

    def __lt__(self, other: "BlobPath") -> bool:
        if not isinstance(other, BlobPath):
            return NotImplemented
        return self._identity() < other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"BlobPath({self._fs.scheme}://{self.namespace}, {self._path!r})"

    # -- structure --------------------------------------------------------

    def is_absolute(self) -> bool:
        return self._path.startswith(SEPARATOR)

    @property
    def is_root(self) -> bool:
        """True for ``/``, the empty path, and anything normalizing to either."""
        return normalize_path(self._absolute_text()) == SEPARATOR

    @property
    def is_directory_hint(self) -> bool:
        """Directory-ness implied by the text (trailing ``/`` or final dot segment)."""
        return seems_like_directory(self._path)

    @property
    def parts(self) -> Tuple[str, ...]:
        """Segments, led by ``/`` for absolute paths; empty components are kept."""
        body = self._path.rstrip(SEPARATOR) if self._path != SEPARATOR else ""
        if self.is_absolute():
            body = body[1:]
        segments = tuple(body.split(SEPARATOR)) if body else ()
        return ((SEPARATOR,) if self.is_absolute() else ()) + segments

    @property
    def name(self) -> str:
        """Final segment, ignoring a trailing ``/``; empty for the root."""
        trimmed = self._path.rstrip(SEPARATOR)
        return trimmed.rsplit(SEPARATOR, 1)[-1] if trimmed else ""

    @property
    def parent(self) -> Optional["BlobPath"]:
        """Enclosing directory (with trailing ``/``), or None at the top."""
        trimmed = self._path.rstrip(SEPARATOR)
        if SEPARATOR not in trimmed:
            return self._fs.root if self.is_absolute() and trimmed else None
        head = trimmed.rsplit(SEPARATOR, 1)[0]
        return BlobPath(self._fs, head + SEPARATOR)

    @property
    def root(self) -> Optional["BlobPath"]:
        return self._fs.root if self.is_absolute() else None

    def joinpath(self, *others: Union[str, "BlobPath"]) -> "BlobPath":
        """Append segments; an absolute argument replaces everything before it."""
        path = self._path
        for other in others:
            text = str(other)
            if text.startswith(SEPARATOR) or not path:
                path = text
            elif text:
                path = path + text if path.endswith(SEPARATOR) else path + SEPARATOR + text
        return BlobPath(self._fs, path)

    def __truediv__(self, other: Union[str, "BlobPath"]) -> "BlobPath":
        return self.joinpath(other)

    def resolve_sibling(self, other: Union[str, "BlobPath"]) -> "BlobPath":
        parent = self.parent
        if parent is None:
            return BlobPath(self._fs, str(other))
        return parent.joinpath(other)

    def _segments(self) -> Tuple[str, ...]:
        return tuple(p for p in self.parts if p != SEPARATOR)

    def startswith(self, other: Union[str, "BlobPath"]) -> bool:
        """Segment-wise prefix test (``dir`` is a prefix of ``dir/a`` but not of ``dirs``)."""
        other_path = other if isinstance(other, BlobPath) else BlobPath(self._fs, other)
        if other_path.is_absolute() != self.is_absolute():
            return False
        theirs = other_path._segments()
        return self._segments()[: len(theirs)] == theirs

    def endswith(self, other: Union[str, "BlobPath"]) -> bool:
        other_path = other if isinstance(other, BlobPath) else BlobPath(self._fs, other)
        if other_path.is_absolute():
            return other_path._path.rstrip(SEPARATOR) == self._path.rstrip(SEPARATOR)
        mine = self._segments()
        theirs = other_path._segments()
        return len(theirs) <= len(mine) and mine[len(mine) - len(theirs):] == theirs

    def relative_to(self, other: Union[str, "BlobPath"]) -> "BlobPath":
        """Path of ``self`` relative to ``other``; raises ValueError if it is not below it."""
        other_path = other if isinstance(other, BlobPath) else BlobPath(self._fs, other)
        if not self.startswith(other_path):
            raise ValueError(f"{self._path!r} is not relative to {other_path._path!r}")
        rest = self._segments()[len(other_path._segments()):]
        text = SEPARATOR.join(rest)
        if text and self._path.endswith(SEPARATOR):
            text += SEPARATOR
        return BlobPath(self._fs, text)

    def iter_parents(self) -> Iterator["BlobPath"]:
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    # -- resolution -------------------------------------------------------

    def _absolute_text(self) -> str:
        if self.is_absolute():
            return self._path
        working = self._fs.config.working_directory
        if not self._path:
            return working
        return working.rstrip(SEPARATOR) + SEPARATOR + self._path

    def to_absolute(self) -> "BlobPath":
        return BlobPath(self._fs, self._absolute_text())

    def normalize(self) -> "BlobPath":
        return BlobPath(self._fs, normalize_path(self._path))

    def resolve(self) -> "BlobPath":
        """Absolute and normalized."""
        return BlobPath(self._fs, normalize_path(self._absolute_text()))

    def check_normalized(self) -> None:
        """Raise InvalidArgumentError if the text still holds empty, ``.`` or ``..`` segments."""
        if self._fs.config.permit_empty_path_components:
            return
        if _DENORMALIZED.search(self._absolute_text()):
            raise InvalidArgumentError(f"I/O not allowed on denormalized object names: {self._path}", path=self._path)

    @property
    def object_key(self) -> str:
        """
        Object key used for I/O.

        The path is made absolute against the working directory; the leading
        ``/`` is dropped when ``strip_prefix_slash`` is set. A trailing ``/``
        is kept, since marker objects are stored under it.

        Raises:
            InvalidArgumentError: If the name is denormalized (and empty
                components are not permitted) or the key would be empty
        """
        config = self._fs.config
        key = self._absolute_text()
        self.check_normalized()
        if config.strip_prefix_slash and key.startswith(SEPARATOR):
            key = key[1:]
        if not key or key == SEPARATOR:
            raise InvalidArgumentError("Object names cannot be empty", path=self._path)
        return key

    @property
    def directory_prefix(self) -> str:
        """
        Key prefix shared by everything inside this path viewed as a directory.

        Empty for the root, otherwise the normalized key with a trailing ``/``.
        """
        config = self._fs.config
        key = normalize_path(self._absolute_text(), keep_empty=config.permit_empty_path_components)
        if config.strip_prefix_slash and key.startswith(SEPARATOR):
            key = key[1:]
        if not key or key == SEPARATOR:
            return ""
        return key if key.endswith(SEPARATOR) else key + SEPARATOR

    def to_uri(self) -> str:
        """``scheme://namespace/escaped/path`` for the absolute path."""
        return build_uri(self._fs.scheme, self.namespace, self._absolute_text())

    # -- pathlib-style conveniences ----------------------------------------

    def exists(self) -> bool:
        return self._fs.provider.exists(self)

    def is_dir(self) -> bool:
        return self._fs.provider.is_directory(self)

    def is_file(self) -> bool:
        return self._fs.provider.is_regular_file(self)

    def iterdir(self) -> Iterator["BlobPath"]:
        return self._fs.provider.list_directory(self)

    def open(self, mode: str = "r", **kwargs):
        return self._fs.provider.open(self, mode, **kwargs)

    def read_bytes(self) -> bytes:
        return self._fs.provider.read_bytes(self)

    def write_bytes(self, data: bytes) -> int:
        return self._fs.provider.write_bytes(self, data)

    def read_text(self, encoding: str = "utf-8") -> str:
        return self._fs.provider.read_text(self, encoding=encoding)

    def write_text(self, data: str, encoding: str = "utf-8") -> int:
        return self._fs.provider.write_text(self, data, encoding=encoding)

    def unlink(self, missing_ok: bool = False) -> None:
        if missing_ok:
            self._fs.provider.delete_if_exists(self)
        else:
            self._fs.provider.delete(self)

    def stat(self):
        return self._fs.provider.read_attributes(self)
