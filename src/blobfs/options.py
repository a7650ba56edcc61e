"""
Open and copy options.

Options arrive as a flat sequence, mixing the enum flags below with
store-metadata options built by the ``with_*`` helpers, and are parsed
once into an immutable request so the provider never re-inspects them.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Tuple, Union

from .errors import InvalidArgumentError, UnsupportedOperationError
from .storage.base import AclEntry, ObjectMetadata

__all__ = [
    "OpenOption",
    "CopyOption",
    "MetadataOption",
    "OpenRequest",
    "CopyRequest",
    "with_content_type",
    "with_cache_control",
    "with_content_encoding",
    "with_content_disposition",
    "with_user_metadata",
    "with_acl",
    "parse_open_options",
    "parse_copy_options",
    "options_for_mode",
]


class OpenOption(enum.Enum):
    READ = "read"
    WRITE = "write"
    APPEND = "append"
    TRUNCATE_EXISTING = "truncate_existing"
    CREATE = "create"
    CREATE_NEW = "create_new"
    # Write a marker object at a trailing-slash path instead of failing
    ALLOW_TRAILING_SLASH = "allow_trailing_slash"


class CopyOption(enum.Enum):
    REPLACE_EXISTING = "replace_existing"
    COPY_ATTRIBUTES = "copy_attributes"
    ATOMIC_MOVE = "atomic_move"


@dataclass(frozen=True)
class MetadataOption:
    """One store-metadata override, applied on write and on copy."""
    metadata: ObjectMetadata


def with_content_type(value: str) -> MetadataOption:
    return MetadataOption(ObjectMetadata(content_type=value))


def with_cache_control(value: str) -> MetadataOption:
    return MetadataOption(ObjectMetadata(cache_control=value))


def with_content_encoding(value: str) -> MetadataOption:
    return MetadataOption(ObjectMetadata(content_encoding=value))


def with_content_disposition(value: str) -> MetadataOption:
    return MetadataOption(ObjectMetadata(content_disposition=value))


def with_user_metadata(key: str, value: str) -> MetadataOption:
    return MetadataOption(ObjectMetadata(user_metadata={key: value}))


def with_acl(entry: AclEntry) -> MetadataOption:
    return MetadataOption(ObjectMetadata(acl=(entry,)))


AnyOption = Union[OpenOption, CopyOption, MetadataOption]


def _collect_metadata(options: Iterable[MetadataOption]) -> ObjectMetadata:
    metadata = ObjectMetadata()
    for option in options:
        override = option.metadata
        # ACL entries accumulate rather than replace each other
        if override.acl:
            override = ObjectMetadata(acl=metadata.acl + override.acl)
        metadata = metadata.overridden_by(override)
    return metadata


@dataclass(frozen=True)
class OpenRequest:
    """Parsed ``new_byte_channel`` options."""
    write: bool = False
    append: bool = False
    truncate: bool = False
    create: bool = False
    create_new: bool = False
    allow_trailing_slash: bool = False
    metadata: ObjectMetadata = field(default_factory=ObjectMetadata)

    @property
    def read(self) -> bool:
        return not self.write


def parse_open_options(options: Iterable[AnyOption]) -> OpenRequest:
    """
    Parse channel options.

    Without WRITE or APPEND the channel reads. APPEND implies WRITE. Read
    combined with write intent is rejected (channels are one-directional).

    Raises:
        InvalidArgumentError: On contradictory options
        UnsupportedOperationError: On an option that does not apply to opening
    """
    flags = set()
    metadata_options = []
    for option in options:
        if isinstance(option, OpenOption):
            flags.add(option)
        elif isinstance(option, MetadataOption):
            metadata_options.append(option)
        else:
            raise UnsupportedOperationError(f"Unsupported open option: {option!r}")

    append = OpenOption.APPEND in flags
    write = append or bool(flags & {OpenOption.WRITE, OpenOption.CREATE_NEW})
    truncate = OpenOption.TRUNCATE_EXISTING in flags

    if OpenOption.READ in flags and write:
        raise InvalidArgumentError("READ cannot be combined with WRITE or APPEND")
    if append and truncate:
        raise InvalidArgumentError("APPEND cannot be combined with TRUNCATE_EXISTING")
    if metadata_options and not write:
        raise InvalidArgumentError("Metadata options only apply when writing")

    return OpenRequest(
        write=write,
        append=append,
        truncate=truncate,
        create=OpenOption.CREATE in flags,
        create_new=OpenOption.CREATE_NEW in flags,
        allow_trailing_slash=OpenOption.ALLOW_TRAILING_SLASH in flags,
        metadata=_collect_metadata(metadata_options),
    )


@dataclass(frozen=True)
class CopyRequest:
    """Parsed ``copy``/``move`` options."""
    replace_existing: bool = False
    copy_attributes: bool = False
    atomic_move: bool = False
    metadata: ObjectMetadata = field(default_factory=ObjectMetadata)
    has_overrides: bool = False


def parse_copy_options(options: Iterable[AnyOption]) -> CopyRequest:
    """
    Parse copy/move options.

    Metadata options are accepted alongside the copy flags and override
    individual fields of the target's metadata.
    """
    flags = set()
    metadata_options = []
    for option in options:
        if isinstance(option, CopyOption):
            flags.add(option)
        elif isinstance(option, MetadataOption):
            metadata_options.append(option)
        else:
            raise UnsupportedOperationError(f"Unsupported copy option: {option!r}")

    return CopyRequest(
        replace_existing=CopyOption.REPLACE_EXISTING in flags,
        copy_attributes=CopyOption.COPY_ATTRIBUTES in flags,
        atomic_move=CopyOption.ATOMIC_MOVE in flags,
        metadata=_collect_metadata(metadata_options),
        has_overrides=bool(metadata_options),
    )


_MODES = {
    "r": (OpenOption.READ,),
    "w": (OpenOption.WRITE, OpenOption.CREATE, OpenOption.TRUNCATE_EXISTING),
    "x": (OpenOption.WRITE, OpenOption.CREATE_NEW),
    "a": (OpenOption.APPEND, OpenOption.CREATE),
}


def options_for_mode(mode: str) -> Tuple[Tuple[OpenOption, ...], bool]:
    """
    Translate an ``open()``-style mode into channel options.

    Returns:
        (options, binary) where binary is True for ``b`` modes

    Raises:
        InvalidArgumentError: For unknown modes or ``+`` (read/write) modes
    """
    binary = "b" in mode
    text = "t" in mode
    core = mode.replace("b", "").replace("t", "")
    if "+" in core:
        raise InvalidArgumentError(f"Read/write mode not supported: {mode!r}")
    if len(core) != 1 or core not in _MODES or (binary and text):
        raise InvalidArgumentError(f"Invalid mode: {mode!r}")
    return _MODES[core], binary
