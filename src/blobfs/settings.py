"""
Settings and configuration for blobfs.

Two frozen dataclasses with fail-fast validation:

- ``Configuration`` controls how one filesystem maps paths onto object keys
  (pseudo directories, empty components, prefix stripping, buffering).
- ``Settings`` carries backend connection details plus the default
  ``Configuration`` and is loaded from environment variables.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from typing import Mapping, Optional

__all__ = [
    "Configuration",
    "Settings",
    "configuration_from_mapping",
    "create_settings_from_env",
    "DEFAULT_BLOCK_SIZE",
    "DEFAULT_SPOOL_THRESHOLD",
]

DEFAULT_BLOCK_SIZE = 2 * 1024 * 1024  # 2 MiB
DEFAULT_SPOOL_THRESHOLD = 8 * 1024 * 1024  # 8 MiB


@dataclass(frozen=True)
class Configuration:
    """
    Per-filesystem behaviour, immutable after construction.

    Path mapping:
        use_pseudo_directories: Emulate directories from key prefixes and
            trailing-slash paths. When False, trailing-slash paths are
            ordinary object keys.
        permit_empty_path_components: Allow ``//`` (and dot segments) in the
            object names used for I/O.
        strip_prefix_slash: Drop the leading ``/`` of absolute paths when
            deriving object keys.
        working_directory: Absolute directory relative paths resolve against.

    Channels:
        block_size: Read-ahead chunk size for read sessions.
        spool_threshold: Bytes a write session keeps in memory before
            spilling to a temporary file.
    """
    use_pseudo_directories: bool = True
    permit_empty_path_components: bool = False
    strip_prefix_slash: bool = True
    working_directory: str = "/"
    block_size: int = DEFAULT_BLOCK_SIZE
    spool_threshold: int = DEFAULT_SPOOL_THRESHOLD

    def __post_init__(self):
        """Validate configuration on construction."""
        if not self.working_directory.startswith("/"):
            raise ValueError(f"working_directory must be absolute, got {self.working_directory!r}")

        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")

        if self.spool_threshold < 0:
            raise ValueError(f"spool_threshold must be non-negative, got {self.spool_threshold}")


# Accepted spellings for configuration_from_mapping
_CONFIG_ALIASES = {
    "usePseudoDirectories": "use_pseudo_directories",
    "permitEmptyPathComponents": "permit_empty_path_components",
    "stripPrefixSlash": "strip_prefix_slash",
    "workingDirectory": "working_directory",
    "blockSize": "block_size",
    "spoolThreshold": "spool_threshold",
}


def _str_to_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes", "on")


def configuration_from_mapping(env: Mapping[str, object]) -> Configuration:
    """
    Build a Configuration from a loosely typed mapping.

    Keys may be camelCase (``usePseudoDirectories``) or the dataclass field
    names. String values are coerced to the field type.

    Args:
        env: Mapping of option names to values

    Returns:
        Validated Configuration

    Raises:
        ValueError: If a key is unknown or a value cannot be coerced
    """
    known = {f.name: f for f in fields(Configuration)}
    values: dict[str, object] = {}

    for raw_key, raw_value in env.items():
        name = _CONFIG_ALIASES.get(raw_key, raw_key)
        if name not in known:
            raise ValueError(f"Unknown filesystem option: {raw_key}")

        default = known[name].default
        if isinstance(default, bool):
            value = _str_to_bool(raw_value) if isinstance(raw_value, str) else bool(raw_value)
        elif isinstance(default, int):
            try:
                value = int(raw_value)  # type: ignore[arg-type]
            except (TypeError, ValueError) as e:
                raise ValueError(f"Option {raw_key} must be an integer, got {raw_value!r}") from e
        else:
            value = str(raw_value)
        values[name] = value

    return Configuration(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Settings:
    """
    Backend connection settings for blobfs.

    Azure Blob Storage:
        az_connection_string: Azure storage connection string
        az_account: Azure storage account name
        az_key: Azure storage account key
        az_blob_endpoint: Custom blob endpoint (Azurite/private clouds)
        timeout_s: Backend operation timeout in seconds

    Filesystem:
        scheme: URI scheme served by the provider
        config: Default Configuration for filesystems created from URIs
    """
    az_connection_string: Optional[str] = None
    az_account: Optional[str] = None
    az_key: Optional[str] = None
    az_blob_endpoint: Optional[str] = None
    timeout_s: float = 60.0
    scheme: str = "az"
    config: Configuration = field(default_factory=Configuration)

    def __post_init__(self):
        """Validate settings on construction."""
        if not re.fullmatch(r"[a-z][a-z0-9+.-]*", self.scheme):
            raise ValueError(f"Invalid scheme: {self.scheme!r}")

        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")

        has_conn_str = bool(self.az_connection_string)
        has_account_key = bool(self.az_account and self.az_key)

        if has_conn_str and has_account_key:
            raise ValueError("Specify either az_connection_string OR (az_account + az_key), not both")

        # Auth is optional, but if partially configured it must be complete
        if self.az_account and not self.az_key:
            raise ValueError("az_account specified but az_key is missing")
        if self.az_key and not self.az_account:
            raise ValueError("az_key specified but az_account is missing")


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        Azure:
        - AZURE_STORAGE_CONNECTION_STRING (optional)
        - AZURE_STORAGE_ACCOUNT (optional)
        - AZURE_STORAGE_KEY (optional)
        - BLOBFS_AZURE_BLOB_ENDPOINT (optional, for Azurite/custom endpoints)
        - BLOBFS_TIMEOUT (default: 60.0)

        Filesystem:
        - BLOBFS_SCHEME (default: az)
        - BLOBFS_USE_PSEUDO_DIRECTORIES (default: true)
        - BLOBFS_PERMIT_EMPTY_PATH_COMPONENTS (default: false)
        - BLOBFS_STRIP_PREFIX_SLASH (default: true)
        - BLOBFS_WORKING_DIRECTORY (default: /)
        - BLOBFS_BLOCK_SIZE (default: 2 MiB)
        - BLOBFS_SPOOL_THRESHOLD (default: 8 MiB)

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    config_env = {}
    for f in fields(Configuration):
        value = os.getenv(f"BLOBFS_{f.name.upper()}")
        if value:
            config_env[f.name] = value

    return Settings(
        az_connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING"),
        az_account=os.getenv("AZURE_STORAGE_ACCOUNT"),
        az_key=os.getenv("AZURE_STORAGE_KEY"),
        az_blob_endpoint=os.getenv("BLOBFS_AZURE_BLOB_ENDPOINT"),
        timeout_s=get_float("BLOBFS_TIMEOUT", 60.0),
        scheme=os.getenv("BLOBFS_SCHEME", "az"),
        config=configuration_from_mapping(config_env),
    )
