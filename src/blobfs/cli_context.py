"""
CLI context for managing application dependencies.

Holds the settings and a lazily built provider for one CLI invocation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .provider import BlobFileSystemProvider
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """Shared context for CLI commands."""
    settings: Settings
    _provider: Optional[BlobFileSystemProvider] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        return cls(settings=create_settings_from_env())

    @property
    def provider(self) -> BlobFileSystemProvider:
        """Provider over Azure Blob Storage, created on first access."""
        if self._provider is None:
            self._provider = BlobFileSystemProvider.from_settings(self.settings)
        return self._provider
