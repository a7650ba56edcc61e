"""Root pytest configuration for blobfs tests."""
import pytest

from blobfs.provider import BlobFileSystemProvider
from blobfs.settings import Configuration
from blobfs.storage.fakes import FakeBlobStore


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires Azurite)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep real credentials and filesystem options out of every test."""
    for name in (
        "AZURE_STORAGE_CONNECTION_STRING",
        "AZURE_STORAGE_ACCOUNT",
        "AZURE_STORAGE_KEY",
        "BLOBFS_AZURE_BLOB_ENDPOINT",
        "BLOBFS_TIMEOUT",
        "BLOBFS_SCHEME",
        "BLOBFS_USE_PSEUDO_DIRECTORIES",
        "BLOBFS_PERMIT_EMPTY_PATH_COMPONENTS",
        "BLOBFS_STRIP_PREFIX_SLASH",
        "BLOBFS_WORKING_DIRECTORY",
        "BLOBFS_BLOCK_SIZE",
        "BLOBFS_SPOOL_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store():
    """Fresh in-memory object store."""
    return FakeBlobStore()


@pytest.fixture
def provider(store):
    """Provider over the fake store with default configuration."""
    return BlobFileSystemProvider(store)


@pytest.fixture
def fs(provider):
    """Filesystem for the ``bucket`` namespace."""
    return provider.for_namespace("bucket")


@pytest.fixture
def flat_fs(provider):
    """Filesystem for ``bucket`` with pseudo directories turned off."""
    return provider.for_namespace("bucket", Configuration(use_pseudo_directories=False))
