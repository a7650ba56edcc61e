"""
Simplified tests for the Azure Blob Storage adapter.

Tests key contracts without a storage account: construction, SDK
availability and error translation.
"""
from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from blobfs.errors import BackendError, ObjectNotFound, PreconditionFailed
from blobfs.provider import BlobFileSystemProvider
from blobfs.settings import Configuration, Settings
from blobfs.storage.azure import AzureBlobStore
from blobfs.storage.base import ObjectMetadata, ObjectStore

CONN_STR = "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=testkey"


class TestAzureBlobStore:
    """Test basic AzureBlobStore functionality."""

    def test_constructor_requires_azure_auth(self):
        with pytest.raises(ValueError, match="Azure authentication not configured"):
            AzureBlobStore(settings=Settings())

    def test_constructor_with_connection_string(self):
        store = AzureBlobStore(settings=Settings(az_connection_string=CONN_STR))
        assert isinstance(store, ObjectStore)
        assert store.atomic_rename is False

    def test_constructor_with_account_key(self):
        assert AzureBlobStore(settings=Settings(az_account="testaccount", az_key="testkey123")) is not None

    def test_methods_require_azure_sdk(self):
        store = AzureBlobStore(settings=Settings(az_connection_string=CONN_STR))
        with patch.dict(sys.modules, {"azure.storage.blob": None}):
            with pytest.raises(ImportError, match="azure-storage-blob package required"):
                store.get_object("container", "blob.txt")
            with pytest.raises(ImportError, match="azure-storage-blob package required"):
                store.put_object("container", "blob.txt", b"data", ObjectMetadata())

    def test_provider_from_settings(self):
        settings = Settings(
            az_connection_string=CONN_STR,
            scheme="blob",
            config=Configuration(use_pseudo_directories=False),
        )
        provider = BlobFileSystemProvider.from_settings(settings)
        assert isinstance(provider.store, AzureBlobStore)
        assert provider.scheme == "blob"
        assert provider.for_namespace("c").config.use_pseudo_directories is False


class TestErrorTranslation:
    """Test mapping of Azure SDK errors onto the blobfs taxonomy."""

    @pytest.fixture
    def store(self):
        return AzureBlobStore(settings=Settings(az_connection_string=CONN_STR))

    def test_not_found(self, store):
        from azure.core.exceptions import ResourceNotFoundError
        assert isinstance(store._translate(ResourceNotFoundError("gone"), "c", "k"), ObjectNotFound)

    def test_exists(self, store):
        from azure.core.exceptions import ResourceExistsError
        assert isinstance(store._translate(ResourceExistsError("there"), "c", "k"), PreconditionFailed)

    def test_conflict_status(self, store):
        from azure.core.exceptions import HttpResponseError
        error = HttpResponseError("conflict")
        error.status_code = 412
        assert isinstance(store._translate(error, "c", "k"), PreconditionFailed)

    def test_other(self, store):
        translated = store._translate(RuntimeError("socket"), "c", "k")
        assert isinstance(translated, BackendError)
        assert "c/k" in str(translated)

    def test_get_object_translates(self, store):
        from azure.core.exceptions import ResourceNotFoundError
        blob = MagicMock()
        blob.get_blob_properties.side_effect = ResourceNotFoundError("gone")
        with patch.object(store, "_blob", return_value=blob):
            with pytest.raises(ObjectNotFound):
                store.get_object("c", "k")

    def test_get_bytes_range(self, store):
        blob = MagicMock()
        blob.download_blob.return_value.readall.return_value = b"234"
        with patch.object(store, "_blob", return_value=blob):
            assert store.get_bytes("c", "k", 2, 3) == b"234"
        blob.download_blob.assert_called_once_with(offset=2, length=3)

    def test_list_by_prefix(self, store):
        service = MagicMock()
        items = [MagicMock(), MagicMock()]
        items[0].name, items[1].name = "dir/a", "dir/b"
        service.get_container_client.return_value.list_blobs.return_value = iter(items)
        with patch.object(store, "_service", return_value=service):
            assert list(store.list_by_prefix("c", "dir/")) == ["dir/a", "dir/b"]
        service.get_container_client.return_value.list_blobs.assert_called_once_with(name_starts_with="dir/")


class TestCopyMetadata:
    """Test metadata handling on server-side copies."""

    @pytest.fixture
    def store(self):
        return AzureBlobStore(settings=Settings(az_connection_string=CONN_STR))

    def _copy_clients(self, store):
        source, target = MagicMock(), MagicMock()
        target.get_blob_properties.return_value.copy.status = "success"
        blobs = {"src": source, "dst": target}
        return target, patch.object(store, "_blob", side_effect=lambda ns, key: blobs[key])

    def test_copy_with_metadata_resets_user_metadata(self, store):
        target, blob_patch = self._copy_clients(store)
        with blob_patch, patch.object(store, "get_object"):
            store.copy_object("c", "src", "c", "dst", ObjectMetadata(content_type="text/plain"))
        target.set_blob_metadata.assert_called_once_with({})
        target.set_http_headers.assert_called_once()

    def test_copy_without_metadata_keeps_source_metadata(self, store):
        target, blob_patch = self._copy_clients(store)
        with blob_patch, patch.object(store, "get_object"):
            store.copy_object("c", "src", "c", "dst")
        target.set_blob_metadata.assert_not_called()
        target.set_http_headers.assert_not_called()
