"""
Azure Blob Storage adapter.

Implements the ObjectStore protocol with the azure-storage-blob SDK.
Containers are namespaces and blob names are object keys.
"""
from __future__ import annotations

import logging
import re
import time
from typing import Iterator, Optional

from ..errors import BackendError, ObjectNotFound, PreconditionFailed
from ..settings import Settings
from .base import ObjectMetadata, ObjectStore, Payload, StoredObject

__all__ = ["AzureBlobStore"]

logger = logging.getLogger(__name__)

_SDK_REQUIRED = "azure-storage-blob package required for Azure blob storage"

# Server-side copies are usually synchronous within one account; poll briefly otherwise
_COPY_POLL_INTERVAL_S = 0.5


class AzureBlobStore(ObjectStore):
    """
    ObjectStore adapter for Azure Blob Storage.

    Uses connection string or account+key authentication and supports custom
    endpoints for Azurite and private Azure clouds. Blob storage has no
    rename primitive, so ``rename_object`` is a server-side copy followed by
    a delete and ``atomic_rename`` is False.
    """

    atomic_rename = False

    def __init__(self, *, settings: Settings) -> None:
        """
        Initialize Azure adapter with settings.

        Args:
            settings: Settings containing Azure authentication and timeout

        Raises:
            ValueError: If Azure authentication is not properly configured
        """
        self._settings = settings
        self._validate_azure_auth()
        self._service_client = None

        if settings.az_connection_string:
            logger.debug("Azure store using connection string auth")
        else:
            logger.debug(f"Azure store using account+key auth for {settings.az_account}")
        if settings.az_blob_endpoint:
            logger.debug(f"Azure store custom endpoint: {settings.az_blob_endpoint}")

    def _validate_azure_auth(self) -> None:
        """Validate Azure authentication configuration."""
        has_conn_str = bool(self._settings.az_connection_string)
        has_account_key = bool(self._settings.az_account and self._settings.az_key)

        if not has_conn_str and not has_account_key:
            raise ValueError(
                "Azure authentication not configured: need AZURE_STORAGE_CONNECTION_STRING "
                "or (AZURE_STORAGE_ACCOUNT + AZURE_STORAGE_KEY)"
            )

    def _service(self):
        """
        Build (once) the BlobServiceClient.

        Connection patterns:

        1. Connection string: ``BlobServiceClient.from_connection_string()``
        2. Connection string + custom endpoint: account name is extracted from
           the connection string and the endpoint is overridden (Azurite)
        3. Account+key: ``https://{account}.blob.core.windows.net``
        4. Account+key + custom endpoint: ``{endpoint}/{account}``
        """
        if self._service_client is not None:
            return self._service_client

        try:
            from azure.storage.blob import BlobServiceClient
        except ImportError:
            raise ImportError(_SDK_REQUIRED)

        common = {
            "connection_timeout": self._settings.timeout_s,
            "retry_total": 5,
            "retry_backoff_factor": 0.4,
        }
        endpoint = (self._settings.az_blob_endpoint or "").rstrip("/")

        if self._settings.az_connection_string:
            conn_str = self._settings.az_connection_string
            account_match = re.search(r"AccountName=([^;]+)", conn_str)
            if endpoint and account_match:
                key_match = re.search(r"AccountKey=([^;]+)", conn_str)
                credential = None
                if key_match:
                    credential = {"account_name": account_match.group(1), "account_key": key_match.group(1)}
                client = BlobServiceClient(
                    account_url=f"{endpoint}/{account_match.group(1)}", credential=credential, **common
                )
            else:
                client = BlobServiceClient.from_connection_string(conn_str, **common)
        else:
            account_url = (
                f"{endpoint}/{self._settings.az_account}"
                if endpoint
                else f"https://{self._settings.az_account}.blob.core.windows.net"
            )
            client = BlobServiceClient(account_url=account_url, credential=self._settings.az_key, **common)

        self._service_client = client
        return client

    def _blob(self, namespace: str, key: str):
        return self._service().get_blob_client(container=namespace, blob=key)

    def _translate(self, e: Exception, namespace: str, key: str) -> Exception:
        """Map an Azure SDK exception onto the blobfs taxonomy."""
        from azure.core.exceptions import ResourceExistsError, ResourceModifiedError, ResourceNotFoundError

        where = f"{namespace}/{key}"
        if isinstance(e, ResourceNotFoundError):
            return ObjectNotFound(f"Blob not found: {where}", path=key)
        if isinstance(e, (ResourceExistsError, ResourceModifiedError)):
            return PreconditionFailed(f"Blob already exists: {where}", path=key)
        status = getattr(e, "status_code", None)
        if status in (409, 412):
            return PreconditionFailed(f"Condition not met for {where}", path=key)
        return BackendError(f"Azure blob error for {where}: {e}", path=key)

    @staticmethod
    def _to_stored(namespace: str, key: str, properties) -> StoredObject:
        settings = properties.content_settings
        return StoredObject(
            namespace=namespace,
            key=key,
            size=properties.size,
            created=properties.creation_time or properties.last_modified,
            updated=properties.last_modified,
            etag=(properties.etag or "").strip('"') or None,
            metadata=ObjectMetadata(
                content_type=settings.content_type,
                cache_control=settings.cache_control,
                content_encoding=settings.content_encoding,
                content_disposition=settings.content_disposition,
                user_metadata=dict(properties.metadata or {}),
                acl=(),
            ),
        )

    @staticmethod
    def _content_settings(metadata: ObjectMetadata):
        try:
            from azure.storage.blob import ContentSettings
        except ImportError:
            raise ImportError(_SDK_REQUIRED)

        return ContentSettings(
            content_type=metadata.content_type,
            cache_control=metadata.cache_control,
            content_encoding=metadata.content_encoding,
            content_disposition=metadata.content_disposition,
        )

    def get_object(self, namespace: str, key: str) -> StoredObject:
        """Get blob properties without downloading content."""
        blob = self._blob(namespace, key)
        try:
            properties = blob.get_blob_properties()
        except Exception as e:
            raise self._translate(e, namespace, key) from e
        return self._to_stored(namespace, key, properties)

    def get_bytes(self, namespace: str, key: str, offset: int = 0, length: Optional[int] = None) -> bytes:
        """Download a byte range of the blob."""
        blob = self._blob(namespace, key)
        logger.debug(f"Azure range read {namespace}/{key} offset={offset} length={length}")
        try:
            return blob.download_blob(offset=offset, length=length).readall()
        except Exception as e:
            raise self._translate(e, namespace, key) from e

    def put_object(
        self,
        namespace: str,
        key: str,
        data: Payload,
        metadata: ObjectMetadata,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """Upload the full blob, optionally only if it does not exist yet."""
        if metadata.acl:
            logger.debug(f"Azure blobs carry no per-object ACL; ignoring {len(metadata.acl)} entries for {key}")
        blob = self._blob(namespace, key)
        try:
            blob.upload_blob(
                data,
                overwrite=not if_not_exists,
                content_settings=self._content_settings(metadata),
                metadata=dict(metadata.user_metadata) or None,
            )
        except ImportError:
            raise
        except Exception as e:
            raise self._translate(e, namespace, key) from e
        return self.get_object(namespace, key)

    def delete_object(self, namespace: str, key: str) -> None:
        """Delete the blob."""
        blob = self._blob(namespace, key)
        try:
            blob.delete_blob()
        except Exception as e:
            raise self._translate(e, namespace, key) from e

    def list_by_prefix(self, namespace: str, prefix: str) -> Iterator[str]:
        """Yield blob names under ``prefix`` (Azure lists in lexicographic order)."""
        container = self._service().get_container_client(namespace)
        try:
            for item in container.list_blobs(name_starts_with=prefix or None):
                yield item.name
        except Exception as e:
            raise self._translate(e, namespace, prefix) from e

    def copy_object(
        self,
        source_namespace: str,
        source_key: str,
        target_namespace: str,
        target_key: str,
        metadata: Optional[ObjectMetadata] = None,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """Server-side copy; content settings are reset when ``metadata`` is given."""
        try:
            from azure.core import MatchConditions
        except ImportError:
            raise ImportError(_SDK_REQUIRED)

        source = self._blob(source_namespace, source_key)
        target = self._blob(target_namespace, target_key)
        # Surface a missing source as ObjectNotFound before starting the copy
        self.get_object(source_namespace, source_key)

        kwargs = {}
        if metadata is not None:
            kwargs["metadata"] = dict(metadata.user_metadata)
        if if_not_exists:
            kwargs["match_condition"] = MatchConditions.IfMissing
        try:
            target.start_copy_from_url(source.url, **kwargs)
            self._wait_for_copy(target)
            if metadata is not None:
                # An empty metadata set on the copy request keeps the source's; reset it explicitly
                target.set_blob_metadata(dict(metadata.user_metadata))
                target.set_http_headers(content_settings=self._content_settings(metadata))
        except Exception as e:
            raise self._translate(e, target_namespace, target_key) from e
        return self.get_object(target_namespace, target_key)

    def _wait_for_copy(self, target) -> None:
        deadline = time.monotonic() + self._settings.timeout_s
        while True:
            status = target.get_blob_properties().copy.status
            if status != "pending":
                break
            if time.monotonic() > deadline:
                raise BackendError(f"Timed out waiting for copy to {target.blob_name}")
            time.sleep(_COPY_POLL_INTERVAL_S)
        if status != "success":
            raise BackendError(f"Copy to {target.blob_name} ended with status {status}")

    def rename_object(
        self,
        namespace: str,
        source_key: str,
        target_key: str,
        *,
        if_not_exists: bool = False,
    ) -> StoredObject:
        """Copy then delete; not atomic."""
        logger.debug(f"Azure rename {namespace}/{source_key} -> {target_key} via copy+delete")
        stored = self.copy_object(namespace, source_key, namespace, target_key, if_not_exists=if_not_exists)
        self.delete_object(namespace, source_key)
        return stored

