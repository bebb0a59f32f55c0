"""Azure Blob Storage adapter for fetching sources and publishing results."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from azure.core.exceptions import AzureError
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContentSettings

from .config import CropSettings
from .errors import CollaboratorFailure

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StoredObject:
    data: bytes
    content_type: str


def build_service_client(
    settings: CropSettings, environ: Optional[Mapping[str, str]] = None
) -> BlobServiceClient:
    """Create a blob service client from a connection string or managed identity."""
    env = os.environ if environ is None else environ
    if settings.storage_auth_mode in {"managed_identity", "aad"}:
        if not settings.storage_account_url:
            raise CollaboratorFailure(
                "storage_config",
                "STORAGE_ACCOUNT_URL is required for managed identity storage access",
            )
        try:
            return BlobServiceClient(
                account_url=settings.storage_account_url,
                credential=DefaultAzureCredential(),
            )
        except Exception as exc:
            raise CollaboratorFailure(
                "storage_config",
                f"Failed to create blob service client with managed identity: {exc}",
            ) from exc

    connection = env.get("AzureWebJobsStorage")
    if not connection:
        raise CollaboratorFailure(
            "storage_config", "AzureWebJobsStorage connection string not found"
        )
    try:
        return BlobServiceClient.from_connection_string(connection)
    except Exception as exc:
        raise CollaboratorFailure(
            "storage_config", f"Failed to create blob service client: {exc}"
        ) from exc


class BlobObjectStore:
    """Object store over blob containers; a container plays the role of a bucket."""

    def __init__(self, service_client: BlobServiceClient) -> None:
        self._service = service_client

    def get(self, container: str, key: str) -> StoredObject:
        blob_client = self._service.get_container_client(container).get_blob_client(key)
        try:
            props = blob_client.get_blob_properties()
            content_type = props.content_settings.content_type or DEFAULT_CONTENT_TYPE
            data = blob_client.download_blob().readall()
        except AzureError as exc:
            raise CollaboratorFailure(
                "storage_get", f"Failed to download {container}/{key}: {exc}"
            ) from exc
        logger.info("Downloaded %s/%s (%d bytes, %s)", container, key, len(data), content_type)
        return StoredObject(data=data, content_type=content_type)

    def put(
        self,
        container: str,
        key: str,
        data: bytes,
        content_type: str,
        public_read: bool = True,
    ) -> Optional[str]:
        """Upload ``data`` and return its public URL when ``public_read`` is set.

        Blob storage has no per-object ACL; public reads come from the
        container's access level, so ``public_read`` only controls whether a
        direct URL is handed back.
        """
        blob_client = self._service.get_container_client(container).get_blob_client(key)
        try:
            blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as exc:
            raise CollaboratorFailure(
                "storage_put", f"Failed to upload {container}/{key}: {exc}"
            ) from exc
        logger.info("Uploaded %s/%s (%d bytes)", container, key, len(data))
        return blob_client.url if public_read else None
