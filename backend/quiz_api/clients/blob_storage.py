"""Thin wrapper around boto3 for storing rendered result documents.

Works against AWS S3 or any S3-compatible endpoint (R2, MinIO) configured via
``BLOB_ENDPOINT_URL``.
"""

import io
import logging
import re
from typing import Any
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .. import config
from ..errors import UploadError

logger = logging.getLogger(__name__)

_blob_store = None  # module-level cache

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_object_name(name: str) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", name).strip("_") or "document"


class S3BlobStore:
    def __init__(
        self,
        bucket: str,
        *,
        client: Any = None,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        public_base_url: str = "",
        key_prefix: str = "",
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/")
        self.key_prefix = key_prefix
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                aws_access_key_id=config.BLOB_ACCESS_KEY,
                aws_secret_access_key=config.BLOB_SECRET_KEY,
            )
        return self._client

    def object_url(self, key: str) -> str:
        quoted = quote(key)
        if self.public_base_url:
            return f"{self.public_base_url}/{quoted}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    def upload(self, name: str, data: bytes, content_type: str = "application/pdf") -> str:
        """Stream ``data`` to the bucket and return its stable HTTPS URL."""
        if not self.bucket:
            raise UploadError("BLOB_BUCKET is not configured")
        key = f"{self.key_prefix}{safe_object_name(name)}"
        try:
            self.client.upload_fileobj(
                io.BytesIO(data),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError) as exc:
            raise UploadError(f"Upload of {key} failed: {exc}") from exc

        url = self.object_url(key)
        logger.info("Uploaded %s (%d bytes)", key, len(data))
        return url


def get_blob_store() -> S3BlobStore:
    """Return the process-wide blob store built from configuration."""
    global _blob_store  # noqa: PLW0603

    if _blob_store is None:
        _blob_store = S3BlobStore(
            config.BLOB_BUCKET,
            region=config.BLOB_REGION,
            endpoint_url=config.BLOB_ENDPOINT_URL,
            public_base_url=config.BLOB_PUBLIC_BASE_URL,
            key_prefix=config.BLOB_KEY_PREFIX,
        )
        logger.info("Blob store initialised (bucket=%s)", config.BLOB_BUCKET)
    return _blob_store
