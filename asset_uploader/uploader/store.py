"""
Remote object store interface and its Google Cloud Storage implementation.

The upload core only ever talks to ``RemoteObjectStore``: an existence
check and a put, both addressed by bucket, region and key. Implementations
wrap every transport failure into ``RemoteStoreError`` so the core never
inspects SDK-specific exception types.

Example usage:
    >>> from asset_uploader.utils.config import StoreOptions
    >>> store = GcsObjectStore(StoreOptions(bucket="site-assets", project="web"))
    >>> exists = await store.head_exists("site-assets", "", "static/app/index.js")
"""

import asyncio
import mimetypes
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from google.api_core import exceptions as api_exceptions
from google.auth.exceptions import GoogleAuthError

from asset_uploader.uploader.exceptions import RemoteStoreError
from asset_uploader.utils.config import StoreOptions
from asset_uploader.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Transport failures converted to RemoteStoreError at this boundary
TRANSPORT_ERRORS = (
    api_exceptions.GoogleAPICallError,
    api_exceptions.RetryError,
    GoogleAuthError,
    OSError,
)


class RemoteObjectStore(ABC):
    """
    Abstract interface for the object store an upload batch writes to.

    Calls are stateless (each carries its own bucket and key), so one
    instance is shared by every concurrent per-file pipeline.
    """

    @abstractmethod
    async def head_exists(self, bucket: str, region: str, key: str) -> bool:
        """
        Check whether an object exists.

        Args:
            bucket: Bucket name
            region: Bucket region, forwarded opaquely
            key: Object key

        Returns:
            True if the object exists, False if it was not found

        Raises:
            RemoteStoreError: For any other failure (permission denied included)
        """

    @abstractmethod
    async def put(self, bucket: str, region: str, key: str, body: bytes) -> Dict[str, Any]:
        """
        Write an object.

        Args:
            bucket: Bucket name
            region: Bucket region, forwarded opaquely
            key: Object key
            body: Object content

        Returns:
            Response metadata reported by the store

        Raises:
            RemoteStoreError: If the write fails
        """


def store_error_from_exception(exc: BaseException) -> RemoteStoreError:
    """
    Wrap a Google client exception into a ``RemoteStoreError``.

    ``code`` is the API's error reason when it reports one ("forbidden",
    "notFound", ...), else the HTTP status, else the exception class name.
    """
    status = getattr(exc, "code", None)
    status_code = int(status) if isinstance(status, int) else None

    reason = None
    errors = getattr(exc, "errors", None)
    if errors and isinstance(errors[0], dict):
        reason = errors[0].get("reason")

    code = reason or (str(status_code) if status_code else type(exc).__name__)
    message = getattr(exc, "message", None) or str(exc)
    return RemoteStoreError(
        code=str(code),
        name=type(exc).__name__,
        message=str(message),
        status_code=status_code,
    )


def _header(headers: Dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


class GcsObjectStore(RemoteObjectStore):
    """
    ``RemoteObjectStore`` backed by google-cloud-storage.

    The SDK is blocking, so every call runs in a worker thread. The client is
    created on first use from ``StoreOptions``: a service account file when
    ``credentials_path`` is set, the ambient application default credentials
    otherwise. GCS buckets are global, so ``region`` is accepted and ignored.

    Upload headers from ``StoreOptions.headers`` are applied to every object:
    Content-Type (guessed from the key when absent), Content-Encoding and
    Cache-Control. Set ``Content-Encoding: gzip`` when uploading with the
    gzip option so browsers decode the objects.
    """

    def __init__(self, options: StoreOptions, client: Optional[Any] = None) -> None:
        self.options = options
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            from google.cloud import storage

            if self.options.credentials_path:
                logger.debug(
                    f"Creating GCS client from service account: {self.options.credentials_path}"
                )
                self._client = storage.Client.from_service_account_json(
                    self.options.credentials_path, project=self.options.project
                )
            else:
                self._client = storage.Client(project=self.options.project)
        return self._client

    async def head_exists(self, bucket: str, region: str, key: str) -> bool:
        return await asyncio.to_thread(self._head_exists, bucket, key)

    async def put(self, bucket: str, region: str, key: str, body: bytes) -> Dict[str, Any]:
        return await asyncio.to_thread(self._put, bucket, key, body)

    def _head_exists(self, bucket: str, key: str) -> bool:
        try:
            return bool(self.client.bucket(bucket).blob(key).exists())
        except TRANSPORT_ERRORS as e:
            raise store_error_from_exception(e) from e

    def _put(self, bucket: str, key: str, body: bytes) -> Dict[str, Any]:
        headers = self.options.headers
        content_type = (
            _header(headers, "Content-Type")
            or mimetypes.guess_type(key)[0]
            or DEFAULT_CONTENT_TYPE
        )

        try:
            blob = self.client.bucket(bucket).blob(key)

            cache_control = _header(headers, "Cache-Control")
            if cache_control:
                blob.cache_control = cache_control

            content_encoding = _header(headers, "Content-Encoding")
            if content_encoding:
                blob.content_encoding = content_encoding

            blob.upload_from_string(body, content_type=content_type)
        except TRANSPORT_ERRORS as e:
            raise store_error_from_exception(e) from e

        return {
            "bucket": bucket,
            "key": key,
            "content_type": content_type,
            "size": len(body),
            "generation": blob.generation,
            "etag": blob.etag,
            "md5_hash": blob.md5_hash,
        }
