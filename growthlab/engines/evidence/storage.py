"""
Object storage for image evidence.

Uploads go to a hosted bucket API:
    POST {base}/object/{bucket}/{path}        (authenticated upload)
    GET  {base}/object/public/{bucket}/{path} (public URL returned to callers)

Retries with exponential backoff on 5xx and timeouts. Any failure surfaces as
StorageError so the caller writes nothing.
"""

import asyncio
import re
import uuid
from typing import Any, Optional, Protocol

import httpx

from growthlab.config import get_settings
from growthlab.kernel.errors import StorageError
from growthlab.logging_config import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = (0.5, 1.0, 2.0)  # seconds

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class ObjectStorage(Protocol):
    """Anything that can durably store bytes and hand back a URL."""

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        ...


def evidence_path(experiment_id: uuid.UUID, filename: str) -> str:
    """Unique object path for an evidence image, grouped by experiment."""
    safe = _UNSAFE_CHARS.sub("-", filename).strip("-.") or "image"
    return f"{experiment_id}/{uuid.uuid4().hex}-{safe}"


async def _request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Perform request with exponential backoff for 5xx and timeouts."""
    last_exc: Optional[Exception] = None
    for attempt in range(MAX_RETRIES):
        try:
            response = await client.request(method, url, **kwargs)
            if response.status_code >= 500 and attempt < MAX_RETRIES - 1:
                await asyncio.sleep(RETRY_BACKOFF[attempt])
                continue
            return response
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_exc = e
            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(RETRY_BACKOFF[attempt])
    raise last_exc


class HttpObjectStorage:
    """Bucket storage over HTTP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        bucket: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url if base_url is not None else settings.storage_url).rstrip("/")
        self.bucket = bucket or settings.storage_bucket
        self.api_key = api_key if api_key is not None else settings.storage_api_key
        self.timeout = timeout or settings.storage_timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{path}"

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Upload bytes and return the public URL.

        Raises:
            StorageError: If storage is not configured or the upload fails
        """
        if not self.is_configured:
            raise StorageError("Object storage is not configured")

        url = f"{self.base_url}/object/{self.bucket}/{path}"
        headers = {"Content-Type": content_type}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await _request_with_retry(client, "POST", url, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Evidence upload failed for %s: %s", path, e)
            raise StorageError(f"Upload failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                "Evidence upload rejected",
                extra={"path": path, "status_code": response.status_code},
            )
            raise StorageError(f"Upload failed with status {response.status_code}")

        return self.public_url(path)
