"""Storage repository for the podcast object store."""

import asyncio
import io
import threading
from typing import Callable, List, Optional
from botocore.client import BaseClient
from botocore.exceptions import ClientError
from ..config import settings
from ..config.storage import get_storage_client, get_bucket_name
from ..schemas.quota import StorageObject
from ..utils.helpers import build_public_url
from ..utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class _ProgressRelay:
    """
    Turns boto3's per-chunk byte counts into cumulative (loaded, total) pairs.
    boto3 calls back from its transfer threads; reports are handed to the
    event loop so listeners always run on the loop thread, in order.
    """

    def __init__(self, total: int, on_progress: ProgressCallback, loop: asyncio.AbstractEventLoop):
        self.total = total
        self._on_progress = on_progress
        self._loop = loop
        self._lock = threading.Lock()
        self._transferred = 0
        self._reported = 0

    def __call__(self, bytes_amount: int) -> None:
        with self._lock:
            # Retries inside s3transfer report negative amounts
            self._transferred = max(0, min(self.total, self._transferred + bytes_amount))
            if self._transferred <= self._reported:
                return
            self._reported = self._transferred
            self._loop.call_soon_threadsafe(self._on_progress, self._reported, self.total)


class StorageRepository:
    """Repository for object store operations."""

    def __init__(self):
        self.client: Optional[BaseClient] = None
        self.bucket_name: Optional[str] = None

    async def _get_client(self) -> BaseClient:
        """Get or create storage client."""
        if self.client is None:
            self.client = get_storage_client()
            self.bucket_name = get_bucket_name()
        return self.client

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """
        Upload an object.
        Args:
            key: Storage key (path)
            data: Object content
            content_type: MIME type
            on_progress: Receives (loaded, total) byte counts
        Returns:
            Storage key
        """
        client = await self._get_client()
        loop = asyncio.get_running_loop()
        callback = _ProgressRelay(len(data), on_progress, loop) if on_progress else None

        def _upload():
            client.upload_fileobj(
                Fileobj=io.BytesIO(data),
                Bucket=self.bucket_name,
                Key=key,
                ExtraArgs={"ContentType": content_type, "CacheControl": "max-age=3600"},
                Callback=callback,
            )

        await loop.run_in_executor(None, _upload)
        return key

    def public_url(self, key: str) -> str:
        """Publicly reachable URL for an object."""
        return build_public_url(settings.storage_public_url, key)

    async def remove(self, keys: List[str]) -> None:
        """
        Delete objects in one request.
        Raises ClientError if the store reports any per-key failure.
        """
        if not keys:
            return
        client = await self._get_client()
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
            ),
        )
        errors = response.get("Errors") or []
        if errors:
            first = errors[0]
            raise ClientError(
                {"Error": {"Code": first.get("Code", ""), "Message": first.get("Message", "")}},
                "DeleteObjects",
            )

    async def list_objects(self, prefix: str, limit: int = 100) -> List[StorageObject]:
        """Objects under a prefix, newest first."""
        client = await self._get_client()
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: client.list_objects_v2(
                Bucket=self.bucket_name, Prefix=prefix, MaxKeys=limit
            ),
        )
        contents = sorted(
            response.get("Contents", []),
            key=lambda item: item["LastModified"],
            reverse=True,
        )
        return [
            StorageObject(
                name=item["Key"][len(prefix):].lstrip("/"),
                key=item["Key"],
                size=item["Size"],
                last_modified=item["LastModified"].isoformat(),
            )
            for item in contents
        ]

    async def check_connectivity(self) -> bool:
        """Check the bucket is reachable with the configured credentials."""
        client = await self._get_client()
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, lambda: client.head_bucket(Bucket=self.bucket_name))
            return True
        except Exception as e:
            logger.warning("Bucket not reachable", bucket=self.bucket_name, error=str(e))
            return False
