"""S3-compatible object storage backend."""

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...domain.exceptions import StorageError
from .storage_helper import StorageHelper

logger = logging.getLogger(__name__)

# One year, artifacts are immutable once uploaded
CACHE_CONTROL = "max-age=31536000"


class S3Storage:
    """Uploads clip artifacts to an S3 bucket.

    boto3 is synchronous, so transfers run in a worker thread. Transient
    boto errors are retried with exponential backoff.
    """

    def __init__(
        self,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        region_name: Optional[str] = None,
        cloudfront_domain: Optional[str] = None,
        max_retries: int = 3,
        retry_wait_seconds: float = 1.0,
    ):
        self.bucket_name = bucket_name
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.cloudfront_domain = cloudfront_domain
        self.max_retries = max_retries
        self.retry_wait_seconds = retry_wait_seconds
        self.s3_client = boto3.client(
            "s3",
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def public_url(self, key: str) -> str:
        if self.cloudfront_domain:
            return f"https://{self.cloudfront_domain}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.amazonaws.com/{key}"

    async def upload(self, local_path: str, destination_key: str) -> str:
        """Upload a local file and return its public URL.

        Raises:
            StorageError: If the upload still fails after all retries
        """
        extra_args: dict[str, Any] = {
            "ContentType": StorageHelper.get_content_type(destination_key),
            "CacheControl": CACHE_CONTROL,
        }
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self.retry_wait_seconds, max=30),
                retry=retry_if_exception_type((BotoCoreError, ClientError)),
                before_sleep=before_sleep_log(logger, logging.INFO),
                reraise=True,
            ):
                with attempt:
                    await asyncio.to_thread(
                        self.s3_client.upload_file,
                        local_path,
                        self.bucket_name,
                        destination_key,
                        ExtraArgs=extra_args,
                    )
        except (BotoCoreError, ClientError, OSError) as e:
            raise StorageError(f"S3 upload failed: {e}", key=destination_key) from e

        logger.info(f"Uploaded {local_path} to s3://{self.bucket_name}/{destination_key}")
        return self.public_url(destination_key)

    async def delete(self, local_path: str) -> None:
        await asyncio.to_thread(StorageHelper.remove_local_file, local_path)
