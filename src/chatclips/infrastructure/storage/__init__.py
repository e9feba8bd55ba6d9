"""Clip artifact storage backends."""

from typing import Union

from ..config import Settings
from .local_storage import LocalStorage
from .s3_storage import S3Storage
from .storage_helper import StorageHelper


def create_storage(settings: Settings) -> Union[S3Storage, LocalStorage]:
    """Build the storage backend selected by ``storage.provider``."""
    config = settings.storage
    if config.provider == "s3":
        return S3Storage(
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key.get_secret_value(),
            bucket_name=config.s3_bucket,
            endpoint_url=config.s3_endpoint_url,
            region_name=config.s3_region,
            cloudfront_domain=config.cloudfront_domain,
            max_retries=config.upload_max_retries,
        )
    return LocalStorage(root=config.local_root, base_url=config.local_base_url)


__all__ = ["LocalStorage", "S3Storage", "StorageHelper", "create_storage"]
