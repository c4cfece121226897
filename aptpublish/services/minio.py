"""MinIO client helpers and bucket bootstrap utilities."""

from __future__ import annotations

import logging
from typing import Iterable

from minio import Minio
from minio.error import S3Error

from aptpublish.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def get_minio_client(settings: Settings | None = None) -> Minio:
    """Create a MinIO client using publishing settings."""

    config = settings or get_settings()
    return Minio(
        config.minio_endpoint,
        access_key=config.minio_access_key,
        secret_key=config.minio_secret_key,
        secure=config.minio_secure,
        region=config.minio_region,
    )


def ensure_buckets(client: Minio, bucket_names: Iterable[str]) -> list[str]:
    """Ensure that each bucket in ``bucket_names`` exists.

    Returns the names of the buckets that had to be created.
    """

    created: list[str] = []
    for bucket in bucket_names:
        try:
            if client.bucket_exists(bucket):
                logger.debug("Bucket '%s' already exists", bucket)
                continue
            client.make_bucket(bucket)
            logger.info("Created bucket '%s'", bucket)
            created.append(bucket)
        except S3Error as exc:
            logger.error("Failed to ensure bucket '%s': %s", bucket, exc)
            raise RuntimeError(f"Unable to ensure bucket '{bucket}'") from exc
    return created
