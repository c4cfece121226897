"""Service layer for publishing repositories to object storage."""

from .base import PublishConflictError, PublishError, PublishInputError, PublishedStorage
from .checksums import ChecksumInfo, checksums_for_file
from .minio import ensure_buckets, get_minio_client
from .objects import (
    BucketNotFoundError,
    ObjectAttrs,
    ObjectEntry,
    ObjectNotFoundError,
    ObjectStorageError,
    ObjectStore,
    StorageTransportError,
)
from .pool import LocalPackagePool, PackagePool, PoolImportError
from .progress import LoggingProgress, Progress
from .published import MinioPublishedStorage, get_published_storage, join_key

__all__ = [
    "get_minio_client",
    "ensure_buckets",
    "ObjectStore",
    "ObjectAttrs",
    "ObjectEntry",
    "ObjectStorageError",
    "BucketNotFoundError",
    "ObjectNotFoundError",
    "StorageTransportError",
    "ChecksumInfo",
    "checksums_for_file",
    "PackagePool",
    "LocalPackagePool",
    "PoolImportError",
    "Progress",
    "LoggingProgress",
    "PublishedStorage",
    "PublishError",
    "PublishConflictError",
    "PublishInputError",
    "MinioPublishedStorage",
    "get_published_storage",
    "join_key",
]
