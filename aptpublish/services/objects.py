"""Thin wrapper around one MinIO bucket with classified errors.

Every call into the MinIO SDK made by the publishing layer goes through
:class:`ObjectStore`. SDK failures are translated into three error kinds so
callers can decide what is benign without inspecting S3 error codes:

- :class:`BucketNotFoundError` when the bucket itself is missing
- :class:`ObjectNotFoundError` when the key is missing
- :class:`StorageTransportError` for everything else
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

from minio import Minio
from minio.commonconfig import REPLACE, CopySource
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)

USER_METADATA_PREFIX = "x-amz-meta-"

_BUCKET_NOT_FOUND_CODES = frozenset({"NoSuchBucket"})
_OBJECT_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
# socket errors such as ConnectionResetError can escape urllib3
_CLIENT_ERRORS = (MinioException, HTTPError, OSError)


class ObjectStorageError(Exception):
    """Base exception for object storage operations."""

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key
        self.cause = cause


class BucketNotFoundError(ObjectStorageError):
    """Raised when the target bucket does not exist."""


class ObjectNotFoundError(ObjectStorageError):
    """Raised when the requested object does not exist."""


class StorageTransportError(ObjectStorageError):
    """Raised when the backend or the network cannot complete an operation."""


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    """A single listing result: full key and its content hash."""

    key: str
    md5: str


@dataclass(frozen=True, slots=True)
class ObjectAttrs:
    """Object attributes returned by :meth:`ObjectStore.stat`."""

    key: str
    md5: str
    size: int
    metadata: dict[str, str] = field(default_factory=dict)


def normalize_etag(etag: str | None) -> str:
    """Return an ETag as bare lowercase hex."""

    if not etag:
        return ""
    return etag.strip().strip('"').lower()


def user_metadata(headers: object) -> dict[str, str]:
    """Extract user metadata from response headers.

    Keys are lower-cased with the ``x-amz-meta-`` prefix removed.
    """

    if not headers:
        return {}
    result: dict[str, str] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered.startswith(USER_METADATA_PREFIX):
            result[lowered[len(USER_METADATA_PREFIX) :]] = value
    return result


class ObjectStore:
    """Object operations against a single bucket."""

    def __init__(self, client: Minio, bucket_name: str) -> None:
        self._client = client
        self._bucket_name = bucket_name

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def client(self) -> Minio:
        return self._client

    def put(self, key: str, stream: BinaryIO, length: int) -> None:
        """Create or replace the object at ``key`` with ``length`` bytes from ``stream``."""

        try:
            self._client.put_object(
                self._bucket_name,
                key,
                stream,
                length=length,
                content_type="application/octet-stream",
            )
        except _CLIENT_ERRORS as exc:
            raise self._translate_error(exc, key) from exc
        logger.debug("Uploaded %s bytes to %s/%s", length, self._bucket_name, key)

    def stat(self, key: str) -> ObjectAttrs:
        try:
            obj = self._client.stat_object(self._bucket_name, key)
        except _CLIENT_ERRORS as exc:
            raise self._translate_error(exc, key) from exc
        return ObjectAttrs(
            key=key,
            md5=normalize_etag(obj.etag),
            size=obj.size or 0,
            metadata=user_metadata(obj.metadata),
        )

    def delete(self, key: str) -> None:
        try:
            self._client.remove_object(self._bucket_name, key)
        except _CLIENT_ERRORS as exc:
            raise self._translate_error(exc, key) from exc
        logger.debug("Removed %s/%s", self._bucket_name, key)

    def list(self, prefix: str = "") -> Iterator[ObjectEntry]:
        """Yield every object whose key starts with ``prefix``, in key order.

        Pagination is driven by the SDK iterator; failures raised while
        fetching later pages are classified like any other call.
        """

        try:
            for obj in self._client.list_objects(self._bucket_name, prefix=prefix or None, recursive=True):
                if obj.object_name is None or obj.is_dir:
                    continue
                yield ObjectEntry(key=obj.object_name, md5=normalize_etag(obj.etag))
        except _CLIENT_ERRORS as exc:
            raise self._translate_error(exc, prefix) from exc

    def copy(self, src_key: str, dst_key: str, metadata: dict[str, str] | None = None) -> None:
        """Server-side copy of ``src_key`` to ``dst_key``.

        When ``metadata`` is given it replaces the user metadata of the copy.
        """

        try:
            if metadata:
                self._client.copy_object(
                    self._bucket_name,
                    dst_key,
                    CopySource(self._bucket_name, src_key),
                    metadata=metadata,
                    metadata_directive=REPLACE,
                )
            else:
                self._client.copy_object(
                    self._bucket_name,
                    dst_key,
                    CopySource(self._bucket_name, src_key),
                )
        except _CLIENT_ERRORS as exc:
            raise self._translate_error(exc, src_key) from exc
        logger.debug("Copied %s/%s to %s", self._bucket_name, src_key, dst_key)

    def update_metadata(self, key: str, metadata: dict[str, str]) -> None:
        """Replace the user metadata of ``key``.

        S3 has no in-place metadata update, so the object is copied onto
        itself with the new metadata.
        """

        self.copy(key, key, metadata=metadata)

    def _translate_error(self, error: Exception, key: str | None = None) -> ObjectStorageError:
        if isinstance(error, S3Error):
            if error.code in _BUCKET_NOT_FOUND_CODES:
                return BucketNotFoundError(str(error), bucket=self._bucket_name, key=key, cause=error)
            if error.code in _OBJECT_NOT_FOUND_CODES:
                return ObjectNotFoundError(str(error), bucket=self._bucket_name, key=key, cause=error)
        return StorageTransportError(str(error), bucket=self._bucket_name, key=key, cause=error)
