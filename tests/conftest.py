"""Shared fixtures: an in-memory stand-in for the MinIO SDK client."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Iterator
from unittest.mock import MagicMock

import pytest
from minio.commonconfig import REPLACE
from minio.error import S3Error

from aptpublish.services.pool import LocalPackagePool
from aptpublish.services.published import MinioPublishedStorage


def make_s3_error(code: str, bucket: str | None = None, key: str | None = None) -> S3Error:
    return S3Error(
        code=code,
        message=f"{code} message",
        resource=f"/{bucket}/{key or ''}",
        request_id="request_id",
        host_id="host_id",
        response=MagicMock(),
        bucket_name=bucket,
        object_name=key,
    )


@dataclass
class FakeObject:
    data: bytes
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def etag(self) -> str:
        return hashlib.md5(self.data).hexdigest()


class FakeMinio:
    """Implements the part of ``minio.Minio`` the publishing layer calls.

    Buckets must be created explicitly; operations on unknown buckets raise
    ``NoSuchBucket`` like a real server.
    """

    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, FakeObject]] = {}
        self.calls: list[tuple[str, str]] = []

    def make_bucket(self, bucket_name: str) -> None:
        self.buckets.setdefault(bucket_name, {})

    def bucket_exists(self, bucket_name: str) -> bool:
        return bucket_name in self.buckets

    def _bucket(self, bucket_name: str, key: str | None = None) -> dict[str, FakeObject]:
        if bucket_name not in self.buckets:
            raise make_s3_error("NoSuchBucket", bucket_name, key)
        return self.buckets[bucket_name]

    def put_object(self, bucket_name: str, object_name: str, data: Any, length: int, **kwargs: Any) -> None:
        self.calls.append(("put_object", object_name))
        objects = self._bucket(bucket_name, object_name)
        objects[object_name] = FakeObject(data=data.read(length))

    def stat_object(self, bucket_name: str, object_name: str) -> SimpleNamespace:
        self.calls.append(("stat_object", object_name))
        obj = self._bucket(bucket_name, object_name).get(object_name)
        if obj is None:
            raise make_s3_error("NoSuchKey", bucket_name, object_name)
        headers = {"Content-Type": "application/octet-stream", "ETag": f'"{obj.etag}"'}
        headers.update({f"X-Amz-Meta-{name}": value for name, value in obj.metadata.items()})
        return SimpleNamespace(
            object_name=object_name,
            etag=obj.etag,
            size=len(obj.data),
            metadata=headers,
        )

    def remove_object(self, bucket_name: str, object_name: str) -> None:
        self.calls.append(("remove_object", object_name))
        self._bucket(bucket_name, object_name).pop(object_name, None)

    def list_objects(
        self,
        bucket_name: str,
        prefix: str | None = None,
        recursive: bool = False,
    ) -> Iterator[SimpleNamespace]:
        self.calls.append(("list_objects", prefix or ""))
        objects = self._bucket(bucket_name)
        for name in sorted(objects):
            if prefix and not name.startswith(prefix):
                continue
            yield SimpleNamespace(object_name=name, etag=f'"{objects[name].etag}"', is_dir=False)

    def copy_object(
        self,
        bucket_name: str,
        object_name: str,
        source: Any,
        metadata: dict[str, str] | None = None,
        metadata_directive: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.calls.append(("copy_object", object_name))
        src_objects = self._bucket(source.bucket_name, source.object_name)
        src = src_objects.get(source.object_name)
        if src is None:
            raise make_s3_error("NoSuchKey", source.bucket_name, source.object_name)
        new_metadata = dict(metadata or {}) if metadata_directive == REPLACE else dict(src.metadata)
        self._bucket(bucket_name, object_name)[object_name] = FakeObject(data=src.data, metadata=new_metadata)

    # test helpers

    def add(self, bucket_name: str, object_name: str, data: bytes) -> None:
        self.buckets[bucket_name][object_name] = FakeObject(data=data)

    def content(self, bucket_name: str, object_name: str) -> bytes:
        return self.buckets[bucket_name][object_name].data

    def keys(self, bucket_name: str) -> list[str]:
        return sorted(self.buckets[bucket_name])

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


@pytest.fixture
def s3_error() -> Callable[..., S3Error]:
    return make_s3_error


@pytest.fixture
def fake_minio() -> FakeMinio:
    client = FakeMinio()
    client.make_bucket("test")
    return client


@pytest.fixture
def storage(fake_minio: FakeMinio) -> MinioPublishedStorage:
    return MinioPublishedStorage(fake_minio, "test", "")


@pytest.fixture
def prefixed_storage(fake_minio: FakeMinio) -> MinioPublishedStorage:
    return MinioPublishedStorage(fake_minio, "test", "lala")


@pytest.fixture
def no_bucket_storage(fake_minio: FakeMinio) -> MinioPublishedStorage:
    return MinioPublishedStorage(fake_minio, "no-bucket", "")


@pytest.fixture
def pool(tmp_path: Path) -> LocalPackagePool:
    return LocalPackagePool(tmp_path / "pool")
