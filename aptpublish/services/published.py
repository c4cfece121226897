"""Published repository storage hosted in an S3-compatible bucket.

Object storage has no directories and no links, so this backend emulates them:

- directories are key prefixes and are never materialised, ``mkdir`` is a no-op
- symbolic and hard links are full server-side copies tagged with a ``SymLink``
  metadata attribute naming the source key. A link therefore costs the same
  storage as its target and does not follow later changes to it.

``link_from_pool`` keeps a map of published path to MD5 built from one listing
of the whole prefix, so publishing a snapshot needs a single listing instead of
one round-trip per package file. The map is only updated by this instance; call
``invalidate_path_cache`` if other writers may have touched the bucket.

Instances are not thread-safe.
"""

from __future__ import annotations

import logging
import os
import posixpath
from typing import BinaryIO

from minio import Minio

from aptpublish.core.config import Settings, get_settings

from .base import PublishConflictError, PublishError, PublishInputError, PublishedStorage
from .checksums import ChecksumInfo
from .minio import get_minio_client
from .objects import BucketNotFoundError, ObjectAttrs, ObjectNotFoundError, ObjectStorageError, ObjectStore
from .pool import PackagePool
from .progress import Progress

logger = logging.getLogger(__name__)

SYMLINK_METADATA_KEY = "SymLink"


def join_key(*parts: str) -> str:
    """Join path segments into an object key.

    Empty segments are skipped, redundant separators and ``.`` segments are
    collapsed, and the result never starts with ``/``.
    """

    joined = "/".join(part for part in parts if part)
    if not joined:
        return ""
    normalized = posixpath.normpath(joined).lstrip("/")
    return "" if normalized == "." else normalized


def _stream_length(stream: BinaryIO) -> int:
    stream.seek(0, os.SEEK_END)
    length = stream.tell()
    stream.seek(0)
    return length


class MinioPublishedStorage(PublishedStorage):
    """Published storage backed by a MinIO/S3 bucket."""

    def __init__(self, client: Minio, bucket_name: str, prefix: str = "") -> None:
        self._store = ObjectStore(client, bucket_name)
        self._bucket_name = bucket_name
        self._prefix = prefix
        self._path_cache: dict[str, str] | None = None

    def __str__(self) -> str:
        return f"MinIO: {self._bucket_name}:{self._prefix}"

    def __repr__(self) -> str:
        return f"MinioPublishedStorage(bucket_name={self._bucket_name!r}, prefix={self._prefix!r})"

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def store(self) -> ObjectStore:
        return self._store

    @property
    def path_cache(self) -> dict[str, str] | None:
        """Return a copy of the path to MD5 cache, or None if it is not built."""

        if self._path_cache is None:
            return None
        return dict(self._path_cache)

    def invalidate_path_cache(self) -> None:
        """Drop the path cache; the next ``link_from_pool`` lists the bucket again."""

        self._path_cache = None

    def _key(self, path: str) -> str:
        if path:
            relative = posixpath.normpath(path).lstrip("/")
            if relative in ("", ".", "..") or relative.startswith("../"):
                raise PublishError(f"path {path!r} resolves outside of {self}", str(self))
        return join_key(self._prefix, path)

    def mkdir(self, path: str) -> None:
        # directories are implicit in object storage
        return None

    def put_file(self, path: str, source_filename: str) -> None:
        try:
            with open(source_filename, "rb") as source:
                self._put(path, source)
        except OSError as exc:
            raise PublishInputError(f"error uploading {source_filename} to {self}: {exc}", str(self)) from exc
        except ObjectStorageError as exc:
            logger.error("Upload of %s to %s failed: %s", source_filename, self, exc)
            raise PublishError(f"error uploading {source_filename} to {self}: {exc}", str(self)) from exc

    def _put(self, path: str, source: BinaryIO) -> None:
        self._store.put(self._key(path), source, _stream_length(source))

    def remove(self, path: str) -> None:
        self._remove_key(self._key(path))

    def _remove_key(self, key: str) -> None:
        try:
            self._store.delete(key)
        except BucketNotFoundError:
            # removal from a bucket that was never provisioned is a no-op
            logger.debug("Bucket %s does not exist, skipping removal of %s", self._bucket_name, key)
        except ObjectStorageError as exc:
            logger.error("Removal of %s from %s failed: %s", key, self, exc)
            raise PublishError(f"error deleting {key} from {self}: {exc}", str(self)) from exc

    def remove_dirs(self, path: str, progress: Progress | None = None) -> None:
        try:
            key_prefix, paths, _ = self._internal_filelist(path)
        except BucketNotFoundError:
            logger.debug("Bucket %s does not exist, nothing to remove under %s", self._bucket_name, path)
            return
        except ObjectStorageError as exc:
            logger.error("Listing under %s in %s failed: %s", path, self, exc)
            raise PublishError(f"error listing under prefix {path} in {self}: {exc}", str(self)) from exc

        if progress is not None:
            progress.printf("Removing %d files under %s...", len(paths), path)

        for name in paths:
            try:
                self._remove_key(key_prefix + name)
            except PublishError as exc:
                raise PublishError(f"error deleting path {name} from {self}: {exc}", str(self)) from exc

        logger.info("Removed %d files under %s from %s", len(paths), path, self)

    def link_from_pool(
        self,
        published_directory: str,
        file_name: str,
        source_pool: PackagePool,
        source_path: str,
        source_checksums: ChecksumInfo,
        force: bool = False,
    ) -> None:
        """Publish a pool file unless identical content is already in place.

        ``published_directory`` is the directory inside the repository (for
        example ``pool/main/m/mars-invaders``) and ``file_name`` may itself
        contain subdirectories.
        """

        rel_path = join_key(published_directory, file_name)
        pool_path = self._key(rel_path)

        path_cache = self._ensure_path_cache()

        source_md5 = source_checksums.md5
        if rel_path in path_cache:
            destination_md5 = path_cache[rel_path]
            if not source_md5:
                raise PublishConflictError("unable to compare object, MD5 checksum missing", str(self))

            if destination_md5 == source_md5:
                return

            if not force:
                raise PublishConflictError(
                    f"error putting file to {pool_path}: file already exists and is different: "
                    f"{self} {destination_md5} {source_md5}",
                    str(self),
                )

        try:
            source = source_pool.open(source_path)
        except OSError as exc:
            raise PublishInputError(f"error opening {source_path} from pool: {exc}", str(self)) from exc

        with source:
            try:
                self._put(rel_path, source)
            except ObjectStorageError as exc:
                logger.error("Upload of %s to %s failed: %s", source_path, pool_path, exc)
                raise PublishError(f"error uploading {source_path} to {self}: {pool_path}: {exc}", str(self)) from exc
            except OSError as exc:
                raise PublishInputError(f"error reading {source_path} from pool: {exc}", str(self)) from exc

        path_cache[rel_path] = source_md5
        logger.debug("Linked %s from pool to %s", source_path, pool_path)

    def _ensure_path_cache(self) -> dict[str, str]:
        if self._path_cache is None:
            try:
                _, paths, md5s = self._internal_filelist("")
            except ObjectStorageError as exc:
                logger.error("Caching published paths from %s failed: %s", self, exc)
                raise PublishError(f"error caching paths under prefix: {exc}", str(self)) from exc

            self._path_cache = dict(zip(paths, md5s))
            logger.info("Cached %d published paths from %s", len(self._path_cache), self)
        return self._path_cache

    def _attrs(self, key: str) -> ObjectAttrs:
        return self._store.stat(key)

    def filelist(self, prefix: str = "") -> list[str]:
        try:
            _, paths, _ = self._internal_filelist(prefix)
        except ObjectStorageError as exc:
            logger.error("Listing under %s in %s failed: %s", prefix, self, exc)
            raise PublishError(f"error listing under prefix {prefix} in {self}: {exc}", str(self)) from exc
        return paths

    def _internal_filelist(self, prefix: str) -> tuple[str, list[str], list[str]]:
        """List keys under ``prefix``.

        Returns the key prefix that was queried together with the paths
        relative to it and their MD5 sums.
        """

        key_prefix = self._key(prefix)
        if key_prefix:
            key_prefix += "/"

        paths: list[str] = []
        md5s: list[str] = []
        for entry in self._store.list(key_prefix):
            paths.append(entry.key[len(key_prefix) :])
            md5s.append(entry.md5)
        return key_prefix, paths, md5s

    def rename_file(self, old_name: str, new_name: str) -> None:
        # copy then delete; a failed delete leaves both objects behind
        source_key = self._key(old_name)
        dest_key = self._key(new_name)

        try:
            self._store.copy(source_key, dest_key)
            self._store.delete(source_key)
        except ObjectStorageError as exc:
            logger.error("Rename of %s to %s in %s failed: %s", old_name, new_name, self, exc)
            raise PublishError(f"error renaming {old_name} -> {new_name} in {self}: {exc}", str(self)) from exc

    def symlink(self, src: str, dst: str) -> None:
        source_key = self._key(src)
        dest_key = self._key(dst)

        try:
            self._store.copy(source_key, dest_key)
            self._store.update_metadata(dest_key, {SYMLINK_METADATA_KEY: source_key})
        except ObjectStorageError as exc:
            logger.error("Link of %s to %s in %s failed: %s", src, dst, self, exc)
            raise PublishError(f"error symlinking {src} -> {dst} in {self}: {exc}", str(self)) from exc

    def hardlink(self, src: str, dst: str) -> None:
        self.symlink(src, dst)

    def file_exists(self, path: str) -> bool:
        try:
            self._attrs(self._key(path))
        except ObjectNotFoundError:
            return False
        except ObjectStorageError as exc:
            logger.error("Checking %s in %s failed: %s", path, self, exc)
            raise PublishError(f"error checking {path} in {self}: {exc}", str(self)) from exc
        return True

    def readlink(self, path: str) -> str:
        try:
            attrs = self._attrs(self._key(path))
        except ObjectStorageError as exc:
            logger.error("Reading link %s from %s failed: %s", path, self, exc)
            raise PublishError(f"error getting information about {path} from {self}: {exc}", str(self)) from exc

        link = attrs.metadata.get(SYMLINK_METADATA_KEY.lower())
        if link is None:
            raise PublishError(f"error getting information about {path} from {self}: not a link", str(self))
        return link


def get_published_storage(settings: Settings | None = None, client: Minio | None = None) -> MinioPublishedStorage:
    """Build the published storage described by ``settings``."""

    config = settings or get_settings()
    return MinioPublishedStorage(
        client or get_minio_client(config),
        config.publish_bucket,
        config.normalized_prefix,
    )
