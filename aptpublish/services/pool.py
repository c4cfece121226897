"""Content-addressed package pool that published files are linked from."""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from .checksums import ChecksumInfo, checksums_for_file

logger = logging.getLogger(__name__)


class PoolImportError(Exception):
    """Raised when a file cannot be imported into the pool."""


class PackagePool(ABC):
    """Source of package files addressed by an opaque path token."""

    @abstractmethod
    def open(self, path: str) -> BinaryIO:
        """Open the pool file identified by ``path`` for binary reading."""

    @abstractmethod
    def import_file(self, src_path: str | Path, basename: str, checksums: ChecksumInfo | None = None) -> str:
        """Copy ``src_path`` into the pool and return its path token."""


class LocalPackagePool(PackagePool):
    """Pool stored on the local filesystem.

    Files live at ``<sha256[0:2]>/<sha256[2:4]>/<sha256[4:32]>_<basename>``
    below ``root``; the relative path is the token handed to callers.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def full_path(self, path: str) -> Path:
        candidate = (self._root / path).resolve()
        try:
            candidate.relative_to(self._root)
        except ValueError as exc:
            raise FileNotFoundError(f"path {path!r} is outside of pool {self._root}") from exc
        return candidate

    def open(self, path: str) -> BinaryIO:
        return open(self.full_path(path), "rb")

    def import_file(self, src_path: str | Path, basename: str, checksums: ChecksumInfo | None = None) -> str:
        actual = checksums_for_file(src_path)
        if checksums is not None and checksums.md5 and checksums.md5 != actual.md5:
            raise PoolImportError(
                f"unable to import {src_path}: MD5 mismatch, expected {checksums.md5}, got {actual.md5}"
            )

        name = posixpath.basename(basename)
        relative = posixpath.join(actual.sha256[0:2], actual.sha256[2:4], f"{actual.sha256[4:32]}_{name}")
        target = self._root / relative

        if target.exists() and target.stat().st_size == actual.size:
            logger.debug("Pool already contains %s", relative)
            return relative

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = target.with_name(f"{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            shutil.copyfile(src_path, tmp_file)
            os.replace(tmp_file, target)
        except OSError as exc:
            tmp_file.unlink(missing_ok=True)
            raise PoolImportError(f"unable to import {src_path} into pool: {exc}") from exc

        logger.debug("Imported %s into pool as %s", src_path, relative)
        return relative
