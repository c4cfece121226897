"""Checksums carried alongside package files."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class ChecksumInfo:
    """Size and digests of a package file.

    Empty strings mean the digest is unknown; ``size`` is -1 when unknown.
    """

    size: int = -1
    md5: str = ""
    sha1: str = ""
    sha256: str = ""
    sha512: str = ""

    @property
    def complete(self) -> bool:
        """Return True when every digest and the size are known."""

        return self.size >= 0 and all((self.md5, self.sha1, self.sha256, self.sha512))


def checksums_for_file(path: str | Path) -> ChecksumInfo:
    """Read ``path`` once and compute all digests."""

    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()
    sha512 = hashlib.sha512()
    size = 0

    with open(path, "rb") as handle:
        while chunk := handle.read(_CHUNK_SIZE):
            size += len(chunk)
            md5.update(chunk)
            sha1.update(chunk)
            sha256.update(chunk)
            sha512.update(chunk)

    return ChecksumInfo(
        size=size,
        md5=md5.hexdigest(),
        sha1=sha1.hexdigest(),
        sha256=sha256.hexdigest(),
        sha512=sha512.hexdigest(),
    )
