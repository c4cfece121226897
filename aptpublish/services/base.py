"""Published storage interface and exceptions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .checksums import ChecksumInfo
from .pool import PackagePool
from .progress import Progress


# =============================================================================
# Exceptions
# =============================================================================


class PublishError(Exception):
    """Base exception for published storage operations."""

    def __init__(self, message: str, storage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.storage = storage


class PublishConflictError(PublishError):
    """Raised when a destination already holds different or unverifiable content."""


class PublishInputError(PublishError):
    """Raised when a local source file cannot be read."""


# =============================================================================
# Interface
# =============================================================================


class PublishedStorage(ABC):
    """Filesystem-shaped view of a published repository.

    Paths are relative to the publishing root of the backend. Directories
    are implicit, links may be emulated.
    """

    @abstractmethod
    def __str__(self) -> str:
        """Return a human readable description of the backend instance."""

    @abstractmethod
    def mkdir(self, path: str) -> None:
        """Create directory ``path`` recursively."""

    @abstractmethod
    def put_file(self, path: str, source_filename: str) -> None:
        """Store local file ``source_filename`` at ``path``."""

    @abstractmethod
    def remove(self, path: str) -> None:
        """Remove the single file at ``path``."""

    @abstractmethod
    def remove_dirs(self, path: str, progress: Progress | None = None) -> None:
        """Remove everything below directory ``path``."""

    @abstractmethod
    def link_from_pool(
        self,
        published_directory: str,
        file_name: str,
        source_pool: PackagePool,
        source_path: str,
        source_checksums: ChecksumInfo,
        force: bool = False,
    ) -> None:
        """Publish pool file ``source_path`` as ``published_directory/file_name``."""

    @abstractmethod
    def filelist(self, prefix: str = "") -> list[str]:
        """Return paths of all files below ``prefix``, relative to it."""

    @abstractmethod
    def rename_file(self, old_name: str, new_name: str) -> None:
        """Move a file."""

    @abstractmethod
    def symlink(self, src: str, dst: str) -> None:
        """Make ``dst`` a symbolic link to ``src``."""

    @abstractmethod
    def hardlink(self, src: str, dst: str) -> None:
        """Make ``dst`` a hard link to ``src``."""

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Return True if a file exists at ``path``."""

    @abstractmethod
    def readlink(self, path: str) -> str:
        """Return the target of the symbolic link at ``path``."""
