"""Object-storage backend for published APT repositories."""

__version__ = "0.1.0"
