"""Storage module."""

from .store import TempFileStore

__all__ = ["TempFileStore"]
