"""
Directory-backed temp file store for generated source files.

One file per artifact at ``{directory}/{id}{extension}``. There is no index;
every read and sweep goes back to the filesystem. Blocking filesystem calls
are wrapped with ``asyncio.to_thread`` to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

from structlog import get_logger

from promptcode.errors import NotFound, StorageError
from promptcode.languages import get_language

logger = get_logger()


class TempFileStore:
    """Write-once file holder shared by all requests and the sweeper."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory).resolve()

    @property
    def directory(self) -> Path:
        return self._directory

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def ensure_directory(self) -> None:
        """Create the managed directory if it does not exist yet."""
        try:
            await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create storage directory: {exc}") from exc
        logger.info("Temp file store ready", directory=str(self._directory))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def put(self, content: str, language: str, file_id: str) -> Path:
        """Write *content* as ``{file_id}{extension}`` and return its path."""
        config = get_language(language)
        if config is None:
            raise StorageError(f"No file extension known for language: {language}")

        path = self._directory / f"{file_id}{config.extension}"
        try:
            await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write file", path=str(path), error=str(exc))
            raise StorageError(f"Failed to save generated code: {exc}") from exc

        logger.debug("File stored", file_name=path.name, size=len(content))
        return path

    async def get(self, file_name: str) -> bytes:
        """Return the bytes of *file_name*; anything outside the store is NotFound."""
        path = self._resolve(file_name)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise NotFound("File not found") from exc
        except IsADirectoryError as exc:
            raise NotFound("File not found") from exc
        except OSError as exc:
            logger.error("Failed to read file", file_name=file_name, error=str(exc))
            raise StorageError(f"Failed to read file: {exc}") from exc

    async def sweep(self, max_age_seconds: float) -> int:
        """Delete files older than *max_age_seconds*. Never raises."""
        return await asyncio.to_thread(self._sweep, max_age_seconds)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve(self, file_name: str) -> Path:
        if (
            not file_name
            or file_name in (".", "..")
            or "/" in file_name
            or "\\" in file_name
            or "\x00" in file_name
        ):
            raise NotFound("File not found")

        path = (self._directory / file_name).resolve()
        if path.parent != self._directory:
            raise NotFound("File not found")
        return path

    def _sweep(self, max_age_seconds: float) -> int:
        try:
            entries = list(self._directory.iterdir())
        except OSError as exc:
            logger.error("Cleanup error", directory=str(self._directory), error=str(exc))
            return 0

        now = time.time()
        removed = 0

        for path in entries:
            try:
                if not path.is_file():
                    continue
                if now - path.stat().st_mtime > max_age_seconds:
                    path.unlink()
                    removed += 1
                    logger.info("Cleaned up old file", file_name=path.name)
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Failed to remove old file", file_name=path.name, error=str(exc))

        return removed
