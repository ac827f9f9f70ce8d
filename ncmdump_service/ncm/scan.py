"""Expand dropped paths into the ``.ncm`` files they contain."""

import asyncio
import logging
from pathlib import Path

from ncmdump_service.queue.ports import EnumerationError
from ncmdump_service.settings import settings

logger = logging.getLogger(__name__)


def _has_extension(path: Path, extension: str) -> bool:
    return path.suffix.lower() == f".{extension.lower().lstrip('.')}"


def list_ncm_files(path: Path, extension: str = "ncm") -> list[str]:
    """List dump-eligible files for one dropped path.

    A matching file yields itself, any other file yields nothing, and a
    directory yields every matching file below it (recursive, sorted).

    Raises:
        EnumerationError: If ``path`` does not exist.
    """
    if not path.exists():
        raise EnumerationError(f"Path does not exist: {path}")

    if path.is_file():
        return [str(path)] if _has_extension(path, extension) else []

    if path.is_dir():
        found = sorted(
            str(f) for f in path.rglob("*") if f.is_file() and _has_extension(f, extension)
        )
        logger.debug("Found %d %s file(s) in %s", len(found), extension, path)
        return found

    return []


async def enumerate_ncm_files(path: str) -> list[str]:
    """Async adapter around :func:`list_ncm_files` using the configured extension."""
    try:
        return await asyncio.to_thread(list_ncm_files, Path(path), settings.ncm_extension)
    except OSError as e:
        raise EnumerationError(f"Cannot read {path}: {e}") from e
