"""Dump an NCM container into a plain audio file and its cover image.

Output files are named after the source file's stem:
``{output_dir}/{stem}.{format}`` and, when the container carries a cover,
``{output_dir}/{stem}.{png|jpg}``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from ncmdump_service.ncm.format import (
    NcmFormatError,
    NcmMetadata,
    iter_audio,
    read_header,
    sniff_audio_format,
    sniff_image_extension,
)
from ncmdump_service.ncm.tags import write_tags
from ncmdump_service.queue.ports import DumpError
from ncmdump_service.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class DumpedFiles:
    """Files written for one dumped container."""

    audio_path: Path
    cover_path: Path | None
    metadata: NcmMetadata
    tagged: bool = False


def dump_file(file_path: Path, output_dir: Path, tag: bool = True) -> DumpedFiles:
    """Decrypt ``file_path`` into ``output_dir``.

    Args:
        file_path: Source ``.ncm`` file.
        output_dir: Existing directory to write into.
        tag: Write title/artist/album tags to the dumped audio.

    Returns:
        DumpedFiles describing what was written.

    Raises:
        NcmFormatError: If the container is malformed.
        OSError: If reading or writing fails.
    """
    file_path = Path(file_path)
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        raise NotADirectoryError(f"Output directory does not exist: {output_dir}")

    with open(file_path, "rb") as f:
        header = read_header(f)

        cover_path: Path | None = None
        if header.cover:
            cover_path = output_dir / f"{file_path.stem}.{sniff_image_extension(header.cover)}"
            cover_path.write_bytes(header.cover)

        chunks = iter_audio(f, header.key_box)
        first = next(chunks, b"")
        audio_format = header.metadata.format or sniff_audio_format(first)
        audio_path = output_dir / f"{file_path.stem}.{audio_format}"

        with open(audio_path, "wb") as out:
            out.write(first)
            for chunk in chunks:
                out.write(chunk)

    tagged = write_tags(audio_path, header.metadata) if tag else False
    logger.info("Dumped %s -> %s (tagged=%s)", file_path.name, audio_path.name, tagged)
    return DumpedFiles(
        audio_path=audio_path,
        cover_path=cover_path,
        metadata=header.metadata,
        tagged=tagged,
    )


async def dump(file_path: str, output_dir: str) -> None:
    """Dump one file without blocking the event loop.

    Raises:
        DumpError: If the file could not be dumped for any reason.
    """
    try:
        await asyncio.to_thread(dump_file, Path(file_path), Path(output_dir), settings.write_tags)
    except NcmFormatError as e:
        raise DumpError(f"{Path(file_path).name}: {e}") from e
    except OSError as e:
        raise DumpError(f"{Path(file_path).name}: {e}") from e
