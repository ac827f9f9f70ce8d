"""Tag dumped audio files using mutagen.

Uses mutagen's "easy" interfaces so MP3 (EasyID3) and FLAC (Vorbis
comments) share the same ``title``/``artist``/``album`` keys.
"""

import logging
from pathlib import Path

import mutagen

from ncmdump_service.ncm.format import NcmMetadata

logger = logging.getLogger(__name__)


def _tag_values(metadata: NcmMetadata) -> dict[str, list[str]]:
    values: dict[str, list[str]] = {}
    if metadata.music_name:
        values["title"] = [metadata.music_name]
    if metadata.artists:
        values["artist"] = list(metadata.artists)
    if metadata.album:
        values["album"] = [metadata.album]
    return values


def write_tags(audio_path: Path, metadata: NcmMetadata) -> bool:
    """Write title, artist and album tags to ``audio_path``.

    Args:
        audio_path: Dumped audio file.
        metadata: Metadata recovered from the NCM container.

    Returns:
        ``True`` if tags were written, ``False`` if there was nothing to
        write or mutagen could not handle the file.
    """
    values = _tag_values(metadata)
    if not values:
        return False

    try:
        audio_file = mutagen.File(str(audio_path), easy=True)
    except Exception:
        logger.warning("mutagen could not parse file: %s", audio_path)
        return False

    if audio_file is None:
        logger.warning("mutagen returned None for file: %s", audio_path)
        return False

    try:
        if audio_file.tags is None:
            audio_file.add_tags()
        for key, value in values.items():
            audio_file[key] = value
        audio_file.save()
    except Exception:
        logger.warning("Failed to write tags to %s", audio_path, exc_info=True)
        return False
    return True
