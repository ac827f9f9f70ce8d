"""NCM container parsing and decryption.

Layout (all integers little-endian ``u32``)::

    magic "CTENFDAM" | 2 bytes gap
    key length | key (XOR 0x64, AES-128-ECB, "neteasecloudmusic" prefix)
    meta length | meta (XOR 0x63, "163 key(Don't modify):" prefix, base64,
                        AES-128-ECB, "music:" prefix, JSON)
    crc32 | 5 bytes gap | image size | image
    audio (XOR with a 256-byte keystream derived from the key box)
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, BinaryIO

import numpy as np
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

MAGIC = b"CTENFDAM"
CORE_KEY = bytes.fromhex("687A4852416D736F356B496E62617857")
META_KEY = bytes.fromhex("2331346C6A6B5F215C5D2630553C2728")

KEY_XOR = 0x64
META_XOR = 0x63
KEY_PREFIX_LEN = 17  # b"neteasecloudmusic"
META_PREFIX_LEN = 22  # b"163 key(Don't modify):"

# Multiple of 256 so every chunk starts at keystream offset 0.
AUDIO_CHUNK_SIZE = 0x8000


class NcmFormatError(Exception):
    """Raised when a file is not a well-formed NCM container."""


@dataclass
class NcmMetadata:
    """Track metadata embedded in the container."""

    music_name: str | None = None
    artists: list[str] = field(default_factory=list)
    album: str | None = None
    format: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> NcmMetadata:
        # Radio programmes wrap the track under "mainMusic".
        if "mainMusic" in data and isinstance(data["mainMusic"], dict):
            data = data["mainMusic"]
        artists: list[str] = []
        for entry in data.get("artist") or []:
            if isinstance(entry, list) and entry:
                artists.append(str(entry[0]))
            elif isinstance(entry, str):
                artists.append(entry)
        return cls(
            music_name=data.get("musicName"),
            artists=artists,
            album=data.get("album"),
            format=data.get("format"),
        )


@dataclass
class NcmHeader:
    """Everything in the container that precedes the audio stream."""

    key_box: bytes
    metadata: NcmMetadata
    cover: bytes = b""


def _xor(data: bytes, value: int) -> bytes:
    return np.bitwise_xor(np.frombuffer(data, dtype=np.uint8), value).astype(np.uint8).tobytes()


def _aes_ecb_decrypt(key: bytes, data: bytes) -> bytes:
    decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        padded = decryptor.update(data) + decryptor.finalize()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise NcmFormatError(f"AES decryption failed: {e}") from e


def _read_exact(f: BinaryIO, size: int, what: str) -> bytes:
    data = f.read(size)
    if len(data) != size:
        raise NcmFormatError(f"Truncated file while reading {what}")
    return data


def _read_u32(f: BinaryIO, what: str) -> int:
    (value,) = struct.unpack("<I", _read_exact(f, 4, what))
    return value


def build_key_box(key: bytes) -> bytes:
    """Derive the 256-byte key box from the decrypted track key."""
    if not key:
        raise NcmFormatError("Empty track key")
    box = list(range(256))
    last = 0
    offset = 0
    for i in range(256):
        swap = box[i]
        c = (swap + last + key[offset]) & 0xFF
        offset += 1
        if offset >= len(key):
            offset = 0
        box[i] = box[c]
        box[c] = swap
        last = c
    return bytes(box)


def build_keystream(key_box: bytes) -> np.ndarray:
    """Return the 256-byte keystream that repeats over the audio stream."""
    box = np.frombuffer(key_box, dtype=np.uint8).astype(np.int64)
    j = (np.arange(256) + 1) & 0xFF
    return box[(box[j] + box[(box[j] + j) & 0xFF]) & 0xFF].astype(np.uint8)


def _read_key_box(f: BinaryIO) -> bytes:
    key_length = _read_u32(f, "key length")
    key_data = _xor(_read_exact(f, key_length, "key"), KEY_XOR)
    key = _aes_ecb_decrypt(CORE_KEY, key_data)
    return build_key_box(key[KEY_PREFIX_LEN:])


def _read_metadata(f: BinaryIO) -> NcmMetadata:
    meta_length = _read_u32(f, "metadata length")
    if meta_length == 0:
        logger.debug("Container has no metadata block")
        return NcmMetadata()

    meta_data = _xor(_read_exact(f, meta_length, "metadata"), META_XOR)
    try:
        encrypted = base64.b64decode(meta_data[META_PREFIX_LEN:], validate=True)
    except binascii.Error as e:
        raise NcmFormatError(f"Invalid metadata encoding: {e}") from e

    plain = _aes_ecb_decrypt(META_KEY, encrypted)
    _, sep, payload = plain.partition(b":")
    if not sep:
        raise NcmFormatError("Metadata is missing its type prefix")
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise NcmFormatError(f"Invalid metadata JSON: {e}") from e
    if not isinstance(data, dict):
        raise NcmFormatError("Metadata JSON is not an object")
    return NcmMetadata.from_json(data)


def _read_cover(f: BinaryIO) -> bytes:
    _read_u32(f, "crc32")
    _read_exact(f, 5, "gap")
    image_size = _read_u32(f, "image size")
    return _read_exact(f, image_size, "image")


def read_header(f: BinaryIO) -> NcmHeader:
    """Parse everything up to the audio stream.

    Leaves ``f`` positioned at the first audio byte.

    Raises:
        NcmFormatError: If the magic, lengths or encrypted blocks are invalid.
    """
    if f.read(len(MAGIC)) != MAGIC:
        raise NcmFormatError("Invalid file header")
    _read_exact(f, 2, "gap")

    key_box = _read_key_box(f)
    metadata = _read_metadata(f)
    cover = _read_cover(f)
    return NcmHeader(key_box=key_box, metadata=metadata, cover=cover)


def iter_audio(f: BinaryIO, key_box: bytes, chunk_size: int = AUDIO_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield decrypted audio chunks from the current position to EOF."""
    if chunk_size % 256:
        raise ValueError("chunk_size must be a multiple of 256")
    mask = np.tile(build_keystream(key_box), chunk_size // 256)
    while True:
        chunk = f.read(chunk_size)
        if not chunk:
            break
        data = np.frombuffer(chunk, dtype=np.uint8)
        yield np.bitwise_xor(data, mask[: data.size]).tobytes()


def sniff_audio_format(head: bytes) -> str:
    if head.startswith(b"fLaC"):
        return "flac"
    return "mp3"


def sniff_image_extension(image: bytes) -> str:
    if image.startswith(b"\x89PNG"):
        return "png"
    return "jpg"
