# ==================================================
# xamstore/compression.py
# ==================================================
from __future__ import annotations
import logging
import struct

import lz4.block

from .config import CodecOptions, DEFAULT_OPTIONS
from .const import COMPRESSED_DATA_MAGIC, COMPRESSED_HDR_FMT, COMPRESSED_HDR_SIZE
from .errors import DecompressedSizeError

logger = logging.getLogger(__name__)

# -------- lz4 block codec -------------------------------------------------


class Lz4BlockCodec:
    """Raw LZ4 blocks, no size prefix (the frame header carries the length)."""

    def encode(self, data: bytes) -> bytes:
        return lz4.block.compress(data, store_size=False)

    def decode(self, data: bytes, expected_length: int) -> bytes:
        try:
            return lz4.block.decompress(data, uncompressed_size=expected_length)
        except lz4.block.LZ4BlockError as exc:
            raise DecompressedSizeError(
                f"Unable to decompress block into {expected_length}B: {exc}") from exc


block_codec = Lz4BlockCodec()

# -------- XALZ framing ----------------------------------------------------


def is_compressed(data: bytes) -> bool:
    return data[:4] == COMPRESSED_DATA_MAGIC


def descriptor_index(frame: bytes) -> int:
    if len(frame) < COMPRESSED_HDR_SIZE:
        raise DecompressedSizeError(f"Compressed frame too short: {len(frame)}B")
    return struct.unpack_from(COMPRESSED_HDR_FMT, frame, 0)[1]


def decompress(frame: bytes, codec=None, options: CodecOptions = DEFAULT_OPTIONS) -> bytes:
    """Unwrap an XALZ frame.

    Layout: magic(4) | descriptor index u32 | uncompressed length u32 | block.
    The block must inflate to exactly the declared length.
    """
    codec = codec or block_codec
    if len(frame) < COMPRESSED_HDR_SIZE:
        raise DecompressedSizeError(f"Compressed frame too short: {len(frame)}B")
    _magic, desc_idx, unpacked_len = struct.unpack_from(COMPRESSED_HDR_FMT, frame, 0)
    if options.debug:
        logger.debug("XALZ frame: desc_idx=%d, unpacked=%dB, packed=%dB",
                     desc_idx, unpacked_len, len(frame) - COMPRESSED_HDR_SIZE)

    data = codec.decode(bytes(frame[COMPRESSED_HDR_SIZE:]), unpacked_len)
    if len(data) != unpacked_len:
        raise DecompressedSizeError(
            f"Decompressed size mismatch. Header: {unpacked_len}B. Data: {len(data)}B.")
    return bytes(data)


def compress(data: bytes, desc_idx: int, codec=None) -> bytes:
    codec = codec or block_codec
    header = struct.pack(COMPRESSED_HDR_FMT, COMPRESSED_DATA_MAGIC, desc_idx, len(data))
    return header + codec.encode(data)
