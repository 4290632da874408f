# xamstore/hashing.py  – xxHash digests of assembly names (seed 0)
from __future__ import annotations
import struct
import xxhash

SEED = 0


def format_hash32(value: int) -> str:
    return f"0x{value:08x}"


def format_hash64(value: int) -> str:
    return f"0x{value:016x}"


def parse_hash(text: str) -> int:
    """Inverse of format_hash32/format_hash64; the 0x prefix is optional."""
    return int(text, 16)


def hash_values(name: str) -> tuple[int, int]:
    """Integer xxHash32 and xxHash64 of the UTF-8 encoded name."""
    h32 = xxhash.xxh32(seed=SEED)
    h64 = xxhash.xxh64(seed=SEED)
    data = name.encode("utf-8")
    h32.update(data)
    h64.update(data)
    return h32.intdigest(), h64.intdigest()


def gen_xxhash(name: str) -> tuple[str, str]:
    """Return ``(hash32, hash64)`` as ``0x``-prefixed zero-padded hex."""
    h32, h64 = hash_values(name)
    return format_hash32(h32), format_hash64(h64)


def gen_xxhash_raw(name: str) -> tuple[bytes, bytes]:
    """Return the 4- and 8-byte little-endian forms written into hash tables."""
    h32, h64 = hash_values(name)
    return struct.pack("<I", h32), struct.pack("<Q", h64)
