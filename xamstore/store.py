# ==================================================
# xamstore/store.py
# ==================================================
from __future__ import annotations
import logging
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .config import CodecOptions, DEFAULT_OPTIONS
from .const import *
from .errors import (EntryLayoutError, InvalidMagicError, TruncatedStoreError,
                     UnsupportedVersionError)
from .hashing import format_hash32, format_hash64

logger = logging.getLogger(__name__)

# numpy views over the fixed-width tables (little-endian, unaligned)
ENTRY_DTYPE = np.dtype([
    ("data_offset", "<u4"), ("data_size", "<u4"),
    ("debug_offset", "<u4"), ("debug_size", "<u4"),
    ("config_offset", "<u4"), ("config_size", "<u4"),
])
HASH32_DTYPE = np.dtype([
    ("hash", "<u4"), ("reserved", "<u4"),
    ("mapping_index", "<u4"), ("local_store_index", "<u4"), ("store_id", "<u4"),
])
HASH64_DTYPE = np.dtype([
    ("hash", "<u8"),
    ("mapping_index", "<u4"), ("local_store_index", "<u4"), ("store_id", "<u4"),
])


@dataclass(frozen=True)
class StoreHeader:
    version: int
    local_entry_count: int
    global_entry_count: int
    store_id: int
    magic: bytes = ASSEMBLY_STORE_MAGIC

    @property
    def has_companions(self) -> bool:
        return self.local_entry_count != self.global_entry_count

    def pack(self) -> bytes:
        return struct.pack(HEADER_FMT, self.magic, self.version, self.local_entry_count,
                           self.global_entry_count, self.store_id)

    @classmethod
    def unpack(cls, raw: bytes) -> "StoreHeader":
        if len(raw) < HEADER_SIZE:
            raise TruncatedStoreError(f"Store is {len(raw)}B, header needs {HEADER_SIZE}B")
        magic, version, lec, gec, store_id = struct.unpack_from(HEADER_FMT, raw, 0)
        if magic != ASSEMBLY_STORE_MAGIC:
            raise InvalidMagicError(f"Invalid Magic: {magic!r}")
        if version > ASSEMBLY_STORE_FORMAT_VERSION:
            raise UnsupportedVersionError(
                f"This version is higher than expected! "
                f"Max = {ASSEMBLY_STORE_FORMAT_VERSION}, got {version}")
        return cls(version, lec, gec, store_id, magic)


@dataclass(frozen=True)
class AssemblyEntry:
    data_offset: int = 0
    data_size: int = 0
    debug_offset: int = 0
    debug_size: int = 0
    config_offset: int = 0
    config_size: int = 0

    def pack(self) -> bytes:
        return struct.pack(ENTRY_FMT, self.data_offset, self.data_size,
                           self.debug_offset, self.debug_size,
                           self.config_offset, self.config_size)


@dataclass(frozen=True)
class HashRecord:
    hash_value: int
    mapping_index: int
    local_store_index: int
    store_id: int
    bits: int = 32
    reserved: int = 0     # hash32 only; kept verbatim, never interpreted

    @property
    def hash_hex(self) -> str:
        return format_hash32(self.hash_value) if self.bits == 32 else format_hash64(self.hash_value)

    def pack(self) -> bytes:
        if self.bits == 32:
            return struct.pack(HASH32_FMT, self.hash_value, self.reserved,
                               self.mapping_index, self.local_store_index, self.store_id)
        return struct.pack(HASH64_FMT, self.hash_value,
                           self.mapping_index, self.local_store_index, self.store_id)


# -------- layout helpers --------------------------------------------------

def entry_offset(index: int) -> int:
    return HEADER_SIZE + index * ENTRY_SIZE


def hash32_table_offset(lec: int) -> int:
    return HEADER_SIZE + lec * ENTRY_SIZE


def hash64_table_offset(lec: int, gec: int) -> int:
    return hash32_table_offset(lec) + gec * HASH_ENTRY_SIZE


def data_region_offset(lec: int, gec: int, primary: bool) -> int:
    """First byte after the header, entry table and (primary only) hash tables."""
    off = HEADER_SIZE + lec * ENTRY_SIZE
    if primary:
        off += gec * (HASH_ENTRY_SIZE + HASH_ENTRY_SIZE)
    return off


def _table(raw: bytes, dtype: np.dtype, count: int, offset: int, what: str) -> np.ndarray:
    end = offset + count * dtype.itemsize
    if end > len(raw):
        raise TruncatedStoreError(
            f"{what} table needs bytes {offset}..{end}, store is {len(raw)}B")
    return np.frombuffer(raw, dtype=dtype, count=count, offset=offset)


# -------- parsed store ----------------------------------------------------

@dataclass(frozen=True)
class StoreFile:
    """One parsed container held entirely in memory."""
    file_name: str
    header: StoreHeader
    entries: tuple
    hash32: tuple
    hash64: tuple
    raw: bytes = field(repr=False)

    @classmethod
    def parse(cls, raw: bytes, file_name: str = FILE_ASSEMBLIES_BLOB, primary: bool = True,
              options: CodecOptions = DEFAULT_OPTIONS) -> "StoreFile":
        raw = bytes(raw)
        header = StoreHeader.unpack(raw)
        lec, gec = header.local_entry_count, header.global_entry_count
        if options.debug:
            logger.debug("Local entry count: %d", lec)
            logger.debug("Global entry count: %d", gec)
            logger.debug("Entries start at: %d (0x%x)", HEADER_SIZE, HEADER_SIZE)

        entries = tuple(
            AssemblyEntry(*row)
            for row in _table(raw, ENTRY_DTYPE, lec, HEADER_SIZE, "Entry").tolist()
        )
        if options.debug:
            for i, e in enumerate(entries):
                logger.debug("Assembly %d @0x%x: data 0x%x+%d debug 0x%x+%d config 0x%x+%d",
                             i, entry_offset(i), e.data_offset, e.data_size,
                             e.debug_offset, e.debug_size, e.config_offset, e.config_size)

        if not primary:
            if options.debug:
                logger.debug("Skipping hash sections in non-primary store")
            return cls(file_name, header, entries, (), (), raw)

        h32_off = hash32_table_offset(lec)
        h64_off = hash64_table_offset(lec, gec)
        hash32 = tuple(
            HashRecord(h, mi, lsi, sid, bits=32, reserved=res)
            for h, res, mi, lsi, sid in _table(raw, HASH32_DTYPE, gec, h32_off, "Hash32").tolist()
        )
        hash64 = tuple(
            HashRecord(h, mi, lsi, sid, bits=64)
            for h, mi, lsi, sid in _table(raw, HASH64_DTYPE, gec, h64_off, "Hash64").tolist()
        )
        if options.debug:
            logger.debug("Hash32 start at: %d (0x%x)", h32_off, h32_off)
            for rec in hash32:
                logger.debug("  %s map=%d local=%d store=%d", rec.hash_hex,
                             rec.mapping_index, rec.local_store_index, rec.store_id)
            logger.debug("Hash64 start at: %d (0x%x)", h64_off, h64_off)
            for rec in hash64:
                logger.debug("  %s map=%d local=%d store=%d", rec.hash_hex,
                             rec.mapping_index, rec.local_store_index, rec.store_id)

        store = cls(file_name, header, entries, hash32, hash64, raw)
        if not store.hash_tables_sorted():
            logger.warning("%s: hash tables are not in ascending hex order", file_name)
        return store

    @classmethod
    def open(cls, path: str | os.PathLike, primary: bool = True,
             options: CodecOptions = DEFAULT_OPTIONS) -> "StoreFile":
        path = Path(path)
        return cls.parse(path.read_bytes(), path.name, primary, options)

    # ------------------------------------------------------------------
    def hash_tables_sorted(self) -> bool:
        for table in (self.hash32, self.hash64):
            keys = [rec.hash_hex for rec in table]
            if any(a > b for a, b in zip(keys, keys[1:])):
                return False
        return True

    def data(self, index: int) -> bytes:
        """Raw (possibly XALZ-framed) data region of entry ``index``."""
        e = self.entries[index]
        end = e.data_offset + e.data_size
        if end > len(self.raw):
            raise TruncatedStoreError(
                f"Assembly {index} data 0x{e.data_offset:x}+{e.data_size} "
                f"exceeds store size {len(self.raw)}B")
        return self.raw[e.data_offset:end]


# -------- writer ----------------------------------------------------------

class StoreBuilder:
    """Append-only image of a store being packed.

    The header and the entry/hash tables are reserved up front; module data
    is appended at a monotonically advancing cursor and each entry slot is
    patched once its data has been placed.
    """

    def __init__(self, header: StoreHeader, primary: bool):
        self.header = header
        self.primary = primary
        lec, gec = header.local_entry_count, header.global_entry_count
        self.buf = bytearray(data_region_offset(lec, gec, primary))
        self.buf[0:HEADER_SIZE] = header.pack()
        self._filled: set[int] = set()

    def add_assembly(self, index: int, data: bytes) -> AssemblyEntry:
        """Append ``data`` and record it in the reserved entry slot ``index``."""
        if not 0 <= index < self.header.local_entry_count:
            raise EntryLayoutError(
                f"Local index {index} outside store of {self.header.local_entry_count} entries")
        if index in self._filled:
            raise EntryLayoutError(f"Local index {index} is already filled")
        entry = AssemblyEntry(data_offset=len(self.buf), data_size=len(data))
        slot = entry_offset(index)
        self.buf[slot:slot + ENTRY_SIZE] = entry.pack()
        self.buf += data
        self._filled.add(index)
        return entry

    def set_hash_tables(self, hash32: list, hash64: list) -> None:
        lec, gec = self.header.local_entry_count, self.header.global_entry_count
        for off, table in ((hash32_table_offset(lec), hash32),
                           (hash64_table_offset(lec, gec), hash64)):
            for i, rec in enumerate(table):
                pos = off + i * HASH_ENTRY_SIZE
                self.buf[pos:pos + HASH_ENTRY_SIZE] = rec.pack()

    def to_bytes(self) -> bytes:
        return bytes(self.buf)
