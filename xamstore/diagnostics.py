# xamstore/diagnostics.py  – standalone checks on existing stores
from __future__ import annotations
import json
import logging
import os
from pathlib import Path

from .config import CodecOptions, DEFAULT_OPTIONS
from .const import ENTRY_SIZE, FILE_ASSEMBLIES_BLOB, HEADER_SIZE
from .errors import MissingInputError
from .store import StoreFile

logger = logging.getLogger(__name__)


def ordered_hash_values(store: StoreFile) -> dict:
    """Hash tables in stored order, as bare hex and decimal strings."""
    out = {}
    for key, table in (("hash32", store.hash32), ("hash64", store.hash64)):
        out[key] = {
            "hex": [rec.hash_hex[2:] for rec in table],
            "dec": [str(rec.hash_value) for rec in table],
        }
    return out


def dump_hashes(in_directory: str | os.PathLike, out_file: str | os.PathLike,
                options: CodecOptions = DEFAULT_OPTIONS) -> dict:
    blob = Path(in_directory).resolve() / FILE_ASSEMBLIES_BLOB
    if not blob.exists():
        raise MissingInputError(f"Main assemblies blob '{blob}' does not exist!")
    data = ordered_hash_values(StoreFile.open(blob, primary=True, options=options))
    with open(out_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)
    return data


def companion_has_no_hash_tables(raw: bytes) -> bool:
    """True when the first assembly's data starts right after the entry table."""
    store = StoreFile.parse(raw, primary=False)
    expected = HEADER_SIZE + store.header.local_entry_count * ENTRY_SIZE
    if not store.entries:
        return True
    actual = store.entries[0].data_offset
    logger.info("assert data offset: %d bytes", expected)
    logger.info("actual data offset: %d bytes", actual)
    return actual == expected


def check_arch_blob(blob: str | os.PathLike) -> bool:
    blob = Path(blob).resolve()
    if not blob.exists():
        raise MissingInputError(f"Blob '{blob}' does not exist!")
    return companion_has_no_hash_tables(blob.read_bytes())
