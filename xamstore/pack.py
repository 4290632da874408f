# ==================================================
# xamstore/pack.py
# ==================================================
from __future__ import annotations
import json
import logging
import os
from pathlib import Path

from .compression import compress
from .config import CodecOptions, DEFAULT_OPTIONS
from .const import (FILE_ASSEMBLIES_MANIFEST, HASHED_STORE_LIMIT, NEW_SUFFIX,
                    PRIMARY_STORE_ID)
from .errors import (EntryLayoutError, HashTableLengthError, MissingInputError,
                     OutputExistsError)
from .hashing import format_hash32, format_hash64, gen_xxhash_raw, hash_values
from .manifest import ManifestRecord, render_manifest
from .store import HashRecord, StoreBuilder, StoreHeader

logger = logging.getLogger(__name__)


def _hashed(assemblies: list[dict]) -> list[dict]:
    return [a for a in assemblies if a["store_idx"] < HASHED_STORE_LIMIT]


def build_manifest(assemblies: list[dict]) -> str:
    """Manifest text for the primary and first architecture store, CRLF terminated."""
    records = []
    for a in _hashed(assemblies):
        h32, h64 = hash_values(a["name"])
        records.append(ManifestRecord(format_hash32(h32), format_hash64(h64),
                                      a["store_id"], a["blob_idx"], a["name"]))
    return render_manifest(records)


def mapping_index(assembly: dict, primary_lec: int) -> int:
    """Flat index into primary entries followed by the companion's entries."""
    if assembly["store_id"] == PRIMARY_STORE_ID:
        return assembly["blob_idx"]
    return primary_lec + assembly["blob_idx"]


def build_hash_tables(assemblies: list[dict], primary_lec: int,
                      global_entry_count: int) -> tuple[list[HashRecord], list[HashRecord]]:
    hashed = []
    for a in _hashed(assemblies):
        raw32, raw64 = gen_xxhash_raw(a["name"])
        hashed.append((a, int.from_bytes(raw32, "little"), int.from_bytes(raw64, "little")))

    tables = []
    for bits, pos, fmt in ((32, 1, format_hash32), (64, 2, format_hash64)):
        # sorted() is stable, ties keep side-record order
        ordered = sorted(hashed, key=lambda item: fmt(item[pos]))
        if len(ordered) != global_entry_count:
            raise HashTableLengthError(
                f"Sorted hash{bits} is the wrong length. "
                f"Expected: {global_entry_count}. Found: {len(ordered)}.")
        tables.append([
            HashRecord(item[pos], mapping_index(item[0], primary_lec),
                       item[0]["blob_idx"], item[0]["store_id"], bits=bits)
            for item in ordered
        ])
    return tables[0], tables[1]


def _iter_stores(json_data: dict):
    for store in json_data["stores"]:
        for store_name, store_data in store.items():
            yield store_name, store_data


def _primary_lec(json_data: dict) -> int:
    for _name, store_data in _iter_stores(json_data):
        if store_data["header"]["store_id"] == PRIMARY_STORE_ID:
            return store_data["header"]["lec"]
    return 0


def _resolve(file_name: str, base: Path) -> Path:
    p = Path(file_name)
    return p if p.is_absolute() else base / p


def check_layout(store_data: dict, json_data: dict) -> list[dict]:
    """Members of one store; their local indices must fill 0..lec-1 exactly once."""
    lec = store_data["header"]["lec"]
    members = [a for a in json_data["assemblies"] if a["store_idx"] == store_data["store_idx"]]
    if len(members) != lec:
        raise EntryLayoutError(
            f"Store {store_data['store_idx']} declares {lec} entries, "
            f"side record lists {len(members)}")
    indices = sorted(a["blob_idx"] for a in members)
    if indices != list(range(lec)):
        raise EntryLayoutError(
            f"Store {store_data['store_idx']} local indices {indices} are not 0..{lec - 1}")
    return members


def build_store(store_data: dict, json_data: dict, base: Path, codec=None,
                options: CodecOptions = DEFAULT_OPTIONS) -> bytes:
    """Byte image of one store described by the side record."""
    h = store_data["header"]
    header = StoreHeader(h["version"], h["lec"], h["gec"], h["store_id"])
    primary = header.store_id == PRIMARY_STORE_ID

    # hash tables are checked before any module data is placed
    tables = None
    if primary:
        tables = build_hash_tables(json_data["assemblies"], _primary_lec(json_data),
                                   header.global_entry_count)

    members = check_layout(store_data, json_data)
    builder = StoreBuilder(header, primary)
    for a in sorted(members, key=lambda a: a["blob_idx"]):
        data = _resolve(a["file"], base).read_bytes()
        if a.get("lz4"):
            data = compress(data, a.get("lz4_desc_idx", 0), codec)
        entry = builder.add_assembly(a["blob_idx"], data)
        if options.debug:
            logger.debug("%s -> 0x%x (%dB)", a["name"], entry.data_offset, entry.data_size)

    if tables is not None:
        builder.set_hash_tables(*tables)
    return builder.to_bytes()


def do_pack(in_json_config: str | os.PathLike, out_directory: str | os.PathLike,
            codec=None, options: CodecOptions = DEFAULT_OPTIONS) -> list[Path]:
    in_json_config = Path(in_json_config).resolve()
    out_directory = Path(out_directory).resolve()

    if not in_json_config.exists():
        raise MissingInputError(f"Config file '{in_json_config}' does not exist!")

    with open(in_json_config, encoding="utf-8") as f:
        json_data = json.load(f)

    manifest_path = out_directory / f"{FILE_ASSEMBLIES_MANIFEST}{NEW_SUFFIX}"
    store_paths = [(out_directory / f"{name}{NEW_SUFFIX}", data)
                   for name, data in _iter_stores(json_data)]
    for dest in [manifest_path] + [p for p, _ in store_paths]:
        if dest.exists():
            raise OutputExistsError(f"Output '{dest}' exists!")
    for _, store_data in store_paths:
        check_layout(store_data, json_data)

    out_directory.mkdir(parents=True, exist_ok=True)

    logger.info("Writing '%s'...", manifest_path.name)
    with open(manifest_path, "x", encoding="utf-8", newline="") as f:
        f.write(build_manifest(json_data["assemblies"]))

    written = [manifest_path]
    base = in_json_config.parent
    for out_path, store_data in store_paths:
        image = build_store(store_data, json_data, base, codec, options)
        logger.info("Writing '%s'...", out_path.name)
        with open(out_path, "xb") as f:
            f.write(image)
        written.append(out_path)
    return written
