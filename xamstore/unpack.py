# xamstore/unpack.py  – slice assemblies out of one or more stores
from __future__ import annotations
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

from .compression import decompress, descriptor_index, is_compressed
from .config import CodecOptions, DEFAULT_OPTIONS
from .const import (ARCHITECTURE_MAP, FILE_ASSEMBLIES_BLOB, FILE_ASSEMBLIES_JSON,
                    FILE_ASSEMBLIES_MANIFEST)
from .errors import MissingInputError, OutputExistsError
from .manifest import Manifest
from .store import StoreFile

logger = logging.getLogger(__name__)


def extract_all(store: StoreFile, manifest: Manifest, json_data: dict,
                out_dir: str | os.PathLike, codec=None,
                options: CodecOptions = DEFAULT_OPTIONS) -> dict:
    """Write every assembly of ``store`` under ``out_dir`` and record it in ``json_data``."""
    out_dir = Path(out_dir)
    store_idx = len(json_data["stores"])
    hdr = store.header

    for i in range(hdr.local_entry_count):
        entry = manifest.lookup(hdr.store_id, i)
        data = store.data(i)

        record = {"store_idx": store_idx, "lz4": False}
        if is_compressed(data):
            record["lz4"] = True
            record["lz4_desc_idx"] = descriptor_index(data)
            data = decompress(data, codec, options)

        out_file = out_dir / f"{entry.name}.dll"
        record.update(name=entry.name, store_id=entry.blob_id, blob_idx=entry.blob_idx,
                      hash32=entry.hash32, hash64=entry.hash64, file=str(out_file))

        logger.info("Extracting %s...", entry.name)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        out_file.write_bytes(data)
        json_data["assemblies"].append(record)

    json_data["stores"].append({
        store.file_name: {
            "store_idx": store_idx,
            "header": {
                "version": hdr.version,
                "lec": hdr.local_entry_count,
                "gec": hdr.global_entry_count,
                "store_id": hdr.store_id,
            },
        }
    })
    return json_data


def select_architectures(requested: Iterable[str] | str | None) -> list[str]:
    """Empty selection means every architecture; ``no``/``0`` means none."""
    if requested is None:
        requested = []
    elif isinstance(requested, str):
        requested = [requested]
    requested = [a.lower() for a in requested]
    if "no" in requested or "0" in requested:
        return []
    chosen = [a for a in requested if a in ARCHITECTURE_MAP]
    # all-invalid selections fall back to everything, same as no selection
    return chosen or list(ARCHITECTURE_MAP)


def do_unpack(in_directory: str | os.PathLike, out_directory: str | os.PathLike,
              arch: Iterable[str] | str | None = None, force: bool = False,
              codec=None, options: CodecOptions = DEFAULT_OPTIONS) -> dict:
    in_directory = Path(in_directory).resolve()
    out_directory = Path(out_directory).resolve()

    if force and out_directory.exists():
        shutil.rmtree(out_directory)
    if out_directory.exists():
        raise OutputExistsError(f"Out directory '{out_directory}' already exists!")

    manifest_path = in_directory / FILE_ASSEMBLIES_MANIFEST
    assemblies_path = in_directory / FILE_ASSEMBLIES_BLOB
    if not manifest_path.exists():
        raise MissingInputError(f"Manifest file '{manifest_path}' does not exist!")
    if not assemblies_path.exists():
        raise MissingInputError(f"Main assemblies blob '{assemblies_path}' does not exist!")

    manifest = Manifest.load(manifest_path)
    json_data = {"stores": [], "assemblies": []}

    out_directory.mkdir(parents=True)

    primary = StoreFile.open(assemblies_path, primary=True, options=options)
    extract_all(primary, manifest, json_data, out_directory / "primary", codec, options)

    if primary.header.has_companions:
        if options.debug:
            logger.debug("Architecture-specific assemblies exist!")
        for name in select_architectures(arch):
            arch_path = in_directory / ARCHITECTURE_MAP[name]
            if not arch_path.exists():
                continue
            arch_store = StoreFile.open(arch_path, primary=False, options=options)
            extract_all(arch_store, manifest, json_data, out_directory / name, codec, options)

    with open(out_directory / FILE_ASSEMBLIES_JSON, "w", encoding="utf-8") as f:
        json.dump(json_data, f, indent=4)
    return json_data
