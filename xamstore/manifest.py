# xamstore/manifest.py  – assemblies.manifest text table
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .const import MANIFEST_HEADER
from .errors import ManifestLookupError, ManifestParseError
from .hashing import format_hash32, format_hash64, parse_hash


@dataclass(frozen=True)
class ManifestRecord:
    hash32: str
    hash64: str
    blob_id: int
    blob_idx: int
    name: str


class Manifest:
    """Ordered manifest records with an O(1) ``(blob_id, blob_idx)`` index."""

    def __init__(self, records: Iterable[ManifestRecord] = ()):
        self.records: list[ManifestRecord] = []
        self._index: dict[tuple[int, int], ManifestRecord] = {}
        for rec in records:
            key = (rec.blob_id, rec.blob_idx)
            if key in self._index:
                raise ManifestParseError(
                    f"Duplicate manifest entry for blob id {rec.blob_id} index {rec.blob_idx}")
            self._index[key] = rec
            self.records.append(rec)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ManifestRecord]:
        return iter(self.records)

    def get(self, blob_id: int, blob_idx: int) -> ManifestRecord | None:
        return self._index.get((blob_id, blob_idx))

    def lookup(self, blob_id: int, blob_idx: int) -> ManifestRecord:
        rec = self.get(blob_id, blob_idx)
        if rec is None:
            raise ManifestLookupError(
                f"Manifest entry not found for store_id {blob_id} index {blob_idx}")
        return rec

    # ------------------------------------------------------------------
    @classmethod
    def parse(cls, text: str) -> "Manifest":
        records = []
        for lineno, line in enumerate(text.splitlines(), 1):
            if not line.strip() or line.startswith("Hash"):
                continue
            fields = line.split()
            if len(fields) < 5:
                continue
            h32, h64, blob_id, blob_idx, name = fields[:5]
            try:
                records.append(ManifestRecord(
                    hash32=format_hash32(parse_hash(h32)),
                    hash64=format_hash64(parse_hash(h64)),
                    blob_id=int(blob_id, 10),
                    blob_idx=int(blob_idx, 10),
                    name=name,
                ))
            except ValueError as exc:
                raise ManifestParseError(f"Bad manifest line {lineno}: {line!r}") from exc
        return cls(records)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "Manifest":
        return cls.parse(Path(path).read_text(encoding="utf-8"))


def format_manifest_line(rec: ManifestRecord) -> str:
    return (f"{rec.hash32}  {rec.hash64}  {rec.blob_id:03d}      "
            f"{rec.blob_idx:04d}      {rec.name}\r\n")


def render_manifest(records: Iterable[ManifestRecord]) -> str:
    return MANIFEST_HEADER + "\r\n" + "".join(format_manifest_line(r) for r in records)
