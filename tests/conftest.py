"""Shared fixtures: synthetic assembly stores built directly with struct.

The blobs here are assembled without going through xamstore's own writer so
that parse and pack tests compare against an independent layout.
"""

import struct
from types import SimpleNamespace

import lz4.block
import pytest
import xxhash

PRIMARY_MODULES = [
    ("System.Runtime", b"MZ" + bytes(range(64)) * 3, None),
    ("Mono.Android", b"MZ" + b"android-payload " * 40, 7),   # compressed, desc idx 7
]
ARM64_MODULES = [
    ("Xamarin.Essentials", b"MZ" + b"\x00\x01\x02\x03" * 50, None),
]


def xalz(data, desc_idx):
    return (b"XALZ" + struct.pack("<II", desc_idx, len(data))
            + lz4.block.compress(data, store_size=False))


def h32(name):
    return xxhash.xxh32(name.encode(), seed=0).intdigest()


def h64(name):
    return xxhash.xxh64(name.encode(), seed=0).intdigest()


def build_blob(payloads, store_id, gec, hashed=None, version=1):
    """``hashed`` is a list of (name, mapping_index, local_index, store_id)."""
    lec = len(payloads)
    off = 20 + lec * 24 + (gec * 40 if hashed is not None else 0)
    out = bytearray(struct.pack("<4sIIII", b"XABA", version, lec, gec, store_id))
    for p in payloads:
        out += struct.pack("<6I", off, len(p), 0, 0, 0, 0)
        off += len(p)
    if hashed is not None:
        for name, mi, li, sid in sorted(hashed, key=lambda r: f"{h32(r[0]):08x}"):
            out += struct.pack("<IIIII", h32(name), 0, mi, li, sid)
        for name, mi, li, sid in sorted(hashed, key=lambda r: f"{h64(r[0]):016x}"):
            out += struct.pack("<QIII", h64(name), mi, li, sid)
    for p in payloads:
        out += p
    return bytes(out)


def manifest_text(rows):
    lines = ["Hash 32     Hash 64             Blob ID  Blob idx  Name\r\n"]
    for name, blob_id, blob_idx in rows:
        lines.append(f"0x{h32(name):08x}  0x{h64(name):016x}  {blob_id:03d}      "
                     f"{blob_idx:04d}      {name}\r\n")
    return "".join(lines)


def _stored(modules):
    return [xalz(data, desc) if desc is not None else data for _, data, desc in modules]


@pytest.fixture
def store_dir(tmp_path):
    """Primary store with two assemblies plus an arm64 companion with one."""
    src = tmp_path / "in"
    src.mkdir()
    gec = len(PRIMARY_MODULES) + len(ARM64_MODULES)
    hashed = [(name, i, i, 0) for i, (name, _, _) in enumerate(PRIMARY_MODULES)]
    hashed += [(name, len(PRIMARY_MODULES) + i, i, 1)
               for i, (name, _, _) in enumerate(ARM64_MODULES)]

    primary = build_blob(_stored(PRIMARY_MODULES), 0, gec, hashed)
    arm64 = build_blob(_stored(ARM64_MODULES), 1, gec)
    rows = [(name, 0, i) for i, (name, _, _) in enumerate(PRIMARY_MODULES)]
    rows += [(name, 1, i) for i, (name, _, _) in enumerate(ARM64_MODULES)]

    (src / "assemblies.blob").write_bytes(primary)
    (src / "assemblies.arm64_v8a.blob").write_bytes(arm64)
    (src / "assemblies.manifest").write_bytes(manifest_text(rows).encode())
    return SimpleNamespace(path=src, primary=primary, arm64=arm64,
                           manifest=manifest_text(rows), gec=gec)


@pytest.fixture
def single_store_dir(tmp_path):
    """Primary store without companions (lec == gec)."""
    src = tmp_path / "single"
    src.mkdir()
    modules = [("foo", b"foo-bytes"), ("bar", b"bar-bytes-longer")]
    hashed = [(name, i, i, 0) for i, (name, _) in enumerate(modules)]
    (src / "assemblies.blob").write_bytes(
        build_blob([d for _, d in modules], 0, len(modules), hashed))
    (src / "assemblies.manifest").write_bytes(
        manifest_text([(name, 0, i) for i, (name, _) in enumerate(modules)]).encode())
    return src
