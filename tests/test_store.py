"""Header, entry and hash-table codec."""

import logging
import struct

import pytest

from conftest import build_blob, h32, h64
from xamstore.errors import (EntryLayoutError, InvalidMagicError, TruncatedStoreError,
                             UnsupportedVersionError)
from xamstore.store import (AssemblyEntry, HashRecord, StoreBuilder, StoreFile, StoreHeader,
                            data_region_offset)

EXAMPLE_HEADER = bytes.fromhex("58414241 01000000 02000000 02000000 00000000")


class TestHeader:

    def test_example_header_with_two_entries(self):
        raw = EXAMPLE_HEADER + bytes(24) * 2
        store = StoreFile.parse(raw, primary=False)
        assert store.header.local_entry_count == 2
        assert store.header.global_entry_count == 2
        assert store.header.store_id == 0
        assert store.header.version == 1
        assert store.entries == (AssemblyEntry(), AssemblyEntry())
        assert not store.header.has_companions

    def test_header_round_trip_bytes(self):
        assert StoreHeader(1, 2, 2, 0).pack() == EXAMPLE_HEADER

    def test_bad_magic_is_fatal(self):
        raw = b"XABB" + EXAMPLE_HEADER[4:] + bytes(48)
        with pytest.raises(InvalidMagicError):
            StoreFile.parse(raw, primary=False)

    def test_newer_version_is_fatal(self):
        raw = build_blob([], 0, 0, [], version=2)
        with pytest.raises(UnsupportedVersionError):
            StoreFile.parse(raw)

    def test_older_version_is_accepted(self):
        store = StoreFile.parse(build_blob([], 0, 0, [], version=0))
        assert store.header.version == 0

    def test_short_header(self):
        with pytest.raises(TruncatedStoreError):
            StoreHeader.unpack(b"XABA\x01\x00")


class TestTables:

    def test_empty_store_parses_to_empty_tables(self):
        store = StoreFile.parse(build_blob([], 0, 0, []))
        assert store.entries == ()
        assert store.hash32 == ()
        assert store.hash64 == ()

    def test_truncated_entry_table(self):
        with pytest.raises(TruncatedStoreError):
            StoreFile.parse(EXAMPLE_HEADER + bytes(30), primary=False)

    def test_missing_hash_tables_in_primary(self):
        # header + entries only, parsed as primary
        with pytest.raises(TruncatedStoreError):
            StoreFile.parse(EXAMPLE_HEADER + bytes(48), primary=True)

    def test_primary_hash_tables(self):
        raw = build_blob([b"aa", b"bbb"], 0, 2, [("foo", 0, 0, 0), ("bar", 1, 1, 0)])
        store = StoreFile.parse(raw)
        assert len(store.hash32) == len(store.hash64) == 2
        assert {r.hash_value for r in store.hash32} == {h32("foo"), h32("bar")}
        assert {r.hash_value for r in store.hash64} == {h64("foo"), h64("bar")}
        assert store.hash_tables_sorted()
        foo = next(r for r in store.hash32 if r.hash_value == h32("foo"))
        assert (foo.mapping_index, foo.local_store_index, foo.store_id) == (0, 0, 0)
        assert foo.hash_hex == "0xe20f0dd9"

    def test_entry_data_slices(self):
        raw = build_blob([b"aa", b"bbb"], 0, 2, [("foo", 0, 0, 0), ("bar", 1, 1, 0)])
        store = StoreFile.parse(raw)
        assert store.entries[0].data_offset == data_region_offset(2, 2, True)
        assert store.data(0) == b"aa"
        assert store.data(1) == b"bbb"

    def test_data_beyond_end(self):
        raw = EXAMPLE_HEADER[:8] + struct.pack("<II", 1, 1) + bytes(4) \
            + struct.pack("<6I", 100, 10, 0, 0, 0, 0)
        store = StoreFile.parse(raw, primary=False)
        with pytest.raises(TruncatedStoreError):
            store.data(0)

    def test_unsorted_tables_are_reported(self, caplog):
        raw = bytearray(build_blob([b"a", b"b"], 0, 2, [("foo", 0, 0, 0), ("bar", 1, 1, 0)]))
        # swap the two hash32 records
        first, second = raw[68:88], raw[88:108]
        raw[68:88], raw[88:108] = second, first
        with caplog.at_level(logging.WARNING, logger="xamstore.store"):
            store = StoreFile.parse(bytes(raw))
        assert not store.hash_tables_sorted()
        assert "not in ascending hex order" in caplog.text


class TestHashRecord:

    def test_hash64_little_endian_halves(self):
        rec = HashRecord(0xFAFBFCFDFEF0F1F2, 1, 2, 3, bits=64)
        packed = rec.pack()
        assert packed[:8] == bytes.fromhex("f2f1f0fefdfcfbfa")
        assert len(packed) == 20
        assert rec.hash_hex == "0xfafbfcfdfef0f1f2"

    def test_hash32_reserved_bytes_preserved(self):
        header = StoreHeader(1, 0, 1, 0).pack()
        raw = header + struct.pack("<IIIII", 0xdeadbeef, 0x11223344, 0, 0, 0) \
            + struct.pack("<QIII", 1, 0, 0, 0)
        store = StoreFile.parse(raw)
        assert store.hash32[0].reserved == 0x11223344
        assert store.hash32[0].pack() == raw[20:40]

    def test_hex_is_zero_padded(self):
        assert HashRecord(0x1f, 0, 0, 0).hash_hex == "0x0000001f"
        assert HashRecord(0x1f, 0, 0, 0, bits=64).hash_hex == "0x000000000000001f"


class TestStoreBuilder:

    def test_offsets_advance_in_order(self):
        builder = StoreBuilder(StoreHeader(1, 3, 3, 0), primary=True)
        base = 20 + 3 * 24 + 3 * 40
        entries = [builder.add_assembly(i, d) for i, d in enumerate((b"one", b"", b"three"))]
        assert [e.data_offset for e in entries] == [base, base + 3, base + 3]
        assert [e.data_size for e in entries] == [3, 0, 5]
        parsed = StoreFile.parse(builder.to_bytes(), primary=False)
        assert parsed.entries == tuple(entries)
        assert parsed.data(2) == b"three"

    def test_companion_has_no_hash_space(self):
        builder = StoreBuilder(StoreHeader(1, 1, 4, 1), primary=False)
        entry = builder.add_assembly(0, b"x")
        assert entry.data_offset == 20 + 24

    def test_index_outside_store(self):
        builder = StoreBuilder(StoreHeader(1, 1, 1, 0), primary=False)
        with pytest.raises(EntryLayoutError):
            builder.add_assembly(1, b"y")

    def test_index_filled_twice(self):
        builder = StoreBuilder(StoreHeader(1, 2, 2, 0), primary=False)
        builder.add_assembly(0, b"x")
        with pytest.raises(EntryLayoutError):
            builder.add_assembly(0, b"y")

    def test_entry_lands_in_its_own_slot(self):
        builder = StoreBuilder(StoreHeader(1, 3, 3, 0), primary=False)
        base = 20 + 3 * 24
        builder.add_assembly(2, b"two")
        builder.add_assembly(0, b"zero")
        builder.add_assembly(1, b"one")
        store = StoreFile.parse(builder.to_bytes(), primary=False)
        assert [e.data_offset for e in store.entries] == [base + 3, base + 7, base]
        assert [store.data(i) for i in range(3)] == [b"zero", b"one", b"two"]
