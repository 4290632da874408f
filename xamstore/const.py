# ==================================================
# xamstore/const.py
# ==================================================
ASSEMBLY_STORE_MAGIC = b"XABA"
ASSEMBLY_STORE_FORMAT_VERSION = 1   # highest version we understand
COMPRESSED_DATA_MAGIC = b"XALZ"

HEADER_FMT = "<4sIIII"      # magic, version, local_entry_count, global_entry_count, store_id
HEADER_SIZE = 20
ENTRY_FMT = "<IIIIII"       # data off/size, debug off/size, config off/size
ENTRY_SIZE = 24
HASH32_FMT = "<IIIII"       # hash, reserved (0), mapping_index, local_store_index, store_id
HASH64_FMT = "<QIII"        # hash, mapping_index, local_store_index, store_id
HASH_ENTRY_SIZE = 20
COMPRESSED_HDR_FMT = "<4sII"  # magic, descriptor_index, uncompressed_length
COMPRESSED_HDR_SIZE = 12

PRIMARY_STORE_ID = 0
HASHED_STORE_LIMIT = 2      # primary + first architecture store share the hash tables

FILE_ASSEMBLIES_BLOB = "assemblies.blob"
FILE_ASSEMBLIES_MANIFEST = "assemblies.manifest"
FILE_ASSEMBLIES_JSON = "assemblies.json"
NEW_SUFFIX = ".new"

ARCHITECTURE_MAP = {
    "arm": "assemblies.armeabi_v7a.blob",
    "arm64": "assemblies.arm64_v8a.blob",
    "x86": "assemblies.x86.blob",
    "x86_64": "assemblies.x86_64.blob",
}

MANIFEST_HEADER = "Hash 32     Hash 64             Blob ID  Blob idx  Name"
