from .compression import Lz4BlockCodec, compress, decompress
from .config import CodecOptions
from .errors import XamStoreError
from .hashing import gen_xxhash, gen_xxhash_raw
from .manifest import Manifest, ManifestRecord
from .pack import do_pack
from .store import AssemblyEntry, HashRecord, StoreFile, StoreHeader
from .unpack import do_unpack

__all__ = [
    "AssemblyEntry", "CodecOptions", "HashRecord", "Lz4BlockCodec", "Manifest",
    "ManifestRecord", "StoreFile", "StoreHeader", "XamStoreError", "compress",
    "decompress", "do_pack", "do_unpack", "gen_xxhash", "gen_xxhash_raw",
]
