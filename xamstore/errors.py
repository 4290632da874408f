"""Fatal errors raised by the codec; each maps to a process exit status."""


class XamStoreError(Exception):
    status = 1


class UsageError(XamStoreError):
    status = 2


class OutputExistsError(XamStoreError):
    status = 11


class MissingInputError(XamStoreError):
    status = 12


class ManifestParseError(XamStoreError):
    status = 14


class InvalidMagicError(XamStoreError):
    status = 15


class UnsupportedVersionError(XamStoreError):
    status = 16


class TruncatedStoreError(XamStoreError):
    status = 17


class ManifestLookupError(XamStoreError):
    status = 18


class DecompressedSizeError(XamStoreError):
    status = 19


class HashTableLengthError(XamStoreError):
    status = 24


class EntryLayoutError(XamStoreError):
    status = 25
