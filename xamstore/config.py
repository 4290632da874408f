# xamstore/config.py  – options threaded through codec calls
from __future__ import annotations
import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CodecOptions:
    debug: bool = False

    @classmethod
    def from_env(cls) -> "CodecOptions":
        """Defaults taken from XAMSTORE_DEBUG."""
        return cls(debug=os.getenv("XAMSTORE_DEBUG", "").strip().lower() in _TRUTHY)


DEFAULT_OPTIONS = CodecOptions()
