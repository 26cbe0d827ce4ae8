"""Mapping from record keys to byte offsets inside an SSTable data block."""

from __future__ import annotations

import re
from typing import Optional

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


class SparseIndex:
    """Key to offset index with a compact 'key:offset,...' text form."""

    def __init__(self) -> None:
        self.index: dict[str, int] = {}

    def update(self, key: str, offset: int) -> None:
        """Set the offset for ``key``, replacing any previous one."""
        self.index[key] = offset

    def get(self, key: str) -> Optional[int]:
        """Return the offset for ``key``, or None if it is not indexed."""
        return self.index.get(key)

    def __len__(self) -> int:
        return len(self.index)

    def __str__(self) -> str:
        return ",".join(f"{key}:{offset}" for key, offset in self.index.items())

    @classmethod
    def from_string(cls, s: str) -> SparseIndex:
        """Parse the text form; malformed entries are skipped."""
        index = cls()
        if not s:
            return index
        for entry in s.split(","):
            parts = entry.split(":")
            if len(parts) != 2:
                continue
            key, raw_offset = parts
            if not _INTEGER.fullmatch(raw_offset):
                continue
            offset = int(raw_offset)
            if not _INT64_MIN <= offset <= _INT64_MAX:
                continue
            index.index[key] = offset
        return index