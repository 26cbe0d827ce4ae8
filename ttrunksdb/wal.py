"""Append-only write-ahead log of key/value writes."""

from __future__ import annotations

import os
from typing import Union


class WAL:
    """Write-ahead log stored as 'key:value' lines in <output_dir>/wal/wal.log.

    Opening a log truncates any previous file at the same path.
    """

    def __init__(self, output_dir: Union[str, "os.PathLike[str]"]) -> None:
        self.output_dir = os.path.join(os.fspath(output_dir), "wal")
        os.makedirs(self.output_dir, mode=0o755, exist_ok=True)
        self.path = os.path.join(self.output_dir, "wal.log")
        self._file = open(self.path, "wb")

    def log(self, key: str, value: Union[str, bytes]) -> None:
        """Append one entry and flush it to the file."""
        payload = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        self._file.write(key.encode("utf-8") + b":" + payload + b"\n")
        self._file.flush()

    def close(self) -> None:
        """Close the underlying file."""
        self._file.close()

    def __enter__(self) -> WAL:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()