"""Record and configuration types shared by the storage engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Union

KB = 1 << 10
MB = 1 << 20
GB = 1 << 30

MAX_SCALAR_SIZE = 1 * KB

DEFAULT_MEMTABLE_THRESHOLD = 1000
DEFAULT_SSTABLE_BLOOM_FILTER_SIZE = 10000


@dataclass(frozen=True)
class DBRecord:
    """A single key/value entry as stored in an SSTable."""

    key: str
    value: bytes = b""
    timestamp: int = 0
    tombstone: bool = False


@dataclass
class StorageConfig:
    """Settings of an LSM-tree storage instance."""

    output_dir: Union[str, "os.PathLike[str]"]
    memtable_threshold: int = DEFAULT_MEMTABLE_THRESHOLD
    sstable_bloom_filter_size: int = DEFAULT_SSTABLE_BLOOM_FILTER_SIZE

    def __post_init__(self) -> None:
        self.output_dir = os.fspath(self.output_dir)