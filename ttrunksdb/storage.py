"""Log-structured merge-tree key/value storage."""

from __future__ import annotations

import os
from typing import Iterator, Optional, Union

from .logger import get_logger
from .memtable import RBMemTable
from .records import (
    DEFAULT_MEMTABLE_THRESHOLD,
    DEFAULT_SSTABLE_BLOOM_FILTER_SIZE,
    MAX_SCALAR_SIZE,
    StorageConfig,
)
from .serializer import SerializationError
from .sstable import SSTableManager
from .wal import WAL

DATA_DIR_ENV = "TTRUNKSDB_DATA_DIR"


class KeyNotFoundError(KeyError):
    """Raised when a key cannot be found in the memtable or any SSTable."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class LSMTStorage:
    """Writes go to a WAL and a memtable that is flushed to SSTables when full."""

    def __init__(
        self,
        output_dir: Optional[Union[str, "os.PathLike[str]"]] = None,
        memtable_threshold: int = DEFAULT_MEMTABLE_THRESHOLD,
        sstable_bloom_filter_size: int = DEFAULT_SSTABLE_BLOOM_FILTER_SIZE,
    ) -> None:
        env_dir = os.environ.get(DATA_DIR_ENV, "")
        if not env_dir:
            raise RuntimeError(f"{DATA_DIR_ENV} environment variable is not set")
        self.config = StorageConfig(
            output_dir=output_dir if output_dir is not None else env_dir,
            memtable_threshold=memtable_threshold,
            sstable_bloom_filter_size=sstable_bloom_filter_size,
        )
        self.seq_number = 0
        self.memtable = RBMemTable()
        self.sstable_manager = SSTableManager(self.config)
        self.wal = WAL(self.config.output_dir)

    def write(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, flushing the memtable when it is full."""
        log = get_logger()
        value = bytes(value)
        if len(value) > MAX_SCALAR_SIZE:
            raise ValueError(
                f"value size exceeds maximum allowed size of {MAX_SCALAR_SIZE} bytes"
            )

        self.wal.log(key, value)
        self.memtable.append(key, value)
        log.debug("Write to memtable", extra={"fields": {"key": key, "value": value}})
        self.seq_number += 1

        if self.config.memtable_threshold <= len(self.memtable):
            sstable = self.sstable_manager.add_sstable(self.config)
            self.sstable_manager.flush(sstable, self.memtable)
            log.debug(
                "Memtable flushed to SSTable", extra={"fields": {"sstable": sstable.name}}
            )
            self.memtable.reset()

    def read(self, key: str) -> bytes:
        """Return the value for ``key``; raises KeyNotFoundError if it is absent."""
        log = get_logger()
        value = self.memtable.read(key)
        if value is not None:
            log.debug("Read from memtable", extra={"fields": {"key": key, "value": value}})
            return value

        sstable = self.sstable_manager.find_by_key(key)
        if sstable is None:
            log.debug("Failed to find sstable", extra={"fields": {"key": key}})
            raise KeyNotFoundError(f"sstable not found: {key}")

        try:
            record = self.sstable_manager.read(sstable, key)
        except KeyError as exc:
            raise KeyNotFoundError(exc.args[0] if exc.args else key) from exc
        log.debug(
            "Read from sstable",
            extra={"fields": {"sstable": sstable.path, "key": key, "value": record.value}},
        )
        return record.value

    def compact(self, key: str) -> Optional[bytes]:
        """Return the newest value of ``key`` held in any SSTable, or None."""
        for level in sorted(self.sstable_manager.sstables):
            tables = sorted(
                self.sstable_manager.sstables[level],
                key=lambda sstable: sstable.seq_number,
                reverse=True,
            )
            for sstable in tables:
                if sstable.sparse_index.get(key) is None:
                    continue
                try:
                    return self.sstable_manager.read(sstable, key).value
                except (KeyError, OSError, SerializationError):
                    continue
        return None

    def items(self) -> Iterator[tuple[str, bytes]]:
        """Yield (key, value) pairs: memtable entries first, then SSTable entries."""
        memtable_keys = set()
        for node in self.memtable:
            memtable_keys.add(node.key)
            yield node.key, node.value

        for level in sorted(self.sstable_manager.sstables):
            for sstable in self.sstable_manager.sstables[level]:
                for key in sstable.all_keys():
                    if key in memtable_keys:
                        continue
                    try:
                        record = self.sstable_manager.read(sstable, key)
                    except (KeyError, OSError, SerializationError):
                        continue
                    yield key, record.value

    def close(self) -> None:
        """Close the write-ahead log."""
        self.wal.close()

    def __enter__(self) -> LSMTStorage:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()