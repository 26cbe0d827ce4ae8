"""Sorted string tables on disk and the manager that creates and reads them."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Optional

from .bloom import BloomFilter
from .memtable import RBMemTable
from .records import DBRecord, StorageConfig
from .serializer import BinarySSTableDeserializer, BinarySSTableSerializer
from .sparse_index import SparseIndex


@dataclass(eq=False)
class SSTable:
    """Metadata of one SSTable file: its location, Bloom filter and index."""

    level: int
    name: str
    path: str
    bloom_filter: BloomFilter
    sparse_index: SparseIndex
    created_at: float = field(default_factory=time.time)
    seq_number: int = 0

    def all_keys(self) -> list[str]:
        """Return every key indexed in this table, in the order it was written."""
        return list(self.sparse_index.index)


class SSTableManager:
    """Keeps track of SSTables per level and moves data between them and disk."""

    def __init__(self, config: StorageConfig) -> None:
        self.sstables: dict[int, list[SSTable]] = {}
        self.output_dir = os.path.join(config.output_dir, "sstables")
        self.seq_number = 0
        self.serializer = BinarySSTableSerializer()
        self.deserializer = BinarySSTableDeserializer()

    def file_path(self, name: str, level: int) -> str:
        """Return the path of the file for table ``name`` on ``level``."""
        return os.path.join(self.output_dir, f"level_{level}", f"{name}.bin")

    def add_sstable(self, config: StorageConfig) -> SSTable:
        """Register a new, empty level-0 table and return it."""
        level = 0
        tables = self.sstables.setdefault(level, [])
        name = f"{len(tables) + 1:04d}"
        sstable = SSTable(
            level=level,
            name=name,
            path=self.file_path(name, level),
            bloom_filter=BloomFilter(config.sstable_bloom_filter_size),
            sparse_index=SparseIndex(),
            seq_number=self.seq_number,
        )
        tables.append(sstable)
        self.seq_number += 1
        return sstable

    def read(self, sstable: SSTable, key: str) -> DBRecord:
        """Read the record for ``key`` from the table's file.

        Raises KeyError if the key is not in the table's index.
        """
        with open(sstable.path, "rb") as stream:
            metadata_offset = self.serializer.metadata_size(
                sstable.bloom_filter, sstable.sparse_index
            )
            offset = sstable.sparse_index.get(key)
            if offset is None:
                raise KeyError(f"key not found: {key}")
            stream.seek(metadata_offset + offset)
            return self.deserializer.deserialize_record(stream)

    def flush(self, sstable: SSTable, memtable: RBMemTable) -> None:
        """Write every memtable entry to the table's file, filling its filter and index."""
        os.makedirs(os.path.dirname(sstable.path), mode=0o755, exist_ok=True)

        records = []
        byte_offset = 0
        for node in memtable:
            records.append(
                DBRecord(
                    key=node.key,
                    value=node.value,
                    timestamp=int(node.timestamp),
                    tombstone=False,
                )
            )
            sstable.bloom_filter.add(node.key)
            sstable.sparse_index.update(node.key, byte_offset)
            byte_offset += self.serializer.record_size(node.key, node.value)

        payload = self.serializer.serialize(
            sstable.bloom_filter, sstable.sparse_index, records
        )
        with open(sstable.path, "wb") as stream:
            stream.write(payload)

    def find_by_key(self, key: str) -> Optional[SSTable]:
        """Return the newest level-0 table whose Bloom filter may hold ``key``."""
        candidates = [
            sstable
            for sstable in self.sstables.get(0, [])
            if sstable.bloom_filter.contains(key)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda sstable: sstable.seq_number)