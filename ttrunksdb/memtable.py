"""In-memory sorted write buffer backed by a red-black tree."""

from __future__ import annotations

from typing import Iterator, Optional

from .rbtree import Node, RBTree


class RBMemTable:
    """Sorted key/value buffer that is flushed to an SSTable when full."""

    def __init__(self) -> None:
        self._tree = RBTree()

    def append(self, key: str, value: bytes) -> None:
        """Insert a key/value pair."""
        self._tree.insert(key, bytes(value))

    def read(self, key: str) -> Optional[bytes]:
        """Return the value stored for ``key``, or None if absent."""
        node = self._tree.search(key)
        return None if node is None else node.value

    def reset(self) -> None:
        """Drop every entry."""
        self._tree = RBTree()

    def __len__(self) -> int:
        return len(self._tree)

    def first(self) -> Optional[Node]:
        """Return the entry with the smallest key, or None if empty."""
        return self._tree.first()

    def last(self) -> Optional[Node]:
        """Return the entry with the largest key, or None if empty."""
        return self._tree.last()

    def __iter__(self) -> Iterator[Node]:
        """Yield entries in key order."""
        return iter(self._tree)

    @classmethod
    def from_kv_pairs(cls, kv_str: str) -> RBMemTable:
        """Build a memtable from 'key:value,key:value'; malformed pairs are skipped."""
        table = cls()
        for pair in kv_str.split(","):
            key, sep, value = pair.partition(":")
            if sep:
                table.append(key, value.encode("utf-8"))
        return table