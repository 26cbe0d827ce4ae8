"""Fixed-size Bloom filter using three FNV-1a derived hash functions."""

from __future__ import annotations

DEFAULT_SIZE = 10000

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF


def _fnv1a_32(data: str) -> int:
    """Return the 32-bit FNV-1a hash of the UTF-8 encoding of ``data``."""
    h = _FNV32_OFFSET
    for byte in data.encode("utf-8"):
        h ^= byte
        h = (h * _FNV32_PRIME) & _MASK32
    return h


class BloomFilter:
    """A probabilistic set membership filter backed by a list of bits."""

    def __init__(self, size: int = DEFAULT_SIZE) -> None:
        if size <= 0:
            size = DEFAULT_SIZE
        self.size = size
        self._bits = [False] * size

    def _positions(self, item: str) -> tuple[int, int, int]:
        return (
            _fnv1a_32(item) % self.size,
            _fnv1a_32(item + "salt") % self.size,
            _fnv1a_32("prefix" + item) % self.size,
        )

    def add(self, item: str) -> None:
        """Record ``item`` in the filter."""
        for position in self._positions(item):
            self._bits[position] = True

    def contains(self, item: str) -> bool:
        """Return True if ``item`` may have been added, False if it surely was not."""
        return all(self._bits[position] for position in self._positions(item))

    def __contains__(self, item: object) -> bool:
        return isinstance(item, str) and self.contains(item)

    def __str__(self) -> str:
        return "".join("1" if bit else "0" for bit in self._bits)

    def bits(self) -> list[bool]:
        """Return a copy of the filter's bits."""
        return list(self._bits)

    @classmethod
    def from_string(cls, data: str) -> BloomFilter:
        """Build a filter from a string of '0'/'1' characters."""
        bloom = cls(len(data))
        for position, char in enumerate(data):
            if char == "1":
                bloom._bits[position] = True
        return bloom