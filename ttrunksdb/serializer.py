"""Text and binary encodings of SSTable files."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Iterable

from .bloom import BloomFilter
from .records import DBRecord
from .sparse_index import SparseIndex

BLOOM_FILTER_SIZE_BYTES = 4
SPARSE_INDEX_SIZE_BYTES = 4
DB_RECORD_KEY_SIZE_BYTES = 4
DB_RECORD_VALUE_SIZE_BYTES = 4
DB_RECORD_TIMESTAMP_SIZE_BYTES = 8
DB_RECORD_TIMESTAMP_BYTES = 8
DB_RECORD_TOMBSTONE_SIZE_BYTES = 4
DB_RECORD_TOMBSTONE_BYTES = 1

_INT32 = struct.Struct("<i")
_INT64 = struct.Struct("<q")


class SerializationError(ValueError):
    """Raised when SSTable data cannot be encoded or decoded."""


class _EndOfStream(SerializationError):
    """The stream ended before any byte of a field was read."""


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


@dataclass
class Deserialized:
    """The full contents of a decoded SSTable file."""

    bloom_filter: BloomFilter
    sparse_index: SparseIndex
    records: list[DBRecord] = field(default_factory=list)


class StandardSSTableSerializer:
    """Human-readable, line-oriented SSTable encoding."""

    def serialize(
        self,
        bloom_filter: BloomFilter,
        sparse_index: SparseIndex,
        records: Iterable[DBRecord],
    ) -> bytes:
        data_block = []
        for record in records:
            key = _encode(record.key)
            value = bytes(record.value)
            data_block.append(
                b"%d %s %d %s %d %d %d %d"
                % (
                    len(key),
                    key,
                    len(value),
                    value,
                    DB_RECORD_TIMESTAMP_BYTES,
                    record.timestamp,
                    DB_RECORD_TOMBSTONE_BYTES,
                    1 if record.tombstone else 0,
                )
            )
        return (
            _encode(str(bloom_filter))
            + b"\n"
            + _encode(str(sparse_index))
            + b"\n"
            + b",".join(data_block)
            + b"\n"
        )


class BinarySSTableSerializer:
    """Little-endian, length-prefixed SSTable encoding."""

    def record_size(self, key: str, value: bytes) -> int:
        """Return the number of bytes one record occupies in the data block."""
        return (
            DB_RECORD_KEY_SIZE_BYTES
            + len(_encode(key))
            + DB_RECORD_VALUE_SIZE_BYTES
            + len(value)
            + DB_RECORD_TIMESTAMP_SIZE_BYTES
            + DB_RECORD_TIMESTAMP_BYTES
            + DB_RECORD_TOMBSTONE_SIZE_BYTES
            + DB_RECORD_TOMBSTONE_BYTES
        )

    def metadata_size(self, bloom_filter: BloomFilter, sparse_index: SparseIndex) -> int:
        """Return the number of bytes before the first record."""
        return (
            BLOOM_FILTER_SIZE_BYTES
            + len(_encode(str(bloom_filter)))
            + SPARSE_INDEX_SIZE_BYTES
            + len(_encode(str(sparse_index)))
        )

    def serialize(
        self,
        bloom_filter: BloomFilter,
        sparse_index: SparseIndex,
        records: Iterable[DBRecord],
    ) -> bytes:
        bloom_bits = _encode(str(bloom_filter))
        index_text = _encode(str(sparse_index))
        try:
            parts = [
                _INT32.pack(len(bloom_bits)),
                bloom_bits,
                _INT32.pack(len(index_text)),
                index_text,
            ]
            for record in records:
                key = _encode(record.key)
                value = bytes(record.value)
                parts += [
                    _INT32.pack(len(key)),
                    key,
                    _INT32.pack(len(value)),
                    value,
                    _INT64.pack(DB_RECORD_TIMESTAMP_BYTES),
                    _INT64.pack(record.timestamp),
                    _INT32.pack(DB_RECORD_TOMBSTONE_BYTES),
                    b"\x01" if record.tombstone else b"\x00",
                ]
        except struct.error as exc:
            raise SerializationError(str(exc)) from exc
        return b"".join(parts)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    if size == 0:
        return b""
    buffer = bytearray()
    while len(buffer) < size:
        chunk = stream.read(size - len(buffer))
        if not chunk:
            break
        buffer += chunk
    if not buffer:
        raise _EndOfStream(f"unexpected end of data while reading {what}")
    if len(buffer) < size:
        raise SerializationError(f"truncated data while reading {what}")
    return bytes(buffer)


def _read_int32(stream: BinaryIO, what: str) -> int:
    return _INT32.unpack(_read_exact(stream, _INT32.size, what))[0]


def _read_int64(stream: BinaryIO, what: str) -> int:
    return _INT64.unpack(_read_exact(stream, _INT64.size, what))[0]


def _non_negative(size: int, what: str) -> int:
    if size < 0:
        raise SerializationError(f"invalid {what} size: {size}")
    return size


class BinarySSTableDeserializer:
    """Decoder for the binary SSTable encoding."""

    def _read_record_body(self, stream: BinaryIO, key_size: int) -> DBRecord:
        key = _read_exact(stream, _non_negative(key_size, "key"), "key")
        value_size = _non_negative(_read_int32(stream, "value size"), "value")
        value = _read_exact(stream, value_size, "value")
        _non_negative(_read_int64(stream, "timestamp size"), "timestamp")
        timestamp = _read_int64(stream, "timestamp")
        _non_negative(_read_int32(stream, "tombstone size"), "tombstone")
        tombstone = _read_exact(stream, DB_RECORD_TOMBSTONE_BYTES, "tombstone")
        return DBRecord(
            key=_decode(key),
            value=value,
            timestamp=timestamp,
            tombstone=tombstone != b"\x00",
        )

    def deserialize_record(self, stream: BinaryIO) -> DBRecord:
        """Decode one record starting at the stream's current position."""
        return self._read_record_body(stream, _read_int32(stream, "key size"))

    def deserialize(self, stream: BinaryIO) -> Deserialized:
        """Decode a whole SSTable file: metadata followed by all records."""
        bloom_size = _read_int32(stream, "bloom filter size")
        if bloom_size <= 0:
            raise SerializationError(f"invalid bloom filter size: {bloom_size}")
        bloom_bits = _read_exact(stream, bloom_size, "bloom filter")
        index_size = _non_negative(_read_int32(stream, "sparse index size"), "sparse index")
        index_text = _read_exact(stream, index_size, "sparse index")

        records = []
        while True:
            try:
                key_size = _read_int32(stream, "key size")
            except _EndOfStream:
                break
            records.append(self._read_record_body(stream, key_size))

        return Deserialized(
            bloom_filter=BloomFilter.from_string(_decode(bloom_bits)),
            sparse_index=SparseIndex.from_string(_decode(index_text)),
            records=records,
        )