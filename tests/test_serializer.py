import io
import struct

import pytest

from ttrunksdb.bloom import BloomFilter
from ttrunksdb.records import DBRecord
from ttrunksdb.serializer import (
    BinarySSTableDeserializer,
    BinarySSTableSerializer,
    SerializationError,
    StandardSSTableSerializer,
)
from ttrunksdb.sparse_index import SparseIndex


def _metadata(size=1000):
    return BloomFilter(size), SparseIndex()


def test_binary_serializer_single_record():
    bloom, index = _metadata()
    serializer = BinarySSTableSerializer()
    record = DBRecord("test_key", b"test_value", 1751374012, False)
    result = serializer.serialize(bloom, index, [record])
    assert len(result) > 0
    assert len(result) == serializer.metadata_size(bloom, index) + serializer.record_size(
        "test_key", b"test_value"
    )


def test_binary_serializer_multiple_records():
    bloom, index = _metadata()
    serializer = BinarySSTableSerializer()
    records = [
        DBRecord("key1", b"value1", 1758380683547, False),
        DBRecord("key2", b"", 1758380683547, True),
        DBRecord("longer_key_name", b"longer value with more content", 1758380683547, False),
    ]
    result = serializer.serialize(bloom, index, records)
    assert len(result) > len(records) * 20


def test_binary_deserializer_single_record():
    serializer = BinarySSTableSerializer()
    deserializer = BinarySSTableDeserializer()
    original = DBRecord("test", b"data", 1234567890, True)
    data = serializer.serialize(BloomFilter.from_string("1001010101"), SparseIndex(), [original])

    deserialized = deserializer.deserialize(io.BytesIO(data))
    assert len(deserialized.records) == 1
    result = deserialized.records[0]
    assert result.key == original.key
    assert result.value == original.value
    assert result.timestamp == original.timestamp
    assert result.tombstone == original.tombstone
    assert str(deserialized.bloom_filter) == "1001010101"


@pytest.mark.parametrize(
    "record",
    [
        DBRecord("simple", b"value", 1000000000, False),
        DBRecord("empty_value", b"", 2000000000, True),
        DBRecord(
            "long_content_key_with_many_chars",
            b"This is a much longer value with various characters !@#$%^&*()",
            9999999999,
            False,
        ),
        DBRecord("a", b"b", 1, True),
    ],
)
def test_binary_round_trip_single_record(record):
    bloom, index = _metadata()
    serialized = BinarySSTableSerializer().serialize(bloom, index, [record])
    deserialized = BinarySSTableDeserializer().deserialize(io.BytesIO(serialized))
    assert len(deserialized.records) == 1
    result = deserialized.records[0]
    assert result.key == record.key
    assert result.value == record.value
    assert result.timestamp == record.timestamp
    assert result.tombstone == record.tombstone


@pytest.mark.parametrize(
    "data",
    [b"", bytes([1, 2, 3]), bytes([0xFF, 0xFF, 0xFF, 0xFF])],
    ids=["empty", "insufficient", "invalid_size"],
)
def test_binary_deserializer_invalid_data(data):
    with pytest.raises(SerializationError):
        BinarySSTableDeserializer().deserialize(io.BytesIO(data))


def test_binary_serializer_empty_records():
    bloom, index = _metadata()
    serializer = BinarySSTableSerializer()
    result = serializer.serialize(bloom, index, [])
    assert len(result) == serializer.metadata_size(bloom, index)


def test_binary_serializer_with_special_characters():
    bloom, index = _metadata()
    record = DBRecord(
        "key_with_unicode_🔥", b"value with\nnewlines\tand\x00null bytes", 1751374012, False
    )
    serialized = BinarySSTableSerializer().serialize(bloom, index, [record])
    deserialized = BinarySSTableDeserializer().deserialize(io.BytesIO(serialized))
    assert len(deserialized.records) == 1
    result = deserialized.records[0]
    assert result.key == record.key
    assert result.value == record.value
    assert result.timestamp == record.timestamp
    assert result.tombstone == record.tombstone


def test_binary_serializer_data_size():
    bloom, index = _metadata()
    serializer = BinarySSTableSerializer()
    record = DBRecord("test", b"data", 1234567890, True)
    result = serializer.serialize(bloom, index, [record])
    expected = serializer.metadata_size(bloom, index) + serializer.record_size("test", b"data")
    assert len(result) == expected


def test_deserialize_record_at_indexed_offset():
    serializer = BinarySSTableSerializer()
    records = [DBRecord("apple", b"red", 10, False), DBRecord("banana", b"yellow", 20, True)]
    bloom = BloomFilter(100)
    index = SparseIndex()
    offset = 0
    for record in records:
        bloom.add(record.key)
        index.update(record.key, offset)
        offset += serializer.record_size(record.key, record.value)

    data = serializer.serialize(bloom, index, records)
    stream = io.BytesIO(data)
    stream.seek(serializer.metadata_size(bloom, index) + index.get("banana"))
    assert BinarySSTableDeserializer().deserialize_record(stream) == records[1]


def test_metadata_round_trip():
    serializer = BinarySSTableSerializer()
    bloom = BloomFilter(64)
    bloom.add("apple")
    index = SparseIndex()
    index.update("apple", 0)
    index.update("banana", 30)
    data = serializer.serialize(bloom, index, [])
    deserialized = BinarySSTableDeserializer().deserialize(io.BytesIO(data))
    assert str(deserialized.bloom_filter) == str(bloom)
    assert "apple" in deserialized.bloom_filter
    assert deserialized.sparse_index.get("banana") == 30
    assert deserialized.records == []


def test_truncated_record_is_rejected():
    bloom, index = _metadata(10)
    data = BinarySSTableSerializer().serialize(bloom, index, [DBRecord("k", b"v", 1, False)])
    with pytest.raises(SerializationError):
        BinarySSTableDeserializer().deserialize(io.BytesIO(data[:-1]))


def test_negative_key_size_is_rejected():
    bloom, index = _metadata(10)
    data = BinarySSTableSerializer().serialize(bloom, index, []) + struct.pack("<i", -1)
    with pytest.raises(SerializationError):
        BinarySSTableDeserializer().deserialize(io.BytesIO(data))


def test_deserialize_record_on_empty_stream_raises():
    with pytest.raises(SerializationError):
        BinarySSTableDeserializer().deserialize_record(io.BytesIO(b""))


def test_standard_serializer_text_form():
    bloom = BloomFilter.from_string("10")
    index = SparseIndex()
    index.update("a", 0)
    result = StandardSSTableSerializer().serialize(bloom, index, [DBRecord("a", b"b", 1, False)])
    assert result == b"10\na:0\n1 a 1 b 8 1 1 0\n"


def test_standard_serializer_joins_records_with_commas():
    bloom = BloomFilter.from_string("1")
    records = [DBRecord("a", b"x", 2, True), DBRecord("b", b"y", 3, False)]
    result = StandardSSTableSerializer().serialize(bloom, SparseIndex(), records)
    assert result.split(b"\n")[2] == b"1 a 1 x 8 2 1 1,1 b 1 y 8 3 1 0"