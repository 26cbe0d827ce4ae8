import os

import pytest

from ttrunksdb.memtable import RBMemTable
from ttrunksdb.records import StorageConfig
from ttrunksdb.serializer import BinarySSTableDeserializer
from ttrunksdb.sstable import SSTableManager


@pytest.fixture
def config(tmp_path):
    return StorageConfig(output_dir=tmp_path)


@pytest.fixture
def manager(config):
    return SSTableManager(config)


def test_add_sstable(manager, config):
    manager.add_sstable(config)
    assert len(manager.sstables) == 1
    assert manager.sstables[0][0].name == "0001"
    assert manager.sstables[0][0].level == 0


def test_add_many_sstables(manager, config):
    for _ in range(4):
        manager.add_sstable(config)
    assert len(manager.sstables[0]) == 4


def test_file_path(manager, tmp_path):
    expected = os.path.join(str(tmp_path), "sstables", "level_1", "test.bin")
    assert manager.file_path("test", 1) == expected


def test_add_multiple_names_and_levels(manager, config):
    tables = [manager.add_sstable(config) for _ in range(3)]
    assert [t.name for t in tables] == ["0001", "0002", "0003"]
    assert [t.level for t in tables] == [0, 0, 0]
    assert len(manager.sstables[0]) == 3


def test_sstable_bloom_filter(manager, config):
    sstable = manager.add_sstable(config)
    sstable.bloom_filter.add("test_key")
    assert sstable.bloom_filter.contains("test_key")
    assert not sstable.bloom_filter.contains("non_existent")


def test_seq_numbers_increase(manager, config):
    first = manager.add_sstable(config)
    second = manager.add_sstable(config)
    assert second.seq_number == first.seq_number + 1


def test_flush_and_read(manager, config):
    sstable = manager.add_sstable(config)
    memtable = RBMemTable.from_kv_pairs("aaa:123,bbb:456")
    manager.flush(sstable, memtable)

    assert os.path.isfile(sstable.path)
    record = manager.read(sstable, "bbb")
    assert record.key == "bbb"
    assert record.value == b"456"
    assert record.tombstone is False
    assert record.timestamp > 0
    assert manager.read(sstable, "aaa").value == b"123"


def test_flush_fills_filter_and_index(manager, config):
    sstable = manager.add_sstable(config)
    manager.flush(sstable, RBMemTable.from_kv_pairs("b:2,a:1"))
    assert sstable.all_keys() == ["a", "b"]
    assert sstable.sparse_index.get("a") == 0
    assert "a" in sstable.bloom_filter
    assert "b" in sstable.bloom_filter


def test_flushed_file_deserializes(manager, config):
    sstable = manager.add_sstable(config)
    manager.flush(sstable, RBMemTable.from_kv_pairs("x:1,y:2,z:3"))
    with open(sstable.path, "rb") as stream:
        result = BinarySSTableDeserializer().deserialize(stream)
    assert [r.key for r in result.records] == ["x", "y", "z"]
    assert [r.value for r in result.records] == [b"1", b"2", b"3"]
    assert str(result.sparse_index) == str(sstable.sparse_index)


def test_read_missing_key_raises(manager, config):
    sstable = manager.add_sstable(config)
    manager.flush(sstable, RBMemTable.from_kv_pairs("a:1"))
    with pytest.raises(KeyError, match="key not found: zzz"):
        manager.read(sstable, "zzz")


def test_read_unflushed_table_raises(manager, config):
    sstable = manager.add_sstable(config)
    with pytest.raises(FileNotFoundError):
        manager.read(sstable, "a")


def test_find_by_key_prefers_newest(manager, config):
    older = manager.add_sstable(config)
    newer = manager.add_sstable(config)
    older.bloom_filter.add("k")
    newer.bloom_filter.add("k")
    assert manager.find_by_key("k") is newer


def test_find_by_key_absent(manager, config):
    manager.add_sstable(config).bloom_filter.add("present")
    assert manager.find_by_key("absent") is None
    assert manager.find_by_key("present") is manager.sstables[0][0]