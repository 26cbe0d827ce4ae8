import os

import pytest

from ttrunksdb.wal import WAL


def _read(wal):
    with open(wal.path, "rb") as handle:
        return handle.read()


def test_creates_log_file_inside_wal_directory(tmp_path):
    with WAL(tmp_path) as wal:
        assert wal.output_dir == os.path.join(str(tmp_path), "wal")
        assert wal.path == os.path.join(str(tmp_path), "wal", "wal.log")
        assert os.path.isfile(wal.path)


def test_log_writes_key_value_line(tmp_path):
    with WAL(tmp_path) as wal:
        wal.log("key", "value")
        assert _read(wal) == b"key:value\n"


def test_log_accepts_bytes_value(tmp_path):
    with WAL(tmp_path) as wal:
        wal.log("k", b"raw")
        assert _read(wal) == b"k:raw\n"


def test_entries_are_appended_in_order(tmp_path):
    with WAL(tmp_path) as wal:
        wal.log("a", "1")
        wal.log("b", "2")
        assert _read(wal).splitlines() == [b"a:1", b"b:2"]


def test_reopening_truncates_previous_log(tmp_path):
    with WAL(tmp_path) as wal:
        wal.log("a", "1")
    with WAL(tmp_path) as reopened:
        assert _read(reopened) == b""


def test_log_after_close_raises(tmp_path):
    wal = WAL(tmp_path)
    wal.close()
    with pytest.raises(ValueError):
        wal.log("a", "1")