import json
import socket
import threading
import time

import pytest

from ttrunksdb.protocol import Request, Response
from ttrunksdb.server import Server
from ttrunksdb.storage import DATA_DIR_ENV, LSMTStorage


@pytest.fixture
def storage(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))
    db = LSMTStorage(output_dir=tmp_path, memtable_threshold=10)
    yield db
    db.close()


@pytest.fixture
def server(storage):
    return Server("127.0.0.1:0", storage)


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_set_then_get(server):
    assert server.process_request(Request("SET", "k", "v")) == Response(True)
    assert server.process_request(Request("get", "k")) == Response(True, data="v")


def test_get_requires_key(server):
    response = server.process_request(Request("GET"))
    assert response == Response(False, error="Key required for GET operation")


def test_set_requires_key(server):
    response = server.process_request(Request("SET", "", "v"))
    assert response == Response(False, error="Key required for SET operation")


def test_get_missing_key_reports_error(server):
    response = server.process_request(Request("GET", "nope"))
    assert response.success is False
    assert "sstable not found" in response.error


def test_set_too_large_reports_error(server):
    response = server.process_request(Request("SET", "k", "x" * 2000))
    assert response.success is False
    assert "exceeds maximum allowed size" in response.error


def test_list(server):
    server.process_request(Request("SET", "b", "2"))
    server.process_request(Request("SET", "a", "1"))
    response = server.process_request(Request("LIST"))
    assert response.success is True
    assert response.data.split("\n") == ["a=1", "b=2"]


def test_unsupported_operation(server):
    response = server.process_request(Request("DELETE", "k"))
    assert response == Response(False, error="Unsupported operation: DELETE")


def test_handle_line_invalid_json(server):
    reply = server.handle_line("not json\n")
    assert Response.from_json(reply) == Response(False, error="Invalid JSON")


def test_handle_line_blank(server):
    assert server.handle_line("   \n") is None


def test_handle_line_request(server):
    reply = server.handle_line(Request("SET", "k", "v").to_json())
    assert json.loads(reply) == {"success": True}


def test_serves_over_tcp(storage):
    port = _free_port()
    server = Server(f"127.0.0.1:{port}", storage)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    conn = None
    for _ in range(100):
        try:
            conn = socket.create_connection(("127.0.0.1", port), timeout=5)
            break
        except OSError:
            time.sleep(0.05)
    assert conn is not None
    try:
        stream = conn.makefile("rwb")
        stream.write(Request("SET", "k", "v").to_json().encode() + b"\n")
        stream.flush()
        assert Response.from_json(stream.readline()) == Response(True)

        stream.write(b"garbage\n")
        stream.flush()
        assert Response.from_json(stream.readline()).error == "Invalid JSON"

        stream.write(Request("GET", "k").to_json().encode() + b"\n")
        stream.flush()
        assert Response.from_json(stream.readline()) == Response(True, data="v")
        stream.close()
    finally:
        conn.close()
        server.shutdown()
        thread.join(5)
    assert not thread.is_alive()