"""TCP client speaking the JSON-lines protocol of the database server."""

from __future__ import annotations

import socket
from typing import BinaryIO, Optional

from .protocol import Request, Response

DEFAULT_SERVER_ADDR = "localhost:8080"


class ClientError(Exception):
    """Raised when the server cannot be reached or reports a failure."""


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ClientError(f"failed to connect to server: invalid address {addr!r}")
    return (host.strip("[]") or "localhost"), int(port)


class DBClient:
    """A connection to one database server; connects lazily on first request."""

    def __init__(self, server_addr: str = DEFAULT_SERVER_ADDR) -> None:
        self.server_addr = server_addr
        self._sock: Optional[socket.socket] = None
        self._rfile: Optional[BinaryIO] = None

    @property
    def connected(self) -> bool:
        """True while a connection to the server is open."""
        return self._sock is not None

    def connect(self) -> None:
        """Open the connection; does nothing if it is already open."""
        if self._sock is not None:
            return
        host, port = _split_addr(self.server_addr)
        try:
            sock = socket.create_connection((host, port))
        except OSError as exc:
            raise ClientError(f"failed to connect to server: {exc}") from exc
        self._sock = sock
        self._rfile = sock.makefile("rb")

    def disconnect(self) -> None:
        """Close the connection if it is open."""
        sock, rfile = self._sock, self._rfile
        self._sock = None
        self._rfile = None
        if rfile is not None:
            rfile.close()
        if sock is not None:
            sock.close()

    def read(self, key: str) -> bytes:
        """Return the value stored under ``key``."""
        response = self._send_request(Request(operation="GET", key=key))
        if not response.success:
            raise ClientError(response.error)
        return response.data.encode("utf-8")

    def write(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``."""
        text = value.decode("utf-8", errors="replace") if isinstance(value, (bytes, bytearray)) else str(value)
        response = self._send_request(Request(operation="SET", key=key, value=text))
        if not response.success:
            raise ClientError(response.error)

    def list(self) -> str:
        """Return every entry as 'key=value' lines joined by newlines."""
        response = self._send_request(Request(operation="LIST"))
        if not response.success:
            raise ClientError(response.error)
        return response.data

    def _send(self, payload: bytes) -> None:
        assert self._sock is not None
        self._sock.sendall(payload)

    def _send_request(self, request: Request) -> Response:
        if self._sock is None:
            self.connect()

        payload = (request.to_json() + "\n").encode("utf-8")
        try:
            self._send(payload)
        except OSError:
            self.disconnect()
            try:
                self.connect()
            except ClientError as exc:
                raise ClientError(f"failed to reconnect: {exc}") from exc
            try:
                self._send(payload)
            except OSError as exc:
                raise ClientError(f"failed to send request: {exc}") from exc

        assert self._rfile is not None
        try:
            line = self._rfile.readline()
        except OSError as exc:
            self.disconnect()
            raise ClientError(f"failed to read response: {exc}") from exc
        if not line:
            self.disconnect()
            raise ClientError("failed to read response: EOF")
        try:
            return Response.from_json(line)
        except ValueError as exc:
            self.disconnect()
            raise ClientError(f"failed to read response: {exc}") from exc

    def __enter__(self) -> DBClient:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()