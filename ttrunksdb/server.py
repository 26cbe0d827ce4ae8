"""TCP server answering JSON-lines requests against a storage engine."""

from __future__ import annotations

import argparse
import os
import socketserver
import sys
from typing import Optional, Protocol

from dotenv import load_dotenv

from .logger import get_logger, init_logger
from .protocol import Request, Response
from .storage import LSMTStorage

DEFAULT_ADDR = ":8080"


class Database(Protocol):
    def read(self, key: str) -> bytes: ...

    def write(self, key: str, value: bytes) -> None: ...

    def items(self): ...


def _parse_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address: {addr}")
    return host.strip("[]"), int(port)


class _TCPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    app: "Server"


class _Handler(socketserver.StreamRequestHandler):
    server: _TCPServer

    def handle(self) -> None:
        log = get_logger()
        app = self.server.app
        log.info("Client connected", extra={"fields": {"addr": self.client_address}})
        try:
            for raw in self.rfile:
                reply = app.handle_line(raw.decode("utf-8", errors="replace"))
                if reply is None:
                    continue
                self.wfile.write(reply.encode("utf-8") + b"\n")
                self.wfile.flush()
        except OSError as exc:
            log.info("Connection error", extra={"fields": {"err": exc}})
        log.info("Client disconnected", extra={"fields": {"addr": self.client_address}})


class Server:
    """Serves GET, SET and LIST requests for one database."""

    def __init__(self, addr: str, db: Database) -> None:
        self.addr = addr
        self.db = db
        self._tcp: Optional[_TCPServer] = None

    def process_request(self, request: Request) -> Response:
        """Execute one request against the database."""
        operation = request.operation.upper()
        if operation == "GET":
            if not request.key:
                return Response(False, error="Key required for GET operation")
            try:
                value = self.db.read(request.key)
            except (KeyError, ValueError, OSError) as exc:
                return Response(False, error=str(exc))
            return Response(True, data=value.decode("utf-8", errors="replace"))

        if operation == "SET":
            if not request.key:
                return Response(False, error="Key required for SET operation")
            try:
                self.db.write(request.key, request.value.encode("utf-8"))
            except (KeyError, ValueError, OSError) as exc:
                return Response(False, error=str(exc))
            return Response(True)

        if operation == "LIST":
            lines = [
                f"{key}={value.decode('utf-8', errors='replace')}"
                for key, value in self.db.items()
            ]
            return Response(True, data="\n".join(lines))

        return Response(False, error="Unsupported operation: " + request.operation)

    def handle_line(self, line: str) -> Optional[str]:
        """Answer one line of input; blank lines get no answer."""
        line = line.strip()
        if not line:
            return None
        try:
            request = Request.from_json(line)
        except ValueError:
            return Response(False, error="Invalid JSON").to_json()
        return self.process_request(request).to_json()

    def serve_forever(self) -> None:
        """Listen on the configured address and serve until shut down."""
        host, port = _parse_addr(self.addr)
        try:
            tcp = _TCPServer((host, port), _Handler)
        except OSError as exc:
            raise OSError(f"failed to listen on {self.addr}: {exc}") from exc
        tcp.app = self
        self._tcp = tcp
        get_logger().info("Database server listening", extra={"fields": {"addr": self.addr}})
        with tcp:
            tcp.serve_forever()

    def shutdown(self) -> None:
        """Stop a running serve_forever loop."""
        if self._tcp is not None:
            self._tcp.shutdown()
            self._tcp = None


def main(argv: Optional[list[str]] = None) -> int:
    """Start the database server."""
    parser = argparse.ArgumentParser(prog="ttrunksdb-server")
    parser.add_argument(
        "--debug", action="store_true", help="set debug log level (default false)"
    )
    parser.add_argument(
        "--log-level", default="info", help="logging level: debug, info, warn, error"
    )
    args = parser.parse_args(argv)

    env_path = os.path.join(os.getcwd(), ".env")
    if not os.path.isfile(env_path):
        print("Error loading .env file", file=sys.stderr)
        return 1
    load_dotenv(env_path)

    log = init_logger(args.log_level, args.debug)
    with LSMTStorage() as db:
        server = Server(DEFAULT_ADDR, db)
        log.info("Starting database server...")
        try:
            server.serve_forever()
        except OSError as exc:
            log.info("Server failed", extra={"fields": {"err": exc}})
        except KeyboardInterrupt:
            server.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())