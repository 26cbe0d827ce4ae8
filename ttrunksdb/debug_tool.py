"""Converts binary SSTable files into readable text dumps."""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Iterator, Optional

from rich.console import Console
from rich.style import Style
from rich.text import Text

from .serializer import BinarySSTableDeserializer, Deserialized, SerializationError

DEFAULT_SSTABLES_DIR = "./data/sstables/level_0"

TITLE_STYLE = Style(color="#FAFAFA", bgcolor="#7D56F4", bold=True)
SUCCESS_STYLE = Style(color="#04B575")
ERROR_STYLE = Style(color="#FF5F87")
INFO_STYLE = Style(color="#FFD700")
PROGRESS_STYLE = Style(color="#61AFEF")

_BIN_SUFFIX = ".bin"
_TXT_SUFFIX = ".txt"


def _text_path(path: str) -> str:
    if path.endswith(_BIN_SUFFIX):
        path = path[: -len(_BIN_SUFFIX)]
    return path + _TXT_SUFFIX


@dataclass
class ProcessResult:
    """Outcome of converting one SSTable file."""

    path: str
    success: bool
    error: Optional[Exception] = None

    @property
    def output_path(self) -> str:
        """Path of the text file written next to the binary one."""
        return _text_path(self.path)


def format_deserialized(deserialized: Deserialized) -> str:
    """Return a human-readable dump of a decoded SSTable."""
    lines = [
        "=== SSTable Contents ===",
        "",
        "BLOOM FILTER:",
        f"Size: {len(deserialized.bloom_filter.bits())} bits",
        f"Data: {deserialized.bloom_filter}",
        "",
        "SPARSE INDEX:",
        f"Data: {deserialized.sparse_index}",
        "",
        "RECORDS:",
        f"Count: {len(deserialized.records)}",
        "",
    ]
    for number, record in enumerate(deserialized.records, start=1):
        lines += [
            f"Record {number}:",
            f"  Key: {record.key}",
            f"  Value: {bytes(record.value).decode('utf-8', errors='replace')}",
            f"  Timestamp: {record.timestamp}",
            f"  Tombstone: {'true' if record.tombstone else 'false'}",
            "",
        ]
    return "\n".join(lines) + "\n"


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def find_sstable_files(directory: str) -> list[str]:
    """Return every path under ``directory`` ending in '.bin', in lexical walk order.

    Raises FileNotFoundError if ``directory`` does not exist.
    """
    directory = os.fspath(directory)
    if not os.path.lexists(directory):
        raise FileNotFoundError(f"no such file or directory: {directory}")
    return [path for path in _walk(directory) if path.endswith(_BIN_SUFFIX)]


def convert_file(path: str) -> ProcessResult:
    """Decode one SSTable file and write its text dump beside it."""
    path = os.fspath(path)
    try:
        with open(path, "rb") as stream:
            deserialized = BinarySSTableDeserializer().deserialize(stream)
        with open(_text_path(path), "w", encoding="utf-8") as out:
            out.write(format_deserialized(deserialized))
    except (OSError, SerializationError) as exc:
        return ProcessResult(path=path, success=False, error=exc)
    return ProcessResult(path=path, success=True)


def main(argv: Optional[list[str]] = None) -> int:
    """Convert every SSTable file in a directory to text and report progress."""
    parser = argparse.ArgumentParser(prog="ttrunksdb-debug")
    parser.add_argument(
        "directory",
        nargs="?",
        default=DEFAULT_SSTABLES_DIR,
        help="directory holding .bin SSTable files",
    )
    args = parser.parse_args(argv)
    directory = args.directory

    console = Console(highlight=False)
    console.print(Text(" 🔍 SSTable Debug Tool ", style=TITLE_STYLE))
    console.print()
    console.print(Text(f"Working directory: {directory}", style=INFO_STYLE))
    console.print()

    try:
        files = find_sstable_files(directory)
    except OSError as exc:
        console.print(Text(f"✗ {directory}: {exc}", style=ERROR_STYLE))
        return 1

    if not files:
        console.print(Text("No .bin files found in directory", style=INFO_STYLE))
        return 0

    console.print(Text(f"Processing directory: {directory}"))
    console.print(Text(f"Total files: {len(files)}"))
    console.print()

    failures = 0
    for done, path in enumerate(files, start=1):
        result = convert_file(path)
        if result.success:
            console.print(
                Text(f"✓ {result.path} → {result.output_path}", style=SUCCESS_STYLE)
            )
        else:
            failures += 1
            console.print(Text(f"✗ {result.path}: {result.error}", style=ERROR_STYLE))
        progress = done / len(files) * 100
        console.print(
            Text(
                f"Progress: {progress:.1f}% ({done}/{len(files)})",
                style=PROGRESS_STYLE,
            )
        )

    console.print()
    console.print(Text("🎉 Processing complete!", style=SUCCESS_STYLE))
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())