"""Interactive command-line front end for the database server."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.style import Style
from rich.text import Text

from .client import DEFAULT_SERVER_ADDR, ClientError, DBClient

TITLE_STYLE = Style(color="#FAFAFA", bgcolor="#7D56F4", bold=True)
PROMPT_STYLE = Style(color="#04B575", bold=True)
SUCCESS_STYLE = Style(color="#04B575")
ERROR_STYLE = Style(color="#FF5F87")
INFO_STYLE = Style(color="#FFD700")

TITLE = "🗄️  OlappieDB CLI"
PROMPT = "ttrunksdb> "
FOOTER = "Press Ctrl+C or type 'quit' to exit • Type 'help' for commands"
MAX_OUTPUT_LINES = 20

HELP_TEXT = (
    "Available commands:",
    "  read <key>           - Read value for a key",
    "  write <key> <value>  - Write value to a key",
    "  list                 - List all key-value pairs",
    "  help                 - Show this help message",
    "  quit                 - Exit the CLI",
)


class CliSession:
    """Holds the output history of one CLI session and runs its commands."""

    def __init__(self, client: DBClient) -> None:
        self.client = client
        self.output: list[Text] = []
        self.finished = False
        self.error: Optional[Exception] = None
        try:
            client.connect()
        except (ClientError, OSError) as exc:
            self.error = exc
            self._add(f"Failed to connect to server: {exc}", ERROR_STYLE)
        else:
            self._add("✓ Connected to OlappieDB server", SUCCESS_STYLE)

    @property
    def lines(self) -> list[str]:
        """The output history as plain text."""
        return [line.plain for line in self.output]

    def _add(self, text: str, style: Optional[Style] = None) -> None:
        self.output.append(Text(text, style=style or ""))

    def process_command(self, line: str) -> None:
        """Run one line of input and record its output."""
        parts = line.split()
        if not parts:
            return
        command = parts[0].lower()

        if command in ("quit", "exit", "q"):
            self.client.disconnect()
            self._add("Goodbye! 👋", SUCCESS_STYLE)
            self.finished = True
        elif command in ("help", "h"):
            for text in HELP_TEXT:
                self._add(text, INFO_STYLE)
        elif command in ("read", "r"):
            self._read(parts)
        elif command in ("write", "w"):
            self._write(parts)
        elif command in ("list", "l"):
            self._list()
        else:
            self._add(
                f"Unknown command: {command}. Type 'help' for available commands.",
                ERROR_STYLE,
            )

        del self.output[:-MAX_OUTPUT_LINES]

    def _read(self, parts: list[str]) -> None:
        if len(parts) != 2:
            self._add("Usage: read <key>", ERROR_STYLE)
            return
        key = parts[1]
        try:
            value = self.client.read(key)
        except (ClientError, OSError) as exc:
            self._add(f"Error reading '{key}': {exc}", ERROR_STYLE)
        else:
            self._add(f"{key} = {value.decode('utf-8', errors='replace')}", SUCCESS_STYLE)

    def _write(self, parts: list[str]) -> None:
        if len(parts) < 3:
            self._add("Usage: write <key> <value>", ERROR_STYLE)
            return
        key = parts[1]
        value = " ".join(parts[2:])
        try:
            self.client.write(key, value.encode("utf-8"))
        except (ClientError, OSError) as exc:
            self._add(f"Error writing '{key}': {exc}", ERROR_STYLE)
        else:
            self._add(f"✓ Wrote: {key} = {value}", SUCCESS_STYLE)

    def _list(self) -> None:
        try:
            data = self.client.list()
        except (ClientError, OSError) as exc:
            self._add(f"Error listing entries: {exc}", ERROR_STYLE)
            return
        if not data:
            self._add("No entries found", INFO_STYLE)
            return
        self._add("All entries:", SUCCESS_STYLE)
        for entry in data.split("\n"):
            if entry:
                self._add(f"  {entry}")

    def render(self) -> Text:
        """Return the screen: title, output history and help footer."""
        view = Text()
        view.append(f" {TITLE} ", style=TITLE_STYLE)
        view.append("\n\n")
        if self.output:
            for line in self.output:
                view.append_text(line)
                view.append("\n")
            view.append("\n")
        view.append(FOOTER, style=INFO_STYLE)
        return view


def main(argv: Optional[list[str]] = None) -> int:
    """Run the interactive CLI."""
    parser = argparse.ArgumentParser(prog="ttrunksdb-cli")
    parser.add_argument("--server", default=DEFAULT_SERVER_ADDR, help="server address")
    args = parser.parse_args(argv)

    env_path = os.path.join(os.getcwd(), ".env")
    if not os.path.isfile(env_path):
        print("Error loading .env file", file=sys.stderr)
        return 1
    load_dotenv(env_path)

    console = Console()
    session = CliSession(DBClient(args.server))
    try:
        while not session.finished:
            console.clear()
            console.print(session.render())
            line = console.input(Text(PROMPT, style=PROMPT_STYLE))
            session.process_command(line)
    except (EOFError, KeyboardInterrupt):
        session.client.disconnect()
    else:
        console.print(session.render())
    return 0


if __name__ == "__main__":
    sys.exit(main())