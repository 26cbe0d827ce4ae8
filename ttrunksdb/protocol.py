"""JSON-lines request and response messages exchanged by client and server."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


def _load_object(line: Union[str, bytes]) -> dict[str, Any]:
    data = json.loads(line)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _field(data: dict[str, Any], name: str, kind: type, default: Any) -> Any:
    value = data.get(name)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValueError(f"field {name!r} has the wrong type")
    return value


def _dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


@dataclass
class Request:
    """An operation sent to the server: GET, SET or LIST."""

    operation: str
    key: str = ""
    value: str = ""

    def to_json(self) -> str:
        """Encode as one JSON line, without the trailing newline."""
        payload: dict[str, Any] = {"operation": self.operation, "key": self.key}
        if self.value:
            payload["value"] = self.value
        return _dumps(payload)

    @classmethod
    def from_json(cls, line: Union[str, bytes]) -> Request:
        """Decode a JSON object; raises ValueError on malformed input."""
        data = _load_object(line)
        return cls(
            operation=_field(data, "operation", str, ""),
            key=_field(data, "key", str, ""),
            value=_field(data, "value", str, ""),
        )


@dataclass
class Response:
    """The server's answer to a request."""

    success: bool
    data: str = ""
    error: str = ""

    def to_json(self) -> str:
        """Encode as one JSON line, without the trailing newline."""
        payload: dict[str, Any] = {"success": self.success}
        if self.data:
            payload["data"] = self.data
        if self.error:
            payload["error"] = self.error
        return _dumps(payload)

    @classmethod
    def from_json(cls, line: Union[str, bytes]) -> Response:
        """Decode a JSON object; raises ValueError on malformed input."""
        data = _load_object(line)
        return cls(
            success=_field(data, "success", bool, False),
            data=_field(data, "data", str, ""),
            error=_field(data, "error", str, ""),
        )