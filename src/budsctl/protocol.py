"""IPC wire format between the CLI client and the daemon.

One JSON object per line: the client sends a request, the daemon answers
with a response and closes the connection.  Empty fields are omitted.
"""

import json
from dataclasses import dataclass

COMMAND_STATUS = "status"
COMMAND_TOGGLE = "toggle"


class ProtocolError(ValueError):
    """Raised for payloads that are not a well-formed request/response."""


def _load_object(data: bytes) -> dict:
    if not data or not data.strip():
        raise ProtocolError("empty payload")
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(str(e)) from e
    if not isinstance(obj, dict):
        raise ProtocolError("payload is not a JSON object")
    return obj


def _dump_object(obj: dict) -> bytes:
    return (json.dumps({k: v for k, v in obj.items() if v}) + "\n").encode()


def _string_field(obj: dict, key: str) -> str:
    value = obj.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProtocolError(f"field {key!r} must be a string")
    return value


@dataclass
class IPCRequest:
    """Sent from the CLI client to the daemon."""

    command: str
    device: str = ""

    def to_json(self) -> bytes:
        return _dump_object({"command": self.command, "device": self.device})

    @classmethod
    def from_json(cls, data: bytes) -> "IPCRequest":
        obj = _load_object(data)
        return cls(
            command=_string_field(obj, "command"),
            device=_string_field(obj, "device"),
        )


@dataclass
class IPCResponse:
    """Sent from the daemon back to the CLI client.

    Either state (and usually device) or error is set, never both.
    """

    state: str = ""
    device: str = ""
    error: str = ""

    @classmethod
    def failure(cls, message: str) -> "IPCResponse":
        return cls(error=message)

    def to_dict(self) -> dict:
        return {
            k: v
            for k, v in (("state", self.state), ("device", self.device), ("error", self.error))
            if v
        }

    def to_json(self) -> bytes:
        return _dump_object(self.to_dict())

    @classmethod
    def from_json(cls, data: bytes) -> "IPCResponse":
        obj = _load_object(data)
        return cls(
            state=_string_field(obj, "state"),
            device=_string_field(obj, "device"),
            error=_string_field(obj, "error"),
        )
