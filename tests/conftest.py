# budsctl test configuration and shared fixtures
from __future__ import annotations

import pytest
from dbus_next import Variant
from dbus_next.errors import DBusError

from budsctl.bluez.client import PropertyChange, PropertyChangeStream, PropertyTypeError
from budsctl.bluez.constants import (
    ADAPTER_INTERFACE,
    DEFAULT_ADAPTER_PATH,
    DEVICE_INTERFACE,
)
from budsctl.bluez.device import address_to_path

DEVICE_A = "AA:BB:CC:DD:EE:FF"
DEVICE_B = "11:22:33:44:55:66"


class FakeBluezClient:
    """In-memory stand-in for BluezClient.

    Records every remote operation in ``calls`` as tuples:
    ("get", path, name), ("set", path, name, value), ("call", path, method).
    """

    def __init__(self):
        self.properties: dict[tuple[str, str, str], object] = {}
        self.calls: list[tuple] = []
        self.failures: dict[tuple[str, str, str], str] = {}
        self.streams: list[PropertyChangeStream] = []
        self.closed = False

    # -- setup helpers --

    def set_adapter(self, powered: bool = True) -> None:
        self.properties[(DEFAULT_ADAPTER_PATH, ADAPTER_INTERFACE, "Powered")] = powered

    def add_device(
        self,
        address: str,
        paired: bool = True,
        connected: bool = False,
        blocked: bool = False,
    ) -> None:
        path = address_to_path(address)
        self.properties[(path, DEVICE_INTERFACE, "Paired")] = paired
        self.properties[(path, DEVICE_INTERFACE, "Connected")] = connected
        self.properties[(path, DEVICE_INTERFACE, "Blocked")] = blocked

    def fail(self, kind: str, path: str, member: str, message: str = "Operation failed") -> None:
        """Make the next matching operation raise DBusError."""
        self.failures[(kind, path, member)] = message

    def device_flag(self, address: str, name: str) -> object:
        return self.properties.get((address_to_path(address), DEVICE_INTERFACE, name))

    def remote_writes(self) -> list[tuple]:
        """All calls except property reads."""
        return [c for c in self.calls if c[0] != "get"]

    def push(self, change: PropertyChange) -> None:
        for stream in self.streams:
            stream.push(change)

    def _check_failure(self, kind: str, path: str, member: str) -> None:
        message = self.failures.pop((kind, path, member), None)
        if message is not None:
            raise DBusError("org.bluez.Error.Failed", message)

    # -- BluezClient interface --

    async def get_bool_property(self, path: str, interface: str, name: str) -> bool:
        self.calls.append(("get", path, name))
        self._check_failure("get", path, name)
        key = (path, interface, name)
        if key not in self.properties:
            raise DBusError(
                "org.freedesktop.DBus.Error.UnknownObject", f"Method Get with signature ss on {path}"
            )
        value = self.properties[key]
        if not isinstance(value, bool):
            raise PropertyTypeError(f"property {name} is not bool")
        return value

    async def set_property(self, path: str, interface: str, name: str, value: Variant) -> None:
        self.calls.append(("set", path, name, value.value))
        self._check_failure("set", path, name)
        self.properties[(path, interface, name)] = value.value

    async def call_method(self, path: str, interface: str, method: str) -> None:
        self.calls.append(("call", path, method))
        self._check_failure("call", path, method)
        if method == "Connect":
            self.properties[(path, interface, "Connected")] = True
        elif method == "Disconnect":
            self.properties[(path, interface, "Connected")] = False

    async def subscribe_property_changes(self) -> PropertyChangeStream:
        stream = PropertyChangeStream()
        self.streams.append(stream)
        return stream

    def close(self) -> None:
        for stream in self.streams:
            stream.close()
        self.closed = True


@pytest.fixture
def bluez() -> FakeBluezClient:
    """Fake client with a powered adapter and no devices."""
    client = FakeBluezClient()
    client.set_adapter(powered=True)
    return client


def device_path(address: str) -> str:
    return address_to_path(address)
