"""Thin BlueZ D-Bus client: property get/set, method calls, change stream.

Every remote operation is a single low-level ``Message`` round trip with no
retry and no timeout.  Error replies are raised as ``DBusError``.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from dbus_next import BusType, Message, MessageType, Variant
from dbus_next.aio import MessageBus
from dbus_next.errors import AuthError, DBusError, InvalidAddressError

from .constants import (
    BLUEZ_PATH_NAMESPACE,
    BLUEZ_SERVICE,
    DBUS_INTERFACE,
    DBUS_PATH,
    DBUS_SERVICE,
    PROPERTIES_CHANGED_MATCH,
    PROPERTIES_INTERFACE,
)

logger = logging.getLogger(__name__)

DISCONNECTED_ERROR = "org.freedesktop.DBus.Error.Disconnected"


class BluezUnavailableError(Exception):
    """Raised when the system bus or the BlueZ service cannot be reached."""


class PropertyTypeError(TypeError):
    """Raised when a property expected to be boolean has another type."""


@dataclass
class PropertyChange:
    """One PropertiesChanged notification with variants unwrapped."""

    path: str
    interface: str
    changed: dict[str, object] = field(default_factory=dict)
    invalidated: list[str] = field(default_factory=list)


def parse_properties_changed(path: str, body: list) -> PropertyChange | None:
    """Build a PropertyChange from a signal body, or None if malformed.

    body = [interface_name, changed_props, invalidated]
    """
    if not body or len(body) < 2:
        return None
    interface, changed = body[0], body[1]
    if not isinstance(interface, str) or not isinstance(changed, dict):
        return None
    invalidated = body[2] if len(body) > 2 and isinstance(body[2], list) else []
    return PropertyChange(
        path=path,
        interface=interface,
        changed={
            name: (value.value if isinstance(value, Variant) else value)
            for name, value in changed.items()
        },
        invalidated=list(invalidated),
    )


class PropertyChangeStream:
    """Unbounded async iterator of PropertyChange notifications.

    Iteration ends once close() has been called and the queue drained.
    """

    _CLOSED = object()

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    def push(self, change: PropertyChange) -> None:
        if not self._closed:
            self._queue.put_nowait(change)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(self._CLOSED)

    def __aiter__(self) -> "PropertyChangeStream":
        return self

    async def __anext__(self) -> PropertyChange:
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        return item


class BluezClient:
    """Owns the daemon's single system bus connection to BlueZ."""

    def __init__(self, bus: MessageBus):
        self._bus = bus
        self._streams: list[PropertyChangeStream] = []
        self._handler_installed = False

    @classmethod
    async def connect(cls, bus_type: BusType = BusType.SYSTEM) -> "BluezClient":
        """Connect to the bus and verify BlueZ is registered on it."""
        try:
            bus = await MessageBus(bus_type=bus_type).connect()
        except (OSError, AuthError, InvalidAddressError) as e:
            raise BluezUnavailableError(f"connect to system bus: {e}") from e
        logger.info("Connected to system D-Bus")

        client = cls(bus)
        try:
            await client.check_service()
        except BluezUnavailableError:
            bus.disconnect()
            raise
        return client

    async def check_service(self) -> None:
        """Fail fast unless org.bluez is among the registered bus names."""
        try:
            reply = await self._call(
                Message(
                    destination=DBUS_SERVICE,
                    path=DBUS_PATH,
                    interface=DBUS_INTERFACE,
                    member="ListNames",
                )
            )
        except DBusError as e:
            raise BluezUnavailableError(f"list bus names: {e}") from e

        names = reply.body[0] if reply.body else []
        if BLUEZ_SERVICE not in names:
            raise BluezUnavailableError(
                f"{BLUEZ_SERVICE} not found on system bus, "
                "is bluetooth.service running?"
            )
        logger.debug("%s is present on the bus", BLUEZ_SERVICE)

    async def _call(self, message: Message) -> Message:
        reply = await self._bus.call(message)
        if reply is None:
            # Bus connection closed before a reply arrived
            raise DBusError(
                DISCONNECTED_ERROR, f"{message.member}: bus connection closed"
            )
        if reply.message_type == MessageType.ERROR:
            text = reply.body[0] if reply.body and isinstance(reply.body[0], str) else ""
            raise DBusError(reply.error_name, text, reply)
        return reply

    async def get_bool_property(self, path: str, interface: str, name: str) -> bool:
        """Read a boolean property via org.freedesktop.DBus.Properties.Get."""
        reply = await self._call(
            Message(
                destination=BLUEZ_SERVICE,
                path=path,
                interface=PROPERTIES_INTERFACE,
                member="Get",
                signature="ss",
                body=[interface, name],
            )
        )
        variant = reply.body[0] if reply.body else None
        if not isinstance(variant, Variant) or not isinstance(variant.value, bool):
            raise PropertyTypeError(f"property {name} is not bool")
        return variant.value

    async def set_property(
        self, path: str, interface: str, name: str, value: Variant
    ) -> None:
        """Write a property via org.freedesktop.DBus.Properties.Set."""
        await self._call(
            Message(
                destination=BLUEZ_SERVICE,
                path=path,
                interface=PROPERTIES_INTERFACE,
                member="Set",
                signature="ssv",
                body=[interface, name, value],
            )
        )

    async def call_method(self, path: str, interface: str, method: str) -> None:
        """Invoke an argument-less method such as Device1.Connect."""
        await self._call(
            Message(
                destination=BLUEZ_SERVICE,
                path=path,
                interface=interface,
                member=method,
            )
        )

    async def subscribe_property_changes(self) -> PropertyChangeStream:
        """Return a stream of PropertiesChanged signals below /org/bluez."""
        if not self._handler_installed:
            await self._call(
                Message(
                    destination=DBUS_SERVICE,
                    path=DBUS_PATH,
                    interface=DBUS_INTERFACE,
                    member="AddMatch",
                    signature="s",
                    body=[PROPERTIES_CHANGED_MATCH],
                )
            )
            self._bus.add_message_handler(self._on_message)
            self._handler_installed = True

        stream = PropertyChangeStream()
        self._streams.append(stream)
        return stream

    def _on_message(self, msg: Message) -> bool:
        if (
            msg.message_type != MessageType.SIGNAL
            or msg.interface != PROPERTIES_INTERFACE
            or msg.member != "PropertiesChanged"
        ):
            return False
        path = msg.path or ""
        if path != BLUEZ_PATH_NAMESPACE and not path.startswith(BLUEZ_PATH_NAMESPACE + "/"):
            return False

        change = parse_properties_changed(path, msg.body)
        if change is None:
            logger.debug("Dropping malformed PropertiesChanged on %s", path)
            return False
        for stream in self._streams:
            stream.push(change)
        return False  # don't consume

    def close(self) -> None:
        """Close all change streams and disconnect from the bus."""
        for stream in self._streams:
            stream.close()
        self._streams.clear()
        if self._handler_installed:
            self._bus.remove_message_handler(self._on_message)
            self._handler_installed = False
        self._bus.disconnect()
        logger.debug("Disconnected from system D-Bus")
