"""BlueZ Device1 wrapper addressed by MAC address."""

import logging

from dbus_next import Variant

from .client import BluezClient
from .constants import (
    DEFAULT_ADAPTER_PATH,
    DEVICE_INTERFACE,
    PROP_BLOCKED,
    PROP_CONNECTED,
    PROP_PAIRED,
)

logger = logging.getLogger(__name__)


def address_to_path(address: str, adapter_path: str = DEFAULT_ADAPTER_PATH) -> str:
    """Convert a MAC address to a BlueZ D-Bus object path."""
    return f"{adapter_path}/dev_{address.replace(':', '_')}"


def path_to_address(path: str, adapter_path: str = DEFAULT_ADAPTER_PATH) -> str:
    """Extract the MAC address from a device object path.

    Returns "" for anything that is not exactly ``<adapter>/dev_XX_XX_...``.
    """
    prefix = f"{adapter_path}/dev_"
    if not path.startswith(prefix):
        return ""
    suffix = path[len(prefix):]
    if not suffix or "/" in suffix:
        return ""
    return suffix.replace("_", ":")


class BluezDevice:
    """Wraps org.bluez.Device1 for one device."""

    def __init__(
        self, client: BluezClient, address: str, adapter_path: str = DEFAULT_ADAPTER_PATH
    ):
        self._client = client
        self._address = address
        self._path = address_to_path(address, adapter_path)

    async def _get(self, name: str) -> bool:
        return await self._client.get_bool_property(self._path, DEVICE_INTERFACE, name)

    async def is_paired(self) -> bool:
        return await self._get(PROP_PAIRED)

    async def is_connected(self) -> bool:
        return await self._get(PROP_CONNECTED)

    async def is_blocked(self) -> bool:
        return await self._get(PROP_BLOCKED)

    async def set_blocked(self, blocked: bool) -> None:
        """Set the adapter-level Blocked policy flag for this device."""
        await self._client.set_property(
            self._path, DEVICE_INTERFACE, PROP_BLOCKED, Variant("b", blocked)
        )
        logger.info("Device %s blocked=%s", self._address, blocked)

    async def connect(self) -> None:
        logger.info("Connecting to %s...", self._address)
        await self._client.call_method(self._path, DEVICE_INTERFACE, "Connect")
        logger.info("Connected to %s", self._address)

    async def disconnect(self) -> None:
        logger.info("Disconnecting from %s...", self._address)
        await self._client.call_method(self._path, DEVICE_INTERFACE, "Disconnect")

    @property
    def address(self) -> str:
        return self._address

    @property
    def path(self) -> str:
        return self._path
