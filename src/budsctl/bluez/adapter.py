"""BlueZ Adapter1 wrapper (power state only)."""

import logging

from dbus_next import Variant

from .client import BluezClient
from .constants import ADAPTER_INTERFACE, DEFAULT_ADAPTER_PATH, PROP_POWERED

logger = logging.getLogger(__name__)


class BluezAdapter:
    """Wraps org.bluez.Adapter1 on a single, fixed adapter path."""

    def __init__(self, client: BluezClient, adapter_path: str = DEFAULT_ADAPTER_PATH):
        self._client = client
        self._adapter_path = adapter_path

    async def is_powered(self) -> bool:
        return await self._client.get_bool_property(
            self._adapter_path, ADAPTER_INTERFACE, PROP_POWERED
        )

    async def set_powered(self, powered: bool) -> None:
        await self._client.set_property(
            self._adapter_path, ADAPTER_INTERFACE, PROP_POWERED, Variant("b", powered)
        )
        logger.info("Adapter %s powered=%s", self._adapter_path, powered)
