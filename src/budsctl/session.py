"""Daemon session: the single active device and the lock guarding it.

Every operation holds the lock for its whole duration, remote BlueZ calls
included, so toggles and auto-blocks never interleave.
"""

import asyncio
import logging

from dbus_next.errors import DBusError

from .bluez.adapter import BluezAdapter
from .bluez.client import BluezClient
from .bluez.constants import DEFAULT_ADAPTER_PATH
from .bluez.device import BluezDevice
from .protocol import COMMAND_STATUS, COMMAND_TOGGLE, IPCRequest, IPCResponse
from .state import DeviceState, query_state
from .toggle import ToggleError, toggle

logger = logging.getLogger(__name__)


class DaemonSession:
    """Owns which device is active and serialises all access to it."""

    def __init__(self, client: BluezClient, adapter_path: str = DEFAULT_ADAPTER_PATH):
        self._client = client
        self._adapter_path = adapter_path
        self._adapter = BluezAdapter(client, adapter_path)
        self._lock = asyncio.Lock()
        self._active_device: str | None = None

    @property
    def active_device(self) -> str | None:
        return self._active_device

    def _device(self, address: str) -> BluezDevice:
        return BluezDevice(self._client, address, self._adapter_path)

    async def handle_request(self, request: IPCRequest) -> IPCResponse:
        """Dispatch one IPC request."""
        if request.command == COMMAND_STATUS:
            return await self.status()
        if request.command == COMMAND_TOGGLE:
            return await self.toggle(request.device)
        return IPCResponse.failure(f"unknown command: {request.command!r}")

    async def status(self) -> IPCResponse:
        async with self._lock:
            if not self._active_device:
                return IPCResponse(state=DeviceState.DISABLED.value)
            state = await query_state(self._adapter, self._device(self._active_device))
            return IPCResponse(state=state.value, device=self._active_device)

    async def toggle(self, address: str) -> IPCResponse:
        if not address:
            return IPCResponse.failure("device address is required")

        async with self._lock:
            previous = self._active_device
            if previous and previous != address:
                await self._release(previous, address)
            # Recorded before toggling, even if the toggle fails below
            self._active_device = address

            try:
                new_state = await toggle(self._adapter, self._device(address))
            except ToggleError as e:
                return IPCResponse.failure(str(e))
            return IPCResponse(state=new_state.value, device=address)

    async def _release(self, previous: str, address: str) -> None:
        """Disconnect and block the previous device if it is still connected."""
        device = self._device(previous)
        if await query_state(self._adapter, device) != DeviceState.CONNECTED:
            return
        logger.info("Switching from %s to %s, disconnecting old device", previous, address)
        try:
            await device.disconnect()
        except DBusError as e:
            logger.warning("Disconnect of previous device %s failed: %s", previous, e)
        try:
            await device.set_blocked(True)
        except DBusError as e:
            logger.warning("Block of previous device %s failed: %s", previous, e)

    async def block_if_active(self, address: str) -> bool:
        """Block a device that dropped its connection, if it is the active one.

        Returns True when a block was issued.  Remote errors propagate.
        """
        async with self._lock:
            if not address or address != self._active_device:
                return False
            logger.info("Active device %s disconnected, auto-blocking", address)
            await self._device(address).set_blocked(True)
            return True
