"""Device state resolution from BlueZ flags.

The state is never cached: BlueZ is the only source of truth and can be
changed from outside this process at any time.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from dbus_next.errors import DBusError

from .bluez.adapter import BluezAdapter
from .bluez.client import PropertyTypeError
from .bluez.device import BluezDevice

logger = logging.getLogger(__name__)


class DeviceState(str, Enum):
    """Logical device state; the value is the wire representation."""

    CONNECTED = "connected"
    CONNECTING = "connecting"
    IDLE = "blocked"
    DISABLED = "disabled"


@dataclass
class DeviceFlags:
    """Snapshot of remote flags.  None means unread or unreadable."""

    powered: bool | None = None
    paired: bool | None = None
    connected: bool | None = None
    blocked: bool | None = None


def resolve_state(flags: DeviceFlags) -> DeviceState:
    """Derive the device state from a flag snapshot.

    powered and paired gate everything: unreadable counts as false and
    yields DISABLED.  connected and blocked degrade to false when unreadable.
    """
    if not flags.powered:
        return DeviceState.DISABLED
    if not flags.paired:
        return DeviceState.DISABLED
    if flags.connected:
        return DeviceState.CONNECTED
    if not flags.blocked:
        return DeviceState.CONNECTING
    return DeviceState.IDLE


async def _read_flag(name: str, getter) -> bool | None:
    try:
        return await getter()
    except (DBusError, PropertyTypeError) as e:
        logger.debug("Could not read %s: %s", name, e)
        return None


async def read_flags(adapter: BluezAdapter, device: BluezDevice) -> DeviceFlags:
    """Read flags in resolution order, stopping as soon as the state is known."""
    flags = DeviceFlags()
    flags.powered = await _read_flag("adapter Powered", adapter.is_powered)
    if not flags.powered:
        return flags
    flags.paired = await _read_flag(f"{device.address} Paired", device.is_paired)
    if not flags.paired:
        return flags
    flags.connected = await _read_flag(f"{device.address} Connected", device.is_connected)
    if flags.connected:
        return flags
    flags.blocked = await _read_flag(f"{device.address} Blocked", device.is_blocked)
    return flags


async def query_state(adapter: BluezAdapter, device: BluezDevice) -> DeviceState:
    """Read the current flags of a device and resolve its state."""
    flags = await read_flags(adapter, device)
    state = resolve_state(flags)
    logger.debug("Device %s resolved to %s (%s)", device.address, state.name, flags)
    return state
