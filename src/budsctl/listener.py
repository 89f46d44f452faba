"""Background consumer of BlueZ PropertiesChanged notifications.

Only one edge matters: the active device reporting Connected=false.  It is
then blocked so it does not silently reconnect.
"""

import asyncio
import logging

from dbus_next.errors import DBusError

from .bluez.client import PropertyChange, PropertyChangeStream
from .bluez.constants import DEFAULT_ADAPTER_PATH, DEVICE_INTERFACE, PROP_CONNECTED
from .bluez.device import path_to_address
from .session import DaemonSession

logger = logging.getLogger(__name__)


def disconnected_address(
    change: PropertyChange, adapter_path: str = DEFAULT_ADAPTER_PATH
) -> str:
    """Return the device address for a Connected=false change, else ""."""
    if change.interface != DEVICE_INTERFACE:
        return ""
    if PROP_CONNECTED not in change.changed:
        return ""
    if change.changed[PROP_CONNECTED] is not False:
        return ""
    return path_to_address(change.path, adapter_path)


async def watch_disconnects(
    stream: PropertyChangeStream,
    session: DaemonSession,
    adapter_path: str = DEFAULT_ADAPTER_PATH,
) -> None:
    """Consume the stream until it is closed."""
    logger.debug("Disconnect listener started")
    async for change in stream:
        address = disconnected_address(change, adapter_path)
        if not address:
            continue
        logger.debug("Device %s reported Connected=false", address)
        try:
            await session.block_if_active(address)
        except (DBusError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Auto-block of %s failed: %s", address, e)
        except Exception as e:
            logger.error("Auto-block of %s failed: %s", address, e, exc_info=True)
    logger.debug("Disconnect listener stopped")
