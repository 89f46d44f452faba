"""Toggle a device to its opposite state.

One upfront state resolution picks a fixed sequence of remote calls.  The
first failing call aborts the sequence; earlier calls are not rolled back.
"""

import logging

from dbus_next.errors import DBusError

from .bluez.adapter import BluezAdapter
from .bluez.device import BluezDevice
from .state import DeviceState, query_state

logger = logging.getLogger(__name__)


class ToggleError(Exception):
    """A step of a toggle sequence failed.

    ``state`` is the state resolved before the toggle started.
    """

    def __init__(self, step: str, state: DeviceState, cause: Exception):
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.state = state


async def _power_on(adapter: BluezAdapter, device: BluezDevice) -> None:
    await adapter.set_powered(True)


async def _unblock(adapter: BluezAdapter, device: BluezDevice) -> None:
    await device.set_blocked(False)


async def _block(adapter: BluezAdapter, device: BluezDevice) -> None:
    await device.set_blocked(True)


async def _connect(adapter: BluezAdapter, device: BluezDevice) -> None:
    await device.connect()


async def _disconnect(adapter: BluezAdapter, device: BluezDevice) -> None:
    await device.disconnect()


# state -> (steps, resulting state)
TRANSITIONS = {
    DeviceState.CONNECTED: (
        (("disconnect", _disconnect), ("block", _block)),
        DeviceState.IDLE,
    ),
    DeviceState.CONNECTING: (
        (("block", _block),),
        DeviceState.IDLE,
    ),
    DeviceState.IDLE: (
        (("unblock", _unblock), ("connect", _connect)),
        DeviceState.CONNECTED,
    ),
    DeviceState.DISABLED: (
        (("power on", _power_on), ("unblock", _unblock), ("connect", _connect)),
        DeviceState.CONNECTED,
    ),
}


async def toggle(adapter: BluezAdapter, device: BluezDevice) -> DeviceState:
    """Move the device to its opposite state and return the new state.

    Raises ToggleError naming the failed step.
    """
    state = await query_state(adapter, device)
    steps, target = TRANSITIONS[state]
    logger.info(
        "Toggling %s: %s -> %s", device.address, state.name, target.name
    )
    for step, action in steps:
        try:
            await action(adapter, device)
        except DBusError as e:
            logger.warning("Toggle of %s failed at %s: %s", device.address, step, e)
            raise ToggleError(step, state, e) from e
    return target
