"""Tests for budsctl.listener."""

from __future__ import annotations

import asyncio

from budsctl.bluez.client import PropertyChange
from budsctl.bluez.constants import ADAPTER_INTERFACE, DEVICE_INTERFACE
from budsctl.listener import disconnected_address, watch_disconnects
from budsctl.session import DaemonSession

from conftest import DEVICE_A, DEVICE_B, device_path

PATH_A = device_path(DEVICE_A)


def change(path=PATH_A, interface=DEVICE_INTERFACE, **changed) -> PropertyChange:
    return PropertyChange(path=path, interface=interface, changed=changed)


async def _activate(session: DaemonSession, address: str) -> None:
    await session.toggle(address)


def run_listener(bluez, session, *changes) -> None:
    async def scenario():
        stream = await bluez.subscribe_property_changes()
        for item in changes:
            stream.push(item)
        stream.close()
        await watch_disconnects(stream, session)

    asyncio.run(scenario())


class TestDisconnectedAddress:
    """Filtering of notifications."""

    def test_disconnect_edge(self):
        assert disconnected_address(change(Connected=False)) == DEVICE_A

    def test_connect_edge_ignored(self):
        assert disconnected_address(change(Connected=True)) == ""

    def test_other_property_ignored(self):
        assert disconnected_address(change(RSSI=-60)) == ""

    def test_other_interface_ignored(self):
        assert disconnected_address(change(interface=ADAPTER_INTERFACE, Connected=False)) == ""

    def test_non_bool_value_ignored(self):
        assert disconnected_address(change(Connected=0)) == ""

    def test_unmapped_path_ignored(self):
        assert disconnected_address(change(path="/org/bluez/hci1/dev_X", Connected=False)) == ""


class TestWatchDisconnects:
    """Reaction to disconnect notifications."""

    def test_active_device_gets_blocked(self, bluez):
        bluez.add_device(DEVICE_A, blocked=True)
        session = DaemonSession(bluez)
        asyncio.run(_activate(session, DEVICE_A))
        bluez.calls.clear()

        run_listener(bluez, session, change(Connected=False))
        assert bluez.calls == [("set", PATH_A, "Blocked", True)]

    def test_non_active_device_untouched(self, bluez):
        bluez.add_device(DEVICE_A, blocked=True)
        bluez.add_device(DEVICE_B)
        session = DaemonSession(bluez)
        asyncio.run(_activate(session, DEVICE_A))
        bluez.calls.clear()

        run_listener(bluez, session, change(path=device_path(DEVICE_B), Connected=False))
        assert bluez.calls == []
        assert session.active_device == DEVICE_A

    def test_no_active_device(self, bluez):
        session = DaemonSession(bluez)
        run_listener(bluez, session, change(Connected=False))
        assert bluez.calls == []

    def test_failure_is_logged_and_listener_continues(self, bluez, caplog):
        bluez.add_device(DEVICE_A, blocked=True)
        session = DaemonSession(bluez)
        asyncio.run(_activate(session, DEVICE_A))
        bluez.calls.clear()
        bluez.fail("set", PATH_A, "Blocked", "Not ready")

        run_listener(bluez, session, change(Connected=False), change(Connected=False))
        assert bluez.calls == [
            ("set", PATH_A, "Blocked", True),
            ("set", PATH_A, "Blocked", True),
        ]
        assert "Auto-block of %s failed" % DEVICE_A in caplog.text

    def test_unexpected_error_does_not_stop_listener(self, bluez, caplog):
        bluez.add_device(DEVICE_A, blocked=True)
        session = DaemonSession(bluez)
        asyncio.run(_activate(session, DEVICE_A))
        bluez.calls.clear()
        original_set = bluez.set_property
        attempts = []

        async def flaky_set(path, interface, name, value):
            attempts.append(name)
            if len(attempts) == 1:
                raise EOFError("bus went away")
            await original_set(path, interface, name, value)

        bluez.set_property = flaky_set

        run_listener(bluez, session, change(Connected=False), change(Connected=False))
        assert attempts == ["Blocked", "Blocked"]
        assert bluez.calls == [("set", PATH_A, "Blocked", True)]
        assert "bus went away" in caplog.text
