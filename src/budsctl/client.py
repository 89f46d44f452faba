"""IPC client used by the `status` and `toggle` commands."""

import asyncio
import logging
from pathlib import Path

from .config import socket_path
from .protocol import (
    COMMAND_STATUS,
    COMMAND_TOGGLE,
    IPCRequest,
    IPCResponse,
    ProtocolError,
)

logger = logging.getLogger(__name__)


class DaemonConnectionError(Exception):
    """Raised when the daemon cannot be reached or does not answer."""


class DaemonError(Exception):
    """The daemon answered with an error; the message is passed through."""


async def ipc_call(request: IPCRequest, path: Path | None = None) -> IPCResponse:
    """Send one request over the daemon socket and read the response."""
    path = path or socket_path()
    try:
        reader, writer = await asyncio.open_unix_connection(str(path))
    except OSError as e:
        raise DaemonConnectionError(
            f"connect to daemon: {e} (is `budsctl daemon` running?)"
        ) from e

    try:
        writer.write(request.to_json())
        await writer.drain()
        line = await reader.readline()
    except OSError as e:
        raise DaemonConnectionError(f"send request: {e}") from e
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    try:
        return IPCResponse.from_json(line)
    except ProtocolError as e:
        raise DaemonConnectionError(f"read response: {e}") from e


async def status(path: Path | None = None) -> IPCResponse:
    """Ask the daemon for the active device's state.  Errors are returned, not raised."""
    return await ipc_call(IPCRequest(command=COMMAND_STATUS), path)


async def toggle(device: str, path: Path | None = None) -> IPCResponse:
    """Ask the daemon to toggle a device; raise DaemonError if it fails."""
    response = await ipc_call(IPCRequest(command=COMMAND_TOGGLE, device=device), path)
    if response.error:
        raise DaemonError(response.error)
    return response
