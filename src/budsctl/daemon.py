"""The budsctl daemon: Unix socket server plus BlueZ disconnect listener."""

import asyncio
import logging
import os
from pathlib import Path

from .bluez.client import BluezClient
from .listener import watch_disconnects
from .protocol import IPCRequest, IPCResponse, ProtocolError
from .session import DaemonSession

logger = logging.getLogger(__name__)

SOCKET_MODE = 0o600
SOCKET_UMASK = 0o177


async def process_message(session: DaemonSession, data: bytes) -> IPCResponse:
    """Decode one request line and run it against the session."""
    try:
        request = IPCRequest.from_json(data)
    except ProtocolError as e:
        return IPCResponse.failure(f"invalid request: {e}")
    return await session.handle_request(request)


class Daemon:
    """Serves one JSON request per connection on a Unix socket."""

    def __init__(self, client: BluezClient, socket_path: Path):
        self._client = client
        self._socket_path = Path(socket_path)
        self.session = DaemonSession(client)
        self._server: asyncio.AbstractServer | None = None
        self._listener_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Subscribe to BlueZ signals and start accepting connections."""
        stream = await self._client.subscribe_property_changes()
        self._listener_task = asyncio.create_task(watch_disconnects(stream, self.session))

        # Remove stale socket from a previous run
        self._socket_path.unlink(missing_ok=True)
        # Bind with a restrictive umask so the socket is never group/world accessible
        old_umask = os.umask(SOCKET_UMASK)
        try:
            self._server = await asyncio.start_unix_server(
                self._handle_connection, path=str(self._socket_path)
            )
        finally:
            os.umask(old_umask)
        os.chmod(self._socket_path, SOCKET_MODE)
        logger.info("Listening on %s", self._socket_path)

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            try:
                data = await reader.readline()
            except (ValueError, asyncio.LimitOverrunError) as e:
                response = IPCResponse.failure(f"invalid request: {e}")
            else:
                try:
                    response = await process_message(self.session, data)
                except Exception as e:
                    logger.error("Request failed: %s", e, exc_info=True)
                    response = IPCResponse.failure(str(e) or type(e).__name__)
            writer.write(response.to_json())
            await writer.drain()
        except OSError as e:
            logger.debug("Client connection failed: %s", e)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def stop(self) -> None:
        """Stop accepting connections and release the bus.

        In-flight handlers and the listener task are not awaited; closing
        the bus ends the listener's stream.
        """
        if self._server:
            self._server.close()
            self._server = None
        self._socket_path.unlink(missing_ok=True)
        self._client.close()
        logger.info("Daemon stopped")
