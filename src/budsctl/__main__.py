"""Command line entry point: `budsctl daemon|status|toggle [device]`."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path

from . import __version__
from . import client
from .bluez.client import BluezClient, BluezUnavailableError
from .config import AppConfig, ConfigError, socket_path
from .daemon import Daemon
from .protocol import IPCResponse

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("budsctl")


def setup_logging(level_name: str, stream=None) -> None:
    """Configure root logging; the daemon logs to stdout, clients to stderr."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=stream or sys.stdout)
    # Quiet noisy libraries
    logging.getLogger("dbus_next").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="budsctl", description="Toggle a Bluetooth audio device on or off."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--socket", type=Path, default=None,
        help="daemon socket path (default: $XDG_RUNTIME_DIR/budsctl.sock)",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="debug, info, warning or error (default: from config, else info)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True
    sub.add_parser("daemon", help="run the daemon in the foreground")
    sub.add_parser("status", help="print the active device's state")
    toggle_parser = sub.add_parser("toggle", help="toggle a device on or off")
    toggle_parser.add_argument(
        "device", nargs="?", default=None,
        help="MAC address or configured name (default: first configured device)",
    )
    return parser


async def run_daemon(path: Path) -> None:
    """Run the daemon until SIGINT/SIGTERM."""
    bluez = await BluezClient.connect()
    daemon = Daemon(bluez, path)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        await daemon.start()
        await shutdown_event.wait()
    finally:
        await daemon.stop()


def _print_response(response: IPCResponse) -> None:
    print(json.dumps(response.to_dict()))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.load()
    level = args.log_level or config.log_level
    path = args.socket or socket_path()

    try:
        if args.command == "daemon":
            setup_logging(level)
            logger.info("budsctl daemon v%s starting...", __version__)
            asyncio.run(run_daemon(path))
            logger.info("Goodbye.")
        elif args.command == "status":
            setup_logging(level, stream=sys.stderr)
            _print_response(asyncio.run(client.status(path)))
        elif args.command == "toggle":
            setup_logging(level, stream=sys.stderr)
            device = config.resolve_device(args.device)
            _print_response(asyncio.run(client.toggle(device, path)))
    except (
        BluezUnavailableError,
        ConfigError,
        client.DaemonConnectionError,
        client.DaemonError,
        OSError,
    ) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
