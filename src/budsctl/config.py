"""Configuration for budsctl.

Known devices are read from $XDG_CONFIG_HOME/budsctl/devices.json, either
as a bare list of {"name", "address"} objects or as an object with
"devices" and "log_level" keys.  The daemon socket lives in
$XDG_RUNTIME_DIR (or /tmp).
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME = "budsctl"
DEVICES_FILE = "devices.json"
SOCKET_NAME = "budsctl.sock"

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


class ConfigError(Exception):
    """Raised when a device cannot be resolved from arguments or config."""


def config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME / DEVICES_FILE


def socket_path() -> Path:
    base = os.environ.get("XDG_RUNTIME_DIR") or "/tmp"
    return Path(base) / SOCKET_NAME


def is_mac_address(value: str) -> bool:
    return bool(_MAC_RE.match(value))


@dataclass
class DeviceConfig:
    """A named Bluetooth device."""

    name: str
    address: str


@dataclass
class AppConfig:
    """Devices and options loaded from devices.json."""

    devices: list[DeviceConfig] = field(default_factory=list)
    log_level: str = "info"

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        """Load configuration, falling back to defaults on any problem."""
        config = cls()
        path = path or config_path()
        if not path.exists():
            logger.debug("No config file at %s, using defaults", path)
            return config

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Failed to read config %s: %s, using defaults", path, e)
            return config

        if isinstance(data, dict):
            log_level = data.get("log_level", config.log_level)
            if isinstance(log_level, str):
                config.log_level = log_level
            else:
                logger.warning("Config %s: ignoring non-string log_level %r", path, log_level)
            entries = data.get("devices", [])
        else:
            entries = data
        if not isinstance(entries, list):
            logger.error("Config %s: 'devices' must be a list, ignoring", path)
            return config

        for entry in entries:
            if (
                not isinstance(entry, dict)
                or not isinstance(entry.get("address"), str)
                or not entry["address"]
                or not isinstance(entry.get("name") or "", str)
            ):
                logger.warning("Config %s: skipping invalid device entry %r", path, entry)
                continue
            config.devices.append(
                DeviceConfig(name=entry.get("name") or "", address=entry["address"].upper())
            )
        logger.debug("Loaded %d device(s) from %s", len(config.devices), path)
        return config

    def resolve_device(self, device: str | None = None) -> str:
        """Turn a CLI device argument into a MAC address.

        Accepts a MAC address, a configured device name, or nothing (first
        configured device).
        """
        if not device:
            if not self.devices:
                raise ConfigError("no device specified and config is empty")
            return self.devices[0].address

        for entry in self.devices:
            if entry.name and entry.name.lower() == device.lower():
                return entry.address
        if is_mac_address(device):
            return device.upper()
        raise ConfigError(
            f"unknown device {device!r}: not a MAC address or configured device name"
        )
