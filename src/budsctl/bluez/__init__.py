"""BlueZ D-Bus wrappers used by the budsctl daemon."""

from .adapter import BluezAdapter
from .client import (
    BluezClient,
    BluezUnavailableError,
    PropertyChange,
    PropertyChangeStream,
    PropertyTypeError,
)
from .device import BluezDevice, address_to_path, path_to_address

__all__ = [
    "BluezAdapter",
    "BluezClient",
    "BluezDevice",
    "BluezUnavailableError",
    "PropertyChange",
    "PropertyChangeStream",
    "PropertyTypeError",
    "address_to_path",
    "path_to_address",
]
