"""budsctl: toggle a Bluetooth audio device through a small BlueZ daemon."""

__version__ = "0.1.0"
