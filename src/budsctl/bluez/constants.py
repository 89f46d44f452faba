"""BlueZ D-Bus names used by the daemon."""

# BlueZ D-Bus service and interface names
BLUEZ_SERVICE = "org.bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
DEVICE_INTERFACE = "org.bluez.Device1"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

# Bus daemon itself (ListNames, AddMatch)
DBUS_SERVICE = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"
DBUS_INTERFACE = "org.freedesktop.DBus"

# Default adapter path
DEFAULT_ADAPTER_PATH = "/org/bluez/hci0"

# All BlueZ objects live below this path
BLUEZ_PATH_NAMESPACE = "/org/bluez"

PROPERTIES_CHANGED_MATCH = (
    f"type='signal',interface='{PROPERTIES_INTERFACE}',"
    f"member='PropertiesChanged',path_namespace='{BLUEZ_PATH_NAMESPACE}'"
)

# Device1 / Adapter1 property names
PROP_POWERED = "Powered"
PROP_PAIRED = "Paired"
PROP_CONNECTED = "Connected"
PROP_BLOCKED = "Blocked"
