"""Constants and defaults for bluez-pairing-agent.

Single source of truth for version, exit codes, D-Bus names and the
fixed pairing secrets.
"""

from enum import IntEnum

VERSION: str = "1.0.0"
TOOL_NAME: str = "bluez-pairing-agent"

# D-Bus constants
BLUEZ_SERVICE: str = "org.bluez"
DEVICE_INTERFACE: str = "org.bluez.Device1"
AGENT_INTERFACE: str = "org.bluez.Agent1"
AGENT_MANAGER_INTERFACE: str = "org.bluez.AgentManager1"
PROPERTIES_INTERFACE: str = "org.freedesktop.DBus.Properties"

AGENT_MANAGER_PATH: str = "/org/bluez"
AGENT_PATH: str = "/org/bluez/agent/bluetuith"

# KeyboardDisplay: both secret entry and confirmation flows
AGENT_CAPABILITY: str = "KeyboardDisplay"

# Error names returned to BlueZ
ERROR_FAILED: str = "org.freedesktop.DBus.Error.Failed"
ERROR_REJECTED: str = "org.bluez.Error.Rejected"
ERROR_CANCELED: str = "org.bluez.Error.Canceled"

# Fixed secrets handed out on RequestPinCode / RequestPasskey
DEFAULT_PIN_CODE: str = "0000"
DEFAULT_PASSKEY: int = 1024
PASSKEY_MAX: int = 999999


class ExitCode(IntEnum):
    """Process exit codes.

    Attributes:
        OK: Agent ran and shut down cleanly.
        BUS_UNAVAILABLE: The D-Bus system bus could not be reached.
        REGISTRATION_FAILED: BlueZ rejected the agent registration.
        DBUS_PERMISSION: D-Bus permission error.
    """

    OK = 0
    BUS_UNAVAILABLE = 1
    REGISTRATION_FAILED = 2
    DBUS_PERMISSION = 3
