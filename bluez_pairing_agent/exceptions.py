"""Custom exceptions for bluez-pairing-agent.

Startup errors map to exit codes in the application. Call errors are
raised from inside agent callbacks and travel back to BlueZ as D-Bus
error replies, so they also derive from dbus_fast's DBusError.
"""

from dbus_fast.errors import DBusError

from .constants import ERROR_CANCELED, ERROR_FAILED, ERROR_REJECTED


class AgentError(Exception):
    """Base exception for all bluez-pairing-agent errors."""


class BusConnectionError(AgentError):
    """The D-Bus system bus cannot be reached.

    Maps to ExitCode.BUS_UNAVAILABLE (1).
    """


class DbusPermissionError(BusConnectionError):
    """Insufficient permissions to access the D-Bus system bus.

    Maps to ExitCode.DBUS_PERMISSION (3).
    """


class RegistrationError(AgentError):
    """BlueZ refused to register the agent or make it the default.

    Maps to ExitCode.REGISTRATION_FAILED (2).
    """


class AgentCallError(AgentError, DBusError):
    """Failure of a single agent callback, returned to the caller.

    Subclasses set ``error_name``; dbus_fast sends it as the name of
    the error reply.
    """

    error_name: str = ERROR_FAILED

    def __init__(self, text: str) -> None:
        DBusError.__init__(self, self.error_name, text)


class DeviceLookupError(AgentCallError):
    """The device directory could not resolve or update a device."""

    error_name = ERROR_FAILED


class AuthenticationRejectedError(AgentCallError):
    """The operator declined the request."""

    error_name = ERROR_REJECTED

    def __init__(self, text: str = "Cancelled") -> None:
        super().__init__(text)


class AuthenticationCanceledError(AuthenticationRejectedError):
    """BlueZ cancelled the request while a prompt was outstanding."""

    error_name = ERROR_CANCELED

    def __init__(self, text: str = "Canceled by BlueZ") -> None:
        super().__init__(text)
