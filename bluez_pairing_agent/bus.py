"""D-Bus system bus connection manager.

Provides the single shared connection to the D-Bus system bus. The
connection is owned by the application and outlives the agent session
that exports objects on it.
"""

import logging

from dbus_fast.aio import MessageBus
from dbus_fast import BusType

from .exceptions import BusConnectionError, DbusPermissionError

logger = logging.getLogger(__name__)


class BusConnection:
    """Manages the D-Bus system bus connection lifecycle.

    Example:
        bus_conn = BusConnection()
        await bus_conn.connect()
        bus_conn.bus.export(AGENT_PATH, agent)
        await bus_conn.disconnect()
    """

    def __init__(self) -> None:
        self._bus: MessageBus | None = None

    @property
    def bus(self) -> MessageBus:
        """Returns the active D-Bus connection.

        Raises:
            RuntimeError: If connect() has not been called.
        """
        if self._bus is None:
            raise RuntimeError("D-Bus connection not established. Call connect() first.")
        return self._bus

    async def connect(self) -> None:
        """Connects to the D-Bus system bus.

        Does nothing when a connection is already open.

        Raises:
            DbusPermissionError: If the connection is refused due to permissions.
            BusConnectionError: If the bus cannot be reached for any other reason.
        """
        if self._bus is not None:
            return
        try:
            logger.debug("Connecting to D-Bus system bus")
            self._bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
            logger.debug("D-Bus system bus connected")
        except PermissionError as exc:
            raise DbusPermissionError(
                "Cannot connect to D-Bus system bus. "
                "Are you running as root or in the bluetooth group?"
            ) from exc
        except Exception as exc:
            raise BusConnectionError(
                f"Failed to connect to D-Bus system bus: {exc}"
            ) from exc

    async def disconnect(self) -> None:
        """Disconnects from the D-Bus system bus."""
        if self._bus is not None:
            logger.debug("Disconnecting from D-Bus system bus")
            self._bus.disconnect()
            self._bus = None
