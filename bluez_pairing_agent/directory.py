"""Device directory: name lookup and trust via BlueZ.

Defines the DeviceDirectory protocol the agent depends on and its
BlueZ implementation over org.freedesktop.DBus.Properties on the
org.bluez.Device1 objects.
"""

import logging
from typing import Protocol, runtime_checkable

from dbus_fast import Message, MessageType, Variant

from .bus import BusConnection
from .constants import BLUEZ_SERVICE, DEVICE_INTERFACE, PROPERTIES_INTERFACE
from .exceptions import DeviceLookupError

logger = logging.getLogger(__name__)

# Device1 properties tried in order for a display name
NAME_PROPERTIES: tuple[str, ...] = ("Alias", "Name", "Address")


@runtime_checkable
class DeviceDirectory(Protocol):
    """Protocol for resolving and updating remote devices."""

    async def resolve_device_name(self, device_path: str) -> str:
        """Resolves a device object path to a display name.

        Raises:
            DeviceLookupError: If the device cannot be resolved.
        """
        ...

    async def set_trusted(self, device_path: str, trusted: bool) -> None:
        """Sets the Trusted property of a device.

        Raises:
            DeviceLookupError: If the property cannot be written.
        """
        ...


class BluezDeviceDirectory:
    """DeviceDirectory backed by BlueZ Device1 objects.

    All calls use direct D-Bus messages instead of proxy introspection,
    so a vanished device shows up as an error reply rather than an
    introspection failure.

    Args:
        bus_conn: The shared D-Bus connection.
    """

    def __init__(self, bus_conn: BusConnection) -> None:
        self._bus_conn = bus_conn

    async def resolve_device_name(self, device_path: str) -> str:
        """Reads the device's Alias, falling back to Name and Address.

        Args:
            device_path: The D-Bus object path of the device.

        Returns:
            The first non-empty name property.

        Raises:
            DeviceLookupError: If the device does not exist or has no name.
        """
        try:
            reply = await self._bus_conn.bus.call(
                Message(
                    destination=BLUEZ_SERVICE,
                    path=device_path,
                    interface=PROPERTIES_INTERFACE,
                    member="GetAll",
                    signature="s",
                    body=[DEVICE_INTERFACE],
                )
            )
        except Exception as exc:
            raise DeviceLookupError(
                f"Cannot resolve device {device_path}: {exc}"
            ) from exc

        if reply.message_type == MessageType.ERROR:
            raise DeviceLookupError(
                f"Cannot resolve device {device_path}: {reply.error_name}"
            )

        properties = reply.body[0]  # dict: prop -> Variant
        for key in NAME_PROPERTIES:
            variant = properties.get(key)
            if variant is not None and variant.value:
                logger.debug("Resolved %s to %r via %s", device_path, variant.value, key)
                return variant.value

        raise DeviceLookupError(f"Device {device_path} has no name")

    async def set_trusted(self, device_path: str, trusted: bool) -> None:
        """Writes Device1.Trusted.

        Args:
            device_path: The D-Bus object path of the device.
            trusted: The new Trusted value.

        Raises:
            DeviceLookupError: If BlueZ rejects the write.
        """
        try:
            reply = await self._bus_conn.bus.call(
                Message(
                    destination=BLUEZ_SERVICE,
                    path=device_path,
                    interface=PROPERTIES_INTERFACE,
                    member="Set",
                    signature="ssv",
                    body=[DEVICE_INTERFACE, "Trusted", Variant("b", trusted)],
                )
            )
        except Exception as exc:
            raise DeviceLookupError(
                f"Cannot set trusted on {device_path}: {exc}"
            ) from exc

        if reply.message_type == MessageType.ERROR:
            raise DeviceLookupError(
                f"Cannot set trusted on {device_path}: {reply.error_name}"
            )
        logger.info("Device %s trusted=%s", device_path, trusted)
