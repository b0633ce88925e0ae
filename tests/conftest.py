"""Pytest configuration and fixtures for bluez-pairing-agent tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from dbus_fast import MessageType

from bluez_pairing_agent.agent import AuthenticationAgent
from bluez_pairing_agent.policy import AuthorizationPolicy

DEVICE_A = "/org/bluez/hci0/dev_AA_BB_CC_DD_EE_01"
DEVICE_B = "/org/bluez/hci0/dev_AA_BB_CC_DD_EE_02"


@pytest.fixture
def gateway():
    """Prompt gateway that accepts everything unless told otherwise."""
    mock_gateway = AsyncMock()
    mock_gateway.show_message = AsyncMock(return_value=None)
    mock_gateway.ask_confirmation = AsyncMock(return_value="y")
    mock_gateway.ask_freeform = AsyncMock(return_value="y")
    return mock_gateway


@pytest.fixture
def directory():
    """Device directory that knows every device as 'Headphones'."""
    mock_directory = AsyncMock()
    mock_directory.resolve_device_name = AsyncMock(return_value="Headphones")
    mock_directory.set_trusted = AsyncMock(return_value=None)
    return mock_directory


@pytest.fixture
def policy():
    return AuthorizationPolicy()


@pytest.fixture
def agent(gateway, directory, policy):
    return AuthenticationAgent(
        pin_code="0000",
        passkey=1024,
        gateway=gateway,
        directory=directory,
        policy=policy,
    )


def make_reply(message_type=MessageType.METHOD_RETURN, body=None, error_name=None):
    """Builds a stand-in for a dbus_fast reply Message."""
    reply = MagicMock()
    reply.message_type = message_type
    reply.body = body if body is not None else []
    reply.error_name = error_name
    return reply


@pytest.fixture
def bus_conn():
    """BusConnection whose bus answers every call successfully."""
    conn = MagicMock()
    conn.connect = AsyncMock()
    conn.disconnect = AsyncMock()
    conn.bus.call = AsyncMock(return_value=make_reply())
    conn.bus.export = MagicMock()
    conn.bus.unexport = MagicMock()
    return conn
