"""Tests for agent export, registration and teardown."""

import logging

import pytest
from dbus_fast import MessageType

from bluez_pairing_agent.constants import AGENT_CAPABILITY, AGENT_MANAGER_PATH, AGENT_PATH
from bluez_pairing_agent.directory import BluezDeviceDirectory
from bluez_pairing_agent.exceptions import BusConnectionError, RegistrationError
from bluez_pairing_agent.session import AgentSession
from tests.conftest import make_reply


@pytest.fixture(autouse=True)
def no_active_session():
    yield
    AgentSession._active = None


@pytest.fixture
def session(bus_conn, gateway, directory):
    return AgentSession(bus_conn, gateway, directory, pin_code="1234", passkey=654321)


def called_members(bus_conn):
    return [call.args[0].member for call in bus_conn.bus.call.await_args_list]


class TestSetup:

    @pytest.mark.asyncio
    async def test_registers_as_default_agent(self, session, bus_conn):
        await session.setup()

        bus_conn.connect.assert_awaited_once()
        bus_conn.bus.export.assert_called_once_with(AGENT_PATH, session.agent)
        assert called_members(bus_conn) == ["RegisterAgent", "RequestDefaultAgent"]
        register = bus_conn.bus.call.await_args_list[0].args[0]
        assert register.path == AGENT_MANAGER_PATH
        assert register.interface == "org.bluez.AgentManager1"
        assert register.body == [AGENT_PATH, AGENT_CAPABILITY]
        assert AGENT_CAPABILITY == "KeyboardDisplay"
        assert session.is_registered

    @pytest.mark.asyncio
    async def test_agent_uses_configured_secrets(self, session):
        assert session.agent.request_pin_code("/dev/A") == "1234"
        assert session.agent.request_passkey("/dev/A") == 654321

    def test_default_directory_is_bluez(self, bus_conn, gateway):
        session = AgentSession(bus_conn, gateway)
        assert isinstance(session.agent._directory, BluezDeviceDirectory)

    @pytest.mark.asyncio
    async def test_bus_unreachable(self, session, bus_conn):
        bus_conn.connect.side_effect = BusConnectionError("no bus")

        with pytest.raises(BusConnectionError):
            await session.setup()
        bus_conn.bus.export.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_rejected(self, session, bus_conn):
        bus_conn.bus.call.return_value = make_reply(
            MessageType.ERROR, error_name="org.bluez.Error.AlreadyExists"
        )

        with pytest.raises(RegistrationError, match="AlreadyExists"):
            await session.setup()

        assert called_members(bus_conn) == ["RegisterAgent"]
        bus_conn.bus.unexport.assert_called_once_with(AGENT_PATH)
        assert not session.is_registered

    @pytest.mark.asyncio
    async def test_request_default_rejected(self, session, bus_conn):
        bus_conn.bus.call.side_effect = [
            make_reply(),
            make_reply(MessageType.ERROR, error_name="org.bluez.Error.DoesNotExist"),
            make_reply(),
        ]

        with pytest.raises(RegistrationError):
            await session.setup()

        assert called_members(bus_conn) == [
            "RegisterAgent", "RequestDefaultAgent", "UnregisterAgent",
        ]
        bus_conn.bus.unexport.assert_called_once_with(AGENT_PATH)

    @pytest.mark.asyncio
    async def test_single_active_session(self, session, bus_conn, gateway, directory):
        await session.setup()
        other = AgentSession(bus_conn, gateway, directory)

        with pytest.raises(RuntimeError):
            await other.setup()

        await session.teardown()
        await other.setup()
        assert other.is_registered


class TestTeardown:

    @pytest.mark.asyncio
    async def test_unregisters_and_unexports(self, session, bus_conn):
        await session.setup()
        await session.teardown()

        assert called_members(bus_conn)[-1] == "UnregisterAgent"
        assert bus_conn.bus.call.await_args_list[-1].args[0].body == [AGENT_PATH]
        bus_conn.bus.unexport.assert_called_once_with(AGENT_PATH)
        bus_conn.disconnect.assert_not_called()
        assert not session.is_registered

    @pytest.mark.asyncio
    async def test_idempotent(self, session, bus_conn):
        await session.setup()
        await session.teardown()
        await session.teardown()

        assert called_members(bus_conn).count("UnregisterAgent") == 1
        bus_conn.bus.unexport.assert_called_once()

    @pytest.mark.asyncio
    async def test_without_setup_is_noop(self, session, bus_conn):
        await session.teardown()

        bus_conn.bus.call.assert_not_called()
        bus_conn.bus.unexport.assert_not_called()

    @pytest.mark.asyncio
    async def test_unregister_failure_is_logged(self, session, bus_conn, caplog):
        await session.setup()
        bus_conn.bus.call.return_value = make_reply(
            MessageType.ERROR, error_name="org.bluez.Error.DoesNotExist"
        )

        with caplog.at_level(logging.WARNING, logger="bluez_pairing_agent.session"):
            await session.teardown()

        assert "Agent unregister failed" in caplog.text
        bus_conn.bus.unexport.assert_called_once_with(AGENT_PATH)

    @pytest.mark.asyncio
    async def test_policy_survives_until_teardown(self, session):
        await session.setup()
        session.policy.grant_always()
        await session.teardown()

        assert session.policy.always is True
