"""Tests for the application runner and CLI."""

import asyncio
from unittest.mock import patch

import pytest
from dbus_fast import MessageType

from bluez_pairing_agent.__main__ import parse_args
from bluez_pairing_agent.app import AgentApp
from bluez_pairing_agent.constants import DEFAULT_PASSKEY, DEFAULT_PIN_CODE, ExitCode
from bluez_pairing_agent.exceptions import BusConnectionError, DbusPermissionError
from bluez_pairing_agent.session import AgentSession
from tests.conftest import make_reply


@pytest.fixture(autouse=True)
def no_active_session():
    yield
    AgentSession._active = None


@pytest.fixture
def app(bus_conn, gateway):
    with patch("bluez_pairing_agent.app.BusConnection", return_value=bus_conn):
        yield AgentApp(pin_code="0000", passkey=1024, gateway=gateway)


def stopped():
    stop = asyncio.Event()
    stop.set()
    return stop


class TestAgentApp:

    @pytest.mark.asyncio
    async def test_runs_until_stopped(self, app, bus_conn, capsys):
        exit_code = await app.run(stopped())

        assert exit_code == ExitCode.OK
        members = [call.args[0].member for call in bus_conn.bus.call.await_args_list]
        assert members == ["RegisterAgent", "RequestDefaultAgent", "UnregisterAgent"]
        bus_conn.disconnect.assert_awaited_once()
        assert "registered as default agent" in capsys.readouterr().out

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, expected",
        [
            (DbusPermissionError("denied"), ExitCode.DBUS_PERMISSION),
            (BusConnectionError("no bus"), ExitCode.BUS_UNAVAILABLE),
        ],
    )
    async def test_bus_errors(self, app, bus_conn, capsys, error, expected):
        bus_conn.connect.side_effect = error

        assert await app.run(stopped()) == expected
        assert "Error:" in capsys.readouterr().err
        bus_conn.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_registration_rejected(self, app, bus_conn):
        bus_conn.bus.call.return_value = make_reply(
            MessageType.ERROR, error_name="org.bluez.Error.AlreadyExists"
        )

        assert await app.run(stopped()) == ExitCode.REGISTRATION_FAILED
        bus_conn.disconnect.assert_awaited_once()


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])

        assert args.pin_code == DEFAULT_PIN_CODE
        assert args.passkey == DEFAULT_PASSKEY
        assert args.verbose is False

    def test_overrides(self):
        args = parse_args(["--pin-code", "1234", "--passkey", "123456", "--verbose"])

        assert args.pin_code == "1234"
        assert args.passkey == 123456
        assert args.verbose is True

    @pytest.mark.parametrize("passkey", ["abc", "-1", "1000000"])
    def test_invalid_passkey(self, passkey):
        with pytest.raises(SystemExit):
            parse_args(["--passkey", passkey])
