"""Agent application runner.

Sets up the agent session, keeps it registered until the process is
asked to stop, then tears it down. Translates startup exceptions to
exit codes.
"""

import asyncio
import logging
import signal

from .bus import BusConnection
from .constants import AGENT_CAPABILITY, AGENT_PATH, ExitCode
from .exceptions import BusConnectionError, DbusPermissionError, RegistrationError
from .output import OutputFormatter
from .prompt import PromptGateway, TerminalPromptGateway
from .session import AgentSession

logger = logging.getLogger(__name__)


class AgentApp:
    """Runs the pairing agent until SIGINT or SIGTERM.

    Args:
        pin_code: PIN code handed out on RequestPinCode.
        passkey: Passkey handed out on RequestPasskey.
        verbose: Enable verbose output.
        gateway: Prompt gateway; a TerminalPromptGateway by default.
    """

    def __init__(
        self,
        pin_code: str,
        passkey: int,
        verbose: bool = False,
        gateway: PromptGateway | None = None,
    ) -> None:
        self._output = OutputFormatter(verbose=verbose)
        self._bus_conn = BusConnection()
        self._session = AgentSession(
            self._bus_conn,
            gateway or TerminalPromptGateway(self._output),
            pin_code=pin_code,
            passkey=passkey,
        )

    async def run(self, stop: asyncio.Event | None = None) -> ExitCode:
        """Registers the agent and serves requests until stopped.

        Args:
            stop: Event that ends the run when set. When omitted, one
                is created and set by SIGINT/SIGTERM.

        Returns:
            The appropriate ExitCode for the result.
        """
        try:
            await self._session.setup()
            self._output.header(AGENT_PATH, AGENT_CAPABILITY)
            self._output.field("Status", "registered as default agent")

            if stop is None:
                stop = self._stop_on_signals()
            await stop.wait()
            self._output.verbose("Shutting down")
            return ExitCode.OK
        except DbusPermissionError as exc:
            self._output.error(str(exc))
            return ExitCode.DBUS_PERMISSION
        except BusConnectionError as exc:
            self._output.error(str(exc))
            return ExitCode.BUS_UNAVAILABLE
        except RegistrationError as exc:
            self._output.error(str(exc))
            return ExitCode.REGISTRATION_FAILED
        finally:
            await self._session.teardown()
            await self._bus_conn.disconnect()

    @staticmethod
    def _stop_on_signals() -> asyncio.Event:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop.set)
        return stop
