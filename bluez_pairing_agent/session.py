"""Agent session: export, registration and teardown.

An AgentSession is the one live pairing agent of the process. The
application constructs it at startup, calls setup() before anything
else and teardown() on the way out. Only one session can be set up at
a time.
"""

import logging

from dbus_fast import Message, MessageType

from .agent import AuthenticationAgent
from .bus import BusConnection
from .constants import (
    AGENT_CAPABILITY,
    AGENT_MANAGER_INTERFACE,
    AGENT_MANAGER_PATH,
    AGENT_PATH,
    BLUEZ_SERVICE,
    DEFAULT_PASSKEY,
    DEFAULT_PIN_CODE,
)
from .directory import BluezDeviceDirectory, DeviceDirectory
from .exceptions import RegistrationError
from .policy import AuthorizationPolicy
from .prompt import PromptGateway

logger = logging.getLogger(__name__)


class AgentSession:
    """Owns the exported agent and its BlueZ registration.

    The bus connection is shared: the session connects it if needed
    but never disconnects it.

    Example:
        session = AgentSession(bus_conn, gateway)
        await session.setup()
        ...
        await session.teardown()

    Args:
        bus_conn: The shared D-Bus connection.
        gateway: Where the agent sends dialogs and questions.
        directory: Device lookup; BluezDeviceDirectory on bus_conn by default.
        pin_code: The fixed PIN code.
        passkey: The fixed passkey.
    """

    _active: "AgentSession | None" = None

    def __init__(
        self,
        bus_conn: BusConnection,
        gateway: PromptGateway,
        directory: DeviceDirectory | None = None,
        pin_code: str = DEFAULT_PIN_CODE,
        passkey: int = DEFAULT_PASSKEY,
    ) -> None:
        self._bus_conn = bus_conn
        self._policy = AuthorizationPolicy()
        self._agent = AuthenticationAgent(
            pin_code=pin_code,
            passkey=passkey,
            gateway=gateway,
            directory=directory or BluezDeviceDirectory(bus_conn),
            policy=self._policy,
        )
        self._exported = False
        self._registered = False

    @property
    def agent(self) -> AuthenticationAgent:
        return self._agent

    @property
    def policy(self) -> AuthorizationPolicy:
        return self._policy

    @property
    def is_registered(self) -> bool:
        """True while BlueZ knows this agent."""
        return self._registered

    async def setup(self) -> None:
        """Connects, exports the agent and registers it as default.

        Raises:
            RuntimeError: If another session is already set up.
            BusConnectionError: If the system bus cannot be reached.
            RegistrationError: If BlueZ rejects RegisterAgent or
                RequestDefaultAgent.
        """
        if AgentSession._active is not None:
            raise RuntimeError("An agent session is already active")

        await self._bus_conn.connect()
        bus = self._bus_conn.bus

        bus.export(AGENT_PATH, self._agent)
        self._exported = True
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Agent exported at %s:\n%s",
                AGENT_PATH,
                self._agent.introspection_node().tostring(),
            )

        try:
            await self._call_agent_manager(
                "RegisterAgent", "os", [AGENT_PATH, AGENT_CAPABILITY]
            )
            self._registered = True
            await self._call_agent_manager("RequestDefaultAgent", "o", [AGENT_PATH])
        except RegistrationError:
            await self.teardown()
            raise

        AgentSession._active = self
        logger.info("Agent registered at %s (%s)", AGENT_PATH, AGENT_CAPABILITY)

    async def teardown(self) -> None:
        """Unregisters and unexports the agent.

        Safe to call more than once. Failures are logged, not raised.
        """
        if self._registered:
            self._registered = False
            try:
                await self._call_agent_manager("UnregisterAgent", "o", [AGENT_PATH])
                logger.info("Agent unregistered")
            except Exception as exc:
                logger.warning("Agent unregister failed: %s", exc)

        if self._exported:
            self._exported = False
            try:
                self._bus_conn.bus.unexport(AGENT_PATH)
            except Exception as exc:
                logger.warning("Agent unexport failed: %s", exc)

        if AgentSession._active is self:
            AgentSession._active = None

    async def _call_agent_manager(self, member: str, signature: str, body: list) -> None:
        """Calls org.bluez.AgentManager1 with a direct message.

        AgentManager1 is not always visible via introspection, so no
        proxy object is used.

        Raises:
            RegistrationError: On an error reply or a failed call.
        """
        try:
            reply = await self._bus_conn.bus.call(
                Message(
                    destination=BLUEZ_SERVICE,
                    path=AGENT_MANAGER_PATH,
                    interface=AGENT_MANAGER_INTERFACE,
                    member=member,
                    signature=signature,
                    body=body,
                )
            )
        except Exception as exc:
            raise RegistrationError(f"{member} failed: {exc}") from exc

        if reply.message_type == MessageType.ERROR:
            raise RegistrationError(
                f"{member} failed: {reply.error_name}: {reply.body}"
            )
        logger.debug("%s succeeded", member)
