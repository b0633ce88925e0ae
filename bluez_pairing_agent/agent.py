"""D-Bus pairing agent with operator interaction.

Implements the org.bluez.Agent1 interface. Secrets requested by BlueZ
are answered from fixed values; confirmations and authorizations are
put to the operator through a PromptGateway. A refusal is returned as
a D-Bus error reply, which is how BlueZ expects "no" to be signalled.

Callbacks that prompt are coroutines. dbus_fast runs each one as its
own task, so other calls are dispatched while one waits on the
operator.
"""

import asyncio
import logging
from typing import Awaitable

from dbus_fast import introspection as intr
from dbus_fast.service import ServiceInterface, method

from .constants import AGENT_INTERFACE, AGENT_PATH
from .directory import DeviceDirectory
from .exceptions import AuthenticationCanceledError, AuthenticationRejectedError
from .policy import AuthorizationPolicy
from .prompt import PromptGateway, PromptReply

logger = logging.getLogger(__name__)


class AuthenticationAgent(ServiceInterface):
    """BlueZ Agent1 implementation.

    RequestPinCode and RequestPasskey return the configured secrets
    without asking anyone. Display callbacks show the secret to the
    operator. RequestConfirmation and RequestAuthorization ask the
    operator and mark the device trusted on accept. AuthorizeService
    asks with a third "always" choice that is remembered in the
    session's AuthorizationPolicy.

    Cancel discards every prompt that is still waiting: the affected
    callbacks fail with org.bluez.Error.Canceled and a late answer is
    ignored.

    The D-Bus members delegate to snake_case methods of the same
    name, which can be called directly.

    Args:
        pin_code: The PIN code returned on RequestPinCode.
        passkey: The passkey returned on RequestPasskey.
        gateway: Where dialogs and questions go.
        directory: Device name lookup and trust.
        policy: The sticky service authorization flag.
    """

    def __init__(
        self,
        pin_code: str,
        passkey: int,
        gateway: PromptGateway,
        directory: DeviceDirectory,
        policy: AuthorizationPolicy,
    ) -> None:
        super().__init__(AGENT_INTERFACE)
        self._pin_code = pin_code
        self._passkey = passkey
        self._gateway = gateway
        self._directory = directory
        self._policy = policy
        # prompt future -> discarded by Cancel
        self._waiting: dict[asyncio.Future, bool] = {}
        # bumped by every Cancel
        self._cancel_generation = 0

    @property
    def pending_prompts(self) -> int:
        """Number of callbacks currently waiting on the operator."""
        return len(self._waiting)

    def introspection_node(self, path: str = AGENT_PATH) -> intr.Node:
        """Builds the introspection descriptor for the exported object.

        Args:
            path: The object path the agent is exported on.

        Returns:
            A node with the standard interfaces and org.bluez.Agent1.
        """
        node = intr.Node.default(path)
        node.interfaces.append(self.introspect())
        return node

    # -- org.bluez.Agent1 --------------------------------------------------

    @method()
    def RequestPinCode(self, device: "o") -> "s":  # noqa: N802
        return self.request_pin_code(device)

    @method()
    def RequestPasskey(self, device: "o") -> "u":  # noqa: N802
        return self.request_passkey(device)

    @method()
    async def DisplayPinCode(self, device: "o", pincode: "s") -> None:  # noqa: N802
        await self.display_pin_code(device, pincode)

    @method()
    async def DisplayPasskey(self, device: "o", passkey: "u", entered: "q") -> None:  # noqa: N802
        await self.display_passkey(device, passkey, entered)

    @method()
    async def RequestConfirmation(self, device: "o", passkey: "u") -> None:  # noqa: N802
        await self.request_confirmation(device, passkey)

    @method()
    async def RequestAuthorization(self, device: "o") -> None:  # noqa: N802
        await self.request_authorization(device)

    @method()
    async def AuthorizeService(self, device: "o", uuid: "s") -> None:  # noqa: N802
        await self.authorize_service(device, uuid)

    @method()
    def Cancel(self) -> None:  # noqa: N802
        self.cancel()

    @method()
    def Release(self) -> None:  # noqa: N802
        self.release()

    # -- implementation ----------------------------------------------------

    def request_pin_code(self, device: str) -> str:
        """Called by BlueZ for legacy (BR/EDR) PIN authentication.

        Args:
            device: The D-Bus object path of the device being paired.

        Returns:
            The configured PIN code.
        """
        logger.debug("PinCode requested for device: %s", device)
        return self._pin_code

    def request_passkey(self, device: str) -> int:
        """Called by BlueZ for passkey entry.

        Args:
            device: The D-Bus object path of the device being paired.

        Returns:
            The configured passkey as uint32.
        """
        logger.debug("Passkey requested for device: %s", device)
        return self._passkey

    async def display_pin_code(self, device: str, pincode: str) -> None:
        """Shows the PIN code the remote device must enter.

        Raises:
            DeviceLookupError: If the device cannot be resolved.
        """
        name = await self._directory.resolve_device_name(device)
        await self._gateway.show_message(
            "pincode",
            "Pin Code",
            f"The pincode for {name} is:\n\n{pincode}",
        )

    async def display_passkey(self, device: str, passkey: int, entered: int) -> None:
        """Shows the passkey, with typing progress once digits arrive.

        Raises:
            DeviceLookupError: If the device cannot be resolved.
        """
        name = await self._directory.resolve_device_name(device)
        message = f"The passkey for {name} is:\n\n{passkey:06d}"
        if entered > 0:
            message += f"\n\nYou have entered {entered}"
        await self._gateway.show_message("passkey-display", "Passkey Display", message)

    async def request_confirmation(self, device: str, passkey: int) -> None:
        """Numeric comparison: the operator checks the passkey matches.

        Raises:
            DeviceLookupError: If the device cannot be resolved or trusted.
            AuthenticationRejectedError: If the operator declines.
        """
        name = await self._resolve_before_prompt(device)
        reply = await self._wait_for(
            self._gateway.ask_confirmation(
                "passkey-confirm",
                "Passkey Confirmation",
                f"Confirm passkey for {name} is \n\n{passkey:06d}",
            )
        )
        await self._accept_or_reject(device, reply)

    async def request_authorization(self, device: str) -> None:
        """Just Works pairing: the operator approves the device.

        Raises:
            DeviceLookupError: If the device cannot be resolved or trusted.
            AuthenticationRejectedError: If the operator declines.
        """
        name = await self._resolve_before_prompt(device)
        reply = await self._wait_for(
            self._gateway.ask_confirmation(
                "pairing-confirm",
                "Pairing Confirmation",
                f"Confirm pairing with {name}",
            )
        )
        await self._accept_or_reject(device, reply)

    async def authorize_service(self, device: str, uuid: str) -> None:
        """Authorizes a service connection, once or for good.

        Raises:
            AuthenticationRejectedError: Unless the reply is "y" or "a".
        """
        if self._policy.always:
            logger.debug("Service %s for %s authorized by policy", uuid, device)
            return

        reply = await self._wait_for(
            self._gateway.ask_freeform(f"Authorize service {uuid} (y/n/a)")
        )
        if reply == PromptReply.ALWAYS:
            self._policy.grant_always()
        elif reply != PromptReply.ACCEPT:
            logger.debug("Service %s for %s rejected", uuid, device)
            raise AuthenticationRejectedError()
        logger.debug("Service %s for %s authorized", uuid, device)

    def cancel(self) -> None:
        """Called by BlueZ when a request it made was cancelled."""
        self._cancel_generation += 1
        logger.debug("Request cancelled, discarding %d pending prompt(s)", len(self._waiting))
        for prompt in self._waiting:
            self._waiting[prompt] = True
            prompt.cancel()

    def release(self) -> None:
        """Called by BlueZ when the agent is unregistered."""
        logger.debug("Agent released")

    async def _resolve_before_prompt(self, device: str) -> str:
        """Resolves the device name for a question about to be asked.

        Raises:
            DeviceLookupError: If the device cannot be resolved.
            AuthenticationCanceledError: If Cancel arrived during the lookup.
        """
        generation = self._cancel_generation
        name = await self._directory.resolve_device_name(device)
        if self._cancel_generation != generation:
            logger.debug("Request for %s cancelled before prompting", device)
            raise AuthenticationCanceledError()
        return name

    async def _wait_for(self, reply: Awaitable[str]) -> str:
        """Suspends the callback until the operator answers.

        Raises:
            AuthenticationCanceledError: If Cancel arrives first.
        """
        prompt = asyncio.ensure_future(reply)
        self._waiting[prompt] = False
        try:
            return await prompt
        except asyncio.CancelledError:
            if self._waiting.get(prompt):
                raise AuthenticationCanceledError() from None
            raise
        finally:
            self._waiting.pop(prompt, None)

    async def _accept_or_reject(self, device: str, reply: str) -> None:
        if reply != PromptReply.ACCEPT:
            logger.debug("Operator rejected %s", device)
            raise AuthenticationRejectedError()
        await self._directory.set_trusted(device, True)
