"""Prompt gateway abstraction and the terminal implementation.

Defines the PromptGateway protocol through which the agent talks to
the operator, and TerminalPromptGateway, which shows dialogs on
stdout and reads replies from stdin.

Reading a reply blocks, so every read runs on its own worker thread
and comes back to the event loop through a one-shot future. The
D-Bus dispatcher keeps serving other calls while a prompt is open.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Callable, Protocol, runtime_checkable

from .output import OutputFormatter

logger = logging.getLogger(__name__)


class PromptReply(str, Enum):
    """Single-character operator replies."""

    ACCEPT = "y"
    REJECT = "n"
    ALWAYS = "a"


@runtime_checkable
class PromptGateway(Protocol):
    """Protocol for presenting messages and questions to the operator.

    Methods are async so implementations can wait on the operator for
    as long as it takes without holding up the event loop.
    """

    async def show_message(self, dialog_id: str, title: str, body: str) -> None:
        """Shows an informational message. Does not wait for a reply."""
        ...

    async def ask_confirmation(self, dialog_id: str, title: str, body: str) -> str:
        """Asks a yes/no question.

        Returns:
            The operator's reply, "y" for accept.
        """
        ...

    async def ask_freeform(self, prompt: str) -> str:
        """Asks for free text.

        Returns:
            The operator's reply with surrounding whitespace removed.
        """
        ...


def _deliver(future: asyncio.Future, line: str) -> None:
    if not future.done():
        future.set_result(line)


def _fail(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)


class TerminalPromptGateway:
    """Shows dialogs on the terminal and reads replies from stdin.

    Only one question is on screen at a time. When a caller stops
    waiting (BlueZ cancelled the request), the line being read is
    still consumed by the next question and thrown away, so a late
    answer never lands on a different request.

    Args:
        output: The output formatter used for dialogs and prompts.
        reader: Blocking line reader, ``input`` by default.
    """

    def __init__(
        self,
        output: OutputFormatter,
        reader: Callable[[], str] = input,
    ) -> None:
        self._output = output
        self._reader = reader
        self._lock = asyncio.Lock()
        self._inflight: asyncio.Future | None = None

    async def show_message(self, dialog_id: str, title: str, body: str) -> None:
        logger.debug("Showing dialog %s", dialog_id)
        self._output.dialog(title, body)

    async def ask_confirmation(self, dialog_id: str, title: str, body: str) -> str:
        async with self._lock:
            logger.debug("Asking confirmation %s", dialog_id)
            self._output.dialog(title, body)
            reply = await self._read_line("Accept? (y/n): ", dialog_id)
        return reply.strip().lower()[:1]

    async def ask_freeform(self, prompt: str) -> str:
        async with self._lock:
            reply = await self._read_line(f"{prompt}: ", "freeform")
        return reply.strip()

    async def _read_line(self, prompt: str, name: str) -> str:
        """Reads one line on a dedicated worker thread.

        Args:
            prompt: Text printed before reading.
            name: Suffix for the worker thread name.

        Returns:
            The line read, or an empty string at end of input.
        """
        if self._inflight is not None and not self._inflight.done():
            self._output.prompt("Previous request was cancelled, press Enter to continue ")
            await asyncio.shield(self._inflight)

        loop = asyncio.get_running_loop()
        line_ready: asyncio.Future = loop.create_future()
        self._inflight = line_ready

        def worker() -> None:
            try:
                line = self._reader()
            except EOFError:
                line = ""
            except Exception as exc:
                loop.call_soon_threadsafe(_fail, line_ready, exc)
                return
            loop.call_soon_threadsafe(_deliver, line_ready, line)

        self._output.prompt(prompt)
        threading.Thread(target=worker, name=f"prompt-{name}", daemon=True).start()
        # Shielded so a cancelled caller leaves the read in flight for
        # the next question to drain.
        return await asyncio.shield(line_ready)
