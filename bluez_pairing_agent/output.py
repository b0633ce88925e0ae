"""Terminal output formatter.

Prints the startup header, agent dialogs and prompts in the aligned
key-value style of the tool. Separates presentation from agent logic.
"""

import logging
import sys

from .constants import TOOL_NAME, VERSION

logger = logging.getLogger(__name__)


class OutputFormatter:
    """Formats and prints structured terminal output.

    Produces aligned key-value pairs such as:
        bluez-pairing-agent v1.0.0
        Agent:    /org/bluez/agent/bluetuith
        Mode:     KeyboardDisplay
        Status:   registered as default agent

    Args:
        verbose: When True, additional debug information is printed.
    """

    LABEL_WIDTH: int = 10

    def __init__(self, verbose: bool = False) -> None:
        self._verbose = verbose

    def header(self, agent_path: str, capability: str) -> None:
        """Prints the tool header with the agent's bus identity.

        Args:
            agent_path: The object path the agent is exported on.
            capability: The IO capability registered with BlueZ.
        """
        self._print(f"{TOOL_NAME} v{VERSION}")
        self._field("Agent", agent_path)
        self._field("Mode", capability)

    def field(self, label: str, value: str) -> None:
        """Prints a labeled field in the output.

        Args:
            label: The field label (e.g. 'Status').
            value: The field value.
        """
        self._field(label, value)

    def dialog(self, title: str, body: str) -> None:
        """Prints a titled message block.

        Args:
            title: The dialog title (e.g. 'Pin Code').
            body: The message text, possibly spanning several lines.
        """
        self._print("")
        self._print(f"[{title}]")
        for line in body.splitlines():
            self._print(f"  {line}" if line else "")

    def error(self, message: str) -> None:
        """Prints an error message to stderr.

        Args:
            message: The error message.
        """
        print(f"Error:    {message}", file=sys.stderr)

    def verbose(self, message: str) -> None:
        """Prints a message only when verbose mode is enabled.

        Args:
            message: The debug message.
        """
        if self._verbose:
            self._print(f"  [{message}]")
            logger.debug(message)

    def prompt(self, message: str) -> None:
        """Prints a prompt message without a newline.

        Args:
            message: The prompt text.
        """
        print(message, end="", flush=True)

    def _field(self, label: str, value: str) -> None:
        padded_label = f"{label}:".ljust(self.LABEL_WIDTH)
        self._print(f"{padded_label}{value}")

    def _print(self, message: str) -> None:
        print(message, flush=True)
