"""Entry point for bluez-pairing-agent.

Parses CLI arguments, configures logging and runs the agent.
"""

import argparse
import asyncio
import logging
import sys

from .app import AgentApp
from .constants import DEFAULT_PASSKEY, DEFAULT_PIN_CODE, PASSKEY_MAX, TOOL_NAME, VERSION


def passkey_type(value: str) -> int:
    """Parses a passkey argument.

    Args:
        value: The raw argument.

    Returns:
        The passkey as an integer.

    Raises:
        argparse.ArgumentTypeError: If it is not a number in 0..999999.
    """
    try:
        passkey = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid passkey: {value!r}")
    if not 0 <= passkey <= PASSKEY_MAX:
        raise argparse.ArgumentTypeError(f"passkey must be between 0 and {PASSKEY_MAX}")
    return passkey


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parses command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog=TOOL_NAME,
        description="Interactive BlueZ pairing agent.",
    )
    parser.add_argument(
        "--pin-code",
        metavar="PIN",
        default=DEFAULT_PIN_CODE,
        help=f"PIN code returned for legacy pairing (default: {DEFAULT_PIN_CODE})",
    )
    parser.add_argument(
        "--passkey",
        metavar="PASSKEY",
        type=passkey_type,
        default=DEFAULT_PASSKEY,
        help=f"Passkey returned for passkey entry (default: {DEFAULT_PASSKEY})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output for debugging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{TOOL_NAME} v{VERSION}",
    )
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    """Configures the logging module.

    Args:
        verbose: When True, sets log level to DEBUG.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


def main() -> None:
    """CLI entry point for bluez-pairing-agent."""
    args = parse_args()
    configure_logging(args.verbose)

    app = AgentApp(
        pin_code=args.pin_code,
        passkey=args.passkey,
        verbose=args.verbose,
    )

    exit_code = asyncio.run(app.run())
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
