"""Command-line interface for the API tester.

Provides argument parsing and main entry point for running tests
from the command line.
"""

import argparse
import logging
import signal
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from api_tester.auth import EntraIdTokenAcquirer
from api_tester.client import HttpApiInvoker
from api_tester.config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    load_config,
    load_settings,
)
from api_tester.deadline import CancelToken, RunCancelled
from api_tester.reporters import ConsoleReporter, JsonReporter, Reporter
from api_tester.runner import EndpointRunner
from api_tester.tester import EndpointTester

log = logging.getLogger("api_tester")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="api-tester",
        description="Test that Entra ID protected API endpoints are reachable and authorized",
    )

    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH})",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show progress of each test stage",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-endpoint output, show only summary",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Write results as JSON to stdout instead of console output",
    )

    parser.add_argument(
        "--auth-timeout",
        type=float,
        metavar="SECONDS",
        help="Deadline for each token request (default: 30, env: API_TESTER_AUTH_TIMEOUT)",
    )

    parser.add_argument(
        "--request-timeout",
        type=float,
        metavar="SECONDS",
        help="Deadline for each API request (default: 30, env: API_TESTER_REQUEST_TIMEOUT)",
    )

    parser.add_argument(
        "--authority",
        metavar="URL",
        help="Identity provider base URL (env: API_TESTER_AUTHORITY)",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level, logs go to stderr (default: WARNING)",
    )

    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    """Send diagnostic logs to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def create_reporter(args: argparse.Namespace) -> Reporter:
    """Create the reporter selected by the command-line arguments."""
    if args.json:
        return JsonReporter()
    return ConsoleReporter(quiet=args.quiet)


def _raise_cancelled(cancel_token: CancelToken):
    def handler(signum, frame):
        cancel_token.cancel()
        raise RunCancelled(f"received signal {signum}")

    return handler


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 when every endpoint passed, 1 otherwise
    """
    try:
        return _run(parse_args(argv))
    except KeyboardInterrupt:
        print("Run aborted", file=sys.stderr)
        return 1


def _run(args: argparse.Namespace) -> int:
    configure_logging(args.log_level)

    # Load configuration
    try:
        settings = load_settings(
            auth_timeout=args.auth_timeout,
            request_timeout=args.request_timeout,
            authority=args.authority,
            verbose=args.verbose,
        )
        endpoints = load_config(args.config)
    except ConfigError as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    reporter = create_reporter(args)
    cancel_token = CancelToken()
    previous_handler = signal.signal(signal.SIGTERM, _raise_cancelled(cancel_token))

    try:
        with EntraIdTokenAcquirer(authority=settings.authority) as acquirer, \
                HttpApiInvoker() as invoker:
            tester = EndpointTester(
                acquirer,
                invoker,
                settings=settings,
                reporter=reporter,
                cancel_token=cancel_token,
            )
            runner = EndpointRunner(endpoints, tester, reporter=reporter, cancel_token=cancel_token)
            result = runner.run()
    except (KeyboardInterrupt, RunCancelled):
        cancel_token.cancel()
        print("Run aborted", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
