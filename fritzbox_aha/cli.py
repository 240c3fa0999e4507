"""
Command-line interface for the FRITZ!Box AHA client.

Provides argument parsing and main execution flow.
"""

import argparse
import getpass
import sys

from lxml import etree

from fritzbox_aha.config import (
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_PORT,
    DEFAULT_USER,
    REQUEST_TIMEOUT,
)
from fritzbox_aha.exceptions import AhaError
from fritzbox_aha.logging_setup import log, setup_logging
from fritzbox_aha.network.client import server_fingerprint
from fritzbox_aha.session import AhaSession

# command name -> (AhaSession method, needs an AIN)
COMMANDS = {
    "switches":    ("get_switch_list", False),
    "devices":     ("get_device_list_infos", False),
    "on":          ("set_switch_on", True),
    "off":         ("set_switch_off", True),
    "toggle":      ("set_switch_toggle", True),
    "state":       ("get_switch_state", True),
    "power":       ("get_switch_power", True),
    "energy":      ("get_switch_energy", True),
    "name":        ("get_switch_name", True),
    "temperature": ("get_temperature", True),
}


def parse_args(argv: "list[str] | None" = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="FRITZ!Box home-automation (AHA) client.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Credentials can also be provided via the FRITZ_USER and "
            "FRITZ_PASSWORD env vars.\n"
            "If the password is not supplied and not in the environment, "
            "you will be prompted for it."
        ),
    )
    parser.add_argument(
        "--host", default=DEFAULT_HOST,
        help=f"Gateway hostname or IP (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--port", type=int, default=DEFAULT_PORT,
        help=f"HTTPS port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--user", default=DEFAULT_USER,
        help="FRITZ!Box username (empty for password-only setups)",
    )
    parser.add_argument(
        "--password", default=DEFAULT_PASSWORD,
        help="FRITZ!Box password (overrides FRITZ_PASSWORD env var)",
    )
    tls = parser.add_mutually_exclusive_group()
    tls.add_argument(
        "--verify-ssl", dest="verify_ssl", action="store_true", default=False,
        help="Verify the certificate against the system trust store",
    )
    tls.add_argument(
        "--ca-bundle", default=None,
        help="Verify the certificate against this CA bundle",
    )
    tls.add_argument(
        "--fingerprint", default=None,
        help="Pin the gateway certificate by its SHA-256 fingerprint",
    )
    parser.add_argument(
        "--timeout", type=float, default=REQUEST_TIMEOUT,
        help=f"Per-request timeout in seconds (default: {REQUEST_TIMEOUT})",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "command", choices=sorted([*COMMANDS, "fingerprint"]),
        help="Operation to run",
    )
    parser.add_argument(
        "ain", nargs="?", default=None,
        help="Actor identification number for device commands",
    )
    return parser.parse_args(argv)


def _render(result) -> str:
    if isinstance(result, etree._Element):
        return etree.tostring(result, pretty_print=True, encoding="unicode")
    if isinstance(result, list):
        return "\n".join(result)
    return str(result)


def run(args: argparse.Namespace) -> int:
    if args.command == "fingerprint":
        print(server_fingerprint(args.host, args.port, timeout=args.timeout))
        return 0

    method_name, needs_ain = COMMANDS[args.command]
    if needs_ain and not args.ain:
        log.error("Command %r needs an AIN", args.command)
        return 2

    verify = args.ca_bundle or args.verify_ssl
    with AhaSession(
        host=args.host,
        port=args.port,
        username=args.user,
        password=args.password,
        verify_ssl=verify,
        fingerprint=args.fingerprint,
        timeout=args.timeout,
    ) as box:
        method = getattr(box, method_name)
        result = method(args.ain) if needs_ain else method()
    print(_render(result))
    return 0


def main(argv: "list[str] | None" = None) -> None:
    """
    Main entry point for the CLI.
    """
    args = parse_args(argv)

    setup_logging(debug=args.debug)

    if not (args.verify_ssl or args.ca_bundle or args.fingerprint):
        log.debug("TLS certificate verification is disabled (device-local certificate)")

    if args.command != "fingerprint" and not args.password:
        args.password = getpass.getpass("FRITZ!Box password: ")

    try:
        code = run(args)
    except AhaError as exc:
        log.error("%s", exc)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
