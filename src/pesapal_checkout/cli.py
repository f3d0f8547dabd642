"""
Command-line interface for exercising the Pesapal checkout APIs.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Iterable, Sequence, TextIO, Tuple

import requests

from .api import create_ipn_log, create_pesapal_client
from .core.client import PesapalClient
from .core.config import ConfigError, DEFAULT_IPN_LOG_PATH, load_pesapal_config
from .core.environment import build_environment
from .core.errors import PesapalError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def _read_text(path: str, stdin: TextIO) -> str:
    if path == "-":
        return stdin.read()
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pesapal-checkout",
        description="Exercise the Pesapal hosted-checkout API from the command line",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PESAPAL_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument(
        "--cache-tokens",
        action="store_true",
        help="Reuse access tokens until they near expiry",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("token", help="Request an access token")

    register = commands.add_parser("register-ipn", help="Register an IPN callback URL")
    register.add_argument("url", help="Publicly reachable URL Pesapal should notify")
    register.add_argument(
        "--type",
        dest="ipn_notification_type",
        choices=("POST", "GET"),
        default="POST",
        help="HTTP method Pesapal uses for notifications (default: POST)",
    )

    commands.add_parser("list-ipns", help="List registered IPN URLs")

    order = commands.add_parser("submit-order", help="Submit an order request")
    order.add_argument(
        "order_file",
        help="JSON file with the camelCase order (use - for stdin)",
    )
    order.add_argument(
        "--strict-dates",
        action="store_true",
        help="Reject subscription dates that are not YYYY-MM-DD",
    )

    status = commands.add_parser("status", help="Query a transaction's status")
    status.add_argument("order_tracking_id")

    cancel = commands.add_parser("cancel", help="Cancel an order")
    cancel.add_argument("order_tracking_id")

    record = commands.add_parser("record-ipn", help="Append a raw callback body to the IPN log")
    record.add_argument(
        "body_file",
        nargs="?",
        default="-",
        help="File holding the raw body (default: stdin)",
    )
    record.add_argument("--log-path", help="IPN log file (default: PESAPAL_IPN_LOG_PATH)")

    history = commands.add_parser("ipn-log", help="Print the stored IPN callbacks")
    history.add_argument("--log-path", help="IPN log file (default: PESAPAL_IPN_LOG_PATH)")
    history.add_argument(
        "--latest-first",
        action="store_true",
        help="Show the most recent callback first",
    )
    return parser


def _emit(result: Any, stdout: TextIO) -> None:
    stdout.write(json.dumps(result, indent=2, ensure_ascii=False))
    stdout.write("\n")


def _client_action(args: argparse.Namespace, stdin: TextIO) -> Callable[[PesapalClient], Any]:
    if args.command == "token":
        return lambda client: client.request_access_token()
    if args.command == "register-ipn":
        return lambda client: client.register_ipn(args.url, args.ipn_notification_type)
    if args.command == "list-ipns":
        return lambda client: client.list_ipns()
    if args.command == "submit-order":
        order = json.loads(_read_text(args.order_file, stdin))
        return lambda client: client.submit_order(order)
    if args.command == "status":
        return lambda client: client.get_transaction_status(args.order_tracking_id)
    if args.command == "cancel":
        return lambda client: client.cancel_order(args.order_tracking_id)
    raise ValueError(f"Unknown command {args.command}")


def _run_log_command(
    args: argparse.Namespace,
    overrides: dict[str, str],
    stdin: TextIO,
    stdout: TextIO,
) -> int:
    path = args.log_path
    if path is None:
        environment = build_environment(env_file=args.env_file, overrides=overrides)
        path = environment.get("PESAPAL_IPN_LOG_PATH") or DEFAULT_IPN_LOG_PATH
    log = create_ipn_log(path=path)

    try:
        if args.command == "record-ipn":
            entry = log.append(_read_text(args.body_file, stdin))
            _emit(entry.to_dict(), stdout)
        else:
            entries = log.read_latest_first() if args.latest_first else log.read()
            _emit([entry.to_dict() for entry in entries], stdout)
    except OSError as exc:
        logging.error("IPN log at %s is unavailable: %s", path, exc)
        return EXIT_FAILURE
    return EXIT_OK


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    session: requests.Session | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())

    if args.command in ("record-ipn", "ipn-log"):
        return _run_log_command(args, overrides, stdin, stdout)

    try:
        config = load_pesapal_config(
            env_file=args.env_file,
            overrides=overrides,
            cache_tokens=True if args.cache_tokens else None,
        )
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    try:
        action = _client_action(args, stdin)
    except (OSError, ValueError) as exc:
        logging.error("Could not read the order: %s", exc)
        return EXIT_FAILURE

    client = create_pesapal_client(
        config=config,
        session=session or requests.Session(),
        strict_dates=getattr(args, "strict_dates", False),
    )
    logging.info("Using Pesapal %s environment at %s", config.environment, config.base_url)

    try:
        result = action(client)
    except PesapalError as exc:
        logging.error("%s failed: %s", args.command, exc)
        return EXIT_FAILURE

    _emit(result, stdout)
    return EXIT_OK


def main() -> None:
    sys.exit(run_cli())
