from __future__ import annotations

import argparse
from typing import List

from rich.table import Table
from rich.text import Text

from auth import (
    EXIT_AUTH_FAILED,
    EXIT_AUTH_INVALID,
    AuthError,
    AuthHealthResult,
    AuthHealthStatus,
    check,
    check_all,
    get_provider,
    provider_names,
)
from branding import SYMBOLS
from cli.common import dispatch_subparser_help
from env import ConfigError, get_env, get_logging_env
from logger import get_logger
from logger.console import UI_CONSOLE

_STYLE = {
    AuthHealthStatus.OK: ("green", SYMBOLS.OK),
    AuthHealthStatus.OK_API_QUOTA: ("yellow", SYMBOLS.WARN),
    AuthHealthStatus.AUTH_INVALID: ("red", SYMBOLS.FAIL),
    AuthHealthStatus.FAILED: ("red", SYMBOLS.FAIL),
}


# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------


def build_auth_parser(subparsers: argparse._SubParsersAction) -> None:
    auth = subparsers.add_parser(
        "auth",
        help="Check OAuth health or log in to a provider",
    )
    sub = auth.add_subparsers(dest="auth_cmd", required=True)

    help_p = sub.add_parser("help", help="Show help for auth")
    help_p.add_argument("path", nargs="*", help="Subcommand path")
    help_p.set_defaults(action="help", _help_parser=auth)

    check_p = sub.add_parser("check", help="Make one cheap authenticated call")
    check_p.add_argument(
        "provider",
        nargs="?",
        choices=provider_names() + ["all"],
        help="Provider, or 'all' (default: REQUESTARR_PROVIDER)",
    )
    check_p.set_defaults(action="check")

    login_p = sub.add_parser("login", help="Run the browser login and cache the token")
    login_p.add_argument(
        "provider",
        nargs="?",
        choices=provider_names(),
        help="Provider (default: REQUESTARR_PROVIDER)",
    )
    login_p.set_defaults(action="login")

    for p in (check_p, login_p):
        p.add_argument("--verbose", action="store_true", help="Verbose console output")
        p.add_argument("--quiet", action="store_true", help="Suppress console output")


# ------------------------------------------------------------
# Handler
# ------------------------------------------------------------


def handle_auth(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    try:
        provider = args.provider or get_env().provider
    except ConfigError as e:
        get_logger("auth").error(f"Configuration error: {e}")
        return EXIT_AUTH_FAILED

    if args.action == "login":
        return _handle_login(provider)

    if args.action == "check":
        results = check_all() if provider == "all" else [check(provider)]
        return _report_checks(results)

    raise RuntimeError(f"Unknown auth action: {args.action}")


def _say(msg) -> None:
    if not get_logging_env().quiet:
        UI_CONSOLE.print(msg)


def _handle_login(provider_name: str) -> int:
    logger = get_logger("auth")

    try:
        get_provider(provider_name).ensure_ready()
    except AuthError as e:
        logger.error(f"Login failed: {e}")
        _say(Text(f"{SYMBOLS.FAIL} {e}", style="red"))
        return e.exit_code

    logger.info(f"{provider_name} token cached")
    _say(Text(f"{SYMBOLS.AUTH} {provider_name}: token cached", style="green"))
    return 0


def _report_checks(results: List[AuthHealthResult]) -> int:
    verbose = get_logging_env().verbose

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Detail")

    for r in results:
        colour, symbol = _STYLE[r.status]
        detail = r.message
        if verbose and r.status == AuthHealthStatus.OK:
            detail += " (token valid and usable)"
        table.add_row(r.provider, Text(f"{symbol} {r.status.value}", style=colour), detail)

    _say(table)

    # worst result wins: invalid credentials over other failures
    codes = [r.exit_code for r in results]
    if EXIT_AUTH_INVALID in codes:
        return EXIT_AUTH_INVALID
    return max(codes, default=0)
