from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from rich.markup import escape
from rich.table import Table

from branding import SYMBOLS
from cli.common import dispatch_subparser_help
from env import ConfigError, get_env
from logger.console import UI_CONSOLE

EXIT_CONFIG_INVALID = 20


def build_env_parser(subparsers: argparse._SubParsersAction) -> None:
    env = subparsers.add_parser("env", help="Inspect and validate configuration")
    sub = env.add_subparsers(dest="env_cmd", required=True)

    help_p = sub.add_parser("help", help="Show help for env")
    help_p.add_argument("path", nargs="*", help="Subcommand path")
    help_p.set_defaults(action="help", _help_parser=env)

    dump_p = sub.add_parser("dump", help="Show resolved runtime environment")
    dump_p.set_defaults(action="dump")

    check_p = sub.add_parser(
        "check", help="Validate that a sync could start (no network calls)"
    )
    check_p.set_defaults(action="check")


def handle_env(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    if args.action == "dump":
        return handle_env_dump()

    if args.action == "check":
        return handle_env_check()

    raise RuntimeError(f"Unknown env action: {args.action}")


def handle_env_dump() -> int:
    try:
        env = get_env()
    except ConfigError as e:
        UI_CONSOLE.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return EXIT_CONFIG_INVALID

    UI_CONSOLE.print("\n[bold]Runtime Environment[/bold]")

    for section, values in env.as_dict().items():
        table = Table(title=section, title_justify="left", show_header=False, box=None)
        table.add_column("key", style="cyan", min_width=20)
        table.add_column("value")
        for key, value in values.items():
            table.add_row(key, escape(str(value)))
        UI_CONSOLE.print(table)

    UI_CONSOLE.print()
    return 0


def sync_problems() -> List[str]:
    """Everything that would stop `sync` before its first API call."""
    try:
        env = get_env()
        env.require_sync_inputs()
    except ConfigError as e:
        return [str(e)]

    problems = []
    csv_path = Path(env.csv_path).expanduser()
    if not csv_path.is_file():
        problems.append(f"Request CSV not found: {csv_path}")
    if env.rate_limit > 0 and env.rate_window <= 0:
        problems.append("REQUESTARR_RATE_WINDOW_SEC must be positive when a rate limit is set")
    return problems


def handle_env_check() -> int:
    problems = sync_problems()
    if not problems:
        UI_CONSOLE.print(f"[green]{SYMBOLS.OK} Configuration OK[/green]")
        return 0

    for p in problems:
        UI_CONSOLE.print(f"[red]{SYMBOLS.FAIL}[/red] {escape(p)}")
    return EXIT_CONFIG_INVALID
