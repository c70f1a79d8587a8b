#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from bootstrap import bootstrap_base_env, bootstrap_run_context


def _dispatch_help(argv: List[str]) -> int:
    # Support:
    #   requestarr help
    #   requestarr help sync
    if argv and argv[0] == "help":
        argv = argv[1:]

    try:
        build_parser().parse_args(argv + ["--help"])
    except SystemExit:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="requestarr",
        description="Sync a CSV of song requests into a streaming playlist",
    )

    sub = p.add_subparsers(dest="command", required=True)

    help_cmd = sub.add_parser("help", help="Show help")
    help_cmd.add_argument("path", nargs="*", help="Command path to show help for")
    help_cmd.set_defaults(_help=True)

    # Keep imports inside builder to avoid early side effects.
    from cli.cli_auth import build_auth_parser
    from cli.cli_env import build_env_parser
    from cli.cli_logs import build_logs_parser
    from cli.cli_sync import build_sync_parser

    build_sync_parser(sub)
    build_auth_parser(sub)
    build_env_parser(sub)
    build_logs_parser(sub)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # Load config/.env and base environment early
    bootstrap_base_env(config_dir="config", env_file=".env", required=False)

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "_help", False):
        return _dispatch_help(argv)

    # Stamp run context early; only flags the user passed override .env
    bootstrap_run_context(
        command=args.command,
        provider=getattr(args, "provider", None) if args.command == "sync" else None,
        csv_path=getattr(args, "csv", None),
        playlist=getattr(args, "playlist", None),
        create_playlist=True if getattr(args, "create_playlist", False) else None,
        report_path=getattr(args, "report", None),
        workers=getattr(args, "workers", None),
        batch_size=getattr(args, "batch_size", None),
        verbose=True if getattr(args, "verbose", False) else None,
        quiet=True if getattr(args, "quiet", False) else None,
    )

    # Initialize logging AFTER run-context env stamping
    from logger import get_logger, init_logging

    init_logging()

    log = get_logger(__name__)
    log.debug("Requestarr starting")
    log.debug(f"Command: {args.command}")

    code = _dispatch(args)

    # Last line of every run log; `logs list` reads it back
    if args.command in ("sync", "auth"):
        from cli.common import RUN_STATUS_BY_EXIT

        log.info(f"RUN_STATUS={RUN_STATUS_BY_EXIT.get(code, 'failed')}")
    return code


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "sync":
        from cli.cli_sync import handle_sync

        return handle_sync(args)

    if args.command == "auth":
        from cli.cli_auth import handle_auth

        return handle_auth(args)

    if args.command == "env":
        from cli.cli_env import handle_env

        return handle_env(args)

    if args.command == "logs":
        from cli.cli_logs import handle_logs

        return handle_logs(args)

    raise RuntimeError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
