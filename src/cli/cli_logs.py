from __future__ import annotations

import argparse

from cli.common import (
    dispatch_subparser_help,
    find_log_file,
    format_mtime,
    format_size,
    list_run_files,
    print_table,
    print_tail,
    resolve_log_dir,
)


def build_logs_parser(subparsers: argparse._SubParsersAction) -> None:
    logs = subparsers.add_parser("logs", help="Browse per-run log files")
    lsub = logs.add_subparsers(dest="logs_cmd", required=True)

    help_p = lsub.add_parser("help", help="Show help for logs")
    help_p.add_argument("path", nargs="*", help="Subcommand path (e.g. list, show)")
    help_p.set_defaults(action="help", _help_parser=logs)

    list_p = lsub.add_parser("list", help="List runs with their outcome, newest first")
    show_p = lsub.add_parser("show", help="Print the end of one run log")
    show_p.add_argument("name", help="Log filename or stem (e.g. sync-2024-05-01_20-00-00)")
    show_p.add_argument("--tail", type=int, default=120, help="Lines from end (0 = all)")

    for p in (list_p, show_p):
        p.add_argument(
            "--command",
            dest="log_command",
            help="Only runs of this command (logs/<command>/)",
        )
        p.add_argument("--dir", help="Explicit log directory")

    list_p.add_argument("--limit", type=int, default=20)
    list_p.set_defaults(action="list")
    show_p.set_defaults(action="show")


def handle_logs(args: argparse.Namespace) -> int:
    if args.action == "help":
        return dispatch_subparser_help(
            args._help_parser, list(getattr(args, "path", []) or [])
        )

    log_dir = resolve_log_dir(
        command=getattr(args, "log_command", None), explicit=getattr(args, "dir", None)
    )

    if args.action == "list":
        runs = list_run_files(log_dir)[: max(0, int(args.limit))]
        print_table(
            ["run", "command", "status", "modified", "size"],
            [
                [r.run_id, r.command, r.status, format_mtime(r.mtime), format_size(r.size)]
                for r in runs
            ],
        )
        return 0

    if args.action == "show":
        path = find_log_file(log_dir, args.name)
        if not path:
            print(f"Log not found: {args.name}")
            return 1
        print_tail(path, int(args.tail))
        return 0

    raise RuntimeError(f"Unknown logs action: {args.action}")
