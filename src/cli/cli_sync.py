from __future__ import annotations

import argparse
import signal
from pathlib import Path
from typing import Optional

from auth.errors import EXIT_AUTH_INVALID
from branding import REQUESTARR_BANNER, REQUESTARR_DIVIDER, REQUESTARR_HEADER, SYMBOLS
from env import ConfigError, get_env
from logger import get_logger
from stages.sync import EXIT_CANCELLED, EXIT_OK

# ------------------------------------------------------------
# Exit codes
# ------------------------------------------------------------

# 0 / 3 / 10 come from the run itself (SyncReport.exit_code),
# 12 from auth (AuthInvalid.exit_code)
EXIT_SETUP_FAILED = 20


# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------


def build_sync_parser(subparsers: argparse._SubParsersAction) -> None:
    sync = subparsers.add_parser(
        "sync", help="Add every song request in a CSV to a playlist (once)"
    )

    sync.add_argument("--csv", help="Request CSV (REQUESTARR_CSV)")
    sync.add_argument("--playlist", help="Playlist id, URL or name (REQUESTARR_PLAYLIST)")
    sync.add_argument(
        "--provider",
        choices=("spotify", "youtube"),
        help="Streaming provider (REQUESTARR_PROVIDER, default spotify)",
    )
    sync.add_argument(
        "--create-playlist",
        action="store_true",
        help="Create the playlist by name when it does not exist",
    )
    sync.add_argument("--workers", type=int, help="Concurrent searches")
    sync.add_argument("--batch-size", type=int, help="Tracks per add call")
    sync.add_argument("--report", help="Write a JSON report to this file (or into this directory)")
    sync.add_argument("--verbose", action="store_true")
    sync.add_argument("--quiet", action="store_true")


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------


class _InterruptHandler:
    """
    First Ctrl-C cancels the run at the next safe boundary;
    a second one falls back to the default KeyboardInterrupt.
    """

    def __init__(self, cancel) -> None:
        self.cancel = cancel
        self._previous = None

    def __enter__(self) -> "_InterruptHandler":
        self._previous = signal.signal(signal.SIGINT, self._handle)
        return self

    def __exit__(self, *exc) -> None:
        signal.signal(signal.SIGINT, self._previous or signal.default_int_handler)

    def _handle(self, signum, frame) -> None:
        if self.cancel.cancelled:
            signal.signal(signal.SIGINT, signal.default_int_handler)
            raise KeyboardInterrupt
        self.cancel.cancel("run-cancelled: interrupted")


# ------------------------------------------------------------
# Handler
# ------------------------------------------------------------


def handle_sync(args: argparse.Namespace) -> int:
    from auth.errors import AuthError
    from logger.console import UI_CONSOLE
    from pipeline.cancel import CancelToken
    from pipeline.errors import AuthFailure, MalformedRecord, ProviderError, describe
    from pipeline.rate_limit import TokenBucket
    from pipeline.retry import RetryPolicy, execute_with_retry
    from providers.playlists import PlaylistNotFound, resolve_playlist_id
    from providers.registry import build_provider
    from report import default_report_path, log_report, render_report, write_report_json
    from sources.csv_source import CsvRecordSource
    from stages.sync import SnapshotUnavailable, SyncOrchestrator

    log = get_logger("requestarr")

    log.info(REQUESTARR_BANNER)
    log.info(REQUESTARR_HEADER("Sync"))

    # --------------------------------------------------
    # Configuration
    # --------------------------------------------------

    try:
        env = get_env()
        env.require_sync_inputs()
    except ConfigError as e:
        log.error(f"Configuration error: {e}")
        return EXIT_SETUP_FAILED

    log.info(f"Provider: {env.provider}")
    log.info(f"CSV: {env.csv_path}")
    log.info(f"Playlist: {env.playlist}")

    try:
        records = CsvRecordSource(env.csv_path).read_all()
    except (OSError, MalformedRecord) as e:
        log.error(f"Cannot read request CSV: {e}")
        return EXIT_SETUP_FAILED

    malformed = sum(1 for r in records if r.is_malformed)
    log.info(f"Loaded {len(records)} request(s) ({malformed} malformed)")

    # --------------------------------------------------
    # Auth + playlist
    # --------------------------------------------------

    try:
        provider = build_provider(env.provider)
    except AuthError as e:
        log.error(f"Authentication failed: {e}")
        return e.exit_code

    cancel = CancelToken()
    policy = RetryPolicy.from_env(env)
    bucket = TokenBucket.per_window(env.rate_limit, env.rate_window)

    try:
        playlist_id = execute_with_retry(
            lambda: resolve_playlist_id(provider, env.playlist, env.create_playlist),
            policy,
            name=f"resolve playlist {env.playlist!r}",
            cancel=cancel,
        )
    except PlaylistNotFound as e:
        log.error(str(e))
        return EXIT_SETUP_FAILED
    except AuthFailure as e:
        log.error(f"Authentication rejected: {describe(e)}")
        return EXIT_AUTH_INVALID
    except ProviderError as e:
        log.error(f"Cannot resolve playlist {env.playlist!r}: {describe(e)}")
        return EXIT_SETUP_FAILED

    log.info(f"{SYMBOLS.PLAYLIST} Target playlist: {playlist_id}")

    # --------------------------------------------------
    # Run
    # --------------------------------------------------

    orchestrator = SyncOrchestrator(
        provider,
        playlist_id,
        bucket=bucket,
        policy=policy,
        batch_size=env.batch_size,
        workers=env.workers,
        cancel=cancel,
    )

    cancel.arm_timeout(env.run_timeout)
    try:
        with _InterruptHandler(cancel):
            report = orchestrator.run(records)
    except SnapshotUnavailable as e:
        if isinstance(e.__cause__, AuthFailure):
            log.error(f"Authentication rejected: {e}")
            return EXIT_AUTH_INVALID
        log.error(str(e))
        return EXIT_SETUP_FAILED
    finally:
        cancel.disarm()

    # --------------------------------------------------
    # Report
    # --------------------------------------------------

    log_report(report)
    if not env.quiet:
        render_report(report, UI_CONSOLE)

    report_path: Optional[str] = getattr(args, "report", None) or env.report_path
    if report_path:
        target = Path(report_path)
        if target.is_dir():
            target = default_report_path(report.state.metadata.run_id, base_dir=target)
        try:
            write_report_json(report, target)
        except OSError as e:
            log.error(f"Could not write report to {report_path}: {e}")

    log.info(REQUESTARR_DIVIDER())
    code = report.exit_code
    if code == EXIT_OK:
        log.info("Done: OK (every request is on the playlist)")
    elif code == EXIT_CANCELLED:
        log.warning("Done: cancelled (playlist may be incomplete)")
    else:
        log.warning(
            f"Done: incomplete ({report.counts.failures} request(s) not added)"
        )
    return code
