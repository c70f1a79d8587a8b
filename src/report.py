"""
report.py

Report sink for a finished sync run.

- render_report(): Rich table of every outcome plus a summary panel
- log_report():    one log line per outcome (lands in the run log file)
- write_report_json(): machine-readable export
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

import config
from branding import SYMBOLS
from env.paths import out_dir
from logger import get_logger
from pipeline.models import SyncOutcome, SyncStatus
from pipeline.run_state import RunStatus
from stages.sync import SyncReport

logger = get_logger(__name__)

_STATUS_STYLE = {
    SyncStatus.ADDED: "green",
    SyncStatus.ALREADY_PRESENT: "dim",
    SyncStatus.UNRESOLVED: "yellow",
    SyncStatus.SUBMISSION_FAILED: "red",
}

_STATUS_SYMBOL = {
    SyncStatus.ADDED: SYMBOLS.ADDED,
    SyncStatus.ALREADY_PRESENT: SYMBOLS.PRESENT,
    SyncStatus.UNRESOLVED: SYMBOLS.UNRESOLVED,
    SyncStatus.SUBMISSION_FAILED: SYMBOLS.REJECTED,
}

_RUN_STYLE = {
    RunStatus.OK: ("SUCCESS", "green"),
    RunStatus.INCOMPLETE: ("INCOMPLETE", "yellow"),
    RunStatus.ABORTED: ("ABORTED", "red"),
    RunStatus.CANCELLED: ("CANCELLED", "yellow"),
    RunStatus.RUNNING: ("RUNNING", "blue"),
}


def _row_label(outcome: SyncOutcome, index: int) -> str:
    row = outcome.record.row
    return str(row if row is not None else index + 1)


# ============================================================
# Console
# ============================================================


def render_report(
    report: SyncReport,
    console: Console,
    *,
    show_skipped: bool = True,
) -> None:
    """Print the outcome table and the run summary."""
    table = Table(show_header=True, header_style="bold", box=None, expand=True)
    table.add_column("#", justify="right", width=4)
    table.add_column("Artist")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Track id", overflow="fold")
    table.add_column("Detail", overflow="fold")

    for index, outcome in enumerate(report.outcomes):
        if not show_skipped and outcome.status == SyncStatus.ALREADY_PRESENT:
            continue
        style = _STATUS_STYLE[outcome.status]
        table.add_row(
            _row_label(outcome, index),
            escape(outcome.record.artist),
            escape(outcome.record.title),
            f"[{style}]{_STATUS_SYMBOL[outcome.status]} {outcome.status.value}[/{style}]",
            outcome.track_id or "",
            escape(outcome.diagnostic or ""),
        )

    console.print(table)
    console.print(_summary_panel(report))


def _summary_panel(report: SyncReport) -> Panel:
    state = report.state
    label, colour = _RUN_STYLE[state.status]
    c = state.counts

    header = Text.assemble(
        ("Requestarr Sync Summary\n", "bold"),
        ("Status: ", "dim"),
        (label, f"bold {colour}"),
        ("\nDuration: ", "dim"),
        (str(timedelta(seconds=int(state.runtime_seconds))), "bold"),
    )

    totals = Table.grid(padding=(0, 1))
    totals.add_column(justify="right", style="dim")
    totals.add_column(justify="left")
    totals.add_row("Provider:", state.metadata.provider)
    totals.add_row("Playlist:", state.metadata.playlist_id or "")
    totals.add_row("Requests:", str(c.records))
    totals.add_row("Playlist size at start:", str(report.snapshot_size))
    totals.add_row("Added:", f"[green]{c.added}[/]")
    totals.add_row("Already present:", str(c.already_present))
    totals.add_row("Unresolved:", f"[yellow]{c.unresolved}[/]" if c.unresolved else "0")
    totals.add_row(
        "Submission failed:",
        f"[red]{c.submission_failed}[/]" if c.submission_failed else "0",
    )
    if c.batches:
        totals.add_row("Batches:", str(c.batches))
    if state.stop_reason:
        totals.add_row("Stop reason:", f"[yellow]{escape(state.stop_reason)}[/]")

    layout = Table.grid(expand=True)
    layout.add_row(header)
    layout.add_row("")
    layout.add_row(totals)

    return Panel(layout, title="Run Summary", subtitle=label, border_style=colour)


# ============================================================
# Log
# ============================================================


def log_report(report: SyncReport) -> None:
    for index, outcome in enumerate(report.outcomes):
        msg = (
            f"row {_row_label(outcome, index)}: {outcome.record.label()} -> "
            f"{outcome.status.value}"
        )
        if outcome.track_id:
            msg += f" [{outcome.track_id}]"
        if outcome.diagnostic:
            msg += f" ({outcome.diagnostic})"

        if outcome.status.is_failure:
            logger.warning(msg)
        else:
            logger.debug(msg)


# ============================================================
# JSON
# ============================================================


def outcome_to_dict(outcome: SyncOutcome, index: int) -> Dict[str, Any]:
    return {
        "row": outcome.record.row if outcome.record.row is not None else index + 1,
        "artist": outcome.record.artist,
        "title": outcome.record.title,
        "requested_track_id": outcome.record.provider_track_id,
        "status": outcome.status.value,
        "track_id": outcome.track_id,
        "confidence": outcome.confidence.value,
        "diagnostic": outcome.diagnostic,
    }


def report_to_dict(report: SyncReport) -> Dict[str, Any]:
    state = report.state
    meta = state.metadata
    c = state.counts
    return {
        "run_id": meta.run_id,
        "provider": meta.provider,
        "playlist_id": meta.playlist_id,
        "status": state.status.value,
        "exit_code": report.exit_code,
        "stop_reason": state.stop_reason,
        "started_at": datetime.fromtimestamp(meta.started_at).isoformat(timespec="seconds"),
        "runtime_seconds": state.runtime_seconds,
        "stage_seconds": dict(state.stage_seconds),
        "snapshot_size": report.snapshot_size,
        "counts": {
            "records": c.records,
            "added": c.added,
            "already_present": c.already_present,
            "unresolved": c.unresolved,
            "submission_failed": c.submission_failed,
            "batches": c.batches,
        },
        "outcomes": [outcome_to_dict(o, i) for i, o in enumerate(report.outcomes)],
    }


def write_report_json(report: SyncReport, path: Union[str, Path]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    tmp = out.with_suffix(out.suffix + ".tmp")
    tmp.write_text(
        json.dumps(report_to_dict(report), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    tmp.replace(out)
    logger.info(f"Report written to {out}")
    return out


def default_report_path(run_id: str, base_dir: Optional[Path] = None) -> Path:
    base = base_dir or out_dir()
    return base / config.REPORT_BASENAME.format(run_id=run_id)
