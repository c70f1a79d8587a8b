"""
csv_source.py

CSV export -> RequestRecord stream.

Accepted layouts (header names are case-insensitive):

    artist,title[,track_id]            plain song-request sheet
    music (S),song_id (S)              DynamoDB export ("Artist - Title", id)

A bad row never raises: it is yielded as a malformed record so the run
reports it. Only an unusable header (no title / id column at all) is an
error, raised as MalformedRecord before any row is produced.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import config
from logger import get_logger
from pipeline.errors import MalformedRecord
from pipeline.models import RequestRecord
from providers.spotify.provider import normalize_spotify_id

logger = get_logger(__name__)


# ============================================================
# Header / cell helpers
# ============================================================


def _find_column(headers: Dict[str, str], aliases) -> Optional[str]:
    for alias in aliases:
        if alias in headers:
            return headers[alias]
    return None


def split_combined(value: str) -> Tuple[str, str]:
    """
    "Artist - Title" -> ("Artist", "Title").

    Only the first separator splits, so "A - B - C" keeps "B - C" as title.
    Without a separator the whole value is the title.
    """
    v = (value or "").strip()
    if config.COMBINED_SEPARATOR in v:
        artist, title = v.split(config.COMBINED_SEPARATOR, 1)
        return artist.strip(), title.strip()
    return "", v


def _cell(row: Dict[Optional[str], Optional[str]], column: Optional[str]) -> str:
    if column is None:
        return ""
    value = row.get(column)
    return value.strip() if isinstance(value, str) else ""


# ============================================================
# Source
# ============================================================


class CsvRecordSource:
    """
    Lazy, restartable iterable of RequestRecord.

    Each iteration re-opens the file, so the sequence can be consumed
    more than once.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8-sig") -> None:
        self.path = Path(path)
        self.encoding = encoding

    def __repr__(self) -> str:
        return f"CsvRecordSource({str(self.path)!r})"

    def __iter__(self) -> Iterator[RequestRecord]:
        with self.path.open("r", encoding=self.encoding, newline="") as fh:
            reader = csv.DictReader(fh)
            columns = self._columns(reader.fieldnames or [])

            row_number = 0
            while True:
                row_number += 1
                try:
                    row = next(reader)
                except StopIteration:
                    return
                except csv.Error as e:
                    logger.warning(f"{self.path.name}: row {row_number} unreadable: {e}")
                    yield RequestRecord(title="", row=row_number, malformed=f"csv error: {e}")
                    continue
                except UnicodeDecodeError as e:
                    # the reader cannot resync after a decode failure
                    logger.warning(f"{self.path.name}: row {row_number} not valid text: {e}")
                    yield RequestRecord(title="", row=row_number, malformed="invalid text encoding")
                    return

                yield self._record(row, row_number, columns)

    def read_all(self) -> List[RequestRecord]:
        return list(self)

    # ------------------------------------------------------------------

    def _columns(self, fieldnames: List[str]) -> Dict[str, Optional[str]]:
        headers = {
            (name or "").strip().lower(): name for name in fieldnames if name is not None
        }
        columns = {
            "artist": _find_column(headers, config.ARTIST_COLUMNS),
            "title": _find_column(headers, config.TITLE_COLUMNS),
            "track_id": _find_column(headers, config.TRACK_ID_COLUMNS),
            "combined": _find_column(headers, config.COMBINED_COLUMNS),
        }

        if not (columns["title"] or columns["track_id"] or columns["combined"]):
            raise MalformedRecord(
                f"{self.path}: no title or track id column in header {fieldnames!r}"
            )

        logger.debug(
            f"{self.path.name}: columns "
            + ", ".join(f"{k}={v!r}" for k, v in columns.items() if v)
        )
        return columns

    @staticmethod
    def _record(
        row: Dict[Optional[str], Optional[str]],
        row_number: int,
        columns: Dict[str, Optional[str]],
    ) -> RequestRecord:
        # DictReader files surplus cells under the None key
        if row.get(None):
            return RequestRecord(
                title="",
                row=row_number,
                malformed=f"{len(row[None])} unexpected extra field(s)",
            )

        artist = _cell(row, columns["artist"])
        title = _cell(row, columns["title"])

        combined = _cell(row, columns["combined"])
        if combined and not title:
            combined_artist, title = split_combined(combined)
            artist = artist or combined_artist

        raw_id = _cell(row, columns["track_id"])
        track_id = normalize_spotify_id(raw_id) if raw_id else None

        if not title and not track_id:
            return RequestRecord(
                title="",
                artist=artist,
                row=row_number,
                malformed="row has neither title nor track id",
            )

        return RequestRecord(
            title=title,
            artist=artist,
            provider_track_id=track_id,
            row=row_number,
        )
