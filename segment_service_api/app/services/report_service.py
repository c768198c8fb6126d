"""
CSV export of the membership history.

The report lists every history entry of one calendar month with the
columns ``User, Action, Segment, Date``.  Rows are produced lazily from
``HistoryLog.query`` so a large month is never held in memory; the
first row is fetched eagerly so that a storage failure is raised
before any part of the response has been sent.
"""

from __future__ import annotations

import csv
import io
from itertools import chain
from typing import Iterable, Iterator, Optional, Sequence

from segment_service_api.app.services.history_service import (
    TIMESTAMP_FORMAT,
    HistoryEntry,
    HistoryLog,
)

HEADER = ("User", "Action", "Segment", "Date")


def report_filename(year: int, month: int) -> str:
    return f"report-{year}-{month}.csv"


def _csv_line(values: Sequence[object]) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(values)
    return buffer.getvalue()


def _lines(entries: Iterable[HistoryEntry]) -> Iterator[str]:
    yield _csv_line(HEADER)
    for entry in entries:
        yield _csv_line(
            (
                entry.user_id,
                entry.action.value,
                entry.segment_name,
                entry.created_at.strftime(TIMESTAMP_FORMAT),
            )
        )


def csv_report(history: HistoryLog, year: int, month: int) -> Iterator[str]:
    """Return an iterator over the CSV lines of one month's report.

    Raises ``StoreError`` immediately if the history cannot be read.
    """
    entries = history.query(year, month)
    first: Optional[HistoryEntry] = next(entries, None)
    if first is None:
        return _lines(())
    return _lines(chain((first,), entries))
