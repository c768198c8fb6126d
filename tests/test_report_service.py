import sqlite3
from datetime import datetime, timezone

import pytest

from segment_service_api.app.core.errors import StoreError
from segment_service_api.app.services.history_service import HistoryAction, HistoryLog
from segment_service_api.app.services.report_service import csv_report, report_filename


def test_report_lists_month_entries(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    history.record(user.id, vip.id, HistoryAction.ADD, datetime(2023, 8, 3, 10, 0, tzinfo=timezone.utc))
    history.record(user.id, vip.id, HistoryAction.REMOVE, datetime(2023, 8, 4, 11, 30, tzinfo=timezone.utc))

    text = "".join(csv_report(history, 2023, 8))

    assert text.splitlines() == [
        "User,Action,Segment,Date",
        f"{user.id},add,vip,2023-08-03 10:00:00",
        f"{user.id},remove,vip,2023-08-04 11:30:00",
    ]


def test_empty_month_has_only_header(history):
    assert list(csv_report(history, 2001, 1)) == ["User,Action,Segment,Date\n"]


def test_segment_names_are_quoted_when_needed(store, history):
    user = store.create_user("alice")
    segment = store.create_segment("discount, 50%")
    history.record(user.id, segment.id, HistoryAction.ADD, datetime(2023, 8, 3, tzinfo=timezone.utc))

    lines = list(csv_report(history, 2023, 8))

    assert lines[1] == f'{user.id},add,"discount, 50%",2023-08-03 00:00:00\n'


def test_storage_failure_is_raised_before_streaming(database):
    def broken():
        raise sqlite3.OperationalError("disk I/O error")

    with pytest.raises(StoreError):
        csv_report(HistoryLog(connection_factory=broken), 2023, 8)


def test_report_filename():
    assert report_filename(2023, 8) == "report-2023-8.csv"
