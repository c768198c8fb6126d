from datetime import datetime, timedelta, timezone

import pytest

from segment_service_api.app.core.errors import StoreError
from segment_service_api.app.services.history_service import HistoryAction, month_bounds


def _ts(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_query_filters_by_month_in_insertion_order(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    trial = store.create_segment("trial")
    history.record(user.id, vip.id, HistoryAction.ADD, _ts(2023, 7, 31, 23, 59, 59))
    history.record(user.id, trial.id, "add", _ts(2023, 8, 20))
    history.record(user.id, vip.id, HistoryAction.REMOVE, _ts(2023, 8, 1))
    history.record(user.id, vip.id, HistoryAction.ADD, _ts(2023, 9, 1))

    entries = list(history.query(2023, 8))

    assert [(e.segment_name, e.action) for e in entries] == [
        ("trial", HistoryAction.ADD),
        ("vip", HistoryAction.REMOVE),
    ]
    assert entries[0].created_at == _ts(2023, 8, 20)


def test_naive_and_offset_timestamps_are_stored_as_utc(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    plus_three = timezone(timedelta(hours=3))
    history.record(user.id, vip.id, HistoryAction.ADD, datetime(2023, 12, 1, 1, 0, tzinfo=plus_three))
    history.record(user.id, vip.id, HistoryAction.REMOVE, datetime(2023, 12, 31, 23, 0))

    november = list(history.query(2023, 11))
    december = list(history.query(2023, 12))

    assert [e.created_at for e in november] == [_ts(2023, 11, 30, 22, 0)]
    assert [e.created_at for e in december] == [_ts(2023, 12, 31, 23, 0)]


def test_entries_survive_segment_and_user_deletion(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    history.record(user.id, vip.id, HistoryAction.ADD, _ts(2023, 8, 2))

    store.delete_segment("vip")
    store.delete_user(user.id)

    (entry,) = list(history.query(2023, 8))
    assert (entry.user_id, entry.segment_id, entry.segment_name) == (user.id, vip.id, "vip")


def test_record_for_missing_segment_raises(store, history):
    user = store.create_user("alice")

    with pytest.raises(StoreError):
        history.record(user.id, 12345, HistoryAction.ADD)


def test_record_rejects_unknown_action(store, history):
    vip = store.create_segment("vip")

    with pytest.raises(ValueError):
        history.record(1, vip.id, "rename")


def test_query_is_lazy(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    for day in (1, 2, 3):
        history.record(user.id, vip.id, HistoryAction.ADD, _ts(2023, 8, day))

    entries = history.query(2023, 8)
    first = next(entries)
    entries.close()

    assert first.created_at == _ts(2023, 8, 1)


@pytest.mark.parametrize(
    "year, month, expected",
    [
        (2023, 8, ("2023-08-01 00:00:00", "2023-08-31 23:59:59")),
        (2024, 2, ("2024-02-01 00:00:00", "2024-02-29 23:59:59")),
        (2023, 12, ("2023-12-01 00:00:00", "2023-12-31 23:59:59")),
        (9999, 12, ("9999-12-01 00:00:00", "9999-12-31 23:59:59")),
    ],
)
def test_month_bounds(year, month, expected):
    assert month_bounds(year, month) == expected


def test_last_second_of_month_is_included(store, history):
    user = store.create_user("alice")
    vip = store.create_segment("vip")
    history.record(user.id, vip.id, HistoryAction.ADD, _ts(2023, 8, 31, 23, 59, 59))
    history.record(user.id, vip.id, HistoryAction.REMOVE, _ts(9999, 12, 31, 23, 59, 59))

    assert [e.action for e in history.query(2023, 8)] == [HistoryAction.ADD]
    assert [e.action for e in history.query(9999, 12)] == [HistoryAction.REMOVE]
