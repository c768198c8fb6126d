import logging
from datetime import datetime, timezone

from segment_service_api.app.services.history_service import HistoryAction
from segment_service_api.app.services.membership_service import (
    MembershipReconciler,
    Outcome,
    OutcomeKind,
)
from tests.support.fakes import FakeHistory, FakeStore


def _this_month():
    now = datetime.now(timezone.utc)
    return now.year, now.month


def _kinds(outcomes):
    return [outcome.kind for outcome in outcomes]


# ---------------------------------------------------------------------------
# Against SQLite
# ---------------------------------------------------------------------------


def test_added_segment_is_listed_once(store, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    outcomes = reconciler.reconcile(user.id, ["vip"], [])

    assert outcomes == [Outcome(OutcomeKind.ADDED, user.id, "vip")]
    assert store.list_memberships_by_user(user.id) == ["vip"]


def test_adding_twice_reports_already_member_and_writes_one_entry(store, history, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    first = reconciler.reconcile(user.id, ["vip"], [])
    second = reconciler.reconcile(user.id, ["vip"], [])

    assert _kinds(first + second) == [OutcomeKind.ADDED, OutcomeKind.ALREADY_MEMBER]
    entries = list(history.query(*_this_month()))
    assert [(e.user_id, e.segment_name, e.action) for e in entries] == [
        (user.id, "vip", HistoryAction.ADD)
    ]


def test_duplicate_name_within_one_batch(store, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    outcomes = reconciler.reconcile(user.id, ["vip", "vip"], [])

    assert _kinds(outcomes) == [OutcomeKind.ADDED, OutcomeKind.ALREADY_MEMBER]


def test_removing_absent_membership_writes_no_history(store, history, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    outcomes = reconciler.reconcile(user.id, [], ["vip"])

    assert outcomes == [Outcome(OutcomeKind.NOT_A_MEMBER, user.id, "vip")]
    assert list(history.query(*_this_month())) == []


def test_add_then_remove_same_segment_in_one_batch(store, history, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    outcomes = reconciler.reconcile(user.id, ["vip"], ["vip"])

    assert outcomes == [
        Outcome(OutcomeKind.ADDED, user.id, "vip"),
        Outcome(OutcomeKind.REMOVED, user.id, "vip"),
    ]
    assert store.list_memberships_by_user(user.id) == []
    actions = [entry.action for entry in history.query(*_this_month())]
    assert actions == [HistoryAction.ADD, HistoryAction.REMOVE]


def test_unknown_user_short_circuits_without_mutations(store, history, reconciler):
    store.create_segment("vip")

    outcomes = reconciler.reconcile(404, ["vip"], ["vip"])

    assert outcomes == [Outcome(OutcomeKind.USER_NOT_FOUND, 404)]
    assert store.list_all_memberships() == {}
    assert list(history.query(*_this_month())) == []


def test_unknown_segment_does_not_stop_the_batch(store, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")
    store.create_segment("trial")

    outcomes = reconciler.reconcile(user.id, ["vip", "missing", "trial"], ["ghost"])

    assert _kinds(outcomes) == [
        OutcomeKind.ADDED,
        OutcomeKind.SEGMENT_NOT_FOUND,
        OutcomeKind.ADDED,
        OutcomeKind.SEGMENT_NOT_FOUND,
    ]
    assert outcomes[1].segment == "missing"
    assert store.list_memberships_by_user(user.id) == ["vip", "trial"]


def test_lookup_ignores_case_and_reports_stored_name(store, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")

    outcomes = reconciler.reconcile(user.id, ["Vip"], [])

    assert outcomes == [Outcome(OutcomeKind.ADDED, user.id, "vip")]


def test_replaying_a_batch_is_safe(store, history, reconciler):
    user = store.create_user("alice")
    store.create_segment("vip")
    store.create_segment("trial")
    reconciler.reconcile(user.id, ["trial"], [])

    first = reconciler.reconcile(user.id, ["vip"], ["trial"])
    replay = reconciler.reconcile(user.id, ["vip"], ["trial"])

    assert _kinds(first) == [OutcomeKind.ADDED, OutcomeKind.REMOVED]
    assert _kinds(replay) == [OutcomeKind.ALREADY_MEMBER, OutcomeKind.NOT_A_MEMBER]
    assert len(list(history.query(*_this_month()))) == 3
    assert store.list_memberships_by_user(user.id) == ["vip"]


def test_empty_batch_yields_no_outcomes(store, reconciler):
    user = store.create_user("alice")

    assert reconciler.reconcile(user.id, [], []) == []


def test_history_timestamps_come_from_clock(store, history):
    user = store.create_user("alice")
    store.create_segment("vip")
    fixed = datetime(2023, 8, 15, 12, 30, tzinfo=timezone.utc)
    reconciler = MembershipReconciler(store, history, clock=lambda: fixed)

    reconciler.reconcile(user.id, ["vip"], [])

    (entry,) = list(history.query(2023, 8))
    assert entry.created_at == fixed


# ---------------------------------------------------------------------------
# Against fakes
# ---------------------------------------------------------------------------


def test_storage_failure_aborts_remaining_items():
    store = FakeStore()
    store.failing.add("trial")
    history = FakeHistory()
    reconciler = MembershipReconciler(store, history)

    outcomes = reconciler.reconcile(1, ["vip", "trial", "beta"], ["vip"])

    assert outcomes == [
        Outcome(OutcomeKind.ADDED, 1, "vip"),
        Outcome(OutcomeKind.FAILURE, 1, "trial"),
    ]
    # earlier success is kept, later items never ran
    assert store.memberships == {(1, 1)}
    assert [entry[2] for entry in history.entries] == [HistoryAction.ADD]


def test_history_failure_keeps_successful_outcome(caplog):
    store = FakeStore()
    reconciler = MembershipReconciler(store, FakeHistory(fail=True))

    with caplog.at_level(logging.ERROR):
        outcomes = reconciler.reconcile(1, ["vip"], [])

    assert outcomes == [Outcome(OutcomeKind.ADDED, 1, "vip")]
    assert store.memberships == {(1, 1)}
    assert "was not written" in caplog.text


def test_lost_add_race_is_reported_as_already_member():
    store = FakeStore()
    store.racing_adds.add("vip")
    history = FakeHistory()

    outcomes = MembershipReconciler(store, history).reconcile(1, ["vip"], [])

    assert outcomes == [Outcome(OutcomeKind.ALREADY_MEMBER, 1, "vip")]
    assert history.entries == []


def test_lost_remove_race_is_reported_as_not_a_member():
    store = FakeStore()
    store.racing_removes.add("vip")
    history = FakeHistory()

    outcomes = MembershipReconciler(store, history).reconcile(1, [], ["vip"])

    assert outcomes == [Outcome(OutcomeKind.NOT_A_MEMBER, 1, "vip")]
    assert history.entries == []


def test_unknown_user_touches_nothing_but_the_lookup():
    store = FakeStore(users=())

    outcomes = MembershipReconciler(store, FakeHistory()).reconcile(7, ["vip"], ["trial"])

    assert outcomes == [Outcome(OutcomeKind.USER_NOT_FOUND, 7)]
    assert store.calls == ["find_user"]


def test_outcome_ok_flag():
    assert Outcome(OutcomeKind.ADDED, 1, "vip").ok
    assert Outcome(OutcomeKind.REMOVED, 1, "vip").ok
    assert not Outcome(OutcomeKind.ALREADY_MEMBER, 1, "vip").ok
    assert not Outcome(OutcomeKind.FAILURE, 1, "vip").ok
