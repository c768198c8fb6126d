"""
Dependency helpers for the API routers.

Routers receive the store, the history log and the reconciler through
``Depends`` so that tests can swap them via ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends

from segment_service_api.app.services.history_service import HistoryLog
from segment_service_api.app.services.membership_service import MembershipReconciler
from segment_service_api.app.services.store import EntityStore


def get_store() -> EntityStore:
    return EntityStore()


def get_history() -> HistoryLog:
    return HistoryLog()


def get_reconciler(
    store: EntityStore = Depends(get_store),
    history: HistoryLog = Depends(get_history),
) -> MembershipReconciler:
    return MembershipReconciler(store, history)
