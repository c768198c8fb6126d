from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from segment_service_api.app.core.config import settings
from segment_service_api.app.core.db import init_db
from segment_service_api.app.main import app
from segment_service_api.app.services.history_service import HistoryLog
from segment_service_api.app.services.membership_service import MembershipReconciler
from segment_service_api.app.services.store import EntityStore


@pytest.fixture
def database(tmp_path, monkeypatch) -> str:
    """Point the service at a fresh SQLite file with the schema applied."""
    path = str(tmp_path / "segments.db")
    monkeypatch.setattr(settings, "database_url", path)
    monkeypatch.setattr(settings, "segment_match_mode", "exact")
    init_db()
    return path


@pytest.fixture
def store(database) -> EntityStore:
    return EntityStore()


@pytest.fixture
def history(database) -> HistoryLog:
    return HistoryLog()


@pytest.fixture
def reconciler(store: EntityStore, history: HistoryLog) -> MembershipReconciler:
    return MembershipReconciler(store, history)


@pytest.fixture
def client(database) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
