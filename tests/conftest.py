"""Shared fixtures for the biblioteca test suite."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from biblioteca_api.app.core.config import settings
from biblioteca_api.app.core.db import init_db
from biblioteca_api.app.main import app
from biblioteca_api.app.services import lending_service as lending_service_module
from biblioteca_api.app.services.ledger import InMemoryLendingLedger
from biblioteca_api.app.services.lending_service import LendingService

from fakes import BOOK_A, BOOK_B, USER_1, USER_2, FakeCatalog, FakeMembership, TickingClock


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def database(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file and apply migrations."""
    db_file = tmp_path / "biblioteca_test.db"
    monkeypatch.setattr(settings, "database_url", str(db_file))
    monkeypatch.setattr(lending_service_module, "_lending_service", None)
    init_db()
    return db_file


@pytest.fixture
def client(database):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Lending service over fakes
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def ledger() -> InMemoryLendingLedger:
    return InMemoryLendingLedger()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog({BOOK_A, BOOK_B})


@pytest.fixture
def membership() -> FakeMembership:
    """USER_1 may hold one book, USER_2 two."""
    return FakeMembership({USER_1: 1, USER_2: 2})


@pytest.fixture
def service(catalog, membership, ledger, clock) -> LendingService:
    return LendingService(catalog, membership, ledger, clock=clock)
