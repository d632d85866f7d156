"""Pytest configuration and shared fixtures.

Fixtures here build a fresh SQLite database per test under ``tmp_path`` so
tests never share state.
"""

import asyncio
import random
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config.settings import AppConfig, DatabaseConfig
from tournaments import (
    Tournament,
    TournamentCreateRequest,
    TournamentDatabaseManager,
    TournamentFormat,
    TournamentManager,
)
from web.api import create_app


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def four_players() -> list[str]:
    """Participant IDs for the canonical four player bracket."""
    return ["A", "B", "C", "D"]


@pytest.fixture
def db(tmp_path: Path) -> TournamentDatabaseManager:
    """Provide an empty tournament database."""
    return TournamentDatabaseManager(str(tmp_path / "tournaments.db"))


@pytest.fixture
def manager(db: TournamentDatabaseManager) -> TournamentManager:
    """Provide a manager with a seeded RNG so random draws are repeatable."""
    return TournamentManager(db, rng=random.Random(1234))


@pytest.fixture
def make_tournament(manager: TournamentManager) -> Callable[..., Tournament]:
    """Factory creating UPCOMING tournaments through the manager."""

    def _make(
        format: TournamentFormat = TournamentFormat.SINGLE_ELIMINATION,
        max_participants: int = 16,
        name: str = "Friday Night Cup",
    ) -> Tournament:
        request = TournamentCreateRequest(
            name=name, format=format, max_participants=max_participants
        )
        return asyncio.run(manager.create_tournament(request))

    return _make


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    """HTTP client against an app backed by a temporary database."""
    config = AppConfig(database=DatabaseConfig(path=str(tmp_path / "api.db")))
    with TestClient(create_app(config)) as test_client:
        yield test_client


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that go through the HTTP layer"
    )
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
