"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from pathlib import Path

import pytest

from vigilpy.core.logs import log
from vigilpy.core.models import LogCategory, LogContext, LogEntry, LogLevel

# 2024-01-15T12:00:00Z
INCIDENT_TIME = 1_705_320_000.0


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, now: float = INCIDENT_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> float:
        self.now += minutes * 60 + seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed instant, advanced explicitly by tests."""
    return FakeClock()


@pytest.fixture
def incident_time() -> float:
    return INCIDENT_TIME


@pytest.fixture
def make_log() -> Callable[..., LogEntry]:
    """Factory for log entries placed relative to the incident time.

    ``minutes`` is the offset from the incident (negative is before).
    """

    def _make(
        message: str = "ok",
        minutes: float = 0,
        level: LogLevel | str = LogLevel.INFO,
        category: LogCategory | str = LogCategory.APPLICATION,
        source: str = "api",
        user_id: str | None = None,
        workflow_id: str | None = None,
        request_id: str | None = None,
    ) -> LogEntry:
        return log(
            level,
            message,
            source=source,
            category=category,
            context=LogContext(
                user_id=user_id, workflow_id=workflow_id, request_id=request_id
            ),
            timestamp=INCIDENT_TIME + minutes * 60,
        )

    return _make


@pytest.fixture
def log_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for log storage tests."""
    return str(tmp_path / "logs.db")


@pytest.fixture
def metrics_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for metric storage tests."""
    return str(tmp_path / "metrics.db")
