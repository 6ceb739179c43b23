"""
Shared pytest configuration and fixtures for the project-events test suite.

Time is faked everywhere: the circuit breaker gets a FakeClock and the retry
orchestrator gets a RecordingSleep that advances the same clock instead of
sleeping.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from project_events.config import Settings
from project_events.errors import TransportError
from project_events.metrics import MetricsCollector
from project_events.publisher import EventPublisher
from project_events.resilience.circuit_breaker import CircuitBreaker
from project_events.transports.base import EventTransport, PublishOptions

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# ============================================================================
# Test doubles
# ============================================================================


class FakeClock:
    """Monotonic clock under test control."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Awaitable sleep replacement that records delays and advances a FakeClock."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


class ScriptedTransport(EventTransport):
    """
    Transport that fails a fixed number of times before succeeding.

    ``fail_times=None`` means fail forever.
    """

    kind = "scripted"

    def __init__(self, fail_times: Optional[int] = 0, healthy: bool = True):
        self.fail_times = fail_times
        self.healthy = healthy
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def publish(
        self,
        event_type: str,
        body: Dict[str, Any],
        options: Optional[PublishOptions] = None,
    ) -> None:
        self.calls.append({"event_type": event_type, "body": body, "options": options})
        if self.fail_times is None or len(self.calls) <= self.fail_times:
            raise TransportError(f"receiver unavailable (call {len(self.calls)})")

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        event_transport="stub",
        event_stub_simulate_delay=False,
        internal_service_token="super-secret-token",
        orchestration_service_url="http://orchestrator.test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep(clock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker(threshold=5, cooldown=30.0, clock=clock)


@pytest.fixture
def make_publisher(test_settings, breaker, recording_sleep):
    """Factory building a publisher around a transport with faked time and zero jitter."""

    def _make(transport: EventTransport, metrics: Optional[MetricsCollector] = None) -> EventPublisher:
        return EventPublisher(
            transport,
            settings=test_settings,
            circuit_breaker=breaker,
            metrics=metrics,
            sleep=recording_sleep,
            jitter=lambda: 0.0,
        )

    return _make


@pytest.fixture
def created_event() -> Dict[str, Any]:
    return {
        "projectId": "proj-123",
        "ownerId": "user-456",
        "name": "Launch plan",
        "description": "Q3 launch",
        "initialPrompt": "Write a launch plan for the new product",
        "uploadedFileIds": ["file-1", "file-2"],
        "hasUploadedFiles": True,
        "promptComplexity": "medium",
        "createdAt": datetime(2025, 1, 28, 12, 0, tzinfo=timezone.utc).isoformat(),
    }


@pytest.fixture
def updated_event() -> Dict[str, Any]:
    return {
        "projectId": "proj-123",
        "ownerId": "user-456",
        "changes": {"name": "Launch plan v2"},
        "modifiedFields": ["name"],
        "updatedAt": datetime(2025, 1, 28, 13, 0, tzinfo=timezone.utc).isoformat(),
    }


@pytest.fixture
def archived_event() -> Dict[str, Any]:
    return {
        "projectId": "proj-123",
        "ownerId": "user-456",
        "previousStatus": "ACTIVE",
        "archivedAt": datetime(2025, 1, 29, 9, 0, tzinfo=timezone.utc).isoformat(),
    }


@pytest.fixture
def deleted_event() -> Dict[str, Any]:
    return {
        "projectId": "proj-123",
        "ownerId": "user-456",
        "previousStatus": "ARCHIVED",
        "hadGeneratedFiles": True,
        "fileCount": {"uploaded": 2, "generated": 3, "total": 5},
        "deletedAt": datetime(2025, 1, 30, 9, 0, tzinfo=timezone.utc).isoformat(),
    }


@pytest.fixture
def files_updated_event() -> Dict[str, Any]:
    return {
        "projectId": "proj-123",
        "ownerId": "user-456",
        "newFileIds": ["gen-1", "gen-2", "gen-3"],
        "updateMode": "append",
        "totalGeneratedFiles": 3,
        "updatedAt": datetime(2025, 1, 29, 10, 0, tzinfo=timezone.utc).isoformat(),
    }


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Mark tests as unit or integration based on their node id."""
    for item in items:
        if "integration" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
