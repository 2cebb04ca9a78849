"""Pytest fixtures for backend tests."""
from typing import Any, Generator

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient

from skate_roulette.config import settings
from skate_roulette.logic.animation import AnimationDriver
from skate_roulette.logic.coordinator import SpinCoordinator
from skate_roulette.logic.history import TrickHistory
from skate_roulette.logic.models import Difficulty, GameMode, Round, RoundStatus
from skate_roulette.logic.rng import RNGBase
from skate_roulette.logic.settings_state import SettingsSnapshot, SettingsState
from skate_roulette.main import app
from skate_roulette.redis_service import RedisService
from skate_roulette.session import session_manager
from skate_roulette.telemetry import LoggingTelemetrySink, TelemetryService, telemetry_service

FRAME_MS = 1000 / 60


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (run full audit simulations)"
    )


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._last_set_ex: int | None = None  # Track last SETEX TTL

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(
        self, key: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and key in self._store:
            return None
        self._store[key] = value
        self._last_set_ex = ex
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        self._last_set_ex = ttl
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def close(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self._last_set_ex = None


class FailingRedis(MockRedis):
    """Mock Redis whose every command fails like a dropped connection."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    async def get(self, key: str) -> str | None:
        self.calls += 1
        raise redis.ConnectionError("Connection refused")

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.calls += 1
        raise redis.ConnectionError("Connection refused")

    async def delete(self, key: str) -> int:
        self.calls += 1
        raise redis.ConnectionError("Connection refused")


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


class FakeHistory:
    """History collaborator that just records calls."""

    def __init__(self):
        self.calls: list[tuple[str, GameMode]] = []

    def add_trick(self, text: str, mode: GameMode) -> None:
        self.calls.append((text, mode))


def run_round(driver: AnimationDriver, current: Round, max_frames: int = 5000) -> int:
    """Tick the driver until the round is idle; returns the frame count."""
    for frame in range(1, max_frames + 1):
        driver.tick(FRAME_MS)
        if current.status == RoundStatus.IDLE:
            return frame
    raise AssertionError(f"Round {current.round_id} did not resolve in {max_frames} frames")


def make_coordinator(
    rng: RNGBase,
    mode: GameMode = GameMode.FLATGROUND,
    difficulty: Difficulty = Difficulty.MEDIUM,
    history: Any = None,
    telemetry: TelemetryService | None = None,
    min_spin_duration_ms: float | None = None,
) -> tuple[SpinCoordinator, AnimationDriver, SettingsState, Any]:
    """Coordinator wired to a fresh driver, settings and history."""
    state = SettingsState(SettingsSnapshot(difficulty=difficulty, mode=mode))
    history = history if history is not None else FakeHistory()
    driver = AnimationDriver()
    coordinator = SpinCoordinator(
        state,
        history,
        driver,
        rng=rng,
        player_id="test-player",
        telemetry=telemetry or TelemetryService(sink=RecordingTelemetrySink()),
        min_spin_duration_ms=min_spin_duration_ms,
    )
    return coordinator, driver, state, history


@pytest.fixture(autouse=True)
def virtual_time(monkeypatch: pytest.MonkeyPatch) -> None:
    """Frame loops step back to back instead of following the wall clock."""
    monkeypatch.setattr(settings, "realtime_animation", False)


@pytest.fixture(autouse=True)
def reset_sessions() -> Generator[None, None, None]:
    """Every test starts without cached player sessions."""
    session_manager.reset()
    yield
    session_manager.reset()


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def failing_redis() -> FailingRedis:
    return FailingRedis()


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Route the global telemetry service into a recording sink."""
    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(LoggingTelemetrySink())


@pytest.fixture
def redis_service_with_mock(mock_redis: MockRedis) -> Generator[RedisService, None, None]:
    """Create RedisService with mock client."""
    service = RedisService()
    service._client = mock_redis
    yield service
    mock_redis.clear()


@pytest.fixture
def client_with_mock_redis(mock_redis: MockRedis) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis."""
    from skate_roulette.redis_service import redis_service

    # Patch the global redis_service client
    original_client = redis_service._client
    redis_service._client = mock_redis

    with TestClient(app) as client:
        yield client

    # Restore original
    redis_service._client = original_client
    mock_redis.clear()


@pytest.fixture
def client_with_failing_redis(failing_redis: FailingRedis) -> Generator[TestClient, None, None]:
    """Create TestClient whose Redis is down."""
    from skate_roulette.redis_service import redis_service

    original_client = redis_service._client
    redis_service._client = failing_redis

    with TestClient(app) as client:
        yield client

    redis_service._client = original_client


@pytest.fixture
def test_client() -> TestClient:
    """Create basic TestClient (for tests that don't need Redis)."""
    return TestClient(app)
