"""Per-player game session: settings, history, coordinator and frame loop."""
import asyncio
import logging

from skate_roulette.config import settings
from skate_roulette.errors import InvariantViolation
from skate_roulette.logic.animation import AnimationDriver
from skate_roulette.logic.coordinator import SpinCoordinator
from skate_roulette.logic.formatter import is_placeholder
from skate_roulette.logic.history import TrickHistory, TrickItem
from skate_roulette.logic.models import Category, Difficulty, GameMode, Round, RoundStatus
from skate_roulette.logic.rng import RNGBase
from skate_roulette.logic.settings_state import SettingsSnapshot, SettingsState
from skate_roulette.redis_service import PersistenceError, RedisService, redis_service
from skate_roulette.telemetry import (
    PersistenceFailedEvent,
    SettingsChangedEvent,
    TelemetryService,
    telemetry_service,
)

logger = logging.getLogger(__name__)


def default_snapshot() -> SettingsSnapshot:
    return SettingsSnapshot(
        difficulty=Difficulty(settings.default_difficulty),
        mode=GameMode(settings.default_mode),
    )


class GameSession:
    """
    Everything one player needs to spin.

    The coordinator and reels run on this session's AnimationDriver; the
    frame loop that ticks it runs as a task on the event loop. Persistence
    failures are logged and reported to telemetry, and the in-memory values
    stay authoritative.
    """

    def __init__(
        self,
        player_id: str,
        store: RedisService | None = None,
        rng: RNGBase | None = None,
        telemetry: TelemetryService | None = None,
    ):
        self.player_id = player_id
        self.store = store or redis_service
        self.telemetry = telemetry or telemetry_service
        self.settings_state = SettingsState(default_snapshot())
        self.history = TrickHistory()
        self.driver = AnimationDriver()
        self.coordinator = SpinCoordinator(
            self.settings_state,
            self.history,
            self.driver,
            rng=rng,
            player_id=player_id,
            telemetry=self.telemetry,
        )
        self._frame_task: asyncio.Task | None = None

    # === Persistence ===

    def _report_failure(self, document: str, operation: str, error: Exception) -> None:
        logger.warning(
            "Could not %s %s for %s, using in-memory values: %s",
            operation,
            document,
            self.player_id,
            error,
        )
        self.telemetry.emit_persistence_failed(
            PersistenceFailedEvent(
                player_id=self.player_id,
                document=document,
                operation=operation,
                error=str(error),
            )
        )

    async def hydrate(self) -> None:
        """Load stored settings and history; defaults are kept on any failure."""
        try:
            stored_settings = await self.store.get_settings(self.player_id)
        except PersistenceError as e:
            self._report_failure("settings", "load", e)
        else:
            if stored_settings is not None:
                self.settings_state.load(stored_settings)

        try:
            stored_history = await self.store.get_history(self.player_id)
        except PersistenceError as e:
            self._report_failure("history", "load", e)
        else:
            if stored_history is not None:
                self.history.load(stored_history)

    async def save_settings(self) -> None:
        try:
            await self.store.save_settings(self.player_id, self.settings_state.snapshot())
        except PersistenceError as e:
            self._report_failure("settings", "save", e)

    async def save_history(self) -> None:
        try:
            await self.store.save_history(self.player_id, self.history.items())
        except PersistenceError as e:
            self._report_failure("history", "save", e)

    # === Settings ===

    def _emit_settings_change(self, field: str, value: str, applied: bool) -> None:
        self.telemetry.emit_settings_changed(
            SettingsChangedEvent(
                player_id=self.player_id,
                field=field,
                value=value,
                applied=applied,
            )
        )

    async def set_difficulty(self, difficulty: Difficulty) -> bool:
        """Apply a difficulty change; ignored (False) while a round is live."""
        if self.coordinator.is_live:
            self._emit_settings_change("difficulty", difficulty.value, applied=False)
            return False
        self.settings_state.set_difficulty(difficulty)
        self._emit_settings_change("difficulty", difficulty.value, applied=True)
        await self.save_settings()
        return True

    async def set_mode(self, mode: GameMode) -> bool:
        """Apply a mode change; ignored (False) while a round is live."""
        if self.coordinator.is_live:
            self._emit_settings_change("mode", mode.value, applied=False)
            return False
        self.settings_state.set_mode(mode)
        self._emit_settings_change("mode", mode.value, applied=True)
        await self.save_settings()
        return True

    async def toggle_custom_item(self, category: Category, value: str) -> bool:
        """
        Flip one custom opt-out entry. Returns True if the value is now disabled.

        Allowed mid-round: a live round keeps the option sets it started with.
        """
        disabled = self.settings_state.toggle_custom_item(category, value)
        self._emit_settings_change("custom", f"{category.value}:{value}", applied=True)
        await self.save_settings()
        return disabled

    # === History ===

    async def toggle_landed(self, trick_id: str) -> TrickItem | None:
        item = self.history.toggle_landed(trick_id)
        if item is not None:
            await self.save_history()
        return item

    async def delete_trick(self, trick_id: str) -> bool:
        deleted = self.history.delete_trick(trick_id)
        if deleted:
            await self.save_history()
        return deleted

    async def clear_history(self) -> None:
        self.history.clear()
        await self.save_history()

    # === Spinning ===

    async def spin(self, wait: bool = False) -> Round | None:
        """
        Request a spin. None if a round is already live.

        With wait, returns after the round has resolved; otherwise the frame
        loop keeps running in the background.
        """
        current = self.coordinator.request_spin()
        if current is None:
            return None

        task = asyncio.create_task(self._run_frames(current))
        task.add_done_callback(self._log_frame_failure)
        self._frame_task = task
        if wait:
            await task
        return current

    async def wait_for_round(self) -> None:
        """Wait for the background frame loop, if any, to finish."""
        if self._frame_task is not None:
            await self._frame_task

    async def _run_frames(self, current: Round) -> None:
        frame_ms = settings.frame_ms
        delay = frame_ms / 1000 if settings.realtime_animation else 0
        elapsed_ms = 0.0

        try:
            while current.status != RoundStatus.IDLE:
                self.driver.tick(frame_ms)
                elapsed_ms += frame_ms
                if current.status != RoundStatus.IDLE and elapsed_ms > settings.max_round_ms:
                    raise InvariantViolation(
                        f"Round {current.round_id} did not resolve within {settings.max_round_ms}ms"
                    )
                await asyncio.sleep(delay)
        except InvariantViolation:
            # The next spin starts from a ready coordinator
            self.coordinator.abort_round()
            raise

        if current.trick_text is not None and not is_placeholder(current.trick_text):
            await self.save_history()

    def _log_frame_failure(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Frame loop for %s failed",
                self.player_id,
                exc_info=(type(error), error, error.__traceback__),
            )


class SessionManager:
    """Lazily created, hydrated sessions keyed by player id."""

    def __init__(self, store: RedisService | None = None):
        self.store = store or redis_service
        self._sessions: dict[str, GameSession] = {}
        self._lock = asyncio.Lock()

    async def get(self, player_id: str) -> GameSession:
        session = self._sessions.get(player_id)
        if session is not None:
            return session
        async with self._lock:
            session = self._sessions.get(player_id)
            if session is None:
                session = GameSession(player_id, store=self.store)
                await session.hydrate()
                self._sessions[player_id] = session
        return session

    def reset(self) -> None:
        """Forget all sessions (used between tests)."""
        self._sessions.clear()
        self._lock = asyncio.Lock()


# Global instance
session_manager = SessionManager()
