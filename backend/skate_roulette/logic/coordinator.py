"""
Spin coordinator: runs one round at a time across the four reels.

Ready -> Spinning -> Resolving -> Ready. A round starts all four reels
together, stops them all when the minimum spin time is up, and resolves
once every reel has reported that it settled, in whatever order that happens.
"""
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Protocol

from skate_roulette.catalog_hash import get_catalog_hash
from skate_roulette.config import settings
from skate_roulette.errors import InvariantViolation
from skate_roulette.logic.animation import AnimationDriver
from skate_roulette.logic.catalog import Option
from skate_roulette.logic.formatter import ROLLING_TEXT, SKATERS_CHOICE, format_trick, is_placeholder
from skate_roulette.logic.models import REEL_COUNT, GameMode, ReelTarget, Round, RoundStatus
from skate_roulette.logic.reel import ReelEngine
from skate_roulette.logic.resolver import resolve
from skate_roulette.logic.rng import ProductionRNG, RNGBase
from skate_roulette.logic.settings_state import SettingsSnapshot, SettingsState
from skate_roulette.telemetry import (
    RoundResolvedEvent,
    SpinIgnoredEvent,
    SpinStartedEvent,
    TelemetryService,
    telemetry_service,
)

logger = logging.getLogger(__name__)


class CoordinatorStatus(str, Enum):
    READY = "ready"
    SPINNING = "spinning"
    RESOLVING = "resolving"


class HistoryCollaborator(Protocol):
    """Receives every resolved, non-placeholder trick."""

    def add_trick(self, text: str, mode: GameMode) -> Any:
        ...


class SpinCoordinator:
    """
    Owns four ReelEngines and the single live Round.

    Mode and difficulty must not change while a round is live; callers are
    expected to check is_live first. The coordinator only logs if it happens.
    """

    def __init__(
        self,
        settings_state: SettingsState,
        history: HistoryCollaborator,
        driver: AnimationDriver,
        rng: RNGBase | None = None,
        player_id: str = "local",
        telemetry: TelemetryService | None = None,
        min_spin_duration_ms: float | None = None,
        on_resolved: Callable[[Round], None] | None = None,
    ):
        self.settings_state = settings_state
        self.history = history
        self.driver = driver
        self.rng = rng or ProductionRNG()
        self.player_id = player_id
        self.telemetry = telemetry or telemetry_service
        self.min_spin_duration_ms = (
            settings.min_spin_duration_ms if min_spin_duration_ms is None else min_spin_duration_ms
        )
        self.on_resolved = on_resolved

        self.reels = [
            ReelEngine(index, driver, on_complete=self._on_reel_complete)
            for index in range(REEL_COUNT)
        ]
        self.status = CoordinatorStatus.READY
        self.round: Round | None = None
        self.last_round: Round | None = None
        self._stop_timer: int | None = None

        settings_state.subscribe(self._on_settings_changed)

    @property
    def is_live(self) -> bool:
        return self.status != CoordinatorStatus.READY

    @property
    def display_text(self) -> str:
        """What the result panel shows right now."""
        if self.is_live:
            return ROLLING_TEXT
        if self.last_round is not None and self.last_round.trick_text is not None:
            return self.last_round.trick_text
        return SKATERS_CHOICE

    def current_option_sets(self) -> list[tuple[Option, ...]]:
        """Option sets the next round would draw from."""
        return resolve(
            self.settings_state.mode,
            self.settings_state.difficulty,
            self.settings_state.custom_config,
        )

    def request_spin(self) -> Round | None:
        """
        Start a round, or do nothing if one is already live.

        Returns the new Round, or None when the request was ignored.
        """
        if self.status != CoordinatorStatus.READY:
            logger.debug("Spin ignored for %s: %s", self.player_id, self.status.value)
            self.telemetry.emit_spin_ignored(
                SpinIgnoredEvent(
                    player_id=self.player_id,
                    live_round_id=self.round.round_id if self.round else None,
                    status=self.status.value,
                )
            )
            return None

        mode = self.settings_state.mode
        difficulty = self.settings_state.difficulty

        # 1) Resolve the frozen option sets for this round
        option_sets = self.current_option_sets()

        # 2) Draw one independent target per reel
        targets = [
            ReelTarget(
                reel_index=index,
                option_set_length=len(options),
                target_index=self.rng.draw_index(len(options)),
            )
            for index, options in enumerate(option_sets)
        ]

        current = Round(round_id=str(uuid.uuid4()), mode=mode, targets=targets)
        self.round = current
        self.status = CoordinatorStatus.SPINNING

        # 3) Start every reel, then the minimum spin timer
        for reel, options, target in zip(self.reels, option_sets, targets):
            reel.start(options, target.target_index)
        self._stop_timer = self.driver.call_later(self.min_spin_duration_ms, self._stop_all)

        logger.info(
            "Round %s started for %s (%s/%s) targets=%s",
            current.round_id,
            self.player_id,
            mode.value,
            difficulty.value,
            [target.target_index for target in targets],
        )
        self.telemetry.emit_spin_started(
            SpinStartedEvent(
                player_id=self.player_id,
                round_id=current.round_id,
                mode=mode.value,
                difficulty=difficulty.value,
                option_set_lengths=[target.option_set_length for target in targets],
                target_indices=[target.target_index for target in targets],
            )
        )
        return current

    def _stop_all(self) -> None:
        self._stop_timer = None
        for reel in self.reels:
            reel.stop()

    def abort_round(self) -> Round | None:
        """
        Abandon the live round without resolving it.

        Reels stop where they are and nothing is recorded. Returns the
        abandoned round, or None if nothing was live.
        """
        current = self.round
        if self._stop_timer is not None:
            self.driver.cancel(self._stop_timer)
            self._stop_timer = None
        for reel in self.reels:
            reel.halt()
        self.round = None
        self.status = CoordinatorStatus.READY
        if current is not None:
            current.status = RoundStatus.IDLE
            logger.error("Round %s for %s abandoned", current.round_id, self.player_id)
        return current

    def _on_reel_complete(self, reel_index: int) -> None:
        current = self.round
        if self.status != CoordinatorStatus.SPINNING or current is None:
            logger.error(
                "Completion from reel %d ignored: coordinator is %s",
                reel_index,
                self.status.value,
            )
            return
        if reel_index in current.completed_reels:
            logger.error(
                "Duplicate completion from reel %d in round %s ignored",
                reel_index,
                current.round_id,
            )
            return

        current.completed_reels.add(reel_index)
        if current.completed_reel_count == REEL_COUNT:
            self._resolve(current)

    def _resolve(self, current: Round) -> None:
        self.status = CoordinatorStatus.RESOLVING
        current.status = RoundStatus.RESOLVING

        landed: list[str] = []
        for reel, target in zip(self.reels, current.targets):
            shown = reel.visible_index()
            if shown != target.target_index:
                raise InvariantViolation(
                    f"Reel {reel.reel_index} settled on {shown}, expected {target.target_index}"
                )
            landed.append(reel.landed_option.value)
        current.landed_values = landed

        text = format_trick(current.mode, landed)
        current.trick_text = text
        recorded = not is_placeholder(text)
        if recorded:
            self.history.add_trick(text, current.mode)

        logger.info("Round %s resolved: %r (recorded=%s)", current.round_id, text, recorded)
        self.telemetry.emit_round_resolved(
            RoundResolvedEvent(
                player_id=self.player_id,
                round_id=current.round_id,
                mode=current.mode.value,
                landed_values=landed,
                trick_text=text,
                recorded=recorded,
                catalog_hash=get_catalog_hash(),
            )
        )

        current.status = RoundStatus.IDLE
        self.last_round = current
        self.round = None
        self.status = CoordinatorStatus.READY

        if self.on_resolved is not None:
            self.on_resolved(current)

    def _on_settings_changed(self, snapshot: SettingsSnapshot) -> None:
        if self.is_live:
            if self.round is not None and snapshot.mode != self.round.mode:
                logger.warning(
                    "Mode changed to %s during round %s; the round keeps %s",
                    snapshot.mode.value,
                    self.round.round_id,
                    self.round.mode.value,
                )
            return
        if self.last_round is not None and snapshot.mode != self.last_round.mode:
            # Old result no longer matches the reels on screen
            self.last_round = None
