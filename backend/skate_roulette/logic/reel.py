"""
Reel engine: one per reel, Idle -> Spinning -> Settling -> Idle.

Positions are a signed scalar that moves in the negative direction. The
reel's content is its option set repeated forever; item i of a cycle sits
at i * extent + position, and the viewing slot is the second visible row,
at offset extent.
"""
import logging
import math
from enum import Enum
from typing import Callable, Sequence

from skate_roulette.config import settings
from skate_roulette.errors import InvariantViolation
from skate_roulette.logic.animation import AnimationDriver, SpringConfig
from skate_roulette.logic.catalog import Option

logger = logging.getLogger(__name__)


class ReelState(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    SETTLING = "settling"


def canonical_rest(target_index: int, length: int, extent: float) -> float:
    """
    Resting position, within one cycle, that puts target_index in the viewing slot.

    Always in (-cycle, 0].
    """
    cycle = length * extent
    base = math.fmod(extent - target_index * extent, cycle)
    if base > 0:
        base -= cycle
    return base


def settle_position(
    position: float,
    target_index: int,
    length: int,
    extent: float,
    extra_spins: int,
) -> float:
    """
    Final resting position when stopping a reel that is currently at position.

    The reel keeps moving in the negative direction to the next occurrence of
    the target, then runs extra_spins further full cycles.
    """
    cycle = length * extent
    base = canonical_rest(target_index, length, extent)
    delta = base - math.fmod(position, cycle)
    while delta > 0:
        delta -= cycle
    return position + delta - extra_spins * cycle


def index_at_viewport(position: float, length: int, extent: float) -> int:
    """Index of the option shown in the viewing slot at position."""
    return round((extent - position) / extent) % length


class ReelEngine:
    """
    Drives one reel's spin and settle on a shared AnimationDriver.

    on_complete is called with the reel index exactly once per settle.
    """

    def __init__(
        self,
        reel_index: int,
        driver: AnimationDriver,
        on_complete: Callable[[int], None] | None = None,
        item_extent: float | None = None,
        spring_config: SpringConfig | None = None,
    ):
        self.reel_index = reel_index
        self.driver = driver
        self.on_complete = on_complete
        self.item_extent = item_extent or settings.item_extent
        self.spring_config = spring_config or SpringConfig.from_settings()

        self.state = ReelState.IDLE
        self.option_set: tuple[Option, ...] = ()
        self.target_index: int | None = None
        # None until the loop has delivered its first frame in this spin
        self.position: float | None = None
        self.velocity = 0.0
        self.final_position: float | None = None

        self._rest_position = 0.0
        self._handle: int | None = None

    @property
    def cycle(self) -> float:
        return len(self.option_set) * self.item_extent

    @property
    def loop_period_ms(self) -> float:
        """Time for one full cycle; later reels loop slightly slower."""
        return settings.loop_period_ms + self.reel_index * settings.loop_period_step_ms

    @property
    def extra_spins(self) -> int:
        """Extra full cycles on settle; later reels travel further."""
        return settings.extra_spins_base + self.reel_index

    @property
    def landed_option(self) -> Option:
        if self.target_index is None:
            raise InvariantViolation(f"Reel {self.reel_index} has no target")
        return self.option_set[self.target_index]

    def visible_index(self) -> int | None:
        """Index currently in the viewing slot, or None before the first spin."""
        if not self.option_set:
            return None
        position = self.position if self.position is not None else self._rest_position
        return index_at_viewport(position, len(self.option_set), self.item_extent)

    def start(self, option_set: Sequence[Option], target_index: int) -> None:
        """Begin looping over option_set; target_index is where stop() will land."""
        if self.state != ReelState.IDLE:
            raise InvariantViolation(
                f"Reel {self.reel_index} started while {self.state.value}"
            )
        if not option_set:
            raise InvariantViolation(f"Reel {self.reel_index} got an empty option set")
        if not 0 <= target_index < len(option_set):
            raise InvariantViolation(
                f"Reel {self.reel_index} target {target_index} out of range "
                f"for {len(option_set)} options"
            )

        self.option_set = tuple(option_set)
        self.target_index = target_index
        self.final_position = None
        self.position = None
        self.velocity = 0.0
        self.state = ReelState.SPINNING

        start = math.fmod(self._rest_position, self.cycle) - self.cycle
        rate_per_ms = self.cycle / self.loop_period_ms
        self._handle = self.driver.loop(start, rate_per_ms, on_frame=self._on_frame)

    def stop(self) -> None:
        """Settle onto the target. Completion is signalled later, from the driver."""
        if self.state != ReelState.SPINNING:
            logger.warning(
                "Reel %d stop ignored while %s", self.reel_index, self.state.value
            )
            return
        if self._handle is not None:
            self.driver.cancel(self._handle)
        self.state = ReelState.SETTLING

        length = len(self.option_set)
        if self.position is None:
            # Never moved: land straight on the canonical slot
            self.final_position = canonical_rest(self.target_index, length, self.item_extent)
            self._handle = self.driver.call_later(0, self._finish)
            return

        self.final_position = settle_position(
            self.position,
            self.target_index,
            length,
            self.item_extent,
            self.extra_spins,
        )
        self._handle = self.driver.spring(
            self.position,
            self.final_position,
            self.spring_config,
            velocity=self.velocity,
            on_frame=self._on_frame,
            on_complete=self._finish,
        )

    def halt(self) -> None:
        """Go idle where the reel stands. No completion is signalled."""
        if self._handle is not None:
            self.driver.cancel(self._handle)
            self._handle = None
        if self.position is not None:
            self._rest_position = self.position
        self.velocity = 0.0
        self.state = ReelState.IDLE

    def _on_frame(self, value: float, velocity: float) -> None:
        self.position = value
        self.velocity = velocity

    def _finish(self) -> None:
        if self.state != ReelState.SETTLING:
            raise InvariantViolation(
                f"Reel {self.reel_index} finished settling while {self.state.value}"
            )
        self.position = self.final_position
        self._rest_position = self.final_position
        self.velocity = 0.0
        self._handle = None
        self.state = ReelState.IDLE
        logger.debug(
            "Reel %d settled on index %d at %.2f",
            self.reel_index,
            self.target_index,
            self.final_position,
        )
        if self.on_complete is not None:
            self.on_complete(self.reel_index)
