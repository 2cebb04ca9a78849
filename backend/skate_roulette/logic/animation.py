"""
Animation driver.

A single-threaded tick source: callers advance it with tick(dt_ms) and it
feeds positions to the running animations, fires timers and then delivers
completion callbacks one at a time. Nothing here sleeps or spawns threads;
the session frame loop decides whether ticks follow the wall clock.
"""
import itertools
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from skate_roulette.config import settings

FrameCallback = Callable[[float, float], None]
CompletionCallback = Callable[[], None]


@dataclass(frozen=True)
class SpringConfig:
    """Physical parameters of the settle spring (units per second)."""

    damping: float = 18.0
    stiffness: float = 100.0
    mass: float = 1.0
    rest_displacement_threshold: float = 0.01
    rest_speed_threshold: float = 2.0

    @classmethod
    def from_settings(cls) -> "SpringConfig":
        return cls(
            damping=settings.spring_damping,
            stiffness=settings.spring_stiffness,
            mass=settings.spring_mass,
            rest_displacement_threshold=settings.rest_displacement_threshold,
            rest_speed_threshold=settings.rest_speed_threshold,
        )

    @property
    def natural_frequency(self) -> float:
        return math.sqrt(self.stiffness / self.mass)

    @property
    def damping_ratio(self) -> float:
        return self.damping / (2 * math.sqrt(self.stiffness * self.mass))


class Animation(ABC):
    """Base class for something the driver moves every frame."""

    def __init__(
        self,
        on_frame: FrameCallback | None = None,
        on_complete: CompletionCallback | None = None,
    ):
        self.on_frame = on_frame
        self.on_complete = on_complete
        self.started_ms = 0.0
        self.value = 0.0
        self.velocity = 0.0
        self.finished = False

    @abstractmethod
    def sample(self, elapsed_ms: float) -> tuple[float, float]:
        """Return (position, velocity per second) after elapsed_ms."""

    def step(self, elapsed_ms: float) -> None:
        self.value, self.velocity = self.sample(elapsed_ms)
        if self.on_frame is not None:
            self.on_frame(self.value, self.velocity)


class LoopAnimation(Animation):
    """Unbounded motion in the negative direction at a constant rate."""

    def __init__(self, start: float, rate_per_ms: float, on_frame: FrameCallback | None = None):
        if rate_per_ms <= 0:
            raise ValueError(f"Loop rate must be positive, got {rate_per_ms}")
        super().__init__(on_frame=on_frame)
        self.start = start
        self.rate_per_ms = rate_per_ms
        self.value = start
        self.velocity = -rate_per_ms * 1000

    def sample(self, elapsed_ms: float) -> tuple[float, float]:
        return self.start - self.rate_per_ms * elapsed_ms, -self.rate_per_ms * 1000


class SpringAnimation(Animation):
    """
    Damped harmonic oscillator from start towards end.

    Uses the closed-form solution for the under-, critically and over-damped
    cases. Once both displacement and speed drop under the rest thresholds the
    position snaps to end and the animation is finished.
    """

    def __init__(
        self,
        start: float,
        end: float,
        config: SpringConfig,
        velocity: float = 0.0,
        on_frame: FrameCallback | None = None,
        on_complete: CompletionCallback | None = None,
    ):
        super().__init__(on_frame=on_frame, on_complete=on_complete)
        self.start = start
        self.end = end
        self.config = config
        self.initial_velocity = velocity
        self.value = start
        self.velocity = velocity

    def _displacement(self, t: float) -> tuple[float, float]:
        d0 = self.start - self.end
        v0 = self.initial_velocity
        w0 = self.config.natural_frequency
        zeta = self.config.damping_ratio

        if zeta < 1:
            w1 = w0 * math.sqrt(1 - zeta * zeta)
            a = zeta * w0
            b = (v0 + a * d0) / w1
            envelope = math.exp(-a * t)
            cos_t = math.cos(w1 * t)
            sin_t = math.sin(w1 * t)
            d = envelope * (d0 * cos_t + b * sin_t)
            v = envelope * (-a * (d0 * cos_t + b * sin_t) + (-d0 * w1 * sin_t + b * w1 * cos_t))
            return d, v

        if zeta == 1:
            c = v0 + w0 * d0
            envelope = math.exp(-w0 * t)
            return envelope * (d0 + c * t), envelope * (c - w0 * (d0 + c * t))

        root = math.sqrt(zeta * zeta - 1)
        r1 = -w0 * (zeta - root)
        r2 = -w0 * (zeta + root)
        c2 = (v0 - r1 * d0) / (r2 - r1)
        c1 = d0 - c2
        e1 = math.exp(r1 * t)
        e2 = math.exp(r2 * t)
        return c1 * e1 + c2 * e2, r1 * c1 * e1 + r2 * c2 * e2

    def sample(self, elapsed_ms: float) -> tuple[float, float]:
        displacement, velocity = self._displacement(elapsed_ms / 1000)
        at_rest = (
            abs(displacement) < self.config.rest_displacement_threshold
            and abs(velocity) < self.config.rest_speed_threshold
        )
        if at_rest:
            self.finished = True
            return self.end, 0.0
        return self.end + displacement, velocity


@dataclass
class _Timer:
    handle: int
    due_ms: float
    callback: CompletionCallback


class AnimationDriver:
    """
    Owns the clock, the running animations and the pending timers.

    Within one tick: every animation is stepped to the new time, due timers
    fire in due order, then completion callbacks run in the order their
    animations were registered. Callbacks never overlap.
    """

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._handles = itertools.count(1)
        self._animations: dict[int, Animation] = {}
        self._timers: dict[int, _Timer] = {}

    def _register(self, animation: Animation) -> int:
        handle = next(self._handles)
        animation.started_ms = self.now_ms
        self._animations[handle] = animation
        return handle

    def loop(self, start: float, rate_per_ms: float, on_frame: FrameCallback | None = None) -> int:
        """Move from start in the negative direction forever."""
        return self._register(LoopAnimation(start, rate_per_ms, on_frame=on_frame))

    def spring(
        self,
        start: float,
        end: float,
        config: SpringConfig,
        velocity: float = 0.0,
        on_frame: FrameCallback | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> int:
        """Decelerate from start to end; on_complete fires once when at rest."""
        return self._register(
            SpringAnimation(
                start,
                end,
                config,
                velocity=velocity,
                on_frame=on_frame,
                on_complete=on_complete,
            )
        )

    def call_later(self, delay_ms: float, callback: CompletionCallback) -> int:
        handle = next(self._handles)
        self._timers[handle] = _Timer(handle, self.now_ms + delay_ms, callback)
        return handle

    def cancel(self, handle: int) -> bool:
        """Drop an animation or timer. Cancelled items never call back."""
        if self._animations.pop(handle, None) is not None:
            return True
        return self._timers.pop(handle, None) is not None

    def get(self, handle: int) -> Animation | None:
        return self._animations.get(handle)

    @property
    def idle(self) -> bool:
        """Nothing running and nothing scheduled."""
        return not self._animations and not self._timers

    def tick(self, dt_ms: float) -> None:
        if dt_ms < 0:
            raise ValueError(f"Cannot tick backwards (dt_ms={dt_ms})")
        self.now_ms += dt_ms

        completed: list[Animation] = []
        for handle, animation in list(self._animations.items()):
            if handle not in self._animations:
                continue
            animation.step(self.now_ms - animation.started_ms)
            if animation.finished:
                del self._animations[handle]
                completed.append(animation)

        due = sorted(
            (timer for timer in self._timers.values() if timer.due_ms <= self.now_ms),
            key=lambda timer: (timer.due_ms, timer.handle),
        )
        for timer in due:
            if self._timers.pop(timer.handle, None) is not None:
                timer.callback()

        for animation in completed:
            if animation.on_complete is not None:
                animation.on_complete()
