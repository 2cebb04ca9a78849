"""Animation driver: loop and spring motion, timers and callback ordering."""
import pytest

from skate_roulette.logic.animation import AnimationDriver, LoopAnimation, SpringConfig

FRAME_MS = 1000 / 60


def run_until_idle(driver: AnimationDriver, max_frames: int = 2000) -> int:
    for frame in range(1, max_frames + 1):
        driver.tick(FRAME_MS)
        if driver.idle:
            return frame
    raise AssertionError("driver never went idle")


class TestLoop:
    def test_moves_negative_at_constant_rate(self):
        driver = AnimationDriver()
        positions = []
        driver.loop(0.0, 0.5, on_frame=lambda value, velocity: positions.append(value))

        driver.tick(100)
        driver.tick(100)

        assert positions == [-50.0, -100.0]

    def test_reports_velocity_per_second(self):
        driver = AnimationDriver()
        velocities = []
        driver.loop(0.0, 0.25, on_frame=lambda value, velocity: velocities.append(velocity))
        driver.tick(10)
        assert velocities == [-250.0]

    def test_never_finishes_on_its_own(self):
        driver = AnimationDriver()
        driver.loop(0.0, 1.0)
        for _ in range(1000):
            driver.tick(FRAME_MS)
        assert not driver.idle

    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            LoopAnimation(0.0, 0.0)


class TestSpring:
    @pytest.mark.parametrize("damping", [18.0, 20.0, 30.0])
    def test_settles_exactly_on_end(self, damping):
        """Under-, critically and over-damped springs all come to rest on end."""
        config = SpringConfig(damping=damping)
        driver = AnimationDriver()
        completions = []
        handle = driver.spring(
            -100.0, -400.0, config, velocity=-300.0,
            on_complete=lambda: completions.append(driver.now_ms),
        )
        animation = driver.get(handle)

        run_until_idle(driver)

        assert animation.value == -400.0
        assert animation.velocity == 0.0
        assert len(completions) == 1

    def test_damping_regimes(self):
        assert SpringConfig(damping=18.0).damping_ratio < 1
        assert SpringConfig(damping=20.0).damping_ratio == 1
        assert SpringConfig(damping=30.0).damping_ratio > 1

    def test_completion_fires_once(self):
        driver = AnimationDriver()
        completions = []
        driver.spring(0.0, -80.0, SpringConfig(), on_complete=lambda: completions.append(1))

        run_until_idle(driver)
        for _ in range(10):
            driver.tick(FRAME_MS)

        assert completions == [1]

    def test_starts_from_given_position(self):
        driver = AnimationDriver()
        positions = []
        driver.spring(
            -10.0, -90.0, SpringConfig(),
            on_frame=lambda value, velocity: positions.append(value),
        )
        driver.tick(1)
        assert -90.0 < positions[0] <= -10.0


class TestTimers:
    def test_fire_in_due_order(self):
        driver = AnimationDriver()
        fired = []
        driver.call_later(30, lambda: fired.append("late"))
        driver.call_later(10, lambda: fired.append("early"))

        driver.tick(50)

        assert fired == ["early", "late"]

    def test_same_due_time_fires_in_scheduling_order(self):
        driver = AnimationDriver()
        fired = []
        driver.call_later(0, lambda: fired.append("a"))
        driver.call_later(0, lambda: fired.append("b"))
        driver.tick(0)
        assert fired == ["a", "b"]

    def test_not_fired_before_due(self):
        driver = AnimationDriver()
        fired = []
        driver.call_later(100, lambda: fired.append(driver.now_ms))
        driver.tick(99)
        assert fired == []
        driver.tick(1)
        assert fired == [100]

    def test_cancelled_timer_never_fires(self):
        driver = AnimationDriver()
        fired = []
        handle = driver.call_later(10, lambda: fired.append(1))

        assert driver.cancel(handle) is True
        driver.tick(20)

        assert fired == []
        assert driver.idle

    def test_cancel_unknown_handle(self):
        assert AnimationDriver().cancel(12345) is False


class TestOrdering:
    def test_completions_follow_settle_time(self):
        driver = AnimationDriver()
        order = []
        driver.spring(0.0, -1000.0, SpringConfig(), on_complete=lambda: order.append("far"))
        driver.spring(0.0, -0.001, SpringConfig(), on_complete=lambda: order.append("near"))
        driver.spring(0.0, -0.002, SpringConfig(), on_complete=lambda: order.append("near2"))

        run_until_idle(driver)

        assert order == ["near", "near2", "far"]

    def test_same_tick_completions_in_registration_order(self):
        driver = AnimationDriver()
        order = []
        for name in ("first", "second", "third"):
            driver.spring(0.0, 0.0, SpringConfig(), on_complete=lambda name=name: order.append(name))

        driver.tick(FRAME_MS)

        assert order == ["first", "second", "third"]

    def test_timers_fire_before_completions_in_a_tick(self):
        driver = AnimationDriver()
        order = []
        driver.spring(0.0, 0.0, SpringConfig(), on_complete=lambda: order.append("spring"))
        driver.call_later(0, lambda: order.append("timer"))

        driver.tick(FRAME_MS)

        assert order == ["timer", "spring"]

    def test_cancelled_animation_does_not_complete(self):
        driver = AnimationDriver()
        order = []
        handle = driver.spring(0.0, 0.0, SpringConfig(), on_complete=lambda: order.append(1))
        driver.cancel(handle)
        driver.tick(FRAME_MS)
        assert order == []


def test_tick_backwards_raises():
    with pytest.raises(ValueError):
        AnimationDriver().tick(-1)


def test_tick_advances_clock():
    driver = AnimationDriver()
    driver.tick(10)
    driver.tick(5.5)
    assert driver.now_ms == 15.5
