"""Application configuration derived from the environment."""
from pydantic import ConfigDict, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings; every field can be overridden with a SKATE_ variable."""

    model_config = ConfigDict(env_prefix="SKATE_")

    # Server
    debug: bool = False
    redis_url: str = "redis://localhost:6379/0"

    # Protocol
    protocol_version: str = "1.0"

    # Persistence (Redis TTL for settings and history documents)
    state_ttl_seconds: int = 60 * 60 * 24 * 365

    # Player defaults
    default_difficulty: str = "medium"
    default_mode: str = "flatground"

    # Frame loop
    realtime_animation: bool = True
    frame_ms: float = 1000 / 60
    max_round_ms: float = 30000.0

    # Round timing
    min_spin_duration_ms: float = 2500.0

    # Reel geometry and loop speed
    item_extent: float = 80.0
    loop_period_ms: float = 1500.0  # one full cycle for reel 0
    loop_period_step_ms: float = 200.0  # added per reel index
    extra_spins_base: int = 2  # extra cycles = base + reel index

    # Settle spring
    spring_damping: float = 18.0
    spring_stiffness: float = 100.0
    spring_mass: float = 1.0
    rest_displacement_threshold: float = 0.01
    rest_speed_threshold: float = 2.0

    @model_validator(mode="after")
    def check_round_timing(self) -> "Settings":
        """A round must be able to stop spinning before the frame loop gives up on it."""
        if self.min_spin_duration_ms >= self.max_round_ms:
            raise ValueError(
                f"min_spin_duration_ms ({self.min_spin_duration_ms}) must be below "
                f"max_round_ms ({self.max_round_ms})"
            )
        return self


settings = Settings()
