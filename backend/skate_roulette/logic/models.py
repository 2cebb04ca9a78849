"""Round state models and the enumerations shared across the game logic."""
from enum import Enum

from pydantic import BaseModel, Field


class GameMode(str, Enum):
    """Which four categories make up a round."""
    FLATGROUND = "flatground"
    LEDGE = "ledge"


class Difficulty(str, Enum):
    """Preset filter tier, or the player's own opt-out list."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    CUSTOM = "custom"


class Category(str, Enum):
    """Option categories. Each reel is bound to one of these for a round."""
    STANCE = "stance"
    ROTATION = "rotation"
    DEGREE = "degree"
    TRICK = "trick"
    GRIND = "grind"
    TRIES = "tries"


# Reel order per mode
MODE_CATEGORIES: dict[GameMode, tuple[Category, Category, Category, Category]] = {
    GameMode.FLATGROUND: (Category.STANCE, Category.ROTATION, Category.DEGREE, Category.TRICK),
    GameMode.LEDGE: (Category.STANCE, Category.GRIND, Category.ROTATION, Category.TRIES),
}

REEL_COUNT = 4


class CustomConfig(BaseModel):
    """
    Disabled values per category, used when difficulty is CUSTOM.

    Field names are the persisted keys. "tries" has no entry because
    the tries reel is never filtered.
    """
    stances: list[str] = Field(default_factory=list)
    rotations: list[str] = Field(default_factory=list)
    degrees: list[str] = Field(default_factory=list)
    tricks: list[str] = Field(default_factory=list)
    grinds: list[str] = Field(default_factory=list)

    def disabled(self, category: Category) -> set[str]:
        """Disabled values for a category (empty for tries)."""
        key = CUSTOM_KEYS.get(category)
        if key is None:
            return set()
        return set(getattr(self, key))


# Category -> CustomConfig field name
CUSTOM_KEYS: dict[Category, str] = {
    Category.STANCE: "stances",
    Category.ROTATION: "rotations",
    Category.DEGREE: "degrees",
    Category.TRICK: "tricks",
    Category.GRIND: "grinds",
}


class RoundStatus(str, Enum):
    """Lifecycle of a single round."""
    IDLE = "idle"
    SPINNING = "spinning"
    RESOLVING = "resolving"


class ReelTarget(BaseModel):
    """Where one reel has been told to land for the current round."""
    reel_index: int = Field(ge=0, lt=REEL_COUNT)
    option_set_length: int = Field(gt=0)
    target_index: int = Field(ge=0)


class Round(BaseModel):
    """
    One spin-to-resolution cycle across all four reels.

    completed_reels holds the indices of reels that have signalled
    completion, so a repeated signal from the same reel is not counted twice.
    """
    round_id: str
    mode: GameMode
    targets: list[ReelTarget] = Field(default_factory=list)
    landed_values: list[str] = Field(default_factory=list)
    status: RoundStatus = RoundStatus.SPINNING
    completed_reels: set[int] = Field(default_factory=set)
    trick_text: str | None = None

    @property
    def completed_reel_count(self) -> int:
        return len(self.completed_reels)
