"""Protocol models for the HTTP surface."""
from pydantic import BaseModel, Field

from skate_roulette.config import settings
from skate_roulette.logic.catalog import Option
from skate_roulette.logic.history import TrickItem
from skate_roulette.logic.models import Category, Difficulty, GameMode
from skate_roulette.logic.settings_state import SettingsSnapshot


# === Request Models ===


class SpinRequest(BaseModel):
    """POST /spin request body."""

    wait: bool = Field(default=False, description="Return only after the round resolves")


class DifficultyRequest(BaseModel):
    """PUT /settings/difficulty request body."""

    difficulty: Difficulty


class ModeRequest(BaseModel):
    """PUT /settings/mode request body."""

    mode: GameMode


class ToggleRequest(BaseModel):
    """POST /settings/custom/toggle request body."""

    category: Category
    value: str


# === Response Models ===


class CategoryConfiguration(BaseModel):
    """One category of the catalog, as shown on the settings screen."""

    category: Category
    options: list[Option]
    toggleable: bool
    # Options the settings screen offers a switch for (blank faces excluded)
    toggleableOptions: list[Option] = Field(default_factory=list)


class Configuration(BaseModel):
    """Configuration object in /init response."""

    difficulties: list[Difficulty] = Field(default_factory=lambda: list(Difficulty))
    modes: list[GameMode] = Field(default_factory=lambda: list(GameMode))
    catalog: list[CategoryConfiguration] = Field(default_factory=list)
    catalogHash: str
    minSpinDurationMs: float = settings.min_spin_duration_ms
    itemExtent: float = settings.item_extent


class InitResponse(BaseModel):
    """GET /init response."""

    protocolVersion: str = settings.protocol_version
    configuration: Configuration
    settings: SettingsSnapshot
    displayText: str


class SettingsResponse(BaseModel):
    """Settings snapshot plus whether the last change was applied."""

    protocolVersion: str = settings.protocol_version
    applied: bool = True
    settings: SettingsSnapshot
    enabledCounts: dict[str, int] = Field(default_factory=dict)


class SlotsResponse(BaseModel):
    """GET /slots response: option sets for the next round."""

    protocolVersion: str = settings.protocol_version
    mode: GameMode
    difficulty: Difficulty
    slots: list[list[Option]]


class ReelView(BaseModel):
    """One reel as seen from outside."""

    reelIndex: int
    state: str
    position: float | None
    visibleIndex: int | None
    targetIndex: int | None
    optionSetLength: int


class RoundView(BaseModel):
    """GET /round response."""

    protocolVersion: str = settings.protocol_version
    status: str
    roundId: str | None = None
    mode: GameMode | None = None
    completedReelCount: int = 0
    displayText: str
    reels: list[ReelView] = Field(default_factory=list)


class SpinResponse(BaseModel):
    """POST /spin response."""

    protocolVersion: str = settings.protocol_version
    accepted: bool
    roundId: str | None = None
    status: str
    mode: GameMode | None = None
    targets: list[int] = Field(default_factory=list)
    landedValues: list[str] = Field(default_factory=list)
    displayText: str


class HistoryResponse(BaseModel):
    """GET /history response."""

    protocolVersion: str = settings.protocol_version
    items: list[TrickItem] = Field(default_factory=list)
