"""Player settings held in memory, with synchronous reads and change listeners."""
import logging
from typing import Callable

from pydantic import BaseModel, Field

from skate_roulette.logic.models import CUSTOM_KEYS, Category, CustomConfig, Difficulty, GameMode

logger = logging.getLogger(__name__)


class SettingsSnapshot(BaseModel):
    """Everything the resolver needs, plus the persisted shape."""
    difficulty: Difficulty = Difficulty.MEDIUM
    mode: GameMode = GameMode.FLATGROUND
    customConfig: CustomConfig = Field(default_factory=CustomConfig)


SettingsListener = Callable[[SettingsSnapshot], None]


class SettingsState:
    """
    Current difficulty, mode and custom opt-out lists for one player.

    Listeners are called synchronously after every change that actually
    alters the snapshot.
    """

    def __init__(self, snapshot: SettingsSnapshot | None = None):
        self._snapshot = snapshot or SettingsSnapshot()
        self._listeners: list[SettingsListener] = []

    @property
    def difficulty(self) -> Difficulty:
        return self._snapshot.difficulty

    @property
    def mode(self) -> GameMode:
        return self._snapshot.mode

    @property
    def custom_config(self) -> CustomConfig:
        return self._snapshot.customConfig

    def snapshot(self) -> SettingsSnapshot:
        return self._snapshot.model_copy(deep=True)

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def load(self, snapshot: SettingsSnapshot) -> None:
        self._replace(snapshot)

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self._replace(self._snapshot.model_copy(update={"difficulty": difficulty}))

    def set_mode(self, mode: GameMode) -> None:
        self._replace(self._snapshot.model_copy(update={"mode": mode}))

    def toggle_custom_item(self, category: Category, value: str) -> bool:
        """
        Flip one value in a category's disabled list.

        Returns True if the value is now disabled.
        """
        key = CUSTOM_KEYS.get(category)
        if key is None:
            raise ValueError(f"Category {category.value} cannot be customised")

        current = list(getattr(self._snapshot.customConfig, key))
        if value in current:
            current = [item for item in current if item != value]
            disabled = False
        else:
            current.append(value)
            disabled = True

        custom = self._snapshot.customConfig.model_copy(update={key: current})
        self._replace(self._snapshot.model_copy(update={"customConfig": custom}))
        return disabled

    def _replace(self, snapshot: SettingsSnapshot) -> None:
        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(self.snapshot())
