"""Trick history held in memory, newest first."""
import time
import uuid

from pydantic import BaseModel, Field

from skate_roulette.logic.models import GameMode


class TrickItem(BaseModel):
    """One generated trick."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    text: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    landed: bool = False
    mode: GameMode


class TrickHistory:
    """List of generated tricks. Callers persist it; this class never does I/O."""

    def __init__(self, items: list[TrickItem] | None = None):
        self._items: list[TrickItem] = list(items or [])

    def items(self) -> list[TrickItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def load(self, items: list[TrickItem]) -> None:
        self._items = list(items)

    def add_trick(self, text: str, mode: GameMode) -> TrickItem:
        item = TrickItem(text=text, mode=mode)
        self._items.insert(0, item)
        return item

    def toggle_landed(self, trick_id: str) -> TrickItem | None:
        """Flip the landed flag; None if no trick has that id."""
        for index, item in enumerate(self._items):
            if item.id == trick_id:
                updated = item.model_copy(update={"landed": not item.landed})
                self._items[index] = updated
                return updated
        return None

    def delete_trick(self, trick_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != trick_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []
