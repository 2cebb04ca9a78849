"""In-memory settings and change notification."""
import pytest

from skate_roulette.logic.models import Category, Difficulty, GameMode
from skate_roulette.logic.settings_state import SettingsSnapshot, SettingsState


def test_defaults():
    state = SettingsState()
    assert state.difficulty == Difficulty.MEDIUM
    assert state.mode == GameMode.FLATGROUND
    assert state.custom_config.stances == []


def test_listeners_get_new_snapshot():
    state = SettingsState()
    seen = []
    state.subscribe(seen.append)

    state.set_mode(GameMode.LEDGE)

    assert [snapshot.mode for snapshot in seen] == [GameMode.LEDGE]


def test_no_notification_without_change():
    state = SettingsState()
    seen = []
    state.subscribe(seen.append)

    state.set_difficulty(Difficulty.MEDIUM)
    state.load(SettingsSnapshot())

    assert seen == []


def test_unsubscribe():
    state = SettingsState()
    seen = []
    unsubscribe = state.subscribe(seen.append)
    unsubscribe()
    state.set_difficulty(Difficulty.HARD)
    assert seen == []


def test_toggle_custom_item_adds_then_removes():
    state = SettingsState()
    assert state.toggle_custom_item(Category.GRIND, "Smith") is True
    assert state.custom_config.grinds == ["Smith"]
    assert state.toggle_custom_item(Category.GRIND, "Smith") is False
    assert state.custom_config.grinds == []


def test_tries_cannot_be_customised():
    with pytest.raises(ValueError):
        SettingsState().toggle_custom_item(Category.TRIES, "1 Try")


def test_snapshot_is_a_copy():
    state = SettingsState()
    snapshot = state.snapshot()
    snapshot.customConfig.stances.append("Fakie")
    assert state.custom_config.stances == []
