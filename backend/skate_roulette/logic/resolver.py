"""Slot resolver: which options each reel may land on for the next round."""
from typing import Callable

from skate_roulette.logic.catalog import Option, base_options
from skate_roulette.logic.models import (
    MODE_CATEGORIES,
    Category,
    CustomConfig,
    Difficulty,
    GameMode,
)

Predicate = Callable[[Option], bool]


def _allow(*values: str) -> Predicate:
    allowed = frozenset(values)
    return lambda option: option.value in allowed


def _deny(*values: str) -> Predicate:
    denied = frozenset(values)
    return lambda option: option.value not in denied


# Preset allow-lists. A category missing from a tier is not filtered.
# Medium stance lists every stance on purpose, so it behaves like hard.
PRESET_FILTERS: dict[Difficulty, dict[Category, Predicate]] = {
    Difficulty.EASY: {
        Category.STANCE: _allow("Regular", "Fakie"),
        Category.ROTATION: _allow("", "Backside", "Frontside"),
        Category.DEGREE: _allow("", "180"),
        Category.TRICK: _allow("Kickflip", "Heelflip", ""),
        Category.GRIND: _allow("50-50", "Boardslide", "Noseslide", "Tailslide"),
    },
    Difficulty.MEDIUM: {
        Category.STANCE: _allow("Regular", "Fakie", "Switch", "Nollie"),
        Category.GRIND: _deny("Bluntslide", "Noseblunt"),
    },
    Difficulty.HARD: {},
}

# Never filtered, whatever the difficulty
UNFILTERED_CATEGORIES = frozenset({Category.TRIES})


def resolve_category(
    category: Category,
    difficulty: Difficulty,
    custom_config: CustomConfig,
) -> tuple[Option, ...]:
    """
    Resolve one category's option set.

    Falls back to the full base set when filtering leaves nothing, so the
    result is never empty.
    """
    base = base_options(category)
    if category in UNFILTERED_CATEGORIES:
        return base

    if difficulty == Difficulty.CUSTOM:
        disabled = custom_config.disabled(category)
        filtered = tuple(option for option in base if option.value not in disabled)
    else:
        predicate = PRESET_FILTERS[difficulty].get(category)
        filtered = base if predicate is None else tuple(filter(predicate, base))

    return filtered or base


def resolve(
    mode: GameMode,
    difficulty: Difficulty,
    custom_config: CustomConfig | None = None,
) -> list[tuple[Option, ...]]:
    """
    Produce the four ordered option sets a round may draw from.

    Pure function of its inputs. The tuples are never mutated, so a round
    can hold on to them as its frozen view.
    """
    custom_config = custom_config or CustomConfig()
    return [
        resolve_category(category, difficulty, custom_config)
        for category in MODE_CATEGORIES[mode]
    ]
