"""Trick formatter: turns four landed values into the displayed trick."""
from skate_roulette.logic.models import GameMode

ROLLING_TEXT = "ROLLING..."
SKATERS_CHOICE = "SKATER'S CHOICE"

# Texts that mean "no trick to record"
PLACEHOLDER_TEXTS = frozenset({ROLLING_TEXT, SKATERS_CHOICE})

# Stance that is implied and never spelled out
DEFAULT_STANCE = "Regular"


def _join_upper(parts: list[str]) -> str:
    return " ".join(part for part in parts if part).upper()


def format_trick(mode: GameMode, landed_values: list[str]) -> str:
    """
    Build the display string for a resolved round.

    Flatground values are (stance, rotation, degree, trick); ledge values are
    (stance, grind, rotation, tries).
    """
    if len(landed_values) != 4:
        raise ValueError(f"Expected 4 landed values, got {len(landed_values)}")

    if mode == GameMode.FLATGROUND:
        stance, rotation, degree, trick = landed_values
        if stance == DEFAULT_STANCE:
            stance = ""
        parts = [part for part in (stance, rotation, degree, trick) if part]
        if not parts:
            return SKATERS_CHOICE
        if not trick:
            return "ANYTHING " + _join_upper(parts)
        return _join_upper(parts)

    stance, grind, rotation, tries = landed_values
    if stance == DEFAULT_STANCE:
        stance = ""
    trick_name = _join_upper([stance, rotation, grind]) or SKATERS_CHOICE
    return f"{trick_name}\n{tries.upper()}"


def is_placeholder(text: str) -> bool:
    """True for texts that should not be written to history."""
    return text in PLACEHOLDER_TEXTS
