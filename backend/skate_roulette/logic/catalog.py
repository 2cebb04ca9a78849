"""Option catalog: every value each reel category can show."""
from pydantic import BaseModel, ConfigDict

from skate_roulette.logic.models import Category, CustomConfig


class Option(BaseModel):
    """
    One face of a reel.

    label is the display text and may contain a line break.
    value is the canonical value; an empty value means "nothing here".
    """
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


EMPTY_LABEL = "X"


def _blank() -> Option:
    return Option(label=EMPTY_LABEL, value="")


STANCE_OPTIONS: tuple[Option, ...] = (
    Option(label="REGULAR", value="Regular"),
    Option(label="FAKIE", value="Fakie"),
    Option(label="SWITCH", value="Switch"),
    Option(label="NOLLIE", value="Nollie"),
)

ROTATION_OPTIONS: tuple[Option, ...] = (
    Option(label="BACK\nSIDE", value="Backside"),
    Option(label="FRONT\nSIDE", value="Frontside"),
    _blank(),
    _blank(),
)

DEGREE_OPTIONS: tuple[Option, ...] = (
    Option(label="180", value="180"),
    Option(label="360", value="360"),
    _blank(),
    _blank(),
)

# Blank faces leave the flip out (just rotation / shuv)
TRICK_OPTIONS: tuple[Option, ...] = (
    Option(label="KICK\nFLIP", value="Kickflip"),
    Option(label="HEEL\nFLIP", value="Heelflip"),
    _blank(),
    _blank(),
)

GRIND_OPTIONS: tuple[Option, ...] = (
    Option(label="50-50", value="50-50"),
    Option(label="5-0", value="5-0"),
    Option(label="BOARD\nSLIDE", value="Boardslide"),
    Option(label="NOSE\nSLIDE", value="Noseslide"),
    Option(label="TAIL\nSLIDE", value="Tailslide"),
    Option(label="SMITH", value="Smith"),
    Option(label="FEEBLE", value="Feeble"),
    Option(label="CROOKED", value="Crooked"),
    Option(label="BLUNT\nSLIDE", value="Bluntslide"),
    Option(label="NOSE\nBLUNT", value="Noseblunt"),
)

TRIES_OPTIONS: tuple[Option, ...] = (
    Option(label="1 TRY", value="1 Try"),
    Option(label="2 TRIES", value="2 Tries"),
    Option(label="3 TRIES", value="3 Tries"),
    Option(label="UNTIL\nLANDED", value="Until Landed"),
)

CATALOG: dict[Category, tuple[Option, ...]] = {
    Category.STANCE: STANCE_OPTIONS,
    Category.ROTATION: ROTATION_OPTIONS,
    Category.DEGREE: DEGREE_OPTIONS,
    Category.TRICK: TRICK_OPTIONS,
    Category.GRIND: GRIND_OPTIONS,
    Category.TRIES: TRIES_OPTIONS,
}


def base_options(category: Category) -> tuple[Option, ...]:
    """Full, unfiltered option set for a category."""
    return CATALOG[category]


def has_value(category: Category, value: str) -> bool:
    return any(option.value == value for option in CATALOG[category])


def toggleable_options(category: Category) -> list[Option]:
    """Options a player can switch on and off individually (blanks excluded)."""
    return [option for option in CATALOG[category] if option.value]


def enabled_count(category: Category, custom_config: CustomConfig) -> int:
    """How many base options survive the player's custom opt-out list."""
    disabled = custom_config.disabled(category)
    return sum(1 for option in CATALOG[category] if option.value not in disabled)
