"""Trick formatter rules for both modes."""
import pytest

from skate_roulette.logic.formatter import (
    ROLLING_TEXT,
    SKATERS_CHOICE,
    format_trick,
    is_placeholder,
)
from skate_roulette.logic.models import GameMode


class TestFlatground:
    def test_regular_stance_is_elided(self):
        values = ["Regular", "Backside", "180", "Kickflip"]
        assert format_trick(GameMode.FLATGROUND, values) == "BACKSIDE 180 KICKFLIP"

    def test_no_flip_prefixes_anything(self):
        assert format_trick(GameMode.FLATGROUND, ["Fakie", "", "", ""]) == "ANYTHING FAKIE"

    def test_all_empty_is_skaters_choice(self):
        assert format_trick(GameMode.FLATGROUND, ["Regular", "", "", ""]) == SKATERS_CHOICE

    def test_full_trick_keeps_order(self):
        values = ["Nollie", "Frontside", "360", "Heelflip"]
        assert format_trick(GameMode.FLATGROUND, values) == "NOLLIE FRONTSIDE 360 HEELFLIP"

    def test_rotation_without_flip(self):
        values = ["Switch", "Backside", "360", ""]
        assert format_trick(GameMode.FLATGROUND, values) == "ANYTHING SWITCH BACKSIDE 360"

    def test_flip_only(self):
        assert format_trick(GameMode.FLATGROUND, ["Regular", "", "", "Kickflip"]) == "KICKFLIP"


class TestLedge:
    def test_trick_name_orders_stance_rotation_grind(self):
        values = ["Switch", "50-50", "Frontside", "3 Tries"]
        assert format_trick(GameMode.LEDGE, values) == "SWITCH FRONTSIDE 50-50\n3 TRIES"

    def test_empty_trick_name_is_skaters_choice_with_tries(self):
        values = ["Regular", "", "", "Until Landed"]
        assert format_trick(GameMode.LEDGE, values) == "SKATER'S CHOICE\nUNTIL LANDED"

    def test_grind_without_rotation(self):
        values = ["Nollie", "Crooked", "", "1 Try"]
        assert format_trick(GameMode.LEDGE, values) == "NOLLIE CROOKED\n1 TRY"

    def test_regular_stance_elided(self):
        values = ["Regular", "Smith", "Backside", "2 Tries"]
        assert format_trick(GameMode.LEDGE, values) == "BACKSIDE SMITH\n2 TRIES"


def test_wrong_value_count_raises():
    with pytest.raises(ValueError):
        format_trick(GameMode.FLATGROUND, ["Regular", "", ""])


def test_placeholders():
    assert is_placeholder(ROLLING_TEXT)
    assert is_placeholder(SKATERS_CHOICE)
    # A ledge result always carries the tries line, so it is never a placeholder
    assert not is_placeholder("SKATER'S CHOICE\nUNTIL LANDED")
    assert not is_placeholder("KICKFLIP")
