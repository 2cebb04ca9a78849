"""Catalog hash computation.

One hash covers the option catalog, the preset filters' effect and the
animation constants, so telemetry and audit CSVs can be matched to the
exact configuration that produced them.
"""
import hashlib
import json

from skate_roulette.config import settings
from skate_roulette.logic.catalog import CATALOG
from skate_roulette.logic.models import Difficulty, GameMode
from skate_roulette.logic.resolver import resolve


def get_catalog_hash() -> str:
    """
    Generate hash of the current catalog and reel configuration.

    Returns 16-char hex hash.
    """
    snapshot = {
        "catalog": {
            category.value: [option.value for option in options]
            for category, options in CATALOG.items()
        },
        "presets": {
            f"{mode.value}:{difficulty.value}": [
                [option.value for option in options]
                for options in resolve(mode, difficulty)
            ]
            for mode in GameMode
            for difficulty in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)
        },
        "item_extent": settings.item_extent,
        "loop_period_ms": settings.loop_period_ms,
        "loop_period_step_ms": settings.loop_period_step_ms,
        "extra_spins_base": settings.extra_spins_base,
        "spring": [settings.spring_damping, settings.spring_stiffness, settings.spring_mass],
        "min_spin_duration_ms": settings.min_spin_duration_ms,
    }
    canonical = json.dumps(snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]
