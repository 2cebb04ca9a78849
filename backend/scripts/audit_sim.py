#!/usr/bin/env python3
"""
Audit simulation: runs complete rounds headless and reports landing frequencies.

Every round goes through the real coordinator, reels and animation driver on
virtual time, so the CSV reflects what players actually get.

Usage:
    python -m scripts.audit_sim --mode flatground --difficulty easy --rounds 2000 --seed AUDIT_2026 --out out/audit_flat_easy.csv
    python -m scripts.audit_sim --mode ledge --difficulty hard --rounds 2000 --seed AUDIT_2026 --out out/audit_ledge_hard.csv
"""
import argparse
import csv
import hashlib
import subprocess
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from skate_roulette.catalog_hash import get_catalog_hash
from skate_roulette.config import settings
from skate_roulette.logic.animation import AnimationDriver
from skate_roulette.logic.coordinator import SpinCoordinator
from skate_roulette.logic.history import TrickHistory
from skate_roulette.logic.models import MODE_CATEGORIES, Difficulty, GameMode, RoundStatus
from skate_roulette.logic.rng import SeededRNG
from skate_roulette.logic.settings_state import SettingsSnapshot, SettingsState
from skate_roulette.telemetry import TelemetryService


class _NullSink:
    """Keeps per-round telemetry out of the simulation output."""

    def emit(self, event_name: str, data: dict) -> None:
        pass


@dataclass
class SimulationStats:
    """Statistics accumulated during simulation."""
    rounds: int = 0
    recorded: int = 0
    placeholders: int = 0
    out_of_set: int = 0
    frames: int = 0
    # reel index -> value -> hits
    hits: list[Counter] = field(default_factory=lambda: [Counter() for _ in range(4)])
    # reel index -> value -> share of the resolved option set
    expected: list[dict[str, float]] = field(default_factory=lambda: [{} for _ in range(4)])
    tricks: Counter = field(default_factory=Counter)


def get_git_commit() -> str:
    """Get current git commit hash (short)."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
            timeout=5,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError):
        pass
    return "unknown"


def get_timestamp_iso() -> str:
    """Get ISO 8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def seed_to_int(seed_str: str) -> int:
    """Convert string seed to integer deterministically."""
    return int(hashlib.sha256(seed_str.encode()).hexdigest(), 16) % (2**31)


def run_simulation(
    mode: str,
    difficulty: str,
    rounds: int,
    seed_str: str,
    min_spin_ms: float | None = None,
    verbose: bool = False,
) -> SimulationStats:
    """
    Run headless rounds.

    Args:
        mode: 'flatground' or 'ledge'
        difficulty: 'easy', 'medium', 'hard' or 'custom' (empty custom lists)
        rounds: Number of rounds to simulate
        seed_str: Seed string for reproducibility
        min_spin_ms: Override the minimum spin time (shorter runs faster)
        verbose: Print progress

    Returns:
        SimulationStats with aggregated results
    """
    state = SettingsState(
        SettingsSnapshot(difficulty=Difficulty(difficulty), mode=GameMode(mode))
    )
    history = TrickHistory()
    driver = AnimationDriver()
    coordinator = SpinCoordinator(
        state,
        history,
        driver,
        rng=SeededRNG(seed=seed_to_int(seed_str)),
        player_id="audit",
        telemetry=TelemetryService(sink=_NullSink()),
        min_spin_duration_ms=min_spin_ms,
    )

    stats = SimulationStats()
    option_sets = coordinator.current_option_sets()
    for reel_index, options in enumerate(option_sets):
        for option in options:
            share = stats.expected[reel_index].get(option.value, 0.0)
            stats.expected[reel_index][option.value] = share + 1 / len(options)

    progress_interval = max(1, rounds // 100)
    max_frames = int(settings.max_round_ms / settings.frame_ms)

    for round_count in range(rounds):
        if verbose and round_count % progress_interval == 0:
            pct = (round_count / rounds) * 100
            print(f"\rProgress: {pct:.1f}%", end="", flush=True)

        current = coordinator.request_spin()
        if current is None:
            raise RuntimeError("Coordinator refused a spin while idle")

        frames = 0
        while current.status != RoundStatus.IDLE:
            driver.tick(settings.frame_ms)
            frames += 1
            if frames > max_frames:
                raise RuntimeError(f"Round {current.round_id} did not resolve")
        stats.frames += frames

        stats.rounds += 1
        for reel_index, value in enumerate(current.landed_values):
            stats.hits[reel_index][value] += 1
            if value not in {option.value for option in option_sets[reel_index]}:
                stats.out_of_set += 1
        stats.tricks[current.trick_text] += 1

    stats.recorded = len(history)
    stats.placeholders = stats.rounds - stats.recorded

    if verbose:
        print("\rProgress: 100.0%")

    return stats


def generate_csv(
    mode: str,
    difficulty: str,
    rounds: int,
    seed_str: str,
    stats: SimulationStats,
    output_path: str,
) -> None:
    """Write one row per (reel, value) with observed and expected frequency."""
    timestamp = get_timestamp_iso()
    git_commit = get_git_commit()
    catalog_hash = get_catalog_hash()
    categories = MODE_CATEGORIES[GameMode(mode)]

    rows = []
    for reel_index, expected in enumerate(stats.expected):
        for value, share in expected.items():
            hits = stats.hits[reel_index][value]
            frequency = hits / stats.rounds if stats.rounds > 0 else 0
            rows.append({
                "timestamp": timestamp,
                "git_commit": git_commit,
                "catalog_hash": catalog_hash,
                "mode": mode,
                "difficulty": difficulty,
                "rounds": rounds,
                "seed": seed_str,
                "reel": reel_index,
                "category": categories[reel_index].value,
                "value": value or "<blank>",
                "hits": hits,
                "frequency": f"{frequency:.6f}",
                "expected_frequency": f"{share:.6f}",
            })

    # Ensure output directory exists
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys())
        writer.writeheader()
        writer.writerows(rows)

    print(f"CSV written to: {output_path}")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Headless round simulation")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in GameMode],
        required=True,
        help="Game mode",
    )
    parser.add_argument(
        "--difficulty",
        choices=[difficulty.value for difficulty in Difficulty],
        default="medium",
        help="Difficulty preset",
    )
    parser.add_argument("--rounds", type=int, required=True, help="Number of rounds to simulate")
    parser.add_argument("--seed", type=str, required=True, help="Seed string for reproducibility")
    parser.add_argument("--out", type=str, required=True, help="Output CSV path")
    parser.add_argument(
        "--min-spin-ms",
        type=float,
        default=None,
        help="Override the minimum spin time",
    )
    parser.add_argument("--verbose", action="store_true", help="Show progress")

    args = parser.parse_args()

    print(
        f"Running simulation: mode={args.mode}, difficulty={args.difficulty}, "
        f"rounds={args.rounds}, seed={args.seed}"
    )
    print(f"Catalog hash: {get_catalog_hash()}")

    stats = run_simulation(
        mode=args.mode,
        difficulty=args.difficulty,
        rounds=args.rounds,
        seed_str=args.seed,
        min_spin_ms=args.min_spin_ms,
        verbose=args.verbose,
    )

    generate_csv(
        mode=args.mode,
        difficulty=args.difficulty,
        rounds=args.rounds,
        seed_str=args.seed,
        stats=stats,
        output_path=args.out,
    )

    print("\nSummary:")
    print(f"  Rounds: {stats.rounds}")
    print(f"  Recorded tricks: {stats.recorded}")
    print(f"  Placeholder results: {stats.placeholders}")
    print(f"  Avg frames per round: {stats.frames / max(stats.rounds, 1):.1f}")
    for trick, count in stats.tricks.most_common(5):
        print(f"  {trick!r}: {count}")

    # ASSERTION: every landed value belongs to its reel's option set
    if stats.out_of_set:
        print(f"ASSERTION FAILED: {stats.out_of_set} landed values outside their option set")
        return 1
    print("\nASSERTION PASSED: all landed values inside their option sets")
    return 0


if __name__ == "__main__":
    sys.exit(main())
