"""Server-side telemetry for rounds, settings changes and persistence."""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class SpinStartedEvent:
    """spin_started: a new round began."""

    player_id: str
    round_id: str
    mode: str
    difficulty: str
    option_set_lengths: list[int]
    target_indices: list[int]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SpinIgnoredEvent:
    """spin_ignored: a spin request arrived while a round was live."""

    player_id: str
    live_round_id: str | None
    status: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RoundResolvedEvent:
    """round_resolved: all four reels settled and the trick was formatted."""

    player_id: str
    round_id: str
    mode: str
    landed_values: list[str]
    trick_text: str
    recorded: bool  # False when the text was a placeholder
    catalog_hash: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SettingsChangedEvent:
    """settings_changed: difficulty, mode or a custom toggle was applied or ignored."""

    player_id: str
    field: str  # "difficulty" | "mode" | "custom"
    value: str
    applied: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PersistenceFailedEvent:
    """persistence_failed: a settings/history read or write fell back to memory."""

    player_id: str
    document: str  # "settings" | "history"
    operation: str  # "load" | "save"
    error: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class TelemetryService:
    """Service for emitting server telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures must not break a round or a request.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_spin_started(self, event: SpinStartedEvent) -> None:
        self._safe_emit("spin_started", event.to_dict())

    def emit_spin_ignored(self, event: SpinIgnoredEvent) -> None:
        self._safe_emit("spin_ignored", event.to_dict())

    def emit_round_resolved(self, event: RoundResolvedEvent) -> None:
        self._safe_emit("round_resolved", event.to_dict())

    def emit_settings_changed(self, event: SettingsChangedEvent) -> None:
        self._safe_emit("settings_changed", event.to_dict())

    def emit_persistence_failed(self, event: PersistenceFailedEvent) -> None:
        self._safe_emit("persistence_failed", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
