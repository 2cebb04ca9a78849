"""Request validators."""
from skate_roulette.errors import ErrorCode, GameError
from skate_roulette.logic.catalog import has_value
from skate_roulette.logic.models import CUSTOM_KEYS
from skate_roulette.protocol import ToggleRequest


def validate_toggle_request(request: ToggleRequest) -> None:
    """
    Validate a custom toggle.

    Raises INVALID_REQUEST if the category cannot be customised or the value
    is not one of the category's options.
    """
    if request.category not in CUSTOM_KEYS:
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"Category {request.category.value} cannot be customised.",
        )
    if not has_value(request.category, request.value):
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            f"Value {request.value!r} is not an option of {request.category.value}.",
        )


def validate_player_id(player_id: str | None) -> str:
    """Raises INVALID_REQUEST if the player id header is missing or blank."""
    if not player_id or not player_id.strip():
        raise GameError(
            ErrorCode.INVALID_REQUEST,
            "Missing required header: X-Player-Id",
        )
    return player_id.strip()
