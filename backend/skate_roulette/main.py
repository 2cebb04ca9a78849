"""Skate Roulette FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from skate_roulette import __version__
from skate_roulette.catalog_hash import get_catalog_hash
from skate_roulette.errors import ErrorCode, GameError
from skate_roulette.logic.catalog import CATALOG, enabled_count, toggleable_options
from skate_roulette.logic.models import CUSTOM_KEYS
from skate_roulette.middleware import ErrorHandlerMiddleware, PlayerIdMiddleware
from skate_roulette.protocol import (
    CategoryConfiguration,
    Configuration,
    DifficultyRequest,
    HistoryResponse,
    InitResponse,
    ModeRequest,
    ReelView,
    RoundView,
    SettingsResponse,
    SlotsResponse,
    SpinRequest,
    SpinResponse,
    ToggleRequest,
)
from skate_roulette.redis_service import redis_service
from skate_roulette.session import GameSession, session_manager
from skate_roulette.validators import validate_toggle_request


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Redis connection lifecycle."""
    await redis_service.connect()
    yield
    await redis_service.close()


app = FastAPI(
    title="Skate Roulette",
    version=__version__,
    description="Four-reel skateboard trick generator",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(PlayerIdMiddleware)


async def _session(request: Request) -> GameSession:
    return await session_manager.get(request.state.player_id)


def _settings_response(session: GameSession, applied: bool = True) -> dict:
    custom = session.settings_state.custom_config
    response = SettingsResponse(
        applied=applied,
        settings=session.settings_state.snapshot(),
        enabledCounts={
            category.value: enabled_count(category, custom) for category in CUSTOM_KEYS
        },
    )
    return response.model_dump(mode="json")


def _round_view(session: GameSession) -> RoundView:
    coordinator = session.coordinator
    current = coordinator.round or coordinator.last_round
    reels = [
        ReelView(
            reelIndex=reel.reel_index,
            state=reel.state.value,
            position=reel.position,
            visibleIndex=reel.visible_index(),
            targetIndex=reel.target_index,
            optionSetLength=len(reel.option_set),
        )
        for reel in coordinator.reels
    ]
    return RoundView(
        status=coordinator.status.value,
        roundId=current.round_id if current else None,
        mode=current.mode if current else None,
        completedReelCount=current.completed_reel_count if current else 0,
        displayText=coordinator.display_text,
        reels=reels,
    )


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/init")
async def init(request: Request) -> dict:
    """Catalog, current settings and what the result panel shows."""
    session = await _session(request)
    configuration = Configuration(
        catalog=[
            CategoryConfiguration(
                category=category,
                options=list(options),
                toggleable=category in CUSTOM_KEYS,
                toggleableOptions=toggleable_options(category) if category in CUSTOM_KEYS else [],
            )
            for category, options in CATALOG.items()
        ],
        catalogHash=get_catalog_hash(),
    )
    response = InitResponse(
        configuration=configuration,
        settings=session.settings_state.snapshot(),
        displayText=session.coordinator.display_text,
    )
    return response.model_dump(mode="json")


@app.get("/settings")
async def get_settings(request: Request) -> dict:
    session = await _session(request)
    return _settings_response(session)


@app.put("/settings/difficulty")
async def put_difficulty(request: Request, body: DifficultyRequest) -> dict:
    """Change difficulty; ignored (applied=false) while a round is live."""
    session = await _session(request)
    applied = await session.set_difficulty(body.difficulty)
    return _settings_response(session, applied=applied)


@app.put("/settings/mode")
async def put_mode(request: Request, body: ModeRequest) -> dict:
    """Change game mode; ignored (applied=false) while a round is live."""
    session = await _session(request)
    applied = await session.set_mode(body.mode)
    return _settings_response(session, applied=applied)


@app.post("/settings/custom/toggle")
async def toggle_custom(request: Request, body: ToggleRequest) -> dict:
    """Enable or disable one value of a category in the custom lists."""
    validate_toggle_request(body)
    session = await _session(request)
    await session.toggle_custom_item(body.category, body.value)
    return _settings_response(session)


@app.get("/slots")
async def slots(request: Request) -> dict:
    """Option sets the next round would draw from."""
    session = await _session(request)
    state = session.settings_state
    response = SlotsResponse(
        mode=state.mode,
        difficulty=state.difficulty,
        slots=[list(options) for options in session.coordinator.current_option_sets()],
    )
    return response.model_dump(mode="json")


@app.post("/spin")
async def spin(request: Request, body: SpinRequest) -> dict:
    """
    Start a round.

    A request while a round is live is not an error: it returns
    accepted=false and the live round carries on.
    """
    session = await _session(request)
    current = await session.spin(wait=body.wait)

    if current is None:
        live = session.coordinator.round
        response = SpinResponse(
            accepted=False,
            roundId=live.round_id if live else None,
            status=session.coordinator.status.value,
            mode=live.mode if live else None,
            displayText=session.coordinator.display_text,
        )
        return response.model_dump(mode="json")

    response = SpinResponse(
        accepted=True,
        roundId=current.round_id,
        status=session.coordinator.status.value,
        mode=current.mode,
        targets=[target.target_index for target in current.targets],
        landedValues=current.landed_values,
        displayText=session.coordinator.display_text,
    )
    return response.model_dump(mode="json")


@app.get("/round")
async def get_round(request: Request) -> dict:
    """Live (or last) round with per-reel state."""
    session = await _session(request)
    return _round_view(session).model_dump(mode="json")


@app.get("/history")
async def get_history(request: Request) -> dict:
    session = await _session(request)
    return HistoryResponse(items=session.history.items()).model_dump(mode="json")


@app.post("/history/{trick_id}/landed")
async def toggle_landed(request: Request, trick_id: str) -> dict:
    session = await _session(request)
    item = await session.toggle_landed(trick_id)
    if item is None:
        raise GameError(ErrorCode.NOT_FOUND, f"No trick with id {trick_id}.")
    return item.model_dump(mode="json")


@app.delete("/history/{trick_id}")
async def delete_trick(request: Request, trick_id: str) -> dict:
    session = await _session(request)
    if not await session.delete_trick(trick_id):
        raise GameError(ErrorCode.NOT_FOUND, f"No trick with id {trick_id}.")
    return {"deleted": trick_id}


@app.delete("/history")
async def clear_history(request: Request) -> dict:
    session = await _session(request)
    await session.clear_history()
    return HistoryResponse(items=[]).model_dump(mode="json")
