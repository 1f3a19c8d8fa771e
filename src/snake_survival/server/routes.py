"""REST API route handlers for the game session."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, Response

from snake_survival.server.models import (
    DirectionRequest,
    DirectionResponse,
    ErrorResponse,
    ImportResponse,
    PhaseResponse,
    SaveResponse,
    StorageInfoResponse,
)
from snake_survival.session import GameSession
from snake_survival.snake import Direction
from snake_survival.storage import GameStatistics, SessionSummary

router = APIRouter(prefix="/game", tags=["game"])


def _get_session(request: Request) -> GameSession:
    return request.app.state.session


def _phase(session: GameSession) -> PhaseResponse:
    return PhaseResponse(
        phase=session.phase,
        score=session.engine.score,
        tick_interval_ms=session.engine.tick_interval_ms,
    )


@router.get("")
async def get_game(request: Request) -> dict:
    """Full snapshot of the board."""
    return _get_session(request).get_state()


@router.post("/start", responses={409: {"model": ErrorResponse}})
async def start_game(request: Request) -> PhaseResponse:
    session = _get_session(request)
    if not await session.start():
        raise HTTPException(
            status_code=409, detail=f"Cannot start from {session.phase.value}.",
        )
    return _phase(session)


@router.post("/pause", responses={409: {"model": ErrorResponse}})
async def toggle_pause(request: Request) -> PhaseResponse:
    """Pause a running game or resume a paused one."""
    session = _get_session(request)
    if not await session.toggle_pause():
        raise HTTPException(
            status_code=409, detail=f"Cannot pause from {session.phase.value}.",
        )
    return _phase(session)


@router.post("/reset")
async def reset_game(request: Request) -> PhaseResponse:
    session = _get_session(request)
    await session.reset()
    return _phase(session)


@router.post("/direction")
async def change_direction(
    body: DirectionRequest, request: Request,
) -> DirectionResponse:
    accepted = _get_session(request).change_direction(
        Direction.parse(body.direction),
    )
    return DirectionResponse(accepted=accepted)


@router.post("/save")
async def save_game(request: Request) -> SaveResponse:
    session = _get_session(request)
    async with session.lock:
        saved = session.save()
    return SaveResponse(saved=saved)


@router.get("/history")
async def get_history(request: Request, limit: int | None = None) -> list[SessionSummary]:
    """Finished sessions, most recent first."""
    history = _get_session(request).storage.get_history()
    return history if limit is None else history[:limit]


@router.get("/statistics")
async def get_statistics(request: Request) -> GameStatistics:
    return _get_session(request).storage.get_statistics()


@router.get("/export")
async def export_data(request: Request) -> Response:
    payload = _get_session(request).storage.export_data()
    return Response(content=payload, media_type="application/json")


@router.post("/import", responses={422: {"model": ErrorResponse}})
async def import_data(request: Request) -> ImportResponse:
    try:
        payload = (await request.body()).decode()
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="Invalid game data.") from None
    if not _get_session(request).storage.import_data(payload):
        raise HTTPException(status_code=422, detail="Invalid game data.")
    return ImportResponse(imported=True)


@router.get("/storage")
async def storage_info(request: Request) -> StorageInfoResponse:
    """Size of the stored document and what it holds."""
    return StorageInfoResponse(**_get_session(request).storage.get_storage_info())
