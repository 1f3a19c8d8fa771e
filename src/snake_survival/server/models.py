"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from snake_survival.engine import GamePhase


class PhaseResponse(BaseModel):
    """Lifecycle phase after a start/pause/reset request."""

    phase: GamePhase
    score: int
    tick_interval_ms: int


class DirectionRequest(BaseModel):
    """Request body for POST /game/direction."""

    direction: Literal["up", "down", "left", "right"]


class DirectionResponse(BaseModel):
    accepted: bool


class SaveResponse(BaseModel):
    saved: bool


class ImportResponse(BaseModel):
    imported: bool


class StorageInfoResponse(BaseModel):
    used: int
    history_count: int
    has_saved_game: bool


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
