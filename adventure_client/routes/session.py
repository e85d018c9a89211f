from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ..models import SessionInfoResponse, SwitchGameRequest
from ..services import get_identity_store

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionInfoResponse)
# Return the local player identity and the game to resume
def session_info() -> SessionInfoResponse:
    identity = get_identity_store()
    return SessionInfoResponse(player_id=identity.player_id(), game_id=identity.last_game_id())


@router.post("/game", response_model=SessionInfoResponse)
# Switch the active game (loading a save or starting a new one)
def switch_game(payload: SwitchGameRequest) -> SessionInfoResponse:
    identity = get_identity_store()
    try:
        identity.set_last_game(payload.game_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return SessionInfoResponse(player_id=identity.player_id(), game_id=identity.last_game_id())


__all__ = ["router"]
