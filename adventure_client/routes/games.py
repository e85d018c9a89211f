from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..api_client import BackendAPIError, BackendClient, get_backend_client
from ..models import (
    CreateGameRequest,
    CreateGameResponse,
    GameListResponse,
    OkResponse,
)
from ..services import DocumentStoreError, SaveManager, get_identity_store, get_session_manager

router = APIRouter(prefix="/games", tags=["games"])


def get_save_manager(backend: BackendClient = Depends(get_backend_client)) -> SaveManager:
    return SaveManager(backend, store=get_session_manager().store)


@router.get("", response_model=GameListResponse)
# List the player's saved games
async def list_games(manager: SaveManager = Depends(get_save_manager)) -> GameListResponse:
    identity = get_identity_store()
    try:
        games = await manager.list_games(identity.player_id(), current_game_id=identity.last_game_id())
    except BackendAPIError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return GameListResponse(games=games)


@router.post("", response_model=CreateGameResponse)
# Create a new game and make it the active one
async def create_game(
    payload: CreateGameRequest, manager: SaveManager = Depends(get_save_manager)
) -> CreateGameResponse:
    identity = get_identity_store()
    try:
        game_id = await manager.create_game(identity.player_id(), payload.name, payload.description)
    except BackendAPIError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    identity.set_last_game(game_id)
    return CreateGameResponse(game_id=game_id)


@router.delete("/{game_id}", response_model=OkResponse)
# Delete a game everywhere; the live session is closed first so it cannot write it back
async def delete_game(game_id: str, manager: SaveManager = Depends(get_save_manager)) -> OkResponse:
    await get_session_manager().close_session(game_id)
    try:
        await manager.delete_game(game_id)
    except BackendAPIError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    except DocumentStoreError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return OkResponse()


__all__ = ["router"]
