from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ..api_client import BackendAPIError
from ..models import (
    ConsolidationResponse,
    PruneResponse,
    SendMessageRequest,
    SendMessageResponse,
    SummaryOverviewResponse,
    TranscriptResponse,
)
from ..services import (
    GameSession,
    PersistenceFailure,
    SessionBusyError,
    build_transcript,
    get_identity_store,
    get_session_manager,
    render_transcript,
)

router = APIRouter(prefix="/games/{game_id}", tags=["play"])

QUICK_ACTIONS = {
    "look": "Look around",
    "inventory": "Check inventory",
    "status": "Check status",
    "rest": "Rest",
}


async def get_game_session(game_id: str) -> GameSession:
    identity = get_identity_store()
    return await get_session_manager().get_session(game_id, identity.player_id())


async def _play_turn(session: GameSession, content: str) -> SendMessageResponse:
    if not session.is_connected:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Game is not connected")
    try:
        reply = await session.send_player_message(content)
    except SessionBusyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except (BackendAPIError, PersistenceFailure) as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return SendMessageResponse(reply=reply, current_state=session.state.current_state)


@router.get("/transcript", response_model=TranscriptResponse)
# Return the merged message/summary transcript for the game screen
async def transcript(session: GameSession = Depends(get_game_session)) -> TranscriptResponse:
    state = session.state
    items = build_transcript(state.message_history, state.summaries)
    return TranscriptResponse(
        game_id=session.game_id,
        items=items,
        text=render_transcript(items, is_loading=session.is_processing),
        is_connected=session.is_connected,
        is_processing=session.is_processing,
    )


@router.post("/messages", response_model=SendMessageResponse)
# Submit player input and wait for the narrator's reply
async def send_message(
    payload: SendMessageRequest, session: GameSession = Depends(get_game_session)
) -> SendMessageResponse:
    return await _play_turn(session, payload.content)


@router.post("/quick-actions/{action}", response_model=SendMessageResponse)
async def quick_action(action: str, session: GameSession = Depends(get_game_session)) -> SendMessageResponse:
    text = QUICK_ACTIONS.get(action)
    if text is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown quick action: {action}")
    return await _play_turn(session, text)


@router.get("/summary", response_model=SummaryOverviewResponse)
# Return consolidation status and the counters behind the status bar
async def summary_overview(session: GameSession = Depends(get_game_session)) -> SummaryOverviewResponse:
    consolidator = session.consolidator
    return SummaryOverviewResponse(
        status=session.summary_status,
        stats=session.stats(),
        summary_threshold=consolidator.summary_threshold,
        token_threshold=consolidator.token_threshold,
    )


@router.post("/summary", response_model=ConsolidationResponse)
# Manually generate a summary of the unsummarized history
async def generate_summary(session: GameSession = Depends(get_game_session)) -> ConsolidationResponse:
    min_messages = session.settings.manual_summary_min_messages
    if session.summary_status.is_generating:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Summary generation already in progress")
    if session.stats().total_messages < min_messages:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"At least {min_messages} messages are needed for a summary",
        )

    outcome = await session.generate_summary()
    if outcome.status == "failed":
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(outcome.error))
    return ConsolidationResponse(
        status=outcome.status,
        reason=outcome.reason,
        summary=outcome.summary,
        message_range=outcome.summary.message_range if outcome.summary else None,
    )


@router.post("/summary/prune", response_model=PruneResponse)
# Drop messages already covered by the latest summary
async def prune_history(session: GameSession = Depends(get_game_session)) -> PruneResponse:
    try:
        removed = await session.cleanup_old_messages()
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return PruneResponse(removed=removed, remaining=len(session.state.message_history))


__all__ = ["QUICK_ACTIONS", "router"]
