from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from undercover.actions import ACTION_NAMES, ActionName, ActionResult, dispatch_action
from undercover.api.deps import get_redis
from undercover.api.models import (
    AdjustRequest,
    CardView,
    ConfigureRequest,
    GamePhase,
    LanguageRequest,
    LanguageResponse,
    SessionCreateRequest,
    SessionListResponse,
    SessionState,
    StartRoundRequest,
    VoteRequest,
    VoteResponse,
)
from undercover.game_store import SessionNotFound, create_session, get_session, list_sessions
from undercover.settings_store import get_language, set_language
from undercover.websocket_hub import SETTINGS_CHANNEL, hub, session_channel

router = APIRouter()


async def _run_action(
    *,
    r: redis.Redis,
    session_id: UUID,
    action: ActionName,
    payload: dict[str, Any] | None = None,
) -> ActionResult:
    try:
        result = dispatch_action(r=r, session_id=session_id, action=action, payload=payload)
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await hub.broadcast(
        session_channel(str(session_id)),
        {
            "type": "session_updated",
            "session_id": str(session_id),
            "phase": result.state.phase.value,
            "events": [e.as_message() for e in result.events],
        },
    )
    return result


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(websocket: WebSocket, session_id: UUID) -> None:
    channel = session_channel(str(session_id))
    await hub.connect(channel, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(channel, websocket)
    except Exception:
        await hub.disconnect(channel, websocket)
        raise


@router.websocket("/ws/settings")
async def settings_updates_ws(websocket: WebSocket, r: redis.Redis = Depends(get_redis)) -> None:
    await hub.connect(SETTINGS_CHANNEL, websocket)
    # New observers start from the current value, then get every change.
    await websocket.send_json({"type": "language_changed", "language": get_language(r=r)})

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(SETTINGS_CHANNEL, websocket)
    except Exception:
        await hub.disconnect(SETTINGS_CHANNEL, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/settings/language", response_model=LanguageResponse)
async def get_language_route(r: redis.Redis = Depends(get_redis)) -> LanguageResponse:
    return LanguageResponse(language=get_language(r=r))


@router.put("/settings/language", response_model=LanguageResponse)
async def set_language_route(payload: LanguageRequest, r: redis.Redis = Depends(get_redis)) -> LanguageResponse:
    try:
        language = set_language(r=r, language=payload.language)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await hub.broadcast(SETTINGS_CHANNEL, {"type": "language_changed", "language": language})
    return LanguageResponse(language=language)


@router.post("/session", response_model=SessionState, status_code=status.HTTP_201_CREATED)
async def create_session_route(payload: SessionCreateRequest, r: redis.Redis = Depends(get_redis)) -> SessionState:
    try:
        return create_session(
            r=r,
            player_count=payload.player_count,
            minority_count=payload.minority_count,
            player_names=payload.player_names,
            language=payload.language,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.get("/session", response_model=SessionListResponse)
async def list_sessions_route(r: redis.Redis = Depends(get_redis)) -> SessionListResponse:
    return SessionListResponse(sessions=list_sessions(r=r))


@router.get("/session/{session_id}", response_model=SessionState)
async def get_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> SessionState:
    state = get_session(r=r, session_id=session_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return state


@router.get("/session/{session_id}/card", response_model=CardView)
async def current_card_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> CardView:
    """The card for whoever holds the device right now; the word only shows once flipped."""

    state = get_session(r=r, session_id=session_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if state.phase != GamePhase.revealing or state.round is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="No card to show outside the reveal phase")

    rnd = state.round
    player = rnd.players[rnd.current_turn]
    return CardView(
        player_index=player.index,
        player_name=player.name,
        revealed=rnd.revealed,
        word=player.word if rnd.revealed else None,
    )


@router.put("/session/{session_id}/config", response_model=SessionState)
async def configure_route(
    session_id: UUID,
    payload: ConfigureRequest,
    r: redis.Redis = Depends(get_redis),
) -> SessionState:
    result = await _run_action(r=r, session_id=session_id, action="configure", payload=payload.model_dump())
    return result.state


@router.post("/session/{session_id}/players", response_model=SessionState)
async def adjust_players_route(
    session_id: UUID,
    payload: AdjustRequest,
    r: redis.Redis = Depends(get_redis),
) -> SessionState:
    """+/- counter for the player count; clamps to the allowed range."""

    result = await _run_action(r=r, session_id=session_id, action="adjust_players", payload=payload.model_dump())
    return result.state


@router.post("/session/{session_id}/minority", response_model=SessionState)
async def adjust_minority_route(
    session_id: UUID,
    payload: AdjustRequest,
    r: redis.Redis = Depends(get_redis),
) -> SessionState:
    result = await _run_action(r=r, session_id=session_id, action="adjust_minority", payload=payload.model_dump())
    return result.state


@router.post("/session/{session_id}/start", response_model=SessionState)
async def start_round_route(
    session_id: UUID,
    payload: StartRoundRequest | None = None,
    r: redis.Redis = Depends(get_redis),
) -> SessionState:
    body = payload.model_dump() if payload is not None else {}
    result = await _run_action(r=r, session_id=session_id, action="start", payload=body)
    return result.state


@router.post("/session/{session_id}/reveal", response_model=SessionState)
async def toggle_reveal_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> SessionState:
    result = await _run_action(r=r, session_id=session_id, action="reveal")
    return result.state


@router.post("/session/{session_id}/advance", response_model=SessionState)
async def advance_turn_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> SessionState:
    result = await _run_action(r=r, session_id=session_id, action="advance")
    return result.state


@router.post("/session/{session_id}/vote", response_model=VoteResponse)
async def vote_route(session_id: UUID, payload: VoteRequest, r: redis.Redis = Depends(get_redis)) -> VoteResponse:
    result = await _run_action(r=r, session_id=session_id, action="vote", payload=payload.model_dump())
    if result.vote is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Vote produced no result")
    return VoteResponse(result=result.vote, session=result.state)


@router.post("/session/{session_id}/reset", response_model=SessionState)
async def reset_round_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> SessionState:
    result = await _run_action(r=r, session_id=session_id, action="reset")
    return result.state


@router.post("/sessions/{session_id}/actions/{action}", response_model=SessionState)
async def generic_action_route(
    session_id: UUID,
    action: str,
    body: dict[str, Any] | None = None,
    r: redis.Redis = Depends(get_redis),
) -> SessionState:
    if action not in ACTION_NAMES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")
    act: ActionName = action  # type: ignore[assignment]
    result = await _run_action(r=r, session_id=session_id, action=act, payload=body)
    return result.state
