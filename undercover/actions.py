from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import UUID

import redis

from undercover.api.models import AdjustRequest, ConfigureRequest, SessionState, StartRoundRequest, VoteRequest, VoteResult
from undercover.assets.singleton import get_lexicon
from undercover.core.events import GameEvent
from undercover.game_store import require_session, save_session
from undercover.lock import session_lock
from undercover.session import GameSession

ActionName = Literal["configure", "adjust_players", "adjust_minority", "start", "reveal", "advance", "vote", "reset"]

ACTION_NAMES: frozenset[str] = frozenset(
    {"configure", "adjust_players", "adjust_minority", "start", "reveal", "advance", "vote", "reset"}
)


@dataclass(frozen=True, slots=True)
class ActionResult:
    state: SessionState
    events: list[GameEvent] = field(default_factory=list)
    vote: VoteResult | None = None


def dispatch_action(
    *,
    r: redis.Redis,
    session_id: UUID,
    action: ActionName,
    payload: dict[str, Any] | None = None,
    rng: random.Random | None = None,
) -> ActionResult:
    """Entry point for every state-changing request.

    Applies an action by:
    - acquiring the per-session lock
    - loading the session document
    - running the matching GameSession operation (phase rules live there)
    - persisting the updated document

    The emitted GameEvents are returned so the caller can fan them out to observers.
    """

    body = payload or {}

    with session_lock(r=r, session_id=str(session_id)):
        state = require_session(r=r, session_id=session_id)
        session = GameSession(state, word_source=get_lexicon(state.language), rng=rng)

        events: list[GameEvent] = []
        session.subscribe(events.append)
        vote: VoteResult | None = None

        if action == "configure":
            req = ConfigureRequest.model_validate(body)
            session.configure(
                player_count=req.player_count,
                minority_count=req.minority_count,
                player_names=req.player_names,
            )
        elif action == "adjust_players":
            session.adjust_player_count(AdjustRequest.model_validate(body).delta)
        elif action == "adjust_minority":
            session.adjust_minority_count(AdjustRequest.model_validate(body).delta)
        elif action == "start":
            session.start_round(player_names=StartRoundRequest.model_validate(body).player_names)
        elif action == "reveal":
            session.toggle_reveal()
        elif action == "advance":
            session.advance_turn()
        elif action == "vote":
            vote = session.cast_vote(VoteRequest.model_validate(body).player_index)
        elif action == "reset":
            session.reset_round()
        else:
            raise ValueError(f"Unknown action: {action}")

        save_session(r=r, state=session.state)
        return ActionResult(state=session.state, events=events, vote=vote)
