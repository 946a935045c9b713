from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis

from undercover.api.models import SessionState
from undercover.assets.singleton import get_lexicon
from undercover.session import GameSession
from undercover.settings_store import get_language, normalize_language

logger = logging.getLogger(__name__)

SESSIONS_SET_KEY = "undercover:sessions"
SESSION_KEY_PREFIX = "undercover:session:"  # + {uuid}


class SessionNotFound(LookupError):
    pass


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _session_key(session_id: UUID) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def _ttl_seconds() -> int:
    return int(os.environ.get("UNDERCOVER_SESSION_TTL_SECONDS", "86400"))


def save_session(*, r: redis.Redis, state: SessionState) -> None:
    state.last_updated_at = _now()
    r.set(_session_key(state.session_id), state.model_dump_json(), ex=_ttl_seconds())


def get_session(*, r: redis.Redis, session_id: UUID) -> SessionState | None:
    raw = r.get(_session_key(session_id))
    if not raw:
        return None
    return SessionState.model_validate_json(raw)


def require_session(*, r: redis.Redis, session_id: UUID) -> SessionState:
    state = get_session(r=r, session_id=session_id)
    if state is None:
        raise SessionNotFound("Session not found")
    return state


def open_game_session(*, state: SessionState) -> GameSession:
    return GameSession(state, word_source=get_lexicon(state.language))


def create_session(
    *,
    r: redis.Redis,
    player_count: int = 4,
    minority_count: int = 1,
    player_names: Sequence[str] | None = None,
    language: str | None = None,
) -> SessionState:
    lang = normalize_language(language) if language else get_language(r=r)

    now = _now()
    state = SessionState(session_id=uuid4(), created_at=now, last_updated_at=now, language=lang)

    # Validates counts/names the same way a later reconfigure would.
    open_game_session(state=state).configure(
        player_count=player_count,
        minority_count=minority_count,
        player_names=player_names,
    )

    save_session(r=r, state=state)
    r.sadd(SESSIONS_SET_KEY, str(state.session_id))
    logger.info("Created session %s (language=%s)", state.session_id, lang)
    return state


def list_sessions(*, r: redis.Redis) -> list[SessionState]:
    ids = sorted(r.smembers(SESSIONS_SET_KEY))
    out: list[SessionState] = []
    for sid in ids:
        try:
            session_id = UUID(sid)
        except ValueError:
            continue
        state = get_session(r=r, session_id=session_id)
        if state is None:
            # Expired document; forget the id too.
            r.srem(SESSIONS_SET_KEY, sid)
            continue
        out.append(state)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out
