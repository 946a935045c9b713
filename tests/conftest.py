from __future__ import annotations

import os
import random
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import pytest


@pytest.fixture(scope="session", autouse=True)
def _init_lexicons_from_test_fixtures() -> None:
    """Initialize lexicons from `tests/assets` and forbid the fallback word lists.

    This keeps tests hermetic and prevents coupling to the repo's real lexicons.
    """

    os.environ["UNDERCOVER_STRICT_ASSETS"] = "1"

    from undercover.assets.singleton import init_lexicons, reset_lexicons_for_tests

    reset_lexicons_for_tests()

    # Point the lexicon loader at a fake project root: tests/ contains an assets/ dir.
    test_root = Path(__file__).resolve().parent
    init_lexicons(project_root=test_root)


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to a fakeredis instance."""

    import fakeredis
    from fastapi.testclient import TestClient

    from undercover.api.deps import get_redis
    from undercover.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()


@pytest.fixture()
def make_session():
    """Build a GameSession over an in-memory lexicon with a seeded random source."""

    from undercover.api.models import SessionState
    from undercover.assets.registry import lexicon_from_mapping
    from undercover.session import GameSession

    def _make(
        *,
        player_count: int = 4,
        minority_count: int = 1,
        player_names: list[str] | None = None,
        seed: int = 1234,
        language: str = "en",
    ) -> GameSession:
        now = datetime.now(tz=UTC)
        state = SessionState(session_id=uuid4(), created_at=now, last_updated_at=now, language=language)
        lexicon = lexicon_from_mapping(language=language, raw={"animals": ["cat", "dog", "mouse"]})
        session = GameSession(state, word_source=lexicon, rng=random.Random(seed))
        session.configure(player_count=player_count, minority_count=minority_count, player_names=player_names)
        return session

    return _make
