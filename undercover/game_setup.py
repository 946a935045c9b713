from __future__ import annotations

import math
import random
from collections.abc import Sequence

from undercover.api.models import MAX_PLAYERS, MIN_PLAYERS, PlayerState, Role, RoundState
from undercover.assets.registry import DEFAULT_LANGUAGE, WordPair
from undercover.core.errors import InvalidConfiguration

DEFAULT_PLAYER_LABELS: dict[str, str] = {
    "it": "Giocatore",
    "en": "Player",
}


def max_minority_count(player_count: int) -> int:
    return math.ceil((player_count + 1) / 2) - 1


def validate_counts(*, player_count: int, minority_count: int) -> None:
    if player_count < MIN_PLAYERS:
        raise InvalidConfiguration(f"At least {MIN_PLAYERS} players required")
    if player_count > MAX_PLAYERS:
        raise InvalidConfiguration(f"At most {MAX_PLAYERS} players allowed")

    cap = max_minority_count(player_count)
    if minority_count < 1:
        raise InvalidConfiguration("At least 1 minority player required")
    if minority_count > cap:
        raise InvalidConfiguration(f"At most {cap} minority players allowed with {player_count} players")


def assign_roles(*, minority_count: int, total_players: int, rng: random.Random) -> list[Role]:
    """Return a uniformly shuffled list of roles, length == total_players.

    Exactly `minority_count` entries are Role.minority; the rest are Role.majority.
    """

    if total_players < 1:
        raise InvalidConfiguration("total_players must be >= 1")
    if minority_count < 0 or minority_count > total_players:
        raise InvalidConfiguration("minority_count must be between 0 and total_players")

    roles = [Role.minority] * minority_count + [Role.majority] * (total_players - minority_count)
    rng.shuffle(roles)
    return roles


def default_player_name(*, language: str, index: int) -> str:
    label = DEFAULT_PLAYER_LABELS.get(language, DEFAULT_PLAYER_LABELS[DEFAULT_LANGUAGE])
    return f"{label} {index + 1}"


def resolve_player_names(*, names: Sequence[str] | None, player_count: int, language: str) -> list[str]:
    """Normalize a names list: blanks fall back to the default label for that seat."""

    if not names:
        return [default_player_name(language=language, index=i) for i in range(player_count)]
    if len(names) != player_count:
        raise InvalidConfiguration(f"Expected {player_count} player names, got {len(names)}")
    return [n.strip() or default_player_name(language=language, index=i) for i, n in enumerate(names)]


def resize_player_names(*, names: Sequence[str], player_count: int, language: str) -> list[str]:
    kept = list(names[:player_count])
    kept.extend(default_player_name(language=language, index=i) for i in range(len(kept), player_count))
    return kept


def build_round(*, names: Sequence[str], roles: Sequence[Role], pair: WordPair, seed: int) -> RoundState:
    if len(names) != len(roles):
        raise InvalidConfiguration("names and roles must have the same length")

    players = [
        PlayerState(
            index=i,
            name=name,
            role=role,
            word=pair.minority_word if role == Role.minority else pair.majority_word,
        )
        for i, (name, role) in enumerate(zip(names, roles, strict=True))
    ]

    return RoundState(
        seed=seed,
        category=pair.category,
        majority_word=pair.majority_word,
        minority_word=pair.minority_word,
        players=players,
        remaining_minority_count=sum(1 for r in roles if r == Role.minority),
    )
