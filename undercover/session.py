from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import Any

from statemachine.exceptions import TransitionNotAllowed

from undercover.api.models import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    GamePhase,
    PlayerState,
    Role,
    RoundState,
    SessionConfig,
    SessionState,
    VoteRecord,
    VoteResult,
)
from undercover.assets.registry import WordSource
from undercover.core.errors import InvalidPhase, InvalidVoteTarget
from undercover.core.events import EventType, GameEvent
from undercover.fsm import GameFSM
from undercover.game_setup import (
    assign_roles,
    build_round,
    max_minority_count,
    resize_player_names,
    resolve_player_names,
    validate_counts,
)

logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent], None]


class GameSession:
    """One device's game: configuration plus the round currently being played.

    All mutation goes through the operations below; the wrapped `SessionState` is a plain
    pydantic model so it can be persisted or rendered at any point. Listeners registered
    with `subscribe` receive a `GameEvent` after every change. Event payloads never carry
    the secret words.
    """

    def __init__(self, state: SessionState, *, word_source: WordSource, rng: random.Random | None = None) -> None:
        self.state = state
        self._word_source = word_source
        self._rng = rng
        self._listeners: list[Listener] = []

    @property
    def phase(self) -> GamePhase:
        return self.state.phase

    @property
    def config(self) -> SessionConfig:
        return self.state.config

    @property
    def round(self) -> RoundState | None:
        return self.state.round

    @property
    def current_player(self) -> PlayerState | None:
        if self.state.phase != GamePhase.revealing or self.state.round is None:
            return None
        return self.state.round.players[self.state.round.current_turn]

    @property
    def current_word(self) -> str | None:
        player = self.current_player
        if player is None or not self.state.round or not self.state.round.revealed:
            return None
        return player.word

    @property
    def eligible_indices(self) -> list[int]:
        if self.state.round is None:
            return []
        return [p.index for p in self.state.round.players if p.eligible]

    @property
    def remaining_minority_count(self) -> int:
        return self.state.round.remaining_minority_count if self.state.round else 0

    @property
    def winner(self) -> Role | None:
        return self.state.round.winner if self.state.round else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, type: EventType, **payload: Any) -> None:
        event = GameEvent.now(type=type, payload=payload)
        for listener in list(self._listeners):
            listener(event)

    def _transition(self, event: str) -> None:
        fsm = GameFSM(self.state)
        try:
            fsm.send(event)
        except TransitionNotAllowed as e:
            raise InvalidPhase(f"Cannot {event.replace('_', ' ')} while {self.state.phase.value}") from e
        fsm.sync_phase_to_model()

    def _require_phase(self, action: str, *phases: GamePhase) -> None:
        if self.state.phase not in phases:
            allowed = ",".join(p.value for p in phases)
            raise InvalidPhase(f"Action '{action}' not allowed in phase '{self.state.phase.value}' (allowed: {allowed})")

    def _require_round(self) -> RoundState:
        if self.state.round is None:
            raise InvalidPhase("No round in progress")
        return self.state.round

    def configure(
        self,
        *,
        player_count: int,
        minority_count: int,
        player_names: Sequence[str] | None = None,
    ) -> SessionConfig:
        self._require_phase("configure", GamePhase.configuring)
        validate_counts(player_count=player_count, minority_count=minority_count)

        if player_names is None:
            # Keep whatever the table already typed in; only new seats get default labels.
            names = resize_player_names(
                names=self.state.config.player_names,
                player_count=player_count,
                language=self.state.language,
            )
        else:
            names = resolve_player_names(names=player_names, player_count=player_count, language=self.state.language)
        self.state.config = SessionConfig(player_count=player_count, minority_count=minority_count, player_names=names)

        self._emit("CONFIGURED", player_count=player_count, minority_count=minority_count)
        return self.state.config

    def adjust_player_count(self, delta: int) -> SessionConfig:
        """Counter-style update: clamps instead of failing, and keeps the minority count legal."""

        self._require_phase("adjust_player_count", GamePhase.configuring)
        cfg = self.state.config

        player_count = min(max(cfg.player_count + delta, MIN_PLAYERS), MAX_PLAYERS)
        minority_count = min(cfg.minority_count, max_minority_count(player_count))
        names = resize_player_names(names=cfg.player_names, player_count=player_count, language=self.state.language)

        self.state.config = SessionConfig(player_count=player_count, minority_count=minority_count, player_names=names)
        self._emit("CONFIGURED", player_count=player_count, minority_count=minority_count)
        return self.state.config

    def adjust_minority_count(self, delta: int) -> SessionConfig:
        self._require_phase("adjust_minority_count", GamePhase.configuring)
        cfg = self.state.config

        minority_count = min(max(cfg.minority_count + delta, 1), max_minority_count(cfg.player_count))
        self.state.config = cfg.model_copy(update={"minority_count": minority_count})

        self._emit("CONFIGURED", player_count=cfg.player_count, minority_count=minority_count)
        return self.state.config

    def start_round(self, player_names: Sequence[str] | None = None) -> RoundState:
        self._require_phase("start_round", GamePhase.configuring, GamePhase.concluded)

        cfg = self.state.config
        validate_counts(player_count=cfg.player_count, minority_count=cfg.minority_count)
        names = resolve_player_names(
            names=player_names if player_names is not None else cfg.player_names,
            player_count=cfg.player_count,
            language=self.state.language,
        )

        seed = (self._rng or random.SystemRandom()).randint(1, 2**31 - 1)
        rng = random.Random(seed)

        roles = assign_roles(minority_count=cfg.minority_count, total_players=cfg.player_count, rng=rng)
        pair = self._word_source.pick_pair(rng=rng)

        self.state.config = cfg.model_copy(update={"player_names": names})
        self.state.round = build_round(names=names, roles=roles, pair=pair, seed=seed)
        self._transition("start_round")

        logger.info(
            "Round started: players=%d minority=%d category=%s seed=%d",
            cfg.player_count,
            cfg.minority_count,
            pair.category,
            seed,
        )
        self._emit("ROUND_STARTED", player_count=cfg.player_count, minority_count=cfg.minority_count)
        return self.state.round

    def toggle_reveal(self) -> bool:
        self._require_phase("toggle_reveal", GamePhase.revealing)
        rnd = self._require_round()

        rnd.revealed = not rnd.revealed
        self._emit("REVEAL_TOGGLED", player_index=rnd.current_turn, revealed=rnd.revealed)
        return rnd.revealed

    def advance_turn(self) -> RoundState:
        """Confirm the current player has seen their word and pass the device on.

        Accepted whether or not the card was flipped.
        """

        self._require_phase("advance_turn", GamePhase.revealing)
        rnd = self._require_round()

        rnd.revealed = False
        if rnd.current_turn == len(rnd.players) - 1:
            rnd.turns_complete = True
            self._transition("finish_reveals")
            logger.debug("All %d players have seen their word", len(rnd.players))
            self._emit("TURNS_COMPLETED", player_count=len(rnd.players))
        else:
            rnd.current_turn += 1
            self._emit("TURN_ADVANCED", player_index=rnd.current_turn)
        return rnd

    def cast_vote(self, player_index: int) -> VoteResult:
        self._require_phase("cast_vote", GamePhase.voting)
        rnd = self._require_round()

        if player_index < 0 or player_index >= len(rnd.players):
            raise InvalidVoteTarget(f"No player at index {player_index}")
        player = rnd.players[player_index]
        if not player.eligible:
            raise InvalidVoteTarget(f"Player {player_index} has already been voted on")

        player.eligible = False
        was_minority = player.role == Role.minority
        if was_minority:
            rnd.remaining_minority_count -= 1
        rnd.votes.append(VoteRecord(seq=len(rnd.votes) + 1, player_index=player_index, was_minority=was_minority))

        if was_minority and rnd.remaining_minority_count == 0:
            rnd.winner = Role.majority
        elif not was_minority and not any(p.eligible and p.role == Role.majority for p in rnd.players):
            # Only minority players are left to vote on: they have outlasted the majority.
            rnd.winner = Role.minority

        logger.info(
            "Vote on player %d: minority=%s remaining_minority=%d",
            player_index,
            was_minority,
            rnd.remaining_minority_count,
        )
        self._emit(
            "VOTE_CAST",
            player_index=player_index,
            was_minority=was_minority,
            remaining_minority_count=rnd.remaining_minority_count,
        )

        if rnd.winner is not None:
            self._transition("conclude")
            logger.info("Round concluded: winner=%s", rnd.winner.value)
            self._emit("ROUND_CONCLUDED", winner=rnd.winner.value)

        return VoteResult(
            player_index=player_index,
            player_name=player.name,
            was_minority=was_minority,
            remaining_minority_count=rnd.remaining_minority_count,
            round_concluded=rnd.winner is not None,
            winner=rnd.winner,
        )

    def reset_round(self) -> None:
        self._transition("reset_round")
        self.state.round = None
        self._emit("ROUND_RESET")
