from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

MIN_PLAYERS = 3
MAX_PLAYERS = 25


class Role(StrEnum):
    majority = "majority"
    minority = "minority"


class GamePhase(StrEnum):
    configuring = "configuring"
    revealing = "revealing"
    voting = "voting"
    concluded = "concluded"


class SessionConfig(BaseModel):
    player_count: int = 4
    minority_count: int = 1
    player_names: list[str] = Field(default_factory=list)


class PlayerState(BaseModel):
    index: int
    name: str
    role: Role
    word: str

    # Cleared once the player has been voted on; permanent for the round.
    eligible: bool = True


class VoteRecord(BaseModel):
    seq: int
    player_index: int
    was_minority: bool


class RoundState(BaseModel):
    # For reproducibility/debugging: roles and words are drawn from random.Random(seed).
    seed: int
    category: str
    majority_word: str
    minority_word: str

    players: list[PlayerState]

    current_turn: int = 0
    revealed: bool = False
    turns_complete: bool = False

    remaining_minority_count: int
    winner: Role | None = None

    votes: list[VoteRecord] = Field(default_factory=list)

    @property
    def roles(self) -> list[Role]:
        return [p.role for p in self.players]

    @property
    def words(self) -> list[str]:
        return [p.word for p in self.players]

    @property
    def eligible(self) -> list[bool]:
        return [p.eligible for p in self.players]


class SessionState(BaseModel):
    session_id: UUID
    created_at: datetime
    last_updated_at: datetime

    language: str = "it"
    config: SessionConfig = Field(default_factory=SessionConfig)
    phase: GamePhase = GamePhase.configuring

    # None while configuring; replaced by every start_round.
    round: RoundState | None = None


class VoteResult(BaseModel):
    player_index: int
    player_name: str
    was_minority: bool
    remaining_minority_count: int
    round_concluded: bool = False
    winner: Role | None = None


class CardView(BaseModel):
    """What the player currently holding the device may see."""

    player_index: int
    player_name: str
    revealed: bool
    word: str | None = None


class SessionCreateRequest(BaseModel):
    player_count: int = Field(4, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    minority_count: int = Field(1, ge=1)
    player_names: list[str] | None = None
    language: str | None = None


class ConfigureRequest(BaseModel):
    player_count: int = Field(..., ge=MIN_PLAYERS, le=MAX_PLAYERS)
    minority_count: int = Field(..., ge=1)
    player_names: list[str] | None = None


class StartRoundRequest(BaseModel):
    player_names: list[str] | None = None


class AdjustRequest(BaseModel):
    delta: int


class VoteRequest(BaseModel):
    player_index: int


class VoteResponse(BaseModel):
    result: VoteResult
    session: SessionState


class LanguageRequest(BaseModel):
    language: str = Field(..., min_length=2, max_length=8)


class LanguageResponse(BaseModel):
    language: str


class SessionListResponse(BaseModel):
    sessions: list[SessionState]
