from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "CONFIGURED",
    "ROUND_STARTED",
    "REVEAL_TOGGLED",
    "TURN_ADVANCED",
    "TURNS_COMPLETED",
    "VOTE_CAST",
    "ROUND_CONCLUDED",
    "ROUND_RESET",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, payload=payload, ts=datetime.now(timezone.utc))

    def as_message(self) -> dict[str, Any]:
        return {"type": self.type, "ts": self.ts.isoformat(), **self.payload}
