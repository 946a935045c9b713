from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Protocol


class JsonSocket(Protocol):
    async def accept(self) -> None: ...

    async def send_json(self, data: object) -> None: ...


SETTINGS_CHANNEL = "settings"


def session_channel(session_id: str) -> str:
    return f"session:{session_id}"


class WebSocketHub:
    """In-process WebSocket pub/sub keyed by channel name.

    Contract:
      - attach a connection to a channel via `connect(channel, websocket)`.
      - broadcast lightweight events with `broadcast(channel, payload)`.

    Channels are `session:<id>` for game state and `settings` for the language preference.
    Payloads should be JSON-serializable dicts.
    """

    def __init__(self) -> None:
        self._by_channel: dict[str, set[JsonSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, channel: str, websocket: JsonSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_channel[channel].add(websocket)

    async def disconnect(self, channel: str, websocket: JsonSocket) -> None:
        async with self._lock:
            conns = self._by_channel.get(channel)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_channel.pop(channel, None)

    async def broadcast(self, channel: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_channel.get(channel, set()))

        if not conns:
            return

        dead: list[JsonSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_channel.get(channel, set()).discard(ws)


hub = WebSocketHub()
