from __future__ import annotations

from contextlib import contextmanager

import redis


@contextmanager
def session_lock(*, r: redis.Redis, session_id: str, ttl_ms: int = 5_000):
    """Best-effort per-session lock.

    Only one device drives a session, so this just rejects overlapping requests
    (double taps, retried HTTP calls) instead of queueing them.
    """

    key = f"lock:session:{session_id}"
    acquired = r.set(key, "1", nx=True, px=ttl_ms)
    if not acquired:
        raise ValueError("Session is busy")
    try:
        yield
    finally:
        r.delete(key)
