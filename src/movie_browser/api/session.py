from __future__ import annotations

import os
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from uuid import uuid4

from movie_browser.core.controller import BrowsingSessionController


@dataclass
class _Entry:
    controller: BrowsingSessionController
    updated_at: float


class SessionStore:
    """In-memory registry of browsing sessions.

    Each session owns one `BrowsingSessionController`. Controllers hold live
    state (sequence stamps, listeners), so nothing is persisted; a restart
    starts every browser over on a random page.

    Eviction is LRU-ish: entries older than `max_age_s` are dropped, then the
    least recently touched ones until at most `max_sessions` remain.
    """

    def __init__(
        self,
        *,
        max_sessions: int = 1024,
        max_age_s: float = 60 * 60 * 24,  # 1 day
    ) -> None:
        if max_sessions < 1:
            raise ValueError("MOVIE_BROWSER_MAX_SESSIONS must be >= 1")
        self._max_sessions = max_sessions
        self._max_age_s = max_age_s
        self._lock = Lock()
        self._entries: OrderedDict[str, _Entry] = OrderedDict()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def create(self, controller: BrowsingSessionController) -> str:
        with self._lock:
            session_id = uuid4().hex
            now = time.time()
            self._entries[session_id] = _Entry(controller=controller, updated_at=now)
            self._evict_if_needed(now)
            return session_id

    def get(self, session_id: str) -> BrowsingSessionController:
        with self._lock:
            now = time.time()
            entry = self._entries.get(session_id)
            if entry is None or entry.updated_at < now - self._max_age_s:
                self._entries.pop(session_id, None)
                raise KeyError(session_id)

            # Touch for eviction ordering.
            entry.updated_at = now
            self._entries.move_to_end(session_id)
            return entry.controller

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._entries.pop(session_id, None) is not None

    def _evict_if_needed(self, now: float) -> None:
        cutoff = now - self._max_age_s
        for sid in [sid for sid, e in self._entries.items() if e.updated_at < cutoff]:
            del self._entries[sid]

        while len(self._entries) > self._max_sessions:
            self._entries.popitem(last=False)


def create_session_store() -> SessionStore:
    return SessionStore(
        max_sessions=int(os.environ.get("MOVIE_BROWSER_MAX_SESSIONS", "1024")),
        max_age_s=float(os.environ.get("MOVIE_BROWSER_SESSION_MAX_AGE_S", str(60 * 60 * 24))),
    )
