from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from rentbot.state import FlowState


class _UserLock:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class FlowStateStore:
    """Process-local flow states keyed by user id.

    Nothing here survives a restart. Callers serialize work for one user with
    ``lock(user_id)``; different users never share a lock. A user's lock only
    lives while some thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._states: dict[str, FlowState] = {}
        self._locks: dict[str, _UserLock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, user_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = self._locks[user_id] = _UserLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[user_id]

    def load(self, user_id: str) -> FlowState | None:
        with self._guard:
            state = self._states.get(user_id)
        return state.model_copy(deep=True) if state is not None else None

    def save(self, state: FlowState) -> None:
        snapshot = state.model_copy(deep=True)
        with self._guard:
            self._states[state.user_id] = snapshot

    def delete(self, user_id: str) -> bool:
        with self._guard:
            return self._states.pop(user_id, None) is not None

    def __contains__(self, user_id: object) -> bool:
        with self._guard:
            return user_id in self._states

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)
