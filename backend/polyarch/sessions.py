from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, List, Literal, Protocol


DEFAULT_HISTORY_LIMIT = 20  # 10 user/assistant exchanges

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str


class SessionStore(Protocol):
    def get(self, session_id: str) -> List[Turn]: ...

    def append(self, session_id: str, turn: Turn) -> None: ...

    def clear(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Per-process conversation history, bounded to the newest `max_turns` turns.

    Entries live as long as the process does. All mutations go through a
    single lock so concurrent requests for one session never lose a turn.
    """

    def __init__(self, max_turns: int = DEFAULT_HISTORY_LIMIT) -> None:
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.max_turns = max_turns
        self._sessions: Dict[str, List[Turn]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> List[Turn]:
        with self._lock:
            return list(self._sessions.get(session_id, ()))

    def append(self, session_id: str, turn: Turn) -> None:
        with self._lock:
            turns = self._sessions.setdefault(session_id, [])
            turns.append(turn)
            if len(turns) > self.max_turns:
                del turns[: len(turns) - self.max_turns]

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
