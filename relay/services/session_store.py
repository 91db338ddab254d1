"""Per-sender conversational state.

Sessions live for the process lifetime. History is a bounded window of
role-tagged turns; the oldest turns go first and the window always starts on
a user turn, so surviving entries are whole user/assistant exchanges.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from relay.services.mode_service import Mode

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
DEFAULT_HISTORY_MAX_ENTRIES = 10


@dataclass(frozen=True)
class ChatTurn:
    role: str  # user|assistant
    text: str


@dataclass
class Session:
    sender_id: str
    mode: Mode = Mode.DEFAULT
    history: List[ChatTurn] = field(default_factory=list)
    last_active_at: float = 0.0

    def append_exchange(self, user_text: str, assistant_text: str, max_entries: int) -> None:
        self.history.append(ChatTurn(role=ROLE_USER, text=user_text))
        self.history.append(ChatTurn(role=ROLE_ASSISTANT, text=assistant_text))
        self.history = trim_history(self.history, max_entries)


def trim_history(history: List[ChatTurn], max_entries: int) -> List[ChatTurn]:
    """Keep the newest max_entries turns, starting on a user turn."""
    if max_entries <= 0:
        return []
    trimmed = history[-max_entries:]
    if len(trimmed) < len(history):
        while trimmed and trimmed[0].role != ROLE_USER:
            trimmed = trimmed[1:]
    return trimmed


class SessionStore:
    """Sessions keyed by sender. Not thread-safe on its own: callers hold AdmissionState.lock."""

    def __init__(self, max_history_entries: int = DEFAULT_HISTORY_MAX_ENTRIES) -> None:
        self.max_history_entries = max_history_entries
        self._sessions: Dict[str, Session] = {}

    def get(self, sender_id: str) -> Optional[Session]:
        return self._sessions.get(sender_id)

    def get_or_create(self, sender_id: str, now: float) -> Session:
        session = self._sessions.get(sender_id)
        if session is None:
            session = Session(sender_id=sender_id, last_active_at=now)
            self._sessions[sender_id] = session
        return session

    def touch(self, sender_id: str, now: float) -> Session:
        session = self.get_or_create(sender_id, now)
        session.last_active_at = now
        return session

    def set_mode(self, sender_id: str, mode: Mode, now: float) -> Session:
        session = self.touch(sender_id, now)
        session.mode = mode
        return session

    def record_exchange(self, sender_id: str, user_text: str, assistant_text: str, now: float) -> Session:
        session = self.touch(sender_id, now)
        session.append_exchange(user_text, assistant_text, self.max_history_entries)
        return session

    def snapshot(self, sender_id: str) -> tuple[Mode, List[ChatTurn]]:
        """Mode and a copy of history, safe to use after the lock is released."""
        session = self._sessions.get(sender_id)
        if session is None:
            return Mode.DEFAULT, []
        return session.mode, list(session.history)

    def evict_idle(self, now: float, idle_seconds: float) -> int:
        expired = [sid for sid, session in self._sessions.items() if now - session.last_active_at > idle_seconds]
        for sid in expired:
            self._sessions.pop(sid, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
