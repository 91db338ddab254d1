"""Admission of inbound chat events.

Every inbound text event passes, in order: message-id dedup, per-sender
cooldown, repeated-text suppression, per-sender quota, global quota. Cooldown
and last-text markers are written as soon as those checks pass, so they track
the latest attempt even when a quota check rejects the event afterwards.

All tables live in one AdmissionState guarded by a single lock. Critical
sections are read-check-write only; network calls happen outside the lock.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from relay.logging_config import get_logger
from relay.schemas.webhook import InboundEvent
from relay.services.mode_service import Mode
from relay.services.quota_service import DAY_SECONDS, QuotaLedger
from relay.services.session_store import ChatTurn, SessionStore

logger = get_logger("admission")

MSG_SENDER_QUOTA = "今天聊得好開心，我們明天再繼續聊好嗎？"
MSG_GLOBAL_QUOTA = "我現在需要休息一下，晚點再來找我好嗎？"


class Admission(str, Enum):
    ADMIT = "admit"
    SHORT_CIRCUIT = "short_circuit"
    DROP = "drop"


@dataclass(frozen=True)
class AdmissionDecision:
    outcome: Admission
    reason: str
    reply: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.outcome == Admission.ADMIT


ADMIT = AdmissionDecision(Admission.ADMIT, "admitted")


@dataclass(frozen=True)
class AdmissionLimits:
    cooldown_seconds: float = 2.5
    max_per_sender: int = 30
    max_global: int = 1000
    reset_interval_seconds: float = DAY_SECONDS
    history_max_entries: int = 10
    dedup_capacity: int = 1000
    session_idle_seconds: float = 3 * DAY_SECONDS


class SeenMessageIds:
    """Bounded set of recently seen message ids; the oldest id is evicted when full."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._ids: "OrderedDict[str, None]" = OrderedDict()

    def check_and_add(self, message_id: str) -> bool:
        """True if message_id was already seen; otherwise remember it."""
        if message_id in self._ids:
            return True
        if len(self._ids) >= self.capacity:
            self._ids.popitem(last=False)
        self._ids[message_id] = None
        return False

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class AdmissionState:
    """Process-local state shared by every request handler."""

    def __init__(self, limits: Optional[AdmissionLimits] = None, now: float = 0.0) -> None:
        self.limits = limits or AdmissionLimits()
        self.lock = threading.Lock()
        self.sessions = SessionStore(max_history_entries=self.limits.history_max_entries)
        self.ledger = QuotaLedger(self.limits.max_per_sender, self.limits.max_global, now=now)
        self.seen_ids = SeenMessageIds(self.limits.dedup_capacity)
        self.cooldowns: Dict[str, float] = {}
        self.last_texts: Dict[str, str] = {}

    def reset_if_due(self, now: float) -> bool:
        if not self.ledger.is_reset_due(now, self.limits.reset_interval_seconds):
            return False
        self.ledger.reset(now)
        self.seen_ids.clear()
        self.cooldowns.clear()
        self.last_texts.clear()
        evicted = self.sessions.evict_idle(now, self.limits.session_idle_seconds)
        logger.info("Daily reset", extra={"context": {"evicted_sessions": evicted, "sessions": len(self.sessions)}})
        return True

    def set_mode(self, sender_id: str, mode: Mode, now: float) -> None:
        with self.lock:
            self.sessions.set_mode(sender_id, mode, now)

    def snapshot(self, sender_id: str) -> tuple[Mode, List[ChatTurn]]:
        with self.lock:
            return self.sessions.snapshot(sender_id)

    def record_exchange(self, sender_id: str, user_text: str, reply_text: str, now: float) -> None:
        """Append the exchange to history and charge both daily counters."""
        with self.lock:
            self.sessions.record_exchange(sender_id, user_text, reply_text, now)
            self.ledger.increment(sender_id)

    def stats(self) -> dict:
        with self.lock:
            return {
                "sessions": len(self.sessions),
                "seen_message_ids": len(self.seen_ids),
                "global_count": self.ledger.global_count,
                "last_reset_at": self.ledger.last_reset_at,
            }


class AdmissionPipeline:
    def __init__(self, state: AdmissionState) -> None:
        self.state = state

    def decide(self, event: InboundEvent, now: float) -> AdmissionDecision:
        state = self.state
        limits = state.limits
        sender_id = event.sender_id
        text = event.text.strip()

        with state.lock:
            state.reset_if_due(now)

            if event.message_id and state.seen_ids.check_and_add(event.message_id):
                return AdmissionDecision(Admission.DROP, "duplicate_message_id")

            last_event_at = state.cooldowns.get(sender_id)
            if last_event_at is not None and now - last_event_at < limits.cooldown_seconds:
                return AdmissionDecision(Admission.DROP, "cooldown")
            state.cooldowns[sender_id] = now

            if state.last_texts.get(sender_id) == text:
                return AdmissionDecision(Admission.DROP, "duplicate_text")
            state.last_texts[sender_id] = text

            if state.ledger.sender_exhausted(sender_id):
                return AdmissionDecision(Admission.SHORT_CIRCUIT, "sender_quota", reply=MSG_SENDER_QUOTA)

            if state.ledger.global_exhausted():
                return AdmissionDecision(Admission.SHORT_CIRCUIT, "global_quota", reply=MSG_GLOBAL_QUOTA)

            state.sessions.touch(sender_id, now)

        return ADMIT


def limits_from_settings(settings) -> AdmissionLimits:
    return AdmissionLimits(
        cooldown_seconds=settings.cooldown_seconds,
        max_per_sender=settings.max_per_sender,
        max_global=settings.max_global,
        reset_interval_seconds=settings.reset_interval_seconds,
        history_max_entries=settings.history_max_entries,
        dedup_capacity=settings.dedup_capacity,
        session_idle_seconds=settings.session_idle_seconds,
    )
