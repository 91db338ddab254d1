from typing import Dict

DAY_SECONDS = 86400


class QuotaLedger:
    """Daily usage counters, per sender and process-wide.

    Counts only grow between resets. Callers hold AdmissionState.lock around
    every read-check-write sequence.
    """

    def __init__(self, max_per_sender: int, max_global: int, now: float = 0.0) -> None:
        self.max_per_sender = max_per_sender
        self.max_global = max_global
        self.per_sender: Dict[str, int] = {}
        self.global_count = 0
        self.last_reset_at = now

    def sender_count(self, sender_id: str) -> int:
        return self.per_sender.get(sender_id, 0)

    def sender_exhausted(self, sender_id: str) -> bool:
        return self.sender_count(sender_id) >= self.max_per_sender

    def global_exhausted(self) -> bool:
        return self.global_count >= self.max_global

    def increment(self, sender_id: str) -> None:
        self.per_sender[sender_id] = self.sender_count(sender_id) + 1
        self.global_count += 1

    def is_reset_due(self, now: float, interval_seconds: float = DAY_SECONDS) -> bool:
        return now - self.last_reset_at > interval_seconds

    def reset(self, now: float) -> None:
        self.per_sender.clear()
        self.global_count = 0
        self.last_reset_at = now
