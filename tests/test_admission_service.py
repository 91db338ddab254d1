import pytest

from relay.schemas.webhook import InboundEvent
from relay.services.admission_service import (
    MSG_GLOBAL_QUOTA,
    MSG_SENDER_QUOTA,
    Admission,
    AdmissionLimits,
    AdmissionPipeline,
    AdmissionState,
    SeenMessageIds,
)
from relay.services.mode_service import Mode


def _event(text="哈囉", sender="u1", message_id=None):
    return InboundEvent(sender_id=sender, text=text, reply_token="rt", message_id=message_id)


@pytest.fixture
def pipeline(state):
    return AdmissionPipeline(state)


class TestSeenMessageIds:
    def test_second_sighting_is_duplicate(self):
        seen = SeenMessageIds(capacity=3)
        assert seen.check_and_add("m1") is False
        assert seen.check_and_add("m1") is True

    def test_bounded_capacity_evicts_oldest(self):
        seen = SeenMessageIds(capacity=2)
        for message_id in ("m1", "m2", "m3"):
            seen.check_and_add(message_id)
        assert len(seen) == 2
        assert "m1" not in seen
        assert "m3" in seen

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            SeenMessageIds(capacity=0)


class TestDeduplication:
    def test_same_message_id_dropped(self, pipeline, clock):
        assert pipeline.decide(_event("一", message_id="m1"), clock.now).outcome == Admission.ADMIT
        clock.advance(10)
        decision = pipeline.decide(_event("二", message_id="m1"), clock.now)
        assert decision.outcome == Admission.DROP
        assert decision.reason == "duplicate_message_id"

    def test_missing_message_id_skips_dedup(self, pipeline, clock):
        pipeline.decide(_event("一"), clock.now)
        clock.advance(10)
        assert pipeline.decide(_event("二"), clock.now).admitted

    def test_dedup_drop_does_not_touch_cooldown(self, pipeline, state, clock):
        pipeline.decide(_event("一", message_id="m1"), clock.now)
        first_seen = state.cooldowns["u1"]
        clock.advance(10)
        pipeline.decide(_event("二", message_id="m1"), clock.now)
        assert state.cooldowns["u1"] == first_seen


class TestCooldown:
    def test_event_within_cooldown_dropped(self, pipeline, clock):
        assert pipeline.decide(_event("一"), clock.now).admitted
        clock.advance(1.0)
        decision = pipeline.decide(_event("二"), clock.now)
        assert decision.outcome == Admission.DROP
        assert decision.reason == "cooldown"

    def test_event_after_cooldown_admitted(self, pipeline, clock):
        pipeline.decide(_event("一"), clock.now)
        clock.advance(2.5)
        assert pipeline.decide(_event("二"), clock.now).admitted

    def test_cooldown_is_per_sender(self, pipeline, clock):
        pipeline.decide(_event("一", sender="u1"), clock.now)
        assert pipeline.decide(_event("一", sender="u2"), clock.now).admitted


class TestDuplicateText:
    def test_repeated_text_dropped(self, pipeline, clock):
        pipeline.decide(_event("在嗎"), clock.now)
        clock.advance(5)
        decision = pipeline.decide(_event("  在嗎 "), clock.now)
        assert decision.outcome == Admission.DROP
        assert decision.reason == "duplicate_text"

    def test_duplicate_text_still_refreshes_cooldown(self, pipeline, state, clock):
        pipeline.decide(_event("在嗎"), clock.now)
        clock.advance(5)
        pipeline.decide(_event("在嗎"), clock.now)
        assert state.cooldowns["u1"] == clock.now


class TestQuota:
    def test_sender_quota_short_circuits(self, pipeline, state, clock):
        for _ in range(state.limits.max_per_sender):
            state.ledger.increment("u1")
        decision = pipeline.decide(_event("還可以聊嗎"), clock.now)
        assert decision.outcome == Admission.SHORT_CIRCUIT
        assert decision.reply == MSG_SENDER_QUOTA
        assert state.ledger.sender_count("u1") == state.limits.max_per_sender

    def test_quota_rejection_still_records_attempt(self, pipeline, state, clock):
        for _ in range(state.limits.max_per_sender):
            state.ledger.increment("u1")
        pipeline.decide(_event("還可以聊嗎"), clock.now)
        assert state.cooldowns["u1"] == clock.now
        assert state.last_texts["u1"] == "還可以聊嗎"

    def test_global_quota_short_circuits(self, clock):
        state = AdmissionState(AdmissionLimits(max_per_sender=5, max_global=1), now=clock.now)
        state.ledger.increment("someone-else")
        decision = AdmissionPipeline(state).decide(_event(), clock.now)
        assert decision.outcome == Admission.SHORT_CIRCUIT
        assert decision.reply == MSG_GLOBAL_QUOTA
        assert state.ledger.global_count == 1

    def test_sender_quota_checked_before_global(self, clock):
        state = AdmissionState(AdmissionLimits(max_per_sender=1, max_global=1), now=clock.now)
        state.ledger.increment("u1")
        decision = AdmissionPipeline(state).decide(_event(), clock.now)
        assert decision.reply == MSG_SENDER_QUOTA


class TestDailyReset:
    def test_reset_wipes_counters_and_tables(self, pipeline, state, clock):
        pipeline.decide(_event("一", message_id="m1"), clock.now)
        state.record_exchange("u1", "一", "好。", clock.now)
        for _ in range(state.limits.max_per_sender):
            state.ledger.increment("u1")

        clock.advance(86400 + 1)
        decision = pipeline.decide(_event("一", message_id="m1"), clock.now)

        assert decision.admitted
        assert state.ledger.last_reset_at == clock.now
        assert state.ledger.global_count == 0
        assert state.ledger.sender_count("u1") == 0

    def test_reset_keeps_history_and_mode(self, pipeline, state, clock):
        pipeline.decide(_event("一"), clock.now)
        state.record_exchange("u1", "一", "好。", clock.now)
        state.set_mode("u1", Mode.LIGHT, clock.now)

        clock.advance(86400 + 1)
        pipeline.decide(_event("二"), clock.now)

        mode, history = state.snapshot("u1")
        assert mode == Mode.LIGHT
        assert [t.text for t in history] == ["一", "好。"]

    def test_reset_evicts_long_idle_sessions(self, clock):
        limits = AdmissionLimits(session_idle_seconds=86400)
        state = AdmissionState(limits, now=clock.now)
        pipeline = AdmissionPipeline(state)
        pipeline.decide(_event(sender="idle"), clock.now)

        clock.advance(2 * 86400)
        pipeline.decide(_event(sender="active"), clock.now)

        assert state.sessions.get("idle") is None
        assert state.sessions.get("active") is not None


class TestSessionCreation:
    def test_session_created_on_admit(self, pipeline, state, clock):
        pipeline.decide(_event(), clock.now)
        assert state.sessions.get("u1") is not None

    def test_no_session_for_dropped_event(self, pipeline, state, clock):
        state.cooldowns["u1"] = clock.now
        pipeline.decide(_event(), clock.now)
        assert state.sessions.get("u1") is None
