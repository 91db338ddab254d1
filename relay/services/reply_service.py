"""Reply orchestration for admitted events and per-delivery batch processing."""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from pydantic import ValidationError

from relay.logging_config import get_logger, sender_logger
from relay.schemas.webhook import InboundEvent, LineEvent
from relay.services.admission_service import Admission, AdmissionPipeline, AdmissionState
from relay.services.ai_service import FALLBACK_REPLY, generate_reply
from relay.services.alert_service import alert_error
from relay.services.content_filter import scrub_terms
from relay.services.intent_service import BudgetPolicy, choose_budget
from relay.services.llm import LLMProvider
from relay.services.mode_service import confirmation_for, parse_mode_command
from relay.services.result import DELIVERY_ERROR, Result
from relay.services.shaping_service import shape_reply

logger = get_logger("reply_service")


class DeliveryService(Protocol):
    def reply(self, reply_token: str, text: str) -> Result[None]: ...


@dataclass
class ReplyOutcome:
    status: str  # dropped, short_circuit, mode_changed, replied, fallback
    reason: str
    reply: Optional[str] = None
    delivered: bool = False


class RelayService:
    """Admission, generation, shaping and delivery for inbound text events."""

    def __init__(
        self,
        state: AdmissionState,
        provider: LLMProvider,
        delivery: DeliveryService,
        *,
        banned_terms: Optional[List[str]] = None,
        budget_policy: Optional[BudgetPolicy] = None,
        max_output_tokens: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.state = state
        self.pipeline = AdmissionPipeline(state)
        self.provider = provider
        self.delivery = delivery
        self.banned_terms = list(banned_terms or [])
        self.budget_policy = budget_policy or BudgetPolicy()
        self.max_output_tokens = max_output_tokens
        self.clock = clock

    def handle_event(self, event: InboundEvent) -> ReplyOutcome:
        now = self.clock()
        log = sender_logger("reply_service", event.sender_id)

        decision = self.pipeline.decide(event, now)
        if decision.outcome == Admission.DROP:
            log.info("Event dropped", context={"reason": decision.reason, "message_id": event.message_id})
            return ReplyOutcome(status="dropped", reason=decision.reason)

        if decision.outcome == Admission.SHORT_CIRCUIT:
            log.info("Event short-circuited", context={"reason": decision.reason})
            delivered = self._deliver(event, decision.reply)
            return ReplyOutcome(status="short_circuit", reason=decision.reason, reply=decision.reply, delivered=delivered)

        text = event.text.strip()
        log.debug("Event admitted", context={"text": text})

        mode = parse_mode_command(text)
        if mode is not None:
            self.state.set_mode(event.sender_id, mode, now)
            reply = confirmation_for(mode)
            log.info("Mode changed", context={"mode": mode.value})
            delivered = self._deliver(event, reply)
            return ReplyOutcome(status="mode_changed", reason=mode.value, reply=reply, delivered=delivered)

        reply, status = self.compose_reply(event.sender_id, text)
        log.debug("Reply composed", context={"status": status, "reply": reply})
        self.state.record_exchange(event.sender_id, text, reply, now)
        delivered = self._deliver(event, reply)
        return ReplyOutcome(status=status, reason=decision.reason, reply=reply, delivered=delivered)

    def compose_reply(self, sender_id: str, text: str) -> tuple[str, str]:
        """Generate, scrub and shape a reply. No lock is held during generation."""
        mode, history = self.state.snapshot(sender_id)
        budget = choose_budget(text, self.budget_policy)

        result = generate_reply(
            text,
            mode=mode,
            history=history,
            budget=budget,
            provider=self.provider,
            max_output_tokens=self.max_output_tokens,
        )
        if not result.ok:
            return FALLBACK_REPLY, "fallback"

        filtered = scrub_terms(result.value, self.banned_terms)
        if not filtered:
            logger.warning("Reply empty after filtering", extra={"context": {"sender": sender_id}})
            return FALLBACK_REPLY, "fallback"

        return shape_reply(filtered, budget), "replied"

    def _deliver(self, event: InboundEvent, text: str) -> bool:
        """Fire-and-forget delivery: failures are logged and alerted, never retried."""
        try:
            result = self.delivery.reply(event.reply_token, text)
        except Exception as e:
            result = Result.failure(str(e), DELIVERY_ERROR)
        if result.ok:
            return True
        logger.error(
            "Delivery failed",
            extra={"context": {"sender": event.sender_id, "error": result.error, "code": result.error_code}},
        )
        alert_error("LINE delivery failed", {"sender": event.sender_id, "error": result.error_code})
        return False

    def process_events(self, raw_events: List[dict]) -> dict:
        """Process one webhook delivery in order; one bad event never stops the rest."""
        summary = {"received": len(raw_events), "ignored": 0, "processed": 0, "failed": 0}
        for raw in raw_events:
            try:
                inbound = InboundEvent.from_line_event(LineEvent.model_validate(raw))
                if inbound is None:
                    summary["ignored"] += 1
                    continue
                self.handle_event(inbound)
                summary["processed"] += 1
            except ValidationError as e:
                summary["ignored"] += 1
                logger.warning(f"Malformed LINE event skipped: {e.error_count()} errors")
            except Exception as e:
                summary["failed"] += 1
                logger.error(f"Event handling error: {e}", exc_info=True)
        return summary
