import asyncio
import json
import threading
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from relay.config import Settings, settings
from relay.logging_config import get_logger
from relay.schemas.webhook import LineWebhookRequest
from relay.services.admission_service import AdmissionState, limits_from_settings
from relay.services.ai_service import get_llm_provider
from relay.services.intent_service import BudgetPolicy
from relay.services.line_service import LineService, verify_signature
from relay.services.reply_service import RelayService

logger = get_logger("callback")

router = APIRouter()

_relay_service: Optional[RelayService] = None
_relay_service_lock = threading.Lock()


def get_settings() -> Settings:
    return settings


def build_relay_service(config: Settings) -> RelayService:
    return RelayService(
        state=AdmissionState(limits_from_settings(config), now=time.time()),
        provider=get_llm_provider(),
        delivery=LineService(config.line_channel_access_token or "", timeout_seconds=config.line_timeout_seconds),
        banned_terms=config.banned_terms,
        budget_policy=BudgetPolicy(
            short_input_chars=config.short_input_chars,
            short_budget=config.short_budget,
            long_budget=config.long_budget,
            complex_input_chars=config.complex_input_chars,
        ),
        max_output_tokens=config.gemini_max_output_tokens,
    )


def get_relay_service() -> RelayService:
    """Process-wide relay; its state lives until the process exits."""
    global _relay_service
    if _relay_service is None:
        with _relay_service_lock:
            if _relay_service is None:
                _relay_service = build_relay_service(settings)
    return _relay_service


@router.post("/api/callback")
async def handle_line_callback(
    request: Request,
    config: Settings = Depends(get_settings),
    relay: RelayService = Depends(get_relay_service),
):
    """LINE webhook: verify signature, then process each event in order."""
    if not config.has_credentials():
        logger.error("Callback rejected: LINE or Gemini credentials missing")
        return PlainTextResponse("Missing env vars", status_code=500)

    body = await request.body()
    signature = request.headers.get("x-line-signature")
    if not verify_signature(config.line_channel_secret, body, signature):
        logger.warning("Callback rejected: invalid signature")
        return PlainTextResponse("Invalid signature", status_code=400)

    try:
        parsed = json.loads(body)
        # A body that is valid JSON but not an object carries no events.
        payload = LineWebhookRequest.model_validate(parsed if isinstance(parsed, dict) else {})
    except (ValueError, ValidationError) as e:
        logger.warning(f"Callback rejected: bad JSON ({e.__class__.__name__})")
        return PlainTextResponse("Bad JSON", status_code=400)

    if payload.events:
        # Generation and delivery block on network I/O; keep them off the event loop.
        summary = await asyncio.to_thread(relay.process_events, payload.events)
        logger.info("Callback processed", extra={"context": summary})

    return PlainTextResponse("OK")


@router.get("/api/callback")
async def probe_line_callback():
    return PlainTextResponse("OK")
