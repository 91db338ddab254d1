from unittest.mock import Mock

import pytest

from relay.services.admission_service import AdmissionLimits, AdmissionState
from relay.services.llm import LLMResponse
from relay.services.reply_service import RelayService
from relay.services.result import Result


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limits():
    return AdmissionLimits(
        cooldown_seconds=2.5,
        max_per_sender=3,
        max_global=100,
        reset_interval_seconds=86400,
        history_max_entries=10,
        dedup_capacity=100,
    )


@pytest.fixture
def state(limits, clock):
    return AdmissionState(limits, now=clock.now)


@pytest.fixture
def provider():
    """Mock generation backend answering with a short complete sentence."""
    mock = Mock()
    mock.generate.return_value = LLMResponse(content="嗯嗯我懂。", model="gemini-test")
    return mock


@pytest.fixture
def delivery():
    mock = Mock()
    mock.reply.return_value = Result.success()
    return mock


@pytest.fixture
def relay(state, provider, delivery, clock):
    return RelayService(
        state=state,
        provider=provider,
        delivery=delivery,
        banned_terms=["ChatGPT", "AI"],
        clock=clock,
    )
