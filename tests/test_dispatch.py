"""Tests for bounded-retry agent dispatch."""

import asyncio

import pytest

from launchproxy.errors import AgentRejectedError, DispatchTimeoutError, PaymentChallengeError, PaymentError
from launchproxy.services.dispatch import AttemptOutcome, DispatchOrchestrator


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


class TestDispatchOrchestrator:
    """Tests for DispatchOrchestrator."""

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self, sleep):
        async def call():
            return "deployed"

        result = await DispatchOrchestrator(sleep=sleep).dispatch(call, 3, 1.0, 2.0)

        assert result.success
        assert result.value == "deployed"
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.SUCCESS]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_three_timeouts_exhaust(self, sleep):
        """Every attempt hangs: three timeout records, two delays, then exhausted."""

        async def hang():
            await asyncio.sleep(10)

        result = await DispatchOrchestrator(sleep=sleep).dispatch(hang, 3, 0.05, 2.0)

        assert not result.success
        assert result.exhausted
        assert [a.attempt_number for a in result.attempts] == [1, 2, 3]
        assert all(a.outcome == AttemptOutcome.TIMEOUT for a in result.attempts)
        assert sleep.delays == [2.0, 2.0]
        assert isinstance(result.last_error, DispatchTimeoutError)
        assert not result.payment_failed

    @pytest.mark.asyncio
    async def test_timed_out_attempt_is_cancelled(self, sleep):
        finished = []
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
                finished.append(True)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        await DispatchOrchestrator(sleep=sleep).dispatch(slow, 2, 0.05, 0)

        assert cancelled == [True, True]
        assert finished == []

    @pytest.mark.asyncio
    async def test_retries_after_rejection(self, sleep):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) < 2:
                raise AgentRejectedError("busy", status_code=503)
            return "ok"

        result = await DispatchOrchestrator(sleep=sleep).dispatch(flaky, 3, 1.0, 0.5)

        assert result.success
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.REJECTED, AttemptOutcome.SUCCESS]
        assert result.attempts[0].error_detail == "busy"
        assert sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_payment_error_stops_retrying(self, sleep):
        calls = []

        async def pay_fails():
            calls.append(1)
            raise PaymentError("transfer reverted")

        result = await DispatchOrchestrator(sleep=sleep).dispatch(pay_fails, 3, 1.0, 0)

        assert len(calls) == 1
        assert result.exhausted
        assert result.payment_failed
        assert result.error_message == "Payment failed: transfer reverted"

    @pytest.mark.asyncio
    async def test_malformed_challenge_propagates(self, sleep):
        async def bad_challenge():
            raise PaymentChallengeError("Missing x-payment-address or x-payment-amount")

        with pytest.raises(PaymentChallengeError):
            await DispatchOrchestrator(sleep=sleep).dispatch(bad_challenge, 3, 1.0, 0)

        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_attempt_budget_must_be_positive(self, sleep):
        async def call():
            return None

        with pytest.raises(ValueError):
            await DispatchOrchestrator(sleep=sleep).dispatch(call, 0, 1.0, 0)

    @pytest.mark.asyncio
    async def test_defaults_come_from_settings(self, sleep, monkeypatch):
        from launchproxy.config import get_settings

        monkeypatch.setattr(get_settings(), "dispatch_max_attempts", 2)
        monkeypatch.setattr(get_settings(), "dispatch_attempt_timeout", 1.0)
        monkeypatch.setattr(get_settings(), "dispatch_retry_delay", 0.25)

        async def fails():
            raise RuntimeError("nope")

        result = await DispatchOrchestrator(sleep=sleep).dispatch(fails)

        assert len(result.attempts) == 2
        assert sleep.delays == [0.25]
