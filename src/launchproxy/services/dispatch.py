"""Bounded-retry dispatch of the agent call.

Each attempt runs under a hard deadline. A timed-out attempt is cancelled,
not abandoned, so it cannot keep spending the burner's funds after the
orchestrator has moved on to the next attempt or to the fallback.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from launchproxy.config import get_settings
from launchproxy.errors import DispatchTimeoutError, PaymentChallengeError, PaymentError

logger = logging.getLogger(__name__)


class AttemptOutcome(str, Enum):
    """Result of a single dispatch attempt."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    REJECTED = "rejected"


@dataclass
class DispatchAttempt:
    """Record of one attempt."""

    attempt_number: int
    started_at: datetime
    outcome: AttemptOutcome
    error_detail: Optional[str] = None


@dataclass
class DispatchResult:
    """Outcome of a dispatch run.

    Attributes:
        success: True if an attempt returned a value
        attempts: Attempt records, never more than max_attempts
        value: Value returned by the successful attempt
        last_error: Error of the last failed attempt
        exhausted: True if the caller should fall back
    """

    success: bool
    attempts: list[DispatchAttempt] = field(default_factory=list)
    value: Any = None
    last_error: Optional[Exception] = None
    exhausted: bool = False

    @property
    def payment_failed(self) -> bool:
        return isinstance(self.last_error, PaymentError)

    @property
    def error_message(self) -> Optional[str]:
        return str(self.last_error) if self.last_error else None


class DispatchOrchestrator:
    """Runs an async call with a per-attempt deadline and fixed retry delay."""

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self._sleep = sleep

    async def dispatch(
        self,
        call: Callable[[], Awaitable[Any]],
        max_attempts: Optional[int] = None,
        attempt_timeout: Optional[float] = None,
        retry_delay: Optional[float] = None,
    ) -> DispatchResult:
        """Invoke `call` until it succeeds or attempts run out.

        Args:
            call: Zero-argument coroutine factory, invoked once per attempt
            max_attempts: Attempt budget
            attempt_timeout: Seconds before an attempt is cancelled
            retry_delay: Seconds between attempts

        Raises:
            PaymentChallengeError: The endpoint's payment challenge was malformed
        """
        settings = get_settings()
        max_attempts = max_attempts if max_attempts is not None else settings.dispatch_max_attempts
        attempt_timeout = (
            attempt_timeout if attempt_timeout is not None else settings.dispatch_attempt_timeout
        )
        retry_delay = retry_delay if retry_delay is not None else settings.dispatch_retry_delay

        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        attempts: list[DispatchAttempt] = []
        last_error: Optional[Exception] = None

        for number in range(1, max_attempts + 1):
            started_at = datetime.now(timezone.utc)
            logger.info(f"Dispatch attempt {number}/{max_attempts}")

            try:
                value = await asyncio.wait_for(call(), timeout=attempt_timeout)
            except asyncio.TimeoutError:
                last_error = DispatchTimeoutError(attempt_timeout)
                attempts.append(
                    DispatchAttempt(number, started_at, AttemptOutcome.TIMEOUT, str(last_error))
                )
                logger.warning(f"Attempt {number} timed out after {attempt_timeout:g}s")
            except PaymentChallengeError as e:
                attempts.append(DispatchAttempt(number, started_at, AttemptOutcome.REJECTED, str(e)))
                logger.error(f"Attempt {number}: malformed payment challenge: {e}")
                raise
            except PaymentError as e:
                # Retrying would pay again; hand over to the fallback instead
                last_error = e
                attempts.append(DispatchAttempt(number, started_at, AttemptOutcome.REJECTED, str(e)))
                logger.warning(f"Attempt {number}: {e}")
                break
            except Exception as e:
                last_error = e
                attempts.append(DispatchAttempt(number, started_at, AttemptOutcome.REJECTED, str(e)))
                logger.warning(f"Attempt {number} rejected: {e}")
            else:
                attempts.append(DispatchAttempt(number, started_at, AttemptOutcome.SUCCESS))
                logger.info(f"Dispatch succeeded on attempt {number}")
                return DispatchResult(success=True, attempts=attempts, value=value)

            if number < max_attempts:
                await self._sleep(retry_delay)

        logger.warning(f"Dispatch exhausted after {len(attempts)} attempt(s): {last_error}")
        return DispatchResult(
            success=False,
            attempts=attempts,
            last_error=last_error,
            exhausted=True,
        )
