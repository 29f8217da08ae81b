"""Error taxonomy for the launch engine.

Every error carries a severity that decides how the workflow treats it:

- FATAL: aborts the workflow and is returned to the caller
- RETRYABLE: absorbed by the dispatch loop until attempts are exhausted
- BEST_EFFORT: logged only, never surfaced as a request failure
"""

from enum import Enum
from typing import Optional


class ErrorSeverity(str, Enum):
    """How a failure propagates through the workflow."""

    FATAL = "fatal"
    RETRYABLE = "retryable"
    BEST_EFFORT = "best_effort"


class LaunchError(Exception):
    """Base class for launch engine errors."""

    severity = ErrorSeverity.FATAL


# Chain layer


class ChainError(LaunchError):
    """An on-chain read or write failed."""


class ConfirmationTimeoutError(ChainError):
    """A submitted transaction was not mined in time."""

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not confirmed after {timeout:g}s")


class TransactionRevertedError(ChainError):
    """A transaction was mined with status 0."""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} failed (reverted)")


class StaleNonceError(ChainError):
    """The node rejected a submission because its nonce was already used."""

    severity = ErrorSeverity.RETRYABLE


# Fatal workflow errors


class KeyGenerationError(LaunchError):
    """A burner key could not be generated."""


class FundingError(LaunchError):
    """The burner wallet could not be funded and confirmed.

    `tx_hash` is set when the transfer was broadcast but its confirmation
    timed out, so it may still land in the burner.
    """

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class PaymentError(LaunchError):
    """Payment required but could not be satisfied."""

    def __init__(self, message: str):
        super().__init__(f"Payment failed: {message}")


class PaymentChallengeError(PaymentError):
    """The payment-required response did not carry a usable challenge."""


class FallbackDeploymentError(LaunchError):
    """The direct on-chain deployment failed."""


# Retryable dispatch errors


class DispatchTimeoutError(LaunchError):
    """A single agent attempt exceeded its deadline."""

    severity = ErrorSeverity.RETRYABLE

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Agent did not respond within {timeout:g}s")


class AgentRejectedError(LaunchError):
    """The agent endpoint answered with a non-success status."""

    severity = ErrorSeverity.RETRYABLE

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


# Best-effort errors


class SweepError(LaunchError):
    """Residual funds could not be returned."""

    severity = ErrorSeverity.BEST_EFFORT


class AuditError(LaunchError):
    """An audit or persistence call failed."""

    severity = ErrorSeverity.BEST_EFFORT


class DispatchExhaustedError(LaunchError):
    """Agent dispatch and the fallback deployment both failed."""

    def __init__(self, agent_error: str, fallback_error: str, payment_failure: bool = False):
        self.agent_error = agent_error
        self.fallback_error = fallback_error
        self.payment_failure = payment_failure
        super().__init__(
            f"Agent dispatch failed ({agent_error}); fallback deployment failed ({fallback_error})"
        )
