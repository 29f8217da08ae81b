"""Launch engine services."""

from launchproxy.services.dispatch import (
    AttemptOutcome,
    DispatchAttempt,
    DispatchOrchestrator,
    DispatchResult,
)
from launchproxy.services.funding import (
    DynamicFunding,
    FundingCoordinator,
    FundingRecord,
    StaticFunding,
)
from launchproxy.services.sweeper import SweepEngine, SweepRecord, SweepStatus

__all__ = [
    "AttemptOutcome",
    "DispatchAttempt",
    "DispatchOrchestrator",
    "DispatchResult",
    "DynamicFunding",
    "FundingCoordinator",
    "FundingRecord",
    "StaticFunding",
    "SweepEngine",
    "SweepRecord",
    "SweepStatus",
]
