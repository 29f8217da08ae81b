"""Token launch workflow.

One request runs strictly in sequence:

1. Generate a burner wallet
2. Fund it from the requester's wallet and wait for confirmation
3. Dispatch the launch to the agent (x402-paid, retried, deadline per attempt)
4. If the agent is exhausted, deploy directly from the burner
5. Sweep what is left back to the requester

Once funding is confirmed the sweep always runs, whatever happened in 3 and 4.
A funding transfer whose confirmation timed out is swept as well, since it
may still land after the deadline.

Audit writes never hold up the response: they go to the task supervisor and
apply in order per burner.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Coroutine, Optional

from launchproxy.agent.bankr import AgentLaunchResult, BankrAgentClient
from launchproxy.audit import AuditTrail
from launchproxy.chain.base import ChainClient
from launchproxy.config import Settings, SweepMode, get_settings
from launchproxy.crypto import SessionData, escrow_key
from launchproxy.deploy.clanker import ClankerDeployer
from launchproxy.deploy.config import build_fallback_config
from launchproxy.errors import (
    ChainError,
    DispatchExhaustedError,
    FallbackDeploymentError,
    FundingError,
    KeyGenerationError,
    PaymentChallengeError,
)
from launchproxy.payments.gateway import PaymentGateway
from launchproxy.schemas import LaunchRequest, LaunchResponse
from launchproxy.services.dispatch import DispatchOrchestrator, DispatchResult
from launchproxy.services.funding import FundingCoordinator, FundingPolicy, funding_policy_from_settings
from launchproxy.services.sweeper import SweepEngine, SweepRecord
from launchproxy.utils.tasks import TaskSupervisor
from launchproxy.wallets.keys import BurnerKeyFactory, EphemeralWallet

logger = logging.getLogger(__name__)

AGENT_SUCCESS_MESSAGE = "Launch successfully submitted to the agent."
FALLBACK_SUCCESS_MESSAGE = (
    "The agent was unreachable. The token was launched directly through the Clanker factory."
)


@dataclass
class LaunchOutcome:
    """Result of a launch, ready to be returned over HTTP."""

    status_code: int
    response: LaunchResponse
    dispatch: Optional[DispatchResult] = None
    sweep: Optional[SweepRecord] = None


class LaunchWorkflow:
    """Wires the launch components together for one request at a time."""

    def __init__(
        self,
        chain: ChainClient,
        settings: Optional[Settings] = None,
        key_factory: Optional[BurnerKeyFactory] = None,
        funding: Optional[FundingCoordinator] = None,
        funding_policy: Optional[FundingPolicy] = None,
        agent: Optional[BankrAgentClient] = None,
        orchestrator: Optional[DispatchOrchestrator] = None,
        deployer: Optional[ClankerDeployer] = None,
        sweeper: Optional[SweepEngine] = None,
        audit: Optional[AuditTrail] = None,
        supervisor: Optional[TaskSupervisor] = None,
    ):
        self.settings = settings or get_settings()
        self.chain = chain
        self.key_factory = key_factory or BurnerKeyFactory()
        self.funding = funding or FundingCoordinator(chain, self.settings.confirmation_timeout)
        self.funding_policy = funding_policy or funding_policy_from_settings(self.settings)
        self.agent = agent or BankrAgentClient(PaymentGateway(chain, settings=self.settings))
        self.orchestrator = orchestrator or DispatchOrchestrator()
        self.deployer = deployer or ClankerDeployer(chain, self.settings)
        self.sweeper = sweeper or SweepEngine(chain, self.settings)
        self.audit = audit or AuditTrail()
        self.supervisor = supervisor or TaskSupervisor(self.settings.background_max_concurrency)

    async def run(self, request: LaunchRequest, requester: SessionData) -> LaunchOutcome:
        """Execute one launch end to end."""
        logger.info(f"Launch of {request.name} requested by {requester.address}")

        try:
            burner = self.key_factory.create()
        except KeyGenerationError as e:
            logger.error(f"Burner generation failed: {e}")
            return self._failed(request, requester, 500, str(e))

        created = self._audit(
            "burner_created",
            burner.address,
            self.audit.record_burner_created(
                burner.address, requester.address, escrow_key(burner.signing_key)
            ),
        )

        try:
            funding = await self.funding.fund(requester.private_key, burner.address, self.funding_policy)
        except FundingError as e:
            logger.error(f"Funding of burner {burner.address} failed: {e}")
            failed = self._failed(request, requester, 500, str(e), burner.address)
            if e.tx_hash:
                failed.sweep = await self._sweep(
                    burner, requester.address, after=created, pending_funding=e.tx_hash
                )
            return failed

        funded = self._audit(
            "funding_confirmed", burner.address, self.audit.record_funding_confirmed(funding), after=created
        )

        outcome: Optional[LaunchOutcome] = None
        try:
            outcome = await self._dispatch_or_fallback(request, requester, burner)
        finally:
            dispatched = self._audit(
                "dispatched", burner.address, self.audit.record_dispatched(burner.address), after=funded
            )
            sweep = await self._sweep(burner, requester.address, after=dispatched)
            if outcome is not None:
                outcome.sweep = sweep

        self._audit(
            "launch",
            burner.address,
            self.audit.record_launch(
                name=request.name,
                symbol=request.resolved_symbol,
                requester_address=requester.address,
                success=outcome.response.success,
                burner_address=burner.address,
                tx_hash=outcome.response.tx_hash,
                payment_tx_hash=outcome.response.payment_tx_hash,
                token_address=outcome.response.token_address,
                deployed_via_fallback=bool(outcome.response.deployed_via_fallback),
                error=outcome.response.error,
            ),
        )
        return outcome

    async def _dispatch_or_fallback(
        self,
        request: LaunchRequest,
        requester: SessionData,
        burner: EphemeralWallet,
    ) -> LaunchOutcome:
        async def launch_via_agent() -> AgentLaunchResult:
            return await self.agent.launch_token(
                request, burner.address, requester.address, burner.signing_key
            )

        try:
            result = await self.orchestrator.dispatch(
                launch_via_agent,
                max_attempts=self.settings.dispatch_max_attempts,
                attempt_timeout=self.settings.dispatch_attempt_timeout,
                retry_delay=self.settings.dispatch_retry_delay,
            )
        except PaymentChallengeError as e:
            logger.error(f"Agent sent an unusable payment challenge: {e}")
            return LaunchOutcome(
                status_code=402,
                response=LaunchResponse(success=False, error=str(e), burner_address=burner.address),
            )

        if result.success:
            agent_result: AgentLaunchResult = result.value
            logger.info(f"Agent launch succeeded. Tx: {agent_result.deploy_tx_hash}")
            return LaunchOutcome(
                status_code=200,
                dispatch=result,
                response=LaunchResponse(
                    success=True,
                    message=agent_result.message or AGENT_SUCCESS_MESSAGE,
                    tx_hash=agent_result.deploy_tx_hash,
                    payment_tx_hash=agent_result.payment_tx_hash,
                    deployed_via_fallback=False,
                    burner_address=burner.address,
                ),
            )

        logger.warning(f"Agent exhausted ({result.error_message}). Falling back to direct deployment")
        config = build_fallback_config(request, requester.address, requester.telegram_user_id)

        try:
            deployed = await self.deployer.deploy_direct(config, burner.signing_key)
        except FallbackDeploymentError as e:
            error = DispatchExhaustedError(
                agent_error=result.error_message or "no attempts made",
                fallback_error=str(e),
                payment_failure=result.payment_failed,
            )
            logger.error(str(error))
            return LaunchOutcome(
                status_code=402 if error.payment_failure else 500,
                dispatch=result,
                response=LaunchResponse(success=False, error=str(error), burner_address=burner.address),
            )

        return LaunchOutcome(
            status_code=200,
            dispatch=result,
            response=LaunchResponse(
                success=True,
                message=FALLBACK_SUCCESS_MESSAGE,
                tx_hash=deployed.tx_hash,
                token_address=deployed.token_address,
                deployed_via_fallback=True,
                burner_address=burner.address,
            ),
        )

    async def _sweep(
        self,
        burner: EphemeralWallet,
        destination: str,
        after: asyncio.Task,
        pending_funding: Optional[str] = None,
    ) -> Optional[SweepRecord]:
        """Return residual funds according to the configured sweep mode.

        `after` is the burner's last audit write; the sweep status is written
        once it has landed.
        """
        mode = self.settings.sweep_mode

        if mode == SweepMode.BACKGROUND:
            self.supervisor.submit(
                self._sweep_and_record(burner, destination, after, pending_funding),
                name=f"sweep:{burner.address}",
            )
            return None

        enabled = mode == SweepMode.INLINE
        if enabled and pending_funding:
            await self._await_late_funding(pending_funding)

        record = await self.sweeper.sweep(burner.signing_key, destination, enabled=enabled)
        self._audit("sweep_status", burner.address, self.audit.record_sweep_status(record), after=after)
        return record

    async def _sweep_and_record(
        self,
        burner: EphemeralWallet,
        destination: str,
        after: asyncio.Task,
        pending_funding: Optional[str],
    ) -> SweepRecord:
        if pending_funding:
            await self._await_late_funding(pending_funding)
        record = await self.sweeper.sweep(burner.signing_key, destination)
        await asyncio.wait([after])
        await self.audit.record_sweep_status(record)
        return record

    async def _await_late_funding(self, tx_hash: str) -> None:
        """Give an unconfirmed funding transfer one more confirmation window."""
        try:
            await self.chain.wait_for_receipt(tx_hash, self.settings.confirmation_timeout)
            logger.info(f"Funding {tx_hash} confirmed late. Sweeping it back")
        except ChainError as e:
            logger.warning(f"Funding {tx_hash} still unconfirmed, sweeping whatever arrived: {e}")

    def _audit(
        self,
        event: str,
        burner_address: Optional[str],
        write: Coroutine[Any, Any, Any],
        after: Optional[asyncio.Task] = None,
    ) -> asyncio.Task:
        """Hand an audit write to the supervisor, behind `after` if given."""
        return self.supervisor.submit(write, name=f"audit:{event}:{burner_address or '-'}", after=after)

    def _failed(
        self,
        request: LaunchRequest,
        requester: SessionData,
        status_code: int,
        error: str,
        burner_address: Optional[str] = None,
    ) -> LaunchOutcome:
        self._audit(
            "launch",
            burner_address,
            self.audit.record_launch(
                name=request.name,
                symbol=request.resolved_symbol,
                requester_address=requester.address,
                success=False,
                burner_address=burner_address,
                error=error,
            ),
        )
        return LaunchOutcome(
            status_code=status_code,
            response=LaunchResponse(success=False, error=error, burner_address=burner_address),
        )
