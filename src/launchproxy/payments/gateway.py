"""Payment-gated HTTP calls (x402).

Flow for one call:

1. POST the payload as-is
2. On 402, parse the challenge from headers or body
3. Top up the stable token if the signer is short
4. Pay the pay gate and wait for confirmation
5. Repeat the POST with the payment tx hash as proof
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional

import httpx

from launchproxy.chain.base import ChainClient
from launchproxy.chain.erc20 import to_units, transfer_token
from launchproxy.config import Settings, get_settings
from launchproxy.errors import AgentRejectedError, PaymentChallengeError, PaymentError
from launchproxy.payments.challenge import (
    PAYMENT_PROOF_HEADER,
    PAYMENT_SIGNATURE_HEADER,
    PaymentChallenge,
    parse_challenge,
)
from launchproxy.payments.topup import ensure_stable_balance

logger = logging.getLogger(__name__)


@dataclass
class GatewayResult:
    """Response of a (possibly paid) gated call.

    payment_tx_hash is the x402 payment transfer, never an action performed
    by the endpoint itself.
    """

    data: Any
    payment_tx_hash: Optional[str] = None


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


class PaymentGateway:
    """Performs HTTP calls that may demand an on-chain micropayment."""

    def __init__(
        self,
        chain: ChainClient,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        request_timeout: float = 30.0,
    ):
        self.chain = chain
        self.settings = settings or get_settings()
        self.request_timeout = request_timeout
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncGenerator[httpx.AsyncClient, None]:
        """Use the injected client or open a short-lived one."""
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            yield client

    async def call_with_payment(
        self,
        endpoint: str,
        payload: dict,
        signing_key: str,
        headers: Optional[dict] = None,
    ) -> GatewayResult:
        """POST to a gated endpoint, paying its x402 challenge if asked.

        Raises:
            AgentRejectedError: Non-success status other than 402, or transport failure
            PaymentChallengeError: The 402 carried no usable challenge
            PaymentError: Top-up, transfer, confirmation or the proof retry failed
        """
        request_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }

        async with self._client() as client:
            logger.info(f"Initial request to {endpoint}")
            try:
                response = await client.post(endpoint, json=payload, headers=request_headers)
            except httpx.HTTPError as e:
                raise AgentRejectedError(f"Request to {endpoint} failed: {e}") from e

            if response.status_code == 402:
                logger.info("Received 402 Payment Required")
                challenge = parse_challenge(
                    response,
                    default_token=self.settings.usdc_address,
                    default_chain_id=self.settings.chain_id,
                )
                payment_tx_hash = await self._pay(signing_key, challenge)

                retry_headers = {
                    **request_headers,
                    PAYMENT_PROOF_HEADER: payment_tx_hash,
                    PAYMENT_SIGNATURE_HEADER: payment_tx_hash,
                }
                logger.info("Retrying request with payment proof")
                try:
                    retry = await client.post(endpoint, json=payload, headers=retry_headers)
                except httpx.HTTPError as e:
                    raise PaymentError(f"Retry with payment proof failed: {e}") from e

                if not retry.is_success:
                    raise PaymentError(
                        f"Retry failed with status {retry.status_code}: {retry.text}"
                    )
                return GatewayResult(data=_json_body(retry), payment_tx_hash=payment_tx_hash)

            if response.is_success:
                return GatewayResult(data=_json_body(response))

            raise AgentRejectedError(
                f"API returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

    async def _pay(self, signing_key: str, challenge: PaymentChallenge) -> str:
        """Settle a challenge on-chain and return the confirmed transfer hash."""
        if challenge.chain_id != self.settings.chain_id:
            raise PaymentChallengeError(
                f"Challenge targets chain {challenge.chain_id}, wallet is on {self.settings.chain_id}"
            )

        try:
            amount = to_units(challenge.amount, self.settings.usdc_decimals)
        except ValueError as e:
            raise PaymentChallengeError(f"Unpayable amount: {e}") from e

        logger.info(
            f"Initiating payment of {challenge.amount} to {challenge.pay_gate_address} "
            f"in token {challenge.token_address}"
        )

        try:
            await ensure_stable_balance(
                self.chain, signing_key, challenge.token_address, amount, self.settings
            )
            tx_hash = await transfer_token(
                self.chain,
                signing_key,
                challenge.token_address,
                challenge.pay_gate_address,
                amount,
            )
            logger.info(f"Payment transfer submitted. Tx: {tx_hash}")
            await self.chain.wait_for_receipt(tx_hash, self.settings.confirmation_timeout)
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentError(str(e)) from e

        logger.info(f"Payment transfer confirmed. Tx: {tx_hash}")
        return tx_hash
