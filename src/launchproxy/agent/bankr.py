"""Client for the Bankr launch agent.

The agent is driven by a natural-language prompt posted to its /prompt
endpoint on behalf of the burner wallet. Every call goes through the payment
gateway since the endpoint is x402-gated.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from launchproxy.config import get_settings
from launchproxy.errors import AgentRejectedError
from launchproxy.payments.gateway import PaymentGateway
from launchproxy.schemas import LaunchRequest

logger = logging.getLogger(__name__)

TX_HASH_RE = re.compile(r"0x[a-fA-F0-9]{64}")

DEFAULT_SUCCESS_MESSAGE = "Token launch successfully dispatched via Bankr Agent."


def _as_tx_hash(value: Any) -> Optional[str]:
    if isinstance(value, str) and TX_HASH_RE.fullmatch(value):
        return value
    return None


def _dig(data: dict, *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def extract_tx_hash(data: Any) -> Optional[str]:
    """Find the agent's own transaction hash in a response body.

    Looks at the usual top-level keys, then common nested shapes, and finally
    scans the message text.
    """
    if not isinstance(data, dict):
        return None

    for key in ("txHash", "transactionHash", "tx_hash", "hash"):
        found = _as_tx_hash(data.get(key))
        if found:
            return found

    for path in (
        ("data", "txHash"),
        ("data", "transactionHash"),
        ("result", "txHash"),
        ("transaction", "hash"),
        ("tx", "hash"),
    ):
        found = _as_tx_hash(_dig(data, *path))
        if found:
            return found

    message = data.get("message") or data.get("msg") or data.get("text")
    if isinstance(message, str):
        match = TX_HASH_RE.search(message)
        if match:
            return match.group(0)

    return None


@dataclass
class AgentLaunchResult:
    """What the agent reported for a launch.

    deploy_tx_hash comes from the agent's response; payment_tx_hash is the
    x402 transfer made to reach it.
    """

    message: str
    deploy_tx_hash: Optional[str] = None
    payment_tx_hash: Optional[str] = None
    raw: Any = field(default=None, repr=False)


def build_launch_prompt(
    request: LaunchRequest,
    burner_address: str,
    requester_address: str,
) -> str:
    """Render the launch instructions sent to the agent."""
    reward_recipient = request.reward_recipient_for(requester_address)

    lines = [
        "Launch a new ERC-20 token on Base with exactly these parameters.",
        "",
        "## Token",
        f"- Name: {request.name}",
        f"- Symbol: {request.resolved_symbol}",
    ]
    if request.description:
        lines.append(f"- Description: {request.description}")
    if request.image:
        lines.append(f"- Image: {request.image}")
    if request.website:
        lines.append(f"- Website: {request.website}")
    if request.tweet:
        lines.append(f"- Announcement: {request.tweet}")

    lines += ["", "## Pool fee"]
    if request.tax_type == "static":
        lines.append(f"- Static fee fixed at {request.tax_percentage}%")
    else:
        lines.append("- Dynamic fee between 1% and 10%")

    if request.vanity_suffix:
        lines += [
            "",
            "## Vanity address",
            f"- The token address must end with {request.vanity_suffix}",
        ]

    lines += [
        "",
        "## Dashboard identity",
        f"- Launcher ({request.launcher_type}): {request.launcher}",
        f"- Fee recipient ({request.fee_type}): {request.fee}",
        "",
        "## Ownership",
        f"- {burner_address} is a proxy wallet and must not own anything",
        f"- tokenAdmin: {requester_address}",
        f"- rewardRecipient: {reward_recipient}",
        "",
        "Deploy now and return the transaction hash and token address.",
    ]
    return "\n".join(lines)


class BankrAgentClient:
    """Launches tokens through the Bankr agent."""

    def __init__(
        self,
        gateway: PaymentGateway,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        settings = get_settings()
        self.gateway = gateway
        self.api_url = (api_url or settings.agent_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.agent_api_key

    async def send_prompt(self, prompt: str, wallet_address: str, signing_key: str) -> AgentLaunchResult:
        """Post a prompt for a wallet, paying the x402 fee with its key.

        Raises:
            AgentRejectedError: If the agent answers with an explicit failure
        """
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None

        logger.info(f"Sending prompt for wallet {wallet_address}")
        result = await self.gateway.call_with_payment(
            f"{self.api_url}/prompt",
            {"walletAddress": wallet_address, "prompt": prompt},
            signing_key,
            headers=headers,
        )

        data = result.data
        if isinstance(data, dict) and data.get("success") is False:
            raise AgentRejectedError(str(data.get("error") or "Agent reported failure"))

        message = DEFAULT_SUCCESS_MESSAGE
        if isinstance(data, dict):
            message = data.get("message") or data.get("msg") or data.get("text") or message

        return AgentLaunchResult(
            message=message,
            deploy_tx_hash=extract_tx_hash(data),
            payment_tx_hash=result.payment_tx_hash,
            raw=data,
        )

    async def launch_token(
        self,
        request: LaunchRequest,
        burner_address: str,
        requester_address: str,
        signing_key: str,
    ) -> AgentLaunchResult:
        """Ask the agent to deploy a token from the burner wallet."""
        prompt = build_launch_prompt(request, burner_address, requester_address)
        return await self.send_prompt(prompt, burner_address, signing_key)
