"""x402 payment challenge parsing.

A gated endpoint answers HTTP 402 with the pay gate address, the amount and
the token either in response headers or in the JSON body.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from launchproxy.errors import PaymentChallengeError

logger = logging.getLogger(__name__)

PAYMENT_PROOF_HEADER = "x-payment-proof"
PAYMENT_SIGNATURE_HEADER = "x-payment-signature"

BODY_ADDRESS_KEYS = ("paymentAddress", "payment-address", "payment_address")
BODY_AMOUNT_KEYS = ("amount", "paymentAmount", "payment-amount")
BODY_TOKEN_KEYS = ("tokenAddress", "paymentToken", "payment-token")


@dataclass(frozen=True)
class PaymentChallenge:
    """Payment demanded by a gated endpoint.

    Attributes:
        pay_gate_address: Address that must receive the payment
        amount: Amount in token units as stated by the endpoint (e.g. "0.10")
        token_address: ERC20 token to pay in
        chain_id: Chain the payment must settle on
    """

    pay_gate_address: str
    amount: Decimal
    token_address: str
    chain_id: int


def _header(response: httpx.Response, name: str) -> Optional[str]:
    """Read a payment header with or without the x- prefix."""
    return response.headers.get(f"x-{name}") or response.headers.get(name)


def _first(body: dict, keys: tuple) -> Optional[str]:
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def _parse_amount(raw: str) -> Decimal:
    try:
        amount = Decimal(raw)
    except InvalidOperation as e:
        raise PaymentChallengeError(f"Invalid payment amount: {raw!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise PaymentChallengeError(f"Invalid payment amount: {raw!r}")
    return amount


def parse_challenge(
    response: httpx.Response,
    default_token: str,
    default_chain_id: int,
) -> PaymentChallenge:
    """Extract a PaymentChallenge from a 402 response.

    Headers win; the JSON body is only consulted when the address or amount
    header is missing.

    Raises:
        PaymentChallengeError: If neither source names both address and amount
    """
    address = _header(response, "payment-address")
    amount = _header(response, "payment-amount")
    token = _header(response, "payment-token")
    chain_id: Optional[int] = None

    if not address or not amount:
        try:
            body = response.json()
        except ValueError as e:
            raise PaymentChallengeError(
                "Missing payment headers or body details for x402 challenge"
            ) from e

        if not isinstance(body, dict):
            raise PaymentChallengeError("x402 challenge body is not an object")

        address = _first(body, BODY_ADDRESS_KEYS)
        amount = _first(body, BODY_AMOUNT_KEYS)
        token = token or _first(body, BODY_TOKEN_KEYS)
        if body.get("chainId") is not None:
            try:
                chain_id = int(body["chainId"])
            except (TypeError, ValueError) as e:
                raise PaymentChallengeError(f"Invalid chainId: {body['chainId']!r}") from e

    if not address or not amount:
        raise PaymentChallengeError("Missing x-payment-address or x-payment-amount")

    challenge = PaymentChallenge(
        pay_gate_address=address,
        amount=_parse_amount(amount),
        token_address=token or default_token,
        chain_id=chain_id or default_chain_id,
    )
    logger.debug(f"Parsed x402 challenge: {challenge}")
    return challenge
