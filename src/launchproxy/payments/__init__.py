"""x402 payment-gated calls."""

from launchproxy.payments.challenge import PaymentChallenge, parse_challenge
from launchproxy.payments.gateway import GatewayResult, PaymentGateway

__all__ = ["GatewayResult", "PaymentChallenge", "PaymentGateway", "parse_challenge"]
