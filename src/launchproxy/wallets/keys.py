"""Burner wallet key generation.

Every launch gets a fresh key pair that is used for one request and then
discarded. The signing key lives only in memory and is excluded from repr so
it cannot leak through logging or tracebacks.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from eth_account import Account

from launchproxy.errors import KeyGenerationError

logger = logging.getLogger(__name__)

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


@dataclass
class EphemeralWallet:
    """Single-use wallet created for one launch request."""

    address: str
    signing_key: str = field(repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BurnerKeyFactory:
    """Creates burner wallets from a CSPRNG."""

    def create(self, seed: Optional[bytes] = None) -> EphemeralWallet:
        """Create a new burner wallet.

        Args:
            seed: Deterministic seed, for tests only

        Raises:
            KeyGenerationError: If secure randomness is unavailable or the key
                is outside the curve order
        """
        try:
            raw = hashlib.sha256(seed).digest() if seed is not None else secrets.token_bytes(32)
        except (NotImplementedError, OSError) as e:
            raise KeyGenerationError(f"Secure randomness unavailable: {e}") from e

        key_int = int.from_bytes(raw, "big")
        if not 0 < key_int < SECP256K1_N:
            raise KeyGenerationError("Generated key is outside the secp256k1 range")

        signing_key = "0x" + raw.hex()
        try:
            address = Account.from_key(signing_key).address
        except ValueError as e:
            raise KeyGenerationError(f"Key rejected: {e}") from e

        logger.info(f"Created burner wallet {address}")
        return EphemeralWallet(address=address, signing_key=signing_key)
