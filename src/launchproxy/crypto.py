"""Cryptographic utilities for sessions and burner key escrow.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from launchproxy.config import get_settings

logger = logging.getLogger(__name__)


def generate_master_key() -> str:
    """Generate a new master encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for Fernet
    """
    return Fernet.generate_key().decode()


class KeyEncryptor:
    """Encrypts and decrypts secrets using Fernet.

    Usage:
        encryptor = KeyEncryptor(master_key)
        encrypted = encryptor.encrypt("0x...")
        decrypted = encryptor.decrypt(encrypted)
    """

    def __init__(self, master_key: str):
        self._fernet = Fernet(master_key.encode())

    def encrypt(self, secret: str) -> str:
        """Encrypt a secret, returning a base64 token."""
        return self._fernet.encrypt(secret.encode()).decode()

    def decrypt(self, token: str) -> str:
        """Decrypt a token.

        Raises:
            InvalidToken: If decryption fails (wrong key or corrupted data)
        """
        return self._fernet.decrypt(token.encode()).decode()


def get_encryptor() -> Optional[KeyEncryptor]:
    """Get encryptor instance using MASTER_KEY from settings.

    Returns:
        KeyEncryptor if MASTER_KEY is set, None otherwise
    """
    master_key = get_settings().master_key
    if not master_key:
        return None
    return KeyEncryptor(master_key)


def escrow_key(signing_key: str) -> Optional[str]:
    """Encrypt a burner key for recovery.

    Returns None unless escrow is enabled and MASTER_KEY is set.
    """
    if not get_settings().can_escrow_keys:
        return None
    encryptor = get_encryptor()
    return encryptor.encrypt(signing_key) if encryptor else None


def release_key(escrowed: str) -> str:
    """Decrypt an escrowed burner key.

    Raises:
        RuntimeError: If MASTER_KEY is not configured
        InvalidToken: If the ciphertext was produced with another key
    """
    encryptor = get_encryptor()
    if encryptor is None:
        raise RuntimeError("MASTER_KEY is required to release escrowed keys")
    return encryptor.decrypt(escrowed)


@dataclass
class SessionData:
    """Requester identity resolved from a session token."""

    address: str
    private_key: str = field(repr=False)
    telegram_user_id: Optional[int] = None


def encode_session(session: SessionData) -> str:
    """Serialize a session into an encrypted token."""
    encryptor = get_encryptor()
    if encryptor is None:
        raise RuntimeError("MASTER_KEY is required to encode sessions")
    payload = {
        "address": session.address,
        "privateKey": session.private_key,
        "telegramUserId": session.telegram_user_id,
    }
    return encryptor.encrypt(json.dumps(payload))


def decode_session(token: str) -> Optional[SessionData]:
    """Resolve a session token.

    Returns None for any token that cannot be decrypted or lacks a key.
    """
    encryptor = get_encryptor()
    if encryptor is None or not token:
        return None

    try:
        payload = json.loads(encryptor.decrypt(token))
    except (InvalidToken, ValueError):
        logger.warning("Rejected undecodable session token")
        return None

    if not isinstance(payload, dict):
        return None

    address = payload.get("address")
    private_key = payload.get("privateKey")
    if not address or not private_key:
        return None

    return SessionData(
        address=address,
        private_key=private_key,
        telegram_user_id=payload.get("telegramUserId"),
    )
