"""Tests for burner key generation and key/session encryption."""

from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet, InvalidToken
from eth_account import Account

from launchproxy.crypto import (
    KeyEncryptor,
    SessionData,
    decode_session,
    encode_session,
    escrow_key,
    generate_master_key,
    release_key,
)
from launchproxy.errors import KeyGenerationError
from launchproxy.wallets.keys import BurnerKeyFactory


class TestBurnerKeyFactory:
    """Tests for BurnerKeyFactory."""

    def test_create_returns_matching_address(self):
        wallet = BurnerKeyFactory().create()

        assert wallet.address == Account.from_key(wallet.signing_key).address
        assert wallet.signing_key.startswith("0x")
        assert len(wallet.signing_key) == 66

    def test_each_wallet_is_unique(self):
        factory = BurnerKeyFactory()
        addresses = {factory.create().address for _ in range(10)}

        assert len(addresses) == 10

    def test_seed_is_deterministic(self):
        factory = BurnerKeyFactory()

        assert factory.create(seed=b"fixed").address == factory.create(seed=b"fixed").address
        assert factory.create(seed=b"a").address != factory.create(seed=b"b").address

    def test_signing_key_not_in_repr(self):
        wallet = BurnerKeyFactory().create()

        assert wallet.signing_key not in repr(wallet)
        assert wallet.signing_key[2:] not in repr(wallet)
        assert wallet.address in repr(wallet)

    def test_randomness_failure_raises(self):
        with patch("launchproxy.wallets.keys.secrets.token_bytes", side_effect=NotImplementedError("no rng")):
            with pytest.raises(KeyGenerationError):
                BurnerKeyFactory().create()

    def test_out_of_range_key_raises(self):
        with patch("launchproxy.wallets.keys.secrets.token_bytes", return_value=b"\x00" * 32):
            with pytest.raises(KeyGenerationError):
                BurnerKeyFactory().create()


class TestKeyEncryptor:
    """Tests for Fernet key encryption."""

    def test_encrypt_decrypt(self):
        encryptor = KeyEncryptor(generate_master_key())
        secret = "0x" + "22" * 32

        token = encryptor.encrypt(secret)

        assert secret not in token
        assert encryptor.decrypt(token) == secret

    def test_wrong_key_fails(self):
        token = KeyEncryptor(generate_master_key()).encrypt("secret")

        with pytest.raises(InvalidToken):
            KeyEncryptor(Fernet.generate_key().decode()).decrypt(token)

    def test_escrow_and_release(self):
        key = "0x" + "33" * 32
        escrowed = escrow_key(key)

        assert escrowed is not None
        assert key not in escrowed
        assert release_key(escrowed) == key


class TestSessions:
    """Tests for session token resolution."""

    def test_round_trip(self):
        session = SessionData(address="0x" + "44" * 20, private_key="0x" + "55" * 32, telegram_user_id=7)

        decoded = decode_session(encode_session(session))

        assert decoded == session

    def test_garbage_token_rejected(self):
        assert decode_session("not-a-token") is None
        assert decode_session("") is None

    def test_token_without_key_rejected(self):
        from launchproxy.crypto import get_encryptor

        token = get_encryptor().encrypt('{"address": "0xabc"}')

        assert decode_session(token) is None

    def test_private_key_not_in_repr(self):
        session = SessionData(address="0x" + "44" * 20, private_key="0x" + "55" * 32)

        assert "55" * 32 not in repr(session)
