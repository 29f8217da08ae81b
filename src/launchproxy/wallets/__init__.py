"""Burner wallet key material."""

from launchproxy.wallets.keys import BurnerKeyFactory, EphemeralWallet

__all__ = ["BurnerKeyFactory", "EphemeralWallet"]
