"""
FAIRSPIN — Wallet Bridge

Hook for an external wallet / payment capability. The engine settles the
ledger first and only then hands the finished SpinResult to the wallet, so
the numeric outcome never depends on the wallet. A failing wallet is logged;
the ledger is not rolled back.

Usage:
    from fairspin.wallet_bridge import CallbackWallet
    engine = SlotEngine(wallet=CallbackWallet(lambda r: payments.post(r.to_dict())))
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger("fairspin.wallet")


class WalletBridge:
    """Base wallet: receives every settled spin."""

    name = "base"

    def settle(self, result) -> None:
        raise NotImplementedError


class NullWallet(WalletBridge):
    """Play-money mode — nothing leaves the engine."""

    name = "null"

    def settle(self, result) -> None:
        return None


class CallbackWallet(WalletBridge):
    """Forwards each settled spin to a callable."""

    name = "callback"

    def __init__(self, callback: Callable):
        self.callback = callback
        self.settled = 0

    def settle(self, result) -> None:
        self.callback(result)
        self.settled += 1


def notify_wallet(wallet: WalletBridge, result) -> bool:
    """Deliver a settled spin. Returns False if the wallet raised."""
    try:
        wallet.settle(result)
        return True
    except Exception as e:
        # Settlement is external; the ledger result stands.
        logger.warning(f"Wallet '{wallet.name}' settlement failed: {e}")
        return False
