"""
FAIRSPIN — Spin Engine

UI-agnostic slot engine. Sequences one spin end to end:

  1. Re-arm the daily jackpot if the UTC date changed
  2. Check funds (InsufficientFunds → nothing mutated)
  3. Derive the 3×3 grid from the current seed + ms nonce
  4. Evaluate the middle line against the payout table
  5. Settle the ledger in one step (bet, jackpot contribution, payout)
  6. Rotate the seed, record the round, notify the wallet

The returned SpinResult is final before any reveal animation starts;
`reveal_ms` is only a hint for the presentation layer.

Usage:
    from fairspin.engine import SlotEngine
    engine = SlotEngine()
    print(engine.next_seed_hash)        # commitment for the upcoming spin
    result = engine.spin()
    print(result.message, result.credit_after)
    assert engine.verify(result)
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from config.settings import SlotConfig
from fairspin.errors import InsufficientFunds, SpinInProgress
from fairspin.evaluator import OutcomeKind, WinOutcome, evaluate
from fairspin.ledger import JackpotState, Ledger, LedgerRules
from fairspin.paytable import PayoutTable
from fairspin.rng import (
    SpinGrid, current_nonce, derive_grid, new_seed, seed_commitment, verify_grid,
)
from fairspin.wallet_bridge import NullWallet, WalletBridge, notify_wallet

logger = logging.getLogger("fairspin.engine")

MSG_TRY_AGAIN = "Try Again!"
MSG_JACKPOT_UNAVAILABLE = "Jackpot already won today! Try again tomorrow."
MSG_INSUFFICIENT = "Insufficient credit. Please add more credit to continue playing."


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ═══════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpinResult:
    grid: SpinGrid
    outcome: WinOutcome
    bet: Decimal
    payout: Decimal
    credit_after: Decimal
    jackpot_before: Decimal
    jackpot_after: Decimal
    jackpot_state: JackpotState
    next_seed_hash: str
    message: str
    reveal_ms: int = 0
    round_id: Optional[int] = None

    @property
    def evaluation_line(self) -> tuple:
        return self.grid.evaluation_line

    @property
    def seed(self) -> str:
        return self.grid.seed

    @property
    def nonce(self) -> int:
        return self.grid.nonce

    def to_dict(self) -> dict:
        return {
            "round_id": self.round_id,
            "grid": self.grid.as_lists(),
            "evaluation_line": list(self.evaluation_line),
            "outcome": self.outcome.to_dict(),
            "bet": str(self.bet),
            "payout": str(self.payout),
            "credit_after": str(self.credit_after),
            "jackpot_before": str(self.jackpot_before),
            "jackpot_after": str(self.jackpot_after),
            "jackpot_state": self.jackpot_state.value,
            "seed": self.seed,
            "nonce": self.nonce,
            "combined_hash": self.grid.combined_hash,
            "next_seed_hash": self.next_seed_hash,
            "message": self.message,
            "reveal_ms": self.reveal_ms,
        }


@dataclass(frozen=True)
class EngineSnapshot:
    credit: Decimal
    bet: Decimal
    jackpot_amount: Decimal
    is_spinning: bool
    last_message: str
    jackpot_state: JackpotState


# ═══════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════

class SlotEngine:
    """Single-player provably-fair slot engine."""

    def __init__(
        self,
        payout_table: Optional[PayoutTable] = None,
        rules: Optional[LedgerRules] = None,
        ledger: Optional[Ledger] = None,
        store=None,
        user_id: str = "local",
        wallet: Optional[WalletBridge] = None,
        today_fn: Callable[[], date] = utc_today,
        nonce_fn: Callable[[], int] = current_nonce,
        seed_fn: Callable[[], str] = new_seed,
        reveal_ms: Optional[int] = None,
        currency: Optional[str] = None,
    ):
        self.payout_table = payout_table or SlotConfig.payout_table()
        if ledger is None:
            ledger = Ledger(rules or SlotConfig.rules())
        self.ledger = ledger
        self.store = store
        self.user_id = user_id
        self.wallet = wallet or NullWallet()
        self.reveal_ms = SlotConfig.REVEAL_MS if reveal_ms is None else reveal_ms
        self.currency = currency or SlotConfig.CURRENCY
        self._today = today_fn
        self._nonce = nonce_fn
        self._new_seed = seed_fn
        self._lock = threading.Lock()
        self.last_message = ""

        if self.store is not None:
            self.ledger.last_jackpot_win_date = self.store.load_last_win_date(user_id)
        self.ledger.refresh_day(self._today())

        self._seed = self._new_seed()
        logger.info(f"Engine ready: user={user_id} symbols={len(self.payout_table)} "
                    f"credit={self.ledger.credit} jackpot={self.ledger.jackpot_amount}")

    # ─── Read-only state ──────────────────────────────────────

    @property
    def is_spinning(self) -> bool:
        return self._lock.locked()

    @property
    def next_seed_hash(self) -> str:
        """Commitment of the seed the next spin will use."""
        return seed_commitment(self._seed)

    def jackpot_state(self) -> JackpotState:
        return self.ledger.jackpot_state(self._today())

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            credit=self.ledger.credit,
            bet=self.ledger.bet,
            jackpot_amount=self.ledger.jackpot_amount,
            is_spinning=self.is_spinning,
            last_message=self.last_message,
            jackpot_state=self.jackpot_state(),
        )

    # ─── Spin ─────────────────────────────────────────────────

    def spin(self) -> SpinResult:
        if not self._lock.acquire(blocking=False):
            raise SpinInProgress()
        try:
            return self._resolve_spin()
        finally:
            self._lock.release()

    def _resolve_spin(self) -> SpinResult:
        today = self._today()
        self.ledger.refresh_day(today)

        try:
            self.ledger.ensure_funds()
        except InsufficientFunds:
            self.last_message = MSG_INSUFFICIENT
            raise

        grid = derive_grid(self._seed, len(self.payout_table), nonce=self._nonce())
        outcome = evaluate(grid, self.payout_table)

        # Persist the claim before paying so a restart cannot re-arm a paid day
        if (outcome.kind == OutcomeKind.JACKPOT_WIN and self.store is not None
                and self.ledger.jackpot_state(today) == JackpotState.ARMED):
            self.store.save_last_win_date(self.user_id, today)

        settlement = self.ledger.apply_spin(outcome, today)

        self._seed = self._new_seed()
        message = self._message_for(settlement.outcome, settlement.payout)
        self.last_message = message

        result = SpinResult(
            grid=grid,
            outcome=settlement.outcome,
            bet=settlement.bet,
            payout=settlement.payout,
            credit_after=settlement.credit_after,
            jackpot_before=settlement.jackpot_before,
            jackpot_after=settlement.jackpot_after,
            jackpot_state=settlement.jackpot_state,
            next_seed_hash=self.next_seed_hash,
            message=message,
            reveal_ms=self.reveal_ms,
        )

        if self.store is not None:
            try:
                round_id = self.store.record_round(self.user_id, result)
                result = replace(result, round_id=round_id)
            except sqlite3.Error as e:
                # The spin is already settled; only the audit row is lost.
                logger.warning(f"Audit record failed for nonce={grid.nonce}: {e}")

        logger.info(f"Spin nonce={grid.nonce} line={grid.evaluation_line} "
                    f"outcome={settlement.outcome.kind.value} bet={settlement.bet} "
                    f"payout={settlement.payout} credit={settlement.credit_after}")

        notify_wallet(self.wallet, result)
        return result

    def _message_for(self, outcome: WinOutcome, payout: Decimal) -> str:
        if outcome.kind == OutcomeKind.JACKPOT_WIN:
            return f"JACKPOT! +{payout:.2f} {self.currency}"
        if outcome.kind == OutcomeKind.SYMBOL_WIN:
            return f"Winner! +{payout:.2f} {self.currency}"
        if outcome.kind == OutcomeKind.JACKPOT_UNAVAILABLE:
            return MSG_JACKPOT_UNAVAILABLE
        return MSG_TRY_AGAIN

    # ─── Bet controls (no-ops while spinning) ─────────────────

    def adjust_bet(self, delta) -> Decimal:
        if self.is_spinning:
            logger.debug("Bet change ignored: spin in progress")
            return self.ledger.bet
        return self.ledger.adjust_bet(delta)

    def increase_bet(self) -> Decimal:
        return self.adjust_bet(self.ledger.rules.bet_step)

    def decrease_bet(self) -> Decimal:
        return self.adjust_bet(-self.ledger.rules.bet_step)

    def set_min_bet(self) -> Decimal:
        if self.is_spinning:
            return self.ledger.bet
        return self.ledger.set_min_bet()

    def set_max_bet(self) -> Decimal:
        if self.is_spinning:
            return self.ledger.bet
        return self.ledger.set_max_bet()

    # ─── Verification ─────────────────────────────────────────

    def verify(self, result: SpinResult) -> bool:
        """Re-derive a disclosed spin and check the grid and the outcome kind."""
        if not verify_grid(result.seed, result.nonce, len(self.payout_table),
                           result.grid.cells):
            return False
        kind = evaluate(result.grid, self.payout_table).kind
        if kind == OutcomeKind.JACKPOT_WIN:
            return result.outcome.kind in (OutcomeKind.JACKPOT_WIN,
                                           OutcomeKind.JACKPOT_UNAVAILABLE)
        return kind == result.outcome.kind

    def verify_round(self, round_id: int) -> dict:
        """Verify a stored round from the audit trail."""
        if self.store is None:
            raise ValueError("No store configured for this engine")
        rnd = self.store.get_round(round_id)
        if not rnd:
            raise ValueError(f"Round not found: {round_id}")
        ok = verify_grid(rnd["seed"], rnd["nonce"], rnd["catalog_size"], rnd["grid"])
        return {
            "verified": ok,
            "round_id": round_id,
            "seed": rnd["seed"],
            "seed_hash": seed_commitment(rnd["seed"]),
            "nonce": rnd["nonce"],
            "grid": rnd["grid"],
            "outcome": rnd["outcome"],
            "payout": rnd["payout"],
        }


