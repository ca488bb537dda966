"""
FAIRSPIN — Ledger & Daily Jackpot State Machine

Sole owner of monetary state: credit, bet, jackpot pool and the date of the
last jackpot claim.

Jackpot lifecycle:
    ARMED   ──(jackpot line paid)──▶ CLAIMED
    CLAIMED ──(UTC date changed)───▶ ARMED   (pool restored to INITIAL_JACKPOT)

Every spin is settled by apply_spin(): all deltas are computed first and
assigned together, so a half-applied spin is never observable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from fairspin.errors import ConfigurationError, InsufficientFunds
from fairspin.evaluator import OutcomeKind, WinOutcome

logger = logging.getLogger("fairspin.ledger")


def _amount(value) -> Decimal:
    """Finite Decimal from an int/float/str/Decimal bet amount."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Bet amount must be a number, got {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Bet amount must be finite, got {value!r}")
    return amount


class JackpotState(str, Enum):
    ARMED   = "armed"
    CLAIMED = "claimed"


@dataclass(frozen=True)
class LedgerRules:
    initial_credit: Decimal = Decimal("100")
    min_bet: Decimal = Decimal("0.5")
    max_bet: Decimal = Decimal("10")
    bet_step: Decimal = Decimal("0.5")
    house_edge: Decimal = Decimal("0.05")
    jackpot_contribution_rate: Decimal = Decimal("0.05")
    initial_jackpot: Decimal = Decimal("50")

    def __post_init__(self):
        if self.min_bet <= 0 or self.max_bet < self.min_bet:
            raise ConfigurationError(
                f"Bet limits must satisfy 0 < MIN_BET <= MAX_BET (got {self.min_bet}, {self.max_bet})"
            )
        if self.initial_credit < 0 or self.initial_jackpot < 0:
            raise ConfigurationError("INITIAL_CREDIT and INITIAL_JACKPOT must be non-negative")
        if self.house_edge < 0 or self.jackpot_contribution_rate < 0:
            raise ConfigurationError("HOUSE_EDGE and JACKPOT_CONTRIBUTION_RATE must be non-negative")
        if self.effective_bet_rate < 0:
            raise ConfigurationError(
                f"HOUSE_EDGE + JACKPOT_CONTRIBUTION_RATE exceeds 1 "
                f"({self.house_edge} + {self.jackpot_contribution_rate})"
            )

    @property
    def effective_bet_rate(self) -> Decimal:
        """Share of the bet left after house edge and jackpot contribution."""
        return Decimal("1") - self.house_edge - self.jackpot_contribution_rate

    def clamp_bet(self, amount) -> Decimal:
        return max(self.min_bet, min(self.max_bet, _amount(amount)))


@dataclass(frozen=True)
class Settlement:
    """Numeric result of one spin, fixed before any presentation."""
    outcome: WinOutcome
    bet: Decimal
    contribution: Decimal
    payout: Decimal
    credit_before: Decimal
    credit_after: Decimal
    jackpot_before: Decimal      # pool after contribution, before any payout
    jackpot_after: Decimal
    jackpot_state: JackpotState


@dataclass
class Ledger:
    rules: LedgerRules = field(default_factory=LedgerRules)
    credit: Optional[Decimal] = None
    bet: Optional[Decimal] = None
    jackpot_amount: Optional[Decimal] = None
    last_jackpot_win_date: Optional[date] = None

    def __post_init__(self):
        if self.credit is None:
            self.credit = self.rules.initial_credit
        if self.bet is None:
            self.bet = self.rules.min_bet
        if self.jackpot_amount is None:
            self.jackpot_amount = self.rules.initial_jackpot
        self.bet = self.rules.clamp_bet(self.bet)

    # ─── Jackpot lifecycle ────────────────────────────────────

    def jackpot_state(self, today: date) -> JackpotState:
        if self.last_jackpot_win_date is not None and self.last_jackpot_win_date == today:
            return JackpotState.CLAIMED
        return JackpotState.ARMED

    def refresh_day(self, today: date) -> bool:
        """CLAIMED → ARMED once the UTC date moves past the stored claim date.

        Returns True when a reset happened.
        """
        if self.last_jackpot_win_date is None or self.last_jackpot_win_date == today:
            return False
        logger.info(f"Jackpot re-armed for {today} (last claim {self.last_jackpot_win_date})")
        self.last_jackpot_win_date = None
        self.jackpot_amount = self.rules.initial_jackpot
        return True

    # ─── Spin settlement ──────────────────────────────────────

    def ensure_funds(self):
        if self.credit < self.bet:
            raise InsufficientFunds(self.credit, self.bet)

    def apply_spin(self, outcome: WinOutcome, today: date) -> Settlement:
        """Deduct, contribute and pay for one evaluated spin in a single step."""
        self.ensure_funds()

        bet = self.bet
        credit_before = self.credit
        contribution = bet * self.rules.jackpot_contribution_rate
        pool = self.jackpot_amount + contribution
        state = self.jackpot_state(today)

        payout = Decimal("0")
        pool_after = pool
        claim_date = self.last_jackpot_win_date

        if outcome.kind == OutcomeKind.SYMBOL_WIN:
            payout = bet * self.rules.effective_bet_rate * outcome.multiplier
        elif outcome.kind == OutcomeKind.JACKPOT_WIN:
            if state == JackpotState.ARMED:
                payout = pool
                pool_after = self.rules.initial_jackpot
                claim_date = today
                state = JackpotState.CLAIMED
            else:
                outcome = WinOutcome(OutcomeKind.JACKPOT_UNAVAILABLE, outcome.symbol_id)

        credit_after = credit_before - bet + payout

        # Commit
        self.credit = credit_after
        self.jackpot_amount = pool_after
        self.last_jackpot_win_date = claim_date

        if outcome.kind == OutcomeKind.JACKPOT_WIN:
            logger.info(f"Jackpot paid: {payout} (date {today})")

        return Settlement(
            outcome=outcome,
            bet=bet,
            contribution=contribution,
            payout=payout,
            credit_before=credit_before,
            credit_after=credit_after,
            jackpot_before=pool,
            jackpot_after=pool_after,
            jackpot_state=state,
        )

    # ─── Bet adjustment ───────────────────────────────────────

    def adjust_bet(self, delta) -> Decimal:
        self.bet = self.rules.clamp_bet(self.bet + _amount(delta))
        return self.bet

    def set_min_bet(self) -> Decimal:
        self.bet = self.rules.min_bet
        return self.bet

    def set_max_bet(self) -> Decimal:
        self.bet = self.rules.max_bet
        return self.bet

    def to_dict(self, today: Optional[date] = None) -> dict:
        d = {
            "credit": str(self.credit),
            "bet": str(self.bet),
            "jackpot_amount": str(self.jackpot_amount),
            "last_jackpot_win_date": (self.last_jackpot_win_date.isoformat()
                                      if self.last_jackpot_win_date else None),
        }
        if today is not None:
            d["jackpot_state"] = self.jackpot_state(today).value
        return d
