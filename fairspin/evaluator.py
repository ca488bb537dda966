"""
FAIRSPIN — Win Evaluator

Classifies the evaluation line of a derived grid. Pure: it never reads or
writes the ledger; payout sizing happens in fairspin.ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from fairspin.paytable import PayoutTable
from fairspin.rng import SpinGrid


class OutcomeKind(str, Enum):
    NO_WIN              = "no_win"
    SYMBOL_WIN          = "symbol_win"
    JACKPOT_WIN         = "jackpot_win"
    JACKPOT_UNAVAILABLE = "jackpot_unavailable"   # set by the ledger, never here


@dataclass(frozen=True)
class WinOutcome:
    kind: OutcomeKind
    symbol_id: Optional[int] = None
    multiplier: Decimal = Decimal("0")

    @classmethod
    def no_win(cls, symbol_id: Optional[int] = None) -> "WinOutcome":
        return cls(OutcomeKind.NO_WIN, symbol_id)

    @classmethod
    def symbol_win(cls, symbol_id: int, multiplier: Decimal) -> "WinOutcome":
        return cls(OutcomeKind.SYMBOL_WIN, symbol_id, Decimal(multiplier))

    @classmethod
    def jackpot_win(cls, symbol_id: int) -> "WinOutcome":
        return cls(OutcomeKind.JACKPOT_WIN, symbol_id)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "symbol_id": self.symbol_id,
            "multiplier": str(self.multiplier),
        }


def evaluate(grid: SpinGrid, payout_table: PayoutTable) -> WinOutcome:
    """Full-match rule: every reel's middle symbol must be the same index."""
    line = grid.evaluation_line
    if len(set(line)) != 1:
        return WinOutcome.no_win()

    symbol = payout_table.symbol_at(line[0])
    if symbol.is_jackpot:
        return WinOutcome.jackpot_win(symbol.id)
    if symbol.multiplier > 0:
        return WinOutcome.symbol_win(symbol.id, symbol.multiplier)
    # Matching line on a zero-multiplier symbol pays nothing
    return WinOutcome.no_win(symbol.id)
