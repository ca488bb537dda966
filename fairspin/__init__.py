"""
FAIRSPIN — Provably Fair Slot Engine

Seed → SHA-256 reel derivation → middle-line evaluation → ledger with a
once-per-UTC-day jackpot.

Usage:
    from fairspin import SlotEngine
    engine = SlotEngine()
    result = engine.spin()
"""

from fairspin.engine import EngineSnapshot, SlotEngine, SpinResult
from fairspin.errors import (
    ConfigurationError, InsufficientFunds, SlotEngineError, SpinInProgress,
)
from fairspin.evaluator import OutcomeKind, WinOutcome, evaluate
from fairspin.ledger import JackpotState, Ledger, LedgerRules
from fairspin.paytable import PayoutTable, Symbol, default_payout_table
from fairspin.rng import SpinGrid, derive_grid, new_seed, verify_grid

__all__ = [
    "SlotEngine", "SpinResult", "EngineSnapshot",
    "SlotEngineError", "InsufficientFunds", "SpinInProgress", "ConfigurationError",
    "OutcomeKind", "WinOutcome", "evaluate",
    "JackpotState", "Ledger", "LedgerRules",
    "PayoutTable", "Symbol", "default_payout_table",
    "SpinGrid", "derive_grid", "new_seed", "verify_grid",
]
