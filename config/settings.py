"""
FairSpin - Configuration & Logging

All game constants come from the environment (optionally a .env file):

  INITIAL_CREDIT=100  MIN_BET=0.5  MAX_BET=10  BET_STEP=0.5
  HOUSE_EDGE=0.05  JACKPOT_CONTRIBUTION_RATE=0.05  INITIAL_JACKPOT=50
  CURRENCY=Pi  REVEAL_MS=1500  DB_PATH=fairspin.db  PAYTABLE_PATH=
  LOG_LEVEL=INFO
"""

import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent


def _decimal_env(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation:
        from fairspin.errors import ConfigurationError
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


class SlotConfig:

    # --- Ledger ---
    INITIAL_CREDIT = _decimal_env("INITIAL_CREDIT", "100")
    MIN_BET        = _decimal_env("MIN_BET", "0.5")
    MAX_BET        = _decimal_env("MAX_BET", "10")
    BET_STEP       = _decimal_env("BET_STEP", "0.5")       # +/- buttons

    # --- Pools ---
    # Each bet: HOUSE_EDGE to the house, JACKPOT_CONTRIBUTION_RATE to the pool,
    # the remainder (0.9 by default) is the effective bet for symbol payouts.
    HOUSE_EDGE                = _decimal_env("HOUSE_EDGE", "0.05")
    JACKPOT_CONTRIBUTION_RATE = _decimal_env("JACKPOT_CONTRIBUTION_RATE", "0.05")
    INITIAL_JACKPOT           = _decimal_env("INITIAL_JACKPOT", "50")

    # --- Presentation ---
    CURRENCY  = os.getenv("CURRENCY", "Pi")
    REVEAL_MS = int(os.getenv("REVEAL_MS", "1500"))

    # --- Storage ---
    DB_PATH       = os.getenv("DB_PATH", "fairspin.db")
    PAYTABLE_PATH = os.getenv("PAYTABLE_PATH", "")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def rules(cls):
        """LedgerRules built from the current constants (validated)."""
        from fairspin.ledger import LedgerRules
        return LedgerRules(
            initial_credit=cls.INITIAL_CREDIT,
            min_bet=cls.MIN_BET,
            max_bet=cls.MAX_BET,
            bet_step=cls.BET_STEP,
            house_edge=cls.HOUSE_EDGE,
            jackpot_contribution_rate=cls.JACKPOT_CONTRIBUTION_RATE,
            initial_jackpot=cls.INITIAL_JACKPOT,
        )

    @classmethod
    def payout_table(cls):
        """Catalog from PAYTABLE_PATH, or the built-in nine-symbol strip."""
        from fairspin.paytable import default_payout_table, load_payout_table
        if cls.PAYTABLE_PATH:
            return load_payout_table(cls.PAYTABLE_PATH)
        return default_payout_table()


def setup_logging(level: str = None) -> logging.Logger:
    """Attach one console handler to the fairspin logger tree (idempotent)."""
    logger = logging.getLogger("fairspin")
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", datefmt="%H:%M:%S"))
        logger.addHandler(_h)
    logger.setLevel((level or SlotConfig.LOG_LEVEL).upper())
    return logger
