"""
FAIRSPIN — Payout Table

Static symbol catalog shared read-only by the outcome deriver and the win
evaluator. Grid cells hold positions in this table, so the table must not
change during a session (it would invalidate verification of past spins).

Usage:
    from fairspin.paytable import default_payout_table, load_payout_table
    table = default_payout_table()
    table = load_payout_table("paytable.json")
    json_str = table.model_dump_json(indent=2)
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fairspin.errors import ConfigurationError


class Symbol(BaseModel):
    """One catalog entry. Logic compares `id`, never `name`."""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    is_jackpot: bool = False
    multiplier: Decimal = Field(Decimal("0"), ge=0)   # ignored when is_jackpot


class PayoutTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbols: tuple[Symbol, ...]

    @field_validator("symbols")
    @classmethod
    def check_catalog(cls, v):
        if not v:
            raise ValueError("payout table is empty")
        ids = [s.id for s in v]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate symbol ids: {ids}")
        return v

    def __len__(self) -> int:
        return len(self.symbols)

    def symbol_at(self, index: int) -> Symbol:
        """Resolve a grid cell (table position) to its Symbol."""
        if not 0 <= index < len(self.symbols):
            raise ConfigurationError(
                f"Symbol index {index} outside payout table of size {len(self.symbols)}"
            )
        return self.symbols[index]

    def by_id(self, symbol_id: int) -> Symbol:
        for s in self.symbols:
            if s.id == symbol_id:
                return s
        raise KeyError(symbol_id)

    def max_multiplier(self) -> Decimal:
        """Highest multiplier among non-jackpot symbols (0 if none pay)."""
        return max(
            (s.multiplier for s in self.symbols if not s.is_jackpot),
            default=Decimal("0"),
        )

    def jackpot_ids(self) -> list[int]:
        return [s.id for s in self.symbols if s.is_jackpot]


# Original nine-position reel strip. Duplicate names are intentional:
# several strip positions share artwork but keep their own id.
DEFAULT_SYMBOLS = [
    {"id": 0, "name": "RGCV", "is_jackpot": False, "multiplier": "5"},
    {"id": 1, "name": "π", "is_jackpot": True, "multiplier": "2"},
    {"id": 2, "name": "3.14", "is_jackpot": False, "multiplier": "2"},
    {"id": 3, "name": "GCV", "is_jackpot": False, "multiplier": "10"},
    {"id": 4, "name": "Jackpot", "is_jackpot": True, "multiplier": "0"},
    {"id": 5, "name": "3.14", "is_jackpot": False, "multiplier": "2"},
    {"id": 6, "name": "π", "is_jackpot": True, "multiplier": "2"},
    {"id": 7, "name": "Pi", "is_jackpot": False, "multiplier": "3"},
    {"id": 8, "name": "π", "is_jackpot": True, "multiplier": "2"},
]


def build_payout_table(symbols: list) -> PayoutTable:
    """Build a table from dicts or Symbols; any schema problem is a ConfigurationError."""
    try:
        return PayoutTable(symbols=tuple(
            s if isinstance(s, Symbol) else Symbol(**s) for s in symbols
        ))
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"Invalid payout table: {e}") from e


def default_payout_table() -> PayoutTable:
    return build_payout_table(DEFAULT_SYMBOLS)


def load_payout_table(path) -> PayoutTable:
    """Load a catalog from JSON: either a list of symbols or {"symbols": [...]}."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read payout table {p}: {e}") from e
    if isinstance(data, dict):
        data = data.get("symbols", [])
    if not isinstance(data, list):
        raise ConfigurationError(f"Payout table {p} must be a list of symbols")
    return build_payout_table(data)
