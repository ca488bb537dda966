"""Three-reel middle-line slot — symbol wins pay bet × effective rate × multiplier."""
from decimal import Decimal

from fairspin.evaluator import OutcomeKind, evaluate
from fairspin.paytable import PayoutTable, build_payout_table, default_payout_table
from fairspin.rng import derive_grid
from sim_engine.rmg.base import BaseRMGEngine


class SlotsEngine(BaseRMGEngine):
    game_type = "slots"
    display_name = "Pi Slots"

    def generate_config(self, payout_table: PayoutTable = None, house_edge: float = 0.05,
                        jackpot_rate: float = 0.05, reels: int = 3, **kw) -> dict:
        table = payout_table or default_payout_table()
        return {
            "game_type": "slots",
            "symbols": [s.model_dump(mode="json") for s in table.symbols],
            "house_edge": house_edge,
            "jackpot_rate": jackpot_rate,
            "effective_bet_rate": 1.0 - house_edge - jackpot_rate,
            "reels": reels,
        }

    def _table(self, config: dict) -> PayoutTable:
        table = config.get("_table")
        if table is None:
            table = build_payout_table(config["symbols"])
            config["_table"] = table
        return table

    def compute_house_edge(self, config: dict) -> float:
        """Edge on symbol wins only; the jackpot is funded by its own pool."""
        table = self._table(config)
        n = len(table)
        reels = config.get("reels", 3)
        p_line = (1.0 / n) ** reels          # one specific index on every reel
        rtp = sum(
            p_line * float(s.multiplier) * config["effective_bet_rate"]
            for s in table.symbols if not s.is_jackpot
        )
        return 1.0 - rtp

    def simulate_round(self, config: dict, rng) -> tuple[float, bool]:
        table = self._table(config)
        seed = f"{rng.getrandbits(128):032x}"
        nonce = rng.getrandbits(40)
        grid = derive_grid(seed, len(table), reels=config.get("reels", 3), nonce=nonce)
        outcome = evaluate(grid, table)
        if outcome.kind == OutcomeKind.SYMBOL_WIN:
            rate = Decimal(str(config["effective_bet_rate"]))
            return float(outcome.multiplier * rate), False
        return 0.0, outcome.kind == OutcomeKind.JACKPOT_WIN
