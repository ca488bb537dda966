"""
FAIRSPIN — Base RMG Engine

Abstract base for game math models: theoretical house edge plus a
Monte Carlo simulation that reports measured RTP, hit rate and jackpot rate.
"""

import logging
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

logger = logging.getLogger("fairspin.sim")


@dataclass
class SimResult:
    """Simulation results for an RMG game."""
    game_type: str
    rounds: int
    house_edge_theoretical: float
    house_edge_measured: float
    avg_multiplier: float
    max_multiplier_hit: float
    hit_rate: float  # % of rounds that returned > 0
    jackpot_hits: int
    total_wagered: float
    total_returned: float
    rtp: float  # 1 - house_edge_measured
    confidence_95: tuple = (0.0, 0.0)
    distribution: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "game_type": self.game_type,
            "rounds": self.rounds,
            "house_edge_theoretical": round(self.house_edge_theoretical, 6),
            "house_edge_measured": round(self.house_edge_measured, 6),
            "rtp": round(self.rtp, 4),
            "avg_multiplier": round(self.avg_multiplier, 4),
            "max_multiplier_hit": round(self.max_multiplier_hit, 2),
            "hit_rate": round(self.hit_rate, 4),
            "jackpot_hits": self.jackpot_hits,
            "total_wagered": round(self.total_wagered, 2),
            "total_returned": round(self.total_returned, 2),
            "confidence_95": [round(x, 6) for x in self.confidence_95],
            "distribution": self.distribution,
        }


def _bucket(mult: float) -> str:
    if mult == 0:
        return "0x"
    if mult < 2:
        return "0-2x"
    if mult < 5:
        return "2-5x"
    if mult < 10:
        return "5-10x"
    return "10x+"


class BaseRMGEngine(ABC):
    """Abstract base for RMG game math models."""

    game_type: str = "base"
    display_name: str = "Base Game"

    @abstractmethod
    def generate_config(self, **kwargs) -> dict:
        """Generate a game configuration dict from parameters."""
        ...

    @abstractmethod
    def compute_house_edge(self, config: dict) -> float:
        """Compute the theoretical house edge for a config."""
        ...

    @abstractmethod
    def simulate_round(self, config: dict, rng: random.Random) -> tuple[float, bool]:
        """Simulate one round. Returns (multiplier of the bet, jackpot line hit)."""
        ...

    def simulate(self, config: dict, rounds: int = 100_000, seed: int = 42) -> SimResult:
        """Run a Monte Carlo simulation."""
        if rounds <= 0:
            raise ValueError("rounds must be positive")
        rng = random.Random(seed)

        total_returned = 0.0
        sum_sq = 0.0
        wins = 0
        jackpots = 0
        max_mult = 0.0
        buckets = {}

        for _ in range(rounds):
            mult, jackpot = self.simulate_round(config, rng)
            total_returned += mult
            sum_sq += mult * mult
            if mult > 0:
                wins += 1
            if jackpot:
                jackpots += 1
            max_mult = max(max_mult, mult)
            b = _bucket(mult)
            buckets[b] = buckets.get(b, 0) + 1

        total_wagered = float(rounds)
        rtp = total_returned / total_wagered
        he_measured = 1 - rtp

        # 95% confidence interval for house edge
        variance = max(sum_sq / rounds - rtp * rtp, 0.0)
        std_err = math.sqrt(variance / rounds)
        ci = (he_measured - 1.96 * std_err, he_measured + 1.96 * std_err)
        logger.info(f"Simulated {rounds:,} {self.game_type} rounds: rtp={rtp:.4f} "
                    f"hit_rate={wins / rounds:.4f} jackpots={jackpots}")

        return SimResult(
            game_type=self.game_type,
            rounds=rounds,
            house_edge_theoretical=self.compute_house_edge(config),
            house_edge_measured=he_measured,
            avg_multiplier=rtp,
            max_multiplier_hit=max_mult,
            hit_rate=wins / rounds,
            jackpot_hits=jackpots,
            total_wagered=total_wagered,
            total_returned=total_returned,
            rtp=rtp,
            confidence_95=ci,
            distribution={k: round(v / rounds, 4) for k, v in sorted(buckets.items())},
        )

