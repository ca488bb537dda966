"""
FAIRSPIN — RMG Math Engine

Math models for the slot engine's payout tables.
Each game type exposes: compute_house_edge(), simulate(), and generate_config().

Usage:
    from sim_engine.rmg import get_game_engine
    engine = get_game_engine("slots")
    config = engine.generate_config(house_edge=0.05)
    results = engine.simulate(config, rounds=100_000)
"""

from sim_engine.rmg.slots import SlotsEngine

GAME_ENGINES = {
    "slots": SlotsEngine,
}

GAME_TYPES = list(GAME_ENGINES.keys())


def get_game_engine(game_type: str):
    """Get the math engine for a game type."""
    cls = GAME_ENGINES.get(game_type.lower())
    if cls is None:
        raise ValueError(f"Unknown game type: {game_type}. Available: {GAME_TYPES}")
    return cls()
