"""
FAIRSPIN — Engine Errors

InsufficientFunds   — bet exceeds credit; nothing was mutated
SpinInProgress      — spin() called while another spin is resolving
ConfigurationError  — bad payout table, rates or bet limits (fatal at startup)
"""


class SlotEngineError(Exception):
    """Base class for all engine errors."""


class InsufficientFunds(SlotEngineError, ValueError):
    def __init__(self, credit, bet):
        self.credit = credit
        self.bet = bet
        super().__init__(f"Insufficient credit: {credit:.2f} < {bet:.2f}")


class SpinInProgress(SlotEngineError, RuntimeError):
    def __init__(self):
        super().__init__("A spin is already in progress")


class ConfigurationError(SlotEngineError, ValueError):
    pass
