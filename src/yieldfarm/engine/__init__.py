"""Protocol engines."""

from .accumulator import SCALE, YieldAccumulator
from .bonus import BonusEngine, BonusQuote, compute_bonus, quote_bonus
from .clock import ManualClock
from .cooldown import CooldownQueue
from .emission import EmissionScheduler
from .farm import DepositResult, Farm, HarvestResult, WithdrawResult
from .ledger import ReserveLedger
from .protocol import Protocol
from .registry import FarmRegistry
from .results import CallResult, Outcome
from .revenue import Distribution, RevenueDistributor
from .store import Store
from .token import Token

__all__ = [
    "SCALE",
    "BonusEngine",
    "BonusQuote",
    "CallResult",
    "CooldownQueue",
    "DepositResult",
    "Distribution",
    "EmissionScheduler",
    "Farm",
    "FarmRegistry",
    "HarvestResult",
    "ManualClock",
    "Outcome",
    "Protocol",
    "ReserveLedger",
    "RevenueDistributor",
    "Store",
    "Token",
    "WithdrawResult",
    "YieldAccumulator",
    "compute_bonus",
    "quote_bonus",
]
