"""Owned state store: every table the core reads or writes.

Tables are keyed the way the protocol addresses them:

- ``positions``, ``yield_debt``, ``bonus_records``: ``(farm_id, lp)``
- ``acc_yield_per_share``, ``total_liquidity``, ``stranded_yield``: ``farm_id``
- ``cooldown``: flat list, unordered
- ``balances``/``allowances``/``total_supply``: per token address
- ``accrual_marks``: per yield-bearing collaborator address

``atomic()`` gives all-or-nothing semantics: a snapshot is taken on entry
and restored if the block raises. Blocks nest, so an inner block acts as a
savepoint whose failure does not disturb the outer one.
"""

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..events import EventLog

Key = Tuple[str, str]


@dataclass
class Position:
    """A liquidity provider's principal position on one farm."""
    principal: int = 0
    weighted_maturity: int = 0  # deposit-size-weighted unlock timestamp
    bonus_retained: int = 0  # subsidy tokens held after a non-reversed bonus
    last_update: int = 0


@dataclass
class BonusRecord:
    """Outstanding deposit bonus. Leaves the pinned state exactly once."""
    bonus_paid: int = 0
    pinned: bool = False
    deposit_time: int = 0


@dataclass
class CooldownRecord:
    amount: int
    release_time: int


@dataclass
class FarmRegistryEntry:
    """Registered farm. Splits are fixed at creation."""
    farm_id: str
    address: str
    owner: str
    asset: str
    verifier_split_pct: int
    yoda_split_pct: int

    @property
    def owner_split_pct(self) -> int:
        return 100 - self.verifier_split_pct - self.yoda_split_pct


@dataclass
class Benchmark:
    """Last benchmark yield pushed by the consensus oracle."""
    yield_pct: int
    round_id: int
    score: int
    updated_at: int


@dataclass
class ReserveState:
    """Independent counters over the ledger holder's token balance."""
    protocol_reserves: int = 0
    emission_reserve: int = 0


@dataclass
class EmissionState:
    total_emitted: int = 0
    emission_per_block: int = 0
    last_halving_time: int = 0
    last_emission_time: int = 0


class Store:
    """In-memory repository for a single protocol instance."""

    _TABLES = (
        'balances', 'allowances', 'total_supply',
        'positions', 'yield_debt', 'acc_yield_per_share', 'total_liquidity', 'stranded_yield',
        'bonus_records', 'cooldown',
        'farms', 'verifiers', 'yodas', 'root_farm_id', 'benchmarks',
        'reserves', 'emission', 'dust', 'accrual_marks',
    )

    def __init__(self, events: Optional[EventLog] = None):
        self.events = events if events is not None else EventLog()

        self.balances: Dict[str, Dict[str, int]] = {}
        self.allowances: Dict[str, Dict[Key, int]] = {}
        self.total_supply: Dict[str, int] = {}

        self.positions: Dict[Key, Position] = {}
        self.yield_debt: Dict[Key, int] = {}
        self.acc_yield_per_share: Dict[str, int] = {}
        self.total_liquidity: Dict[str, int] = {}
        self.stranded_yield: Dict[str, int] = {}

        self.bonus_records: Dict[Key, BonusRecord] = {}
        self.cooldown: List[CooldownRecord] = []

        self.farms: Dict[str, FarmRegistryEntry] = {}
        self.verifiers: Dict[str, List[str]] = {}
        self.yodas: Dict[str, List[str]] = {}
        self.root_farm_id: Optional[str] = None
        self.benchmarks: Dict[str, Benchmark] = {}

        self.reserves = ReserveState()
        self.emission = EmissionState()
        self.dust: Dict[str, int] = {}
        # Last accrual timestamp per yield-bearing address
        self.accrual_marks: Dict[str, int] = {}

    # ----------------------------------------------------------------- tables

    def position(self, farm_id: str, lp: str) -> Position:
        """Return the position, creating an empty one on first access."""
        key = (farm_id, lp)
        if key not in self.positions:
            self.positions[key] = Position()
        return self.positions[key]

    def get_position(self, farm_id: str, lp: str) -> Optional[Position]:
        return self.positions.get((farm_id, lp))

    def farm_positions(self, farm_id: str) -> Dict[str, Position]:
        return {lp: pos for (fid, lp), pos in self.positions.items() if fid == farm_id}

    def bonus_record(self, farm_id: str, lp: str) -> BonusRecord:
        return self.bonus_records.get((farm_id, lp), BonusRecord())

    # ------------------------------------------------------------ atomicity

    def snapshot(self) -> dict:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._TABLES}

    def restore(self, snapshot: dict) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)

    @contextmanager
    def atomic(self) -> Iterator['Store']:
        """Run a block all-or-nothing; events recorded inside are dropped on failure.

        Every entry deep-copies all tables, so the cost grows with total state
        rather than with what the block touches. Nested blocks pay it again.
        That is fine for single-instance simulation sizes.
        """
        saved = self.snapshot()
        mark = self.events.mark()
        try:
            yield self
        except BaseException:
            self.restore(saved)
            self.events.truncate(mark)
            raise
