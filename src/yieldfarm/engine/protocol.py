"""Protocol facade: wires every engine over one store, clock and event log."""

from typing import Dict, Optional

from ..config.schema import Config
from ..errors import InvalidInputError
from ..interfaces import PriceOracle, Router, YieldStrategy
from ..logging_config import get_logger
from .accumulator import YieldAccumulator
from .benchmark import BenchmarkFeed
from .bonus import BonusEngine
from .clock import ManualClock
from .cooldown import CooldownQueue
from .emission import EmissionScheduler
from .farm import Farm
from .ledger import ReserveLedger
from .registry import FarmRegistry
from .revenue import RevenueDistributor
from .store import Store
from .token import Token

logger = get_logger("engine.protocol")


class Protocol:
    """One isolated protocol instance.

    Collaborators (oracle, router, per-farm strategies) are injected; all
    state lives in ``store`` so tests can build independent instances.
    """

    def __init__(
        self,
        config: Config,
        oracle: PriceOracle,
        router: Router,
        clock: Optional[ManualClock] = None,
        store: Optional[Store] = None,
    ):
        """
        Initialize protocol.

        Args:
            config: Protocol configuration
            oracle: TWAP price source for bonus pricing
            router: Swap router used to convert harvested yield
            clock: Protocol clock (defaults to one starting at genesis_time)
            store: State store (defaults to an empty one)
        """
        self.config = config
        self.clock = clock if clock is not None else ManualClock(config.simulation.genesis_time)
        self.store = store if store is not None else Store()
        self.events = self.store.events
        self.oracle = oracle
        self.router = router

        addresses = config.addresses
        self.admin = addresses.admin

        self.token = Token(self.store, config.token.address, config.token.symbol, config.token.max_supply)
        if config.token.initial_supply:
            self.token.mint(addresses.admin, config.token.initial_supply)

        self.scheduler = EmissionScheduler(
            self.store, self.token, self.clock, config.emission, recipient=addresses.ledger
        )
        self.ledger = ReserveLedger(
            self.store, self.token, self.clock,
            owner=addresses.admin, address=addresses.ledger, scheduler=self.scheduler,
        )
        self.cooldown = CooldownQueue(
            self.store, self.token, self.clock,
            holder=addresses.ledger, period=config.cooldown.period_seconds,
        )
        self.registry = FarmRegistry(self.store, self.clock, admin=addresses.admin)
        self.benchmarks = BenchmarkFeed(
            self.store, self.clock,
            consensus=addresses.consensus,
            default_yield_pct=config.bonus.default_benchmark_yield_pct,
            max_yield_pct=config.bonus.max_benchmark_yield_pct,
        )
        self.accumulator = YieldAccumulator(self.store, self.token, self.clock)
        self.bonus = BonusEngine(
            self.store, self.token, self.clock,
            ledger=self.ledger,
            cooldown=self.cooldown,
            registry=self.registry,
            benchmarks=self.benchmarks,
            oracle=oracle,
            config=config.bonus,
        )
        self.distributor = RevenueDistributor(
            self.store, self.token, self.clock,
            address=addresses.distributor,
            ledger=self.ledger,
            registry=self.registry,
            accumulator=self.accumulator,
            config=config.revenue,
        )

        self.assets: Dict[str, Token] = {}
        self.farms: Dict[str, Farm] = {}

    # -------------------------------------------------------------- setup

    def add_asset(self, symbol: str, address: Optional[str] = None) -> Token:
        """Register a principal asset ledger in the shared store."""
        address = address or f"token:{symbol.lower()}"
        if address in self.assets or address == self.token.address:
            raise InvalidInputError(f"Token {address} already exists", field="address")
        asset = Token(self.store, address, symbol)
        self.assets[address] = asset
        return asset

    def create_farm(
        self,
        caller: str,
        farm_id: str,
        owner: str,
        asset: Token,
        strategy: YieldStrategy,
        verifier_split_pct: Optional[int] = None,
        yoda_split_pct: Optional[int] = None,
        address: Optional[str] = None,
    ) -> Farm:
        """
        Register a farm and build its engine.

        Splits default to the configured revenue defaults.
        """
        if asset.address not in self.assets:
            raise InvalidInputError(f"Unknown asset {asset.address}", field="asset")
        revenue = self.config.revenue
        self.registry.create_farm(
            caller,
            farm_id,
            address or f"farm:{farm_id}",
            owner,
            asset.address,
            revenue.default_verifier_split_pct if verifier_split_pct is None else verifier_split_pct,
            revenue.default_yoda_split_pct if yoda_split_pct is None else yoda_split_pct,
        )
        farm = Farm(
            self.store, self.clock, farm_id,
            registry=self.registry,
            asset=asset,
            subsidy=self.token,
            strategy=strategy,
            router=self.router,
            accumulator=self.accumulator,
            bonus_engine=self.bonus,
            distributor=self.distributor,
            bonus_config=self.config.bonus,
            revenue_config=self.config.revenue,
            accumulator_config=self.config.accumulator,
        )
        self.farms[farm_id] = farm
        logger.info("Farm created", extra={"farm_id": farm_id, "owner": owner, "asset": asset.address})
        return farm

    def set_root_farm(self, caller: str, farm_id: str) -> None:
        self.registry.set_root_farm(caller, farm_id)

    def farm(self, farm_id: str) -> Farm:
        try:
            return self.farms[farm_id]
        except KeyError:
            raise InvalidInputError(f"Unknown farm {farm_id}", field="farm_id") from None

    # ------------------------------------------------------ entry points

    def fund_reserves(self, sender: str, amount: int) -> None:
        self.ledger.fund(sender, amount)

    def pull_emission(self, caller: str) -> int:
        return self.ledger.pull_emission(caller)

    def recycle_matured(self) -> int:
        return self.cooldown.recycle_matured()

    def push_benchmark(self, caller: str, farm_id: str, round_id: int, score: int, benchmark: int):
        return self.benchmarks.push_benchmark(caller, farm_id, round_id, score, benchmark)
