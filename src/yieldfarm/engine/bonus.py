"""Module: Bonus Engine - Oracle-priced deposit bonus, issuance and reversal.

Key Concepts:
- Expected yield: principal * benchmark% * maturity / (100 * 365 days)
- Converted into subsidy tokens at the TWAP price (1:1 when unavailable)
- Bonus = converted yield * deposit_bonus_ratio%
- A record is pinned on issue and leaves the pinned state exactly once,
  either unpinned (provider keeps the bonus) or reversed (clawed back)
"""

from dataclasses import dataclass

from ..config.schema import BonusConfig
from ..errors import (
    ExternalCallError,
    NoPinnedBonusError,
    UnauthorizedError,
    YieldFarmError,
    ZeroBonusError,
)
from ..events import BONUS_ISSUED, BONUS_REVERSED, BONUS_UNPINNED
from ..interfaces import PriceOracle
from ..logging_config import get_logger
from .benchmark import BenchmarkFeed
from .clock import ManualClock
from .cooldown import CooldownQueue
from .external import call_external
from .guard import ReentrancyGuard
from .ledger import ReserveLedger
from .registry import FarmRegistry
from .results import CallResult
from .store import BonusRecord, Store
from .token import Token

logger = get_logger("engine.bonus")

YEAR_SECONDS = 365 * 86400
PRICE_ONE = 10**18


@dataclass(frozen=True)
class BonusQuote:
    """Intermediate values of a bonus computation."""
    expected_yield: int  # principal units
    price: int  # price actually used (fallback applied)
    yield_in_subsidy: int
    bonus: int


def quote_bonus(
    principal: int,
    benchmark_yield_pct: int,
    maturity_seconds: int,
    oracle_price: int,
    deposit_bonus_ratio_pct: int,
) -> BonusQuote:
    """
    Compute the deposit bonus for a lock.

    Args:
        principal: Deposited principal
        benchmark_yield_pct: Expected annual yield in percent
        maturity_seconds: Lock time
        oracle_price: TWAP price, 1e18 fixed point; 0 falls back to 1:1
        deposit_bonus_ratio_pct: Share of the expected yield paid out

    Returns:
        BonusQuote with every intermediate value
    """
    expected_yield = principal * benchmark_yield_pct * maturity_seconds // (100 * YEAR_SECONDS)
    price = oracle_price if oracle_price else PRICE_ONE
    yield_in_subsidy = expected_yield * PRICE_ONE // price
    bonus = yield_in_subsidy * deposit_bonus_ratio_pct // 100
    return BonusQuote(
        expected_yield=expected_yield,
        price=price,
        yield_in_subsidy=yield_in_subsidy,
        bonus=bonus,
    )


def compute_bonus(
    principal: int,
    benchmark_yield_pct: int,
    maturity_seconds: int,
    oracle_price: int,
    deposit_bonus_ratio_pct: int,
) -> int:
    return quote_bonus(
        principal, benchmark_yield_pct, maturity_seconds, oracle_price, deposit_bonus_ratio_pct
    ).bonus


class BonusEngine:
    """Issues, reverses and unpins deposit bonuses against protocol reserves."""

    def __init__(
        self,
        store: Store,
        token: Token,
        clock: ManualClock,
        ledger: ReserveLedger,
        cooldown: CooldownQueue,
        registry: FarmRegistry,
        benchmarks: BenchmarkFeed,
        oracle: PriceOracle,
        config: BonusConfig,
    ):
        self.store = store
        self.token = token
        self.clock = clock
        self.ledger = ledger
        self.cooldown = cooldown
        self.registry = registry
        self.benchmarks = benchmarks
        self.oracle = oracle
        self.config = config
        self.guard = ReentrancyGuard("bonus")

    def oracle_price(self, farm_id: str) -> int:
        """TWAP of the subsidy token quoted in the farm's principal asset."""
        entry = self.registry.lookup(farm_id)
        price = call_external(
            "oracle", self.oracle.twap, self.token.address, entry.asset, self.config.twap_interval_seconds
        )
        if price is None or price < 0:
            raise ExternalCallError("oracle", f"invalid price {price!r}")
        return int(price)

    def quote(self, farm_id: str, principal: int, maturity_seconds: int) -> BonusQuote:
        return quote_bonus(
            principal,
            self.benchmarks.benchmark_for(farm_id),
            maturity_seconds,
            self.oracle_price(farm_id),
            self.config.deposit_bonus_ratio_pct,
        )

    def record(self, farm_id: str, lp: str) -> BonusRecord:
        return self.store.bonus_record(farm_id, lp)

    def _require_farm(self, caller: str, farm_id: str, action: str) -> None:
        self.registry.lookup(farm_id)
        if not self.registry.is_registered_caller(farm_id, caller):
            raise UnauthorizedError(caller, action)

    def issue_bonus(self, caller: str, farm_id: str, lp: str, principal: int, maturity_seconds: int) -> int:
        """
        Pay a bonus to ``lp`` from protocol reserves and pin it.

        Overwrites any existing record for the pair.

        Raises:
            UnauthorizedError: Caller is neither the farm nor the root farm
            ZeroBonusError: Computed bonus is zero
            InsufficientReservesError: Reserves below the bonus
        """
        self._require_farm(caller, farm_id, f"issue bonuses on {farm_id}")
        with self.guard.hold("issue_bonus"), self.store.atomic():
            quote = self.quote(farm_id, principal, maturity_seconds)
            if quote.bonus <= 0:
                raise ZeroBonusError(farm_id, lp)

            self.ledger.debit(quote.bonus)
            self.token.transfer(self.ledger.address, lp, quote.bonus)

            now = self.clock.now()
            previous = self.store.bonus_records.get((farm_id, lp))
            if previous is not None and previous.pinned:
                logger.warning(
                    "Pinned bonus record replaced",
                    extra={"farm_id": farm_id, "lp": lp, "replaced_bonus": previous.bonus_paid},
                )
            self.store.bonus_records[(farm_id, lp)] = BonusRecord(
                bonus_paid=quote.bonus, pinned=True, deposit_time=now
            )
            self.store.position(farm_id, lp).bonus_retained += quote.bonus

            self.store.events.emit(
                BONUS_ISSUED, now,
                farm_id=farm_id, lp=lp, bonus=quote.bonus,
                principal=principal, maturity_seconds=maturity_seconds,
                expected_yield=quote.expected_yield, price=quote.price,
            )
            return quote.bonus

    def reverse_bonus(self, caller: str, farm_id: str, lp: str, is_early: bool) -> int:
        """
        Claw back a pinned bonus into the cooldown queue.

        Raises:
            NoPinnedBonusError: Record is not pinned
            TransferFailedError: ``lp`` lacks balance or allowance for the ledger
        """
        self._require_farm(caller, farm_id, f"reverse bonuses on {farm_id}")
        with self.guard.hold("reverse_bonus"), self.store.atomic():
            record = self.record(farm_id, lp)
            if not record.pinned:
                raise NoPinnedBonusError(farm_id, lp)

            amount = record.bonus_paid
            self.token.transfer_from(self.ledger.address, lp, self.cooldown.holder, amount)
            self.cooldown.enqueue(amount)

            self.store.position(farm_id, lp).bonus_retained -= amount
            self.store.bonus_records[(farm_id, lp)] = BonusRecord(
                bonus_paid=0, pinned=False, deposit_time=record.deposit_time
            )
            self.store.events.emit(
                BONUS_REVERSED, self.clock.now(),
                farm_id=farm_id, lp=lp, amount=amount, is_early=is_early,
            )
            return amount

    def unpin(self, caller: str, farm_id: str, lp: str) -> int:
        """Release a pinned bonus to the provider for good. No tokens move."""
        self._require_farm(caller, farm_id, f"unpin bonuses on {farm_id}")
        record = self.record(farm_id, lp)
        if not record.pinned:
            raise NoPinnedBonusError(farm_id, lp)

        self.store.bonus_records[(farm_id, lp)] = BonusRecord(
            bonus_paid=record.bonus_paid, pinned=False, deposit_time=record.deposit_time
        )
        self.store.events.emit(
            BONUS_UNPINNED, self.clock.now(), farm_id=farm_id, lp=lp, amount=record.bonus_paid
        )
        return record.bonus_paid

    # ------------------------------------------------------- best effort

    def try_issue(self, caller: str, farm_id: str, lp: str, principal: int, maturity_seconds: int) -> CallResult:
        """Issue a bonus; failures come back as a result instead of raising.

        ``issue_bonus`` runs in its own savepoint, so a failure leaves the
        enclosing operation's state untouched.
        """
        try:
            bonus = self.issue_bonus(caller, farm_id, lp, principal, maturity_seconds)
        except YieldFarmError as exc:
            return self._as_result(exc)
        return CallResult.ok(bonus)

    def try_reverse(self, caller: str, farm_id: str, lp: str, is_early: bool) -> CallResult:
        try:
            amount = self.reverse_bonus(caller, farm_id, lp, is_early)
        except YieldFarmError as exc:
            return self._as_result(exc)
        return CallResult.ok(amount)

    def try_unpin(self, caller: str, farm_id: str, lp: str) -> CallResult:
        try:
            amount = self.unpin(caller, farm_id, lp)
        except YieldFarmError as exc:
            return self._as_result(exc)
        return CallResult.ok(amount)

    @staticmethod
    def _as_result(exc: YieldFarmError) -> CallResult:
        if exc.recoverable:
            return CallResult.recoverable(str(exc), code=exc.code, error=exc)
        return CallResult.fatal(str(exc), code=exc.code, error=exc)
