"""Module: Farm - Position lifecycle over a yield strategy.

A deposit moves principal into the strategy, re-bases the position's yield
debt and then requests a bonus. A withdrawal pulls principal back (charging a
slash fee before maturity) and then resolves any pinned bonus: reversal when
early, unpin otherwise. Bonus failures at these two call sites are recorded
and never roll back the principal movement.

``pull_revenue`` harvests the strategy, converts the harvest into subsidy
tokens, feeds the LP share into the farm's accumulator and hands the rest to
the revenue distributor.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..config.schema import AccumulatorConfig, BonusConfig, RevenueConfig
from ..errors import ExternalCallError, InsufficientFundsError, InvalidInputError
from ..events import BONUS_FAILED, POSITION_DEPOSITED, POSITION_WITHDRAWN, REVENUE_PULLED
from ..interfaces import Router, YieldStrategy
from ..logging_config import get_logger
from .accumulator import YieldAccumulator
from .bonus import BonusEngine
from .clock import ManualClock
from .external import call_external
from .guard import ReentrancyGuard
from .registry import FarmRegistry
from .results import CallResult
from .revenue import Distribution, RevenueDistributor
from .store import FarmRegistryEntry, Position, Store
from .token import Token

logger = get_logger("engine.farm")


@dataclass
class DepositResult:
    principal: int
    weighted_maturity: int
    bonus: CallResult


@dataclass
class WithdrawResult:
    amount: int
    paid_out: int
    slash_fee: int
    early: bool
    bonus: CallResult


@dataclass
class HarvestResult:
    harvested: int = 0
    converted: int = 0
    route_id: Optional[str] = None
    lp_share: int = 0
    lp_share_distributed: bool = False
    distribution: Optional[Distribution] = field(default=None)


class Farm:
    """One registered farm: positions, strategy capital and revenue."""

    def __init__(
        self,
        store: Store,
        clock: ManualClock,
        farm_id: str,
        registry: FarmRegistry,
        asset: Token,
        subsidy: Token,
        strategy: YieldStrategy,
        router: Router,
        accumulator: YieldAccumulator,
        bonus_engine: BonusEngine,
        distributor: RevenueDistributor,
        bonus_config: BonusConfig,
        revenue_config: RevenueConfig,
        accumulator_config: AccumulatorConfig,
    ):
        self.store = store
        self.clock = clock
        self.farm_id = farm_id
        self.registry = registry
        self.asset = asset
        self.subsidy = subsidy
        self.strategy = strategy
        self.router = router
        self.accumulator = accumulator
        self.bonus_engine = bonus_engine
        self.distributor = distributor
        self.bonus_config = bonus_config
        self.revenue_config = revenue_config
        self.accumulator_config = accumulator_config
        self.guard = ReentrancyGuard(f"farm:{farm_id}")

    @property
    def entry(self) -> FarmRegistryEntry:
        return self.registry.lookup(self.farm_id)

    @property
    def address(self) -> str:
        return self.entry.address

    @property
    def total_liquidity(self) -> int:
        return self.store.total_liquidity.get(self.farm_id, 0)

    def position(self, lp: str) -> Position:
        existing = self.store.get_position(self.farm_id, lp)
        return existing if existing is not None else Position()

    def pending_yield(self, lp: str) -> int:
        return self.accumulator.pending_yield(self.farm_id, lp)

    def idle_principal(self) -> int:
        return self.asset.balance_of(self.address)

    # ------------------------------------------------------------ deposits

    def deposit(self, lp: str, amount: int, lock_seconds: int) -> DepositResult:
        """
        Deposit principal with a chosen lock time.

        Args:
            lp: Liquidity provider (must hold and send ``amount`` of the asset)
            amount: Principal to deposit
            lock_seconds: Lock time, also the bonus maturity

        Returns:
            DepositResult; ``bonus`` carries the best-effort bonus outcome
        """
        if not lp:
            raise InvalidInputError("Provider address must not be empty", field="lp")
        if amount <= 0:
            raise InvalidInputError("Deposit amount must be positive", field="amount")
        if not self.bonus_config.min_lock_seconds <= lock_seconds <= self.bonus_config.max_lock_seconds:
            raise InvalidInputError(
                f"Lock {lock_seconds}s outside [{self.bonus_config.min_lock_seconds}, "
                f"{self.bonus_config.max_lock_seconds}]",
                field="lock_seconds",
            )

        with self.guard.hold("deposit"), self.store.atomic():
            now = self.clock.now()
            farm_address = self.address
            self._settle_pending(lp)

            self.asset.transfer(lp, farm_address, amount)
            self.asset.transfer(farm_address, self.strategy.address, amount)
            call_external("strategy", self.strategy.deploy, amount)

            position = self.store.position(self.farm_id, lp)
            new_principal = position.principal + amount
            position.weighted_maturity = (
                position.principal * position.weighted_maturity + amount * (now + lock_seconds)
            ) // new_principal
            position.principal = new_principal
            position.last_update = now
            self.store.total_liquidity[self.farm_id] = self.total_liquidity + amount
            self.accumulator.on_position_change(self.farm_id, lp, new_principal)

            self.store.events.emit(
                POSITION_DEPOSITED, now,
                farm_id=self.farm_id, lp=lp, amount=amount, lock_seconds=lock_seconds,
                principal=new_principal, weighted_maturity=position.weighted_maturity,
            )
            weighted_maturity = position.weighted_maturity

            # Best effort; runs in its own savepoint and must not touch `position` after.
            bonus = self.bonus_engine.try_issue(farm_address, self.farm_id, lp, amount, lock_seconds)
            self._handle_bonus_result(bonus, lp, "issue")

            return DepositResult(principal=new_principal, weighted_maturity=weighted_maturity, bonus=bonus)

    # --------------------------------------------------------- withdrawals

    def withdraw(self, lp: str, amount: int) -> WithdrawResult:
        """
        Withdraw principal; before maturity a slash fee goes to the farm owner.

        Raises:
            InsufficientFundsError: Principal or available liquidity below ``amount``
        """
        if amount <= 0:
            raise InvalidInputError("Withdrawal amount must be positive", field="amount")

        with self.guard.hold("withdraw"), self.store.atomic():
            now = self.clock.now()
            entry = self.entry
            position = self.store.get_position(self.farm_id, lp)
            principal = 0 if position is None else position.principal
            if principal < amount:
                raise InsufficientFundsError(amount, principal, what="principal")

            self._settle_pending(lp)
            early = now < position.weighted_maturity

            idle = self.idle_principal()
            if idle < amount:
                call_external("strategy", self.strategy.withdraw, amount - idle)
                idle = self.idle_principal()
                if idle < amount:
                    raise InsufficientFundsError(amount, idle, what="liquidity")

            slash_fee = amount * self.bonus_config.slash_fee_pct // 100 if early else 0
            paid_out = amount - slash_fee

            position.principal -= amount
            position.last_update = now
            self.store.total_liquidity[self.farm_id] = self.total_liquidity - amount
            self.accumulator.on_position_change(self.farm_id, lp, position.principal)

            if paid_out:
                self.asset.transfer(entry.address, lp, paid_out)
            if slash_fee:
                self.asset.transfer(entry.address, entry.owner, slash_fee)

            self.store.events.emit(
                POSITION_WITHDRAWN, now,
                farm_id=self.farm_id, lp=lp, amount=amount, paid_out=paid_out,
                slash_fee=slash_fee, early=early, principal=position.principal,
            )

            record = self.store.bonus_record(self.farm_id, lp)
            if not record.pinned:
                bonus = CallResult.ok(0)
            elif early:
                bonus = self.bonus_engine.try_reverse(entry.address, self.farm_id, lp, True)
                self._handle_bonus_result(bonus, lp, "reverse")
            else:
                bonus = self.bonus_engine.try_unpin(entry.address, self.farm_id, lp)
                self._handle_bonus_result(bonus, lp, "unpin")

            return WithdrawResult(
                amount=amount, paid_out=paid_out, slash_fee=slash_fee, early=early, bonus=bonus
            )

    # -------------------------------------------------------------- claims

    def claim(self, lp: str) -> int:
        """Pay out pending subsidy-token yield to ``lp``."""
        with self.guard.hold("claim"), self.store.atomic():
            return self.accumulator.claim(self.farm_id, self.address, lp)

    # ------------------------------------------------------------- revenue

    def pull_revenue(self) -> HarvestResult:
        """
        Harvest the strategy and route the converted yield.

        Returns:
            HarvestResult (all zero when the strategy had nothing to harvest)

        Raises:
            ExternalCallError: Strategy or router failure, or swap output below
                the quote minus the allowed slippage
        """
        with self.guard.hold("pull_revenue"), self.store.atomic():
            now = self.clock.now()
            farm_address = self.address
            result = HarvestResult()

            harvested = call_external("strategy", self.strategy.harvest)
            if not harvested:
                return result
            result.harvested = harvested
            if self.idle_principal() < harvested:
                raise ExternalCallError(
                    "strategy", f"harvest reported {harvested} but delivered {self.idle_principal()}"
                )

            quoted, route_id = call_external(
                "router", self.router.best_swap_out, self.asset.address, self.subsidy.address, harvested
            )
            self.asset.transfer(farm_address, self.router.address, harvested)
            received = call_external(
                "router", self.router.swap, self.asset.address, self.subsidy.address, harvested, farm_address
            )
            min_out = quoted * (100 - self.revenue_config.max_slippage_pct) // 100
            if received < min_out:
                raise ExternalCallError("router", f"swap returned {received}, minimum {min_out}")
            result.converted = received
            result.route_id = route_id

            result.lp_share = received * self.revenue_config.lp_share_pct // 100
            if result.lp_share:
                result.lp_share_distributed = self.accumulator.inject_yield(self.farm_id, result.lp_share)

            net_revenue = received - result.lp_share
            if net_revenue:
                self.subsidy.transfer(farm_address, self.distributor.address, net_revenue)
                result.distribution = self.distributor.distribute(self.farm_id, net_revenue)

            self.store.events.emit(
                REVENUE_PULLED, now,
                farm_id=self.farm_id, harvested=harvested, converted=received,
                route_id=route_id, lp_share=result.lp_share, net_revenue=net_revenue,
            )
            return result

    # ------------------------------------------------------------ helpers

    def _settle_pending(self, lp: str) -> None:
        """Pay pending yield before a principal change when configured to."""
        if not self.accumulator_config.settle_pending_on_change:
            return
        if self.accumulator.pending_yield(self.farm_id, lp):
            self.accumulator.claim(self.farm_id, self.address, lp)

    def _handle_bonus_result(self, result: CallResult, lp: str, stage: str) -> None:
        if result.is_ok:
            return
        if result.is_fatal:
            logger.error(
                "Bonus %s failed fatally", stage,
                extra={"farm_id": self.farm_id, "lp": lp, "code": result.code},
            )
            raise result.error
        self.store.events.emit(
            BONUS_FAILED, self.clock.now(),
            farm_id=self.farm_id, lp=lp, stage=stage, reason=result.reason, code=result.code,
        )
