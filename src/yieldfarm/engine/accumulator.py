"""Module: Yield Accumulator - Pull-based yield distribution per farm.

Key Concepts:
- acc_yield_per_share grows by amount * SCALE / total_liquidity on each injection
- A position's entitlement is principal * acc / SCALE minus its yield debt
- Injections while total_liquidity == 0 are stranded, not queued or refunded
"""

from ..errors import NoActivePositionError
from ..events import YIELD_CLAIMED, YIELD_INJECTED, YIELD_STRANDED
from .clock import ManualClock
from .store import Store
from .token import Token

SCALE = 10**18


class YieldAccumulator:
    """Accumulator-per-share bookkeeping for every farm in a store.

    Claims are paid in subsidy tokens from the farm's own address, which is
    where converted yield lands before injection.
    """

    def __init__(self, store: Store, token: Token, clock: ManualClock):
        self.store = store
        self.token = token
        self.clock = clock

    def acc_per_share(self, farm_id: str) -> int:
        return self.store.acc_yield_per_share.get(farm_id, 0)

    def total_liquidity(self, farm_id: str) -> int:
        return self.store.total_liquidity.get(farm_id, 0)

    def accumulated(self, farm_id: str, principal: int) -> int:
        return principal * self.acc_per_share(farm_id) // SCALE

    def yield_debt(self, farm_id: str, lp: str) -> int:
        return self.store.yield_debt.get((farm_id, lp), 0)

    def inject_yield(self, farm_id: str, amount: int) -> bool:
        """
        Spread ``amount`` over the farm's current liquidity.

        Args:
            farm_id: Farm receiving yield
            amount: Subsidy-token yield already held at the farm address

        Returns:
            True if distributed, False if stranded (zero liquidity or zero amount)
        """
        now = self.clock.now()
        if amount <= 0:
            return False

        liquidity = self.total_liquidity(farm_id)
        if liquidity == 0:
            self.store.stranded_yield[farm_id] = self.store.stranded_yield.get(farm_id, 0) + amount
            self.store.events.emit(YIELD_STRANDED, now, farm_id=farm_id, amount=amount)
            return False

        increment = amount * SCALE // liquidity
        self.store.acc_yield_per_share[farm_id] = self.acc_per_share(farm_id) + increment
        self.store.events.emit(
            YIELD_INJECTED, now,
            farm_id=farm_id,
            amount=amount,
            acc_yield_per_share=self.store.acc_yield_per_share[farm_id],
        )
        return True

    def on_position_change(self, farm_id: str, lp: str, new_principal: int) -> None:
        """Re-base the position's debt on its new principal.

        Any pending yield on the previous principal is not settled here.
        """
        self.store.yield_debt[(farm_id, lp)] = self.accumulated(farm_id, new_principal)

    def pending_yield(self, farm_id: str, lp: str) -> int:
        position = self.store.get_position(farm_id, lp)
        if position is None:
            return 0
        pending = self.accumulated(farm_id, position.principal) - self.yield_debt(farm_id, lp)
        return max(0, pending)

    def claim(self, farm_id: str, farm_address: str, lp: str) -> int:
        """
        Pay out pending yield to ``lp``.

        Returns:
            Amount paid (0 is a valid no-op)

        Raises:
            NoActivePositionError: If the position has no principal
        """
        position = self.store.get_position(farm_id, lp)
        if position is None or position.principal == 0:
            raise NoActivePositionError(farm_id, lp)

        pending = self.pending_yield(farm_id, lp)
        if pending == 0:
            return 0

        self.token.transfer(farm_address, lp, pending)
        self.store.yield_debt[(farm_id, lp)] = self.accumulated(farm_id, position.principal)
        self.store.events.emit(YIELD_CLAIMED, self.clock.now(), farm_id=farm_id, lp=lp, amount=pending)
        return pending
