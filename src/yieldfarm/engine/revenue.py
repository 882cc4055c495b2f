"""Module: Revenue Distributor - Split converted yield among protocol stakeholders.

Split of ``net_revenue`` (subsidy tokens already held by the distributor):

    verifiers  = net * verifier% / 100      (even per-head, dust stays)
    yodas      = net * yoda% / 100          (even per-head, dust stays)
    owner      = net * owner% / 100
    fee        = owner * protocol_fee% / 100
    reserves  += fee * reserve_ratio% / 100
    root farm += fee - reserve portion      (re-injected into its accumulator)
    owner     -= fee
"""

from dataclasses import dataclass, field
from typing import Dict, List

from ..config.schema import RevenueConfig
from ..errors import InvalidInputError
from ..events import REVENUE_DISTRIBUTED
from .accumulator import YieldAccumulator
from .clock import ManualClock
from .ledger import ReserveLedger
from .registry import FarmRegistry
from .store import Store
from .token import Token


@dataclass
class Distribution:
    """Amounts routed by a single ``distribute`` call."""
    farm_id: str
    net_revenue: int
    verifier_amount: int = 0
    yoda_amount: int = 0
    owner_amount: int = 0
    protocol_fee: int = 0
    reserve_portion: int = 0
    root_portion: int = 0
    final_owner_amount: int = 0
    to_reserves: int = 0  # reserve portion plus shares of empty stakeholder lists
    dust: int = 0
    payouts: Dict[str, int] = field(default_factory=dict)


class RevenueDistributor:
    """Routes converted yield; holds undistributed dust at ``address``."""

    def __init__(
        self,
        store: Store,
        token: Token,
        clock: ManualClock,
        address: str,
        ledger: ReserveLedger,
        registry: FarmRegistry,
        accumulator: YieldAccumulator,
        config: RevenueConfig,
    ):
        self.store = store
        self.token = token
        self.clock = clock
        self.address = address
        self.ledger = ledger
        self.registry = registry
        self.accumulator = accumulator
        self.config = config

    def dust(self, farm_id: str = None) -> int:
        if farm_id is None:
            return sum(self.store.dust.values())
        return self.store.dust.get(farm_id, 0)

    def split(self, farm_id: str, net_revenue: int) -> Distribution:
        """Compute the split without moving tokens."""
        entry = self.registry.lookup(farm_id)
        dist = Distribution(farm_id=farm_id, net_revenue=net_revenue)
        dist.verifier_amount = net_revenue * entry.verifier_split_pct // 100
        dist.yoda_amount = net_revenue * entry.yoda_split_pct // 100
        dist.owner_amount = net_revenue * entry.owner_split_pct // 100
        dist.protocol_fee = dist.owner_amount * self.config.protocol_fee_rate_pct // 100
        dist.reserve_portion = dist.protocol_fee * self.config.reserve_ratio_pct // 100
        dist.root_portion = dist.protocol_fee - dist.reserve_portion
        dist.final_owner_amount = dist.owner_amount - dist.protocol_fee
        return dist

    def distribute(self, farm_id: str, net_revenue: int) -> Distribution:
        """
        Pay out ``net_revenue`` held by the distributor.

        Args:
            farm_id: Farm the revenue was harvested from
            net_revenue: Subsidy tokens, net of the LP share

        Returns:
            Distribution record
        """
        if net_revenue <= 0:
            raise InvalidInputError("Revenue must be positive", field="net_revenue")

        dist = self.split(farm_id, net_revenue)
        entry = self.registry.lookup(farm_id)

        self._pay_evenly(dist, self.registry.verifiers(farm_id), dist.verifier_amount)
        self._pay_evenly(dist, self.registry.yodas(farm_id), dist.yoda_amount)
        # Rounding left over by the percentage split itself
        dist.dust += net_revenue - dist.verifier_amount - dist.yoda_amount - dist.owner_amount

        dist.to_reserves += dist.reserve_portion
        if dist.to_reserves:
            self.token.transfer(self.address, self.ledger.address, dist.to_reserves)
            self.ledger.credit(dist.to_reserves)

        if dist.final_owner_amount:
            self._pay(dist, entry.owner, dist.final_owner_amount)

        if dist.root_portion:
            root = self.registry.root_farm
            self.token.transfer(self.address, root.address, dist.root_portion)
            self.accumulator.inject_yield(root.farm_id, dist.root_portion)

        if dist.dust:
            self.store.dust[farm_id] = self.store.dust.get(farm_id, 0) + dist.dust

        self.store.events.emit(
            REVENUE_DISTRIBUTED, self.clock.now(),
            farm_id=farm_id,
            net_revenue=net_revenue,
            verifier_amount=dist.verifier_amount,
            yoda_amount=dist.yoda_amount,
            owner_amount=dist.final_owner_amount,
            protocol_fee=dist.protocol_fee,
            reserve_portion=dist.reserve_portion,
            root_portion=dist.root_portion,
            to_reserves=dist.to_reserves,
            dust=dist.dust,
        )
        return dist

    def _pay_evenly(self, dist: Distribution, recipients: List[str], amount: int) -> None:
        if amount == 0:
            return
        if not recipients:
            dist.to_reserves += amount
            return
        share = amount // len(recipients)
        if share:
            for recipient in recipients:
                self._pay(dist, recipient, share)
        dist.dust += amount - share * len(recipients)

    def _pay(self, dist: Distribution, recipient: str, amount: int) -> None:
        self.token.transfer(self.address, recipient, amount)
        dist.payouts[recipient] = dist.payouts.get(recipient, 0) + amount
