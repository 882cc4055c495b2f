"""Simulation runner - Drive a protocol instance through a seeded scenario.

Key Features:
- Real engines over one store; only the oracle, router and strategies are simulated
- Seeded random deposits, withdrawals and claims per provider per step
- Daily revenue pulls, emission pulls and cooldown recycling
- Invariant checks after every step, recorded rather than raised
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from ..config.schema import Config
from ..engine.accumulator import SCALE
from ..engine.protocol import Protocol
from ..errors import YieldFarmError
from ..events import ProtocolEvent
from ..logging_config import get_logger
from ..validation.sanity_checks import SanityChecker, ValidationWarning, validate_simulation_results
from .scenario import add_farm, build_protocol

logger = get_logger("simulation.runner")

DAY = 86400
LOCK_CHOICES = (0, 30 * DAY, 90 * DAY, 365 * DAY)
ROOT_FARM_ID = "root"
BENCHMARK_EVERY_STEPS = 7


@dataclass
class LedgerSnapshot:
    """Protocol-wide balances at the end of one step."""
    step: int
    t: int
    protocol_reserves: int
    emission_reserve: int
    ledger_holdings: int
    cooldown_queued: int
    total_emitted: int
    emission_per_block: int
    token_supply: int
    unissued: int
    total_liquidity: int
    pinned_bonuses: int
    stranded_yield: int
    dust: int
    acc_yield_per_share: Dict[str, int] = field(default_factory=dict)


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: Config
    snapshots: List[LedgerSnapshot]
    events: List[ProtocolEvent]
    final_metrics: Dict[str, Any]
    invariant_errors: List[str] = field(default_factory=list)
    operation_failures: List[str] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)


class SimulationRunner:
    """Runs one scenario against a freshly built protocol."""

    def __init__(self, config: Config):
        """
        Initialize simulation runner.

        Args:
            config: Protocol and scenario configuration
        """
        self.config = config
        self.checker = SanityChecker(config)
        self.protocol: Optional[Protocol] = None
        self.providers: List[str] = []
        self._invariant_errors: List[str] = []
        self._operation_failures: List[str] = []

    def run(self, random_seed: int = None) -> SimulationResult:
        """
        Run the scenario.

        Args:
            random_seed: Overrides ``simulation.random_seed``

        Returns:
            SimulationResult
        """
        if random_seed is not None:
            np.random.seed(random_seed)
        else:
            np.random.seed(self.config.simulation.random_seed)

        self._invariant_errors = []
        self._operation_failures = []
        self._setup()

        sim = self.config.simulation
        snapshots = [self._snapshot(0)]
        for step in range(1, sim.num_steps + 1):
            self.protocol.clock.advance(sim.step_seconds)
            self._provider_actions(step)
            self._protocol_actions(step)

            for warning in self.checker.check_state(self.protocol):
                if warning.severity == "error":
                    self._invariant_errors.append(f"step {step}: {warning.message}")
            snapshots.append(self._snapshot(step))

        final_metrics = self._compute_final_metrics(snapshots)
        result = SimulationResult(
            config=self.config,
            snapshots=snapshots,
            events=list(self.protocol.events.events),
            final_metrics=final_metrics,
            invariant_errors=list(self._invariant_errors),
            operation_failures=list(self._operation_failures),
        )
        result.warnings = validate_simulation_results(self.config, snapshots, final_metrics)
        logger.info(
            "Simulation finished",
            extra={
                "steps": sim.num_steps,
                "events": len(result.events),
                "invariant_errors": len(result.invariant_errors),
                "operation_failures": len(result.operation_failures),
            },
        )
        return result

    # ------------------------------------------------------------- setup

    def _setup(self) -> None:
        config = self.config
        sim = config.simulation
        protocol = build_protocol(config)
        self.protocol = protocol
        admin = protocol.admin

        if sim.initial_reserves:
            protocol.fund_reserves(admin, sim.initial_reserves)
        if sim.router_inventory:
            protocol.token.transfer(admin, protocol.router.address, sim.router_inventory)

        asset = protocol.add_asset("LP")
        # Root farm: no stakeholders, so its revenue goes to its owner and reserves.
        add_farm(
            protocol, ROOT_FARM_ID, "owner:root", asset, sim.strategy_apy_pct,
            verifier_split_pct=0, yoda_split_pct=0,
        )
        protocol.set_root_farm(admin, ROOT_FARM_ID)
        add_farm(
            protocol, "farm-1", "owner:farm-1", asset, sim.strategy_apy_pct,
            verifiers=[f"verifier-{i}" for i in range(sim.num_verifiers)],
            yodas=[f"yoda-{i}" for i in range(sim.num_yodas)],
        )

        self.providers = [f"provider-{i}" for i in range(sim.num_providers)]
        for provider in self.providers:
            asset.mint(provider, sim.provider_balance)
            # Reversal pulls the bonus back through the ledger's allowance.
            protocol.token.approve(provider, protocol.ledger.address, config.token.max_supply)

    # ----------------------------------------------------------- actions

    def _provider_actions(self, step: int) -> None:
        sim = self.config.simulation
        bonus = self.config.bonus
        locks = [s for s in LOCK_CHOICES if bonus.min_lock_seconds <= s <= bonus.max_lock_seconds]
        if not locks:
            locks = [bonus.min_lock_seconds]
        farm_ids = sorted(self.protocol.farms)

        for provider in self.providers:
            farm = self.protocol.farm(farm_ids[np.random.randint(len(farm_ids))])

            if np.random.random() < sim.deposit_probability:
                balance = farm.asset.balance_of(provider)
                amount = balance * int(np.random.randint(5, 31)) // 100
                if amount > 0:
                    lock = locks[np.random.randint(len(locks))]
                    self._attempt(step, "deposit", farm.deposit, provider, amount, lock)

            principal = farm.position(provider).principal
            if principal and np.random.random() < sim.withdraw_probability:
                amount = max(1, principal * int(np.random.randint(20, 101)) // 100)
                self._attempt(step, "withdraw", farm.withdraw, provider, amount)

            if farm.position(provider).principal and np.random.random() < sim.claim_probability:
                self._attempt(step, "claim", farm.claim, provider)

    def _protocol_actions(self, step: int) -> None:
        protocol = self.protocol
        for farm_id in sorted(protocol.farms):
            self._attempt(step, "pull_revenue", protocol.farm(farm_id).pull_revenue)

        self._attempt(step, "pull_emission", protocol.pull_emission, protocol.admin)
        self._attempt(step, "recycle_matured", protocol.recycle_matured)

        if step % BENCHMARK_EVERY_STEPS == 0:
            benchmark = int(np.random.randint(5, 16))
            score = int(np.random.randint(0, 101))
            self._attempt(
                step, "push_benchmark", protocol.push_benchmark,
                protocol.config.addresses.consensus, "farm-1", step, score, benchmark,
            )

    def _attempt(self, step: int, name: str, fn, *args):
        """Run one entry point; core errors are recorded, not raised."""
        try:
            return fn(*args)
        except YieldFarmError as exc:
            self._operation_failures.append(f"step {step}: {name} failed [{exc.code}] {exc}")
            logger.debug("Operation failed", extra={"step": step, "operation": name, "code": exc.code})
            return None

    # ---------------------------------------------------------- metrics

    def _snapshot(self, step: int) -> LedgerSnapshot:
        protocol = self.protocol
        store = protocol.store
        return LedgerSnapshot(
            step=step,
            t=protocol.clock.now(),
            protocol_reserves=protocol.ledger.protocol_reserves,
            emission_reserve=protocol.ledger.emission_reserve,
            ledger_holdings=protocol.ledger.holdings(),
            cooldown_queued=protocol.cooldown.queued_total(),
            total_emitted=store.emission.total_emitted,
            emission_per_block=store.emission.emission_per_block,
            token_supply=protocol.token.total_supply(),
            unissued=protocol.token.unissued(),
            total_liquidity=sum(store.total_liquidity.values()),
            pinned_bonuses=sum(r.bonus_paid for r in store.bonus_records.values() if r.pinned),
            stranded_yield=sum(store.stranded_yield.values()),
            dust=protocol.distributor.dust(),
            acc_yield_per_share=dict(store.acc_yield_per_share),
        )

    def _compute_final_metrics(self, snapshots: List[LedgerSnapshot]) -> Dict[str, Any]:
        events = self.protocol.events
        final = snapshots[-1]
        issued = sum(e.data["bonus"] for e in events.of_kind("bonus.issued"))
        reversed_ = sum(e.data["amount"] for e in events.of_kind("bonus.reversed"))
        claimed = sum(e.data["amount"] for e in events.of_kind("yield.claimed"))
        return {
            "final_protocol_reserves": final.protocol_reserves,
            "final_emission_reserve": final.emission_reserve,
            "final_ledger_holdings": final.ledger_holdings,
            "final_total_liquidity": final.total_liquidity,
            "total_emitted": final.total_emitted,
            "bonuses_issued": issued,
            "bonuses_reversed": reversed_,
            "bonuses_pinned": final.pinned_bonuses,
            "yield_claimed": claimed,
            "stranded_yield": final.stranded_yield,
            "recycled": sum(e.data["amount"] for e in events.of_kind("cooldown.recycled")),
            "dust": final.dust,
            "bonus_failures": len(events.of_kind("bonus.failed")),
            "operation_failures": len(self._operation_failures),
            "reversal_rate": reversed_ / issued if issued else 0.0,
            "root_acc_yield_per_share_wad": final.acc_yield_per_share.get(ROOT_FARM_ID, 0) / SCALE,
        }
