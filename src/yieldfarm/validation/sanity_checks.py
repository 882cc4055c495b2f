"""Sanity checks and validation for configuration, live protocol state and simulation output."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..config.schema import Config
from ..engine.accumulator import SCALE

if TYPE_CHECKING:
    from ..engine.protocol import Protocol
    from ..simulation.runner import LedgerSnapshot


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "conservation", "bounds"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run sanity checks on configuration and protocol state."""

    def __init__(self, config: Config):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []
        config = self.config
        sim = config.simulation

        # Admin premint has to cover both reserve funding and router inventory
        needed = sim.initial_reserves + sim.router_inventory
        if needed > config.token.initial_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="input",
                message="Premint cannot fund initial reserves and router inventory",
                details=f"Needed: {needed}, premint: {config.token.initial_supply}"
            ))

        if config.emission.initial_emission_per_block == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Emission rate is zero; reserves are only refilled by revenue",
            ))

        if config.emission.halving_interval_seconds < config.emission.nominal_interval_seconds:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Halving interval is shorter than one emission interval",
                details=(
                    f"Halving: {config.emission.halving_interval_seconds}s, "
                    f"interval: {config.emission.nominal_interval_seconds}s"
                )
            ))

        if config.bonus.deposit_bonus_ratio_pct == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Deposit bonus ratio is 0%; every bonus will be zero and fail",
            ))

        if config.bonus.slash_fee_pct == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Slash fee is 0%; early exits only lose their bonus",
            ))

        if config.revenue.lp_share_pct == 100:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="LP share is 100%; stakeholders and reserves receive no revenue",
            ))

        if config.cooldown.period_seconds == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Cooldown period is zero; reversed bonuses recycle immediately",
            ))

        if sim.oracle_price == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Oracle price is 0 (unavailable); bonuses price at 1:1",
            ))

        # Reserves rarely cover a year of bonuses at default benchmark
        yearly_bonus = (
            sim.provider_balance * sim.num_providers
            * config.bonus.default_benchmark_yield_pct // 100
            * config.bonus.deposit_bonus_ratio_pct // 100
        )
        if sim.initial_reserves < yearly_bonus:
            warnings.append(ValidationWarning(
                severity="warning",
                category="sustainability",
                message="Initial reserves are below one year of full-lock bonuses",
                details=f"Reserves: {sim.initial_reserves}, one-year bonus: {yearly_bonus}"
            ))

        return warnings

    def check_state(self, protocol: "Protocol") -> List[ValidationWarning]:
        """
        Check live protocol state for invariant violations.

        Args:
            protocol: Protocol instance to inspect

        Returns:
            List of validation warnings
        """
        warnings = []
        store = protocol.store
        now = protocol.clock.now()

        # Sum of principal equals total liquidity, per farm
        for farm_id in store.farms:
            positions = store.farm_positions(farm_id)
            principal_sum = sum(p.principal for p in positions.values())
            liquidity = store.total_liquidity.get(farm_id, 0)
            if principal_sum != liquidity:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Liquidity mismatch on {farm_id} at t={now}",
                    details=f"Sum of principal: {principal_sum}, total liquidity: {liquidity}"
                ))

            acc = store.acc_yield_per_share.get(farm_id, 0)
            for lp, position in positions.items():
                if position.principal < 0:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="bounds",
                        message=f"Negative principal for {lp} on {farm_id}",
                        details=f"Value: {position.principal}"
                    ))
                debt = store.yield_debt.get((farm_id, lp), 0)
                if debt > position.principal * acc // SCALE:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="accumulator",
                        message=f"Yield debt exceeds accumulated yield for {lp} on {farm_id}",
                        details=f"Debt: {debt}, accumulated: {position.principal * acc // SCALE}"
                    ))
                if position.bonus_retained < 0:
                    warnings.append(ValidationWarning(
                        severity="error",
                        category="bonus",
                        message=f"Negative retained bonus for {lp} on {farm_id}",
                        details=f"Value: {position.bonus_retained}"
                    ))

        for (farm_id, lp), record in store.bonus_records.items():
            if record.pinned and record.bonus_paid <= 0:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bonus",
                    message=f"Pinned bonus record without a payment for {lp} on {farm_id}",
                ))

        reserves = store.reserves
        for name, value in (
            ("Protocol reserves", reserves.protocol_reserves),
            ("Emission reserve", reserves.emission_reserve),
        ):
            if value < 0:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="bounds",
                    message=f"{name} went negative at t={now}",
                    details=f"Value: {value}"
                ))

        if store.emission.total_emitted > self.config.emission.emission_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message="Cumulative emission exceeds the emission supply cap",
                details=f"Emitted: {store.emission.total_emitted}, cap: {self.config.emission.emission_supply}"
            ))

        if protocol.token.total_supply() > self.config.token.max_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message="Token supply exceeds max supply",
                details=f"Supply: {protocol.token.total_supply()}, cap: {self.config.token.max_supply}"
            ))

        # The ledger balance must back protocol reserves plus queued cooldown
        holdings = protocol.ledger.holdings()
        queued = protocol.cooldown.queued_total()
        if holdings < reserves.protocol_reserves + queued:
            warnings.append(ValidationWarning(
                severity="error",
                category="conservation",
                message=f"Ledger balance does not back protocol reserves at t={now}",
                details=f"Holdings: {holdings}, reserves: {reserves.protocol_reserves}, queued: {queued}"
            ))

        warnings.extend(self._check_double_booking(
            reserves.protocol_reserves, reserves.emission_reserve, holdings - queued
        ))
        return warnings

    def check_metrics(self, metrics: Dict[str, Any]) -> List[ValidationWarning]:
        """
        Check final metrics for issues.

        Args:
            metrics: Final metrics dictionary

        Returns:
            List of validation warnings
        """
        warnings = []

        if metrics.get('stranded_yield', 0) > 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="accumulator",
                message="Yield was injected while a farm had no liquidity and is stranded",
                details=f"Stranded: {metrics['stranded_yield']}"
            ))

        reversal_rate = metrics.get('reversal_rate', 0.0)
        if reversal_rate > 0.5:
            warnings.append(ValidationWarning(
                severity="warning",
                category="behavior",
                message=f"More than half of issued bonuses were reversed ({reversal_rate*100:.0f}%)",
                details="Lock choices may be too long for provider behavior"
            ))

        return warnings

    @staticmethod
    def _check_double_booking(protocol_reserves: int, emission_reserve: int, backing: int) -> List[ValidationWarning]:
        # Emissions credit both counters; their sum is not a claim on the balance.
        if emission_reserve and protocol_reserves + emission_reserve > backing:
            return [ValidationWarning(
                severity="warning",
                category="accounting",
                message="Protocol and emission reserves together exceed the ledger balance",
                details=(
                    f"Protocol: {protocol_reserves}, emission: {emission_reserve}, "
                    f"backing: {backing}. Emission credits both counters."
                )
            )]
        return []


def validate_simulation_results(
    config: Config,
    snapshots: List["LedgerSnapshot"],
    final_metrics: Dict[str, Any]
) -> List[ValidationWarning]:
    """
    Validate complete simulation results.

    Args:
        config: Simulation configuration
        snapshots: Per-step ledger snapshots
        final_metrics: Final metrics dictionary

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(config)
    warnings = []

    # Check config first
    warnings.extend(checker.check_config_inputs())

    for snap in snapshots:
        if snap.protocol_reserves < 0 or snap.emission_reserve < 0:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Reserves went negative at step {snap.step}",
                details=f"Protocol: {snap.protocol_reserves}, emission: {snap.emission_reserve}"
            ))
        if snap.total_emitted > config.emission.emission_supply:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Emission cap exceeded at step {snap.step}",
            ))

    warnings.extend(checker.check_metrics(final_metrics))

    if snapshots:
        final = snapshots[-1]
        warnings.extend(checker._check_double_booking(
            final.protocol_reserves, final.emission_reserve,
            final.ledger_holdings - final.cooldown_queued,
        ))

        initial_reserves = snapshots[0].protocol_reserves
        if initial_reserves and final.protocol_reserves < initial_reserves // 10:
            warnings.append(ValidationWarning(
                severity="warning",
                category="sustainability",
                message="Protocol reserves fell below 10% of their starting level",
                details=f"Start: {initial_reserves}, end: {final.protocol_reserves}"
            ))

    return warnings
