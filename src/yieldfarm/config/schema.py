"""Pydantic schema for configuration validation."""

import hashlib
import json
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

WAD = 10**18


class TokenConfig(BaseModel):
    """Subsidy token parameters."""
    symbol: str = Field(default="BONUS", min_length=1, description="Subsidy token symbol")
    address: str = Field(default="token:bonus", min_length=1, description="Token contract address")
    max_supply: int = Field(gt=0, description="Hard cap on total token supply")
    initial_supply: int = Field(ge=0, default=0, description="Premint held by the protocol admin")

    @model_validator(mode='after')
    def validate_premint(self):
        """Premint cannot exceed the cap."""
        if self.initial_supply > self.max_supply:
            raise ValueError(
                f"initial_supply ({self.initial_supply}) exceeds max_supply ({self.max_supply})"
            )
        return self


class EmissionConfig(BaseModel):
    """Emission scheduler parameters."""
    emission_supply: int = Field(gt=0, description="Cap on cumulative emitted tokens")
    initial_emission_per_block: int = Field(ge=0, description="Tokens per nominal interval")
    nominal_interval_seconds: int = Field(default=30, gt=0, description="Nominal seconds per emission unit")
    min_emission_interval_seconds: int = Field(default=20, ge=0, description="Throttle between emissions")
    halving_interval_seconds: int = Field(gt=0, description="Seconds between rate halvings")
    catch_up_halvings: bool = Field(
        default=False,
        description="Apply every elapsed halving on emit instead of a single step"
    )


class BonusConfig(BaseModel):
    """Deposit bonus parameters."""
    deposit_bonus_ratio_pct: int = Field(default=70, ge=0, le=100, description="Share of expected yield paid as bonus")
    default_benchmark_yield_pct: int = Field(default=10, ge=0, le=100, description="Benchmark when none pushed")
    max_benchmark_yield_pct: int = Field(default=100, gt=0, description="Upper bound for pushed benchmarks")
    twap_interval_seconds: int = Field(default=1800, gt=0, description="TWAP window for oracle pricing")
    min_lock_seconds: int = Field(default=0, ge=0, description="Minimum lock time on deposit")
    max_lock_seconds: int = Field(default=4 * 365 * 86400, gt=0, description="Maximum lock time on deposit")
    slash_fee_pct: int = Field(default=10, ge=0, le=100, description="Fee on early withdrawal, paid to farm owner")

    @field_validator('max_lock_seconds')
    @classmethod
    def validate_lock_range(cls, v, info):
        """Ensure min <= max lock."""
        if 'min_lock_seconds' in info.data and v < info.data['min_lock_seconds']:
            raise ValueError("max_lock_seconds must be >= min_lock_seconds")
        return v


class CooldownConfig(BaseModel):
    """Cooldown queue parameters."""
    period_seconds: int = Field(default=7 * 86400, ge=0, description="Delay before reversed bonuses recycle")


class RevenueConfig(BaseModel):
    """Revenue split parameters."""
    lp_share_pct: int = Field(default=50, ge=0, le=100, description="Share of converted yield to LP accumulator")
    protocol_fee_rate_pct: int = Field(default=10, ge=0, le=100, description="Protocol fee on owner share")
    reserve_ratio_pct: int = Field(default=50, ge=0, le=100, description="Share of protocol fee kept in reserves")
    max_slippage_pct: int = Field(default=1, ge=0, le=100, description="Allowed shortfall vs router quote")
    default_verifier_split_pct: int = Field(default=10, ge=0, le=100)
    default_yoda_split_pct: int = Field(default=10, ge=0, le=100)

    @model_validator(mode='after')
    def validate_splits(self):
        """Verifier and yoda splits leave a non-negative owner split."""
        total = self.default_verifier_split_pct + self.default_yoda_split_pct
        if total > 100:
            raise ValueError(
                f"Verifier + yoda splits must be <= 100, got {total}. "
                f"Verifier: {self.default_verifier_split_pct}, "
                f"Yoda: {self.default_yoda_split_pct}"
            )
        return self


class AccumulatorConfig(BaseModel):
    """Yield accumulator behavior."""
    settle_pending_on_change: bool = Field(
        default=False,
        description="Pay out pending yield before re-basing debt on deposit/withdraw"
    )


class LoggingConfig(BaseModel):
    """Logging output."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_format: bool = Field(default=True)


class Addresses(BaseModel):
    """Distinguished protocol addresses."""
    admin: str = Field(default="admin", min_length=1)
    ledger: str = Field(default="ledger", min_length=1)
    distributor: str = Field(default="distributor", min_length=1)
    consensus: str = Field(default="consensus", min_length=1)


class Simulation(BaseModel):
    """Scenario simulation parameters."""
    genesis_time: int = Field(default=1_700_000_000, ge=0, description="Clock start (unix seconds)")
    num_steps: int = Field(default=48, gt=0, description="Number of simulated steps")
    step_seconds: int = Field(default=86400, gt=0, description="Clock advance per step")
    num_providers: int = Field(default=8, gt=0, description="Liquidity providers in the scenario")
    num_verifiers: int = Field(default=3, ge=0)
    num_yodas: int = Field(default=2, ge=0)
    random_seed: int = Field(default=42, description="Random seed for reproducibility")
    initial_reserves: int = Field(ge=0, description="Tokens funded into protocol reserves at start")
    router_inventory: int = Field(default=0, ge=0, description="Subsidy tokens the router can sell")
    provider_balance: int = Field(gt=0, description="Principal asset held by each provider")
    strategy_apy_pct: int = Field(default=8, ge=0, le=100, description="Yield strategy APY")
    oracle_price: int = Field(default=WAD, ge=0, description="TWAP price (1e18 = 1:1); 0 = unavailable")
    router_rate: int = Field(default=WAD, gt=0, description="Subsidy out per principal in, 1e18 scaled")
    deposit_probability: float = Field(default=0.5, ge=0, le=1)
    withdraw_probability: float = Field(default=0.2, ge=0, le=1)
    claim_probability: float = Field(default=0.3, ge=0, le=1)


class Config(BaseModel):
    """Complete configuration for the yield-farming core."""
    token: TokenConfig
    emission: EmissionConfig
    bonus: BonusConfig = Field(default_factory=BonusConfig)
    cooldown: CooldownConfig = Field(default_factory=CooldownConfig)
    revenue: RevenueConfig = Field(default_factory=RevenueConfig)
    accumulator: AccumulatorConfig = Field(default_factory=AccumulatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    addresses: Addresses = Field(default_factory=Addresses)
    simulation: Simulation

    @model_validator(mode='after')
    def validate_emission_cap(self):
        """Emission cap must fit under the token cap next to the premint."""
        headroom = self.token.max_supply - self.token.initial_supply
        if self.emission.emission_supply > headroom:
            raise ValueError(
                f"emission_supply ({self.emission.emission_supply}) exceeds token headroom ({headroom})"
            )
        return self

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
