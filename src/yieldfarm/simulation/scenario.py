"""Protocol assembly with in-memory collaborators."""

from typing import Iterable, Optional

from ..config.schema import Config
from ..engine.clock import ManualClock
from ..engine.farm import Farm
from ..engine.protocol import Protocol
from ..engine.token import Token
from .collaborators import AccruingStrategy, FixedRateRouter, StaticPriceOracle


def build_protocol(config: Config, clock: Optional[ManualClock] = None) -> Protocol:
    """
    Build a protocol wired to a static oracle and a fixed-rate router.

    Args:
        config: Protocol configuration
        clock: Optional clock (defaults to one at ``simulation.genesis_time``)

    Returns:
        Protocol with the subsidy token registered on the router
    """
    oracle = StaticPriceOracle(config.simulation.oracle_price)
    router = FixedRateRouter("router", {}, rate=config.simulation.router_rate)
    protocol = Protocol(config, oracle, router, clock=clock)
    router.register(protocol.token)
    return protocol


def add_farm(
    protocol: Protocol,
    farm_id: str,
    owner: str,
    asset: Token,
    apy_pct: int,
    verifiers: Iterable[str] = (),
    yodas: Iterable[str] = (),
    verifier_split_pct: Optional[int] = None,
    yoda_split_pct: Optional[int] = None,
) -> Farm:
    """Create a farm backed by an ``AccruingStrategy`` and enrol its stakeholders."""
    strategy = AccruingStrategy(asset, protocol.clock, f"strategy:{farm_id}", apy_pct)
    farm = protocol.create_farm(
        protocol.admin, farm_id, owner, asset, strategy,
        verifier_split_pct=verifier_split_pct,
        yoda_split_pct=yoda_split_pct,
    )
    strategy.bind(farm.address)
    protocol.router.register(asset)
    for verifier in verifiers:
        protocol.registry.add_verifier(owner, farm_id, verifier)
    for yoda in yodas:
        protocol.registry.add_yoda(owner, farm_id, yoda)
    return farm
