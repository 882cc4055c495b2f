"""Shared builders for protocol tests."""

import os
import sys
from types import SimpleNamespace

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from yieldfarm.config.loader import load_config
from yieldfarm.config.schema import Config
from yieldfarm.simulation.scenario import add_farm, build_protocol

WAD = 10**18
DAY = 86400
YEAR = 365 * DAY


def _config(overrides=None) -> Config:
    """Default config with dotted-path overrides, e.g. ``{"bonus.slash_fee_pct": 0}``."""
    data = load_config().to_dict()
    for path, value in (overrides or {}).items():
        section = data
        keys = path.split('.')
        for key in keys[:-1]:
            section = section[key]
        section[keys[-1]] = value
    return Config.from_dict(data)


def _env(
    overrides=None,
    reserves=1_000_000 * WAD,
    router_inventory=1_000_000 * WAD,
    verifiers=("verifier-1", "verifier-2", "verifier-3"),
    yodas=("yoda-1",),
):
    protocol = build_protocol(_config(overrides))
    if reserves:
        protocol.fund_reserves("admin", reserves)
    if router_inventory:
        protocol.token.transfer("admin", protocol.router.address, router_inventory)

    asset = protocol.add_asset("LP")
    root = add_farm(protocol, "root", "root-owner", asset, 8, verifier_split_pct=0, yoda_split_pct=0)
    protocol.set_root_farm("admin", "root")
    farm = add_farm(protocol, "farm-1", "farm-owner", asset, 8, verifiers=verifiers, yodas=yodas)

    def fund_lp(lp, amount, approve=True):
        asset.mint(lp, amount)
        if approve:
            protocol.token.approve(lp, protocol.ledger.address, 10**30)

    return SimpleNamespace(
        protocol=protocol,
        store=protocol.store,
        clock=protocol.clock,
        token=protocol.token,
        asset=asset,
        farm=farm,
        root=root,
        fund_lp=fund_lp,
    )


@pytest.fixture
def make_config():
    return _config


@pytest.fixture
def make_env():
    return _env


@pytest.fixture
def env():
    return _env()
