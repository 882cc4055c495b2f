"""Tests for the revenue split and distribution."""

import pytest

from yieldfarm.errors import ExternalCallError, InvalidInputError
from yieldfarm.events import REVENUE_DISTRIBUTED, YIELD_STRANDED
from yieldfarm.simulation.scenario import add_farm

from conftest import WAD, YEAR


def distribute(env, farm_id, amount):
    env.token.mint("distributor", amount)
    return env.protocol.distributor.distribute(farm_id, amount)


class TestSplit:

    def test_split_amounts(self, env):
        dist = env.protocol.distributor.split("farm-1", 100 * WAD)
        assert dist.verifier_amount == 10 * WAD
        assert dist.yoda_amount == 10 * WAD
        assert dist.owner_amount == 80 * WAD
        assert dist.protocol_fee == 8 * WAD
        assert dist.reserve_portion == 4 * WAD
        assert dist.root_portion == 4 * WAD
        assert dist.final_owner_amount == 72 * WAD

    def test_per_head_dust_stays_with_distributor(self, env):
        dist = distribute(env, "farm-1", 100)
        # 10 among three verifiers: 3 each, 1 left over
        assert dist.payouts["verifier-1"] == 3
        assert dist.payouts["yoda-1"] == 10
        assert dist.payouts["farm-owner"] == 72
        assert dist.dust == 1
        assert env.token.balance_of("distributor") == 1
        assert env.protocol.distributor.dust("farm-1") == 1

    def test_every_token_is_accounted_for(self, env):
        net = 987_654_321
        dist = distribute(env, "farm-1", net)
        routed = sum(dist.payouts.values()) + dist.to_reserves + dist.root_portion + dist.dust
        assert routed == net

    def test_rejects_zero_revenue(self, env):
        with pytest.raises(InvalidInputError):
            env.protocol.distributor.distribute("farm-1", 0)


class TestRouting:

    def test_reserve_portion_credited(self, env):
        before = env.protocol.ledger.protocol_reserves
        distribute(env, "farm-1", 100 * WAD)
        assert env.protocol.ledger.protocol_reserves == before + 4 * WAD
        assert env.protocol.ledger.holdings() == before + 4 * WAD

    def test_zero_verifiers_share_goes_to_reserves(self, env):
        farm = add_farm(env.protocol, "farm-2", "owner-2", env.asset, 8, yodas=["yoda-1"])
        before = env.protocol.ledger.protocol_reserves

        dist = distribute(env, farm.farm_id, 100 * WAD)

        assert dist.to_reserves == 10 * WAD + 4 * WAD
        assert env.protocol.ledger.protocol_reserves == before + 14 * WAD
        assert not any(r.startswith("verifier") for r in dist.payouts)

    def test_root_portion_reaches_root_lps(self, env):
        env.fund_lp("carol", 1000 * WAD)
        env.root.deposit("carol", 1000 * WAD, 0)

        distribute(env, "farm-1", 100 * WAD)

        assert env.root.pending_yield("carol") == 4 * WAD
        assert env.root.claim("carol") == 4 * WAD

    def test_root_portion_strands_without_root_liquidity(self, env):
        distribute(env, "farm-1", 100 * WAD)
        assert env.store.stranded_yield["root"] == 4 * WAD
        assert env.token.balance_of(env.root.address) == 4 * WAD
        assert len(env.store.events.of_kind(YIELD_STRANDED, "root")) == 1

    def test_event_emitted(self, env):
        distribute(env, "farm-1", 100 * WAD)
        event = env.store.events.of_kind(REVENUE_DISTRIBUTED, "farm-1")[-1]
        assert event.data["owner_amount"] == 72 * WAD
        assert event.data["root_portion"] == 4 * WAD


class TestPullRevenue:
    """Harvest, conversion and routing through the farm."""

    def _accrue_one_year(self, env, lock=0):
        env.fund_lp("alice", 1000 * WAD)
        env.farm.deposit("alice", 1000 * WAD, lock)
        env.clock.advance(YEAR)

    def test_harvest_converted_and_split(self, env):
        self._accrue_one_year(env)
        result = env.farm.pull_revenue()

        # 8% APY on 1000 for one year, swapped 1:1
        assert result.harvested == 80 * WAD
        assert result.converted == 80 * WAD
        assert result.lp_share == 40 * WAD
        assert result.lp_share_distributed
        assert result.distribution.net_revenue == 40 * WAD
        assert env.farm.pending_yield("alice") == 40 * WAD
        assert env.farm.claim("alice") == 40 * WAD
        assert env.farm.claim("alice") == 0

    def test_nothing_to_harvest(self, env):
        result = env.farm.pull_revenue()
        assert result.harvested == 0
        assert result.distribution is None

    def test_slippage_aborts_and_rolls_back(self, env):
        self._accrue_one_year(env)
        env.protocol.router.shortfall = 2 * WAD  # 2.5% short of the quote

        with pytest.raises(ExternalCallError) as excinfo:
            env.farm.pull_revenue()

        assert excinfo.value.target == "router"
        assert env.farm.pending_yield("alice") == 0
        assert env.asset.balance_of(env.farm.address) == 0
        assert env.asset.balance_of("router") == 0
        assert not env.farm.guard.is_held("pull_revenue")

    def test_slippage_within_tolerance(self, env):
        self._accrue_one_year(env)
        env.protocol.router.shortfall = WAD // 2  # 0.625% short
        result = env.farm.pull_revenue()
        assert result.converted == 80 * WAD - WAD // 2

    def test_harvest_survives_rolled_back_pull(self, env):
        self._accrue_one_year(env)
        env.protocol.router.shortfall = 2 * WAD
        with pytest.raises(ExternalCallError):
            env.farm.pull_revenue()
        assert env.farm.strategy.accrued == 0
        assert env.store.accrual_marks[env.farm.strategy.address] == env.clock.now() - YEAR

        env.protocol.router.shortfall = 0
        result = env.farm.pull_revenue()
        assert result.harvested == 80 * WAD
        assert env.farm.pending_yield("alice") == 40 * WAD
