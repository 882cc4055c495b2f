"""Tests for the throttled, halving, capped emission schedule."""

import pytest

from yieldfarm.errors import TooSoonError, UnauthorizedError
from yieldfarm.events import EMISSION_HALVING

from conftest import WAD


class TestEmission:

    def test_worked_example(self, env):
        """1e18 per 30s interval over 90s mints 3e18."""
        env.clock.advance(90)
        assert env.protocol.pull_emission("admin") == 3 * WAD
        assert env.protocol.ledger.emission_reserve == 3 * WAD
        assert env.protocol.ledger.protocol_reserves == 1_000_000 * WAD + 3 * WAD
        assert env.token.balance_of("ledger") == 1_000_000 * WAD + 3 * WAD

    def test_throttle(self, env):
        env.clock.advance(90)
        env.protocol.pull_emission("admin")
        env.clock.advance(10)
        with pytest.raises(TooSoonError):
            env.protocol.pull_emission("admin")

    def test_partial_interval_mints_nothing(self, env):
        env.clock.advance(25)
        assert env.protocol.pull_emission("admin") == 0
        # The partial interval is kept for the next call
        env.clock.advance(5)
        assert env.protocol.pull_emission("admin") == WAD

    def test_remainder_dropped(self, env):
        env.clock.advance(100)
        assert env.protocol.pull_emission("admin") == 3 * WAD
        assert env.store.emission.last_emission_time == env.clock.now()

    def test_only_owner_pulls(self, env):
        env.clock.advance(90)
        with pytest.raises(UnauthorizedError):
            env.protocol.pull_emission("mallory")

    def test_single_step_halving(self, make_env):
        env = make_env({"emission.halving_interval_seconds": 3600})
        env.clock.advance(3 * 3600)
        # Only one halving applies however many intervals passed
        assert env.protocol.pull_emission("admin") == 360 * WAD // 2
        assert env.store.emission.emission_per_block == WAD // 2
        assert env.store.emission.last_halving_time == env.clock.now()
        assert env.store.events.of_kind(EMISSION_HALVING)[0].data["steps"] == 1

    def test_catch_up_halving(self, make_env):
        env = make_env({
            "emission.halving_interval_seconds": 3600,
            "emission.catch_up_halvings": True,
        })
        env.clock.advance(3 * 3600)
        assert env.protocol.pull_emission("admin") == 360 * (WAD >> 3)
        assert env.store.emission.emission_per_block == WAD >> 3

    def test_cap_clamps_emission(self, make_env):
        env = make_env({"emission.emission_supply": 10 * WAD})
        env.clock.advance(3000)
        assert env.protocol.pull_emission("admin") == 10 * WAD
        env.clock.advance(3000)
        assert env.protocol.pull_emission("admin") == 0
        assert env.store.emission.total_emitted == 10 * WAD

    def test_pending_emission_matches_emit(self, env):
        env.clock.advance(600)
        pending = env.protocol.scheduler.pending_emission()
        assert env.protocol.pull_emission("admin") == pending == 20 * WAD
