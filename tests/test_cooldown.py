"""Tests for the cooldown queue and recycling."""

import pytest

from yieldfarm.engine import CooldownQueue, ManualClock, Store, Token
from yieldfarm.errors import InvalidInputError
from yieldfarm.events import COOLDOWN_RECYCLED

from conftest import DAY, WAD, YEAR

PERIOD = 100


def make_queue():
    store = Store()
    clock = ManualClock(1000)
    token = Token(store, "token:bonus", "BONUS")
    token.mint("ledger", 1000)
    return clock, token, CooldownQueue(store, token, clock, holder="ledger", period=PERIOD)


class TestCooldownQueue:

    def test_release_boundary(self):
        """Entry queued at t0 recycles at t0 + P, not at t0 + P - 1."""
        clock, token, queue = make_queue()
        queue.enqueue(30)

        clock.advance(PERIOD - 1)
        assert queue.recycle_matured() == 0
        assert len(queue.entries) == 1

        clock.advance(1)
        assert queue.recycle_matured() == 30
        assert queue.entries == []

    def test_recycle_moves_to_unissued(self):
        clock, token, queue = make_queue()
        queue.enqueue(30)
        clock.advance(PERIOD)
        queue.recycle_matured()

        assert token.balance_of("ledger") == 970
        assert token.unissued() == 30
        assert token.total_supply() == 1000
        assert token.circulating() == 970

    def test_only_matured_entries_leave(self):
        clock, token, queue = make_queue()
        for amount in (1, 2, 3):
            queue.enqueue(amount)
        clock.advance(50)
        for amount in (10, 20):
            queue.enqueue(amount)

        clock.advance(PERIOD - 50)
        assert queue.matured_total() == 6
        assert queue.recycle_matured() == 6
        assert sorted(e.amount for e in queue.entries) == [10, 20]

        clock.advance(50)
        assert queue.recycle_matured() == 30
        assert queue.queued_total() == 0

    def test_empty_recycle_is_noop(self):
        clock, token, queue = make_queue()
        events_before = len(queue.store.events)
        assert queue.recycle_matured() == 0
        assert len(queue.store.events) == events_before

    def test_rejects_non_positive_amounts(self):
        _, _, queue = make_queue()
        with pytest.raises(InvalidInputError):
            queue.enqueue(0)


class TestCooldownThroughProtocol:

    def test_reversed_bonus_recycles_after_period(self, env):
        env.fund_lp("alice", 1000 * WAD)
        env.farm.deposit("alice", 1000 * WAD, YEAR)
        env.farm.withdraw("alice", 1000 * WAD)

        env.clock.advance(7 * DAY - 1)
        assert env.protocol.recycle_matured() == 0
        env.clock.advance(1)
        assert env.protocol.recycle_matured() == 70 * WAD

        assert env.token.unissued() == 70 * WAD
        assert env.protocol.cooldown.queued_total() == 0
        assert env.protocol.ledger.holdings() == env.protocol.ledger.protocol_reserves
        assert len(env.store.events.of_kind(COOLDOWN_RECYCLED)) == 1
