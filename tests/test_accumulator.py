"""Tests for the per-share yield accumulator."""

import pytest

from yieldfarm.engine import ManualClock, Store, Token, YieldAccumulator
from yieldfarm.engine.accumulator import SCALE
from yieldfarm.errors import NoActivePositionError
from yieldfarm.events import YIELD_STRANDED

FARM = "farm-1"
FARM_ADDRESS = "farm:farm-1"


def make_accumulator():
    store = Store()
    token = Token(store, "token:bonus", "BONUS")
    acc = YieldAccumulator(store, token, ManualClock(0))
    return store, token, acc


def set_principal(store, acc, lp, principal):
    """Move a position to ``principal`` the way the farm does."""
    position = store.position(FARM, lp)
    store.total_liquidity[FARM] = store.total_liquidity.get(FARM, 0) - position.principal + principal
    position.principal = principal
    acc.on_position_change(FARM, lp, principal)


def inject(token, acc, amount):
    token.mint(FARM_ADDRESS, amount)
    return acc.inject_yield(FARM, amount)


class TestInjection:

    def test_pro_rata_split(self):
        store, token, acc = make_accumulator()
        set_principal(store, acc, "alice", 300)
        set_principal(store, acc, "bob", 100)

        assert inject(token, acc, 400)
        assert acc.acc_per_share(FARM) == SCALE
        assert acc.pending_yield(FARM, "alice") == 300
        assert acc.pending_yield(FARM, "bob") == 100

    def test_zero_liquidity_strands_yield(self):
        store, token, acc = make_accumulator()
        assert not inject(token, acc, 50)
        assert acc.acc_per_share(FARM) == 0
        assert store.stranded_yield[FARM] == 50
        assert len(store.events.of_kind(YIELD_STRANDED)) == 1

        # Later depositors do not receive it
        set_principal(store, acc, "alice", 100)
        assert acc.pending_yield(FARM, "alice") == 0

    def test_late_joiner_gets_only_later_yield(self):
        store, token, acc = make_accumulator()
        set_principal(store, acc, "alice", 100)
        inject(token, acc, 100)
        set_principal(store, acc, "bob", 100)
        assert acc.pending_yield(FARM, "bob") == 0

        inject(token, acc, 200)
        assert acc.pending_yield(FARM, "alice") == 200
        assert acc.pending_yield(FARM, "bob") == 100

    def test_top_up_forfeits_pending(self):
        """Re-basing debt on a principal change drops unclaimed yield."""
        store, token, acc = make_accumulator()
        set_principal(store, acc, "alice", 100)
        inject(token, acc, 100)
        assert acc.pending_yield(FARM, "alice") == 100

        set_principal(store, acc, "alice", 200)
        assert acc.pending_yield(FARM, "alice") == 0

    def test_debt_never_exceeds_accumulated(self):
        store, token, acc = make_accumulator()
        set_principal(store, acc, "alice", 3)
        inject(token, acc, 7)
        set_principal(store, acc, "bob", 11)
        inject(token, acc, 13)
        for lp in ("alice", "bob"):
            principal = store.position(FARM, lp).principal
            assert acc.yield_debt(FARM, lp) <= principal * acc.acc_per_share(FARM) // SCALE


class TestClaim:

    def test_claim_twice(self):
        """Second claim with no new yield pays zero."""
        store, token, acc = make_accumulator()
        set_principal(store, acc, "alice", 100)
        inject(token, acc, 100)

        assert acc.claim(FARM, FARM_ADDRESS, "alice") == 100
        assert token.balance_of("alice") == 100
        assert acc.claim(FARM, FARM_ADDRESS, "alice") == 0
        assert token.balance_of("alice") == 100

    def test_claim_without_principal_fails(self):
        store, token, acc = make_accumulator()
        with pytest.raises(NoActivePositionError):
            acc.claim(FARM, FARM_ADDRESS, "nobody")

        set_principal(store, acc, "alice", 100)
        set_principal(store, acc, "alice", 0)
        with pytest.raises(NoActivePositionError):
            acc.claim(FARM, FARM_ADDRESS, "alice")

    def test_rounding_leaves_remainder_at_farm(self):
        store, token, acc = make_accumulator()
        for lp in ("a", "b", "c"):
            set_principal(store, acc, lp, 1)
        inject(token, acc, 10)

        paid = sum(acc.claim(FARM, FARM_ADDRESS, lp) for lp in ("a", "b", "c"))
        assert paid <= 10
        assert token.balance_of(FARM_ADDRESS) == 10 - paid
