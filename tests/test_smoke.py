"""Smoke tests for core yieldfarm modules.

These tests verify basic functionality without deep validation.
Run these first to catch obvious breakage.
"""

import io
import json
import logging

import pytest
import yaml
from pydantic import ValidationError

from yieldfarm.config.loader import load_config
from yieldfarm.config.schema import Config
from yieldfarm.engine import CallResult, ManualClock, Outcome, Store, Token
from yieldfarm.errors import (
    InvalidInputError,
    InvalidStateError,
    ReentrancyError,
    TransferFailedError,
    YieldFarmError,
    ZeroBonusError,
)
from yieldfarm.engine.guard import ReentrancyGuard
from yieldfarm.events import EventLog
from yieldfarm.logging_config import configure_logging, get_logger, reset_logging


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert config is not None
        assert isinstance(config, Config)

    def test_config_has_required_sections(self):
        """Config contains all expected sections."""
        config = load_config()
        for section in ('token', 'emission', 'bonus', 'cooldown', 'revenue',
                        'accumulator', 'logging', 'addresses', 'simulation'):
            assert hasattr(config, section)

    def test_config_hash_is_deterministic(self):
        """Same config produces same hash."""
        assert load_config().compute_hash() == load_config().compute_hash()

    def test_amounts_are_integers(self):
        """Token amounts load as exact integers, not floats."""
        config = load_config()
        assert isinstance(config.token.max_supply, int)
        assert config.emission.initial_emission_per_block == 10**18

    def test_load_from_explicit_path(self, tmp_path):
        """A YAML file on disk loads through the same validation."""
        data = load_config().to_dict()
        data["token"]["symbol"] = "ALT"
        path = tmp_path / "protocol.yaml"
        path.write_text(yaml.safe_dump(data))

        config = load_config(str(path))
        assert config.token.symbol == "ALT"
        assert config.token.max_supply == load_config().token.max_supply

    def test_token_section_fields(self):
        """Token section carries only what the core reads."""
        assert set(load_config().to_dict()["token"]) == {
            "symbol", "address", "max_supply", "initial_supply",
        }

    def test_emission_cap_must_fit_under_token_cap(self, make_config):
        """Emission supply above the token headroom is rejected."""
        with pytest.raises(ValidationError):
            make_config({"emission.emission_supply": 99_000_000 * 10**18})

    def test_splits_over_100_rejected(self, make_config):
        """Default verifier + yoda splits cannot exceed 100."""
        with pytest.raises(ValidationError):
            make_config({
                "revenue.default_verifier_split_pct": 60,
                "revenue.default_yoda_split_pct": 50,
            })

    def test_lock_range_validated(self, make_config):
        """max_lock_seconds below min_lock_seconds is rejected."""
        with pytest.raises(ValidationError):
            make_config({"bonus.min_lock_seconds": 100, "bonus.max_lock_seconds": 10})


class TestErrors:
    """Error hierarchy and recoverability flags."""

    def test_codes_are_distinct(self):
        assert InvalidInputError("x").code == "INVALID_INPUT"
        assert ZeroBonusError("f", "lp").code == "ZERO_BONUS"

    def test_zero_bonus_is_recoverable_input_error(self):
        exc = ZeroBonusError("farm-1", "alice")
        assert isinstance(exc, InvalidInputError)
        assert exc.recoverable
        assert not InvalidInputError("bad").recoverable

    def test_reentrancy_is_fatal_state_error(self):
        exc = ReentrancyError("farm.deposit")
        assert isinstance(exc, InvalidStateError)
        assert not exc.recoverable

    def test_all_derive_from_base(self):
        assert issubclass(TransferFailedError, YieldFarmError)


class TestStoreAtomicity:
    """Snapshot/restore semantics of Store.atomic()."""

    def test_rollback_on_error(self):
        """Failed block leaves no trace in tables or events."""
        store = Store()
        token = Token(store, "token:x", "X")
        token.mint("alice", 100)
        events_before = len(store.events)

        with pytest.raises(InvalidStateError):
            with store.atomic():
                token.transfer("alice", "bob", 40)
                store.events.emit("test.event", 0)
                raise InvalidStateError("boom")

        assert token.balance_of("alice") == 100
        assert token.balance_of("bob") == 0
        assert len(store.events) == events_before

    def test_nested_savepoint(self):
        """Inner failure rolls back only the inner block."""
        store = Store()
        token = Token(store, "token:x", "X")
        token.mint("alice", 100)

        with store.atomic():
            token.transfer("alice", "bob", 10)
            with pytest.raises(TransferFailedError):
                with store.atomic():
                    token.transfer("alice", "carol", 5)
                    token.transfer("alice", "carol", 1000)

        assert token.balance_of("bob") == 10
        assert token.balance_of("carol") == 0
        assert token.balance_of("alice") == 90


class TestToken:
    """Token ledger basics."""

    def test_cap_enforced(self):
        store = Store()
        token = Token(store, "token:x", "X", max_supply=100)
        token.mint("a", 100)
        with pytest.raises(InvalidStateError):
            token.mint("a", 1)

    def test_rejects_zero_and_float_amounts(self):
        token = Token(Store(), "token:x", "X")
        with pytest.raises(InvalidInputError):
            token.mint("a", 0)
        with pytest.raises(InvalidInputError):
            token.mint("a", 1.5)

    def test_transfer_from_needs_allowance(self):
        token = Token(Store(), "token:x", "X")
        token.mint("owner", 50)
        with pytest.raises(TransferFailedError):
            token.transfer_from("spender", "owner", "dest", 10)
        token.approve("owner", "spender", 10)
        token.transfer_from("spender", "owner", "dest", 10)
        assert token.balance_of("dest") == 10
        assert token.allowance("owner", "spender") == 0

    def test_unissued_bucket(self):
        """Balance at the token's own address is not circulating."""
        token = Token(Store(), "token:x", "X")
        token.mint("a", 70)
        token.mint("token:x", 30)
        assert token.unissued() == 30
        assert token.circulating() == 70


class TestClockAndGuard:

    def test_clock_is_monotonic(self):
        clock = ManualClock(100)
        clock.advance(5)
        assert clock.now() == 105
        with pytest.raises(InvalidInputError):
            clock.set(50)

    def test_guard_rejects_nested_entry_and_releases(self):
        guard = ReentrancyGuard("farm")
        with guard.hold("deposit"):
            with pytest.raises(ReentrancyError):
                with guard.hold("deposit"):
                    pass
        assert not guard.is_held("deposit")

    def test_guard_released_on_error(self):
        guard = ReentrancyGuard("farm")
        with pytest.raises(ValueError):
            with guard.hold("withdraw"):
                raise ValueError("fail")
        assert not guard.is_held("withdraw")


class TestCallResult:

    def test_outcomes(self):
        assert CallResult.ok(5).is_ok
        assert CallResult.ok(5).value == 5
        result = CallResult.recoverable("no reserves", code="INSUFFICIENT_RESERVES")
        assert result.is_recoverable and result.outcome is Outcome.RECOVERABLE
        assert CallResult.fatal("nope").is_fatal


class TestLogging:
    """Structured JSON logging."""

    def teardown_method(self):
        reset_logging()

    def test_json_lines_with_extra_fields(self):
        buf = io.StringIO()
        configure_logging(level="INFO", json_format=True, stream=buf)
        get_logger("test").info("hello", extra={"farm_id": "farm-1"})

        record = json.loads(buf.getvalue().strip().splitlines()[-1])
        assert record["message"] == "hello"
        assert record["logger"] == "yieldfarm.test"
        assert record["farm_id"] == "farm-1"

    def test_events_are_logged(self):
        buf = io.StringIO()
        configure_logging(level="INFO", stream=buf)
        EventLog().emit("bonus.failed", 42, farm_id="farm-1", stage="issue")

        record = json.loads(buf.getvalue().strip().splitlines()[-1])
        assert record["level"] == "WARNING"
        assert record["event"] == "bonus.failed"
        assert record["event_data"]["stage"] == "issue"

    def test_configure_is_idempotent(self):
        configure_logging(stream=io.StringIO())
        configure_logging(stream=io.StringIO())
        assert len(logging.getLogger("yieldfarm").handlers) == 1
