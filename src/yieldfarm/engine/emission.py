"""Module: Emission Scheduler - Throttled, halving, capped minting of the subsidy token.

Key Concepts:
- Rate is expressed per nominal interval (not a real chain block time)
- Elapsed time is converted to whole intervals; the remainder is dropped
- Cumulative emission never exceeds the emission supply cap
"""

from ..config.schema import EmissionConfig
from ..errors import TooSoonError
from ..events import EMISSION_HALVING, EMISSION_MINTED
from ..logging_config import get_logger
from .clock import ManualClock
from .store import EmissionState, Store
from .token import Token

logger = get_logger("engine.emission")


class EmissionScheduler:
    """Mints new subsidy tokens on a halving schedule up to a hard cap."""

    def __init__(
        self,
        store: Store,
        token: Token,
        clock: ManualClock,
        config: EmissionConfig,
        recipient: str,
    ):
        """
        Initialize emission scheduler.

        Args:
            store: Protocol state store
            token: Subsidy token to mint
            clock: Protocol clock; genesis is read from it
            config: Emission parameters
            recipient: Address receiving minted tokens (the reserve ledger)
        """
        self.store = store
        self.token = token
        self.clock = clock
        self.config = config
        self.recipient = recipient

        now = clock.now()
        store.emission = EmissionState(
            total_emitted=0,
            emission_per_block=config.initial_emission_per_block,
            last_halving_time=now,
            last_emission_time=now,
        )

    @property
    def state(self) -> EmissionState:
        return self.store.emission

    def remaining_supply(self) -> int:
        return self.config.emission_supply - self.state.total_emitted

    def _apply_halving(self, now: int) -> None:
        state = self.state
        interval = self.config.halving_interval_seconds
        if now < state.last_halving_time + interval:
            return

        if self.config.catch_up_halvings:
            steps = (now - state.last_halving_time) // interval
            state.emission_per_block >>= steps
            state.last_halving_time += steps * interval
        else:
            steps = 1
            state.emission_per_block //= 2
            state.last_halving_time = now

        self.store.events.emit(
            EMISSION_HALVING, now,
            steps=steps,
            emission_per_block=state.emission_per_block,
        )

    def pending_emission(self, now: int = None) -> int:
        """Amount ``emit()`` would mint at ``now``, ignoring the throttle and halving."""
        now = self.clock.now() if now is None else now
        state = self.state
        intervals = (now - state.last_emission_time) // self.config.nominal_interval_seconds
        return min(intervals * state.emission_per_block, self.remaining_supply())

    def emit(self) -> int:
        """
        Mint the emission accrued since the last call.

        Returns:
            Amount minted (0 when nothing is due)

        Raises:
            TooSoonError: If the minimum interval since the last emission has not elapsed
        """
        now = self.clock.now()
        state = self.state
        earliest = state.last_emission_time + self.config.min_emission_interval_seconds
        if now < earliest:
            raise TooSoonError(now, earliest)

        self._apply_halving(now)

        intervals = (now - state.last_emission_time) // self.config.nominal_interval_seconds
        amount = intervals * state.emission_per_block
        amount = min(amount, self.remaining_supply())
        if amount <= 0:
            logger.debug("Nothing to emit", extra={"t": now, "intervals": intervals})
            return 0

        self.token.mint(self.recipient, amount)
        state.total_emitted += amount
        state.last_emission_time = now

        self.store.events.emit(
            EMISSION_MINTED, now,
            amount=amount,
            intervals=intervals,
            total_emitted=state.total_emitted,
        )
        return amount
