"""Module: Reserve Ledger - Bookkeeping for protocol-held subsidy-token balances."""

from typing import Optional

from ..errors import InsufficientReservesError, InvalidInputError, UnauthorizedError
from ..events import RESERVES_FUNDED
from .clock import ManualClock
from .emission import EmissionScheduler
from .guard import ReentrancyGuard
from .store import ReserveState, Store
from .token import Token


class ReserveLedger:
    """Protocol reserves and emission reserve held at ``address``.

    The two counters are credited independently; they are not exclusive
    claims on the holder's balance.
    """

    def __init__(
        self,
        store: Store,
        token: Token,
        clock: ManualClock,
        owner: str,
        address: str,
        scheduler: Optional[EmissionScheduler] = None,
    ):
        self.store = store
        self.token = token
        self.clock = clock
        self.owner = owner
        self.address = address
        self.scheduler = scheduler
        self.guard = ReentrancyGuard("ledger")

    @property
    def state(self) -> ReserveState:
        return self.store.reserves

    @property
    def protocol_reserves(self) -> int:
        return self.state.protocol_reserves

    @property
    def emission_reserve(self) -> int:
        return self.state.emission_reserve

    def holdings(self) -> int:
        """Actual token balance backing the counters (and any queued cooldown)."""
        return self.token.balance_of(self.address)

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError("Credit must be non-negative", field="amount")
        self.state.protocol_reserves += amount

    def debit(self, amount: int) -> None:
        """Debit protocol reserves; fails rather than clamping."""
        if amount <= 0:
            raise InvalidInputError("Debit must be positive", field="amount")
        if amount > self.state.protocol_reserves:
            raise InsufficientReservesError(amount, self.state.protocol_reserves)
        self.state.protocol_reserves -= amount

    def record_emission(self, amount: int) -> None:
        self.state.protocol_reserves += amount
        self.state.emission_reserve += amount

    def fund(self, sender: str, amount: int) -> None:
        """Move tokens from ``sender`` into the ledger and credit protocol reserves."""
        with self.guard.hold("fund"), self.store.atomic():
            self.token.transfer(sender, self.address, amount)
            self.credit(amount)
            self.store.events.emit(
                RESERVES_FUNDED, self.clock.now(),
                sender=sender, amount=amount,
                protocol_reserves=self.state.protocol_reserves,
            )

    def pull_emission(self, caller: str) -> int:
        """
        Trigger the emission scheduler and book the minted amount.

        Args:
            caller: Must be the ledger owner

        Returns:
            Amount minted and credited to both counters
        """
        if caller != self.owner:
            raise UnauthorizedError(caller, "pull emission")
        if self.scheduler is None:
            raise InvalidInputError("No emission scheduler attached", field="scheduler")
        with self.guard.hold("pull_emission"), self.store.atomic():
            minted = self.scheduler.emit()
            if minted:
                self.record_emission(minted)
            return minted
