"""Module: Cooldown Queue - Delay and recycle bonus tokens returned by reversal."""

from typing import List

from ..errors import InvalidInputError
from ..events import COOLDOWN_QUEUED, COOLDOWN_RECYCLED
from .clock import ManualClock
from .guard import ReentrancyGuard
from .store import CooldownRecord, Store
from .token import Token


class CooldownQueue:
    """Reversed bonuses wait ``period`` seconds, then leave circulation.

    Queued tokens are held at ``holder`` (the reserve ledger address) and are
    not counted in protocol reserves. Recycling burns them from the holder and
    re-mints them into the token's unissued bucket.
    """

    def __init__(self, store: Store, token: Token, clock: ManualClock, holder: str, period: int):
        self.store = store
        self.token = token
        self.clock = clock
        self.holder = holder
        self.period = period
        self.guard = ReentrancyGuard("cooldown")

    @property
    def entries(self) -> List[CooldownRecord]:
        return self.store.cooldown

    def queued_total(self) -> int:
        return sum(entry.amount for entry in self.entries)

    def matured_total(self, now: int = None) -> int:
        now = self.clock.now() if now is None else now
        return sum(entry.amount for entry in self.entries if entry.release_time <= now)

    def enqueue(self, amount: int) -> CooldownRecord:
        if amount <= 0:
            raise InvalidInputError("Cooldown amount must be positive", field="amount")
        now = self.clock.now()
        record = CooldownRecord(amount=amount, release_time=now + self.period)
        self.entries.append(record)
        self.store.events.emit(
            COOLDOWN_QUEUED, now, amount=amount, release_time=record.release_time
        )
        return record

    def recycle_matured(self) -> int:
        """
        Recycle every matured entry. Anyone may call; nothing due is a no-op.

        Returns:
            Total amount recycled
        """
        with self.guard.hold("recycle_matured"), self.store.atomic():
            now = self.clock.now()
            entries = self.entries
            total = 0
            i = 0
            # Swap-with-last removal; entry order is not preserved.
            while i < len(entries):
                if entries[i].release_time <= now:
                    total += entries[i].amount
                    entries[i] = entries[-1]
                    entries.pop()
                else:
                    i += 1

            if total == 0:
                return 0

            self.token.burn(self.holder, total)
            self.token.mint(self.token.address, total)
            self.store.events.emit(
                COOLDOWN_RECYCLED, now, amount=total, remaining=len(entries)
            )
            return total
