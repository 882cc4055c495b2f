"""Fungible token ledger with an optional hard cap.

Balances live in the shared ``Store`` so they roll back with the rest of the
protocol state. The token's own address doubles as its unissued bucket:
supply recycled out of circulation is minted there.
"""

from typing import Optional

from ..errors import InvalidInputError, InvalidStateError, TransferFailedError
from .store import Store


class Token:
    """Minimal token: transfer, allowance, mint (capped), burn."""

    def __init__(self, store: Store, address: str, symbol: str, max_supply: Optional[int] = None):
        self.store = store
        self.address = address
        self.symbol = symbol
        self.max_supply = max_supply
        store.balances.setdefault(address, {})
        store.allowances.setdefault(address, {})
        store.total_supply.setdefault(address, 0)

    @property
    def _balances(self):
        return self.store.balances[self.address]

    @property
    def _allowances(self):
        return self.store.allowances[self.address]

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def total_supply(self) -> int:
        return self.store.total_supply[self.address]

    def unissued(self) -> int:
        """Tokens parked in the token's own address."""
        return self.balance_of(self.address)

    def circulating(self) -> int:
        return self.total_supply() - self.unissued()

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise InvalidInputError("Allowance must be non-negative", field="amount")
        self._allowances[(owner, spender)] = amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._check_amount(amount)
        if not recipient:
            raise InvalidInputError("Recipient address is empty", field="recipient")
        balance = self.balance_of(sender)
        if balance < amount:
            raise TransferFailedError(self.symbol, sender, amount, f"balance {balance}")
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TransferFailedError(self.symbol, owner, amount, f"allowance {allowed} for {spender}")
        self.transfer(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def mint(self, recipient: str, amount: int) -> None:
        self._check_amount(amount)
        new_supply = self.total_supply() + amount
        if self.max_supply is not None and new_supply > self.max_supply:
            raise InvalidStateError(
                f"{self.symbol} mint of {amount} exceeds max supply {self.max_supply}"
            )
        self.store.total_supply[self.address] = new_supply
        self._balances[recipient] = self.balance_of(recipient) + amount

    def burn(self, holder: str, amount: int) -> None:
        self._check_amount(amount)
        balance = self.balance_of(holder)
        if balance < amount:
            raise TransferFailedError(self.symbol, holder, amount, f"burn exceeds balance {balance}")
        self._balances[holder] = balance - amount
        self.store.total_supply[self.address] -= amount

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or amount <= 0:
            raise InvalidInputError(f"Amount must be a positive integer, got {amount!r}", field="amount")
