"""In-memory collaborators: price oracle, swap router and yield strategy.

Strategy bookkeeping and token movements go through the shared store, so they
roll back with the core state when an entry point fails.
"""

from typing import Callable, Dict, Optional, Tuple

from ..engine.clock import ManualClock
from ..engine.token import Token
from ..errors import InvalidInputError

YEAR_SECONDS = 365 * 86400
PRICE_ONE = 10**18


class StaticPriceOracle:
    """TWAP oracle returning a settable price; can be switched to failing."""

    def __init__(self, price: int = PRICE_ONE):
        self.price = price
        self.fail_with: Optional[Exception] = None
        self.calls = 0

    def twap(self, base: str, quote: str, interval: int) -> int:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.price


class FixedRateRouter:
    """Swaps at a fixed 1e18-scaled rate out of its own inventory."""

    def __init__(self, address: str, tokens: Dict[str, Token], rate: int = PRICE_ONE):
        if rate <= 0:
            raise InvalidInputError("Router rate must be positive", field="rate")
        self.address = address
        self.tokens = tokens
        self.rate = rate
        self.shortfall = 0  # withheld from each swap output, to simulate slippage

    def register(self, token: Token) -> None:
        self.tokens[token.address] = token

    def best_swap_out(self, token_in: str, token_out: str, amount_in: int) -> Tuple[int, str]:
        return amount_in * self.rate // PRICE_ONE, f"{token_in}->{token_out}"

    def swap(self, token_in: str, token_out: str, amount_in: int, recipient: str) -> int:
        if self.tokens[token_in].balance_of(self.address) < amount_in:
            raise InvalidInputError("Router was not paid before swap", field="amount_in")
        amount_out, _ = self.best_swap_out(token_in, token_out, amount_in)
        amount_out -= min(self.shortfall, amount_out)
        if amount_out:
            self.tokens[token_out].transfer(self.address, recipient, amount_out)
        return amount_out


class AccruingStrategy:
    """Lending-style strategy accruing simple interest on deployed principal.

    All state lives in the shared store so it rolls back with the core:
    deployed principal is the asset balance at ``address``, accrued interest
    is minted to ``interest_address`` as it accrues, and the last accrual
    time is kept in ``Store.accrual_marks``. Harvest moves the interest
    balance to the owning farm.
    """

    def __init__(self, asset: Token, clock: ManualClock, address: str, apy_pct: int):
        self.asset = asset
        self.clock = clock
        self.address = address
        self.interest_address = f"{address}:interest"
        self.apy_pct = apy_pct
        self.farm_address: Optional[str] = None
        self.hook: Optional[Callable[[], None]] = None  # run on harvest, before accrual
        asset.store.accrual_marks[address] = clock.now()

    @property
    def deployed(self) -> int:
        return self.asset.balance_of(self.address)

    @property
    def accrued(self) -> int:
        return self.asset.balance_of(self.interest_address)

    def bind(self, farm_address: str) -> None:
        self.farm_address = farm_address

    def _accrue(self, principal: int) -> None:
        marks = self.asset.store.accrual_marks
        now = self.clock.now()
        elapsed = now - marks[self.address]
        interest = principal * self.apy_pct * elapsed // (100 * YEAR_SECONDS) if elapsed > 0 else 0
        if interest:
            self.asset.mint(self.interest_address, interest)
        marks[self.address] = now

    def deploy(self, amount: int) -> None:
        # The farm has already moved ``amount`` here.
        if self.deployed < amount:
            raise InvalidInputError("Strategy not funded for deploy", field="amount")
        self._accrue(self.deployed - amount)

    def withdraw(self, amount: int) -> None:
        self._accrue(self.deployed)
        if amount > self.deployed:
            raise InvalidInputError(
                f"Strategy holds {self.deployed}, cannot withdraw {amount}", field="amount"
            )
        self.asset.transfer(self.address, self.farm_address, amount)

    def harvest(self) -> int:
        if self.hook is not None:
            self.hook()
        self._accrue(self.deployed)
        amount = self.accrued
        if amount:
            self.asset.transfer(self.interest_address, self.farm_address, amount)
        return amount
