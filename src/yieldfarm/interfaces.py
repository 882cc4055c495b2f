"""Boundary contracts for collaborators consumed by the core.

Implementations live outside the core (see ``yieldfarm.simulation.collaborators``
for in-memory versions). Prices are 1e18 fixed point; a TWAP of 0 means
"unavailable".
"""

from typing import Protocol, Tuple


class PriceOracle(Protocol):
    def twap(self, base: str, quote: str, interval: int) -> int:
        ...


class Router(Protocol):
    address: str

    def best_swap_out(self, token_in: str, token_out: str, amount_in: int) -> Tuple[int, str]:
        """Quote ``(amount_out, route_id)`` for a swap."""
        ...

    def swap(self, token_in: str, token_out: str, amount_in: int, recipient: str) -> int:
        """Swap ``amount_in`` already transferred to ``address``; output goes to ``recipient``."""
        ...


class YieldStrategy(Protocol):
    address: str

    def deploy(self, amount: int) -> None:
        """Put ``amount`` of principal already transferred to ``address`` to work."""
        ...

    def withdraw(self, amount: int) -> None:
        """Return ``amount`` of principal to the owning farm."""
        ...

    def harvest(self) -> int:
        """Send accrued principal-asset yield to the owning farm; return the amount."""
        ...
