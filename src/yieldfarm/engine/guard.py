"""Reentrancy guard scoped to a single entry point."""

from contextlib import contextmanager
from typing import Iterator, Set

from ..errors import ReentrancyError


class ReentrancyGuard:
    """Exclusive in-progress markers, one per protected entry point."""

    def __init__(self, owner: str):
        self.owner = owner
        self._active: Set[str] = set()

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        """Acquire ``name`` for the duration of the block; released on every exit path."""
        if name in self._active:
            raise ReentrancyError(f"{self.owner}.{name}")
        self._active.add(name)
        try:
            yield
        finally:
            self._active.discard(name)

    def is_held(self, name: str) -> bool:
        return name in self._active
