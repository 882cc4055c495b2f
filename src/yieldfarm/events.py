"""Produced events for off-chain observers and test harnesses."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .logging_config import get_logger

logger = get_logger("events")

BONUS_ISSUED = "bonus.issued"
BONUS_REVERSED = "bonus.reversed"
BONUS_UNPINNED = "bonus.unpinned"
BONUS_FAILED = "bonus.failed"
REVENUE_DISTRIBUTED = "revenue.distributed"
REVENUE_PULLED = "revenue.pulled"
YIELD_INJECTED = "yield.injected"
YIELD_STRANDED = "yield.stranded"
YIELD_CLAIMED = "yield.claimed"
EMISSION_MINTED = "emission.minted"
EMISSION_HALVING = "emission.halving"
COOLDOWN_QUEUED = "cooldown.queued"
COOLDOWN_RECYCLED = "cooldown.recycled"
POSITION_DEPOSITED = "position.deposited"
POSITION_WITHDRAWN = "position.withdrawn"
BENCHMARK_UPDATED = "benchmark.updated"
RESERVES_FUNDED = "reserves.funded"
FARM_CREATED = "farm.created"


@dataclass(frozen=True)
class ProtocolEvent:
    """A single emitted event."""
    kind: str
    timestamp: int
    data: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only event log; every event is also logged."""

    def __init__(self):
        self.events: List[ProtocolEvent] = []
        self._rolled_back = 0

    def emit(self, kind: str, timestamp: int, **data: Any) -> ProtocolEvent:
        event = ProtocolEvent(kind=kind, timestamp=timestamp, data=data)
        self.events.append(event)
        level = logging.WARNING if kind == BONUS_FAILED else logging.INFO
        logger.log(level, kind, extra={"event": kind, "t": timestamp, "event_data": data})
        return event

    def mark(self) -> int:
        return len(self.events)

    def truncate(self, mark: int) -> None:
        """Drop events recorded after ``mark`` (used on rollback)."""
        if mark < len(self.events):
            self._rolled_back += len(self.events) - mark
            del self.events[mark:]

    def of_kind(self, kind: str, farm_id: Optional[str] = None) -> List[ProtocolEvent]:
        return [
            e for e in self.events
            if e.kind == kind and (farm_id is None or e.data.get("farm_id") == farm_id)
        ]

    def __len__(self) -> int:
        return len(self.events)
