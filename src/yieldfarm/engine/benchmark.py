"""Benchmark yield fed by the consensus oracle."""

from ..errors import InvalidInputError, InvalidStateError, UnauthorizedError
from ..events import BENCHMARK_UPDATED
from .clock import ManualClock
from .store import Benchmark, Store


class BenchmarkFeed:
    """Receives authenticated benchmark pushes and serves them to the bonus engine."""

    def __init__(
        self,
        store: Store,
        clock: ManualClock,
        consensus: str,
        default_yield_pct: int,
        max_yield_pct: int = 100,
    ):
        self.store = store
        self.clock = clock
        self.consensus = consensus
        self.default_yield_pct = default_yield_pct
        self.max_yield_pct = max_yield_pct

    def push_benchmark(self, caller: str, farm_id: str, round_id: int, score: int, benchmark: int) -> Benchmark:
        """
        Record the benchmark yield decided in a consensus round.

        Args:
            caller: Must be the designated consensus address
            farm_id: Farm the round was scored for
            round_id: Strictly increasing per farm
            score: Consensus score, carried for observers
            benchmark: Expected annual yield percentage
        """
        if caller != self.consensus:
            raise UnauthorizedError(caller, "push benchmarks")
        if farm_id not in self.store.farms:
            raise InvalidInputError(f"Unknown farm {farm_id}", field="farm_id")
        if not 0 <= benchmark <= self.max_yield_pct:
            raise InvalidInputError(
                f"Benchmark {benchmark} outside [0, {self.max_yield_pct}]", field="benchmark"
            )
        current = self.store.benchmarks.get(farm_id)
        if current is not None and round_id <= current.round_id:
            raise InvalidStateError(
                f"Stale round {round_id} for {farm_id}; last round {current.round_id}"
            )

        now = self.clock.now()
        record = Benchmark(yield_pct=benchmark, round_id=round_id, score=score, updated_at=now)
        self.store.benchmarks[farm_id] = record
        self.store.events.emit(
            BENCHMARK_UPDATED, now,
            farm_id=farm_id, round_id=round_id, score=score, benchmark=benchmark,
        )
        return record

    def benchmark_for(self, farm_id: str) -> int:
        record = self.store.benchmarks.get(farm_id)
        return self.default_yield_pct if record is None else record.yield_pct
