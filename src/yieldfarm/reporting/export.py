"""Export functionality for CSV and JSON."""

import json
from dataclasses import asdict
from typing import List

import pandas as pd

from ..events import ProtocolEvent
from ..simulation.runner import SimulationResult


def snapshots_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per step; per-farm accumulators become ``acc_<farm_id>`` columns."""
    data = []
    for snap in result.snapshots:
        row = asdict(snap)
        for farm_id, acc in row.pop('acc_yield_per_share').items():
            row[f'acc_{farm_id}'] = acc
        row['t_days'] = (snap.t - result.snapshots[0].t) / 86400
        data.append(row)
    return pd.DataFrame(data)


def events_frame(events: List[ProtocolEvent]) -> pd.DataFrame:
    """Flatten events into a frame: ``kind``, ``timestamp`` plus one column per data key."""
    rows = [{'kind': e.kind, 'timestamp': e.timestamp, **e.data} for e in events]
    if not rows:
        return pd.DataFrame(columns=['kind', 'timestamp'])
    return pd.DataFrame(rows)


def export_csv(result: SimulationResult, filepath: str):
    """Export per-step snapshots to CSV."""
    df = snapshots_frame(result)
    df.to_csv(filepath, index=False)


def export_events_csv(result: SimulationResult, filepath: str):
    """Export the event log to CSV."""
    events_frame(result.events).to_csv(filepath, index=False)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'snapshots': [asdict(snap) for snap in result.snapshots],
        'final_metrics': result.final_metrics,
        'invariant_errors': result.invariant_errors,
        'operation_failures': result.operation_failures,
        'warnings': [asdict(w) for w in result.warnings],
        'event_counts': events_frame(result.events)['kind'].value_counts().to_dict(),
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2, default=int)
