"""Reporting: tabular export and charts."""

from .charts import create_emission_chart, create_reserves_chart, create_revenue_split_chart
from .export import events_frame, export_csv, export_events_csv, export_json, snapshots_frame

__all__ = [
    "create_emission_chart",
    "create_reserves_chart",
    "create_revenue_split_chart",
    "events_frame",
    "export_csv",
    "export_events_csv",
    "export_json",
    "snapshots_frame",
]
