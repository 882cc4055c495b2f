"""Chart generation using Plotly."""

from typing import List

import plotly.graph_objects as go

from ..events import REVENUE_DISTRIBUTED, ProtocolEvent
from ..simulation.runner import LedgerSnapshot

WAD = 10**18

THEME = {
    "text": "#e8eaed",
    "text_secondary": "#9aa0a6",
    "grid": "rgba(30, 33, 36, 0.8)",
    "cyan": "#00d4ff",
    "cyan_fill": "rgba(0, 212, 255, 0.12)",
    "amber": "#ffab00",
    "amber_fill": "rgba(255, 171, 0, 0.12)",
    "red": "#ff5252",
    "green": "#00e676",
    "slate": "#5f6368",
}


def apply_dark_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply the dark theme layout for charts."""
    fig.update_layout(
        title={
            "text": title,
            "x": 0,
            "xanchor": "left",
            "font": {"size": 11, "color": THEME["text_secondary"], "family": "Inter, -apple-system, sans-serif"}
        },
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_dark",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(
            orientation="h",
            yanchor="bottom",
            y=1.02,
            xanchor="left",
            x=0,
            font=dict(size=10),
            bgcolor="rgba(0,0,0,0)"
        ),
        plot_bgcolor="rgba(8, 9, 10, 1)",
        paper_bgcolor="rgba(8, 9, 10, 1)",
        font={"color": THEME["text"], "size": 11},
        xaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
        yaxis=dict(gridcolor=THEME["grid"], zerolinecolor=THEME["grid"]),
    )


def _days(snapshots: List[LedgerSnapshot]) -> List[float]:
    start = snapshots[0].t if snapshots else 0
    return [(s.t - start) / 86400 for s in snapshots]


def create_reserves_chart(snapshots: List[LedgerSnapshot]) -> go.Figure:
    """Protocol reserves, emission reserve and actual ledger balance over time."""
    days = _days(snapshots)
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=days,
        y=[s.protocol_reserves / WAD for s in snapshots],
        name='Protocol reserves',
        mode='lines',
        line=dict(color=THEME["cyan"], width=2),
        fill='tozeroy',
        fillcolor=THEME["cyan_fill"]
    ))

    fig.add_trace(go.Scatter(
        x=days,
        y=[s.emission_reserve / WAD for s in snapshots],
        name='Emission reserve',
        mode='lines',
        line=dict(color=THEME["amber"], width=2)
    ))

    fig.add_trace(go.Scatter(
        x=days,
        y=[s.ledger_holdings / WAD for s in snapshots],
        name='Ledger balance',
        mode='lines',
        line=dict(color=THEME["text_secondary"], width=2, dash='dot')
    ))
    apply_dark_layout(fig, "Reserves", "Time (days)", "Tokens")

    return fig


def create_emission_chart(snapshots: List[LedgerSnapshot]) -> go.Figure:
    """Cumulative emission against the per-interval rate."""
    days = _days(snapshots)
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=days,
        y=[s.total_emitted / WAD for s in snapshots],
        name='Cumulative emission',
        mode='lines',
        line=dict(color=THEME["green"], width=2)
    ))

    fig.add_trace(go.Scatter(
        x=days,
        y=[s.emission_per_block / WAD for s in snapshots],
        name='Rate per interval',
        mode='lines',
        line=dict(color=THEME["red"], width=1, dash='dash'),
        yaxis='y2'
    ))
    apply_dark_layout(fig, "Emission", "Time (days)", "Tokens")
    fig.update_layout(yaxis2=dict(overlaying='y', side='right', showgrid=False))

    return fig


def create_revenue_split_chart(events: List[ProtocolEvent]) -> go.Figure:
    """Stacked bars of where distributed revenue went, per farm."""
    totals = {}
    for event in events:
        if event.kind != REVENUE_DISTRIBUTED:
            continue
        farm = totals.setdefault(event.data['farm_id'], {
            'Verifiers': 0, 'Yield yodas': 0, 'Owner': 0, 'Reserves': 0, 'Root farm': 0, 'Dust': 0,
        })
        farm['Verifiers'] += event.data['verifier_amount']
        farm['Yield yodas'] += event.data['yoda_amount']
        farm['Owner'] += event.data['owner_amount']
        farm['Reserves'] += event.data['to_reserves']
        farm['Root farm'] += event.data['root_portion']
        farm['Dust'] += event.data['dust']

    farm_ids = sorted(totals)
    colors = [THEME["cyan"], THEME["amber"], THEME["green"], THEME["slate"], THEME["red"], THEME["text_secondary"]]
    categories = ['Verifiers', 'Yield yodas', 'Owner', 'Reserves', 'Root farm', 'Dust']

    fig = go.Figure()
    for category, color in zip(categories, colors):
        fig.add_trace(go.Bar(
            x=farm_ids,
            y=[totals[f][category] / WAD for f in farm_ids],
            name=category,
            marker_color=color
        ))
    apply_dark_layout(fig, "Revenue Split", "Farm", "Tokens")
    fig.update_layout(barmode='stack', hovermode='closest')

    return fig
