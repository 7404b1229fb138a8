"""
Results scatter for recorded scenarios.

One trace, one marker per scenario, so a Plotly selection's ``point_index``
is the position in ``points``; the selected scenario is drawn larger and in
the accent colour.
"""
from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd
import plotly.graph_objects as go

from core.correlator import GraphPoint

ACCENT = "#00C2A8"
MUTED = "#4A6FA5"

CHART_LAYOUT = dict(
    plot_bgcolor="rgba(0,0,0,0)",
    paper_bgcolor="rgba(0,0,0,0)",
    font=dict(family="Nunito Sans, sans-serif", size=11, color="#071A2F"),
    margin=dict(t=20, b=10, l=0, r=0),
    height=380,
    yaxis=dict(gridcolor="#E8EEF4", zerolinecolor="#D0DAE4", tickfont=dict(size=10)),
    xaxis=dict(tickfont=dict(size=10)),
    showlegend=False,
    clickmode="event+select",
)


_HOVER_INPUTS = 6


def hover_text(point: GraphPoint) -> str:
    """Tooltip body: consumption, emission and the inputs recorded for the row."""
    lines = [f"Scenario {point.ordinal}", f"Conso EP: {point.y:.1f} kWh/m²/an"]
    if point.emission is not None:
        lines.append(f"GES: {point.emission:.1f} kgCO₂/m²/an")
    if isinstance(point.inputs, dict) and point.inputs:
        items = list(point.inputs.items())
        lines += [f"{key}: {value}" for key, value in items[:_HOVER_INPUTS]]
        if len(items) > _HOVER_INPUTS:
            lines.append(f"… {len(items) - _HOVER_INPUTS} more")
    return "<br>".join(lines)


def build_scatter(points: Sequence[GraphPoint], selected_ordinal: Optional[int] = None) -> go.Figure:
    colours = [ACCENT if p.ordinal == selected_ordinal else MUTED for p in points]
    sizes = [16 if p.ordinal == selected_ordinal else 9 for p in points]
    fig = go.Figure(
        go.Scatter(
            x=[p.x for p in points],
            y=[p.y for p in points],
            mode="markers",
            customdata=[p.ordinal for p in points],
            marker=dict(color=colours, size=sizes, line=dict(width=1, color="#071A2F")),
            text=[hover_text(p) for p in points],
            hovertemplate="%{text}<extra></extra>",
        )
    )
    fig.update_layout(**CHART_LAYOUT, xaxis_title="Scenario", yaxis_title="Consommation EP (kWh/m²/an)")
    return fig


def points_table(points: Sequence[GraphPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Scenario": [p.ordinal for p in points],
            "Conso EP (kWh/m²/an)": [p.y for p in points],
            "GES (kgCO₂/m²/an)": [p.emission for p in points],
        }
    )


def ordinal_from_selection(event, points: Sequence[GraphPoint]) -> Optional[int]:
    """Scenario ordinal picked in a ``st.plotly_chart(on_select=...)`` event."""
    if not event:
        return None
    try:
        picked = event["selection"]["points"]
    except (KeyError, TypeError):
        return None
    if not picked:
        return None
    index = picked[0].get("point_index")
    if not isinstance(index, int) or not 0 <= index < len(points):
        return None
    return points[index].ordinal
