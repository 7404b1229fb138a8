"""
Renders the Results tab.

The scatter of recorded scenarios is the selection surface: picking a point
publishes ``SelectionChanged`` on the controller's dispatcher and mirrors
the ordinal into the ``simul_id`` query parameter so a reload restores it.
"""
from __future__ import annotations

from typing import Optional

import streamlit as st

from app.visualization import build_scatter, ordinal_from_selection, points_table
from config.constants import QUERY_SIMUL_ID
from core.bridge import SimulationController
from core.correlator import graph_points
from core.events import SelectionChanged
from core.model import find_active_group


def _clear_selection(ctrl: SimulationController) -> None:
    ctrl.dispatcher.publish(SelectionChanged(None))
    if QUERY_SIMUL_ID in st.query_params:
        del st.query_params[QUERY_SIMUL_ID]
    st.session_state.graph_nonce += 1


def card_details(ctrl: SimulationController) -> list[tuple[str, Optional[int], Optional[dict]]]:
    """(title, recorded level, card inputs) for every active card of the selection.

    Inputs are only extracted when the scenario recorded some.
    """
    detail = ctrl.selection
    rows = []
    for entry in ctrl.entries:
        group = find_active_group(entry)
        if group is None:
            continue
        level = ctrl.card_level(entry.id, group.id)
        inputs = None
        if detail is not None and detail.inputs is not None and level is not None:
            info = ctrl.step_info(entry.id, group.id, level)
            inputs = info["inputs"] if info is not None else None
        rows.append((f"{entry.label} · {group.label}", level, inputs))
    return rows


def _render_detail(ctrl: SimulationController) -> None:
    detail = ctrl.selection
    if detail is None:
        st.caption("Scenario details are unavailable.")
        return

    st.markdown(f"#### Scenario {detail.ordinal}")
    st.caption(f"Status: {detail.status or 'unknown'}")

    if detail.inputs is None:
        st.caption("No inputs recorded for this scenario.")
    for title, level, inputs in card_details(ctrl):
        with st.expander(f"{title} · level {level if level is not None else '—'}"):
            if level is None:
                st.caption("No recorded level for this card.")
            elif inputs is not None:
                st.json(inputs)

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Inputs**")
        st.json(detail.inputs if detail.inputs is not None else {}, expanded=False)
    with c2:
        st.markdown("**Outputs**")
        st.json(detail.outputs if detail.outputs is not None else {}, expanded=False)


def render(ctrl: SimulationController) -> None:
    """Renders the Results tab content."""
    st.button("⟳ Refresh results", on_click=ctrl.refresh_graph)

    points = graph_points(ctrl.graph_data)
    if not points:
        st.info("No recorded scenarios yet. Apply a configuration to generate results.")
        return

    event = st.plotly_chart(
        build_scatter(points, ctrl.selected_ordinal),
        use_container_width=True,
        config={"displayModeBar": False},
        on_select="rerun",
        selection_mode="points",
        key=f"results_graph_{st.session_state.graph_nonce}",
    )
    picked = ordinal_from_selection(event, points)
    if picked is not None and picked != ctrl.selected_ordinal:
        ctrl.dispatcher.publish(SelectionChanged(picked))
        st.query_params[QUERY_SIMUL_ID] = str(picked)
        st.rerun()

    with st.expander(f"All scenarios ({len(points)})"):
        st.dataframe(points_table(points), hide_index=True, use_container_width=True)

    if ctrl.selected_ordinal is None:
        st.caption("Click a point to inspect the configuration that produced it.")
        return

    st.button("✕ Clear selection", on_click=_clear_selection, args=(ctrl,))
    _render_detail(ctrl)
