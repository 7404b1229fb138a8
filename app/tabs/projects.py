"""
Renders the project list shown before a project is opened.

Projects come from ``simul_list``; when that call fails the fallback list
from config/scenarios.py is shown with a warning so the page stays usable.
"""
from __future__ import annotations

import logging
from typing import Any

import pandas as pd
import streamlit as st

import services.audit as audit
from config.constants import QUERY_REF_ADEME, REF_ADEME_RE
from config.scenarios import FALLBACK_PROJECTS
from core.errors import BackendError

logger = logging.getLogger(__name__)


def load_projects(client: Any) -> tuple[list[dict], bool]:
    """Return ``(projects, live)``; ``live`` is False when the fallback is used."""
    try:
        return client.list_projects(), True
    except BackendError as exc:
        logger.warning("Project list unavailable, using fallback: %s", exc)
        return [dict(p) for p in FALLBACK_PROJECTS], False


def validate_ref(ref: str) -> bool:
    return bool(REF_ADEME_RE.match(ref))


def _open(ref_ademe: str) -> None:
    st.session_state.ref_ademe = ref_ademe
    st.query_params[QUERY_REF_ADEME] = ref_ademe


def _create(client: Any) -> None:
    ref = st.session_state.get("new_ref_ademe", "").strip().upper()
    if not validate_ref(ref):
        st.session_state.project_error = "Reference must be 13 uppercase letters or digits."
        return
    try:
        client.create_project(ref)
    except BackendError as exc:
        logger.warning("Project creation failed: %s", exc)
        st.session_state.project_error = f"Failed to create project {ref}."
        return
    audit.log_event("PROJECT_CREATED", ref)
    st.session_state.new_ref_ademe = ""
    st.session_state.project_error = None


def _delete(client: Any, ref_ademe: str) -> None:
    try:
        client.delete_project(ref_ademe)
    except BackendError as exc:
        logger.warning("Project deletion failed: %s", exc)
        st.session_state.project_error = f"Failed to delete project {ref_ademe}."
        return
    audit.log_event("PROJECT_DELETED", ref_ademe)
    st.session_state.project_error = None


def render(client: Any) -> None:
    """Renders the project list page."""
    st.header("Simulation Projects")

    if st.session_state.get("project_error"):
        st.error(st.session_state.project_error)

    projects, live = load_projects(client)
    if not live:
        st.warning("Project list unavailable; showing sample projects.")

    if not projects:
        st.info("No projects yet. Create one below.")
    else:
        st.dataframe(pd.DataFrame(projects), hide_index=True, use_container_width=True)
        for project in projects:
            ref = str(project.get("ref_ademe", ""))
            c1, c2, c3, c4 = st.columns([3, 2, 1, 1])
            c1.markdown(f"`{ref}`")
            c2.caption(str(project.get("status", "")))
            c3.button("Open", key=f"open_{ref}", on_click=_open, args=(ref,), use_container_width=True)
            c4.button("🗑️", key=f"delete_{ref}", help="Delete project", disabled=not live,
                      on_click=_delete, args=(client, ref), use_container_width=True)

    with st.container(border=True):
        st.subheader("New project")
        c1, c2 = st.columns([3, 1])
        c1.text_input("ADEME reference", key="new_ref_ademe", max_chars=13,
                      placeholder="2508E0243162W", label_visibility="collapsed")
        c2.button("Create", type="primary", on_click=_create, args=(client,), use_container_width=True)
