import logging
from typing import Any, Optional

import streamlit as st

import services.audit as audit
from core.errors import BackendError
from services.auth import Session

logger = logging.getLogger(__name__)


def frontend_outdated(settings) -> bool:
    """The backoffice answers ``lastversion: false`` when a newer frontend is deployed."""
    return settings.get("lastversion") is False


def render(client: Any, session: Optional[Session], frontend_version: str):
    """Renders the Settings tab content."""
    st.header("Backoffice Configuration")

    # Section 1: Connection
    with st.container(border=True):
        st.subheader("Connection")
        c1, c2 = st.columns(2)
        c1.metric("Frontend Version", frontend_version)
        c2.metric("Session", "Active" if session is not None else "Signed out")
        if session is not None and session.user:
            st.caption(f"Signed in as {session.user.get('name') or session.user.get('email', '')}")

    if session is None:
        st.warning("An access token is required to read backoffice settings.")
        return

    # Section 2: Backoffice settings
    try:
        settings = client.fetch_settings(session, frontend_version)
    except BackendError as exc:
        logger.warning("Settings unavailable: %s", exc)
        st.error("Failed to load backoffice settings.")
        settings = None

    if settings is not None:
        if frontend_outdated(settings):
            st.warning(f"A newer version of the simulator is available (running {frontend_version}). Please reload the page.")

        with st.container(border=True):
            st.subheader("Simulation Engine")
            with st.form("form_backoffice_settings"):
                endpoint = st.text_input(
                    "3CL endpoint",
                    value=str(settings.get("3cl_endpoint") or ""),
                    help="Calculation service used to evaluate scenarios.",
                )
                saved = st.form_submit_button("Save", type="primary")
            if saved:
                try:
                    client.save_settings(session, {"3cl_endpoint": endpoint.strip()})
                except BackendError as exc:
                    logger.warning("Settings save failed: %s", exc)
                    st.error("Failed to save backoffice settings.")
                else:
                    audit.log_event("SETTINGS_UPDATED", "3cl_endpoint")
                    st.toast("Settings saved", icon="✅")

    # Section 3: System Logs
    with st.container(border=True):
        st.subheader("System Logs")
        st.caption("Recent Activity")
        entries = audit.get_log(10)
        if not entries:
            st.caption("No activity logged.")
        else:
            for entry in entries:
                st.text(f"{entry['ts'][-9:]} {entry['action']} {entry['details']}")
        if st.button("Clear Log", type="secondary"):
            audit.clear_log()
            st.rerun()
