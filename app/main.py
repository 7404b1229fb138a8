# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Renovation Scenario Configurator
# © 2026 Aparajita Parihar. All rights reserved.
#
# Streamlit shell: project list → per-project Configuration / Results /
# Settings tabs, all driven by one SimulationController per session.
#
# Environment : SCANDPE_API_URL, SCANDPE_TIMEOUT_S, SCANDPE_ACCESS_TOKEN,
#               SCANDPE_LOG_LEVEL, SCANDPE_FRONTEND_VERSION, SCANDPE_DEMO
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
# Load .env from project root (parent directory of app/)
_env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
load_dotenv(_env_path)

import streamlit as st

# ─────────────────────────────────────────────────────────────────────────────
# PATH SETUP: ensure core and services modules are accessible
# ─────────────────────────────────────────────────────────────────────────────
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import services.audit as audit
from app.session import credential_provider, current_session, demo_mode, init_session
from app.tabs import configure, projects, results, settings
from config.constants import QUERY_REF_ADEME, QUERY_SIMUL_ID
from config.logging_config import configure_logging
from core.bridge import SimulationController
from services.auth import new_session
from services.backend import BackendClient
from services.demo import DemoClient

configure_logging()
logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# PAGE CONFIGURATION
# ─────────────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title   = "ScanDPE Simulator",
    page_icon    = "🏠",
    layout       = "wide",
    initial_sidebar_state = "expanded"
)

st.markdown("""
<style>
html, body, [class*="css"] { font-family: 'Nunito Sans', sans-serif !important; }
[data-testid="stAppViewContainer"] > .main { background: #F0F4F8; }
[data-testid="stSidebar"] { background: #071A2F !important; }
[data-testid="stSidebar"] p, [data-testid="stSidebar"] h2, [data-testid="stSidebar"] span { color: #CBD8E6 !important; }
.stTabs [aria-selected="true"] { color: #071A2F !important; border-bottom: 3px solid #00C2A8 !important; }
</style>
""", unsafe_allow_html=True)

# ─────────────────────────────────────────────────────────────────────────────
# BACKEND CLIENT
# ─────────────────────────────────────────────────────────────────────────────
@st.cache_resource
def _get_client(demo: bool):
    if demo:
        logger.info("Running against the in-memory demo backend")
        return DemoClient()
    return BackendClient()


def _render_notices(ctrl: SimulationController) -> None:
    for notice in ctrl.drain_notices():
        if notice.level == "success":
            st.success(notice.message, icon="✅")
        elif notice.level == "warning":
            st.warning(notice.message, icon="⚠️")
        else:
            st.error(notice.message, icon="🚫")


def _close_project() -> None:
    st.session_state.ref_ademe = None
    st.session_state.controller = None
    st.session_state.editor = None
    st.session_state.confirm_delete = None
    st.query_params.clear()


# ─────────────────────────────────────────────────────────────────────────────
# STATE INITIALIZATION
# ─────────────────────────────────────────────────────────────────────────────
init_session()
DEMO = demo_mode()
client = _get_client(DEMO)

if DEMO and current_session() is None:
    st.session_state.auth_state = new_session("demo", {"name": "Demo user"}).to_storage()

# ─────────────────────────────────────────────────────────────────────────────
# SIDEBAR
# ─────────────────────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown("<h2 style='color:#00C2A8;text-align:center;'>🏠 ScanDPE</h2>", unsafe_allow_html=True)
    if DEMO:
        st.caption("Demo mode: changes stay in memory.")
    st.markdown("---")
    if st.session_state.ref_ademe:
        st.markdown(f"**Project** `{st.session_state.ref_ademe}`")
        st.button("← All projects", on_click=_close_project, use_container_width=True)
    if current_session() is None:
        st.warning("No access token configured. Set SCANDPE_ACCESS_TOKEN to load projects.")

# ─────────────────────────────────────────────────────────────────────────────
# PROJECT LIST
# ─────────────────────────────────────────────────────────────────────────────
if not st.session_state.ref_ademe:
    projects.render(client)
    st.stop()

# ─────────────────────────────────────────────────────────────────────────────
# CONTROLLER
# ─────────────────────────────────────────────────────────────────────────────
ctrl = st.session_state.controller
if ctrl is None or ctrl.ref_ademe != st.session_state.ref_ademe:
    ctrl = SimulationController(
        st.session_state.ref_ademe,
        credential_provider(),
        client,
        audit=audit.log_event,
    )
    st.session_state.controller = ctrl
    ctrl.load()

if QUERY_REF_ADEME not in st.query_params:
    st.query_params[QUERY_REF_ADEME] = ctrl.ref_ademe
ctrl.sync_from_query({QUERY_SIMUL_ID: st.query_params.get(QUERY_SIMUL_ID)})

with st.sidebar:
    st.metric("Scenario combinations", f"{ctrl.total_combinations:,}")
    if ctrl.read_only:
        st.info(f"Scenario {ctrl.selected_ordinal} selected (read-only)")

_render_notices(ctrl)

# ─────────────────────────────────────────────────────────────────────────────
# TABS
# ─────────────────────────────────────────────────────────────────────────────
_tab_config, _tab_results, _tab_settings = st.tabs([
    "🧱 Configuration", "📈 Results", "⚙️ Settings"
])

with _tab_config:
    configure.render(ctrl)

with _tab_results:
    results.render(ctrl)

with _tab_settings:
    settings.render(client, current_session(), st.session_state.frontend_version)

_render_notices(ctrl)
