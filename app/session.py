# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Session State Management
# © 2026 Aparajita Parihar. All rights reserved.
#
# Single responsibility: own the complete st.session_state initialisation
# contract for the entire application.
#
# Rules:
#   • init_session() is idempotent; call it every run(), it never overwrites
#     existing values (uses setdefault exclusively).
#   • No module outside this file may write a NEW top-level session key
#     without first registering it here.
#   • _get_secret() is the sole secrets access point for the application.
#   • The bearer token lives in "auth_state" only; business logic receives it
#     through credential_provider(), never by reading session state.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import os
from typing import Optional

import streamlit as st

from config.constants import (
    ACCESS_TOKEN_ENV,
    DEMO_MODE_ENV,
    FRONTEND_VERSION_ENV,
    QUERY_REF_ADEME,
)
from services.auth import CredentialProvider, Session, new_session, session_from_storage

_DEFAULT_FRONTEND_VERSION: str = "1.0.0"


# ─────────────────────────────────────────────────────────────────────────────
# SECRETS ACCESS POINT
# The ONLY function in the application permitted to read st.secrets or os.getenv
# for credentials.  All callers use _get_secret(), never st.secrets directly.
# ─────────────────────────────────────────────────────────────────────────────

def _get_secret(key: str, default: str = "") -> str:
    """Read a secret from Streamlit Secrets, falling back to environment variable.

    Priority: st.secrets[key]  →  os.getenv(key, default)

    Never raises; returns ``default`` if the key is absent from both sources.
    """
    try:
        return st.secrets[key]
    except (KeyError, AttributeError, FileNotFoundError):
        return os.getenv(key, default)


def demo_mode() -> bool:
    return _get_secret(DEMO_MODE_ENV, "").strip().lower() in ("1", "true", "yes")


# ─────────────────────────────────────────────────────────────────────────────
# SESSION STATE INITIALISATION
# ─────────────────────────────────────────────────────────────────────────────

def init_session() -> None:
    """Idempotently initialise all application session state keys.

    Session key registry (authoritative):

    Identity
    ────────
    auth_state          str | None   Serialised Session (accessToken, userInfo, expiresAt)

    Project
    ───────
    ref_ademe           str | None   Project reference; seeded from the URL
    controller          object       SimulationController for ref_ademe, or None
    confirm_delete      tuple | None (entry_id, group_id) awaiting delete confirmation
    editor              dict | None  Open settings editor: kind, ids and loaded values
    graph_nonce         int          Bumped to reset the results-graph selection widget
    project_error       str | None   Last project create/delete failure shown on the list page

    Backoffice
    ──────────
    frontend_version    str          Reported to GET settings
    """
    ss = st.session_state

    # ── Identity ──────────────────────────────────────────────────────────────
    ss.setdefault("auth_state", None)

    # ── Project ───────────────────────────────────────────────────────────────
    ss.setdefault("ref_ademe", st.query_params.get(QUERY_REF_ADEME))
    ss.setdefault("controller", None)
    ss.setdefault("confirm_delete", None)
    ss.setdefault("editor",         None)
    ss.setdefault("graph_nonce",    0)
    ss.setdefault("project_error",  None)

    # ── Backoffice ────────────────────────────────────────────────────────────
    ss.setdefault(
        "frontend_version",
        _get_secret(FRONTEND_VERSION_ENV, _DEFAULT_FRONTEND_VERSION),
    )


# ─────────────────────────────────────────────────────────────────────────────
# CREDENTIALS
# ─────────────────────────────────────────────────────────────────────────────

def current_session() -> Optional[Session]:
    """Stored session if still valid, otherwise one built from the configured token."""
    session = session_from_storage(st.session_state.get("auth_state"))
    if session is not None:
        return session
    token = _get_secret(ACCESS_TOKEN_ENV, "")
    if not token:
        return None
    session = new_session(token)
    st.session_state["auth_state"] = session.to_storage()
    return session


def credential_provider() -> CredentialProvider:
    return current_session
