# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — In-Session Audit Log
# © 2026 Aparajita Parihar. All rights reserved.
#
# Records configuration changes (submissions, group edits, project lifecycle)
# shown in Settings › System Logs.
# Storage: st.session_state ONLY, never persisted to disk or any database.
# Entries carry no credentials: bearer tokens, hex keys and e-mail addresses
# are redacted before an entry is stored.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations
import re
from datetime import datetime, timezone

import streamlit as st

_LOG_KEY  = "_scandpe_audit_log"
_MAX_SIZE = 50

REDACTED = "[redacted]"

EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
JWT_RE   = re.compile(r"\beyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+(?:\.[A-Za-z0-9_\-]+)?")
HEX_RE   = re.compile(r"\b[0-9A-Fa-f]{32,}\b")
# Opaque keys mix case and digits; snake_case entry ids never match
OPAQUE_RE = re.compile(r"\b(?=[A-Za-z0-9_\-]*[0-9])(?=[A-Za-z0-9_\-]*[A-Z])(?=[A-Za-z0-9_\-]*[a-z])[A-Za-z0-9_\-]{30,}")


def redact(text) -> str:
    """Strip secret material from free text before it reaches the log."""
    text = str(text)
    for pattern in (JWT_RE, HEX_RE, OPAQUE_RE):
        text = pattern.sub(REDACTED, text)
    return EMAIL_RE.sub(r"\1***@\2", text)


def log_event(action: str, details: str) -> None:
    """
    Append an audit event to the in-session log.

    Parameters
    ----------
    action  : Short action label, e.g. "CONFIG_SUBMITTED", "GROUP_RENAMED"
    details : Human-readable description, usually an entry id or a project
              reference.  Secret-looking runs are redacted, never stored.
    """
    entry = {
        "ts":      datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        "action":  redact(action),
        "details": redact(details),
    }
    log = st.session_state.get(_LOG_KEY, [])
    st.session_state[_LOG_KEY] = [*log, entry][-_MAX_SIZE:]


def get_log(n: int = 10) -> list[dict]:
    """Return the last *n* audit log entries, most recent first."""
    return list(reversed(st.session_state.get(_LOG_KEY, [])[-n:]))


def clear_log() -> None:
    st.session_state[_LOG_KEY] = []
