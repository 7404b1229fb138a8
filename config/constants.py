# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Canonical Constants Registry
# © 2026 Aparajita Parihar. All rights reserved.
#
# Single source of truth for backend endpoints, timeouts, combination limits
# and URL query-state names.  All modules MUST import from here, never
# redefine constants locally.
#
# This file has ZERO Streamlit, ZERO network, and ZERO side-effect imports.
# It is safe to import in any context, including unit tests without a
# running Streamlit server.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import re

# ─────────────────────────────────────────────────────────────────────────────
# BACKEND API
# ─────────────────────────────────────────────────────────────────────────────

API_URL_ENV: str = "SCANDPE_API_URL"
DEFAULT_API_URL: str = "https://api-dev.etiquettedpe.fr/backoffice"

TIMEOUT_ENV: str = "SCANDPE_TIMEOUT_S"
DEFAULT_TIMEOUT_S: int = 15

ACCESS_TOKEN_ENV: str = "SCANDPE_ACCESS_TOKEN"
FRONTEND_VERSION_ENV: str = "SCANDPE_FRONTEND_VERSION"
LOG_LEVEL_ENV: str = "SCANDPE_LOG_LEVEL"
DEMO_MODE_ENV: str = "SCANDPE_DEMO"

# Endpoint names, relative to the API base URL
EP_SIMUL_INIT: str = "simul_init"
EP_SIMUL_GRAPH: str = "simul_graph"
EP_SIMUL_SIMUL: str = "simul_simul"
EP_SETTING_EDIT: str = "simul_setting_edit"
EP_GROUP_EDIT: str = "simul_group_edit"
EP_GROUP_INIT: str = "simul_group_init"
EP_SCOPE_INIT: str = "simul_scope_init"
EP_SIMUL_NEW: str = "simul_new"
EP_SIMUL_DELETE: str = "simul_delete"
EP_SIMUL_LIST: str = "simul_list"
EP_SETTINGS: str = "settings"

# The choice-setting PATCH expects a numeric element id instead of the
# entry key used everywhere else.  Unknown entries map to 0.
ELEMENT_NUMERIC_IDS: dict[str, int] = {
    "wall":           1,
    "floor_low":      2,
    "floor_high":     3,
    "baie_vitree":    4,
    "porte":          5,
    "ets":            6,
    "pont_thermique": 7,
}

# ─────────────────────────────────────────────────────────────────────────────
# SCENARIO COMBINATIONS
# ─────────────────────────────────────────────────────────────────────────────

# Level 0 = baseline ("valeur courante"), 1 = choice[0], 2 = choice[1]
BASELINE_LEVEL: int = 0
LEVELS: tuple[int, ...] = (0, 1, 2)
MAX_CHOICES_PER_GROUP: int = 2

# Submitting a configuration above this many permutations is blocked in the UI
MAX_COMBINATIONS: int = 10_000

# ─────────────────────────────────────────────────────────────────────────────
# PROJECTS & URL STATE
# ─────────────────────────────────────────────────────────────────────────────

REF_ADEME_RE = re.compile(r"^[A-Z0-9]{13}$")

QUERY_SIMUL_ID: str = "simul_id"
QUERY_REF_ADEME: str = "ref_ademe"

DEFAULT_ENTRY_PATH_PREFIX: str = "/config"

# ─────────────────────────────────────────────────────────────────────────────
# SESSION
# ─────────────────────────────────────────────────────────────────────────────

# Lifetime applied to tokens supplied without an explicit expiry
SESSION_LIFETIME_S: int = 3600
