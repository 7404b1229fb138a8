# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Demo Snapshot Registry
# © 2026 Aparajita Parihar. All rights reserved.
#
# Single source of truth for:
#   • DEMO_SNAPSHOT       : a simul_init payload used by demo mode and tests
#   • DEMO_GRAPH          : a simul_graph payload matching DEMO_SNAPSHOT
#   • FALLBACK_PROJECTS   : project list shown when simul_list is unreachable
#
# This file has ZERO Streamlit and ZERO network imports.
# It is safe to import in unit tests and CLI contexts.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

# ─────────────────────────────────────────────────────────────────────────────
# ORIENTATION SCOPE
# Each simulation group may narrow itself to a subset of building faces.
# ─────────────────────────────────────────────────────────────────────────────

_ORIENTATIONS: list[tuple[str, str, str]] = [
    ("0", "ne",      "Nord-Est orientation"),
    ("1", "nord",    "North orientation"),
    ("2", "est",     "East orientation"),
    ("3", "sud",     "South orientation"),
    ("4", "ouest",   "West orientation"),
    ("5", "plafond", "Ceiling surface"),
]


def orientation_scope(*selected: str) -> list[dict]:
    return [
        {"id": sid, "label": label, "selected": label in selected, "description": desc}
        for sid, label, desc in _ORIENTATIONS
    ]


# ─────────────────────────────────────────────────────────────────────────────
# DEMO SNAPSHOT
# Shape mirrors GET simul_init: entry id → {label, category, path, simul[]}.
# wall has two groups (only the first active once loaded), floor_low one.
# ─────────────────────────────────────────────────────────────────────────────

DEMO_SNAPSHOT: dict[str, dict] = {
    "wall": {
        "label":    "mur",
        "category": "enveloppe",
        "path":     "/config/wall",
        "simul": [
            {
                "id":          "simul_wall_001",
                "active":      True,
                "label":       "Simulation Mur Standard",
                "description": "Configuration standard pour l'isolation du mur",
                "path":        "/config/wall/standard",
                "scope":       orientation_scope("est", "plafond"),
                "choices": [
                    {"id": 0, "label": "épaisseur divisée par 2",
                     "description": "Cette option réduit l'épaisseur du mur de moitié.", "checked": True},
                    {"id": 1, "label": "épaisseur de 5cm",
                     "description": "Cette option fixe l'épaisseur du mur à 5cm.", "checked": True},
                ],
            },
            {
                "id":          "simul_wall_002",
                "active":      False,
                "label":       "Simulation Mur Avancée",
                "description": "Configuration avancée pour l'isolation du mur",
                "path":        "/config/wall/advanced",
                "scope":       orientation_scope("ne", "sud"),
                "choices": [
                    {"id": 0, "label": "épaisseur optimisée",
                     "description": "Cette option optimise l'épaisseur du mur.", "checked": False},
                    {"id": 1, "label": "épaisseur renforcée",
                     "description": "Cette option renforce l'épaisseur du mur.", "checked": True},
                ],
            },
        ],
    },
    "floor_low": {
        "label":    "plancher bas",
        "category": "enveloppe",
        "path":     "/config/floor_low",
        "simul": [
            {
                "id":          "simul_floor_low_001",
                "active":      True,
                "label":       "Simulation Plancher Bas",
                "description": "Configuration pour le plancher bas",
                "path":        "/config/floor_low/standard",
                "scope":       orientation_scope("ne", "sud"),
                "choices": [
                    {"id": 0, "label": "isolation 10cm",
                     "description": "Ajoute 10cm d'isolant sous dalle.", "checked": True},
                    {"id": 1, "label": "isolation 20cm",
                     "description": "Ajoute 20cm d'isolant sous dalle.", "checked": False},
                ],
            },
        ],
    },
    "floor_high": {
        "label":    "plancher haut",
        "category": "enveloppe",
        "path":     "/config/floor_high",
        "simul": [
            {
                "id":          "simul_floor_high_001",
                "active":      False,
                "label":       "Simulation Plancher Haut",
                "description": None,
                "path":        "/config/floor_high/standard",
                "scope":       [{"label": "nord"}, {"id": "4", "selected": True}],
                "choices": [
                    {"id": 0, "label": "combles isolés",
                     "description": "Isolation des combles perdus.", "checked": True},
                ],
            },
        ],
    },
    "baie_vitree": {
        "label":    "baie vitrée",
        "category": "ouvertures",
        "path":     "/config/baie_vitree",
        "simul": [
            {
                "id":          "simul_baie_vitree_001",
                "active":      False,
                "label":       "Simulation Baie Vitrée",
                "description": "Remplacement des menuiseries",
                "path":        "/config/baie_vitree/standard",
                "choices": [
                    {"id": 0, "label": "double vitrage",
                     "description": "Double vitrage 4/16/4 argon.", "checked": False},
                    {"id": 1, "label": "triple vitrage",
                     "description": "Triple vitrage à isolation renforcée.", "checked": False},
                ],
            },
        ],
    },
}

# ─────────────────────────────────────────────────────────────────────────────
# DEMO GRAPH
# Six recorded scenarios: wall (3 levels) × floor_low (2 levels).
# ─────────────────────────────────────────────────────────────────────────────

DEMO_GRAPH: list[dict] = [
    {
        "id": str(i),
        "inputs": {},
        "result": {"ep_conso_5_usages_m2": conso, "emission_ges_5_usages_m2": ges},
    }
    for i, (conso, ges) in enumerate(
        [(234.0, 41.0), (221.5, 38.2), (210.0, 36.0), (198.4, 33.1), (187.9, 31.7), (176.2, 29.4)]
    )
]

# ─────────────────────────────────────────────────────────────────────────────
# PROJECT LIST FALLBACK
# ─────────────────────────────────────────────────────────────────────────────

FALLBACK_PROJECTS: list[dict] = [
    {"id": 1, "ref_ademe": "2508E0243162W", "status": "running"},
    {"id": 2, "ref_ademe": "2508E0243162X", "status": "completed"},
    {"id": 3, "ref_ademe": "2508E0243162Y", "status": "failed"},
]
