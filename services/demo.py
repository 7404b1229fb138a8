# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Offline Demo Backend
# © 2026 Aparajita Parihar. All rights reserved.
#
# Drop-in replacement for BackendClient used when SCANDPE_DEMO is set.
# Serves config/scenarios.py data and keeps every change in memory, so the
# whole configure → apply → inspect loop can be exercised without network.
#
# Recorded scenarios are the cross product of each active card's enabled
# levels, enumerated in card order (last card varies fastest).
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import copy
import itertools
import logging
from typing import Any, Mapping, Optional

from config.scenarios import DEMO_GRAPH, DEMO_SNAPSHOT, FALLBACK_PROJECTS, orientation_scope
from core.activation import initial_level_map
from core.correlator import CONSO_KEY, GES_KEY
from core.errors import BackendError
from core.model import find_active_group, find_choice, load_entries

logger = logging.getLogger(__name__)

_BASE_CONSO = 240.0
_BASE_GES   = 42.0


class DemoClient:
    """In-memory backend with the same method surface as ``BackendClient``."""

    def __init__(self, snapshot: Optional[Mapping[str, Any]] = None):
        self._snapshot: dict[str, dict] = copy.deepcopy(dict(snapshot or DEMO_SNAPSHOT))
        self._projects: list[dict] = [dict(p) for p in FALLBACK_PROJECTS]
        self._rules: dict[tuple, Any] = {}
        self._settings: dict[str, Any] = {"3cl_endpoint": "", "lastversion": True}
        entries = load_entries(self._snapshot)
        self._record(entries, initial_level_map(entries), seed_results=snapshot is None)

    # ── scenario generation ──────────────────────────────────────────────────

    def _record(self, entries, level_map, seed_results: bool = False) -> None:
        cards = []
        for entry in entries:
            group = find_active_group(entry)
            if group is not None:
                levels = sorted(level_map.get((entry.id, group.id), {0}))
                cards.append((entry, group, levels))
        self._cards = cards
        self._combos = list(itertools.product(*(levels for _, _, levels in cards)))

        graph = []
        for i, combo in enumerate(self._combos):
            if seed_results and i < len(DEMO_GRAPH):
                result = dict(DEMO_GRAPH[i]["result"])
            else:
                gain = sum(combo)
                result = {CONSO_KEY: _BASE_CONSO - 11.5 * gain, GES_KEY: _BASE_GES - 2.3 * gain}
            graph.append({"id": str(i), "choices": list(combo), "result": result})
        self._graph = graph
        logger.info("Demo backend recorded %d scenarios", len(graph))

    def _group(self, entry_id: str, group_id: str) -> dict:
        for group in self._snapshot.get(entry_id, {}).get("simul", []):
            if group.get("id") == group_id:
                return group
        raise BackendError(f"Unknown simulation {entry_id}/{group_id}", status_code=404)

    # ── configuration snapshot ───────────────────────────────────────────────

    def fetch_snapshot(self, session, ref_ademe: str) -> dict:
        return copy.deepcopy(self._snapshot)

    def submit_configuration(self, session, payload: Mapping[str, Any]) -> dict:
        snapshot: dict[str, dict] = {}
        for row in payload.get("entries") or []:
            previous = self._snapshot.get(row["id"], {})
            snapshot[row["id"]] = {
                "label":    row.get("label"),
                "category": previous.get("category", row.get("category")),
                "path":     previous.get("path"),
                "simul":    copy.deepcopy(row.get("simul") or []),
            }
        self._snapshot = snapshot

        level_map = {}
        for key, levels in (payload.get("checkboxStates") or {}).items():
            for entry_id in snapshot:
                prefix = f"{entry_id}_"
                if key.startswith(prefix):
                    level_map[(entry_id, key[len(prefix):])] = frozenset(levels)
        self._record(load_entries(snapshot), level_map)
        return {"status": "success", "totalCombinations": len(self._combos)}

    # ── results ──────────────────────────────────────────────────────────────

    def fetch_graph(self, session, dpe_id: str) -> dict:
        return {"status": "success", "data": copy.deepcopy(self._graph)}

    def fetch_scenario(self, session, ref_ademe: str, ordinal: int, max_ordinal: Optional[int]) -> dict:
        if not 0 <= ordinal < len(self._combos):
            raise BackendError(f"Scenario {ordinal} not found", status_code=404)
        combo = self._combos[ordinal]
        inputs = []
        for (entry, group, _), level in zip(self._cards, combo):
            choice = find_choice(group, level)
            inputs.append(
                {
                    f"{entry.path}.simulation": group.label,
                    f"{entry.path}.level":      level,
                    f"{entry.path}.choice":     choice.label if choice else "valeur courante",
                }
            )
        return {
            "status": "success",
            "data": {
                "choices": list(combo),
                "inputs":  inputs,
                "outputs": dict(self._graph[ordinal]["result"]),
            },
        }

    # ── settings of choices, groups and entries ──────────────────────────────

    def fetch_choice_setting(self, session, entry_id: str, choice_id: Any) -> dict:
        rule = self._rules.get((entry_id, str(choice_id)), {})
        return {"json_action": rule, "human_readable": f"{len(rule)} rule(s) applied" if rule else ""}

    def save_choice_setting(self, session, ref_ademe, entry_id, choice_id, level, label, description, modifier_rule):
        self._rules[(entry_id, str(choice_id))] = modifier_rule
        return {"status": "success"}

    def fetch_group_setting(self, session, entry_id: str, group_id: str) -> dict:
        group = self._group(entry_id, group_id)
        return {
            "label":       group.get("label"),
            "path":        group.get("path"),
            "json_action": self._rules.get((entry_id, group_id), {}),
        }

    def save_group_setting(self, session, entry_id, group_id, label, path, json_action):
        group = self._group(entry_id, group_id)
        group.update(label=label, path=path)
        self._rules[(entry_id, group_id)] = json_action
        return {"status": "success"}

    def save_entry_path(self, session, entry_id: str, path: str) -> dict:
        if entry_id not in self._snapshot:
            raise BackendError(f"Unknown element {entry_id}", status_code=404)
        self._snapshot[entry_id]["path"] = path
        return {"status": "success"}

    def edit_group(self, session, entry_id: str, group_id: str, **fields: Any) -> dict:
        self._group(entry_id, group_id).update(fields)
        return {"status": "success"}

    def create_group(self, session, entry_id: str) -> dict:
        if entry_id not in self._snapshot:
            raise BackendError(f"Unknown element {entry_id}", status_code=404)
        groups = self._snapshot[entry_id].setdefault("simul", [])
        group_id = f"simul_{entry_id}_{len(groups) + 1:03d}"
        groups.append(
            {
                "id":          group_id,
                "active":      False,
                "label":       f"Nouvelle simulation {len(groups) + 1}",
                "description": None,
                "path":        f"{self._snapshot[entry_id].get('path', '')}/{group_id}",
                "choices": [
                    {"id": 0, "label": "option 1", "description": "", "checked": False},
                    {"id": 1, "label": "option 2", "description": "", "checked": False},
                ],
            }
        )
        return {"status": "success", "id": group_id}

    def attach_scope(self, session, ref_ademe: str, entry_id: str, group_id: str) -> dict:
        self._group(entry_id, group_id)["scope"] = orientation_scope()
        return {"status": "success"}

    # ── project lifecycle ────────────────────────────────────────────────────

    def list_projects(self) -> list[dict]:
        return [dict(p) for p in self._projects]

    def create_project(self, ref_ademe: str) -> dict:
        next_id = max((p["id"] for p in self._projects), default=0) + 1
        self._projects.append({"id": next_id, "ref_ademe": ref_ademe, "status": "created"})
        return {"status": "success"}

    def delete_project(self, ref_ademe: str) -> dict:
        self._projects = [p for p in self._projects if p["ref_ademe"] != ref_ademe]
        return {"status": "success"}

    # ── backoffice settings ──────────────────────────────────────────────────

    def fetch_settings(self, session, frontend_version: str) -> dict:
        return dict(self._settings)

    def save_settings(self, session, settings: Mapping[str, Any]) -> dict:
        self._settings.update(settings)
        return {"status": "success"}
