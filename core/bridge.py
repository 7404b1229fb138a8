# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Synchronization Bridge
# © 2026 Aparajita Parihar. All rights reserved.
#
# Keeps the entity model, activation state, combination count and selected
# scenario aligned with the backend and with the results graph.
#
# Rules:
#   • Every backend call is isolated: a BackendError is logged, turned into
#     exactly one Notice, and state stays at its last-known-good value.
#   • Entries, the level map and the selected ordinal are only ever replaced
#     as whole values.
#   • Per-action in-flight keys suppress duplicate actions for the same
#     target while leaving unrelated targets free.
#   • Scenario-detail responses carry a sequence tag; a response for a
#     superseded selection is discarded.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional

import core.activation as activation
import core.model as model
from config.constants import QUERY_SIMUL_ID
from core.combinations import build_submission, exceeds_limit, total_combinations
from core.correlator import (
    ScenarioDetail,
    card_index,
    card_order,
    extract_step_info,
    max_ordinal,
    parse_graph_data,
    parse_ordinal,
    parse_scenario_detail,
    selected_level,
)
from core.errors import BackendError
from core.events import Notice, SelectionChanged, SelectionDispatcher
from core.model import Entries, LevelKey

logger = logging.getLogger(__name__)

AuditHook = Callable[[str, str], None]


class SimulationController:
    """Stateful façade used by the presentation layer.

    ``credentials`` is a zero-argument callable returning the current
    ``Session`` (or None); ``client`` is a ``services.backend.BackendClient``
    or any object with the same methods.
    """

    def __init__(
        self,
        ref_ademe: Optional[str],
        credentials: Callable[[], Any],
        client: Any,
        dispatcher: Optional[SelectionDispatcher] = None,
        audit: Optional[AuditHook] = None,
    ):
        self.ref_ademe = ref_ademe
        self._credentials = credentials
        self._client = client
        self._audit = audit
        self.dispatcher = dispatcher or SelectionDispatcher()

        self.entries: Entries = ()
        self.original_entries: Entries = ()
        self.level_map: dict[LevelKey, frozenset] = {}
        self.graph_data: list[dict[str, Any]] = []
        self.selected_ordinal: Optional[int] = None
        self.selection: Optional[ScenarioDetail] = None
        self.label_drafts: dict[LevelKey, str] = {}
        self.description_drafts: dict[LevelKey, str] = {}
        self.notices: list[Notice] = []

        self._in_flight: frozenset = frozenset()
        self._selection_seq = 0
        self._unsubscribe = self.dispatcher.subscribe(self._on_selection_changed)

    # ─────────────────────────────────────────────────────────────────────────
    # DERIVED STATE
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def total_combinations(self) -> int:
        return total_combinations(self.entries, self.level_map)

    @property
    def exceeds_limit(self) -> bool:
        return exceeds_limit(self.total_combinations)

    @property
    def cards(self) -> list[LevelKey]:
        return card_order(self.entries)

    @property
    def max_ordinal(self) -> Optional[int]:
        return max_ordinal(self.graph_data)

    @property
    def read_only(self) -> bool:
        """A selected scenario is a recorded configuration, not a draft."""
        return self.selected_ordinal is not None

    def levels_for(self, entry_id: str, group_id: str) -> frozenset:
        return self.level_map.get((entry_id, group_id), frozenset({0}))

    def card_level(self, entry_id: str, group_id: str) -> Optional[int]:
        """Level the selected scenario used for this card, if any."""
        return selected_level(self.selection, card_index(self.entries, entry_id, group_id))

    def is_pending(self, *key: Hashable) -> bool:
        return tuple(key) in self._in_flight

    def drain_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out

    # ─────────────────────────────────────────────────────────────────────────
    # INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────────────────────

    def _session(self):
        return self._credentials()

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level, message))

    def _fail(self, message: str, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            logger.warning("%s: %s", message, exc)
        else:
            logger.warning(message)
        self._notify("error", message)

    def _record(self, action: str, details: str) -> None:
        # The backend has already accepted the change
        if self._audit is None:
            return
        try:
            self._audit(action, details)
        except ValueError as exc:
            logger.warning("Audit entry %s not recorded: %s", action, exc)

    def _set_entries(self, entries: Entries) -> None:
        self.entries = entries
        self.level_map = activation.seed_level_map(entries, self.level_map)

    def _begin(self, key: tuple) -> bool:
        if key in self._in_flight:
            logger.info("Suppressing duplicate action %s while one is pending", key)
            return False
        self._in_flight = self._in_flight | {key}
        return True

    def _end(self, key: tuple) -> None:
        self._in_flight = self._in_flight - {key}

    # ─────────────────────────────────────────────────────────────────────────
    # LOAD / SUBMIT
    # ─────────────────────────────────────────────────────────────────────────

    def load(self) -> bool:
        """Fetch the configuration snapshot, then the recorded results."""
        session = self._session()
        if session is None:
            self._fail("No access token available")
            return False
        if not self.ref_ademe:
            self._fail("No ref_ademe available. Please check the URL.")
            return False
        try:
            snapshot = self._client.fetch_snapshot(session, self.ref_ademe)
            entries = model.load_entries(snapshot)
        except (BackendError, TypeError) as exc:
            self._fail("Failed to load simulation configuration", exc)
            return False

        self.entries = entries
        self.original_entries = entries
        self.level_map = activation.initial_level_map(entries)
        logger.info("Loaded %d entries for %s", len(entries), self.ref_ademe)
        self.refresh_graph()
        return True

    def refresh_graph(self) -> bool:
        if not self.ref_ademe:
            return False
        try:
            body = self._client.fetch_graph(self._session(), self.ref_ademe)
            graph = parse_graph_data(body)
        except BackendError as exc:
            self._fail("Failed to load graph data", exc)
            return False
        self.graph_data = graph
        if self.selected_ordinal is not None:
            self._refresh_selection()
        return True

    def submit(self) -> bool:
        """POST the full configuration to trigger scenario generation."""
        total = self.total_combinations
        if exceeds_limit(total):
            self._fail(f"Too many combinations ({total}); reduce the enabled levels before applying")
            return False
        session = self._session()
        if session is None:
            self._fail("No access token available")
            return False
        payload = build_submission(self.ref_ademe, self.entries, self.level_map)
        try:
            self._client.submit_configuration(session, payload)
        except BackendError as exc:
            self._fail("Failed to apply simulation", exc)
            return False

        self._notify("success", "Simulation applied successfully!")
        self._record("CONFIG_SUBMITTED", f"{self.ref_ademe}: {total} combinations")
        if not self.ref_ademe:
            self._notify("warning", "Simulation applied but no project reference available for results.")
            return True
        if not self.refresh_graph():
            self._notify(
                "warning",
                "Simulation applied but failed to refresh results. Please check the Results tab manually.",
            )
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # SELECTION
    # ─────────────────────────────────────────────────────────────────────────

    def _on_selection_changed(self, event: SelectionChanged) -> None:
        self.select_ordinal(event.ordinal)

    def select_ordinal(self, ordinal: Optional[int]) -> None:
        self.selected_ordinal = ordinal
        self._refresh_selection()

    def clear_selection(self) -> None:
        self.select_ordinal(None)

    def sync_from_query(self, params: Mapping[str, Any]) -> None:
        """Align with the URL query state; no-op when the ordinal is unchanged."""
        ordinal = parse_ordinal(params.get(QUERY_SIMUL_ID))
        if ordinal != self.selected_ordinal:
            self.select_ordinal(ordinal)

    def query_state(self) -> dict[str, str]:
        if self.selected_ordinal is None:
            return {}
        return {QUERY_SIMUL_ID: str(self.selected_ordinal)}

    def _refresh_selection(self) -> None:
        self._selection_seq += 1
        seq = self._selection_seq
        ordinal = self.selected_ordinal
        session = self._session()
        max_ord = self.max_ordinal
        if ordinal is None or not self.ref_ademe or session is None or max_ord is None:
            self.selection = None
            return
        try:
            body = self._client.fetch_scenario(session, self.ref_ademe, ordinal, max_ord)
            detail = parse_scenario_detail(ordinal, body)
        except BackendError as exc:
            if seq == self._selection_seq:
                self.selection = None
                self._fail(f"Failed to load scenario {ordinal}", exc)
            return
        if seq != self._selection_seq:
            logger.info("Discarding superseded detail for scenario %s", ordinal)
            return
        self.selection = detail

    def step_info(self, entry_id: str, group_id: str, level: int) -> Optional[dict[str, Any]]:
        """Recorded inputs for one card of the selected scenario."""
        if self.selection is None:
            self._fail("No simulation data available")
            return None
        if self.selection.inputs is None:
            self._fail("No inputs data available for this simulation")
            return None
        info = extract_step_info(self.selection, self.entries, entry_id, group_id, level)
        if info is None:
            self._fail("This card is not part of the selected scenario")
        return info

    # ─────────────────────────────────────────────────────────────────────────
    # ACTIVATION & LEVELS
    # ─────────────────────────────────────────────────────────────────────────

    def toggle_entry(self, entry_id: str) -> None:
        self._set_entries(activation.toggle_entry(self.entries, entry_id))

    def toggle_group(self, entry_id: str, group_id: str) -> None:
        self._set_entries(activation.toggle_group(self.entries, entry_id, group_id))

    def set_enabled_levels(self, entry_id: str, group_id: str, levels: Iterable[int]) -> None:
        self.level_map = activation.set_enabled_levels(self.level_map, entry_id, group_id, levels)

    def toggle_level(self, entry_id: str, group_id: str, level: int, checked: bool) -> bool:
        if self.read_only:
            return False
        before = self.levels_for(entry_id, group_id)
        self.level_map = activation.toggle_level(self.level_map, entry_id, group_id, level, checked)
        return self.levels_for(entry_id, group_id) != before

    def level_interactive(self, entry_id: str, group_id: str, level: int) -> bool:
        return activation.level_interactive(self.levels_for(entry_id, group_id), level, self.read_only)

    def reset(self) -> None:
        self.entries, self.level_map = activation.reset(self.original_entries, self.entries)
        self.label_drafts = {}
        self.description_drafts = {}
        self._notify("success", "Form reset successfully")

    # ─────────────────────────────────────────────────────────────────────────
    # LOCAL STRUCTURE & SCOPE
    # ─────────────────────────────────────────────────────────────────────────

    def append_entry(self, name: str) -> bool:
        try:
            entries = model.append_entry(self.entries, name)
        except ValueError:
            self._fail("Please enter a name for the entry")
            return False
        self._set_entries(entries)
        self._notify("success", "Entry added successfully")
        return True

    def remove_group(self, entry_id: str, group_id: str) -> bool:
        """Delete a group; the caller has already obtained confirmation."""
        if model.find_group(model.find_entry(self.entries, entry_id), group_id) is None:
            self._fail("Simulation not found")
            return False
        entries = model.remove_group(self.entries, entry_id, group_id)
        if entries == self.entries:
            self._fail("The last simulation of an element cannot be deleted")
            return False
        self.entries = entries
        self.level_map = {k: v for k, v in self.level_map.items() if k != (entry_id, group_id)}
        self._notify("success", "Simulation deleted successfully")
        return True

    def toggle_scope_item(self, entry_id: str, group_id: str, scope_id: str) -> bool:
        if self.read_only:
            return False
        self.entries = model.toggle_scope_item(self.entries, entry_id, group_id, scope_id)
        return True

    def set_all_scope_items(self, entry_id: str, group_id: str, selected: bool) -> bool:
        if self.read_only:
            return False
        self.entries = model.set_all_scope_items(self.entries, entry_id, group_id, selected)
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # GROUP LABEL / DESCRIPTION EDITS
    # ─────────────────────────────────────────────────────────────────────────

    def begin_label_edit(self, entry_id: str, group_id: str) -> None:
        group = model.find_group(model.find_entry(self.entries, entry_id), group_id)
        if group is not None:
            self.label_drafts = {**self.label_drafts, (entry_id, group_id): group.label}

    def begin_description_edit(self, entry_id: str, group_id: str) -> None:
        group = model.find_group(model.find_entry(self.entries, entry_id), group_id)
        if group is not None:
            self.description_drafts = {
                **self.description_drafts,
                (entry_id, group_id): group.description or "",
            }

    def cancel_label_edit(self, entry_id: str, group_id: str) -> None:
        self.label_drafts = {k: v for k, v in self.label_drafts.items() if k != (entry_id, group_id)}

    def cancel_description_edit(self, entry_id: str, group_id: str) -> None:
        self.description_drafts = {
            k: v for k, v in self.description_drafts.items() if k != (entry_id, group_id)
        }

    def save_group_label(self, entry_id: str, group_id: str, label: Optional[str] = None) -> bool:
        key = (entry_id, group_id)
        new_label = (label if label is not None else self.label_drafts.get(key, "")).strip()
        if not new_label:
            self._fail("Label cannot be empty")
            return False
        session = self._session()
        if session is None:
            self._fail("No access token available")
            return False
        try:
            self._client.edit_group(session, entry_id, group_id, label=new_label)
        except BackendError as exc:
            self._fail("Failed to save simulation label", exc)
            return False
        self.entries = model.rename_group(self.entries, entry_id, group_id, new_label)
        self.cancel_label_edit(entry_id, group_id)
        self._notify("success", "Simulation label updated successfully")
        self._record("GROUP_RENAMED", entry_id)
        return True

    def save_group_description(
        self, entry_id: str, group_id: str, description: Optional[str] = None
    ) -> bool:
        key = (entry_id, group_id)
        if description is None and key not in self.description_drafts:
            self._fail("Description cannot be empty")
            return False
        raw = description if description is not None else self.description_drafts[key]
        value = raw.strip() or None
        session = self._session()
        if session is None:
            self._fail("No access token available")
            return False
        try:
            self._client.edit_group(session, entry_id, group_id, description=value)
        except BackendError as exc:
            self._fail("Failed to save simulation description", exc)
            return False
        self.entries = model.describe_group(self.entries, entry_id, group_id, value)
        self.cancel_description_edit(entry_id, group_id)
        self._notify("success", "Simulation description updated successfully")
        self._record("GROUP_DESCRIBED", entry_id)
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # CHOICE / GROUP / ENTRY SETTINGS
    # ─────────────────────────────────────────────────────────────────────────

    def load_choice_setting(self, entry_id: str, group_id: str, level: int) -> dict[str, Any]:
        """Modifier rule and readable description of one choice."""
        empty = {"json_action": {}, "human_readable": ""}
        group = model.find_group(model.find_entry(self.entries, entry_id), group_id)
        choice = model.find_choice(group, level)
        if choice is None:
            self._fail("Choice not found")
            return empty
        session = self._session()
        try:
            body = self._client.fetch_choice_setting(session, entry_id, choice.id)
        except BackendError as exc:
            self._fail("Failed to load configuration data", exc)
            return empty
        if not isinstance(body, Mapping):
            self._fail("Failed to load configuration data")
            return empty
        return {
            "json_action": body.get("json_action") or {},
            "human_readable": body.get("human_readable") or "",
        }

    def save_choice_setting(
        self,
        entry_id: str,
        group_id: str,
        level: int,
        label: str,
        description: str,
        modifier_rule: Any,
    ) -> bool:
        group = model.find_group(model.find_entry(self.entries, entry_id), group_id)
        choice = model.find_choice(group, level)
        if choice is None:
            self._fail(f"Choice not found for level {level}")
            return False
        if not self.ref_ademe:
            self._fail("No ref_ademe available")
            return False
        try:
            self._client.save_choice_setting(
                self._session(), self.ref_ademe, entry_id, choice.id, level, label, description, modifier_rule
            )
        except BackendError as exc:
            self._fail("Failed to save configuration", exc)
            return False
        self.entries = model.rename_choice(self.entries, entry_id, group_id, choice.index, label)
        self._notify("success", "Configuration saved successfully")
        self._record("CHOICE_UPDATED", f"{entry_id} level {level}")
        return True

    def load_group_setting(self, entry_id: str, group_id: str) -> dict[str, Any]:
        """Label/path/json_action for a group, backend values over local ones."""
        group = model.find_group(model.find_entry(self.entries, entry_id), group_id)
        setting: dict[str, Any] = {
            "label": group.label if group else "",
            "path": group.path if group else "",
            "json_action": {},
        }
        try:
            body = self._client.fetch_group_setting(self._session(), entry_id, group_id)
        except BackendError as exc:
            logger.warning("Group setting unavailable, using local data: %s", exc)
            self._notify("warning", "Backend settings unavailable; showing local values")
            return setting
        if isinstance(body, Mapping):
            for key in ("label", "path", "json_action"):
                if body.get(key):
                    setting[key] = body[key]
        return setting

    def save_group_setting(
        self, entry_id: str, group_id: str, label: str, path: str, json_action: Any
    ) -> bool:
        if not label.strip():
            self._fail("Label is required")
            return False
        try:
            self._client.save_group_setting(
                self._session(), entry_id, group_id, label.strip(), path.strip(), json_action
            )
        except BackendError as exc:
            self._fail("Failed to save setting", exc)
            return False
        entries = model.rename_group(self.entries, entry_id, group_id, label.strip())
        self.entries = model.set_group_path(entries, entry_id, group_id, path.strip())
        self._notify("success", "Setting updated successfully")
        self._record("GROUP_SETTING_UPDATED", entry_id)
        return True

    def save_entry_path(self, entry_id: str, path: str) -> bool:
        if model.find_entry(self.entries, entry_id) is None:
            self._fail("Entry not found")
            return False
        try:
            self._client.save_entry_path(self._session(), entry_id, path.strip())
        except BackendError as exc:
            self._fail("Failed to save element path", exc)
            return False
        self.entries = model.set_entry_path(self.entries, entry_id, path.strip())
        self._notify("success", "Element path updated successfully")
        self._record("ENTRY_PATH_UPDATED", entry_id)
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # STRUCTURAL BACKEND ACTIONS (create then reload)
    # ─────────────────────────────────────────────────────────────────────────

    def add_scenario(self, entry_id: str) -> bool:
        """Create a new group under ``entry_id`` and reload the snapshot."""
        session = self._session()
        if session is None:
            self._fail("No access token available")
            return False
        key = ("add_scenario", entry_id)
        if not self._begin(key):
            return False
        try:
            self._client.create_group(session, entry_id)
            if not self.load():
                return False
        except BackendError as exc:
            self._fail("Failed to add scenario", exc)
            return False
        finally:
            self._end(key)
        self._notify("success", "Scenario added successfully")
        self._record("GROUP_CREATED", entry_id)
        return True

    def attach_scope(self, entry_id: str, group_id: str) -> bool:
        """Attach the default orientation scope to a group and reload."""
        session = self._session()
        if session is None or not self.ref_ademe:
            self._fail("No access token or ref_ademe available")
            return False
        key = ("attach_scope", entry_id, group_id)
        if not self._begin(key):
            return False
        try:
            self._client.attach_scope(session, self.ref_ademe, entry_id, group_id)
            if not self.load():
                return False
        except BackendError as exc:
            self._fail("Failed to attach scope", exc)
            return False
        finally:
            self._end(key)
        self._notify("success", "Scope attached successfully")
        return True
