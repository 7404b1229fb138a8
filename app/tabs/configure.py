"""
Renders the Configuration tab.

One card per Entry with its simulation groups, level checkboxes, scope
checkboxes and edit actions.  Every interaction is a widget callback into the
SimulationController, so state changes land before the next script run and
widgets are re-seeded from controller state on every render.
"""
from __future__ import annotations

import json
from typing import Any

import streamlit as st

from config.constants import LEVELS, MAX_COMBINATIONS
from core.bridge import SimulationController
from core.model import Entry, SimulationGroup, find_choice

LEVEL_ZERO_LABEL = "valeur courante"


def _seed(key: str, value: Any) -> None:
    """Push controller state into a keyed widget before it is drawn."""
    st.session_state[key] = value


# ─────────────────────────────────────────────────────────────────────────────
# CALLBACKS
# ─────────────────────────────────────────────────────────────────────────────

def _on_level(ctrl: SimulationController, entry_id: str, group_id: str, level: int, key: str) -> None:
    ctrl.toggle_level(entry_id, group_id, level, bool(st.session_state[key]))


def _on_scope(ctrl: SimulationController, entry_id: str, group_id: str, scope_id: str) -> None:
    ctrl.toggle_scope_item(entry_id, group_id, scope_id)


def _ask_delete(entry_id: str, group_id: str) -> None:
    st.session_state.confirm_delete = (entry_id, group_id)


def _confirm_delete(ctrl: SimulationController) -> None:
    entry_id, group_id = st.session_state.confirm_delete
    ctrl.remove_group(entry_id, group_id)
    st.session_state.confirm_delete = None


def _cancel_delete() -> None:
    st.session_state.confirm_delete = None


def _save_label(ctrl: SimulationController, entry_id: str, group_id: str, key: str) -> None:
    if ctrl.save_group_label(entry_id, group_id, st.session_state[key]):
        st.session_state.pop(key, None)


def _save_description(ctrl: SimulationController, entry_id: str, group_id: str, key: str) -> None:
    if ctrl.save_group_description(entry_id, group_id, st.session_state[key]):
        st.session_state.pop(key, None)


def _cancel_label(ctrl: SimulationController, entry_id: str, group_id: str, key: str) -> None:
    ctrl.cancel_label_edit(entry_id, group_id)
    st.session_state.pop(key, None)


def _cancel_description(ctrl: SimulationController, entry_id: str, group_id: str, key: str) -> None:
    ctrl.cancel_description_edit(entry_id, group_id)
    st.session_state.pop(key, None)


def _open_choice_editor(ctrl: SimulationController, entry_id: str, group_id: str, level: int) -> None:
    setting = ctrl.load_choice_setting(entry_id, group_id, level)
    st.session_state.editor = {
        "kind": "choice", "entry_id": entry_id, "group_id": group_id, "level": level, **setting,
    }


def _open_group_editor(ctrl: SimulationController, entry_id: str, group_id: str) -> None:
    setting = ctrl.load_group_setting(entry_id, group_id)
    st.session_state.editor = {"kind": "group", "entry_id": entry_id, "group_id": group_id, **setting}


def _close_editor() -> None:
    st.session_state.editor = None


def _parse_rule(raw: str) -> Any:
    """JSON text of a modifier rule; blank means no rule."""
    return json.loads(raw) if raw.strip() else {}


# ─────────────────────────────────────────────────────────────────────────────
# EDITORS
# ─────────────────────────────────────────────────────────────────────────────

def _render_choice_editor(ctrl: SimulationController, editor: dict, group: SimulationGroup) -> None:
    choice = find_choice(group, editor["level"])
    if choice is None:
        _close_editor()
        return
    with st.form(f"form_choice_{editor['entry_id']}_{editor['group_id']}_{editor['level']}"):
        st.markdown(f"**Choice settings, level {editor['level']}**")
        if editor.get("human_readable"):
            st.caption(editor["human_readable"])
        label = st.text_input("Label", value=choice.label)
        description = st.text_area("Description", value=choice.description)
        rule = st.text_area("Modifier rule (JSON)", value=json.dumps(editor.get("json_action") or {}, indent=2))
        c1, c2 = st.columns(2)
        saved = c1.form_submit_button("Save", type="primary")
        cancelled = c2.form_submit_button("Cancel")
    if cancelled:
        _close_editor()
        st.rerun()
    if saved:
        try:
            parsed = _parse_rule(rule)
        except ValueError as exc:
            st.error(f"Modifier rule is not valid JSON: {exc}")
            return
        if ctrl.save_choice_setting(
            editor["entry_id"], editor["group_id"], editor["level"], label, description, parsed
        ):
            _close_editor()
        st.rerun()


def _render_group_editor(ctrl: SimulationController, editor: dict) -> None:
    with st.form(f"form_group_{editor['entry_id']}_{editor['group_id']}"):
        st.markdown("**Simulation settings**")
        label = st.text_input("Label", value=editor.get("label", ""))
        path = st.text_input("Path", value=editor.get("path", ""))
        rule = st.text_area("Action (JSON)", value=json.dumps(editor.get("json_action") or {}, indent=2))
        c1, c2 = st.columns(2)
        saved = c1.form_submit_button("Save", type="primary")
        cancelled = c2.form_submit_button("Cancel")
    if cancelled:
        _close_editor()
        st.rerun()
    if saved:
        try:
            parsed = _parse_rule(rule)
        except ValueError as exc:
            st.error(f"Action is not valid JSON: {exc}")
            return
        if ctrl.save_group_setting(editor["entry_id"], editor["group_id"], label, path, parsed):
            _close_editor()
        st.rerun()


# ─────────────────────────────────────────────────────────────────────────────
# CARDS
# ─────────────────────────────────────────────────────────────────────────────

def _render_levels(ctrl: SimulationController, entry: Entry, group: SimulationGroup) -> None:
    enabled = ctrl.levels_for(entry.id, group.id)
    recorded = ctrl.card_level(entry.id, group.id)
    cols = st.columns(len(LEVELS))
    for col, level in zip(cols, LEVELS):
        choice = find_choice(group, level)
        if level != 0 and choice is None:
            continue
        key = f"lvl_{entry.id}_{group.id}_{level}"
        _seed(key, level in enabled)
        label = LEVEL_ZERO_LABEL if choice is None else choice.label
        if recorded == level:
            label = f"**▶ {label}**"
        with col:
            st.checkbox(
                label,
                key=key,
                disabled=not ctrl.level_interactive(entry.id, group.id, level),
                help=None if choice is None else (choice.description or None),
                on_change=_on_level,
                args=(ctrl, entry.id, group.id, level, key),
            )
            if choice is not None and not ctrl.read_only:
                st.button(
                    "⚙️",
                    key=f"cfg_{key}",
                    help="Edit choice settings",
                    on_click=_open_choice_editor,
                    args=(ctrl, entry.id, group.id, level),
                )


def _render_scope(ctrl: SimulationController, entry: Entry, group: SimulationGroup) -> None:
    if not group.scope:
        st.button(
            "➕ Attach scope",
            key=f"scope_add_{entry.id}_{group.id}",
            disabled=ctrl.read_only or ctrl.is_pending("attach_scope", entry.id, group.id),
            on_click=ctrl.attach_scope,
            args=(entry.id, group.id),
        )
        return
    st.caption("Scope")
    cols = st.columns(min(len(group.scope), 6))
    for i, item in enumerate(group.scope):
        key = f"scope_{entry.id}_{group.id}_{item.id}"
        _seed(key, item.selected)
        cols[i % len(cols)].checkbox(
            item.label,
            key=key,
            disabled=ctrl.read_only,
            help=item.description,
            on_change=_on_scope,
            args=(ctrl, entry.id, group.id, item.id),
        )
    c1, c2, _ = st.columns([1, 1, 4])
    c1.button(
        "Select all", key=f"scope_all_{entry.id}_{group.id}", disabled=ctrl.read_only,
        on_click=ctrl.set_all_scope_items, args=(entry.id, group.id, True),
    )
    c2.button(
        "Clear", key=f"scope_none_{entry.id}_{group.id}", disabled=ctrl.read_only,
        on_click=ctrl.set_all_scope_items, args=(entry.id, group.id, False),
    )


def _render_group_text(ctrl: SimulationController, entry: Entry, group: SimulationGroup) -> None:
    pair = (entry.id, group.id)
    if pair in ctrl.label_drafts:
        key = f"draft_label_{entry.id}_{group.id}"
        st.session_state.setdefault(key, ctrl.label_drafts[pair])
        st.text_input("Label", key=key)
        c1, c2, _ = st.columns([1, 1, 4])
        c1.button("Save", key=f"save_{key}", type="primary",
                  on_click=_save_label, args=(ctrl, entry.id, group.id, key))
        c2.button("Cancel", key=f"cancel_{key}",
                  on_click=_cancel_label, args=(ctrl, entry.id, group.id, key))

    if pair in ctrl.description_drafts:
        key = f"draft_desc_{entry.id}_{group.id}"
        st.session_state.setdefault(key, ctrl.description_drafts[pair])
        st.text_area("Description", key=key)
        c1, c2, _ = st.columns([1, 1, 4])
        c1.button("Save", key=f"save_{key}", type="primary",
                  on_click=_save_description, args=(ctrl, entry.id, group.id, key))
        c2.button("Cancel", key=f"cancel_{key}",
                  on_click=_cancel_description, args=(ctrl, entry.id, group.id, key))
    elif group.description:
        st.caption(group.description)


def _render_group(ctrl: SimulationController, entry: Entry, group: SimulationGroup) -> None:
    key = f"grp_{entry.id}_{group.id}"
    _seed(key, group.active)
    head, actions = st.columns([3, 2])
    head.toggle(group.label or group.id, key=key, on_change=ctrl.toggle_group, args=(entry.id, group.id))
    with actions:
        a1, a2, a3, a4 = st.columns(4)
        a1.button("✏️", key=f"lbl_{key}", help="Rename",
                  on_click=ctrl.begin_label_edit, args=(entry.id, group.id))
        a2.button("📝", key=f"dsc_{key}", help="Edit description",
                  on_click=ctrl.begin_description_edit, args=(entry.id, group.id))
        a3.button("⚙️", key=f"set_{key}", help="Simulation settings",
                  on_click=_open_group_editor, args=(ctrl, entry.id, group.id))
        a4.button("🗑️", key=f"del_{key}", help="Delete simulation",
                  disabled=len(entry.groups) < 2, on_click=_ask_delete, args=(entry.id, group.id))

    _render_group_text(ctrl, entry, group)

    if st.session_state.confirm_delete == (entry.id, group.id):
        st.warning(f"Delete simulation “{group.label}”? This cannot be undone.")
        c1, c2, _ = st.columns([1, 1, 4])
        c1.button("Delete", key=f"confirm_{key}", type="primary", on_click=_confirm_delete, args=(ctrl,))
        c2.button("Keep", key=f"keep_{key}", on_click=_cancel_delete)

    editor = st.session_state.editor
    if editor and editor["entry_id"] == entry.id and editor["group_id"] == group.id:
        if editor["kind"] == "choice":
            _render_choice_editor(ctrl, editor, group)
        else:
            _render_group_editor(ctrl, editor)

    if group.active:
        _render_levels(ctrl, entry, group)
        _render_scope(ctrl, entry, group)


def _render_entry(ctrl: SimulationController, entry: Entry) -> None:
    with st.container(border=True):
        c1, c2 = st.columns([4, 1])
        c1.markdown(f"### {entry.label}")
        c1.caption(f"{entry.category} · `{entry.path}`")
        c2.button(
            "➕ Scenario",
            key=f"add_{entry.id}",
            disabled=ctrl.is_pending("add_scenario", entry.id),
            on_click=ctrl.add_scenario,
            args=(entry.id,),
            use_container_width=True,
        )
        with st.expander("Element path"):
            path_key = f"path_{entry.id}"
            st.session_state.setdefault(path_key, entry.path)
            st.text_input("Path", key=path_key)
            st.button("Save path", key=f"save_{path_key}",
                      on_click=lambda: ctrl.save_entry_path(entry.id, st.session_state[path_key]))
        for group in entry.groups:
            _render_group(ctrl, entry, group)
            st.markdown("---")


# ─────────────────────────────────────────────────────────────────────────────
# TAB
# ─────────────────────────────────────────────────────────────────────────────

def _add_entry(ctrl: SimulationController) -> None:
    if ctrl.append_entry(st.session_state.get("new_entry_name", "")):
        st.session_state.new_entry_name = ""


def render(ctrl: SimulationController) -> None:
    """Renders the Configuration tab content."""
    if ctrl.read_only:
        st.info(
            f"Viewing recorded scenario {ctrl.selected_ordinal}. "
            "Clear the selection in the Results tab to edit the configuration."
        )

    if not ctrl.entries:
        st.info("No simulation configuration loaded for this project.")
        return

    total = ctrl.total_combinations
    k1, k2, k3 = st.columns([2, 1, 1])
    k1.metric("Scenario combinations", f"{total:,}", help=f"Limit: {MAX_COMBINATIONS:,}")
    k2.button("↺ Reset", on_click=ctrl.reset, use_container_width=True)
    k3.button(
        "▶ Apply simulation",
        type="primary",
        disabled=ctrl.exceeds_limit or ctrl.read_only,
        on_click=ctrl.submit,
        use_container_width=True,
    )
    if ctrl.exceeds_limit:
        st.error(f"{total:,} combinations exceed the limit of {MAX_COMBINATIONS:,}. Disable some levels.")

    for entry in ctrl.entries:
        _render_entry(ctrl, entry)

    with st.container(border=True):
        st.subheader("Add element")
        c1, c2 = st.columns([3, 1])
        c1.text_input("Element name", key="new_entry_name", label_visibility="collapsed",
                      placeholder="Element name")
        c2.button("Add", on_click=_add_entry, args=(ctrl,), use_container_width=True)
