# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Entity Model
# © 2026 Aparajita Parihar. All rights reserved.
#
# In-memory Entries (building elements), each owning Simulation Groups, each
# owning up to two Choices plus an optional Scope set.
#
# Rules:
#   • Every type is a frozen dataclass; every operation returns a NEW tuple of
#     Entries.  Callers may keep earlier snapshots for diffing.
#   • Accessors return None for "not found"; they never raise.
#
# This file has ZERO Streamlit and ZERO network imports.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping, Optional

from config.constants import DEFAULT_ENTRY_PATH_PREFIX, MAX_CHOICES_PER_GROUP

# (entryId, groupId) is the only key shape used for selection state
LevelKey = tuple[str, str]
LevelMap = Mapping[LevelKey, frozenset]


@dataclass(frozen=True)
class Choice:
    id: Any
    index: int
    label: str
    description: str = ""
    preset_checked: bool = False


@dataclass(frozen=True)
class ScopeItem:
    id: str
    label: str
    selected: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class SimulationGroup:
    id: str
    active: bool
    label: str
    description: Optional[str] = None
    path: str = ""
    choices: tuple[Choice, ...] = ()
    scope: tuple[ScopeItem, ...] = ()


@dataclass(frozen=True)
class Entry:
    id: str
    label: str
    category: str
    path: str
    groups: tuple[SimulationGroup, ...] = field(default_factory=tuple)


Entries = tuple[Entry, ...]


# ─────────────────────────────────────────────────────────────────────────────
# SNAPSHOT NORMALISATION
# ─────────────────────────────────────────────────────────────────────────────

def _normalize_scope_item(raw: Mapping[str, Any]) -> ScopeItem:
    """Coerce one scope row to an explicit id/label/selected triple."""
    sid = raw.get("id")
    label = raw.get("label")
    return ScopeItem(
        id=str(sid if sid not in (None, "") else label),
        label=str(label if label not in (None, "") else sid),
        selected=bool(raw.get("selected") or False),
        description=raw.get("description"),
    )


def _normalize_choice(raw: Mapping[str, Any], index: int) -> Choice:
    return Choice(
        id=raw.get("id", index),
        index=index,
        label=str(raw.get("label") or ""),
        description=str(raw.get("description") or ""),
        preset_checked=bool(raw.get("checked") or False),
    )


def _normalize_group(raw: Mapping[str, Any]) -> SimulationGroup:
    choices = [c for c in (raw.get("choices") or []) if isinstance(c, Mapping)]
    scope = [s for s in (raw.get("scope") or []) if isinstance(s, Mapping)]
    return SimulationGroup(
        id=str(raw.get("id", "")),
        active=bool(raw.get("active") or False),
        label=str(raw.get("label") or ""),
        description=raw.get("description"),
        path=str(raw.get("path") or ""),
        choices=tuple(
            _normalize_choice(c, i) for i, c in enumerate(choices[:MAX_CHOICES_PER_GROUP])
        ),
        scope=tuple(_normalize_scope_item(s) for s in scope),
    )


def _display_category(raw: Any) -> str:
    return "Enveloppe" if raw == "enveloppe" else str(raw or "")


def _single_active(groups: list[SimulationGroup]) -> tuple[SimulationGroup, ...]:
    """Keep only the first active group active."""
    seen = False
    out = []
    for group in groups:
        if group.active and seen:
            group = replace(group, active=False)
        seen = seen or group.active
        out.append(group)
    return tuple(out)


def load_entries(snapshot: Mapping[str, Any]) -> Entries:
    """Build Entries from a ``simul_init`` snapshot, preserving key order.

    Snapshots marking several groups of one Entry active keep the first.
    Raises ``TypeError`` when the snapshot is not a mapping of mappings; the
    bridge turns that into a user-facing notice.
    """
    if not isinstance(snapshot, Mapping):
        raise TypeError(f"Snapshot must be a mapping, got {type(snapshot).__name__}")

    entries: list[Entry] = []
    for key, value in snapshot.items():
        if not isinstance(value, Mapping):
            raise TypeError(f"Entry {key!r} must be a mapping")
        groups = [g for g in (value.get("simul") or []) if isinstance(g, Mapping)]
        entries.append(
            Entry(
                id=str(key),
                label=str(value.get("label") or key),
                category=_display_category(value.get("category")),
                path=str(value.get("path") or f"{DEFAULT_ENTRY_PATH_PREFIX}/{key}"),
                groups=_single_active([_normalize_group(g) for g in groups]),
            )
        )
    return tuple(entries)


# ─────────────────────────────────────────────────────────────────────────────
# ACCESSORS
# ─────────────────────────────────────────────────────────────────────────────

def find_entry(entries: Entries, entry_id: str) -> Optional[Entry]:
    return next((e for e in entries if e.id == entry_id), None)


def find_group(entry: Optional[Entry], group_id: str) -> Optional[SimulationGroup]:
    if entry is None:
        return None
    return next((g for g in entry.groups if g.id == group_id), None)


def find_active_group(entry: Optional[Entry]) -> Optional[SimulationGroup]:
    """Return the Entry's active group, or None when every group is off."""
    if entry is None:
        return None
    return next((g for g in entry.groups if g.active), None)


def find_choice(group: Optional[SimulationGroup], level: int) -> Optional[Choice]:
    """Map level 1/2 to choice[0]/choice[1]; level 0 has no Choice."""
    if group is None or level not in (1, 2):
        return None
    idx = level - 1
    return group.choices[idx] if idx < len(group.choices) else None


# ─────────────────────────────────────────────────────────────────────────────
# STRUCTURAL OPERATIONS
# ─────────────────────────────────────────────────────────────────────────────

def _slug(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip().lower())


def append_entry(entries: Entries, name: str, now: Optional[float] = None) -> Entries:
    """Append a custom Entry with one default active group and no Choices.

    Ids are millisecond stamps, bumped until unique within ``entries``.
    """
    clean = name.strip()
    if not clean:
        raise ValueError("Entry name cannot be empty")
    stamp = int((now if now is not None else time.time()) * 1000)
    taken = {e.id for e in entries}
    while f"entry{stamp}" in taken:
        stamp += 1
    slug = _slug(clean)
    entry = Entry(
        id=f"entry{stamp}",
        label=clean,
        category="Custom",
        path=f"{DEFAULT_ENTRY_PATH_PREFIX}/{slug}",
        groups=(
            SimulationGroup(
                id=f"simul_{slug}_{stamp}",
                active=True,
                label=f"Simulation {clean}",
                description=f"Configuration personnalisée pour {clean}",
                path=f"{DEFAULT_ENTRY_PATH_PREFIX}/{slug}/custom",
            ),
        ),
    )
    return tuple(entries) + (entry,)


def remove_group(entries: Entries, entry_id: str, group_id: str) -> Entries:
    """Delete one group. The Entry's last group is never removed."""
    out = []
    for entry in entries:
        if entry.id == entry_id and len(entry.groups) > 1:
            entry = replace(entry, groups=tuple(g for g in entry.groups if g.id != group_id))
        out.append(entry)
    return tuple(out)


# ─────────────────────────────────────────────────────────────────────────────
# NON-STRUCTURAL EDITS
# Card order depends only on entry order and active flags, so none of these
# can move a card.
# ─────────────────────────────────────────────────────────────────────────────

def _map_group(
    entries: Entries,
    entry_id: str,
    group_id: str,
    fn: Callable[[SimulationGroup], SimulationGroup],
) -> Entries:
    out = []
    for entry in entries:
        if entry.id == entry_id:
            entry = replace(
                entry,
                groups=tuple(fn(g) if g.id == group_id else g for g in entry.groups),
            )
        out.append(entry)
    return tuple(out)


def map_entry_groups(
    entries: Entries,
    entry_id: str,
    fn: Callable[[tuple[SimulationGroup, ...]], tuple[SimulationGroup, ...]],
) -> Entries:
    """Replace one Entry's group tuple with ``fn(groups)``."""
    return tuple(
        replace(e, groups=tuple(fn(e.groups))) if e.id == entry_id else e for e in entries
    )


def rename_group(entries: Entries, entry_id: str, group_id: str, label: str) -> Entries:
    return _map_group(entries, entry_id, group_id, lambda g: replace(g, label=label))


def describe_group(
    entries: Entries, entry_id: str, group_id: str, description: Optional[str]
) -> Entries:
    value = (description or "").strip() or None
    return _map_group(entries, entry_id, group_id, lambda g: replace(g, description=value))


def set_group_path(entries: Entries, entry_id: str, group_id: str, path: str) -> Entries:
    return _map_group(entries, entry_id, group_id, lambda g: replace(g, path=path))


def set_entry_path(entries: Entries, entry_id: str, path: str) -> Entries:
    return tuple(replace(e, path=path) if e.id == entry_id else e for e in entries)


def rename_choice(
    entries: Entries, entry_id: str, group_id: str, index: int, label: str
) -> Entries:
    def _rename(group: SimulationGroup) -> SimulationGroup:
        return replace(
            group,
            choices=tuple(
                replace(c, label=label) if c.index == index else c for c in group.choices
            ),
        )

    return _map_group(entries, entry_id, group_id, _rename)


def toggle_scope_item(entries: Entries, entry_id: str, group_id: str, scope_id: str) -> Entries:
    def _toggle(group: SimulationGroup) -> SimulationGroup:
        return replace(
            group,
            scope=tuple(
                replace(s, selected=not s.selected) if s.id == scope_id else s
                for s in group.scope
            ),
        )

    return _map_group(entries, entry_id, group_id, _toggle)


def set_all_scope_items(
    entries: Entries, entry_id: str, group_id: str, selected: bool
) -> Entries:
    def _set(group: SimulationGroup) -> SimulationGroup:
        return replace(group, scope=tuple(replace(s, selected=selected) for s in group.scope))

    return _map_group(entries, entry_id, group_id, _set)


# ─────────────────────────────────────────────────────────────────────────────
# SERIALISATION
# ─────────────────────────────────────────────────────────────────────────────

def entries_to_payload(entries: Entries, level_map: LevelMap) -> list[dict[str, Any]]:
    """Serialise Entries for POST simul_init.

    A choice is reported ``checked`` when its level is enabled for the group.
    """
    payload = []
    for entry in entries:
        simul = []
        for group in entry.groups:
            levels = level_map.get((entry.id, group.id), frozenset())
            simul.append(
                {
                    "id":          group.id,
                    "active":      group.active,
                    "label":       group.label,
                    "description": group.description,
                    "path":        group.path,
                    "scope": [
                        {
                            "id":          s.id,
                            "label":       s.label,
                            "description": s.description,
                            "selected":    s.selected,
                        }
                        for s in group.scope
                    ],
                    "choices": [
                        {
                            "id":          c.id,
                            "label":       c.label,
                            "description": c.description,
                            "checked":     (c.index + 1) in levels,
                        }
                        for c in group.choices
                    ],
                }
            )
        payload.append(
            {"id": entry.id, "label": entry.label, "category": entry.category, "simul": simul}
        )
    return payload
