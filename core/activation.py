# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Activation Rules
# © 2026 Aparajita Parihar. All rights reserved.
#
# Enforces:
#   • at most one active Simulation Group per Entry (mutual exclusion on
#     activation, in the same returned value)
#   • level 0 always enabled; levels 1/2 only alongside level 0
#
# All functions are pure: they take Entries / level maps and return new ones.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from config.constants import BASELINE_LEVEL, LEVELS
from core.model import (
    Entries,
    LevelKey,
    LevelMap,
    SimulationGroup,
    find_active_group,
    find_choice,
    find_entry,
    map_entry_groups,
)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP ACTIVATION
# ─────────────────────────────────────────────────────────────────────────────

def toggle_group(entries: Entries, entry_id: str, group_id: str) -> Entries:
    """Flip one group's active flag.

    Turning a group on turns every sibling off; turning it off leaves
    siblings alone. Unknown ids return the entries unchanged.
    """
    entry = find_entry(entries, entry_id)
    if entry is None or not any(g.id == group_id for g in entry.groups):
        return entries

    target = next(g for g in entry.groups if g.id == group_id)
    activating = not target.active

    def _apply(groups: tuple[SimulationGroup, ...]) -> tuple[SimulationGroup, ...]:
        if activating:
            return tuple(replace(g, active=(g.id == group_id)) for g in groups)
        return tuple(replace(g, active=False) if g.id == group_id else g for g in groups)

    return map_entry_groups(entries, entry_id, _apply)


def toggle_entry(entries: Entries, entry_id: str) -> Entries:
    """Flip the active flag of the Entry's first group."""
    entry = find_entry(entries, entry_id)
    if entry is None or not entry.groups:
        return entries
    return toggle_group(entries, entry_id, entry.groups[0].id)


# ─────────────────────────────────────────────────────────────────────────────
# ENABLED LEVELS
# ─────────────────────────────────────────────────────────────────────────────

def initial_levels(group: SimulationGroup) -> frozenset:
    """``{0}`` plus each level whose Choice the backend marked as checked."""
    levels = {BASELINE_LEVEL}
    for level in (1, 2):
        choice = find_choice(group, level)
        if choice is not None and choice.preset_checked:
            levels.add(level)
    return frozenset(levels)


def initial_level_map(entries: Entries) -> dict[LevelKey, frozenset]:
    """Initial enabled-level sets for every active group."""
    out: dict[LevelKey, frozenset] = {}
    for entry in entries:
        for group in entry.groups:
            if group.active:
                out[(entry.id, group.id)] = initial_levels(group)
    return out


def seed_level_map(entries: Entries, level_map: LevelMap) -> dict[LevelKey, frozenset]:
    """Add initial sets for active groups missing from ``level_map``."""
    out = dict(level_map)
    for entry in entries:
        group = find_active_group(entry)
        if group is not None and (entry.id, group.id) not in out:
            out[(entry.id, group.id)] = initial_levels(group)
    return out


def set_enabled_levels(
    level_map: LevelMap, entry_id: str, group_id: str, levels: Iterable[int]
) -> dict[LevelKey, frozenset]:
    """Replace one pair's enabled-level set verbatim."""
    out = dict(level_map)
    out[(entry_id, group_id)] = frozenset(levels)
    return out


def level_interactive(levels: Iterable[int], level: int, read_only: bool = False) -> bool:
    """Whether a level checkbox may be clicked.

    Level 0 never is. Levels 1/2 are only while level 0 is enabled and the
    configuration is editable.
    """
    if read_only or level == BASELINE_LEVEL:
        return False
    return BASELINE_LEVEL in set(levels)


def toggle_level(
    level_map: LevelMap, entry_id: str, group_id: str, level: int, checked: bool
) -> dict[LevelKey, frozenset]:
    """Apply one checkbox change under the interactive policy.

    Removing level 0 and adding 1/2 without level 0 are no-ops.
    """
    if level not in LEVELS:
        raise ValueError(f"Unknown level: {level!r}")
    key = (entry_id, group_id)
    current = frozenset(level_map.get(key, frozenset({BASELINE_LEVEL})))
    if level == BASELINE_LEVEL:
        return set_enabled_levels(level_map, entry_id, group_id, current | {BASELINE_LEVEL})
    if checked and BASELINE_LEVEL not in current:
        return dict(level_map)
    updated = current | {level} if checked else current - {level}
    return set_enabled_levels(level_map, entry_id, group_id, updated)


# ─────────────────────────────────────────────────────────────────────────────
# RESET
# ─────────────────────────────────────────────────────────────────────────────

def reset(original: Entries, current: Entries) -> tuple[Entries, dict[LevelKey, frozenset]]:
    """Restore first-group activation and preset level sets.

    Group labels and structure of ``current`` are kept; activation flags and
    level presets come from ``original``.  Returns ``(entries, level_map)``.
    """

    def _first_on(groups: tuple[SimulationGroup, ...]) -> tuple[SimulationGroup, ...]:
        return tuple(replace(g, active=(i == 0)) for i, g in enumerate(groups))

    restored = current
    for entry in current:
        restored = map_entry_groups(restored, entry.id, _first_on)

    level_map: dict[LevelKey, frozenset] = {}
    for entry in restored:
        group = find_active_group(entry)
        if group is None:
            continue
        source = next(
            (g for e in original if e.id == entry.id for g in e.groups if g.id == group.id),
            group,
        )
        level_map[(entry.id, group.id)] = initial_levels(source)
    return restored, level_map
