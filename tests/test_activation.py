"""
QA Test Suite — core/activation.py
==================================
Mutual exclusion of groups, level policy and reset.
"""
from __future__ import annotations

import pytest

import core.activation as activation
import core.model as model
from config.scenarios import DEMO_SNAPSHOT


@pytest.fixture
def entries():
    return model.load_entries(DEMO_SNAPSHOT)


def _active_ids(entry):
    return [g.id for g in entry.groups if g.active]


# ─────────────────────────────────────────────────────────────────────────────
# GROUP ACTIVATION
# ─────────────────────────────────────────────────────────────────────────────

class TestToggleGroup:
    def test_activating_switches_sibling_off(self, entries):
        out = activation.toggle_group(entries, "wall", "simul_wall_002")
        assert _active_ids(out[0]) == ["simul_wall_002"]

    def test_deactivating_leaves_no_active_group(self, entries):
        out = activation.toggle_group(entries, "wall", "simul_wall_001")
        assert _active_ids(out[0]) == []

    def test_at_most_one_active_after_any_sequence(self, entries):
        out = entries
        for gid in ("simul_wall_002", "simul_wall_001", "simul_wall_001", "simul_wall_002"):
            out = activation.toggle_group(out, "wall", gid)
            assert len(_active_ids(out[0])) <= 1

    def test_unknown_ids_are_a_no_op(self, entries):
        assert activation.toggle_group(entries, "roof", "x") is entries
        assert activation.toggle_group(entries, "wall", "x") is entries

    def test_other_entries_untouched(self, entries):
        out = activation.toggle_group(entries, "wall", "simul_wall_002")
        assert out[1:] == entries[1:]

    def test_toggle_entry_uses_first_group(self, entries):
        out = activation.toggle_entry(entries, "floor_high")
        assert _active_ids(out[2]) == ["simul_floor_high_001"]


# ─────────────────────────────────────────────────────────────────────────────
# LEVEL POLICY
# ─────────────────────────────────────────────────────────────────────────────

class TestLevels:
    def test_initial_map_covers_active_groups_only(self, entries):
        levels = activation.initial_level_map(entries)
        assert levels == {
            ("wall", "simul_wall_001"): frozenset({0, 1, 2}),
            ("floor_low", "simul_floor_low_001"): frozenset({0, 1}),
        }

    def test_seed_keeps_existing_sets(self, entries):
        existing = {("wall", "simul_wall_001"): frozenset({0})}
        out = activation.seed_level_map(entries, existing)
        assert out[("wall", "simul_wall_001")] == frozenset({0})
        assert ("floor_low", "simul_floor_low_001") in out

    def test_level_zero_is_never_interactive(self):
        assert activation.level_interactive({0, 1}, 0) is False

    def test_levels_need_baseline(self):
        assert activation.level_interactive({0}, 1) is True
        assert activation.level_interactive(set(), 2) is False

    def test_read_only_disables_everything(self):
        assert activation.level_interactive({0, 1, 2}, 1, read_only=True) is False

    def test_toggle_level_adds_and_removes(self):
        key = ("wall", "g")
        out = activation.toggle_level({key: frozenset({0})}, "wall", "g", 2, True)
        assert out[key] == frozenset({0, 2})
        out = activation.toggle_level(out, "wall", "g", 2, False)
        assert out[key] == frozenset({0})

    def test_cannot_remove_baseline(self):
        key = ("wall", "g")
        out = activation.toggle_level({key: frozenset({0, 1})}, "wall", "g", 0, False)
        assert out[key] == frozenset({0, 1})

    def test_adding_without_baseline_is_ignored(self):
        key = ("wall", "g")
        out = activation.toggle_level({key: frozenset()}, "wall", "g", 1, True)
        assert out[key] == frozenset()

    def test_missing_key_defaults_to_baseline(self):
        out = activation.toggle_level({}, "wall", "g", 1, True)
        assert out[("wall", "g")] == frozenset({0, 1})

    def test_unknown_level_raises(self):
        with pytest.raises(ValueError):
            activation.toggle_level({}, "wall", "g", 3, True)


# ─────────────────────────────────────────────────────────────────────────────
# RESET
# ─────────────────────────────────────────────────────────────────────────────

class TestReset:
    def test_reset_restores_first_group_and_presets(self, entries):
        current = activation.toggle_group(entries, "wall", "simul_wall_002")
        current = activation.toggle_entry(current, "baie_vitree")
        restored, levels = activation.reset(entries, current)

        assert _active_ids(restored[0]) == ["simul_wall_001"]
        for entry in restored:
            assert len(_active_ids(entry)) == 1
        assert levels[("wall", "simul_wall_001")] == frozenset({0, 1, 2})
        assert levels[("baie_vitree", "simul_baie_vitree_001")] == frozenset({0})

    def test_reset_keeps_local_labels(self, entries):
        current = model.rename_group(entries, "wall", "simul_wall_001", "Edited")
        restored, _ = activation.reset(entries, current)
        assert restored[0].groups[0].label == "Edited"
