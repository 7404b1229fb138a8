"""
QA Test Suite — core/correlator.py
==================================
Card order, ordinal parsing, scenario-detail validation and per-card inputs.
"""
from __future__ import annotations

import pytest

import core.activation as activation
import core.model as model
from config.scenarios import DEMO_GRAPH, DEMO_SNAPSHOT
from core.correlator import (
    ScenarioDetail,
    card_index,
    card_order,
    extract_step_info,
    graph_points,
    max_ordinal,
    parse_graph_data,
    parse_ordinal,
    parse_scenario_detail,
    selected_level,
    strip_path_prefix,
)
from core.errors import MalformedResponse


@pytest.fixture
def entries():
    return model.load_entries(DEMO_SNAPSHOT)


def _detail(choices=(1, 0), inputs=None):
    return ScenarioDetail(ordinal=3, status="success", choices=tuple(choices), inputs=inputs, outputs={})


# ─────────────────────────────────────────────────────────────────────────────
# CARD ORDER
# ─────────────────────────────────────────────────────────────────────────────

class TestCardOrder:
    def test_only_active_groups_in_load_order(self, entries):
        assert card_order(entries) == [
            ("wall", "simul_wall_001"),
            ("floor_low", "simul_floor_low_001"),
        ]

    def test_inactive_card_has_no_index(self, entries):
        assert card_index(entries, "wall", "simul_wall_002") is None
        assert card_index(entries, "floor_low", "simul_floor_low_001") == 1

    def test_non_structural_edits_keep_card_order(self, entries):
        before = card_order(entries)
        out = model.rename_group(entries, "wall", "simul_wall_001", "Renamed")
        out = model.describe_group(out, "floor_low", "simul_floor_low_001", "d")
        out = model.toggle_scope_item(out, "wall", "simul_wall_001", "0")
        out = model.rename_choice(out, "wall", "simul_wall_001", 0, "x")
        out = model.set_entry_path(out, "wall", "/elsewhere")
        assert card_order(out) == before

    def test_activating_an_earlier_entry_shifts_indices(self, entries):
        out = activation.toggle_entry(entries, "floor_high")
        assert card_index(out, "floor_high", "simul_floor_high_001") == 2
        out = activation.toggle_group(out, "wall", "simul_wall_001")
        assert card_index(out, "floor_high", "simul_floor_high_001") == 1


# ─────────────────────────────────────────────────────────────────────────────
# PARSING
# ─────────────────────────────────────────────────────────────────────────────

class TestParseOrdinal:
    @pytest.mark.parametrize(
        "raw, expected",
        [("3", 3), (" 0 ", 0), (7, 7), (["4"], 4), (None, None), ("", None),
         ("abc", None), ("-1", None), (True, None), ([], None)],
    )
    def test_values(self, raw, expected):
        assert parse_ordinal(raw) == expected


class TestParseScenarioDetail:
    def test_valid_body(self):
        body = {"status": "success", "data": {"choices": [1, "2"], "inputs": [{}], "outputs": {"a": 1}}}
        detail = parse_scenario_detail(3, body)
        assert detail.choices == (1, 2)
        assert detail.as_payload() == {
            "status": "success",
            "data": {"choices": [1, 2], "inputs": [{}], "outputs": {"a": 1}},
        }

    @pytest.mark.parametrize(
        "body",
        [[], {"status": "ok"}, {"data": []}, {"data": {"choices": "12"}}, {"data": {"choices": ["x"]}}],
    )
    def test_malformed_bodies(self, body):
        with pytest.raises(MalformedResponse):
            parse_scenario_detail(0, body)

    def test_selected_level_bounds(self):
        detail = _detail((2, 1))
        assert selected_level(detail, 0) == 2
        assert selected_level(detail, 2) is None
        assert selected_level(None, 0) is None
        assert selected_level(detail, None) is None


# ─────────────────────────────────────────────────────────────────────────────
# PER-CARD INPUTS
# ─────────────────────────────────────────────────────────────────────────────

class TestStripPathPrefix:
    def test_strips_nested_keys_only_with_dot(self):
        value = {
            "/config/wall.thickness": 5,
            "/config/wallpaper": 1,
            "other": {"/config/wall.u": 0.3, "list": [{"/config/wall.x": 1}]},
        }
        assert strip_path_prefix(value, "/config/wall") == {
            "thickness": 5,
            "/config/wallpaper": 1,
            "other": {"u": 0.3, "list": [{"x": 1}]},
        }

    def test_scalars_pass_through(self):
        assert strip_path_prefix(3, "/config/wall") == 3


class TestExtractStepInfo:
    def test_card_inputs_are_indexed_and_stripped(self, entries):
        inputs = [{"/config/wall.level": 1}, {"/config/floor_low.level": 0}]
        info = extract_step_info(_detail((1, 0), inputs), entries, "floor_low", "simul_floor_low_001", 0)
        assert info["card_index"] == 1
        assert info["inputs"] == {"level": 0}
        assert info["all_inputs_array"] is inputs
        assert info["choices_array"] == [1, 0]
        assert info["entry_id"] == "floor_low"
        assert info["simulation_id"] == "simul_floor_low_001"

    def test_short_inputs_array_gives_empty_inputs(self, entries):
        info = extract_step_info(_detail((1, 0), [{}]), entries, "floor_low", "simul_floor_low_001", 0)
        assert info["inputs"] == {}

    def test_mapping_inputs_are_used_whole(self, entries):
        info = extract_step_info(_detail((1, 0), {"/config/wall.a": 1}), entries, "wall", "simul_wall_001", 1)
        assert info["inputs"] == {"a": 1}

    def test_inactive_card_returns_none(self, entries):
        assert extract_step_info(_detail(), entries, "wall", "simul_wall_002", 1) is None


# ─────────────────────────────────────────────────────────────────────────────
# GRAPH
# ─────────────────────────────────────────────────────────────────────────────

class TestGraph:
    def test_parse_and_points(self):
        rows = parse_graph_data({"data": DEMO_GRAPH})
        assert max_ordinal(rows) == 6
        points = graph_points(rows)
        assert [p.ordinal for p in points] == list(range(6))
        assert points[0].y == 234.0
        assert points[0].emission == 41.0

    def test_points_keep_row_inputs(self):
        rows = [{"inputs": {"wall.level": 2}, "result": {"ep_conso_5_usages_m2": 180, "emission_ges_5_usages_m2": 30}}]
        (point,) = graph_points(rows)
        assert point.inputs == {"wall.level": 2}
        assert point.emission == 30.0

    def test_rows_without_numbers_are_skipped(self):
        points = graph_points([{"result": {}}, {"result": {"ep_conso_5_usages_m2": "12.5"}}])
        assert [(p.ordinal, p.y, p.emission) for p in points] == [(1, 12.5, None)]

    def test_empty_graph_has_no_max(self):
        assert max_ordinal([]) is None

    def test_invalid_structure_raises(self):
        with pytest.raises(MalformedResponse):
            parse_graph_data({"data": "nope"})
