"""
QA Test Suite — services/demo.py
================================
The offline backend must answer with the same shapes as the live one.
"""
from __future__ import annotations

import pytest

import core.activation as activation
import core.model as model
from core.combinations import build_submission
from core.correlator import max_ordinal, parse_graph_data, parse_scenario_detail
from core.errors import BackendError
from services.demo import DemoClient


@pytest.fixture
def client():
    return DemoClient()


class TestDemoResults:
    def test_initial_graph_matches_demo_configuration(self, client):
        rows = parse_graph_data(client.fetch_graph(None, "REF"))
        assert max_ordinal(rows) == 6
        assert rows[0]["result"]["ep_conso_5_usages_m2"] == 234.0

    def test_scenario_detail_parses(self, client):
        detail = parse_scenario_detail(5, client.fetch_scenario(None, "REF", 5, 6))
        assert detail.choices == (2, 1)
        assert len(detail.inputs) == 2
        assert detail.inputs[0]["/config/wall.level"] == 2

    def test_unknown_scenario_raises(self, client):
        with pytest.raises(BackendError):
            client.fetch_scenario(None, "REF", 6, 6)

    def test_submission_regenerates_scenarios(self, client):
        entries = model.load_entries(client.fetch_snapshot(None, "REF"))
        entries = activation.toggle_group(entries, "wall", "simul_wall_001")
        levels = activation.initial_level_map(entries)
        body = client.submit_configuration(None, build_submission("REF", entries, levels))
        assert body["totalCombinations"] == 2
        assert max_ordinal(parse_graph_data(client.fetch_graph(None, "REF"))) == 2
        reloaded = model.load_entries(client.fetch_snapshot(None, "REF"))
        assert not any(g.active for g in reloaded[0].groups)


class TestDemoStructure:
    def test_create_group_and_attach_scope(self, client):
        client.create_group(None, "floor_low")
        snapshot = client.fetch_snapshot(None, "REF")
        new_group = snapshot["floor_low"]["simul"][-1]
        assert new_group["id"] == "simul_floor_low_002"
        client.attach_scope(None, "REF", "floor_low", new_group["id"])
        group = model.load_entries(client.fetch_snapshot(None, "REF"))[1].groups[-1]
        assert len(group.scope) == 6

    def test_unknown_group_raises(self, client):
        with pytest.raises(BackendError):
            client.edit_group(None, "wall", "nope", label="x")

    def test_project_lifecycle(self, client):
        client.create_project("ABCDEFGHIJ123")
        assert "ABCDEFGHIJ123" in [p["ref_ademe"] for p in client.list_projects()]
        client.delete_project("ABCDEFGHIJ123")
        assert "ABCDEFGHIJ123" not in [p["ref_ademe"] for p in client.list_projects()]

    def test_settings(self, client):
        client.save_settings(None, {"3cl_endpoint": "https://3cl.test"})
        assert client.fetch_settings(None, "1.0.0")["3cl_endpoint"] == "https://3cl.test"
