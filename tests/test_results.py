"""
QA Test Suite — app/tabs/results.py
===================================
Per-card detail rows for the selected scenario.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from app.tabs.results import card_details
from core.bridge import SimulationController
from services.auth import Session, static_provider
from services.demo import DemoClient


@pytest.fixture
def ctrl():
    session = Session(token="tok", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))
    c = SimulationController("2508E0243162W", static_provider(session), DemoClient())
    assert c.load()
    c.select_ordinal(3)
    c.drain_notices()
    return c


class TestCardDetails:
    def test_rows_carry_stripped_card_inputs(self, ctrl):
        rows = card_details(ctrl)
        assert [level for _, level, _ in rows] == [1, 1]
        assert rows[0][0].endswith("Simulation Mur Standard")
        assert rows[0][2]["level"] == 1
        assert ctrl.drain_notices() == []

    def test_missing_inputs_raise_no_notices(self, ctrl):
        ctrl.selection = dataclasses.replace(ctrl.selection, inputs=None)
        for _ in range(3):
            rows = card_details(ctrl)
        assert all(inputs is None for _, _, inputs in rows)
        assert ctrl.drain_notices() == []
