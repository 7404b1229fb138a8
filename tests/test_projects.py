from __future__ import annotations

import pytest

from app.tabs.projects import load_projects, validate_ref
from config.scenarios import FALLBACK_PROJECTS
from core.errors import MalformedResponse


class _Client:
    def __init__(self, rows=None, error=None):
        self.rows = rows
        self.error = error

    def list_projects(self):
        if self.error is not None:
            raise self.error
        return self.rows


@pytest.mark.parametrize(
    "ref, ok",
    [("2508E0243162W", True), ("2508e0243162w", False), ("2508E0243162", False),
     ("2508E0243162WX", False), ("2508E-243162W", False), ("", False)],
)
def test_validate_ref(ref, ok):
    assert validate_ref(ref) is ok


def test_live_list():
    rows = [{"id": 9, "ref_ademe": "2508E0243162W", "status": "running"}]
    assert load_projects(_Client(rows)) == (rows, True)


def test_fallback_on_failure():
    projects, live = load_projects(_Client(error=MalformedResponse("bad envelope")))
    assert live is False
    assert projects == FALLBACK_PROJECTS
