"""
QA Test Suite — services/audit.py
=================================
In-session audit log: capping, ordering and redaction of secret material.
Streamlit's session state is replaced with a plain dict.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

import services.audit as audit


@pytest.fixture(autouse=True)
def fake_state(monkeypatch):
    state = {}
    monkeypatch.setattr(audit, "st", SimpleNamespace(session_state=state))
    return state


class TestAuditLog:
    def test_most_recent_first(self):
        audit.log_event("GROUP_RENAMED", "wall")
        audit.log_event("CONFIG_SUBMITTED", "2508E0243162W: 6 combinations")
        log = audit.get_log()
        assert [e["action"] for e in log] == ["CONFIG_SUBMITTED", "GROUP_RENAMED"]
        assert log[0]["ts"].endswith("UTC")

    def test_log_is_capped(self, fake_state):
        for i in range(60):
            audit.log_event("GROUP_RENAMED", f"entry {i}")
        assert len(fake_state[audit._LOG_KEY]) == 50
        assert audit.get_log(1)[0]["details"] == "entry 59"

    def test_email_is_redacted(self):
        audit.log_event("PROJECT_CREATED", "by jeanne.dupont@example.fr")
        assert audit.get_log(1)[0]["details"] == "by j***@example.fr"

    def test_jwt_is_redacted(self):
        audit.log_event("LOGIN", "token eyJhbGciOiJIUzI1NiJ9.eyJzdWIiOiIxMjM0NTY3ODkwIn0.sig")
        assert audit.get_log(1)[0]["details"] == "token [redacted]"

    def test_opaque_and_hex_keys_are_redacted(self):
        audit.log_event("SETTINGS_UPDATED", "key aB3dE5gH7jK9mN1pQ3sT5vX7zA9cE1gI2k")
        audit.log_event("SETTINGS_UPDATED", "key " + "0123456789abcdef" * 3)
        assert [e["details"] for e in audit.get_log(2)] == ["key [redacted]", "key [redacted]"]

    @pytest.mark.parametrize(
        "details",
        ["plancher_bas_sur_vide_sanitaire_local", "simul_plancher_bas_sur_vide_sanitaire_local_001", "2508E0243162W: 6 combinations"],
    )
    def test_long_identifiers_are_kept(self, details):
        audit.log_event("GROUP_RENAMED", details)
        assert audit.get_log(1)[0]["details"] == details

    def test_clear(self):
        audit.log_event("GROUP_RENAMED", "wall")
        audit.clear_log()
        assert audit.get_log() == []
