"""
QA Test Suite — app/session.py
==============================
Secrets lookup, idempotent initialisation and the credential provider.
Streamlit is replaced by a namespace of plain dicts.
"""
from __future__ import annotations

from types import SimpleNamespace

import pytest

import app.session as session_mod
from services.auth import new_session


@pytest.fixture
def fake_st(monkeypatch):
    fake = SimpleNamespace(secrets={}, session_state={}, query_params={"ref_ademe": "2508E0243162W"})
    monkeypatch.setattr(session_mod, "st", fake)
    monkeypatch.delenv("SCANDPE_ACCESS_TOKEN", raising=False)
    return fake


class TestSecrets:
    def test_secrets_take_priority(self, fake_st, monkeypatch):
        fake_st.secrets["SCANDPE_DEMO"] = "true"
        monkeypatch.setenv("SCANDPE_DEMO", "0")
        assert session_mod._get_secret("SCANDPE_DEMO") == "true"
        assert session_mod.demo_mode() is True

    def test_env_fallback(self, fake_st, monkeypatch):
        monkeypatch.setenv("SCANDPE_DEMO", "0")
        assert session_mod.demo_mode() is False
        assert session_mod._get_secret("MISSING", "dflt") == "dflt"


class TestInitSession:
    def test_seeds_ref_from_query(self, fake_st):
        session_mod.init_session()
        assert fake_st.session_state["ref_ademe"] == "2508E0243162W"
        assert fake_st.session_state["graph_nonce"] == 0

    def test_is_idempotent(self, fake_st):
        session_mod.init_session()
        fake_st.session_state["graph_nonce"] = 4
        session_mod.init_session()
        assert fake_st.session_state["graph_nonce"] == 4


class TestCredentials:
    def test_no_token_no_session(self, fake_st):
        assert session_mod.credential_provider()() is None

    def test_configured_token_is_stored(self, fake_st, monkeypatch):
        monkeypatch.setenv("SCANDPE_ACCESS_TOKEN", "tok")
        session = session_mod.current_session()
        assert session.token == "tok"
        assert fake_st.session_state["auth_state"] is not None

    def test_stored_session_wins(self, fake_st, monkeypatch):
        monkeypatch.setenv("SCANDPE_ACCESS_TOKEN", "env-token")
        fake_st.session_state["auth_state"] = new_session("stored").to_storage()
        assert session_mod.current_session().token == "stored"
