"""
QA Test Suite — services/auth.py
================================
Session value, stored auth_state round trip and credential providers.
"""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from services.auth import Session, new_session, session_from_storage, static_provider

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestSession:
    def test_bearer_header(self):
        s = new_session("abc", now=NOW)
        assert s.auth_headers() == {"Authorization": "Bearer abc"}

    def test_lifetime(self):
        s = new_session("abc", lifetime_s=60, now=NOW)
        assert s.is_valid(NOW + timedelta(seconds=59))
        assert not s.is_valid(NOW + timedelta(seconds=60))

    def test_empty_token_is_never_valid(self):
        assert not Session(token="", expires_at=NOW + timedelta(hours=1)).is_valid(NOW)


class TestStorage:
    def test_round_trip(self):
        s = new_session("abc", {"email": "a@b.fr"}, now=NOW)
        restored = session_from_storage(s.to_storage(), now=NOW)
        assert restored == s

    def test_storage_shape(self):
        data = json.loads(new_session("abc", {"name": "N"}, now=NOW).to_storage())
        assert set(data) == {"accessToken", "userInfo", "expiresAt"}

    def test_expired_state_is_dropped(self):
        raw = new_session("abc", lifetime_s=10, now=NOW).to_storage()
        assert session_from_storage(raw, now=NOW + timedelta(minutes=1)) is None

    def test_zulu_expiry_is_accepted(self):
        raw = json.dumps({"accessToken": "abc", "expiresAt": "2026-03-01T13:00:00Z"})
        assert session_from_storage(raw, now=NOW).token == "abc"

    def test_garbage_is_dropped(self):
        for raw in (None, "", "not json", "[]", json.dumps({"accessToken": "abc"})):
            assert session_from_storage(raw, now=NOW) is None


class TestProviders:
    def test_static_provider(self):
        live = new_session("abc")
        assert static_provider(live)() is live
        assert static_provider(None)() is None

    def test_static_provider_stops_after_expiry(self):
        stale = Session(token="abc", expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))
        assert static_provider(stale)() is None
