# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Session Credentials
# © 2026 Aparajita Parihar. All rights reserved.
#
# The identity provider is an external collaborator.  This module only models
# the resulting credential as an explicit value and turns it into request
# headers; business logic receives it through a credential-provider callable
# and never reads browser/session storage itself.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from config.constants import SESSION_LIFETIME_S

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    token: str
    expires_at: datetime
    user: Mapping[str, Any] = field(default_factory=dict)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return bool(self.token) and now < self.expires_at

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def to_storage(self) -> str:
        """Serialise in the ``auth_state`` shape used by the web client."""
        return json.dumps(
            {
                "accessToken": self.token,
                "userInfo": dict(self.user),
                "expiresAt": self.expires_at.isoformat(),
            }
        )


CredentialProvider = Callable[[], Optional[Session]]


def new_session(
    token: str,
    user: Optional[Mapping[str, Any]] = None,
    lifetime_s: int = SESSION_LIFETIME_S,
    now: Optional[datetime] = None,
) -> Session:
    now = now or datetime.now(timezone.utc)
    return Session(token=token, expires_at=now + timedelta(seconds=lifetime_s), user=dict(user or {}))


def _parse_expiry(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def session_from_storage(raw: Optional[str], now: Optional[datetime] = None) -> Optional[Session]:
    """Rebuild a Session from a stored ``auth_state`` JSON string.

    Missing, unparsable or expired state yields None.
    """
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding unreadable stored auth state")
        return None
    if not isinstance(data, Mapping):
        return None
    token = data.get("accessToken")
    expires_at = _parse_expiry(data.get("expiresAt"))
    if not token or expires_at is None:
        return None
    session = Session(token=str(token), expires_at=expires_at, user=data.get("userInfo") or {})
    return session if session.is_valid(now) else None


def static_provider(session: Optional[Session]) -> CredentialProvider:
    """Provider that always yields ``session`` while it remains valid."""

    def _provide() -> Optional[Session]:
        return session if session is not None and session.is_valid() else None

    return _provide
