"""Backoffice API client for the simulation endpoints.

Every call goes through ``_request`` which attaches the bearer token when a
Session is supplied, applies the configured timeout, and converts transport
failures, HTTP error statuses and non-JSON bodies into ``BackendError``.

Endpoints utilized (relative to SCANDPE_API_URL):

GET   simul_init?ref_ademe=          POST  simul_init
GET   simul_graph?dpe_id=            GET   simul_simul?ref_ademe=&simul_id=&simul_max_id=
GET   simul_setting_edit             PATCH simul_setting_edit
PATCH simul_group_edit               POST  simul_group_init
POST  simul_scope_init               POST  simul_new / simul_delete
GET   simul_list (unauthenticated)   GET/POST settings
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

import requests
from requests import Response

from config.constants import (
    API_URL_ENV,
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT_S,
    ELEMENT_NUMERIC_IDS,
    EP_GROUP_EDIT,
    EP_GROUP_INIT,
    EP_SCOPE_INIT,
    EP_SETTING_EDIT,
    EP_SETTINGS,
    EP_SIMUL_DELETE,
    EP_SIMUL_GRAPH,
    EP_SIMUL_INIT,
    EP_SIMUL_LIST,
    EP_SIMUL_NEW,
    EP_SIMUL_SIMUL,
    TIMEOUT_ENV,
)
from core.errors import BackendError, MalformedResponse
from services.auth import Session

logger = logging.getLogger(__name__)


def _get_timeout() -> float:
    try:
        return float(os.getenv(TIMEOUT_ENV, DEFAULT_TIMEOUT_S))
    except ValueError:
        return float(DEFAULT_TIMEOUT_S)


def element_numeric_id(entry_id: str) -> int:
    return ELEMENT_NUMERIC_IDS.get(entry_id, 0)


class BackendClient:
    """Thin JSON-over-HTTPS wrapper; one method per backoffice endpoint."""

    def __init__(self, base_url: Optional[str] = None, timeout_s: Optional[float] = None):
        self.base_url = (base_url or os.getenv(API_URL_ENV, DEFAULT_API_URL)).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else _get_timeout()

    # ── transport ────────────────────────────────────────────────────────────

    def _request(
        self,
        method: str,
        endpoint: str,
        session: Optional[Session] = None,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if session is not None:
            headers.update(session.auth_headers())
        send = getattr(requests, method.lower())
        url = f"{self.base_url}/{endpoint}"
        try:
            resp: Response = send(
                url,
                params=dict(params) if params else None,
                json=body,
                headers=headers,
                timeout=self.timeout_s,
            )
            resp.raise_for_status()
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            logger.warning("%s %s failed with HTTP %s", method, endpoint, status)
            raise BackendError(f"{endpoint} request failed: {status}", status_code=status) from exc
        except requests.RequestException as exc:
            logger.warning("%s %s transport error: %s", method, endpoint, type(exc).__name__)
            raise BackendError(f"{endpoint} request failed: {exc}") from exc

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponse(f"{endpoint} returned a non-JSON body") from exc

    @staticmethod
    def _require_session(session: Optional[Session]) -> Session:
        if session is None:
            raise BackendError("No access token available")
        return session

    # ── configuration snapshot ───────────────────────────────────────────────

    def fetch_snapshot(self, session: Optional[Session], ref_ademe: str) -> Mapping[str, Any]:
        body = self._request(
            "GET", EP_SIMUL_INIT, self._require_session(session), params={"ref_ademe": ref_ademe}
        )
        if not isinstance(body, Mapping):
            raise MalformedResponse("simul_init snapshot must be a JSON object")
        return body

    def submit_configuration(self, session: Optional[Session], payload: Mapping[str, Any]) -> Any:
        return self._request("POST", EP_SIMUL_INIT, self._require_session(session), body=dict(payload))

    # ── results ──────────────────────────────────────────────────────────────

    def fetch_graph(self, session: Optional[Session], dpe_id: str) -> Any:
        return self._request("GET", EP_SIMUL_GRAPH, session, params={"dpe_id": dpe_id})

    def fetch_scenario(
        self,
        session: Optional[Session],
        ref_ademe: str,
        ordinal: int,
        max_ordinal: Optional[int],
    ) -> Any:
        params: dict[str, Any] = {"ref_ademe": ref_ademe, "simul_id": str(ordinal)}
        if max_ordinal is not None:
            params["simul_max_id"] = str(max_ordinal)
        return self._request("GET", EP_SIMUL_SIMUL, self._require_session(session), params=params)

    # ── settings of choices, groups and entries ──────────────────────────────

    def fetch_choice_setting(self, session: Optional[Session], entry_id: str, choice_id: Any) -> Any:
        return self._request(
            "GET",
            EP_SETTING_EDIT,
            self._require_session(session),
            params={"element": entry_id, "alt": str(choice_id)},
        )

    def save_choice_setting(
        self,
        session: Optional[Session],
        ref_ademe: str,
        entry_id: str,
        choice_id: Any,
        level: int,
        label: str,
        description: str,
        modifier_rule: Any,
    ) -> Any:
        return self._request(
            "PATCH",
            EP_SETTING_EDIT,
            self._require_session(session),
            params={
                "ref_ademe": ref_ademe,
                "element": element_numeric_id(entry_id),
                "alt": str(choice_id),
            },
            body={
                "label": label,
                "description": description,
                "modifier_rule": modifier_rule,
                "level": level,
            },
        )

    def fetch_group_setting(self, session: Optional[Session], entry_id: str, group_id: str) -> Any:
        return self._request(
            "GET",
            EP_SETTING_EDIT,
            self._require_session(session),
            params={"entry": entry_id, "simulation": group_id},
        )

    def save_group_setting(
        self,
        session: Optional[Session],
        entry_id: str,
        group_id: str,
        label: str,
        path: str,
        json_action: Any,
    ) -> Any:
        return self._request(
            "PATCH",
            EP_SETTING_EDIT,
            self._require_session(session),
            body={
                "entry": entry_id,
                "simulation": group_id,
                "label": label,
                "path": path,
                "json_action": json_action,
            },
        )

    def save_entry_path(self, session: Optional[Session], entry_id: str, path: str) -> Any:
        return self._request(
            "PATCH", EP_SETTING_EDIT, self._require_session(session), body={"entry": entry_id, "path": path}
        )

    def edit_group(self, session: Optional[Session], entry_id: str, group_id: str, **fields: Any) -> Any:
        """PATCH simul_group_edit with ``label`` and/or ``description``."""
        body = {"entry": entry_id, "group": group_id}
        body.update(fields)
        return self._request("PATCH", EP_GROUP_EDIT, self._require_session(session), body=body)

    def create_group(self, session: Optional[Session], entry_id: str) -> Any:
        return self._request("POST", EP_GROUP_INIT, self._require_session(session), body={"entry": entry_id})

    def attach_scope(self, session: Optional[Session], ref_ademe: str, entry_id: str, group_id: str) -> Any:
        return self._request(
            "POST",
            EP_SCOPE_INIT,
            self._require_session(session),
            body={"ref_ademe": ref_ademe, "group_id": group_id, "element": entry_id},
        )

    # ── project lifecycle (unauthenticated) ──────────────────────────────────

    def list_projects(self) -> list[dict[str, Any]]:
        body = self._request("GET", EP_SIMUL_LIST)
        if not isinstance(body, Mapping) or body.get("status") != "success" or not isinstance(body.get("data"), list):
            raise MalformedResponse("Invalid simul_list response structure")
        return [row for row in body["data"] if isinstance(row, Mapping)]

    def create_project(self, ref_ademe: str) -> Any:
        return self._request("POST", EP_SIMUL_NEW, body={"ref_ademe": ref_ademe})

    def delete_project(self, ref_ademe: str) -> Any:
        return self._request("POST", EP_SIMUL_DELETE, body={"ref_ademe": ref_ademe})

    # ── backoffice settings ──────────────────────────────────────────────────

    def fetch_settings(self, session: Optional[Session], frontend_version: str) -> Mapping[str, Any]:
        body = self._request(
            "GET", EP_SETTINGS, self._require_session(session), params={"frontend_version": frontend_version}
        )
        data = body.get("data") if isinstance(body, Mapping) else None
        return data if isinstance(data, Mapping) else {}

    def save_settings(self, session: Optional[Session], settings: Mapping[str, Any]) -> Any:
        return self._request("POST", EP_SETTINGS, self._require_session(session), body=dict(settings))
