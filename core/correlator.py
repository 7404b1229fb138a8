# ═══════════════════════════════════════════════════════════════════════════════
# ScanDPE Simulator — Selection Correlator
# © 2026 Aparajita Parihar. All rights reserved.
#
# Maps a scenario ordinal (a point on the results graph) back to the cards on
# screen and to the inputs/outputs the backend recorded for it.
#
# Card order == enumeration order everywhere:
#   entries in load order → each entry's single active group → skip entries
#   with none.  Rendering, indexing of the backend "inputs" array and the
#   combination product all iterate in this order.
# ═══════════════════════════════════════════════════════════════════════════════

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from core.errors import MalformedResponse
from core.model import Entries, LevelKey, find_active_group, find_entry

# Keys of a simul_graph result row
CONSO_KEY = "ep_conso_5_usages_m2"
GES_KEY = "emission_ges_5_usages_m2"


@dataclass(frozen=True)
class ScenarioDetail:
    """One recorded scenario as returned by ``simul_simul``."""

    ordinal: int
    status: str
    choices: tuple[int, ...]
    inputs: Any
    outputs: Any

    def as_payload(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "data": {"choices": list(self.choices), "inputs": self.inputs, "outputs": self.outputs},
        }


@dataclass(frozen=True)
class GraphPoint:
    ordinal: int
    x: float
    y: float
    emission: Optional[float] = None
    inputs: Any = field(default=None, compare=False)


# ─────────────────────────────────────────────────────────────────────────────
# CARD ORDER
# ─────────────────────────────────────────────────────────────────────────────

def card_order(entries: Entries) -> list[LevelKey]:
    out: list[LevelKey] = []
    for entry in entries:
        group = find_active_group(entry)
        if group is not None:
            out.append((entry.id, group.id))
    return out


def card_index(entries: Entries, entry_id: str, group_id: str) -> Optional[int]:
    try:
        return card_order(entries).index((entry_id, group_id))
    except ValueError:
        return None


# ─────────────────────────────────────────────────────────────────────────────
# RESPONSE PARSING
# ─────────────────────────────────────────────────────────────────────────────

def parse_ordinal(raw: Any) -> Optional[int]:
    """Parse a ``simul_id`` query value; anything non-numeric is None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
        if raw is None:
            return None
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None


def parse_scenario_detail(ordinal: int, body: Any) -> ScenarioDetail:
    """Validate a ``simul_simul`` body into a ScenarioDetail."""
    if not isinstance(body, Mapping):
        raise MalformedResponse("Scenario detail must be a JSON object")
    data = body.get("data")
    if not isinstance(data, Mapping):
        raise MalformedResponse("Scenario detail is missing its data payload")
    raw_choices = data.get("choices") or []
    if not isinstance(raw_choices, Sequence) or isinstance(raw_choices, (str, bytes)):
        raise MalformedResponse("Scenario choices must be a list of levels")
    try:
        choices = tuple(int(c) for c in raw_choices)
    except (TypeError, ValueError) as exc:
        raise MalformedResponse(f"Scenario choices must be integers: {exc}") from exc
    return ScenarioDetail(
        ordinal=ordinal,
        status=str(body.get("status", "")),
        choices=choices,
        inputs=data.get("inputs"),
        outputs=data.get("outputs"),
    )


def selected_level(detail: Optional[ScenarioDetail], index: Optional[int]) -> Optional[int]:
    """Level the recorded scenario used for the card at ``index``."""
    if detail is None or index is None or not 0 <= index < len(detail.choices):
        return None
    return detail.choices[index]


# ─────────────────────────────────────────────────────────────────────────────
# PER-CARD INPUTS
# ─────────────────────────────────────────────────────────────────────────────

def strip_path_prefix(value: Any, path: str) -> Any:
    """Drop a leading ``path + "."`` from every key, recursively.

    Keys namespaced under the card's own entry path duplicate the outer path;
    anything else is left untouched.
    """
    prefix = path + "."
    if isinstance(value, Mapping):
        out = {}
        for key, item in value.items():
            if isinstance(key, str) and key.startswith(prefix):
                key = key[len(prefix):]
            out[key] = strip_path_prefix(item, path)
        return out
    if isinstance(value, list):
        return [strip_path_prefix(item, path) for item in value]
    return value


def extract_step_info(
    detail: ScenarioDetail,
    entries: Entries,
    entry_id: str,
    group_id: str,
    level: int,
) -> Optional[dict[str, Any]]:
    """Inputs recorded for one card of the selected scenario.

    Returns None when the card is not among the active cards.
    """
    index = card_index(entries, entry_id, group_id)
    if index is None:
        return None

    inputs = detail.inputs
    if isinstance(inputs, list):
        card_inputs = inputs[index] if index < len(inputs) and inputs[index] is not None else {}
    else:
        card_inputs = inputs if inputs is not None else {}

    entry = find_entry(entries, entry_id)
    path = entry.path if entry is not None else f"/config/{entry_id}"

    return {
        "choice_index":     level,
        "card_index":       index,
        "inputs":           strip_path_prefix(card_inputs, path),
        "all_inputs_array": inputs,
        "simulation_id":    group_id,
        "entry_id":         entry_id,
        "choices_array":    list(detail.choices),
    }


# ─────────────────────────────────────────────────────────────────────────────
# GRAPH DATA
# ─────────────────────────────────────────────────────────────────────────────

def parse_graph_data(body: Any) -> list[dict[str, Any]]:
    if not isinstance(body, Mapping) or not isinstance(body.get("data"), list):
        raise MalformedResponse("Invalid graph response structure")
    return [row for row in body["data"] if isinstance(row, Mapping)]


def max_ordinal(graph_data: Sequence[Mapping[str, Any]]) -> Optional[int]:
    """Count of recorded scenarios, or None when nothing is recorded."""
    return len(graph_data) if graph_data else None


def graph_points(graph_data: Sequence[Mapping[str, Any]]) -> list[GraphPoint]:
    """Numeric pairs for the results scatter: x = ordinal, y = consumption."""
    points = []
    for i, row in enumerate(graph_data):
        result = row.get("result") or {}
        try:
            y = float(result.get(CONSO_KEY))
        except (TypeError, ValueError):
            continue
        try:
            emission = float(result.get(GES_KEY))
        except (TypeError, ValueError):
            emission = None
        points.append(GraphPoint(ordinal=i, x=float(i), y=y, emission=emission, inputs=row.get("inputs")))
    return points
