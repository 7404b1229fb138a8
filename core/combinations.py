"""Scenario combination counting.

The backend evaluates the cross product of every active group's enabled
levels, so the number of generated scenarios is a product of per-entry
factors.  Entries without an active group are excluded (factor 1).  An
active group whose level set was emptied contributes 0.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from config.constants import BASELINE_LEVEL, MAX_COMBINATIONS
from core.model import Entries, Entry, LevelMap, entries_to_payload, find_active_group


def entry_factor(entry: Entry, level_map: LevelMap) -> int:
    """Number of enabled levels for the Entry's active group.

    A group with no recorded set counts as baseline only; an explicitly
    empty set counts as 0.
    """
    group = find_active_group(entry)
    if group is None:
        return 1
    levels = level_map.get((entry.id, group.id), frozenset({BASELINE_LEVEL}))
    return len(levels)


def total_combinations(entries: Entries, level_map: LevelMap) -> int:
    total = 1
    for entry in entries:
        total *= entry_factor(entry, level_map)
    return total


def exceeds_limit(total: int, limit: int = MAX_COMBINATIONS) -> bool:
    return total > limit


def build_submission(
    ref_ademe: Optional[str],
    entries: Entries,
    level_map: LevelMap,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Body for POST simul_init.

    ``checkboxStates`` keys follow the backend's ``<entryId>_<groupId>``
    convention; level lists are sorted so the payload is deterministic.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "ref_ademe":         ref_ademe,
        "entries":           entries_to_payload(entries, level_map),
        "totalCombinations": total_combinations(entries, level_map),
        "checkboxStates": {
            f"{entry_id}_{group_id}": sorted(levels)
            for (entry_id, group_id), levels in level_map.items()
        },
        "timestamp": stamp,
    }
