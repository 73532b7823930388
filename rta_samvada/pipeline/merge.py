"""Applying extracted fields to the session state.

apply_fields() is pure: it returns a new state and never persists. Score
and level are replaced outright, contradictions are set-unioned. The failure
predicate (integrity <= 0) is evaluated on the replaced, unclamped score; a
dissolved result must be discarded by the caller in favour of a fresh state.
"""

from __future__ import annotations

from dataclasses import dataclass

from rta_samvada.models import FieldSet, SessionState

LEVEL_RANGE = (1, 6)
INTEGRITY_RANGE = (0, 100)


@dataclass(frozen=True)
class MergeResult:
    state: SessionState
    dissolved: bool = False


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def union(existing: list[str], new: list[str]) -> list[str]:
    """Order-preserving set union."""
    merged = list(existing)
    seen = set(existing)
    for item in new:
        if item not in seen:
            merged.append(item)
            seen.add(item)
    return merged


def is_dissolved(state: SessionState) -> bool:
    return state.integrity_score <= 0


def apply_fields(state: SessionState, fields: FieldSet, clamp: bool = True) -> MergeResult:
    """Merge one turn's fields into a copy of `state`."""
    if fields.is_empty():
        return MergeResult(state=state)

    updates: dict = {}
    if fields.integrity_score is not None:
        updates["integrity_score"] = fields.integrity_score
    if fields.level is not None:
        updates["current_level"] = fields.level
    if fields.contradiction_list:
        updates["contradictions"] = union(state.contradictions, fields.contradiction_list)

    merged = state.model_copy(update=updates, deep=True)
    if is_dissolved(merged):
        return MergeResult(state=merged, dissolved=True)

    if clamp:
        merged.current_level = _clamp(merged.current_level, LEVEL_RANGE)
        merged.integrity_score = _clamp(merged.integrity_score, INTEGRITY_RANGE)
    return MergeResult(state=merged)
