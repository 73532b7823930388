"""Debug panel field extraction.

Best-effort reading of "Label: value" lines. Labels match case-insensitively
anywhere on a line; a missing label leaves its field None. Nothing here
raises on malformed model output.
"""

from __future__ import annotations

import logging
import re
import unicodedata

from rta_samvada.config import DebugLabels
from rta_samvada.models import FieldSet

logger = logging.getLogger(__name__)

_DEFAULT_LABELS = DebugLabels()
_pattern_cache: dict[tuple[tuple[str, ...], str], re.Pattern] = {}


def _label_pattern(labels: tuple[str, ...], value: str) -> re.Pattern:
    """Compile `<any label>:<value>` once per label tuple."""
    key = (labels, value)
    pattern = _pattern_cache.get(key)
    if pattern is None:
        alternatives = "|".join(
            re.escape(unicodedata.normalize("NFC", label)) for label in labels
        )
        pattern = re.compile(rf"(?:{alternatives})[ \t]*:{value}", re.IGNORECASE)
        _pattern_cache[key] = pattern
    return pattern


def _extract_int(debug: str, labels: tuple[str, ...], name: str) -> int | None:
    """First digit run right after the label's colon, or None."""
    match = _label_pattern(labels, r"[ \t]*(\S*)").search(debug)
    if not match:
        return None
    digits = re.match(r"\d+", match.group(1))
    if not digits:
        logger.warning("Unparsable %s in debug panel: %r", name, match.group(1))
        return None
    return int(digits.group(0))


def _extract_list(debug: str, labels: tuple[str, ...], none_sentinel: str) -> list[str] | None:
    match = _label_pattern(labels, r"([^\r\n]*)").search(debug)
    if not match:
        return None
    remainder = match.group(1).strip()
    if remainder.lower() == none_sentinel.lower():
        return []
    return [item.strip() for item in remainder.split(",") if item.strip()]


def extract_fields(debug: str, labels: DebugLabels = _DEFAULT_LABELS) -> FieldSet:
    """Read integrity score, level and contradictions from debug panel text."""
    if not debug:
        return FieldSet()
    text = unicodedata.normalize("NFC", debug)
    fields = FieldSet(
        integrity_score=_extract_int(text, labels.integrity, "integrity score"),
        level=_extract_int(text, labels.level, "level"),
        contradiction_list=_extract_list(text, labels.contradictions, labels.none_sentinel),
    )
    logger.debug("extracted fields %s", fields.model_dump())
    return fields
