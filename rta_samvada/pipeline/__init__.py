"""Parse-and-apply pipeline for examiner responses.

Executes the full turn loop for one player message:
  1. segment          — split raw text at the debug marker into content + debug.
  2. extract_speaker  — take a "[Deva]" header off the content's first line.
  3. extract_fields   — read integrity score, level and contradictions from
                        the debug panel; absent labels stay None.
  4. apply_fields     — replace score/level, union contradictions, and flag
                        dissolution when integrity drops to zero or below.
  5. Session          — owns the state, gates concurrent input, persists after
                        every accepted turn, and resets on dissolution.

Raw response format (parsed by segment + extract_speaker + extract_fields):
  [SPEAKER]
  Dialogue lines.
  --- DEBUG PANEL ---
  Active Level: 2
  Ṛta Integrity Score: 45 / 100
  Active Contradictions: lied about age, denied prior claim
  -------------------
"""

from .extractors import extract_fields  # noqa: F401
from .merge import MergeResult, apply_fields  # noqa: F401
from .segments import extract_speaker, segment  # noqa: F401
from .session import (  # noqa: F401
    DISSOLUTION_NOTICE,
    RESET_PROMPT,
    Session,
    SessionBusyError,
    TurnResult,
    auto_acknowledge,
)
