"""JSON file storage for the session state.

The whole session lives in one JSON blob under a fixed key, so the directory
layout is a single file:

    {base}/
      rta_samvada_state.json   ← the serialised SessionState

The store is the only writer of that file. Writes replace it whole; a blob
that cannot be read back as a SessionState is treated as absent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from rta_samvada.models import SessionState

logger = logging.getLogger(__name__)

STORAGE_KEY = "rta_samvada_state"


class SessionStore:
    def __init__(self, base_path: Path, key: str = STORAGE_KEY) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = base_path / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> SessionState | None:
        """Return the persisted state, or None if missing or unreadable."""
        if not self._path.exists():
            return None
        try:
            return SessionState.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            # ValueError covers json.JSONDecodeError and bad UTF-8
            logger.warning("Discarding unreadable session state at %s: %s", self._path, e)
            return None

    def save(self, state: SessionState) -> None:
        """Overwrite the stored blob with the full state."""
        tmp = self._path.with_suffix(".json.tmp")
        tmp.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug(
            "saved session %s (%d messages)",
            state.player_id, len(state.session_history),
        )

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    def create(self) -> SessionState:
        return SessionState.new()

