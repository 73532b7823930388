"""Handlebars prompt rendering for the examiner.

Two templates are rendered per turn:
  SYSTEM_TEMPLATE   — the fixed game rules and the strict response format,
                      including the debug panel the extractors read back.
  CONTEXT_TEMPLATE  — the state snapshot (level, integrity, facts,
                      contradictions, timeline, recent history) followed by
                      the player's input.

Raw values use triple-stache so JSON quotes and player text pass through
unescaped.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pybars

from rta_samvada.config import DebugLabels
from rta_samvada.models import DevaName, Message, SessionState

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


DEVA_ROLES: dict[DevaName, str] = {
    DevaName.SMRTI: "Memory. Stores facts, detects contradictions.",
    DevaName.BUDDHI: "Logic. Evaluates causality and reasoning.",
    DevaName.MANAS: "Emotion. Tracks emotional tone, stress, mismatch.",
    DevaName.MAYA: "Deception. Probes manipulation, plants subtle false assumptions.",
    DevaName.KARMA: "Ethics. Tracks moral alignment and value-action consistency.",
}

LEVEL_NAMES = ["Memory", "Emotion", "Logic", "Deception", "Ethical", "Integrated"]

SYSTEM_TEMPLATE = """\
You are the Core Narrative Cognition Engine for the game ṚTA-SAMVĀDA (ऋत-संवाद).
This is a dialogue-driven, deception-aware, memory-persistent psychological game.
The player stands in the Sabhā, a metaphysical court beyond time.

CORE LOOP:
1. Interpret meaning, intent, emotion and implications of the player's words.
2. Compare them against stored memory.
3. Update the global state and each Deva's assessment.
4. Answer in-world as exactly ONE Deva.
5. Emit the full debug panel.

DEVAS:
{{#each devas}}
- {{{name}}}: {{{role}}}
{{/each}}

SCORING:
+10 honest self-correction, +5 calm consistency, +5 emotion matching claim.
-5 minor inconsistency, -7 emotional mismatch, -10 manipulation attempt,
-15 major contradiction, -20 narrative collapse.

LEVELS (1-{{level_count}}): {{{levels}}}.

RESPONSE FORMAT (STRICT):
[Name of Deva speaking]

<In-world dialogue only>

{{{labels.marker}}}
{{{level_label}}}:
Speaking Deva:
Smṛti Memory Notes:
Buddhi Logic Analysis:
Manas Emotional Read:
Māyā Deception Index (0–100):
Karma Alignment Score (0–100):
{{{integrity_label}}}: XX / 100
{{{contradictions_label}}}: <comma-separated, or {{{labels.none_sentinel}}}>
Persisted to Browser DB: YES
{{{labels.separator}}}

Act as a skeptical reality. Do not be an assistant. Be a metaphysical examiner.
"""

CONTEXT_TEMPLATE = """\
CURRENT STATE:
Level: {{level}}
Integrity: {{integrity}}
Established Facts: {{{facts}}}
Contradictions: {{{contradictions}}}
Timeline: {{{timeline}}}
History Summary: {{{history}}}

PLAYER INPUT: {{{message}}}"""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return compiled(context)
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def history_excerpt(messages: list[Message], window: int) -> str:
    """Last `window` messages as "[role] text" lines."""
    if window <= 0:
        return ""
    return "\n".join(f"[{m.role}] {m.text}" for m in messages[-window:])


def build_context(state: SessionState, player_message: str, window: int = 10) -> dict[str, Any]:
    """Assemble template variables from a state snapshot."""
    return {
        "level": str(state.current_level),
        "integrity": str(state.integrity_score),
        "facts": json.dumps(state.established_facts, ensure_ascii=False),
        "contradictions": json.dumps(state.contradictions, ensure_ascii=False),
        "timeline": json.dumps(state.narrative_timeline, ensure_ascii=False),
        "history": history_excerpt(state.session_history, window),
        "message": player_message,
    }


def render_context(state: SessionState, player_message: str, window: int = 10) -> str:
    return render_prompt(CONTEXT_TEMPLATE, build_context(state, player_message, window))


def render_system(labels: DebugLabels | None = None) -> str:
    labels = labels or DebugLabels()
    return render_prompt(SYSTEM_TEMPLATE, {
        "devas": [{"name": d.value, "role": DEVA_ROLES[d]} for d in DevaName],
        "level_count": str(len(LEVEL_NAMES)),
        "levels": ", ".join(LEVEL_NAMES),
        "labels": labels.model_dump(),
        "level_label": labels.level[0],
        "integrity_label": labels.integrity[0],
        "contradictions_label": labels.contradictions[0],
    })
