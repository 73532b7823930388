"""Examiner output splitting: dialogue vs. debug panel, then speaker header."""

from __future__ import annotations

from rta_samvada.config import DebugLabels

_DEFAULT_LABELS = DebugLabels()


def segment(raw: str, labels: DebugLabels = _DEFAULT_LABELS) -> tuple[str, str]:
    """Split a raw response into (content, debug).

    Only the first marker counts. Separator lines are removed from the debug
    text wherever they occur. Without a marker the whole input is content.
    """
    index = raw.find(labels.marker)
    if index == -1:
        return raw.strip(), ""

    content = raw[:index].strip()
    debug = raw[index + len(labels.marker):]
    if labels.separator:
        debug = debug.replace(labels.separator, "")
    return content, debug.strip()


def extract_speaker(content: str) -> tuple[str | None, str]:
    """Pull a "[Speaker]" header off the first line.

    "[]" yields an empty-string speaker, not None. Anything else on the first
    line (including trailing spaces after the bracket) means no header.
    Only newlines break lines, not form feeds or Unicode separators; a CRLF
    header is still recognised.
    """
    lines = content.split("\n")
    header = lines[0].removesuffix("\r")
    if header.startswith("[") and header.endswith("]"):
        return header[1:-1], "\n".join(lines[1:]).strip()
    return None, content
