# backend/essay_coach/services/spans.py
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Sequence

from ..schemas.common import Feedback, Span

log = logging.getLogger(__name__)


# Helpers to guard against None/bad types coming out of the model
def to_int(x: Any, default: int = -1) -> int:
    if x is None or isinstance(x, bool):
        return default
    try:
        return int(x)
    except (TypeError, ValueError, OverflowError):
        return default


def to_str(x: Any, default: str = "") -> str:
    return str(x) if x is not None else default


def _first(h: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in h and h[k] is not None:
            return h[k]
    return None


def utf16_to_codepoint(text: str, offset: int) -> int:
    """
    Map a UTF-16 code unit offset into a code point offset of ``text``.
    An offset pointing into the middle of a surrogate pair snaps back to
    the start of that character. Negative offsets pass through unchanged
    and offsets past the end map past the end, so the validity filter
    still rejects them.
    """
    if offset <= 0:
        return offset
    units = 0
    for i, ch in enumerate(text):
        width = 2 if ord(ch) > 0xFFFF else 1
        if units + width > offset:
            return i
        units += width
    return len(text) + (offset - units)


def _anchor(text: str, literal: str, start: int, end: int) -> tuple[int, int]:
    if not literal or text[max(start, 0):max(end, 0)] == literal:
        return start, end
    best = -1
    pos = text.find(literal)
    while pos != -1:
        if best == -1 or abs(pos - start) < abs(best - start):
            best = pos
        pos = text.find(literal, pos + 1)
    if best == -1:
        return start, end
    log.debug("re-anchored highlight %r from %d to %d", literal[:40], start, best)
    return best, best + len(literal)


def span_from_highlight(text: str, h: Any, index_unit: str = "codepoint") -> Span:
    if not isinstance(h, Mapping):
        log.debug("dropping non-mapping highlight: %r", h)
        return Span(start_index=-1, end_index=-1, severity="")

    start = to_int(_first(h, "startIndex", "start_index", "start"))
    end = to_int(_first(h, "endIndex", "end_index", "end"))
    if index_unit == "utf16":
        start, end = utf16_to_codepoint(text, start), utf16_to_codepoint(text, end)
    start, end = _anchor(text, to_str(h.get("text")), start, end)

    return Span(
        start_index=start,
        end_index=end,
        severity=to_str(_first(h, "type", "severity")).strip().lower(),
        category=to_str(h.get("category")),
        feedback=Feedback(
            why=to_str(h.get("why")),
            how=to_str(h.get("how")),
            suggestion=to_str(h.get("suggestion")),
        ),
    )


def spans_from_highlights(
    text: str, highlights: Sequence[Any] | None, index_unit: str = "codepoint"
) -> List[Span]:
    """One Span per input highlight, positions preserved."""
    return [span_from_highlight(text or "", h, index_unit) for h in (highlights or [])]


def span_to_highlight(span: Span) -> dict:
    return {
        "startIndex": span.start_index,
        "endIndex": span.end_index,
        "type": span.severity,
        "category": span.category,
        "why": span.feedback.why,
        "how": span.feedback.how,
        "suggestion": span.feedback.suggestion,
    }
