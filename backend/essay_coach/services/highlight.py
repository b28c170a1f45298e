# backend/essay_coach/services/highlight.py
from __future__ import annotations

from html import escape
from typing import List, Sequence

from ..schemas.common import SEVERITIES, Span
from ..schemas.highlight import RenderResult

CATEGORY_NAMES = {
    "cliche": "Cliché",
    "weak_verb": "Weak Verb",
    "vague": "Vague Statement",
    "show_dont_tell": "Show, Don't Tell",
    "grammar": "Grammar",
    "unclear": "Unclear",
    "strength": "Strength",
}


def escape_text(s: str) -> str:
    # quote=True also covers " and ' so slices are safe inside attributes
    return escape(s or "", quote=True)


def category_label(category: str | None) -> str:
    if not category:
        return "Feedback"
    return CATEGORY_NAMES.get(category, category)


def is_valid_span(span: Span, text_length: int) -> bool:
    severity = getattr(span.severity, "value", span.severity)
    return (
        0 <= span.start_index < span.end_index <= text_length
        and severity in SEVERITIES
    )


def _marker(n: int, span: Span, start: int, end: int, inner: str) -> str:
    severity = getattr(span.severity, "value", span.severity)
    label = escape_text(category_label(span.category))
    return (
        f'<mark class="essay-highlight highlight-{severity}" '
        f'data-index="{n}" '
        f'data-category="{label}" '
        f'data-start="{start}" '
        f'data-end="{end}" '
        f'role="mark" '
        f'aria-label="{label}: {inner}" '
        f'tabindex="0">'
        f"{inner}"
        f"</mark>"
    )


def render(text: str, spans: Sequence[Span]) -> RenderResult:
    """
    Single-pass highlight rendering.

    Invalid spans are dropped silently. Survivors are sorted by start index
    (stable, so input order breaks ties) and swept left to right; a span
    starting inside a region already claimed by an earlier marker is
    truncated to begin where that marker ended, or skipped if nothing is
    left. Every text slice is HTML-escaped before it is wrapped.

    Returns the markup and the input indices of the rendered spans, in the
    order their markers appear.
    """
    text = text or ""
    n = len(text)
    valid = [(i, s) for i, s in enumerate(spans or []) if is_valid_span(s, n)]
    valid.sort(key=lambda pair: pair[1].start_index)

    out: List[str] = []
    order: List[int] = []
    last_index = 0

    for i, span in valid:
        start, end = span.start_index, span.end_index
        if start > last_index:
            out.append(escape_text(text[last_index:start]))

        actual_start = max(start, last_index)
        if actual_start >= end:
            continue

        inner = escape_text(text[actual_start:end])
        out.append(_marker(len(order), span, actual_start, end, inner))
        order.append(i)
        last_index = end

    if last_index < n:
        out.append(escape_text(text[last_index:]))

    return RenderResult(markup="".join(out), rendered_span_order=order)


def render_feedback(span: Span) -> str:
    """Detail-panel markup for one span; every field is escaped."""
    severity = getattr(span.severity, "value", span.severity)
    parts = [
        f'<div class="highlight-tooltip tooltip-{escape_text(str(severity))}">',
        f'<div class="tooltip-category">{escape_text(category_label(span.category))}</div>',
    ]
    fb = span.feedback
    for key, title, value in (
        ("why", "Why", fb.why),
        ("how", "How to improve", fb.how),
        ("suggestion", "Suggestion", fb.suggestion),
    ):
        if value and value.strip():
            parts.append(
                f'<p class="tooltip-{key}"><strong>{title}:</strong> {escape_text(value)}</p>'
            )
    parts.append("</div>")
    return "".join(parts)
