# backend/essay_coach/routes/highlights.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..deps import rate_limit
from ..schemas.highlight import FeedbackOut, IndexUnit, RenderOut, RenderRequest
from ..services.highlight import render, render_feedback
from ..services.spans import span_from_highlight, spans_from_highlights

log = logging.getLogger(__name__)

router = APIRouter(prefix="/highlights", tags=["highlights"])


def resolve_index_unit(value: str | None) -> str:
    unit = (value or "").strip().lower()
    if unit in {u.value for u in IndexUnit}:
        return unit
    log.warning("Unknown HIGHLIGHT_INDEX_UNIT %r, using %s", value, IndexUnit.codepoint.value)
    return IndexUnit.codepoint.value


DEFAULT_INDEX_UNIT = resolve_index_unit(os.getenv("HIGHLIGHT_INDEX_UNIT", IndexUnit.codepoint.value))


def render_with_feedback(text: str, highlights: list, index_unit: str | None = None) -> RenderOut:
    spans = spans_from_highlights(text, highlights, index_unit or DEFAULT_INDEX_UNIT)
    result = render(text, spans)
    return RenderOut(
        markup=result.markup,
        rendered_span_order=result.rendered_span_order,
        feedback=[render_feedback(spans[i]) for i in result.rendered_span_order],
    )


@router.post("/render", response_model=RenderOut, dependencies=[Depends(rate_limit("general"))])
def render_highlights(req: RenderRequest) -> RenderOut:
    unit = req.index_unit.value if req.index_unit else None
    return render_with_feedback(req.text, req.highlights, unit)


@router.post("/feedback", response_model=FeedbackOut, dependencies=[Depends(rate_limit("general"))])
def feedback_html(highlight: Dict[str, Any]) -> FeedbackOut:
    return FeedbackOut(html=render_feedback(span_from_highlight("", highlight)))
