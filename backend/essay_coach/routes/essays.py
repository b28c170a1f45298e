# backend/essay_coach/routes/essays.py
from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..deps import db_dep, rate_limit, require_api_key
from ..schemas.essay import AnalysisOut, AnalyzeRequest, EssayIn, EssayOut
from ..schemas.highlight import RenderOut, RenderResult
from ..services import analysis
from ..services import essays as store
from ..services.edits import TextEdit, shift_spans
from ..services.highlight import is_valid_span
from ..services.spans import spans_from_highlights
from .highlights import DEFAULT_INDEX_UNIT, render_with_feedback

log = logging.getLogger(__name__)

router = APIRouter(prefix="/essays", tags=["essays"])


async def _run_analysis(req: AnalyzeRequest) -> tuple[str, dict]:
    try:
        return await analysis.analyze_essay(req.essay, req.colleges, req.userProfile, req.prompt)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (RuntimeError, httpx.HTTPError) as e:
        log.error("Error in essay analysis: %s: %s", type(e).__name__, e)
        raise HTTPException(status_code=502, detail=f"Failed to analyze essay: {type(e).__name__}: {e}")


def _get_or_404(db: Session, essay_id: str):
    essay = store.get_essay(db, essay_id)
    if essay is None:
        raise HTTPException(status_code=404, detail=f"Essay {essay_id} not found")
    return essay


@router.post(
    "/analyze",
    response_model=AnalysisOut,
    dependencies=[Depends(require_api_key), Depends(rate_limit("ai"))],
)
async def analyze(req: AnalyzeRequest) -> AnalysisOut:
    text, result = await _run_analysis(req)
    rendered = render_with_feedback(text, result["highlights"])
    result["rendered"] = RenderResult(markup=rendered.markup, rendered_span_order=rendered.rendered_span_order)
    return AnalysisOut(**result)


@router.post("", response_model=EssayOut, dependencies=[Depends(rate_limit("storage"))])
def create(body: EssayIn, db: Session = Depends(db_dep)) -> EssayOut:
    return store.to_out(store.create_essay(db, body.title, body.text))


@router.get("/{essay_id}", response_model=EssayOut, dependencies=[Depends(rate_limit("storage"))])
def get(essay_id: str, db: Session = Depends(db_dep)) -> EssayOut:
    return store.to_out(_get_or_404(db, essay_id))


@router.put("/{essay_id}", response_model=EssayOut, dependencies=[Depends(rate_limit("storage"))])
def update(essay_id: str, body: EssayIn, db: Session = Depends(db_dep)) -> EssayOut:
    essay = _get_or_404(db, essay_id)
    return store.to_out(store.update_text(db, essay, body.text, body.title))


@router.post(
    "/{essay_id}/analyze",
    response_model=AnalysisOut,
    dependencies=[Depends(require_api_key), Depends(rate_limit("ai"))],
)
async def analyze_stored(essay_id: str, req: AnalyzeRequest | None = None, db: Session = Depends(db_dep)) -> AnalysisOut:
    essay = _get_or_404(db, essay_id)
    ctx = req or AnalyzeRequest(essay="")
    text, result = await _run_analysis(ctx.model_copy(update={"essay": essay.text}))

    # offsets refer to the stripped essay; move them back onto the stored text
    lead = len(essay.text) - len(essay.text.lstrip())
    spans = spans_from_highlights(text, result["highlights"], DEFAULT_INDEX_UNIT)
    spans = [s for s in spans if is_valid_span(s, len(text))]
    if lead:
        spans = shift_spans(spans, TextEdit(start=0, old_end=0, delta=lead))
    store.save_highlights(db, essay, spans)

    # stored highlights replace the raw list so rendered_span_order indexes into it
    result["highlights"] = [h.model_dump() for h in store.to_out(essay).highlights]
    rendered = render_with_feedback(essay.text, result["highlights"], "codepoint")
    result["rendered"] = RenderResult(markup=rendered.markup, rendered_span_order=rendered.rendered_span_order)
    return AnalysisOut(**result)


@router.get("/{essay_id}/render", response_model=RenderOut, dependencies=[Depends(rate_limit("general"))])
def render_stored(essay_id: str, db: Session = Depends(db_dep)) -> RenderOut:
    essay = _get_or_404(db, essay_id)
    highlights = [h.model_dump() for h in store.to_out(essay).highlights]
    return render_with_feedback(essay.text, highlights, "codepoint")
