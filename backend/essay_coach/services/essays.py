# backend/essay_coach/services/essays.py
from __future__ import annotations

import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from ..models import Essay, EssayHighlight
from ..schemas.common import Feedback, Span
from ..schemas.essay import EssayHighlightOut, EssayOut
from .edits import detect_edit, shift_spans

log = logging.getLogger(__name__)


def create_essay(db: Session, title: str | None, text: str) -> Essay:
    essay = Essay(title=title, text=text or "")
    db.add(essay)
    db.commit()
    db.refresh(essay)
    return essay


def get_essay(db: Session, essay_id: str) -> Essay | None:
    return db.query(Essay).filter(Essay.essay_id == essay_id).first()


def stored_spans(essay: Essay) -> List[Span]:
    return [
        Span(
            start_index=h.start_index,
            end_index=h.end_index,
            severity=h.severity,
            category=h.category or "",
            feedback=Feedback(why=h.why or "", how=h.how or "", suggestion=h.suggestion or ""),
        )
        for h in essay.highlights
    ]


def _replace_highlights(essay: Essay, spans: Sequence[Span]) -> None:
    essay.highlights.clear()
    for pos, s in enumerate(spans):
        essay.highlights.append(EssayHighlight(
            position=pos,
            start_index=s.start_index,
            end_index=s.end_index,
            severity=str(s.severity),
            category=s.category,
            why=s.feedback.why,
            how=s.feedback.how,
            suggestion=s.feedback.suggestion,
        ))


def save_highlights(db: Session, essay: Essay, spans: Sequence[Span]) -> Essay:
    """Replace the essay's stored highlights (e.g. with a fresh analysis)."""
    _replace_highlights(essay, spans)
    db.commit()
    db.refresh(essay)
    return essay


def update_text(db: Session, essay: Essay, new_text: str, title: str | None = None) -> Essay:
    """
    Store new essay text. Highlights are carried across the edit; those
    overlapping the changed region are dropped.
    """
    edit = detect_edit(essay.text or "", new_text)
    before = stored_spans(essay)
    kept = shift_spans(before, edit)
    if len(kept) != len(before):
        log.debug("edit on %s invalidated %d highlights", essay.essay_id, len(before) - len(kept))
    essay.text = new_text
    if title is not None:
        essay.title = title
    _replace_highlights(essay, kept)
    db.commit()
    db.refresh(essay)
    return essay


def to_out(essay: Essay) -> EssayOut:
    return EssayOut(
        essay_id=essay.essay_id,
        title=essay.title,
        text=essay.text,
        created_at=essay.created_at,
        updated_at=essay.updated_at,
        highlights=[
            EssayHighlightOut(
                position=h.position,
                startIndex=h.start_index,
                endIndex=h.end_index,
                type=h.severity,
                category=h.category or "",
                why=h.why or "",
                how=h.how or "",
                suggestion=h.suggestion or "",
            )
            for h in essay.highlights
        ],
    )
