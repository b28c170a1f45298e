# backend/essay_coach/services/edits.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..schemas.common import Span


@dataclass(frozen=True)
class TextEdit:
    start: int     # first differing position
    old_end: int   # end of the edited region in the old text
    delta: int     # len(new) - len(old)


def detect_edit(old_text: str, new_text: str) -> TextEdit:
    start = 0
    limit = min(len(old_text), len(new_text))
    while start < limit and old_text[start] == new_text[start]:
        start += 1
    # walk back over the shared tail; neither end may cross the shared head
    old_end, new_end = len(old_text), len(new_text)
    while old_end > start and new_end > start and old_text[old_end - 1] == new_text[new_end - 1]:
        old_end -= 1
        new_end -= 1
    return TextEdit(start=start, old_end=old_end, delta=len(new_text) - len(old_text))


def shift_spans(spans: Sequence[Span], edit: TextEdit) -> List[Span]:
    """
    Carry highlights across an edit: untouched spans before the edit stay,
    spans after it move by ``delta``, spans overlapping it are dropped.
    """
    kept: List[Span] = []
    for s in spans:
        if s.end_index <= edit.start:
            kept.append(s)
        elif s.start_index >= edit.old_end:
            kept.append(s.model_copy(update={
                "start_index": s.start_index + edit.delta,
                "end_index": s.end_index + edit.delta,
            }))
    return kept
