from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, List


class IndexUnit(str, Enum):
    codepoint = "codepoint"
    utf16 = "utf16"


class RenderRequest(BaseModel):
    text: str
    # loose highlight dicts as emitted by the analysis endpoint
    highlights: List[Any] = []
    index_unit: IndexUnit | None = None


class RenderResult(BaseModel):
    markup: str
    rendered_span_order: List[int] = []


class RenderOut(RenderResult):
    feedback: List[str] = Field(default_factory=list)


class FeedbackOut(BaseModel):
    html: str
