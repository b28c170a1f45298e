from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List

from .highlight import RenderResult


class UserProfile(BaseModel):
    name: str | None = None
    academicInterests: List[str] = []
    intendedMajor: str | None = None
    extracurriculars: List[str] = []
    careerGoals: List[str] = []


class AnalyzeRequest(BaseModel):
    essay: str = ""
    colleges: List[str] = []
    userProfile: UserProfile | None = None
    prompt: str | None = None


class AnalysisOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    highlights: List[Any] = []
    overallFeedback: str = ""
    collegeSpecificAdvice: str = ""
    strengthsToLeanInto: List[str] = []
    areasToImprove: List[str] = []
    nextSteps: List[str] = []
    rendered: RenderResult | None = None


class EssayIn(BaseModel):
    title: str | None = None
    text: str = Field(default="", max_length=50000)


class EssayHighlightOut(BaseModel):
    position: int
    startIndex: int
    endIndex: int
    type: str
    category: str = ""
    why: str = ""
    how: str = ""
    suggestion: str = ""


class EssayOut(BaseModel):
    essay_id: str
    title: str | None = None
    text: str
    created_at: datetime
    updated_at: datetime
    highlights: List[EssayHighlightOut] = []
