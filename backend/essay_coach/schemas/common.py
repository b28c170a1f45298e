from enum import Enum
from pydantic import BaseModel


class Severity(str, Enum):
    red = "red"
    yellow = "yellow"
    green = "green"


SEVERITIES = frozenset(s.value for s in Severity)


class Feedback(BaseModel):
    why: str = ""
    how: str = ""
    suggestion: str = ""


class Span(BaseModel):
    start_index: int
    end_index: int
    severity: str  # "red" | "yellow" | "green"; anything else is dropped at render time
    category: str = ""
    feedback: Feedback = Feedback()
