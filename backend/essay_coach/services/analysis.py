# backend/essay_coach/services/analysis.py
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Sequence

from ..schemas.essay import UserProfile
from .llm import chat_json

log = logging.getLogger(__name__)

MAX_ESSAY_CHARS = 10000

_FENCE_RX = re.compile(r"```json\s*([\s\S]*?)\s*```")
_OBJECT_RX = re.compile(r"\{[\s\S]*\}")

_BASE_PROMPT = """You are an expert college admissions essay coach. Analyze the provided essay and give detailed feedback.

Respond with ONLY a valid JSON object, no text before or after it and no markdown fences.

REQUIRED JSON FORMAT:
{
  "highlights": [
    {
      "text": "exact text to highlight from the essay",
      "type": "red" | "yellow" | "green",
      "category": "cliche" | "weak_verb" | "vague" | "show_dont_tell" | "grammar" | "unclear" | "strength",
      "why": "why this section is highlighted",
      "how": "how to improve it, with actionable steps",
      "suggestion": "a concrete alternative phrasing or approach",
      "startIndex": 0,
      "endIndex": 10
    }
  ],
  "overallFeedback": "comprehensive general essay advice",
  "collegeSpecificAdvice": "advice tailored to target colleges",
  "strengthsToLeanInto": ["..."],
  "areasToImprove": ["..."],
  "nextSteps": ["..."]
}

RULES:
- Highlights must quote exact essay text; startIndex/endIndex are character offsets into the essay.
- red: weak or cliche content, yellow: okay but could be stronger, green: excellent, lean into it.
- Aim for 5-10 meaningful highlights, balanced across red, yellow and green.
- Never write the essay for the student.

STUDENT CONTEXT:"""


def build_system_prompt(
    colleges: Sequence[str] | None = None,
    user_profile: UserProfile | None = None,
    prompt: str | None = None,
) -> str:
    parts = [_BASE_PROMPT]
    p = user_profile
    if p is not None:
        if p.name:
            parts.append(f" Student name: {p.name}.")
        if p.academicInterests:
            parts.append(f" Academic interests: {', '.join(p.academicInterests)}.")
        if p.intendedMajor:
            parts.append(f" Intended major: {p.intendedMajor}.")
        if p.extracurriculars:
            parts.append(f" Extracurriculars: {', '.join(p.extracurriculars)}.")
        if p.careerGoals:
            parts.append(f" Career goals: {', '.join(p.careerGoals)}.")

    if colleges:
        parts.append(f"\n\nTARGET COLLEGES: {', '.join(colleges)}")
    else:
        parts.append(
            "\n\nNO TARGET COLLEGES SPECIFIED: give advice that works across selective colleges. "
            "Focus on authenticity, specificity, storytelling and unique voice."
        )
    if prompt:
        parts.append(f'\nESSAY PROMPT: "{prompt}"')
    return "".join(parts)


def _college_advice(colleges: Sequence[str] | None) -> str:
    if colleges:
        return f"Consider how your essay aligns with the values of {', '.join(colleges)}."
    return "Add target colleges for specific advice."


def _extract_json(content: str) -> str:
    content = content.strip()
    m = _FENCE_RX.search(content)
    if m:
        return m.group(1).strip()
    m = _OBJECT_RX.search(content)
    return m.group(0) if m else content


def parse_analysis(content: str, colleges: Sequence[str] | None = None) -> Dict[str, Any]:
    """
    Turn raw model output into an analysis dict with every field present.
    Output that is not a JSON object falls back to a result carrying the
    raw text as overall feedback and no highlights.
    """
    try:
        result = json.loads(_extract_json(content))
        if not isinstance(result, dict):
            raise ValueError(f"expected a JSON object, got {type(result).__name__}")
    except ValueError as e:
        log.warning("Failed to parse analysis response as JSON: %s", e)
        who = ", ".join(colleges) if colleges else ""
        return {
            "highlights": [],
            "overallFeedback": content,
            "collegeSpecificAdvice": (
                f"This analysis is for {who}. Please re-analyze for detailed highlighting."
                if who else "Add target colleges for specific advice."
            ),
            "strengthsToLeanInto": ["Review the feedback above for your essay's strengths"],
            "areasToImprove": ["Review the feedback above for areas to improve"],
            "nextSteps": [
                "Review the feedback carefully",
                "Make revisions based on suggestions",
                "Re-analyze for detailed highlighting",
            ],
        }

    if not isinstance(result.get("highlights"), list):
        result["highlights"] = []
    if not result.get("overallFeedback"):
        result["overallFeedback"] = "Analysis complete. See detailed feedback below."
    if not result.get("collegeSpecificAdvice"):
        result["collegeSpecificAdvice"] = _college_advice(colleges)
    for key in ("overallFeedback", "collegeSpecificAdvice"):
        result[key] = _as_text(result[key])
    if not isinstance(result.get("strengthsToLeanInto"), list):
        result["strengthsToLeanInto"] = []
    if not isinstance(result.get("areasToImprove"), list):
        result["areasToImprove"] = []
    if not isinstance(result.get("nextSteps"), list):
        result["nextSteps"] = ["Review the feedback", "Revise your essay", "Re-analyze for improvements"]
    for key in ("strengthsToLeanInto", "areasToImprove", "nextSteps"):
        result[key] = [x for x in result[key] if isinstance(x, str)]
    return result


def _as_text(value: Any) -> str:
    # models sometimes answer with a per-college object instead of prose
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return "\n".join(f"{k}: {_as_text(v)}" for k, v in value.items())
    if isinstance(value, list):
        return "\n".join(_as_text(v) for v in value)
    return json.dumps(value)


def prepare_essay(essay: str) -> str:
    text = (essay or "").strip()[:MAX_ESSAY_CHARS]
    if not text:
        raise ValueError("Essay cannot be empty")
    return text


async def analyze_essay(
    essay: str,
    colleges: Sequence[str] | None = None,
    user_profile: UserProfile | None = None,
    prompt: str | None = None,
) -> tuple[str, Dict[str, Any]]:
    """
    Returns (analyzed_text, analysis). The analyzed text is the trimmed,
    truncated essay the model saw; highlight offsets refer to it.
    """
    text = prepare_essay(essay)
    system = build_system_prompt(colleges, user_profile, prompt)
    user = f"Please analyze this essay and respond with ONLY a valid JSON object:\n\n{text}"
    content = await chat_json(system, user)
    analysis = parse_analysis(content, colleges)
    log.info("essay analysis returned %d highlights", len(analysis["highlights"]))
    return text, analysis
