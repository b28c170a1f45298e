from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from essay_coach.schemas.essay import UserProfile
from essay_coach.services import analysis

REPLY = {
    "highlights": [
        {"text": "passionate", "type": "red", "category": "cliche",
         "why": "Overused.", "how": "Show it.", "suggestion": "", "startIndex": 11, "endIndex": 21},
    ],
    "overallFeedback": "Solid start.",
    "strengthsToLeanInto": ["voice"],
}


def test_parse_plain_json_fills_defaults():
    result = analysis.parse_analysis(json.dumps(REPLY), ["MIT"])
    assert result["overallFeedback"] == "Solid start."
    assert result["collegeSpecificAdvice"] == "Consider how your essay aligns with the values of MIT."
    assert result["areasToImprove"] == []
    assert result["nextSteps"] == ["Review the feedback", "Revise your essay", "Re-analyze for improvements"]
    assert len(result["highlights"]) == 1


def test_parse_json_wrapped_in_markdown_fence():
    content = "Here you go:\n```json\n" + json.dumps(REPLY) + "\n```\nGood luck!"
    assert analysis.parse_analysis(content)["overallFeedback"] == "Solid start."


def test_parse_json_surrounded_by_prose():
    content = "Sure! " + json.dumps({"highlights": "nope"}) + " Hope that helps."
    result = analysis.parse_analysis(content)
    assert result["highlights"] == []
    assert result["collegeSpecificAdvice"] == "Add target colleges for specific advice."


def test_unparseable_reply_falls_back_to_raw_feedback():
    result = analysis.parse_analysis("The essay is lovely.", ["Yale", "Brown"])
    assert result["highlights"] == []
    assert result["overallFeedback"] == "The essay is lovely."
    assert "Yale, Brown" in result["collegeSpecificAdvice"]
    assert len(result["nextSteps"]) == 3


def test_parse_coerces_unexpected_field_types():
    reply = {
        "overallFeedback": 42,
        "collegeSpecificAdvice": {"MIT": "Mention the lab.", "Yale": "Keep the humor."},
        "strengthsToLeanInto": ["voice", {"point": "detail"}, 3, None],
        "areasToImprove": [["nested"], "pacing"],
        "nextSteps": [True],
    }
    result = analysis.parse_analysis(json.dumps(reply), ["MIT", "Yale"])
    assert result["overallFeedback"] == "42"
    assert result["collegeSpecificAdvice"] == "MIT: Mention the lab.\nYale: Keep the humor."
    assert result["strengthsToLeanInto"] == ["voice"]
    assert result["areasToImprove"] == ["pacing"]
    assert result["nextSteps"] == []


def test_system_prompt_includes_student_context():
    profile = UserProfile(name="Sam", academicInterests=["robotics", "poetry"], intendedMajor="EE")
    prompt = analysis.build_system_prompt(["Stanford"], profile, "Describe a challenge")
    assert "Student name: Sam." in prompt
    assert "Academic interests: robotics, poetry." in prompt
    assert "Intended major: EE." in prompt
    assert "TARGET COLLEGES: Stanford" in prompt
    assert 'ESSAY PROMPT: "Describe a challenge"' in prompt


def test_system_prompt_without_colleges():
    assert "NO TARGET COLLEGES SPECIFIED" in analysis.build_system_prompt()


def test_prepare_essay_trims_and_truncates():
    assert analysis.prepare_essay("  hi  ") == "hi"
    assert len(analysis.prepare_essay("x" * 20000)) == analysis.MAX_ESSAY_CHARS
    with pytest.raises(ValueError):
        analysis.prepare_essay("   \n ")


def test_analyze_essay_calls_provider_with_trimmed_text():
    mock = AsyncMock(return_value=json.dumps(REPLY))
    with patch.object(analysis, "chat_json", mock):
        text, result = asyncio.run(analysis.analyze_essay("  I am very passionate.  ", ["MIT"]))
    assert text == "I am very passionate."
    assert result["highlights"][0]["category"] == "cliche"
    system, user = mock.await_args.args
    assert "TARGET COLLEGES: MIT" in system
    assert user.endswith("\n\nI am very passionate.")
