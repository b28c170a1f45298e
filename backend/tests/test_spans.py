from __future__ import annotations

from essay_coach.services.highlight import render
from essay_coach.services.spans import (
    span_from_highlight,
    span_to_highlight,
    spans_from_highlights,
    to_int,
    utf16_to_codepoint,
)

ESSAY = "I always wanted to help people. Then I rebuilt a pump."


def test_maps_llm_highlight_shape():
    h = {
        "text": "always wanted to help people",
        "type": "red",
        "category": "cliche",
        "why": "Generic motivation.",
        "how": "Show a moment instead.",
        "suggestion": "Describe the pump.",
        "startIndex": 2,
        "endIndex": 30,
    }
    s = span_from_highlight(ESSAY, h)
    assert (s.start_index, s.end_index) == (2, 30)
    assert s.severity == "red"
    assert s.category == "cliche"
    assert s.feedback.why == "Generic motivation."
    assert span_to_highlight(s)["startIndex"] == 2


def test_accepts_snake_case_and_normalizes_severity():
    s = span_from_highlight(ESSAY, {"start_index": 0, "end_index": 1, "severity": " Green "})
    assert (s.start_index, s.end_index, s.severity) == (0, 1, "green")


def test_bad_entries_keep_their_position_but_never_render():
    highlights = [
        "not a dict",
        {"startIndex": "abc", "endIndex": 4, "type": "red"},
        {"startIndex": 0, "endIndex": 1, "type": "yellow"},
        None,
    ]
    spans = spans_from_highlights(ESSAY, highlights)
    assert len(spans) == 4
    r = render(ESSAY, spans)
    assert r.rendered_span_order == [2]


def test_to_int_coercion():
    assert to_int("12") == 12
    assert to_int(3.9) == 3
    assert to_int(None) == -1
    assert to_int(True) == -1
    assert to_int("x", 0) == 0


def test_reanchors_when_offsets_drift_from_quoted_text():
    # model miscounted by a few characters
    h = {"text": "rebuilt a pump", "type": "green", "startIndex": 36, "endIndex": 50}
    s = span_from_highlight(ESSAY, h)
    assert ESSAY[s.start_index:s.end_index] == "rebuilt a pump"


def test_reanchor_picks_occurrence_nearest_reported_start():
    text = "the end, the end, the end"
    s = span_from_highlight(text, {"text": "the end", "type": "red", "startIndex": 17, "endIndex": 20})
    assert (s.start_index, s.end_index) == (18, 25)


def test_unknown_quote_keeps_reported_offsets():
    s = span_from_highlight(ESSAY, {"text": "not in essay", "type": "red", "startIndex": 0, "endIndex": 5})
    assert (s.start_index, s.end_index) == (0, 5)


def test_utf16_offsets_convert_to_code_points():
    text = "a\U0001F600b"
    assert utf16_to_codepoint(text, 0) == 0
    assert utf16_to_codepoint(text, 1) == 1
    assert utf16_to_codepoint(text, 2) == 1  # inside the surrogate pair
    assert utf16_to_codepoint(text, 3) == 2
    assert utf16_to_codepoint(text, 4) == 3
    assert utf16_to_codepoint(text, 6) == 5
    assert utf16_to_codepoint(text, -1) == -1


def test_utf16_producer_lines_up_after_emoji():
    text = "Fun \U0001F389 times with friends"
    # a JavaScript producer counts the emoji as two units: "times" is [7, 12)
    h = {"type": "yellow", "startIndex": 7, "endIndex": 12}
    as_codepoints = span_from_highlight(text, h)
    as_utf16 = span_from_highlight(text, h, index_unit="utf16")
    assert text[as_codepoints.start_index:as_codepoints.end_index] == "imes "
    assert text[as_utf16.start_index:as_utf16.end_index] == "times"
