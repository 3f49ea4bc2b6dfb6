"""Tests for the CV analysis stage."""
from __future__ import annotations

import copy

import pytest

from conftest import ANALYSIS_JSON, ScriptedLLM, SleepRecorder
from jobnado.analysis import ANALYSIS_SCHEMA, MAX_CV_CHARS, CVAnalysisStage, build_prompt_parts
from jobnado.cv_input import ImageInput, TextInput
from jobnado.llm import EmptyResponse, InlineData, SchemaViolation


def stage(*responses):
    llm = ScriptedLLM(generate=list(responses))
    sleep = SleepRecorder()
    return CVAnalysisStage(llm, sleep=sleep), llm, sleep


def test_text_cv_is_analyzed():
    s, llm, sleep = stage(ANALYSIS_JSON)
    result = s.analyze(TextInput("Data analyst with 6 years of SQL"))
    assert result.suggested_roles == ["Data Analyst", "BI Engineer"]
    assert result.primary_role == "Data Analyst"
    assert [b.label for b in result.boolean_strings] == ["Strict", "Creative", "Niche"]
    parts, schema, _ = llm.generate_calls[0]
    assert schema is ANALYSIS_SCHEMA
    assert parts[1] == "CV TEXT:\nData analyst with 6 years of SQL"
    assert sleep.delays == []


def test_long_text_is_truncated_to_limit():
    parts = build_prompt_parts(TextInput("x" * (MAX_CV_CHARS + 5000)))
    assert parts[1] == "CV TEXT:\n" + "x" * MAX_CV_CHARS


@pytest.mark.parametrize("length", [MAX_CV_CHARS - 1, MAX_CV_CHARS, MAX_CV_CHARS + 1])
def test_boundary_lengths(length):
    parts = build_prompt_parts(TextInput("y" * length))
    assert len(parts[1]) == len("CV TEXT:\n") + min(length, MAX_CV_CHARS)


def test_image_cv_sends_bytes_without_text():
    s, llm, _ = stage(ANALYSIS_JSON)
    s.analyze(ImageInput(mime_type="image/jpeg", data=b"\xff\xd8"))
    parts = llm.generate_calls[0][0]
    assert len(parts) == 2
    assert isinstance(parts[1], InlineData)
    assert parts[1].mime_type == "image/jpeg"
    assert not any(isinstance(p, str) and p.startswith("CV TEXT") for p in parts)


@pytest.mark.parametrize("cv", [TextInput(""), TextInput("   \n"), ImageInput("image/png", b"")])
def test_empty_input_fails_before_any_call(cv):
    s, llm, sleep = stage()
    with pytest.raises(ValueError):
        s.analyze(cv)
    assert llm.generate_calls == []
    assert sleep.delays == []


def test_retries_with_linear_backoff_then_succeeds():
    s, llm, sleep = stage(EmptyResponse("nothing"), SchemaViolation("bad json"), ANALYSIS_JSON)
    assert s.analyze(TextInput("cv")).experience_level == "Mid-Senior"
    assert len(llm.generate_calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_three_failures_raise_last_error_and_stop():
    s, llm, sleep = stage(
        TimeoutError("first"), TimeoutError("second"), ConnectionError("third"), ANALYSIS_JSON,
    )
    with pytest.raises(ConnectionError, match="third"):
        s.analyze(TextInput("cv"))
    assert len(llm.generate_calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_empty_suggested_roles_counts_as_failed_attempt():
    bad = copy.deepcopy(ANALYSIS_JSON)
    bad["suggestedRoles"] = []
    s, llm, sleep = stage(bad, ANALYSIS_JSON)
    assert s.analyze(TextInput("cv")).suggested_roles
    assert sleep.delays == [1.0]


def test_adjacent_industries_optional():
    data = copy.deepcopy(ANALYSIS_JSON)
    del data["adjacentIndustries"]
    s, _, _ = stage(data)
    assert s.analyze(TextInput("cv")).adjacent_industries == []
