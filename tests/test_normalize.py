from __future__ import annotations

import json

import pytest

from labelscan.domain.models import ScanResult
from labelscan.domain.normalize import (
    EMPTY_REPLY_SUMMARY,
    UNEXPECTED_FORMAT_HIGHLIGHT,
    extract_candidate,
    normalize,
)


EMPTY_FALLBACK = {
    "score": 50,
    "ingredients": [],
    "highlights": ["Could not analyze the image"],
    "summary": "Unable to analyze the food label. Please try with a clearer image.",
}


def test_fenced_json_reply_is_extracted_exactly() -> None:
    raw = (
        "Here you go:\n```json\n"
        '{"score":72,"ingredients":["sugar","salt"],"highlights":["High sugar"],"summary":"Moderate"}'
        "\n```"
    )
    result = normalize(raw)
    assert result == ScanResult(
        score=72,
        ingredients=["sugar", "salt"],
        highlights=["High sugar"],
        summary="Moderate",
    )


@pytest.mark.parametrize("raw", [None, ""])
def test_empty_reply_returns_exact_fallback(raw) -> None:
    assert normalize(raw).as_dict() == EMPTY_FALLBACK


def test_bare_fence_without_language_tag() -> None:
    raw = '```\n{"score": 10, "ingredients": [], "highlights": [], "summary": "Poor"}\n```'
    assert normalize(raw).score == 10


def test_object_embedded_in_prose_is_found() -> None:
    payload = {"score": 88, "ingredients": ["oats"], "highlights": ["Good fiber"], "summary": "Healthy"}
    raw = f"Sure! Based on the label: {json.dumps(payload)} Let me know if you need more."
    assert normalize(raw).as_dict() == payload


def test_fence_takes_priority_over_outer_braces() -> None:
    raw = 'note {not json} then ```json\n{"score": 5, "ingredients": [], "highlights": [], "summary": "x"}\n```'
    assert normalize(raw).score == 5


def test_unparseable_reply_returns_degraded_record_with_prefix() -> None:
    raw = "I can see a cereal box but the text is blurry. " * 10
    result = normalize(raw)
    assert result.score == 50
    assert result.ingredients == []
    assert result.highlights == [UNEXPECTED_FORMAT_HIGHLIGHT]
    assert result.summary == raw[:200]
    assert len(result.summary) == 200


def test_malformed_json_inside_fence_is_degraded() -> None:
    raw = '```json\n{"score": 72, "ingredients": ["sugar",}\n```'
    result = normalize(raw)
    assert result.highlights == [UNEXPECTED_FORMAT_HIGHLIGHT]
    assert result.summary == raw[:200]


def test_parsed_values_pass_through_without_clamping() -> None:
    raw = '{"score": 250, "ingredients": "sugar, salt", "highlights": null, "summary": 3}'
    result = normalize(raw)
    assert result.score == 250
    assert result.ingredients == "sugar, salt"
    assert result.highlights is None
    assert result.summary == 3


def test_missing_keys_are_carried_as_none() -> None:
    result = normalize('{"score": 40}')
    assert result.as_dict() == {"score": 40, "ingredients": None, "highlights": None, "summary": None}


@pytest.mark.parametrize("raw", ["42", '"just a string"', "[1, 2, 3]", "null"])
def test_json_that_is_not_an_object_is_degraded(raw: str) -> None:
    result = normalize(raw)
    assert result.highlights == [UNEXPECTED_FORMAT_HIGHLIGHT]
    assert result.summary == raw


@pytest.mark.parametrize(
    "raw",
    [
        "plain text with no structure",
        "\x00\x01\xff garbage {\x02 broken } more \x03",
        "{" * 5000 + "}" * 5000,
        "[" * 100000,
        "}{",
        "```",
        "   ",
    ],
)
def test_normalize_never_raises(raw: str) -> None:
    result = normalize(raw)
    assert isinstance(result, ScanResult)
    assert result.highlights == [UNEXPECTED_FORMAT_HIGHLIGHT]


def test_bytes_input_is_decoded() -> None:
    raw = b'garbage\xff {"score": 61, "ingredients": [], "highlights": [], "summary": "ok"} tail'
    assert normalize(raw).score == 61


def test_extract_candidate_falls_back_to_text() -> None:
    assert extract_candidate("no braces here") == "no braces here"
    assert extract_candidate("a } before { only") == "a } before { only"
    assert extract_candidate('x {"a": 1} y {"b": 2} z') == '{"a": 1} y {"b": 2}'


def test_empty_summary_constant_matches_fallback() -> None:
    assert EMPTY_FALLBACK["summary"] == EMPTY_REPLY_SUMMARY


@pytest.mark.parametrize(
    "raw",
    [
        '{"score": NaN, "ingredients": [], "highlights": [], "summary": "x"}',
        '```json\n{"score": Infinity, "ingredients": [], "highlights": [], "summary": "x"}\n```',
        '{"score": 70, "ingredients": [-Infinity], "highlights": [], "summary": "x"}',
    ],
)
def test_non_standard_number_constants_are_degraded(raw: str) -> None:
    result = normalize(raw)
    assert result.score == 50
    assert result.highlights == [UNEXPECTED_FORMAT_HIGHLIGHT]
    assert result.summary == raw[:200]
