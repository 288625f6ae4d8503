"""Tests for strategy grading response validation."""

from __future__ import annotations

import json

from constellation.ai.results import ParseFailure, ParseSuccess
from constellation.ai.strategy_grade import (
    DEFAULT_EVIDENCE,
    PARSE_ERROR,
    parse_strategy_grade_response,
    validate_grading_response,
)
from constellation.models import GradeLetter


def _complete_grading() -> dict:
    return {
        "grade_letter": "B-",
        "grade_rationale_short": "Solid diagnostics, weak workforce planning.",
        "evidence_notes_by_component": {str(i): f"Evidence {i}" for i in range(1, 7)},
        "missing_elements": [{"component_id": "5", "reason": "No skills pipeline"}],
        "scope_discipline_notes": "Stays within sector scope.",
    }


class TestValidateGradingResponse:
    def test_complete_response_has_no_warnings(self) -> None:
        assessment = validate_grading_response(_complete_grading())
        assert assessment.grade_letter == GradeLetter.B_MINUS
        assert assessment.warnings == []
        assert assessment.evidence_notes_by_component["3"] == "Evidence 3"
        assert assessment.missing_elements[0].component_id == "5"
        assert assessment.scope_discipline_notes == "Stays within sector scope."

    def test_grade_letter_is_trimmed(self) -> None:
        assessment = validate_grading_response({**_complete_grading(), "grade_letter": "  A "})
        assert assessment.grade_letter == GradeLetter.A
        assert assessment.warnings == []

    def test_invalid_grade_defaults_to_c(self) -> None:
        assessment = validate_grading_response({**_complete_grading(), "grade_letter": "E+"})
        assert assessment.grade_letter == GradeLetter.C
        assert assessment.warnings == ["AI returned invalid grade 'E+' — defaulted to 'C'."]

    def test_missing_grade_defaults_to_c(self) -> None:
        data = _complete_grading()
        del data["grade_letter"]
        assessment = validate_grading_response(data)
        assert assessment.grade_letter == GradeLetter.C
        assert assessment.warnings == ["AI did not return a grade letter — defaulted to 'C'."]

    def test_missing_evidence_object_warns_once(self) -> None:
        data = _complete_grading()
        del data["evidence_notes_by_component"]
        assessment = validate_grading_response(data)
        assert set(assessment.evidence_notes_by_component.values()) == {DEFAULT_EVIDENCE}
        evidence_warnings = [w for w in assessment.warnings if "evidence" in w.lower()]
        assert len(evidence_warnings) == 1

    def test_partial_evidence_warns_per_component(self) -> None:
        data = {**_complete_grading(), "evidence_notes_by_component": {"1": "E1", "2": 5}}
        assessment = validate_grading_response(data)
        assert assessment.evidence_notes_by_component["1"] == "E1"
        assert assessment.evidence_notes_by_component["2"] == DEFAULT_EVIDENCE
        assert assessment.warnings == [
            f"Evidence for component {cid} was missing — using placeholder." for cid in "23456"
        ]

    def test_missing_elements_filtered(self) -> None:
        data = {
            **_complete_grading(),
            "missing_elements": [
                {"component_id": "1", "reason": "No baseline"},
                {"component_id": 2, "reason": "bad id"},
                "free text",
                {"component_id": "3"},
            ],
        }
        assessment = validate_grading_response(data)
        assert [m.component_id for m in assessment.missing_elements] == ["1"]

    def test_empty_object(self) -> None:
        assessment = validate_grading_response({})
        assert assessment.grade_letter == GradeLetter.C
        assert assessment.grade_rationale_short == "No rationale provided."
        assert assessment.scope_discipline_notes == ""
        assert assessment.warnings[-1] == "AI did not return scope discipline notes."


class TestParseStrategyGradeResponse:
    def test_fenced_json(self) -> None:
        parsed = parse_strategy_grade_response("```json\n" + json.dumps(_complete_grading()) + "\n```")
        assert isinstance(parsed, ParseSuccess)
        assert parsed.result.grade_letter == GradeLetter.B_MINUS

    def test_unparseable(self) -> None:
        parsed = parse_strategy_grade_response("Grade: B")
        assert isinstance(parsed, ParseFailure)
        assert parsed.error == PARSE_ERROR
        assert parsed.kind == "unparseable"

    def test_nan_grade_field_is_unparseable(self) -> None:
        parsed = parse_strategy_grade_response('{"grade_letter": "B", "score": NaN}')
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "unparseable"

    def test_deep_nesting_is_unparseable(self) -> None:
        parsed = parse_strategy_grade_response("[" * 100000 + "]" * 100000)
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "unparseable"

    def test_non_object(self) -> None:
        parsed = parse_strategy_grade_response('["B"]')
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "malformed"
