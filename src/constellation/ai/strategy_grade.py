"""Parse the model's strategy grading response into a repaired assessment."""

from __future__ import annotations

import logging
from typing import Any

from constellation.ai.json_payload import load_json_payload
from constellation.ai.results import ParseFailure, ParseResult, ParseSuccess
from constellation.ai.types import StrategyGradeAssessment
from constellation.exceptions import JSONParseError
from constellation.models import STRATEGY_COMPONENT_IDS, GradeLetter, StrategyGradeMissingElement

log = logging.getLogger(__name__)

PARSE_ERROR = "Failed to parse AI grading response. Please try again."
SHAPE_ERROR = "Invalid AI grading response shape. Please try again."

DEFAULT_GRADE = GradeLetter.C
DEFAULT_RATIONALE = "No rationale provided."
DEFAULT_EVIDENCE = "No assessment provided."

_VALID_GRADES = {g.value for g in GradeLetter}


def validate_grading_response(parsed: dict[str, Any]) -> StrategyGradeAssessment:
    """Default every missing or invalid grading field, collecting warnings."""
    warnings: list[str] = []

    raw_grade = parsed.get("grade_letter")
    grade_text = raw_grade.strip() if isinstance(raw_grade, str) else ""
    if grade_text in _VALID_GRADES:
        grade = GradeLetter(grade_text)
    else:
        grade = DEFAULT_GRADE
        if grade_text:
            warnings.append(f"AI returned invalid grade '{grade_text}' — defaulted to 'C'.")
        else:
            warnings.append("AI did not return a grade letter — defaulted to 'C'.")

    rationale = parsed.get("grade_rationale_short")
    if not isinstance(rationale, str):
        rationale = DEFAULT_RATIONALE
        warnings.append("AI did not return a grade rationale — using placeholder.")

    raw_evidence = parsed.get("evidence_notes_by_component")
    evidence_present = isinstance(raw_evidence, dict)
    if not evidence_present:
        warnings.append("AI response missing 'evidence_notes_by_component' — all evidence defaulted.")
        raw_evidence = {}
    evidence: dict[str, str] = {}
    for cid in STRATEGY_COMPONENT_IDS:
        note = raw_evidence.get(cid)
        if isinstance(note, str):
            evidence[cid] = note
            continue
        evidence[cid] = DEFAULT_EVIDENCE
        if evidence_present:
            warnings.append(f"Evidence for component {cid} was missing — using placeholder.")

    missing: list[StrategyGradeMissingElement] = []
    raw_missing = parsed.get("missing_elements")
    if isinstance(raw_missing, list):
        for element in raw_missing:
            if (
                isinstance(element, dict)
                and isinstance(element.get("component_id"), str)
                and isinstance(element.get("reason"), str)
            ):
                missing.append(
                    StrategyGradeMissingElement(component_id=element["component_id"], reason=element["reason"])
                )

    scope_notes = parsed.get("scope_discipline_notes")
    if not isinstance(scope_notes, str):
        scope_notes = ""
        warnings.append("AI did not return scope discipline notes.")

    return StrategyGradeAssessment(
        grade_letter=grade,
        grade_rationale_short=rationale,
        evidence_notes_by_component=evidence,
        missing_elements=missing,
        scope_discipline_notes=scope_notes,
        warnings=warnings,
    )


def parse_strategy_grade_response(response_text: str) -> ParseResult[StrategyGradeAssessment]:
    try:
        parsed = load_json_payload(response_text)
    except JSONParseError:
        return ParseFailure(error=PARSE_ERROR, kind="unparseable")
    if not isinstance(parsed, dict):
        return ParseFailure(error=SHAPE_ERROR, kind="malformed")

    assessment = validate_grading_response(parsed)
    if assessment.warnings:
        log.info("Strategy grade repaired", extra={"warning_count": len(assessment.warnings)})
    return ParseSuccess(result=assessment)
