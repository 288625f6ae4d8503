"""Tests for investment-memo analysis parsing."""

from __future__ import annotations

import json

from constellation.ai.memo_analysis import parse_memo_analysis_response
from constellation.ai.results import ParseFailure, ParseSuccess
from constellation.ai.types import MemoAnalysisResult
from constellation.models import Constraint, DealStage, ReadinessState

KNOWN_TYPES = ["bioenergy", "critical-minerals"]
KNOWN_LGAS = ["isaac", "mackay", "whitsunday"]


def _parse(payload: dict, **kwargs) -> MemoAnalysisResult:
    kwargs.setdefault("opportunity_type_ids", KNOWN_TYPES)
    kwargs.setdefault("lga_ids", KNOWN_LGAS)
    parsed = parse_memo_analysis_response(json.dumps(payload), **kwargs)
    assert isinstance(parsed, ParseSuccess), parsed
    return parsed.result


class TestMemoDefaults:
    def test_empty_object(self) -> None:
        result = _parse({})
        assert result.name == "Untitled Deal"
        assert result.stage == DealStage.DEFINITION
        assert result.readiness_state == ReadinessState.CONCEPTUAL_INTEREST
        assert result.dominant_constraint == Constraint.COORDINATION_FAILURE
        assert result.suggested_lga_ids == ["mackay"]
        assert result.suggested_location_text is None
        assert result.memo_reference.label == "Investment Memo: Investment Memo"
        assert result.suggested_opportunity_type.confidence == "low"
        assert result.suggested_opportunity_type.reasoning == "Could not determine opportunity type from the document."

    def test_invalid_enums_fall_back(self) -> None:
        result = _parse({"stage": "construction", "readinessState": "ready", "dominantConstraint": "money"})
        assert result.stage == DealStage.DEFINITION
        assert result.readiness_state == ReadinessState.CONCEPTUAL_INTEREST
        assert result.dominant_constraint == Constraint.COORDINATION_FAILURE

    def test_valid_enums_kept(self) -> None:
        result = _parse({"stage": "structuring", "readinessState": "structurable-but-stalled"})
        assert result.stage == DealStage.STRUCTURING
        assert result.readiness_state == ReadinessState.STRUCTURABLE_BUT_STALLED

    def test_memo_label(self) -> None:
        assert _parse({}, memo_label="Board paper").memo_reference.label == "Investment Memo: Board paper"


class TestLgaSuggestions:
    def test_unknown_ids_dropped(self) -> None:
        result = _parse({"suggestedLgaIds": ["isaac", "brisbane", "whitsunday"]})
        assert result.suggested_lga_ids == ["isaac", "whitsunday"]

    def test_fallback_without_mackay(self) -> None:
        result = _parse({"suggestedLgaIds": ["brisbane"]}, lga_ids=["townsville", "cairns"])
        assert result.suggested_lga_ids == ["townsville"]

    def test_no_known_lgas(self) -> None:
        assert _parse({}, lga_ids=[]).suggested_lga_ids == []

    def test_location_text_trimmed(self) -> None:
        result = _parse({"suggestedLocationText": "  Paget Industrial Estate  "})
        assert result.suggested_location_text == "Paget Industrial Estate"
        assert _parse({"suggestedLocationText": "   "}).suggested_location_text is None


class TestSuggestedOpportunityType:
    def test_known_existing_id(self) -> None:
        result = _parse(
            {"suggestedOpportunityType": {"existingId": "bioenergy", "confidence": "high", "reasoning": "Biomass"}}
        )
        suggestion = result.suggested_opportunity_type
        assert suggestion.existing_id == "bioenergy"
        assert suggestion.confidence == "high"

    def test_unknown_existing_id_without_proposal_falls_back(self) -> None:
        result = _parse({"suggestedOpportunityType": {"existingId": "tourism", "confidence": "high"}})
        assert result.suggested_opportunity_type.existing_id is None
        assert result.suggested_opportunity_type.confidence == "low"

    def test_proposed_type_keeps_known_closest(self) -> None:
        result = _parse(
            {
                "suggestedOpportunityType": {
                    "proposedName": "Green Hydrogen",
                    "proposedDefinition": "Electrolytic hydrogen",
                    "closestExistingId": "bioenergy",
                    "confidence": "medium",
                }
            }
        )
        suggestion = result.suggested_opportunity_type
        assert suggestion.proposed_name == "Green Hydrogen"
        assert suggestion.closest_existing_id == "bioenergy"
        assert suggestion.reasoning == "No reasoning provided."

    def test_proposed_type_drops_unknown_closest(self) -> None:
        result = _parse({"suggestedOpportunityType": {"proposedName": "Tourism", "closestExistingId": "nope"}})
        assert result.suggested_opportunity_type.closest_existing_id is None


class TestMemoShape:
    def test_wrong_type_is_malformed(self) -> None:
        parsed = parse_memo_analysis_response('{"risks": ["ok", 3]}')
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "malformed"

    def test_unparseable(self) -> None:
        parsed = parse_memo_analysis_response("no json")
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "unparseable"

    def test_infinity_is_unparseable(self) -> None:
        parsed = parse_memo_analysis_response('{"estimatedJobs": Infinity}')
        assert isinstance(parsed, ParseFailure)
        assert parsed.kind == "unparseable"

    def test_programs_and_timeline_skip_blank_entries(self) -> None:
        result = _parse(
            {
                "governmentPrograms": [{"name": "Critical Minerals Facility"}, {"name": "  "}],
                "timeline": [{"label": "FID", "date": "2026"}, {"label": ""}],
            }
        )
        assert [p.name for p in result.government_programs or []] == ["Critical Minerals Facility"]
        assert [m.label for m in result.timeline or []] == ["FID"]
