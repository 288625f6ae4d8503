"""Parse and repair the model's strategy-extraction response.

The model is asked for a JSON object describing a sector development
strategy against the six-component blueprint. Its output is untrusted:
fields go missing, arrive with the wrong type, or are wrapped in
markdown fences and commentary. Parsing therefore happens in three
passes:

1. pull a JSON value out of the text (brace span, else the whole text);
2. check the top-level shape with a permissive schema that only rejects
   values the UI cannot use at all (a non-object payload, or a component
   ``confidence`` that is not a number);
3. coerce field by field, substituting defaults and recording a warning
   for each repair.

Only steps 1 and 2 can fail; anything else is repaired and reported in
``warnings`` so callers always get a usable result.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from constellation.ai.json_payload import load_json_payload
from constellation.ai.results import ParseFailure, ParseResult, ParseSuccess
from constellation.ai.types import ComponentExtraction, SelectionLogic, StrategyExtractionResult
from constellation.exceptions import JSONParseError
from constellation.models import STRATEGY_COMPONENT_IDS

log = logging.getLogger(__name__)

PARSE_ERROR = "Failed to parse AI response. Please try again."
SHAPE_ERROR = "Invalid AI response shape. Please try again."

DEFAULT_TITLE = "Untitled Strategy"
DEFAULT_SUMMARY = "No summary extracted."


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class _ExtractPayload(BaseModel):
    """Top-level shape check. Every field is optional and extras are kept."""

    model_config = ConfigDict(extra="allow")

    components: Any = None

    @field_validator("components")
    @classmethod
    def _confidence_is_numeric(cls, value: Any) -> Any:
        if isinstance(value, dict):
            for cid, entry in value.items():
                if not isinstance(entry, dict):
                    continue
                # An explicit null counts as absent and defaults to 0.
                confidence = entry.get("confidence")
                if confidence is not None and not _is_number(confidence):
                    raise ValueError(f"components.{cid}.confidence must be a number")
        return value


def _as_string_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def coerce_component(value: Any) -> ComponentExtraction:
    """Coerce one component entry, clamping confidence into [0, 1]."""
    if not isinstance(value, dict):
        return ComponentExtraction()
    content = value.get("content")
    excerpt = value.get("sourceExcerpt")
    confidence = value.get("confidence")
    return ComponentExtraction(
        content=content if isinstance(content, str) else "",
        confidence=max(0.0, min(1.0, confidence)) if _is_number(confidence) else 0,
        source_excerpt=excerpt if isinstance(excerpt, str) else "",
    )


def parse_strategy_extract_response(response_text: str) -> ParseResult[StrategyExtractionResult]:
    """Turn raw model output into a :class:`StrategyExtractionResult`.

    Returns a :class:`ParseFailure` only when no JSON can be read or the
    payload has an unusable shape; every other defect is defaulted and
    described in ``result.warnings`` (title, summary, components 1-6 and
    selection logic, in that order).
    """
    try:
        parsed = load_json_payload(response_text)
    except JSONParseError:
        return ParseFailure(error=PARSE_ERROR, kind="unparseable")

    if not isinstance(parsed, dict):
        log.warning("Strategy extraction payload is not an object", extra={"type": type(parsed).__name__})
        return ParseFailure(error=SHAPE_ERROR, kind="malformed")
    try:
        _ExtractPayload.model_validate(parsed)
    except ValidationError as e:
        log.warning("Strategy extraction payload failed shape check", extra={"errors": e.error_count()})
        return ParseFailure(error=SHAPE_ERROR, kind="malformed")

    warnings: list[str] = []

    raw_title = parsed.get("title")
    if isinstance(raw_title, str) and raw_title.strip():
        title = raw_title.strip()
    else:
        title = DEFAULT_TITLE
        warnings.append("AI did not return a strategy title — defaulted to 'Untitled Strategy'.")

    raw_summary = parsed.get("summary")
    if isinstance(raw_summary, str):
        summary = raw_summary
    else:
        summary = DEFAULT_SUMMARY
        warnings.append("AI did not return a summary — defaulted to placeholder.")

    raw_components = parsed.get("components")
    components_obj = raw_components if isinstance(raw_components, dict) else {}
    components: dict[str, ComponentExtraction] = {}
    for cid in STRATEGY_COMPONENT_IDS:
        entry = components_obj.get(cid)
        if not isinstance(entry, dict):
            components[cid] = ComponentExtraction()
            warnings.append(f"Component {cid} was missing or malformed — defaulted to empty.")
            continue
        components[cid] = coerce_component(entry)
        if components[cid].content == "":
            warnings.append(f"Component {cid} has empty content — may need manual entry.")

    raw_selection = parsed.get("selectionLogic")
    if not isinstance(raw_selection, dict):
        warnings.append("AI response missing 'selectionLogic' — selection logic fields are empty.")
        raw_selection = {}
    adjacent = raw_selection.get("adjacentDefinition")
    growth = raw_selection.get("growthDefinition")
    selection_logic = SelectionLogic(
        adjacent_definition=adjacent if isinstance(adjacent, str) else None,
        growth_definition=growth if isinstance(growth, str) else None,
        criteria=_as_string_list(raw_selection.get("criteria")),
    )

    result = StrategyExtractionResult(
        title=title,
        summary=summary,
        components=components,
        selection_logic=selection_logic,
        cross_cutting_themes=_as_string_list(parsed.get("crossCuttingThemes")),
        stakeholder_categories=_as_string_list(parsed.get("stakeholderCategories")),
        priority_sector_names=_as_string_list(parsed.get("prioritySectorNames")),
        warnings=warnings,
    )
    if warnings:
        log.info("Strategy extraction repaired", extra={"warning_count": len(warnings)})
    return ParseSuccess(result=result)
