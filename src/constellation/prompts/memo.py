"""Investment memo analysis prompt templates."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from constellation.labels import CONSTRAINT_LABELS, READINESS_LABELS, STAGE_LABELS
from constellation.models import DealStage

if TYPE_CHECKING:
    from constellation.models import LGA, OpportunityType

MAX_MEMO_CHARS = 30_000
TRUNCATION_SUFFIX = "\n\n[Memo truncated at 30,000 characters]"

_STAGE_PURPOSES: dict[DealStage, str] = {
    DealStage.DEFINITION: "Frame the opportunity, the proponent and the problem it solves",
    DealStage.PRE_FEASIBILITY: "Test options and confirm there is a case worth studying in detail",
    DealStage.FEASIBILITY: "Prove technical, commercial and financial viability",
    DealStage.STRUCTURING: "Allocate risk, line up offtake and assemble the capital stack",
    DealStage.TRANSACTION_CLOSE: "Finalise agreements and reach financial close",
}

MEMO_ANALYSIS_SYSTEM_PROMPT = """You are an expert infrastructure investment analyst. Your task is \
to analyse an investment memo and extract structured deal information.

You must classify the deal into one of these 5 development pathway stages:

{stages}

You must assign a readiness state from this ladder:
{readiness}

You must identify the dominant constraint from this list:
{constraints}

## Opportunity type

Existing opportunity types:
{opportunity_types}

- STRONGLY PREFER an existing type and set "existingId" to its ID.
- Only propose a new type if the deal genuinely does not fit ANY existing type. Keep proposals broad \
(sector-level, 1-3 words) and set "proposedName", "proposedDefinition", "closestExistingId" and \
"closestExistingReasoning". Do NOT set existingId when proposing new.
- Set "confidence" to "high", "medium", or "low" and always provide "reasoning".

## Local government areas

Known LGAs:
{lgas}

- You must always return at least one LGA ID in "suggestedLgaIds".
- If the document does not mention a location, make your best educated guess. Default to "mackay" \
if truly uncertain.
- "suggestedLocationText" must be a specific place name suitable for geocoding, including \
locality and state.

## Rules

- Use ONLY the exact enum values shown above for stage, readinessState, and dominantConstraint.
- For optional fields, omit the field if the memo does not contain the information.
- Respond ONLY with a valid JSON object, no markdown fences, no additional text."""

MEMO_ANALYSIS_USER_PROMPT = """Analyse the following investment memo and return a JSON object with \
these fields:

{{
  "name": "<short, descriptive deal/project name, 3-8 words>",
  "stage": "<one of: definition, pre-feasibility, feasibility, structuring, transaction-close>",
  "readinessState": "<one of the readiness states listed above>",
  "dominantConstraint": "<one of the constraints listed above>",
  "summary": "<concise 1-2 sentence deal summary>",
  "description": "<rich 2-3 paragraph description>",
  "nextStep": "<recommended next action>",
  "investmentValue": "<estimated investment amount if mentioned>",
  "economicImpact": "<economic impact summary if mentioned>",
  "suggestedLocationText": "<specific place name for geocoding>",
  "suggestedLgaIds": ["<at least one LGA id>"],
  "keyStakeholders": ["<organisation or person names>"],
  "risks": ["<specific risks and challenges>"],
  "strategicActions": ["<recommended strategic actions>"],
  "infrastructureNeeds": ["<supporting infrastructure requirements>"],
  "skillsImplications": "<workforce and skills implications>",
  "marketDrivers": "<market drivers and demand signals>",
  "governmentPrograms": [{{"name": "<program name>", "description": "<brief description>"}}],
  "timeline": [{{"label": "<milestone>", "date": "<date if known>"}}],
  "suggestedOpportunityType": {{
    "existingId": "<id of matching existing type, or omit>",
    "proposedName": "<broad sector label for a new type, or omit>",
    "proposedDefinition": "<1-2 sentence definition for a new type, or omit>",
    "closestExistingId": "<when proposing new, the closest existing type id>",
    "closestExistingReasoning": "<why that type is close but not ideal>",
    "confidence": "<high | medium | low>",
    "reasoning": "<1 sentence explaining the choice>"
  }}
}}

INVESTMENT MEMO:
{memo_text}"""


def truncate_memo_text(memo_text: str) -> str:
    if len(memo_text) > MAX_MEMO_CHARS:
        return memo_text[:MAX_MEMO_CHARS] + TRUNCATION_SUFFIX
    return memo_text


def build_memo_analysis_system_prompt(
    opportunity_types: Sequence[OpportunityType] = (),
    lgas: Sequence[LGA] = (),
) -> str:
    stages = "\n".join(
        f'Stage {n} "{stage.value}": {STAGE_LABELS[stage]}. {_STAGE_PURPOSES[stage]}'
        for n, stage in enumerate(DealStage, start=1)
    )
    readiness = "\n".join(f'- "{state.value}": {label}' for state, label in READINESS_LABELS.items())
    constraints = "\n".join(f'- "{c.value}": {label}' for c, label in CONSTRAINT_LABELS.items())
    type_catalogue = (
        "\n".join(f'- "{ot.id}": {ot.name}. {ot.definition}' for ot in opportunity_types)
        or "(no existing types)"
    )
    lga_catalogue = "\n".join(f'- "{lga.id}": {lga.name}' for lga in lgas) or "(no LGAs)"
    return MEMO_ANALYSIS_SYSTEM_PROMPT.format(
        stages=stages,
        readiness=readiness,
        constraints=constraints,
        opportunity_types=type_catalogue,
        lgas=lga_catalogue,
    )


def build_memo_analysis_user_prompt(memo_text: str) -> str:
    return MEMO_ANALYSIS_USER_PROMPT.format(memo_text=memo_text)
