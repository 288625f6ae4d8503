"""Strategy extraction and grading prompt templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from constellation.models import SectorDevelopmentStrategy

MAX_STRATEGY_CHARS = 60_000
TRUNCATION_SUFFIX = "\n\n[Document truncated at 60,000 characters]"

# ── Extraction ───────────────────────────────────────────────────────

STRATEGY_EXTRACT_SYSTEM_PROMPT = """You are an expert economic development analyst specialising in \
sector development strategies.

Your task is to analyse the full text of a sector development strategy document and extract \
structured fields aligned to the six-component blueprint for sector development strategies.

## Blueprint Components

1. Sector Diagnostics & Comparative Advantage
2. Economic Geography & Places of Production
3. Regulatory & Enabling Environment
4. Value Chain & Market Integration
5. Workforce & Skills Alignment
6. Sector Culture & Norms

## Output Requirements

Return a single JSON object with the following structure (no markdown, no commentary):

{
  "title": "<strategy title>",
  "summary": "<1-2 paragraph summary>",
  "components": {
    "1": { "content": "<extracted text for component 1>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" },
    "2": { "content": "<extracted text for component 2>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" },
    "3": { "content": "<extracted text for component 3>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" },
    "4": { "content": "<extracted text for component 4>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" },
    "5": { "content": "<extracted text for component 5>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" },
    "6": { "content": "<extracted text for component 6>", "confidence": <0.0-1.0>, "sourceExcerpt": "<quote>" }
  },
  "selectionLogic": {
    "adjacentDefinition": "<if specified>",
    "growthDefinition": "<if specified>",
    "criteria": ["<criterion>", "..."]
  },
  "crossCuttingThemes": ["<theme>", "..."],
  "stakeholderCategories": ["<category>", "..."],
  "prioritySectorNames": ["<sector>", "..."]
}

## Guidance

- If a field is missing from the document, return an empty string or empty array, but still include the key.
- Confidence should be 0.0 to 1.0.
- For components, extract the substance: synthesise relevant content into a coherent paragraph.
"""

STRATEGY_EXTRACT_USER_PROMPT = '''Analyse the following sector development strategy document and \
extract structured fields.

Document text:
"""
{text}
"""
'''

# ── Grading ──────────────────────────────────────────────────────────

STRATEGY_GRADE_SYSTEM_PROMPT = """You are an expert evaluator of sector development strategies. \
Your task is to grade a strategy against the six-component blueprint for sector development.

## Grading Scale

Assign ONE grade letter from the following scale:

- **A**: Comprehensive. All six components are explicitly and thoroughly addressed with strong \
empirical evidence, clear logic, and operational detail.
- **A-**: Strong. Most components are explicitly addressed with good evidence and logic; minor gaps \
in one or two components that do not undermine the overall coherence.
- **B**: Solid. The majority of components are addressed with adequate evidence; some components may \
be implicit or underdeveloped but the strategy is functional.
- **B-**: Adequate. Core components are present but several have limited depth.
- **C**: Partial. Significant gaps in two or more components; incomplete as a framework.
- **D**: Weak. Most components are poorly addressed or absent.
- **F**: Insufficient. The document does not function as a sector development strategy.

## Blueprint Components

1. **Sector Diagnostics and Comparative Advantage**: empirical baseline, sector identification \
logic, adjacency and growth analysis, justification for sector focus.
2. **Economic Geography and Places of Production**: places, regions, industrial precincts, \
enabling infrastructure linked to sector activity.
3. **Regulatory and Enabling Environment**: policy frameworks, planning barriers, regulatory \
reform pathways, enabling conditions.
4. **Value Chain and Market Integration**: demand drivers, supply chain positioning, market \
access, value chain mapping.
5. **Workforce and Skills Alignment**: skills gaps, training alignment, transferability, \
workforce development.
6. **Sector Culture and Norms**: cultural factors, behavioural norms, innovation disposition, \
collaboration readiness.

## Scope Discipline

A well-graded strategy positions actions as enabling rather than delivering, does not overclaim \
capital allocation or market outcomes, and acknowledges the boundaries of its influence.

## Output Format

Respond ONLY with a valid JSON object. No markdown fences, no additional text.
The JSON must match this exact schema:

{
  "grade_letter": "<A | A- | B | B- | C | D | F>",
  "grade_rationale_short": "<2-3 sentence rationale>",
  "evidence_notes_by_component": {
    "1": "<assessment of component 1>",
    "2": "<assessment of component 2>",
    "3": "<assessment of component 3>",
    "4": "<assessment of component 4>",
    "5": "<assessment of component 5>",
    "6": "<assessment of component 6>"
  },
  "missing_elements": [
    { "component_id": "<1-6>", "reason": "<what is missing>" }
  ],
  "scope_discipline_notes": "<1-2 sentence scope assessment>"
}

IMPORTANT:
- Use ONLY the exact grade letters listed above.
- Every component (1-6) MUST have an evidence note, even if the note says the component was not addressed.
- missing_elements may be empty ([]) if no significant gaps exist.
- Be rigorous but fair. Grade based on what the strategy actually contains."""

STRATEGY_GRADE_USER_PROMPT = """Grade the following sector development strategy against the \
six-component blueprint.

The strategy's extracted blueprint components are provided below. Evaluate each component and \
produce a grade.

STRATEGY TITLE: {title}

STRATEGY SUMMARY: {summary}

COMPONENT 1 — Sector Diagnostics and Comparative Advantage:
{component_1}

COMPONENT 2 — Economic Geography and Places of Production:
{component_2}

COMPONENT 3 — Regulatory and Enabling Environment:
{component_3}

COMPONENT 4 — Value Chain and Market Integration:
{component_4}

COMPONENT 5 — Workforce and Skills Alignment:
{component_5}

COMPONENT 6 — Sector Culture and Norms:
{component_6}

SELECTION LOGIC:
Adjacent definition: {adjacent_definition}
Growth definition: {growth_definition}
Criteria: {criteria}

CROSS-CUTTING THEMES: {themes}

STAKEHOLDER CATEGORIES: {stakeholders}"""

_NOT_PROVIDED = "(Not provided)"


def truncate_strategy_text(text: str) -> str:
    """Cap document text at 60,000 characters, marking the cut.

    Text of exactly the limit is returned unchanged.
    """
    if len(text) > MAX_STRATEGY_CHARS:
        return text[:MAX_STRATEGY_CHARS] + TRUNCATION_SUFFIX
    return text


def build_strategy_extract_system_prompt() -> str:
    return STRATEGY_EXTRACT_SYSTEM_PROMPT


def build_strategy_extract_user_prompt(text: str) -> str:
    return STRATEGY_EXTRACT_USER_PROMPT.format(text=text)


def build_strategy_grade_system_prompt() -> str:
    return STRATEGY_GRADE_SYSTEM_PROMPT


def build_strategy_grade_user_prompt(strategy: SectorDevelopmentStrategy) -> str:
    selection = strategy.selection_logic
    components = {
        f"component_{cid}": strategy.components.get(cid) or _NOT_PROVIDED for cid in ("1", "2", "3", "4", "5", "6")
    }
    return STRATEGY_GRADE_USER_PROMPT.format(
        title=strategy.title,
        summary=strategy.summary,
        adjacent_definition=(selection.adjacent_definition if selection else None) or _NOT_PROVIDED,
        growth_definition=(selection.growth_definition if selection else None) or _NOT_PROVIDED,
        criteria=", ".join(selection.criteria) if selection and selection.criteria else _NOT_PROVIDED,
        themes=", ".join(strategy.cross_cutting_themes) or _NOT_PROVIDED,
        stakeholders=", ".join(strategy.stakeholder_categories) or _NOT_PROVIDED,
        **components,
    )
