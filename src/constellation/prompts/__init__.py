"""Prompt templates for the AI extraction, grading and memo-analysis calls."""

from __future__ import annotations

from constellation.prompts.memo import (
    build_memo_analysis_system_prompt,
    build_memo_analysis_user_prompt,
    truncate_memo_text,
)
from constellation.prompts.strategy import (
    build_strategy_extract_system_prompt,
    build_strategy_extract_user_prompt,
    build_strategy_grade_system_prompt,
    build_strategy_grade_user_prompt,
    truncate_strategy_text,
)

__all__ = [
    "build_memo_analysis_system_prompt",
    "build_memo_analysis_user_prompt",
    "build_strategy_extract_system_prompt",
    "build_strategy_extract_user_prompt",
    "build_strategy_grade_system_prompt",
    "build_strategy_grade_user_prompt",
    "truncate_memo_text",
    "truncate_strategy_text",
]
