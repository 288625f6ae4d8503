"""constellation: regional economic-development deal and strategy service.

Core entry points::

    from constellation import (
        AppSettings,
        parse_strategy_extract_response, truncate_strategy_text,
        ParseSuccess, ParseFailure,
    )
"""

from __future__ import annotations

from constellation.ai.results import ParseFailure, ParseSuccess
from constellation.ai.strategy_extract import parse_strategy_extract_response
from constellation.core.config import AppSettings
from constellation.prompts.strategy import truncate_strategy_text

__all__ = [
    "AppSettings",
    "ParseFailure",
    "ParseSuccess",
    "parse_strategy_extract_response",
    "truncate_strategy_text",
]
