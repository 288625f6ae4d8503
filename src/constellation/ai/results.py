"""Discriminated parse results returned by the AI response parsers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

T = TypeVar("T")

FailureKind = Literal["unparseable", "malformed"]


@dataclass(frozen=True)
class ParseSuccess(Generic[T]):
    result: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class ParseFailure:
    """A terminal parse failure.

    ``kind`` is ``"unparseable"`` when no JSON could be read from the text
    and ``"malformed"`` when the JSON had the wrong top-level shape.
    """

    error: str
    kind: FailureKind
    ok: Literal[False] = False


ParseResult = Union[ParseSuccess[T], ParseFailure]
