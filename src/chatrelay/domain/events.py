"""Events produced by a gateway adapter's streaming completion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TextStart:
    """The provider opened a new text part."""


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class Done:
    finish_reason: str | None = None


@dataclass(frozen=True)
class ProviderFailure:
    reason: str


ProviderEvent = Union[TextStart, TextDelta, Done, ProviderFailure]
