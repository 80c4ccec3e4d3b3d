"""Base protocol for the generative backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from originpoint.models.source import SourceOrigin


class GroundingTool(Enum):
    SEARCH = "googleSearch"
    MAPS = "googleMaps"


@dataclass
class GenerationRequest:
    """A single round trip to the backend."""

    model: str
    prompt: str
    tools: list[GroundingTool] = field(default_factory=list)
    response_schema: dict | None = None
    thinking_budget: int | None = None
    inline_data: bytes | None = None
    inline_mime_type: str = "image/jpeg"


@dataclass
class Citation:
    """A raw grounding citation as reported by the backend."""

    title: str
    uri: str
    origin: SourceOrigin = SourceOrigin.WEB


@dataclass
class GenerationResponse:
    """Text plus grounding citations returned by the backend."""

    text: str
    citations: list[Citation] = field(default_factory=list)
    raw_response: dict = field(default_factory=dict)


@runtime_checkable
class GenerativeBackend(Protocol):
    """Interface that the Grounded-Query Client talks to."""

    name: str

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run one generation request and return its text and citations."""
        ...
