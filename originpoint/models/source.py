"""Grounding source data model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceCategory(str, Enum):
    CENSUS = "census"
    TAX = "tax"
    NEWSPAPER = "newspaper"
    MAP = "map"
    LEGAL = "legal"
    WEB = "web"


class SourceOrigin(str, Enum):
    """Which grounding tool produced the citation."""

    WEB = "web"
    MAP = "map"


@dataclass
class GroundingSource:
    """A citation attached to a grounded response."""

    title: str
    uri: str
    category: SourceCategory = SourceCategory.WEB
    origin: SourceOrigin = SourceOrigin.WEB

    def __post_init__(self) -> None:
        if not self.uri:
            raise ValueError("GroundingSource requires a non-empty uri")
