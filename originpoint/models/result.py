"""Result, conflict and visualization data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from originpoint.models.source import GroundingSource


@dataclass
class AnalysisResult:
    """Prose answer from a grounded query, with its citations."""

    text: str
    sources: list[GroundingSource] = field(default_factory=list)
    is_deep_reasoning: bool = False
    # Display metadata only; neither value is verified by this application.
    verification_score: int | None = None
    integrity_tag: str | None = None

    def __post_init__(self) -> None:
        if self.verification_score is not None and not 0 <= self.verification_score <= 100:
            raise ValueError(
                f"verification_score must be within 0-100, got {self.verification_score}"
            )


class RecordClass(str, Enum):
    ANCESTRY = "ancestry"
    LAND = "land"


@dataclass
class Conflict:
    """A factual discrepancy between two pieces of archival evidence."""

    id: str
    record_class: RecordClass
    description: str
    evidence_a: str
    evidence_b: str
    reason: str
    summary: str = ""


class EventType(str, Enum):
    OWNERSHIP = "ownership"
    BIRTH = "birth"
    DEATH = "death"
    LEGAL = "legal"
    OTHER = "other"


@dataclass
class TimelineEvent:
    year: str
    event: str
    actor: str
    event_type: EventType = EventType.OTHER


@dataclass
class LineageNode:
    """A person in the property-linked family tree."""

    name: str
    role: str = ""
    property_link: str = ""
    children: list[LineageNode] = field(default_factory=list)


@dataclass
class VisualizationData:
    timeline: list[TimelineEvent] = field(default_factory=list)
    lineage_nodes: list[LineageNode] = field(default_factory=list)

    @classmethod
    def empty(cls) -> VisualizationData:
        return cls(timeline=[], lineage_nodes=[])

    @property
    def is_empty(self) -> bool:
        return not self.timeline and not self.lineage_nodes
