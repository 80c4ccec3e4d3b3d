"""Structured-output schemas and their wire models."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from originpoint.models.result import (
    Conflict,
    EventType,
    LineageNode,
    RecordClass,
    TimelineEvent,
    VisualizationData,
)

logger = logging.getLogger(__name__)

# --- Schemas declared to the model (Gemini OpenAPI subset) ---

CONFLICTS_SCHEMA: dict = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "recordType": {"type": "STRING", "enum": ["ancestry", "land"]},
            "description": {"type": "STRING"},
            "summary": {"type": "STRING"},
            "evidenceA": {"type": "STRING"},
            "evidenceB": {"type": "STRING"},
            "reason": {"type": "STRING"},
        },
        "required": ["id", "recordType", "description", "evidenceA", "evidenceB", "reason"],
    },
}

_NODE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "role": {"type": "STRING"},
        "propertyLink": {"type": "STRING"},
    },
}

VISUALIZATION_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "timeline": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "year": {"type": "STRING"},
                    "event": {"type": "STRING"},
                    "actor": {"type": "STRING"},
                    "type": {
                        "type": "STRING",
                        "enum": ["ownership", "birth", "death", "legal"],
                    },
                },
            },
        },
        "familyTree": {"type": "ARRAY", "items": _NODE_SCHEMA},
    },
}


# --- Wire models used to validate what comes back ---


class ConflictPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    record_type: RecordClass = Field(alias="recordType")
    description: str
    summary: str = ""
    evidence_a: str = Field(alias="evidenceA")
    evidence_b: str = Field(alias="evidenceB")
    reason: str

    @field_validator("id")
    @classmethod
    def _id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("conflict id must not be blank")
        return value.strip()

    @field_validator("record_type", mode="before")
    @classmethod
    def _lower_record_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    def to_conflict(self) -> Conflict:
        return Conflict(
            id=self.id,
            record_class=self.record_type,
            description=self.description,
            summary=self.summary,
            evidence_a=self.evidence_a,
            evidence_b=self.evidence_b,
            reason=self.reason,
        )


class TimelineEventPayload(BaseModel):
    year: str = ""
    event: str = ""
    actor: str = ""
    type: EventType = EventType.OTHER

    @field_validator("year", "event", "actor", mode="before")
    @classmethod
    def _text_or_blank(cls, value):
        if value is None:
            return ""
        return str(value) if isinstance(value, int) else value

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if value in EventType._value2member_map_:
                return value
        return EventType.OTHER

    def to_event(self) -> TimelineEvent:
        return TimelineEvent(
            year=self.year, event=self.event, actor=self.actor, event_type=self.type
        )


class LineageNodePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    role: str = ""
    property_link: str = Field(default="", alias="propertyLink")
    children: list[LineageNodePayload] = Field(default_factory=list)

    @field_validator("name", "role", "property_link", mode="before")
    @classmethod
    def _blank_if_null(cls, value):
        return "" if value is None else value

    @field_validator("children", mode="before")
    @classmethod
    def _no_children_if_null(cls, value):
        return [] if value is None else value

    def to_node(self) -> LineageNode:
        return LineageNode(
            name=self.name,
            role=self.role,
            property_link=self.property_link,
            children=[c.to_node() for c in self.children],
        )


class VisualizationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timeline: list[TimelineEventPayload] = Field(default_factory=list)
    family_tree: list[LineageNodePayload] = Field(default_factory=list, alias="familyTree")

    @field_validator("timeline", "family_tree", mode="before")
    @classmethod
    def _empty_if_null(cls, value):
        return [] if value is None else value

    def to_visualization(self) -> VisualizationData:
        return VisualizationData(
            timeline=[e.to_event() for e in self.timeline],
            lineage_nodes=[n.to_node() for n in self.family_tree],
        )


_conflict_list = TypeAdapter(list[ConflictPayload])


def strip_code_fence(raw_text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = raw_text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()


def parse_conflicts(raw_text: str) -> list[Conflict]:
    """Validate a conflict array. Raises pydantic.ValidationError on mismatch.

    Duplicate ids keep their first occurrence.
    """
    payloads = _conflict_list.validate_json(strip_code_fence(raw_text))
    conflicts: list[Conflict] = []
    seen: set[str] = set()
    for payload in payloads:
        if payload.id in seen:
            logger.warning("Dropping conflict with duplicate id %r", payload.id)
            continue
        seen.add(payload.id)
        conflicts.append(payload.to_conflict())
    return conflicts


def parse_visualization(raw_text: str) -> VisualizationData:
    """Validate a visualization object. Raises pydantic.ValidationError on mismatch."""
    payload = VisualizationPayload.model_validate_json(strip_code_fence(raw_text))
    return payload.to_visualization()
