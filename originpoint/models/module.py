"""Interaction modes and transient controller state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActiveModule(str, Enum):
    SEARCH = "search"
    ANALYZE = "analyze"
    MAP = "map"
    SCAN = "scan"
    CONFLICTS = "conflicts"
    VISUALIZE = "visualize"
    AUDIT = "audit"


class ResultKind(str, Enum):
    TEXT = "text-result"
    CONFLICTS = "conflict-batch"
    VISUALIZATION = "visualization"
    EMPTY = "empty"


class ControllerPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    RESULT_READY = "result-ready"
    CHALLENGING = "challenging"


@dataclass
class ChallengeSession:
    """Counter-evidence being composed against one conflict."""

    target_description: str
    evidence_text: str = ""
    active: bool = True
