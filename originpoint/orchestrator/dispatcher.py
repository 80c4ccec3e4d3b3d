"""Module dispatcher — maps each module to a client operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from originpoint.client import GroundedQueryClient
from originpoint.errors import ValidationError
from originpoint.models.module import ActiveModule, ResultKind
from originpoint.models.result import AnalysisResult, Conflict, VisualizationData
from originpoint.prompts import AUDIT_NOTICE

logger = logging.getLogger(__name__)


class SummaryPolicy(Enum):
    NONE = "none"
    FAST = "fast"  # second round trip through fast_summarize
    FIXED = "fixed"
    CONFLICT_COUNT = "conflict_count"


@dataclass(frozen=True)
class ModuleEntry:
    """How one module turns a query into a result."""

    module: ActiveModule
    operation: str | None
    kind: ResultKind
    summary: SummaryPolicy = SummaryPolicy.NONE
    fixed_summary: str = ""
    deep_reasoning: bool = False


MODULE_TABLE: dict[ActiveModule, ModuleEntry] = {
    entry.module: entry
    for entry in (
        ModuleEntry(ActiveModule.SEARCH, "search_records", ResultKind.TEXT, SummaryPolicy.FAST),
        ModuleEntry(ActiveModule.ANALYZE, "search_records", ResultKind.TEXT, deep_reasoning=True),
        ModuleEntry(ActiveModule.MAP, "map_property", ResultKind.TEXT, SummaryPolicy.FAST),
        ModuleEntry(
            ActiveModule.AUDIT,
            "grounding_audit",
            ResultKind.TEXT,
            SummaryPolicy.FIXED,
            fixed_summary=AUDIT_NOTICE,
        ),
        ModuleEntry(
            ActiveModule.CONFLICTS,
            "detect_conflicts",
            ResultKind.CONFLICTS,
            SummaryPolicy.CONFLICT_COUNT,
        ),
        ModuleEntry(ActiveModule.VISUALIZE, "generate_visual_data", ResultKind.VISUALIZATION),
        # Scanning takes an uploaded document, not a text query
        ModuleEntry(ActiveModule.SCAN, None, ResultKind.TEXT, SummaryPolicy.FAST),
    )
}


@dataclass
class DispatchOutcome:
    """Everything one dispatch produced. Only the field matching ``kind`` is set."""

    kind: ResultKind
    result: AnalysisResult | None = None
    conflicts: list[Conflict] = field(default_factory=list)
    visualization: VisualizationData | None = None
    summary: str = ""


class Dispatcher:
    """Runs the client operation for a module, then its summary step."""

    def __init__(
        self,
        client: GroundedQueryClient,
        table: dict[ActiveModule, ModuleEntry] | None = None,
    ) -> None:
        self.client = client
        self.table = table or MODULE_TABLE

    async def dispatch(self, module: ActiveModule, query: str) -> DispatchOutcome:
        entry = self.table[module]
        if entry.operation is None:
            raise ValidationError(f"The {module.value} module needs an uploaded document")

        logger.info("Dispatching %s via %s", module.value, entry.operation)
        value = await getattr(self.client, entry.operation)(query)
        outcome = self._outcome(entry, value)
        outcome.summary = await self._summarize(entry, outcome)
        return outcome

    async def dispatch_document(self, image: bytes, mime_type: str) -> DispatchOutcome:
        entry = self.table[ActiveModule.SCAN]
        logger.info("Dispatching scan (%d bytes, %s)", len(image), mime_type)
        text = await self.client.scan_document(image, mime_type)
        outcome = DispatchOutcome(kind=entry.kind, result=AnalysisResult(text=text))
        outcome.summary = await self._summarize(entry, outcome)
        return outcome

    def _outcome(self, entry: ModuleEntry, value) -> DispatchOutcome:
        if entry.kind is ResultKind.CONFLICTS:
            return DispatchOutcome(kind=entry.kind, conflicts=list(value))
        if entry.kind is ResultKind.VISUALIZATION:
            return DispatchOutcome(kind=entry.kind, visualization=value)
        if entry.deep_reasoning:
            value.is_deep_reasoning = True
        return DispatchOutcome(kind=entry.kind, result=value)

    async def _summarize(self, entry: ModuleEntry, outcome: DispatchOutcome) -> str:
        """Runs strictly after the main call has returned."""
        if entry.summary is SummaryPolicy.FAST and outcome.result is not None:
            return await self.client.fast_summarize(outcome.result.text)
        if entry.summary is SummaryPolicy.FIXED:
            return entry.fixed_summary
        if entry.summary is SummaryPolicy.CONFLICT_COUNT and outcome.conflicts:
            return f"Detected {len(outcome.conflicts)} significant archival discrepancies."
        return ""
