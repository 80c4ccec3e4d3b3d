"""Grounded-Query Client — one method per use case of the generative backend."""

from __future__ import annotations

import logging

import pydantic

from originpoint.backends.base import (
    GenerationRequest,
    GenerationResponse,
    GenerativeBackend,
    GroundingTool,
)
from originpoint.backends.schemas import (
    CONFLICTS_SCHEMA,
    VISUALIZATION_SCHEMA,
    parse_conflicts,
    parse_visualization,
)
from originpoint.classifier import classify
from originpoint.config import Settings, settings as default_settings
from originpoint.errors import SchemaParseError, UpstreamError, ValidationError, require_text
from originpoint.models.result import AnalysisResult, Conflict, VisualizationData
from originpoint.models.source import GroundingSource
from originpoint.prompts import SCAN_INSTRUCTION, PromptProfile, get_profile

logger = logging.getLogger(__name__)


class GroundedQueryClient:
    """Builds prompts, calls the backend, and normalizes what comes back.

    The client holds no state between calls. Which model serves which
    operation is fixed by ``Settings``; callers only supply their text.
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        profile: PromptProfile | None = None,
        config: Settings | None = None,
    ) -> None:
        self.backend = backend
        self.config = config or default_settings
        self.profile = profile or get_profile(self.config.profile)

    # --- Grounded text operations ---

    async def search_records(self, query: str) -> AnalysisResult:
        query = require_text(query)
        return await self._grounded(
            self.config.search_model,
            self.profile.search.format(query=query),
            GroundingTool.SEARCH,
        )

    async def map_property(self, location: str) -> AnalysisResult:
        location = require_text(location, "location")
        return await self._grounded(
            self.config.map_model,
            self.profile.map.format(query=location),
            GroundingTool.MAPS,
        )

    async def grounding_audit(self, claim: str) -> AnalysisResult:
        claim = require_text(claim, "claim")
        result = await self._grounded(
            self.config.audit_model,
            self.profile.audit.format(query=claim),
            GroundingTool.SEARCH,
        )
        result.verification_score = self.profile.parse_verification_score(result.text)
        return result

    # --- Structured operations ---

    async def detect_conflicts(self, query: str) -> list[Conflict]:
        """Return the conflict batch for ``query``; all or nothing."""
        query = require_text(query)
        response = await self._call(GenerationRequest(
            model=self.config.conflicts_model,
            prompt=self.profile.conflicts.format(query=query),
            response_schema=CONFLICTS_SCHEMA,
        ))
        self._require_text(response)
        try:
            conflicts = parse_conflicts(response.text)
        except pydantic.ValidationError as exc:
            raise SchemaParseError(
                f"Conflict payload did not match the declared schema: {exc.error_count()} errors"
            ) from exc
        logger.info("Detected %d conflicts", len(conflicts))
        return conflicts

    async def generate_visual_data(self, query: str) -> VisualizationData:
        """Return timeline and lineage data; degrades to empty on bad output."""
        query = require_text(query)
        response = await self._call(GenerationRequest(
            model=self.config.visualize_model,
            prompt=self.profile.visualize.format(query=query),
            response_schema=VISUALIZATION_SCHEMA,
        ))
        if not response.text.strip():
            logger.warning("Empty visualization payload, returning empty data")
            return VisualizationData.empty()
        try:
            return parse_visualization(response.text)
        except pydantic.ValidationError as exc:
            logger.warning("Failed to parse visualization payload, returning empty data: %s", exc)
            return VisualizationData.empty()

    # --- Plain text operations ---

    async def submit_challenge(self, target_description: str, evidence_text: str) -> str:
        target_description = require_text(target_description, "challenge target")
        evidence_text = require_text(evidence_text, "evidence")
        response = await self._call(GenerationRequest(
            model=self.config.challenge_model,
            prompt=self.profile.challenge.format(
                target=target_description, evidence=evidence_text
            ),
            thinking_budget=self.config.challenge_thinking_budget,
        ))
        return self._require_text(response)

    async def fast_summarize(self, text: str) -> str:
        response = await self._call(GenerationRequest(
            model=self.config.summarize_model,
            prompt=self.profile.summarize.format(query=text),
        ))
        return response.text

    async def scan_document(self, image: bytes, mime_type: str = "image/jpeg") -> str:
        """Extract the facts recorded on a scanned historical document."""
        if not image:
            raise ValidationError("document must not be empty")
        response = await self._call(GenerationRequest(
            model=self.config.scan_model,
            prompt=SCAN_INSTRUCTION,
            inline_data=image,
            inline_mime_type=mime_type,
        ))
        return self._require_text(response)

    # --- Helpers ---

    async def _grounded(self, model: str, prompt: str, tool: GroundingTool) -> AnalysisResult:
        response = await self._call(GenerationRequest(model=model, prompt=prompt, tools=[tool]))
        text = self._require_text(response)
        return AnalysisResult(text=text, sources=self._sources(response))

    async def _call(self, request: GenerationRequest) -> GenerationResponse:
        try:
            return await self.backend.generate(request)
        except UpstreamError:
            raise
        except Exception as exc:
            raise UpstreamError(f"{self.backend.name} call failed: {exc}") from exc

    @staticmethod
    def _require_text(response: GenerationResponse) -> str:
        if not response.text.strip():
            raise UpstreamError("Backend returned an empty payload")
        return response.text

    @staticmethod
    def _sources(response: GenerationResponse) -> list[GroundingSource]:
        return [
            GroundingSource(
                title=c.title,
                uri=c.uri,
                category=classify(c.title, c.uri),
                origin=c.origin,
            )
            for c in response.citations
            if c.uri
        ]
