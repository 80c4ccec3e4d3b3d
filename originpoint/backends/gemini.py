"""Gemini backend — Google generateContent REST API via httpx."""

from __future__ import annotations

import base64
import logging

import httpx

from originpoint.backends.base import (
    Citation,
    GenerationRequest,
    GenerationResponse,
)
from originpoint.config import settings
from originpoint.errors import UpstreamError
from originpoint.models.source import SourceOrigin

logger = logging.getLogger(__name__)

DEFAULT_WEB_TITLE = "Web Source"
DEFAULT_MAP_TITLE = "Map Location"


class GeminiBackend:
    """Generative backend using Google's Gemini API."""

    name: str = "Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_api_key
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self._transport = transport

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Execute one generateContent call and normalize the response."""
        url = f"{self.base_url}/models/{request.model}:generateContent"
        body = self._build_body(request)
        logger.info("Gemini request: model=%s tools=%s", request.model,
                    [t.value for t in request.tools])

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    headers={
                        "Content-Type": "application/json",
                        "x-goog-api-key": self.api_key,
                    },
                    json=body,
                )
                response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"Gemini returned HTTP {exc.response.status_code} for {request.model}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("Gemini returned a non-JSON body") from exc

        return self._parse_response(data)

    def _build_body(self, request: GenerationRequest) -> dict:
        parts: list[dict] = []
        if request.inline_data is not None:
            parts.append({
                "inlineData": {
                    "mimeType": request.inline_mime_type,
                    "data": base64.b64encode(request.inline_data).decode("ascii"),
                }
            })
        parts.append({"text": request.prompt})

        body: dict = {"contents": [{"role": "user", "parts": parts}]}
        if request.tools:
            body["tools"] = [{tool.value: {}} for tool in request.tools]

        generation_config: dict = {}
        if request.response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = request.response_schema
        if request.thinking_budget is not None:
            generation_config["thinkingConfig"] = {
                "thinkingBudget": request.thinking_budget
            }
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def _parse_response(self, data: dict) -> GenerationResponse:
        """Extract answer text and grounding citations from a response body."""
        if not isinstance(data, dict):
            raise UpstreamError("Gemini returned an unexpected response body")
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise UpstreamError(f"Gemini blocked the prompt: {block_reason}")

        candidates = data.get("candidates") or []
        if not candidates:
            raise UpstreamError("Gemini returned no candidates")

        first = candidates[0]
        parts = (first.get("content") or {}).get("parts") or []
        # Thought summaries are flagged and are not part of the answer
        text = "".join(
            p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")
        )
        citations = self._extract_citations(first)
        logger.debug("Gemini response: %d chars, %d citations", len(text), len(citations))
        return GenerationResponse(text=text, citations=citations, raw_response=data)

    def _extract_citations(self, candidate: dict) -> list[Citation]:
        chunks = (candidate.get("groundingMetadata") or {}).get("groundingChunks") or []
        citations: list[Citation] = []
        for chunk in chunks:
            if not isinstance(chunk, dict):
                continue
            web = chunk.get("web")
            if web:
                citations.append(Citation(
                    title=web.get("title") or DEFAULT_WEB_TITLE,
                    uri=web.get("uri") or "",
                    origin=SourceOrigin.WEB,
                ))
            maps = chunk.get("maps")
            if maps:
                citations.append(Citation(
                    title=maps.get("title") or DEFAULT_MAP_TITLE,
                    uri=maps.get("uri") or "",
                    origin=SourceOrigin.MAP,
                ))
        return citations
