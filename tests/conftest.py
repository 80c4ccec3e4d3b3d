from __future__ import annotations

import asyncio
import json

import pytest

from originpoint.backends.base import Citation, GenerationRequest, GenerationResponse
from originpoint.client import GroundedQueryClient
from originpoint.config import Settings
from originpoint.models.source import SourceOrigin
from originpoint.orchestrator.controller import InteractionController
from originpoint.prompts import ARCHIVAL, STRICT


class FakeBackend:
    """Records every request and answers from a queue of canned responses."""

    name = "Fake"

    def __init__(self) -> None:
        self.requests: list[GenerationRequest] = []
        self.responses: list[GenerationResponse | Exception] = []
        self.gate: asyncio.Event | None = None

    def queue(self, text: str = "", citations: list[Citation] | None = None) -> None:
        self.responses.append(GenerationResponse(text=text, citations=citations or []))

    def queue_json(self, payload) -> None:
        self.queue(json.dumps(payload))

    def fail(self, exc: Exception) -> None:
        self.responses.append(exc)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            return GenerationResponse(text="default answer")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def config() -> Settings:
    return Settings(_env_file=None, google_api_key="test-key")


@pytest.fixture
def client(backend, config) -> GroundedQueryClient:
    return GroundedQueryClient(backend, profile=ARCHIVAL, config=config)


@pytest.fixture
def strict_client(backend, config) -> GroundedQueryClient:
    return GroundedQueryClient(backend, profile=STRICT, config=config)


@pytest.fixture
def controller(client) -> InteractionController:
    return InteractionController(client)


def web(title: str, uri: str) -> Citation:
    return Citation(title=title, uri=uri, origin=SourceOrigin.WEB)


SAMPLE_CONFLICTS = [
    {
        "id": "c1",
        "recordType": "land",
        "description": "Parcel 12 deed date disagrees with the tax roll",
        "summary": "Deed says 1881, tax roll says 1879",
        "evidenceA": "Cook County deed book 44, p. 12 (1881)",
        "evidenceB": "1879 assessor roll lists John Smith as owner",
        "reason": "Ownership predates the recorded transfer",
    },
    {
        "id": "c2",
        "recordType": "ancestry",
        "description": "Birth year of Mary Smith",
        "evidenceA": "1880 census: age 12",
        "evidenceB": "Baptismal record: 1870",
        "reason": "Two-year gap between sources",
    },
]
