import pytest

from originpoint.backends.base import Citation, GroundingTool
from originpoint.backends.schemas import CONFLICTS_SCHEMA, VISUALIZATION_SCHEMA
from originpoint.errors import SchemaParseError, UpstreamError, ValidationError
from originpoint.models.result import EventType, RecordClass
from originpoint.models.source import SourceCategory, SourceOrigin

from tests.conftest import SAMPLE_CONFLICTS, web


async def test_search_records_classifies_and_drops_empty_uris(client, backend):
    backend.queue(
        "Found the Smith household in the 1880 census.",
        [
            web("1880 United States Census", "https://census.example/1880"),
            web("No link", ""),
            web("Chicago Tribune, 1881", "https://news.example/t"),
        ],
    )

    result = await client.search_records("Smith family, Cook County 1880")

    assert result.text.startswith("Found the Smith household")
    assert [s.uri for s in result.sources] == [
        "https://census.example/1880",
        "https://news.example/t",
    ]
    assert [s.category for s in result.sources] == [
        SourceCategory.CENSUS,
        SourceCategory.NEWSPAPER,
    ]
    assert all(s.uri for s in result.sources)
    assert result.is_deep_reasoning is False

    request = backend.requests[0]
    assert request.model == client.config.search_model
    assert request.tools == [GroundingTool.SEARCH]
    assert "Smith family, Cook County 1880" in request.prompt


async def test_map_property_uses_maps_tool(client, backend):
    backend.queue("Parcel exists.", [Citation("Lot 4", "https://maps.google.com/1", SourceOrigin.MAP)])

    result = await client.map_property("Lot 4, Evanston")

    assert backend.requests[0].tools == [GroundingTool.MAPS]
    assert backend.requests[0].model == client.config.map_model
    assert result.sources[0].category == SourceCategory.MAP
    assert result.sources[0].origin == SourceOrigin.MAP


async def test_audit_score_only_in_strict_profile(client, strict_client, backend):
    backend.queue("Claim holds.\nVerification score: 87")
    backend.queue("Claim holds.\nVerification score: 87")

    archival = await client.grounding_audit("John Smith bought lot 4 in 1881")
    strict = await strict_client.grounding_audit("John Smith bought lot 4 in 1881")

    assert archival.verification_score is None
    assert strict.verification_score == 87
    assert "Verification score" in backend.requests[1].prompt


@pytest.mark.parametrize("blank", ["", "   ", "\n"])
async def test_blank_input_rejected_before_dispatch(client, backend, blank):
    with pytest.raises(ValidationError):
        await client.search_records(blank)
    with pytest.raises(ValidationError):
        await client.detect_conflicts(blank)
    with pytest.raises(ValidationError):
        await client.submit_challenge("target", blank)
    assert backend.requests == []


async def test_empty_payload_is_upstream_error(client, backend):
    backend.queue("")
    with pytest.raises(UpstreamError):
        await client.search_records("Smith")


async def test_backend_exception_is_wrapped(client, backend):
    backend.fail(RuntimeError("socket closed"))
    with pytest.raises(UpstreamError, match="socket closed"):
        await client.search_records("Smith")


async def test_detect_conflicts(client, backend):
    backend.queue_json(SAMPLE_CONFLICTS)

    conflicts = await client.detect_conflicts("Smith family, Cook County 1880")

    assert [c.id for c in conflicts] == ["c1", "c2"]
    assert conflicts[0].record_class is RecordClass.LAND
    assert conflicts[0].evidence_a.startswith("Cook County deed book")
    assert conflicts[1].summary == ""
    assert backend.requests[0].response_schema is CONFLICTS_SCHEMA
    assert backend.requests[0].model == client.config.conflicts_model


async def test_detect_conflicts_deduplicates_ids(client, backend):
    duplicate = dict(SAMPLE_CONFLICTS[1], id="c1")
    backend.queue_json([SAMPLE_CONFLICTS[0], duplicate])

    conflicts = await client.detect_conflicts("Smith")

    assert len(conflicts) == 1
    assert conflicts[0].description == SAMPLE_CONFLICTS[0]["description"]


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        '{"id": "c1"}',
        '[{"id": "c1", "recordType": "land"}]',
        '[{"id": "", "recordType": "land", "description": "d", "evidenceA": "a", '
        '"evidenceB": "b", "reason": "r"}]',
        '[{"id": "c1", "recordType": "mineral", "description": "d", "evidenceA": "a", '
        '"evidenceB": "b", "reason": "r"}]',
    ],
)
async def test_detect_conflicts_rejects_bad_payloads(client, backend, payload):
    backend.queue(payload)
    with pytest.raises(SchemaParseError):
        await client.detect_conflicts("Smith")


async def test_detect_conflicts_accepts_fenced_json(client, backend):
    backend.queue('```json\n[{"id": "x", "recordType": "Ancestry", "description": "d", '
                  '"evidenceA": "a", "evidenceB": "b", "reason": "r"}]\n```')

    conflicts = await client.detect_conflicts("Smith")

    assert conflicts[0].record_class is RecordClass.ANCESTRY


async def test_generate_visual_data(client, backend):
    backend.queue_json({
        "timeline": [
            {"year": 1881, "event": "Deed recorded", "actor": "John Smith", "type": "ownership"},
            {"year": "1902", "event": "Died", "actor": "John Smith", "type": "Funeral"},
        ],
        "familyTree": [
            {"name": "John Smith", "role": "Owner", "propertyLink": "Lot 4",
             "children": [{"name": "Mary Smith", "role": "Heir"}]},
        ],
    })

    data = await client.generate_visual_data("Smith")

    assert [e.year for e in data.timeline] == ["1881", "1902"]
    assert data.timeline[0].event_type is EventType.OWNERSHIP
    assert data.timeline[1].event_type is EventType.OTHER
    assert data.lineage_nodes[0].property_link == "Lot 4"
    assert data.lineage_nodes[0].children[0].name == "Mary Smith"
    assert backend.requests[0].response_schema is VISUALIZATION_SCHEMA


async def test_generate_visual_data_tolerates_missing_and_null_fields(client, backend):
    backend.queue_json({
        "timeline": [
            {"year": None, "event": "Deed lost", "actor": None, "type": "legal"},
            {"year": "1900", "event": "Sold", "actor": "Mary Smith", "type": "ownership"},
        ],
        "familyTree": [
            {"role": "Heir", "propertyLink": "Lot 4"},
            {"name": None, "role": None, "propertyLink": None, "children": None},
        ],
    })

    data = await client.generate_visual_data("Smith")

    assert [e.year for e in data.timeline] == ["", "1900"]
    assert data.timeline[0].actor == ""
    assert data.timeline[1].event_type is EventType.OWNERSHIP
    assert [(n.name, n.role, n.property_link) for n in data.lineage_nodes] == [
        ("", "Heir", "Lot 4"),
        ("", "", ""),
    ]
    assert data.lineage_nodes[1].children == []


@pytest.mark.parametrize("payload", ["", "{{not json", '{"timeline": "soon"}', "[1, 2]"])
async def test_generate_visual_data_degrades_to_empty(client, backend, payload):
    backend.queue(payload)

    data = await client.generate_visual_data("Smith")

    assert data.timeline == []
    assert data.lineage_nodes == []


async def test_submit_challenge_uses_thinking_budget(client, backend):
    backend.queue("The connection is flawed.")

    text = await client.submit_challenge("Birth year of Mary Smith", "Family bible, 1868")

    assert text == "The connection is flawed."
    request = backend.requests[0]
    assert request.thinking_budget == client.config.challenge_thinking_budget
    assert request.model == client.config.challenge_model
    assert "Family bible, 1868" in request.prompt
    assert request.tools == []


async def test_fast_summarize_uses_lite_model(client, backend):
    backend.queue("Short.")
    assert await client.fast_summarize("Long findings") == "Short."
    assert backend.requests[0].model == client.config.summarize_model


async def test_scan_document_sends_image(client, backend):
    backend.queue("Deed of sale, 1881.")

    text = await client.scan_document(b"jpegbytes", "image/jpeg")

    assert text == "Deed of sale, 1881."
    assert backend.requests[0].inline_data == b"jpegbytes"
    with pytest.raises(ValidationError):
        await client.scan_document(b"")


async def test_prompt_text_with_braces_is_not_formatted(client, backend):
    backend.queue("ok")
    await client.search_records("Smith {estate}")
    assert "Smith {estate}" in backend.requests[0].prompt
