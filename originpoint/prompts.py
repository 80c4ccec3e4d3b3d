"""Prompt profiles — the revision-dependent prompts and display metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass
from uuid import uuid4

from originpoint.models.result import Conflict

AUDIT_NOTICE = "Factual verification complete. Sources audited against live registries."
CHALLENGE_NOTICE = "Evidence re-analyzed. Lineage connection corrected and locked."
SCAN_INSTRUCTION = (
    "Extract all factual details from this historical record. Analyze how it "
    "fits into a larger genealogical or property chain."
)

_SCORE_LINE = re.compile(r"verification score\s*[:=]\s*(\d{1,3})", re.IGNORECASE)


@dataclass(frozen=True)
class PromptProfile:
    """One revision of the application's prompts.

    Templates are ``str.format`` strings. ``{query}`` is the user's text; the
    challenge template also receives ``{target}`` and ``{evidence}``.
    """

    name: str
    search: str
    map: str
    audit: str
    conflicts: str
    visualize: str
    challenge: str
    summarize: str
    include_evidence_in_target: bool = False
    tag_challenges: bool = False
    score_audits: bool = False

    def challenge_target(self, conflict: Conflict) -> str:
        """Text that the user's counter-evidence is aimed at."""
        if not self.include_evidence_in_target:
            return conflict.description
        return (
            f"{conflict.description} "
            f"(Evidence A: {conflict.evidence_a}; Evidence B: {conflict.evidence_b})"
        )

    def integrity_tag(self) -> str | None:
        """Random display token for a challenge result, if this profile uses one."""
        if not self.tag_challenges:
            return None
        return f"OP-{uuid4().hex[:12].upper()}"

    def parse_verification_score(self, text: str) -> int | None:
        """Pull a model-reported ``Verification score: NN`` line out of an audit."""
        if not self.score_audits:
            return None
        match = _SCORE_LINE.search(text)
        if match is None:
            return None
        return min(int(match.group(1)), 100)


ARCHIVAL = PromptProfile(
    name="archival",
    search=(
        "Locate and verify historical ancestry and land documents for: {query}. "
        "You MUST use Google Search to ground your response in factual, "
        "documented records."
    ),
    map=(
        "Verify the geographic existence and history of this land parcel or "
        "property: {query}. Provide links to maps and reviews if relevant."
    ),
    audit=(
        'Perform an advanced grounding audit of this claim: "{query}". '
        "Specifically check for discrepancies against recent news, digital "
        "archives, and official land registry data via Google Search."
    ),
    conflicts=(
        "Examine ancestry and land records for: {query}. Specifically identify "
        "inconsistencies in ownership dates, lineage discrepancies, or property "
        "markers. Return the results as a list of detailed conflicts."
    ),
    visualize=(
        "Generate a structured timeline and property-linked family tree for: "
        "{query}. Focus on ownership transitions and key life events of owners."
    ),
    challenge=(
        'Challenge the existing connection: "{target}" with this new evidence: '
        '"{evidence}". Re-analyze the factual chain. If the evidence is '
        "compelling, explain why the connection is flawed and propose a correction."
    ),
    summarize="Summarize these findings briefly for a quick review: {query}",
)

STRICT = PromptProfile(
    name="strict",
    search=(
        "Locate and verify historical ancestry and land documents for: {query}. "
        "You MUST use Google Search and cite only census schedules, tax rolls, "
        "newspapers, maps, or court and deed records. State explicitly when no "
        "primary record was found."
    ),
    map=ARCHIVAL.map,
    audit=(
        'Perform an advanced grounding audit of this claim: "{query}". Check it '
        "against recent news, digital archives, and official land registry data "
        "via Google Search. End your answer with a single line of the form "
        "'Verification score: NN' where NN is 0-100."
    ),
    conflicts=(
        "Examine ancestry and land records for: {query}. Identify inconsistencies "
        "in ownership dates, lineage discrepancies, or property markers. For each "
        "conflict give a unique id, a one-sentence summary, and quote both pieces "
        "of evidence verbatim."
    ),
    visualize=ARCHIVAL.visualize,
    challenge=(
        'Challenge the existing connection: "{target}" with this new evidence: '
        '"{evidence}". Re-analyze the factual chain step by step against both '
        "quoted pieces of evidence. If the new evidence is compelling, explain "
        "why the connection is flawed and propose a correction; otherwise say "
        "why the original connection stands."
    ),
    summarize=ARCHIVAL.summarize,
    include_evidence_in_target=True,
    tag_challenges=True,
    score_audits=True,
)

PROFILES: dict[str, PromptProfile] = {p.name: p for p in (ARCHIVAL, STRICT)}


def get_profile(name: str) -> PromptProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown prompt profile: {name!r}") from None
