"""Source classifier — assigns a category to a grounding citation."""

from __future__ import annotations

import re

from originpoint.models.source import SourceCategory


def _rule(*patterns: str) -> re.Pattern[str]:
    return re.compile("|".join(patterns), re.IGNORECASE)


# Evaluated top to bottom; the first matching rule wins. Bare surnames such
# as Levy, Court or Herald must not trigger a category on their own.
CATEGORY_RULES: tuple[tuple[SourceCategory, re.Pattern[str]], ...] = (
    (
        SourceCategory.CENSUS,
        _rule(r"\bcensus", r"\benumeration district", r"\bpopulation schedule", r"familysearch"),
    ),
    (
        SourceCategory.TAX,
        _rule(r"\btax", r"\bassessor", r"\bassessment roll", r"\blevy roll", r"\btreasurer\b"),
    ),
    (
        SourceCategory.NEWSPAPER,
        _rule(
            r"\bnewspaper",
            r"\bgazette\b",
            r"\bchronicle\b",
            r"\bherald\b",
            r"\btribune\b",
            r"\bobituar",
            r"chroniclingamerica",
        ),
    ),
    (
        SourceCategory.MAP,
        _rule(r"\bmaps?\b", r"\bsurvey", r"\bplat book", r"\bcartograph"),
    ),
    (
        SourceCategory.LEGAL,
        _rule(
            r"\bdeeds?\b",
            r"\bprobate",
            r"\bcourts\b",
            r"\bcourthouse",
            r"\bcourt (?:of|records?|case)\b",
            r"\blegal\b",
            r"\brecorder",
            r"\bregistry",
            r"\bland title",
        ),
    ),
)


def classify(title: str, uri: str) -> SourceCategory:
    """Return the category of a citation from its title and URI."""
    haystack = f"{title or ''} {uri or ''}"
    for category, pattern in CATEGORY_RULES:
        if pattern.search(haystack):
            return category
    return SourceCategory.WEB
