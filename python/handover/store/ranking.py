"""Relevance ranking of knowledge entries against a free-text query.

One scoring function serves both Q&A context selection and search.
"""

from collections import Counter

from .types import KnowledgeEntry

FULL_TITLE_MATCH = 10
FULL_CONTENT_MATCH = 5
TERM_IN_TITLE = 3
TERM_IN_CONTENT = 1
TERM_IS_TAG = 4
TERM_IN_CATEGORY = 2


def query_terms(query: str) -> list[str]:
    """Whitespace-split, lower-cased terms longer than two characters."""
    return [t for t in query.lower().split() if len(t) > 2]


def score_entry(query: str, entry: KnowledgeEntry, terms: list[str] | None = None) -> float:
    """Raw textual score multiplied by the entry's confidence."""
    query_lower = query.lower()
    if terms is None:
        terms = query_terms(query)

    title = entry.title.lower()
    content = entry.content.lower()
    tags = {t.lower() for t in entry.tags}
    category = entry.category.lower()

    score = 0
    if query_lower in title:
        score += FULL_TITLE_MATCH
    if query_lower in content:
        score += FULL_CONTENT_MATCH

    for term in terms:
        if term in title:
            score += TERM_IN_TITLE
        if term in content:
            score += TERM_IN_CONTENT
        if term in tags:
            score += TERM_IS_TAG
        if term in category:
            score += TERM_IN_CATEGORY

    return score * entry.confidence


def find_relevant_entries(
    query: str,
    entries: list[KnowledgeEntry],
    limit: int = 10,
) -> list[KnowledgeEntry]:
    """Top ``limit`` entries by score; ties keep their input order."""
    terms = query_terms(query)
    if not terms:
        return entries[:limit]

    scored = [(score_entry(query, entry, terms), entry) for entry in entries]
    ranked = sorted(
        (pair for pair in scored if pair[0] > 0),
        key=lambda pair: pair[0],
        reverse=True,
    )
    return [entry for _, entry in ranked[:limit]]


def topic_summary(entries: list[KnowledgeEntry]) -> dict[str, int]:
    """Entry count per category."""
    return dict(Counter(entry.category for entry in entries))
