"""Coverage scoring of a knowledge base against a handover type.

Per-category coverage blends entry volume with question engagement:
1 entry is 20%, 3 are 60%, 5 or more cap at 80%, and each attributed
question adds 10% up to a 20% bonus. A category with no entries stays at
0% however many questions were asked. Overall coverage is the share of
required categories with at least one entry.
"""

from collections import Counter

from ..store.ranking import query_terms
from ..store.types import CATEGORIES, HandoverType, KnowledgeEntry, KnowledgeMapItem, Session, TopicCoverage

REQUIRED_CATEGORIES: dict[str, list[str]] = {
    "project": ["architecture", "codebase", "tool", "convention", "process", "decision"],
    "role": ["process", "people", "tool", "domain"],
    "team": ["people", "process", "convention", "tool"],
}

NICE_TO_HAVE_CATEGORIES: dict[str, list[str]] = {
    "project": ["people", "domain"],
    "role": ["decision", "convention"],
    "team": ["architecture", "domain"],
}

ENTRY_WEIGHT = 20
ENTRY_CEILING = 80
QUESTION_WEIGHT = 10
QUESTION_CEILING = 20


def category_coverage(entry_count: int, question_count: int) -> int:
    if entry_count <= 0:
        return 0
    coverage = min(ENTRY_CEILING, entry_count * ENTRY_WEIGHT)
    if question_count > 0:
        coverage += min(QUESTION_CEILING, question_count * QUESTION_WEIGHT)
    return min(100, coverage)


def count_questions_by_category(
    sessions: list[Session],
    entries: list[KnowledgeEntry],
) -> Counter:
    """Attribute each user question to categories by term overlap.

    A question matches an entry's category when one of its terms equals a
    word of the entry title or one of its tags. Questions matching no entry
    fall back to category names appearing literally in the text.
    """
    entry_terms = [
        (entry.category, set(entry.title.lower().split()), {t.lower() for t in entry.tags})
        for entry in entries
    ]

    counts: Counter = Counter()
    for session in sessions:
        for msg in session.messages:
            if msg.role != "user":
                continue
            terms = query_terms(msg.content)
            matched = {
                category
                for category, title_words, tags in entry_terms
                if any(term in title_words or term in tags for term in terms)
            }
            if not matched:
                text = msg.content.lower()
                matched = {category for category in CATEGORIES if category in text}
            counts.update(matched)
    return counts


def build_knowledge_map(
    entries: list[KnowledgeEntry],
    sessions: list[Session],
    handover_type: HandoverType,
) -> list[KnowledgeMapItem]:
    """One row per required, nice-to-have, or populated category."""
    question_counts = count_questions_by_category(sessions, entries)
    entry_counts: Counter = Counter()
    topics: dict[str, list[str]] = {}
    for entry in entries:
        entry_counts[entry.category] += 1
        titles = topics.setdefault(entry.category, [])
        if entry.title not in titles:
            titles.append(entry.title)

    categories = list(dict.fromkeys([
        *REQUIRED_CATEGORIES[handover_type],
        *NICE_TO_HAVE_CATEGORIES[handover_type],
        *entry_counts.keys(),
    ]))

    return [
        KnowledgeMapItem(
            category=category,
            topics=topics.get(category, []),
            entry_count=entry_counts[category],
            questions_asked=question_counts[category],
            coverage=category_coverage(entry_counts[category], question_counts[category]),
        )
        for category in categories
    ]


def calculate_overall_coverage(
    knowledge_map: list[KnowledgeMapItem],
    handover_type: HandoverType,
) -> int:
    required = REQUIRED_CATEGORIES[handover_type]
    if not required:
        return 100
    populated = {item.category for item in knowledge_map if item.entry_count > 0}
    covered = sum(1 for category in required if category in populated)
    return round(covered / len(required) * 100)


def build_topic_coverage(knowledge_map: list[KnowledgeMapItem]) -> list[TopicCoverage]:
    """Flatten the map to one row per known topic, or per empty category."""
    rows: list[TopicCoverage] = []
    for item in knowledge_map:
        if not item.topics:
            rows.append(
                TopicCoverage(
                    topic=item.category,
                    category=item.category,
                    coverage=0,
                    questions_asked=item.questions_asked,
                )
            )
            continue
        for topic in item.topics:
            rows.append(
                TopicCoverage(
                    topic=topic,
                    category=item.category,
                    coverage=item.coverage,
                    questions_asked=item.questions_asked,
                )
            )
    return rows


def expected_importance(
    category: str,
    entry_count: int,
    handover_type: HandoverType,
) -> str | None:
    """Importance a gap in this category should carry, if any."""
    if category in REQUIRED_CATEGORIES[handover_type]:
        if entry_count == 0:
            return "critical"
        if entry_count == 1:
            return "high"
        return None
    if category in NICE_TO_HAVE_CATEGORIES[handover_type] and entry_count == 0:
        return "medium"
    return None
