"""Search tools: ranked relevance search and per-category counts."""

import json

from ..store.knowledge import KnowledgeStore
from ..store.ranking import find_relevant_entries, topic_summary

SNIPPET_CHARS = 200


async def handle_search(data_dir: str, query: str, limit: int | None = None) -> str:
    """Search knowledge entries with ranked relevance."""
    try:
        entries = KnowledgeStore(data_dir).get_all_entries()
        results = find_relevant_entries(query, entries, limit or 10)

        formatted = []
        for entry in results:
            snippet = entry.content[:SNIPPET_CHARS]
            if len(entry.content) > SNIPPET_CHARS:
                snippet += "..."
            formatted.append({
                "id": entry.id,
                "title": entry.title,
                "category": entry.category,
                "confidence": entry.confidence,
                "snippet": snippet,
                "tags": entry.tags,
            })

        return json.dumps({"results": formatted, "count": len(formatted)})
    except Exception as err:
        return json.dumps({"error": str(err)})


async def handle_topic_summary(data_dir: str) -> str:
    try:
        summary = topic_summary(KnowledgeStore(data_dir).get_all_entries())
        topics = [{"category": c, "count": n} for c, n in summary.items()]
        return json.dumps({"summary": topics, "totalEntries": sum(summary.values())})
    except Exception as err:
        return json.dumps({"error": str(err)})
