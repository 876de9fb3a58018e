"""Store tools: initialize the data directory and manage knowledge entries."""

import json

from ..store.knowledge import KnowledgeStore
from ..store.types import CATEGORIES, SOURCE_TYPES, KnowledgeEntry, KnowledgeSource


def _error(err: Exception | str) -> str:
    return json.dumps({"error": str(err)})


async def handle_init(data_dir: str) -> str:
    """Create the .handover directory structure."""
    try:
        KnowledgeStore(data_dir).init()
        return json.dumps({"success": True, "dataDir": data_dir})
    except Exception as err:
        return _error(err)


async def handle_add_entry(
    data_dir: str,
    title: str,
    content: str,
    category: str,
    source: dict,
    tags: list[str] | None = None,
    confidence: float = 0.8,
) -> str:
    """Add a knowledge entry; an existing duplicate's id is returned instead."""
    if category not in CATEGORIES:
        return _error(f"Invalid category: {category}")
    if not isinstance(source, dict) or source.get("type") not in SOURCE_TYPES:
        return _error("source.type must be one of: " + ", ".join(SOURCE_TYPES))
    if not 0 <= confidence <= 1:
        return _error("confidence must be between 0 and 1")

    try:
        entry = KnowledgeEntry(
            title=title,
            content=content,
            category=category,  # type: ignore[arg-type]
            tags=list(tags or []),
            source=KnowledgeSource.from_dict(source),
            confidence=confidence,
        )
        result = await KnowledgeStore(data_dir).add_entry(entry)
        return json.dumps(result.to_dict())
    except Exception as err:
        return _error(err)


async def handle_get_entry(data_dir: str, entry_id: str) -> str:
    try:
        entry = KnowledgeStore(data_dir).get_entry(entry_id)
        if entry is None:
            return _error("Entry not found")
        return json.dumps(entry.to_dict())
    except Exception as err:
        return _error(err)


async def handle_update_entry(data_dir: str, entry_id: str, updates: dict) -> str:
    """Update title, content, category, tags or confidence of an entry."""
    allowed = {"title", "content", "category", "tags", "confidence"}
    unknown = set(updates) - allowed
    if unknown:
        return _error(f"Cannot update fields: {', '.join(sorted(unknown))}")
    if "category" in updates and updates["category"] not in CATEGORIES:
        return _error(f"Invalid category: {updates['category']}")

    try:
        entry = await KnowledgeStore(data_dir).update_entry(entry_id, updates)
        if entry is None:
            return _error("Entry not found")
        return json.dumps(entry.to_dict())
    except Exception as err:
        return _error(err)


async def handle_delete_entry(data_dir: str, entry_id: str) -> str:
    try:
        deleted = await KnowledgeStore(data_dir).delete_entry(entry_id)
        return json.dumps({"deleted": deleted})
    except Exception as err:
        return _error(err)


async def handle_list_entries(data_dir: str, category: str | None = None) -> str:
    try:
        entries = KnowledgeStore(data_dir).search_entries(category=category)
        return json.dumps({"entries": [e.to_dict() for e in entries], "count": len(entries)})
    except Exception as err:
        return _error(err)


async def handle_rebuild_index(data_dir: str) -> str:
    try:
        index = await KnowledgeStore(data_dir).rebuild_index()
        return json.dumps(index.to_dict())
    except Exception as err:
        return _error(err)
