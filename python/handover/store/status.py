"""Overview of a handover data directory."""

from ..feedback.collector import InteractionLog
from .knowledge import KnowledgeStore
from .profile import ProfileStore
from .ranking import topic_summary


def get_status(data_dir: str) -> dict:
    store = KnowledgeStore(data_dir)
    profile = ProfileStore(data_dir).load()
    index = store.get_index()

    return {
        "profile": profile.to_dict() if profile else None,
        "entryCount": index.total_entries,
        "categories": topic_summary(store.get_all_entries()),
        "lastUpdated": index.last_updated,
        "interactionCount": InteractionLog(data_dir).count(),
    }
