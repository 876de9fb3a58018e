"""Knowledge store backed by one JSON file per entry plus an index file."""

import logging
import os
import uuid
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any

from .files import ensure_dir, list_record_files, read_record, record_path, write_record
from .lock import FileLock
from .types import KnowledgeEntry, KnowledgeIndex, KnowledgeIndexEntry, KnowledgeSource

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {f.name for f in fields(KnowledgeEntry)} - {"id", "created_at"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AddResult:
    id: str
    deduplicated: bool

    def to_dict(self) -> dict:
        return {"id": self.id, "deduplicated": self.deduplicated}


class KnowledgeStore:
    """Knowledge entries under ``<data_dir>/knowledge``.

    Reads are lock-free; every mutation holds the store's file lock for
    its whole duration so concurrent processes serialize.
    """

    def __init__(self, data_dir: str) -> None:
        self.data_dir = data_dir
        self.base_dir = os.path.join(data_dir, "knowledge")
        self.entries_dir = os.path.join(self.base_dir, "entries")
        self.index_path = os.path.join(self.base_dir, "index.json")
        self.lock = FileLock(self.base_dir)

    def _entry_path(self, entry_id: str) -> str | None:
        return record_path(self.entries_dir, entry_id)

    def init(self) -> None:
        """Create the entries directory and an empty index. Idempotent."""
        ensure_dir(self.entries_dir)
        if not os.path.exists(self.index_path):
            write_record(
                self.index_path,
                KnowledgeIndex(entries=[], last_updated=_now(), total_entries=0).to_dict(),
            )

    def _find_duplicate(self, entry: KnowledgeEntry) -> KnowledgeEntry | None:
        key = entry.dedup_key()
        for existing in self.get_all_entries():
            if existing.dedup_key() == key:
                return existing
        return None

    async def add_entry(self, entry: KnowledgeEntry) -> AddResult:
        """Persist an entry unless one with the same dedup key exists."""
        async with self.lock:
            existing = self._find_duplicate(entry)
            if existing:
                logger.info("Deduplicated %r onto entry %s", entry.title, existing.id)
                return AddResult(id=existing.id, deduplicated=True)

            path = self._entry_path(entry.id) if entry.id else None
            if path is None or os.path.exists(path):
                if entry.id:
                    logger.info("Entry id %r is taken or invalid, assigning a new id", entry.id)
                entry.id = str(uuid.uuid4())
                path = self._entry_path(entry.id)
            now = _now()
            if not entry.created_at:
                entry.created_at = now
            if not entry.updated_at:
                entry.updated_at = now

            ensure_dir(self.entries_dir)
            write_record(path, entry.to_dict())

            index = self.get_index()
            index.entries.append(KnowledgeIndexEntry.from_entry(entry))
            index.total_entries = len(index.entries)
            index.last_updated = now
            write_record(self.index_path, index.to_dict())

            return AddResult(id=entry.id, deduplicated=False)

    def get_entry(self, entry_id: str) -> KnowledgeEntry | None:
        path = self._entry_path(entry_id)
        if path is None:
            return None
        data = read_record(path)
        if not isinstance(data, dict):
            return None
        try:
            return KnowledgeEntry.from_dict(data)
        except (KeyError, TypeError, ValueError):
            return None

    async def update_entry(self, entry_id: str, updates: dict[str, Any]) -> KnowledgeEntry | None:
        """Merge ``updates`` (snake_case field names) over an entry.

        Returns None when the entry does not exist. ``id`` is never changed.
        """
        async with self.lock:
            existing = self.get_entry(entry_id)
            if not existing:
                return None

            for name, value in updates.items():
                if name not in _UPDATABLE_FIELDS:
                    continue
                if name == "source" and isinstance(value, dict):
                    value = KnowledgeSource.from_dict(value)
                setattr(existing, name, value)
            existing.id = entry_id
            existing.updated_at = _now()

            write_record(self._entry_path(entry_id), existing.to_dict())  # type: ignore[arg-type]

            index = self.get_index()
            projection = KnowledgeIndexEntry.from_entry(existing)
            for i, item in enumerate(index.entries):
                if item.id == entry_id:
                    index.entries[i] = projection
                    break
            index.last_updated = existing.updated_at
            write_record(self.index_path, index.to_dict())

            return existing

    async def delete_entry(self, entry_id: str) -> bool:
        async with self.lock:
            path = self._entry_path(entry_id)
            if path is None or not os.path.exists(path):
                return False

            os.unlink(path)

            index = self.get_index()
            index.entries = [e for e in index.entries if e.id != entry_id]
            index.total_entries = len(index.entries)
            index.last_updated = _now()
            write_record(self.index_path, index.to_dict())

            return True

    def get_all_entries(self) -> list[KnowledgeEntry]:
        """Full scan of the entries directory; corrupt files are skipped."""
        entries: list[KnowledgeEntry] = []
        for name in list_record_files(self.entries_dir):
            data = read_record(os.path.join(self.entries_dir, name))
            if not isinstance(data, dict):
                logger.debug("Skipping unreadable entry file %s", name)
                continue
            try:
                entries.append(KnowledgeEntry.from_dict(data))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed entry file %s", name)
        return entries

    def search_entries(
        self,
        category: str | None = None,
        tags: list[str] | None = None,
        text: str | None = None,
    ) -> list[KnowledgeEntry]:
        """Filter entries by exact category, any-of tags, and substring text."""
        wanted_tags = {t.lower() for t in tags} if tags else set()
        needle = text.lower() if text else None

        results: list[KnowledgeEntry] = []
        for entry in self.get_all_entries():
            if category and entry.category != category:
                continue
            if wanted_tags and not wanted_tags & {t.lower() for t in entry.tags}:
                continue
            if needle and needle not in entry.title.lower() and needle not in entry.content.lower():
                continue
            results.append(entry)
        return results

    def get_index(self) -> KnowledgeIndex:
        data = read_record(self.index_path)
        if isinstance(data, dict):
            try:
                return KnowledgeIndex.from_dict(data)
            except (KeyError, TypeError, ValueError):
                logger.debug("Malformed index at %s", self.index_path)
        return KnowledgeIndex(entries=[], last_updated=_now(), total_entries=0)

    async def rebuild_index(self) -> KnowledgeIndex:
        """Recompute the index from the entry files."""
        async with self.lock:
            entries = self.get_all_entries()
            index = KnowledgeIndex(
                entries=[KnowledgeIndexEntry.from_entry(e) for e in entries],
                last_updated=_now(),
                total_entries=len(entries),
            )
            write_record(self.index_path, index.to_dict())
            return index
