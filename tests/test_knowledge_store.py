"""Tests for KnowledgeStore."""

import asyncio
import os

import pytest

from conftest import make_entry
from handover.store.knowledge import KnowledgeStore
from handover.store.types import KnowledgeIndexEntry


@pytest.fixture
def store(data_dir):
    s = KnowledgeStore(data_dir)
    s.init()
    return s


def _index_ids(store: KnowledgeStore) -> set[str]:
    return {e.id for e in store.get_index().entries}


class TestInit:
    """Tests for a fresh store."""

    def test_fresh_store_is_empty(self, store):
        index = store.get_index()
        assert index.total_entries == 0
        assert index.entries == []
        assert store.get_all_entries() == []

    def test_init_is_idempotent(self, store, data_dir):
        store.init()
        assert os.path.isdir(os.path.join(data_dir, "knowledge", "entries"))

    def test_uninitialized_store_reads_empty(self, tmp_path):
        store = KnowledgeStore(str(tmp_path / "nothing"))
        assert store.get_all_entries() == []
        assert store.get_index().total_entries == 0


class TestAddEntry:
    """Tests for add_entry and deduplication."""

    @pytest.mark.asyncio
    async def test_assigns_id_and_timestamps(self, store):
        result = await store.add_entry(make_entry())
        assert result.deduplicated is False
        entry = store.get_entry(result.id)
        assert entry is not None
        assert entry.created_at
        assert entry.updated_at

    @pytest.mark.asyncio
    async def test_duplicate_title_case_insensitive(self, store):
        first = await store.add_entry(make_entry(title="Deploy Flow"))
        second = await store.add_entry(make_entry(title="deploy flow", content="different"))
        assert second.deduplicated is True
        assert second.id == first.id
        assert len(store.get_all_entries()) == 1

    @pytest.mark.asyncio
    async def test_different_source_is_not_duplicate(self, store):
        await store.add_entry(make_entry(source_type="file", source_path="a.md"))
        result = await store.add_entry(make_entry(source_type="file", source_path="b.md"))
        assert result.deduplicated is False
        assert len(store.get_all_entries()) == 2

    @pytest.mark.asyncio
    async def test_index_tracks_entries(self, store):
        ids = {(await store.add_entry(make_entry(title=f"Entry {i}"))).id for i in range(3)}
        index = store.get_index()
        assert index.total_entries == 3
        assert _index_ids(store) == ids

    @pytest.mark.asyncio
    async def test_concurrent_adds_from_two_stores(self, store, data_dir):
        other = KnowledgeStore(data_dir)
        await asyncio.gather(
            *(store.add_entry(make_entry(title=f"A{i}")) for i in range(5)),
            *(other.add_entry(make_entry(title=f"B{i}")) for i in range(5)),
        )
        assert len(store.get_all_entries()) == 10
        assert store.get_index().total_entries == 10
        assert _index_ids(store) == {e.id for e in store.get_all_entries()}

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_adds_keep_one(self, store, data_dir):
        other = KnowledgeStore(data_dir)
        first, second = await asyncio.gather(
            store.add_entry(make_entry(title="Deploy flow", source_type="file", source_path="ops.md")),
            other.add_entry(make_entry(title="deploy flow", source_type="file", source_path="ops.md")),
        )
        assert first.id == second.id
        assert sorted([first.deduplicated, second.deduplicated]) == [False, True]
        assert len(store.get_all_entries()) == 1
        assert store.get_index().total_entries == 1

    @pytest.mark.asyncio
    async def test_taken_id_gets_fresh_id(self, store):
        first = await store.add_entry(make_entry(title="Edited", entry_id="abc"))
        second = await store.add_entry(make_entry(title="Legacy", entry_id="abc"))

        assert first.id == "abc"
        assert second.deduplicated is False
        assert second.id != "abc"
        assert store.get_entry("abc").title == "Edited"
        assert store.get_index().total_entries == 2
        assert _index_ids(store) == {e.id for e in store.get_all_entries()}

    @pytest.mark.asyncio
    async def test_path_like_id_is_replaced(self, store, data_dir):
        result = await store.add_entry(make_entry(entry_id="../escape"))
        assert result.id != "../escape"
        assert not os.path.exists(os.path.join(data_dir, "knowledge", "escape.json"))
        assert store.get_entry(result.id) is not None


class TestUpdateDelete:
    """Tests for update_entry and delete_entry."""

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        entry_id = (await store.add_entry(make_entry())).id
        before = store.get_entry(entry_id)

        updated = await store.update_entry(entry_id, {"title": "New title", "id": "hijack"})

        assert updated.id == entry_id
        assert updated.title == "New title"
        assert updated.content == before.content
        assert updated.created_at == before.created_at
        assert updated.updated_at >= before.updated_at
        assert store.get_index().entries[0].title == "New title"

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, store):
        assert await store.update_entry("missing", {"title": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete_removes_file_and_index_row(self, store):
        keep = (await store.add_entry(make_entry(title="keep"))).id
        drop = (await store.add_entry(make_entry(title="drop"))).id

        assert await store.delete_entry(drop) is True
        assert store.get_entry(drop) is None
        assert _index_ids(store) == {keep}
        assert store.get_index().total_entries == 1

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, store):
        assert await store.delete_entry("missing") is False

    @pytest.mark.asyncio
    async def test_ids_cannot_leave_entries_dir(self, store, data_dir):
        profile = os.path.join(data_dir, "profile.json")
        with open(profile, "w", encoding="utf-8") as f:
            f.write('{"id": "p", "name": "Ops"}')

        assert await store.delete_entry("../../profile") is False
        assert store.get_entry("../../profile") is None
        assert await store.update_entry("../../profile", {"title": "y"}) is None
        assert os.path.exists(profile)


class TestReads:
    """Tests for get_all_entries, search_entries and rebuild_index."""

    @pytest.mark.asyncio
    async def test_corrupt_entry_files_are_skipped(self, store):
        await store.add_entry(make_entry())
        with open(os.path.join(store.entries_dir, "bad.json"), "w", encoding="utf-8") as f:
            f.write("{oops")
        assert len(store.get_all_entries()) == 1

    @pytest.mark.asyncio
    async def test_search_filters(self, store):
        await store.add_entry(make_entry(title="Auth flow", content="JWT tokens", category="architecture", tags=["Security"]))
        await store.add_entry(make_entry(title="Release", content="Tag and push", category="process", tags=["ci"]))

        assert [e.title for e in store.search_entries(category="process")] == ["Release"]
        assert [e.title for e in store.search_entries(tags=["security"])] == ["Auth flow"]
        assert [e.title for e in store.search_entries(text="jwt")] == ["Auth flow"]
        assert store.search_entries(category="process", text="jwt") == []

    @pytest.mark.asyncio
    async def test_rebuild_index_recovers_from_missing_index(self, store):
        await store.add_entry(make_entry(title="one"))
        await store.add_entry(make_entry(title="two"))
        os.unlink(store.index_path)

        index = await store.rebuild_index()

        assert index.total_entries == 2
        assert _index_ids(store) == {e.id for e in store.get_all_entries()}

    @pytest.mark.asyncio
    async def test_index_matches_scan_after_mixed_mutations(self, store):
        ids = [(await store.add_entry(make_entry(title=f"Entry {i}", tags=["a"]))).id for i in range(4)]
        await store.update_entry(ids[0], {"title": "Renamed", "tags": ["b", "c"], "confidence": 0.4})
        await store.update_entry(ids[2], {"category": "process"})
        await store.delete_entry(ids[1])
        await store.add_entry(make_entry(title="Late"))

        def projections(items):
            return sorted((item.to_dict() for item in items), key=lambda d: d["id"])

        scan = projections(KnowledgeIndexEntry.from_entry(e) for e in store.get_all_entries())
        assert projections(store.get_index().entries) == scan
        assert store.get_index().total_entries == 4

        rebuilt = await store.rebuild_index()
        assert projections(rebuilt.entries) == scan
        assert rebuilt.total_entries == 4
