"""Tests for the MCP tool handlers."""

import json
import os

import pytest

from handover.tools.feedback import handle_feedback_stats, handle_log_feedback, handle_log_interaction
from handover.tools.migrate import handle_migrate
from handover.tools.profile import handle_create_profile, handle_get_profile, handle_status
from handover.tools.search import handle_search, handle_topic_summary
from handover.tools.store import (
    handle_add_entry,
    handle_delete_entry,
    handle_get_entry,
    handle_init,
    handle_list_entries,
    handle_update_entry,
)

MANUAL = {"type": "manual"}


async def _add(data_dir, title, content="Details", category="process"):
    return json.loads(await handle_add_entry(data_dir, title, content, category, MANUAL))


class TestStoreTools:
    """Tests for the entry management handlers."""

    @pytest.mark.asyncio
    async def test_add_and_dedup(self, data_dir):
        await handle_init(data_dir)
        first = await _add(data_dir, "Release train")
        second = await _add(data_dir, "RELEASE TRAIN")

        assert first["deduplicated"] is False
        assert second == {"id": first["id"], "deduplicated": True}

    @pytest.mark.asyncio
    async def test_validation_errors(self, data_dir):
        bad_category = json.loads(await handle_add_entry(data_dir, "t", "c", "gossip", MANUAL))
        bad_source = json.loads(await handle_add_entry(data_dir, "t", "c", "process", {"type": "fax"}))
        bad_confidence = json.loads(
            await handle_add_entry(data_dir, "t", "c", "process", MANUAL, confidence=1.5)
        )
        assert "Invalid category" in bad_category["error"]
        assert "source.type" in bad_source["error"]
        assert "confidence" in bad_confidence["error"]

    @pytest.mark.asyncio
    async def test_get_update_delete(self, data_dir):
        entry_id = (await _add(data_dir, "Release train"))["id"]

        updated = json.loads(await handle_update_entry(data_dir, entry_id, {"tags": ["weekly"]}))
        assert updated["tags"] == ["weekly"]

        rejected = json.loads(await handle_update_entry(data_dir, entry_id, {"id": "x"}))
        assert rejected["error"] == "Cannot update fields: id"

        assert json.loads(await handle_delete_entry(data_dir, entry_id)) == {"deleted": True}
        assert json.loads(await handle_get_entry(data_dir, entry_id)) == {"error": "Entry not found"}

    @pytest.mark.asyncio
    async def test_path_like_ids_are_not_found(self, data_dir):
        await handle_create_profile(data_dir, "team", "Platform")

        deleted = json.loads(await handle_delete_entry(data_dir, "../../profile"))
        fetched = json.loads(await handle_get_entry(data_dir, "../../profile"))

        assert deleted == {"deleted": False}
        assert fetched == {"error": "Entry not found"}
        assert os.path.exists(os.path.join(data_dir, "profile.json"))

    @pytest.mark.asyncio
    async def test_list_by_category(self, data_dir):
        await _add(data_dir, "Release train")
        await _add(data_dir, "Payments core", category="codebase")
        listed = json.loads(await handle_list_entries(data_dir, "codebase"))
        assert listed["count"] == 1
        assert listed["entries"][0]["title"] == "Payments core"


class TestSearchTools:
    @pytest.mark.asyncio
    async def test_search_snippets(self, data_dir):
        await _add(data_dir, "Deploys", content="deploy " * 60)
        await _add(data_dir, "Lunch", content="Noon")

        found = json.loads(await handle_search(data_dir, "deploys"))

        assert found["count"] == 1
        assert found["results"][0]["title"] == "Deploys"
        assert found["results"][0]["snippet"].endswith("...")
        assert len(found["results"][0]["snippet"]) == 203

    @pytest.mark.asyncio
    async def test_topic_summary(self, data_dir):
        await _add(data_dir, "Release train")
        await _add(data_dir, "Hotfixes")
        await _add(data_dir, "Payments core", category="codebase")

        summary = json.loads(await handle_topic_summary(data_dir))

        assert summary["totalEntries"] == 3
        assert {"category": "process", "count": 2} in summary["summary"]


class TestProfileTools:
    @pytest.mark.asyncio
    async def test_profile_round(self, data_dir):
        assert json.loads(await handle_get_profile(data_dir)) == {"profile": None}
        created = json.loads(await handle_create_profile(data_dir, "team", "Platform"))
        assert json.loads(await handle_get_profile(data_dir))["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_invalid_profile_type(self, data_dir):
        result = json.loads(await handle_create_profile(data_dir, "company", "Acme"))
        assert "Invalid handover type" in result["error"]

    @pytest.mark.asyncio
    async def test_status(self, data_dir):
        await handle_init(data_dir)
        await _add(data_dir, "Release train")
        await handle_log_interaction(data_dir, "q", "a", 0.5)

        status = json.loads(await handle_status(data_dir))

        assert status["entryCount"] == 1
        assert status["interactionCount"] == 1
        assert status["profile"] is None


class TestFeedbackTools:
    @pytest.mark.asyncio
    async def test_stats(self, data_dir):
        await handle_log_feedback(data_dir, "positive")
        await handle_log_feedback(data_dir, "positive", "clear")
        await handle_log_feedback(data_dir, "negative", interaction_id="i1")

        stats = json.loads(await handle_feedback_stats(data_dir))

        assert stats == {"total": 3, "positive": 2, "negative": 1, "satisfactionRate": 66.67}

    @pytest.mark.asyncio
    async def test_invalid_rating(self, data_dir):
        result = json.loads(await handle_log_feedback(data_dir, "meh"))
        assert "Invalid rating" in result["error"]

    @pytest.mark.asyncio
    async def test_interaction_confidence_checked(self, data_dir):
        result = json.loads(await handle_log_interaction(data_dir, "q", "a", 2.0))
        assert "error" in result


class TestMigrateTool:
    @pytest.mark.asyncio
    async def test_empty_legacy_dir(self, data_dir, tmp_path):
        report = json.loads(await handle_migrate(data_dir, str(tmp_path / "missing")))
        assert report["entriesMigrated"] == 0
        assert report["errors"] == []
