"""Tests for the handover command-line entry point."""

import json

import pytest

from conftest import make_entry
from handover import cli, config
from handover.agent import HandoverAgent


async def _run(agent, *argv):
    args = cli.build_parser().parse_args(list(argv))
    return json.loads(await cli.run_command(args, agent))


@pytest.fixture
def agent(data_dir, chat):
    return HandoverAgent(data_dir, chat=chat)


class TestLifecycleCommands:
    """Tests for init, status and map."""

    @pytest.mark.asyncio
    async def test_init_then_status(self, agent):
        profile = await _run(agent, "init", "Billing", "--type", "team")
        status = await _run(agent, "status")

        assert profile["type"] == "team"
        assert status["profile"]["name"] == "Billing"
        assert status["entryCount"] == 0

    @pytest.mark.asyncio
    async def test_map_is_local(self, agent, chat):
        await _run(agent, "init", "Billing")
        await agent.store.add_entry(make_entry(category="architecture"))

        rows = {row["category"]: row for row in await _run(agent, "map")}

        assert rows["architecture"]["entryCount"] == 1
        assert rows["architecture"]["coverage"] == 20
        chat.assert_not_awaited()

    def test_unknown_type_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["init", "x", "--type", "company"])


class TestModelCommands:
    """Tests for extract, ask, gaps and skills with a mocked model."""

    @pytest.mark.asyncio
    async def test_extract_docs(self, agent, chat, tmp_path):
        docs = tmp_path / "docs"
        docs.mkdir()
        (docs / "runbook.md").write_text("# Runbook", encoding="utf-8")
        chat.return_value = json.dumps([{"title": "Runbook", "content": "Restart the worker", "category": "process"}])

        result = await _run(agent, "extract", str(docs), "--docs")

        assert result["added"] == 1
        assert result["entries"] == [{"title": "Runbook", "category": "process"}]

    @pytest.mark.asyncio
    async def test_ask_reports_session(self, agent, chat):
        await _run(agent, "init", "Billing")
        chat.return_value = "Nightly.\nCONFIDENCE: medium"

        first = await _run(agent, "ask", "When do invoices run?")
        agent.current_session = None
        second = await _run(agent, "ask", "And refunds?", "--session", first["sessionId"])

        assert first["confidence"] == 0.6
        assert second["sessionId"] == first["sessionId"]
        assert len(agent.sessions.get(first["sessionId"]).messages) == 4

    @pytest.mark.asyncio
    async def test_gaps_sorted_by_importance(self, agent, chat):
        await _run(agent, "init", "Billing")
        chat.return_value = json.dumps({
            "gaps": [
                {"topic": "Style", "category": "codebase", "importance": "low", "reason": "r"},
                {"topic": "Deploys", "category": "process", "importance": "critical", "reason": "r"},
            ],
            "recommendations": [],
        })

        report = await _run(agent, "gaps")

        assert [g["importance"] for g in report["gaps"]] == ["critical", "low"]

    @pytest.mark.asyncio
    async def test_skills_list_and_run(self, agent, chat):
        listed = await _run(agent, "skills")
        assert "codebase-overview" in [s["id"] for s in listed["skills"]]

        chat.return_value = "Overview"
        ran = await _run(agent, "skills", "--run", "codebase-overview")
        missing = await _run(agent, "skills", "--run", "nope")

        assert ran == {"output": "Overview", "skillId": "codebase-overview", "success": True}
        assert missing == {"error": "Skill not found: nope"}


class TestFeedbackCommand:
    @pytest.mark.asyncio
    async def test_rate_session_answer(self, agent, chat):
        await _run(agent, "init", "Billing")
        chat.return_value = "Ask finance."
        session_id = (await _run(agent, "ask", "Who approves refunds?"))["sessionId"]
        agent.current_session = None

        rated = await _run(agent, "feedback", "--rate", "negative", "--comment", "vague", "--session", session_id)
        summary = await _run(agent, "feedback")

        assert rated["feedback"]["messageId"] == "1"
        assert summary["negativeCount"] == 1


class TestConfigCommand:
    @pytest.mark.asyncio
    async def test_set_and_show(self, agent, tmp_path, monkeypatch):
        for var in ("ANTHROPIC_API_KEY", "HANDOVER_MODEL", "HANDOVER_DATA_DIR", "HANDOVER_MAX_TOKENS", "HANDOVER_TEMPERATURE"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setattr(config, "GLOBAL_CONFIG_PATH", str(tmp_path / "global" / "config.json"))
        project = tmp_path / "project"
        (project / ".handover").mkdir(parents=True)
        monkeypatch.chdir(project)

        assert await _run(agent, "config", "max_tokens", "2048") == {"max_tokens": 2048}
        await _run(agent, "config", "api_key", "sk-ant-secret-value")
        shown = await _run(agent, "config")

        assert shown["max_tokens"] == 2048
        assert shown["api_key"] == "sk-ant-..."
