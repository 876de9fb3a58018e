"""Tests for HandoverAgent with a mocked model."""

import json

import pytest

from conftest import make_entry
from handover.agent import HandoverAgent
from handover.errors import CollaboratorError, NotInitializedError


@pytest.fixture
def agent(data_dir, chat):
    a = HandoverAgent(data_dir, chat=chat)
    a.initialize("Billing", "project", "Billing service takeover")
    return a


class TestLifecycle:
    def test_initialize_persists_profile(self, data_dir, chat, agent):
        reloaded = HandoverAgent(data_dir, chat=chat)
        assert reloaded.get_profile().name == "Billing"

    def test_invalid_type_rejected(self, data_dir, chat):
        with pytest.raises(ValueError):
            HandoverAgent(data_dir, chat=chat).initialize("x", "company")  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_gaps_need_profile(self, data_dir, chat):
        with pytest.raises(NotInitializedError):
            await HandoverAgent(data_dir, chat=chat).analyze_gaps()


class TestKnowledge:
    """Tests for extraction and search through the agent."""

    @pytest.mark.asyncio
    async def test_extract_persists_and_records_source(self, agent, chat, tmp_path):
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "README.md").write_text("# Billing", encoding="utf-8")
        chat.return_value = json.dumps([
            {"title": "Purpose", "content": "Bills customers", "category": "domain"},
            {"title": "Stack", "content": "Python", "category": "codebase"},
        ])

        first = await agent.extract_knowledge(str(repo))
        again = await agent.extract_knowledge(str(repo))

        assert first.added == 2
        assert again.deduplicated == 2
        assert len(agent.get_knowledge_entries()) == 2
        assert agent.get_profile().sources == [str(repo)]

    @pytest.mark.asyncio
    async def test_extract_failure_raises(self, agent, chat, tmp_path):
        (tmp_path / "README.md").write_text("x", encoding="utf-8")
        chat.side_effect = RuntimeError("down")
        with pytest.raises(CollaboratorError, match="down"):
            await agent.extract_knowledge(str(tmp_path))

    @pytest.mark.asyncio
    async def test_search(self, agent):
        await agent.store.add_entry(make_entry(title="Invoices", content="Generated nightly"))
        await agent.store.add_entry(make_entry(title="Lunch", content="Noon"))
        assert [e.title for e in agent.search_knowledge("invoices")] == ["Invoices"]


class TestAsk:
    """Tests for ask, sessions and feedback."""

    @pytest.mark.asyncio
    async def test_ask_records_session(self, agent, chat):
        entry_id = (await agent.store.add_entry(make_entry(title="Invoices", category="process"))).id
        chat.return_value = f"Nightly job [{entry_id}].\nCONFIDENCE: high"

        result = await agent.ask("When are invoices generated?")

        assert result.confidence == 0.9
        session = agent.current_session
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert session.topics_covered == ["process"]
        assert agent.get_sessions()[0].id == session.id

        knowledge = chat.call_args.args[0][-1]["content"]
        assert entry_id in knowledge

    @pytest.mark.asyncio
    async def test_feedback_targets_last_message(self, agent, chat):
        chat.return_value = "Not sure.\nCONFIDENCE: low"
        await agent.ask("Who owns billing?")

        feedback = agent.add_feedback("negative", "vague")

        assert feedback.message_id == "1"
        assert agent.feedback.stats()["negative"] == 1

    def test_feedback_without_session(self, agent):
        assert agent.add_feedback("positive").message_id is None

    @pytest.mark.asyncio
    async def test_end_session(self, agent, chat):
        chat.return_value = "ok"
        await agent.ask("anything")
        ended = agent.end_session()
        assert ended.ended_at
        assert agent.current_session is None
        assert agent.end_session() is None

    @pytest.mark.asyncio
    async def test_ask_failure_raises(self, agent, chat):
        chat.side_effect = RuntimeError("rate limited")
        with pytest.raises(CollaboratorError):
            await agent.ask("anything")


class TestIntelligence:
    @pytest.mark.asyncio
    async def test_analyze_gaps(self, agent, chat):
        chat.return_value = json.dumps({"gaps": [], "recommendations": ["Add architecture notes"]})
        result = await agent.analyze_gaps()
        assert result.report.recommendations == ["Add architecture notes"]
        assert result.knowledge_map

    @pytest.mark.asyncio
    async def test_evolve_registers_new_skills(self, agent, chat):
        chat.return_value = "Payroll runs monthly."
        for question in ("payroll schedule?", "payroll deadline?", "payroll vendor?"):
            await agent.ask(question)

        chat.return_value = json.dumps({
            "name": "Payroll Guide",
            "description": "Explains payroll",
            "keywords": ["payroll"],
            "categories": ["process"],
            "prompt": "Explain payroll.",
            "examples": [],
        })
        outcome = await agent.evolve_skills()

        assert [s.name for s in outcome.new_skills] == ["Payroll Guide"]
        assert any(s.name == "Payroll Guide" for s in agent.get_skills())

    @pytest.mark.asyncio
    async def test_run_skill(self, agent, chat):
        chat.return_value = "Overview text"
        result = await agent.run_skill("codebase-overview")
        assert result.output == "Overview text"
        assert await agent.run_skill("missing") is None

    def test_status(self, agent):
        status = agent.get_status()
        assert status["profile"]["name"] == "Billing"
        assert status["entryCount"] == 0
        assert status["interactionCount"] == 0
