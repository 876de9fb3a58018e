"""HandoverAgent: one programmatic API over the stores and sub-agents."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from .agents.base import AgentResult
from .agents.claude import ChatFn, ClaudeChat
from .agents.extractor import ExtractionInput, KnowledgeExtractor
from .agents.gaps import GapAnalysisInput, GapAnalysisResult, GapAnalyzer
from .agents.qa import QAInput, QAResponder, QAResult
from .agents.skill_builder import SkillBuildInput, SkillBuilder, improvement_updates
from .errors import CollaboratorError, NotInitializedError
from .feedback.analyzer import detect_question_patterns, identify_weak_areas
from .feedback.collector import FeedbackLog
from .skills.executor import SkillExecutionResult, auto_execute_skill, execute_skill
from .skills.registry import SkillRegistry
from .store.knowledge import KnowledgeStore
from .store.profile import ProfileStore
from .store.ranking import find_relevant_entries
from .store.sessions import SessionStore
from .store.status import get_status
from .store.types import (
    Feedback,
    HandoverProfile,
    HandoverType,
    KnowledgeEntry,
    QAMessage,
    Rating,
    Session,
    SkillDefinition,
)

logger = logging.getLogger(__name__)


@dataclass
class ExtractionOutcome:
    entries: list[KnowledgeEntry]
    summary: str
    added: int
    deduplicated: int


@dataclass
class EvolutionOutcome:
    new_skills: list[SkillDefinition]
    improved: int


def _unwrap(result: AgentResult, default_error: str):
    if not result.success or result.data is None:
        raise CollaboratorError(result.error or default_error)
    return result.data


class HandoverAgent:
    """Lifecycle, knowledge, Q&A, gap analysis and skill evolution.

    The agent keeps the current Q&A session in memory; every other piece
    of state lives in ``data_dir``.
    """

    def __init__(self, data_dir: str, chat: ChatFn | None = None) -> None:
        self.data_dir = data_dir
        self._chat = chat
        self.store = KnowledgeStore(data_dir)
        self.profiles = ProfileStore(data_dir)
        self.sessions = SessionStore(data_dir)
        self.skills = SkillRegistry(data_dir)
        self.feedback = FeedbackLog(data_dir)
        self.current_session: Session | None = None
        self._profile = self.profiles.load()
        self._initialized = False
        if self._profile:
            self._ensure_initialized()

    @property
    def chat(self) -> ChatFn:
        if self._chat is None:
            self._chat = ClaudeChat()
        return self._chat

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.store.init()
            self.skills.init()
            self._initialized = True

    def _require_profile(self) -> HandoverProfile:
        profile = self.get_profile()
        if profile is None:
            raise NotInitializedError("No handover profile found. Call initialize() first.")
        return profile

    # Lifecycle

    def initialize(self, name: str, type_: HandoverType, description: str = "") -> HandoverProfile:
        self._profile = self.profiles.create(name, type_, description)
        self._ensure_initialized()
        logger.info("Initialized %s handover %r", type_, self._profile.name)
        return self._profile

    def get_profile(self) -> HandoverProfile | None:
        if self._profile is None:
            self._profile = self.profiles.load()
        return self._profile

    # Knowledge

    async def extract_knowledge(
        self,
        path: str,
        type_: str = "codebase",
        depth: str = "shallow",
    ) -> ExtractionOutcome:
        self._ensure_initialized()
        resolved = os.path.abspath(path)

        extraction = _unwrap(
            await KnowledgeExtractor(self.chat).run(
                ExtractionInput(path=resolved, type=type_, depth=depth)  # type: ignore[arg-type]
            ),
            "Knowledge extraction failed",
        )

        added = deduplicated = 0
        for entry in extraction.entries:
            result = await self.store.add_entry(entry)
            if result.deduplicated:
                deduplicated += 1
            else:
                added += 1

        profile = self.profiles.add_source(resolved)
        if profile:
            self._profile = profile

        return ExtractionOutcome(
            entries=extraction.entries,
            summary=extraction.summary,
            added=added,
            deduplicated=deduplicated,
        )

    def get_knowledge_entries(self) -> list[KnowledgeEntry]:
        self._ensure_initialized()
        return self.store.get_all_entries()

    def search_knowledge(self, query: str, limit: int = 10) -> list[KnowledgeEntry]:
        self._ensure_initialized()
        return find_relevant_entries(query, self.store.get_all_entries(), limit)

    # Q&A

    def _session_for(self, session_id: str | None) -> Session:
        current = self.current_session
        if current and (session_id is None or current.id == session_id):
            return current

        if session_id:
            existing = self.sessions.get(session_id)
            if existing:
                self.current_session = existing
                return existing

        profile = self.get_profile()
        self.current_session = self.sessions.new(
            profile.id if profile else "unknown", session_id
        )
        return self.current_session

    async def ask(self, question: str, session_id: str | None = None) -> QAResult:
        self._ensure_initialized()
        profile = self.get_profile()
        session = self._session_for(session_id)
        entries = self.store.get_all_entries()

        context = None
        if profile:
            context = "\n".join([
                f"Handover: {profile.name}",
                f"Type: {profile.type}",
                f"Description: {profile.description}",
            ])

        result: QAResult = _unwrap(
            await QAResponder(self.chat).run(
                QAInput(
                    question=question,
                    knowledge_entries=find_relevant_entries(question, entries),
                    conversation_history=session.messages,
                    handover_context=context,
                )
            ),
            "Q&A failed",
        )

        categories = {e.id: e.category for e in entries}
        for citation in result.citations:
            category = categories.get(citation.entry_id)
            if category and category not in session.topics_covered:
                session.topics_covered.append(category)

        asked = QAMessage(role="user", content=question, timestamp=datetime.now(timezone.utc).isoformat())
        session.messages.append(asked)
        session.messages.append(
            QAMessage(
                role="assistant",
                content=result.answer,
                timestamp=asked.timestamp,
                citations=result.citations,
                confidence=result.confidence,
            )
        )
        self.sessions.save(session)
        return result

    # Intelligence

    async def analyze_gaps(self) -> GapAnalysisResult:
        self._ensure_initialized()
        profile = self._require_profile()
        return _unwrap(
            await GapAnalyzer(self.chat).run(
                GapAnalysisInput(
                    profile=profile,
                    entries=self.store.get_all_entries(),
                    sessions=self.sessions.load_all(),
                )
            ),
            "Gap analysis failed",
        )

    # Self-improvement

    def get_skills(self) -> list[SkillDefinition]:
        self._ensure_initialized()
        return self.skills.load_all()

    async def evolve_skills(self) -> EvolutionOutcome:
        self._ensure_initialized()
        sessions = self.sessions.load_all()
        history = self.feedback.load_history()
        existing = self.skills.load_all()

        build = _unwrap(
            await SkillBuilder(self.chat).run(
                SkillBuildInput(
                    question_patterns=detect_question_patterns(sessions),
                    weak_areas=identify_weak_areas(history, sessions),
                    existing_skills=existing,
                )
            ),
            "Skill evolution failed",
        )

        for skill in build.new_skills:
            self.skills.register(skill)

        by_id = {skill.id: skill for skill in existing}
        improved = 0
        for improvement in build.improved_skills:
            skill = by_id.get(improvement.id)
            if skill is None or skill.is_built_in:
                continue
            if self.skills.update(skill.id, improvement_updates(skill, improvement)):
                improved += 1

        return EvolutionOutcome(new_skills=build.new_skills, improved=improved)

    async def run_skill(self, skill_id: str, query: str | None = None) -> SkillExecutionResult | None:
        """Execute one skill by id; None when the skill does not exist."""
        self._ensure_initialized()
        skill = self.skills.get(skill_id)
        if skill is None:
            return None
        result = await execute_skill(self.chat, skill, self.store.get_all_entries(), query)
        if not skill.is_built_in:
            self.skills.record_usage(skill.id, result.success)
        return result

    async def run_best_skill(self, query: str) -> SkillExecutionResult | None:
        self._ensure_initialized()
        return await auto_execute_skill(self.chat, self.skills, query, self.store.get_all_entries())

    def add_feedback(self, rating: Rating, comment: str | None = None) -> Feedback:
        """Record feedback on the last message of the current session."""
        message_id = None
        if self.current_session is not None:
            message_id = str(len(self.current_session.messages) - 1)
        return self.feedback.log(rating, comment, message_id)

    # Sessions

    def end_session(self) -> Session | None:
        session = self.current_session
        if session is None:
            return None
        self.current_session = None
        return self.sessions.close(session)

    def get_sessions(self) -> list[Session]:
        return self.sessions.load_all()

    def get_status(self) -> dict:
        return get_status(self.data_dir)
