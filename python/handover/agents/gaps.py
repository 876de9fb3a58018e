"""Gap analysis: local coverage scoring plus model-identified gaps."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..analysis.coverage import (
    NICE_TO_HAVE_CATEGORIES,
    REQUIRED_CATEGORIES,
    build_knowledge_map,
    build_topic_coverage,
    calculate_overall_coverage,
    expected_importance,
)
from ..feedback.analyzer import extract_user_questions
from ..store.types import (
    CATEGORIES,
    IMPORTANCE_ORDER,
    GapReport,
    HandoverProfile,
    KnowledgeEntry,
    KnowledgeGap,
    KnowledgeMapItem,
    Session,
)
from .base import AgentResult, run_agent
from .claude import ChatFn
from .output import parse_structured_output
from .prompts import get_prompt, render_prompt


@dataclass
class GapAnalysisInput:
    profile: HandoverProfile
    entries: list[KnowledgeEntry]
    sessions: list[Session] = field(default_factory=list)


@dataclass
class GapAnalysisResult:
    report: GapReport
    knowledge_map: list[KnowledgeMapItem]


def parse_gap_response(text: str) -> tuple[list[KnowledgeGap], list[str]]:
    """Gaps and recommendations from the model; ([], []) when unusable."""
    parsed = parse_structured_output(text, "object")
    if not parsed:
        return [], []

    raw_gaps = parsed.get("gaps")
    raw_recommendations = parsed.get("recommendations")

    gaps: list[KnowledgeGap] = []
    for item in raw_gaps if isinstance(raw_gaps, list) else []:
        if not isinstance(item, dict) or not isinstance(item.get("topic"), str):
            continue
        category = item.get("category")
        importance = item.get("importance")
        questions = item.get("suggestedQuestions")
        gaps.append(
            KnowledgeGap(
                topic=item["topic"],
                category=category if category in CATEGORIES else "other",
                importance=importance if importance in IMPORTANCE_ORDER else "medium",
                reason=str(item.get("reason") or ""),
                suggested_questions=[
                    q for q in (questions if isinstance(questions, list) else [])
                    if isinstance(q, str)
                ],
            )
        )

    recommendations = [
        r for r in (raw_recommendations if isinstance(raw_recommendations, list) else [])
        if isinstance(r, str)
    ]
    return gaps, recommendations


def _category_status(knowledge_map: list[KnowledgeMapItem], handover_type: str) -> str:
    lines: list[str] = []
    for item in knowledge_map:
        importance = expected_importance(item.category, item.entry_count, handover_type)
        suffix = f" -> gap importance: {importance}" if importance else ""
        lines.append(
            f"- {item.category}: {item.entry_count} entries, "
            f"{item.questions_asked} questions{suffix}"
        )
    return "\n".join(lines)


class GapAnalyzer:
    name = "gap-analyzer"

    def __init__(self, chat: ChatFn) -> None:
        self.chat = chat

    async def run(self, input_: GapAnalysisInput) -> AgentResult[GapAnalysisResult]:
        return await run_agent("Gap analysis", self._analyze(input_))

    def build_prompt(self, input_: GapAnalysisInput, knowledge_map: list[KnowledgeMapItem]) -> str:
        handover_type = input_.profile.type
        entry_lines = [
            f"[{e.category}] {e.title} (confidence: {round(e.confidence * 100)}%)"
            for e in input_.entries
        ]
        questions = extract_user_questions(input_.sessions)
        for session in input_.sessions:
            questions.extend(session.topics_covered)

        return render_prompt(
            "gap_user",
            type=handover_type,
            entry_count=len(input_.entries),
            entries="\n".join(entry_lines) or "(none)",
            questions="\n".join(questions) or "(none)",
            required=", ".join(REQUIRED_CATEGORIES[handover_type]),
            nice_to_have=", ".join(NICE_TO_HAVE_CATEGORIES[handover_type]),
            category_status=_category_status(knowledge_map, handover_type),
        )

    async def _analyze(self, input_: GapAnalysisInput) -> GapAnalysisResult:
        handover_type = input_.profile.type
        knowledge_map = build_knowledge_map(input_.entries, input_.sessions, handover_type)

        text = await self.chat(
            [{"role": "user", "content": self.build_prompt(input_, knowledge_map)}],
            system=get_prompt("gap_system"),
            temperature=0.3,
        )
        gaps, recommendations = parse_gap_response(text)

        report = GapReport(
            handover_id=input_.profile.id,
            generated_at=datetime.now(timezone.utc).isoformat(),
            covered_topics=build_topic_coverage(knowledge_map),
            gaps=gaps,
            overall_coverage=calculate_overall_coverage(knowledge_map, handover_type),
            recommendations=recommendations,
        )
        return GapAnalysisResult(report=report, knowledge_map=knowledge_map)
