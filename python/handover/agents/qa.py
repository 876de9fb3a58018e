"""Answer handover questions from ranked knowledge entries, with citations."""

import re
from dataclasses import dataclass, field

from ..store.types import Citation, KnowledgeEntry, QAMessage
from .base import AgentResult, run_agent
from .claude import ChatFn
from .prompts import get_prompt

HISTORY_WINDOW = 10
EXCERPT_CHARS = 200

CONFIDENCE_LEVELS = {"high": 0.9, "medium": 0.6, "low": 0.3}
DEFAULT_CONFIDENCE = 0.5

_CITATION = re.compile(r"\[([^\]]+)\]")
_CONFIDENCE_LINE = re.compile(r"CONFIDENCE:\s*(low|medium|high)", re.IGNORECASE)
_FOLLOW_UPS_LINE = re.compile(r"FOLLOW_UPS:\s*(.+)", re.IGNORECASE)


@dataclass
class QAInput:
    question: str
    knowledge_entries: list[KnowledgeEntry]
    conversation_history: list[QAMessage] = field(default_factory=list)
    handover_context: str | None = None


@dataclass
class QAResult:
    answer: str
    citations: list[Citation]
    confidence: float
    suggested_follow_ups: list[str]

    def to_dict(self) -> dict:
        return {
            "answer": self.answer,
            "citations": [c.to_dict() for c in self.citations],
            "confidence": self.confidence,
            "suggestedFollowUps": list(self.suggested_follow_ups),
        }


def format_knowledge(entries: list[KnowledgeEntry]) -> str:
    if not entries:
        return "No relevant knowledge entries found."

    blocks: list[str] = []
    for entry in entries:
        source = (
            f"{entry.source.type}: {entry.source.path}"
            if entry.source.path
            else entry.source.type
        )
        blocks.append(
            "\n".join([
                f"--- Entry [{entry.id}] ---",
                f"Title: {entry.title}",
                f"Category: {entry.category}",
                f"Source: {source}",
                f"Confidence: {round(entry.confidence * 100)}%",
                "",
                entry.content,
                "",
            ])
        )
    return "\n".join(blocks)


def _excerpt(content: str) -> str:
    if len(content) > EXCERPT_CHARS:
        return content[:EXCERPT_CHARS] + "..."
    return content


def parse_citations(answer: str, entries: list[KnowledgeEntry]) -> list[Citation]:
    """Citations for ``[entryId]`` markers that name a supplied entry."""
    by_id = {entry.id: entry for entry in entries}
    seen: set[str] = set()
    citations: list[Citation] = []

    for entry_id in _CITATION.findall(answer):
        if entry_id in seen or entry_id not in by_id:
            continue
        seen.add(entry_id)
        entry = by_id[entry_id]
        citations.append(
            Citation(
                entry_id=entry.id,
                title=entry.title,
                excerpt=_excerpt(entry.content),
                source=entry.source,
            )
        )
    return citations


def parse_confidence(response: str) -> float:
    match = _CONFIDENCE_LINE.search(response)
    if not match:
        return DEFAULT_CONFIDENCE
    return CONFIDENCE_LEVELS.get(match.group(1).lower(), DEFAULT_CONFIDENCE)


def parse_follow_ups(response: str) -> list[str]:
    match = _FOLLOW_UPS_LINE.search(response)
    if not match:
        return []
    return [q.strip() for q in match.group(1).split("|") if q.strip()]


def clean_answer(response: str) -> str:
    """Strip the CONFIDENCE / FOLLOW_UPS marker lines."""
    cleaned = re.sub(r"\n?CONFIDENCE:\s*(low|medium|high)[^\n]*", "", response, flags=re.IGNORECASE)
    cleaned = re.sub(r"\n?FOLLOW_UPS:[^\n]*", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


class QAResponder:
    name = "qa-responder"

    def __init__(self, chat: ChatFn) -> None:
        self.chat = chat

    async def run(self, input_: QAInput) -> AgentResult[QAResult]:
        return await run_agent("QA Responder", self._answer(input_))

    async def _answer(self, input_: QAInput) -> QAResult:
        system = get_prompt("qa_system")
        if input_.handover_context:
            system += f"\n\nHandover Context:\n{input_.handover_context}"

        history = [
            {"role": msg.role, "content": msg.content}
            for msg in input_.conversation_history[-HISTORY_WINDOW:]
        ]
        question = "\n\n".join([
            "Available Knowledge:",
            format_knowledge(input_.knowledge_entries),
            "---",
            f"Question: {input_.question}",
        ])

        response = await self.chat(
            [*history, {"role": "user", "content": question}],
            system=system,
            temperature=0.3,
        )

        answer = clean_answer(response)
        return QAResult(
            answer=answer,
            citations=parse_citations(answer, input_.knowledge_entries),
            confidence=parse_confidence(response),
            suggested_follow_ups=parse_follow_ups(response),
        )
