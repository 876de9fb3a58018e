"""Handover record types.

Records are persisted as JSON with camelCase keys so data directories
written by earlier versions of the tool stay readable.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

HandoverType = Literal["project", "role", "team"]
KnowledgeCategory = Literal[
    "architecture",
    "codebase",
    "process",
    "people",
    "decision",
    "tool",
    "convention",
    "domain",
    "other",
]
SourceType = Literal["file", "git", "doc", "manual", "qa"]
Rating = Literal["positive", "negative"]
Importance = Literal["critical", "high", "medium", "low"]
SkillSource = Literal["built-in", "generated", "manual"]

HANDOVER_TYPES: tuple[str, ...] = ("project", "role", "team")
CATEGORIES: tuple[str, ...] = (
    "architecture",
    "codebase",
    "process",
    "people",
    "decision",
    "tool",
    "convention",
    "domain",
    "other",
)
SOURCE_TYPES: tuple[str, ...] = ("file", "git", "doc", "manual", "qa")
IMPORTANCE_ORDER: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class KnowledgeSource:
    type: SourceType
    path: str | None = None
    ref: str | None = None

    def to_dict(self) -> dict:
        return _drop_none({"type": self.type, "path": self.path, "ref": self.ref})

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeSource":
        return cls(type=data["type"], path=data.get("path"), ref=data.get("ref"))


@dataclass
class KnowledgeEntry:
    """A single structured fact with provenance."""

    title: str
    content: str
    category: KnowledgeCategory
    tags: list[str]
    source: KnowledgeSource
    confidence: float
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def dedup_key(self) -> tuple[str, str, str | None]:
        return (self.title.lower(), self.source.type, self.source.path)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "tags": list(self.tags),
            "source": self.source.to_dict(),
            "confidence": self.confidence,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeEntry":
        return cls(
            id=data.get("id", ""),
            title=data["title"],
            content=data.get("content", ""),
            category=data.get("category", "other"),
            tags=list(data.get("tags") or []),
            source=KnowledgeSource.from_dict(data.get("source") or {"type": "manual"}),
            confidence=float(data.get("confidence", 0.5)),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass
class KnowledgeIndexEntry:
    id: str
    title: str
    category: KnowledgeCategory
    tags: list[str]
    confidence: float

    @classmethod
    def from_entry(cls, entry: KnowledgeEntry) -> "KnowledgeIndexEntry":
        return cls(
            id=entry.id,
            title=entry.title,
            category=entry.category,
            tags=list(entry.tags),
            confidence=entry.confidence,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "tags": list(self.tags),
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeIndexEntry":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            category=data.get("category", "other"),
            tags=list(data.get("tags") or []),
            confidence=float(data.get("confidence", 0.5)),
        )


@dataclass
class KnowledgeIndex:
    """Denormalized projection of the entry set, kept in lock-step with it."""

    entries: list[KnowledgeIndexEntry]
    last_updated: str
    total_entries: int

    def to_dict(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "lastUpdated": self.last_updated,
            "totalEntries": self.total_entries,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KnowledgeIndex":
        entries = [KnowledgeIndexEntry.from_dict(e) for e in data.get("entries") or []]
        return cls(
            entries=entries,
            last_updated=data.get("lastUpdated", ""),
            total_entries=int(data.get("totalEntries", len(entries))),
        )


@dataclass
class HandoverProfile:
    id: str
    type: HandoverType
    name: str
    description: str
    created_at: str
    updated_at: str
    sources: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "sources": list(self.sources),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HandoverProfile":
        return cls(
            id=data["id"],
            type=data.get("type", "project"),
            name=data.get("name", ""),
            description=data.get("description", ""),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            sources=list(data.get("sources") or []),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class Feedback:
    rating: Rating
    timestamp: str
    comment: str | None = None
    message_id: str | None = None

    def to_dict(self) -> dict:
        return _drop_none({
            "rating": self.rating,
            "comment": self.comment,
            "timestamp": self.timestamp,
            "messageId": self.message_id,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Feedback":
        return cls(
            rating=data["rating"],
            timestamp=data.get("timestamp", ""),
            comment=data.get("comment"),
            message_id=data.get("messageId"),
        )


@dataclass
class Citation:
    entry_id: str
    title: str
    excerpt: str
    source: KnowledgeSource

    def to_dict(self) -> dict:
        return {
            "entryId": self.entry_id,
            "title": self.title,
            "excerpt": self.excerpt,
            "source": self.source.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Citation":
        return cls(
            entry_id=data["entryId"],
            title=data.get("title", ""),
            excerpt=data.get("excerpt", ""),
            source=KnowledgeSource.from_dict(data.get("source") or {"type": "manual"}),
        )


@dataclass
class QAMessage:
    role: Literal["user", "assistant"]
    content: str
    timestamp: str
    citations: list[Citation] | None = None
    confidence: float | None = None
    feedback: Feedback | None = None

    def to_dict(self) -> dict:
        return _drop_none({
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
            "citations": (
                [c.to_dict() for c in self.citations]
                if self.citations is not None
                else None
            ),
            "confidence": self.confidence,
            "feedback": self.feedback.to_dict() if self.feedback else None,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "QAMessage":
        citations = data.get("citations")
        feedback = data.get("feedback")
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            timestamp=data.get("timestamp", ""),
            citations=(
                [Citation.from_dict(c) for c in citations]
                if citations is not None
                else None
            ),
            confidence=data.get("confidence"),
            feedback=Feedback.from_dict(feedback) if feedback else None,
        )


@dataclass
class Session:
    id: str
    handover_id: str
    started_at: str
    messages: list[QAMessage] = field(default_factory=list)
    topics_covered: list[str] = field(default_factory=list)
    ended_at: str | None = None

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "handoverId": self.handover_id,
            "startedAt": self.started_at,
            "endedAt": self.ended_at,
            "messages": [m.to_dict() for m in self.messages],
            "topicsCovered": list(self.topics_covered),
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            id=data["id"],
            handover_id=data.get("handoverId", "unknown"),
            started_at=data.get("startedAt", ""),
            ended_at=data.get("endedAt"),
            messages=[QAMessage.from_dict(m) for m in data.get("messages") or []],
            topics_covered=list(data.get("topicsCovered") or []),
        )


@dataclass
class InteractionLogEntry:
    id: str
    question: str
    answer: str
    confidence: float
    citations: list[str]
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "answer": self.answer,
            "confidence": self.confidence,
            "citations": list(self.citations),
            "timestamp": self.timestamp,
        }


@dataclass
class SkillTrigger:
    keywords: list[str]
    categories: list[KnowledgeCategory]
    min_confidence: float = 0.3

    def to_dict(self) -> dict:
        return {
            "keywords": list(self.keywords),
            "categories": list(self.categories),
            "minConfidence": self.min_confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SkillTrigger":
        return cls(
            keywords=list(data.get("keywords") or []),
            categories=list(data.get("categories") or []),
            min_confidence=float(data.get("minConfidence", 0.3)),
        )


@dataclass
class SkillMetadata:
    created_at: str
    updated_at: str
    usage_count: int
    success_rate: float
    source: SkillSource

    def to_dict(self) -> dict:
        return {
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "usageCount": self.usage_count,
            "successRate": self.success_rate,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SkillMetadata":
        return cls(
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            usage_count=int(data.get("usageCount", 0)),
            success_rate=float(data.get("successRate", 0)),
            source=data.get("source", "manual"),
        )


@dataclass
class SkillDefinition:
    """A reusable prompt template matched to queries by keyword overlap."""

    id: str
    name: str
    description: str
    version: str
    trigger: SkillTrigger
    prompt: str
    examples: list[str]
    metadata: SkillMetadata

    @property
    def is_built_in(self) -> bool:
        return self.metadata.source == "built-in"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "trigger": self.trigger.to_dict(),
            "prompt": self.prompt,
            "examples": list(self.examples),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SkillDefinition":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            version=data.get("version", "1.0.0"),
            trigger=SkillTrigger.from_dict(data.get("trigger") or {}),
            prompt=data.get("prompt", ""),
            examples=list(data.get("examples") or []),
            metadata=SkillMetadata.from_dict(data.get("metadata") or {}),
        )


@dataclass
class TopicCoverage:
    topic: str
    category: KnowledgeCategory
    coverage: int
    questions_asked: int

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "category": self.category,
            "coverage": self.coverage,
            "questionsAsked": self.questions_asked,
        }


@dataclass
class KnowledgeGap:
    topic: str
    category: KnowledgeCategory
    importance: Importance
    reason: str
    suggested_questions: list[str]

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "category": self.category,
            "importance": self.importance,
            "reason": self.reason,
            "suggestedQuestions": list(self.suggested_questions),
        }


@dataclass
class KnowledgeMapItem:
    category: KnowledgeCategory
    topics: list[str]
    entry_count: int
    questions_asked: int
    coverage: int

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "topics": list(self.topics),
            "entryCount": self.entry_count,
            "questionsAsked": self.questions_asked,
            "coverage": self.coverage,
        }


@dataclass
class GapReport:
    handover_id: str
    generated_at: str
    covered_topics: list[TopicCoverage]
    gaps: list[KnowledgeGap]
    overall_coverage: int
    recommendations: list[str]

    def sorted_gaps(self) -> list[KnowledgeGap]:
        return sorted(self.gaps, key=lambda g: IMPORTANCE_ORDER.get(g.importance, 99))

    def to_dict(self) -> dict:
        return {
            "handoverId": self.handover_id,
            "generatedAt": self.generated_at,
            "coveredTopics": [t.to_dict() for t in self.covered_topics],
            "gaps": [g.to_dict() for g in self.gaps],
            "overallCoverage": self.overall_coverage,
            "recommendations": list(self.recommendations),
        }


@dataclass
class MigrationReport:
    entries_migrated: int = 0
    entries_skipped: int = 0
    profile_migrated: bool = False
    feedback_migrated: bool = False
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "entriesMigrated": self.entries_migrated,
            "entriesSkipped": self.entries_skipped,
            "profileMigrated": self.profile_migrated,
            "feedbackMigrated": self.feedback_migrated,
            "errors": list(self.errors),
        }
