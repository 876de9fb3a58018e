"""Shared fixtures for handover tests."""

from unittest.mock import AsyncMock

import pytest

from handover.store.types import KnowledgeEntry, KnowledgeSource, QAMessage, Session


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / ".handover"
    path.mkdir()
    return str(path)


@pytest.fixture
def chat():
    """Model stand-in; set ``chat.return_value`` per test."""
    return AsyncMock(return_value="")


def make_entry(
    title: str = "Service layout",
    content: str = "The API lives in server/ and talks to Postgres.",
    category: str = "architecture",
    tags: list[str] | None = None,
    source_type: str = "manual",
    source_path: str | None = None,
    confidence: float = 0.8,
    entry_id: str = "",
) -> KnowledgeEntry:
    return KnowledgeEntry(
        id=entry_id,
        title=title,
        content=content,
        category=category,  # type: ignore[arg-type]
        tags=list(tags or []),
        source=KnowledgeSource(type=source_type, path=source_path),  # type: ignore[arg-type]
        confidence=confidence,
    )


def make_session(*exchanges: tuple[str, str], session_id: str = "s1", start: str = "2024-01-01T10:00:00+00:00") -> Session:
    """Session of (question, answer) pairs, all stamped with ``start``."""
    session = Session(id=session_id, handover_id="h1", started_at=start)
    for question, answer in exchanges:
        session.messages.append(QAMessage(role="user", content=question, timestamp=start))
        session.messages.append(QAMessage(role="assistant", content=answer, timestamp=start))
    return session
