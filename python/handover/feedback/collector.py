"""Append-only feedback and interaction logs."""

import json
import os
import uuid
from datetime import datetime, timezone

from ..store.files import append_line, read_json_lines
from ..store.types import Feedback, InteractionLogEntry, Rating

RATINGS = ("positive", "negative")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FeedbackLog:
    """Feedback history at ``<data_dir>/feedback/history.jsonl``."""

    def __init__(self, data_dir: str) -> None:
        self.path = os.path.join(data_dir, "feedback", "history.jsonl")

    def log(
        self,
        rating: Rating,
        comment: str | None = None,
        message_id: str | None = None,
    ) -> Feedback:
        if rating not in RATINGS:
            raise ValueError(f"Invalid rating: {rating}")
        feedback = Feedback(
            rating=rating,
            comment=comment,
            timestamp=_now(),
            message_id=message_id,
        )
        append_line(self.path, json.dumps(feedback.to_dict()))
        return feedback

    def load_history(self) -> list[Feedback]:
        history: list[Feedback] = []
        for record in read_json_lines(self.path):
            try:
                history.append(Feedback.from_dict(record))
            except KeyError:
                continue
        return history

    def for_message(self, message_id: str) -> Feedback | None:
        for feedback in self.load_history():
            if feedback.message_id == message_id:
                return feedback
        return None

    def stats(self) -> dict:
        """Aggregate counts by full scan; satisfaction rate in percent."""
        history = self.load_history()
        total = len(history)
        positive = sum(1 for f in history if f.rating == "positive")
        negative = sum(1 for f in history if f.rating == "negative")
        rate = (positive / total) * 100 if total else 0.0
        return {
            "total": total,
            "positive": positive,
            "negative": negative,
            "satisfactionRate": round(rate, 2),
        }


class InteractionLog:
    """Q&A interaction log at ``<data_dir>/interactions/log.jsonl``."""

    def __init__(self, data_dir: str) -> None:
        self.path = os.path.join(data_dir, "interactions", "log.jsonl")

    def log(
        self,
        question: str,
        answer: str,
        confidence: float,
        citations: list[str] | None = None,
    ) -> InteractionLogEntry:
        if not 0 <= confidence <= 1:
            raise ValueError("confidence must be between 0 and 1")
        entry = InteractionLogEntry(
            id=str(uuid.uuid4()),
            question=question,
            answer=answer,
            confidence=confidence,
            citations=list(citations or []),
            timestamp=_now(),
        )
        append_line(self.path, json.dumps(entry.to_dict()))
        return entry

    def count(self) -> int:
        return len(read_json_lines(self.path))
