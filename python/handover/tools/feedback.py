"""Feedback tools: rate answers, log interactions, aggregate statistics."""

import json

from ..feedback.collector import FeedbackLog, InteractionLog


async def handle_log_feedback(
    data_dir: str,
    rating: str,
    comment: str | None = None,
    interaction_id: str | None = None,
) -> str:
    try:
        feedback = FeedbackLog(data_dir).log(rating, comment, interaction_id)  # type: ignore[arg-type]
        return json.dumps({"success": True, "feedback": feedback.to_dict()})
    except Exception as err:
        return json.dumps({"error": str(err)})


async def handle_feedback_stats(data_dir: str) -> str:
    try:
        return json.dumps(FeedbackLog(data_dir).stats())
    except Exception as err:
        return json.dumps({"error": str(err)})


async def handle_log_interaction(
    data_dir: str,
    question: str,
    answer: str,
    confidence: float,
    citations: list[str] | None = None,
) -> str:
    """Log a Q&A interaction with the knowledge base."""
    try:
        entry = InteractionLog(data_dir).log(question, answer, confidence, citations)
        return json.dumps({"id": entry.id, "timestamp": entry.timestamp})
    except Exception as err:
        return json.dumps({"error": str(err)})
