"""Mine sessions and feedback for recurring question themes and weak topics."""

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..store.types import Feedback, QAMessage, Session

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been",
    "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "can", "shall",
    "to", "of", "in", "for", "on", "with", "at", "by", "from",
    "as", "into", "through", "during", "before", "after", "and",
    "but", "or", "nor", "not", "so", "yet", "both", "either",
    "neither", "each", "every", "all", "any", "few", "more",
    "most", "other", "some", "such", "no", "only", "own", "same",
    "than", "too", "very", "just", "about", "what", "how", "why",
    "when", "where", "who", "which", "this", "that", "these",
    "those", "it", "its", "i", "me", "my", "we", "our", "you",
    "your", "he", "she", "they", "them", "their",
})

FEEDBACK_WINDOW_SECONDS = 60
WEAK_AREA_MIN_RATINGS = 2
WEAK_AREA_NEGATIVE_RATIO = 0.4


@dataclass
class QuestionPattern:
    pattern: str
    frequency: int
    categories: list[str]
    example_questions: list[str]
    average_rating: float = 0.0

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "frequency": self.frequency,
            "categories": list(self.categories),
            "exampleQuestions": list(self.example_questions),
            "averageRating": self.average_rating,
        }


@dataclass
class WeakArea:
    topic: str
    negative_count: int
    total_count: int
    sample_questions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "negativeCount": self.negative_count,
            "totalCount": self.total_count,
            "sampleQuestions": list(self.sample_questions),
        }


@dataclass
class FeedbackSummary:
    total_interactions: int
    positive_count: int
    negative_count: int
    satisfaction_rate: float
    common_issues: list[str]
    top_patterns: list[str]

    def to_dict(self) -> dict:
        return {
            "totalInteractions": self.total_interactions,
            "positiveCount": self.positive_count,
            "negativeCount": self.negative_count,
            "satisfactionRate": self.satisfaction_rate,
            "commonIssues": list(self.common_issues),
            "topPatterns": list(self.top_patterns),
        }


def tokenize(text: str) -> list[str]:
    """Lower-case alphanumeric terms, minus stop words and short tokens."""
    cleaned = re.sub(r"[^a-z0-9\s]", " ", text.lower())
    return [t for t in cleaned.split() if len(t) > 2 and t not in STOP_WORDS]


def extract_user_questions(sessions: list[Session]) -> list[str]:
    return [
        msg.content
        for session in sessions
        for msg in session.messages
        if msg.role == "user"
    ]


def build_term_frequency(questions: list[str]) -> Counter:
    """Document frequency: each term counted at most once per question."""
    freq: Counter = Counter()
    for question in questions:
        freq.update(set(tokenize(question)))
    return freq


def _group_by_theme(
    questions: list[str],
    term_frequency: Counter,
    min_frequency: int,
) -> dict[str, list[str]]:
    frequent_terms = sorted(
        (term for term, count in term_frequency.items() if count >= min_frequency),
        key=lambda term: term_frequency[term],
        reverse=True,
    )

    tokenized = [(q, set(tokenize(q))) for q in questions]
    themes: dict[str, list[str]] = {}
    for term in frequent_terms:
        matching = [q for q, terms in tokenized if term in terms]
        if len(matching) >= min_frequency:
            themes[term] = matching
    return themes


def detect_question_patterns(sessions: list[Session]) -> list[QuestionPattern]:
    """Recurring themes across user questions, most frequent first."""
    questions = extract_user_questions(sessions)
    if not questions:
        return []

    term_frequency = build_term_frequency(questions)
    min_frequency = max(2, math.floor(len(questions) * 0.1))
    themes = _group_by_theme(questions, term_frequency, min_frequency)

    patterns: list[QuestionPattern] = []
    for theme, matching in themes.items():
        co_terms: Counter = Counter()
        for question in matching:
            co_terms.update(tokenize(question))
        top_terms = [term for term, _ in co_terms.most_common(3)]

        patterns.append(
            QuestionPattern(
                pattern=theme,
                frequency=len(matching),
                categories=top_terms,
                example_questions=matching[:5],
            )
        )

    patterns.sort(key=lambda p: p.frequency, reverse=True)
    return patterns


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _preceding_user_message(messages: list[QAMessage], index: int) -> str | None:
    for j in range(index - 1, -1, -1):
        if messages[j].role == "user":
            return messages[j].content
    return None


def match_feedback_to_questions(
    feedback_history: list[Feedback],
    sessions: list[Session],
) -> dict[str, list[Feedback]]:
    """Attach feedback to the user question preceding each rated answer.

    Priority per assistant message: feedback embedded on the message, then
    history entries whose messageId is the message's index in its session,
    then history entries within a 60 second window of the message. The
    window is approximate and can mis-attribute feedback in dense or
    concurrent sessions.
    """
    question_feedback: dict[str, list[Feedback]] = {}

    def attach(messages: list[QAMessage], index: int, items: list[Feedback]) -> None:
        question = _preceding_user_message(messages, index)
        if question is not None:
            question_feedback.setdefault(question, []).extend(items)

    for session in sessions:
        messages = session.messages
        for i, msg in enumerate(messages):
            if msg.role != "assistant":
                continue

            if msg.feedback:
                attach(messages, i, [msg.feedback])
                continue

            matched = [f for f in feedback_history if f.message_id == str(i)]
            if matched:
                attach(messages, i, matched)
                continue

            msg_time = _parse_timestamp(msg.timestamp)
            if msg_time is None:
                continue
            nearby: list[Feedback] = []
            for feedback in feedback_history:
                fb_time = _parse_timestamp(feedback.timestamp)
                if fb_time is None:
                    continue
                if abs((msg_time - fb_time).total_seconds()) < FEEDBACK_WINDOW_SECONDS:
                    nearby.append(feedback)
            if nearby:
                attach(messages, i, nearby)

    return question_feedback


def identify_weak_areas(
    feedback_history: list[Feedback],
    sessions: list[Session],
) -> list[WeakArea]:
    """Topics whose answers draw a high share of negative ratings."""
    question_feedback = match_feedback_to_questions(feedback_history, sessions)
    stats: dict[str, WeakArea] = {}

    for question, feedbacks in question_feedback.items():
        for term in tokenize(question)[:3]:
            area = stats.setdefault(term, WeakArea(topic=term, negative_count=0, total_count=0))
            for feedback in feedbacks:
                area.total_count += 1
                if feedback.rating == "negative":
                    area.negative_count += 1
            if question not in area.sample_questions and len(area.sample_questions) < 5:
                area.sample_questions.append(question)

    weak = [
        area
        for area in stats.values()
        if area.total_count >= WEAK_AREA_MIN_RATINGS
        and area.negative_count / area.total_count >= WEAK_AREA_NEGATIVE_RATIO
    ]
    weak.sort(key=lambda a: a.negative_count, reverse=True)
    return weak


def find_common_phrases(comments: list[str]) -> list[str]:
    """Unigrams and bigrams seen at least twice, most common first."""
    counts: Counter = Counter()
    for comment in comments:
        terms = tokenize(comment)
        counts.update(f"{a} {b}" for a, b in zip(terms, terms[1:]))
        counts.update(terms)
    return [phrase for phrase, count in counts.most_common() if count >= 2][:10]


def analyze_feedback(
    feedback_history: list[Feedback],
    sessions: list[Session],
) -> FeedbackSummary:
    total = len(feedback_history)
    positive = sum(1 for f in feedback_history if f.rating == "positive")
    negative = sum(1 for f in feedback_history if f.rating == "negative")

    negative_comments = [
        f.comment for f in feedback_history if f.rating == "negative" and f.comment
    ]

    term_frequency = build_term_frequency(extract_user_questions(sessions))
    top_patterns = [f"{term} ({count}x)" for term, count in term_frequency.most_common(10)]

    return FeedbackSummary(
        total_interactions=total,
        positive_count=positive,
        negative_count=negative,
        satisfaction_rate=positive / total if total else 0.0,
        common_issues=find_common_phrases(negative_comments),
        top_patterns=top_patterns,
    )
