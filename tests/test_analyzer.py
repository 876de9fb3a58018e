"""Tests for question pattern and feedback analysis."""

from conftest import make_session
from handover.feedback.analyzer import (
    analyze_feedback,
    build_term_frequency,
    detect_question_patterns,
    identify_weak_areas,
    match_feedback_to_questions,
    tokenize,
)
from handover.store.types import Feedback

START = "2024-01-01T10:00:00+00:00"


def _feedback(rating: str, message_id: str | None = None, timestamp: str = START, comment: str | None = None) -> Feedback:
    return Feedback(rating=rating, timestamp=timestamp, message_id=message_id, comment=comment)  # type: ignore[arg-type]


class TestTokenize:
    def test_strips_stop_words_and_punctuation(self):
        assert tokenize("How does the Billing-retry work?") == ["billing", "retry", "work"]

    def test_term_frequency_counts_once_per_question(self):
        freq = build_term_frequency(["deploy deploy deploy", "deploy now"])
        assert freq["deploy"] == 2


class TestQuestionPatterns:
    """Tests for detect_question_patterns."""

    def test_detects_recurring_themes(self):
        session = make_session(
            ("how to deploy the api", "..."),
            ("deploy fails on staging", "..."),
            ("who owns billing", "..."),
            ("billing invoices missing", "..."),
        )
        patterns = detect_question_patterns([session])
        assert {p.pattern for p in patterns} == {"deploy", "billing"}
        assert all(p.frequency == 2 for p in patterns)
        deploy = next(p for p in patterns if p.pattern == "deploy")
        assert deploy.example_questions == ["how to deploy the api", "deploy fails on staging"]
        assert "deploy" in deploy.categories

    def test_single_mentions_are_not_themes(self):
        session = make_session(("what is kafka", "..."), ("where are logs", "..."))
        assert detect_question_patterns([session]) == []

    def test_no_sessions(self):
        assert detect_question_patterns([]) == []


class TestWeakAreas:
    """Tests for identify_weak_areas."""

    def test_threshold(self):
        session = make_session(
            ("How does billing retry work", "..."),
            ("Where is the deploy script", "..."),
        )
        history = [
            _feedback("negative", message_id="1"),
            _feedback("positive", message_id="1"),
            _feedback("negative", message_id="3"),
        ]
        weak = {area.topic: area for area in identify_weak_areas(history, [session])}

        assert "billing" in weak
        assert weak["billing"].negative_count == 1
        assert weak["billing"].total_count == 2
        assert "deploy" not in weak

    def test_embedded_feedback_wins(self):
        session = make_session(("billing question", "..."))
        session.messages[1].feedback = _feedback("negative")
        history = [_feedback("positive", message_id="1")]
        matched = match_feedback_to_questions(history, [session])
        assert [f.rating for f in matched["billing question"]] == ["negative"]

    def test_proximity_window(self):
        session = make_session(("billing question", "..."))
        history = [
            _feedback("negative", timestamp="2024-01-01T10:00:30+00:00"),
            _feedback("negative", timestamp="2024-01-01T10:02:00+00:00"),
        ]
        matched = match_feedback_to_questions(history, [session])
        assert len(matched["billing question"]) == 1

    def test_sorted_by_negative_count(self):
        session = make_session(("alpha one", "..."), ("beta two", "..."))
        history = [
            _feedback("negative", message_id="1"),
            _feedback("negative", message_id="1"),
            _feedback("negative", message_id="3"),
            _feedback("negative", message_id="3"),
            _feedback("negative", message_id="3"),
        ]
        topics = [area.topic for area in identify_weak_areas(history, [session])]
        assert topics[0] in {"beta", "two"}


class TestAnalyzeFeedback:
    def test_summary(self):
        session = make_session(("deploy the api", "..."), ("deploy again", "..."))
        history = [
            _feedback("positive"),
            _feedback("negative", comment="answer too vague"),
            _feedback("negative", comment="too vague again"),
        ]
        summary = analyze_feedback(history, [session])
        assert summary.total_interactions == 3
        assert summary.positive_count == 1
        assert summary.negative_count == 2
        assert summary.common_issues == ["vague"]
        assert "deploy (2x)" in summary.top_patterns
