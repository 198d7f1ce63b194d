"""
Unit Tests for Results Aggregation

Tests for aggregate_results(), outcome classification and grade bands.
"""

import logging

import pytest

from exam_toolkit.common.thresholds import GradeThresholds
from exam_toolkit.core.models import SubmittedValue, UserAnswer
from exam_toolkit.results import Outcome, aggregate_results, classify, grade_for


def stored(question_id, text, marks, correct=False, part_id=None, subpart_id=None):
    """Build a stored answer the way the session would."""
    answer = UserAnswer(
        question_id=question_id,
        part_id=part_id,
        subpart_id=subpart_id,
        value=SubmittedValue.from_text(text),
        is_correct=correct,
        marks_awarded=marks,
    )
    return {answer.key: answer}


@pytest.fixture
def nested_answers():
    """q1 correct, q2(a) half marks, q2(b)(i) correct, q2(b)(ii) blank, q3 wrong."""
    answers = {}
    answers.update(stored("q1", "oxygen", 1, correct=True))
    answers.update(stored("q2", "5", 1, part_id="a"))
    answers.update(stored("q2", "kinetic", 1, correct=True, part_id="b", subpart_id="i"))
    answers.update(stored("q3", "B", 0))
    return answers


class TestAggregateResults:
    """Tests for the headline numbers."""

    def test_aggregate_when_all_correct_then_full_marks(self, capital_paper):
        """Full marks give 100% and the top grade."""
        answers = {}
        answers.update(stored("q1", "B", 2, correct=True))
        answers.update(stored("q2", "PARIS", 1, correct=True))

        summary = aggregate_results(capital_paper, answers)

        assert summary.total_marks == 3
        assert summary.earned_marks == 3
        assert summary.percentage == 100.0
        assert summary.accuracy == 100.0
        assert summary.completion_rate == 100.0
        assert summary.grade == "A+"

    def test_aggregate_when_nothing_submitted_then_zero_rates(self, capital_paper):
        """Empty answer maps never divide by zero."""
        summary = aggregate_results(capital_paper, {})

        assert summary.earned_marks == 0
        assert summary.accuracy == 0.0
        assert summary.completion_rate == 0.0
        assert summary.unattempted == 2
        assert summary.grade == "F"

    def test_aggregate_when_mixed_outcomes_then_counts_per_leaf(self, nested_paper, nested_answers):
        """Counts and rates are taken over answerable leaves."""
        summary = aggregate_results(nested_paper, nested_answers)

        assert summary.total_marks == 6
        assert summary.earned_marks == 3
        assert summary.percentage == 50.0
        assert summary.grade == "D"
        assert summary.total_items == 5
        assert summary.attempted == 4
        assert summary.completion_rate == 80.0
        assert summary.accuracy == 50.0
        assert (summary.correct, summary.partial, summary.incorrect, summary.unattempted) == (2, 1, 1, 1)

    def test_aggregate_when_marks_exceed_item_then_capped(self, capital_paper):
        """Earned marks never exceed the item's marks."""
        summary = aggregate_results(capital_paper, stored("q2", "Paris", 5, correct=True))
        assert summary.earned_marks == 1

    def test_aggregate_when_unknown_key_then_ignored_with_warning(self, capital_paper, caplog):
        """Answers for items not in the paper are skipped."""
        with caplog.at_level(logging.WARNING):
            summary = aggregate_results(capital_paper, stored("q9", "x", 1, correct=True))
        assert summary.earned_marks == 0
        assert "unknown keys" in caplog.text

    def test_aggregate_when_called_twice_then_equal(self, nested_paper, nested_answers):
        """Aggregation is stateless."""
        assert aggregate_results(nested_paper, nested_answers) == aggregate_results(nested_paper, nested_answers)

    def test_to_dict_when_serialized_then_camel_case_keys(self, capital_paper):
        """The summary serializes for presenters."""
        data = aggregate_results(capital_paper, {}).to_dict()
        assert {"totalMarks", "earnedMarks", "percentage", "accuracy", "completionRate", "grade"} <= set(data)
        assert data["byType"]["mcq"]["total"] == 1


class TestRollups:
    """Tests for difficulty / topic / type breakdowns."""

    def test_by_difficulty_when_set_on_question_then_inherited(self, nested_paper, nested_answers):
        """Parts inherit difficulty from their question; unrated leaves are excluded."""
        summary = aggregate_results(nested_paper, nested_answers)

        assert set(summary.by_difficulty) == {"easy", "hard"}
        hard = summary.by_difficulty["hard"]
        assert hard.total == 3
        assert hard.correct == 1
        assert hard.partial == 1
        assert hard.marks == 4
        assert hard.earned_marks == 2
        assert hard.percentage == 50.0

    def test_by_topic_when_part_overrides_then_nearest_wins(self, nested_paper, nested_answers):
        """The nearest ancestor with a topic supplies it."""
        summary = aggregate_results(nested_paper, nested_answers)

        assert set(summary.by_topic) == {"Gases", "Forces", "Energy"}
        assert summary.by_topic["Forces"].total == 1
        assert summary.by_topic["Energy"].total == 2

    def test_by_type_when_any_paper_then_always_present(self, nested_paper):
        """Every leaf lands in a type bucket."""
        summary = aggregate_results(nested_paper, {})
        assert summary.by_type["descriptive"].total == 4
        assert summary.by_type["mcq"].total == 1

    def test_questions_when_nested_then_summed_per_question(self, nested_paper, nested_answers):
        """Per-question results sum their leaves."""
        q2 = aggregate_results(nested_paper, nested_answers).questions[1]
        assert q2.question_id == "q2"
        assert q2.marks == 4
        assert q2.earned_marks == 2
        assert q2.attempted == 2
        assert q2.leaf_count == 3


class TestClassify:
    """Tests for per-leaf outcome classification."""

    def test_classify_when_blank_then_unattempted(self, descriptive):
        item = descriptive("q1", ["oxygen"])
        assert classify(item, None) is Outcome.UNATTEMPTED
        assert classify(item, stored("q1", " ", 0)["q1"]) is Outcome.UNATTEMPTED

    def test_classify_when_some_marks_then_partial(self, descriptive):
        item = descriptive("q1", ["oxygen", "nitrogen"], marks=2)
        assert classify(item, stored("q1", "oxygen", 1)["q1"]) is Outcome.PARTIAL
        assert classify(item, stored("q1", "neon", 0)["q1"]) is Outcome.INCORRECT


class TestGrades:
    """Tests for grade bands."""

    @pytest.mark.parametrize(
        "percentage,grade",
        [(100.0, "A+"), (90.0, "A+"), (89.9, "A"), (80.0, "A"), (70.0, "B"),
         (60.0, "C"), (50.0, "D"), (49.9, "F"), (0.0, "F")],
    )
    def test_grade_for_when_on_boundaries_then_lower_bound_inclusive(self, percentage, grade):
        assert grade_for(percentage) == grade

    def test_grade_for_when_custom_thresholds_then_used(self):
        """Bands are configurable."""
        thresholds = GradeThresholds(bands=((50.0, "Pass"),), fallback="Fail")
        assert grade_for(50.0, thresholds) == "Pass"
        assert grade_for(49.0, thresholds) == "Fail"
