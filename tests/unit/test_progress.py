"""
Unit tests for progress and quiz scoring arithmetic
"""
import pytest

from app.services.progress import compute_progress, grade_answers, percent, should_complete


def make_questions(*correct):
    return [
        {"text": f"Q{i}", "options": ["A", "B", "C"], "correct_index": index}
        for i, index in enumerate(correct)
    ]


class TestPercent:
    """Half-up integer percentages"""

    @pytest.mark.parametrize("part,total,expected", [
        (0, 4, 0),
        (1, 4, 25),
        (2, 3, 67),
        (1, 3, 33),
        (1, 8, 13),
        (3, 8, 38),
        (4, 4, 100),
    ])
    def test_rounding(self, part, total, expected):
        assert percent(part, total) == expected

    def test_zero_total_is_zero(self):
        assert percent(0, 0) == 0
        assert percent(3, 0) == 0


class TestComputeProgress:

    def test_four_lesson_course(self):
        assert [compute_progress(n, 4) for n in range(5)] == [0, 25, 50, 75, 100]

    def test_empty_syllabus(self):
        assert compute_progress(0, 0) == 0


class TestShouldComplete:

    def test_active_at_full_progress(self):
        assert should_complete(100, "active") is True

    def test_partial_progress(self):
        assert should_complete(99, "active") is False

    def test_already_completed(self):
        """Completion happens once"""
        assert should_complete(100, "completed") is False

    def test_dropped_is_terminal(self):
        assert should_complete(100, "dropped") is False


class TestGradeAnswers:

    def test_two_of_three(self):
        result = grade_answers(make_questions(0, 1, 2), [0, 1, 1])

        assert result["score"] == 67
        assert result["total_questions"] == 3
        assert result["correct_answers"] == 2
        assert [a["is_correct"] for a in result["answers"]] == [True, True, False]

    def test_breakdown_reports_selected_and_correct(self):
        result = grade_answers(make_questions(2), [0])

        assert result["answers"] == [
            {"question_index": 0, "selected_index": 0, "correct_index": 2, "is_correct": False}
        ]
        assert result["score"] == 0

    def test_perfect_score(self):
        result = grade_answers(make_questions(1, 1), [1, 1])
        assert result["score"] == 100

    def test_out_of_range_answer_is_wrong(self):
        result = grade_answers(make_questions(0), [7])
        assert result["correct_answers"] == 0

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="Answers length does not match"):
            grade_answers(make_questions(0, 1, 2), [0, 1])
