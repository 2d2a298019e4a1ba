"""Tests for exam grading and canonical exam selection."""

import pytest

from coursegate.classroom import PASS_THRESHOLD, canonical_exam, grade_exam, is_passing
from coursegate.schemas import Exam, ExamQuestion


def make_questions(n):
    return [
        ExamQuestion(id=i, exam_id=1, question=f"Q{i}", options=["a", "b"], correct_answer="a")
        for i in range(1, n + 1)
    ]


class TestPassThreshold:

    def test_threshold_constant(self):
        assert PASS_THRESHOLD == 0.75

    def test_boundary_is_inclusive(self):
        assert is_passing(3, 4) is True
        assert is_passing(2, 4) is False

    def test_full_and_zero_scores(self):
        assert is_passing(4, 4)
        assert not is_passing(0, 4)

    def test_just_below_threshold(self):
        assert not is_passing(74, 100)
        assert is_passing(75, 100)

    def test_no_questions(self):
        with pytest.raises(ValueError):
            is_passing(0, 0)


class TestGradeExam:

    def test_three_of_four_passes(self):
        questions = make_questions(4)
        grade = grade_exam(questions, {1: "a", 2: "a", 3: "a", 4: "b"})
        assert (grade.score, grade.total, grade.passed) == (3, 4, True)
        assert grade.percent == 75

    def test_two_of_four_fails(self):
        grade = grade_exam(make_questions(4), {1: "a", 2: "a"})
        assert grade.score == 2
        assert grade.passed is False
        assert grade.percent == 50

    def test_unknown_question_ids_ignored(self):
        grade = grade_exam(make_questions(2), {1: "a", 2: "a", 99: "a"})
        assert grade.score == 2

    def test_empty_exam_rejected(self):
        with pytest.raises(ValueError):
            grade_exam([], {})


class TestCanonicalExam:

    def test_active_preferred(self):
        exams = [
            Exam(id=1, module_id=5, active=True),
            Exam(id=2, module_id=5),
            Exam(id=3, module_id=5, active=False),
        ]
        assert canonical_exam(exams, 5).id == 1

    def test_highest_id_fallback(self):
        exams = [Exam(id=4, module_id=5), Exam(id=9, module_id=5), Exam(id=12, module_id=6)]
        assert canonical_exam(exams, 5).id == 9

    def test_no_exam(self):
        assert canonical_exam([Exam(id=1, module_id=6)], 5) is None
        assert canonical_exam([], 5) is None
