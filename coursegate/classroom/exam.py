"""
Exam grading.

An attempt passes when at least 75% of the questions are answered
correctly. The boundary is inclusive: 3 of 4 passes.
"""

from dataclasses import dataclass
from typing import Optional

from coursegate.schemas import Exam, ExamQuestion


PASS_THRESHOLD = 0.75


@dataclass
class ExamGrade:
    score: int
    total: int
    passed: bool

    @property
    def percent(self) -> int:
        return round(self.score / self.total * 100) if self.total else 0


def is_passing(score: int, total_questions: int) -> bool:
    if total_questions <= 0:
        raise ValueError("An exam needs at least one question to be graded")
    return score / total_questions >= PASS_THRESHOLD


def grade_exam(questions: list[ExamQuestion], answers: dict[int, str]) -> ExamGrade:
    """
    Grade an attempt.

    Args:
        questions: Questions of the exam
        answers: Chosen option per question id; unanswered questions count as wrong

    Returns:
        ExamGrade with score, total and pass flag
    """
    total = len(questions)
    score = sum(1 for q in questions if answers.get(q.id) == q.correct_answer)
    return ExamGrade(score=score, total=total, passed=is_passing(score, total))


def canonical_exam(exams: list[Exam], module_id: int) -> Optional[Exam]:
    """
    The exam a student should take for a module.

    Prefers the exam flagged active; otherwise the newest (highest id).
    """
    candidates = [e for e in exams if e.module_id == module_id]
    if not candidates:
        return None
    active = [e for e in candidates if e.active is True]
    if active:
        return max(active, key=lambda e: e.id)
    return max(candidates, key=lambda e: e.id)
