"""Tests for lock messages and exam rendering."""

from coursegate.classroom import ExamGrade, LockReason, NavigationLesson
from coursegate.schemas import ExamQuestion, Lesson, Module
from coursegate.viewer import (
    get_lesson_lock_message,
    get_lock_message,
    get_status_indicator,
    render_exam_question,
    render_exam_score,
    render_lock_banner,
)


def nav_lesson(unlocked, watched):
    return NavigationLesson(lesson=Lesson(id=1, module_id=1, title="Intro"), unlocked=unlocked, watched=watched)


class TestLockMessages:

    def test_exam_lock_names_previous_module(self):
        reason = LockReason.by_exam(Module(id=1, title="Market Basics", order=1))
        assert "Market Basics" in get_lock_message(reason)

    def test_exam_lock_without_title(self):
        reason = LockReason.by_exam(Module(id=4, order=1))
        assert "module 4" in get_lock_message(reason)

    def test_access_lock(self):
        assert "Upgrade" in get_lock_message(LockReason.by_access())

    def test_unavailable_asks_for_retry(self):
        assert "Try again" in get_lock_message(LockReason.unavailable())

    def test_unlocked_has_no_message(self):
        assert get_lock_message(LockReason.unlocked()) == ""
        assert render_lock_banner(LockReason.unlocked()) == ""

    def test_banner_escapes_title(self):
        reason = LockReason.by_exam(Module(id=1, title="<b>One</b>", order=1))
        banner = render_lock_banner(reason)
        assert "&lt;b&gt;" in banner
        assert 'class="lock-banner"' in banner
        assert 'class="lock-retry"' in render_lock_banner(LockReason.unavailable())

    def test_lesson_lock_message(self):
        assert get_lesson_lock_message(nav_lesson(True, False)) == ""
        assert "Intro" in get_lesson_lock_message(nav_lesson(False, False), "Intro")
        assert "previous" in get_lesson_lock_message(nav_lesson(False, False))


class TestStatusIndicator:

    def test_indicators(self):
        assert get_status_indicator(nav_lesson(True, True)) == "✓"
        assert get_status_indicator(nav_lesson(True, False)) == "○"
        assert get_status_indicator(nav_lesson(False, False)) == "◌"


class TestExamRendering:

    def test_question_marks_selection(self):
        question = ExamQuestion(id=1, exam_id=1, question="2 < 3?", options=["yes", "no"], correct_answer="yes")
        rendered = render_exam_question(question, 0, 4, selected="no")
        assert "Question 1 of 4" in rendered
        assert "2 &lt; 3?" in rendered
        assert '<div class="exam-option selected">no</div>' in rendered

    def test_score_passed_and_failed(self):
        assert "Passed" in render_exam_score(ExamGrade(score=3, total=4, passed=True))
        failed = render_exam_score(ExamGrade(score=2, total=4, passed=False))
        assert "75% needed" in failed
        assert "50%" in failed
