"""
Exam renderer - Question display and score box.

Provides:
- Multiple choice question rendering
- Score display after submission
"""

import html
from typing import Optional

from coursegate.classroom.exam import PASS_THRESHOLD, ExamGrade
from coursegate.schemas import ExamQuestion


def get_exam_css() -> str:
    """Get CSS styles for exam display."""
    return """
    <style>
    .exam-container {
        background: #e3f2fd;
        border-radius: 12px;
        padding: 1.5em;
        margin: 1.5em 0;
        border-left: 4px solid #1976D2;
    }
    .exam-title {
        font-weight: 600;
        color: #1565C0;
        font-size: 1.1em;
        margin-bottom: 1em;
    }
    .exam-question {
        font-size: 1.05em;
        color: #333;
        margin-bottom: 1em;
        line-height: 1.6;
    }
    .exam-option {
        padding: 0.4em 0.8em;
        border-radius: 6px;
        margin: 0.2em 0;
    }
    .exam-option.selected {
        background: #1976D2;
        color: white;
    }
    .exam-score-box {
        border-radius: 8px;
        padding: 1em;
        margin-top: 1.5em;
        text-align: center;
    }
    .exam-score-box.passed {
        background: #e8f5e9;
        color: #388E3C;
    }
    .exam-score-box.failed {
        background: #ffebee;
        color: #c62828;
    }
    .exam-score-value {
        font-size: 2em;
        font-weight: 700;
    }
    .exam-score-label {
        color: #666;
        font-size: 0.9em;
    }
    </style>
    """


def render_exam_question(
    question: ExamQuestion,
    index: int,
    total: int,
    selected: Optional[str] = None,
) -> str:
    """
    Render a single exam question.

    Args:
        question: ExamQuestion to show
        index: 0-based position in the exam
        total: Number of questions in the exam
        selected: Option the student picked so far

    Returns:
        HTML string for the question
    """
    parts = ['<div class="exam-container">']
    parts.append(f'<div class="exam-title">Question {index + 1} of {total}</div>')
    parts.append(f'<div class="exam-question">{html.escape(question.question)}</div>')
    for option in question.options:
        css = "exam-option selected" if option == selected else "exam-option"
        parts.append(f'<div class="{css}">{html.escape(option)}</div>')
    parts.append('</div>')
    return ''.join(parts)


def render_exam_score(grade: ExamGrade) -> str:
    """Render the score box shown after submission."""
    status = "passed" if grade.passed else "failed"
    label = "Passed" if grade.passed else f"Not passed, {round(PASS_THRESHOLD * 100)}% needed"
    return f"""
    <div class="exam-score-box {status}">
        <div class="exam-score-value">{grade.percent}%</div>
        <div class="exam-score-label">{grade.score} of {grade.total} correct. {label}</div>
    </div>
    """
