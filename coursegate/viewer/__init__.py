"""
coursegate Viewer - Rendering helpers for the course pages.

This module provides:
- Lock messages and lesson status indicators
- Exam question and score display
"""

from .lock import (
    get_lock_message,
    get_lesson_lock_message,
    get_status_indicator,
    render_lock_banner,
    get_lock_css,
)

from .exam import (
    get_exam_css,
    render_exam_question,
    render_exam_score,
)

__all__ = [
    # Lock
    "get_lock_message",
    "get_lesson_lock_message",
    "get_status_indicator",
    "render_lock_banner",
    "get_lock_css",
    # Exam
    "get_exam_css",
    "render_exam_question",
    "render_exam_score",
]
