"""
Lock state display - Explanatory messages and status indicators.

Locked modules always say what blocks them; a failed load asks for a retry
instead of pretending the course is open.
"""

import html

from coursegate.classroom.navigator import LockKind, LockReason, NavigationLesson


def get_lock_message(reason: LockReason) -> str:
    """Plain text explanation for a module's lock state."""
    if reason.kind == LockKind.ACCESS:
        return "Upgrade to full access to watch the lessons and take the exams."
    if reason.kind == LockKind.EXAM:
        prev = reason.previous_module
        title = (prev.title or f"module {prev.id}") if prev else "the previous module"
        return f"Pass the exam of {title} to unlock this module."
    if reason.kind == LockKind.UNAVAILABLE:
        return "Your progress could not be loaded. Try again."
    return ""


def get_lesson_lock_message(lesson: NavigationLesson, previous_title: str | None = None) -> str:
    if lesson.unlocked:
        return ""
    if previous_title:
        return f"Finish \"{previous_title}\" first."
    return "Finish the previous lessons first."


def get_status_indicator(lesson: NavigationLesson) -> str:
    """
    Status indicator for the lesson list.

    Returns:
        ✓ for watched
        ○ for unlocked
        ◌ for locked
    """
    if lesson.watched:
        return "✓"
    if lesson.unlocked:
        return "○"
    return "◌"


def render_lock_banner(reason: LockReason) -> str:
    """HTML banner for a locked module; empty when unlocked."""
    if not reason.is_locked:
        return ""
    css_class = "lock-retry" if reason.kind == LockKind.UNAVAILABLE else "lock-banner"
    return f'<div class="{css_class}">{html.escape(get_lock_message(reason))}</div>'


def get_lock_css() -> str:
    return """
    <style>
    .lock-banner {
        background: #fff3e0;
        border-left: 4px solid #e65100;
        border-radius: 8px;
        padding: 0.8em 1em;
        color: #e65100;
        margin: 0.5em 0;
    }
    .lock-retry {
        background: #ffebee;
        border-left: 4px solid #c62828;
        border-radius: 8px;
        padding: 0.8em 1em;
        color: #c62828;
        margin: 0.5em 0;
    }
    </style>
    """
