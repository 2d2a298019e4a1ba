"""
Lesson sequencing within a module.

A lesson is unlocked when every earlier lesson of its module has been
watched. The gate closes at the first unwatched lesson; watching a later
lesson out of order does not reopen it.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from coursegate.schemas import Lesson


@dataclass
class ModuleProgress:
    """Watched lessons of one module, for progress bars."""
    module_id: int
    watched_count: int
    total_lessons: int

    @property
    def percent(self) -> int:
        if not self.total_lessons:
            return 0
        return round(self.watched_count / self.total_lessons * 100)

    @property
    def is_complete(self) -> bool:
        return self.total_lessons > 0 and self.watched_count == self.total_lessons


def sort_lessons(lessons: Iterable[Lesson]) -> list[Lesson]:
    """Sort by order ascending; missing order counts as 0, ties keep input order."""
    return sorted(lessons, key=lambda lesson: lesson.sort_key)


def compute_unlocked_lesson_ids(lessons: Iterable[Lesson], watched: set[int]) -> set[int]:
    """
    Compute which lessons of a module are unlocked.

    Args:
        lessons: Lessons of a single module, in any order
        watched: IDs of lessons the student has watched

    Returns:
        IDs of unlocked lessons
    """
    unlocked = set()
    gate_open = True
    for lesson in sort_lessons(lessons):
        if gate_open:
            unlocked.add(lesson.id)
        gate_open = gate_open and lesson.id in watched
    return unlocked


def first_unwatched_lesson(lessons: Iterable[Lesson], watched: set[int]) -> Optional[Lesson]:
    """First lesson in order that is not watched, or None."""
    for lesson in sort_lessons(lessons):
        if lesson.id not in watched:
            return lesson
    return None


def all_lessons_watched(lessons: Iterable[Lesson], watched: set[int]) -> bool:
    """True if the module has lessons and all of them are watched."""
    lesson_ids = [lesson.id for lesson in lessons]
    return bool(lesson_ids) and all(lid in watched for lid in lesson_ids)


def module_progress(module_id: int, lessons: Iterable[Lesson], watched: set[int]) -> ModuleProgress:
    lesson_ids = [lesson.id for lesson in lessons if lesson.module_id == module_id]
    return ModuleProgress(
        module_id=module_id,
        watched_count=sum(1 for lid in lesson_ids if lid in watched),
        total_lessons=len(lesson_ids),
    )
