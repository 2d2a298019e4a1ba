"""
Access tiers.

Basic students see the course outline only. Full access unlocks videos and
exams. Mentors additionally manage other students' access levels.
"""

import logging
from typing import Any, Optional

from coursegate.schemas import AccessLevel, Student

from .store import CourseStore


logger = logging.getLogger(__name__)


def parse_access_level(value: Any) -> Optional[AccessLevel]:
    """Parse an access level from untrusted input; None unless exactly 1, 2 or 3."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    try:
        return AccessLevel(value)
    except ValueError:
        return None


def has_full_access(access_level: int) -> bool:
    return access_level >= AccessLevel.FULL


def is_mentor(access_level: int) -> bool:
    return access_level >= AccessLevel.MENTOR


def has_mentorship_access(student: Optional[Student]) -> bool:
    """Mentorship booking requires full access."""
    return student is not None and has_full_access(student.access_level)


def upgrade_access_level(store: CourseStore, student_id: str, level: AccessLevel = AccessLevel.FULL) -> Student:
    """
    Raise a student's access level after a completed payment.

    Never lowers the level, so replayed payment events are harmless.

    Raises:
        LookupError: If the student does not exist
    """
    student = store.get_student(student_id)
    if student is None:
        raise LookupError(f"Student not found: {student_id}")
    if student.access_level >= level:
        logger.info(f"Student {student_id} already at level {int(student.access_level)}")
        return student
    store.update_access_level(student_id, level)
    logger.info(f"Upgraded student {student_id} from {int(student.access_level)} to {int(level)}")
    return student.model_copy(update={"access_level": level})


def set_access_level(store: CourseStore, requester: Optional[Student], student_id: str, level: Any) -> Student:
    """
    Set any access level on behalf of a mentor (admin directory).

    Raises:
        PermissionError: If the requester is not a mentor
        ValueError: If the level is not 1, 2 or 3
        LookupError: If the student does not exist
    """
    if requester is None or not is_mentor(requester.access_level):
        raise PermissionError("Only mentors can change access levels")
    new_level = parse_access_level(level)
    if new_level is None:
        raise ValueError("access_level must be an integer: 1, 2, or 3")
    target = store.get_student(student_id)
    if target is None:
        raise LookupError(f"Student not found: {student_id}")
    store.update_access_level(student_id, new_level)
    logger.info(f"Mentor {requester.id} set student {student_id} "
                f"from {int(target.access_level)} to {int(new_level)}")
    return target.model_copy(update={"access_level": new_level})
