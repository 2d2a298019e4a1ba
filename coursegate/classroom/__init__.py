"""
coursegate Classroom - Runtime components for course progression.

This module provides:
- CourseStore: course content, watch ledger and exam result ledger
- Sequencer: lesson unlocking within a module
- Gate: module locking by the previous module's exam
- ProgressNavigator: next lesson, lock reasons, watch and exam write paths
"""

from .store import (
    CourseStore,
    CourseReader,
    StoreError,
    DataFetchError,
    DataWriteError,
)

from .sequencer import (
    ModuleProgress,
    sort_lessons,
    compute_unlocked_lesson_ids,
    first_unwatched_lesson,
    all_lessons_watched,
    module_progress,
)

from .gate import (
    ModuleGateStatus,
    previous_modules_by_order,
    resolve_gate_statuses,
    resolve_gate_status,
    has_passed_exam_for_module,
)

from .exam import (
    PASS_THRESHOLD,
    ExamGrade,
    is_passing,
    grade_exam,
    canonical_exam,
)

from .access import (
    parse_access_level,
    has_full_access,
    is_mentor,
    has_mentorship_access,
    upgrade_access_level,
    set_access_level,
)

from .navigator import (
    ProgressNavigator,
    CourseSnapshot,
    LockKind,
    LockReason,
    NextLesson,
    NavigationLesson,
    NavigationModule,
    sort_modules,
    find_next_lesson,
    is_module_locked,
    lock_reason,
)

__all__ = [
    # Store
    "CourseStore",
    "CourseReader",
    "StoreError",
    "DataFetchError",
    "DataWriteError",
    # Sequencer
    "ModuleProgress",
    "sort_lessons",
    "compute_unlocked_lesson_ids",
    "first_unwatched_lesson",
    "all_lessons_watched",
    "module_progress",
    # Gate
    "ModuleGateStatus",
    "previous_modules_by_order",
    "resolve_gate_statuses",
    "resolve_gate_status",
    "has_passed_exam_for_module",
    # Exam
    "PASS_THRESHOLD",
    "ExamGrade",
    "is_passing",
    "grade_exam",
    "canonical_exam",
    # Access
    "parse_access_level",
    "has_full_access",
    "is_mentor",
    "has_mentorship_access",
    "upgrade_access_level",
    "set_access_level",
    # Navigator
    "ProgressNavigator",
    "CourseSnapshot",
    "LockKind",
    "LockReason",
    "NextLesson",
    "NavigationLesson",
    "NavigationModule",
    "sort_modules",
    "find_next_lesson",
    "is_module_locked",
    "lock_reason",
]
