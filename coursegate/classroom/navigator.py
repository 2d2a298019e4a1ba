"""
Navigator - Progression through modules and lessons.

Provides:
- Next lesson to resume
- Lesson and module lock state, with the reason for a lock
- Canonical exam per module and exam eligibility
- Watch and exam-submission write paths that keep the snapshot current
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from coursegate.schemas import AccessLevel, Exam, ExamResult, Lesson, Module, StudentContext
from coursegate.utils.config import Settings

from .exam import ExamGrade, canonical_exam, grade_exam
from .gate import OPEN, ModuleGateStatus, resolve_gate_statuses
from .sequencer import (
    ModuleProgress,
    all_lessons_watched,
    compute_unlocked_lesson_ids,
    first_unwatched_lesson,
    module_progress,
    sort_lessons,
)
from .store import CourseStore, DataFetchError


logger = logging.getLogger(__name__)


class LockKind(str, Enum):
    UNLOCKED = "unlocked"
    ACCESS = "locked_by_access"
    EXAM = "locked_by_exam"
    UNAVAILABLE = "unavailable"   # gate could not be evaluated; treated as locked


@dataclass(frozen=True)
class LockReason:
    """Why a module is locked. Only EXAM carries the blocking module."""
    kind: LockKind
    previous_module: Optional[Module] = None

    @classmethod
    def unlocked(cls) -> "LockReason":
        return cls(LockKind.UNLOCKED)

    @classmethod
    def by_access(cls) -> "LockReason":
        return cls(LockKind.ACCESS)

    @classmethod
    def by_exam(cls, previous_module: Module) -> "LockReason":
        return cls(LockKind.EXAM, previous_module)

    @classmethod
    def unavailable(cls) -> "LockReason":
        return cls(LockKind.UNAVAILABLE)

    @property
    def is_locked(self) -> bool:
        return self.kind != LockKind.UNLOCKED


@dataclass
class NextLesson:
    module: Module
    lesson: Lesson


@dataclass
class NavigationLesson:
    lesson: Lesson
    unlocked: bool
    watched: bool


@dataclass
class NavigationModule:
    module: Module
    lock_reason: LockReason
    lessons: list[NavigationLesson]
    progress: ModuleProgress


@dataclass
class CourseSnapshot:
    """Everything one page view needs, fetched together."""
    modules: list[Module]
    lessons: list[Lesson]
    watched: set[int] = field(default_factory=set)
    gate_statuses: dict[int, ModuleGateStatus] = field(default_factory=dict)

    def lessons_for_module(self, module_id: int) -> list[Lesson]:
        return sort_lessons(l for l in self.lessons if l.module_id == module_id)


# -----------------------------------------------------------------------------
# Pure rules
# -----------------------------------------------------------------------------

def sort_modules(modules: Iterable[Module]) -> list[Module]:
    """Order ascending; modules without an order go last."""
    return sorted(modules, key=lambda m: (m.order is None, m.order or 0))


def find_next_lesson(modules: Iterable[Module], lessons: Iterable[Lesson], watched: set[int]) -> Optional[NextLesson]:
    """First unwatched lesson of the first module that has one, or None."""
    lessons = list(lessons)
    for module in sort_modules(modules):
        lesson = first_unwatched_lesson((l for l in lessons if l.module_id == module.id), watched)
        if lesson is not None:
            return NextLesson(module=module, lesson=lesson)
    return None


def is_module_locked(access_level: int, gate_status: ModuleGateStatus) -> bool:
    return access_level < AccessLevel.FULL or gate_status.is_locked_by_exam


def lock_reason(access_level: int, gate_status: ModuleGateStatus) -> LockReason:
    """Access outranks the exam gate."""
    if access_level < AccessLevel.FULL:
        return LockReason.by_access()
    if gate_status.is_locked_by_exam and gate_status.previous_module is not None:
        return LockReason.by_exam(gate_status.previous_module)
    return LockReason.unlocked()


# -----------------------------------------------------------------------------
# Navigator
# -----------------------------------------------------------------------------

class ProgressNavigator:
    """
    Navigate a course for one student.

    Combines CourseStore (content and ledgers) with the sequencing and gate
    rules. Call load() before querying; queries answer from the snapshot.
    """

    def __init__(self, store: CourseStore, student: StudentContext, settings: Optional[Settings] = None):
        """
        Initialize navigator.

        Args:
            store: CourseStore for content, watch and exam ledgers
            student: Student the course is evaluated for
            settings: Timeouts and worker counts (default: Settings())
        """
        self.store = store
        self.student = student
        self.settings = settings or Settings()
        self.snapshot: Optional[CourseSnapshot] = None

    @property
    def access_level(self) -> AccessLevel:
        return self.student.access_level

    def _require_snapshot(self) -> CourseSnapshot:
        if self.snapshot is None:
            self.snapshot = self.load()
        return self.snapshot

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _watched_ids(self, lessons: list[Lesson]) -> set[int]:
        if not self.student.student_id:
            return set()
        return self.store.get_watched_lesson_ids(self.student.student_id, [l.id for l in lessons])

    def _gate_statuses(self, modules: list[Module]) -> dict[int, ModuleGateStatus]:
        return resolve_gate_statuses(modules, self.student.student_id, self.access_level, self.store)

    def load(self) -> CourseSnapshot:
        """
        Fetch modules, lessons, watch records and gate statuses.

        Lessons and the exam gate load in parallel once modules are known;
        watch records follow the lessons. The timeout covers the whole load,
        not each read.

        Raises:
            DataFetchError: If any read fails or the load exceeds the timeout
        """
        timeout = self.settings.load_timeout_seconds
        deadline = time.monotonic() + timeout

        def remaining() -> float:
            return max(0.0, deadline - time.monotonic())

        executor = ThreadPoolExecutor(max_workers=self.settings.max_workers)
        try:
            modules = executor.submit(self.store.list_modules).result(timeout=remaining())
            module_ids = {m.id for m in modules}

            lessons_future = executor.submit(self.store.list_lessons, sorted(module_ids))
            gate_future = executor.submit(self._gate_statuses, modules)

            lessons = lessons_future.result(timeout=remaining())
            watched = executor.submit(self._watched_ids, lessons).result(timeout=remaining())
            gate_statuses = gate_future.result(timeout=remaining())
        except FutureTimeoutError as e:
            logger.error(f"Course load timed out after {timeout}s")
            raise DataFetchError(f"Course load timed out after {timeout}s") from e
        finally:
            # reads are abandoned, not awaited; they never write
            executor.shutdown(wait=False, cancel_futures=True)

        orphans = [l.id for l in lessons if l.module_id not in module_ids]
        if orphans:
            logger.debug(f"Ignoring lessons with unknown module: {orphans}")
            lessons = [l for l in lessons if l.module_id in module_ids]

        self.snapshot = CourseSnapshot(
            modules=sort_modules(modules),
            lessons=lessons,
            watched=watched,
            gate_statuses=gate_statuses,
        )
        logger.debug(f"Loaded {len(modules)} modules, {len(lessons)} lessons, "
                     f"{len(watched)} watched for student {self.student.student_id}")
        return self.snapshot

    def refresh_gate(self):
        """Re-resolve exam gates, e.g. after an exam submission."""
        snapshot = self._require_snapshot()
        snapshot.gate_statuses = self._gate_statuses(snapshot.modules)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_module(self, module_id: int) -> Optional[Module]:
        for module in self._require_snapshot().modules:
            if module.id == module_id:
                return module
        return None

    def get_gate_status(self, module_id: int) -> ModuleGateStatus:
        return self._require_snapshot().gate_statuses.get(module_id, OPEN)

    def is_module_locked(self, module_id: int) -> bool:
        return is_module_locked(self.access_level, self.get_gate_status(module_id))

    def get_lock_reason(self, module_id: int) -> LockReason:
        return lock_reason(self.access_level, self.get_gate_status(module_id))

    def get_module_lock_reasons(self) -> dict[int, LockReason]:
        """
        Lock reason for every module.

        A failed fetch locks everything with an UNAVAILABLE reason so the
        UI can offer a retry instead of showing unlocked content.
        """
        try:
            snapshot = self._require_snapshot()
        except DataFetchError as e:
            logger.error(f"Could not evaluate module gates: {e}")
            return {m.id: LockReason.unavailable() for m in self._known_modules()}
        return {m.id: self.get_lock_reason(m.id) for m in snapshot.modules}

    def _known_modules(self) -> list[Module]:
        """Modules to report as unavailable; empty when modules are unreadable too."""
        if self.snapshot is not None:
            return self.snapshot.modules
        try:
            return sort_modules(self.store.list_modules())
        except DataFetchError:
            return []

    def get_unlocked_lesson_ids(self, module_id: int) -> set[int]:
        snapshot = self._require_snapshot()
        return compute_unlocked_lesson_ids(snapshot.lessons_for_module(module_id), snapshot.watched)

    def is_lesson_unlocked(self, lesson_id: int) -> bool:
        """Unlocked within its module, and the module itself is not locked."""
        snapshot = self._require_snapshot()
        lesson = next((l for l in snapshot.lessons if l.id == lesson_id), None)
        if lesson is None:
            return False
        if self.is_module_locked(lesson.module_id):
            return False
        return lesson_id in self.get_unlocked_lesson_ids(lesson.module_id)

    def is_lesson_watched(self, lesson_id: int) -> bool:
        return lesson_id in self._require_snapshot().watched

    def get_next_lesson(self) -> Optional[NextLesson]:
        snapshot = self._require_snapshot()
        return find_next_lesson(snapshot.modules, snapshot.lessons, snapshot.watched)

    def get_next_module(self, module_id: int) -> Optional[Module]:
        """The module after this one in course order."""
        modules = self._require_snapshot().modules
        ids = [m.id for m in modules]
        if module_id not in ids:
            return None
        idx = ids.index(module_id)
        return modules[idx + 1] if idx + 1 < len(modules) else None

    def get_module_progress(self, module_id: int) -> ModuleProgress:
        snapshot = self._require_snapshot()
        return module_progress(module_id, snapshot.lessons, snapshot.watched)

    def get_navigation_tree(self) -> list[NavigationModule]:
        """Modules in order, each with its lock reason and annotated lessons."""
        snapshot = self._require_snapshot()
        reasons = self.get_module_lock_reasons()
        tree = []
        for module in snapshot.modules:
            reason = reasons.get(module.id, LockReason.unavailable())
            unlocked_ids = set() if reason.is_locked else self.get_unlocked_lesson_ids(module.id)
            lessons = [
                NavigationLesson(
                    lesson=lesson,
                    unlocked=lesson.id in unlocked_ids,
                    watched=lesson.id in snapshot.watched,
                )
                for lesson in snapshot.lessons_for_module(module.id)
            ]
            tree.append(NavigationModule(
                module=module,
                lock_reason=reason,
                lessons=lessons,
                progress=self.get_module_progress(module.id),
            ))
        return tree

    # -------------------------------------------------------------------------
    # Exams
    # -------------------------------------------------------------------------

    def canonical_exam_for_module(self, module_id: int) -> Optional[Exam]:
        return canonical_exam(self.store.list_exams([module_id]), module_id)

    def can_take_exam(self, module_id: int) -> bool:
        """Full access, module not locked, and every lesson of the module watched."""
        if self.is_module_locked(module_id):
            return False
        snapshot = self._require_snapshot()
        return all_lessons_watched(snapshot.lessons_for_module(module_id), snapshot.watched)

    def submit_exam(self, exam_id: int, answers: dict[int, str]) -> tuple[ExamGrade, ExamResult]:
        """
        Grade an attempt and append it to the exam result ledger.

        Raises:
            LookupError: If the exam does not exist
            PermissionError: If the student may not take the exam
            ValueError: If the exam has no questions
            DataWriteError: If the attempt could not be stored
        """
        student_id = self._require_student_id()
        exam = self.store.get_exam(exam_id)
        if exam is None:
            raise LookupError(f"Exam not found: {exam_id}")
        if exam.module_id is None or not self.can_take_exam(exam.module_id):
            raise PermissionError(f"Exam {exam_id} is not available to student {student_id}")

        grade = grade_exam(self.store.list_exam_questions(exam_id), answers)
        result = self.store.insert_exam_result(student_id, exam_id, grade.score, grade.passed)
        try:
            self.refresh_gate()
        except DataFetchError as e:
            # the attempt is stored; the next query reloads the gates
            logger.warning(f"Gate refresh failed after exam {exam_id}: {e}")
            self.snapshot = None
        return grade, result

    # -------------------------------------------------------------------------
    # Lesson actions
    # -------------------------------------------------------------------------

    def _require_student_id(self) -> str:
        if not self.student.student_id:
            raise PermissionError("No signed-in student")
        return self.student.student_id

    def mark_lesson_watched(self, lesson_id: int, watched_at: Optional[datetime] = None) -> Optional[NextLesson]:
        """
        Record that a lesson's video ended.

        Safe to repeat. The lesson is merged into the local snapshot so the
        following lesson unlocks without waiting for a re-fetch.

        Returns:
            The next lesson to resume, or None if the course is complete
        """
        student_id = self._require_student_id()
        self.store.upsert_watch_record(student_id, lesson_id, True, watched_at)
        snapshot = self._require_snapshot()
        snapshot.watched.add(lesson_id)
        return self.get_next_lesson()
