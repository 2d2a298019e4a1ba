"""
CourseStore - Course content and student ledgers in a SQLite database.

Provides:
- Read access to modules, lessons, exams and exam questions
- The lesson watch ledger (upsert on student + lesson)
- The exam result ledger (append-only)
- Student records and access levels
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol

from coursegate.schemas import (
    AccessLevel,
    Exam,
    ExamQuestion,
    ExamResult,
    Lesson,
    Module,
    Student,
    WatchRecord,
)


logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS modules (
    id INTEGER PRIMARY KEY,
    title TEXT,
    description TEXT,
    position INTEGER
);

CREATE TABLE IF NOT EXISTS lessons (
    id INTEGER PRIMARY KEY,
    module_id INTEGER NOT NULL,
    title TEXT,
    position INTEGER,
    video_url TEXT
);

CREATE TABLE IF NOT EXISTS exams (
    id INTEGER PRIMARY KEY,
    module_id INTEGER,
    title TEXT,
    active INTEGER
);

CREATE TABLE IF NOT EXISTS exam_questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    exam_id INTEGER NOT NULL,
    question TEXT NOT NULL,
    options JSON NOT NULL DEFAULT '[]',
    correct_answer TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS progress (
    student_id TEXT NOT NULL,
    lesson_id INTEGER NOT NULL,
    watched INTEGER NOT NULL DEFAULT 0,
    watched_at TEXT,
    PRIMARY KEY (student_id, lesson_id)
);

CREATE TABLE IF NOT EXISTS exam_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    student_id TEXT NOT NULL,
    exam_id INTEGER NOT NULL,
    score INTEGER NOT NULL,
    passed INTEGER NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS students (
    id TEXT PRIMARY KEY,
    email TEXT,
    auth_user_id TEXT UNIQUE,
    access_level INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_lessons_module ON lessons(module_id);
CREATE INDEX IF NOT EXISTS idx_exams_module ON exams(module_id);
CREATE INDEX IF NOT EXISTS idx_exam_results_student ON exam_results(student_id, exam_id);
"""


class StoreError(Exception):
    """Base class for course store failures."""


class DataFetchError(StoreError):
    """A read against the store failed or timed out."""


class DataWriteError(StoreError):
    """A write against the store failed."""


class CourseReader(Protocol):
    """Read interface the progression gate depends on."""

    def list_modules(self) -> list[Module]: ...

    def list_lessons(self, module_ids: Iterable[int]) -> list[Lesson]: ...

    def list_watch_records(self, student_id: str, lesson_ids: Iterable[int]) -> list[WatchRecord]: ...

    def list_exams(self, module_ids: Iterable[int]) -> list[Exam]: ...

    def list_passed_exam_results(self, student_id: str, exam_ids: Iterable[int]) -> list[ExamResult]: ...


def _placeholders(values: list) -> str:
    return ",".join("?" for _ in values)


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class CourseStore:
    """
    SQLite-backed course store.

    Every method opens its own connection, so one store can be shared by the
    worker threads that load a page snapshot. Reads raise DataFetchError and
    writes raise DataWriteError; neither is swallowed here.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize store, creating the database file and tables if needed.

        Args:
            db_path: Path to the course database
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _reading(self, what: str) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
        # malformed rows fail model validation (pydantic.ValidationError is a ValueError)
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Error fetching {what}: {e}")
            raise DataFetchError(f"Could not fetch {what}") from e
        finally:
            conn.close()

    @contextmanager
    def _writing(self, what: str) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error writing {what}: {e}")
            raise DataWriteError(f"Could not write {what}") from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    @staticmethod
    def _module(row: sqlite3.Row) -> Module:
        return Module(
            id=row["id"],
            title=row["title"],
            order=row["position"],
            description=row["description"],
        )

    @staticmethod
    def _lesson(row: sqlite3.Row) -> Lesson:
        return Lesson(
            id=row["id"],
            module_id=row["module_id"],
            title=row["title"],
            order=row["position"],
            video_url=row["video_url"],
        )

    @staticmethod
    def _exam(row: sqlite3.Row) -> Exam:
        return Exam(
            id=row["id"],
            module_id=row["module_id"],
            title=row["title"],
            active=None if row["active"] is None else bool(row["active"]),
        )

    @staticmethod
    def _exam_result(row: sqlite3.Row) -> ExamResult:
        return ExamResult(
            id=row["id"],
            student_id=row["student_id"],
            exam_id=row["exam_id"],
            score=row["score"],
            passed=bool(row["passed"]),
            created_at=_parse_time(row["created_at"]),
        )

    @staticmethod
    def _student(row: sqlite3.Row) -> Student:
        return Student(
            id=row["id"],
            email=row["email"],
            auth_user_id=row["auth_user_id"],
            access_level=AccessLevel(row["access_level"] or AccessLevel.BASIC),
        )

    # -------------------------------------------------------------------------
    # Modules and lessons
    # -------------------------------------------------------------------------

    def list_modules(self) -> list[Module]:
        """Get all modules; ordered modules first, by order."""
        with self._reading("modules") as conn:
            cursor = conn.execute(
                """SELECT id, title, description, position FROM modules
                   ORDER BY position IS NULL, position, id"""
            )
            return [self._module(row) for row in cursor.fetchall()]

    def get_module(self, module_id: int) -> Optional[Module]:
        with self._reading("module") as conn:
            row = conn.execute(
                "SELECT id, title, description, position FROM modules WHERE id = ?",
                (module_id,)
            ).fetchone()
            return self._module(row) if row else None

    def list_lessons(self, module_ids: Iterable[int]) -> list[Lesson]:
        """Get the lessons of the given modules (unsorted, like the raw table)."""
        ids = list(module_ids)
        if not ids:
            return []
        with self._reading("lessons") as conn:
            cursor = conn.execute(
                f"""SELECT id, module_id, title, position, video_url FROM lessons
                    WHERE module_id IN ({_placeholders(ids)})""",
                ids
            )
            return [self._lesson(row) for row in cursor.fetchall()]

    def get_lesson(self, lesson_id: int) -> Optional[Lesson]:
        with self._reading("lesson") as conn:
            row = conn.execute(
                "SELECT id, module_id, title, position, video_url FROM lessons WHERE id = ?",
                (lesson_id,)
            ).fetchone()
            return self._lesson(row) if row else None

    # -------------------------------------------------------------------------
    # Exams
    # -------------------------------------------------------------------------

    def list_exams(self, module_ids: Iterable[int]) -> list[Exam]:
        """Get every exam (all versions) belonging to the given modules."""
        ids = list(module_ids)
        if not ids:
            return []
        with self._reading("exams") as conn:
            cursor = conn.execute(
                f"""SELECT id, module_id, title, active FROM exams
                    WHERE module_id IN ({_placeholders(ids)})
                    ORDER BY id""",
                ids
            )
            return [self._exam(row) for row in cursor.fetchall()]

    def get_exam(self, exam_id: int) -> Optional[Exam]:
        with self._reading("exam") as conn:
            row = conn.execute(
                "SELECT id, module_id, title, active FROM exams WHERE id = ?",
                (exam_id,)
            ).fetchone()
            return self._exam(row) if row else None

    def list_exam_questions(self, exam_id: int) -> list[ExamQuestion]:
        """Get the questions of an exam, ordered by id."""
        with self._reading("exam questions") as conn:
            cursor = conn.execute(
                """SELECT id, exam_id, question, options, correct_answer
                   FROM exam_questions WHERE exam_id = ? ORDER BY id""",
                (exam_id,)
            )
            return [
                ExamQuestion(
                    id=row["id"],
                    exam_id=row["exam_id"],
                    question=row["question"],
                    options=json.loads(row["options"] or "[]"),
                    correct_answer=row["correct_answer"],
                )
                for row in cursor.fetchall()
            ]

    # -------------------------------------------------------------------------
    # Watch ledger
    # -------------------------------------------------------------------------

    def list_watch_records(self, student_id: str, lesson_ids: Iterable[int]) -> list[WatchRecord]:
        """Get the watched records of a student, restricted to the given lessons."""
        ids = list(lesson_ids)
        if not student_id or not ids:
            return []
        with self._reading("watch records") as conn:
            cursor = conn.execute(
                f"""SELECT student_id, lesson_id, watched, watched_at FROM progress
                    WHERE student_id = ? AND watched = 1
                      AND lesson_id IN ({_placeholders(ids)})""",
                [student_id, *ids]
            )
            return [
                WatchRecord(
                    student_id=row["student_id"],
                    lesson_id=row["lesson_id"],
                    watched=bool(row["watched"]),
                    watched_at=_parse_time(row["watched_at"]),
                )
                for row in cursor.fetchall()
            ]

    def get_watched_lesson_ids(self, student_id: str, lesson_ids: Iterable[int]) -> set[int]:
        return {r.lesson_id for r in self.list_watch_records(student_id, lesson_ids)}

    def upsert_watch_record(
        self,
        student_id: str,
        lesson_id: int,
        watched: bool = True,
        watched_at: Optional[datetime] = None,
    ):
        """Mark a lesson watched. Repeating the call updates the same row."""
        watched_at = watched_at or datetime.now()
        with self._writing("watch record") as conn:
            conn.execute(
                """INSERT INTO progress (student_id, lesson_id, watched, watched_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(student_id, lesson_id) DO UPDATE SET
                     watched = excluded.watched,
                     watched_at = excluded.watched_at""",
                (student_id, lesson_id, int(watched), watched_at.isoformat())
            )

    def count_watch_records(self, student_id: str) -> int:
        with self._reading("watch records") as conn:
            return conn.execute(
                "SELECT COUNT(*) AS count FROM progress WHERE student_id = ?",
                (student_id,)
            ).fetchone()["count"]

    # -------------------------------------------------------------------------
    # Exam result ledger
    # -------------------------------------------------------------------------

    def list_passed_exam_results(self, student_id: str, exam_ids: Iterable[int]) -> list[ExamResult]:
        """Get passed attempts of a student for the given exams."""
        ids = list(exam_ids)
        if not student_id or not ids:
            return []
        with self._reading("exam results") as conn:
            cursor = conn.execute(
                f"""SELECT id, student_id, exam_id, score, passed, created_at
                    FROM exam_results
                    WHERE student_id = ? AND passed = 1
                      AND exam_id IN ({_placeholders(ids)})""",
                [student_id, *ids]
            )
            return [self._exam_result(row) for row in cursor.fetchall()]

    def list_exam_results(self, student_id: str) -> list[ExamResult]:
        """Get every attempt of a student, newest first."""
        with self._reading("exam results") as conn:
            cursor = conn.execute(
                """SELECT id, student_id, exam_id, score, passed, created_at
                   FROM exam_results WHERE student_id = ?
                   ORDER BY created_at DESC, id DESC""",
                (student_id,)
            )
            return [self._exam_result(row) for row in cursor.fetchall()]

    def insert_exam_result(self, student_id: str, exam_id: int, score: int, passed: bool) -> ExamResult:
        """Append an exam attempt."""
        now = datetime.now()
        with self._writing("exam result") as conn:
            cursor = conn.execute(
                """INSERT INTO exam_results (student_id, exam_id, score, passed, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (student_id, exam_id, score, int(passed), now.isoformat())
            )
            result_id = cursor.lastrowid
        logger.info(f"Stored exam result {result_id}: student={student_id} exam={exam_id} "
                    f"score={score} passed={passed}")
        return ExamResult(
            id=result_id,
            student_id=student_id,
            exam_id=exam_id,
            score=score,
            passed=passed,
            created_at=now,
        )

    # -------------------------------------------------------------------------
    # Students
    # -------------------------------------------------------------------------

    def get_student(self, student_id: str) -> Optional[Student]:
        with self._reading("student") as conn:
            row = conn.execute(
                "SELECT id, email, auth_user_id, access_level FROM students WHERE id = ?",
                (student_id,)
            ).fetchone()
            return self._student(row) if row else None

    def get_student_by_auth_user_id(self, auth_user_id: str) -> Optional[Student]:
        with self._reading("student") as conn:
            row = conn.execute(
                "SELECT id, email, auth_user_id, access_level FROM students WHERE auth_user_id = ?",
                (auth_user_id,)
            ).fetchone()
            return self._student(row) if row else None

    def list_students(self) -> list[Student]:
        with self._reading("students") as conn:
            cursor = conn.execute(
                "SELECT id, email, auth_user_id, access_level FROM students ORDER BY email, id"
            )
            return [self._student(row) for row in cursor.fetchall()]

    def save_student(self, student: Student):
        with self._writing("student") as conn:
            conn.execute(
                """INSERT INTO students (id, email, auth_user_id, access_level)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     email = excluded.email,
                     auth_user_id = excluded.auth_user_id,
                     access_level = excluded.access_level""",
                (student.id, student.email, student.auth_user_id, int(student.access_level))
            )

    def update_access_level(self, student_id: str, level: AccessLevel) -> bool:
        """Set a student's access level. Returns False if the student is unknown."""
        with self._writing("access level") as conn:
            cursor = conn.execute(
                "UPDATE students SET access_level = ? WHERE id = ?",
                (int(level), student_id)
            )
            return cursor.rowcount > 0

    # -------------------------------------------------------------------------
    # Content authoring (used by scripts/01_compile_course.py)
    # -------------------------------------------------------------------------

    def save_module(self, module: Module):
        with self._writing("module") as conn:
            conn.execute(
                """INSERT OR REPLACE INTO modules (id, title, description, position)
                   VALUES (?, ?, ?, ?)""",
                (module.id, module.title, module.description, module.order)
            )

    def save_lesson(self, lesson: Lesson):
        with self._writing("lesson") as conn:
            conn.execute(
                """INSERT OR REPLACE INTO lessons (id, module_id, title, position, video_url)
                   VALUES (?, ?, ?, ?, ?)""",
                (lesson.id, lesson.module_id, lesson.title, lesson.order, lesson.video_url)
            )

    def save_exam(self, exam: Exam):
        with self._writing("exam") as conn:
            conn.execute(
                "INSERT OR REPLACE INTO exams (id, module_id, title, active) VALUES (?, ?, ?, ?)",
                (exam.id, exam.module_id, exam.title,
                 None if exam.active is None else int(exam.active))
            )

    def clear_exam_questions(self, exam_id: int):
        with self._writing("exam questions") as conn:
            conn.execute("DELETE FROM exam_questions WHERE exam_id = ?", (exam_id,))

    def add_exam_question(self, exam_id: int, question: str, options: list[str], correct_answer: str) -> int:
        with self._writing("exam question") as conn:
            cursor = conn.execute(
                """INSERT INTO exam_questions (exam_id, question, options, correct_answer)
                   VALUES (?, ?, ?, ?)""",
                (exam_id, question, json.dumps(options, ensure_ascii=False), correct_answer)
            )
            return cursor.lastrowid

    def get_counts(self) -> dict[str, int]:
        """Row counts per content table."""
        counts = {}
        with self._reading("table counts") as conn:
            for table in ("modules", "lessons", "exams", "exam_questions"):
                counts[table] = conn.execute(f"SELECT COUNT(*) AS count FROM {table}").fetchone()["count"]
        return counts

    def find_integrity_issues(self) -> list[str]:
        """Report orphaned lessons/exams, duplicate module orders and empty exams."""
        issues = []
        with self._reading("integrity checks") as conn:
            for row in conn.execute(
                """SELECT l.id, l.module_id FROM lessons l
                   LEFT JOIN modules m ON l.module_id = m.id WHERE m.id IS NULL"""
            ):
                issues.append(f"Lesson {row['id']} references unknown module {row['module_id']}")
            for row in conn.execute(
                """SELECT e.id, e.module_id FROM exams e
                   LEFT JOIN modules m ON e.module_id = m.id WHERE m.id IS NULL"""
            ):
                issues.append(f"Exam {row['id']} references unknown module {row['module_id']}")
            for row in conn.execute(
                """SELECT position, COUNT(*) AS count FROM modules
                   WHERE position IS NOT NULL GROUP BY position HAVING count > 1"""
            ):
                issues.append(f"{row['count']} modules share order {row['position']}")
            for row in conn.execute(
                """SELECT e.id FROM exams e
                   LEFT JOIN exam_questions q ON q.exam_id = e.id
                   GROUP BY e.id HAVING COUNT(q.id) = 0"""
            ):
                issues.append(f"Exam {row['id']} has no questions")
        return issues
