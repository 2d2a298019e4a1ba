"""
Progress tracking schemas for coursegate.

Defines Pydantic models for per-student state:
- Access tiers and the student record
- Watch records (lesson watch ledger)
- Exam results (exam result ledger)
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import IntEnum


class AccessLevel(IntEnum):
    BASIC = 1    # no video or exam access
    FULL = 2
    MENTOR = 3   # full access plus authoring and admin


class Student(BaseModel):
    id: str
    access_level: AccessLevel = AccessLevel.BASIC
    auth_user_id: Optional[str] = None
    email: Optional[str] = None


class StudentContext(BaseModel):
    """Who the gate is evaluated for. Passed explicitly, never cached globally."""
    student_id: Optional[str] = None
    access_level: AccessLevel = AccessLevel.BASIC

    @classmethod
    def from_student(cls, student: Optional[Student]) -> "StudentContext":
        if student is None:
            return cls()
        return cls(student_id=student.id, access_level=student.access_level)


class WatchRecord(BaseModel):
    """One row per (student_id, lesson_id); rewatching updates it in place."""
    student_id: str
    lesson_id: int
    watched: bool = True
    watched_at: Optional[datetime] = None


class ExamResult(BaseModel):
    """One exam attempt. Attempts are appended, never replaced."""
    id: int
    student_id: str
    exam_id: int
    score: int
    passed: bool
    created_at: Optional[datetime] = None
