"""
coursegate Schemas - Pydantic models for the course platform.

This module exports all schema classes for:
- Course: modules, lessons, exams, exam questions, course definitions
- Progress: access levels, students, watch records, exam results
"""

# Course schemas
from .course import (
    Module,
    Lesson,
    Exam,
    ExamQuestion,
    QuestionDefinition,
    ExamDefinition,
    LessonDefinition,
    ModuleDefinition,
    CourseDefinition,
)

# Progress schemas
from .progress import (
    AccessLevel,
    Student,
    StudentContext,
    WatchRecord,
    ExamResult,
)

__all__ = [
    # Course
    'Module',
    'Lesson',
    'Exam',
    'ExamQuestion',
    'QuestionDefinition',
    'ExamDefinition',
    'LessonDefinition',
    'ModuleDefinition',
    'CourseDefinition',
    # Progress
    'AccessLevel',
    'Student',
    'StudentContext',
    'WatchRecord',
    'ExamResult',
]
