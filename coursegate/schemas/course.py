"""
Course content schemas for coursegate.

Defines Pydantic models for published course content:
- Modules and the lessons inside them
- Exams and their questions
- YAML course definitions used to compile a course database
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


# -----------------------------------------------------------------------------
# Modules and lessons
# -----------------------------------------------------------------------------

class Module(BaseModel):
    """A top-level course unit. `order` defines the course sequence."""
    id: int
    title: str = ""
    order: Optional[int] = None    # None sorts after every ordered module
    description: Optional[str] = None

    @field_validator('title', mode='before')
    @classmethod
    def title_not_null(cls, v):
        return v or ""


class Lesson(BaseModel):
    """A video lesson inside exactly one module."""
    id: int
    module_id: int
    title: str = ""
    order: Optional[int] = None    # None sorts as 0
    video_url: Optional[str] = None

    @field_validator('title', mode='before')
    @classmethod
    def title_not_null(cls, v):
        return v or ""

    @property
    def sort_key(self) -> int:
        return self.order if self.order is not None else 0


# -----------------------------------------------------------------------------
# Exams
# -----------------------------------------------------------------------------

class Exam(BaseModel):
    """
    An exam for a module.

    Exams are replaced over time without migrating old results, so a module
    can own several exams. `active` marks the canonical one when set.
    """
    id: int
    module_id: Optional[int] = None
    title: str = ""
    active: Optional[bool] = None

    @field_validator('title', mode='before')
    @classmethod
    def title_not_null(cls, v):
        return v or ""


class ExamQuestion(BaseModel):
    """Multiple choice question; `correct_answer` is one of `options`."""
    id: int
    exam_id: int
    question: str
    options: list[str] = Field(..., min_length=2)
    correct_answer: str

    @field_validator('correct_answer')
    @classmethod
    def answer_in_options(cls, v, info):
        options = info.data.get('options')
        if options is not None and v not in options:
            raise ValueError('correct_answer must be one of the options')
        return v


# -----------------------------------------------------------------------------
# Course definitions (YAML source for scripts/01_compile_course.py)
# -----------------------------------------------------------------------------

class QuestionDefinition(BaseModel):
    question: str
    options: list[str] = Field(..., min_length=2)
    answer: str

    @field_validator('answer')
    @classmethod
    def answer_in_options(cls, v, info):
        options = info.data.get('options')
        if options is not None and v not in options:
            raise ValueError('answer must be one of the options')
        return v


class ExamDefinition(BaseModel):
    id: int
    title: str
    active: Optional[bool] = None
    questions: list[QuestionDefinition] = []


class LessonDefinition(BaseModel):
    id: int
    title: str
    order: Optional[int] = None
    video_url: Optional[str] = None


class ModuleDefinition(BaseModel):
    id: int
    title: str
    order: Optional[int] = None
    description: Optional[str] = None
    lessons: list[LessonDefinition] = []
    exams: list[ExamDefinition] = []


class CourseDefinition(BaseModel):
    """Full course: modules with their lessons and exams."""
    title: str
    modules: list[ModuleDefinition]

    @field_validator('modules')
    @classmethod
    def unique_ids(cls, v):
        module_ids = [m.id for m in v]
        if len(module_ids) != len(set(module_ids)):
            raise ValueError('module ids must be unique')
        lesson_ids = [l.id for m in v for l in m.lessons]
        if len(lesson_ids) != len(set(lesson_ids)):
            raise ValueError('lesson ids must be unique')
        exam_ids = [e.id for m in v for e in m.exams]
        if len(exam_ids) != len(set(exam_ids)):
            raise ValueError('exam ids must be unique')
        return v
