"""Shared fixtures: a small course in a temporary SQLite database."""

import pytest

from coursegate.classroom import CourseStore
from coursegate.schemas import AccessLevel, Exam, Lesson, Module, Student


@pytest.fixture
def store(tmp_path):
    return CourseStore(tmp_path / "course.db")


@pytest.fixture
def course_store(store):
    """
    Three modules in order 1..3.

    Module 1: lessons 11, 12, 13 and exam 100 (active, four questions)
    Module 2: lessons 21, 22 and exams 200 (retired, no questions) and 201
    Module 3: lesson 31, no exam
    """
    store.save_module(Module(id=1, title="Basics", order=1))
    store.save_module(Module(id=2, title="Risk", order=2))
    store.save_module(Module(id=3, title="Sessions", order=3))

    for lid, mid, order in [(11, 1, 1), (12, 1, 2), (13, 1, 3), (21, 2, 1), (22, 2, 2), (31, 3, 1)]:
        store.save_lesson(Lesson(id=lid, module_id=mid, title=f"Lesson {lid}", order=order))

    store.save_exam(Exam(id=100, module_id=1, title="Basics exam", active=True))
    store.add_exam_question(100, "2 + 2?", ["3", "4"], "4")
    store.add_exam_question(100, "Capital of France?", ["Paris", "Rome"], "Paris")
    store.add_exam_question(100, "Red + blue?", ["Purple", "Green"], "Purple")
    store.add_exam_question(100, "Ice is?", ["Solid", "Gas"], "Solid")

    store.save_exam(Exam(id=200, module_id=2, title="Risk exam v1"))
    store.save_exam(Exam(id=201, module_id=2, title="Risk exam v2"))
    store.add_exam_question(201, "Stop loss limits?", ["Loss", "Profit"], "Loss")

    store.save_student(Student(id="s1", email="s1@example.com", access_level=AccessLevel.FULL))
    store.save_student(Student(id="basic", email="basic@example.com", access_level=AccessLevel.BASIC))
    store.save_student(Student(id="mentor", email="mentor@example.com", access_level=AccessLevel.MENTOR))
    return store
