"""
Course definition loader for coursegate.

Loads YAML course definitions and writes them into a course database.
"""

from pathlib import Path

import yaml

from coursegate.classroom.store import CourseStore
from coursegate.schemas import CourseDefinition, Exam, Lesson, Module


def load_course(path: Path) -> CourseDefinition:
    """
    Load a course definition from YAML.

    Args:
        path: Path to the .yaml file

    Returns:
        Validated CourseDefinition

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If the structure is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Course definition not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return CourseDefinition.model_validate(yaml.safe_load(f))


def write_course(course: CourseDefinition, store: CourseStore) -> dict[str, int]:
    """Write every module, lesson, exam and question into the store."""
    for mod in course.modules:
        store.save_module(Module(id=mod.id, title=mod.title, order=mod.order, description=mod.description))
        for lesson in mod.lessons:
            store.save_lesson(Lesson(
                id=lesson.id,
                module_id=mod.id,
                title=lesson.title,
                order=lesson.order,
                video_url=lesson.video_url,
            ))
        for exam in mod.exams:
            store.save_exam(Exam(id=exam.id, module_id=mod.id, title=exam.title, active=exam.active))
            store.clear_exam_questions(exam.id)
            for q in exam.questions:
                store.add_exam_question(exam.id, q.question, q.options, q.answer)
    return store.get_counts()
