"""
Module gate resolver.

A module is locked by exam when the module directly before it (order - 1)
has an exam the student has not passed. Gating is one hop back only. Access
level is checked by the caller; below full access no module reports an exam
lock, since the lock reason is access.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from coursegate.schemas import AccessLevel, Module

from .store import CourseReader


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleGateStatus:
    is_locked_by_exam: bool = False
    previous_module: Optional[Module] = None


OPEN = ModuleGateStatus()


def previous_modules_by_order(modules: Iterable[Module]) -> dict[int, Module]:
    """
    Map module id to the module at order - 1.

    Modules without an order, and the first module, have no entry.
    """
    modules = list(modules)
    by_order = {m.order: m for m in modules if m.order is not None}
    if not by_order:
        return {}
    min_order = min(by_order)

    previous = {}
    for module in modules:
        if module.order is None or module.order <= min_order:
            continue
        prev = by_order.get(module.order - 1)
        if prev is not None:
            previous[module.id] = prev
    return previous


def _exam_ids_by_module(reader: CourseReader, module_ids: list[int]) -> dict[int, list[int]]:
    exam_ids: dict[int, list[int]] = {}
    for exam in reader.list_exams(module_ids):
        if exam.module_id is None:
            logger.debug(f"Skipping exam {exam.id} without module")
            continue
        exam_ids.setdefault(exam.module_id, []).append(exam.id)
    return exam_ids


def _passed_exam_ids(reader: CourseReader, student_id: str, exam_ids: list[int]) -> set[int]:
    if not exam_ids:
        return set()
    return {r.exam_id for r in reader.list_passed_exam_results(student_id, exam_ids) if r.passed}


def resolve_gate_statuses(
    modules: Iterable[Module],
    student_id: Optional[str],
    access_level: int,
    reader: CourseReader,
) -> dict[int, ModuleGateStatus]:
    """
    Resolve the exam gate of every module.

    Exams and passed results are fetched in one batch each. Any historical
    exam of the previous module counts: passing a retired version unlocks.

    Args:
        modules: All modules of the course
        student_id: Student to evaluate, or None when signed out
        access_level: The student's access level
        reader: Store to fetch exams and passed results from

    Returns:
        Dict of module id to ModuleGateStatus

    Raises:
        DataFetchError: If the store cannot be read. Never answered with
            an unlocked default.
    """
    modules = list(modules)
    if not modules:
        return {}

    if not student_id or access_level < AccessLevel.FULL:
        return {m.id: OPEN for m in modules}

    previous_by_id = previous_modules_by_order(modules)
    previous_ids = sorted({m.id for m in previous_by_id.values()})

    exam_ids_by_module = _exam_ids_by_module(reader, previous_ids) if previous_ids else {}
    all_exam_ids = sorted({eid for ids in exam_ids_by_module.values() for eid in ids})
    passed = _passed_exam_ids(reader, student_id, all_exam_ids)

    statuses = {}
    for module in modules:
        previous = previous_by_id.get(module.id)
        if previous is None:
            statuses[module.id] = OPEN
            continue

        exam_ids = exam_ids_by_module.get(previous.id, [])
        if not exam_ids:
            # a module without an exam cannot block progression
            statuses[module.id] = ModuleGateStatus(False, previous)
            continue

        has_passed = any(eid in passed for eid in exam_ids)
        statuses[module.id] = ModuleGateStatus(not has_passed, previous)

    return statuses


def resolve_gate_status(
    modules: Iterable[Module],
    module_id: int,
    student_id: Optional[str],
    access_level: int,
    reader: CourseReader,
) -> ModuleGateStatus:
    """Gate status of a single module; unknown ids are open."""
    statuses = resolve_gate_statuses(modules, student_id, access_level, reader)
    return statuses.get(module_id, OPEN)


def has_passed_exam_for_module(student_id: Optional[str], module_id: int, reader: CourseReader) -> bool:
    """True once any attempt at any exam of the module has passed."""
    if not student_id:
        return False
    exam_ids = _exam_ids_by_module(reader, [module_id]).get(module_id, [])
    return bool(_passed_exam_ids(reader, student_id, exam_ids))
