"""Tests for the module gate resolver."""

import pytest

from coursegate.classroom import (
    DataFetchError,
    ModuleGateStatus,
    has_passed_exam_for_module,
    previous_modules_by_order,
    resolve_gate_status,
    resolve_gate_statuses,
)
from coursegate.schemas import AccessLevel, Exam, ExamResult, Module


class FakeReader:
    """In-memory reader that records each call."""

    def __init__(self, exams=(), results=(), fail=False):
        self.exams = list(exams)
        self.results = list(results)
        self.fail = fail
        self.calls = []

    def list_exams(self, module_ids):
        module_ids = list(module_ids)
        self.calls.append(("list_exams", module_ids))
        if self.fail:
            raise DataFetchError("store unavailable")
        return [e for e in self.exams if e.module_id in module_ids]

    def list_passed_exam_results(self, student_id, exam_ids):
        exam_ids = list(exam_ids)
        self.calls.append(("list_passed_exam_results", exam_ids))
        return [r for r in self.results
                if r.student_id == student_id and r.exam_id in exam_ids and r.passed]


def result(exam_id, passed, rid=1, student_id="s1"):
    return ExamResult(id=rid, student_id=student_id, exam_id=exam_id, score=1, passed=passed)


MODULES = [
    Module(id=1, title="One", order=1),
    Module(id=2, title="Two", order=2),
    Module(id=3, title="Three", order=3),
]


class TestPreviousModulesByOrder:

    def test_one_hop_back(self):
        previous = previous_modules_by_order(MODULES)
        assert previous[2].id == 1
        assert previous[3].id == 2
        assert 1 not in previous

    def test_unordered_and_gaps(self):
        modules = [
            Module(id=1, order=1),
            Module(id=2, order=None),
            Module(id=3, order=3),   # no module at order 2
        ]
        assert previous_modules_by_order(modules) == {}

    def test_first_module_not_at_one(self):
        modules = [Module(id=7, order=5), Module(id=8, order=6)]
        previous = previous_modules_by_order(modules)
        assert 7 not in previous
        assert previous[8].id == 7


class TestResolveGateStatuses:

    def test_passed_after_failed_attempt_unlocks(self):
        reader = FakeReader(
            exams=[Exam(id=10, module_id=1)],
            results=[result(10, False, rid=1), result(10, True, rid=2)],
        )
        statuses = resolve_gate_statuses(MODULES[:2], "s1", AccessLevel.FULL, reader)
        assert statuses[2].is_locked_by_exam is False
        assert statuses[2].previous_module.id == 1

    def test_pass_stays_after_later_failures(self):
        reader = FakeReader(
            exams=[Exam(id=10, module_id=1)],
            results=[result(10, True, rid=1), result(10, False, rid=2), result(10, False, rid=3)],
        )
        statuses = resolve_gate_statuses(MODULES[:2], "s1", AccessLevel.FULL, reader)
        assert statuses[2].is_locked_by_exam is False

    def test_unpassed_exam_locks_next_module(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)], results=[result(10, False)])
        statuses = resolve_gate_statuses(MODULES, "s1", AccessLevel.FULL, reader)
        assert statuses[1] == ModuleGateStatus(False, None)
        assert statuses[2].is_locked_by_exam is True
        assert statuses[2].previous_module.title == "One"

    def test_module_without_exam_does_not_block(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)], results=[result(10, True)])
        statuses = resolve_gate_statuses(MODULES, "s1", AccessLevel.FULL, reader)
        # module 2 has no exam, so module 3 is open
        assert statuses[3].is_locked_by_exam is False
        assert statuses[3].previous_module.id == 2

    def test_gating_is_local(self):
        exams = [Exam(id=10, module_id=1), Exam(id=20, module_id=2)]
        passed_two = [result(20, True)]

        without_one = resolve_gate_statuses(MODULES, "s1", AccessLevel.FULL, FakeReader(exams, passed_two))
        with_one = resolve_gate_statuses(
            MODULES, "s1", AccessLevel.FULL, FakeReader(exams, passed_two + [result(10, True, rid=2)])
        )
        assert without_one[3].is_locked_by_exam is False
        assert with_one[3].is_locked_by_exam is False
        assert without_one[2].is_locked_by_exam is True

    def test_retired_exam_version_counts(self):
        reader = FakeReader(
            exams=[Exam(id=10, module_id=1), Exam(id=11, module_id=1, active=True)],
            results=[result(10, True)],
        )
        statuses = resolve_gate_statuses(MODULES[:2], "s1", AccessLevel.FULL, reader)
        assert statuses[2].is_locked_by_exam is False

    @pytest.mark.parametrize("level", [AccessLevel.BASIC, 0])
    def test_low_access_never_reports_exam_lock(self, level):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)])
        statuses = resolve_gate_statuses(MODULES, "s1", level, reader)
        assert all(s == ModuleGateStatus(False, None) for s in statuses.values())
        assert reader.calls == []

    def test_no_student(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)])
        statuses = resolve_gate_statuses(MODULES, None, AccessLevel.MENTOR, reader)
        assert set(statuses) == {1, 2, 3}
        assert not any(s.is_locked_by_exam for s in statuses.values())

    def test_empty_modules(self):
        assert resolve_gate_statuses([], "s1", AccessLevel.FULL, FakeReader()) == {}

    def test_fetches_are_batched(self):
        modules = [Module(id=i, order=i) for i in range(1, 8)]
        exams = [Exam(id=100 + i, module_id=i) for i in range(1, 8)]
        reader = FakeReader(exams=exams)
        resolve_gate_statuses(modules, "s1", AccessLevel.FULL, reader)

        names = [name for name, _ in reader.calls]
        assert names == ["list_exams", "list_passed_exam_results"]
        assert reader.calls[0][1] == [1, 2, 3, 4, 5, 6]

    def test_no_exams_skips_result_fetch(self):
        reader = FakeReader()
        statuses = resolve_gate_statuses(MODULES, "s1", AccessLevel.FULL, reader)
        assert [name for name, _ in reader.calls] == ["list_exams"]
        assert not any(s.is_locked_by_exam for s in statuses.values())

    def test_exam_without_module_is_skipped(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=None), Exam(id=11, module_id=1)])
        reader.list_exams = lambda ids: list(reader.exams)
        statuses = resolve_gate_statuses(MODULES[:2], "s1", AccessLevel.FULL, reader)
        assert statuses[2].is_locked_by_exam is True

    def test_fetch_error_propagates(self):
        reader = FakeReader(fail=True)
        with pytest.raises(DataFetchError):
            resolve_gate_statuses(MODULES, "s1", AccessLevel.FULL, reader)


class TestSingleModule:

    def test_resolve_gate_status(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)])
        assert resolve_gate_status(MODULES, 2, "s1", AccessLevel.FULL, reader).is_locked_by_exam

    def test_unknown_module_is_open(self):
        reader = FakeReader()
        assert resolve_gate_status(MODULES, 99, "s1", AccessLevel.FULL, reader) == ModuleGateStatus()

    def test_has_passed_exam_for_module(self):
        reader = FakeReader(exams=[Exam(id=10, module_id=1)], results=[result(10, True)])
        assert has_passed_exam_for_module("s1", 1, reader)
        assert not has_passed_exam_for_module("s1", 2, reader)
        assert not has_passed_exam_for_module(None, 1, reader)
