"""Tests for access tiers, billing upgrades and mentor level changes."""

import pytest

from coursegate.classroom import (
    has_full_access,
    has_mentorship_access,
    is_mentor,
    parse_access_level,
    set_access_level,
    upgrade_access_level,
)
from coursegate.schemas import AccessLevel, Student


class TestParseAccessLevel:

    @pytest.mark.parametrize("value,expected", [
        (1, AccessLevel.BASIC),
        (2, AccessLevel.FULL),
        (3, AccessLevel.MENTOR),
    ])
    def test_valid(self, value, expected):
        assert parse_access_level(value) == expected

    @pytest.mark.parametrize("value", [0, 4, -1, "2", 2.0, None, True])
    def test_invalid(self, value):
        assert parse_access_level(value) is None


class TestTiers:

    def test_full_access(self):
        assert not has_full_access(AccessLevel.BASIC)
        assert has_full_access(AccessLevel.FULL)
        assert has_full_access(AccessLevel.MENTOR)

    def test_mentor(self):
        assert is_mentor(AccessLevel.MENTOR)
        assert not is_mentor(AccessLevel.FULL)

    def test_mentorship_access(self):
        assert has_mentorship_access(Student(id="a", access_level=AccessLevel.FULL))
        assert not has_mentorship_access(Student(id="a", access_level=AccessLevel.BASIC))
        assert not has_mentorship_access(None)


class TestUpgradeAccessLevel:

    def test_upgrade_basic_to_full(self, course_store):
        student = upgrade_access_level(course_store, "basic")
        assert student.access_level == AccessLevel.FULL
        assert course_store.get_student("basic").access_level == AccessLevel.FULL

    def test_replayed_upgrade_is_harmless(self, course_store):
        upgrade_access_level(course_store, "basic")
        upgrade_access_level(course_store, "basic")
        assert course_store.get_student("basic").access_level == AccessLevel.FULL

    def test_never_downgrades(self, course_store):
        upgrade_access_level(course_store, "mentor")
        assert course_store.get_student("mentor").access_level == AccessLevel.MENTOR

    def test_unknown_student(self, course_store):
        with pytest.raises(LookupError):
            upgrade_access_level(course_store, "nobody")


class TestSetAccessLevel:

    def test_mentor_can_set_any_level(self, course_store):
        mentor = course_store.get_student("mentor")
        updated = set_access_level(course_store, mentor, "s1", 1)
        assert updated.access_level == AccessLevel.BASIC
        assert course_store.get_student("s1").access_level == AccessLevel.BASIC

    def test_non_mentor_forbidden(self, course_store):
        with pytest.raises(PermissionError):
            set_access_level(course_store, course_store.get_student("s1"), "basic", 2)
        with pytest.raises(PermissionError):
            set_access_level(course_store, None, "basic", 2)

    def test_invalid_level(self, course_store):
        with pytest.raises(ValueError):
            set_access_level(course_store, course_store.get_student("mentor"), "basic", 7)

    def test_unknown_target(self, course_store):
        with pytest.raises(LookupError):
            set_access_level(course_store, course_store.get_student("mentor"), "nobody", 2)
