"""Unit tests for dashboard statistics."""

import pytest

from tests.helpers import OFFICE_FIX, PASSWORD, kst
from walkin.services import admin, attendance, users


@pytest.fixture
def staff(db, employee, admin_user):
    park = users.create_user(db, "park@walkin.test", PASSWORD, "박민수")
    choi = users.create_user(db, "choi@walkin.test", PASSWORD, "최지우")
    return [employee, park, choi]


class TestQueries:
    def test_employees_exclude_admins_and_sort_by_name(self, db, staff, admin_user):
        names = [user.name for user in admin.get_all_employees(db)]
        assert names == sorted(u.name for u in staff)
        assert admin_user.name not in names
        assert len(admin.get_all_users(db)) == 4

    def test_attendance_by_date(self, db, staff, test_settings):
        attendance.record_check_in(db, staff[0], OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))
        attendance.record_check_in(db, staff[1], OFFICE_FIX, test_settings, at=kst(2024, 3, 5, 9, 0))

        records = admin.get_attendance_by_date(db, "2024-03-04")
        assert [r.uid for r in records] == [staff[0].uid]


class TestStats:
    def test_counts(self, db, staff, test_settings):
        kim, park, _ = staff
        attendance.record_check_in(db, kim, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 10))
        attendance.record_check_out(db, kim.uid, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 17, 0))
        attendance.record_check_in(db, park, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 8, 30))

        stats = admin.calculate_attendance_stats(
            admin.get_all_employees(db), admin.get_attendance_by_date(db, "2024-03-04")
        )

        assert stats.to_dict() == {
            "total": 3,
            "checked_in": 2,
            "checked_out": 1,
            "late": 1,
            "early": 1,
            "absent": 1,
            "attendance_rate": 67,
        }

    def test_rate_rounds_half_up(self, db, test_settings):
        people = [users.create_user(db, f"u{i}@walkin.test", PASSWORD, f"직원{i}") for i in range(8)]
        attendance.record_check_in(db, people[0], OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))

        # 1 of 8 is 12.5%
        stats = admin.calculate_attendance_stats(people, admin.get_attendance_by_date(db, "2024-03-04"))
        assert stats.attendance_rate == 13

    def test_no_employees(self):
        stats = admin.calculate_attendance_stats([], [])
        assert stats.total == 0
        assert stats.attendance_rate == 0
        assert stats.absent == 0

    def test_admin_check_ins_are_not_counted(self, db, employee, admin_user, test_settings):
        attendance.record_check_in(db, admin_user, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 30))

        stats = admin.calculate_attendance_stats(
            admin.get_all_employees(db), admin.get_attendance_by_date(db, "2024-03-04")
        )

        assert (stats.total, stats.checked_in, stats.late, stats.absent) == (1, 0, 0, 1)
        assert stats.attendance_rate == 0


class TestCombine:
    def test_pairs_every_employee(self, db, staff, test_settings):
        record = attendance.record_check_in(db, staff[1], OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))

        pairs = admin.combine_employees_with_attendance(staff, [record])

        assert [user.uid for user, _ in pairs] == [u.uid for u in staff]
        assert [rec for _, rec in pairs] == [None, record, None]
