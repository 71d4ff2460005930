"""Unit tests for the exception approval workflow."""

import pytest

from tests.helpers import FAR_FIX, OFFICE_FIX, kst
from walkin.services import approvals, attendance
from walkin.services.errors import (
    AlreadyCheckedInError,
    DuplicatePendingRequestError,
    NoCheckInError,
    NotFoundError,
    RequestAlreadyReviewedError,
    ValidationError,
)

REASON = "외근으로 인해 사무실 외부에서 출근합니다"


def _file(db, user, settings, approval_type="check_in", now=None):
    return approvals.create_approval_request(
        db, user, approval_type, REASON, FAR_FIX, settings, now=now or kst(2024, 3, 4, 8, 50)
    )


class TestCreate:
    def test_creates_pending_request(self, db, employee, test_settings):
        request = _file(db, employee, test_settings)

        assert request.id == f"{employee.uid}_2024-03-04_check_in"
        assert request.status == "pending"
        assert request.name == "김철수"
        assert request.location == FAR_FIX
        assert request.reason == REASON

    def test_reason_must_have_ten_characters(self, db, employee, test_settings):
        with pytest.raises(ValidationError, match="최소 10자"):
            approvals.create_approval_request(
                db, employee, "check_in", "  외근입니다  ", FAR_FIX, test_settings
            )

    def test_reason_is_stripped(self, db, employee, test_settings):
        request = approvals.create_approval_request(
            db, employee, "check_in", f"   {REASON}   ", FAR_FIX, test_settings
        )
        assert request.reason == REASON

    def test_unknown_type(self, db, employee, test_settings):
        with pytest.raises(ValidationError):
            approvals.create_approval_request(db, employee, "lunch", REASON, FAR_FIX, test_settings)

    def test_duplicate_pending_is_rejected(self, db, employee, test_settings):
        _file(db, employee, test_settings)
        with pytest.raises(DuplicatePendingRequestError, match="이미 승인 대기 중인 요청이 있습니다"):
            _file(db, employee, test_settings)

    def test_rejected_request_can_be_refiled(self, db, employee, admin_user, test_settings):
        first = _file(db, employee, test_settings)
        approvals.reject_request(db, first.id, admin_user, "위치 확인 불가")

        again = _file(db, employee, test_settings, now=kst(2024, 3, 4, 9, 20))
        assert again.id == first.id
        assert again.status == "pending"
        assert again.rejection_reason is None
        assert again.reviewed_by is None

    def test_types_are_independent(self, db, employee, test_settings):
        _file(db, employee, test_settings, "check_in")
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))
        _file(db, employee, test_settings, "check_out", now=kst(2024, 3, 4, 17, 0))
        assert len(approvals.get_user_approval_requests(db, employee.uid)) == 2

    def test_check_out_needs_a_check_in_first(self, db, employee, admin_user, test_settings):
        with pytest.raises(NoCheckInError):
            _file(db, employee, test_settings, "check_out", now=kst(2024, 3, 4, 7, 0))

        # Checking in later the same day must not leave an earlier check-out behind
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 8, 50))
        assert approvals.get_pending_approvals(db) == []
        assert attendance.get_attendance(db, employee.uid, "2024-03-04").check_out is None


class TestQueries:
    def test_today_request(self, db, employee, test_settings):
        now = kst(2024, 3, 4, 8, 50)
        assert approvals.get_today_approval_request(db, employee.uid, "check_in", test_settings, now) is None
        _file(db, employee, test_settings, now=now)
        found = approvals.get_today_approval_request(db, employee.uid, "check_in", test_settings, now)
        assert found is not None
        assert approvals.get_today_approval_request(db, employee.uid, "check_out", test_settings, now) is None

    def test_pending_newest_first(self, db, employee, admin_user, test_settings):
        older = _file(db, employee, test_settings, now=kst(2024, 3, 4, 8, 0))
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))
        newer = _file(db, employee, test_settings, "check_out", now=kst(2024, 3, 4, 17, 0))
        assert [r.id for r in approvals.get_pending_approvals(db)] == [newer.id, older.id]

        approvals.reject_request(db, newer.id, admin_user, "사유 불충분")
        assert [r.id for r in approvals.get_pending_approvals(db)] == [older.id]


class TestApprove:
    def test_approving_check_in_records_attendance_at_request_time(
        self, db, employee, admin_user, test_settings
    ):
        request = _file(db, employee, test_settings, now=kst(2024, 3, 4, 8, 50))

        approved = approvals.approve_request(db, request.id, admin_user, test_settings)

        assert approved.status == "approved"
        assert approved.reviewed_by == admin_user.uid
        assert approved.reviewed_at is not None

        record = attendance.get_attendance(db, employee.uid, "2024-03-04")
        assert record.check_in_status == "approved"
        assert record.check_in["time"] == kst(2024, 3, 4, 8, 50)
        assert record.check_in_location == FAR_FIX

    def test_approving_check_out_sets_work_hours(self, db, employee, admin_user, test_settings):
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 9, 0))
        request = _file(db, employee, test_settings, "check_out", now=kst(2024, 3, 4, 17, 0))

        approvals.approve_request(db, request.id, admin_user, test_settings)

        record = attendance.get_attendance(db, employee.uid, "2024-03-04")
        assert record.check_out_status == "approved"
        assert record.work_hours == 8.0

    def test_failed_recording_leaves_request_pending(self, db, employee, admin_user, test_settings):
        request = _file(db, employee, test_settings, "check_in", now=kst(2024, 3, 4, 8, 50))
        # The employee walks into range and checks in before the review
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 8, 55))

        with pytest.raises(AlreadyCheckedInError):
            approvals.approve_request(db, request.id, admin_user, test_settings)

        assert approvals.get_approval_request(db, request.id).status == "pending"
        assert attendance.get_attendance(db, employee.uid, "2024-03-04").check_in_status == "normal"

    def test_check_out_is_never_before_check_in(self, db, employee, admin_user, test_settings):
        attendance.record_check_in(db, employee, OFFICE_FIX, test_settings, at=kst(2024, 3, 4, 7, 0))
        request = _file(db, employee, test_settings, "check_out", now=kst(2024, 3, 4, 7, 30))

        approvals.approve_request(db, request.id, admin_user, test_settings)

        record = attendance.get_attendance(db, employee.uid, "2024-03-04")
        assert record.work_hours == 0.5
        assert record.check_out["time"] >= record.check_in["time"]

    def test_cannot_review_twice(self, db, employee, admin_user, test_settings):
        request = _file(db, employee, test_settings)
        approvals.approve_request(db, request.id, admin_user, test_settings)

        with pytest.raises(RequestAlreadyReviewedError):
            approvals.approve_request(db, request.id, admin_user, test_settings)
        with pytest.raises(RequestAlreadyReviewedError):
            approvals.reject_request(db, request.id, admin_user, "늦은 거부")

    def test_missing_request(self, db, admin_user, test_settings):
        with pytest.raises(NotFoundError):
            approvals.approve_request(db, "nope", admin_user, test_settings)


class TestReject:
    def test_reject_records_reason(self, db, employee, admin_user, test_settings):
        request = _file(db, employee, test_settings)

        rejected = approvals.reject_request(db, request.id, admin_user, "  위치 확인 불가  ")

        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "위치 확인 불가"
        assert attendance.get_attendance(db, employee.uid, "2024-03-04") is None

    def test_reason_required(self, db, employee, admin_user, test_settings):
        request = _file(db, employee, test_settings)
        with pytest.raises(ValidationError):
            approvals.reject_request(db, request.id, admin_user, "   ")
