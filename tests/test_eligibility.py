from datetime import timedelta

from app.models import assessment
from app.models.school import ClassStudent
from app.services import eligibility
from app.services.attempt_service import attempt_service
from app.services.telemetry import Telemetry
from app.utils.time_utils import utc_now


def test_member_within_window_can_start(db, student, assignment):
    result = eligibility.can_start(db, student.id, assignment.id)

    assert result.ok
    assert result.open_attempt is None
    assert result.test.id == assignment.test_id


def test_non_member_is_forbidden(db, other_student, assignment):
    result = eligibility.can_start(db, other_student.id, assignment.id)

    assert not result.ok
    assert result.error == eligibility.FORBIDDEN
    assert result.reason == eligibility.MSG_NO_ACCESS


def test_unknown_assignment_is_forbidden(db, student):
    result = eligibility.can_start(db, student.id, 9999)
    assert result.error == eligibility.FORBIDDEN


def test_inactive_membership_is_forbidden(db, student, assignment, school_class):
    membership = db.query(ClassStudent).filter_by(
        class_id=school_class.id, student_id=student.id
    ).one()
    membership.is_active = False
    db.commit()

    assert eligibility.can_start(db, student.id, assignment.id).error == eligibility.FORBIDDEN


def test_window_not_started(db, student, sample_test, make_assignment):
    upcoming = make_assignment(sample_test, start_offset=timedelta(hours=2), end_offset=timedelta(hours=3))
    result = eligibility.can_start(db, student.id, upcoming.id)

    assert result.error == eligibility.VALIDATION_ERROR
    assert result.reason == eligibility.MSG_NOT_STARTED


def test_window_end_is_exclusive(db, student, assignment):
    result = eligibility.can_start(db, student.id, assignment.id, now=assignment.end_date)

    assert result.error == eligibility.VALIDATION_ERROR
    assert result.reason == eligibility.MSG_ENDED


def test_inactive_assignment(db, student, sample_test, make_assignment):
    disabled = make_assignment(sample_test, is_active=False)
    assert eligibility.can_start(db, student.id, disabled.id).reason == eligibility.MSG_INACTIVE


def test_open_attempt_is_returned_for_resume(db, student, assignment):
    started = attempt_service.start(db, student.id, assignment.id)
    result = eligibility.can_start(db, student.id, assignment.id)

    assert result.ok
    assert result.open_attempt.id == started["attempt_id"]


def test_max_attempts_counts_completed_attempts(db, student, assignment):
    started = attempt_service.start(db, student.id, assignment.id)
    attempt_service.submit(db, started["attempt_id"], student.id, {}, Telemetry())

    result = eligibility.can_start(db, student.id, assignment.id)
    assert result.error == eligibility.VALIDATION_ERROR
    assert result.reason == eligibility.MSG_MAX_ATTEMPTS


def test_window_checked_before_resume(db, student, assignment):
    attempt_service.start(db, student.id, assignment.id)
    later = utc_now() + timedelta(hours=2)

    assert eligibility.can_start(db, student.id, assignment.id, now=later).reason == eligibility.MSG_ENDED
    assert db.query(assessment.TestAttempt).count() == 1
