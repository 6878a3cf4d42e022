from datetime import timedelta

import pytest

from app.core.exceptions import AttemptValidationError, ForbiddenError, NotFoundError
from app.crud import crud_attempt
from app.models import assessment
from app.services.attempt_service import attempt_service
from app.services.shuffler import shuffle
from app.services.telemetry import Telemetry, capture
from app.utils.time_utils import as_utc, utc_now

from conftest import question_ids


def answer_key(db, test):
    """Respuestas: pregunta 1 y 3 correctas, pregunta 2 incorrecta."""
    first, second, third = question_ids(db, test)
    return {str(first): 1, str(second): [0, 1], str(third): "  paris "}


class TestStart:

    def test_fresh_start_snapshots_max_score(self, db, student, assignment):
        result = attempt_service.start(db, student.id, assignment.id)

        attempt = db.get(assessment.TestAttempt, result["attempt_id"])
        assert result["resumed"] is False
        assert result["duration_minutes"] == 45
        assert attempt.max_score == 6
        assert attempt.is_completed is False
        assert attempt.answers == {}

    def test_questions_hide_correct_answers(self, db, student, assignment):
        result = attempt_service.start(db, student.id, assignment.id)

        assert len(result["questions"]) == 3
        assert all("correct_answer" not in q for q in result["questions"])

    def test_start_twice_resumes_same_attempt(self, db, student, assignment):
        first = attempt_service.start(db, student.id, assignment.id)
        second = attempt_service.start(db, student.id, assignment.id)

        assert second["attempt_id"] == first["attempt_id"]
        assert second["resumed"] is True
        assert db.query(assessment.TestAttempt).count() == 1

    def test_non_member_is_forbidden(self, db, other_student, assignment):
        with pytest.raises(ForbiddenError):
            attempt_service.start(db, other_student.id, assignment.id)

    def test_max_attempts_enforced(self, db, student, make_test, make_assignment):
        test = make_test([("singlechoice", 0, 1)], max_attempts=2)
        assignment = make_assignment(test)

        for _ in range(2):
            started = attempt_service.start(db, student.id, assignment.id)
            attempt_service.submit(db, started["attempt_id"], student.id, {}, Telemetry())

        with pytest.raises(AttemptValidationError) as exc:
            attempt_service.start(db, student.id, assignment.id)
        assert exc.value.message == "You have reached the maximum number of attempts"

    def test_shuffled_order_is_stable_for_the_attempt(self, db, student, make_test, make_assignment):
        test = make_test([("singlechoice", 0, 1)] * 6, shuffle_questions=True)
        assignment = make_assignment(test)

        started = attempt_service.start(db, student.id, assignment.id)
        resumed = attempt_service.start(db, student.id, assignment.id)
        fetched = attempt_service.get(db, started["attempt_id"], student.id)

        expected = shuffle(question_ids(db, test), started["attempt_id"])
        assert [q["id"] for q in started["questions"]] == expected
        assert [q["id"] for q in resumed["questions"]] == expected
        assert [q["id"] for q in fetched["questions"]] == expected


class TestCreateRace:

    def test_unique_open_attempt_recovers_existing(self, db, student, assignment):
        existing = assessment.TestAttempt(
            test_id=assignment.test_id, assignment_id=assignment.id, student_id=student.id,
            started_at=utc_now(), max_score=6, answers={}, suspicious_activity=[],
        )
        db.add(existing)
        db.commit()

        attempt, created = crud_attempt.create_attempt(
            db, assignment, student.id, max_score=6, started_at=utc_now()
        )

        assert created is False
        assert attempt.id == existing.id
        assert db.query(assessment.TestAttempt).count() == 1


class TestGet:

    def test_open_attempt_hides_answers(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)
        result = attempt_service.get(db, started["attempt_id"], student.id)

        assert result["attempt"]["is_completed"] is False
        assert result["attempt"]["test_title"] == "Prueba de álgebra"
        assert all("correct_answer" not in q for q in result["questions"])

    def test_completed_attempt_reveals_answers(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)
        attempt_service.submit(db, started["attempt_id"], student.id, {}, Telemetry())

        result = attempt_service.get(db, started["attempt_id"], student.id)
        assert result["questions"][1]["correct_answer"] == [0, 2]

    def test_other_students_attempt_is_not_found(self, db, student, other_student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)

        with pytest.raises(NotFoundError):
            attempt_service.get(db, started["attempt_id"], other_student.id)


class TestSaveProgress:

    def test_save_overwrites_answers_and_telemetry(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)
        activity = [{"type": "copy", "details": "ctrl+c", "timestamp": "2026-10-18T10:00:00Z"}]

        attempt_service.save_progress(db, started["attempt_id"], student.id, {"1": 0}, capture(1, 0))
        attempt_service.save_progress(
            db, started["attempt_id"], student.id, {"2": [0]}, capture(2, "3", activity)
        )

        attempt = db.get(assessment.TestAttempt, started["attempt_id"])
        db.refresh(attempt)
        assert attempt.answers == {"2": [0]}
        assert (attempt.tab_switches, attempt.copy_attempts) == (2, 3)
        assert attempt.suspicious_activity == activity
        assert attempt.score is None

    def test_answers_must_be_an_object(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)

        with pytest.raises(AttemptValidationError):
            attempt_service.save_progress(db, started["attempt_id"], student.id, [1, 2], Telemetry())

    def test_unknown_attempt_is_not_found(self, db, student):
        with pytest.raises(NotFoundError):
            attempt_service.save_progress(db, 404, student.id, {}, Telemetry())


class TestSubmit:

    def test_score_aggregation(self, db, student, assignment, sample_test):
        started = attempt_service.start(db, student.id, assignment.id)
        result = attempt_service.submit(
            db, started["attempt_id"], student.id, answer_key(db, sample_test), Telemetry()
        )

        assert result["score"] == 4
        assert result["max_score"] == 6
        assert result["percentage"] == 66.67
        assert result["passed"] is True

        attempt = db.get(assessment.TestAttempt, started["attempt_id"])
        db.refresh(attempt)
        assert attempt.is_completed is True
        assert attempt.percentage == pytest.approx(66.6667, rel=1e-4)
        first, second, _ = question_ids(db, sample_test)
        assert attempt.answers[str(first)]["is_correct"] is True
        assert attempt.answers[str(second)] == {
            "student_answer": [0, 1], "is_correct": False, "earned_marks": 0.0,
        }

    def test_time_spent_is_measured_from_start(self, db, student, assignment):
        now = utc_now()
        started = attempt_service.start(db, student.id, assignment.id, now=now)
        result = attempt_service.submit(
            db, started["attempt_id"], student.id, {}, Telemetry(), now=now + timedelta(seconds=90)
        )

        assert result["time_spent_seconds"] == 90
        assert result["passed"] is False

    def test_late_submission_is_accepted(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)
        after_window = as_utc(assignment.end_date) + timedelta(minutes=5)

        result = attempt_service.submit(db, started["attempt_id"], student.id, {}, Telemetry(), now=after_window)
        assert result["message"] == "Test submitted successfully"

    def test_second_submit_is_not_found(self, db, student, assignment, sample_test):
        started = attempt_service.start(db, student.id, assignment.id)
        attempt_service.submit(db, started["attempt_id"], student.id, answer_key(db, sample_test), Telemetry())

        with pytest.raises(NotFoundError):
            attempt_service.submit(db, started["attempt_id"], student.id, {}, Telemetry())

    def test_only_one_completion_wins(self, db, student, assignment):
        started = attempt_service.start(db, student.id, assignment.id)
        telemetry = Telemetry().as_columns()

        def complete(score):
            return crud_attempt.complete_attempt(
                db, started["attempt_id"], student.id, graded_answers={}, score=score,
                percentage=score, time_spent_seconds=1, submitted_at=utc_now(), telemetry=telemetry,
            )

        assert complete(5.0) is True
        assert complete(1.0) is False
        attempt = db.get(assessment.TestAttempt, started["attempt_id"])
        db.refresh(attempt)
        assert attempt.score == 5.0

    def test_completed_attempt_is_immutable(self, db, student, assignment, sample_test):
        started = attempt_service.start(db, student.id, assignment.id)
        attempt_service.submit(db, started["attempt_id"], student.id, answer_key(db, sample_test), Telemetry())
        attempt = db.get(assessment.TestAttempt, started["attempt_id"])
        db.refresh(attempt)
        answers_before, score_before = attempt.answers, attempt.score

        with pytest.raises(NotFoundError):
            attempt_service.save_progress(db, started["attempt_id"], student.id, {"1": 3}, Telemetry())

        db.refresh(attempt)
        assert attempt.answers == answers_before
        assert attempt.score == score_before
