from types import SimpleNamespace

import pytest

from app.services import grader


class TestGradeByType:

    def test_multiplechoice_is_order_independent(self):
        assert grader.grade("multiplechoice", [0, 2], [2, 0]).is_correct
        assert not grader.grade("multiplechoice", [0, 2], [0, 1]).is_correct

    def test_multiplechoice_requires_same_length(self):
        assert not grader.grade("multiplechoice", [0, 2], [0, 2, 2]).is_correct
        assert not grader.grade("multiplechoice", [0, 0], [0, 2]).is_correct

    def test_ordering_is_positional(self):
        assert grader.grade("ordering", [0, 1, 2], [0, 1, 2]).is_correct
        assert not grader.grade("ordering", [0, 1, 2], [0, 2, 1]).is_correct

    def test_matching_is_positional(self):
        assert grader.grade("matching", ["b", "c", "a"], ["B", "c", "a"]).is_correct
        assert not grader.grade("matching", ["b", "c", "a"], ["c", "b", "a"]).is_correct

    def test_shortanswer_accepts_any_trimmed_case_insensitive_option(self):
        assert grader.grade("shortanswer", ["Paris", "paris "], "  PARIS").is_correct
        assert grader.grade("shortanswer", "Na", "na").is_correct
        assert not grader.grade("shortanswer", ["Paris"], "Lyon").is_correct

    def test_singlechoice_numeric_and_text(self):
        assert grader.grade("singlechoice", 1, "1").is_correct
        assert grader.grade("singlechoice", 2, 2.0).is_correct
        assert grader.grade("singlechoice", "B", " b ").is_correct
        assert not grader.grade("singlechoice", 1, 2).is_correct

    @pytest.mark.parametrize("submitted", [True, "true", "YES", "1", 1])
    def test_truefalse_truthy_forms(self, submitted):
        assert grader.grade("truefalse", True, submitted).is_correct

    def test_truefalse_mismatch(self):
        assert not grader.grade("truefalse", "false", "yes").is_correct

    def test_fillblanks_requires_every_blank(self):
        assert grader.grade("fillblanks", ["H2O", "CO2"], ["h2o", " co2"]).is_correct
        assert not grader.grade("fillblanks", ["H2O", "CO2"], ["H2O"]).is_correct

    def test_imagebased_modes(self):
        assert grader.grade("imagebased", 1, "1").is_correct
        assert grader.grade("imagebased", [1, 3], [3, 1]).is_correct
        assert not grader.grade("imagebased", [1, 3], 1).is_correct


class TestMalformedAnswers:

    @pytest.mark.parametrize("question_type", grader.QUESTION_TYPES)
    def test_missing_answer_is_incorrect(self, question_type):
        result = grader.grade(question_type, [0], None, marks=5)
        assert not result.is_correct
        assert result.earned_marks == 0

    def test_wrong_shape_never_raises(self):
        assert not grader.grade("ordering", [0, 1], "0,1").is_correct
        assert not grader.grade("singlechoice", 1, [1]).is_correct
        assert not grader.grade("shortanswer", "x", {"x": 1}).is_correct

    def test_unknown_type_earns_zero(self):
        result = grader.grade("essay", "anything", "anything", marks=3)
        assert result == grader.GradeResult(is_correct=False, earned_marks=0.0)


def test_full_marks_only_when_correct():
    assert grader.grade("singlechoice", 0, 0, marks=4).earned_marks == 4.0
    assert grader.grade("singlechoice", 0, 1, marks=4).earned_marks == 0.0


def test_grade_attempt_aggregates_score():
    questions = [
        SimpleNamespace(id=1, question_type="singlechoice", correct_answer=0, marks=1),
        SimpleNamespace(id=2, question_type="ordering", correct_answer=[0, 1, 2], marks=2),
        SimpleNamespace(id=3, question_type="multiplechoice", correct_answer=[1, 2], marks=3),
    ]
    summary = grader.grade_attempt(questions, {"1": 0, "2": [2, 1, 0], 3: [2, 1]})

    assert summary.score == 4
    assert summary.graded_answers["2"] == {
        "student_answer": [2, 1, 0], "is_correct": False, "earned_marks": 0.0,
    }
    assert summary.graded_answers["3"]["is_correct"] is True
    assert grader.compute_percentage(summary.score, 6) == pytest.approx(66.6667, rel=1e-4)


def test_percentage_and_pass_threshold():
    assert grader.compute_percentage(3, 0) == 0.0
    assert grader.is_passed(60.0, 60)
    assert not grader.is_passed(59.99, 60)
