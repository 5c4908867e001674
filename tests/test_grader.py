from types import SimpleNamespace

import pytest

from errors import EmptyQuizError, ValidationError
from services.grader import (
    answers_match, grade_quiz, normalize_answer, parse_time_taken, study_minutes,
)


def question(qid, answer, points=1, order_index=None):
    return SimpleNamespace(id=qid, correct_answer=answer, points=points,
                           order_index=qid if order_index is None else order_index)


@pytest.fixture
def questions():
    return [
        question(1, "Paris"),
        question(2, "42"),
        question(3, "true"),
        question(4, "O(n)"),
    ]


class TestGradeQuiz:
    def test_all_correct_ignores_case_and_whitespace(self, questions):
        report = grade_quiz(questions, [" paris", "42", "True", "o(n)"])

        assert report.correct_count == 4
        assert report.total_points == 4
        assert report.earned_points == 4
        assert report.score_display == "100.00"
        assert report.reward_points == 10

    def test_partial_answers(self, questions):
        report = grade_quiz(questions, ["Lyon", "42", "false", ""])

        assert report.correct_count == 1
        assert report.score_display == "25.00"
        assert report.reward_points == 2
        assert [r.correct for r in report.results] == [False, True, False, False]

    def test_answers_keyed_by_question_id(self, questions):
        report = grade_quiz(questions, {"1": "paris", "3": True})

        assert report.correct_count == 2
        assert report.results[1].user_answer is None
        assert report.score_display == "50.00"

    def test_unknown_question_ids_are_rejected(self, questions):
        with pytest.raises(ValidationError, match="unknown questions: 99"):
            grade_quiz(questions, {"1": "Paris", "99": "x"})

    def test_positional_answers_must_cover_every_question(self, questions):
        with pytest.raises(ValidationError, match="Expected 4 answers, got 2"):
            grade_quiz(questions, ["Paris", "42"])

    @pytest.mark.parametrize("answers", [None, "Paris", 7])
    def test_malformed_answers(self, questions, answers):
        with pytest.raises(ValidationError):
            grade_quiz(questions, answers)

    def test_empty_quiz(self):
        with pytest.raises(EmptyQuizError):
            grade_quiz([], [])

    def test_zero_point_quiz_scores_zero(self):
        report = grade_quiz([question(1, "a", points=0), question(2, "b", points=0)], ["a", "b"])

        assert report.correct_count == 2
        assert report.score == 0
        assert report.score_display == "0.00"
        assert report.reward_points == 0

    def test_weighted_points_and_truncated_reward(self):
        qs = [question(1, "a", points=2), question(2, "b", points=1)]
        report = grade_quiz(qs, ["a", "x"])

        assert report.score_display == "66.67"
        assert report.rounded_score == 66.67
        assert report.reward_points == 6

    def test_reward_uses_unrounded_score(self):
        qs = [question(i, "ok") for i in range(1, 21)]
        report = grade_quiz(qs, ["ok"] * 19 + ["no"])

        assert report.score == 95
        assert report.reward_points == 9

    def test_questions_graded_in_stored_order(self):
        qs = [question(10, "second", order_index=2), question(11, "first", order_index=1)]
        report = grade_quiz(qs, ["first", "second"])

        assert [r.question_id for r in report.results] == [11, 10]
        assert report.correct_count == 2

    def test_results_payload(self, questions):
        payload = grade_quiz(questions, ["Paris", "", "", ""]).results_payload()

        assert payload[0] == {"questionId": 1, "correct": True, "correctAnswer": "Paris", "userAnswer": "Paris"}
        assert len(payload) == 4


class TestAnswerMatching:
    def test_no_numeric_tolerance(self):
        assert not answers_match("5.0", "5")
        assert answers_match(" 5 ", "5")

    def test_empty_never_matches(self):
        assert not answers_match("", "")
        assert not answers_match(None, "")

    def test_normalize(self):
        assert normalize_answer(False) == "false"
        assert normalize_answer("  MiXeD ") == "mixed"
        assert normalize_answer(12) == "12"


class TestTimeTaken:
    def test_parse(self):
        assert parse_time_taken(None) == 0
        assert parse_time_taken("61") == 61
        assert parse_time_taken(12.2) == 13

    @pytest.mark.parametrize("value", [-1, "abc", True, float("nan")])
    def test_rejects_bad_values(self, value):
        with pytest.raises(ValidationError):
            parse_time_taken(value)

    def test_study_minutes_round_up(self):
        assert study_minutes(0) == 0
        assert study_minutes(1) == 1
        assert study_minutes(60) == 1
        assert study_minutes(61) == 2
