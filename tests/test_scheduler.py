from datetime import datetime, timedelta

import pytest

from errors import ValidationError
from services.scheduler import (
    AGAIN, EASY, HARD, MEDIUM, MAX_DIFFICULTY, MIN_DIFFICULTY,
    parse_grade, review_flashcard, reward_points_for_grade,
)

NOW = datetime(2024, 1, 1)


class TestReviewFlashcard:
    def test_easy_review_lowers_difficulty_and_pushes_card_out(self):
        """d=2.0 graded easy: 1.8, five days out, three points."""
        outcome = review_flashcard(2.0, 3, EASY, NOW)

        assert outcome.difficulty == pytest.approx(1.8)
        assert outcome.review_count == 4
        assert outcome.interval_days == 5
        assert outcome.next_review == datetime(2024, 1, 6)
        assert outcome.points == 3

    def test_medium_keeps_difficulty(self):
        outcome = review_flashcard(3.0, 0, MEDIUM, NOW)

        assert outcome.difficulty == 3.0
        assert outcome.interval_days == 5  # ceil(4.5)
        assert outcome.points == 2

    def test_hard_raises_difficulty_with_short_interval(self):
        outcome = review_flashcard(1.0, 0, HARD, NOW)

        assert outcome.difficulty == pytest.approx(1.3)
        assert outcome.interval_days == 1
        assert outcome.points == 1

    def test_again_returns_tomorrow(self):
        outcome = review_flashcard(4.0, 7, AGAIN, NOW)

        assert outcome.difficulty == pytest.approx(4.5)
        assert outcome.interval_days == 1
        assert outcome.next_review == NOW + timedelta(days=1)
        assert outcome.review_count == 8

    @pytest.mark.parametrize("grade", [0, 5, 42, -1])
    def test_unknown_grades_behave_like_again(self, grade):
        outcome = review_flashcard(2.0, 0, grade, NOW)

        assert outcome.difficulty == pytest.approx(2.5)
        assert outcome.interval_days == 1
        assert outcome.points == 1

    def test_interval_uses_difficulty_before_the_update(self):
        # 5.0 * 2.5 = 12.5, whereas the updated 4.8 would give 12
        outcome = review_flashcard(5.0, 0, EASY, NOW)

        assert outcome.interval_days == 13
        assert outcome.difficulty == pytest.approx(4.8)

    def test_float_noise_does_not_add_a_day(self):
        # 1.6 * 2.5 evaluates to 4.000000000000001
        assert review_flashcard(1.6, 0, EASY, NOW).interval_days == 4

    def test_difficulty_is_clamped(self):
        assert review_flashcard(MIN_DIFFICULTY, 0, EASY, NOW).difficulty == MIN_DIFFICULTY
        assert review_flashcard(4.9, 0, AGAIN, NOW).difficulty == MAX_DIFFICULTY
        assert review_flashcard(4.9, 0, HARD, NOW).difficulty == MAX_DIFFICULTY

    def test_missing_state_defaults_to_a_fresh_card(self):
        outcome = review_flashcard(None, None, MEDIUM, NOW)

        assert outcome.review_count == 1
        assert outcome.interval_days == 2

    @pytest.mark.parametrize("grade", [EASY, MEDIUM, HARD, AGAIN, 9])
    @pytest.mark.parametrize("difficulty", [1.0, 1.3, 2.2, 3.7, 5.0])
    def test_interval_is_positive_and_difficulty_in_range(self, grade, difficulty):
        outcome = review_flashcard(difficulty, 0, grade, NOW)

        assert isinstance(outcome.interval_days, int)
        assert outcome.interval_days >= 1
        assert MIN_DIFFICULTY <= outcome.difficulty <= MAX_DIFFICULTY
        assert outcome.next_review > NOW


class TestGradeParsing:
    def test_accepts_numeric_strings(self):
        assert parse_grade("2") == 2
        assert parse_grade(3) == 3
        assert parse_grade(2.0) == 2

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_grade(self, value):
        with pytest.raises(ValidationError, match="required"):
            parse_grade(value)

    @pytest.mark.parametrize("value", ["easy", "2.5", True, [1], {}, 2.5, 3.9, float("inf"), float("nan")])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationError):
            parse_grade(value)

    def test_reward_points(self):
        assert [reward_points_for_grade(g) for g in (EASY, MEDIUM, HARD, AGAIN, 12)] == [3, 2, 1, 1, 1]
